"""Local git mirrors of allow-listed repositories.

Layout on disk: ``<repos_dir>/<owner>/<name>``, one plain clone per repository.
Only the coordinator's worker thread calls into a GitMirror, so no locking is
done here.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from mergelens_core.models import RepoId
from mergelens_core.parse import FIELD_DELIMITER

logger = logging.getLogger(__name__)

DEFAULT_REMOTE_URL = "https://github.com/{owner}/{repo}.git"
LOG_FORMAT = FIELD_DELIMITER.join(["%H", "%s", "%an"])


class MirrorError(RuntimeError):
    """A clone, pull or log command could not be run or exited nonzero."""

    def __init__(self, message: str, command: list[str] | None = None, stderr: str = ""):
        self.command = command or []
        self.stderr = stderr
        detail = f"{message}: {' '.join(self.command)}" if self.command else message
        if stderr:
            detail += f"\n{stderr}"
        super().__init__(detail)


def _check_component(value: str) -> str:
    if not value or value in (".", "..") or "/" in value or "\\" in value:
        raise MirrorError(f"Invalid repository path component {value!r}")
    return value


class GitMirror:
    """Clones and updates repositories with the git CLI."""

    def __init__(
        self,
        repos_dir: str | Path = "./repos",
        remote_url: str = DEFAULT_REMOTE_URL,
        git: str = "git",
        timeout: float | None = None,
    ):
        self._repos_dir = Path(repos_dir)
        self._remote_url = remote_url
        self._git = git
        self._timeout = timeout

    def path_for(self, repo_id: RepoId) -> Path:
        return self._repos_dir / _check_component(repo_id.owner) / _check_component(repo_id.name)

    def ensure_updated(self, repo_id: RepoId) -> None:
        """Clone the repository on first use, then fast-forward it to the remote."""
        path = self.path_for(repo_id)
        owner_dir = path.parent
        try:
            owner_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise MirrorError(f"Could not create {owner_dir}: {e}") from e

        if not (path / ".git").exists():
            url = self._remote_url.format(owner=repo_id.owner, repo=repo_id.name)
            logger.info("Cloning %s into %s", url, path)
            self._run(["clone", url, repo_id.name], cwd=owner_dir)

        logger.info("Pulling latest changes for %s", repo_id)
        self._run(["pull", "--ff-only"], cwd=path)

    def raw_log(self, repo_id: RepoId) -> list[str]:
        """Return one ``hash::::subject::::author`` line per commit, newest first."""
        output = self._run(["log", f"--pretty=format:{LOG_FORMAT}"], cwd=self.path_for(repo_id))
        return output.splitlines()

    def _run(self, args: list[str], cwd: Path) -> str:
        command = [self._git, *args]
        try:
            result = subprocess.run(
                command,
                cwd=cwd,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                timeout=self._timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise MirrorError(f"Could not run git ({type(e).__name__}: {e})", command) from e

        if result.returncode != 0:
            raise MirrorError(f"git exited with status {result.returncode}", command, result.stderr.strip())
        return result.stdout
