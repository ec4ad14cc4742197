"""Core value types shared by the parser, analyzer and coordinator.

Both types are frozen so a RepoAnalysis built from them can be handed to any
number of concurrent readers without copying.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RepoId:
    """Identifier of a GitHub repository, e.g. ``rust-lang/rust``.

    Used as the cache key and the allow-list key. Comparison is exact and
    case-sensitive on both fields.
    """

    owner: str
    name: str

    def __str__(self) -> str:
        return f"{self.owner}/{self.name}"

    @classmethod
    def parse(cls, full_name: str) -> RepoId:
        """Build a RepoId from ``owner/name``; raises ValueError on any other shape."""
        owner, sep, name = full_name.partition("/")
        if not sep or not owner or not name or "/" in name:
            raise ValueError(f"Expected a repository in owner/name format, got {full_name!r}")
        return cls(owner=owner, name=name)


@dataclass(frozen=True)
class MergeCommit:
    """One pull request merged by the merge bot."""

    hash: str
    author: str
    branch: str
    approved_by: tuple[str, ...]
    pr: int
    rollup_by: str | None = None  # set only for "Rollup merge of" commits
