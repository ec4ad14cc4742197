"""report command — one-off ranking for a single repository."""

from __future__ import annotations

import click
from rich.console import Console

console = Console()


@click.command("report")
@click.option("--repo", required=True, help="GitHub repository (owner/name).")
@click.option("--author", default=None, help="Rank who approved this user's pull requests.")
@click.option("--approver", default=None, help="Rank whose pull requests this user approved.")
@click.option("--no-update", is_flag=True, help="Analyze the existing mirror without cloning or pulling.")
@click.pass_context
def report_cmd(ctx, repo: str, author: str | None, approver: str | None, no_update: bool):
    """Update the local mirror of a repository and print a ranking.

    Unlike `serve`, this does not consult the allow list: it is meant for
    trying out a repository before allow-listing it.
    """
    from mergelens_core.analysis import analyze
    from mergelens_core.git.mirror import MirrorError
    from mergelens_core.models import RepoId

    if (author is None) == (approver is None):
        raise click.UsageError("Pass exactly one of --author or --approver.")

    try:
        repo_id = RepoId.parse(repo)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--repo")

    mirror = ctx.obj["mirror"]
    config = ctx.obj["config"]
    try:
        if not no_update:
            with console.status(f"Updating mirror of {repo_id}..."):
                mirror.ensure_updated(repo_id)
        analysis = analyze(mirror.raw_log(repo_id), bot_name=config["bot_name"])
    except MirrorError as e:
        raise click.ClickException(f"Could not analyze {repo_id}: {e}")

    skipped = sum(analysis.skipped.values())
    console.print(
        f"[dim]{analysis.merge_count} merge(s) found in {repo_id}"
        + (f", {skipped} malformed line(s) skipped" if skipped else "")
        + "[/dim]"
    )

    if author is not None:
        report = analysis.report_authored_by(author)
        empty = f"{author} does not have any pull requests merged into {repo_id}"
    else:
        report = analysis.report_approved_by(approver)
        empty = f"{approver} hasn't approved any pull requests in {repo_id}"

    if report is None:
        console.print(f"[yellow]{empty}[/yellow]")
        return
    console.print(report, end="", markup=False, highlight=False)
