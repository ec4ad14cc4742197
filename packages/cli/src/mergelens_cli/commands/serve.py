"""serve command — run the HTTP API."""

from __future__ import annotations

import click
from rich.console import Console

console = Console()


@click.command("serve")
@click.option("--addr", default=None, help="Listen address (host:port). Overrides config file.")
@click.pass_context
def serve_cmd(ctx, addr: str | None):
    """Serve approver/author rankings for the allow-listed repositories.

    \b
    Endpoints:
      GET /<owner>/<repo>?a=<user>   who approved <user>'s pull requests
      GET /<owner>/<repo>?r=<user>   whose pull requests <user> approved
    """
    import uvicorn

    from mergelens_core.config import ConfigError, parse_addr
    from mergelens_core.coordinator import RepoCoordinator
    from mergelens_server.app import create_app

    config = ctx.obj["config"]
    try:
        host, port = parse_addr(addr or config["addr"])
    except ConfigError as e:
        raise click.BadParameter(str(e), param_hint="--addr")

    allow_list = ctx.obj["allow_list"]
    if not allow_list:
        console.print("[yellow]The allow list is empty: every repository request will be rejected.[/yellow]")
    else:
        names = ", ".join(sorted(str(repo_id) for repo_id in allow_list))
        console.print(f"Allow-listed repositories: [cyan]{names}[/cyan]")

    coordinator = RepoCoordinator(
        mirror=ctx.obj["mirror"],
        cache=ctx.obj["cache"],
        cache_timeout=ctx.obj["cache_timeout"],
        bot_name=config["bot_name"],
        queue_size=ctx.obj["queue_size"],
    )
    app = create_app(coordinator, allow_list)

    console.print(f"[bold]Listening on[/bold] http://{host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level="info")
