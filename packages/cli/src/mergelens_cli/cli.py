"""CLI entry point for mergelens.

Commands:
  serve   — run the HTTP API for the allow-listed repositories
  report  — update one mirror and print a ranking to the terminal
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from mergelens_cli.commands.report import report_cmd
from mergelens_cli.commands.serve import serve_cmd

console = Console()


def _build_cache(cache_timeout: float):
    """Instantiate the cache backend for the configured timeout.

    Cache selection:
      cache_timeout: 0s   → NoOpCache   (every request refreshes)
      (otherwise)         → MemoryCache

    This factory lives in cli.py so neither mergelens_core nor
    mergelens_store know about the config file format.
    """
    if cache_timeout <= 0:
        from mergelens_store.noop import NoOpCache

        return NoOpCache()

    from mergelens_store.memory import MemoryCache

    return MemoryCache()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("mergelens"),
    prog_name="mergelens",
)
@click.option(
    "--config",
    "config_path",
    default=".mergelens.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="MERGELENS_CONFIG",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default="info",
    show_default=True,
    help="Minimum level of log messages written to stderr.",
)
@click.pass_context
def main(ctx: click.Context, config_path: str, log_level: str):
    """Who approves whose pull requests, mined from merge-bot commits."""
    from mergelens_core.config import ConfigError, load_config, parse_allow_list, parse_cache_timeout
    from mergelens_core.git.mirror import GitMirror

    _configure_logging(log_level)
    ctx.ensure_object(dict)

    # Configuration problems are fatal: nothing starts with a bad config.
    try:
        config = load_config(config_path)
        cache_timeout = parse_cache_timeout(config["cache_timeout"])
        allow_list = parse_allow_list(config["allow"])
        queue_size = int(config["queue_size"])
    except (ConfigError, TypeError, ValueError) as e:
        raise click.ClickException(f"Invalid configuration in {config_path}: {e}")
    if queue_size < 1:
        raise click.ClickException(f"Invalid configuration in {config_path}: queue_size must be positive")

    cache = _build_cache(cache_timeout)
    ctx.obj["config"] = config
    ctx.obj["cache_timeout"] = cache_timeout
    ctx.obj["allow_list"] = allow_list
    ctx.obj["queue_size"] = queue_size
    ctx.obj["mirror"] = GitMirror(repos_dir=config["repos_dir"], remote_url=config["remote_url"])
    ctx.obj["cache"] = cache
    ctx.call_on_close(cache.close)


main.add_command(serve_cmd)
main.add_command(report_cmd)
