"""CLI entry point for prsift.

Commands:
  review   — run the engine on a pull request and post its findings
  prompt   — build the engine prompt for a pull request without running it
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from prsift_cli.commands.prompt import prompt_cmd
from prsift_cli.commands.review import review_cmd

console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False, rich_tracebacks=True)],
        force=True,
    )
    # PyGithub logs every request at DEBUG.
    logging.getLogger("github").setLevel(logging.INFO if verbose else logging.WARNING)


@click.group()
@click.version_option(
    version=importlib.metadata.version("prsift"),
    prog_name="prsift",
)
@click.option(
    "--config",
    "config_path",
    default=".prsift.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="PRSIFT_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Engine-driven GitHub PR reviewer for CI."""
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


main.add_command(review_cmd)
main.add_command(prompt_cmd)
