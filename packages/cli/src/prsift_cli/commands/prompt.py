"""prompt command — build the engine prompt for a pull request without running the engine."""

from __future__ import annotations

import sys

import click
from rich.console import Console

from prsift_cli.commands.options import load_command_config, with_pr_options
from prsift_core.errors import ReviewError
from prsift_core.gh.pull_request import get_client
from prsift_core.reviewer import gather_context
from prsift_core.utils import actions

console = Console()


@click.command("prompt")
@with_pr_options
@click.option("--print", "print_prompt", is_flag=True, help="Also print the prompt to stdout.")
@click.pass_context
def prompt_cmd(
    ctx,
    repo: str,
    pr_number: int,
    base_ref: str | None,
    base_sha: str | None,
    head_sha: str | None,
    max_diff_size: int | None,
    review_prompt: str | None,
    print_prompt: bool,
):
    """Write the prompt the engine would receive to the configured prompt file."""
    config = load_command_config(ctx, {"max_diff_size": max_diff_size, "review_prompt": review_prompt})

    try:
        _, _, prompt = gather_context(
            get_client(config["github_token"]),
            repo,
            pr_number,
            config,
            base_ref=base_ref,
            base_sha=base_sha,
            head_sha=head_sha,
        )
    except ReviewError as e:
        actions.error(str(e))
        sys.exit(1)

    console.print(f"Prompt written to {config['prompt_file']}")
    if print_prompt:
        click.echo(prompt)
