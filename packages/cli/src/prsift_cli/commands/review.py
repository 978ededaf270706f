"""review command — run the review engine on a pull request and post its findings."""

from __future__ import annotations

import sys

import click
from rich.console import Console

from prsift_cli.commands.options import load_command_config, with_pr_options
from prsift_core.errors import ReviewError
from prsift_core.reviewer import run_review
from prsift_core.utils import actions

console = Console()


@click.command("review")
@with_pr_options
@click.option("--model", envvar="INPUT_MODEL", default=None, help="Engine model identifier. Overrides config file.")
@click.option(
    "--post-summary/--no-post-summary",
    envvar="INPUT_POST_SUMMARY",
    default=None,
    help="Post the summary comment. Overrides config file.",
)
@click.option(
    "--shadow",
    "-s",
    is_flag=True,
    help="Dry-run mode: print findings and the summary without posting to GitHub.",
)
@click.pass_context
def review_cmd(
    ctx,
    repo: str,
    pr_number: int,
    base_ref: str | None,
    base_sha: str | None,
    head_sha: str | None,
    max_diff_size: int | None,
    review_prompt: str | None,
    model: str | None,
    post_summary: bool | None,
    shadow: bool,
):
    """Review a pull request with the configured engine.

    Fetches the PR context and diff, runs the engine inside the checkout, then
    posts each finding as an inline comment plus one summary comment.

    \b
    Required environment variables:
      GITHUB_TOKEN         GitHub token (or use gh CLI)
    """
    config = load_command_config(
        ctx,
        {
            "model": model,
            "max_diff_size": max_diff_size,
            "post_summary": post_summary,
            "review_prompt": review_prompt,
        },
    )
    if not config.get("model"):
        raise click.UsageError("No model configured. Pass --model or set INPUT_MODEL.")

    try:
        report = run_review(
            repo=repo,
            pr_number=pr_number,
            config=config,
            base_ref=base_ref,
            base_sha=base_sha,
            head_sha=head_sha,
            shadow=shadow,
        )
    except ReviewError as e:
        actions.error(str(e))
        sys.exit(1)

    if report.outcome == "no_output":
        console.print("[yellow]Review finished without structured output.[/yellow]")
        return
    if report.outcome == "shadow":
        console.print("[bold]Shadow review complete. Nothing was posted.[/bold]")
        return

    console.print(
        f"[green]Review complete: {report.posted_count} inline comment(s), "
        f"{len(report.out_of_diff)} outside the diff.[/green]"
    )
