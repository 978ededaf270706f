"""Options shared by the commands that operate on a pull request.

Each option also reads the environment variable the GitHub Action sets, so
the action can call ``prsift review`` without arguments.
"""

from __future__ import annotations

import click

from prsift_cli.auth import resolve_github_token

pr_options = [
    click.option(
        "--repo", envvar="GITHUB_REPOSITORY", required=True, help="GitHub repository in owner/name format."
    ),
    click.option("--pr", "pr_number", envvar="PR_NUMBER", type=int, required=True, help="Pull request number."),
    click.option("--base-ref", envvar="PR_BASE_REF", default=None, help="Base branch name. Defaults to the PR's."),
    click.option("--base-sha", envvar="PR_BASE_SHA", default=None, help="Base commit SHA. Defaults to the PR's."),
    click.option("--head-sha", envvar="PR_HEAD_SHA", default=None, help="Head commit SHA. Defaults to the PR's."),
    click.option(
        "--max-diff-size",
        envvar="INPUT_MAX_DIFF_SIZE",
        type=click.IntRange(min=1),
        default=None,
        help="Diff byte ceiling. Overrides config file.",
    ),
    click.option(
        "--review-prompt",
        envvar="INPUT_REVIEW_PROMPT",
        default=None,
        help="Additional review instructions. Overrides config file.",
    ),
]


def with_pr_options(func):
    for option in reversed(pr_options):
        func = option(func)
    return func


def load_command_config(ctx: click.Context, overrides: dict) -> dict:
    """Load the config file named on the group and attach a GitHub token."""
    from prsift_core.config import load_config, load_custom_instructions

    config_path = ctx.obj.get("config_path", ".prsift.yml") if ctx.obj else ".prsift.yml"
    try:
        config = load_config(config_path, cli_overrides=overrides)
        load_custom_instructions(config)
    except (ValueError, FileNotFoundError) as e:
        raise click.UsageError(str(e))

    token = resolve_github_token()
    if not token:
        raise click.UsageError(
            "No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.\n"
            "Create a token at https://github.com/settings/tokens"
        )
    config["github_token"] = token
    return config
