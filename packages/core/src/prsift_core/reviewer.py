"""Core PR review orchestration."""

from __future__ import annotations

import dataclasses
import logging

from github import GithubException
from rich.console import Console

from prsift_core.config import load_custom_instructions
from prsift_core.diff import build_diff
from prsift_core.engines.base import EngineFailure
from prsift_core.engines.opencode import OpenCodeEngine
from prsift_core.errors import EngineError, FetchError, MissingArtifactError
from prsift_core.findings import load_review_output
from prsift_core.gh.pull_request import (
    GithubCommentPoster,
    fetch_review_context,
    get_client,
    get_pull,
    get_repo,
    post_issue_comment,
)
from prsift_core.models import Finding, ReviewContext, ReviewReport
from prsift_core.prompt import build_prompt, write_prompt
from prsift_core.reconciler import build_comment_request, out_of_diff, reconcile_findings
from prsift_core.summary import NO_OUTPUT_NOTICE, build_summary
from prsift_core.utils import actions

console = Console()
logger = logging.getLogger(__name__)


def get_engine(config: dict):
    engine = config.get("engine", "opencode")
    if engine == "opencode":
        return OpenCodeEngine(
            artifact_path=config["output_file"],
            log_path=config.get("engine_log_file"),
            workdir=config.get("workdir", "."),
            command=config.get("engine_command") or "opencode",
        )
    raise ValueError(f"Unknown review engine: {engine!r}. Choose 'opencode'.")


def _apply_overrides(
    context: ReviewContext, base_ref: str | None, base_sha: str | None, head_sha: str | None
) -> ReviewContext:
    """CI event values describe the exact commits checked out, so they win over GraphQL."""
    overrides = {
        key: value
        for key, value in (("base_ref", base_ref), ("base_sha", base_sha), ("head_sha", head_sha))
        if value
    }
    return dataclasses.replace(context, **overrides) if overrides else context


def gather_context(
    client,
    repo: str,
    pr_number: int,
    config: dict,
    base_ref: str | None = None,
    base_sha: str | None = None,
    head_sha: str | None = None,
):
    """Fetch the PR context and diff, then assemble the prompt.

    Returns ``(context, diff, prompt)``. Shared by the review and prompt commands.
    """
    with actions.log_group("Fetching PR context"):
        context = _apply_overrides(fetch_review_context(client, repo, pr_number), base_ref, base_sha, head_sha)
        console.print(f"PR #{pr_number}: {context.title} by @{context.author}", markup=False)
        console.print(
            f"{len(context.conversation_comments)} conversation comment(s), "
            f"{len(context.review_threads)} review thread(s)"
        )

    with actions.log_group("Generating diff"):
        diff = build_diff(
            context.base_sha,
            context.head_sha,
            context.base_ref,
            pr_number,
            config["max_diff_size"],
            workdir=config.get("workdir", "."),
        )
        console.print(f"Diff size: {diff.original_size} bytes")
        if diff.truncated:
            console.print(f"[yellow]Diff truncated to {diff.truncated_size} bytes.[/yellow]")

    with actions.log_group("Building prompt"):
        prompt = build_prompt(
            context,
            diff,
            load_custom_instructions(config),
            output_path=config["output_file"],
        )
        size = write_prompt(prompt, config["prompt_file"])
        console.print(f"Prompt built: {size} bytes")

    return context, diff, prompt


def print_shadow_findings(findings: list[Finding], commit_id: str) -> None:
    """Print the inline comments that would be posted, without posting them."""
    _severity_color = {"error": "red", "warning": "yellow", "suggestion": "blue"}
    if not findings:
        console.print("[yellow]Shadow mode: no findings.[/yellow]")
        return
    console.print(f"\n[bold]Shadow review — {len(findings)} finding(s) (not posted)[/bold]\n")
    for finding in findings:
        request = build_comment_request(finding, commit_id)
        color = _severity_color.get(finding.severity, "white")
        if "start_line" in request:
            anchor = f"lines {request['start_line']}-{request['line']}"
        else:
            anchor = f"line {request['line']}"
        console.print(
            f"[bold cyan]{finding.path}[/bold cyan]  {anchor}  [{color}]{finding.severity.upper()}[/{color}]"
        )
        console.print(f"  {request['body']}", markup=False)
        console.print()


def run_review(
    repo: str,
    pr_number: int,
    config: dict,
    *,
    client=None,
    base_ref: str | None = None,
    base_sha: str | None = None,
    head_sha: str | None = None,
    shadow: bool = False,
) -> ReviewReport:
    """Run the full PR review pipeline and return a ReviewReport.

    FetchError, DiffError and EngineError abort the run before anything is
    posted. A missing engine artifact posts a notice and returns a report
    with outcome "no_output".
    """
    model = config.get("model")
    if not model:
        raise ValueError("No model configured. Set INPUT_MODEL, --model or 'model' in the config file.")

    client = client if client is not None else get_client(config["github_token"])
    context, _, prompt = gather_context(client, repo, pr_number, config, base_ref, base_sha, head_sha)

    with actions.log_group("Running review engine"):
        engine = get_engine(config)
        result = engine.run(prompt, model)
        if isinstance(result, EngineFailure):
            actions.error(f"Review engine exited with a non-zero status ({result.exit_code})")
            actions.err_console.print(result.log, markup=False)
            raise EngineError(result.exit_code, result.log)

    if shadow:
        pr = None
    else:
        try:
            repo_obj = get_repo(client, repo)
            pr = get_pull(repo_obj, pr_number)
            commit = repo_obj.get_commit(context.head_sha)
        except GithubException as e:
            raise FetchError(f"Could not load PR #{pr_number} in {repo} for posting: {e}") from e

    with actions.log_group("Posting review comments"):
        try:
            output, skipped = load_review_output(result.artifact_path)
        except MissingArtifactError as e:
            actions.warning(f"Review engine did not produce usable output: {e}")
            console.print("Engine output was:")
            console.print(result.log, markup=False)
            if pr is not None:
                post_issue_comment(pr, NO_OUTPUT_NOTICE)
            return ReviewReport(repo=repo, pr_number=pr_number, head_sha=context.head_sha, outcome="no_output")

        console.print(f"Findings: {len(output.findings)}" + (f" ({skipped} invalid, skipped)" if skipped else ""))

        if pr is None:
            print_shadow_findings(output.findings, context.head_sha)
            results = []
        else:
            results = reconcile_findings(output.findings, GithubCommentPoster(pr, commit), context.head_sha)

    report = ReviewReport(
        repo=repo,
        pr_number=pr_number,
        head_sha=context.head_sha,
        outcome="shadow" if shadow else "reviewed",
        verdict=output.verdict,
        results=results,
        skipped_findings=skipped,
    )

    if config.get("post_summary", True):
        with actions.log_group("Posting summary"):
            body = build_summary(output.verdict, output.summary, out_of_diff(results), model)
            if pr is None:
                console.print("\n[bold]Summary (not posted):[/bold]\n")
                console.print(body, markup=False)
            else:
                post_issue_comment(pr, body)
                report.summary_posted = True

    return report
