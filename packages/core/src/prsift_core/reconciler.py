"""Maps findings onto inline, diff-anchored review comments.

GitHub only accepts review comments on lines that are part of the diff.
Anything else comes back as a non-2xx status (usually 422) and the finding
is reported as out-of-diff instead. There is no retry: diff membership does
not change between attempts.
"""

from __future__ import annotations

import logging
from typing import Iterable, Protocol

from rich.console import Console

from prsift_core.models import Finding, PostResult, PostStatus

console = Console(highlight=False)
logger = logging.getLogger(__name__)

SEVERITY_ICONS = {"error": "🔴", "warning": "🟡", "suggestion": "🔵"}
DEFAULT_ICON = "💬"

RIGHT = "RIGHT"


class CommentPoster(Protocol):
    def post(self, request: dict) -> int:
        """Submit one review comment request and return the HTTP status."""


def severity_icon(severity: str) -> str:
    return SEVERITY_ICONS.get(severity, DEFAULT_ICON)


def format_finding_body(finding: Finding) -> str:
    return f"{severity_icon(finding.severity)} **{finding.title}**\n\n{finding.body}"


def build_comment_request(finding: Finding, commit_id: str) -> dict:
    """Anchor at end_line on the head side; ranges also get a start anchor."""
    request = {
        "body": format_finding_body(finding),
        "commit_id": commit_id,
        "path": finding.path,
        "line": finding.end_line,
        "side": RIGHT,
    }
    if finding.is_range:
        request["start_line"] = finding.line
        request["start_side"] = RIGHT
    return request


def _is_success(status: int) -> bool:
    return 200 <= status < 300


def reconcile_findings(findings: Iterable[Finding], poster: CommentPoster, commit_id: str) -> list[PostResult]:
    """Submit each finding once, in emission order, and classify the result."""
    results: list[PostResult] = []
    for finding in findings:
        status = poster.post(build_comment_request(finding, commit_id))
        location = f"{finding.path}:{finding.end_line}"
        if _is_success(status):
            console.print(f"  ✓ {location} — {finding.title}", markup=False)
            results.append(PostResult(finding=finding, status=PostStatus.POSTED, http_status=status))
        else:
            console.print(f"  ✗ {location} — could not post inline (HTTP {status})", markup=False)
            results.append(PostResult(finding=finding, status=PostStatus.OUT_OF_DIFF, http_status=status))
    logger.debug("Posted %d of %d finding(s) inline", sum(r.posted for r in results), len(results))
    return results


def out_of_diff(results: Iterable[PostResult]) -> list[PostResult]:
    return [r for r in results if r.status is PostStatus.OUT_OF_DIFF]
