"""Top-level conversation comments: the review summary and the no-output notice."""

from __future__ import annotations

from typing import Iterable

from prsift_core.models import PostResult
from prsift_core.reconciler import severity_icon

HEADER = "## OpenCode Review"

VERDICT_BADGES = {
    "approve": "✅ **Approve**",
    "request_changes": "❌ **Changes requested**",
    "comment": "💬 **Comment**",
}

NO_OUTPUT_NOTICE = (
    "**OpenCode Review**: The review completed but no structured output was produced. "
    "Check the Actions log for details."
)


def verdict_badge(verdict: str) -> str:
    return VERDICT_BADGES.get(verdict, VERDICT_BADGES["comment"])


def _cell(text: str) -> str:
    # A pipe or newline inside a cell would break the table row.
    return " ".join(text.split()).replace("|", "\\|")


def build_out_of_diff_table(failures: list[PostResult]) -> str:
    lines = [
        "### Findings outside the diff",
        "",
        "These could not be posted as inline comments because the lines are not part of the diff.",
        "",
        "| Location | Severity | Issue |",
        "|----------|----------|-------|",
    ]
    for result in failures:
        f = result.finding
        severity = f"{severity_icon(f.severity)} {_cell(f.severity)}"
        lines.append(f"| `{f.path}:{f.end_line}` | {severity} | {_cell(f.title)} |")
    return "\n".join(lines)


def build_summary(verdict: str, summary: str, failures: Iterable[PostResult], model: str) -> str:
    """Build the single summary comment posted at the end of a review."""
    failures = list(failures)
    parts = [HEADER, verdict_badge(verdict), summary]
    if failures:
        parts.append(build_out_of_diff_table(failures))
    parts.append(f'---\n<sub>Reviewed by <a href="https://opencode.ai">OpenCode</a> · model `{model}`</sub>')
    return "\n\n".join(parts)
