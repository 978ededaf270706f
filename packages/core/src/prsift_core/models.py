"""Value objects passed between the review pipeline stages.

Every stage owns its output exclusively and hands it to the next one
read-only, so these are plain dataclasses with no behaviour beyond small
derived properties.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

SEVERITIES = ("error", "warning", "suggestion")
VERDICTS = ("approve", "request_changes", "comment")

DEFAULT_SEVERITY = "suggestion"
DEFAULT_VERDICT = "comment"
DEFAULT_SUMMARY = "No summary."


@dataclass(frozen=True)
class Comment:
    """A single comment, either on the conversation or inside a review thread."""

    author: str
    body: str
    created_at: str = ""


@dataclass(frozen=True)
class ReviewThread:
    """An anchored review conversation together with its lifecycle flags."""

    is_resolved: bool
    is_outdated: bool
    path: str
    line: int | None = None
    start_line: int | None = None
    comments: tuple[Comment, ...] = ()

    @property
    def is_file_level(self) -> bool:
        return self.line is None

    @property
    def is_multiline(self) -> bool:
        return self.line is not None and self.start_line is not None and self.start_line != self.line


@dataclass(frozen=True)
class ReviewContext:
    """Everything known about the PR before the engine runs.

    Built once per run by the context fetcher. ``base_sha`` / ``head_sha``
    come from GraphQL but are replaced by the CI-provided values when given.
    """

    title: str
    body: str
    author: str
    base_ref: str
    head_ref: str
    number: int = 0
    base_sha: str = ""
    head_sha: str = ""
    conversation_comments: tuple[Comment, ...] = ()
    review_threads: tuple[ReviewThread, ...] = ()


@dataclass(frozen=True)
class DiffBundle:
    raw_diff: bytes
    original_size: int
    truncated: bool
    truncated_size: int

    @property
    def text(self) -> str:
        # A byte-prefix cut may end mid code point.
        return self.raw_diff.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class Finding:
    path: str
    line: int
    end_line: int
    title: str
    body: str
    severity: str = DEFAULT_SEVERITY

    @property
    def is_range(self) -> bool:
        return self.line != self.end_line


@dataclass
class ReviewOutput:
    summary: str = DEFAULT_SUMMARY
    verdict: str = DEFAULT_VERDICT
    findings: list[Finding] = field(default_factory=list)


class PostStatus(str, Enum):
    POSTED = "posted"
    OUT_OF_DIFF = "out_of_diff"


@dataclass(frozen=True)
class PostResult:
    """Outcome of submitting one finding as an inline comment."""

    finding: Finding
    status: PostStatus
    http_status: int

    @property
    def posted(self) -> bool:
        return self.status is PostStatus.POSTED


@dataclass
class ReviewReport:
    """Result returned by run_review, used by the CLI for its final report."""

    repo: str
    pr_number: int
    head_sha: str
    outcome: str  # "reviewed" | "no_output" | "shadow"
    verdict: str = DEFAULT_VERDICT
    results: list[PostResult] = field(default_factory=list)
    skipped_findings: int = 0
    summary_posted: bool = False

    @property
    def posted_count(self) -> int:
        return sum(1 for r in self.results if r.posted)

    @property
    def out_of_diff(self) -> list[PostResult]:
        return [r for r in self.results if not r.posted]
