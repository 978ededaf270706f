"""Error taxonomy for a review run.

Fatal errors abort the run before anything is posted to the PR. Soft
failures degrade the output but let the run finish cleanly.
"""

from __future__ import annotations


class ReviewError(Exception):
    """Base class for errors that abort a review run."""


class FetchError(ReviewError):
    """The PR context could not be retrieved or had an unexpected shape."""


class DiffError(ReviewError):
    """Neither the primary nor the fallback ref pair could be diffed."""


class EngineError(ReviewError):
    """The review engine exited with a non-zero status."""

    def __init__(self, exit_code: int, log: str = ""):
        super().__init__(f"Review engine exited with status {exit_code}")
        self.exit_code = exit_code
        self.log = log


class SoftFailure(Exception):
    """Non-fatal condition: the run notifies the PR and exits cleanly."""


class MissingArtifactError(SoftFailure):
    """The engine exited 0 but left no usable output artifact."""

    def __init__(self, path: str, reason: str = "not found"):
        super().__init__(f"Review output {path} {reason}")
        self.path = path
        self.reason = reason


class FindingValidationError(ValueError):
    """A single finding is missing required fields or has the wrong types."""
