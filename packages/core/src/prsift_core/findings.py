"""Validation of the engine's JSON artifact into ReviewOutput.

Defaults are applied here, once, so nothing downstream has to guess:
severity → "suggestion" when absent, end_line → line, verdict → "comment",
summary → "No summary.". A finding that is missing required fields is
logged and skipped; it never aborts the run.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from prsift_core.errors import FindingValidationError, MissingArtifactError
from prsift_core.models import (
    DEFAULT_SEVERITY,
    DEFAULT_SUMMARY,
    DEFAULT_VERDICT,
    SEVERITIES,
    Finding,
    ReviewOutput,
)

logger = logging.getLogger(__name__)


def _is_line_number(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _required_str(raw: dict, key: str, allow_empty: bool = True) -> str:
    value = raw.get(key)
    if not isinstance(value, str) or (not allow_empty and not value.strip()):
        raise FindingValidationError(f"'{key}' must be a{' non-empty' if not allow_empty else ''} string")
    return value


def parse_finding(raw) -> Finding:
    """Build a Finding from one entry of the ``findings`` array."""
    if not isinstance(raw, dict):
        raise FindingValidationError(f"finding must be an object, got {type(raw).__name__}")

    path = _required_str(raw, "path", allow_empty=False)
    line = raw.get("line")
    if not _is_line_number(line):
        raise FindingValidationError(f"'line' must be a positive integer, got {line!r}")

    end_line = raw.get("end_line")
    if end_line is None:
        end_line = line
    elif not _is_line_number(end_line):
        raise FindingValidationError(f"'end_line' must be a positive integer, got {end_line!r}")

    title = _required_str(raw, "title")
    body = _required_str(raw, "body")

    severity = raw.get("severity")
    if not isinstance(severity, str) or not severity:
        severity = DEFAULT_SEVERITY
    elif severity not in SEVERITIES:
        # Kept verbatim; it renders with the generic icon.
        logger.info("Unrecognized severity %r for %s:%s", severity, path, line)

    # end_line < line is passed through; the review API decides.
    return Finding(path=path, line=line, end_line=end_line, title=title, body=body, severity=severity)


def parse_review_output(data: dict) -> tuple[ReviewOutput, int]:
    """Return the validated output and the number of findings that were skipped."""
    summary = data.get("summary")
    if not isinstance(summary, str):
        summary = DEFAULT_SUMMARY

    verdict = data.get("verdict")
    if not isinstance(verdict, str) or not verdict:
        verdict = DEFAULT_VERDICT

    raw_findings = data.get("findings")
    if raw_findings is None:
        raw_findings = []
    elif not isinstance(raw_findings, list):
        logger.warning("'findings' is %s, not a list; treating as empty", type(raw_findings).__name__)
        raw_findings = []

    findings: list[Finding] = []
    skipped = 0
    for index, raw in enumerate(raw_findings):
        try:
            findings.append(parse_finding(raw))
        except FindingValidationError as e:
            skipped += 1
            logger.warning("Skipping finding #%d: %s", index, e)

    return ReviewOutput(summary=summary, verdict=verdict, findings=findings), skipped


def load_review_output(path: str) -> tuple[ReviewOutput, int]:
    """Read and validate the artifact at ``path``.

    Raises MissingArtifactError when the file is absent or unusable as a
    whole; the caller turns that into a notice on the PR.
    """
    p = Path(path)
    if not p.is_file():
        raise MissingArtifactError(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise MissingArtifactError(path, f"could not be read: {e}") from e
    except json.JSONDecodeError as e:
        raise MissingArtifactError(path, f"is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise MissingArtifactError(path, "is not a JSON object")
    return parse_review_output(data)
