"""Local git diff between the PR base and head, with a byte-budget cut."""

from __future__ import annotations

import logging
import subprocess

from prsift_core.errors import DiffError
from prsift_core.models import DiffBundle

logger = logging.getLogger(__name__)

CONTEXT_LINES = 5


def _git(args: list[str], workdir: str) -> subprocess.CompletedProcess:
    return subprocess.run(["git", *args], cwd=workdir, capture_output=True)


def fetch_refs(base_ref: str, pr_number: int, workdir: str = ".") -> None:
    """Make sure both sides of the PR exist locally.

    Shallow CI checkouts often lack the base branch. A failed fetch is not an
    error here: the diff step decides whether the refs are usable.
    """
    refspecs = [r for r in (base_ref, f"+refs/pull/{pr_number}/head") if r]
    try:
        result = _git(["fetch", "--no-tags", "--quiet", "origin", *refspecs], workdir)
    except FileNotFoundError:
        logger.warning("git executable not found; skipping fetch")
        return
    if result.returncode != 0:
        logger.debug("git fetch failed: %s", result.stderr.decode("utf-8", errors="replace").strip())


def truncate_diff(raw: bytes, max_bytes: int) -> DiffBundle:
    """Cut ``raw`` to at most ``max_bytes`` bytes from the start.

    The cut ignores hunk and UTF-8 boundaries, the prompt carries an advisory
    instead.
    """
    original_size = len(raw)
    if original_size <= max_bytes:
        return DiffBundle(raw_diff=raw, original_size=original_size, truncated=False, truncated_size=original_size)
    return DiffBundle(raw_diff=raw[:max_bytes], original_size=original_size, truncated=True, truncated_size=max_bytes)


def generate_diff(base_sha: str, head_sha: str, base_ref: str, workdir: str = ".") -> bytes:
    """Return ``git diff`` of base...head, falling back to origin/<base_ref>...HEAD."""
    attempts = []
    if base_sha and head_sha:
        attempts.append(f"{base_sha}...{head_sha}")
    if base_ref:
        attempts.append(f"origin/{base_ref}...HEAD")
    if not attempts:
        raise DiffError("No commit references available to diff.")

    errors = []
    for rev_range in attempts:
        try:
            result = _git(["diff", f"--unified={CONTEXT_LINES}", rev_range], workdir)
        except FileNotFoundError as e:
            raise DiffError("git executable not found") from e
        if result.returncode == 0:
            logger.debug("Diffed %s", rev_range)
            return result.stdout
        stderr = result.stderr.decode("utf-8", errors="replace").strip()
        logger.warning("git diff %s failed: %s", rev_range, stderr)
        errors.append(f"{rev_range}: {stderr}")

    raise DiffError("Could not compute diff. " + "; ".join(errors))


def build_diff(
    base_sha: str,
    head_sha: str,
    base_ref: str,
    pr_number: int,
    max_bytes: int,
    workdir: str = ".",
) -> DiffBundle:
    fetch_refs(base_ref, pr_number, workdir)
    raw = generate_diff(base_sha, head_sha, base_ref, workdir)
    return truncate_diff(raw, max_bytes)
