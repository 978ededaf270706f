"""Prompt assembly for the review engine.

The document has a fixed section order:

    rules → custom instructions (optional) → pull request → conversation
    comments → existing review threads → diff

``build_prompt`` is pure: the same inputs always give the same text. The
thread digest is what the engine uses to avoid repeating settled issues, so
every thread is listed, resolved or not.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from prsift_core.models import Comment, DiffBundle, ReviewContext, ReviewThread

DEFAULT_OUTPUT_PATH = "/tmp/opencode-review.json"

RESOLVED = "RESOLVED"
UNRESOLVED = "UNRESOLVED"

_RULES = """You are a senior code reviewer. Your job is to review the pull request below.

## Rules

1. **Full codebase access** — You are running inside the repository. Use your
   file-reading tools to look at ANY file you need for context (imports,
   callers, tests, configs, etc.). Do NOT limit yourself to the diff.

2. **Do NOT duplicate existing comments** — The section "Existing review
   threads" lists every comment already posted on this PR, tagged as either
   RESOLVED or UNRESOLVED.
   - **RESOLVED** threads: the issue was raised and fixed. Do not mention it.
   - **UNRESOLVED** threads: the issue was already raised and is still open.
     Do not raise it again.
   Only raise **new** issues that have not been mentioned in any thread.

3. **Focus on what matters** — Prioritize correctness, security, performance,
   and maintainability bugs introduced by this PR. Avoid nitpicks and style
   preferences unless they cause real problems.

4. **Be precise** — Every finding must reference the exact file path (relative
   to the repo root) and line number(s) in the HEAD version of the file. If
   you are unsure, read the file first.

5. **Structured output** — After your analysis, write a JSON file to
   `@OUTPUT_PATH@` with this exact schema:

```json
{
  "summary": "<markdown summary of the review>",
  "verdict": "approve | request_changes | comment",
  "findings": [
    {
      "path": "relative/path/to/file",
      "line": 42,
      "end_line": 42,
      "severity": "error | warning | suggestion",
      "title": "Short title (max 80 chars)",
      "body": "Detailed explanation in markdown"
    }
  ]
}
```

   - `line` / `end_line`: line numbers in the new (HEAD) version of the file.
     For single-line comments set both to the same value.
   - If there are no findings, set `findings` to an empty array `[]`.
   - You MUST write this file as your final action. The CI pipeline reads it.
"""

TRUNCATION_ADVISORY = (
    "> **Note**: The diff was truncated from {original} to {kept} bytes.\n"
    "> Use your file-reading tools to inspect the full content of any file."
)

_SEPARATOR = "---"


def build_rules(output_path: str = DEFAULT_OUTPUT_PATH) -> str:
    return _RULES.replace("@OUTPUT_PATH@", output_path)


def _indent_continuation(text: str, prefix: str) -> str:
    return f"\n{prefix}".join(text.split("\n"))


def format_conversation(comments: Iterable[Comment]) -> str:
    entries = [
        f"- **@{c.author}** ({c.created_at}):\n  {_indent_continuation(c.body, '  ')}" for c in comments
    ]
    return "\n\n".join(entries) if entries else "None."


def thread_heading(thread: ReviewThread) -> str:
    tag = RESOLVED if thread.is_resolved else UNRESOLVED
    heading = f"### [{tag}] `{thread.path}`"
    if thread.line is not None:
        heading += f" line {thread.line}"
    if thread.is_multiline:
        heading += f" (lines {thread.start_line}-{thread.line})"
    if thread.is_outdated:
        heading += " (outdated)"
    return heading


def format_review_threads(threads: Iterable[ReviewThread]) -> str:
    entries = []
    for thread in threads:
        quoted = [f"> **@{c.author}**: {_indent_continuation(c.body, '> ')}" for c in thread.comments]
        entries.append(thread_heading(thread) + "\n" + "\n".join(quoted))
    return "\n\n".join(entries) if entries else "None."


def format_pr_identity(context: ReviewContext) -> str:
    return "\n".join(
        [
            "## Pull Request",
            "",
            f"- **Title**: {context.title}",
            f"- **Author**: @{context.author}",
            f"- **PR**: #{context.number}",
            f"- **Base**: `{context.base_ref}` ({context.base_sha[:8]})",
            f"- **Head**: `{context.head_ref}` ({context.head_sha[:8]})",
            "",
            "### Description",
            "",
            context.body,
        ]
    )


def format_diff(diff: DiffBundle) -> str:
    lines = ["## Diff"]
    if diff.truncated:
        lines.append(TRUNCATION_ADVISORY.format(original=diff.original_size, kept=diff.truncated_size))
    lines += ["", "```diff", diff.text, "```"]
    return "\n".join(lines)


def build_prompt(
    context: ReviewContext,
    diff: DiffBundle,
    custom_instructions: str | None = None,
    *,
    output_path: str = DEFAULT_OUTPUT_PATH,
) -> str:
    sections = [build_rules(output_path)]
    if custom_instructions:
        sections.append(f"## Additional review instructions\n\n{custom_instructions.strip()}\n")
    sections += [
        _SEPARATOR,
        format_pr_identity(context),
        _SEPARATOR,
        "## Conversation comments\n\n" + format_conversation(context.conversation_comments),
        _SEPARATOR,
        "## Existing review threads\n\n" + format_review_threads(context.review_threads),
        _SEPARATOR,
        format_diff(diff),
    ]
    return "\n\n".join(sections) + "\n"


def write_prompt(prompt: str, path: str) -> int:
    """Persist the prompt for inspection and return its size in bytes."""
    data = prompt.encode("utf-8")
    Path(path).write_bytes(data)
    return len(data)
