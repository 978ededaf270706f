"""Tests for prompt assembly.

build_prompt is pure, so these tests need no mocks: they check section
order, the resolution tags in the thread digest and the truncation advisory.
"""

from prsift_core.diff import truncate_diff
from prsift_core.models import Comment, ReviewContext, ReviewThread
from prsift_core.prompt import (
    build_prompt,
    format_conversation,
    format_review_threads,
    thread_heading,
    write_prompt,
)

RESOLVED_THREAD = ReviewThread(
    is_resolved=True,
    is_outdated=False,
    path="a.go",
    line=10,
    comments=(Comment(author="bob", body="Missing nil check"),),
)
UNRESOLVED_THREAD = ReviewThread(
    is_resolved=False,
    is_outdated=False,
    path="b.go",
    line=20,
    comments=(Comment(author="carol", body="Race on map write\nsee line 22"),),
)


def _context(**overrides):
    fields = dict(
        title="Add caching",
        body="Caches the thing.",
        author="octocat",
        base_ref="main",
        head_ref="feature/cache",
        number=7,
        base_sha="a" * 40,
        head_sha="b" * 40,
        conversation_comments=(Comment(author="alice", body="LGTM so far", created_at="2024-01-01T00:00:00Z"),),
        review_threads=(RESOLVED_THREAD, UNRESOLVED_THREAD),
    )
    fields.update(overrides)
    return ReviewContext(**fields)


DIFF = truncate_diff(b"diff --git a/a.go b/a.go\n+x := 1\n", 100000)


class TestThreadDigest:
    def test_resolved_thread_tagged_resolved(self):
        digest = format_review_threads([RESOLVED_THREAD])
        assert "[RESOLVED] `a.go` line 10" in digest
        assert "[UNRESOLVED]" not in digest

    def test_unresolved_thread_tagged_unresolved(self):
        digest = format_review_threads([UNRESOLVED_THREAD])
        assert "[UNRESOLVED] `b.go` line 20" in digest

    def test_both_threads_present_and_tagged(self):
        digest = format_review_threads([RESOLVED_THREAD, UNRESOLVED_THREAD])
        assert digest.count("[RESOLVED]") == 1
        assert digest.count("[UNRESOLVED]") == 1
        assert digest.index("a.go") < digest.index("b.go")

    def test_multiline_comment_body_stays_quoted(self):
        digest = format_review_threads([UNRESOLVED_THREAD])
        assert "> **@carol**: Race on map write\n> see line 22" in digest

    def test_multi_line_anchor_shows_range(self):
        thread = ReviewThread(is_resolved=False, is_outdated=False, path="c.py", line=9, start_line=4)
        assert thread_heading(thread) == "### [UNRESOLVED] `c.py` line 9 (lines 4-9)"

    def test_same_start_and_end_line_is_not_a_range(self):
        thread = ReviewThread(is_resolved=False, is_outdated=False, path="c.py", line=9, start_line=9)
        assert "lines" not in thread_heading(thread)

    def test_file_level_thread_has_no_line(self):
        thread = ReviewThread(is_resolved=True, is_outdated=False, path="README.md")
        assert thread_heading(thread) == "### [RESOLVED] `README.md`"

    def test_outdated_flag_surfaced(self):
        thread = ReviewThread(is_resolved=False, is_outdated=True, path="c.py", line=3)
        assert thread_heading(thread) == "### [UNRESOLVED] `c.py` line 3 (outdated)"

    def test_outdated_marker_follows_range(self):
        thread = ReviewThread(is_resolved=True, is_outdated=True, path="a.go", line=10, start_line=7)
        assert thread_heading(thread) == "### [RESOLVED] `a.go` line 10 (lines 7-10) (outdated)"

    def test_no_threads_renders_none(self):
        assert format_review_threads([]) == "None."


class TestConversationDigest:
    def test_comment_rendered_with_author_and_date(self):
        text = format_conversation([Comment(author="alice", body="one\ntwo", created_at="2024-01-01")])
        assert text == "- **@alice** (2024-01-01):\n  one\n  two"

    def test_no_comments_renders_none(self):
        assert format_conversation([]) == "None."


class TestBuildPrompt:
    def test_sections_in_fixed_order(self):
        prompt = build_prompt(_context(), DIFF, "Focus on concurrency.")
        markers = [
            "## Rules",
            "## Additional review instructions",
            "## Pull Request",
            "## Conversation comments",
            "## Existing review threads",
            "## Diff",
        ]
        positions = [prompt.index(m) for m in markers]
        assert positions == sorted(positions)

    def test_custom_instructions_omitted_when_absent(self):
        prompt = build_prompt(_context(), DIFF)
        assert "Additional review instructions" not in prompt

    def test_rules_state_the_contract(self):
        prompt = build_prompt(_context(), DIFF)
        assert "Do NOT limit yourself to the diff" in prompt
        assert "RESOLVED** threads" in prompt and "UNRESOLVED** threads" in prompt
        assert "HEAD version of the file" in prompt
        assert "/tmp/opencode-review.json" in prompt
        assert "set `findings` to an empty array" in prompt

    def test_custom_output_path_in_rules(self):
        prompt = build_prompt(_context(), DIFF, output_path="/work/out.json")
        assert "/work/out.json" in prompt
        assert "/tmp/opencode-review.json" not in prompt

    def test_pr_identity_included(self):
        prompt = build_prompt(_context(), DIFF)
        assert "- **Title**: Add caching" in prompt
        assert "- **Author**: @octocat" in prompt
        assert "- **PR**: #7" in prompt
        assert "(aaaaaaaa)" in prompt
        assert "Caches the thing." in prompt

    def test_diff_fenced(self):
        prompt = build_prompt(_context(), DIFF)
        assert "```diff\ndiff --git a/a.go b/a.go\n+x := 1\n\n```" in prompt

    def test_no_advisory_when_not_truncated(self):
        assert "truncated" not in build_prompt(_context(), DIFF)

    def test_truncation_advisory_when_truncated(self):
        bundle = truncate_diff(b"d" * 150000, 100000)
        prompt = build_prompt(_context(), bundle)
        assert "The diff was truncated from 150000 to 100000 bytes." in prompt
        assert "Use your file-reading tools to inspect the full content of any file." in prompt
        assert prompt.index("truncated from") < prompt.index("```diff")

    def test_idempotent(self):
        first = build_prompt(_context(), DIFF, "custom")
        second = build_prompt(_context(), DIFF, "custom")
        assert first.encode() == second.encode()

    def test_resolved_thread_never_tagged_unresolved_in_prompt(self):
        prompt = build_prompt(_context(review_threads=(RESOLVED_THREAD,)), DIFF)
        assert "[RESOLVED] `a.go`" in prompt
        assert "[UNRESOLVED] `a.go`" not in prompt


def test_write_prompt_returns_byte_size(tmp_path):
    path = tmp_path / "prompt.md"
    size = write_prompt("héllo", str(path))
    assert size == len("héllo".encode("utf-8"))
    assert path.read_text(encoding="utf-8") == "héllo"
