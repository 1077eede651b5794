"""
Tests for the completion classifier and confirmation banners.
"""

import pytest

from gatekeeper.completion import (
    CompletionKind,
    ParsedCompletion,
    Severity,
    completion_from_outcome,
    confirmation_banner,
    parse_completion_message,
)
from gatekeeper.mutations import MutationKind, success_message
from gatekeeper.preview import create_preview_issue
from gatekeeper.types import Comment, MutationOutcome


class TestParseCompletionMessage:
    """Tests for parse_completion_message."""

    def test_edit(self):
        result = parse_completion_message("✅ Issue #42 successfully updated! Title: Fix login")

        assert result == ParsedCompletion(
            kind=CompletionKind.EDIT,
            success=True,
            issue_number="42",
            title="Fix login",
        )

    def test_close(self):
        result = parse_completion_message("✅ Issue #42 successfully closed!")

        assert result.kind is CompletionKind.CLOSE
        assert result.issue_number == "42"
        assert result.title is None
        assert result.success

    def test_create(self):
        result = parse_completion_message(
            "✅ Issue successfully created!\nIssue #12\nTitle: Add dark mode\nURL: https://x"
        )

        assert result.kind is CompletionKind.CREATE
        assert result.issue_number == "12"
        assert result.title == "Add dark mode"

    def test_title_stops_at_newline(self):
        result = parse_completion_message(
            "✅ Issue #3 successfully updated!\nTitle: One line\nURL: https://x"
        )

        assert result.title == "One line"

    def test_edit_checked_before_close(self):
        text = "✅ Issue #5 successfully updated! Previously successfully closed!"

        assert parse_completion_message(text).kind is CompletionKind.EDIT

    @pytest.mark.parametrize(
        "text",
        [
            "Here is the weather in Paris",
            "",
            "Issue #42 successfully updated!",
            "❌ Failed to update issue #42 (HTTP 422): invalid",
            "✅ Comment successfully added to issue #42!",
        ],
    )
    def test_unrecognized(self, text):
        result = parse_completion_message(text)

        assert result.kind is None
        assert result.success is False

    @pytest.mark.parametrize(
        "kind, expected",
        [
            (MutationKind.CREATE, CompletionKind.CREATE),
            (MutationKind.EDIT, CompletionKind.EDIT),
            (MutationKind.CLOSE, CompletionKind.CLOSE),
        ],
    )
    def test_reads_executor_messages(self, kind, expected):
        issue = create_preview_issue(issue_number=9, title="Crash on save")
        issue.html_url = "https://github.com/acme/widgets/issues/9"

        for verified in (False, True):
            result = parse_completion_message(success_message(kind, 9, issue, verified=verified))

            assert result.kind is expected
            assert result.issue_number == "9"
            assert result.title == "Crash on save"


class TestCompletionFromOutcome:
    """The structured path, with no text parsing."""

    def test_successful_edit(self):
        issue = create_preview_issue(issue_number=4, title="Renamed")
        outcome = MutationOutcome(success=True, message="anything", issue=issue)

        result = completion_from_outcome(MutationKind.EDIT, outcome)

        assert result.kind is CompletionKind.EDIT
        assert result.issue_number == "4"
        assert result.title == "Renamed"

    def test_failure_is_unrecognized(self):
        outcome = MutationOutcome(success=False, message="❌ nope")

        assert completion_from_outcome(MutationKind.CLOSE, outcome).kind is None

    def test_comment_has_no_banner_kind(self):
        outcome = MutationOutcome(success=True, message="ok", comment=Comment(id=1, body="b"))

        assert completion_from_outcome(MutationKind.COMMENT, outcome).kind is None


class TestConfirmationBanner:
    """Tests for confirmation_banner."""

    def test_create(self):
        banner = confirmation_banner(
            ParsedCompletion(kind=CompletionKind.CREATE, success=True, title="Add dark mode")
        )

        assert banner.title == "Issue Created"
        assert banner.message == "Successfully created issue: Add dark mode"
        assert banner.severity is Severity.SUCCESS

    def test_edit(self):
        banner = confirmation_banner(
            ParsedCompletion(kind=CompletionKind.EDIT, success=True, issue_number="42", title="Fix")
        )

        assert banner.title == "Issue Updated"
        assert banner.message == "Successfully updated issue #42: Fix"

    def test_close_without_title(self):
        banner = confirmation_banner(
            ParsedCompletion(kind=CompletionKind.CLOSE, success=True, issue_number="42")
        )

        assert banner.title == "Issue Closed"
        assert banner.message == "Successfully closed issue #42: Unknown"

    def test_unrecognized_has_no_banner(self):
        assert confirmation_banner(parse_completion_message("hello")) is None

    def test_to_dict(self):
        banner = confirmation_banner(parse_completion_message("✅ Issue #1 successfully closed!"))

        assert banner.to_dict() == {
            "title": "Issue Closed",
            "message": "Successfully closed issue #1: Unknown",
            "severity": "success",
        }
