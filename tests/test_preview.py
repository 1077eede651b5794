"""
Tests for preview synthesis and the edit overlay.
"""

from datetime import datetime, timezone

from gatekeeper.preview import (
    DEFAULT_LABEL_COLOR,
    EditOverlay,
    create_preview_issue,
    parse_labels_for_preview,
    preview_from_tool_input,
)


class TestCreatePreviewIssue:
    """Tests for create_preview_issue."""

    def test_create_placeholders(self):
        preview = create_preview_issue(is_edit=False)

        assert preview.title == "Untitled Issue (Preview)"
        assert preview.body == ""

    def test_edit_placeholders(self):
        preview = create_preview_issue(is_edit=True)

        assert preview.title == "Issue Title"
        assert preview.body == "Issue body will be updated"

    def test_sentinels(self):
        preview = create_preview_issue(title="New thing")

        assert preview.id == -1
        assert preview.number == -1
        assert preview.html_url == ""
        assert preview.state == "open"
        assert preview.user.login == "preview"
        assert preview.is_preview

    def test_issue_number_used_when_given(self):
        preview = create_preview_issue(issue_number=42, is_edit=True)

        assert preview.number == 42
        assert preview.id == -1

    def test_empty_body_is_kept_for_edit(self):
        """An explicit empty body clears the body; it is not a missing value."""
        preview = create_preview_issue(body="", is_edit=True)

        assert preview.body == ""

    def test_given_fields_are_used(self):
        preview = create_preview_issue(title="Fix login", body="Steps...", labels="bug, ui")

        assert preview.title == "Fix login"
        assert preview.body == "Steps..."
        assert [label.name for label in preview.labels] == ["bug", "ui"]
        assert all(label.color == DEFAULT_LABEL_COLOR for label in preview.labels)

    def test_timestamps_present_and_parseable(self):
        preview = create_preview_issue()

        created = datetime.fromisoformat(preview.created_at)
        assert created.tzinfo is not None
        assert preview.updated_at == preview.created_at

    def test_pinned_timestamp_is_deterministic(self):
        now = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

        first = create_preview_issue(title="A", labels="x", now=now)
        second = create_preview_issue(title="A", labels="x", now=now)

        assert first == second
        assert first.created_at == now.isoformat()

    def test_malformed_labels_do_not_fail(self):
        preview = create_preview_issue(labels="[not json")

        assert [label.name for label in preview.labels] == ["[not json"]


class TestPreviewFromToolInput:
    """Tests for building previews from raw tool payloads."""

    def test_reads_tool_field_names(self):
        preview = preview_from_tool_input(
            {"issueNumber": 7, "title": "T", "labels": '["a"]'},
            is_edit=True,
        )

        assert preview.number == 7
        assert preview.title == "T"
        assert preview.body == "Issue body will be updated"
        assert [label.name for label in preview.labels] == ["a"]

    def test_labels_for_preview_custom_color(self):
        labels = parse_labels_for_preview("a,b", color="000000")

        assert [(label.name, label.color) for label in labels] == [("a", "000000"), ("b", "000000")]


class TestEditOverlay:
    """Tests for EditOverlay."""

    def test_empty_overlay_is_identity(self):
        preview = create_preview_issue(title="Original")

        assert EditOverlay().is_empty
        assert EditOverlay().apply(preview) is preview

    def test_overrides_fields(self):
        preview = create_preview_issue(title="Original", body="Old", labels="bug")
        overlay = EditOverlay(title="Edited", labels="ui, docs")

        edited = overlay.apply(preview)

        assert edited.title == "Edited"
        assert edited.body == "Old"
        assert [label.name for label in edited.labels] == ["ui", "docs"]
        assert preview.title == "Original"

    def test_empty_string_is_an_override(self):
        preview = create_preview_issue(body="Old")

        assert EditOverlay(body="").apply(preview).body == ""

    def test_dict_round_trip(self):
        overlay = EditOverlay(title="T", body="")

        assert overlay.to_dict() == {"title": "T", "body": ""}
        assert EditOverlay.from_dict(overlay.to_dict()) == overlay
        assert EditOverlay.from_dict(None).is_empty
