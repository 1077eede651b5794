"""
Preview synthesis for pending issue mutations.

Before a human approves a create or edit, the UI shows what the issue will
look like. The preview is built purely from the proposed tool input, with
an optional overlay of the human's own edits on top. Nothing here touches
the network or any shared state.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any

from gatekeeper.labels import parse_labels
from gatekeeper.types import Issue, IssueUser, Label

PREVIEW_ID = -1
PREVIEW_LOGIN = "preview"
DEFAULT_LABEL_COLOR = "F48120"

CREATE_TITLE_PLACEHOLDER = "Untitled Issue (Preview)"
EDIT_TITLE_PLACEHOLDER = "Issue Title"
CREATE_BODY_PLACEHOLDER = ""
EDIT_BODY_PLACEHOLDER = "Issue body will be updated"


def parse_labels_for_preview(
    raw: str | None,
    color: str = DEFAULT_LABEL_COLOR,
) -> list[Label]:
    """Parse a label string and pair each name with a display color."""
    return [Label(name=name, color=color) for name in parse_labels(raw)]


def create_preview_issue(
    issue_number: int | None = None,
    title: str | None = None,
    body: str | None = None,
    labels: str | None = None,
    is_edit: bool = False,
    now: datetime | None = None,
) -> Issue:
    """
    Build a provisional issue from a proposed tool input.

    Args:
        issue_number: Target issue for edits; previews of new issues use -1.
        title: Proposed title; an empty or missing title shows a placeholder.
        body: Proposed body. An empty string is a real value and is kept.
        labels: Label string (JSON list or comma-separated).
        is_edit: Whether the preview is for an edit rather than a create.
        now: Timestamp to stamp the preview with. Pass the same value for
            every preview in one render pass to keep them consistent.

    Returns:
        An Issue with sentinel id, empty URL and the preview user.
    """
    timestamp = (now or datetime.now(timezone.utc)).isoformat()

    if body is None:
        body = EDIT_BODY_PLACEHOLDER if is_edit else CREATE_BODY_PLACEHOLDER

    return Issue(
        id=PREVIEW_ID,
        number=issue_number or PREVIEW_ID,
        title=title or (EDIT_TITLE_PLACEHOLDER if is_edit else CREATE_TITLE_PLACEHOLDER),
        body=body,
        state="open",
        labels=parse_labels_for_preview(labels),
        created_at=timestamp,
        updated_at=timestamp,
        html_url="",
        user=IssueUser(login=PREVIEW_LOGIN, avatar_url=""),
    )


def preview_from_tool_input(
    tool_input: dict[str, Any],
    is_edit: bool,
    now: datetime | None = None,
) -> Issue:
    """Build a preview from a raw create/edit tool input payload."""
    issue_number = tool_input.get("issueNumber")
    return create_preview_issue(
        issue_number=int(issue_number) if issue_number is not None else None,
        title=tool_input.get("title"),
        body=tool_input.get("body"),
        labels=tool_input.get("labels"),
        is_edit=is_edit,
        now=now,
    )


@dataclass(frozen=True)
class EditOverlay:
    """
    Human-supplied overrides applied on top of a synthesized preview.

    Fields left as None are not overridden. An empty string is an override.
    """
    title: str | None = None
    body: str | None = None
    labels: str | None = None

    @property
    def is_empty(self) -> bool:
        return self.title is None and self.body is None and self.labels is None

    def apply(self, preview: Issue) -> Issue:
        """Return a copy of the preview with the overrides applied."""
        changes: dict[str, Any] = {}
        if self.title is not None:
            changes["title"] = self.title
        if self.body is not None:
            changes["body"] = self.body
        if self.labels is not None:
            changes["labels"] = parse_labels_for_preview(self.labels)
        return replace(preview, **changes) if changes else preview

    def to_dict(self) -> dict[str, Any]:
        return {
            key: value
            for key, value in (("title", self.title), ("body", self.body), ("labels", self.labels))
            if value is not None
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "EditOverlay":
        data = data or {}
        return cls(title=data.get("title"), body=data.get("body"), labels=data.get("labels"))
