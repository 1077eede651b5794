"""
Confirmation Gate - decides whether a mutation is waiting for a human.

The gate holds no pending flag of its own. Every evaluation scans the
current transcript, so a message arriving mid-confirmation can never leave
the gate out of date. The only remembered state is the human's edit overlay,
which ConfirmationGate resets whenever a fresh proposal appears.
"""

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from gatekeeper.preview import EditOverlay, preview_from_tool_input
from gatekeeper.types import (
    ConfirmationTool,
    InvocationState,
    Issue,
    Message,
    ToolInvocation,
)

logger = logging.getLogger(__name__)

TOOLS_REQUIRING_CONFIRMATION: frozenset[ConfirmationTool] = frozenset(ConfirmationTool)

# Which confirmation tools get an issue preview, and whether it is an edit.
PREVIEW_KINDS: dict[ConfirmationTool, bool | None] = {
    ConfirmationTool.CREATE_ISSUE: False,
    ConfirmationTool.EDIT_ISSUE: True,
    ConfirmationTool.CLOSE_ISSUE: None,
    ConfirmationTool.ADD_COMMENT: None,
}


class TranscriptError(Exception):
    """Error from a transcript that violates its structural invariants."""
    pass


@dataclass(frozen=True)
class PendingConfirmation:
    """What the UI needs to render (or hide) the confirmation surface."""
    pending: bool
    invocation: ToolInvocation | None = None
    preview: Issue | None = None
    is_edit_preview: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "pending": self.pending,
            "invocation": self.invocation.to_dict() if self.invocation else None,
            "preview": self.preview.to_dict() if self.preview else None,
            "is_edit_preview": self.is_edit_preview,
            "tools_requiring_confirmation": sorted(
                tool.value for tool in TOOLS_REQUIRING_CONFIRMATION
            ),
        }


NOT_PENDING = PendingConfirmation(pending=False)


def requires_confirmation(tool_name: str) -> bool:
    """Whether a tool must be approved by a human before it runs."""
    return ConfirmationTool.lookup(tool_name) in TOOLS_REQUIRING_CONFIRMATION


def validate_transcript(messages: Sequence[Message]) -> None:
    """
    Check that no tool call id appears more than once.

    Raises:
        TranscriptError: On a duplicate tool call id.
    """
    seen: set[str] = set()
    for message in messages:
        for invocation in message.tool_invocations:
            if invocation.tool_call_id in seen:
                raise TranscriptError(
                    f"Duplicate tool call id in transcript: {invocation.tool_call_id}"
                )
            seen.add(invocation.tool_call_id)


def iter_awaiting_confirmation(messages: Sequence[Message]) -> Iterator[ToolInvocation]:
    """Yield invocations awaiting confirmation, in transcript order."""
    for message in messages:
        for invocation in message.tool_invocations:
            if invocation.state is InvocationState.AWAITING_CONFIRMATION:
                yield invocation


def find_pending_confirmation(
    messages: Sequence[Message],
    now: datetime | None = None,
) -> PendingConfirmation:
    """
    Find the oldest tool call that is waiting for human approval.

    Args:
        messages: The transcript, oldest message first.
        now: Timestamp for the preview, shared across one render pass.

    Returns:
        PendingConfirmation with the first awaiting invocation of the first
        message that has one, and a preview for create/edit calls.
    """
    invocation = next(iter_awaiting_confirmation(messages), None)
    if invocation is None:
        return NOT_PENDING

    tool = invocation.confirmation_tool
    is_edit = PREVIEW_KINDS[tool] if tool is not None else None
    if is_edit is None or invocation.input is None:
        return PendingConfirmation(pending=True, invocation=invocation)

    return PendingConfirmation(
        pending=True,
        invocation=invocation,
        preview=preview_from_tool_input(invocation.input, is_edit=is_edit, now=now),
        is_edit_preview=is_edit,
    )


class ConfirmationGate:
    """
    Gate evaluator that carries the human's edit overlay between renders.

    The pending decision itself is recomputed from the transcript on every
    call to evaluate(); only the overlay and the previous pending value are
    remembered so stale edits can be discarded when a new proposal arrives.
    """

    def __init__(self) -> None:
        self.overlay = EditOverlay()
        self._was_pending = False

    def evaluate(
        self,
        messages: Sequence[Message],
        now: datetime | None = None,
    ) -> PendingConfirmation:
        result = find_pending_confirmation(messages, now=now)

        if result.pending and not self._was_pending:
            if not self.overlay.is_empty:
                logger.debug("New confirmation pending, discarding stale edits")
            self.overlay = EditOverlay()
        self._was_pending = result.pending

        if result.preview is not None and not self.overlay.is_empty:
            return replace(result, preview=self.overlay.apply(result.preview))
        return result

    def update_overlay(
        self,
        title: str | None = None,
        body: str | None = None,
        labels: str | None = None,
    ) -> EditOverlay:
        """Merge new field edits into the current overlay."""
        self.overlay = EditOverlay(
            title=title if title is not None else self.overlay.title,
            body=body if body is not None else self.overlay.body,
            labels=labels if labels is not None else self.overlay.labels,
        )
        return self.overlay

    def clear_overlay(self) -> None:
        self.overlay = EditOverlay()
