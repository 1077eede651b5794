"""
Completion Classifier - turns tool result text back into structured outcomes.

The UI only sees the text the executor sent back to the model, so it
recovers the operation kind, issue number and title by matching the fixed
success phrases that gatekeeper.mutations writes. This is a convenience
layer over free text: when the structured MutationOutcome is still at hand,
use completion_from_outcome() instead.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from gatekeeper.mutations import MutationKind
from gatekeeper.types import MutationOutcome

SUCCESS_MARKER = "✅"
ISSUE_PREFIX = f"{SUCCESS_MARKER} Issue #"

CREATE_PATTERN = re.compile(rf"{SUCCESS_MARKER} Issue successfully created!")
UPDATED_PHRASE = "successfully updated!"
CLOSED_PHRASE = "successfully closed!"

ISSUE_NUMBER_PATTERN = re.compile(r"Issue #(\d+)")
TITLE_PATTERN = re.compile(r"Title: ([^\n]+)")


class CompletionKind(str, Enum):
    """Operations the confirmation banner knows how to present."""
    CREATE = "create"
    EDIT = "edit"
    CLOSE = "close"


class Severity(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class ParsedCompletion:
    """A tool result classified into a structured record."""
    kind: CompletionKind | None
    success: bool
    issue_number: str | None = None
    title: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value if self.kind else None,
            "issue_number": self.issue_number,
            "title": self.title,
            "success": self.success,
        }


@dataclass(frozen=True)
class ConfirmationBanner:
    """Presentation for a completed operation."""
    title: str
    message: str
    severity: Severity

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "message": self.message, "severity": self.severity.value}


UNRECOGNIZED = ParsedCompletion(kind=None, success=False)


def _search(pattern: re.Pattern[str], text: str) -> str | None:
    match = pattern.search(text)
    return match.group(1) if match else None


def parse_completion_message(text: str) -> ParsedCompletion:
    """
    Classify a tool result message.

    The edit phrase is checked before the close phrase: both start with
    "✅ Issue #", and the order decides which wins if a message ever
    carries both.
    """
    if CREATE_PATTERN.search(text):
        return ParsedCompletion(
            kind=CompletionKind.CREATE,
            success=True,
            issue_number=_search(ISSUE_NUMBER_PATTERN, text),
            title=_search(TITLE_PATTERN, text),
        )

    if ISSUE_PREFIX in text and UPDATED_PHRASE in text:
        kind = CompletionKind.EDIT
    elif ISSUE_PREFIX in text and CLOSED_PHRASE in text:
        kind = CompletionKind.CLOSE
    else:
        return UNRECOGNIZED

    return ParsedCompletion(
        kind=kind,
        success=True,
        issue_number=_search(ISSUE_NUMBER_PATTERN, text),
        title=_search(TITLE_PATTERN, text),
    )


_KIND_BY_MUTATION = {
    MutationKind.CREATE: CompletionKind.CREATE,
    MutationKind.EDIT: CompletionKind.EDIT,
    MutationKind.CLOSE: CompletionKind.CLOSE,
    MutationKind.COMMENT: None,
}


def completion_from_outcome(kind: MutationKind, outcome: MutationOutcome) -> ParsedCompletion:
    """Classify a structured outcome directly, without parsing its message."""
    completion_kind = _KIND_BY_MUTATION[kind]
    if completion_kind is None or not outcome.success:
        return UNRECOGNIZED

    issue = outcome.issue
    return ParsedCompletion(
        kind=completion_kind,
        success=True,
        issue_number=str(issue.number) if issue is not None else None,
        title=issue.title if issue is not None else None,
    )


def confirmation_banner(result: ParsedCompletion) -> ConfirmationBanner | None:
    """
    Map a classified completion to banner content.

    Returns None when there is nothing to show; the caller should then
    suppress the confirmation surface entirely.
    """
    if not result.success or result.kind is None:
        return None

    title_text = result.title or "Unknown"

    if result.kind is CompletionKind.CREATE:
        return ConfirmationBanner(
            title="Issue Created",
            message=f"Successfully created issue: {title_text}",
            severity=Severity.SUCCESS,
        )
    if result.kind is CompletionKind.EDIT:
        return ConfirmationBanner(
            title="Issue Updated",
            message=f"Successfully updated issue #{result.issue_number}: {title_text}",
            severity=Severity.SUCCESS,
        )
    return ConfirmationBanner(
        title="Issue Closed",
        message=f"Successfully closed issue #{result.issue_number}: {title_text}",
        severity=Severity.SUCCESS,
    )
