"""
Core types for the confirmation gate and mutation pipeline.

These types represent the data that flows between the chat transcript,
the preview shown to a human, and the GitHub issues the agent mutates.
Transcript types mirror the chat runtime's UI-message format; issue types
mirror the GitHub REST API's JSON shapes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Role(str, Enum):
    """Message roles in the conversation."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ConfirmationTool(str, Enum):
    """
    Tools whose execution waits for explicit human approval.

    This is a closed set: adding a mutation kind means adding a member here,
    and every mapping keyed by this enum must then cover it.
    """
    CREATE_ISSUE = "createTicketForGithubRepo"
    EDIT_ISSUE = "editTicketForGithubRepo"
    CLOSE_ISSUE = "closeTicketForGithubRepo"
    ADD_COMMENT = "addCommentToGithubIssue"

    @classmethod
    def lookup(cls, tool_name: str) -> "ConfirmationTool | None":
        """Return the member for a tool name, or None for auto-executing tools."""
        try:
            return cls(tool_name)
        except ValueError:
            return None


class InvocationState(str, Enum):
    """Lifecycle of a tool invocation, derived from its name and result."""
    PROPOSED = "proposed"
    AWAITING_CONFIRMATION = "awaiting-confirmation"
    RESOLVED = "resolved"


class ToolPartState(str, Enum):
    """States reported by the chat runtime on a tool part."""
    INPUT_STREAMING = "input-streaming"
    INPUT_AVAILABLE = "input-available"
    OUTPUT_AVAILABLE = "output-available"
    OUTPUT_ERROR = "output-error"


TOOL_PART_PREFIX = "tool-"


@dataclass
class ToolCall:
    """A request from the model to execute a tool."""
    id: str
    name: str
    arguments: dict[str, Any]


@dataclass
class ToolResult:
    """
    The result of executing a tool.

    This becomes the tool's output in the transcript, providing the model
    with feedback about what happened when the tool was executed.
    """
    tool_call_id: str
    content: str
    success: bool = True
    error: str | None = None


@dataclass
class ToolInvocation:
    """
    A tool call as it appears in the transcript.

    The lifecycle state is never stored. It is computed from the tool name
    and whether a result (output or error text) has been attached.
    """
    tool_call_id: str
    tool_name: str
    input: dict[str, Any] | None = None
    output: Any = None
    error_text: str | None = None

    @property
    def has_result(self) -> bool:
        return self.output is not None or self.error_text is not None

    @property
    def confirmation_tool(self) -> ConfirmationTool | None:
        return ConfirmationTool.lookup(self.tool_name)

    @property
    def state(self) -> InvocationState:
        if self.has_result:
            return InvocationState.RESOLVED
        if self.confirmation_tool is not None and self.input is not None:
            return InvocationState.AWAITING_CONFIRMATION
        return InvocationState.PROPOSED

    def to_dict(self) -> dict[str, Any]:
        """Convert to the chat runtime's tool part format."""
        if self.error_text is not None:
            part_state = ToolPartState.OUTPUT_ERROR
        elif self.output is not None:
            part_state = ToolPartState.OUTPUT_AVAILABLE
        elif self.input is not None:
            part_state = ToolPartState.INPUT_AVAILABLE
        else:
            part_state = ToolPartState.INPUT_STREAMING

        result: dict[str, Any] = {
            "type": f"{TOOL_PART_PREFIX}{self.tool_name}",
            "toolCallId": self.tool_call_id,
            "state": part_state.value,
        }
        if self.input is not None:
            result["input"] = self.input
        if self.output is not None:
            result["output"] = self.output
        if self.error_text is not None:
            result["errorText"] = self.error_text
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ToolInvocation":
        """Create from the chat runtime's tool part format."""
        part_type = data["type"]
        # Partial input is still being streamed and is not yet actionable.
        streaming = data.get("state") == ToolPartState.INPUT_STREAMING.value
        return cls(
            tool_call_id=data["toolCallId"],
            tool_name=part_type[len(TOOL_PART_PREFIX):],
            input=None if streaming else data.get("input"),
            output=data.get("output"),
            error_text=data.get("errorText"),
        )


@dataclass
class TextPart:
    """A plain text fragment of a message."""
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "text", "text": self.text}


MessagePart = TextPart | ToolInvocation


@dataclass
class Message:
    """A single message in the transcript, made of ordered parts."""
    id: str
    role: Role
    parts: list[MessagePart] = field(default_factory=list)

    @property
    def tool_invocations(self) -> list[ToolInvocation]:
        return [part for part in self.parts if isinstance(part, ToolInvocation)]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role.value,
            "parts": [part.to_dict() for part in self.parts],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        """
        Create from the chat runtime's UI-message format.

        Part types other than text and tool calls (reasoning, sources,
        step markers) carry nothing the gate needs and are skipped.
        """
        parts: list[MessagePart] = []
        for part in data.get("parts") or []:
            part_type = part.get("type", "")
            if part_type == "text":
                parts.append(TextPart(text=part.get("text", "")))
            elif part_type.startswith(TOOL_PART_PREFIX):
                parts.append(ToolInvocation.from_dict(part))
        return cls(id=data.get("id", ""), role=Role(data["role"]), parts=parts)


@dataclass
class Label:
    """An issue label."""
    name: str
    color: str
    id: int | None = None
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"name": self.name, "color": self.color}
        if self.id is not None:
            result["id"] = self.id
        if self.description is not None:
            result["description"] = self.description
        return result

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "Label":
        return cls(
            name=data.get("name", ""),
            color=data.get("color", ""),
            id=data.get("id"),
            description=data.get("description"),
        )


@dataclass
class IssueUser:
    """The user that owns an issue."""
    login: str
    avatar_url: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"login": self.login, "avatar_url": self.avatar_url}


@dataclass
class Issue:
    """
    A GitHub issue, either real or a locally synthesized preview.

    Previews use -1 for id and number and an empty html_url; they are never
    sent to GitHub.
    """
    id: int
    number: int
    title: str
    body: str | None
    state: str
    labels: list[Label]
    created_at: str
    updated_at: str
    html_url: str
    user: IssueUser

    @property
    def is_preview(self) -> bool:
        return self.id < 0 or not self.html_url

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "number": self.number,
            "title": self.title,
            "body": self.body,
            "state": self.state,
            "labels": [label.to_dict() for label in self.labels],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "html_url": self.html_url,
            "user": self.user.to_dict(),
        }

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "Issue":
        """Parse an issue from a GitHub API response."""
        # Labels may come back as bare names on some endpoints.
        labels = [
            Label.from_api_response(label) if isinstance(label, dict)
            else Label(name=str(label), color="")
            for label in data.get("labels") or []
        ]
        user = data.get("user") or {}
        return cls(
            id=data.get("id", 0),
            number=data["number"],
            title=data.get("title", ""),
            body=data.get("body"),
            state=data.get("state", "open"),
            labels=labels,
            created_at=data.get("created_at", ""),
            updated_at=data.get("updated_at", ""),
            html_url=data.get("html_url", ""),
            user=IssueUser(
                login=user.get("login", ""),
                avatar_url=user.get("avatar_url", ""),
            ),
        )


@dataclass
class Comment:
    """A comment on an issue."""
    id: int
    body: str
    html_url: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "body": self.body, "html_url": self.html_url}

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "Comment":
        return cls(
            id=data.get("id", 0),
            body=data.get("body") or "",
            html_url=data.get("html_url", ""),
        )


@dataclass
class MutationOutcome:
    """
    Result of an attempted write against GitHub.

    This is what the model receives as the tool result. The message is
    suitable for direct display in chat, success or failure.
    """
    success: bool
    message: str
    error: str | None = None
    issue: Issue | None = None
    comment: Comment | None = None
    verified: bool = False

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"success": self.success, "message": self.message}
        if self.error is not None:
            result["error"] = self.error
        if self.issue is not None:
            result["issue"] = self.issue.to_dict()
        if self.comment is not None:
            result["comment"] = self.comment.to_dict()
        if self.verified:
            result["verified"] = True
        return result
