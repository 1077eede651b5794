"""
Gatekeeper - human-approved, verified GitHub issue mutations for chat agents.

The agent proposes issue changes as tool calls; nothing is written until a
human approves it:

1. Confirmation gate: finds the oldest tool call waiting for approval
2. Preview: shows what the issue will look like, with the human's edits
3. Verified mutation: performs the write and settles ambiguous 500s by
   reading the target back instead of retrying
4. Completion classifier: turns result text back into banner data
"""

__version__ = "0.1.0"

from gatekeeper.approval import (
    APPROVAL_NO,
    APPROVAL_YES,
    ProcessedToolCalls,
    process_tool_calls,
)
from gatekeeper.completion import (
    CompletionKind,
    ConfirmationBanner,
    ParsedCompletion,
    Severity,
    completion_from_outcome,
    confirmation_banner,
    parse_completion_message,
)
from gatekeeper.config import ConfigError, GatekeeperConfig, GitHubConfig, ServerConfig
from gatekeeper.gate import (
    ConfirmationGate,
    PendingConfirmation,
    TranscriptError,
    find_pending_confirmation,
    requires_confirmation,
)
from gatekeeper.github import GitHubClient, GitHubConnectionError, GitHubError
from gatekeeper.labels import parse_labels
from gatekeeper.mutations import MutationExecutor, MutationKind
from gatekeeper.preview import EditOverlay, create_preview_issue
from gatekeeper.tools import Tool, ToolRegistry, create_github_tools
from gatekeeper.types import (
    Comment,
    ConfirmationTool,
    InvocationState,
    Issue,
    Label,
    Message,
    MutationOutcome,
    ToolInvocation,
)

__all__ = [
    "APPROVAL_NO",
    "APPROVAL_YES",
    "ProcessedToolCalls",
    "process_tool_calls",
    "CompletionKind",
    "ConfirmationBanner",
    "ParsedCompletion",
    "Severity",
    "completion_from_outcome",
    "confirmation_banner",
    "parse_completion_message",
    "ConfigError",
    "GatekeeperConfig",
    "GitHubConfig",
    "ServerConfig",
    "ConfirmationGate",
    "PendingConfirmation",
    "TranscriptError",
    "find_pending_confirmation",
    "requires_confirmation",
    "GitHubClient",
    "GitHubConnectionError",
    "GitHubError",
    "parse_labels",
    "MutationExecutor",
    "MutationKind",
    "EditOverlay",
    "create_preview_issue",
    "Tool",
    "ToolRegistry",
    "create_github_tools",
    "Comment",
    "ConfirmationTool",
    "InvocationState",
    "Issue",
    "Label",
    "Message",
    "MutationOutcome",
    "ToolInvocation",
]
