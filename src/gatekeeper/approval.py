"""
Human-in-the-loop processing of confirmation tools.

A confirmation tool call reaches the UI with input but no result. The
human's decision is written back as the tool's output, one of APPROVAL_YES
or APPROVAL_NO. process_tool_calls() then runs on the next turn: approved
calls are executed and their decision is replaced by the real result,
denied calls get a denial message the model can read.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field, replace

from gatekeeper.completion import ParsedCompletion, completion_from_outcome
from gatekeeper.gate import validate_transcript
from gatekeeper.tools import TOOL_MUTATIONS, Execution
from gatekeeper.types import ConfirmationTool, Message, MessagePart, ToolInvocation

logger = logging.getLogger(__name__)

APPROVAL_YES = "Yes, confirmed."
APPROVAL_NO = "No, denied."
DENIED_OUTPUT = "Error: User denied access to tool execution"

EmitResult = Callable[[ToolInvocation], Awaitable[None]]


@dataclass
class ProcessedToolCalls:
    """The rewritten transcript plus a structured record per executed call."""
    messages: list[Message]
    completions: dict[str, ParsedCompletion] = field(default_factory=dict)


async def _run_approved(
    invocation: ToolInvocation,
    tool: ConfirmationTool,
    execution: Execution,
    completions: dict[str, ParsedCompletion],
    emit: EmitResult | None,
) -> ToolInvocation:
    logger.info(f"Running approved tool call {invocation.tool_call_id} ({tool.value})")
    try:
        outcome = await execution(invocation.input or {})
    except (KeyError, TypeError, ValueError) as e:
        logger.error(f"Invalid input for {tool.value}: {e}")
        resolved = replace(invocation, output=f"❌ Invalid input for {tool.value}: {e}")
    else:
        completions[invocation.tool_call_id] = completion_from_outcome(
            TOOL_MUTATIONS[tool], outcome
        )
        resolved = replace(invocation, output=outcome.message)

    if emit is not None:
        await emit(resolved)
    return resolved


async def process_tool_calls(
    messages: Sequence[Message],
    executions: Mapping[ConfirmationTool, Execution],
    emit: EmitResult | None = None,
) -> ProcessedToolCalls:
    """
    Execute or reject the human-decided tool calls in the last message.

    Approved calls run concurrently; no ordering between them is implied.
    The input transcript is not modified.

    Args:
        messages: The transcript, oldest message first.
        executions: Deferred implementations keyed by confirmation tool.
        emit: Optional coroutine that receives each resolved invocation as
            soon as it is ready, for streaming back to the client.

    Raises:
        TranscriptError: If a tool call id appears more than once.
    """
    validate_transcript(messages)
    if not messages:
        return ProcessedToolCalls(messages=[])

    last = messages[-1]
    completions: dict[str, ParsedCompletion] = {}
    parts: list[MessagePart] = list(last.parts)
    pending: dict[int, Awaitable[ToolInvocation]] = {}

    for index, part in enumerate(parts):
        if not isinstance(part, ToolInvocation):
            continue
        tool = part.confirmation_tool
        if tool is None or tool not in executions:
            continue

        if part.output == APPROVAL_YES:
            pending[index] = _run_approved(part, tool, executions[tool], completions, emit)
        elif part.output == APPROVAL_NO:
            logger.info(f"Tool call {part.tool_call_id} ({tool.value}) denied by user")
            parts[index] = replace(part, output=DENIED_OUTPUT)
            if emit is not None:
                await emit(parts[index])

    if pending:
        resolved = await asyncio.gather(*pending.values())
        for index, invocation in zip(pending, resolved):
            parts[index] = invocation

    return ProcessedToolCalls(
        messages=[*messages[:-1], replace(last, parts=parts)],
        completions=completions,
    )
