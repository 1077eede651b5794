"""
Tool System - the capabilities offered to the model.

Read-only tools carry a handler and run as soon as the model calls them.
Mutation tools are declared without a handler: the model can propose them,
but they only run through the deferred executions map once a human has
approved the call (see gatekeeper.approval).
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from gatekeeper.github import GitHubClient
from gatekeeper.mutations import MutationExecutor, MutationKind
from gatekeeper.types import ConfirmationTool, MutationOutcome, ToolCall, ToolResult

logger = logging.getLogger(__name__)

ToolHandler = Callable[..., Awaitable[Any]]
Execution = Callable[[dict[str, Any]], Awaitable[MutationOutcome]]


@dataclass
class Tool:
    """
    Definition of a tool that the model can use.

    A tool has:
    - name: Unique identifier
    - description: What the tool does (shown to the model)
    - parameters: JSON Schema for the tool's parameters
    - handler: Coroutine that executes the tool, or None if the tool
      requires human confirmation before it may run
    """
    name: str
    description: str
    parameters: dict[str, Any]
    handler: ToolHandler | None = None

    @property
    def requires_confirmation(self) -> bool:
        return self.handler is None

    def to_openai_schema(self) -> dict[str, Any]:
        """Convert to OpenAI tool format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    async def execute(self, arguments: dict[str, Any]) -> ToolResult:
        """
        Execute the tool with the given arguments.

        Handler exceptions are captured into a failed ToolResult.
        """
        if self.handler is None:
            return ToolResult(
                tool_call_id="",
                content=f"Error: Tool '{self.name}' requires human confirmation",
                success=False,
                error="confirmation required",
            )
        try:
            result = await self.handler(**arguments)
            return ToolResult(tool_call_id="", content=str(result), success=True)
        except Exception as e:
            logger.error(f"Tool {self.name} failed: {e}")
            return ToolResult(
                tool_call_id="",
                content=f"Error: {e}",
                success=False,
                error=str(e),
            )


@dataclass
class ToolRegistry:
    """
    Registry of available tools.

    Only tools registered here can be offered to the model.
    """

    _tools: dict[str, Tool] = field(default_factory=dict)

    def register(self, tool: Tool) -> None:
        """Register a tool."""
        if tool.name in self._tools:
            logger.warning(f"Overwriting existing tool: {tool.name}")
        self._tools[tool.name] = tool
        logger.debug(f"Registered tool: {tool.name}")

    def get(self, name: str) -> Tool | None:
        """Get a tool by name."""
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def confirmation_required(self) -> list[str]:
        """Names of registered tools that wait for human approval."""
        return [name for name, tool in self._tools.items() if tool.requires_confirmation]

    async def execute(self, tool_call: ToolCall) -> ToolResult:
        """Execute an auto-executing tool call."""
        tool = self._tools.get(tool_call.name)
        if tool is None:
            return ToolResult(
                tool_call_id=tool_call.id,
                content=f"Error: Unknown tool '{tool_call.name}'",
                success=False,
                error=f"Unknown tool: {tool_call.name}",
            )

        logger.info(f"Executing tool: {tool_call.name}")
        result = await tool.execute(tool_call.arguments)
        result.tool_call_id = tool_call.id
        return result

    def get_schemas(self) -> list[dict[str, Any]]:
        """Get OpenAI-format schemas for all registered tools."""
        return [tool.to_openai_schema() for tool in self._tools.values()]


# Mutation kind performed by each confirmation tool.
TOOL_MUTATIONS: dict[ConfirmationTool, MutationKind] = {
    ConfirmationTool.CREATE_ISSUE: MutationKind.CREATE,
    ConfirmationTool.EDIT_ISSUE: MutationKind.EDIT,
    ConfirmationTool.CLOSE_ISSUE: MutationKind.CLOSE,
    ConfirmationTool.ADD_COMMENT: MutationKind.COMMENT,
}

_ISSUE_NUMBER = {"type": "integer", "description": "The number of the issue"}
_LABELS = {
    "type": "string",
    "description": 'Labels as a JSON array (\'["bug", "ui"]\') or comma-separated list',
}

MUTATION_TOOL_SPECS: dict[ConfirmationTool, tuple[str, dict[str, Any]]] = {
    ConfirmationTool.CREATE_ISSUE: (
        "Create a new issue in the GitHub repository",
        {
            "type": "object",
            "properties": {
                "title": {"type": "string", "description": "Issue title"},
                "body": {"type": "string", "description": "Issue body in Markdown"},
                "labels": _LABELS,
            },
            "required": ["title", "body"],
        },
    ),
    ConfirmationTool.EDIT_ISSUE: (
        "Edit an existing issue; only the supplied fields are changed",
        {
            "type": "object",
            "properties": {
                "issueNumber": _ISSUE_NUMBER,
                "title": {"type": "string", "description": "New title"},
                "body": {"type": "string", "description": "New body in Markdown"},
                "labels": _LABELS,
            },
            "required": ["issueNumber"],
        },
    ),
    ConfirmationTool.CLOSE_ISSUE: (
        "Close an existing issue",
        {
            "type": "object",
            "properties": {
                "issueNumber": _ISSUE_NUMBER,
                "reason": {
                    "type": "string",
                    "enum": ["completed", "not_planned"],
                    "description": "Why the issue is being closed",
                },
            },
            "required": ["issueNumber"],
        },
    ),
    ConfirmationTool.ADD_COMMENT: (
        "Add a comment to an existing issue",
        {
            "type": "object",
            "properties": {
                "issueNumber": _ISSUE_NUMBER,
                "body": {"type": "string", "description": "Comment body in Markdown"},
            },
            "required": ["issueNumber", "body"],
        },
    ),
}


def create_executions(executor: MutationExecutor) -> dict[ConfirmationTool, Execution]:
    """Deferred implementations of the confirmation tools, run after approval."""

    async def create_issue(args: dict[str, Any]) -> MutationOutcome:
        return await executor.create_issue(
            title=args["title"], body=args.get("body", ""), labels=args.get("labels")
        )

    async def edit_issue(args: dict[str, Any]) -> MutationOutcome:
        return await executor.edit_issue(
            issue_number=int(args["issueNumber"]),
            title=args.get("title"),
            body=args.get("body"),
            labels=args.get("labels"),
        )

    async def close_issue(args: dict[str, Any]) -> MutationOutcome:
        return await executor.close_issue(
            issue_number=int(args["issueNumber"]), reason=args.get("reason")
        )

    async def add_comment(args: dict[str, Any]) -> MutationOutcome:
        return await executor.add_comment(
            issue_number=int(args["issueNumber"]), body=args["body"]
        )

    return {
        ConfirmationTool.CREATE_ISSUE: create_issue,
        ConfirmationTool.EDIT_ISSUE: edit_issue,
        ConfirmationTool.CLOSE_ISSUE: close_issue,
        ConfirmationTool.ADD_COMMENT: add_comment,
    }


def create_github_tools(
    client: GitHubClient,
    executor: MutationExecutor,
) -> tuple[ToolRegistry, dict[ConfirmationTool, Execution]]:
    """Create the tool registry and the deferred executions for one repository."""
    registry = ToolRegistry()

    async def search_issues(query: str) -> str:
        result = await client.search_issues(query)
        if not result.success:
            return f"{result.message}: {result.error}"
        lines = [result.message]
        lines.extend(
            f"#{issue.number} [{issue.state}] {issue.title}" for issue in result.issues
        )
        return "\n".join(lines)

    async def get_issue(issueNumber: int) -> str:
        result = await client.get_issue(int(issueNumber))
        if result.issue is None:
            return f"{result.message}: {result.error}"
        issue = result.issue
        labels = ", ".join(label.name for label in issue.labels) or "none"
        return (
            f"Issue #{issue.number} [{issue.state}]\n"
            f"Title: {issue.title}\n"
            f"Labels: {labels}\n"
            f"URL: {issue.html_url}\n\n"
            f"{issue.body or ''}"
        )

    async def get_labels() -> str:
        result = await client.get_repository_labels()
        if not result.success:
            return f"{result.message}: {result.error}"
        return "\n".join([result.message, *(label.name for label in result.labels)])

    registry.register(Tool(
        name="searchGithubIssues",
        description="Search issues in the repository using GitHub search qualifiers",
        parameters={
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": 'e.g. "state:open label:bug"'},
            },
            "required": ["query"],
        },
        handler=search_issues,
    ))
    registry.register(Tool(
        name="getGithubIssue",
        description="Fetch a single issue with its title, labels and body",
        parameters={
            "type": "object",
            "properties": {"issueNumber": _ISSUE_NUMBER},
            "required": ["issueNumber"],
        },
        handler=get_issue,
    ))
    registry.register(Tool(
        name="getRepositoryLabels",
        description="List the labels defined in the repository",
        parameters={"type": "object", "properties": {}},
        handler=get_labels,
    ))

    registry.register(Tool(
        name="getIssueTemplate",
        description="Fetch the repository's issue template; new issues should follow it",
        parameters={"type": "object", "properties": {}},
        handler=client.get_issue_template,
    ))

    for tool_name, (description, parameters) in MUTATION_TOOL_SPECS.items():
        registry.register(Tool(
            name=tool_name.value,
            description=description,
            parameters=parameters,
        ))

    return registry, create_executions(executor)
