"""
Verified-Mutation Executor - writes to GitHub that survive lost acknowledgments.

GitHub's generic 500 response is known to fire after a write has already
been applied. Treating it as a plain failure invites the model to retry and
produce a duplicate issue or comment, so a 500 is treated as "outcome
unknown" and settled by reading the target back:

- create: nothing to read back (no issue number yet), reported as failure
- edit: re-read the issue; a supplied title must match exactly
- close: re-read the issue; its state must be "closed"
- add comment: list the newest comments; one must have the exact body

Any other status is taken at face value. Writes are never re-issued.

Every public method returns a MutationOutcome and never raises. Once a
write has been sent it runs to completion even if the awaiting caller is
cancelled; the outcome is still logged and passed to the listener.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx

from gatekeeper.github import RECENT_COMMENTS_PAGE_SIZE, GitHubClient
from gatekeeper.labels import parse_labels
from gatekeeper.types import Comment, Issue, MutationOutcome

logger = logging.getLogger(__name__)

AMBIGUOUS_STATUS = 500
DEFAULT_CLOSE_REASON = "completed"
VERIFIED_SUFFIX = " (verified after server error)"


class MutationKind(str, Enum):
    """The kinds of write the executor performs."""
    CREATE = "create"
    EDIT = "edit"
    CLOSE = "close"
    COMMENT = "comment"


Resource = Issue | Comment


def build_create_payload(title: str, body: str, labels: str | None = None) -> dict[str, Any]:
    """Build a create payload; labels are omitted entirely when there are none."""
    payload: dict[str, Any] = {"title": title, "body": body}
    label_names = parse_labels(labels)
    if label_names:
        payload["labels"] = label_names
    return payload


def build_edit_payload(
    title: str | None = None,
    body: str | None = None,
    labels: str | None = None,
) -> dict[str, Any]:
    """
    Build an edit payload from only the fields that were supplied.

    An empty labels string means "no change" and leaves the labels untouched.
    """
    payload: dict[str, Any] = {}
    if title is not None:
        payload["title"] = title
    if body is not None:
        payload["body"] = body
    if labels:
        payload["labels"] = parse_labels(labels)
    return payload


def build_close_payload(reason: str | None = None) -> dict[str, Any]:
    return {"state": "closed", "state_reason": reason or DEFAULT_CLOSE_REASON}


class ReadBack(ABC):
    """
    A verification read for one mutation kind.

    read() fetches the target; confirm() is the predicate over what came
    back and returns the resource that proves the write landed, or None.
    """

    @abstractmethod
    async def read(self, client: GitHubClient, timeout: float) -> httpx.Response:
        pass

    @abstractmethod
    def confirm(self, data: Any) -> Resource | None:
        pass


@dataclass
class IssueTitleReadBack(ReadBack):
    """An edit landed if the issue re-reads with the submitted title."""
    issue_number: int
    title: str | None = None

    async def read(self, client: GitHubClient, timeout: float) -> httpx.Response:
        return await client.fetch_issue(self.issue_number, timeout=timeout)

    def confirm(self, data: Any) -> Resource | None:
        issue = Issue.from_api_response(data)
        if self.title is not None and issue.title != self.title:
            return None
        return issue


@dataclass
class IssueClosedReadBack(ReadBack):
    """A close landed if the issue re-reads as closed."""
    issue_number: int

    async def read(self, client: GitHubClient, timeout: float) -> httpx.Response:
        return await client.fetch_issue(self.issue_number, timeout=timeout)

    def confirm(self, data: Any) -> Resource | None:
        issue = Issue.from_api_response(data)
        return issue if issue.state == "closed" else None


@dataclass
class CommentBodyReadBack(ReadBack):
    """A comment landed if one of the newest comments has the exact body."""
    issue_number: int
    body: str

    async def read(self, client: GitHubClient, timeout: float) -> httpx.Response:
        return await client.fetch_recent_comments(
            self.issue_number, per_page=RECENT_COMMENTS_PAGE_SIZE, timeout=timeout
        )

    def confirm(self, data: Any) -> Resource | None:
        if not isinstance(data, list):
            return None
        for item in data:
            if isinstance(item, dict) and item.get("body") == self.body:
                return Comment.from_api_response(item)
        return None


@dataclass
class PendingWrite:
    """Everything the executor needs to perform and account for one write."""
    kind: MutationKind
    action: str
    send: Callable[[GitHubClient], Awaitable[httpx.Response]]
    parse: Callable[[Any], Resource]
    issue_number: int | None = None
    read_back: ReadBack | None = None


def success_message(
    kind: MutationKind,
    issue_number: int | None,
    resource: Resource | None,
    verified: bool = False,
) -> str:
    """
    Format the chat message for a successful write.

    The leading line is what the completion classifier keys on, so its
    wording must stay in step with gatekeeper.completion.
    """
    suffix = VERIFIED_SUFFIX if verified else ""
    lines: list[str] = []

    if kind is MutationKind.COMMENT:
        lines.append(f"✅ Comment successfully added to issue #{issue_number}!{suffix}")
        if isinstance(resource, Comment) and resource.html_url:
            lines.append(f"URL: {resource.html_url}")
        return "\n".join(lines)

    if kind is MutationKind.CREATE:
        lines.append(f"✅ Issue successfully created!{suffix}")
        if isinstance(resource, Issue):
            lines.append(f"Issue #{resource.number}")
    elif kind is MutationKind.EDIT:
        lines.append(f"✅ Issue #{issue_number} successfully updated!{suffix}")
    else:
        lines.append(f"✅ Issue #{issue_number} successfully closed!{suffix}")

    if isinstance(resource, Issue):
        lines.append(f"Title: {resource.title}")
        if resource.html_url:
            lines.append(f"URL: {resource.html_url}")
    return "\n".join(lines)


def _attach(outcome: MutationOutcome, resource: Resource | None) -> MutationOutcome:
    if isinstance(resource, Issue):
        outcome.issue = resource
    elif isinstance(resource, Comment):
        outcome.comment = resource
    return outcome


def _describe_exception(error: BaseException) -> str:
    return str(error) or type(error).__name__


class MutationExecutor:
    """
    Performs issue mutations against GitHub and reconciles ambiguous faults.

    Independent mutations may run concurrently; the executor keeps no state
    shared between them apart from the set of writes still in flight.
    """

    def __init__(
        self,
        client: GitHubClient,
        verification_timeout: float | None = None,
        on_outcome: Callable[[PendingWrite, MutationOutcome], None] | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            client: GitHub client scoped to the target repository.
            verification_timeout: Bound on each verification read, in
                seconds. Defaults to the client's configured value.
            on_outcome: Called with every finished write, including writes
                whose caller was cancelled while they were in flight.
        """
        self.client = client
        self.verification_timeout = (
            verification_timeout
            if verification_timeout is not None
            else client.config.verification_timeout
        )
        self.on_outcome = on_outcome
        self._in_flight: set[asyncio.Task[MutationOutcome]] = set()

    async def create_issue(
        self,
        title: str,
        body: str,
        labels: str | None = None,
    ) -> MutationOutcome:
        payload = build_create_payload(title, body, labels)
        logger.info(f"Creating issue in {self.client.owner}/{self.client.repo}: {title!r}")
        return await self._submit(PendingWrite(
            kind=MutationKind.CREATE,
            action="create issue",
            send=lambda client: client.post_issue(payload),
            parse=Issue.from_api_response,
        ))

    async def edit_issue(
        self,
        issue_number: int,
        title: str | None = None,
        body: str | None = None,
        labels: str | None = None,
    ) -> MutationOutcome:
        payload = build_edit_payload(title, body, labels)
        logger.info(f"Editing issue #{issue_number} (fields: {sorted(payload)})")
        return await self._submit(PendingWrite(
            kind=MutationKind.EDIT,
            action=f"update issue #{issue_number}",
            send=lambda client: client.patch_issue(issue_number, payload),
            parse=Issue.from_api_response,
            issue_number=issue_number,
            read_back=IssueTitleReadBack(issue_number=issue_number, title=title),
        ))

    async def close_issue(
        self,
        issue_number: int,
        reason: str | None = None,
    ) -> MutationOutcome:
        payload = build_close_payload(reason)
        logger.info(f"Closing issue #{issue_number} ({payload['state_reason']})")
        return await self._submit(PendingWrite(
            kind=MutationKind.CLOSE,
            action=f"close issue #{issue_number}",
            send=lambda client: client.patch_issue(issue_number, payload),
            parse=Issue.from_api_response,
            issue_number=issue_number,
            read_back=IssueClosedReadBack(issue_number=issue_number),
        ))

    async def add_comment(self, issue_number: int, body: str) -> MutationOutcome:
        logger.info(f"Adding comment to issue #{issue_number}")
        return await self._submit(PendingWrite(
            kind=MutationKind.COMMENT,
            action=f"add comment to issue #{issue_number}",
            send=lambda client: client.post_comment(issue_number, body),
            parse=Comment.from_api_response,
            issue_number=issue_number,
            read_back=CommentBodyReadBack(issue_number=issue_number, body=body),
        ))

    async def drain(self) -> None:
        """Wait for every write still in flight, e.g. before shutdown."""
        if self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    async def _submit(self, write: PendingWrite) -> MutationOutcome:
        # Cancelling the caller must not abandon a write already sent.
        task = asyncio.ensure_future(self._execute(write))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return await asyncio.shield(task)

    async def _execute(self, write: PendingWrite) -> MutationOutcome:
        outcome = await self._perform(write)
        if outcome.success:
            logger.info(f"{write.action}: succeeded{' (verified)' if outcome.verified else ''}")
        else:
            logger.error(f"{write.action}: failed - {outcome.error}")
        if self.on_outcome is not None:
            try:
                self.on_outcome(write, outcome)
            except Exception:
                logger.exception(f"Outcome listener failed for {write.action}")
        return outcome

    async def _perform(self, write: PendingWrite) -> MutationOutcome:
        try:
            response = await write.send(self.client)
        except Exception as e:
            detail = _describe_exception(e)
            return MutationOutcome(
                success=False,
                message=f"❌ Failed to {write.action}: {detail}",
                error=detail,
            )

        status = response.status_code
        logger.debug(f"{write.action}: HTTP {status}")

        if status == AMBIGUOUS_STATUS:
            logger.warning(f"Received {status} on {write.action}, verifying...")
            verified = await self._verify(write)
            if verified is not None:
                return verified

        if not response.is_success:
            detail = response.text
            qualifier = ", not confirmed by read-back" if status == AMBIGUOUS_STATUS else ""
            return MutationOutcome(
                success=False,
                message=f"❌ Failed to {write.action} (HTTP {status}{qualifier}): {detail}",
                error=detail,
            )

        resource: Resource | None = None
        try:
            data = response.json()
            if isinstance(data, dict):
                resource = write.parse(data)
            else:
                logger.warning(
                    f"Unexpected response body for {write.action}: {type(data).__name__}"
                )
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            # The write was acknowledged; an unreadable body does not undo it.
            logger.warning(f"Could not parse response for {write.action}: {e}")

        outcome = MutationOutcome(
            success=True,
            message=success_message(write.kind, write.issue_number, resource),
        )
        return _attach(outcome, resource)

    async def _verify(self, write: PendingWrite) -> MutationOutcome | None:
        """
        Settle an ambiguous write by reading its target back.

        Returns a success outcome if the read proves the write landed, and
        None otherwise so the caller reports the original failure.
        """
        if write.read_back is None:
            logger.warning(f"Cannot verify {write.action}: nothing to read back")
            return None

        timeout = self.verification_timeout
        try:
            response = await asyncio.wait_for(
                write.read_back.read(self.client, timeout), timeout=timeout
            )
            if not response.is_success:
                logger.warning(
                    f"Verification read for {write.action} returned {response.status_code}"
                )
                return None
            resource = write.read_back.confirm(response.json())
        except Exception as e:
            logger.warning(f"Verification read for {write.action} failed: {_describe_exception(e)}")
            return None

        if resource is None:
            logger.warning(f"Verification read does not show {write.action} applied")
            return None

        outcome = MutationOutcome(
            success=True,
            message=success_message(write.kind, write.issue_number, resource, verified=True),
            verified=True,
        )
        return _attach(outcome, resource)
