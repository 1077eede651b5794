"""
GitHub Client - async HTTP client for the GitHub issues API.

The raw write/read methods return the httpx.Response untouched so the
mutation executor can inspect status codes itself. The typed read helpers
used by auto-executing tools wrap failures into result objects instead of
raising; the infrastructure helpers (template, repository info) raise
GitHubError.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from gatekeeper.config import GitHubConfig
from gatekeeper.types import Issue, Label

logger = logging.getLogger(__name__)

DEFAULT_CONNECT_TIMEOUT = 10.0
DEFAULT_READ_TIMEOUT = 30.0
DEFAULT_WRITE_TIMEOUT = 10.0
DEFAULT_POOL_TIMEOUT = 10.0

RECENT_COMMENTS_PAGE_SIZE = 5


@dataclass
class IssueSearchResult:
    """Result of an issue search."""
    success: bool
    message: str
    issues: list[Issue] = field(default_factory=list)
    total_count: int = 0
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "success": self.success,
            "message": self.message,
            "issues": [issue.to_dict() for issue in self.issues],
            "total_count": self.total_count,
        }
        if self.error is not None:
            result["error"] = self.error
        return result


@dataclass
class IssueDetailsResult:
    """Result of fetching a single issue."""
    success: bool
    message: str
    issue: Issue | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"success": self.success, "message": self.message}
        if self.issue is not None:
            result["issue"] = self.issue.to_dict()
        if self.error is not None:
            result["error"] = self.error
        return result


@dataclass
class RepositoryLabelsResult:
    """Result of listing repository labels."""
    success: bool
    message: str
    labels: list[Label] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "success": self.success,
            "message": self.message,
            "labels": [label.to_dict() for label in self.labels],
        }
        if self.error is not None:
            result["error"] = self.error
        return result


@dataclass
class RepositoryInfo:
    """Summary of the managed repository."""
    owner: str
    repo: str
    url: str
    is_private: bool
    stars: int
    description: str | None = None
    language: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "owner": self.owner,
            "repo": self.repo,
            "url": self.url,
            "description": self.description,
            "isPrivate": self.is_private,
            "stars": self.stars,
            "language": self.language,
        }


class GitHubClient:
    """
    Client for the GitHub REST API, scoped to one repository.

    Provides methods for:
    - Creating, updating and reading issues
    - Posting and listing issue comments
    - Searching issues and listing labels
    - Fetching the issue template and repository metadata
    """

    def __init__(
        self,
        config: GitHubConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client with configuration.

        Args:
            config: GitHub configuration. If None, loads from environment.
            transport: Optional transport override, used by tests.

        Raises:
            ConfigError: If required configuration is missing.
        """
        self.config = config or GitHubConfig.from_env()

        timeout = httpx.Timeout(
            connect=DEFAULT_CONNECT_TIMEOUT,
            read=DEFAULT_READ_TIMEOUT,
            write=DEFAULT_WRITE_TIMEOUT,
            pool=DEFAULT_POOL_TIMEOUT,
        )

        headers = {
            "Authorization": f"Bearer {self.config.token}",
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": self.config.user_agent,
            "Content-Type": "application/json",
        }

        self._client = httpx.AsyncClient(
            base_url=self.config.api_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @property
    def owner(self) -> str:
        return self.config.owner

    @property
    def repo(self) -> str:
        return self.config.repo

    def issues_path(self, issue_number: int | None = None) -> str:
        path = f"/repos/{self.owner}/{self.repo}/issues"
        if issue_number is not None:
            path = f"{path}/{issue_number}"
        return path

    def comments_path(self, issue_number: int) -> str:
        return f"{self.issues_path(issue_number)}/comments"

    # Raw operations. These return the response as-is and let transport
    # errors propagate; callers decide what a status code means.

    async def post_issue(self, payload: dict[str, Any]) -> httpx.Response:
        return await self._client.post(self.issues_path(), json=payload)

    async def patch_issue(self, issue_number: int, payload: dict[str, Any]) -> httpx.Response:
        return await self._client.patch(self.issues_path(issue_number), json=payload)

    async def fetch_issue(
        self,
        issue_number: int,
        timeout: float | None = None,
    ) -> httpx.Response:
        if timeout is None:
            return await self._client.get(self.issues_path(issue_number))
        return await self._client.get(self.issues_path(issue_number), timeout=timeout)

    async def post_comment(self, issue_number: int, body: str) -> httpx.Response:
        return await self._client.post(self.comments_path(issue_number), json={"body": body})

    async def fetch_recent_comments(
        self,
        issue_number: int,
        per_page: int = RECENT_COMMENTS_PAGE_SIZE,
        timeout: float | None = None,
    ) -> httpx.Response:
        """Fetch the newest comments on an issue, newest first."""
        params = {"per_page": per_page, "sort": "created", "direction": "desc"}
        if timeout is None:
            return await self._client.get(self.comments_path(issue_number), params=params)
        return await self._client.get(
            self.comments_path(issue_number), params=params, timeout=timeout
        )

    # Typed reads used by auto-executing tools.

    async def search_issues(self, query: str) -> IssueSearchResult:
        """Search issues in the repository.

        Args:
            query: GitHub search qualifiers, e.g. "state:open label:bug".

        Returns:
            IssueSearchResult with the matching issues, or the error.
        """
        full_query = f"repo:{self.owner}/{self.repo} {query} is:issue"
        logger.info(f"Searching issues: {full_query}")

        try:
            response = await self._client.get("/search/issues", params={"q": full_query})
            response.raise_for_status()
            data = response.json()
            issues = [Issue.from_api_response(item) for item in data.get("items", [])]
            total = data.get("total_count", len(issues))
            return IssueSearchResult(
                success=True,
                message=f"Found {total} matching issues.",
                issues=issues,
                total_count=total,
            )
        except httpx.HTTPStatusError as e:
            logger.error(f"Issue search failed: {e.response.status_code} - {e.response.text}")
            return IssueSearchResult(
                success=False,
                message="Search failed",
                error=f"{e.response.status_code} - {e.response.text}",
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Issue search failed: {e}")
            return IssueSearchResult(success=False, message="Search failed", error=str(e))

    async def get_issue(self, issue_number: int) -> IssueDetailsResult:
        """Fetch a single issue.

        Returns:
            IssueDetailsResult with the issue, or the error.
        """
        try:
            response = await self.fetch_issue(issue_number)
        except httpx.HTTPError as e:
            return IssueDetailsResult(
                success=False,
                message=f"Exception fetching issue #{issue_number}",
                error=str(e),
            )

        if not response.is_success:
            return IssueDetailsResult(
                success=False,
                message=f"Failed to fetch issue #{issue_number}: {response.status_code}",
                error=response.text,
            )

        try:
            issue = Issue.from_api_response(response.json())
        except (ValueError, KeyError) as e:
            return IssueDetailsResult(
                success=False,
                message=f"Malformed response for issue #{issue_number}",
                error=str(e),
            )
        return IssueDetailsResult(success=True, message="Issue fetched successfully", issue=issue)

    async def get_repository_labels(self) -> RepositoryLabelsResult:
        """List all labels defined in the repository."""
        logger.info(f"Fetching labels for {self.owner}/{self.repo}")

        try:
            response = await self._client.get(f"/repos/{self.owner}/{self.repo}/labels")
            response.raise_for_status()
            labels = [Label.from_api_response(item) for item in response.json()]
            return RepositoryLabelsResult(
                success=True,
                message=f"Found {len(labels)} labels.",
                labels=labels,
            )
        except httpx.HTTPStatusError as e:
            logger.error(f"Failed to fetch labels: {e.response.status_code}")
            return RepositoryLabelsResult(
                success=False,
                message="Could not fetch labels",
                error=f"GitHub API Error: {e.response.status_code}",
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Failed to fetch labels: {e}")
            return RepositoryLabelsResult(
                success=False,
                message="Could not fetch labels",
                error=str(e),
            )

    # Infrastructure helpers. These raise GitHubError on failure.

    async def get_issue_template(self) -> str:
        """Fetch the issue template from the repository's default branch.

        Raises:
            GitHubError: If the template cannot be fetched.
        """
        url = (
            f"{self.config.raw_content_url}/{self.owner}/{self.repo}/"
            f"{self.config.default_branch}/{self.config.issue_template_path}"
        )
        try:
            response = await self._client.get(url)
            response.raise_for_status()
            return response.text
        except httpx.ConnectError as e:
            raise GitHubConnectionError(f"Cannot connect to {self.config.raw_content_url}") from e
        except httpx.HTTPStatusError as e:
            raise GitHubError(
                f"Failed to fetch issue template: {e.response.status_code}"
            ) from e

    async def get_repository_info(self) -> RepositoryInfo:
        """Fetch repository metadata.

        Raises:
            GitHubError: If the repository cannot be fetched.
        """
        try:
            response = await self._client.get(f"/repos/{self.owner}/{self.repo}")
            response.raise_for_status()
            data = response.json()
        except httpx.ConnectError as e:
            raise GitHubConnectionError(f"Cannot connect to {self.config.api_url}") from e
        except httpx.HTTPStatusError as e:
            raise GitHubError(
                f"GitHub API error: {e.response.status_code} {e.response.reason_phrase}"
            ) from e

        return RepositoryInfo(
            owner=self.owner,
            repo=self.repo,
            url=self.config.repo_url,
            description=data.get("description"),
            is_private=bool(data.get("private", False)),
            stars=data.get("stargazers_count", 0),
            language=data.get("language"),
        )

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()


class GitHubError(Exception):
    """Error from the GitHub client."""
    pass


class GitHubConnectionError(GitHubError):
    """Error connecting to GitHub."""
    pass
