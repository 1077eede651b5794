"""
Shared fixtures: a scripted fake of the GitHub API behind httpx.MockTransport.
"""

import json
from typing import Any

import httpx
import pytest

from gatekeeper.config import GitHubConfig
from gatekeeper.github import GitHubClient

REPO_URL = "https://github.com/acme/widgets"


def issue_json(
    number: int = 42,
    title: str = "Fix login",
    state: str = "open",
    body: str | None = "Login button does nothing",
    labels: list[str] | None = None,
) -> dict[str, Any]:
    return {
        "id": 1000 + number,
        "number": number,
        "title": title,
        "body": body,
        "state": state,
        "labels": [{"id": i, "name": name, "color": "d73a4a"} for i, name in enumerate(labels or [])],
        "created_at": "2026-01-01T00:00:00Z",
        "updated_at": "2026-01-02T00:00:00Z",
        "html_url": f"{REPO_URL}/issues/{number}",
        "user": {"login": "octocat", "avatar_url": "https://example.com/octocat.png"},
    }


def comment_json(comment_id: int, body: str, number: int = 42) -> dict[str, Any]:
    return {
        "id": comment_id,
        "body": body,
        "html_url": f"{REPO_URL}/issues/{number}#issuecomment-{comment_id}",
    }


class FakeGitHub:
    """
    Scripted GitHub API.

    Responses are queued per (method, path). The last queued response for a
    route is reused once the queue is exhausted. A queued exception is
    raised as a transport error.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], list[Any]] = {}

    def on(self, method: str, path: str, *responses: Any) -> "FakeGitHub":
        self._routes.setdefault((method.upper(), path), []).extend(responses)
        return self

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method.upper() and r.url.path == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self._routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"message": "Not Found"})
        spec = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(spec, Exception):
            raise spec
        status, content = spec
        if isinstance(content, str):
            return httpx.Response(status, text=content)
        return httpx.Response(status, json=content)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def request_json(request: httpx.Request) -> Any:
    return json.loads(request.content)


@pytest.fixture
def github_config() -> GitHubConfig:
    return GitHubConfig(
        token="test-token",
        repo_url=REPO_URL,
        verification_timeout=1.0,
    )


@pytest.fixture
def fake_github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def github_client(github_config: GitHubConfig, fake_github: FakeGitHub) -> GitHubClient:
    return GitHubClient(config=github_config, transport=fake_github.transport())
