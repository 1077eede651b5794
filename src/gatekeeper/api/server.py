"""
FastAPI server for the gatekeeper UI.

This server provides:
- REST endpoints for the issue list and repository summary panels
- The confirmation gate evaluated over a posted transcript
- Classification of tool result text into confirmation banners
"""

import logging
from collections.abc import AsyncIterator
from datetime import datetime, timezone
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gatekeeper.completion import confirmation_banner, parse_completion_message
from gatekeeper.config import ServerConfig
from gatekeeper.gate import TranscriptError, find_pending_confirmation, validate_transcript
from gatekeeper.github import GitHubClient, GitHubError
from gatekeeper.preview import EditOverlay
from gatekeeper.types import Message

logger = logging.getLogger(__name__)

server_config = ServerConfig.from_env()

app = FastAPI(title="Gatekeeper API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=server_config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


async def get_github_client() -> AsyncIterator[GitHubClient]:
    """Provide a GitHub client configured from the environment."""
    client = GitHubClient()
    try:
        yield client
    finally:
        await client.aclose()


def parse_transcript(raw_messages: Any) -> list[Message]:
    """Parse and validate a posted transcript, mapping bad input to 422."""
    if not isinstance(raw_messages, list):
        raise HTTPException(status_code=422, detail="'messages' must be a list")
    try:
        messages = [Message.from_dict(item) for item in raw_messages]
        validate_transcript(messages)
    except TranscriptError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except (KeyError, ValueError, TypeError, AttributeError) as e:
        raise HTTPException(status_code=422, detail=f"Malformed message: {e}") from e
    return messages


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.get("/api/github-issues")
async def list_open_issues(client: GitHubClient = Depends(get_github_client)) -> dict[str, Any]:
    """List open issues in the managed repository."""
    result = await client.search_issues("state:open")
    return result.to_dict()


@app.get("/api/repository-info", response_model=None)
async def repository_info(
    client: GitHubClient = Depends(get_github_client),
) -> dict[str, Any] | JSONResponse:
    """Summarize the managed repository."""
    try:
        info = await client.get_repository_info()
    except GitHubError as e:
        logger.error(f"Repository info fetch error: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)})
    return info.to_dict()


@app.post("/api/pending-confirmation")
async def pending_confirmation(payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
    """
    Evaluate the confirmation gate over a transcript.

    The optional "overlay" holds the human's in-progress edits and is
    applied to the preview.
    """
    messages = parse_transcript(payload.get("messages"))
    result = find_pending_confirmation(messages)
    overlay = EditOverlay.from_dict(payload.get("overlay"))
    if result.preview is not None and not overlay.is_empty:
        data = result.to_dict()
        data["preview"] = overlay.apply(result.preview).to_dict()
        return data
    return result.to_dict()


@app.post("/api/completion")
async def classify_completion(payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
    """Classify a tool result message and return its banner, if any."""
    text = payload.get("text")
    if not isinstance(text, str):
        raise HTTPException(status_code=422, detail="'text' must be a string")
    parsed = parse_completion_message(text)
    banner = confirmation_banner(parsed)
    return {
        "result": parsed.to_dict(),
        "banner": banner.to_dict() if banner else None,
    }


def run_server(host: str | None = None, port: int | None = None) -> None:
    """Run the API server."""
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host=host or server_config.host, port=port or server_config.port)


if __name__ == "__main__":
    run_server()
