"""
Configuration for the gatekeeper service.

All configuration is loaded from environment variables. The GitHub token
and repository URL are required; everything else has a working default.
"""

import os
import re
from dataclasses import dataclass, field

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_RAW_CONTENT_URL = "https://raw.githubusercontent.com"
DEFAULT_USER_AGENT = "Gatekeeper-Issue-Agent"
DEFAULT_ISSUE_TEMPLATE_PATH = ".github/ISSUE_TEMPLATE/general_task.md"
DEFAULT_VERIFICATION_TIMEOUT = 10.0

_REPO_URL_PATTERN = re.compile(r"github\.com/([^/]+)/([^/]+?)(?:\.git)?/?$")


class ConfigError(Exception):
    """Error from missing or invalid configuration."""
    pass


def parse_github_repo_url(url: str) -> tuple[str, str]:
    """
    Extract (owner, repo) from a GitHub repository URL.

    Raises:
        ConfigError: If the URL does not point at a repository.
    """
    match = _REPO_URL_PATTERN.search(url.strip())
    if not match:
        raise ConfigError(f"Invalid GitHub repository URL: {url}")
    return match.group(1), match.group(2)


@dataclass
class GitHubConfig:
    """Configuration for the GitHub client."""
    token: str
    repo_url: str
    api_url: str = DEFAULT_API_URL
    raw_content_url: str = DEFAULT_RAW_CONTENT_URL
    user_agent: str = DEFAULT_USER_AGENT
    default_branch: str = "main"
    issue_template_path: str = DEFAULT_ISSUE_TEMPLATE_PATH
    verification_timeout: float = DEFAULT_VERIFICATION_TIMEOUT
    owner: str = field(init=False, default="")
    repo: str = field(init=False, default="")

    def __post_init__(self) -> None:
        # Fail at construction rather than on the first request.
        self.owner, self.repo = parse_github_repo_url(self.repo_url)

    @classmethod
    def from_env(cls) -> "GitHubConfig":
        """Load configuration from environment variables."""
        token = os.getenv("GITHUB_TOKEN")
        repo_url = os.getenv("GITHUB_REPO_URL")

        if not token:
            raise ConfigError(
                "GITHUB_TOKEN is not set. Set it to a token with issues:write access.\n"
                "  Example: GITHUB_TOKEN=ghp_your-token-here"
            )

        if not repo_url:
            raise ConfigError(
                "GITHUB_REPO_URL is not set. Set it to the repository to manage.\n"
                "  Example: GITHUB_REPO_URL=https://github.com/owner/repo"
            )

        return cls(
            token=token,
            repo_url=repo_url,
            api_url=os.getenv("GITHUB_API_URL", DEFAULT_API_URL),
            user_agent=os.getenv("GITHUB_USER_AGENT", DEFAULT_USER_AGENT),
            default_branch=os.getenv("GITHUB_DEFAULT_BRANCH", "main"),
            issue_template_path=os.getenv(
                "GITHUB_ISSUE_TEMPLATE_PATH", DEFAULT_ISSUE_TEMPLATE_PATH
            ),
            verification_timeout=float(
                os.getenv("GITHUB_VERIFICATION_TIMEOUT", str(DEFAULT_VERIFICATION_TIMEOUT))
            ),
        )


@dataclass
class ServerConfig:
    """Configuration for the HTTP API server."""
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"]
    )

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Load configuration from environment variables."""
        origins = os.getenv("GATEKEEPER_CORS_ORIGINS")
        return cls(
            host=os.getenv("GATEKEEPER_HOST", "0.0.0.0"),
            port=int(os.getenv("GATEKEEPER_PORT", "8000")),
            cors_origins=(
                [origin.strip() for origin in origins.split(",") if origin.strip()]
                if origins
                else ["http://localhost:3000", "http://localhost:5173"]
            ),
        )


@dataclass
class GatekeeperConfig:
    """Combined configuration for the entire service."""
    github: GitHubConfig
    server: ServerConfig

    @classmethod
    def from_env(cls) -> "GatekeeperConfig":
        """Load all configuration from environment variables."""
        return cls(
            github=GitHubConfig.from_env(),
            server=ServerConfig.from_env(),
        )
