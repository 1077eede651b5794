"""
Tests for environment-based configuration.
"""

import pytest

from gatekeeper.config import (
    ConfigError,
    GatekeeperConfig,
    GitHubConfig,
    ServerConfig,
    parse_github_repo_url,
)


class TestParseGitHubRepoUrl:
    """Tests for parse_github_repo_url."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://github.com/acme/widgets",
            "https://github.com/acme/widgets/",
            "https://github.com/acme/widgets.git",
        ],
    )
    def test_valid(self, url):
        assert parse_github_repo_url(url) == ("acme", "widgets")

    @pytest.mark.parametrize(
        "url",
        ["https://gitlab.com/acme/widgets", "https://github.com/acme", "not a url"],
    )
    def test_invalid(self, url):
        with pytest.raises(ConfigError):
            parse_github_repo_url(url)


class TestGitHubConfig:
    """Tests for GitHubConfig.from_env."""

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "tok")
        monkeypatch.setenv("GITHUB_REPO_URL", "https://github.com/acme/widgets")
        monkeypatch.setenv("GITHUB_VERIFICATION_TIMEOUT", "2.5")

        config = GitHubConfig.from_env()

        assert config.token == "tok"
        assert (config.owner, config.repo) == ("acme", "widgets")
        assert config.verification_timeout == 2.5
        assert config.api_url == "https://api.github.com"

    def test_missing_token(self, monkeypatch):
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        monkeypatch.setenv("GITHUB_REPO_URL", "https://github.com/acme/widgets")

        with pytest.raises(ConfigError, match="GITHUB_TOKEN"):
            GitHubConfig.from_env()

    def test_missing_repo_url(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "tok")
        monkeypatch.delenv("GITHUB_REPO_URL", raising=False)

        with pytest.raises(ConfigError, match="GITHUB_REPO_URL"):
            GitHubConfig.from_env()

    def test_invalid_repo_url_fails_at_construction(self):
        with pytest.raises(ConfigError):
            GitHubConfig(token="tok", repo_url="https://example.com/nope")


class TestServerConfig:
    """Tests for ServerConfig.from_env."""

    def test_defaults(self, monkeypatch):
        for name in ("GATEKEEPER_HOST", "GATEKEEPER_PORT", "GATEKEEPER_CORS_ORIGINS"):
            monkeypatch.delenv(name, raising=False)

        config = ServerConfig.from_env()

        assert config.port == 8000
        assert "http://localhost:3000" in config.cors_origins

    def test_cors_origins_list(self, monkeypatch):
        monkeypatch.setenv("GATEKEEPER_CORS_ORIGINS", "https://a.example, https://b.example,")

        assert ServerConfig.from_env().cors_origins == ["https://a.example", "https://b.example"]

    def test_combined(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "tok")
        monkeypatch.setenv("GITHUB_REPO_URL", "https://github.com/acme/widgets")
        monkeypatch.setenv("GATEKEEPER_PORT", "9000")

        config = GatekeeperConfig.from_env()

        assert config.github.repo == "widgets"
        assert config.server.port == 9000
