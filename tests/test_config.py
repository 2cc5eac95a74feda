import pytest

from runcost.cli import parse_args
from runcost.config import Config
from runcost.provider.github import GITHUB_API_URL


class TestConfigFromEnv:
    def test_defaults(self, monkeypatch: "object") -> "None":
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        monkeypatch.delenv("GITHUB_API_URL", raising=False)
        monkeypatch.delenv("RUNCOST_REPOSITORIES", raising=False)
        config = Config.from_env()
        assert config.github_token == ""
        assert config.github_api_url == GITHUB_API_URL
        assert config.repositories == []
        assert config.days == 7

    def test_reads_env_vars(self, monkeypatch: "object") -> "None":
        monkeypatch.setenv("GITHUB_TOKEN", "ghp-test-123")
        monkeypatch.setenv("GITHUB_API_URL", "https://github.example.com/api/v3")
        monkeypatch.setenv("RUNCOST_REPOSITORIES", "octo/one, octo/two,,")
        config = Config.from_env()
        assert config.github_token == "ghp-test-123"
        assert config.github_api_url == "https://github.example.com/api/v3"
        assert config.repositories == ["octo/one", "octo/two"]


class TestAuthenticated:
    def test_authenticated_when_token_set(self) -> "None":
        config = Config(github_token="ghp-test")
        assert config.authenticated is True

    def test_anonymous_when_token_empty(self) -> "None":
        config = Config(github_token="")
        assert config.authenticated is False


class TestParseArgs:
    def test_defaults(self, monkeypatch: "object") -> "None":
        monkeypatch.delenv("RUNCOST_REPOSITORIES", raising=False)
        config = parse_args(["octo/repo"])
        assert config.repositories == ["octo/repo"]
        assert config.days == 7
        assert config.concurrency == 10
        assert config.show_runs is False
        assert config.output == "text"
        assert config.serve is False
        assert config.listen_address == ":9186"
        assert config.log_level == "info"
        assert config.log_format == "console"

    def test_flags(self) -> "None":
        config = parse_args(
            [
                "octo/one",
                "octo/two",
                "--days",
                "30",
                "--serve",
                "--web.listen-address",
                "127.0.0.1:9000",
                "--scrape.interval",
                "600",
                "--log.level",
                "debug",
                "--log.format",
                "json",
            ]
        )
        assert config.repositories == ["octo/one", "octo/two"]
        assert config.days == 30
        assert config.serve is True
        assert config.listen_address == "127.0.0.1:9000"
        assert config.scrape_interval == 600
        # cached results never outlive the recalculation interval
        assert config.cache_ttl == 600
        assert config.log_level == "debug"
        assert config.log_format == "json"

    def test_repositories_fall_back_to_env(self, monkeypatch: "object") -> "None":
        monkeypatch.setenv("RUNCOST_REPOSITORIES", "octo/env")
        assert parse_args([]).repositories == ["octo/env"]

    @pytest.mark.parametrize("days", ["0", "-3", "week"])
    def test_rejects_invalid_days(self, days: "str") -> "None":
        with pytest.raises(SystemExit):
            parse_args(["octo/repo", "--days", days])

    def test_report_flags(self) -> "None":
        config = parse_args(["octo/repo", "--runs", "--output", "json"])
        assert config.show_runs is True
        assert config.output == "json"

    def test_rejects_unknown_output(self) -> "None":
        with pytest.raises(SystemExit):
            parse_args(["octo/repo", "--output", "yaml"])
