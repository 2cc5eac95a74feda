import os
from dataclasses import dataclass, field

from runcost.provider.github import GITHUB_API_URL


@dataclass
class Config:
    # repository slugs in "owner/repo" format
    repositories: "list[str]" = field(default_factory=list)
    # length of the sampling window in days
    days: "int" = 7
    # maximum number of runs fetched concurrently
    concurrency: "int" = 10
    # seconds a completed result is served from the store
    cache_ttl: "int" = 3600

    # one-shot report: list every run, and text or json output
    show_runs: "bool" = False
    output: "str" = "text"

    serve: "bool" = False
    # listen_address: format ":9186" or
    # "0.0.0.0:9186"
    listen_address: "str" = ":9186"
    # recalculation interval in seconds
    scrape_interval: "int" = 3600
    log_level: "str" = "info"
    log_format: "str" = "console"

    github_token: "str" = ""
    github_api_url: "str" = GITHUB_API_URL

    @classmethod
    def from_env(cls) -> "Config":
        repositories = os.environ.get("RUNCOST_REPOSITORIES", "")
        return cls(
            repositories=[r.strip() for r in repositories.split(",") if r.strip()],
            github_token=os.environ.get("GITHUB_TOKEN", ""),
            github_api_url=os.environ.get("GITHUB_API_URL", GITHUB_API_URL),
        )

    @property
    def authenticated(self) -> "bool":
        return bool(self.github_token)
