import re
from datetime import date, datetime, timezone
from typing import Any

import httpx
import structlog

from runcost.exceptions import (
    InvalidRepositoryError,
    RateLimitError,
    UsageNotAvailableError,
)
from runcost.models import (
    AuthoritativeUsage,
    JobRecord,
    OSClass,
    UsageEntry,
    WorkflowRun,
)

logger = structlog.get_logger()

GITHUB_API_URL = "https://api.github.com"

_PER_PAGE = 100
_REPOSITORY_PATTERN = re.compile(r"^([^/]+)/([^/]+)$")

# billable keys of the run timing endpoint
BILLABLE_KEYS: "dict[str, OSClass]" = {
    "UBUNTU": OSClass.LINUX,
    "WINDOWS": OSClass.WINDOWS,
    "MACOS": OSClass.MACOS,
}


def parse_repository(slug: "str") -> "tuple[str, str]":
    """
    splits an "owner/repo" slug into its owner and repository name.
    """
    match = _REPOSITORY_PATTERN.match(slug)
    if not match:
        raise InvalidRepositoryError(slug)
    return match.group(1), match.group(2)


def _parse_timestamp(value: "str | None") -> "datetime | None":
    """
    parses an ISO 8601 timestamp. Missing and malformed values
    both give None so that a single bad job is skipped instead of
    failing its whole run.
    """
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug("github_bad_timestamp", value=value)
        return None
    # timestamps without an offset are UTC
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_billable(billable: "Any") -> "AuthoritativeUsage":
    """
    turns the untyped billable payload into usage per OS class.
    Unknown keys and entries without a numeric total_ms are dropped.
    """
    usage: "dict[OSClass, UsageEntry]" = {}
    if not isinstance(billable, dict):
        return usage

    for key, os_class in BILLABLE_KEYS.items():
        entry = billable.get(key)
        if not isinstance(entry, dict):
            continue
        total_ms = entry.get("total_ms")
        if not isinstance(total_ms, (int, float)) or isinstance(total_ms, bool):
            continue
        usage[os_class] = UsageEntry(
            total_ms=int(total_ms),
            jobs=int(entry.get("jobs") or 0),
        )

    return usage


class GitHubProvider:
    """
    GitHubProvider implements the RunProvider protocol for the
    GitHub Actions REST API. It lists completed workflow runs,
    following Link header pagination, and fetches the billable
    timing and jobs of each run.
    """

    def __init__(self, token: "str" = "", base_url: "str" = GITHUB_API_URL) -> "None":
        headers: "dict[str, str]" = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        # anonymous access works for public repositories with lower rate limits
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._base_url = base_url.rstrip("/")
        self._client: "httpx.AsyncClient" = httpx.AsyncClient(
            timeout=10.0,
            headers=headers,
        )

    @property
    def name(self) -> "str":
        return "github"

    async def close(self) -> "None":
        """
        closes the underlying HTTP client.
        """
        await self._client.aclose()

    def _repo_url(self, slug: "str") -> "str":
        owner, repo = parse_repository(slug)
        return f"{self._base_url}/repos/{owner}/{repo}"

    async def _get(self, url: "str") -> "httpx.Response":
        logger.debug("github_request", url=url)
        resp = await self._client.get(url)

        if resp.status_code in (403, 429) and resp.headers.get("x-ratelimit-remaining") == "0":
            reset = resp.headers.get("x-ratelimit-reset")
            raise RateLimitError(int(reset) if reset and reset.isdigit() else None)

        return resp

    async def _paginate(self, url: "str", items_key: "str") -> "list[dict[str, Any]]":
        """
        collects items_key from every page, starting at url and
        following the rel="next" links until none is left.
        """
        items: "list[dict[str, Any]]" = []
        next_url: "str | None" = url

        while next_url:
            resp = await self._get(next_url)
            resp.raise_for_status()
            items.extend(resp.json().get(items_key, []))
            next_url = resp.links.get("next", {}).get("url")

        return items

    async def list_runs(self, slug: "str", since: "date") -> "list[WorkflowRun]":
        """
        lists the completed workflow runs created on or after since.
        """
        url = (
            f"{self._repo_url(slug)}/actions/runs"
            f"?status=completed&created=>={since.isoformat()}&per_page={_PER_PAGE}"
        )
        raw_runs = await self._paginate(url, "workflow_runs")

        runs = [
            WorkflowRun(
                id=raw["id"],
                name=raw.get("name") or "",
                run_number=raw.get("run_number", 0),
                conclusion=raw.get("conclusion") or "unknown",
                created_at=_parse_timestamp(raw.get("created_at"))
                or datetime.min.replace(tzinfo=timezone.utc),
            )
            for raw in raw_runs
        ]
        logger.debug("github_runs_listed", repository=slug, run_count=len(runs))
        return runs

    async def fetch_usage(self, slug: "str", run: "WorkflowRun") -> "AuthoritativeUsage":
        """
        fetches the billable time of a run. GitHub answers 404 for
        runs it does not bill, which is reported as
        UsageNotAvailableError.
        """
        resp = await self._get(f"{self._repo_url(slug)}/actions/runs/{run.id}/timing")

        if resp.status_code == 404:
            raise UsageNotAvailableError(run.id)
        resp.raise_for_status()

        return parse_billable(resp.json().get("billable"))

    async def fetch_jobs(self, slug: "str", run: "WorkflowRun") -> "list[JobRecord]":
        url = f"{self._repo_url(slug)}/actions/runs/{run.id}/jobs?per_page={_PER_PAGE}"
        raw_jobs = await self._paginate(url, "jobs")

        return [
            JobRecord(
                started_at=_parse_timestamp(raw.get("started_at")),
                completed_at=_parse_timestamp(raw.get("completed_at")),
                labels=tuple(raw.get("labels") or ()),
            )
            for raw in raw_jobs
        ]
