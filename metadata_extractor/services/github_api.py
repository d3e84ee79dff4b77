"""
GitHub REST API client implementing RepositoryApiClient.
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from ..config import get_config
from ..exceptions import APIError, RateLimitExceededError, wrap_http_error
from ..models import RepositoryInfo
from ..utils.http_client import RateLimitedHTTPClient, get_http_client
from .rate_limit import RateLimitTracker

logger = logging.getLogger(__name__)

REPOS_ENDPOINT = "https://api.github.com/repos"
API_VERSION = "2022-11-28"


class GitHubApiClient:
    """
    Looks up public repositories through the GitHub API.

    Public repositories need no token; one only raises the hourly quota.

    Args:
        token: Personal access token (defaults to GITHUB_TOKEN)
        tracker: Rate-limit tracker reading the ``x-ratelimit-*`` headers
        http_client: Client to send requests with (defaults to the pooled client)
    """

    def __init__(
        self,
        token: Optional[str] = None,
        tracker: Optional[RateLimitTracker] = None,
        http_client: Optional[RateLimitedHTTPClient] = None,
    ):
        self.token = token if token is not None else get_config().get_api_key('github')
        self.tracker = tracker or RateLimitTracker(header_prefix="x-ratelimit")
        self.http_client = http_client

    def is_available(self) -> bool:
        return not self.tracker.should_skip_request()

    async def fetch_repository(self, owner: str, name: str) -> Optional[RepositoryInfo]:
        """
        Fetch one repository.

        Returns:
            RepositoryInfo, or None when rate limited or the repository does
            not exist (or is private)

        Raises:
            RateLimitExceededError: The hourly quota is spent
            APIError: Any other non-2xx answer or a malformed payload
            NetworkError: The API could not be reached
        """
        if not self.is_available():
            return None

        url = f"{REPOS_ENDPOINT}/{quote(owner, safe='')}/{quote(name, safe='')}"
        client = self.http_client or await get_http_client()
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = await client.get(url, headers=headers, raise_for_status=False)
        except httpx.HTTPError as e:
            raise wrap_http_error(e, url, "GitHub API request", platform="github")

        self.tracker.update_from_headers(response.headers)

        if response.status_code == 404:
            logger.info("GitHub has no public repository %s/%s", owner, name)
            return None

        # GitHub answers 403 (or 429) with a zero remaining count when the quota is spent
        if response.status_code == 429 or (response.status_code == 403 and self.tracker.limited):
            reset_at = self.tracker.reset_at
            self.tracker.mark_rate_limited(reset_at)
            retry_after = None
            if reset_at is not None:
                retry_after = max(0, int((reset_at - self.tracker.clock()).total_seconds()))
            raise RateLimitExceededError(url, "github", retry_after)

        if not response.is_success:
            raise APIError(url, "github", {"message": response.reason_phrase}, response.status_code)

        try:
            payload = response.json()
        except ValueError:
            raise APIError(url, "github", {"message": "Response was not JSON"}, response.status_code)

        info = parse_repository_payload(payload)
        if info is None:
            raise APIError(url, "github", {"message": "Unexpected repository payload"}, response.status_code)
        return info


def parse_repository_payload(payload: Dict[str, Any]) -> Optional[RepositoryInfo]:
    """Flatten a ``/repos/{owner}/{repo}`` response into a RepositoryInfo."""
    if not isinstance(payload, dict):
        return None
    owner = payload.get("owner") or {}
    if not isinstance(owner, dict) or not owner.get("login") or not payload.get("name"):
        return None

    license_info = payload.get("license") or {}
    topics = payload.get("topics") or []

    return RepositoryInfo(
        owner=owner["login"],
        name=payload["name"],
        full_name=payload.get("full_name"),
        description=payload.get("description"),
        html_url=payload.get("html_url"),
        homepage=payload.get("homepage"),
        owner_avatar=owner.get("avatar_url"),
        stars=payload.get("stargazers_count"),
        forks=payload.get("forks_count"),
        open_issues=payload.get("open_issues_count"),
        language=payload.get("language"),
        license=license_info.get("spdx_id") if isinstance(license_info, dict) else None,
        default_branch=payload.get("default_branch"),
        topics=[topic for topic in topics if isinstance(topic, str)],
        created_at=payload.get("created_at"),
        pushed_at=payload.get("pushed_at"),
    )

