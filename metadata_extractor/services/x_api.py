"""
X (Twitter) API v2 client implementing SocialPlatformApiClient.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from ..config import get_config
from ..exceptions import APIError, RateLimitExceededError, wrap_http_error
from ..models import RawApiPost
from ..patterns import X_STATUS_ID
from ..utils.http_client import RateLimitedHTTPClient, get_http_client
from .rate_limit import RateLimitTracker

logger = logging.getLogger(__name__)

TWEETS_ENDPOINT = "https://api.twitter.com/2/tweets"

TWEET_QUERY = {
    "expansions": "attachments.media_keys,author_id",
    "media.fields": "duration_ms,height,preview_image_url,type,url,width,variants",
    "tweet.fields": "created_at,public_metrics",
    "user.fields": "name,username,profile_image_url,verified",
}


class XApiClient:
    """
    Fetches single posts from the X API.

    Args:
        bearer_token: App bearer token (defaults to X_BEARER_TOKEN)
        tracker: Shared rate-limit tracker
        http_client: Client to send requests with (defaults to the pooled client)
    """

    def __init__(
        self,
        bearer_token: Optional[str] = None,
        tracker: Optional[RateLimitTracker] = None,
        http_client: Optional[RateLimitedHTTPClient] = None,
    ):
        self.bearer_token = bearer_token if bearer_token is not None else get_config().get_api_key('x')
        self.tracker = tracker or RateLimitTracker()
        self.http_client = http_client

    def is_available(self) -> bool:
        if not self.bearer_token:
            return False
        return not self.tracker.should_skip_request()

    async def fetch_post(self, url: str) -> Optional[RawApiPost]:
        """
        Fetch the post a status URL points to.

        Returns:
            RawApiPost, or None when unconfigured, rate limited, the URL has
            no status id, or the API has no such post

        Raises:
            RateLimitExceededError: The API answered 429
            APIError: Any other non-2xx answer
            NetworkError: The API could not be reached
        """
        if not self.is_available():
            return None

        match = X_STATUS_ID.search(url)
        if not match:
            logger.debug("No status id in %s", url)
            return None
        post_id = match.group(1)

        client = self.http_client or await get_http_client()
        params = {"ids": post_id, **TWEET_QUERY}
        headers = {"Authorization": f"Bearer {self.bearer_token}"}

        try:
            response = await client.get(TWEETS_ENDPOINT, params=params, headers=headers,
                                        raise_for_status=False)
        except httpx.HTTPError as e:
            raise wrap_http_error(e, url, "X API request", platform="x")

        self.tracker.update_from_headers(response.headers)

        if response.status_code == 429:
            reset = response.headers.get("x-rate-limit-reset")
            reset_at = datetime.fromtimestamp(int(reset), tz=timezone.utc) if reset and reset.isdigit() else None
            self.tracker.mark_rate_limited(reset_at)
            retry_after = None
            if reset_at is not None:
                retry_after = max(0, int((reset_at - self.tracker.clock()).total_seconds()))
            raise RateLimitExceededError(url, "x", retry_after)

        if not response.is_success:
            raise APIError(url, "x", {"message": response.reason_phrase}, response.status_code)

        try:
            payload = response.json()
        except ValueError:
            raise APIError(url, "x", {"message": "Response was not JSON"}, response.status_code)

        return parse_tweet_payload(payload)


def parse_tweet_payload(payload: Dict[str, Any]) -> Optional[RawApiPost]:
    """Flatten a ``/2/tweets`` response into a RawApiPost."""
    data = payload.get("data")
    if isinstance(data, list):
        data = data[0] if data else None
    if not isinstance(data, dict):
        return None

    includes = payload.get("includes") or {}
    users = includes.get("users") or []
    author = users[0] if users else {}
    media: List[Dict[str, Any]] = includes.get("media") or []
    metrics = data.get("public_metrics") or {}

    images = [m["url"] for m in media if m.get("type") == "photo" and m.get("url")]
    video = next((m for m in media if m.get("type") in ("video", "animated_gif")), None)

    thumbnail = None
    if media:
        first = media[0]
        thumbnail = first.get("url") if first.get("type") == "photo" else first.get("preview_image_url")

    return RawApiPost(
        post_id=str(data.get("id")),
        text=data.get("text"),
        username=author.get("username"),
        display_name=author.get("name"),
        profile_image=author.get("profile_image_url"),
        verified=author.get("verified"),
        published_at=data.get("created_at"),
        likes=metrics.get("like_count"),
        retweets=metrics.get("retweet_count"),
        replies=metrics.get("reply_count"),
        quotes=metrics.get("quote_count"),
        views=metrics.get("impression_count"),
        thumbnail_url=thumbnail,
        images=images,
        video_variants=(video or {}).get("variants") or [],
        duration_ms=(video or {}).get("duration_ms"),
    )
