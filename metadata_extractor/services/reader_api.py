"""
Jina Reader client implementing ReaderApiClient.
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote, urlparse

import httpx

from ..config import get_config
from ..exceptions import APIError, RateLimitExceededError, wrap_http_error
from ..models import ReaderContent
from ..utils.http_client import RateLimitedHTTPClient, get_http_client

logger = logging.getLogger(__name__)

READER_ENDPOINT = "https://r.jina.ai/"


class JinaReaderClient:
    """
    Extracts readable page content through the Jina Reader API.

    Args:
        api_key: Reader API key (defaults to JINA_AI_API_KEY)
        http_client: Client to send requests with (defaults to the pooled client)
    """

    def __init__(self, api_key: Optional[str] = None,
                 http_client: Optional[RateLimitedHTTPClient] = None):
        self.api_key = api_key if api_key is not None else get_config().get_api_key('reader')
        self.http_client = http_client

    def is_available(self) -> bool:
        return bool(self.api_key)

    async def extract_content(self, url: str) -> Optional[ReaderContent]:
        """
        Read a page through the API.

        Returns:
            ReaderContent, or None when unconfigured or the page type is
            unsupported (HTTP 422)

        Raises:
            APIError: Any other non-2xx answer or a malformed payload
            NetworkError: The API could not be reached
        """
        if not self.is_available():
            return None

        client = self.http_client or await get_http_client()
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
            "X-With-Images-Summary": "true",
        }

        try:
            response = await client.get(f"{READER_ENDPOINT}{quote(url, safe='')}",
                                        headers=headers, raise_for_status=False)
        except httpx.HTTPError as e:
            raise wrap_http_error(e, url, "reader API request", platform="reader")

        if response.status_code == 422:
            logger.info("Reader API does not support %s", url)
            return None

        if response.status_code == 429:
            raise RateLimitExceededError(url, "reader")

        if not response.is_success:
            raise APIError(url, "reader", {"message": response.reason_phrase}, response.status_code)

        try:
            payload = response.json()
        except ValueError:
            raise APIError(url, "reader", {"message": "Response was not JSON"}, response.status_code)

        return parse_reader_payload(payload, url)


def parse_reader_payload(payload: Dict[str, Any], url: str) -> Optional[ReaderContent]:
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, dict):
        return None

    images = data.get("images")
    thumbnail = None
    if isinstance(images, list) and images:
        thumbnail = images[0]
    elif isinstance(images, dict) and images:
        # images summary is a {caption: url} mapping
        thumbnail = next(iter(images.values()))

    return ReaderContent(
        title=data.get("title"),
        description=data.get("description"),
        content=data.get("content"),
        thumbnail_url=thumbnail,
        author=data.get("author"),
        domain=urlparse(data.get("url") or url).hostname,
        published_at=data.get("publishedTime"),
        site_name=data.get("siteName"),
        language=data.get("lang"),
    )
