"""
HTTP client utilities with connection pooling and rate limiting.
"""

import asyncio
import logging
from typing import Dict, Optional
from urllib.parse import urlparse

import httpx
from asyncio_throttle import Throttler
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential, retry_if_exception_type

from ..config import get_config
from ..exceptions import wrap_http_error

logger = logging.getLogger(__name__)

BROWSER_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"


class RateLimitedHTTPClient:
    """
    HTTP client with rate limiting and connection pooling.

    Features:
    - Connection pooling for efficient resource usage
    - Rate limiting per domain to respect API limits
    - Optional retry with exponential backoff (off unless max_retries > 0)
    - Configurable timeouts and limits
    """

    def __init__(
        self,
        max_connections: int = 100,
        max_keepalive_connections: int = 20,
        keepalive_expiry: float = 30.0,
        timeout: float = 10.0,
        rate_limits: Optional[Dict[str, float]] = None,
        default_rate_limit: float = 2.0,
        max_retries: int = 0,
        retry_backoff_factor: float = 1.0,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the rate-limited HTTP client.

        Args:
            max_connections: Maximum number of connections in the pool
            max_keepalive_connections: Maximum number of keep-alive connections
            keepalive_expiry: Time to keep connections alive (seconds)
            timeout: Default timeout for requests (seconds)
            rate_limits: Dict mapping domain to requests per second limit
            default_rate_limit: Requests per second for unlisted domains
            max_retries: Extra attempts after a timeout or connect error
            retry_backoff_factor: Multiplier for the exponential backoff
            headers: Headers sent with every request
            transport: Optional httpx transport (used by tests)
        """
        self.max_connections = max_connections
        self.max_keepalive_connections = max_keepalive_connections
        self.keepalive_expiry = keepalive_expiry
        self.timeout = timeout
        self.default_rate_limit = default_rate_limit
        self.max_retries = max_retries
        self.retry_backoff_factor = retry_backoff_factor
        self.headers = dict(headers or {})
        self.transport = transport

        self.rate_limits: Dict[str, float] = dict(rate_limits or {})
        self.throttlers: Dict[str, Throttler] = {}
        self._client: Optional[httpx.AsyncClient] = None
        self._lock = asyncio.Lock()

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client with connection pooling."""
        if self._client is None:
            async with self._lock:
                if self._client is None:
                    limits = httpx.Limits(
                        max_connections=self.max_connections,
                        max_keepalive_connections=self.max_keepalive_connections,
                        keepalive_expiry=self.keepalive_expiry
                    )

                    self._client = httpx.AsyncClient(
                        limits=limits,
                        timeout=httpx.Timeout(self.timeout),
                        headers=self.headers,
                        follow_redirects=True,
                        transport=self.transport,
                    )

        return self._client

    def _get_domain(self, url: str) -> str:
        """Extract domain from URL for rate limiting."""
        try:
            return urlparse(url).netloc.lower() or 'default'
        except ValueError:
            return 'default'

    async def _get_throttler(self, domain: str) -> Throttler:
        """Get or create a throttler for the domain."""
        if domain not in self.throttlers:
            rate_limit = self.rate_limits.get(domain, self.default_rate_limit)
            self.throttlers[domain] = Throttler(rate_limit=rate_limit)

        return self.throttlers[domain]

    async def request(
        self,
        method: str,
        url: str,
        raise_for_status: bool = True,
        **kwargs
    ) -> httpx.Response:
        """
        Make an HTTP request with rate limiting and optional retries.

        Args:
            method: HTTP method (GET, POST, etc.)
            url: Request URL
            raise_for_status: Raise httpx.HTTPStatusError on non-2xx answers
            **kwargs: Additional arguments for httpx request

        Returns:
            httpx.Response object

        Raises:
            httpx.HTTPStatusError: For HTTP error status codes
            httpx.TimeoutException: For request timeouts
            httpx.ConnectError: For connection errors
        """
        client = await self._get_client()
        throttler = await self._get_throttler(self._get_domain(url))

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=self.retry_backoff_factor, max=10),
            retry=retry_if_exception_type((httpx.TimeoutException, httpx.ConnectError)),
            reraise=True,
        )

        async for attempt in retrying:
            with attempt:
                async with throttler:
                    logger.debug("%s %s", method, url)
                    response = await client.request(method, url, **kwargs)
                if raise_for_status:
                    response.raise_for_status()

        return response

    async def get(self, url: str, **kwargs) -> httpx.Response:
        """Make a GET request."""
        return await self.request('GET', url, **kwargs)

    async def close(self):
        """Close the HTTP client and clean up resources."""
        if self._client:
            await self._client.aclose()
            self._client = None

        self.throttlers.clear()


class HTTPClientManager:
    """
    Singleton manager for HTTP clients to share connection pools across extractors.
    """

    _instance: Optional['HTTPClientManager'] = None

    def __init__(self):
        self._default_client: Optional[RateLimitedHTTPClient] = None

    @classmethod
    async def get_instance(cls) -> 'HTTPClientManager':
        """Get singleton instance of HTTPClientManager."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    async def reset(cls):
        """Close every client and drop the singleton."""
        if cls._instance is not None:
            await cls._instance.close_all()
            cls._instance = None

    async def get_default_client(self) -> RateLimitedHTTPClient:
        """Get the default HTTP client."""
        if self._default_client is None:
            config = get_config()

            self._default_client = RateLimitedHTTPClient(
                max_connections=config.http.max_connections,
                max_keepalive_connections=config.http.max_keepalive_connections,
                keepalive_expiry=config.http.keepalive_expiry,
                timeout=config.http.timeout,
                rate_limits=config.rate_limits.to_dict(),
                default_rate_limit=config.rate_limits.default,
                max_retries=config.http.max_retries,
                retry_backoff_factor=config.http.retry_backoff_factor,
            )

        return self._default_client

    async def close_all(self):
        """Close the shared HTTP client."""
        if self._default_client:
            await self._default_client.close()
            self._default_client = None


async def get_http_client() -> RateLimitedHTTPClient:
    """
    Get the shared rate-limited HTTP client, configured from the global config.

    Returns:
        RateLimitedHTTPClient instance
    """
    manager = await HTTPClientManager.get_instance()
    return await manager.get_default_client()


def browser_headers(extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """Headers that make a page fetch look like a desktop browser."""
    headers = {
        'User-Agent': get_config().http.user_agent,
        'Accept': BROWSER_ACCEPT,
        'Accept-Language': 'en-US,en;q=0.9',
    }
    if extra:
        headers.update(extra)
    return headers


async def fetch_html(
    url: str,
    headers: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
) -> str:
    """
    Fetch a page and return its body text.

    Args:
        url: Page URL
        headers: Extra request headers, merged over browser defaults
        timeout: Seconds before giving up (defaults to the configured timeout)

    Returns:
        The response body

    Raises:
        HTTPStatusError: On a non-2xx answer, carrying the status code
        RequestTimeoutError: When the timeout elapses
        NetworkError: On connection failures
    """
    effective_timeout = timeout or get_config().http.timeout
    client = await get_http_client()
    try:
        response = await client.get(url, headers=browser_headers(headers), timeout=effective_timeout)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise wrap_http_error(e, url, "page fetch", timeout=effective_timeout)
    return response.text
