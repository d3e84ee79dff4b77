"""
Capability interfaces the extraction pipeline depends on.

Concrete implementations live in ``services`` (API clients), ``cache``
(in-memory backend) and ``utils.http_client`` (page fetching); tests and
embedding applications may supply their own.
"""

from typing import Any, Awaitable, Callable, List, Optional, Protocol, runtime_checkable

from .models import RawApiPost, ReaderContent, RepositoryInfo

# fetch(url, headers=None, timeout=None) -> html; raises HTTPStatusError on non-2xx
HtmlFetch = Callable[..., Awaitable[str]]

# parse(html) -> queryable document (BeautifulSoup)
HtmlParse = Callable[[str], Any]


@runtime_checkable
class SocialPlatformApiClient(Protocol):
    """Authoritative data source for social posts."""

    def is_available(self) -> bool:
        """False when unconfigured or rate limited."""
        ...

    async def fetch_post(self, url: str) -> Optional[RawApiPost]:
        ...


@runtime_checkable
class ReaderApiClient(Protocol):
    """Content-extraction service for long-form pages."""

    def is_available(self) -> bool:
        ...

    async def extract_content(self, url: str) -> Optional[ReaderContent]:
        ...


@runtime_checkable
class RepositoryApiClient(Protocol):
    """Code-hosting API answering repository lookups."""

    def is_available(self) -> bool:
        ...

    async def fetch_repository(self, owner: str, name: str) -> Optional[RepositoryInfo]:
        ...


@runtime_checkable
class CacheBackend(Protocol):
    """Synchronous string key/value store."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...

    def list_keys(self, prefix: str) -> List[str]:
        ...
