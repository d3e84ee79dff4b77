"""
Result cache with per-content-type lifetimes.

Entries are stored as JSON strings ``{"result": ..., "cachedAt": iso-8601}``
under ``<prefix><normalized url>`` in any CacheBackend. Backend failures are
logged and degrade to a miss or a no-op; nothing here raises to the caller.
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from .config import CacheConfig, get_config
from .exceptions import CacheError
from .detection import normalize_url
from .interfaces import CacheBackend
from .models import ContentType, ExtractorResult

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

SOCIAL_TYPES = frozenset([
    ContentType.X,
    ContentType.INSTAGRAM,
    ContentType.TIKTOK,
    ContentType.REDDIT,
    ContentType.LINKEDIN,
    ContentType.FACEBOOK,
])
VIDEO_TYPES = frozenset([ContentType.YOUTUBE])
LONG_FORM_TYPES = frozenset([
    ContentType.ARTICLE,
    ContentType.PRODUCT,
    ContentType.AMAZON,
    ContentType.ETSY,
])


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MemoryCacheBackend:
    """Process-local CacheBackend backed by a dict."""

    def __init__(self):
        self._store: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._store.get(key)

    def set(self, key: str, value: str) -> None:
        self._store[key] = value

    def remove(self, key: str) -> None:
        self._store.pop(key, None)

    def list_keys(self, prefix: str) -> List[str]:
        return [key for key in self._store if key.startswith(prefix)]

    def __len__(self) -> int:
        return len(self._store)


class MetadataCache:
    """
    Type-aware cache of extraction results.

    Args:
        backend: Key/value store holding serialised entries
        clock: Returns the current aware datetime; injectable for tests
        cache_config: Lifetimes and key prefix (defaults to the global config)
    """

    def __init__(
        self,
        backend: Optional[CacheBackend] = None,
        clock: Optional[Clock] = None,
        cache_config: Optional[CacheConfig] = None,
    ):
        self.backend = backend if backend is not None else MemoryCacheBackend()
        self.clock = clock or utc_now
        self.settings = cache_config or get_config().cache

    @property
    def enabled(self) -> bool:
        return self.settings.enabled

    @property
    def prefix(self) -> str:
        return self.settings.key_prefix

    def key_for(self, url: str) -> str:
        return f"{self.prefix}{normalize_url(url)}"

    def max_age(self, content_type: ContentType) -> timedelta:
        """Lifetime of an entry for the given content type."""
        if content_type in SOCIAL_TYPES:
            seconds = self.settings.social_ttl_seconds
        elif content_type in VIDEO_TYPES:
            seconds = self.settings.video_ttl_seconds
        elif content_type in LONG_FORM_TYPES:
            seconds = self.settings.long_form_ttl_seconds
        else:
            seconds = self.settings.default_ttl_seconds
        return timedelta(seconds=seconds)

    def get(self, url: str) -> Optional[ExtractorResult]:
        """Return the cached result for a URL, or None when absent or expired."""
        if not self.enabled:
            return None

        raw = self._backend_call("get", self.backend.get, self.key_for(url))
        if raw is None:
            return None

        entry = self._decode(raw)
        if entry is None:
            return None

        result, cached_at = entry
        if self._is_expired(result, cached_at):
            logger.debug("Cache entry for %s expired", url)
            return None
        return result

    def set(self, url: str, result: ExtractorResult) -> None:
        if not self.enabled:
            return
        payload = json.dumps({
            "result": result.to_dict(),
            "cachedAt": self.clock().isoformat(),
        })
        self._backend_call("set", self.backend.set, self.key_for(url), payload)

    def clear(self, url: Optional[str] = None) -> None:
        """Remove one URL's entry, or every entry under the prefix."""
        if url is not None:
            self._backend_call("remove", self.backend.remove, self.key_for(url))
            return
        for key in self._keys():
            self._backend_call("remove", self.backend.remove, key)

    def stats(self) -> Dict[str, int]:
        """
        Summarise the cache.

        Returns:
            ``total`` entries, how many are ``expired`` (unreadable entries
            count as expired) and the ``size`` of all stored values in
            characters.
        """
        total = expired = size = 0
        for key in self._keys():
            raw = self._backend_call("get", self.backend.get, key)
            if raw is None:
                continue
            total += 1
            size += len(raw)
            entry = self._decode(raw)
            if entry is None or self._is_expired(*entry):
                expired += 1
        return {"total": total, "expired": expired, "size": size}

    def clean_expired(self) -> int:
        """Delete expired and unreadable entries; returns how many were removed."""
        removed = 0
        for key in self._keys():
            raw = self._backend_call("get", self.backend.get, key)
            if raw is None:
                continue
            entry = self._decode(raw)
            if entry is None or self._is_expired(*entry):
                self._backend_call("remove", self.backend.remove, key)
                removed += 1
        if removed:
            logger.info("Removed %d expired cache entries", removed)
        return removed

    def _keys(self) -> List[str]:
        return self._backend_call("list_keys", self.backend.list_keys, self.prefix) or []

    def _is_expired(self, result: ExtractorResult, cached_at: datetime) -> bool:
        age = self.clock() - cached_at
        return age > self.max_age(result.metadata.content_type)

    def _decode(self, raw: str):
        try:
            data = json.loads(raw)
            result = ExtractorResult.model_validate(data["result"])
            cached_at = datetime.fromisoformat(data["cachedAt"])
        except (ValueError, KeyError, TypeError, PydanticValidationError) as e:
            logger.warning("Discarding unreadable cache entry: %s", e)
            return None
        if cached_at.tzinfo is None:
            cached_at = cached_at.replace(tzinfo=timezone.utc)
        return result, cached_at

    def _backend_call(self, operation: str, func, *args):
        """Run a backend operation; failures are logged as CacheError and yield None."""
        try:
            return func(*args)
        except Exception as e:
            error = e if isinstance(e, CacheError) else CacheError(operation, str(e))
            logger.warning("%s", error.message)
            return None
