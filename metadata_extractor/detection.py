"""
URL classification, platform-id extraction and URL normalisation.

Everything in this module is pure and total: no function raises for any
input string.
"""

import logging
from typing import Callable, Dict, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from .models import ContentType, ContentTypeInfo, DetectionResult
from .patterns import (
    AMAZON_ASIN,
    AUDIO_ITEM,
    CONTENT_PATTERNS,
    CONTENT_TYPE_INFO,
    DOMAIN_HEURISTICS,
    FILE_EXTENSION_PATTERNS,
    INSTAGRAM_SHORTCODE,
    REDDIT_POST_ID,
    TIKTOK_VIDEO_ID,
    TRACKING_PARAMS,
    TWITTER_HOST,
    X_STATUS_ID,
    YOUTUBE_CHANNEL,
    YOUTUBE_HANDLE,
    YOUTUBE_VIDEO_ID,
)

logger = logging.getLogger(__name__)

# Confidence tiers, highest first.
PLATFORM_MATCH_CONFIDENCE = 1.0
FILE_EXTENSION_CONFIDENCE = 0.9
DOMAIN_HEURISTIC_CONFIDENCE = 0.8
GENERIC_WEB_CONFIDENCE = 0.5
UNRECOGNIZED_SCHEME_CONFIDENCE = 0.3
MALFORMED_CONFIDENCE = 0.1

WEB_SCHEMES = ('http', 'https')


def describe(content_type: ContentType) -> ContentTypeInfo:
    """Static descriptor for a content type."""
    return CONTENT_TYPE_INFO[ContentType(content_type)]


def _result(content_type: ContentType, confidence: float) -> DetectionResult:
    return DetectionResult(
        type=content_type,
        confidence=confidence,
        descriptor=CONTENT_TYPE_INFO[content_type],
    )


def classify(url: str) -> DetectionResult:
    """
    Classify a URL into a content type.

    Tries, in order: the platform pattern table, the path extension table,
    domain heuristics, then generic fallbacks. The first match wins.

    Args:
        url: Any string; malformed input classifies as UNKNOWN

    Returns:
        DetectionResult with the type, a confidence and its descriptor
    """
    if not isinstance(url, str):
        return _result(ContentType.UNKNOWN, MALFORMED_CONFIDENCE)

    candidate = url.strip()
    lowered = candidate.lower()

    for content_type, patterns in CONTENT_PATTERNS:
        if any(pattern.search(lowered) for pattern in patterns):
            return _result(content_type, PLATFORM_MATCH_CONFIDENCE)

    try:
        parsed = urlsplit(candidate)
        scheme = parsed.scheme.lower()
        hostname = parsed.hostname or ''
    except ValueError:
        logger.debug("Unparseable URL: %r", url)
        return _result(ContentType.UNKNOWN, MALFORMED_CONFIDENCE)

    if not scheme or (scheme in WEB_SCHEMES and not hostname):
        return _result(ContentType.UNKNOWN, MALFORMED_CONFIDENCE)

    path = parsed.path.lower()
    for content_type, pattern in FILE_EXTENSION_PATTERNS:
        if pattern.search(path):
            return _result(content_type, FILE_EXTENSION_CONFIDENCE)

    for host_marker, path_marker, content_type in DOMAIN_HEURISTICS:
        if host_marker in hostname and (path_marker is None or path_marker in path):
            return _result(content_type, DOMAIN_HEURISTIC_CONFIDENCE)

    if scheme in WEB_SCHEMES:
        return _result(ContentType.BOOKMARK, GENERIC_WEB_CONFIDENCE)

    return _result(ContentType.UNKNOWN, UNRECOGNIZED_SCHEME_CONFIDENCE)


def _group(pattern, url: str, index: int = 1) -> Optional[str]:
    match = pattern.search(url)
    return match.group(index) if match else None


def _youtube_id(url: str) -> Optional[str]:
    return (
        _group(YOUTUBE_VIDEO_ID, url)
        or _group(YOUTUBE_HANDLE, url)
        or _group(YOUTUBE_CHANNEL, url)
    )


def _github_id(url: str) -> Optional[str]:
    parts = [part for part in urlsplit(url).path.split('/') if part]
    if len(parts) >= 2:
        return f"{parts[0]}/{parts[1]}"
    return None


def _audio_id(url: str) -> Optional[str]:
    match = AUDIO_ITEM.search(url)
    return f"{match.group(1)}/{match.group(2)}" if match else None


_PLATFORM_ID_EXTRACTORS: Dict[ContentType, Callable[[str], Optional[str]]] = {
    ContentType.X: lambda url: _group(X_STATUS_ID, url),
    ContentType.YOUTUBE: _youtube_id,
    ContentType.INSTAGRAM: lambda url: _group(INSTAGRAM_SHORTCODE, url, 2),
    ContentType.TIKTOK: lambda url: _group(TIKTOK_VIDEO_ID, url),
    ContentType.REDDIT: lambda url: _group(REDDIT_POST_ID, url),
    ContentType.GITHUB: _github_id,
    ContentType.AMAZON: lambda url: _group(AMAZON_ASIN, url),
    ContentType.AUDIO: _audio_id,
}


def extract_platform_id(url: str, content_type: ContentType) -> Optional[str]:
    """
    Pull the platform-native identifier out of a URL.

    Returns None when the type has no identifier scheme or nothing matches.
    """
    try:
        extractor = _PLATFORM_ID_EXTRACTORS.get(ContentType(content_type))
    except ValueError:
        return None
    if extractor is None or not isinstance(url, str):
        return None
    try:
        return extractor(url)
    except ValueError:
        return None


def normalize_url(url: str) -> str:
    """
    Canonicalise a URL for cache keys and comparison.

    Rewrites twitter.com to x.com, drops tracking query parameters and
    trailing path slashes. Idempotent. Input that is not an absolute URL is
    returned unchanged.
    """
    if not isinstance(url, str):
        return url

    try:
        candidate = TWITTER_HOST.sub('https://x.com', url.strip(), count=1)
        parts = urlsplit(candidate)
        if not parts.scheme or not parts.netloc:
            return url

        query = parts.query
        if query:
            pairs = parse_qsl(query, keep_blank_values=True)
            kept = [(key, value) for key, value in pairs if key.lower() not in TRACKING_PARAMS]
            if len(kept) != len(pairs):
                query = urlencode(kept)

        return urlunsplit((
            parts.scheme.lower(),
            parts.netloc.lower(),
            parts.path.rstrip('/'),
            query,
            parts.fragment,
        ))
    except ValueError:
        return url


def get_content_type_capabilities(content_type: ContentType) -> Dict[str, bool]:
    """Capability flags for a content type."""
    info = describe(content_type)
    return {
        'requires_auth': info.requires_auth,
        'has_transcript': info.has_transcript,
        'has_comments': info.has_comments,
    }


_LEGACY_TYPES = {
    'twitter': ContentType.X,
    'tweet': ContentType.X,
    'link': ContentType.BOOKMARK,
}


def map_legacy_type(name: str) -> ContentType:
    """Map a stored legacy type name onto a ContentType."""
    if not isinstance(name, str):
        return ContentType.UNKNOWN
    key = name.strip().lower()
    if key in _LEGACY_TYPES:
        return _LEGACY_TYPES[key]
    try:
        return ContentType(key)
    except ValueError:
        return ContentType.UNKNOWN
