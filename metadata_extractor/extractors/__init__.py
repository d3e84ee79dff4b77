"""
Extractor registry: selects an extractor per URL and caches results.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from ..cache import Clock, MetadataCache, utc_now
from ..config import Config, get_config
from ..detection import classify
from ..exceptions import ExtractorInitializationError, MetadataExtractorError
from ..interfaces import (
    HtmlFetch,
    HtmlParse,
    ReaderApiClient,
    RepositoryApiClient,
    SocialPlatformApiClient,
)
from ..models import ContentType, ExtractorResult, Source
from ..services import GitHubApiClient, JinaReaderClient, XApiClient
from ..utils.http_client import fetch_html
from .article import ArticleExtractor
from .base import MINIMAL_CONFIDENCE, BaseExtractor, ExtractorOptions, build_metadata, parse_html, prune
from .github import RepositoryExtractor
from .instagram import ImageGridExtractor
from .product import ProductExtractor
from .social import SocialPostExtractor
from .tiktok import ShortVideoExtractor
from .youtube import VideoExtractor

logger = logging.getLogger(__name__)

UNKNOWN_TITLE = "Unknown Content"
BLANK_URL = "about:blank"

PRODUCT_OG_TYPES = ("product", "og:product")


def has_product_markup(document: Any) -> bool:
    """True when the page carries ``product:*`` tags or ``og:type=product``."""
    for tag in document.find_all("meta", attrs={"property": True}):
        prop = (tag.get("property") or "").strip().lower()
        if prop.startswith("product:"):
            return True
        if prop == "og:type" and (tag.get("content") or "").strip().lower() in PRODUCT_OG_TYPES:
            return True
    return False


class ExtractorRegistry:
    """
    Priority-ordered set of extractors with an explicit type map.

    Args:
        extractors: At least one extractor
        cache: Result cache (defaults to an in-memory MetadataCache)
        fetcher: HtmlFetch used when no specific extractor matches
        parser: HtmlParse used for OG product sniffing
        clock: Source of timestamps for minimal results

    Raises:
        ExtractorInitializationError: No extractors were given
    """

    def __init__(
        self,
        extractors: Iterable[BaseExtractor],
        cache: Optional[MetadataCache] = None,
        fetcher: Optional[HtmlFetch] = None,
        parser: Optional[HtmlParse] = None,
        clock: Optional[Clock] = None,
    ):
        extractors = list(extractors)
        if not extractors:
            raise ExtractorInitializationError("ExtractorRegistry", "at least one extractor is required")

        self.extractors: List[BaseExtractor] = []
        self.type_map: Dict[ContentType, BaseExtractor] = {}
        for extractor in extractors:
            self.register(extractor)

        self.clock = clock or utc_now
        self.cache = cache if cache is not None else MetadataCache(clock=self.clock)
        self.fetcher = fetcher or fetch_html
        self.parser = parser or parse_html

    def register(self, extractor: BaseExtractor) -> None:
        """Add an extractor, keeping the list sorted by descending priority."""
        self.extractors.append(extractor)
        # sorted() is stable, so equal priorities keep registration order
        self.extractors = sorted(self.extractors, key=lambda e: -e.get_priority())
        for content_type in extractor.handled_types():
            self.type_map.setdefault(content_type, extractor)
        logger.debug("Registered %s extractor (priority %d)", extractor.name, extractor.get_priority())

    def get_extractor_for_type(self, content_type: ContentType) -> Optional[BaseExtractor]:
        return self.type_map.get(content_type)

    def get_supported_types(self) -> List[ContentType]:
        return list(self.type_map)

    def find_extractor(self, url: str) -> Optional[BaseExtractor]:
        """Highest-priority extractor whose ``can_handle`` accepts the URL."""
        for extractor in self.extractors:
            if extractor.can_handle(url):
                return extractor
        return None

    @staticmethod
    def _is_fallback(extractor: BaseExtractor) -> bool:
        return extractor.get_priority() <= 0

    async def extract(self, url: str, options: Optional[Dict[str, Any]] = None) -> ExtractorResult:
        """
        Extract metadata for a URL.

        Never raises: failures degrade to the minimal result.

        Args:
            url: URL to extract
            options: Optional ``html`` (skips the fetch) and ``timeout``
        """
        options = options or {}
        if not isinstance(url, str) or not url.strip():
            return self.minimal_result(BLANK_URL)

        extractor_options = ExtractorOptions(
            url=url,
            html=options.get("html"),
            timeout=options.get("timeout"),
        )

        try:
            extractor = self.find_extractor(url)
            if extractor is not None and not self._is_fallback(extractor):
                logger.debug("Using %s extractor for %s", extractor.name, url)
                return await extractor.extract(extractor_options)
            return await self._extract_unmatched(extractor_options, extractor)
        except MetadataExtractorError as e:
            logger.warning("Extraction failed for %s: %s", url, e)
            return self.minimal_result(url)
        except Exception as e:
            logger.error("Unexpected error extracting %s: %s", url, e, exc_info=True)
            return self.minimal_result(url)

    async def _extract_unmatched(self, options: ExtractorOptions,
                                 fallback: Optional[BaseExtractor]) -> ExtractorResult:
        """Fetch the page once, sniff for product markup, then pick an extractor."""
        html = options.html
        if html is None:
            html = await self.fetcher(options.url, timeout=options.timeout)
        document = self.parser(html)
        page_options = options.with_page(html, document)

        product = self.type_map.get(ContentType.PRODUCT)
        if product is not None and has_product_markup(document):
            logger.debug("Product markup found on %s", options.url)
            return await product.extract(page_options)

        if fallback is not None:
            return await fallback.extract(page_options)

        return self.minimal_result(options.url)

    def minimal_result(self, url: str) -> ExtractorResult:
        """Classifier-only result with whatever the URL itself yields."""
        detection = classify(url)
        data: Dict[str, Any] = {}

        extractor = self.type_map.get(detection.type)
        if extractor is not None:
            data.update(prune(extractor.url_fields(url)) or {})

        data.update({
            "url": url,
            "title": UNKNOWN_TITLE,
            "content_type": detection.type,
            "extracted_at": self.clock(),
        })
        return ExtractorResult(
            metadata=build_metadata(data),
            confidence=MINIMAL_CONFIDENCE,
            source=Source.SCRAPING,
        )

    async def extract_with_cache(self, url: str,
                                 options: Optional[Dict[str, Any]] = None) -> ExtractorResult:
        """
        Cached ``extract``.

        A fresh cache hit is returned with ``source='hybrid'`` and no I/O.
        Minimal results are never written. ``use_cache=False`` in options
        bypasses the cache entirely.
        """
        options = options or {}
        use_cache = options.get("use_cache", True)

        if use_cache:
            cached = self.cache.get(url)
            if cached is not None:
                logger.debug("Cache hit for %s", url)
                return cached.with_source(Source.HYBRID)

        result = await self.extract(url, options)

        if use_cache and result.confidence > MINIMAL_CONFIDENCE:
            self.cache.set(url, result)
        return result

    def clear_cache(self, url: Optional[str] = None) -> None:
        self.cache.clear(url)

    def clean_expired_cache(self) -> int:
        return self.cache.clean_expired()

    def get_cache_stats(self) -> Dict[str, int]:
        return self.cache.stats()


def create_default_registry(
    config: Optional[Config] = None,
    social_client: Optional[SocialPlatformApiClient] = None,
    reader_client: Optional[ReaderApiClient] = None,
    repository_client: Optional[RepositoryApiClient] = None,
    cache: Optional[MetadataCache] = None,
    fetcher: Optional[HtmlFetch] = None,
    parser: Optional[HtmlParse] = None,
    clock: Optional[Clock] = None,
) -> ExtractorRegistry:
    """
    Build the standard registry: X, Instagram, YouTube, TikTok, GitHub,
    product and the article fallback.

    API clients default to the bundled X, reader and GitHub clients configured
    from ``config``; a client without credentials simply reports unavailable.
    The GitHub client works without a token at a lower quota.
    """
    config = config or get_config()
    if social_client is None:
        social_client = XApiClient(bearer_token=config.x_bearer_token or "")
    if reader_client is None:
        reader_client = JinaReaderClient(api_key=config.reader_api_key or "")
    if repository_client is None:
        repository_client = GitHubApiClient(token=config.github_token or "")
    if cache is None:
        cache = MetadataCache(clock=clock, cache_config=config.cache)

    shared = {"fetcher": fetcher, "parser": parser, "clock": clock}
    extractors = [
        SocialPostExtractor(api_client=social_client, **shared),
        ImageGridExtractor(**shared),
        VideoExtractor(**shared),
        ShortVideoExtractor(**shared),
        RepositoryExtractor(repository_client=repository_client, **shared),
        ProductExtractor(**shared),
        ArticleExtractor(reader_client=reader_client, **shared),
    ]
    return ExtractorRegistry(extractors, cache=cache, fetcher=fetcher, parser=parser, clock=clock)


__all__ = [
    "ArticleExtractor",
    "BaseExtractor",
    "ExtractorOptions",
    "ExtractorRegistry",
    "ImageGridExtractor",
    "ProductExtractor",
    "RepositoryExtractor",
    "ShortVideoExtractor",
    "SocialPostExtractor",
    "VideoExtractor",
    "create_default_registry",
    "has_product_markup",
]
