"""
Base extractor contract and the toolkit shared by every extractor.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional, Tuple
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup
from pydantic import ValidationError as PydanticValidationError

from ..cache import Clock, utc_now
from ..config import get_config
from ..detection import classify
from ..exceptions import ExtractionError, MetadataExtractorError, NetworkError, wrap_http_error
from ..interfaces import HtmlFetch, HtmlParse
from ..models import ContentMetadata, ContentType, ExtractorResult, Source, metadata_model_for
from ..utils.http_client import fetch_html

logger = logging.getLogger(__name__)

API_CONFIDENCE = 1.0
DEGRADED_CONFIDENCE = 0.2
MINIMAL_CONFIDENCE = 0.1

DEFAULT_TITLE = "Untitled"


def parse_html(html: str) -> BeautifulSoup:
    """Default HtmlParse capability."""
    return BeautifulSoup(html or "", "html.parser")


@dataclass(frozen=True)
class ExtractorOptions:
    """Per-call extraction input; ``html``/``document`` skip the page fetch."""
    url: str
    html: Optional[str] = None
    document: Optional[Any] = None
    timeout: Optional[float] = None

    def with_page(self, html: str, document: Any) -> 'ExtractorOptions':
        return replace(self, html=html, document=document)


Strategy = Callable[[ExtractorOptions], Awaitable[Optional[ExtractorResult]]]


def prune(value: Any) -> Any:
    """
    Recursively drop absent values.

    None, blank strings and collections that end up empty are removed;
    zero and False are kept. Returns None when nothing is left.
    """
    if isinstance(value, dict):
        pruned = {}
        for key, item in value.items():
            item = prune(item)
            if item is not None:
                pruned[key] = item
        return pruned or None
    if isinstance(value, (list, tuple)):
        items = [item for item in (prune(v) for v in value) if item is not None]
        return items or None
    if isinstance(value, str):
        return value if value.strip() else None
    return value


def _nest(data: Dict[str, Any], parts: List[str], content: str) -> None:
    """Store ``content`` under a colon path; a scalar meeting a nested key becomes ``_value``."""
    current = data
    for part in parts[:-1]:
        node = current.get(part)
        if node is None:
            node = current[part] = {}
        elif not isinstance(node, dict):
            node = current[part] = {"_value": node}
        current = node

    leaf = parts[-1]
    existing = current.get(leaf)
    if existing is None:
        current[leaf] = content
    elif isinstance(existing, dict):
        existing.setdefault("_value", content)


def scalar(value: Any) -> Optional[str]:
    """Plain value of a harvested tag, unwrapping ``_value`` nodes."""
    if isinstance(value, dict):
        value = value.get("_value")
    return value if isinstance(value, str) and value.strip() else None


def meta_content(document: Any, **attrs) -> Optional[str]:
    """Content of the first ``<meta>`` matching ``attrs``, or None when blank."""
    tag = document.find("meta", attrs=attrs)
    if tag is None:
        return None
    content = tag.get("content")
    if content is None:
        return None
    content = content.strip()
    return content or None


def to_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).replace(",", "").strip())
    except ValueError:
        return None


class BaseExtractor(ABC):
    """
    Base class for all metadata extractors.

    Subclasses declare ``content_type`` and return their ordered strategies
    from ``strategies()``; ``extract`` runs them until one produces a result.

    Args:
        fetcher: HtmlFetch capability (defaults to the pooled HTTP client)
        parser: HtmlParse capability (defaults to BeautifulSoup)
        clock: Source of ``extracted_at`` timestamps
    """

    content_type: ContentType = ContentType.UNKNOWN
    name: str = "base"

    def __init__(
        self,
        fetcher: Optional[HtmlFetch] = None,
        parser: Optional[HtmlParse] = None,
        clock: Optional[Clock] = None,
    ):
        self.fetcher = fetcher or fetch_html
        self.parser = parser or parse_html
        self.clock = clock or utc_now

    def can_handle(self, url: str) -> bool:
        """True when the classifier assigns this extractor's content type."""
        return classify(url).type == self.content_type

    def get_priority(self) -> int:
        return 1

    def handled_types(self) -> Tuple[ContentType, ...]:
        """Content types a registry maps to this extractor."""
        return (self.content_type,)

    @abstractmethod
    def strategies(self) -> List[Strategy]:
        """Ordered extraction strategies; each returns None to pass."""

    async def extract(self, options: ExtractorOptions) -> ExtractorResult:
        """
        Run the strategies in order and return the first result.

        A failing strategy is logged and skipped; transport and timeout
        errors count as network failures. When every strategy fails on the
        network and the caller supplied no page, the last error propagates;
        otherwise a degraded result is returned.

        Raises:
            NetworkError: The page could not be reached and no HTML was given
        """
        errors: List[MetadataExtractorError] = []

        for strategy in self.strategies():
            strategy_name = getattr(strategy, "__name__", repr(strategy))
            try:
                result = await strategy(options)
            except MetadataExtractorError as e:
                logger.warning("%s %s failed for %s: %s", self.name, strategy_name, options.url, e)
                errors.append(e)
                continue
            except Exception as e:
                error = self._strategy_error(e, options, strategy_name)
                logger.warning("%s %s failed for %s: %s", self.name, strategy_name, options.url, error,
                               exc_info=not isinstance(error, NetworkError))
                errors.append(error)
                continue

            if result is not None:
                return result

        has_page = options.html is not None or options.document is not None
        if errors and not has_page and all(isinstance(e, NetworkError) for e in errors):
            raise errors[-1]

        logger.info("%s returning degraded result for %s", self.name, options.url)
        return self.degraded_result(options.url)

    def _strategy_error(self, error: Exception, options: ExtractorOptions,
                        strategy_name: str) -> MetadataExtractorError:
        """Transport and timeout failures become NetworkError, other failures ExtractionError."""
        wrapped = wrap_http_error(error, options.url, f"{self.name} {strategy_name}",
                                  timeout=options.timeout or get_config().http.timeout)
        if type(wrapped) is not MetadataExtractorError:
            return wrapped
        return ExtractionError(options.url, self.name, f"{strategy_name}: {error}")

    # Toolkit

    async def fetch(self, url: str, headers: Optional[Dict[str, str]] = None,
                    timeout: Optional[float] = None) -> str:
        return await self.fetcher(url, headers=headers, timeout=timeout)

    async def load_page(self, options: ExtractorOptions,
                        headers: Optional[Dict[str, str]] = None) -> Tuple[str, Any]:
        """Return ``(html, document)``, fetching only when the options carry neither."""
        if options.document is not None:
            html = options.html if options.html is not None else str(options.document)
            return html, options.document
        if options.html is not None:
            return options.html, self.parser(options.html)
        html = await self.fetch(options.url, headers=headers, timeout=options.timeout)
        return html, self.parser(html)

    def extract_open_graph(self, document: Any) -> Dict[str, Any]:
        """Harvest ``og:*`` meta tags into a nested mapping."""
        data: Dict[str, Any] = {}
        for tag in document.find_all("meta", attrs={"property": True}):
            prop = tag.get("property", "")
            content = (tag.get("content") or "").strip()
            if prop.startswith("og:") and content:
                _nest(data, prop.split(":")[1:], content)
        return data

    def extract_twitter_card(self, document: Any) -> Dict[str, Any]:
        """Harvest ``twitter:*`` meta tags into a nested mapping."""
        data: Dict[str, Any] = {}
        for tag in document.find_all("meta"):
            name = tag.get("name") or tag.get("property") or ""
            content = (tag.get("content") or "").strip()
            if name.startswith("twitter:") and content:
                _nest(data, name.split(":")[1:], content)
        return data

    def extract_json_ld(self, document: Any) -> Iterator[Dict[str, Any]]:
        """Yield every JSON-LD object on the page, flattening lists and @graph."""
        for script in document.find_all("script", attrs={"type": "application/ld+json"}):
            raw = script.string or script.get_text() or ""
            try:
                data = json.loads(raw)
            except ValueError:
                logger.debug("Skipping malformed JSON-LD block")
                continue
            stack = data if isinstance(data, list) else [data]
            for item in stack:
                if not isinstance(item, dict):
                    continue
                yield item
                for nested in item.get("@graph", []) or []:
                    if isinstance(nested, dict):
                        yield nested

    def extract_basic_metadata(self, document: Any, url: str) -> Dict[str, Any]:
        """Common fields in OG, social card, generic meta, DOM order."""
        parsed = urlparse(url)

        title = (
            meta_content(document, property="og:title")
            or meta_content(document, name="twitter:title")
            or self._text_of(document.find("title"))
            or self._text_of(document.find("h1"))
            or DEFAULT_TITLE
        )
        description = (
            meta_content(document, property="og:description")
            or meta_content(document, name="twitter:description")
            or meta_content(document, name="description")
            or meta_content(document, itemprop="description")
        )
        thumbnail = (
            meta_content(document, property="og:image")
            or meta_content(document, name="twitter:image")
            or meta_content(document, itemprop="image")
        )
        published_at = (
            meta_content(document, property="article:published_time")
            or meta_content(document, property="og:updated_time")
            or self._attr_of(document.find("time", attrs={"datetime": True}), "datetime")
        )
        author_name = (
            meta_content(document, property="article:author")
            or meta_content(document, name="author")
            or meta_content(document, name="twitter:creator")
        )

        return {
            "url": url,
            "title": title,
            "description": description,
            "thumbnail": thumbnail,
            "favicon": self._favicon(document, url),
            "site_name": meta_content(document, property="og:site_name") or parsed.hostname,
            "published_at": published_at,
            "author": {"name": author_name} if author_name else None,
        }

    def _favicon(self, document: Any, url: str) -> Optional[str]:
        links = document.find_all("link", href=True)
        for rel in ("icon", "shortcut icon", "apple-touch-icon"):
            for link in links:
                if self._rel_of(link) == rel and link["href"].strip():
                    return urljoin(url, link["href"].strip())
        return None

    @staticmethod
    def _rel_of(tag: Any) -> str:
        value = tag.get("rel") or []
        tokens = value if isinstance(value, list) else str(value).split()
        return " ".join(tokens).lower()

    @staticmethod
    def _text_of(tag: Any) -> Optional[str]:
        if tag is None:
            return None
        text = tag.get_text(" ", strip=True)
        return text or None

    @staticmethod
    def _attr_of(tag: Any, attr: str) -> Optional[str]:
        if tag is None:
            return None
        value = tag.get(attr)
        if isinstance(value, list):
            value = " ".join(value)
        if not isinstance(value, str):
            return None
        return value.strip() or None

    def url_fields(self, url: str) -> Dict[str, Any]:
        """Fields derivable from the URL alone; families add their required ones."""
        try:
            hostname = urlparse(url).hostname
        except ValueError:
            hostname = None
        return {"site_name": hostname}

    def clean_metadata(self, data: Dict[str, Any],
                       content_type: Optional[ContentType] = None) -> ContentMetadata:
        """
        Prune absent values, apply defaults and build the family variant.

        ``url`` and ``title`` are always present afterwards; ``content_type``
        and ``extracted_at`` are stamped here.
        """
        cleaned = prune(data) or {}
        cleaned["url"] = cleaned.get("url") or data.get("url")
        cleaned["title"] = cleaned.get("title") or DEFAULT_TITLE
        cleaned["content_type"] = content_type or self.content_type
        cleaned["extracted_at"] = self.clock()
        return build_metadata(cleaned)

    def make_result(self, data: Dict[str, Any], confidence: float, source: Source,
                    content_type: Optional[ContentType] = None) -> ExtractorResult:
        return ExtractorResult(
            metadata=self.clean_metadata(data, content_type),
            confidence=min(confidence, 1.0),
            source=source,
        )

    def degraded_result(self, url: str) -> ExtractorResult:
        """URL-derived result used when every strategy failed."""
        return self.make_result({"url": url, **self.url_fields(url)}, DEGRADED_CONFIDENCE, Source.SCRAPING)


def build_metadata(data: Dict[str, Any]) -> ContentMetadata:
    """
    Construct the variant for ``data["content_type"]``.

    Falls back to the base shape, keeping only base fields, when the
    variant's required fields are missing.
    """
    model = metadata_model_for(data["content_type"])
    try:
        return model.model_validate(data)
    except PydanticValidationError:
        if model is ContentMetadata:
            raise
        logger.debug("Falling back to base metadata for %s", data.get("url"))
        base_fields = {key: value for key, value in data.items() if key in ContentMetadata.model_fields}
        return ContentMetadata.model_validate(base_fields)
