"""
Article extractor, also the fallback for any web page.
"""

import logging
import math
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from ..interfaces import ReaderApiClient
from ..models import ContentType, ReaderContent, Source
from .base import BaseExtractor, ExtractorOptions

logger = logging.getLogger(__name__)

READER_CONFIDENCE = 0.9
SCRAPE_CONFIDENCE = 0.6

WORDS_PER_MINUTE = 200
EXCERPT_LENGTH = 200

CONTENT_SELECTORS = ("article", "main", "[role=main]", "body")


def count_words(text: Optional[str]) -> int:
    return len(text.split()) if text else 0


def reading_time(words: int) -> Optional[int]:
    """Minutes at 200 words per minute, rounded up."""
    return math.ceil(words / WORDS_PER_MINUTE) if words else None


def excerpt_of(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    return " ".join(text.split())[:EXCERPT_LENGTH].strip() or None


def _origin(url: str) -> Optional[str]:
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if not parsed.scheme or not parsed.netloc:
        return None
    return f"{parsed.scheme}://{parsed.netloc}"


class ArticleExtractor(BaseExtractor):
    """
    Reads articles through the reader API when configured, else scrapes.

    Registered with priority 0 so every specific extractor wins over it.

    Args:
        reader_client: ReaderApiClient; without one only scraping runs
    """

    content_type = ContentType.ARTICLE
    name = "article"

    def __init__(self, reader_client: Optional[ReaderApiClient] = None, **kwargs):
        super().__init__(**kwargs)
        self.reader_client = reader_client

    def can_handle(self, url: str) -> bool:
        try:
            parsed = urlparse(url.strip())
        except (ValueError, AttributeError):
            return False
        return parsed.scheme in ("http", "https") and bool(parsed.hostname)

    def get_priority(self) -> int:
        return 0

    def strategies(self):
        return [self.try_api, self.try_scrape]

    async def try_api(self, options: ExtractorOptions):
        if self.reader_client is None or not self.reader_client.is_available():
            return None

        content = await self.reader_client.extract_content(options.url)
        if content is None:
            logger.info("Reader API had no content for %s, falling back to scraping", options.url)
            return None

        return self.make_result(self.from_reader(content, options.url), READER_CONFIDENCE, Source.API)

    def from_reader(self, content: ReaderContent, url: str) -> Dict[str, Any]:
        site_name = content.site_name or content.domain or urlparse(url).hostname
        words = count_words(content.content)
        return {
            "url": url,
            "title": content.title,
            "description": content.description,
            "thumbnail": content.thumbnail_url,
            "site_name": site_name,
            "published_at": content.published_at,
            "language": content.language,
            "author": {"name": content.author} if content.author else None,
            "excerpt": content.description or excerpt_of(content.content),
            "word_count": words or None,
            "reading_time": reading_time(words),
            "publication": {
                "name": site_name,
                "url": _origin(url),
            },
        }

    def _main_text(self, document: Any) -> str:
        for selector in CONTENT_SELECTORS:
            node = document.select_one(selector)
            if node is None:
                continue
            text = node.get_text(" ", strip=True)
            if text:
                return text
        return ""

    def extract_sections(self, document: Any) -> List[Dict[str, Any]]:
        sections = []
        for heading in document.find_all(["h1", "h2", "h3"]):
            title = heading.get_text(" ", strip=True)
            if title:
                sections.append({"title": title, "level": int(heading.name[1])})
        return sections

    async def try_scrape(self, options: ExtractorOptions):
        _, document = await self.load_page(options)
        url = options.url

        basic = self.extract_basic_metadata(document, url)
        text = self._main_text(document)
        words = count_words(text)
        language = self._attr_of(document.find("html"), "lang")

        data = {
            **basic,
            "language": language,
            "excerpt": basic.get("description") or excerpt_of(text),
            "word_count": words,
            "reading_time": reading_time(words),
            "sections": self.extract_sections(document),
            "publication": {
                "name": basic.get("site_name"),
                "url": _origin(url),
                "logo": basic.get("favicon"),
            },
        }
        return self.make_result(data, SCRAPE_CONFIDENCE, Source.SCRAPING)
