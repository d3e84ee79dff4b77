"""
Long-form video extractor for YouTube watch pages and shorts.
"""

import re
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlparse

from ..detection import extract_platform_id
from ..models import ContentType, Source
from .base import BaseExtractor, ExtractorOptions, meta_content, scalar, to_int

SCRAPE_CONFIDENCE = 0.9

VIEW_COUNT = re.compile(r'"viewCount":\s*"(\d+)"')


def video_id_for(url: str) -> Optional[str]:
    """Platform id from the URL, else the last path segment."""
    video_id = extract_platform_id(url, ContentType.YOUTUBE)
    if video_id:
        return video_id
    try:
        segments = [part for part in urlparse(url).path.split('/') if part]
    except ValueError:
        return None
    return segments[-1] if segments else None


def is_short(url: str) -> bool:
    return '/shorts/' in url


class VideoExtractor(BaseExtractor):
    content_type = ContentType.YOUTUBE
    name = "youtube"

    def strategies(self):
        return [self.try_scrape]

    def _channel_from_json_ld(self, document: Any) -> Tuple[Optional[str], Optional[str]]:
        for item in self.extract_json_ld(document):
            author = item.get("author")
            if isinstance(author, list):
                author = author[0] if author else None
            if isinstance(author, dict) and (author.get("name") or author.get("url")):
                return author.get("name"), author.get("url")
            if isinstance(author, str) and author.strip():
                return author.strip(), None
        return None, None

    async def try_scrape(self, options: ExtractorOptions):
        html, document = await self.load_page(options)
        url = options.url

        basic = self.extract_basic_metadata(document, url)
        og = self.extract_open_graph(document)

        channel_name, channel_url = self._channel_from_json_ld(document)
        if not channel_name:
            name_link = document.find("link", attrs={"itemprop": "name"})
            channel_name = (
                meta_content(document, itemprop="channelName")
                or self._attr_of(name_link, "content")
                or scalar(og.get("site_name"))
            )

        channel_id = (
            meta_content(document, itemprop="channelId")
            or meta_content(document, property="og:channel")
        )

        views_match = VIEW_COUNT.search(html or "")

        data = {
            **basic,
            "video_id": video_id_for(url),
            "channel_id": channel_id,
            "channel_name": channel_name,
            "channel_url": channel_url,
            "duration": meta_content(document, itemprop="duration"),
            "is_short": is_short(url),
            "author": {
                "name": channel_name,
                "profile_url": channel_url,
            } if channel_name else basic.get("author"),
            "engagement": {
                "views": to_int(views_match.group(1)) if views_match else None,
            },
        }
        return self.make_result(data, SCRAPE_CONFIDENCE, Source.SCRAPING)

    def url_fields(self, url: str) -> Dict[str, Any]:
        fields = super().url_fields(url)
        fields.update({
            "video_id": video_id_for(url),
            "is_short": is_short(url),
        })
        return fields
