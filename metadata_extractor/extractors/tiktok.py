"""
Short-video extractor for TikTok.
"""

import re
from typing import Any, Dict, Optional

from ..detection import extract_platform_id
from ..models import ContentType, Source
from ..patterns import TIKTOK_USERNAME
from .base import BaseExtractor, ExtractorOptions
from .instagram import BROWSER_HEADERS, parse_count
from .social import extract_hashtags

SCRAPE_CONFIDENCE = 0.7

# "1.2M Likes, 3,456 Comments. TikTok video from Some One (@someone): "caption""
ENGAGEMENT_DESCRIPTION = re.compile(
    r'^([\d,.]+[KMB]?)\s+Likes?,\s*([\d,.]+[KMB]?)\s+Comments?\.\s*'
    r'TikTok video from\s+(.+?)\s+\(@([\w.-]+)\):\s*(.+)$',
    re.IGNORECASE | re.DOTALL,
)


def username_for(url: str) -> Optional[str]:
    match = TIKTOK_USERNAME.search(url) if isinstance(url, str) else None
    return match.group(1) if match else None


def _author(username: Optional[str], display_name: Optional[str] = None) -> Optional[Dict[str, Any]]:
    if not username:
        return None
    return {
        "name": display_name or f"@{username}",
        "username": username,
        "profile_url": f"https://www.tiktok.com/@{username}",
    }


class ShortVideoExtractor(BaseExtractor):
    """Scrapes TikTok pages; the URL alone already names the creator and video."""

    content_type = ContentType.TIKTOK
    name = "tiktok"

    def strategies(self):
        return [self.try_scrape]

    async def try_scrape(self, options: ExtractorOptions):
        _, document = await self.load_page(options, headers=BROWSER_HEADERS)
        url = options.url

        basic = self.extract_basic_metadata(document, url)
        description = basic.get("description")

        username = username_for(url)
        display_name = None
        caption = description
        engagement: Dict[str, Any] = {}

        match = ENGAGEMENT_DESCRIPTION.match(description or "")
        if match:
            engagement["likes"] = parse_count(match.group(1))
            engagement["comments"] = parse_count(match.group(2))
            display_name = match.group(3).strip()
            username = username or match.group(4)
            caption = match.group(5).strip().strip('"“”').strip()

        data = {
            **basic,
            "title": caption or basic["title"],
            "description": caption,
            "caption": caption,
            "hashtags": extract_hashtags(caption),
            "site_name": "TikTok",
            "video_id": extract_platform_id(url, ContentType.TIKTOK),
            "author": _author(username, display_name) or basic.get("author"),
            "engagement": engagement,
        }
        return self.make_result(data, SCRAPE_CONFIDENCE, Source.SCRAPING)

    def url_fields(self, url: str) -> Dict[str, Any]:
        fields = super().url_fields(url)
        fields.update({
            "video_id": extract_platform_id(url, ContentType.TIKTOK),
            "author": _author(username_for(url)),
        })
        return fields
