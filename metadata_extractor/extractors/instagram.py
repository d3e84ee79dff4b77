"""
Image-grid extractor for Instagram posts, reels, stories and IGTV.
"""

import re
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from ..detection import extract_platform_id
from ..models import ContentType, Source
from .base import BaseExtractor, ExtractorOptions, scalar

SCRAPE_CONFIDENCE = 0.8

# Instagram serves a login wall to obvious bots.
BROWSER_HEADERS = {
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,image/apng,*/*;q=0.8',
    'Cache-Control': 'no-cache',
    'Pragma': 'no-cache',
    'Sec-Fetch-Dest': 'document',
    'Sec-Fetch-Mode': 'navigate',
    'Sec-Fetch-Site': 'none',
    'Upgrade-Insecure-Requests': '1',
}

# "52K likes, 353 comments - someone on June 13, 2025: "caption""
ENGAGEMENT_TITLE = re.compile(
    r'^([\d,.]+[KMB]?)\s+likes?,\s*([\d,.]+[KMB]?)\s+comments?\s*-\s*(\S+)\s+on\s+(.+?):\s*(.+)$',
    re.IGNORECASE | re.DOTALL,
)
USERNAME_TITLE = re.compile(r'^(.+?)\s+(?:\(@[\w.]+\)\s+)?on\s+Instagram', re.IGNORECASE)

_MULTIPLIERS = {'K': 1_000, 'M': 1_000_000, 'B': 1_000_000_000}


def parse_count(text: Optional[str]) -> Optional[int]:
    """
    Expand a display count such as ``12K``, ``1.5M`` or ``3,201``.

    Returns None when the text is not a count.
    """
    if not text:
        return None
    cleaned = text.strip().replace(',', '').upper()
    multiplier = 1
    if cleaned and cleaned[-1] in _MULTIPLIERS:
        multiplier = _MULTIPLIERS[cleaned[-1]]
        cleaned = cleaned[:-1]
    try:
        return int(round(float(cleaned) * multiplier))
    except ValueError:
        return None


def post_type_for(url: str) -> str:
    try:
        path = urlparse(url).path.lower()
    except ValueError:
        return "post"
    if '/reel/' in path or '/reels/' in path:
        return "reel"
    if '/tv/' in path:
        return "igtv"
    if '/stories/' in path:
        return "story"
    return "post"


class ImageGridExtractor(BaseExtractor):
    """Scrapes Instagram pages; there is no API strategy."""

    content_type = ContentType.INSTAGRAM
    name = "instagram"

    def strategies(self):
        return [self.try_scrape]

    async def try_scrape(self, options: ExtractorOptions):
        _, document = await self.load_page(options, headers=BROWSER_HEADERS)
        url = options.url

        basic = self.extract_basic_metadata(document, url)
        og = self.extract_open_graph(document)

        title = scalar(og.get("title")) or basic["title"]
        username = None
        caption = None
        published_at = basic.get("published_at")
        engagement: Dict[str, Any] = {}

        match = ENGAGEMENT_TITLE.match(title)
        if match:
            engagement["likes"] = parse_count(match.group(1))
            engagement["comments"] = parse_count(match.group(2))
            username = match.group(3).lstrip('@')
            published_at = published_at or match.group(4).strip()
            caption = match.group(5).strip().strip('"“”\'').strip()
        else:
            name_match = USERNAME_TITLE.match(title)
            if name_match:
                username = name_match.group(1).strip().lstrip('@')
            caption = basic.get("description") or title

        post_type = post_type_for(url)

        images: List[Dict[str, str]] = []
        for tag in document.find_all("meta", attrs={"property": "og:image"}):
            image_url = (tag.get("content") or "").strip()
            if image_url and all(image["url"] != image_url for image in images):
                images.append({"url": image_url})

        video = og.get("video")
        video_url = None
        video_format = None
        if isinstance(video, dict):
            video_url = video.get("secure_url") or video.get("url") or video.get("_value")
            video_format = video.get("type")
        elif isinstance(video, str):
            video_url = video
        has_video = bool(video_url)

        fallback_title = f"Instagram {post_type} by @{username}" if username else None

        data = {
            **basic,
            "title": caption or fallback_title,
            "description": caption,
            "caption": caption,
            "published_at": published_at,
            "thumbnail": images[0]["url"] if images else basic.get("thumbnail"),
            "post_id": extract_platform_id(url, ContentType.INSTAGRAM),
            "post_type": post_type,
            "author": {
                "name": username,
                "username": username,
                "profile_url": f"https://www.instagram.com/{username}" if username else None,
            } if username else basic.get("author"),
            "engagement": engagement,
            "media": {
                "images": [] if has_video else images,
                "videos": [{
                    "url": video_url,
                    "thumbnail": basic.get("thumbnail"),
                    "format": video_format,
                }] if has_video else [],
            },
            "carousel": images if len(images) > 1 and not has_video else None,
        }
        return self.make_result(data, SCRAPE_CONFIDENCE, Source.SCRAPING)

    def url_fields(self, url: str) -> Dict[str, Any]:
        fields = super().url_fields(url)
        fields.update({
            "post_type": post_type_for(url),
            "post_id": extract_platform_id(url, ContentType.INSTAGRAM),
        })
        return fields
