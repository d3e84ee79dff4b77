"""
Social-post extractor for X (formerly Twitter).
"""

import logging
import re
from typing import Any, Dict, List, Optional

from ..detection import extract_platform_id
from ..interfaces import SocialPlatformApiClient
from ..models import ContentType, RawApiPost, Source
from ..patterns import X_USERNAME
from .base import API_CONFIDENCE, BaseExtractor, ExtractorOptions, scalar, to_int

logger = logging.getLogger(__name__)

SCRAPE_CONFIDENCE = 0.7

PLAYABLE_FORMAT = "video/mp4"
PLAYER_CARDS = ("player", "amplify")

AUTHOR_TITLE = re.compile(r'^(.+?)\s+\(@(\w+)\)\s+on\s+(?:Twitter|X)', re.IGNORECASE)
INLINE_VIDEO = re.compile(r'https://video\.twimg\.com/[^"\'\s<>]+?\.mp4')
HASHTAG = re.compile(r'(?<![\w&])#(\w+)')


def rank_video_variants(variants: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Order video variants best first.

    Directly playable MP4 comes before streaming manifests; within each
    group, higher bit rate first. Ties keep their input order.
    """
    def sort_key(variant: Dict[str, Any]):
        is_playable = variant.get("content_type") == PLAYABLE_FORMAT
        return (not is_playable, -(variant.get("bit_rate") or 0))

    return sorted((v for v in variants if v.get("url")), key=sort_key)


def extract_hashtags(text: Optional[str]) -> Optional[List[str]]:
    if not text:
        return None
    seen: List[str] = []
    for tag in HASHTAG.findall(text):
        if tag not in seen:
            seen.append(tag)
    return seen or None


def _profile_url(username: Optional[str]) -> Optional[str]:
    return f"https://x.com/{username}" if username else None


class SocialPostExtractor(BaseExtractor):
    """
    Extracts X posts: the platform API when available, else the page.

    Args:
        api_client: SocialPlatformApiClient; without one only scraping runs
    """

    content_type = ContentType.X
    name = "x"

    def __init__(self, api_client: Optional[SocialPlatformApiClient] = None, **kwargs):
        super().__init__(**kwargs)
        self.api_client = api_client

    def strategies(self):
        return [self.try_api, self.try_scrape]

    async def try_api(self, options: ExtractorOptions):
        if self.api_client is None or not self.api_client.is_available():
            return None

        post = await self.api_client.fetch_post(options.url)
        if post is None:
            logger.info("X API had no data for %s, falling back to scraping", options.url)
            return None

        return self.make_result(self.from_api_post(post, options.url), API_CONFIDENCE, Source.API)

    def from_api_post(self, post: RawApiPost, url: str) -> Dict[str, Any]:
        variants = rank_video_variants(post.video_variants)
        duration = f"{round(post.duration_ms / 1000)}s" if post.duration_ms else None

        videos = [
            {
                "url": variant["url"],
                "format": variant.get("content_type"),
                "bit_rate": variant.get("bit_rate"),
                "thumbnail": post.thumbnail_url,
                "duration": duration,
            }
            for variant in variants
        ]

        if videos:
            post_type = "video"
        elif post.images:
            post_type = "image"
        else:
            post_type = "text"

        return {
            "url": url,
            "title": post.text,
            "description": post.text,
            "caption": post.text,
            "hashtags": extract_hashtags(post.text),
            "thumbnail": post.thumbnail_url,
            "site_name": "X",
            "published_at": post.published_at,
            "post_id": post.post_id,
            "post_type": post_type,
            "author": {
                "name": post.display_name or post.username,
                "username": post.username,
                "profile_url": _profile_url(post.username),
                "profile_image": post.profile_image,
                "verified": post.verified,
            },
            "engagement": {
                "likes": post.likes,
                "retweets": post.retweets,
                "replies": post.replies,
                "quotes": post.quotes,
                "views": post.views,
            },
            "media": {
                "images": [{"url": image} for image in post.images],
                "videos": videos,
            },
        }

    async def try_scrape(self, options: ExtractorOptions):
        html, document = await self.load_page(options)
        url = options.url

        basic = self.extract_basic_metadata(document, url)
        og = self.extract_open_graph(document)
        card = self.extract_twitter_card(document)

        page_title = basic["title"]
        content = basic.get("description")

        display_name = None
        username = None
        author_match = AUTHOR_TITLE.match(page_title or "")
        if author_match:
            display_name = author_match.group(1).strip()
            username = author_match.group(2)
        else:
            url_match = X_USERNAME.search(url)
            if url_match:
                username = url_match.group(1)

        title = content if content and content not in page_title else page_title

        engagement = {
            "likes": to_int(re.sub(r'[^\d]', '', scalar(card.get("data1")) or "")),
            "retweets": to_int(re.sub(r'[^\d]', '', scalar(card.get("data2")) or "")),
        }

        video_urls: List[str] = []
        for match in INLINE_VIDEO.findall(html or ""):
            if match not in video_urls:
                video_urls.append(match)

        is_video = scalar(card.get("card")) in PLAYER_CARDS or "video" in og or bool(video_urls)
        thumbnail = basic.get("thumbnail")
        og_image = scalar(og.get("image"))

        if is_video:
            post_type = "video"
        elif thumbnail:
            post_type = "image"
        else:
            post_type = "text"

        data = {
            **basic,
            "title": title,
            "description": content,
            "caption": content,
            "hashtags": extract_hashtags(content),
            "post_id": extract_platform_id(url, ContentType.X),
            "post_type": post_type,
            "author": {
                "name": display_name or username,
                "username": username,
                "profile_url": _profile_url(username),
                "profile_image": og_image if og_image and "profile_images" in og_image else None,
            } if username or display_name else basic.get("author"),
            "engagement": engagement,
            "media": {
                "images": [{"url": thumbnail}] if thumbnail and not is_video else [],
                "videos": [{"url": video_url, "format": PLAYABLE_FORMAT} for video_url in video_urls],
            },
        }
        return self.make_result(data, SCRAPE_CONFIDENCE, Source.SCRAPING)

    def url_fields(self, url: str) -> Dict[str, Any]:
        fields = super().url_fields(url)
        match = X_USERNAME.search(url)
        username = match.group(1) if match else None
        fields.update({
            "post_type": "text",
            "post_id": extract_platform_id(url, ContentType.X),
            "author": {
                "name": username,
                "username": username,
                "profile_url": _profile_url(username),
            } if username else None,
        })
        return fields
