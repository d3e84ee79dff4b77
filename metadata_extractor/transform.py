"""
Flatten family metadata into the storage record shape.

The record keeps a fixed set of top-level columns; anything family-specific
that has no column goes into ``extra_data``. Absent values are dropped at
every level.
"""

from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlparse

from .extractors.base import prune
from .models import (
    ArticleMetadata,
    ContentMetadata,
    ImageGridMetadata,
    MediaItem,
    ProductMetadata,
    RepositoryMetadata,
    ShortVideoMetadata,
    SocialPostMetadata,
    VideoMetadata,
)

LEGACY_FIELDS = (
    "title",
    "content",
    "description",
    "thumbnail_url",
    "profile_image",
    "author",
    "domain",
    "published_date",
    "duration",
    "views",
    "likes",
    "replies",
    "retweets",
    "price",
    "rating",
    "video_url",
    "video_type",
    "extra_data",
)

FlatRecord = Dict[str, Any]


def _domain(metadata: ContentMetadata) -> Optional[str]:
    try:
        hostname = urlparse(metadata.url).hostname
    except ValueError:
        hostname = None
    return hostname or metadata.site_name


def _videos(metadata: ContentMetadata) -> List[MediaItem]:
    if metadata.media is None or not metadata.media.videos:
        return []
    return list(metadata.media.videos)


def _images(metadata: ContentMetadata) -> List[str]:
    if metadata.media is None or not metadata.media.images:
        return []
    return [image.url for image in metadata.media.images]


def _base_record(metadata: ContentMetadata) -> FlatRecord:
    author = metadata.author
    engagement = metadata.engagement
    return {
        "title": metadata.title,
        "description": metadata.description,
        "thumbnail_url": metadata.thumbnail,
        "profile_image": author.profile_image if author else None,
        "author": author.name if author else None,
        "domain": _domain(metadata),
        "published_date": metadata.published_at,
        "views": engagement.views if engagement else None,
        "likes": engagement.likes if engagement else None,
        "extra_data": {
            "content_type": metadata.content_type.value,
            "site_name": metadata.site_name,
            "favicon": metadata.favicon,
            "language": metadata.language,
            "tags": metadata.tags,
            "keywords": metadata.keywords,
            "username": author.username if author else None,
            "profile_url": author.profile_url if author else None,
            "images": _images(metadata),
        },
    }


def _social_post(metadata: SocialPostMetadata) -> FlatRecord:
    engagement = metadata.engagement
    videos = _videos(metadata)
    best = videos[0] if videos else None
    return {
        "content": metadata.caption,
        "replies": engagement.replies if engagement else None,
        "retweets": engagement.retweets if engagement else None,
        "video_url": best.url if best else None,
        "video_type": best.format if best else None,
        "duration": best.duration if best else None,
        "extra_data": {
            "post_id": metadata.post_id,
            "post_type": metadata.post_type,
            "is_video": metadata.post_type == "video",
            "hashtags": metadata.hashtags,
            "quotes": engagement.quotes if engagement else None,
            "verified": metadata.author.verified if metadata.author else None,
            "video_variants": [
                {"url": video.url, "format": video.format, "bit_rate": video.bit_rate}
                for video in videos
            ],
        },
    }


def _image_grid(metadata: ImageGridMetadata) -> FlatRecord:
    engagement = metadata.engagement
    videos = _videos(metadata)
    return {
        "content": metadata.caption,
        "video_url": videos[0].url if videos else None,
        "video_type": videos[0].format if videos else None,
        "extra_data": {
            "post_id": metadata.post_id,
            "post_type": metadata.post_type,
            "comments": engagement.comments if engagement else None,
            "carousel": [item.url for item in metadata.carousel or []],
        },
    }


def _video(metadata: VideoMetadata) -> FlatRecord:
    return {
        "author": metadata.channel_name,
        "duration": metadata.duration,
        "extra_data": {
            "video_id": metadata.video_id,
            "channel_id": metadata.channel_id,
            "channel_name": metadata.channel_name,
            "channel_url": metadata.channel_url,
            "is_short": metadata.is_short,
        },
    }


def _short_video(metadata: ShortVideoMetadata) -> FlatRecord:
    engagement = metadata.engagement
    return {
        "content": metadata.caption,
        "replies": engagement.comments if engagement else None,
        "extra_data": {
            "video_id": metadata.video_id,
            "hashtags": metadata.hashtags,
        },
    }


def _repository(metadata: RepositoryMetadata) -> FlatRecord:
    return {
        "author": metadata.owner,
        "extra_data": {
            "owner": metadata.owner,
            "repository": metadata.repository,
            "stars": metadata.stars,
            "forks": metadata.forks,
            "open_issues": metadata.open_issues,
            "programming_language": metadata.programming_language,
            "license": metadata.license,
            "default_branch": metadata.default_branch,
        },
    }


def _article(metadata: ArticleMetadata) -> FlatRecord:
    publication = metadata.publication
    return {
        "content": metadata.excerpt,
        "extra_data": {
            "word_count": metadata.word_count,
            "reading_time": metadata.reading_time,
            "sections": [section.model_dump() for section in metadata.sections or []],
            "publication": publication.model_dump() if publication else None,
        },
    }


def format_price(metadata: ProductMetadata) -> Optional[str]:
    """``"USD 19.99"``, or None without a price."""
    if metadata.price is None:
        return None
    return f"{metadata.price.currency} {metadata.price.current:.2f}"


def _product(metadata: ProductMetadata) -> FlatRecord:
    price = metadata.price
    rating = metadata.rating
    return {
        "price": format_price(metadata),
        "rating": rating.average if rating else None,
        "extra_data": {
            "product_id": metadata.product_id,
            "brand": metadata.brand,
            "availability": metadata.availability,
            "review_count": rating.count if rating else None,
            "original_price": price.original if price else None,
            "discount": price.discount if price else None,
            "specifications": metadata.specifications,
        },
    }


_FAMILY_FIELDS: Dict[type, Callable[[Any], FlatRecord]] = {
    SocialPostMetadata: _social_post,
    ImageGridMetadata: _image_grid,
    VideoMetadata: _video,
    ShortVideoMetadata: _short_video,
    RepositoryMetadata: _repository,
    ArticleMetadata: _article,
    ProductMetadata: _product,
}


def to_legacy_shape(metadata: ContentMetadata) -> FlatRecord:
    """
    Convert metadata of any content type to the flat storage record.

    Family fields override the base mapping; ``extra_data`` entries are
    merged. Returns only the keys in LEGACY_FIELDS, with None, blank and
    empty values removed; ``title`` is always present.
    """
    record = _base_record(metadata)

    family_fields = _FAMILY_FIELDS.get(type(metadata))
    if family_fields is not None:
        extra = family_fields(metadata)
        record["extra_data"].update(extra.pop("extra_data", {}))
        for key, value in extra.items():
            if value is not None or key not in record:
                record[key] = value

    cleaned = prune({key: record.get(key) for key in LEGACY_FIELDS}) or {}
    cleaned.setdefault("title", metadata.title)
    return cleaned
