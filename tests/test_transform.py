import pytest

from conftest import FIXED_NOW
from metadata_extractor.models import (
    ArticleMetadata,
    ContentMetadata,
    ContentType,
    ImageGridMetadata,
    ProductMetadata,
    RepositoryMetadata,
    ShortVideoMetadata,
    SocialPostMetadata,
    VideoMetadata,
)
from metadata_extractor.transform import LEGACY_FIELDS, format_price, to_legacy_shape


@pytest.mark.unit
def test_social_post_record():
    metadata = SocialPostMetadata(
        url="https://x.com/alice/status/42",
        title="Shipping today",
        extracted_at=FIXED_NOW,
        post_type="video",
        post_id="42",
        caption="Shipping today #python",
        hashtags=["python"],
        author={"name": "Alice", "username": "alice", "verified": True,
                "profile_image": "https://pbs.twimg.com/alice.jpg"},
        engagement={"likes": 120, "retweets": 8, "replies": 3, "quotes": 0, "views": 5000},
        media={"videos": [
            {"url": "https://video.twimg.com/high.mp4", "format": "video/mp4", "bit_rate": 2176000,
             "duration": "12s"},
            {"url": "https://video.twimg.com/pl.m3u8", "format": "application/x-mpegURL"},
        ]},
    )

    record = to_legacy_shape(metadata)

    assert record["title"] == "Shipping today"
    assert record["content"] == "Shipping today #python"
    assert record["author"] == "Alice"
    assert record["profile_image"] == "https://pbs.twimg.com/alice.jpg"
    assert record["domain"] == "x.com"
    assert record["likes"] == 120
    assert record["retweets"] == 8
    assert record["replies"] == 3
    assert record["views"] == 5000
    assert record["video_url"] == "https://video.twimg.com/high.mp4"
    assert record["video_type"] == "video/mp4"
    assert record["duration"] == "12s"

    extra = record["extra_data"]
    assert extra["content_type"] == "x"
    assert extra["post_id"] == "42"
    assert extra["is_video"] is True
    assert extra["verified"] is True
    assert extra["quotes"] == 0
    assert extra["username"] == "alice"
    assert extra["video_variants"][1] == {"url": "https://video.twimg.com/pl.m3u8",
                                          "format": "application/x-mpegURL"}


@pytest.mark.unit
def test_image_grid_record():
    metadata = ImageGridMetadata(
        url="https://www.instagram.com/p/CxYz123abc/",
        title="Sunset",
        extracted_at=FIXED_NOW,
        post_type="post",
        post_id="CxYz123abc",
        caption="Sunset over the bay",
        engagement={"likes": 52000, "comments": 353},
        media={"images": [{"url": "https://cdn.instagram.com/one.jpg"},
                          {"url": "https://cdn.instagram.com/two.jpg"}]},
        carousel=[{"url": "https://cdn.instagram.com/one.jpg"}, {"url": "https://cdn.instagram.com/two.jpg"}],
    )

    record = to_legacy_shape(metadata)

    assert record["content"] == "Sunset over the bay"
    assert record["likes"] == 52000
    assert "video_url" not in record
    assert record["extra_data"]["comments"] == 353
    assert record["extra_data"]["post_type"] == "post"
    assert record["extra_data"]["carousel"] == [
        "https://cdn.instagram.com/one.jpg", "https://cdn.instagram.com/two.jpg",
    ]
    assert record["extra_data"]["images"] == record["extra_data"]["carousel"]


@pytest.mark.unit
def test_video_record_uses_channel_as_author():
    metadata = VideoMetadata(
        url="https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        title="Never Gonna Give You Up",
        extracted_at=FIXED_NOW,
        video_id="dQw4w9WgXcQ",
        channel_name="Rick Astley",
        channel_id="UCuAXFkgsw1L7xaCfnd5JJOw",
        duration="PT3M33S",
        is_short=False,
        author={"name": "Someone Else"},
        engagement={"views": 1500000000},
    )

    record = to_legacy_shape(metadata)

    assert record["author"] == "Rick Astley"
    assert record["duration"] == "PT3M33S"
    assert record["views"] == 1500000000
    assert record["domain"] == "www.youtube.com"
    assert record["extra_data"]["video_id"] == "dQw4w9WgXcQ"
    assert record["extra_data"]["is_short"] is False


@pytest.mark.unit
def test_video_without_channel_keeps_author():
    metadata = VideoMetadata(url="https://youtu.be/dQw4w9WgXcQ", title="Video", extracted_at=FIXED_NOW,
                             video_id="dQw4w9WgXcQ", author={"name": "Uploader"})

    assert to_legacy_shape(metadata)["author"] == "Uploader"


@pytest.mark.unit
def test_article_record():
    metadata = ArticleMetadata(
        url="https://medium.com/@writer/a-long-read",
        title="A Long Read",
        extracted_at=FIXED_NOW,
        description="Why long reads still matter.",
        excerpt="Why long reads still matter.",
        word_count=1800,
        reading_time=9,
        sections=[{"title": "Part One", "level": 2}],
        publication={"name": "Example Journal", "url": "https://medium.com"},
        published_at="2025-05-01T08:00:00Z",
    )

    record = to_legacy_shape(metadata)

    assert record["content"] == "Why long reads still matter."
    assert record["published_date"] == "2025-05-01T08:00:00Z"
    assert record["extra_data"]["word_count"] == 1800
    assert record["extra_data"]["reading_time"] == 9
    assert record["extra_data"]["sections"] == [{"title": "Part One", "level": 2}]
    assert record["extra_data"]["publication"] == {"name": "Example Journal", "url": "https://medium.com"}


@pytest.mark.unit
def test_product_record():
    metadata = ProductMetadata(
        url="https://cool-store.myshopify.com/products/blue-mug",
        title="Blue Mug",
        extracted_at=FIXED_NOW,
        product_id="MUG-001",
        brand="Acme",
        price={"current": 19.99, "currency": "USD", "original": 25.0, "discount": 20.0},
        availability="InStock",
        rating={"average": 4.5, "count": 12},
    )

    record = to_legacy_shape(metadata)

    assert record["price"] == "USD 19.99"
    assert record["rating"] == 4.5
    assert record["extra_data"]["brand"] == "Acme"
    assert record["extra_data"]["review_count"] == 12
    assert record["extra_data"]["original_price"] == 25.0
    assert record["extra_data"]["discount"] == 20.0


@pytest.mark.unit
def test_format_price():
    priced = ProductMetadata(url="https://example.com/p", title="P", extracted_at=FIXED_NOW,
                             price={"current": 5, "currency": "EUR"})
    unpriced = ProductMetadata(url="https://example.com/p", title="P", extracted_at=FIXED_NOW)

    assert format_price(priced) == "EUR 5.00"
    assert format_price(unpriced) is None


@pytest.mark.unit
def test_generic_record_is_pruned():
    """Only known keys, no empty values, title always present"""
    metadata = ContentMetadata(
        url="https://en.wikipedia.org/wiki/Python",
        title="Python",
        content_type=ContentType.WIKIPEDIA,
        extracted_at=FIXED_NOW,
        site_name="Wikipedia",
        description="",
    )

    record = to_legacy_shape(metadata)

    assert record == {
        "title": "Python",
        "domain": "en.wikipedia.org",
        "extra_data": {"content_type": "wikipedia", "site_name": "Wikipedia"},
    }
    assert set(record) <= set(LEGACY_FIELDS)


@pytest.mark.unit
def test_base_shape_for_family_type():
    """Base metadata for a family content type maps through the base fields only"""
    metadata = ContentMetadata(url="https://x.com/alice/status/1", title="Post",
                               content_type=ContentType.X, extracted_at=FIXED_NOW)

    record = to_legacy_shape(metadata)

    assert record["extra_data"] == {"content_type": "x"}
    assert "content" not in record


@pytest.mark.unit
def test_repository_record():
    metadata = RepositoryMetadata(
        url="https://github.com/psf/requests",
        title="psf/requests",
        extracted_at=FIXED_NOW,
        description="A simple, yet elegant, HTTP library.",
        owner="psf",
        repository="requests",
        stars=52107,
        forks=9312,
        programming_language="Python",
        language="en",
        author={"name": "psf", "username": "psf", "profile_url": "https://github.com/psf"},
    )

    record = to_legacy_shape(metadata)

    assert record["author"] == "psf"
    assert record["extra_data"]["stars"] == 52107
    assert record["extra_data"]["forks"] == 9312
    assert record["extra_data"]["programming_language"] == "Python"
    assert record["extra_data"]["language"] == "en"
    assert record["extra_data"]["repository"] == "requests"
    assert "license" not in record["extra_data"]


@pytest.mark.unit
def test_short_video_record():
    metadata = ShortVideoMetadata(
        url="https://www.tiktok.com/@someone/video/7234567890123456789",
        title="Sunset timelapse",
        extracted_at=FIXED_NOW,
        video_id="7234567890123456789",
        caption="Sunset timelapse #sunset",
        hashtags=["sunset"],
        author={"name": "@someone", "username": "someone"},
        engagement={"likes": 1200000, "comments": 3456},
    )

    record = to_legacy_shape(metadata)

    assert record["content"] == "Sunset timelapse #sunset"
    assert record["author"] == "@someone"
    assert record["likes"] == 1200000
    assert record["replies"] == 3456
    assert record["extra_data"]["video_id"] == "7234567890123456789"
    assert record["extra_data"]["username"] == "someone"
