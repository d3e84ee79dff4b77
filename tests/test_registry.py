import asyncio

import httpx
import pytest

from conftest import FakeClock, FakeFetcher, FakeReaderClient, FakeRepositoryClient, FakeSocialClient
from metadata_extractor.config import Config
from metadata_extractor.exceptions import ConfigurationError, ExtractorInitializationError
from metadata_extractor.extractors import (
    ArticleExtractor,
    ExtractorRegistry,
    ProductExtractor,
    RepositoryExtractor,
    ShortVideoExtractor,
    SocialPostExtractor,
    create_default_registry,
    has_product_markup,
)
from metadata_extractor.extractors.base import BaseExtractor, parse_html
from metadata_extractor.models import (
    ArticleMetadata,
    ContentType,
    ProductMetadata,
    RepositoryMetadata,
    ShortVideoMetadata,
    SocialPostMetadata,
    Source,
    VideoMetadata,
)


class StubExtractor(BaseExtractor):
    """Extractor with a fixed priority that records its calls"""

    content_type = ContentType.BOOKMARK

    def __init__(self, name, priority=1, **kwargs):
        super().__init__(**kwargs)
        self.name = name
        self.priority = priority
        self.calls = []

    def get_priority(self):
        return self.priority

    def strategies(self):
        return [self.try_stub]

    async def try_stub(self, options):
        self.calls.append(options)
        return self.make_result({"url": options.url, "title": self.name}, 0.5, Source.SCRAPING)


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def registry(clock, fetcher):
    """Default registry wired to fakes only"""
    return create_default_registry(
        config=Config(),
        social_client=FakeSocialClient(available=False),
        reader_client=FakeReaderClient(available=False),
        repository_client=FakeRepositoryClient(available=False),
        fetcher=fetcher,
        clock=clock,
    )


@pytest.mark.unit
def test_registry_requires_extractors():
    with pytest.raises(ExtractorInitializationError) as exc_info:
        ExtractorRegistry([])

    assert isinstance(exc_info.value, ConfigurationError)
    assert exc_info.value.details["component"] == "ExtractorRegistry"


@pytest.mark.unit
def test_registry_orders_by_priority():
    """Higher priority first; equal priorities keep registration order"""
    low = StubExtractor("low", priority=0)
    first = StubExtractor("first", priority=5)
    second = StubExtractor("second", priority=5)
    middle = StubExtractor("middle", priority=2)

    registry = ExtractorRegistry([low, first, second, middle])

    assert [e.name for e in registry.extractors] == ["first", "second", "middle", "low"]
    assert registry.find_extractor("https://example.com/page") is first
    # First registration of a type owns it
    assert registry.get_extractor_for_type(ContentType.BOOKMARK) is low


@pytest.mark.unit
def test_default_registry_type_map(registry):
    """Every handled content type maps to its extractor"""
    assert isinstance(registry.get_extractor_for_type(ContentType.X), SocialPostExtractor)
    assert isinstance(registry.get_extractor_for_type(ContentType.AMAZON), ProductExtractor)
    assert isinstance(registry.get_extractor_for_type(ContentType.ETSY), ProductExtractor)
    assert isinstance(registry.get_extractor_for_type(ContentType.ARTICLE), ArticleExtractor)
    assert isinstance(registry.get_extractor_for_type(ContentType.GITHUB), RepositoryExtractor)
    assert isinstance(registry.get_extractor_for_type(ContentType.TIKTOK), ShortVideoExtractor)
    assert registry.get_extractor_for_type(ContentType.WIKIPEDIA) is None
    assert set(registry.get_supported_types()) == {
        ContentType.X, ContentType.INSTAGRAM, ContentType.YOUTUBE, ContentType.TIKTOK,
        ContentType.GITHUB, ContentType.PRODUCT, ContentType.AMAZON, ContentType.ETSY,
        ContentType.ARTICLE,
    }
    assert [e.name for e in registry.extractors][-1] == "article"


@pytest.mark.unit
def test_has_product_markup():
    assert has_product_markup(parse_html('<meta property="og:type" content="Product" />'))
    assert has_product_markup(parse_html('<meta property="product:price:amount" content="1" />'))
    assert not has_product_markup(parse_html('<meta property="og:type" content="article" />'))


@pytest.mark.unit
@pytest.mark.asyncio
async def test_specific_extractor_is_used(registry, fetcher, sample_urls, youtube_html):
    fetcher.default = youtube_html

    result = await registry.extract(sample_urls['youtube_watch'])

    assert isinstance(result.metadata, VideoMetadata)
    assert result.confidence == 0.9


@pytest.mark.unit
@pytest.mark.asyncio
async def test_generic_page_with_product_markup(registry, fetcher, sample_urls, product_html):
    """A page with product markup goes to the product extractor on a single fetch"""
    fetcher.default = product_html

    result = await registry.extract(sample_urls['generic_page'])

    assert isinstance(result.metadata, ProductMetadata)
    assert result.metadata.content_type == ContentType.PRODUCT
    assert result.metadata.price.current == 19.99
    assert len(fetcher.calls) == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_generic_page_uses_fallback(registry, fetcher, sample_urls, article_html):
    """Pages without product markup are read by the article fallback"""
    fetcher.default = article_html

    result = await registry.extract(sample_urls['generic_page'])

    assert isinstance(result.metadata, ArticleMetadata)
    assert result.confidence == 0.6
    assert result.metadata.publication.name == "Example Journal"
    assert len(fetcher.calls) == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_supplied_html_skips_fetch(registry, fetcher, sample_urls, article_html):
    result = await registry.extract(sample_urls['generic_page'], {"html": article_html})

    assert result.metadata.title == "A Long Read"
    assert fetcher.calls == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_timeout_is_passed_to_fetch(registry, fetcher, sample_urls, article_html):
    fetcher.default = article_html

    await registry.extract(sample_urls['generic_page'], {"timeout": 4})

    assert fetcher.calls[0]["timeout"] == 4


@pytest.mark.unit
@pytest.mark.asyncio
async def test_minimal_result_without_matching_extractor(clock):
    """Nothing can handle the URL: a classifier-only result"""
    registry = ExtractorRegistry([SocialPostExtractor(clock=clock)],
                                 fetcher=FakeFetcher(default="<html></html>"), clock=clock)

    result = await registry.extract("ftp://files.example.com/readme")

    assert result.confidence == 0.1
    assert result.source == Source.SCRAPING
    assert result.metadata.title == "Unknown Content"
    assert result.metadata.content_type == ContentType.UNKNOWN
    assert result.metadata.extracted_at == clock.now


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unreachable_page_gives_minimal_result(registry, sample_urls):
    """Network failures never escape extract"""
    result = await registry.extract(sample_urls['generic_page'])

    assert result.confidence == 0.1
    assert result.metadata.title == "Unknown Content"
    assert result.metadata.content_type == ContentType.BOOKMARK


@pytest.mark.unit
@pytest.mark.asyncio
@pytest.mark.parametrize("error", [
    RuntimeError("client bug"),
    httpx.ConnectError("down"),
    OSError("socket"),
])
async def test_failing_api_client_falls_back_to_scraping(clock, sample_urls, x_post_html, error):
    """Whatever the API client raises, the page is still scraped"""
    registry = create_default_registry(
        config=Config(),
        social_client=FakeSocialClient(error=error),
        reader_client=FakeReaderClient(available=False),
        fetcher=FakeFetcher(default=x_post_html),
        clock=clock,
    )

    result = await registry.extract(sample_urls['x_post'])

    assert result.source == Source.SCRAPING
    assert result.confidence == 0.7
    assert result.metadata.engagement.likes == 1204


@pytest.mark.unit
@pytest.mark.asyncio
async def test_fetch_timeout_gives_minimal_result(clock, sample_urls):
    registry = create_default_registry(
        config=Config(),
        social_client=FakeSocialClient(available=False),
        reader_client=FakeReaderClient(available=False),
        fetcher=FakeFetcher(error=asyncio.TimeoutError()),
        clock=clock,
    )

    result = await registry.extract(sample_urls['generic_page'])

    assert result.confidence == 0.1
    assert result.metadata.title == "Unknown Content"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unexpected_error_gives_minimal_result(clock, fetcher, sample_urls):
    """A broken parser still never escapes extract"""
    def broken_parser(html):
        raise RuntimeError("parser exploded")

    fetcher.default = "<html></html>"
    registry = ExtractorRegistry([ArticleExtractor(clock=clock)], fetcher=fetcher,
                                 parser=broken_parser, clock=clock)

    result = await registry.extract(sample_urls['generic_page'])

    assert result.confidence == 0.1
    assert result.metadata.content_type == ContentType.BOOKMARK


@pytest.mark.unit
@pytest.mark.asyncio
async def test_minimal_result_keeps_url_fields(registry, sample_urls):
    """Family fields derivable from the URL survive a failed extraction"""
    result = await registry.extract(sample_urls['x_post'])
    metadata = result.metadata

    assert isinstance(metadata, SocialPostMetadata)
    assert result.confidence == 0.1
    assert metadata.post_id == "42"
    assert metadata.post_type == "text"
    assert metadata.author.username == "alice"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unreachable_tiktok_keeps_creator_and_video(registry, sample_urls):
    result = await registry.extract(sample_urls['tiktok_video'])
    metadata = result.metadata

    assert isinstance(metadata, ShortVideoMetadata)
    assert result.confidence == 0.1
    assert metadata.video_id == "7234567890123456789"
    assert metadata.author.username == "someone"
    assert metadata.author.name == "@someone"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unreachable_repository_keeps_owner(registry, sample_urls):
    result = await registry.extract(sample_urls['github_repo'])
    metadata = result.metadata

    assert isinstance(metadata, RepositoryMetadata)
    assert metadata.owner == "psf"
    assert metadata.repository == "requests"
    assert metadata.stars is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_repository_from_api(clock, fetcher, sample_urls, sample_repository):
    repository_client = FakeRepositoryClient(info=sample_repository)
    registry = create_default_registry(
        config=Config(),
        social_client=FakeSocialClient(available=False),
        reader_client=FakeReaderClient(available=False),
        repository_client=repository_client,
        fetcher=fetcher,
        clock=clock,
    )

    result = await registry.extract_with_cache(sample_urls['github_repo'])

    assert result.source == Source.API
    assert result.metadata.stars == 52107
    assert result.metadata.forks == 9312
    assert result.metadata.programming_language == "Python"
    assert repository_client.calls == [("psf", "requests")]
    assert fetcher.calls == []


@pytest.mark.unit
@pytest.mark.asyncio
@pytest.mark.parametrize("url", ["", "   ", None])
async def test_blank_url(registry, fetcher, url):
    result = await registry.extract(url)

    assert result.confidence == 0.1
    assert result.metadata.url == "about:blank"
    assert fetcher.calls == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_cache_hit_is_hybrid(registry, fetcher, sample_urls, youtube_html):
    """A cached result is served as hybrid without touching the network"""
    fetcher.default = youtube_html
    url = sample_urls['youtube_watch']

    first = await registry.extract_with_cache(url)
    second = await registry.extract_with_cache(url)

    assert first.source == Source.SCRAPING
    assert second.source == Source.HYBRID
    assert second.metadata == first.metadata
    assert len(fetcher.calls) == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_cache_key_is_normalized(registry, fetcher, x_post_html):
    fetcher.default = x_post_html

    await registry.extract_with_cache("https://twitter.com/alice/status/42?utm_source=share")
    result = await registry.extract_with_cache("https://x.com/alice/status/42/")

    assert result.source == Source.HYBRID
    assert len(fetcher.calls) == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_cache_entries_expire(registry, fetcher, clock, sample_urls, x_post_html):
    """Social posts live six hours in the cache"""
    fetcher.default = x_post_html
    url = sample_urls['x_post']

    await registry.extract_with_cache(url)
    clock.advance(hours=5, minutes=59)
    assert (await registry.extract_with_cache(url)).source == Source.HYBRID

    clock.advance(minutes=2)
    result = await registry.extract_with_cache(url)

    assert result.source == Source.SCRAPING
    assert len(fetcher.calls) == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_minimal_results_are_not_cached(registry, sample_urls):
    await registry.extract_with_cache(sample_urls['generic_page'])

    assert registry.get_cache_stats()["total"] == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_use_cache_false_bypasses_cache(registry, fetcher, sample_urls, youtube_html):
    fetcher.default = youtube_html
    url = sample_urls['youtube_watch']

    await registry.extract_with_cache(url, {"use_cache": False})
    result = await registry.extract_with_cache(url, {"use_cache": False})

    assert result.source == Source.SCRAPING
    assert len(fetcher.calls) == 2
    assert registry.get_cache_stats()["total"] == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_cache_maintenance(registry, fetcher, clock, sample_urls, youtube_html, x_post_html):
    """Stats, expiry cleanup and clearing"""
    fetcher.pages = {
        sample_urls['youtube_watch']: youtube_html,
        sample_urls['x_post']: x_post_html,
    }
    await registry.extract_with_cache(sample_urls['youtube_watch'])
    await registry.extract_with_cache(sample_urls['x_post'])

    stats = registry.get_cache_stats()
    assert stats["total"] == 2
    assert stats["expired"] == 0
    assert stats["size"] > 0

    # Past the social lifetime, inside the video one
    clock.advance(hours=7)
    assert registry.get_cache_stats()["expired"] == 1
    assert registry.clean_expired_cache() == 1
    assert registry.get_cache_stats()["total"] == 1

    registry.clear_cache(sample_urls['youtube_watch'])
    assert registry.get_cache_stats()["total"] == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_clear_whole_cache(registry, fetcher, sample_urls, youtube_html):
    fetcher.default = youtube_html
    await registry.extract_with_cache(sample_urls['youtube_watch'])
    await registry.extract_with_cache(sample_urls['youtube_short'])

    registry.clear_cache()

    assert registry.get_cache_stats()["total"] == 0


@pytest.mark.unit
def test_default_registry_builds_api_clients():
    """Without injected clients the bundled ones are configured from Config"""
    config = Config()
    config.x_bearer_token = "token"

    registry = create_default_registry(config=config)
    social = registry.get_extractor_for_type(ContentType.X)
    article = registry.get_extractor_for_type(ContentType.ARTICLE)

    assert social.api_client.is_available()
    assert not article.reader_client.is_available()
    assert registry.get_extractor_for_type(ContentType.GITHUB).repository_client.is_available()
