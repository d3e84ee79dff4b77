"""
Pytest configuration and shared fixtures for metadata extractor tests.
"""

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from metadata_extractor.config import reset_config
from metadata_extractor.exceptions import HTTPStatusError, NetworkError
from metadata_extractor.models import RawApiPost, ReaderContent, RepositoryInfo

FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)

API_ENV_VARS = ('X_BEARER_TOKEN', 'JINA_AI_API_KEY', 'GITHUB_TOKEN')


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Set up test environment variables and paths"""
    project_root = Path(__file__).parent.parent
    os.environ['PYTHONPATH'] = str(project_root)

    # Tests must never reach the real APIs
    saved = {name: os.environ.pop(name, None) for name in API_ENV_VARS}

    yield

    for name, value in saved.items():
        if value is not None:
            os.environ[name] = value


@pytest.fixture(autouse=True)
def fresh_config():
    """Drop the global configuration between tests"""
    reset_config()
    yield
    reset_config()


class FakeClock:
    """Deterministic clock that tests can move forward."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeFetcher:
    """HtmlFetch stand-in serving canned pages and recording every call."""

    def __init__(self, pages: Optional[Dict[str, str]] = None, default: Optional[str] = None,
                 error: Optional[Exception] = None):
        self.pages = pages or {}
        self.default = default
        self.error = error
        self.calls: List[Dict] = []

    async def __call__(self, url: str, headers: Optional[Dict[str, str]] = None,
                       timeout: Optional[float] = None) -> str:
        self.calls.append({"url": url, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        if url in self.pages:
            return self.pages[url]
        if self.default is not None:
            return self.default
        raise HTTPStatusError(url, 404, "Not Found")


class FakeSocialClient:
    """SocialPlatformApiClient returning a fixed post."""

    def __init__(self, post: Optional[RawApiPost] = None, available: bool = True,
                 error: Optional[Exception] = None):
        self.post = post
        self.available = available
        self.error = error
        self.calls: List[str] = []

    def is_available(self) -> bool:
        return self.available

    async def fetch_post(self, url: str) -> Optional[RawApiPost]:
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return self.post


class FakeReaderClient:
    """ReaderApiClient returning fixed content."""

    def __init__(self, content: Optional[ReaderContent] = None, available: bool = True):
        self.content = content
        self.available = available
        self.calls: List[str] = []

    def is_available(self) -> bool:
        return self.available

    async def extract_content(self, url: str) -> Optional[ReaderContent]:
        self.calls.append(url)
        return self.content


class FakeRepositoryClient:
    """RepositoryApiClient returning a fixed repository."""

    def __init__(self, info: Optional[RepositoryInfo] = None, available: bool = True,
                 error: Optional[Exception] = None):
        self.info = info
        self.available = available
        self.error = error
        self.calls: List[tuple] = []

    def is_available(self) -> bool:
        return self.available

    async def fetch_repository(self, owner: str, name: str) -> Optional[RepositoryInfo]:
        self.calls.append((owner, name))
        if self.error is not None:
            raise self.error
        return self.info


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def network_error():
    return NetworkError("https://example.com", "Connection failed: refused")


@pytest.fixture
def sample_urls():
    """Provide sample URLs for testing"""
    return {
        'x_post': 'https://x.com/alice/status/42',
        'twitter_post': 'https://twitter.com/alice/status/42',
        'instagram_post': 'https://www.instagram.com/p/CxYz123abc/',
        'instagram_reel': 'https://www.instagram.com/reel/Cabc_12-3/',
        'youtube_watch': 'https://www.youtube.com/watch?v=dQw4w9WgXcQ',
        'youtube_short': 'https://www.youtube.com/shorts/abcdefghijk',
        'tiktok_video': 'https://www.tiktok.com/@someone/video/7234567890123456789',
        'github_repo': 'https://github.com/psf/requests',
        'amazon_product': 'https://www.amazon.com/Some-Gadget/dp/B08N5WRWNW',
        'shopify_product': 'https://cool-store.myshopify.com/products/blue-mug',
        'article': 'https://medium.com/@writer/a-long-read-123abc',
        'generic_page': 'https://example.com/some/page',
        'pdf': 'https://example.com/files/report.pdf',
        'ftp': 'ftp://files.example.com/readme',
        'malformed_url': 'not-a-url',
    }


@pytest.fixture
def x_post_html():
    return """
    <html><head>
      <title>Alice Example (@alice) on X</title>
      <meta property="og:title" content="Alice Example (@alice) on X" />
      <meta property="og:description" content="Shipping the new release today #python #release" />
      <meta property="og:image" content="https://pbs.twimg.com/media/abc.jpg" />
      <meta property="og:site_name" content="X (formerly Twitter)" />
      <meta name="twitter:card" content="summary_large_image" />
      <meta name="twitter:data1" content="1,204" />
      <meta name="twitter:data2" content="37" />
    </head><body></body></html>
    """


@pytest.fixture
def instagram_html():
    return """
    <html><head>
      <meta property="og:title" content='52K likes, 353 comments - someone on June 13, 2025: "Sunset over the bay"' />
      <meta property="og:description" content="Sunset over the bay" />
      <meta property="og:image" content="https://cdn.instagram.com/one.jpg" />
      <meta property="og:image" content="https://cdn.instagram.com/two.jpg" />
      <meta property="og:image" content="https://cdn.instagram.com/one.jpg" />
    </head><body></body></html>
    """


@pytest.fixture
def youtube_html():
    return """
    <html><head>
      <meta property="og:title" content="Never Gonna Give You Up" />
      <meta property="og:description" content="The official video." />
      <meta property="og:image" content="https://i.ytimg.com/vi/dQw4w9WgXcQ/maxresdefault.jpg" />
      <meta property="og:site_name" content="YouTube" />
      <meta itemprop="duration" content="PT3M33S" />
      <meta itemprop="channelId" content="UCuAXFkgsw1L7xaCfnd5JJOw" />
      <script type="application/ld+json">
        {"@type": "VideoObject", "author": {"name": "Rick Astley", "url": "https://www.youtube.com/@RickAstleyYT"}}
      </script>
    </head><body>
      <script>var ytInitialData = {"viewCount": "1500000000"};</script>
    </body></html>
    """


@pytest.fixture
def article_html():
    return """
    <html lang="en"><head>
      <title>A Long Read</title>
      <meta name="description" content="Why long reads still matter." />
      <meta property="og:site_name" content="Example Journal" />
      <meta name="author" content="Jane Writer" />
      <meta property="article:published_time" content="2025-05-01T08:00:00Z" />
      <link rel="icon" href="/favicon.ico" />
    </head><body>
      <nav>Home About</nav>
      <article>
        <h1>A Long Read</h1>
        <p>one two three four five six seven eight nine ten</p>
        <h2>Part One</h2>
        <p>eleven twelve</p>
        <h3>Details</h3>
      </article>
    </body></html>
    """


@pytest.fixture
def product_html():
    return """
    <html><head>
      <meta property="og:type" content="product" />
      <meta property="og:title" content="Blue Mug" />
      <meta property="product:price:amount" content="19.99" />
      <meta property="product:price:currency" content="USD" />
      <script type="application/ld+json">
        {
          "@context": "https://schema.org",
          "@type": "Product",
          "name": "Blue Mug",
          "sku": "MUG-001",
          "brand": {"@type": "Brand", "name": "Acme"},
          "offers": {"@type": "Offer", "price": "25.00", "priceCurrency": "EUR",
                     "availability": "https://schema.org/InStock"},
          "aggregateRating": {"ratingValue": "4.5", "reviewCount": "12"}
        }
      </script>
    </head><body></body></html>
    """


@pytest.fixture
def sample_api_post():
    return RawApiPost(
        post_id="42",
        text="Shipping the new release today #python",
        username="alice",
        display_name="Alice Example",
        profile_image="https://pbs.twimg.com/profile_images/alice.jpg",
        verified=True,
        published_at="2025-05-30T10:00:00.000Z",
        likes=120,
        retweets=8,
        replies=3,
        quotes=1,
        views=5000,
        thumbnail_url="https://pbs.twimg.com/media/thumb.jpg",
        video_variants=[
            {"url": "https://video.twimg.com/pl.m3u8", "content_type": "application/x-mpegURL"},
            {"url": "https://video.twimg.com/low.mp4", "content_type": "video/mp4", "bit_rate": 256000},
            {"url": "https://video.twimg.com/high.mp4", "content_type": "video/mp4", "bit_rate": 2176000},
        ],
        duration_ms=12500,
    )


@pytest.fixture
def tiktok_html():
    return """
    <html><head>
      <title>Sunset timelapse | TikTok</title>
      <meta property="og:title" content="Sunset timelapse" />
      <meta property="og:description" content='1.2M Likes, 3,456 Comments. TikTok video from Some One (@someone): "Sunset timelapse #sunset #travel"' />
      <meta property="og:image" content="https://p16-sign.tiktokcdn.com/cover.jpeg" />
    </head><body></body></html>
    """


@pytest.fixture
def github_html():
    return """
    <html><head>
      <title>GitHub - psf/requests: A simple, yet elegant, HTTP library.</title>
      <meta property="og:title" content="GitHub - psf/requests: A simple, yet elegant, HTTP library." />
      <meta property="og:image" content="https://opengraph.githubassets.com/1/psf/requests" />
      <meta property="og:site_name" content="GitHub" />
    </head><body>
      <span id="repo-stars-counter-star" title="52,107" class="Counter">52.1k</span>
      <span id="repo-network-counter" title="9,312" class="Counter">9.3k</span>
      <span itemprop="programmingLanguage">Python</span>
    </body></html>
    """


@pytest.fixture
def sample_repository():
    return RepositoryInfo(
        owner="psf",
        name="requests",
        full_name="psf/requests",
        description="A simple, yet elegant, HTTP library.",
        html_url="https://github.com/psf/requests",
        owner_avatar="https://avatars.githubusercontent.com/u/50211?v=4",
        stars=52107,
        forks=9312,
        open_issues=240,
        language="Python",
        license="Apache-2.0",
        default_branch="main",
        topics=["http", "python"],
        created_at="2011-02-13T18:38:17Z",
    )
