"""
URL pattern tables used by the content classifier.

CONTENT_PATTERNS is ordered: when two families could match the same URL the
earlier entry wins. Patterns are matched against the lower-cased URL.
"""

import re
from typing import Dict, List, Optional, Pattern, Tuple

from .models import ContentType, ContentTypeInfo

_AMAZON_TLD = r'(com|co\.\w+|ca|de|fr|es|it|co\.uk|co\.jp|com\.br|com\.mx|com\.au|in|nl|sg|ae)'
_IMDB_OR_NETFLIX = [
    r'^https?://(www\.)?imdb\.com/title/tt\d+',
    r'^https?://(www\.)?netflix\.com/title/\d+',
]

_RAW_CONTENT_PATTERNS: List[Tuple[ContentType, List[str]]] = [
    # Social
    (ContentType.X, [
        r'^https?://(www\.|mobile\.)?(twitter\.com|x\.com)/\w+/status/\d+',
        r'^https?://(www\.|mobile\.)?(twitter\.com|x\.com)/\w+/?$',
    ]),
    (ContentType.INSTAGRAM, [
        r'^https?://(www\.)?instagram\.com/p/[\w-]+',
        r'^https?://(www\.)?instagram\.com/reel/[\w-]+',
        r'^https?://(www\.)?instagram\.com/tv/[\w-]+',
        r'^https?://(www\.)?instagram\.com/[\w.]+',
    ]),
    (ContentType.YOUTUBE, [
        r'^https?://(www\.|m\.)?(youtube\.com|youtu\.be)/(watch\?v=|embed/|v/|shorts/)[\w-]+',
        r'^https?://youtu\.be/[\w-]+',
        r'^https?://(www\.)?youtube\.com/live/[\w-]+',
        r'^https?://(www\.)?youtube\.com/@[\w-]+',
        r'^https?://(www\.)?youtube\.com/channel/[\w-]+',
        r'^https?://(www\.)?youtube\.com/c/[\w-]+',
    ]),
    (ContentType.LINKEDIN, [
        r'^https?://(www\.)?linkedin\.com/posts/',
        r'^https?://(www\.)?linkedin\.com/feed/update/',
        r'^https?://(www\.)?linkedin\.com/in/',
    ]),
    (ContentType.TIKTOK, [
        r'^https?://(www\.)?tiktok\.com/@[\w.-]+/video/\d+',
        r'^https?://(www\.)?tiktok\.com/@[\w.-]+',
        r'^https?://(vm|vt)\.tiktok\.com/[\w-]+',
    ]),
    (ContentType.REDDIT, [
        r'^https?://(www\.|old\.)?reddit\.com/r/\w+/comments/\w+',
        r'^https?://(www\.|old\.)?reddit\.com/r/\w+',
        r'^https?://(www\.|old\.)?reddit\.com/user/\w+',
    ]),
    (ContentType.FACEBOOK, [
        r'^https?://(www\.)?facebook\.com/[\w.]+/posts/\d+',
        r'^https?://(www\.)?facebook\.com/[\w.]+/videos/\d+',
        r'^https?://(www\.)?facebook\.com/watch',
        r'^https?://(www\.)?facebook\.com/[\w.]+',
    ]),
    # Development
    (ContentType.GITHUB, [
        r'^https?://(www\.)?github\.com/[\w-]+/[\w.-]+',
        r'^https?://gist\.github\.com/',
    ]),
    (ContentType.GITLAB, [
        r'^https?://(www\.)?gitlab\.com/[\w-]+/[\w.-]+',
    ]),
    (ContentType.CODEPEN, [
        r'^https?://(www\.)?codepen\.io/[\w-]+/pen/[\w-]+',
    ]),
    (ContentType.STACKOVERFLOW, [
        r'^https?://(www\.)?stackoverflow\.com/questions/\d+',
    ]),
    (ContentType.DEVTO, [
        r'^https?://(www\.)?dev\.to/[\w-]+/[\w-]+',
    ]),
    (ContentType.NPM, [
        r'^https?://(www\.)?npmjs\.com/package/[\w@/.-]+',
    ]),
    (ContentType.DOCUMENTATION, [
        r'^https?://docs\.[\w.-]+\.\w+',
        r'^https?://[\w.-]+\.readthedocs\.io',
    ]),
    # Content & media
    # medium, substack and notion are left to DOMAIN_HEURISTICS
    (ContentType.ARTICLE, []),
    (ContentType.PDF, []),
    (ContentType.IMAGE, []),
    (ContentType.VIDEO, []),
    (ContentType.AUDIO, [
        r'^https?://open\.spotify\.com/(track|album|playlist|artist|episode|show)/[\w-]+',
        r'^https?://(www\.)?soundcloud\.com/[\w-]+/[\w-]+',
        r'^https?://(www\.)?anchor\.fm/',
        r'^https?://(www\.)?overcast\.fm/',
        r'^https?://(www\.)?pocketcasts\.com/',
        r'^https?://(www\.)?castbox\.fm/',
    ]),
    (ContentType.PRESENTATION, [
        r'^https?://(www\.)?slideshare\.net/',
        r'^https?://docs\.google\.com/presentation/',
    ]),
    # Commerce
    (ContentType.PRODUCT, [
        r'^https?://[^/]+/(store|shop|product|item|buy|purchase)/[\w-]+',
        r'^https?://[^/]+/[\w-]+/(store|shop|products?)/[\w-]+',
        r'^https?://[^/]+\.(engineering|design|tech|gear|audio)/store/[\w-]+',
    ]),
    (ContentType.AMAZON, [
        r'^https?://(www\.)?amazon\.' + _AMAZON_TLD + r'/.*/dp/[\w-]+',
        r'^https?://(www\.)?amazon\.' + _AMAZON_TLD + r'/dp/[\w-]+',
        r'^https?://(www\.)?amazon\.' + _AMAZON_TLD + r'/gp/product/[\w-]+',
        r'^https?://(www\.)?amzn\.to/[\w-]+',
    ]),
    (ContentType.ETSY, [
        r'^https?://(www\.)?etsy\.com/listing/\d+',
        r'^https?://(www\.)?etsy\.com/[\w-]+/listing/\d+',
    ]),
    (ContentType.APP, [
        r'^https?://apps\.apple\.com/',
        r'^https?://play\.google\.com/store/apps/',
    ]),
    # Knowledge
    (ContentType.WIKIPEDIA, [
        r'^https?://(\w+\.)?(m\.)?wikipedia\.org/wiki/',
    ]),
    (ContentType.PAPER, [
        r'^https?://(www\.)?arxiv\.org/',
        r'^https?://(www\.)?pubmed\.ncbi\.nlm\.nih\.gov/',
        r'^https?://(www\.)?scholar\.google\.com/',
    ]),
    (ContentType.BOOK, [
        r'^https?://(www\.)?goodreads\.com/book/',
    ]),
    (ContentType.COURSE, [
        r'^https?://(www\.)?coursera\.org/',
        r'^https?://(www\.)?udemy\.com/',
        r'^https?://(www\.)?edx\.org/',
        r'^https?://(www\.)?khanacademy\.org/',
    ]),
    # Entertainment; tv-show shares the movie table and is only reachable
    # through map_legacy_type or an explicit caller choice.
    (ContentType.MOVIE, _IMDB_OR_NETFLIX),
    (ContentType.TV_SHOW, _IMDB_OR_NETFLIX),
    # Personal
    (ContentType.NOTE, []),
    (ContentType.BOOKMARK, []),
    (ContentType.RECIPE, [
        r'^https?://(www\.)?allrecipes\.com/',
        r'^https?://(www\.)?foodnetwork\.com/',
        r'^https?://(www\.)?seriouseats\.com/',
    ]),
    (ContentType.LOCATION, [
        r'^https?://(www\.)?google\.(com|[\w.]+)/maps',
        r'^https?://maps\.google\.(com|[\w.]+)',
        r'^https?://goo\.gl/maps/[\w-]+',
        r'^https?://maps\.app\.goo\.gl/[\w-]+',
    ]),
    (ContentType.UNKNOWN, []),
]

CONTENT_PATTERNS: List[Tuple[ContentType, List[Pattern]]] = [
    (content_type, [re.compile(p) for p in patterns])
    for content_type, patterns in _RAW_CONTENT_PATTERNS
]

# Checked in this order against the lower-cased path; "document" covers
# office formats and classifies as documentation.
FILE_EXTENSION_PATTERNS: List[Tuple[ContentType, Pattern]] = [
    (ContentType.PDF, re.compile(r'\.pdf$')),
    (ContentType.IMAGE, re.compile(r'\.(jpg|jpeg|png|gif|webp|svg|bmp|ico|tiff?|avif|heic)$')),
    (ContentType.VIDEO, re.compile(r'\.(mp4|webm|ogg|avi|mov|wmv|flv|mkv|m4v|mpg|mpeg)$')),
    (ContentType.AUDIO, re.compile(r'\.(mp3|wav|flac|aac|oga|wma|m4a|opus)$')),
    (ContentType.DOCUMENTATION, re.compile(r'\.(doc|docx|xls|xlsx|ppt|pptx|txt|rtf|odt|ods|odp)$')),
]

# (hostname substring, path substring or None, type)
DOMAIN_HEURISTICS: List[Tuple[str, Optional[str], ContentType]] = [
    ('arxiv.org', None, ContentType.PAPER),
    ('medium.com', None, ContentType.ARTICLE),
    ('substack.com', None, ContentType.ARTICLE),
    ('docs.google.com', '/document/', ContentType.DOCUMENTATION),
    ('docs.google.com', '/presentation/', ContentType.PRESENTATION),
    ('notion.so', None, ContentType.NOTE),
]


def _info(display_name: str, category: str, **flags) -> ContentTypeInfo:
    return ContentTypeInfo(display_name=display_name, category=category, **flags)


CONTENT_TYPE_INFO: Dict[ContentType, ContentTypeInfo] = {
    ContentType.X: _info('X', 'social', has_comments=True),
    ContentType.INSTAGRAM: _info('Instagram', 'social', has_comments=True),
    ContentType.YOUTUBE: _info('YouTube', 'media', has_transcript=True, has_comments=True),
    ContentType.LINKEDIN: _info('LinkedIn', 'social', has_comments=True, requires_auth=True),
    ContentType.TIKTOK: _info('TikTok', 'social', has_comments=True),
    ContentType.REDDIT: _info('Reddit', 'social', has_comments=True),
    ContentType.FACEBOOK: _info('Facebook', 'social', has_comments=True, requires_auth=True),
    ContentType.GITHUB: _info('GitHub', 'development'),
    ContentType.GITLAB: _info('GitLab', 'development'),
    ContentType.CODEPEN: _info('CodePen', 'development'),
    ContentType.STACKOVERFLOW: _info('Stack Overflow', 'development', has_comments=True),
    ContentType.DEVTO: _info('Dev.to', 'development', has_comments=True),
    ContentType.NPM: _info('NPM', 'development'),
    ContentType.DOCUMENTATION: _info('Documentation', 'development'),
    ContentType.ARTICLE: _info('Article', 'media'),
    ContentType.PDF: _info('PDF', 'media'),
    ContentType.IMAGE: _info('Image', 'media'),
    ContentType.VIDEO: _info('Video', 'media'),
    ContentType.AUDIO: _info('Audio', 'media'),
    ContentType.PRESENTATION: _info('Presentation', 'media'),
    ContentType.PRODUCT: _info('Product', 'commerce'),
    ContentType.AMAZON: _info('Amazon', 'commerce'),
    ContentType.ETSY: _info('Etsy', 'commerce'),
    ContentType.APP: _info('App', 'commerce'),
    ContentType.WIKIPEDIA: _info('Wikipedia', 'knowledge'),
    ContentType.PAPER: _info('Academic Paper', 'knowledge'),
    ContentType.BOOK: _info('Book', 'knowledge'),
    ContentType.COURSE: _info('Course', 'knowledge'),
    ContentType.MOVIE: _info('Movie', 'entertainment'),
    ContentType.TV_SHOW: _info('TV Show', 'entertainment'),
    ContentType.NOTE: _info('Note', 'personal'),
    ContentType.BOOKMARK: _info('Bookmark', 'generic'),
    ContentType.RECIPE: _info('Recipe', 'personal'),
    ContentType.LOCATION: _info('Location', 'personal'),
    ContentType.UNKNOWN: _info('Unknown', 'generic'),
}

# Platform-native identifiers. Each entry is tried in order; the first
# capture group wins unless the entry says otherwise.
YOUTUBE_VIDEO_ID = re.compile(r'(?:v=|/shorts/|/embed/|/live/|/v/|youtu\.be/)([a-zA-Z0-9_-]{11})')
YOUTUBE_HANDLE = re.compile(r'/@([\w.-]+)')
YOUTUBE_CHANNEL = re.compile(r'/(?:channel|c)/([\w-]+)')

X_STATUS_ID = re.compile(r'status(?:es)?/(\d+)')
X_USERNAME = re.compile(r'(?:twitter|x)\.com/(\w+)/status', re.IGNORECASE)
INSTAGRAM_SHORTCODE = re.compile(r'/(p|reel|reels|tv)/([\w-]+)')
TIKTOK_VIDEO_ID = re.compile(r'video/(\d+)')
TIKTOK_USERNAME = re.compile(r'tiktok\.com/@([\w.-]+)', re.IGNORECASE)
REDDIT_POST_ID = re.compile(r'comments/(\w+)')
GITHUB_REPOSITORY = re.compile(
    r'^https?://(?:www\.)?github\.com/([\w-]+)/([\w.-]+?)(?:\.git)?(?:[/?#]|$)', re.IGNORECASE
)
AMAZON_ASIN = re.compile(r'/(?:dp|gp/product)/([A-Z0-9]{10})', re.IGNORECASE)
AUDIO_ITEM = re.compile(r'/(track|album|playlist|artist|episode|show)/([\w-]+)')

# Query parameters dropped by normalize_url.
TRACKING_PARAMS = frozenset([
    'utm_source',
    'utm_medium',
    'utm_campaign',
    'utm_term',
    'utm_content',
    'fbclid',
    'gclid',
])

TWITTER_HOST = re.compile(r'^https?://(www\.|mobile\.)?twitter\.com(?=[/?#:]|$)', re.IGNORECASE)

# Storefronts without a content type of their own; the product extractor
# claims them in addition to the commerce types.
MARKETPLACE_PATTERNS = [
    re.compile(r'^https?://(www\.)?ebay\.(com|co\.uk|de|fr|it|es|ca|com\.au)/itm/'),
    re.compile(r'^https?://[\w-]+\.myshopify\.com/products/'),
]
