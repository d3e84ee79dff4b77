"""
Core data models for the metadata extractor.

Metadata is modelled as a tagged union: every extraction produces one of the
family variants below, chosen by its ``content_type``. Models are frozen and
serialise with camelCase aliases, omitting absent fields.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, ClassVar, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, field_validator, model_validator
from pydantic.alias_generators import to_camel


class ContentType(str, Enum):
    """Closed set of content families a URL can classify to."""

    # Social
    X = "x"
    INSTAGRAM = "instagram"
    YOUTUBE = "youtube"
    LINKEDIN = "linkedin"
    TIKTOK = "tiktok"
    REDDIT = "reddit"
    FACEBOOK = "facebook"
    # Development
    GITHUB = "github"
    GITLAB = "gitlab"
    CODEPEN = "codepen"
    STACKOVERFLOW = "stackoverflow"
    DEVTO = "devto"
    NPM = "npm"
    DOCUMENTATION = "documentation"
    # Content & media
    ARTICLE = "article"
    PDF = "pdf"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    PRESENTATION = "presentation"
    # Commerce
    PRODUCT = "product"
    AMAZON = "amazon"
    ETSY = "etsy"
    APP = "app"
    # Knowledge
    WIKIPEDIA = "wikipedia"
    PAPER = "paper"
    BOOK = "book"
    COURSE = "course"
    # Entertainment
    MOVIE = "movie"
    TV_SHOW = "tv-show"
    # Personal
    NOTE = "note"
    BOOKMARK = "bookmark"
    RECIPE = "recipe"
    LOCATION = "location"
    # Fallback
    UNKNOWN = "unknown"


class Source(str, Enum):
    """Provenance of an extraction result."""
    API = "api"
    SCRAPING = "scraping"
    HYBRID = "hybrid"


class _Model(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape: camelCase keys, absent fields omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ContentTypeInfo(_Model):
    """Static descriptor attached to every detection result."""
    display_name: str
    category: str
    requires_auth: bool = False
    has_transcript: bool = False
    has_comments: bool = False


class DetectionResult(_Model):
    type: ContentType
    confidence: float = Field(ge=0.0, le=1.0)
    descriptor: ContentTypeInfo


class Author(_Model):
    name: str
    username: Optional[str] = None
    profile_url: Optional[str] = None
    profile_image: Optional[str] = None
    verified: Optional[bool] = None


class Engagement(_Model):
    likes: Optional[int] = None
    shares: Optional[int] = None
    comments: Optional[int] = None
    views: Optional[int] = None
    plays: Optional[int] = None
    saves: Optional[int] = None
    retweets: Optional[int] = None
    quotes: Optional[int] = None
    replies: Optional[int] = None


class MediaItem(_Model):
    url: str
    width: Optional[int] = None
    height: Optional[int] = None
    duration: Optional[str] = None
    thumbnail: Optional[str] = None
    format: Optional[str] = None
    bit_rate: Optional[int] = None


class MediaCollection(_Model):
    images: Optional[List[MediaItem]] = None
    videos: Optional[List[MediaItem]] = None
    audio: Optional[List[MediaItem]] = None


class ContentMetadata(_Model):
    """Base metadata shape shared by every content family."""

    family: ClassVar[Optional[ContentType]] = None

    url: str = Field(min_length=1)
    title: str = Field(min_length=1)
    content_type: ContentType
    extracted_at: datetime

    description: Optional[str] = None
    thumbnail: Optional[str] = None
    favicon: Optional[str] = None
    site_name: Optional[str] = None
    published_at: Optional[str] = None
    author: Optional[Author] = None
    engagement: Optional[Engagement] = None
    media: Optional[MediaCollection] = None
    tags: Optional[List[str]] = None
    keywords: Optional[List[str]] = None
    language: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _default_family(cls, data: Any) -> Any:
        if cls.family is not None and isinstance(data, dict):
            if "content_type" not in data and "contentType" not in data:
                data = {**data, "content_type": cls.family}
        return data

    @model_validator(mode="after")
    def _check_family(self) -> "ContentMetadata":
        if self.family is not None and self.content_type != self.family:
            raise ValueError(
                f"{type(self).__name__} requires content type {self.family.value}, "
                f"got {self.content_type.value}"
            )
        return self


class SocialPostMetadata(ContentMetadata):
    family: ClassVar[ContentType] = ContentType.X

    post_type: Literal["text", "image", "video"]
    post_id: Optional[str] = None
    caption: Optional[str] = None
    hashtags: Optional[List[str]] = None


class ImageGridMetadata(ContentMetadata):
    family: ClassVar[ContentType] = ContentType.INSTAGRAM

    post_type: Literal["post", "reel", "story", "igtv"]
    post_id: Optional[str] = None
    caption: Optional[str] = None
    carousel: Optional[List[MediaItem]] = None


class VideoMetadata(ContentMetadata):
    family: ClassVar[ContentType] = ContentType.YOUTUBE

    video_id: str = Field(min_length=1)
    channel_id: Optional[str] = None
    channel_name: Optional[str] = None
    channel_url: Optional[str] = None
    duration: Optional[str] = None
    is_short: Optional[bool] = None


class ShortVideoMetadata(ContentMetadata):
    family: ClassVar[ContentType] = ContentType.TIKTOK

    video_id: Optional[str] = None
    caption: Optional[str] = None
    hashtags: Optional[List[str]] = None


class RepositoryMetadata(ContentMetadata):
    family: ClassVar[ContentType] = ContentType.GITHUB

    owner: str = Field(min_length=1)
    repository: str = Field(min_length=1)
    stars: Optional[int] = None
    forks: Optional[int] = None
    open_issues: Optional[int] = None
    programming_language: Optional[str] = None
    license: Optional[str] = None
    default_branch: Optional[str] = None


class Section(_Model):
    title: str
    level: int


class Publication(_Model):
    name: str
    url: Optional[str] = None
    logo: Optional[str] = None


class ArticleMetadata(ContentMetadata):
    family: ClassVar[ContentType] = ContentType.ARTICLE

    word_count: Optional[int] = None
    reading_time: Optional[int] = None
    excerpt: Optional[str] = None
    sections: Optional[List[Section]] = None
    publication: Optional[Publication] = None


class Price(_Model):
    current: float
    currency: str
    original: Optional[float] = None
    discount: Optional[float] = None


class Rating(_Model):
    average: float
    count: Optional[int] = None


class ProductMetadata(ContentMetadata):
    family: ClassVar[ContentType] = ContentType.PRODUCT

    product_id: Optional[str] = None
    brand: Optional[str] = None
    price: Optional[Price] = None
    availability: Optional[str] = None
    rating: Optional[Rating] = None
    specifications: Optional[Dict[str, str]] = None


# ContentType -> variant. Types not listed use the base shape.
METADATA_VARIANTS = {
    ContentType.X: SocialPostMetadata,
    ContentType.INSTAGRAM: ImageGridMetadata,
    ContentType.YOUTUBE: VideoMetadata,
    ContentType.TIKTOK: ShortVideoMetadata,
    ContentType.GITHUB: RepositoryMetadata,
    ContentType.ARTICLE: ArticleMetadata,
    ContentType.PRODUCT: ProductMetadata,
}


def metadata_model_for(content_type: ContentType) -> type:
    return METADATA_VARIANTS.get(ContentType(content_type), ContentMetadata)


def _has_required_fields(model: type, data: Dict[str, Any]) -> bool:
    for name, info in model.model_fields.items():
        if info.is_required() and name not in data and (info.alias or name) not in data:
            return False
    return True


def _variant_tag(value: Any) -> str:
    """
    Pick the union member for ``value``.

    Instances keep their own class. Mappings use their content type's
    variant, or the base shape when the variant's required fields are
    missing.
    """
    if isinstance(value, ContentMetadata):
        family = type(value).family
        return family.value if family is not None else "generic"
    if not isinstance(value, dict):
        return "generic"

    try:
        content_type = ContentType(value.get("contentType", value.get("content_type")))
    except ValueError:
        return "generic"

    model = METADATA_VARIANTS.get(content_type)
    if model is None or not _has_required_fields(model, value):
        return "generic"
    return content_type.value


AnyContentMetadata = Annotated[
    Union[
        Annotated[SocialPostMetadata, Tag(ContentType.X.value)],
        Annotated[ImageGridMetadata, Tag(ContentType.INSTAGRAM.value)],
        Annotated[VideoMetadata, Tag(ContentType.YOUTUBE.value)],
        Annotated[ShortVideoMetadata, Tag(ContentType.TIKTOK.value)],
        Annotated[RepositoryMetadata, Tag(ContentType.GITHUB.value)],
        Annotated[ArticleMetadata, Tag(ContentType.ARTICLE.value)],
        Annotated[ProductMetadata, Tag(ContentType.PRODUCT.value)],
        Annotated[ContentMetadata, Tag("generic")],
    ],
    Discriminator(_variant_tag),
]


class ExtractorResult(_Model):
    metadata: AnyContentMetadata
    confidence: float = Field(ge=0.0, le=1.0)
    source: Source

    def with_source(self, source: Source) -> "ExtractorResult":
        return self.model_copy(update={"source": source})


class RawApiPost(_Model):
    """Normalised post payload returned by a social platform API client."""

    post_id: str
    text: Optional[str] = None
    username: Optional[str] = None
    display_name: Optional[str] = None
    profile_image: Optional[str] = None
    verified: Optional[bool] = None
    published_at: Optional[str] = None
    likes: Optional[int] = None
    retweets: Optional[int] = None
    replies: Optional[int] = None
    quotes: Optional[int] = None
    views: Optional[int] = None
    thumbnail_url: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    video_variants: List[Dict[str, Any]] = Field(default_factory=list)
    duration_ms: Optional[int] = None


class ReaderContent(_Model):
    """Payload returned by a reader / content-extraction API."""

    title: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None
    thumbnail_url: Optional[str] = None
    author: Optional[str] = None
    domain: Optional[str] = None
    published_at: Optional[str] = None
    site_name: Optional[str] = None
    language: Optional[str] = None

    @field_validator("title", "description", "content", "author", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class RepositoryInfo(_Model):
    """Repository payload returned by a code-hosting API client."""

    owner: str
    name: str
    full_name: Optional[str] = None
    description: Optional[str] = None
    html_url: Optional[str] = None
    homepage: Optional[str] = None
    owner_avatar: Optional[str] = None
    stars: Optional[int] = None
    forks: Optional[int] = None
    open_issues: Optional[int] = None
    language: Optional[str] = None
    license: Optional[str] = None
    default_branch: Optional[str] = None
    topics: List[str] = Field(default_factory=list)
    created_at: Optional[str] = None
    pushed_at: Optional[str] = None

    @field_validator("description", "homepage", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value
