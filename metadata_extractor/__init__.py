"""
Metadata Extractor - content detection and metadata extraction for saved URLs.
"""

from .cache import MemoryCacheBackend, MetadataCache
from .detection import classify, extract_platform_id, normalize_url
from .extractors import ExtractorRegistry, create_default_registry
from .models import ContentMetadata, ContentType, ExtractorResult, Source
from .transform import to_legacy_shape

__version__ = "0.1.0"
__all__ = [
    "ContentMetadata",
    "ContentType",
    "ExtractorRegistry",
    "ExtractorResult",
    "MemoryCacheBackend",
    "MetadataCache",
    "Source",
    "classify",
    "create_default_registry",
    "extract_platform_id",
    "normalize_url",
    "to_legacy_shape",
]
