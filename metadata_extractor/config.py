"""
Configuration management for the metadata extractor package.
"""

import os
from typing import Dict, Optional
from dataclasses import dataclass, field

from .exceptions import ConfigurationError

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/125.0.0.0 Safari/537.36"
)

HOUR = 60 * 60


@dataclass
class HTTPConfig:
    """HTTP client configuration."""
    max_connections: int = 100
    max_keepalive_connections: int = 20
    keepalive_expiry: float = 30.0
    timeout: float = 10.0
    max_retries: int = 0
    retry_backoff_factor: float = 1.0
    user_agent: str = DEFAULT_USER_AGENT


@dataclass
class RateLimitConfig:
    """Outbound rate limits, in requests per second."""
    x_api: float = 0.5
    reader_api: float = 1.0
    github_api: float = 1.0
    default: float = 2.0

    def to_dict(self) -> Dict[str, float]:
        """Convert to dictionary for HTTP client."""
        return {
            'api.twitter.com': self.x_api,
            'r.jina.ai': self.reader_api,
            'api.github.com': self.github_api,
        }


@dataclass
class CacheConfig:
    """Result cache configuration; lifetimes are in seconds."""
    enabled: bool = True
    key_prefix: str = "metadata:"
    social_ttl_seconds: int = 6 * HOUR
    video_ttl_seconds: int = 12 * HOUR
    long_form_ttl_seconds: int = 48 * HOUR
    default_ttl_seconds: int = 24 * HOUR


@dataclass
class Config:
    """Main configuration class."""
    http: HTTPConfig = field(default_factory=HTTPConfig)
    rate_limits: RateLimitConfig = field(default_factory=RateLimitConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)

    # API Keys
    x_bearer_token: Optional[str] = None
    reader_api_key: Optional[str] = None
    github_token: Optional[str] = None

    def __post_init__(self):
        """Load configuration from environment variables."""
        self._load_from_env()

    def _load_from_env(self):
        """Load configuration from environment variables."""
        # API Keys
        self.x_bearer_token = os.getenv('X_BEARER_TOKEN', self.x_bearer_token)
        self.reader_api_key = os.getenv('JINA_AI_API_KEY', self.reader_api_key)
        self.github_token = os.getenv('GITHUB_TOKEN', self.github_token)

        # HTTP Configuration
        if os.getenv('HTTP_MAX_CONNECTIONS'):
            self.http.max_connections = int(os.getenv('HTTP_MAX_CONNECTIONS'))

        if os.getenv('HTTP_TIMEOUT'):
            self.http.timeout = float(os.getenv('HTTP_TIMEOUT'))

        if os.getenv('HTTP_MAX_RETRIES'):
            self.http.max_retries = int(os.getenv('HTTP_MAX_RETRIES'))

        if os.getenv('HTTP_USER_AGENT'):
            self.http.user_agent = os.getenv('HTTP_USER_AGENT')

        # Rate Limits
        if os.getenv('RATE_LIMIT_X_API'):
            self.rate_limits.x_api = float(os.getenv('RATE_LIMIT_X_API'))

        if os.getenv('RATE_LIMIT_READER_API'):
            self.rate_limits.reader_api = float(os.getenv('RATE_LIMIT_READER_API'))

        if os.getenv('RATE_LIMIT_GITHUB_API'):
            self.rate_limits.github_api = float(os.getenv('RATE_LIMIT_GITHUB_API'))

        # Cache Configuration
        if os.getenv('CACHE_ENABLED'):
            self.cache.enabled = os.getenv('CACHE_ENABLED').lower() in ('true', '1', 'yes')

        if os.getenv('CACHE_TTL_SOCIAL'):
            self.cache.social_ttl_seconds = int(os.getenv('CACHE_TTL_SOCIAL'))

        if os.getenv('CACHE_TTL_VIDEO'):
            self.cache.video_ttl_seconds = int(os.getenv('CACHE_TTL_VIDEO'))

        if os.getenv('CACHE_TTL_LONG_FORM'):
            self.cache.long_form_ttl_seconds = int(os.getenv('CACHE_TTL_LONG_FORM'))

        if os.getenv('CACHE_TTL_DEFAULT'):
            self.cache.default_ttl_seconds = int(os.getenv('CACHE_TTL_DEFAULT'))

    def validate(self) -> None:
        """Validate configuration values."""
        errors = []

        # Validate HTTP config
        if self.http.max_connections <= 0:
            errors.append("HTTP max_connections must be positive")

        if self.http.timeout <= 0:
            errors.append("HTTP timeout must be positive")

        if self.http.max_retries < 0:
            errors.append("HTTP max_retries cannot be negative")

        # Validate rate limits
        if self.rate_limits.x_api <= 0:
            errors.append("X API rate limit must be positive")

        if self.rate_limits.reader_api <= 0:
            errors.append("Reader API rate limit must be positive")

        if self.rate_limits.github_api <= 0:
            errors.append("GitHub API rate limit must be positive")

        if self.rate_limits.default <= 0:
            errors.append("Default rate limit must be positive")

        # Validate cache config
        for name in ('social_ttl_seconds', 'video_ttl_seconds',
                     'long_form_ttl_seconds', 'default_ttl_seconds'):
            if getattr(self.cache, name) < 0:
                errors.append(f"Cache {name} cannot be negative")

        if not self.cache.key_prefix:
            errors.append("Cache key_prefix cannot be empty")

        if errors:
            raise ConfigurationError(f"Configuration validation failed: {'; '.join(errors)}")

    def get_api_key(self, platform: str) -> Optional[str]:
        """Get API key for a specific platform."""
        key_mapping = {
            'x': self.x_bearer_token,
            'reader': self.reader_api_key,
            'github': self.github_token,
        }
        return key_mapping.get(platform.lower())

    def is_platform_configured(self, platform: str) -> bool:
        """Check if a platform is properly configured."""
        api_key = self.get_api_key(platform)
        return api_key is not None and api_key.strip() != ""


# Global configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
        _config.validate()
    return _config


def set_config(config: Config) -> None:
    """Set the global configuration instance."""
    global _config
    config.validate()
    _config = config


def reset_config() -> None:
    """Reset the global configuration instance."""
    global _config
    _config = None
