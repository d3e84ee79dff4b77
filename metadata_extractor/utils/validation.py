"""
Validation utilities for the metadata extractor package.

This module provides validation functions for URLs and extraction options
with detailed error messages. The extraction pipeline itself accepts any
string; these checks are for callers that want to reject bad input early.
"""

import ipaddress
import re
from typing import Optional, List, Dict, Any
from urllib.parse import urlparse

from ..exceptions import ValidationError, InvalidURLError

# Letters (including non-ASCII), digits, underscore and hyphen per label
_LABEL_PATTERN = re.compile(r'[\w-]{1,63}')

MAX_TIMEOUT_SECONDS = 60
MAX_HTML_LENGTH = 5_000_000


def _is_valid_host(hostname: str) -> bool:
    """IP literals, or dotted labels that may carry underscores and IDN characters."""
    try:
        ipaddress.ip_address(hostname)
        return True
    except ValueError:
        pass
    labels = hostname.rstrip('.').split('.')
    return all(_LABEL_PATTERN.fullmatch(label) for label in labels)


def validate_url(url: str, allow_schemes: Optional[List[str]] = None) -> bool:
    """
    Validate a URL format.

    Args:
        url: The URL to validate
        allow_schemes: Optional list of allowed schemes (default: ['http', 'https'])

    Returns:
        True if URL is valid

    Raises:
        InvalidURLError: If URL is invalid
    """
    if not url or not isinstance(url, str):
        raise InvalidURLError(str(url), "URL cannot be empty or non-string")

    url = url.strip()
    if not url:
        raise InvalidURLError(url, "URL cannot be empty after trimming whitespace")

    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError as e:
        raise InvalidURLError(url, f"Failed to parse URL: {str(e)}")

    allowed_schemes = allow_schemes or ['http', 'https']
    if not parsed.scheme:
        raise InvalidURLError(url, "URL must include a scheme (http:// or https://)")

    if parsed.scheme.lower() not in allowed_schemes:
        raise InvalidURLError(url, f"URL scheme must be one of: {', '.join(allowed_schemes)}")

    if not hostname:
        raise InvalidURLError(url, "URL must include a domain name")

    if not _is_valid_host(hostname):
        raise InvalidURLError(url, "Invalid domain name format")

    return True


def sanitize_url(url: str) -> str:
    """
    Sanitize a URL by removing unsafe characters and normalizing format.

    Args:
        url: The URL to sanitize

    Returns:
        Sanitized URL

    Raises:
        InvalidURLError: If URL cannot be sanitized
    """
    if not url:
        raise InvalidURLError(str(url), "Cannot sanitize empty URL")

    url = url.strip()

    # Remove any null bytes or control characters
    url = ''.join(char for char in url if ord(char) >= 32)

    validate_url(url)

    return url


def validate_extraction_options(options: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate extraction options.

    Recognised keys are ``timeout`` (seconds), ``use_cache`` and ``html``
    (pre-fetched page source). Unknown keys are rejected.

    Args:
        options: Dictionary of extraction options

    Returns:
        Validated options dictionary

    Raises:
        ValidationError: If options are invalid
    """
    if not isinstance(options, dict):
        raise ValidationError("options", options, "Options must be a dictionary")

    unknown = sorted(set(options) - {'timeout', 'use_cache', 'html'})
    if unknown:
        raise ValidationError("options", unknown, f"Unknown options: {', '.join(unknown)}")

    validated: Dict[str, Any] = {}

    if options.get('timeout') is not None:
        timeout = options['timeout']
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ValidationError("timeout", timeout, "Timeout must be a positive number")
        if timeout > MAX_TIMEOUT_SECONDS:
            raise ValidationError("timeout", timeout, f"Timeout cannot exceed {MAX_TIMEOUT_SECONDS} seconds")
        validated['timeout'] = float(timeout)

    if 'use_cache' in options:
        use_cache = options['use_cache']
        if not isinstance(use_cache, bool):
            raise ValidationError("use_cache", use_cache, "use_cache must be a boolean")
        validated['use_cache'] = use_cache

    if options.get('html') is not None:
        html = options['html']
        if not isinstance(html, str):
            raise ValidationError("html", type(html).__name__, "html must be a string")
        if len(html) > MAX_HTML_LENGTH:
            raise ValidationError("html", len(html), f"html cannot exceed {MAX_HTML_LENGTH} characters")
        validated['html'] = html

    return validated
