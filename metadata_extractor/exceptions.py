"""
Custom exceptions for the metadata extractor package.

This module provides specific exception types for better error handling
and more informative error messages.
"""

import asyncio
from typing import Optional, Dict, Any


class MetadataExtractorError(Exception):
    """Base exception for all metadata extractor errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class ConfigurationError(MetadataExtractorError):
    """Raised when there's a configuration issue."""
    pass


class ExtractorInitializationError(ConfigurationError):
    """Raised when the extractor registry cannot be built."""

    def __init__(self, component: str, reason: str):
        message = f"Failed to initialize {component}: {reason}"
        details = {"component": component, "reason": reason}
        super().__init__(message, details)


class InvalidURLError(MetadataExtractorError):
    """Raised when an invalid URL is provided."""

    def __init__(self, url: str, reason: str = "Invalid URL format"):
        message = f"Invalid URL: {reason}"
        details = {"url": url, "reason": reason}
        super().__init__(message, details)


class ValidationError(MetadataExtractorError):
    """Raised when input validation fails."""

    def __init__(self, field: str, value: Any, reason: str):
        message = f"Validation failed for field '{field}': {reason}"
        details = {"field": field, "value": value, "reason": reason}
        super().__init__(message, details)


class ExtractionError(MetadataExtractorError):
    """Raised when metadata extraction fails."""

    def __init__(self, url: str, source: str, reason: str):
        message = f"Failed to extract metadata via {source}"
        details = {"url": url, "source": source, "reason": reason}
        super().__init__(message, details)


class APIError(ExtractionError):
    """Raised when an external API returns an error."""

    def __init__(self, url: str, platform: str, api_response: Dict[str, Any], status_code: Optional[int] = None):
        reason = f"API error: {api_response.get('message', 'Unknown error')}"
        super().__init__(url, platform, reason)
        self.api_response = api_response
        self.status_code = status_code
        self.details.update({
            "api_response": api_response,
            "status_code": status_code
        })


class RateLimitExceededError(APIError):
    """Raised when an API rate limit is exhausted."""

    def __init__(self, url: str, platform: str, retry_after: Optional[int] = None):
        api_response: Dict[str, Any] = {"message": "Rate limit exceeded"}
        if retry_after:
            api_response["retry_after"] = retry_after
        super().__init__(url, platform, api_response, 429)
        self.retry_after = retry_after


class NetworkError(MetadataExtractorError):
    """Raised when a page or API cannot be reached."""

    def __init__(self, url: str, reason: str, retry_count: int = 0):
        message = f"Network error accessing {url}: {reason}"
        details = {"url": url, "reason": reason, "retry_count": retry_count}
        super().__init__(message, details)


class RequestTimeoutError(NetworkError):
    """Raised when a request times out."""

    def __init__(self, url: str, timeout_seconds: float, retry_count: int = 0):
        reason = f"Request timed out after {timeout_seconds} seconds"
        super().__init__(url, reason, retry_count)
        self.timeout_seconds = timeout_seconds


class HTTPStatusError(NetworkError):
    """Raised when a page fetch answers with a non-2xx status."""

    def __init__(self, url: str, status_code: int, reason: str = ""):
        super().__init__(url, f"HTTP {status_code}{': ' + reason if reason else ''}")
        self.status_code = status_code
        self.details["status_code"] = status_code


class CacheError(MetadataExtractorError):
    """Raised by cache backends that cannot serve a request."""

    def __init__(self, operation: str, reason: str):
        message = f"Cache {operation} failed: {reason}"
        details = {"operation": operation, "reason": reason}
        super().__init__(message, details)


def wrap_http_error(error: Exception, url: str, context: str = "",
                    timeout: float = 10.0, platform: str = "unknown") -> MetadataExtractorError:
    """
    Convert HTTP errors to more specific MetadataExtractorError types.

    Args:
        error: The original HTTP error
        url: The URL that caused the error
        context: Additional context about the operation
        timeout: The timeout that was in force, reported on timeouts
        platform: The API platform, reported on API errors

    Returns:
        An appropriate MetadataExtractorError subclass
    """
    import httpx

    if isinstance(error, MetadataExtractorError):
        return error

    if isinstance(error, httpx.TimeoutException):
        return RequestTimeoutError(url, timeout)

    elif isinstance(error, httpx.HTTPStatusError):
        status_code = error.response.status_code
        if status_code == 429:
            retry_after = error.response.headers.get("Retry-After")
            retry_after_int = int(retry_after) if retry_after and retry_after.isdigit() else None
            return RateLimitExceededError(url, platform, retry_after_int)
        return HTTPStatusError(url, status_code, error.response.reason_phrase)

    elif isinstance(error, httpx.TransportError):
        return NetworkError(url, f"Connection failed: {str(error)}")

    elif isinstance(error, (asyncio.TimeoutError, TimeoutError)):
        return RequestTimeoutError(url, timeout)

    elif isinstance(error, OSError):
        return NetworkError(url, f"Connection failed: {str(error)}")

    # Default fallback
    return MetadataExtractorError(f"HTTP error in {context}: {str(error)}", {"url": url, "original_error": str(error)})


def create_user_friendly_error(error: Exception, url: Optional[str] = None) -> str:
    """
    Create a user-friendly error message from any exception.

    Args:
        error: The exception to convert
        url: Optional URL context

    Returns:
        A user-friendly error message
    """
    if isinstance(error, InvalidURLError):
        return f"❌ Invalid URL: {error.details.get('reason', 'Please check the URL format')}"

    elif isinstance(error, RateLimitExceededError):
        retry_after = error.retry_after
        if retry_after:
            return f"⏳ Rate limit exceeded. Please try again in {retry_after} seconds."
        return "⏳ Rate limit exceeded. Please try again later."

    elif isinstance(error, RequestTimeoutError):
        return f"⏱️ Request timed out after {error.timeout_seconds} seconds. Please try again."

    elif isinstance(error, HTTPStatusError):
        return f"🌐 The page answered with HTTP {error.status_code}."

    elif isinstance(error, NetworkError):
        return f"🌐 Network error: {error.details.get('reason', 'Please check your internet connection')}"

    elif isinstance(error, APIError):
        platform = error.details.get("source", "API")
        return f"🔌 {platform.title()} API error: {error.details.get('reason', 'Service temporarily unavailable')}"

    elif isinstance(error, ConfigurationError):
        return f"⚙️ Configuration error: {error.message}"

    elif isinstance(error, ValidationError):
        field = error.details.get("field", "input")
        reason = error.details.get("reason", "invalid value")
        return f"📝 Invalid {field}: {reason}"

    elif isinstance(error, MetadataExtractorError):
        return f"❌ {error.message}"

    else:
        return "❌ An unexpected error occurred. Please try again later."
