import pytest
from metadata_extractor.utils.validation import (
    validate_url, validate_extraction_options, sanitize_url, MAX_HTML_LENGTH
)
from metadata_extractor.exceptions import ValidationError, InvalidURLError


@pytest.mark.unit
def test_validate_url_success():
    """Test successful URL validation"""
    valid_urls = [
        "https://x.com/alice/status/42",
        "http://example.com/path",
        "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        "https://subdomain.example.org/resource"
    ]

    for url in valid_urls:
        assert validate_url(url) is True


@pytest.mark.unit
def test_validate_url_failures():
    """Test URL validation failures"""
    test_cases = [
        ("", "URL cannot be empty"),
        ("   ", "URL cannot be empty after trimming"),
        ("not-a-url", "URL must include a scheme"),
        ("ftp://example.com", "URL scheme must be one of"),
        ("https://", "URL must include a domain name"),
        ("https://invalid..domain", "Invalid domain name format"),
        ("https://[::1", "Failed to parse URL"),
    ]

    for url, expected_error in test_cases:
        with pytest.raises(InvalidURLError) as exc_info:
            validate_url(url)
        assert expected_error in str(exc_info.value)


@pytest.mark.unit
def test_validate_url_non_string():
    with pytest.raises(InvalidURLError, match="non-string"):
        validate_url(None)


@pytest.mark.unit
def test_validate_url_accepts_real_world_hosts():
    """Underscore labels, IDN hosts and IP literals are valid hosts"""
    valid_urls = [
        "https://my_service.example.com/status",
        "https://münchen.de/stadt",
        "https://例え.jp/",
        "http://127.0.0.1:8000/health",
        "http://[::1]/health",
        "https://example.com./page",
    ]

    for url in valid_urls:
        assert validate_url(url) is True


@pytest.mark.unit
def test_validate_url_rejects_malformed_labels():
    for url in ["https://bad host.com", "https://" + "a" * 64 + ".com", "https://.example.com"]:
        with pytest.raises(InvalidURLError, match="Invalid domain name format"):
            validate_url(url)


@pytest.mark.unit
def test_validate_url_custom_schemes():
    """Test URL validation with custom allowed schemes"""
    assert validate_url("ftp://example.com", allow_schemes=["ftp"]) is True

    with pytest.raises(InvalidURLError):
        validate_url("ftp://example.com", allow_schemes=["https"])


@pytest.mark.unit
def test_sanitize_url():
    """Test URL sanitization"""
    assert sanitize_url("  https://example.com/page  ") == "https://example.com/page"
    assert sanitize_url("https://example.com/pa\x00ge\n") == "https://example.com/page"

    with pytest.raises(InvalidURLError):
        sanitize_url("")

    with pytest.raises(InvalidURLError):
        sanitize_url("javascript:alert(1)")


@pytest.mark.unit
def test_validate_extraction_options_success():
    """Test successful extraction options validation"""
    options = {
        'timeout': 30,
        'use_cache': False,
        'html': '<html></html>',
    }

    validated = validate_extraction_options(options)

    assert validated == {'timeout': 30.0, 'use_cache': False, 'html': '<html></html>'}
    assert validate_extraction_options({}) == {}
    assert validate_extraction_options({'timeout': None, 'html': None}) == {}


@pytest.mark.unit
def test_validate_extraction_options_failures():
    """Test extraction options validation failures"""
    test_cases = [
        ("not a dict", "Options must be a dictionary"),
        ({'timeout': -1}, "Timeout must be a positive number"),
        ({'timeout': 'fast'}, "Timeout must be a positive number"),
        ({'timeout': True}, "Timeout must be a positive number"),
        ({'timeout': 61}, "Timeout cannot exceed 60 seconds"),
        ({'use_cache': 'yes'}, "use_cache must be a boolean"),
        ({'html': 42}, "html must be a string"),
        ({'html': 'x' * (MAX_HTML_LENGTH + 1)}, "html cannot exceed"),
        ({'retries': 3, 'batch': 1}, "Unknown options: batch, retries"),
    ]

    for options, expected_error in test_cases:
        with pytest.raises(ValidationError) as exc_info:
            validate_extraction_options(options)
        assert expected_error in str(exc_info.value)
