"""
Default capability providers: platform API clients and their rate limiting.
"""

from .github_api import GitHubApiClient
from .rate_limit import RateLimitTracker
from .reader_api import JinaReaderClient
from .x_api import XApiClient

__all__ = ["GitHubApiClient", "RateLimitTracker", "JinaReaderClient", "XApiClient"]
