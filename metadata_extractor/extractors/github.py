"""
Repository extractor for GitHub: the REST API when reachable, else the page.
"""

import logging
import re
from typing import Any, Dict, Optional, Tuple

from ..interfaces import RepositoryApiClient
from ..models import ContentType, RepositoryInfo, Source
from ..patterns import GITHUB_REPOSITORY
from .base import API_CONFIDENCE, BaseExtractor, ExtractorOptions, to_int

logger = logging.getLogger(__name__)

SCRAPE_CONFIDENCE = 0.8

# "GitHub - owner/repo: description"
PAGE_TITLE = re.compile(r'^GitHub\s+-\s+[\w.-]+/[\w.-]+:?\s*(.*)$')


def repository_for(url: str) -> Tuple[Optional[str], Optional[str]]:
    """``(owner, repository)`` from a repository URL, else ``(None, None)``."""
    match = GITHUB_REPOSITORY.search(url.strip()) if isinstance(url, str) else None
    if not match:
        return None, None
    return match.group(1), match.group(2)


def _owner_author(owner: Optional[str], avatar: Optional[str] = None) -> Optional[Dict[str, Any]]:
    if not owner:
        return None
    return {
        "name": owner,
        "username": owner,
        "profile_url": f"https://github.com/{owner}",
        "profile_image": avatar,
    }


class RepositoryExtractor(BaseExtractor):
    """
    Extracts GitHub repositories with star, fork and language counts.

    Args:
        repository_client: RepositoryApiClient; without one only scraping runs
    """

    content_type = ContentType.GITHUB
    name = "github"

    def __init__(self, repository_client: Optional[RepositoryApiClient] = None, **kwargs):
        super().__init__(**kwargs)
        self.repository_client = repository_client

    def strategies(self):
        return [self.try_api, self.try_scrape]

    async def try_api(self, options: ExtractorOptions):
        if self.repository_client is None or not self.repository_client.is_available():
            return None

        owner, repository = repository_for(options.url)
        if not owner:
            return None

        info = await self.repository_client.fetch_repository(owner, repository)
        if info is None:
            logger.info("GitHub API had no data for %s, falling back to scraping", options.url)
            return None

        return self.make_result(self.from_repository(info, options.url), API_CONFIDENCE, Source.API)

    def from_repository(self, info: RepositoryInfo, url: str) -> Dict[str, Any]:
        return {
            "url": url,
            "title": info.full_name or f"{info.owner}/{info.name}",
            "description": info.description,
            "thumbnail": info.owner_avatar,
            "site_name": "GitHub",
            "published_at": info.created_at,
            "owner": info.owner,
            "repository": info.name,
            "stars": info.stars,
            "forks": info.forks,
            "open_issues": info.open_issues,
            "programming_language": info.language,
            "license": info.license,
            "default_branch": info.default_branch,
            "tags": info.topics,
            "author": _owner_author(info.owner, info.owner_avatar),
        }

    async def try_scrape(self, options: ExtractorOptions):
        _, document = await self.load_page(options)
        url = options.url

        basic = self.extract_basic_metadata(document, url)
        owner, repository = repository_for(url)

        description = basic.get("description")
        title_match = PAGE_TITLE.match(basic["title"])
        if title_match and not description:
            description = title_match.group(1) or None

        stars = self._counter(document, "repo-stars-counter-star")
        forks = self._counter(document, "repo-network-counter")
        language = self._text_of(document.find(attrs={"itemprop": "programmingLanguage"}))

        data = {
            **basic,
            "title": f"{owner}/{repository}" if owner else basic["title"],
            "description": description,
            "site_name": "GitHub",
            "owner": owner,
            "repository": repository,
            "stars": stars,
            "forks": forks,
            "programming_language": language,
            "author": _owner_author(owner) or basic.get("author"),
        }
        return self.make_result(data, SCRAPE_CONFIDENCE, Source.SCRAPING)

    def _counter(self, document: Any, element_id: str) -> Optional[int]:
        """Exact count from a repository counter's ``title``, e.g. ``title="52,107"``."""
        tag = document.find(id=element_id)
        if tag is None:
            return None
        return to_int(self._attr_of(tag, "title")) or to_int(self._text_of(tag))

    def url_fields(self, url: str) -> Dict[str, Any]:
        fields = super().url_fields(url)
        owner, repository = repository_for(url)
        fields.update({
            "owner": owner,
            "repository": repository,
            "author": _owner_author(owner),
        })
        return fields
