"""
URL Reachability Checking

Checks whether bookmark URLs still respond and maps the outcome to a
UrlStatus. A HEAD request is tried first, falling back to GET for servers
that reject HEAD.
"""

import logging
from typing import Any, Dict, Iterable, Optional

import requests
from requests.adapters import HTTPAdapter

from .data_models import Bookmark, UrlStatus

# Servers that refuse HEAD answer with one of these
HEAD_REJECTED_CODES = {405, 501}

DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; BookmarkAgent/1.0)",
    "Accept": "*/*",
}


class URLChecker:
    """Checks bookmark URLs with a shared requests session."""

    def __init__(
        self,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the checker.

        Args:
            timeout: Request timeout in seconds
            session: Optional preconfigured session
        """
        self.timeout = timeout
        self.session = session or self._create_session()
        self.logger = logging.getLogger(__name__)

    def _create_session(self) -> requests.Session:
        """Create configured requests session"""
        session = requests.Session()
        adapter = HTTPAdapter(max_retries=1, pool_connections=10, pool_maxsize=20)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        session.headers.update(DEFAULT_HEADERS)
        return session

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "URLChecker":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def check(self, url: Optional[str]) -> UrlStatus:
        """
        Check a single URL.

        An empty URL counts as valid. Any 2xx or 3xx answer is valid;
        other status codes and network errors are invalid.
        """
        if not url or not url.strip():
            return UrlStatus.VALID

        try:
            response = self.session.head(url, timeout=self.timeout, allow_redirects=True)
            if response.status_code in HEAD_REJECTED_CODES:
                response = self.session.get(
                    url, timeout=self.timeout, allow_redirects=True, stream=True
                )
                response.close()
        except requests.exceptions.RequestException as e:
            self.logger.debug(f"URL check failed for {url}: {e}")
            return UrlStatus.INVALID

        if 200 <= response.status_code < 400:
            return UrlStatus.VALID

        self.logger.debug(f"URL {url} answered HTTP {response.status_code}")
        return UrlStatus.INVALID

    def check_all(self, bookmarks: Iterable[Bookmark]) -> Dict[str, UrlStatus]:
        """
        Check every bookmark that is not marked as ignored.

        Returns:
            Mapping of bookmark id to status
        """
        results: Dict[str, UrlStatus] = {}
        for bookmark in bookmarks:
            if bookmark.url_status == UrlStatus.IGNORED or not bookmark.id:
                continue
            results[bookmark.id] = self.check(bookmark.url)

        invalid = sum(1 for s in results.values() if s == UrlStatus.INVALID)
        self.logger.info(f"Checked {len(results)} URLs, {invalid} invalid")
        return results


def status_patch(status: UrlStatus) -> Dict[str, Any]:
    """Repository patch recording a check result."""
    return {"urlStatus": status.value, "unreachable": status == UrlStatus.INVALID}
