"""
Netscape HTML bookmark parser module.

This module parses browser bookmark exports in the Netscape bookmark file
format (``<DT><A HREF=... ADD_DATE=...>title</A>``). Each bookmark's folder
label is the text of the ``<H3>`` heading that precedes its enclosing
``<DL>`` list.
"""

import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

from bs4 import BeautifulSoup

from ..utils.error_handler import HTMLStructureError, ImportExportError
from .data_models import Bookmark, dedupe_tags, utc_now_iso


class NetscapeHTMLParser:
    """Parser for Netscape-format HTML bookmark files."""

    DOCTYPE_PATTERN = r"<!DOCTYPE\s+NETSCAPE-Bookmark-file-1>"

    def __init__(self):
        """Initialize the parser."""
        self.logger = logging.getLogger(__name__)

    def parse_file(self, file_path: Union[str, Path]) -> List[Bookmark]:
        """
        Parse a bookmark HTML file.

        Args:
            file_path: Path to the HTML file

        Returns:
            List of Bookmark objects in document order

        Raises:
            ImportExportError: If the file cannot be read
            HTMLStructureError: If the content is not a bookmark file
        """
        file_path = Path(file_path)
        try:
            with open(file_path, "r", encoding="utf-8", errors="replace") as f:
                content = f.read()
        except OSError as e:
            raise ImportExportError(f"Error reading file {file_path}: {e}") from e

        bookmarks = self.parse_string(content)
        self.logger.info(f"Parsed {len(bookmarks)} bookmarks from {file_path}")
        return bookmarks

    def parse_string(self, html_content: str) -> List[Bookmark]:
        """
        Parse bookmark HTML content.

        Args:
            html_content: Raw HTML

        Returns:
            List of Bookmark objects in document order

        Raises:
            HTMLStructureError: If the content has neither the Netscape
                DOCTYPE nor any <DL> list
        """
        soup = BeautifulSoup(html_content or "", "html.parser")

        if not re.search(self.DOCTYPE_PATTERN, html_content or "", re.IGNORECASE):
            if not soup.find("dl"):
                raise HTMLStructureError(
                    "No bookmark data found (missing DOCTYPE and <DL> elements)"
                )
            self.logger.warning("Netscape DOCTYPE not found, parsing anyway")

        bookmarks = []
        for a_tag in soup.find_all("a", href=True):
            bookmark = self._parse_bookmark_link(a_tag)
            if bookmark:
                bookmarks.append(bookmark)
        return bookmarks

    def _folder_label(self, a_tag) -> str:
        """Text of the <H3> right before the link's enclosing <DL>, or ""."""
        dl = a_tag.find_parent("dl")
        if dl is None:
            return ""
        heading = dl.find_previous_sibling()
        if heading is not None and heading.name == "h3":
            return heading.get_text().strip()
        return ""

    def _parse_bookmark_link(self, a_tag) -> Optional[Bookmark]:
        url = (a_tag.get("href") or "").strip()
        if not url:
            self.logger.warning("Bookmark found without URL, skipping")
            return None

        title = a_tag.get_text().strip() or url
        tags_attr = a_tag.get("tags") or ""
        now = utc_now_iso()

        return Bookmark(
            title=title,
            url=url,
            description=a_tag.get("description") or "",
            tags=dedupe_tags(tags_attr.split(",")),
            rating=0,
            folder_id=self._folder_label(a_tag),
            favicon_url=a_tag.get("icon") or "",
            created_at=self._parse_timestamp(a_tag.get("add_date")) or now,
            updated_at=self._parse_timestamp(a_tag.get("last_modified")) or now,
        )

    def _parse_timestamp(self, timestamp_str: Optional[str]) -> Optional[str]:
        """
        Convert a Unix timestamp (seconds) to an ISO-8601 string.

        Returns:
            ISO string or None if missing or invalid
        """
        if not timestamp_str:
            return None

        try:
            timestamp = int(timestamp_str)
            return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()
        except (ValueError, OverflowError, OSError) as e:
            self.logger.warning(f"Invalid timestamp format: {timestamp_str} - {e}")
            return None
