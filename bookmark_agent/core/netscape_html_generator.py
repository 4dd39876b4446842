"""
Netscape HTML Bookmark Generator

Generates bookmark files in the Netscape-Bookmark-file-1 format that
browsers import. Bookmarks without a folder are written at the top level;
the others are grouped under one <H3> heading per folder label.
"""

import html
import logging
from typing import Dict, List, Sequence

from .data_models import Bookmark, parse_timestamp

HEADER = (
    "<!DOCTYPE NETSCAPE-Bookmark-file-1>\n"
    "<!-- This is an automatically generated file. -->\n"
    "<!-- DO NOT EDIT! -->\n"
    '<META HTTP-EQUIV="Content-Type" CONTENT="text/html; charset=UTF-8">\n'
    "<TITLE>{title}</TITLE>\n"
    "<H1>{title}</H1>\n"
)


def _unix_seconds(value) -> str:
    """Unix seconds for an ISO timestamp, "" when missing."""
    if not value:
        return ""
    seconds = parse_timestamp(value)
    return str(int(seconds)) if seconds else ""


class NetscapeHTMLGenerator:
    """Generator for Netscape-format HTML bookmark files."""

    def __init__(self):
        """Initialize the generator."""
        self.logger = logging.getLogger(__name__)

    def generate(self, bookmarks: Sequence[Bookmark], title: str = "Bookmarks") -> str:
        """
        Generate the HTML document for a list of bookmarks.

        Args:
            bookmarks: Bookmarks in the order to write them
            title: Document title and heading

        Returns:
            HTML text
        """
        root: List[Bookmark] = []
        folders: Dict[str, List[Bookmark]] = {}
        for bookmark in bookmarks:
            if bookmark.folder_id:
                folders.setdefault(bookmark.folder_id, []).append(bookmark)
            else:
                root.append(bookmark)

        lines = [HEADER.format(title=html.escape(title)).rstrip("\n"), "<DL><p>"]
        for bookmark in root:
            lines.append(f"    {self._bookmark_line(bookmark)}")

        for folder, members in folders.items():
            lines.append(f"    <DT><H3>{html.escape(folder)}</H3>")
            lines.append("    <DL><p>")
            for bookmark in members:
                lines.append(f"        {self._bookmark_line(bookmark)}")
            lines.append("    </DL><p>")

        lines.append("</DL><p>")

        self.logger.debug(
            f"Generated HTML for {len(bookmarks)} bookmarks in {len(folders)} folders"
        )
        return "\n".join(lines) + "\n"

    def _bookmark_line(self, bookmark: Bookmark) -> str:
        attrs = [
            f'HREF="{html.escape(bookmark.url or "", quote=True)}"',
            f'ADD_DATE="{_unix_seconds(bookmark.created_at)}"',
            f'LAST_MODIFIED="{_unix_seconds(bookmark.updated_at)}"',
        ]
        if bookmark.favicon_url:
            attrs.append(f'ICON="{html.escape(bookmark.favicon_url, quote=True)}"')
        if bookmark.description:
            attrs.append(f'DESCRIPTION="{html.escape(bookmark.description, quote=True)}"')
        if bookmark.tags:
            attrs.append(f'TAGS="{html.escape(",".join(bookmark.tags), quote=True)}"')

        title = html.escape(bookmark.title or bookmark.url or "")
        return f"<DT><A {' '.join(attrs)}>{title}</A>"
