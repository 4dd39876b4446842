"""
Bookmark Import and Export

Reads and writes bookmark collections as JSON arrays or Netscape HTML
files.
"""

import json
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Union

from ..utils.error_handler import ImportExportError
from .data_models import Bookmark
from .netscape_html_generator import NetscapeHTMLGenerator
from .netscape_html_parser import NetscapeHTMLParser

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("json", "html")

_SUFFIX_FORMATS = {".json": "json", ".html": "html", ".htm": "html"}


def detect_format(path_or_text: Union[str, Path]) -> str:
    """
    Work out whether a file or text holds JSON or HTML bookmarks.

    Paths are judged by their suffix; text by its first characters.

    Raises:
        ImportExportError: If the format cannot be determined
    """
    if isinstance(path_or_text, Path):
        suffix = path_or_text.suffix.lower()
        if suffix in _SUFFIX_FORMATS:
            return _SUFFIX_FORMATS[suffix]
        text = path_or_text.read_text(encoding="utf-8", errors="replace")
    else:
        text = path_or_text
        # A bare file name rather than content
        if "\n" not in text and "<" not in text and not text.lstrip().startswith(("[", "{")):
            suffix = Path(text.strip()).suffix.lower()
            if suffix in _SUFFIX_FORMATS:
                return _SUFFIX_FORMATS[suffix]

    head = text.lstrip()[:1024].lower()
    if head.startswith("[") or head.startswith("{"):
        return "json"
    if "<!doctype netscape" in head or "<dl" in head or "<a " in head:
        return "html"
    raise ImportExportError("Unable to detect bookmark format (expected JSON or HTML)")


def parse_json(text: str) -> List[Bookmark]:
    """
    Parse a JSON array of bookmark objects.

    Missing titles default to the URL and tags are de-duplicated.

    Raises:
        ImportExportError: If the text is not valid JSON or not an array
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ImportExportError(
            f"Error parsing JSON. Please ensure it is valid JSON ({e.msg})."
        ) from e

    if not isinstance(data, list):
        raise ImportExportError("Invalid JSON format. Expected an array of bookmarks.")

    bookmarks = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            logger.warning(f"Skipping non-object entry at index {index}")
            continue
        bookmarks.append(Bookmark.from_dict(item))
    return bookmarks


def parse_html(text: str) -> List[Bookmark]:
    """Parse Netscape bookmark HTML."""
    return NetscapeHTMLParser().parse_string(text)


def load_bookmarks(path: Union[str, Path], fmt: Optional[str] = None) -> List[Bookmark]:
    """
    Load bookmarks from a JSON or HTML file.

    Args:
        path: File to read
        fmt: Format override ("json" or "html")

    Returns:
        List of imported bookmarks

    Raises:
        ImportExportError: If the file cannot be read or parsed
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise ImportExportError(f"Error reading file {path}: {e}") from e

    fmt = fmt or (_SUFFIX_FORMATS.get(path.suffix.lower()) or detect_format(text))
    bookmarks = parse_json(text) if fmt == "json" else parse_html(text)

    logger.info(f"Imported {len(bookmarks)} bookmarks from {path} ({fmt})")
    return bookmarks


def export_json(bookmarks: Sequence[Bookmark], indent: int = 2) -> str:
    """Serialize bookmarks as a JSON array in wire form."""
    return json.dumps([b.to_dict() for b in bookmarks], indent=indent, ensure_ascii=False)


def export_html(bookmarks: Sequence[Bookmark], title: str = "Bookmarks") -> str:
    """Serialize bookmarks as a Netscape HTML document."""
    return NetscapeHTMLGenerator().generate(bookmarks, title=title)


def save_bookmarks(
    bookmarks: Sequence[Bookmark],
    path: Union[str, Path],
    fmt: Optional[str] = None,
) -> Path:
    """
    Write bookmarks to a JSON or HTML file.

    Args:
        bookmarks: Bookmarks to write
        path: Destination file
        fmt: Format override; otherwise taken from the suffix (JSON default)

    Returns:
        Path written

    Raises:
        ImportExportError: If the format is unsupported or the write fails
    """
    path = Path(path)
    fmt = fmt or _SUFFIX_FORMATS.get(path.suffix.lower(), "json")
    if fmt not in SUPPORTED_FORMATS:
        raise ImportExportError(f"Unsupported export format: {fmt}")

    content = export_json(bookmarks) if fmt == "json" else export_html(bookmarks)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise ImportExportError(f"Failed to write {path}: {e}") from e

    logger.info(f"Exported {len(bookmarks)} bookmarks to {path} ({fmt})")
    return path
