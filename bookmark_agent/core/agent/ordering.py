"""
Stable Ordering Helpers

Explicit merge sort plus the bookmark sort used both for the ephemeral
view and for persisting an order across the whole collection.
"""

from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, TypeVar

from ..data_models import Bookmark, parse_timestamp

T = TypeVar("T")

# Alias -> bookmark attribute
SORT_KEY_ALIASES = {
    "folder": "folder_id",
    "folderid": "folder_id",
    "name": "title",
    "stars": "rating",
    "created": "created_at",
    "createdat": "created_at",
    "date": "created_at",
    "added": "created_at",
    "modified": "updated_at",
    "updated": "updated_at",
    "updatedat": "updated_at",
    "favicon": "favicon_url",
    "faviconurl": "favicon_url",
    "urlstatus": "url_status",
    "status": "url_status",
}

TIMESTAMP_KEYS = ("created_at", "updated_at")

DEFAULT_SORT_KEY = "title"


def merge_sort(items: Sequence[T], compare: Callable[[T, T], int]) -> List[T]:
    """
    Stable merge sort with a three-way comparator.

    Elements comparing equal keep their input order. The input is not
    modified.
    """
    if len(items) <= 1:
        return list(items)

    middle = len(items) // 2
    left = merge_sort(items[:middle], compare)
    right = merge_sort(items[middle:], compare)

    merged = []
    i = j = 0
    while i < len(left) and j < len(right):
        # Take from the left on ties
        if compare(right[j], left[i]) < 0:
            merged.append(right[j])
            j += 1
        else:
            merged.append(left[i])
            i += 1
    merged.extend(left[i:])
    merged.extend(right[j:])
    return merged


def normalize_sort_key(sort_by: Any) -> str:
    """Map a user or model supplied sort key to a bookmark attribute name."""
    raw = str(sort_by if sort_by not in (None, "") else DEFAULT_SORT_KEY).strip()
    lowered = raw.lower()
    if lowered in SORT_KEY_ALIASES:
        return SORT_KEY_ALIASES[lowered]
    return lowered or DEFAULT_SORT_KEY


def normalize_order(order: Any) -> str:
    """Anything starting with "asc" is ascending, everything else descending."""
    text = str(order if order not in (None, "") else "asc").strip().lower()
    return "asc" if text.startswith("asc") else "desc"


@dataclass(frozen=True)
class SortCriterion:
    """Sort key and direction for ordering bookmarks."""

    sort_by: str = DEFAULT_SORT_KEY
    order: str = "asc"

    @classmethod
    def create(cls, sort_by: Any = None, order: Any = None) -> "SortCriterion":
        return cls(sort_by=normalize_sort_key(sort_by), order=normalize_order(order))

    @property
    def ascending(self) -> bool:
        return self.order == "asc"

    def describe(self) -> str:
        direction = "ascending" if self.ascending else "descending"
        return f"{direction} by {self.sort_by}"


def sort_value(bookmark: Bookmark, key: str) -> Any:
    """Comparable value of a bookmark for a normalized sort key."""
    if key == "rating":
        return bookmark.rating or 0
    if key in TIMESTAMP_KEYS:
        return parse_timestamp(bookmark.get_field(key))
    return bookmark.get_field_text(key).lower()


def _compare(a: Any, b: Any) -> int:
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


def sort_bookmarks(
    bookmarks: Sequence[Bookmark], criterion: Optional[SortCriterion] = None
) -> List[Bookmark]:
    """
    Stable sort of bookmarks by a criterion.

    Descending order uses a reversed comparator rather than reversing the
    result, so ties keep their input order in both directions.
    """
    criterion = criterion or SortCriterion()
    key = criterion.sort_by
    direction = 1 if criterion.ascending else -1

    def compare(a: Bookmark, b: Bookmark) -> int:
        return direction * _compare(sort_value(a, key), sort_value(b, key))

    return merge_sort(bookmarks, compare)
