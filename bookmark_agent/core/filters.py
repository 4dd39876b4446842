"""
Filter Infrastructure for the Agent Pipeline.

This module provides the bookmark filters behind the agent's
search and find actions.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Optional, Union

from .data_models import Bookmark

# Fields searched by a free-text search term
SEARCHABLE_FIELDS = ("title", "url", "description")


def as_number(value: Any) -> Optional[float]:
    """
    Interpret a parameter value as a number.

    Booleans are rejected; numeric strings are accepted.

    Returns:
        The number, or None when the value is not numeric
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def as_text_list(value: Any) -> List[str]:
    """Interpret a parameter as a list of strings (a lone string is one item)."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple, set)):
        return [str(v) for v in value if v is not None and str(v).strip()]
    return []


class BookmarkFilter(ABC):
    """Abstract base class for bookmark filters."""

    @abstractmethod
    def matches(self, bookmark: Bookmark) -> bool:
        """
        Check if a bookmark matches this filter.

        Args:
            bookmark: The bookmark to check

        Returns:
            True if the bookmark matches the filter criteria
        """
        pass

    def filter(self, bookmarks: Iterable[Bookmark]) -> List[Bookmark]:
        """
        Filter a list of bookmarks, preserving order.

        Args:
            bookmarks: Bookmarks to filter

        Returns:
            New list of bookmarks that match the filter
        """
        return [b for b in bookmarks if self.matches(b)]


class SearchTermFilter(BookmarkFilter):
    """
    Free-text search across title, URL, description and tags.

    Matching is a case-insensitive substring test. An empty term matches
    every bookmark.
    """

    def __init__(self, term: Any):
        self.term = "" if term is None else str(term)
        self._needle = self.term.lower()

    def matches(self, bookmark: Bookmark) -> bool:
        if not self._needle:
            return True
        for name in SEARCHABLE_FIELDS:
            if self._needle in bookmark.get_field_text(name).lower():
                return True
        return any(self._needle in str(tag).lower() for tag in bookmark.tags)


class FieldContainsFilter(BookmarkFilter):
    """Keep bookmarks whose field text contains a value (case-insensitive)."""

    def __init__(self, field: str, value: Any):
        self.field = field or "title"
        self._needle = ("" if value is None else str(value)).lower()

    def matches(self, bookmark: Bookmark) -> bool:
        return self._needle in bookmark.get_field_text(self.field).lower()


class FieldPrefixFilter(BookmarkFilter):
    """
    Keep bookmarks whose field starts with a value (case-insensitive).

    For the ``tags`` field a bookmark matches when any single tag starts with
    the value. An empty value matches every bookmark that has a field value;
    for tags it requires at least one tag.
    """

    def __init__(self, field: str, value: Any):
        self.field = field or "title"
        self._prefix = ("" if value is None else str(value)).lower()

    def matches(self, bookmark: Bookmark) -> bool:
        if self.field == "tags":
            return any(str(t).lower().startswith(self._prefix) for t in bookmark.tags)
        if not self._prefix:
            return True
        return bookmark.get_field_text(self.field).lower().startswith(self._prefix)


class TagSetFilter(BookmarkFilter):
    """
    Filter bookmarks by required and forbidden tags.

    A bookmark matches when its lower-cased tag set contains every include
    tag and none of the exclude tags.
    """

    def __init__(
        self,
        include_tags: Union[str, List[str], None] = None,
        exclude_tags: Union[str, List[str], None] = None,
    ):
        self.include_tags = {t.lower() for t in as_text_list(include_tags)}
        self.exclude_tags = {t.lower() for t in as_text_list(exclude_tags)}

    def matches(self, bookmark: Bookmark) -> bool:
        bookmark_tags = {str(t).lower() for t in bookmark.tags}
        if not self.include_tags.issubset(bookmark_tags):
            return False
        return not (self.exclude_tags & bookmark_tags)


class RatingFilter(BookmarkFilter):
    """
    Filter bookmarks by star rating.

    An exact rating wins over range bounds. Either bound may be omitted, in
    which case that side is unbounded. Unrated bookmarks count as 0.
    """

    def __init__(
        self,
        min_rating: Optional[float] = None,
        max_rating: Optional[float] = None,
        exact: Optional[float] = None,
    ):
        self.min_rating = min_rating
        self.max_rating = max_rating
        self.exact = exact

    @classmethod
    def from_parameters(cls, parameters: dict) -> "RatingFilter":
        """
        Build a rating filter from agent parameters.

        ``comparator="eq"`` without an ``exact`` value treats the single given
        bound as the exact rating.
        """
        min_rating = as_number(parameters.get("minRating"))
        max_rating = as_number(parameters.get("maxRating"))
        exact = as_number(parameters.get("exact"))
        comparator = str(parameters.get("comparator") or "").strip().lower()

        if exact is None and comparator == "eq":
            exact = min_rating if min_rating is not None else max_rating

        return cls(min_rating=min_rating, max_rating=max_rating, exact=exact)

    def matches(self, bookmark: Bookmark) -> bool:
        rating = bookmark.rating or 0
        if self.exact is not None:
            return rating == self.exact
        if self.min_rating is not None and rating < self.min_rating:
            return False
        if self.max_rating is not None and rating > self.max_rating:
            return False
        return True
