"""
Pipeline Executor

Applies a plan to a bookmark list as a left fold of list operations. The
executor is pure: it never modifies the source list or its bookmarks and
never raises. A step with unusable parameters leaves the list unchanged.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from ..data_models import Bookmark
from ..filters import (
    FieldContainsFilter,
    FieldPrefixFilter,
    RatingFilter,
    SearchTermFilter,
    TagSetFilter,
    as_number,
)
from . import actions
from .actions import ActionStep
from .normalizer import is_side_effect
from .ordering import SortCriterion, sort_bookmarks

logger = logging.getLogger(__name__)

StepHandler = Callable[[Dict[str, Any], List[Bookmark], Sequence[Bookmark]], List[Bookmark]]


def parse_count(value: Any) -> int:
    """Limit count as a whole number; anything unusable is 0."""
    number = as_number(value)
    if number is None or number != number:  # NaN
        return 0
    return int(number)


def limit(bookmarks: Sequence[Bookmark], count: Any, direction: str = "first") -> List[Bookmark]:
    """
    Keep the first or last ``count`` bookmarks.

    A non-numeric or non-positive count leaves the list unchanged.
    """
    n = parse_count(count)
    if n <= 0:
        return list(bookmarks)
    if direction == "last":
        return list(bookmarks[-n:])
    return list(bookmarks[:n])


def _text(value: Any, default: str = "") -> str:
    if value is None or value == "":
        return default
    if isinstance(value, (dict, list)):
        raise TypeError(f"expected text, got {type(value).__name__}")
    return str(value)


def _search(params, current, source):
    return SearchTermFilter(_text(params.get("searchTerm"))).filter(current)


def _find_includes(params, current, source):
    field = _text(params.get("field"), "title")
    return FieldContainsFilter(field, _text(params.get("value"))).filter(current)


def _find_starts_with(params, current, source):
    field = _text(params.get("field"), "title")
    return FieldPrefixFilter(field, _text(params.get("value"))).filter(current)


def _find_with_tags(params, current, source):
    tag_filter = TagSetFilter(
        include_tags=params.get("includeTags"),
        exclude_tags=params.get("excludeTags"),
    )
    return tag_filter.filter(current)


def _filter_by_rating(params, current, source):
    return RatingFilter.from_parameters(params).filter(current)


def _sort(params, current, source):
    criterion = SortCriterion.create(params.get("sortBy"), params.get("order"))
    return sort_bookmarks(current, criterion)


def _limit_results(params, current, source):
    base = source if params.get("scope") == "all" else current
    direction = "last" if params.get("direction") == "last" else "first"
    return limit(base, params.get("count"), direction)


def _limit_first(params, current, source):
    return limit(current, params.get("count"), "first")


def _limit_last(params, current, source):
    return limit(current, params.get("count"), "last")


class PipelineExecutor:
    """Executes action plans over bookmark lists."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.handlers: Dict[str, StepHandler] = {
            actions.SEARCH_BOOKMARKS: _search,
            actions.FIND_INCLUDES: _find_includes,
            actions.FIND_STARTS_WITH: _find_starts_with,
            actions.FIND_WITH_TAGS: _find_with_tags,
            actions.FILTER_BY_RATING: _filter_by_rating,
            actions.SORT_BOOKMARKS: _sort,
            actions.LIMIT_RESULTS: _limit_results,
            actions.LIMIT_FIRST: _limit_first,
            actions.LIMIT_LAST: _limit_last,
        }

    def execute(
        self, steps: Optional[Iterable[ActionStep]], source: Sequence[Bookmark]
    ) -> List[Bookmark]:
        """
        Fold the plan over the source list.

        Args:
            steps: Normalized plan (None or empty means no transformation)
            source: Full bookmark snapshot

        Returns:
            New list of bookmarks for display
        """
        source = list(source)
        current = list(source)

        for step in steps or []:
            if is_side_effect(step):
                continue

            handler = self.handlers.get(step.action)
            if handler is None:
                self.logger.debug(f"Skipping unknown action: {step.action}")
                continue

            try:
                current = handler(step.parameters or {}, current, source)
            except Exception as e:
                self.logger.warning(
                    f"Action {step.action} failed, leaving results unchanged: {e}"
                )

        return current
