"""
Reorder Persister

Writes a sort order for the whole collection back to the repository.
Filters and limits in the current plan are ignored; only the sort
criterion matters.
"""

import logging
from typing import Iterable, List, Optional

from ...utils.error_handler import RepositoryWriteError
from .actions import REORDER_CLASS_ACTIONS, SORT_BOOKMARKS, ActionStep
from .ordering import SortCriterion, sort_bookmarks

logger = logging.getLogger(__name__)


def strip_reorder_steps(plan: Iterable[ActionStep]) -> List[ActionStep]:
    """Remove sort and persist-order steps from a plan."""
    return [step for step in plan if step.action not in REORDER_CLASS_ACTIONS]


def resolve_criterion(
    step: ActionStep, plan: Optional[Iterable[ActionStep]] = None
) -> SortCriterion:
    """
    Work out the sort criterion for a persist-order step.

    The order comes from the step, or from its name ("reorderDescending"
    means descending), defaulting to ascending. The key comes from the
    step, then from the first sortBookmarks step of the plan, defaulting
    to the title.
    """
    params = step.parameters or {}

    order = params.get("order")
    if not order:
        order = "desc" if "descending" in step.action.lower() else "asc"

    sort_by = params.get("sortBy")
    if not sort_by:
        for candidate in plan or []:
            if candidate.action == SORT_BOOKMARKS and candidate.parameters.get("sortBy"):
                sort_by = candidate.parameters["sortBy"]
                break
    return SortCriterion.create(sort_by or "title", order)


class ReorderPersister:
    """Persists a sort order across every bookmark in a repository."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    async def persist(self, criterion: SortCriterion, repository) -> List[str]:
        """
        Sort the full collection and save the resulting order.

        Args:
            criterion: Sort key and direction
            repository: Bookmark repository to read from and write to

        Returns:
            The persisted id sequence

        Raises:
            RepositoryWriteError: If the repository fails to read or write
        """
        source_name = getattr(repository, "name", type(repository).__name__)
        try:
            bookmarks = await repository.list()
            ordered_ids = [b.id for b in sort_bookmarks(bookmarks, criterion) if b.id]
            try:
                await repository.reorder_bookmarks(ordered_ids)
            except NotImplementedError:
                self.logger.debug(
                    f"{source_name} has no reorder_bookmarks, using persist_sorted_order"
                )
                ordered_ids = await repository.persist_sorted_order(criterion)
        except RepositoryWriteError:
            raise
        except Exception as e:
            raise RepositoryWriteError(
                "Failed to persist new order",
                source_name=source_name,
                original_error=e,
            ) from e

        self.logger.info(
            f"Persisted order {criterion.describe()} for {len(ordered_ids)} bookmarks"
        )
        return list(ordered_ids or [])
