"""
Action Vocabulary for Agent Plans.

Defines the action names the agent understands, their classification and
the ActionStep model every plan is made of.
"""

import math
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

# View actions (executed by the pipeline)
SEARCH_BOOKMARKS = "searchBookmarks"
FIND_INCLUDES = "findIncludes"
FIND_STARTS_WITH = "findStartsWith"
FIND_WITH_TAGS = "findWithTags"
FILTER_BY_RATING = "filterByRating"
SORT_BOOKMARKS = "sortBookmarks"
LIMIT_RESULTS = "limitResults"
LIMIT_FIRST = "limitFirst"
LIMIT_LAST = "limitLast"

# Side-effect actions
IMPORT_BOOKMARKS = "importBookmarks"
EXPORT_BOOKMARKS = "exportBookmarks"
RESET_SEARCH = "resetSearch"
SHOW_ALL_BOOKMARKS = "showAllBookmarks"
REMOVE_DUPLICATES = "removeDuplicates"
REORDER = "reorder"
REORDER_ASCENDING = "reorderAscending"
REORDER_DESCENDING = "reorderDescending"
PERSIST_SORTED_ORDER = "persistSortedOrder"
HELP = "help"

# Pseudo action recorded when a request fails
ERROR = "error"

VIEW_ACTIONS = frozenset(
    {
        SEARCH_BOOKMARKS,
        FIND_INCLUDES,
        FIND_STARTS_WITH,
        FIND_WITH_TAGS,
        FILTER_BY_RATING,
        SORT_BOOKMARKS,
        LIMIT_RESULTS,
        LIMIT_FIRST,
        LIMIT_LAST,
    }
)

SIDE_EFFECT_ACTIONS = frozenset(
    {
        IMPORT_BOOKMARKS,
        EXPORT_BOOKMARKS,
        RESET_SEARCH,
        SHOW_ALL_BOOKMARKS,
        REMOVE_DUPLICATES,
        REORDER,
        REORDER_ASCENDING,
        REORDER_DESCENDING,
        PERSIST_SORTED_ORDER,
        HELP,
    }
)

# A plan containing one of these replaces the previous plan instead of stacking
RESET_ACTIONS = frozenset({RESET_SEARCH, SHOW_ALL_BOOKMARKS})

# Actions that write the sorted order back to the repository
PERSIST_ACTIONS = frozenset(
    {REORDER, REORDER_ASCENDING, REORDER_DESCENDING, PERSIST_SORTED_ORDER}
)

# Removed from the plan once the order has been persisted
REORDER_CLASS_ACTIONS = PERSIST_ACTIONS | {SORT_BOOKMARKS}

_STEP_KEYS = ("action", "parameters", "priority", "reasoning")


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not math.isnan(value)


class ActionStep(BaseModel):
    """
    One step of an agent plan.

    Parameters given at the top level of the step object are folded into
    ``parameters``. Non-numeric priorities are treated as absent.
    """

    model_config = ConfigDict(frozen=True)

    action: str
    parameters: Dict[str, Any] = Field(default_factory=dict)
    priority: Optional[float] = None
    reasoning: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def fold_top_level_parameters(cls, data: Any) -> Any:
        """Normalize the loose shapes language models produce."""
        if not isinstance(data, dict):
            return data

        raw_params = data.get("parameters")
        parameters = dict(raw_params) if isinstance(raw_params, dict) else {}
        for key, value in data.items():
            if key not in _STEP_KEYS:
                parameters.setdefault(key, value)

        priority = data.get("priority")
        reasoning = data.get("reasoning")

        return {
            "action": data.get("action"),
            "parameters": parameters,
            "priority": float(priority) if _is_number(priority) else None,
            "reasoning": reasoning if isinstance(reasoning, str) else None,
        }

    @property
    def has_priority(self) -> bool:
        return self.priority is not None

    def to_dict(self) -> Dict[str, Any]:
        """Plain dictionary form, omitting unset optional fields."""
        return self.model_dump(exclude_none=True)


def search_step(term: str, reasoning: Optional[str] = None) -> ActionStep:
    """Build the substring search step used as the fallback plan."""
    return ActionStep(
        action=SEARCH_BOOKMARKS,
        parameters={"searchTerm": term},
        reasoning=reasoning,
    )


def error_step(message: str) -> ActionStep:
    """Build the pseudo step recording a failed request."""
    return ActionStep(action=ERROR, parameters={}, reasoning=message)


def action_names(steps: List[ActionStep]) -> List[str]:
    return [step.action for step in steps]
