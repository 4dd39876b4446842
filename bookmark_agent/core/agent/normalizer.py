"""
Plan Normalizer

Puts parsed steps into execution order and classifies them.
"""

from typing import Iterable, List

from .actions import (
    PERSIST_ACTIONS,
    RESET_ACTIONS,
    SIDE_EFFECT_ACTIONS,
    ActionStep,
)
from .ordering import merge_sort


def _compare_priority(a: ActionStep, b: ActionStep) -> int:
    # Steps without a priority go after every prioritized step
    if a.priority is None and b.priority is None:
        return 0
    if a.priority is None:
        return 1
    if b.priority is None:
        return -1
    if a.priority < b.priority:
        return -1
    if a.priority > b.priority:
        return 1
    return 0


def normalize(steps: Iterable[ActionStep]) -> List[ActionStep]:
    """
    Order steps for execution.

    When any step carries a numeric priority the plan is stable-sorted
    ascending by priority; otherwise the given order is kept.

    Args:
        steps: Parsed action steps

    Returns:
        New list in execution order
    """
    steps = list(steps)
    if not any(step.has_priority for step in steps):
        return steps
    return merge_sort(steps, _compare_priority)


def is_side_effect(step: ActionStep) -> bool:
    """Whether the step acts outside the derived view."""
    return step.action in SIDE_EFFECT_ACTIONS


def is_reset(step: ActionStep) -> bool:
    return step.action in RESET_ACTIONS


def is_persist(step: ActionStep) -> bool:
    return step.action in PERSIST_ACTIONS


def contains_reset(steps: Iterable[ActionStep]) -> bool:
    return any(is_reset(step) for step in steps)


def view_steps(steps: Iterable[ActionStep]) -> List[ActionStep]:
    """Steps that shape the derived view, in their given order."""
    return [step for step in steps if not is_side_effect(step)]
