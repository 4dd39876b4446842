"""
Natural-Language Agent.

Turns free-text queries into plans of deterministic list operations over
the bookmark collection.

Main Components:
    - PlanParser: Extracts action steps from model output
    - normalize: Orders steps by priority
    - PipelineExecutor: Applies a plan to a bookmark list
    - ReorderPersister: Saves a sort order across the whole collection
    - AgentOrchestrator: Owns the stacked plan and runs the query cycle
"""

from .actions import ActionStep
from .executor import PipelineExecutor
from .normalizer import is_side_effect, normalize, view_steps
from .orchestrator import (
    AgentMessage,
    AgentOrchestrator,
    AgentResult,
    AgentState,
    SideEffectHandler,
)
from .ordering import SortCriterion, sort_bookmarks
from .parser import PlanParser
from .persister import ReorderPersister, resolve_criterion, strip_reorder_steps
from .prompt import build_prompt

__all__ = [
    "ActionStep",
    "PlanParser",
    "normalize",
    "is_side_effect",
    "view_steps",
    "PipelineExecutor",
    "SortCriterion",
    "sort_bookmarks",
    "ReorderPersister",
    "resolve_criterion",
    "strip_reorder_steps",
    "AgentOrchestrator",
    "AgentResult",
    "AgentState",
    "AgentMessage",
    "SideEffectHandler",
    "build_prompt",
]
