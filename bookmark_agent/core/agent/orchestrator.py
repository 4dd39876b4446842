"""
Agent Orchestrator

Owns the conversational state of the agent: the current (stacked) plan and
the latest repository snapshot. Each query is sent to the language model,
parsed into a plan, stacked onto the previous plan and its side effects are
dispatched. Failures never escape; they degrade to a substring search for
the raw query.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, List, Optional, Tuple

from ...utils.error_handler import (
    ErrorDetails,
    ErrorHandler,
    RepositoryError,
    RepositoryReadError,
)
from ..data_models import Bookmark, UrlStatus
from ..duplicate_detector import find_duplicates
from . import actions
from .actions import ActionStep, error_step, search_step
from .executor import PipelineExecutor
from .normalizer import contains_reset, is_persist, normalize
from .parser import PlanParser
from .persister import ReorderPersister, resolve_criterion, strip_reorder_steps
from .prompt import build_prompt

logger = logging.getLogger(__name__)

FALLBACK_REASONING = "Fallback search due to agent error."


# ============================================================================
# State and transitions
# ============================================================================


@dataclass(frozen=True)
class AgentState:
    """
    Immutable agent state.

    Attributes:
        plan: Current stacked plan
        snapshot: Latest full collection from the repository
        last_request: Sequence number of the most recent query
        error: Error pseudo-step of the last failed query, if any
    """

    plan: Tuple[ActionStep, ...] = ()
    snapshot: Tuple[Bookmark, ...] = ()
    last_request: int = 0
    error: Optional[ActionStep] = None


def begin_request(state: AgentState) -> AgentState:
    return replace(state, last_request=state.last_request + 1)


def replace_plan(state: AgentState, steps: Iterable[ActionStep]) -> AgentState:
    return replace(state, plan=tuple(steps), error=None)


def stack_plan(state: AgentState, steps: Iterable[ActionStep]) -> AgentState:
    """Append new steps to the plan, unless they contain a reset action."""
    steps = tuple(steps)
    if contains_reset(steps):
        return replace_plan(state, steps)
    return replace_plan(state, state.plan + steps)


def fail_with_fallback(state: AgentState, query: str, message: str) -> AgentState:
    """Record the failure and fall back to searching for the raw query."""
    return replace(
        state,
        plan=(search_step(query, FALLBACK_REASONING),),
        error=error_step(f"Failed to process request: {message}"),
    )


def strip_reorders(state: AgentState) -> AgentState:
    return replace(state, plan=tuple(strip_reorder_steps(state.plan)))


def with_snapshot(state: AgentState, bookmarks: Iterable[Bookmark]) -> AgentState:
    return replace(state, snapshot=tuple(bookmarks))


def reset(state: AgentState) -> AgentState:
    return replace(state, plan=(), error=None)


# ============================================================================
# Side effects
# ============================================================================


@dataclass
class AgentMessage:
    """User-visible message produced while handling a query."""

    text: str
    level: str = "info"  # info, success, warning, error


class SideEffectHandler:
    """
    Receives the agent's side effects.

    The default implementation only logs; front ends override the methods
    they can act on.
    """

    def open_help(self) -> None:
        logger.info("Help requested")

    def open_import_export(self, action: str) -> None:
        logger.info(f"Import/export requested ({action})")

    def stage_deletions(self, bookmark_ids: List[str]) -> None:
        logger.info(f"{len(bookmark_ids)} duplicate bookmarks staged for deletion")

    def show_message(self, message: str, level: str = "info") -> None:
        log = logger.error if level == "error" else logger.info
        log(message)


@dataclass
class AgentResult:
    """Outcome of one query cycle."""

    query: str
    steps: List[ActionStep] = field(default_factory=list)
    plan: List[ActionStep] = field(default_factory=list)
    view: List[Bookmark] = field(default_factory=list)
    messages: List[AgentMessage] = field(default_factory=list)
    pending_deletions: List[str] = field(default_factory=list)
    error: Optional[ErrorDetails] = None
    stale: bool = False

    @property
    def failed(self) -> bool:
        return self.error is not None


# ============================================================================
# Orchestrator
# ============================================================================


class AgentOrchestrator:
    """Drives the query cycle for one user session."""

    def __init__(
        self,
        client,
        repository,
        handler: Optional[SideEffectHandler] = None,
        parser: Optional[PlanParser] = None,
        executor: Optional[PipelineExecutor] = None,
        persister: Optional[ReorderPersister] = None,
        error_handler: Optional[ErrorHandler] = None,
        stack_plans: bool = True,
    ):
        """
        Initialize the orchestrator.

        Args:
            client: Language model client with an async ``generate(prompt)``
            repository: Bookmark repository
            handler: Receiver for dialogs, staged deletions and messages
            parser: Plan parser
            executor: Pipeline executor
            persister: Reorder persister
            error_handler: Error categorization and statistics
            stack_plans: Stack successive plans until a reset
        """
        self.client = client
        self.repository = repository
        self.handler = handler or SideEffectHandler()
        self.parser = parser or PlanParser()
        self.executor = executor or PipelineExecutor()
        self.persister = persister or ReorderPersister()
        self.error_handler = error_handler or ErrorHandler()
        self.stack_plans = stack_plans

        self.state = AgentState()
        self.pending_deletions: List[str] = []
        self._unsubscribe = None
        self.logger = logging.getLogger(__name__)

    # ------------------------------------------------------------------
    # Snapshot management
    # ------------------------------------------------------------------

    async def refresh(self) -> List[Bookmark]:
        """Reload the snapshot from the repository and return the view."""
        bookmarks = await self.repository.list()
        self.state = with_snapshot(self.state, bookmarks)
        return self.derived_view()

    def attach(self) -> None:
        """Subscribe to repository changes."""
        if self._unsubscribe is None:
            self._unsubscribe = self.repository.subscribe(self._on_repository_change)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_repository_change(self, bookmarks: List[Bookmark]) -> None:
        self.state = with_snapshot(self.state, bookmarks)

    @property
    def plan(self) -> List[ActionStep]:
        return list(self.state.plan)

    def derived_view(self) -> List[Bookmark]:
        """
        Execute the current plan over the snapshot.

        The stacked plan is put in priority order on every run, so a
        follow-up step lands where its priority says. Unreachable bookmarks are always shown as invalid.
        """
        view = self.executor.execute(normalize(self.state.plan), self.state.snapshot)
        return [
            b.with_patch({"url_status": UrlStatus.INVALID}) if b.unreachable else b
            for b in view
        ]

    # ------------------------------------------------------------------
    # Query cycle
    # ------------------------------------------------------------------

    async def submit(self, query: str) -> AgentResult:
        """
        Run one query through the model and apply the resulting plan.

        Args:
            query: Free-text user request

        Returns:
            AgentResult describing the new plan, view and messages. The
            result is marked stale, and the state left alone, when a newer
            query was submitted while this one was in flight.
        """
        if not query or not query.strip():
            return self._result(query or "")

        self.state = begin_request(self.state)
        request_id = self.state.last_request
        self.pending_deletions = []
        messages: List[AgentMessage] = []

        try:
            raw_text = await self.client.generate(build_prompt(query))
            steps = normalize(self.parser.parse(raw_text))
        except Exception as e:
            if request_id != self.state.last_request:
                return self._stale(query)
            return self._fail(query, e, messages)

        if request_id != self.state.last_request:
            self.logger.info(f"Discarding stale response for request {request_id}")
            return self._stale(query)

        self.logger.info(
            f"Query {query!r} planned as {actions.action_names(steps)}"
        )
        if self.stack_plans:
            self.state = stack_plan(self.state, steps)
        else:
            self.state = replace_plan(self.state, steps)

        await self._dispatch_side_effects(steps, messages)
        return self._result(query, steps=steps, messages=messages)

    async def _dispatch_side_effects(
        self, steps: List[ActionStep], messages: List[AgentMessage]
    ) -> None:
        for step in steps:
            if step.action == actions.HELP:
                self.handler.open_help()
            elif step.action in (actions.IMPORT_BOOKMARKS, actions.EXPORT_BOOKMARKS):
                self.handler.open_import_export(step.action)
            elif step.action == actions.REMOVE_DUPLICATES:
                self._stage_duplicates(messages)
            elif is_persist(step):
                await self._persist_order(step, messages)

    def _stage_duplicates(self, messages: List[AgentMessage]) -> None:
        duplicate_ids = find_duplicates(self.derived_view())
        if not duplicate_ids:
            self._say(messages, "No duplicate bookmarks found in the current view.")
            return
        self.pending_deletions = duplicate_ids
        self.handler.stage_deletions(list(duplicate_ids))
        self._say(
            messages,
            f"Found {len(duplicate_ids)} duplicate bookmark(s). Confirm to delete.",
            "warning",
        )

    async def _persist_order(
        self, step: ActionStep, messages: List[AgentMessage]
    ) -> None:
        criterion = resolve_criterion(step, self.state.plan)
        try:
            await self.persister.persist(criterion, self.repository)
            self.state = with_snapshot(self.state, await self._reload())
        except RepositoryError as e:
            self.error_handler.record(e, {"action": step.action})
            self._say(messages, "Failed to persist new order.", "error")
            return

        self.state = strip_reorders(self.state)
        self._say(messages, f"Reordered {criterion.describe()} and saved.", "success")

    async def _reload(self) -> List[Bookmark]:
        try:
            return await self.repository.list()
        except RepositoryError:
            raise
        except Exception as e:
            raise RepositoryReadError(
                "Failed to reload bookmarks",
                source_name=getattr(self.repository, "name", None),
                original_error=e,
            ) from e

    def _fail(
        self, query: str, exception: Exception, messages: List[AgentMessage]
    ) -> AgentResult:
        details = self.error_handler.record(exception, {"query": query})
        self.state = fail_with_fallback(self.state, query, details.message)
        self._say(messages, details.user_message, "error")
        return self._result(
            query, steps=list(self.state.plan), messages=messages, error=details
        )

    def _stale(self, query: str) -> AgentResult:
        result = self._result(query)
        result.stale = True
        return result

    def _say(self, messages: List[AgentMessage], text: str, level: str = "info") -> None:
        messages.append(AgentMessage(text=text, level=level))
        self.handler.show_message(text, level)

    def _result(self, query: str, **kwargs: Any) -> AgentResult:
        return AgentResult(
            query=query,
            plan=list(self.state.plan),
            view=self.derived_view(),
            pending_deletions=list(self.pending_deletions),
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Follow-up operations
    # ------------------------------------------------------------------

    async def confirm_deletions(self) -> int:
        """
        Delete the staged duplicate bookmarks.

        Returns:
            Number of bookmarks deleted
        """
        bookmark_ids = list(self.pending_deletions)
        if not bookmark_ids:
            return 0

        try:
            result = await self.repository.remove_many(bookmark_ids)
            self.state = with_snapshot(self.state, await self.repository.list())
        except RepositoryError as e:
            details = self.error_handler.record(e, {"action": "removeDuplicates"})
            self.handler.show_message(details.user_message, "error")
            return 0
        finally:
            self.pending_deletions = []

        self.handler.show_message(f"Deleted {result.succeeded} bookmark(s).", "success")
        return result.succeeded

    def cancel_deletions(self) -> None:
        self.pending_deletions = []

    def reset(self) -> None:
        """Clear the plan and any staged deletions."""
        self.state = reset(self.state)
        self.pending_deletions = []
