"""
Error Hierarchy and User-Facing Error Reporting

This module defines the unified exception hierarchy for the bookmark agent
and turns arbitrary failures into short, user-visible messages so the agent
can degrade to a safe default instead of crashing.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import httpx


# ============================================================================
# Unified Exception Hierarchy for the Bookmark Agent
# ============================================================================
# All custom exceptions for the project are defined here.
# Import these exceptions from bookmark_agent.utils.error_handler
# ============================================================================


class BookmarkAgentError(Exception):
    """Base exception for all bookmark agent errors."""

    pass


# ============================================================================
# Configuration Errors
# ============================================================================


class ConfigurationError(BookmarkAgentError):
    """Configuration-related errors."""

    pass


# ============================================================================
# Agent Plan Errors
# ============================================================================


class PlanParseError(BookmarkAgentError):
    """Raised when no valid action step can be extracted from model output."""

    def __init__(self, message: str, raw_text: Optional[str] = None):
        self.raw_text = raw_text
        super().__init__(message)


# ============================================================================
# Language Model Errors
# ============================================================================


class ModelRequestError(BookmarkAgentError):
    """Network or HTTP failure while talking to a language model provider."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.provider = provider
        self.status_code = status_code
        super().__init__(message)


class RateLimitError(ModelRequestError):
    """Rate limit exceeded errors."""

    pass


class AuthenticationError(ModelRequestError):
    """Authentication/authorization errors."""

    pass


class ServiceUnavailableError(ModelRequestError):
    """Service unavailable errors."""

    pass


# ============================================================================
# Repository Errors
# ============================================================================


class RepositoryError(BookmarkAgentError):
    """
    Base class for bookmark repository errors.

    Attributes:
        message: Error description
        source_name: Name of the repository that raised the error
        original_error: The underlying exception if any
    """

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.source_name = source_name
        self.original_error = original_error
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = []
        if self.source_name:
            parts.append(f"[{self.source_name}]")
        parts.append(self.message)
        if self.original_error:
            parts.append(
                f"(Caused by: {type(self.original_error).__name__}: "
                f"{self.original_error})"
            )
        return " ".join(parts)


class RepositoryReadError(RepositoryError):
    """Raised when reading from a repository fails."""

    pass


class RepositoryWriteError(RepositoryError):
    """Raised when create/update/remove/reorder against a repository fails."""

    pass


class BookmarkNotFoundError(RepositoryWriteError):
    """Raised when a write targets an id the repository does not hold."""

    pass


# ============================================================================
# Import/Export Errors
# ============================================================================


class ImportExportError(BookmarkAgentError):
    """Import or export of bookmark files failed."""

    pass


class HTMLStructureError(ImportExportError):
    """HTML input does not look like a Netscape bookmark file."""

    pass


class ErrorSeverity(Enum):
    """Error severity levels for categorization."""

    LOW = "low"  # Recovered locally, user sees a degraded result
    MEDIUM = "medium"  # User-visible, operation skipped
    HIGH = "high"  # User-visible, state may need attention


class ErrorCategory(Enum):
    """Categories of errors for reporting."""

    PLAN = "plan"
    MODEL = "model"
    MODEL_AUTH = "model_auth"
    MODEL_LIMIT = "model_limit"
    NETWORK = "network"
    REPOSITORY = "repository"
    IMPORT_EXPORT = "import_export"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


@dataclass
class ErrorDetails:
    """Detailed error information for reporting."""

    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    user_message: str
    original_exception: Optional[Exception] = None
    context: Optional[Dict[str, Any]] = None
    timestamp: float = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = time.time()


class ErrorHandler:
    """Categorizes failures and keeps a short history for diagnostics."""

    MAX_RECENT_ERRORS = 50

    def __init__(self):
        self.error_counts: Dict[ErrorCategory, int] = {}
        self.recent_errors = []
        self.logger = logging.getLogger(__name__)

    def categorize_error(
        self, exception: Exception, context: Optional[Dict[str, Any]] = None
    ) -> ErrorDetails:
        """Categorize an exception into structured error details."""
        error_msg = str(exception)

        if isinstance(exception, PlanParseError):
            category = ErrorCategory.PLAN
            severity = ErrorSeverity.LOW
            user_message = (
                "The agent response could not be understood. "
                "Performing a general search instead."
            )
        elif isinstance(exception, AuthenticationError):
            category = ErrorCategory.MODEL_AUTH
            severity = ErrorSeverity.MEDIUM
            user_message = (
                f"Failed to process request via LLM: {error_msg}. "
                "Check the API key is set in the options."
            )
        elif isinstance(exception, RateLimitError):
            category = ErrorCategory.MODEL_LIMIT
            severity = ErrorSeverity.MEDIUM
            user_message = (
                f"The LLM provider is rate limiting requests: {error_msg}. "
                "Performing a general search instead."
            )
        elif isinstance(exception, ModelRequestError):
            category = ErrorCategory.MODEL
            severity = ErrorSeverity.MEDIUM
            user_message = (
                f"Failed to process request via LLM: {error_msg}. "
                "Performing a general search instead."
            )
        elif isinstance(
            exception, (asyncio.TimeoutError, httpx.TransportError, ConnectionError)
        ):
            category = ErrorCategory.NETWORK
            severity = ErrorSeverity.MEDIUM
            user_message = f"Network error: {error_msg}."
        elif isinstance(exception, RepositoryError):
            category = ErrorCategory.REPOSITORY
            severity = ErrorSeverity.HIGH
            user_message = f"Failed to save changes: {exception.message}"
        elif isinstance(exception, ImportExportError):
            category = ErrorCategory.IMPORT_EXPORT
            severity = ErrorSeverity.MEDIUM
            user_message = f"Import/export failed: {error_msg}"
        elif isinstance(exception, ConfigurationError):
            category = ErrorCategory.CONFIGURATION
            severity = ErrorSeverity.HIGH
            user_message = f"Configuration error: {error_msg}"
        else:
            category = ErrorCategory.UNKNOWN
            severity = ErrorSeverity.MEDIUM
            user_message = f"Unexpected error: {error_msg}"

        return ErrorDetails(
            category=category,
            severity=severity,
            message=error_msg,
            user_message=user_message,
            original_exception=exception,
            context=context,
        )

    def describe(self, exception: Exception) -> ErrorDetails:
        """Short form of categorize_error for callers without context."""
        return self.categorize_error(exception)

    def record(
        self, exception: Exception, context: Optional[Dict[str, Any]] = None
    ) -> ErrorDetails:
        """Categorize, log and remember an error."""
        details = self.categorize_error(exception, context)

        self.error_counts[details.category] = (
            self.error_counts.get(details.category, 0) + 1
        )
        self.recent_errors.append(details)
        if len(self.recent_errors) > self.MAX_RECENT_ERRORS:
            self.recent_errors = self.recent_errors[-self.MAX_RECENT_ERRORS :]

        log = (
            self.logger.error
            if details.severity == ErrorSeverity.HIGH
            else self.logger.warning
        )
        log(f"{details.category.value} error: {details.message}")
        return details

    def get_error_statistics(self) -> Dict[str, Any]:
        """Get error counts by category."""
        return {
            "total_errors": sum(self.error_counts.values()),
            "by_category": {k.value: v for k, v in self.error_counts.items()},
            "recent": [d.message for d in self.recent_errors[-5:]],
        }

    def reset_statistics(self) -> None:
        """Reset error statistics."""
        self.error_counts = {}
        self.recent_errors = []
