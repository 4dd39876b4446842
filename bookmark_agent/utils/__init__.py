"""
Utility modules for the bookmark agent.

This package contains error handling, logging setup and API key
validation.
"""

from .error_handler import BookmarkAgentError, ErrorDetails, ErrorHandler
from .logging_setup import setup_logging

__all__ = [
    "BookmarkAgentError",
    "ErrorDetails",
    "ErrorHandler",
    "setup_logging",
]
