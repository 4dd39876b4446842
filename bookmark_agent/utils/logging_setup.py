"""
Logging configuration for the Bookmark Agent.

This module sets up logging based on configuration settings.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    console_output: bool = False,
    log_dir: Optional[Path] = None,
) -> Path:
    """
    Set up logging configuration.

    Args:
        log_level: Root log level name
        log_file: Optional log file name override
        console_output: Also log to stderr
        log_dir: Directory for log files (defaults to ./logs)

    Returns:
        Path of the log file in use
    """
    if log_file is None:
        log_file = "bookmark_agent.log"

    if log_dir is None:
        log_dir = Path.cwd() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    # Create timestamped log file
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_path = log_dir / f"{Path(log_file).stem}_{timestamp}.log"

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    handlers = []

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(log_format, date_format))
    handlers.append(file_handler)

    # Console output goes to stderr so it never mixes with result tables
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter(log_format, date_format))
        handlers.append(console_handler)

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        handlers=handlers,
        force=True,
    )

    logger = logging.getLogger(__name__)
    logger.info(f"Bookmark Agent starting - Log file: {log_path}")
    logger.info(f"Log level: {log_level}")

    # Reduce noise from some libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)

    return log_path
