"""
Centralized logging configuration and utilities.

Provides structured logging with JSON format support and configurable output destinations.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, TYPE_CHECKING

import structlog
from structlog.stdlib import LoggerFactory

from ..config import get_config

if TYPE_CHECKING:
    from ..scrapers.models import RunResult


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    log_format: Optional[str] = None
) -> structlog.stdlib.BoundLogger:
    """
    Set up structured logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file. If None, logs to console only.
        log_format: Log format ('json' or 'text')
    """
    config = get_config()

    log_level = level or config.logging.level
    log_format = log_format or config.logging.format
    log_file = log_file or config.logging.file

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(colors=True)
        )

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
        )
        file_handler.setLevel(getattr(logging, log_level.upper()))
        logging.getLogger().addHandler(file_handler)

    return structlog.get_logger("root")


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Structured logger instance
    """
    return structlog.get_logger(name)


def log_scraping_activity(
    portal: str,
    url: str,
    bids_found: int,
    success: bool,
    error_message: Optional[str] = None
) -> None:
    """
    Log the outcome of scraping one portal.

    Args:
        portal: Name of the portal being scraped
        url: URL that was scraped
        bids_found: Number of raw bids extracted
        success: Whether the portal was scraped without error
        error_message: Error message if scraping failed
    """
    logger = get_logger(__name__)

    log_data = {
        "portal": portal,
        "url": url,
        "bids_found": bids_found,
        "success": success,
    }

    if error_message:
        log_data["error_message"] = error_message

    if success:
        logger.info("Portal scraped", **log_data)
    else:
        logger.error("Portal scrape failed", **log_data)


def log_run_summary(result: "RunResult") -> None:
    """Log the summary of an orchestration run."""
    logger = get_logger(__name__)

    log_data = {
        "success": result.success,
        "new_bids": result.new_bids,
        "total_bids": result.total_bids,
        "error_count": len(result.errors),
        "duration_seconds": result.duration_seconds,
    }

    if result.success:
        logger.info(result.message, **log_data)
    else:
        logger.warning(result.message, errors=result.errors, **log_data)
