"""
Structured logging setup for the contact importer.
Provides JSON-formatted logs with consistent fields for job monitoring.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import LoggerFactory


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging with JSON output.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.contextvars.merge_contextvars,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    # Suppress noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def get_logger(name: str = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


# Convenience functions for common log patterns
def log_contact_outcome(email: str, status: str, reason: str = None):
    """Log the result of one contact upsert with consistent fields."""
    logger = get_logger("brevo")

    log_data = {
        "email": email,
        "status": status,
        "event_type": "contact_sync",
    }

    if reason:
        log_data["reason"] = reason

    if status == "failed":
        logger.warning("Contact sync failed", **log_data)
    else:
        logger.info("Contact sync completed", **log_data)


def log_run_summary(metrics: dict[str, Any]):
    """Log the counters of a finished import run."""
    logger = get_logger("contact_import")

    if metrics.get("failed", 0) and not metrics.get("succeeded", 0):
        logger.warning("Contact import run finished without successes", **metrics)
    else:
        logger.info("Contact import run finished", **metrics)
