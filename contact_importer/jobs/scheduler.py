"""
Schedule registration and the long-running scheduler loop.

A schedule is a cadence ("hourly" or "daily") stored in the property store.
The scheduler loop runs the import once per cadence for as long as a schedule
is registered, so removing the schedule stops it at its next wake-up.
"""

import time
from collections.abc import Callable

import redis

from contact_importer.infrastructure.observability.logging import get_logger
from contact_importer.jobs.contact_import_job import (
    ContactImportConfigError,
    run_contact_import_job,
)
from contact_importer.services.credential_store import CredentialStore

logger = get_logger(__name__)

SCHEDULE_PROPERTY = "CONTACT_IMPORT_SCHEDULE"
CADENCE_SECONDS = {
    "hourly": 60 * 60,
    "daily": 24 * 60 * 60,
}
ERROR_RETRY_SECONDS = 60


class SchedulerError(Exception):
    """Custom exception for schedule registration errors."""

    pass


def get_schedule(store: CredentialStore) -> str | None:
    """Registered cadence, or None. Raises redis.RedisError when the store is unreachable."""
    cadence = store.read_property(SCHEDULE_PROPERTY)
    if cadence is not None and cadence not in CADENCE_SECONDS:
        logger.warning("Ignoring unknown schedule cadence", cadence=cadence)
        return None
    return cadence


def remove_all_schedules(store: CredentialStore) -> bool:
    """Unregister every import schedule; returns True if one was registered."""
    removed = store.delete_property(SCHEDULE_PROPERTY)
    logger.info("Contact import schedules removed", removed=removed)
    return removed


def create_schedule(store: CredentialStore, cadence: str) -> None:
    """
    Register the import to run on the given cadence, replacing any existing schedule.

    Raises:
        SchedulerError: If the cadence is unknown
    """
    if cadence not in CADENCE_SECONDS:
        raise SchedulerError(
            f"Unknown cadence '{cadence}'. Available: {', '.join(sorted(CADENCE_SECONDS))}"
        )

    remove_all_schedules(store)
    store.set_property(SCHEDULE_PROPERTY, cadence)
    logger.info("Contact import scheduled", cadence=cadence)


def start_contact_import_scheduler(
    store: CredentialStore | None = None,
    run_job: Callable[[], dict] = run_contact_import_job,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """
    Run the import on the registered cadence until the schedule is removed.

    Meant to run in its own process/container next to the worker.
    """
    store = store or CredentialStore()

    while True:
        try:
            cadence = get_schedule(store)
        except redis.RedisError as e:
            logger.error("Could not read contact import schedule", error=str(e))
            sleep(ERROR_RETRY_SECONDS)
            continue

        if cadence is None:
            logger.info("No contact import schedule registered, scheduler exiting")
            return

        interval = CADENCE_SECONDS[cadence]
        try:
            metrics = run_job()
            logger.info("Contact import cycle completed", cadence=cadence, **metrics)
        except KeyboardInterrupt:
            logger.info("Contact import scheduler stopped by user")
            break
        except ContactImportConfigError as e:
            logger.error("Contact import not configured", error=str(e))
        except Exception as e:
            logger.error(
                "Error in contact import scheduler", error=str(e), error_type=type(e).__name__
            )
            # Wait a bit before retrying to avoid tight error loops
            interval = ERROR_RETRY_SECONDS

        sleep(interval)
