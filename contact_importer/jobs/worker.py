"""
Generic job runner.

Reads the desired job name from CLI args or the WORKER_JOB environment
variable and runs it once.
"""

import os
import sys
from collections.abc import Callable
from typing import Any

from contact_importer.config import settings
from contact_importer.infrastructure.observability.logging import get_logger, setup_logging
from contact_importer.jobs.contact_import_job import clear_import_labels, run_contact_import_job
from contact_importer.jobs.scheduler import (
    create_schedule,
    remove_all_schedules,
    start_contact_import_scheduler,
)
from contact_importer.services.address_extractor import extract_addresses
from contact_importer.services.credential_store import BREVO_API_KEY_PROPERTY, CredentialStore

logger = get_logger(__name__)

Job = Callable[[], Any]

EXTRACTION_SAMPLE = (
    "Please contact john.doe@example.com for more info. "
    '"Jane Smith" <jane.smith@company.org> or Mary Johnson <mary@test.co.uk>. '
    "Another contact is support@help.net"
)


def schedule_hourly() -> None:
    create_schedule(CredentialStore(), "hourly")


def schedule_daily() -> None:
    create_schedule(CredentialStore(), "daily")


def remove_schedules() -> bool:
    return remove_all_schedules(CredentialStore())


def store_api_key() -> None:
    """Copy BREVO_API_KEY from the environment into the credential store."""
    if not settings.BREVO_API_KEY:
        raise ValueError("BREVO_API_KEY must be set in the environment to be stored")
    CredentialStore().set_property(BREVO_API_KEY_PROPERTY, settings.BREVO_API_KEY)


def check_extraction() -> list[dict[str, str]]:
    """Run the extractor on a known sample and log what it finds."""
    contacts = [{"email": c.email, "name": c.name} for c in extract_addresses(EXTRACTION_SAMPLE)]
    logger.info("Extraction check", found=len(contacts), contacts=contacts)
    return contacts


JOB_REGISTRY: dict[str, Job] = {
    "contact_import": run_contact_import_job,
    "contact_import_scheduler": start_contact_import_scheduler,
    "schedule_hourly": schedule_hourly,
    "schedule_daily": schedule_daily,
    "remove_schedules": remove_schedules,
    "store_api_key": store_api_key,
    "clear_import_labels": clear_import_labels,
    "check_extraction": check_extraction,
}


def _resolve_job_name() -> str:
    """Pick the target job from CLI args or WORKER_JOB env variable."""
    if len(sys.argv) > 1:
        return sys.argv[1].strip().lower()
    return os.getenv("WORKER_JOB", "contact_import").strip().lower()


def run_worker(job_name: str | None = None) -> Any:
    """Run the requested job once and return its result."""
    name = (job_name or _resolve_job_name()).strip().lower()
    if name not in JOB_REGISTRY:
        raise ValueError(
            f"Unknown worker job '{name}'. "
            f"Available jobs: {', '.join(sorted(JOB_REGISTRY.keys()))}"
        )

    logger.info("Starting job", job=name)
    return JOB_REGISTRY[name]()


def main() -> None:
    """CLI entrypoint."""
    setup_logging(log_level=settings.LOG_LEVEL)
    run_worker(_resolve_job_name())


if __name__ == "__main__":
    main()
