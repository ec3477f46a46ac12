"""
Contact Import Job.
Reads Gmail threads carrying the import label, extracts the addresses in their
bodies, upserts them into Brevo and moves each thread to a terminal label.

A run is bounded: at most IMPORT_MAX_THREADS threads, processed in batches,
with a wall-clock ceiling checked before every batch. Threads not reached keep
the import label for the next run.
"""

import time
import uuid
from collections.abc import Callable, Iterable
from datetime import UTC, datetime

import structlog

from contact_importer.config import ImportConfig, settings
from contact_importer.infrastructure.observability.logging import get_logger, log_run_summary
from contact_importer.models.domain.contact_domain import (
    ContactCandidate,
    FailureKind,
    ThreadOutcome,
    ThreadState,
)
from contact_importer.models.domain.gmail_domain import GmailMessage, GmailThread
from contact_importer.services.address_extractor import extract_thread_contacts
from contact_importer.services.brevo_contacts_service import BrevoContactsService
from contact_importer.services.contact_sync_service import ContactSyncService
from contact_importer.services.credential_store import CredentialStore, resolve_brevo_api_key
from contact_importer.services.google_gmail_service import GoogleGmailService
from contact_importer.services.google_oauth_service import GoogleOAuthService
from contact_importer.services.label_port import GmailLabelPort, LabelPort

logger = get_logger(__name__)

Extractor = Callable[[Iterable[GmailMessage]], list[ContactCandidate]]


class ContactImportConfigError(Exception):
    """Raised before any thread is touched when the run cannot be configured."""

    pass


class ContactImportMetrics:
    """Counters for one import run."""

    def __init__(self):
        self.reset()

    def reset(self):
        """Reset all metrics for new job run."""
        self.start_time = datetime.now(UTC)
        self.discovered = 0
        self.processed = 0
        self.succeeded = 0
        self.failed = 0
        self.extraction_empty = 0
        self.sync_failures = 0
        self.unexpected_errors = 0
        self.label_errors = 0
        self.contacts_found = 0
        self.contacts_created = 0
        self.contacts_updated = 0
        self.contacts_failed = 0
        self.batches_processed = 0
        self.left_pending = 0
        self.stopped_early = False
        self.total_duration_seconds = 0.0

    def record_outcome(self, outcome: ThreadOutcome):
        self.processed += 1
        self.contacts_found += outcome.contacts_found

        if outcome.sync_result is not None:
            self.contacts_created += outcome.sync_result.created_count
            self.contacts_updated += outcome.sync_result.updated_count
            self.contacts_failed += outcome.sync_result.failed_count

        if outcome.state is ThreadState.SUCCEEDED:
            self.succeeded += 1
            logger.info(
                "Thread imported",
                thread_id=outcome.thread_id,
                subject=outcome.subject,
                contacts=outcome.contacts_found,
            )
            return

        self.failed += 1
        if outcome.failure_kind is FailureKind.EXTRACTION_EMPTY:
            self.extraction_empty += 1
        elif outcome.failure_kind is FailureKind.SYNC_FAILURE:
            self.sync_failures += 1
        else:
            self.unexpected_errors += 1

        logger.warning(
            "Thread import failed",
            thread_id=outcome.thread_id,
            subject=outcome.subject,
            failure_kind=outcome.failure_kind.value if outcome.failure_kind else None,
            reason=outcome.reason,
        )

    def finalize(self, duration_seconds: float):
        self.total_duration_seconds = duration_seconds

    def to_dict(self) -> dict:
        """Convert metrics to dictionary for logging."""
        return {
            "job_run": "contact_import",
            "start_time": self.start_time.isoformat(),
            "total_duration_seconds": round(self.total_duration_seconds, 2),
            "discovered": self.discovered,
            "processed": self.processed,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "extraction_empty": self.extraction_empty,
            "sync_failures": self.sync_failures,
            "unexpected_errors": self.unexpected_errors,
            "label_errors": self.label_errors,
            "contacts_found": self.contacts_found,
            "contacts_created": self.contacts_created,
            "contacts_updated": self.contacts_updated,
            "contacts_failed": self.contacts_failed,
            "batches_processed": self.batches_processed,
            "left_pending": self.left_pending,
            "stopped_early": self.stopped_early,
        }


def verify_import_config(config: ImportConfig) -> None:
    """
    Raises:
        ContactImportConfigError: If the Brevo API key or list ID is missing
    """
    if not config.api_key:
        raise ContactImportConfigError(
            "Brevo API key not configured (set BREVO_API_KEY or run the store_api_key job)"
        )
    if not config.list_id:
        raise ContactImportConfigError("BREVO_LIST_ID not configured")


class ContactImportJob:
    """
    Batch coordinator for one mailbox.

    Every thread it processes ends with exactly one of the success/error labels
    and loses the import label; threads it does not reach are left untouched.
    """

    def __init__(
        self,
        config: ImportConfig,
        label_port: LabelPort,
        sync_service: ContactSyncService,
        extractor: Extractor = extract_thread_contacts,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.label_port = label_port
        self.sync_service = sync_service
        self._extract = extractor
        self._clock = clock
        self._sleep = sleep
        self.is_running = False
        self.metrics = ContactImportMetrics()
        self.outcomes: list[ThreadOutcome] = []

    def run_once(self) -> dict:
        """
        Run a single import pass.

        Returns:
            Dict: Run metrics

        Raises:
            ContactImportConfigError: If the run is not configured
        """
        verify_import_config(self.config)

        if self.is_running:
            logger.warning("Contact import already running, skipping this iteration")
            return {"skipped": True, "reason": "already_running"}

        labels = self.config.labels
        policy = self.config.policy
        structlog.contextvars.bind_contextvars(run_id=uuid.uuid4().hex[:12])

        try:
            self.is_running = True
            self.metrics.reset()
            self.outcomes = []
            started = self._clock()

            for name in labels.all():
                self.label_port.ensure_exists(name)

            threads = self.label_port.list_items_bearing(labels.pending, policy.max_threads)
            self.metrics.discovered = len(threads)

            logger.info(
                "Starting contact import",
                threads=len(threads),
                batch_size=policy.batch_size,
                time_ceiling_seconds=policy.time_ceiling_seconds,
            )

            if threads:
                self._process_batches(threads, started)

            self.metrics.finalize(self._clock() - started)
            summary = self.metrics.to_dict()
            log_run_summary(summary)
            return summary

        finally:
            self.is_running = False
            structlog.contextvars.unbind_contextvars("run_id")

    def _process_batches(self, threads: list[GmailThread], started: float) -> None:
        policy = self.config.policy
        batches = [
            threads[i : i + policy.batch_size] for i in range(0, len(threads), policy.batch_size)
        ]

        for index, batch in enumerate(batches):
            elapsed = self._clock() - started
            if elapsed >= policy.time_ceiling_seconds:
                self.metrics.stopped_early = True
                self.metrics.left_pending = sum(len(b) for b in batches[index:])
                logger.warning(
                    "Time limit reached, leaving remaining threads for the next run",
                    elapsed_seconds=round(elapsed, 2),
                    remaining_threads=self.metrics.left_pending,
                )
                break

            logger.info("Processing batch", batch=index + 1, of=len(batches), size=len(batch))
            for thread in batch:
                outcome = self._process_thread(thread)
                self.outcomes.append(outcome)
                self.metrics.record_outcome(outcome)

            self.metrics.batches_processed += 1
            if index < len(batches) - 1:
                self._sleep(policy.inter_batch_delay_seconds)

    def _process_thread(self, thread: GmailThread) -> ThreadOutcome:
        outcome = ThreadOutcome(thread_id=thread.id, subject=thread.get_subject())

        try:
            contacts = self._extract(thread.messages)
            outcome.contacts_found = len(contacts)

            if not contacts:
                outcome.fail(FailureKind.EXTRACTION_EMPTY, "No email addresses found in thread")
            else:
                result = self.sync_service.sync_contacts(contacts)
                if result.overall_success:
                    outcome.succeed(result)
                else:
                    outcome.fail(FailureKind.SYNC_FAILURE, result.error, result)

        except Exception as e:
            logger.error(
                "Unexpected error processing thread",
                thread_id=thread.id,
                error=str(e),
                error_type=type(e).__name__,
            )
            outcome.fail(FailureKind.UNEXPECTED_ERROR, f"{type(e).__name__}: {e}")

        self._apply_terminal_labels(thread, outcome)
        return outcome

    def _apply_terminal_labels(self, thread: GmailThread, outcome: ThreadOutcome) -> None:
        labels = self.config.labels
        terminal = labels.success if outcome.state is ThreadState.SUCCEEDED else labels.error

        try:
            self.label_port.add_to(thread, terminal)
        except Exception as e:
            self.metrics.label_errors += 1
            logger.error(
                "Failed to apply terminal label",
                thread_id=thread.id,
                label=terminal,
                error=str(e),
            )

        # Removed even when the terminal label failed so the thread is not re-imported
        try:
            self.label_port.remove_from(thread, labels.pending)
        except Exception as e:
            self.metrics.label_errors += 1
            logger.error(
                "Failed to remove import label",
                thread_id=thread.id,
                label=labels.pending,
                error=str(e),
            )


def _build_gmail_label_port() -> GmailLabelPort:
    access_token = GoogleOAuthService().refresh_access_token(settings.GOOGLE_REFRESH_TOKEN)
    return GmailLabelPort(GoogleGmailService(), access_token)


def build_contact_import_job(store: CredentialStore | None = None) -> ContactImportJob:
    """
    Wire the job against Gmail and Brevo from settings.

    Raises:
        ContactImportConfigError: If the Brevo configuration is incomplete
    """
    api_key = resolve_brevo_api_key(store or CredentialStore())
    config = ImportConfig.from_settings(settings, api_key=api_key)
    verify_import_config(config)

    sync_service = ContactSyncService(
        BrevoContactsService(config.api_key, base_url=config.api_base_url),
        list_id=config.list_id,
        inter_request_delay_seconds=config.policy.inter_request_delay_seconds,
    )
    return ContactImportJob(config, _build_gmail_label_port(), sync_service)


def run_contact_import_job() -> dict:
    """Entry point for one scheduled run."""
    return build_contact_import_job().run_once()


def clear_import_labels(label_port: LabelPort | None = None) -> dict[str, int]:
    """Administrative reset: strip the three import labels from every thread."""
    label_port = label_port or _build_gmail_label_port()
    labels = ImportConfig.from_settings(settings).labels

    removed = {name: label_port.remove_from_all(name) for name in labels.all()}
    logger.info("Import labels cleared", removed_counts=removed)
    return removed
