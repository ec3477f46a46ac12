"""
Label port: the narrow mailbox interface the import job depends on.

GmailLabelPort implements it on top of GoogleGmailService, resolving label
names to Gmail label IDs and caching them for the lifetime of the port.
"""

from typing import Protocol

from contact_importer.infrastructure.observability.logging import get_logger
from contact_importer.models.domain.gmail_domain import GmailThread
from contact_importer.services.google_gmail_service import GoogleGmailError, GoogleGmailService

logger = get_logger(__name__)

BULK_PAGE_SIZE = 100


class LabelPort(Protocol):
    """Mailbox operations needed to drive label-based work items."""

    def ensure_exists(self, name: str) -> str:
        """Get or create the label; returns its identifier."""
        ...

    def add_to(self, thread: GmailThread, name: str) -> None: ...

    def remove_from(self, thread: GmailThread, name: str) -> None: ...

    def list_items_bearing(self, name: str, max_results: int) -> list[GmailThread]:
        """Threads carrying the label, capped at max_results."""
        ...

    def remove_from_all(self, name: str) -> int:
        """Strip the label from every thread bearing it; returns the count."""
        ...


class GmailLabelPort:
    """LabelPort backed by the Gmail REST API for one mailbox."""

    def __init__(self, gmail_service: GoogleGmailService, access_token: str):
        self.gmail_service = gmail_service
        self.access_token = access_token
        self._label_ids: dict[str, str] | None = None

    def _load_labels(self) -> dict[str, str]:
        if self._label_ids is None:
            labels = self.gmail_service.get_labels(self.access_token)
            self._label_ids = {label.name: label.id for label in labels}
        return self._label_ids

    def ensure_exists(self, name: str) -> str:
        label_ids = self._load_labels()
        if name not in label_ids:
            label = self.gmail_service.create_label(self.access_token, name)
            label_ids[name] = label.id
        return label_ids[name]

    def add_to(self, thread: GmailThread, name: str) -> None:
        label_id = self.ensure_exists(name)
        self.gmail_service.modify_thread(self.access_token, thread.id, add_label_ids=[label_id])

    def remove_from(self, thread: GmailThread, name: str) -> None:
        label_id = self.ensure_exists(name)
        self.gmail_service.modify_thread(
            self.access_token, thread.id, remove_label_ids=[label_id]
        )

    def list_items_bearing(self, name: str, max_results: int) -> list[GmailThread]:
        label_id = self.ensure_exists(name)
        thread_ids, _ = self.gmail_service.list_thread_ids(
            self.access_token, [label_id], max_results=max_results
        )

        threads = []
        for thread_id in thread_ids[:max_results]:
            try:
                threads.append(self.gmail_service.get_thread(self.access_token, thread_id))
            except GoogleGmailError as e:
                # Left labelled; the next run picks it up again
                logger.warning("Failed to load thread", thread_id=thread_id, error=str(e))
        return threads

    def remove_from_all(self, name: str) -> int:
        label_id = self.ensure_exists(name)
        attempted: set[str] = set()
        removed = 0
        page_token = None

        while True:
            thread_ids, next_page_token = self.gmail_service.list_thread_ids(
                self.access_token, [label_id], max_results=BULK_PAGE_SIZE, page_token=page_token
            )
            removed_on_page = 0
            for thread_id in thread_ids:
                if thread_id in attempted:
                    continue
                attempted.add(thread_id)
                try:
                    self.gmail_service.modify_thread(
                        self.access_token, thread_id, remove_label_ids=[label_id]
                    )
                    removed_on_page += 1
                except GoogleGmailError as e:
                    logger.warning(
                        "Failed to remove label from thread",
                        thread_id=thread_id,
                        label=name,
                        error=str(e),
                    )
            removed += removed_on_page

            # Removals shift the labelled set, so start over from the first page;
            # otherwise page past threads that keep failing.
            if removed_on_page:
                page_token = None
            elif next_page_token:
                page_token = next_page_token
            else:
                break

        logger.info("Label removed from threads", label=name, removed=removed)
        return removed
