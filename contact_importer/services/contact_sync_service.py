"""
Contact synchronizer: upserts extracted contacts into a Brevo list.

Each contact is handled on its own. A create that conflicts with an existing
contact falls back to adding the list membership to that contact, and any
failure (HTTP or transport) is recorded without stopping the batch.
"""

import time
from collections.abc import Callable, Sequence

import requests

from contact_importer.infrastructure.observability.logging import get_logger, log_contact_outcome
from contact_importer.models.api.brevo_request import (
    ContactAttributes,
    CreateContactRequest,
    UpdateContactListsRequest,
)
from contact_importer.models.domain.contact_domain import (
    ContactCandidate,
    ContactSyncOutcome,
    ContactSyncResult,
    SyncStatus,
)
from contact_importer.services.brevo_contacts_service import BrevoContactsService

logger = get_logger(__name__)

NO_CONTACTS_IMPORTED = "No contacts were successfully imported"

_CREATED_STATUSES = {201, 204}


class ContactSyncService:
    """Upsert contacts into one Brevo list with per-contact failure isolation."""

    def __init__(
        self,
        contacts_service: BrevoContactsService,
        list_id: int,
        inter_request_delay_seconds: float = 0.1,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.contacts_service = contacts_service
        self.list_id = list_id
        self.inter_request_delay_seconds = inter_request_delay_seconds
        self._sleep = sleep

    def sync_contacts(self, contacts: Sequence[ContactCandidate]) -> ContactSyncResult:
        """
        Upsert every contact and aggregate the outcomes.

        Args:
            contacts: Deduplicated candidates to import

        Returns:
            ContactSyncResult: overall_success is True when at least one contact
            was created or updated
        """
        results: list[ContactSyncOutcome] = []

        for contact in contacts:
            try:
                outcome = self._sync_contact(contact)
            except requests.RequestException as e:
                outcome = ContactSyncOutcome(
                    email=contact.email,
                    status=SyncStatus.FAILED,
                    reason=f"{type(e).__name__}: {e}",
                )
            finally:
                # Rate limit applies after every contact, failed or not
                self._sleep(self.inter_request_delay_seconds)

            log_contact_outcome(outcome.email, outcome.status.value, outcome.reason)
            results.append(outcome)

        overall_success = any(r.succeeded for r in results)
        error = None
        if not overall_success:
            error = NO_CONTACTS_IMPORTED
            if results:
                error = f"{NO_CONTACTS_IMPORTED}: {results[-1].reason}"

        result = ContactSyncResult(overall_success=overall_success, results=results, error=error)
        logger.info(
            "Contact sync finished",
            total=len(results),
            created=result.created_count,
            updated=result.updated_count,
            failed=result.failed_count,
        )
        return result

    def _build_create_request(self, contact: ContactCandidate) -> CreateContactRequest:
        first_name, last_name = contact.split_name()
        return CreateContactRequest(
            email=contact.email,
            attributes=ContactAttributes(first_name=first_name, last_name=last_name),
            list_ids=[self.list_id],
            update_enabled=True,
        )

    def _sync_contact(self, contact: ContactCandidate) -> ContactSyncOutcome:
        response = self.contacts_service.create_contact(self._build_create_request(contact))

        if response.status_code in _CREATED_STATUSES:
            return ContactSyncOutcome(email=contact.email, status=SyncStatus.CREATED)

        error = self.contacts_service.parse_error(response)
        if self.contacts_service.is_duplicate_error(response, error):
            logger.info("Contact already exists, updating list membership", email=contact.email)
            return self._update_existing(contact)

        return ContactSyncOutcome(
            email=contact.email,
            status=SyncStatus.FAILED,
            reason=error.describe(),
            error=error,
        )

    def _update_existing(self, contact: ContactCandidate) -> ContactSyncOutcome:
        response = self.contacts_service.add_contact_to_lists(
            contact.email, UpdateContactListsRequest(list_ids=[self.list_id])
        )

        if response.ok:
            return ContactSyncOutcome(email=contact.email, status=SyncStatus.UPDATED_EXISTING)

        error = self.contacts_service.parse_error(response)
        return ContactSyncOutcome(
            email=contact.email,
            status=SyncStatus.FAILED,
            reason=f"Update failed: {error.describe()}",
            error=error,
        )
