"""
Brevo contacts API client.
Handles session setup, authentication headers and error body parsing for the
/contacts endpoints. Status interpretation is left to the synchronizer.
"""

import json
from urllib.parse import quote

import requests
from pydantic import ValidationError
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from contact_importer.infrastructure.observability.logging import get_logger
from contact_importer.models.api.brevo_request import (
    CreateContactRequest,
    UpdateContactListsRequest,
)
from contact_importer.models.api.brevo_response import BrevoErrorResponse, CreateContactResponse
from contact_importer.models.domain.contact_domain import RawError, RemoteError, StructuredError

logger = get_logger(__name__)

BREVO_API_BASE_URL = "https://api.brevo.com/v3"

# Request timeouts and retry configuration
REQUEST_TIMEOUT = 15  # seconds
MAX_RETRIES = 2
BACKOFF_FACTOR = 1

DUPLICATE_ERROR_CODE = "duplicate_parameter"
DUPLICATE_MESSAGE_MARKER = "already exist"


class BrevoContactsService:
    """
    Thin client for the Brevo contacts endpoints.

    Returns raw responses; transport failures surface as requests exceptions.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = BREVO_API_BASE_URL,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        """Create requests session with retry strategy for rate limits and outages."""
        session = requests.Session()

        retry_strategy = Retry(
            total=MAX_RETRIES,
            backoff_factor=BACKOFF_FACTOR,
            status_forcelist=[429, 502, 503, 504],
            allowed_methods=["POST", "PUT"],
            respect_retry_after_header=True,
            raise_on_status=False,  # hand the final response back instead of raising
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("https://", adapter)

        return session

    def _get_headers(self) -> dict:
        return {
            "api-key": self.api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def create_contact(self, request: CreateContactRequest) -> requests.Response:
        """POST /contacts with updateEnabled so Brevo may upsert on its side."""
        url = f"{self.base_url}/contacts"
        response = self._session.post(
            url,
            headers=self._get_headers(),
            data=json.dumps(request.model_dump(by_alias=True)),
            timeout=REQUEST_TIMEOUT,
        )

        logger.debug(
            "Brevo create_contact response",
            email=request.email,
            status_code=response.status_code,
            contact_id=self._created_contact_id(response),
        )
        return response

    def add_contact_to_lists(
        self, email: str, request: UpdateContactListsRequest
    ) -> requests.Response:
        """PUT /contacts/{email}; the email is URL-encoded as the identifier."""
        url = f"{self.base_url}/contacts/{quote(email, safe='')}"
        response = self._session.put(
            url,
            headers=self._get_headers(),
            data=json.dumps(request.model_dump(by_alias=True)),
            timeout=REQUEST_TIMEOUT,
        )

        logger.debug(
            "Brevo update_contact response",
            email=email,
            status_code=response.status_code,
        )
        return response

    @staticmethod
    def _created_contact_id(response: requests.Response) -> int | None:
        if response.status_code != 201 or not response.text:
            return None
        try:
            return CreateContactResponse.model_validate_json(response.text).id
        except ValidationError:
            return None

    @staticmethod
    def parse_error(response: requests.Response) -> RemoteError:
        """
        Turn a non-success response into a RemoteError.

        Structured JSON bodies become StructuredError; anything else keeps the
        status code and the (truncated) raw body.
        """
        body = response.text or ""
        try:
            error = BrevoErrorResponse.model_validate_json(body)
            return StructuredError(code=error.code, message=error.message)
        except ValidationError:
            return RawError(status_code=response.status_code, body=body[:200])

    @staticmethod
    def is_duplicate_error(response: requests.Response, error: RemoteError) -> bool:
        """Brevo answers 400 duplicate_parameter when the contact already exists."""
        if response.status_code != 400:
            return False
        if isinstance(error, StructuredError):
            return (
                error.code == DUPLICATE_ERROR_CODE
                or DUPLICATE_MESSAGE_MARKER in error.message.lower()
            )
        return DUPLICATE_MESSAGE_MARKER in error.body.lower()
