"""
Google Gmail API Service for thread and label operations.
Handles the HTTP session, authentication headers, error mapping and parsing
into domain models. Only the calls the importer needs are exposed.
"""

import json
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from contact_importer.infrastructure.observability.logging import get_logger
from contact_importer.models.domain.gmail_domain import GmailLabel, GmailThread

logger = get_logger(__name__)

# Google Gmail API configuration
GMAIL_API_BASE_URL = "https://gmail.googleapis.com/gmail/v1"
GMAIL_USER_ID = "me"  # User's Gmail account

# Request timeouts and retry configuration
REQUEST_TIMEOUT = 30  # seconds
MAX_RETRIES = 3
BACKOFF_FACTOR = 2
MAX_PAGE_SIZE = 500  # Gmail API limit for list calls


class GoogleGmailError(Exception):
    """Custom exception for Google Gmail API errors."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        status_code: int | None = None,
        response_data: dict | None = None,
    ):
        super().__init__(message)
        self.error_code = error_code
        self.status_code = status_code
        self.response_data = response_data or {}


class GoogleGmailService:
    """
    Service for Google Gmail API operations.

    Pure API client: every call takes the OAuth access token and returns
    domain models from gmail_domain.
    """

    def __init__(self, session: requests.Session | None = None):
        self._session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        """Create requests session with retry strategy for Gmail API."""
        session = requests.Session()

        retry_strategy = Retry(
            total=MAX_RETRIES,
            backoff_factor=BACKOFF_FACTOR,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET", "POST"],
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("https://", adapter)

        return session

    def _get_auth_headers(self, access_token: str) -> dict:
        """Get authorization headers for Gmail API requests."""
        return {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _handle_api_response(self, response: requests.Response, operation: str) -> dict:
        """
        Handle and validate Gmail API response.

        Args:
            response: HTTP response from Gmail API
            operation: Operation name for logging

        Returns:
            dict: Parsed response data

        Raises:
            GoogleGmailError: If response contains errors
        """
        logger.debug(
            f"Gmail API {operation} response",
            status_code=response.status_code,
            response_size=len(response.text) if response.text else 0,
        )

        if response.ok:
            try:
                return response.json() if response.text else {}
            except ValueError as e:
                logger.error(f"Failed to parse Gmail API {operation} response", error=str(e))
                raise GoogleGmailError(f"Invalid response format: {e}") from e

        try:
            error_data = response.json() if response.text else {}
        except ValueError:
            logger.error(
                f"Gmail API {operation} failed with non-JSON response",
                status_code=response.status_code,
                response_text=response.text[:200] if response.text else "",
            )
            raise GoogleGmailError(
                f"Gmail API error (HTTP {response.status_code})",
                status_code=response.status_code,
            ) from None

        error_info = error_data.get("error", {}) if isinstance(error_data, dict) else {}
        error_code = str(error_info.get("code", response.status_code))
        error_message = error_info.get("message", "Unknown Gmail API error")

        logger.error(
            f"Gmail API {operation} failed",
            status_code=response.status_code,
            error_code=error_code,
            error_message=error_message,
        )

        raise GoogleGmailError(
            self._map_gmail_error(error_code, error_message),
            error_code=error_code,
            status_code=response.status_code,
            response_data=error_data,
        )

    def _map_gmail_error(self, error_code: str, error_message: str) -> str:
        """Map Gmail API error codes to readable messages."""
        error_mappings = {
            "403": "Gmail access denied. Please check permissions.",
            "404": "Gmail thread or label not found.",
            "400": "Invalid Gmail request format.",
            "401": "Gmail authorization expired. Refresh the access token.",
            "409": "Gmail label already exists.",
            "429": "Too many Gmail requests. Please try again later.",
        }

        return error_mappings.get(error_code, f"Gmail error: {error_message}")

    def list_thread_ids(
        self,
        access_token: str,
        label_ids: list[str],
        max_results: int = 50,
        page_token: str | None = None,
    ) -> tuple[list[str], str | None]:
        """
        List thread IDs carrying all of the given labels.

        Returns:
            tuple[list[str], str | None]: (Thread IDs, next page token)

        Raises:
            GoogleGmailError: If listing threads fails
        """
        url = f"{GMAIL_API_BASE_URL}/users/{GMAIL_USER_ID}/threads"
        params: dict[str, Any] = {
            "labelIds": label_ids,
            "maxResults": min(max_results, MAX_PAGE_SIZE),
        }
        if page_token:
            params["pageToken"] = page_token

        try:
            response = self._session.get(
                url,
                headers=self._get_auth_headers(access_token),
                params=params,
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            logger.error("Network error listing threads", error=str(e))
            raise GoogleGmailError(f"Failed to list threads: {e}") from e

        data = self._handle_api_response(response, "list_threads")
        thread_ids = [thread["id"] for thread in data.get("threads", [])]
        logger.info("Threads listed", label_ids=label_ids, thread_count=len(thread_ids))
        return thread_ids, data.get("nextPageToken")

    def get_thread(self, access_token: str, thread_id: str, format: str = "full") -> GmailThread:
        """
        Get a specific thread by ID with its messages.

        Raises:
            GoogleGmailError: If getting thread fails
        """
        url = f"{GMAIL_API_BASE_URL}/users/{GMAIL_USER_ID}/threads/{thread_id}"

        try:
            response = self._session.get(
                url,
                headers=self._get_auth_headers(access_token),
                params={"format": format},
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            logger.error("Network error getting thread", thread_id=thread_id, error=str(e))
            raise GoogleGmailError(f"Failed to get thread: {e}") from e

        data = self._handle_api_response(response, "get_thread")
        return GmailThread(data)

    def modify_thread(
        self,
        access_token: str,
        thread_id: str,
        add_label_ids: list[str] | None = None,
        remove_label_ids: list[str] | None = None,
    ) -> None:
        """
        Add and/or remove labels on every message of a thread.

        Raises:
            GoogleGmailError: If modifying the thread fails
        """
        url = f"{GMAIL_API_BASE_URL}/users/{GMAIL_USER_ID}/threads/{thread_id}/modify"

        modify_data = {}
        if add_label_ids:
            modify_data["addLabelIds"] = add_label_ids
        if remove_label_ids:
            modify_data["removeLabelIds"] = remove_label_ids

        logger.info(
            "Modifying Gmail thread",
            thread_id=thread_id,
            add_labels=add_label_ids,
            remove_labels=remove_label_ids,
        )

        try:
            response = self._session.post(
                url,
                headers=self._get_auth_headers(access_token),
                data=json.dumps(modify_data),
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            logger.error("Network error modifying thread", thread_id=thread_id, error=str(e))
            raise GoogleGmailError(f"Failed to modify thread: {e}") from e

        self._handle_api_response(response, "modify_thread")

    def get_labels(self, access_token: str) -> list[GmailLabel]:
        """
        Get user's Gmail labels.

        Raises:
            GoogleGmailError: If getting labels fails
        """
        url = f"{GMAIL_API_BASE_URL}/users/{GMAIL_USER_ID}/labels"

        try:
            response = self._session.get(
                url, headers=self._get_auth_headers(access_token), timeout=REQUEST_TIMEOUT
            )
        except requests.RequestException as e:
            logger.error("Network error getting labels", error=str(e))
            raise GoogleGmailError(f"Failed to get labels: {e}") from e

        data = self._handle_api_response(response, "get_labels")
        return [GmailLabel(label_data) for label_data in data.get("labels", [])]

    def create_label(self, access_token: str, name: str) -> GmailLabel:
        """
        Create a user label.

        Raises:
            GoogleGmailError: If creating the label fails
        """
        url = f"{GMAIL_API_BASE_URL}/users/{GMAIL_USER_ID}/labels"
        label_data = {
            "name": name,
            "labelListVisibility": "labelShow",
            "messageListVisibility": "show",
        }

        try:
            response = self._session.post(
                url,
                headers=self._get_auth_headers(access_token),
                data=json.dumps(label_data),
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            logger.error("Network error creating label", label=name, error=str(e))
            raise GoogleGmailError(f"Failed to create label: {e}") from e

        data = self._handle_api_response(response, "create_label")
        logger.info("Gmail label created", label=name, label_id=data.get("id"))
        return GmailLabel(data)
