"""
Google OAuth token refresh for the Gmail account the importer reads.
Exchanges the long-lived refresh token for a short-lived access token.
"""

import httpx

from contact_importer.config import settings
from contact_importer.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
REQUEST_TIMEOUT = 30.0


class GoogleOAuthError(Exception):
    """Custom exception for Google OAuth errors."""

    def __init__(self, message: str, error_code: str | None = None):
        super().__init__(message)
        self.error_code = error_code


class GoogleOAuthService:
    """Refreshes Gmail access tokens with the configured OAuth client."""

    def __init__(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        client: httpx.Client | None = None,
    ):
        self.client_id = client_id or settings.GOOGLE_CLIENT_ID
        self.client_secret = client_secret or settings.GOOGLE_CLIENT_SECRET
        self._client = client or httpx.Client(timeout=REQUEST_TIMEOUT)

    def refresh_access_token(self, refresh_token: str) -> str:
        """
        Refresh access token using refresh token.

        Returns:
            str: New access token

        Raises:
            GoogleOAuthError: If the client is not configured or the refresh fails
        """
        if not (self.client_id and self.client_secret):
            raise GoogleOAuthError("GOOGLE_CLIENT_ID / GOOGLE_CLIENT_SECRET not configured")
        if not refresh_token:
            raise GoogleOAuthError("GOOGLE_REFRESH_TOKEN not configured")

        data = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "refresh_token": refresh_token,
            "grant_type": "refresh_token",
        }

        logger.info(
            "Refreshing Gmail access token",
            refresh_token_preview=refresh_token[:12] + "...",
        )

        try:
            response = self._client.post(GOOGLE_TOKEN_URL, data=data)
        except httpx.RequestError as e:
            logger.error(
                "Network error during token refresh",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise GoogleOAuthError(f"Network error during token refresh: {e}") from e

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if response.status_code != 200 or "access_token" not in payload:
            error_code = payload.get("error", f"http_{response.status_code}")
            logger.error(
                "Token refresh rejected",
                status_code=response.status_code,
                error_code=error_code,
                error_description=payload.get("error_description"),
            )
            raise GoogleOAuthError(
                f"Token refresh failed: {payload.get('error_description') or error_code}",
                error_code=error_code,
            )

        return payload["access_token"]
