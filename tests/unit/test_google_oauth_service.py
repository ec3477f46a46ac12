import httpx
import pytest

from contact_importer.services.google_oauth_service import GoogleOAuthError, GoogleOAuthService


def _service(handler):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return GoogleOAuthService(client_id="cid", client_secret="secret", client=client)


def test_refresh_returns_access_token():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = request.content.decode()
        return httpx.Response(200, json={"access_token": "new-token", "expires_in": 3599})

    token = _service(handler).refresh_access_token("refresh-token-123")

    assert token == "new-token"
    assert "grant_type=refresh_token" in seen["body"]
    assert "refresh_token=refresh-token-123" in seen["body"]


def test_refresh_rejected():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400, json={"error": "invalid_grant", "error_description": "Token has been revoked"}
        )

    with pytest.raises(GoogleOAuthError) as exc_info:
        _service(handler).refresh_access_token("refresh-token-123")

    assert exc_info.value.error_code == "invalid_grant"


def test_network_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(GoogleOAuthError):
        _service(handler).refresh_access_token("refresh-token-123")


def test_missing_refresh_token():
    with pytest.raises(GoogleOAuthError):
        _service(lambda request: httpx.Response(200)).refresh_access_token(None)
