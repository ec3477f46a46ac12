import json
from unittest.mock import MagicMock

from contact_importer.models.api.brevo_request import (
    ContactAttributes,
    CreateContactRequest,
    UpdateContactListsRequest,
)
from contact_importer.models.domain.contact_domain import RawError, StructuredError
from contact_importer.services.brevo_contacts_service import BrevoContactsService


def _service(session):
    return BrevoContactsService("test-key", base_url="https://brevo.test/v3/", session=session)


def test_create_contact_posts_expected_payload(make_response):
    session = MagicMock()
    session.post.return_value = make_response(201, {"id": 42})
    request = CreateContactRequest(
        email="jane@example.com",
        attributes=ContactAttributes(first_name="Jane", last_name="Smith"),
        list_ids=[7],
    )

    response = _service(session).create_contact(request)

    assert response.status_code == 201
    args, kwargs = session.post.call_args
    assert args[0] == "https://brevo.test/v3/contacts"
    assert kwargs["headers"] == {
        "api-key": "test-key",
        "Content-Type": "application/json",
        "Accept": "application/json",
    }
    assert json.loads(kwargs["data"]) == {
        "email": "jane@example.com",
        "attributes": {"FIRSTNAME": "Jane", "LASTNAME": "Smith"},
        "listIds": [7],
        "updateEnabled": True,
    }


def test_add_contact_to_lists_url_encodes_email(make_response):
    session = MagicMock()
    session.put.return_value = make_response(204)

    _service(session).add_contact_to_lists(
        "jane+news@example.com", UpdateContactListsRequest(list_ids=[7])
    )

    args, kwargs = session.put.call_args
    assert args[0] == "https://brevo.test/v3/contacts/jane%2Bnews%40example.com"
    assert json.loads(kwargs["data"]) == {"listIds": [7]}


def test_parse_error_structured(make_response):
    response = make_response(400, {"code": "invalid_parameter", "message": "email is not valid"})

    error = BrevoContactsService.parse_error(response)

    assert error == StructuredError(code="invalid_parameter", message="email is not valid")
    assert error.describe() == "invalid_parameter: email is not valid"


def test_parse_error_falls_back_to_raw_body(make_response):
    response = make_response(502, "<html>Bad gateway</html>")

    error = BrevoContactsService.parse_error(response)

    assert error == RawError(status_code=502, body="<html>Bad gateway</html>")


def test_parse_error_without_body_keeps_status(make_response):
    error = BrevoContactsService.parse_error(make_response(500))

    assert error == RawError(status_code=500, body="")
    assert error.describe() == "HTTP 500"


def test_duplicate_detection(make_response):
    by_code = make_response(400, {"code": "duplicate_parameter", "message": "Contact exists"})
    by_message = make_response(400, {"code": "bad_request", "message": "Contact already exist"})
    raw_body = make_response(400, "Contact already exists")
    other = make_response(400, {"code": "invalid_parameter", "message": "bad email"})
    not_400 = make_response(409, {"code": "duplicate_parameter", "message": "dup"})

    for response, expected in [
        (by_code, True),
        (by_message, True),
        (raw_body, True),
        (other, False),
        (not_400, False),
    ]:
        error = BrevoContactsService.parse_error(response)
        assert BrevoContactsService.is_duplicate_error(response, error) is expected
