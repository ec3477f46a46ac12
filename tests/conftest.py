import base64
import json

import pytest
import requests
from cryptography.fernet import Fernet

from contact_importer.config import settings
from contact_importer.models.domain.gmail_domain import GmailThread


def _b64(text: str) -> str:
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii").rstrip("=")


def build_message_data(
    message_id: str = "m1",
    text: str = "",
    html: str = "",
    subject: str = "Hello",
) -> dict:
    parts = []
    if text:
        parts.append({"mimeType": "text/plain", "body": {"data": _b64(text)}})
    if html:
        parts.append({"mimeType": "text/html", "body": {"data": _b64(html)}})
    return {
        "id": message_id,
        "threadId": "t",
        "payload": {
            "mimeType": "multipart/alternative",
            "headers": [{"name": "Subject", "value": subject}],
            "parts": parts,
        },
    }


class FakeRedis:
    def __init__(self):
        self.store: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self.store.get(key)

    def set(self, key: str, value: str) -> bool:
        self.store[key] = value
        return True

    def delete(self, key: str) -> int:
        return 1 if self.store.pop(key, None) is not None else 0


class FakeLabelPort:
    """In-memory LabelPort; labels are tracked per thread id."""

    def __init__(self, threads: list[GmailThread] | None = None, pending: str = "Brevo/Import"):
        self.threads = list(threads or [])
        self.labels: dict[str, set[str]] = {t.id: {pending} for t in self.threads}
        self.ensured: list[str] = []
        self.fail_add_for: set[str] = set()
        self.list_calls: list[tuple[str, int]] = []

    def ensure_exists(self, name: str) -> str:
        if name not in self.ensured:
            self.ensured.append(name)
        return f"Label_{name}"

    def add_to(self, thread: GmailThread, name: str) -> None:
        if thread.id in self.fail_add_for:
            raise RuntimeError("label service unavailable")
        self.labels.setdefault(thread.id, set()).add(name)

    def remove_from(self, thread: GmailThread, name: str) -> None:
        self.labels.setdefault(thread.id, set()).discard(name)

    def list_items_bearing(self, name: str, max_results: int) -> list[GmailThread]:
        self.list_calls.append((name, max_results))
        bearing = [t for t in self.threads if name in self.labels.get(t.id, set())]
        return bearing[:max_results]

    def remove_from_all(self, name: str) -> int:
        count = 0
        for labels in self.labels.values():
            if name in labels:
                labels.discard(name)
                count += 1
        return count


@pytest.fixture
def message_data():
    return build_message_data


@pytest.fixture
def make_thread():
    def _make(thread_id: str, text: str = "", html: str = "", subject: str = "Hello"):
        return GmailThread(
            {
                "id": thread_id,
                "messages": [build_message_data(f"{thread_id}-m1", text, html, subject)],
            }
        )

    return _make


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def fake_label_port():
    return FakeLabelPort


@pytest.fixture
def encryption_key(monkeypatch):
    key = Fernet.generate_key().decode("utf-8")
    monkeypatch.setattr(settings, "ENCRYPTION_KEY", key)
    return key


@pytest.fixture
def make_response():
    def _make(status_code: int, body=None) -> requests.Response:
        response = requests.Response()
        response.status_code = status_code
        response.encoding = "utf-8"
        if body is None:
            response._content = b""
        elif isinstance(body, str):
            response._content = body.encode("utf-8")
        else:
            response._content = json.dumps(body).encode("utf-8")
        return response

    return _make
