# contact_importer/models/domain/gmail_domain.py
"""
Gmail Domain Models
Domain models built from Gmail REST API payloads (threads, messages, labels).
Only the parts the importer reads are parsed: bodies, subject and label names.
"""

import base64


class GmailMessage:
    """Domain model for a Gmail message with decoded plain and HTML bodies."""

    def __init__(self, data: dict):
        self.id = data.get("id")
        self.payload = data.get("payload", {})

        self._parse_headers()
        self._parse_body()

    def _parse_headers(self):
        """Parse email headers from payload."""
        headers = self.payload.get("headers", [])
        self.headers = {h["name"].lower(): h["value"] for h in headers}
        self.subject = self.headers.get("subject", "(No Subject)")

    def _parse_body(self):
        """Parse email body content from payload."""
        self.body_text = ""
        self.body_html = ""

        if not self.payload:
            return

        if self.payload.get("body", {}).get("data"):
            # Single-part message; the payload mime type tells which body it is
            self._extract_body_data(self.payload.get("mimeType", ""), self.payload["body"])
        elif self.payload.get("parts"):
            self._parse_multipart_body(self.payload["parts"])

    def _parse_multipart_body(self, parts: list):
        """Parse multipart email body, keeping the first text/plain and text/html parts."""
        for part in parts:
            mime_type = part.get("mimeType", "")

            if mime_type == "text/plain" and not self.body_text:
                body_data = part.get("body", {}).get("data")
                if body_data:
                    self.body_text = self._decode_base64_data(body_data)

            elif mime_type == "text/html" and not self.body_html:
                body_data = part.get("body", {}).get("data")
                if body_data:
                    self.body_html = self._decode_base64_data(body_data)

            elif mime_type.startswith("multipart/"):
                self._parse_multipart_body(part.get("parts", []))

    def _extract_body_data(self, mime_type: str, body: dict):
        data = body.get("data")
        if not data:
            return
        if mime_type == "text/html":
            self.body_html = self._decode_base64_data(data)
        else:
            self.body_text = self._decode_base64_data(data)

    def _decode_base64_data(self, data: str) -> str:
        """Decode base64 URL-safe encoded data."""
        try:
            # Gmail uses URL-safe base64 encoding without padding
            decoded_bytes = base64.urlsafe_b64decode(data + "=" * (-len(data) % 4))
            return decoded_bytes.decode("utf-8", errors="ignore")
        except (ValueError, TypeError):
            return ""


class GmailThread:
    """Domain model for Gmail conversation threads (the importer's work items)."""

    def __init__(self, data: dict):
        self.id = data.get("id")
        self.messages = [GmailMessage(msg_data) for msg_data in data.get("messages", [])]

    def get_subject(self) -> str:
        """Get thread subject from the first message."""
        return self.messages[0].subject if self.messages else "(No Subject)"


class GmailLabel:
    """Domain model for Gmail labels."""

    def __init__(self, data: dict):
        self.id = data.get("id")
        self.name = data.get("name", "")
