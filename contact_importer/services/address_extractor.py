"""
Heuristic extraction of contact addresses from free-form message bodies.

Three independent pattern passes run over the same text, in this order:

1. bare addresses standing on their own ("mail john.doe@example.com"),
2. quoted display names before an angle address ("Jane Smith" <jane@x.org>),
3. unquoted display names before an angle address (Mary Johnson <mary@x.org>).

Matches are accumulated pass by pass and then deduplicated on the lowercased
email. The first match wins: earlier pass first, then earlier position. This
means an address written bare before it appears with a display name keeps the
inferred name of the bare match.
"""

import re
from collections.abc import Iterable

from bs4 import BeautifulSoup

from contact_importer.infrastructure.observability.logging import get_logger
from contact_importer.models.domain.contact_domain import ContactCandidate
from contact_importer.models.domain.gmail_domain import GmailMessage
from contact_importer.services.name_inferrer import infer_name

logger = get_logger(__name__)

_ADDRESS = r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}"

# An address that is not glued to a preceding address character and not opened
# by an angle bracket; bracketed addresses belong to the display-name passes.
BARE_ADDRESS_RE = re.compile(rf"(?<![\w.%+<-])({_ADDRESS})\b", re.IGNORECASE)

QUOTED_NAME_ADDRESS_RE = re.compile(
    rf'"([^"<>\r\n]*)"\s*<\s*({_ADDRESS})\s*>',
    re.IGNORECASE,
)

# The name text may be wrapped onto the previous line once.
UNQUOTED_NAME_ADDRESS_RE = re.compile(
    rf'([^"<>\r\n]*)(?:\r?\n[ \t]*)?<\s*({_ADDRESS})\s*>',
    re.IGNORECASE,
)

_NAME_WORD_RE = re.compile(r"[^\W\d_][\w'.-]*")
_MAX_NAME_WORDS = 4


def _display_name_from_free_text(text: str) -> str:
    """
    Pick the display name out of the free text in front of an angle address.

    Only the trailing run of capitalised words is kept, so sentence glue such
    as "or" / "contact:" in "... or Mary Johnson <mary@x.org>" is dropped.
    """
    words = text.split()
    name_words: list[str] = []
    for word in reversed(words):
        if not (_NAME_WORD_RE.fullmatch(word) and word[0].isupper()):
            break
        name_words.append(word)
        if len(name_words) == _MAX_NAME_WORDS:
            break
    return " ".join(reversed(name_words))


def _candidate(email: str, name: str) -> ContactCandidate:
    email = email.strip().lower()
    return ContactCandidate(email=email, name=name or infer_name(email))


def _bare_matches(text: str) -> list[ContactCandidate]:
    return [_candidate(m.group(1), "") for m in BARE_ADDRESS_RE.finditer(text)]


def _quoted_matches(text: str) -> list[ContactCandidate]:
    return [
        _candidate(m.group(2), m.group(1).strip())
        for m in QUOTED_NAME_ADDRESS_RE.finditer(text)
    ]


def _unquoted_matches(text: str) -> list[ContactCandidate]:
    return [
        _candidate(m.group(2), _display_name_from_free_text(m.group(1)))
        for m in UNQUOTED_NAME_ADDRESS_RE.finditer(text)
    ]


def dedupe_candidates(candidates: Iterable[ContactCandidate]) -> list[ContactCandidate]:
    """Keep the first candidate per lowercased email, preserving first-seen order."""
    unique: dict[str, ContactCandidate] = {}
    for candidate in candidates:
        key = candidate.email.lower()
        if key not in unique:
            unique[key] = candidate
    return list(unique.values())


def html_to_text(body_html: str) -> str:
    """Flatten an HTML body to text; entities such as &lt;addr&gt; come back as angle brackets."""
    soup = BeautifulSoup(body_html, "html.parser")
    return soup.get_text(" ")


def extract_addresses(text: str | None) -> list[ContactCandidate]:
    """
    Extract deduplicated contact candidates from a text body.

    Args:
        text: Plain text, or HTML already flattened with html_to_text

    Returns:
        list[ContactCandidate]: Unique candidates in pass-then-position order
    """
    if not text:
        return []

    matches: list[ContactCandidate] = []
    matches.extend(_bare_matches(text))
    matches.extend(_quoted_matches(text))
    matches.extend(_unquoted_matches(text))

    return dedupe_candidates(matches)


def extract_thread_contacts(messages: Iterable[GmailMessage]) -> list[ContactCandidate]:
    """
    Extract contacts from every message of a thread.

    Each message contributes its plain body, then its HTML body; the union is
    deduplicated again so the first occurrence across the thread wins.
    """
    collected: list[ContactCandidate] = []
    for message in messages:
        collected.extend(extract_addresses(message.body_text))
        if message.body_html:
            collected.extend(extract_addresses(html_to_text(message.body_html)))

    contacts = dedupe_candidates(collected)
    logger.debug("Extracted thread contacts", candidates=len(collected), unique=len(contacts))
    return contacts
