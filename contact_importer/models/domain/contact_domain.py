"""
Domain models for contact extraction and Brevo synchronization.

Lightweight dataclasses shared by the extractor, the synchronizer and the
import job. They live only for the duration of one run.
"""

from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True, slots=True)
class ContactCandidate:
    """An address found in a message body; identity is the lowercased email."""

    email: str
    name: str = ""

    def split_name(self) -> tuple[str, str]:
        """Split the display name on the first space into (first, last)."""
        first, _, last = self.name.strip().partition(" ")
        return first, last.strip()


@dataclass(frozen=True, slots=True)
class StructuredError:
    """Error body Brevo returned as JSON: {"code": ..., "message": ...}."""

    code: str
    message: str

    def describe(self) -> str:
        return f"{self.code}: {self.message}"


@dataclass(frozen=True, slots=True)
class RawError:
    """Error response whose body could not be parsed as a structured error."""

    status_code: int | None
    body: str = ""

    def describe(self) -> str:
        if self.body:
            return f"HTTP {self.status_code}: {self.body}"
        return f"HTTP {self.status_code}"


RemoteError = StructuredError | RawError


class SyncStatus(str, Enum):
    CREATED = "created"
    UPDATED_EXISTING = "updated_existing"
    FAILED = "failed"


@dataclass(slots=True)
class ContactSyncOutcome:
    """Result of upserting a single contact."""

    email: str
    status: SyncStatus
    reason: str | None = None
    error: RemoteError | None = None

    @property
    def succeeded(self) -> bool:
        return self.status is not SyncStatus.FAILED


@dataclass(slots=True)
class ContactSyncResult:
    """Aggregate of one synchronizer call."""

    overall_success: bool
    results: list[ContactSyncOutcome] = field(default_factory=list)
    error: str | None = None

    @property
    def created_count(self) -> int:
        return sum(1 for r in self.results if r.status is SyncStatus.CREATED)

    @property
    def updated_count(self) -> int:
        return sum(1 for r in self.results if r.status is SyncStatus.UPDATED_EXISTING)

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.results if r.status is SyncStatus.FAILED)


class ThreadState(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class FailureKind(str, Enum):
    EXTRACTION_EMPTY = "extraction_empty"
    SYNC_FAILURE = "sync_failure"
    UNEXPECTED_ERROR = "unexpected_error"


@dataclass(slots=True)
class ThreadOutcome:
    """Terminal state of one processed thread."""

    thread_id: str
    subject: str
    state: ThreadState = ThreadState.PENDING
    failure_kind: FailureKind | None = None
    reason: str | None = None
    contacts_found: int = 0
    sync_result: ContactSyncResult | None = None

    def succeed(self, sync_result: ContactSyncResult) -> None:
        self.state = ThreadState.SUCCEEDED
        self.sync_result = sync_result

    def fail(self, kind: FailureKind, reason: str, sync_result: ContactSyncResult | None = None):
        self.state = ThreadState.FAILED
        self.failure_kind = kind
        self.reason = reason
        self.sync_result = sync_result
