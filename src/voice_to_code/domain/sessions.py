"""Domain models for generation sessions."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class SessionState(Enum):
    """Lifecycle states of the session orchestrator."""

    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class SessionRecord:
    """Snapshot of one successful generation kept in history."""

    id: int
    transcript: str
    code: str
    created_at: datetime
    title: str


@dataclass(frozen=True)
class SubmitOutcome:
    """Result of a submit attempt after it reached a terminal state."""

    state: SessionState
    artifact: str
    record: SessionRecord | None = None
    error_code: str | None = None
    error_message: str | None = None
    used_fallback: bool = False
