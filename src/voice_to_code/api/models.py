"""Pydantic models for the session HTTP API."""

from datetime import datetime

from pydantic import BaseModel

from voice_to_code.domain.sessions import SessionRecord, SubmitOutcome
from voice_to_code.services.sessions import SessionOrchestrator


class TranscriptUpdate(BaseModel):
    """Full replacement transcript pushed by a client-side recognizer."""

    text: str


class ArtifactUpdate(BaseModel):
    """User-edited replacement for the active artifact."""

    code: str


class HistoryRecordView(BaseModel):
    """History record as exposed over HTTP."""

    id: int
    title: str
    transcript: str
    code: str
    created_at: datetime

    @classmethod
    def from_record(cls, record: SessionRecord) -> "HistoryRecordView":
        """Build a view from a domain record."""
        return cls(
            id=record.id,
            title=record.title,
            transcript=record.transcript,
            code=record.code,
            created_at=record.created_at,
        )


class SessionView(BaseModel):
    """Snapshot of the orchestrator state."""

    state: str
    transcript: str
    artifact: str
    stage: str | None = None
    error: str | None = None
    error_code: str | None = None
    listening: bool
    capture_supported: bool
    backend_available: bool | None = None

    @classmethod
    def from_orchestrator(cls, orchestrator: SessionOrchestrator) -> "SessionView":
        """Build a view from the orchestrator's current state."""
        capture = orchestrator.capture_source
        return cls(
            state=orchestrator.state.value,
            transcript=orchestrator.transcript,
            artifact=orchestrator.artifact,
            stage=orchestrator.stage,
            error=orchestrator.error,
            error_code=orchestrator.error_code,
            listening=orchestrator.listening,
            capture_supported=capture is not None and capture.supported,
            backend_available=orchestrator.backend_available,
        )


class SubmitResult(BaseModel):
    """Terminal outcome of a generation attempt."""

    state: str
    artifact: str
    record: HistoryRecordView | None = None
    error_code: str | None = None
    error_message: str | None = None
    used_fallback: bool = False

    @classmethod
    def from_outcome(cls, outcome: SubmitOutcome) -> "SubmitResult":
        """Build a response from a submit outcome."""
        return cls(
            state=outcome.state.value,
            artifact=outcome.artifact,
            record=(
                HistoryRecordView.from_record(outcome.record)
                if outcome.record
                else None
            ),
            error_code=outcome.error_code,
            error_message=outcome.error_message,
            used_fallback=outcome.used_fallback,
        )
