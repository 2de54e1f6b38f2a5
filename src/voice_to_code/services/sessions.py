"""Session state machine for voice-driven code generation."""

import asyncio
import logging
import re
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime

from voice_to_code.adapters.generation_client import GenerationClient
from voice_to_code.domain.generation import GenerationResult
from voice_to_code.domain.sessions import SessionRecord, SessionState, SubmitOutcome
from voice_to_code.errors import (
    AlreadyInProgressError,
    BackendUnavailableError,
    CaptureFailedError,
    CaptureUnsupportedError,
    NoInputError,
    RecordNotFoundError,
    UnknownTransportError,
    VoiceToCodeError,
)
from voice_to_code.services.capture import CaptureSource
from voice_to_code.services.fallback import render_fallback_document
from voice_to_code.services.history import (
    DEFAULT_HISTORY_CAPACITY,
    HistoryStore,
    find_record,
    prepend_record,
)

INITIAL_STAGE = "Initializing AI..."
GENERATION_STAGES = (
    "Analyzing your request...",
    "Processing speech context...",
    "Generating component structure...",
    "Adding styling and interactions...",
    "Finalizing code...",
)
COMPLETE_STAGE = "Complete! ✨"

DEFAULT_TITLE = "Custom Component"
# Checked in order; the first category with a matching word names the record.
TITLE_LEXICON: tuple[tuple[str, frozenset[str]], ...] = (
    ("Interactive Button", frozenset({"button", "btn"})),
    ("Login Form", frozenset({"form", "login"})),
    ("Profile Card", frozenset({"card", "profile"})),
    ("Navigation Menu", frozenset({"nav", "navigation", "menu"})),
)

_WORD_PATTERN = re.compile(r"[a-z0-9]+")

_logger = logging.getLogger(__name__)


@dataclass
class SessionOrchestrator:
    """Owns the active transcript and artifact and drives generation attempts.

    Only one attempt runs at a time. While it is in flight a cosmetic stage
    ticker advances through ``GENERATION_STAGES``; the ticker is bound to the
    lifetime of the client call and is cancelled as soon as the call returns
    or fails. Successful results are recorded in history; a refused backend
    connection yields a local fallback artifact instead.
    """

    generation_client: GenerationClient
    history_store: HistoryStore
    capture_source: CaptureSource | None = None
    history_capacity: int = DEFAULT_HISTORY_CAPACITY
    stage_interval_seconds: float = 0.8
    stage_clear_delay_seconds: float = 2.0
    transcript: str = ""
    artifact: str = ""
    state: SessionState = SessionState.IDLE
    stage: str | None = None
    error: str | None = None
    error_code: str | None = None
    backend_available: bool | None = None
    history: list[SessionRecord] = field(default_factory=list)
    _last_record_id: int = field(default=0, repr=False)
    _stage_clear_handle: asyncio.TimerHandle | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.history_capacity < 1:
            raise ValueError("history_capacity must be at least 1")

    @property
    def listening(self) -> bool:
        """Whether speech capture is currently active."""
        return self.capture_source is not None and self.capture_source.listening

    def restore_history(self) -> list[SessionRecord]:
        """Rehydrate history from the store."""
        self.history = self.history_store.load()
        _logger.info("Restored %s history records", len(self.history))
        return self.history

    async def refresh_backend_status(self) -> bool:
        """Check the generation service health and remember the result."""
        self.backend_available = await self.generation_client.check_health()
        return self.backend_available

    def update_transcript(self, text: str) -> None:
        """Replace the transcript wholesale and clear any visible error."""
        self.transcript = text
        self._clear_error()

    def clear_transcript(self) -> None:
        """Reset the transcript to the empty no-input state."""
        self.update_transcript("")

    def on_update(self, text: str) -> None:
        """Capture listener hook for transcript updates."""
        self.update_transcript(text)

    def on_end(self) -> None:
        """Capture listener hook for the end of listening."""
        _logger.info("Capture finished with %s characters", len(self.transcript))

    def on_error(self, kind: str) -> None:
        """Capture listener hook for recognition failures."""
        self._set_error(CaptureFailedError(kind))

    def start_capture(self) -> bool:
        """Start listening; returns False if capture is unavailable or fails."""
        if self.capture_source is None:
            self._set_error(CaptureUnsupportedError())
            return False
        try:
            self.capture_source.start(self)
        except (CaptureUnsupportedError, CaptureFailedError) as exc:
            self._set_error(exc)
            return False
        return True

    def stop_capture(self) -> None:
        """Stop listening; in-flight generation is unaffected."""
        if self.capture_source is not None:
            self.capture_source.stop()

    def edit_artifact(self, code: str) -> None:
        """Replace the active artifact with a user-edited version."""
        self.artifact = code

    async def submit(self) -> SubmitOutcome:
        """Run one generation attempt for the current transcript.

        Raises ``AlreadyInProgressError`` if an attempt is in flight and
        ``NoInputError`` if the transcript is blank. Generation failures are
        never raised; they are reported in the returned outcome.
        """
        if self.state is SessionState.SUBMITTING:
            raise AlreadyInProgressError()
        self._clear_error()
        transcript = self.transcript
        if not transcript.strip():
            error = NoInputError()
            self._set_error(error)
            raise error

        self._cancel_stage_clear()
        self._transition(SessionState.SUBMITTING)
        self.stage = INITIAL_STAGE
        try:
            async with self._stage_ticker():
                result = await self.generation_client.submit(transcript)
        except VoiceToCodeError as exc:
            outcome = self._apply_failure(transcript, exc)
        except Exception:
            _logger.exception("Unexpected failure during code generation")
            outcome = self._apply_failure(transcript, UnknownTransportError())
        else:
            outcome = self._apply_success(transcript, result)
        finally:
            if self.state is SessionState.SUBMITTING:
                self.stage = None
                self._transition(SessionState.IDLE)
        return outcome

    def load_record(self, record_id: int) -> SessionRecord:
        """Restore transcript and artifact from a history record."""
        if self.state is not SessionState.IDLE:
            raise AlreadyInProgressError()
        record = find_record(self.history, record_id)
        if record is None:
            raise RecordNotFoundError(record_id)
        self.transcript = record.transcript
        self.artifact = record.code
        self._clear_error()
        return record

    def clear_history(self) -> None:
        """Forget all history records and the persisted snapshot."""
        self.history = []
        self.history_store.clear()

    def _apply_success(
        self, transcript: str, result: GenerationResult
    ) -> SubmitOutcome:
        self._clear_error()
        self.artifact = result.code
        record = SessionRecord(
            id=self._next_record_id(),
            transcript=transcript,
            code=result.code,
            created_at=datetime.now(tz=UTC),
            title=derive_title(transcript),
        )
        self.history = prepend_record(self.history, record, self.history_capacity)
        self._persist_history()
        self.stage = COMPLETE_STAGE
        self._transition(SessionState.SUCCEEDED)
        self._transition(SessionState.IDLE)
        self._schedule_stage_clear()
        return SubmitOutcome(
            state=SessionState.SUCCEEDED, artifact=self.artifact, record=record
        )

    def _apply_failure(self, transcript: str, exc: VoiceToCodeError) -> SubmitOutcome:
        self._set_error(exc)
        used_fallback = isinstance(exc, BackendUnavailableError)
        if used_fallback:
            _logger.info("Backend unavailable, showing fallback artifact")
            self.artifact = render_fallback_document(transcript)
            self.backend_available = False
        self.stage = None
        self._transition(SessionState.FAILED)
        self._transition(SessionState.IDLE)
        return SubmitOutcome(
            state=SessionState.FAILED,
            artifact=self.artifact,
            error_code=exc.code,
            error_message=exc.detail,
            used_fallback=used_fallback,
        )

    def _persist_history(self) -> None:
        try:
            self.history_store.save(self.history)
        except Exception:
            _logger.exception("Failed to persist history snapshot")

    @asynccontextmanager
    async def _stage_ticker(self) -> AsyncIterator[None]:
        task = asyncio.create_task(self._advance_stages())
        try:
            yield
        finally:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    async def _advance_stages(self) -> None:
        for label in GENERATION_STAGES:
            await asyncio.sleep(self.stage_interval_seconds)
            self.stage = label

    def _schedule_stage_clear(self) -> None:
        self._cancel_stage_clear()
        loop = asyncio.get_running_loop()
        self._stage_clear_handle = loop.call_later(
            self.stage_clear_delay_seconds, self._clear_stage
        )

    def _cancel_stage_clear(self) -> None:
        if self._stage_clear_handle is not None:
            self._stage_clear_handle.cancel()
            self._stage_clear_handle = None

    def _clear_stage(self) -> None:
        self._stage_clear_handle = None
        if self.state is SessionState.IDLE:
            self.stage = None

    def _next_record_id(self) -> int:
        newest = max((record.id for record in self.history), default=0)
        candidate = time.time_ns() // 1_000_000
        self._last_record_id = max(candidate, newest + 1, self._last_record_id + 1)
        return self._last_record_id

    def _transition(self, new_state: SessionState) -> None:
        _logger.info("Session state %s -> %s", self.state.value, new_state.value)
        self.state = new_state

    def _set_error(self, exc: VoiceToCodeError) -> None:
        self.error = exc.detail
        self.error_code = exc.code

    def _clear_error(self) -> None:
        self.error = None
        self.error_code = None


def derive_title(transcript: str) -> str:
    """Pick a history label from keywords in the transcript."""
    words = set(_WORD_PATTERN.findall(transcript.lower()))
    for title, keywords in TITLE_LEXICON:
        if words & keywords:
            return title
    return DEFAULT_TITLE
