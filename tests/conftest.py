"""Shared test fixtures."""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

import pytest

from voice_to_code.adapters.generation_client import GenerationClient
from voice_to_code.config import Settings
from voice_to_code.containers import AppContainer
from voice_to_code.domain.generation import GenerationResult
from voice_to_code.domain.sessions import SessionRecord
from voice_to_code.services.capture import (
    Available,
    CaptureSource,
    SpeechEngine,
    Unsupported,
)
from voice_to_code.services.history import HistoryStore
from voice_to_code.services.sessions import SessionOrchestrator


@dataclass
class FakeGenerationClient(GenerationClient):
    """Fake generation client returning a fixed artifact or raising."""

    code: str = "<button>Click</button>"
    error: Exception | None = None
    healthy: bool = True
    delay_seconds: float = 0.0
    gate: asyncio.Event | None = None
    calls: list[str] = field(default_factory=list)

    async def submit(self, transcript: str) -> GenerationResult:
        self.calls.append(transcript)
        if self.gate is not None:
            await self.gate.wait()
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.error is not None:
            raise self.error
        return GenerationResult(
            code=self.code,
            source_transcript=transcript,
            produced_at=datetime.now(tz=UTC),
        )

    async def check_health(self) -> bool:
        return self.healthy


@dataclass
class InMemoryHistoryStore(HistoryStore):
    """In-memory history store for tests."""

    snapshot: list[SessionRecord] | None = None
    saves: int = 0
    clears: int = 0

    def load(self) -> list[SessionRecord]:
        return list(self.snapshot or [])

    def save(self, records: list[SessionRecord]) -> None:
        self.snapshot = list(records)
        self.saves += 1

    def clear(self) -> None:
        self.snapshot = None
        self.clears += 1


@dataclass
class FakeSpeechEngine(SpeechEngine):
    """Fake speech engine driven directly by tests."""

    started: int = 0
    stopped: int = 0
    start_error: Exception | None = None
    _on_results: Callable[[list[str]], None] | None = None
    _on_end: Callable[[], None] | None = None
    _on_error: Callable[[str], None] | None = None

    def start(
        self,
        on_results: Callable[[list[str]], None],
        on_end: Callable[[], None],
        on_error: Callable[[str], None],
    ) -> None:
        if self.start_error is not None:
            raise self.start_error
        self.started += 1
        self._on_results = on_results
        self._on_end = on_end
        self._on_error = on_error

    def stop(self) -> None:
        self.stopped += 1

    def emit(self, *segments: str) -> None:
        assert self._on_results is not None
        self._on_results(list(segments))

    def finish(self) -> None:
        assert self._on_end is not None
        self._on_end()

    def fail(self, kind: str) -> None:
        assert self._on_error is not None
        self._on_error(kind)


def make_record(record_id: int, transcript: str = "create a button") -> SessionRecord:
    return SessionRecord(
        id=record_id,
        transcript=transcript,
        code=f"<div>{record_id}</div>",
        created_at=datetime(2024, 5, 1, 12, 0, record_id % 60, tzinfo=UTC),
        title="Interactive Button",
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        backend_base_url="http://backend.test/api",
        history_dir=str(tmp_path / "history"),
        speech_enabled=False,
        stage_interval_seconds=0.01,
        stage_clear_delay_seconds=10.0,
    )


@pytest.fixture
def generation_client() -> FakeGenerationClient:
    return FakeGenerationClient()


@pytest.fixture
def history_store() -> InMemoryHistoryStore:
    return InMemoryHistoryStore()


@pytest.fixture
def speech_engine() -> FakeSpeechEngine:
    return FakeSpeechEngine()


@pytest.fixture
def orchestrator(
    generation_client: FakeGenerationClient,
    history_store: InMemoryHistoryStore,
    speech_engine: FakeSpeechEngine,
) -> SessionOrchestrator:
    return SessionOrchestrator(
        generation_client=generation_client,
        history_store=history_store,
        capture_source=CaptureSource(Available(speech_engine)),
        stage_interval_seconds=0.01,
        stage_clear_delay_seconds=10.0,
    )


@pytest.fixture
def container(
    settings: Settings,
    generation_client: FakeGenerationClient,
    history_store: InMemoryHistoryStore,
) -> AppContainer:
    capture_source = CaptureSource(Unsupported("Speech capture is disabled"))
    orchestrator = SessionOrchestrator(
        generation_client=generation_client,
        history_store=history_store,
        capture_source=capture_source,
        stage_interval_seconds=settings.stage_interval_seconds,
        stage_clear_delay_seconds=settings.stage_clear_delay_seconds,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        generation_client=generation_client,
        history_store=history_store,
        capture_source=capture_source,
        orchestrator=orchestrator,
        close_resources=close_resources,
    )
