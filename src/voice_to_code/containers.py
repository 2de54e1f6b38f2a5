"""Dependency container wiring for the application."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from supabase import create_client

from voice_to_code.adapters.file_history_store import FileHistoryStore
from voice_to_code.adapters.generation_client import (
    GenerationClient,
    HttpxGenerationClient,
)
from voice_to_code.adapters.speech_recognition_engine import (
    SpeechRecognitionEngine,
    microphone_unavailable_reason,
)
from voice_to_code.adapters.supabase_history_store import SupabaseHistoryStore
from voice_to_code.config import Settings, normalize_base_url
from voice_to_code.services.capture import (
    Available,
    CaptureSource,
    SpeechCapability,
    Unsupported,
)
from voice_to_code.services.history import HistoryStore
from voice_to_code.services.sessions import SessionOrchestrator

_logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    generation_client: GenerationClient
    history_store: HistoryStore
    capture_source: CaptureSource
    orchestrator: SessionOrchestrator
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    generation_client = HttpxGenerationClient.create(
        base_url=normalize_base_url(resolved_settings.backend_base_url),
        timeout_seconds=resolved_settings.request_timeout_seconds,
    )
    history_store = build_history_store(resolved_settings)
    capture_source = CaptureSource(resolve_speech_capability(resolved_settings))
    orchestrator = SessionOrchestrator(
        generation_client=generation_client,
        history_store=history_store,
        capture_source=capture_source,
        history_capacity=resolved_settings.history_capacity,
        stage_interval_seconds=resolved_settings.stage_interval_seconds,
        stage_clear_delay_seconds=resolved_settings.stage_clear_delay_seconds,
    )

    async def close_resources() -> None:
        capture_source.stop()
        await generation_client.close()

    return AppContainer(
        settings=resolved_settings,
        generation_client=generation_client,
        history_store=history_store,
        capture_source=capture_source,
        orchestrator=orchestrator,
        close_resources=close_resources,
    )


def build_history_store(settings: Settings) -> HistoryStore:
    """Create the history store selected by ``history_backend``."""
    if settings.history_backend == "file":
        return FileHistoryStore(
            directory=Path(settings.history_dir),
            name=settings.history_snapshot_name,
        )
    if settings.history_backend == "supabase":
        if not settings.supabase_url or not settings.supabase_service_key:
            raise ValueError("Supabase history requires supabase_url and key")
        client = create_client(settings.supabase_url, settings.supabase_service_key)
        return SupabaseHistoryStore(client=client, name=settings.history_snapshot_name)
    raise ValueError(f"Unknown history backend: {settings.history_backend}")


def resolve_speech_capability(settings: Settings) -> SpeechCapability:
    """Decide once at startup whether live speech capture is possible."""
    if not settings.speech_enabled:
        return Unsupported("Speech capture is disabled")
    reason = microphone_unavailable_reason()
    if reason is not None:
        _logger.info("Speech capture unsupported: %s", reason)
        return Unsupported(reason)
    return Available(SpeechRecognitionEngine.create(settings.speech_language))
