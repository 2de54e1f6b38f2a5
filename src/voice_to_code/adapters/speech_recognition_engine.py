"""Speech engine backed by the SpeechRecognition library."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

import speech_recognition as sr

from voice_to_code.services.capture import SpeechEngine

_logger = logging.getLogger(__name__)


@dataclass
class SpeechRecognitionEngine(SpeechEngine):
    """Listens on a microphone in the background and transcribes phrases.

    The library delivers audio on its own worker thread, so recognized text is
    handed back to the event loop with ``call_soon_threadsafe`` and results
    are applied strictly in arrival order.
    """

    recognizer: sr.Recognizer
    microphone_factory: Callable[[], sr.AudioSource]
    language: str = "en-US"
    phrase_time_limit: float | None = None
    _segments: list[str] = field(default_factory=list, repr=False)
    _stop_listening: Callable[..., None] | None = field(default=None, repr=False)
    _run: object | None = field(default=None, repr=False)

    @classmethod
    def create(cls, language: str = "en-US") -> "SpeechRecognitionEngine":
        """Create an engine for the default system microphone."""
        return cls(
            recognizer=sr.Recognizer(),
            microphone_factory=sr.Microphone,
            language=language,
        )

    def start(
        self,
        on_results: Callable[[list[str]], None],
        on_end: Callable[[], None],
        on_error: Callable[[str], None],
    ) -> None:
        """Start background listening on a fresh microphone source."""
        loop = asyncio.get_running_loop()
        run = object()
        self._run = run
        self._segments = []

        def handle_audio(recognizer: sr.Recognizer, audio: sr.AudioData) -> None:
            try:
                text = recognizer.recognize_google(audio, language=self.language)
            except sr.UnknownValueError:
                return
            except sr.RequestError as exc:
                _logger.warning("Speech recognition request failed: %s", exc)
                loop.call_soon_threadsafe(on_error, "network")
                return
            except Exception:
                _logger.exception("Speech recognition failed")
                loop.call_soon_threadsafe(on_error, "aborted")
                return
            loop.call_soon_threadsafe(self._append_segment, text, on_results)

        def handle_exit(exc: BaseException | None) -> None:
            if loop.is_closed():
                return
            loop.call_soon_threadsafe(self._finish_run, run, exc, on_end, on_error)

        self._stop_listening = self.recognizer.listen_in_background(
            _MonitoredSource(self.microphone_factory(), handle_exit),
            handle_audio,
            phrase_time_limit=self.phrase_time_limit,
        )

    def stop(self) -> None:
        """Stop background listening without blocking the event loop."""
        self._run = None
        if self._stop_listening is None:
            return
        stop_listening = self._stop_listening
        self._stop_listening = None
        stop_listening(wait_for_stop=False)

    def _append_segment(
        self, text: str, on_results: Callable[[list[str]], None]
    ) -> None:
        self._segments.append(text)
        on_results(list(self._segments))

    def _finish_run(
        self,
        run: object,
        exc: BaseException | None,
        on_end: Callable[[], None],
        on_error: Callable[[str], None],
    ) -> None:
        # Exits of runs that were stopped or replaced are not reported.
        if self._run is not run:
            return
        self._run = None
        self._stop_listening = None
        if exc is None:
            on_end()
            return
        _logger.warning("Microphone stream failed: %s", exc)
        on_error("audio-capture")


class _MonitoredSource(sr.AudioSource):
    """Microphone wrapper that reports when the background listener exits."""

    def __init__(
        self,
        source: sr.AudioSource,
        on_exit: Callable[[BaseException | None], None],
    ) -> None:
        self.source = source
        self.on_exit = on_exit

    def __enter__(self) -> sr.AudioSource:
        try:
            return self.source.__enter__()
        except Exception as exc:
            self.on_exit(exc)
            raise

    def __exit__(  # type: ignore[no-untyped-def]
        self, exc_type, exc_value, traceback
    ) -> None:
        try:
            self.source.__exit__(exc_type, exc_value, traceback)
        finally:
            self.on_exit(exc_value)


def microphone_unavailable_reason() -> str | None:
    """Return why no microphone can be used, or ``None`` if one can."""
    try:
        names = sr.Microphone.list_microphone_names()
    except (AttributeError, OSError) as exc:
        return f"Microphone input is unavailable: {exc}"
    if not names:
        return "No microphone detected"
    return None
