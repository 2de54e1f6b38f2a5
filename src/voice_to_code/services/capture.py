"""Speech capture source built on a platform recognition capability."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from voice_to_code.errors import CaptureFailedError, CaptureUnsupportedError

_logger = logging.getLogger(__name__)


class SpeechEngine(Protocol):
    """Platform speech recognizer reporting cumulative result segments."""

    def start(
        self,
        on_results: Callable[[list[str]], None],
        on_end: Callable[[], None],
        on_error: Callable[[str], None],
    ) -> None:
        """Begin recognition; callbacks run on the event loop thread."""

    def stop(self) -> None:
        """Stop recognition."""


class CaptureListener(Protocol):
    """Receiver of capture events."""

    def on_update(self, text: str) -> None:
        """Handle the full accumulated transcript."""

    def on_end(self) -> None:
        """Handle the end of a listening session."""

    def on_error(self, kind: str) -> None:
        """Handle a recognition failure."""


@dataclass(frozen=True)
class Available:
    """Speech capability backed by a working engine."""

    engine: SpeechEngine


@dataclass(frozen=True)
class Unsupported:
    """Speech capability missing on this platform."""

    reason: str


SpeechCapability = Available | Unsupported


@dataclass
class CaptureSource:
    """Turns engine results into full-transcript updates for a listener."""

    capability: SpeechCapability
    listening: bool = False
    _listener: CaptureListener | None = field(default=None, repr=False)

    @property
    def supported(self) -> bool:
        """Whether the resolved capability can capture speech."""
        return isinstance(self.capability, Available)

    def start(self, listener: CaptureListener) -> None:
        """Begin listening; a no-op if already listening.

        Raises ``CaptureFailedError`` if the engine cannot be started.
        """
        if isinstance(self.capability, Unsupported):
            raise CaptureUnsupportedError(self.capability.reason)
        if self.listening:
            return
        self._listener = listener
        self.listening = True
        listener.on_update("")
        try:
            self.capability.engine.start(
                self._on_results, self._on_end, self._on_error
            )
        except Exception as exc:
            self.listening = False
            self._listener = None
            _logger.exception("Speech engine failed to start")
            raise CaptureFailedError("audio-capture") from exc
        _logger.info("Speech capture started")

    def stop(self) -> None:
        """Stop listening; safe to call repeatedly."""
        if not self.listening:
            return
        if isinstance(self.capability, Available):
            self.capability.engine.stop()
        self._on_end()

    def _on_results(self, segments: list[str]) -> None:
        if not self.listening or self._listener is None:
            return
        self._listener.on_update(join_segments(segments))

    def _on_end(self) -> None:
        if not self.listening:
            return
        self.listening = False
        _logger.info("Speech capture ended")
        if self._listener is not None:
            self._listener.on_end()

    def _on_error(self, kind: str) -> None:
        if not self.listening:
            return
        self.listening = False
        _logger.warning("Speech recognition error: %s", kind)
        if isinstance(self.capability, Available):
            self.capability.engine.stop()
        if self._listener is not None:
            self._listener.on_error(kind)


def join_segments(segments: list[str]) -> str:
    """Combine recognition segments into one transcript."""
    return " ".join(part.strip() for part in segments if part.strip())
