"""Exception hierarchy for the voice-to-code session service.

Every failure the orchestrator can surface to a user inherits from
``VoiceToCodeError`` and carries a short user-facing ``detail`` plus a stable
machine-readable ``code``.
"""


class VoiceToCodeError(Exception):
    """Base exception for all voice-to-code errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "VOICE_TO_CODE_ERROR",
    ) -> None:
        self.detail = detail
        self.code = code
        super().__init__(detail)


class CaptureUnsupportedError(VoiceToCodeError):
    """Raised when speech capture is not available on this platform."""

    def __init__(self, reason: str = "Speech recognition is not supported") -> None:
        super().__init__(detail=reason, code="CAPTURE_UNSUPPORTED")


class EmptyInputError(VoiceToCodeError):
    """Raised by the generation client for a blank transcript."""

    def __init__(self) -> None:
        super().__init__(
            detail="Please provide a transcript to generate code",
            code="EMPTY_INPUT",
        )


class NoInputError(VoiceToCodeError):
    """Raised when a submit is requested before any speech was captured."""

    def __init__(self) -> None:
        super().__init__(detail="Please record some speech first!", code="NO_INPUT")


class AlreadyInProgressError(VoiceToCodeError):
    """Raised when a generation attempt is already in flight."""

    def __init__(self) -> None:
        super().__init__(
            detail="A code generation is already in progress",
            code="ALREADY_IN_PROGRESS",
        )


class RecordNotFoundError(VoiceToCodeError):
    """Raised when a history record id is unknown."""

    def __init__(self, record_id: int) -> None:
        super().__init__(
            detail=f"History record not found: {record_id}",
            code="RECORD_NOT_FOUND",
        )


class PersistenceCorruptError(VoiceToCodeError):
    """Raised while parsing a history snapshot that has the wrong shape."""

    def __init__(self, detail: str = "History snapshot is corrupt") -> None:
        super().__init__(detail=detail, code="PERSISTENCE_CORRUPT")


class GenerationError(VoiceToCodeError):
    """Base class for classified generation failures."""


class BackendUnavailableError(GenerationError):
    """Raised when the generation service refuses or drops the connection."""

    def __init__(self) -> None:
        super().__init__(
            detail=(
                "Backend server is not running. "
                "Please start your backend server."
            ),
            code="BACKEND_UNAVAILABLE",
        )


class TimedOutError(GenerationError):
    """Raised when the generation request exceeds its timeout."""

    def __init__(self) -> None:
        super().__init__(
            detail="Request timed out. Please try again.", code="TIMED_OUT"
        )


class InvalidRequestError(GenerationError):
    """Raised for HTTP 4xx responses."""

    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(
            detail="Invalid request. Please check your input.",
            code="INVALID_REQUEST",
        )


class ServiceError(GenerationError):
    """Raised for HTTP 5xx responses."""

    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(
            detail="Server error. Please try again later.", code="SERVICE_ERROR"
        )


class ServiceRejectedError(GenerationError):
    """Raised when the service answers with ``success: false``."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            detail=message or "Failed to generate code", code="SERVICE_REJECTED"
        )


class UnknownTransportError(GenerationError):
    """Raised for any transport failure that fits no other category."""

    def __init__(
        self, detail: str = "Failed to generate code. Please try again."
    ) -> None:
        super().__init__(detail=detail, code="UNKNOWN_TRANSPORT_ERROR")


class CaptureFailedError(VoiceToCodeError):
    """Raised when the recognizer reports an error mid-session."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        super().__init__(
            detail=f"Speech recognition error: {kind}", code="CAPTURE_FAILED"
        )
