"""HTTP client for the remote code generation service."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import uuid4

import httpx
from pydantic import ValidationError

from voice_to_code.domain.generation import GenerateResponse, GenerationResult
from voice_to_code.errors import (
    BackendUnavailableError,
    EmptyInputError,
    GenerationError,
    InvalidRequestError,
    ServiceError,
    ServiceRejectedError,
    TimedOutError,
    UnknownTransportError,
)

_logger = logging.getLogger(__name__)


class GenerationClient(Protocol):
    """Interface for the remote code generation service."""

    async def submit(self, transcript: str) -> GenerationResult:
        """Generate code for a transcript or raise a ``GenerationError``."""

    async def check_health(self) -> bool:
        """Return whether the service reports itself healthy."""


@dataclass
class HttpxGenerationClient(GenerationClient):
    """Generation client implemented with httpx."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 30.0

    @classmethod
    def create(
        cls, base_url: str, timeout_seconds: float = 30.0
    ) -> "HttpxGenerationClient":
        """Create a generation client with a managed httpx session."""
        return cls(
            base_url=base_url,
            http_client=httpx.AsyncClient(
                headers={"Content-Type": "application/json"}
            ),
            timeout_seconds=timeout_seconds,
        )

    async def submit(self, transcript: str) -> GenerationResult:
        """Send a transcript to ``/generate-code`` and return the artifact."""
        cleaned = transcript.strip()
        if not cleaned:
            raise EmptyInputError()

        session_id = _new_session_id()
        url = f"{self.base_url}/generate-code"
        _logger.info("Generation request: session_id=%s", session_id)
        try:
            async with asyncio.timeout(self.timeout_seconds):
                response = await self.http_client.post(
                    url,
                    json={"transcript": cleaned, "sessionId": session_id},
                    timeout=self.timeout_seconds,
                )
            response.raise_for_status()
        except TimeoutError as exc:
            _logger.warning(
                "Generation timed out: session_id=%s after %ss",
                session_id,
                self.timeout_seconds,
            )
            raise TimedOutError() from exc
        except httpx.HTTPError as exc:
            error = classify_transport_error(exc)
            _logger.warning(
                "Generation failed: session_id=%s code=%s error=%s",
                session_id,
                error.code,
                exc,
            )
            raise error from exc

        try:
            envelope = GenerateResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise UnknownTransportError("Received a malformed response") from exc
        if not envelope.success:
            raise ServiceRejectedError(envelope.message)
        if envelope.data is None:
            raise UnknownTransportError("Response did not include generated code")

        data = envelope.data
        return GenerationResult(
            code=data.code,
            source_transcript=data.transcript or cleaned,
            produced_at=data.timestamp or datetime.now(tz=UTC),
        )

    async def check_health(self) -> bool:
        """Call ``/health``; any failure counts as unavailable."""
        try:
            async with asyncio.timeout(self.timeout_seconds):
                response = await self.http_client.get(
                    f"{self.base_url}/health", timeout=self.timeout_seconds
                )
        except (TimeoutError, httpx.HTTPError) as exc:
            _logger.info("Health check failed: %s", exc)
            return False
        return response.is_success

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def classify_transport_error(exc: httpx.HTTPError) -> GenerationError:
    """Map an httpx failure onto the generation error taxonomy."""
    if isinstance(exc, httpx.ConnectError):
        return BackendUnavailableError()
    if isinstance(exc, httpx.TimeoutException):
        return TimedOutError()
    if isinstance(exc, httpx.HTTPStatusError):
        status_code = exc.response.status_code
        if 400 <= status_code < 500:
            return InvalidRequestError(status_code)
        if 500 <= status_code < 600:
            return ServiceError(status_code)
    return UnknownTransportError()


def _new_session_id() -> str:
    return f"session_{uuid4().hex}"
