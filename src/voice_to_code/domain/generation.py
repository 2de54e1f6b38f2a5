"""Domain models for code generation results."""

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel


@dataclass(frozen=True)
class GenerationResult:
    """Artifact returned by the generation service for one transcript."""

    code: str
    source_transcript: str
    produced_at: datetime


class GeneratedCode(BaseModel):
    """Payload carried in a successful generation envelope."""

    code: str
    transcript: str | None = None
    timestamp: datetime | None = None


class GenerateResponse(BaseModel):
    """Response envelope returned by ``POST /generate-code``."""

    success: bool
    data: GeneratedCode | None = None
    message: str | None = None
