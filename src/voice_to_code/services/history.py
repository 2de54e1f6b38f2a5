"""History snapshot handling for past generation sessions."""

import json
from datetime import datetime
from typing import Protocol

from voice_to_code.domain.sessions import SessionRecord
from voice_to_code.errors import PersistenceCorruptError

DEFAULT_HISTORY_CAPACITY = 5


class HistoryStore(Protocol):
    """Persistence interface for the history snapshot."""

    def load(self) -> list[SessionRecord]:
        """Return persisted records, or an empty list if none are usable."""

    def save(self, records: list[SessionRecord]) -> None:
        """Overwrite the persisted snapshot with the given records."""

    def clear(self) -> None:
        """Remove the persisted snapshot."""


def prepend_record(
    records: list[SessionRecord],
    record: SessionRecord,
    capacity: int = DEFAULT_HISTORY_CAPACITY,
) -> list[SessionRecord]:
    """Return a new list with ``record`` first, evicting the oldest past capacity."""
    if capacity < 1:
        raise ValueError("History capacity must be at least 1")
    return [record, *records][:capacity]


def find_record(records: list[SessionRecord], record_id: int) -> SessionRecord | None:
    """Return the record with the given id, if present."""
    for record in records:
        if record.id == record_id:
            return record
    return None


def record_to_payload(record: SessionRecord) -> dict[str, object]:
    """Convert a record into its JSON-compatible snapshot form."""
    return {
        "id": record.id,
        "transcript": record.transcript,
        "code": record.code,
        "created_at": record.created_at.isoformat(),
        "title": record.title,
    }


def record_from_payload(payload: object) -> SessionRecord:
    """Build a record from snapshot data, raising on structural problems."""
    if not isinstance(payload, dict):
        raise PersistenceCorruptError("History entry is not an object")
    try:
        record_id = payload["id"]
        transcript = payload["transcript"]
        code = payload["code"]
        created_at = datetime.fromisoformat(str(payload["created_at"]))
        title = payload["title"]
    except (KeyError, ValueError) as exc:
        raise PersistenceCorruptError(f"Malformed history entry: {exc}") from exc
    if isinstance(record_id, bool) or not isinstance(record_id, int):
        raise PersistenceCorruptError("History entry id must be an integer")
    if not all(isinstance(value, str) for value in (transcript, code, title)):
        raise PersistenceCorruptError("History entry text fields must be strings")
    return SessionRecord(
        id=record_id,
        transcript=transcript,
        code=code,
        created_at=created_at,
        title=title,
    )


def serialize_history(records: list[SessionRecord]) -> str:
    """Serialize records, most-recent-first, into a JSON document."""
    return json.dumps([record_to_payload(record) for record in records])


def parse_history(raw: str | bytes) -> list[SessionRecord]:
    """Parse a JSON snapshot into records, preserving order."""
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise PersistenceCorruptError(f"History snapshot is not JSON: {exc}") from exc
    return parse_history_payload(payload)


def parse_history_payload(payload: object) -> list[SessionRecord]:
    """Parse an already-decoded snapshot into records."""
    if not isinstance(payload, list):
        raise PersistenceCorruptError("History snapshot must be a list")
    return [record_from_payload(item) for item in payload]
