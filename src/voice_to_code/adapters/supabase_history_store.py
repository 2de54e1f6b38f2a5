"""Supabase-backed history store."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from voice_to_code.domain.sessions import SessionRecord
from voice_to_code.errors import PersistenceCorruptError
from voice_to_code.services.history import (
    HistoryStore,
    parse_history_payload,
    record_to_payload,
)

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseHistoryStore(HistoryStore):
    """Stores the snapshot as one JSON row keyed by name."""

    client: Client
    name: str = "voiceCodeHistory"
    table: str = "history_snapshots"

    def load(self) -> list[SessionRecord]:
        """Return the stored records, or an empty list if missing or corrupt."""
        response = (
            self.client.table(self.table)
            .select("name, payload_json")
            .eq("name", self.name)
            .limit(1)
            .execute()
        )
        if not response.data:
            return []
        try:
            return parse_history_payload(response.data[0].get("payload_json"))
        except PersistenceCorruptError as exc:
            _logger.warning("Ignoring corrupt history snapshot %s: %s", self.name, exc)
            return []

    def save(self, records: list[SessionRecord]) -> None:
        """Replace the stored snapshot in a single upsert."""
        self.client.table(self.table).upsert(
            {
                "name": self.name,
                "payload_json": [record_to_payload(record) for record in records],
                "updated_at": datetime.now(tz=UTC).isoformat(),
            },
            on_conflict="name",
        ).execute()

    def clear(self) -> None:
        """Delete the stored snapshot row."""
        self.client.table(self.table).delete().eq("name", self.name).execute()
