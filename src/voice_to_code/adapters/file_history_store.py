"""JSON file-backed history store."""

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from voice_to_code.domain.sessions import SessionRecord
from voice_to_code.errors import PersistenceCorruptError
from voice_to_code.services.history import (
    HistoryStore,
    parse_history,
    serialize_history,
)

_logger = logging.getLogger(__name__)


@dataclass
class FileHistoryStore(HistoryStore):
    """Keeps the history snapshot as a single JSON file on disk."""

    directory: Path
    name: str = "voiceCodeHistory"

    @property
    def path(self) -> Path:
        """Location of the snapshot file."""
        return self.directory / f"{self.name}.json"

    def load(self) -> list[SessionRecord]:
        """Read the snapshot, returning an empty list if missing or corrupt."""
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return []
        try:
            return parse_history(raw)
        except PersistenceCorruptError as exc:
            _logger.warning("Ignoring corrupt history snapshot %s: %s", self.path, exc)
            return []

    def save(self, records: list[SessionRecord]) -> None:
        """Write the snapshot through a temp file and an atomic rename."""
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.directory, prefix=f".{self.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(serialize_history(records))
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def clear(self) -> None:
        """Delete the snapshot file if present."""
        self.path.unlink(missing_ok=True)
