from __future__ import annotations

import json
import sqlite3
from pathlib import Path

from complimentary.models import ArtifactRecord, Preferences

HISTORY_LIMIT = 10

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS history (
    artifact_id TEXT PRIMARY KEY,
    created_at TEXT NOT NULL,
    artifact_type TEXT NOT NULL,
    style TEXT NOT NULL,
    specificity INTEGER NOT NULL,
    relationship TEXT,
    context_hints TEXT,
    text TEXT NOT NULL,
    sparkle_score INTEGER NOT NULL,
    tags TEXT NOT NULL,
    provenance TEXT NOT NULL,
    model_name TEXT NOT NULL,
    prompt_text TEXT NOT NULL,
    raw_response TEXT NOT NULL,
    error_kind TEXT,
    is_favorite INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS favorites (
    artifact_id TEXT PRIMARY KEY,
    created_at TEXT NOT NULL,
    artifact_type TEXT NOT NULL,
    style TEXT NOT NULL,
    specificity INTEGER NOT NULL,
    relationship TEXT,
    context_hints TEXT,
    text TEXT NOT NULL,
    sparkle_score INTEGER NOT NULL,
    tags TEXT NOT NULL,
    provenance TEXT NOT NULL,
    model_name TEXT NOT NULL,
    prompt_text TEXT NOT NULL,
    raw_response TEXT NOT NULL,
    error_kind TEXT,
    is_favorite INTEGER NOT NULL DEFAULT 1
);

CREATE TABLE IF NOT EXISTS preferences (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""

RECORD_COLUMNS = (
    "artifact_id",
    "created_at",
    "artifact_type",
    "style",
    "specificity",
    "relationship",
    "context_hints",
    "text",
    "sparkle_score",
    "tags",
    "provenance",
    "model_name",
    "prompt_text",
    "raw_response",
    "error_kind",
    "is_favorite",
)


def _record_params(record: ArtifactRecord) -> tuple:
    return (
        record.artifact_id,
        record.created_at.isoformat(),
        record.artifact_type.value,
        record.style.value,
        record.specificity,
        record.relationship,
        json.dumps(record.context_hints, ensure_ascii=False) if record.context_hints is not None else None,
        record.text,
        record.sparkle_score,
        json.dumps(record.tags, ensure_ascii=False),
        record.provenance.value,
        record.model_name,
        record.prompt_text,
        record.raw_response,
        record.error_kind,
        int(record.is_favorite),
    )


def _row_to_record(row: sqlite3.Row) -> ArtifactRecord:
    data = dict(row)
    data["context_hints"] = json.loads(data["context_hints"]) if data["context_hints"] else None
    data["tags"] = json.loads(data["tags"])
    data["is_favorite"] = bool(data["is_favorite"])
    return ArtifactRecord.model_validate(data)


class Store:
    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.executescript(SCHEMA_SQL)

    def add_to_history(self, record: ArtifactRecord, privacy_no_name: bool = False) -> None:
        """Insert ``record`` as the newest history entry and trim older ones.

        With ``privacy_no_name`` the relationship and context hints are not stored,
        and neither is the prompt text that embeds them.
        """
        if privacy_no_name:
            record = record.model_copy(update={"relationship": None, "context_hints": None, "prompt_text": ""})
        record = record.model_copy(update={"is_favorite": False})
        placeholders = ", ".join("?" for _ in RECORD_COLUMNS)
        with self._connect() as conn:
            conn.execute(
                f"INSERT OR REPLACE INTO history({', '.join(RECORD_COLUMNS)}) VALUES ({placeholders})",
                _record_params(record),
            )
            conn.execute(
                """
                DELETE FROM history WHERE artifact_id NOT IN (
                    SELECT artifact_id FROM history ORDER BY created_at DESC, rowid DESC LIMIT ?
                )
                """,
                (HISTORY_LIMIT,),
            )

    def list_history(self) -> list[ArtifactRecord]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM history ORDER BY created_at DESC, rowid DESC").fetchall()
            return [_row_to_record(r) for r in rows]

    def clear_history(self) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM history")

    def get_artifact(self, artifact_id: str) -> ArtifactRecord | None:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM history WHERE artifact_id = ?", (artifact_id,)).fetchone()
            if row is None:
                row = conn.execute("SELECT * FROM favorites WHERE artifact_id = ?", (artifact_id,)).fetchone()
            return _row_to_record(row) if row else None

    def add_to_favorites(self, record: ArtifactRecord) -> bool:
        """Copy ``record`` into favorites. Returns ``False`` if it was already there."""
        record = record.model_copy(update={"is_favorite": True})
        placeholders = ", ".join("?" for _ in RECORD_COLUMNS)
        with self._connect() as conn:
            before = conn.total_changes
            conn.execute(
                f"INSERT OR IGNORE INTO favorites({', '.join(RECORD_COLUMNS)}) VALUES ({placeholders})",
                _record_params(record),
            )
            inserted = conn.total_changes - before > 0
            conn.execute("UPDATE history SET is_favorite = 1 WHERE artifact_id = ?", (record.artifact_id,))
            return inserted

    def remove_from_favorites(self, artifact_id: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM favorites WHERE artifact_id = ?", (artifact_id,))
            conn.execute("UPDATE history SET is_favorite = 0 WHERE artifact_id = ?", (artifact_id,))

    def toggle_favorite(self, artifact_id: str) -> bool | None:
        """Flip the favorite state of an entry.

        Returns the new state, or ``None`` when the artifact is unknown.
        """
        record = self.get_artifact(artifact_id)
        if record is None:
            return None
        if self.is_favorite(artifact_id):
            self.remove_from_favorites(artifact_id)
            return False
        self.add_to_favorites(record)
        return True

    def is_favorite(self, artifact_id: str) -> bool:
        with self._connect() as conn:
            row = conn.execute("SELECT 1 FROM favorites WHERE artifact_id = ?", (artifact_id,)).fetchone()
            return row is not None

    def list_favorites(self) -> list[ArtifactRecord]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM favorites ORDER BY rowid").fetchall()
            return [_row_to_record(r) for r in rows]

    def get_preferences(self) -> Preferences:
        with self._connect() as conn:
            rows = conn.execute("SELECT key, value FROM preferences").fetchall()
        stored = {row["key"]: json.loads(row["value"]) for row in rows}
        return Preferences.model_validate({**Preferences().model_dump(mode="json"), **stored})

    def update_preferences(self, **updates: object) -> Preferences:
        """Merge ``updates`` over the stored preferences and persist the result."""
        merged = Preferences.model_validate({**self.get_preferences().model_dump(mode="json"), **updates})
        payload = merged.model_dump(mode="json")
        with self._connect() as conn:
            conn.executemany(
                "INSERT OR REPLACE INTO preferences(key, value) VALUES (?, ?)",
                [(key, json.dumps(value)) for key, value in payload.items()],
            )
        return merged
