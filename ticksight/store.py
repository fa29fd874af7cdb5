"""SQLite persistence for user-submitted sightings (append-only)."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import closing
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from ticksight.lookups import latin_name_for
from ticksight.settings import Settings


logger = logging.getLogger(__name__)

CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS user_sightings (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    sighting_date  TEXT NOT NULL,
    sighting_time  TEXT NOT NULL,
    location       TEXT NOT NULL,
    species        TEXT NOT NULL,
    description    TEXT,
    image_path     TEXT,
    created_at     TEXT NOT NULL
)
"""

INSERT_SQL = """
INSERT INTO user_sightings (
    sighting_date, sighting_time, location, species, description, image_path, created_at
) VALUES (
    :sighting_date, :sighting_time, :location, :species, :description, :image_path, :created_at
)
"""

SELECT_ALL_SQL = """
SELECT id, sighting_date, sighting_time, location, species, description, image_path, created_at
FROM user_sightings
ORDER BY sighting_date DESC, sighting_time DESC
"""


def normalise_row(row: Mapping[str, Any]) -> Dict[str, Any]:
    """Reshape a stored row into the record layout used by the remote API."""
    date_part = row.get("sighting_date") or None
    time_part = row.get("sighting_time") or None
    when = None
    if date_part and time_part:
        when = f"{date_part}T{time_part}"
    elif date_part:
        when = date_part

    species = row.get("species") or None
    return {
        "date": when,
        "location": row.get("location") or None,
        "species": species,
        "latinName": latin_name_for(species),
        "imagePath": row.get("image_path") or None,
        "source": "user",
    }


class UserSightingStore:
    def __init__(self, db_path: Path | str) -> None:
        self.db_path = Path(db_path)
        self._initialized = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "UserSightingStore":
        return cls(settings.db_path)

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        if not self._initialized:
            try:
                conn.execute(CREATE_TABLE_SQL)
                conn.commit()
            except sqlite3.Error:
                conn.close()
                raise
            self._initialized = True
        return conn

    def create(self, fields: Mapping[str, Any]) -> bool:
        params = {
            "sighting_date": fields.get("date"),
            "sighting_time": fields.get("time"),
            "location": fields.get("location"),
            "species": fields.get("species"),
            "description": fields.get("description") or None,
            "image_path": fields.get("image_path") or None,
            "created_at": datetime.now().isoformat(timespec="seconds"),
        }
        try:
            with closing(self._connect()) as conn:
                with conn:
                    conn.execute(INSERT_SQL, params)
        except (sqlite3.Error, OSError):
            logger.exception("Failed to save user sighting")
            return False
        return True

    def list_all(self) -> List[Dict[str, Any]]:
        try:
            with closing(self._connect()) as conn:
                rows = conn.execute(SELECT_ALL_SQL).fetchall()
        except (sqlite3.Error, OSError):
            logger.exception("Failed to read user sightings")
            return []
        return [dict(r) for r in rows]

    def list_all_normalised(self) -> List[Dict[str, Any]]:
        return [normalise_row(r) for r in self.list_all()]

    def count(self) -> int:
        try:
            with closing(self._connect()) as conn:
                return int(conn.execute("SELECT COUNT(*) FROM user_sightings").fetchone()[0])
        except (sqlite3.Error, OSError):
            logger.exception("Failed to count user sightings")
            return 0
