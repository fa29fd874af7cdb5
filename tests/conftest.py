from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

import pytest

from ticksight.settings import Settings
from ticksight.store import UserSightingStore


class FakeSource:
    """Stand-in for TickSightingSource that serves canned records and logs calls."""

    def __init__(self, records: Optional[List[Dict[str, Any]]] = None, by_species: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.records = records or []
        self.by_species = by_species or {}
        self.calls: List[tuple] = []

    def fetch_all(self) -> List[Dict[str, Any]]:
        self.calls.append(("all",))
        return list(self.records)

    def fetch_by_city(self, city: str) -> List[Dict[str, Any]]:
        self.calls.append(("city", city))
        return [r for r in self.records if r.get("location") == city]

    def fetch_by_species(self, species: str) -> List[Dict[str, Any]]:
        self.calls.append(("species", species))
        if species in self.by_species:
            return list(self.by_species[species])
        return [r for r in self.records if r.get("species") == species]


@pytest.fixture
def now() -> datetime:
    return datetime(2025, 6, 15, 12, 0, 0)


@pytest.fixture
def api_records() -> List[Dict[str, Any]]:
    return [
        {"id": "a1", "date": "2024-03-01T10:00:00", "location": "Leeds", "species": "Marsh tick", "latinName": "Ixodes apronophorus"},
        {"id": "a2", "date": "2024-07-15T09:30:00", "location": "Leeds", "species": "Marsh tick", "latinName": "Ixodes apronophorus"},
        {"id": "a3", "date": "2024-07-20T14:00:00", "location": "London", "species": "Passerine tick", "latinName": "Ixodes arboricola"},
        {"id": "a4", "date": "2023-11-02T08:15:00", "location": "Manchester", "species": "Tree-hole tick", "latinName": "Dermacentor frontalis"},
        {"id": "a5", "date": "2025-06-10T08:00:00", "location": "Glasgow", "species": "Fox/badger tick", "latinName": "Ixodes canisuga"},
        {"id": "a6", "date": "not a date", "location": "Leeds", "species": "Marsh tick", "latinName": "Ixodes apronophorus"},
        {"id": "a7", "date": "2024-05-05T12:00:00", "location": "", "species": "Southern rodent tick", "latinName": "Ixodes acuminatus"},
    ]


@pytest.fixture
def fake_source(api_records) -> FakeSource:
    return FakeSource(api_records)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        api_base_url="http://tick-api.test/data",
        request_timeout=1.0,
        db_path=tmp_path / "db" / "sightings.sqlite",
        upload_dir=tmp_path / "uploads",
        upload_web_prefix="images/uploads",
    )


@pytest.fixture
def store(settings) -> UserSightingStore:
    return UserSightingStore.from_settings(settings)
