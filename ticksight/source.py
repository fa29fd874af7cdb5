"""Read-only client for the remote tick sightings API.

Every fetch fails soft: transport errors, non-200 responses, undecodable
bodies and non-array payloads all come back as an empty list.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from ticksight.settings import DEFAULT_REQUEST_TIMEOUT, Settings


logger = logging.getLogger(__name__)

SIGHTINGS_PATH = "tick-sightings"


class TickSightingSource:
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings, *, session: Optional[requests.Session] = None) -> "TickSightingSource":
        return cls(settings.api_base_url, timeout=settings.request_timeout, session=session)

    def fetch_all(self) -> List[Dict[str, Any]]:
        return self._get_records(f"{self.base_url}/{SIGHTINGS_PATH}")

    def fetch_by_city(self, city: str) -> List[Dict[str, Any]]:
        city = (city or "").strip()
        if not city:
            return []
        return self._get_records(f"{self.base_url}/{SIGHTINGS_PATH}/city/{quote(city, safe='')}")

    def fetch_by_species(self, species: str) -> List[Dict[str, Any]]:
        species = (species or "").strip()
        if not species:
            return []
        return self._get_records(f"{self.base_url}/{SIGHTINGS_PATH}/species/{quote(species, safe='')}")

    def _get_records(self, url: str) -> List[Dict[str, Any]]:
        try:
            resp = self._session.get(url, headers={"Accept": "application/json"}, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("GET %s failed: %s", url, exc)
            return []

        if resp.status_code != 200:
            logger.warning("GET %s returned HTTP %s", url, resp.status_code)
            return []

        try:
            payload = resp.json()
        except ValueError:
            logger.warning("GET %s returned a body that is not JSON", url)
            return []

        if not isinstance(payload, list):
            logger.warning("GET %s returned %s, expected a JSON array", url, type(payload).__name__)
            return []
        return [item for item in payload if isinstance(item, dict)]
