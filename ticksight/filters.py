from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from ticksight.data import WHEN_COL, column_as_text, sightings_frame
from ticksight.lookups import DATE_RANGE_TOKENS, SEVERITY_LEVELS


# token -> (offset back to window start, offset back to window end; None = now)
DATE_RANGE_OFFSETS: Dict[str, Tuple[pd.DateOffset, Optional[pd.DateOffset]]] = {
    "7_days": (pd.DateOffset(days=7), None),
    "30_days": (pd.DateOffset(days=30), None),
    "90_days": (pd.DateOffset(days=90), None),
    "6_months": (pd.DateOffset(months=6), None),
    "6_12_months": (pd.DateOffset(months=12), pd.DateOffset(months=6)),
    "12m_5y": (pd.DateOffset(years=5), pd.DateOffset(months=12)),
    "5_15y": (pd.DateOffset(years=15), pd.DateOffset(years=5)),
}


@dataclass(frozen=True)
class MapFilters:
    species: str = ""
    date_range: str = ""
    severity: str = ""


@dataclass(frozen=True)
class EducationFilters:
    city: Optional[str] = None
    year: Optional[int] = None
    species: str = ""


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _as_int(value: Any) -> Optional[int]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        return int(value)
    except Exception:
        return None


def normalize_map_filters(raw: Dict[str, Any]) -> MapFilters:
    date_range = _clean(raw.get("date_range", raw.get("dateRange")))
    if date_range not in DATE_RANGE_TOKENS:
        date_range = ""
    severity = _clean(raw.get("severity")).lower()
    if severity not in SEVERITY_LEVELS:
        severity = ""
    return MapFilters(species=_clean(raw.get("species")), date_range=date_range, severity=severity)


def normalize_education_filters(
    raw: Dict[str, Any],
    *,
    cities: Optional[Sequence[str]] = None,
    years: Optional[Sequence[int]] = None,
) -> EducationFilters:
    cities = list(cities or [])
    years = sorted(years or [])

    city = _clean(raw.get("city")) or (cities[0] if cities else None)
    year = _as_int(raw.get("year"))
    if year is None:
        year = years[-1] if years else None
    return EducationFilters(city=city, year=year, species=_clean(raw.get("species")))


def _now(now: Optional[datetime]) -> pd.Timestamp:
    ts = pd.Timestamp(now) if now is not None else pd.Timestamp.now()
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts


def date_range_window(token: Optional[str], now: Optional[datetime] = None) -> Optional[Tuple[pd.Timestamp, pd.Timestamp]]:
    """Inclusive [start, end] for a named range relative to ``now``; None means no filtering."""
    offsets = DATE_RANGE_OFFSETS.get(_clean(token))
    if offsets is None:
        return None
    ref = _now(now)
    back_to_start, back_to_end = offsets
    start = ref - back_to_start
    end = ref - back_to_end if back_to_end is not None else ref
    return start, end


def filter_by_species(records: List[Dict[str, Any]], species: Optional[str]) -> List[Dict[str, Any]]:
    target = _clean(species).lower()
    if not target:
        return records
    df = sightings_frame(records)
    mask = column_as_text(df, "species").str.lower() == target
    return [rec for rec, keep in zip(records, mask.tolist()) if keep]


def filter_by_date_range(
    records: List[Dict[str, Any]],
    date_range: Optional[str],
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    window = date_range_window(date_range, now)
    if window is None:
        return records
    start, end = window
    df = sightings_frame(records)
    when = df[WHEN_COL]
    mask = when.notna() & (when >= start) & (when <= end)
    return [rec for rec, keep in zip(records, mask.tolist()) if keep]


def filter_sightings(
    records: Iterable[Dict[str, Any]],
    species: Optional[str] = "",
    date_range: Optional[str] = "",
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    out = filter_by_species(list(records), species)
    return filter_by_date_range(out, date_range, now)
