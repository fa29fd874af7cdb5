from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from ticksight.source import TickSightingSource
from ticksight.store import UserSightingStore, normalise_row


logger = logging.getLogger(__name__)

RECORD_COLUMNS = ["date", "location", "species", "latinName", "imagePath", "source"]
WHEN_COL = "_when"


def parse_sighting_date(value: object) -> Optional[pd.Timestamp]:
    """Parse an ISO-like date or date-time into a naive Timestamp (None if invalid)."""
    if value is None:
        return None
    if not isinstance(value, str):
        try:
            if pd.isna(value):
                return None
        except (TypeError, ValueError):
            return None
    text = str(value).strip()
    if not text:
        return None
    try:
        ts = pd.Timestamp(text)
        if pd.isna(ts):
            return None
        if ts.tzinfo is not None:
            ts = ts.tz_convert("UTC").tz_localize(None)
        return ts.as_unit("ns")
    except (ValueError, TypeError, OverflowError):
        return None


def column_as_text(df: pd.DataFrame, col: str) -> pd.Series:
    if col not in df.columns:
        return pd.Series([""] * len(df), index=df.index, dtype=object)
    series = df[col]
    return series.where(series.notna(), "").astype(str)


def is_blank(series: pd.Series) -> pd.Series:
    return series.str.strip() == ""


def sightings_frame(records: Iterable[Dict[str, Any]]) -> pd.DataFrame:
    """Records -> DataFrame (one row per record, positional index) with a parsed date column."""
    rows = list(records)
    df = pd.DataFrame.from_records(rows) if rows else pd.DataFrame(columns=RECORD_COLUMNS)
    df = df.reset_index(drop=True)
    for col in RECORD_COLUMNS:
        if col not in df.columns:
            df[col] = None
    df[WHEN_COL] = pd.to_datetime(df["date"].map(parse_sighting_date), errors="coerce")
    return df


def with_source(records: Iterable[Dict[str, Any]], source: str) -> List[Dict[str, Any]]:
    return [r if r.get("source") else {**r, "source": source} for r in records]


def load_sightings_data(source: TickSightingSource, store: UserSightingStore) -> Dict[str, object]:
    api_sightings = with_source(source.fetch_all(), "api")
    user_rows = store.list_all()
    user_sightings = [normalise_row(r) for r in user_rows]
    logger.debug("Loaded %d api sightings and %d user sightings", len(api_sightings), len(user_sightings))
    return {
        "api_sightings": api_sightings,
        "user_rows": user_rows,
        "user_sightings": user_sightings,
        "combined": api_sightings + user_sightings,
    }
