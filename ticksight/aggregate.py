"""Sighting aggregations shared by the map and education pages.

Records with a missing or malformed location/date/species are skipped from
the aggregate they cannot take part in; they never abort the computation.
Ties are broken deterministically: top cities keep first-encountered order
among equal counts, and the peak month is the lowest month number reaching
the maximum.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence

import pandas as pd

from ticksight.data import WHEN_COL, column_as_text, is_blank, sightings_frame
from ticksight.lookups import EDUCATION_SPECIES, MONTH_NAMES, latin_name_for
from ticksight.source import TickSightingSource


MONTHS = list(range(1, 13))


def empty_month_buckets() -> Dict[int, int]:
    return {m: 0 for m in MONTHS}


def _month_buckets(when: pd.Series) -> Dict[int, int]:
    buckets = empty_month_buckets()
    counts = when.dropna().dt.month.value_counts()
    for month, n in counts.items():
        buckets[int(month)] = int(n)
    return buckets


def peak_month(buckets: Dict[int, int]) -> Optional[int]:
    best = max(buckets.values(), default=0)
    if best <= 0:
        return None
    return min(m for m, n in buckets.items() if n == best)


def top_cities(records: Iterable[Dict[str, Any]], n: int = 2) -> List[Dict[str, Any]]:
    df = sightings_frame(records)
    loc = column_as_text(df, "location")
    loc = loc[~is_blank(loc)]
    if loc.empty:
        return []
    counts = loc.groupby(loc, sort=False).size()
    ranked = sorted(counts.items(), key=lambda kv: -kv[1])[:n]
    return [{"city": str(city), "count": int(count)} for city, count in ranked]


def species_summary(species: str, records: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    rows = list(records)
    df = sightings_frame(rows)
    buckets = _month_buckets(df[WHEN_COL])
    peak = peak_month(buckets)
    return {
        "species": species,
        "latinName": latin_name_for(species),
        "total": len(rows),
        "topCities": top_cities(rows, n=2),
        "peakMonth": peak,
        "peakMonthName": MONTH_NAMES.get(peak) if peak else None,
        "monthlyCounts": buckets,
    }


def education_species_stats(
    source: TickSightingSource,
    species_names: Sequence[str] = EDUCATION_SPECIES,
) -> List[Dict[str, Any]]:
    return [species_summary(name, source.fetch_by_species(name)) for name in species_names]


def monthly_histogram(
    records: Iterable[Dict[str, Any]],
    city: Optional[str],
    year: Optional[int],
    species: Optional[str] = "",
) -> Dict[int, int]:
    """Count sightings for one city and year into month buckets 1..12."""
    if not city or year is None:
        return empty_month_buckets()
    df = sightings_frame(records)
    when = df[WHEN_COL]
    mask = (column_as_text(df, "location") == city) & when.notna() & (when.dt.year == int(year))
    if species:
        mask &= column_as_text(df, "species") == species
    return _month_buckets(when[mask])


def filter_options(records: Iterable[Dict[str, Any]]) -> Dict[str, List[Any]]:
    df = sightings_frame(records)
    loc = column_as_text(df, "location")
    names = column_as_text(df, "species")
    return {
        "cities": sorted(set(loc[~is_blank(loc)].tolist())),
        "years": sorted({int(y) for y in df[WHEN_COL].dropna().dt.year.tolist()}),
        "species": sorted(set(names[~is_blank(names)].tolist())),
    }


def city_timeline(records: Iterable[Dict[str, Any]], city: str, limit: int = 10) -> List[Dict[str, Any]]:
    """Most recent sightings for ``city``, newest first."""
    rows = list(records)
    df = sightings_frame(rows)
    mask = (column_as_text(df, "location") == city) & df[WHEN_COL].notna()
    recent = df[mask].sort_values(WHEN_COL, ascending=False, kind="stable").head(limit)
    return [rows[i] for i in recent.index]
