from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

from ticksight.aggregate import education_species_stats, filter_options, monthly_histogram
from ticksight.charts import monthly_histogram_chart, to_vega_spec
from ticksight.filters import EducationFilters, normalize_education_filters
from ticksight.lookups import MONTH_NAMES, PREVENTION_TIPS
from ticksight.source import TickSightingSource


def resolve_education_filters(raw: Dict[str, Any], ctx: Dict[str, Any]) -> EducationFilters:
    options = filter_options(ctx.get("api_sightings", []) or [])
    return normalize_education_filters(raw, cities=options["cities"], years=options["years"])


def compute_education(
    filters: EducationFilters,
    ctx: Dict[str, Any],
    source: TickSightingSource,
    *,
    species_stats: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    sightings: List[Dict[str, Any]] = ctx.get("api_sightings", []) or []
    options = filter_options(sightings)
    buckets = monthly_histogram(sightings, filters.city, filters.year, filters.species)

    title = None
    if filters.city and filters.year is not None:
        title = f"{filters.species or 'All species'} in {filters.city}, {filters.year}"

    if species_stats is None:
        species_stats = education_species_stats(source)

    return {
        "filters": asdict(filters),
        "options": options,
        "monthly_counts": buckets,
        "monthly_counts_named": [{"month": m, "name": MONTH_NAMES[m], "count": buckets[m]} for m in sorted(buckets)],
        "total": sum(buckets.values()),
        "species_stats": species_stats,
        "charts": {"monthly_histogram": to_vega_spec(monthly_histogram_chart(buckets, title=title))},
    }


def compute_prevention() -> Dict[str, Any]:
    return {"title": "Tick Prevention Tips", "tips": PREVENTION_TIPS}
