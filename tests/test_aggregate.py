from __future__ import annotations

from ticksight.aggregate import (
    city_timeline,
    education_species_stats,
    filter_options,
    monthly_histogram,
    peak_month,
    species_summary,
    top_cities,
)
from ticksight.lookups import EDUCATION_SPECIES
from tests.conftest import FakeSource


def _rec(date, location, species="Marsh tick"):
    return {"date": date, "location": location, "species": species}


def test_histogram_example_from_leeds():
    records = [
        {"date": "2024-03-01", "location": "Leeds", "species": "Marsh tick"},
        {"date": "2024-07-15", "location": "Leeds", "species": "Marsh tick"},
    ]
    buckets = monthly_histogram(records, "Leeds", 2024)
    assert list(buckets) == list(range(1, 13))
    assert buckets[3] == 1
    assert buckets[7] == 1
    assert sum(buckets.values()) == 2


def test_histogram_matches_city_year_and_species_exactly(api_records):
    assert sum(monthly_histogram(api_records, "Leeds", 2024).values()) == 2
    assert sum(monthly_histogram(api_records, "leeds", 2024).values()) == 0
    assert sum(monthly_histogram(api_records, "Leeds", 2023).values()) == 0
    assert sum(monthly_histogram(api_records, "Leeds", 2024, "Marsh tick").values()) == 2
    assert sum(monthly_histogram(api_records, "Leeds", 2024, "marsh tick").values()) == 0
    assert sum(monthly_histogram(api_records, "London", 2024, "").values()) == 1


def test_histogram_without_selection_is_all_zero(api_records):
    for city, year in [(None, 2024), ("Leeds", None), ("", 2024)]:
        buckets = monthly_histogram(api_records, city, year)
        assert len(buckets) == 12
        assert set(buckets.values()) == {0}


def test_histogram_never_exceeds_matching_records():
    records = [_rec("2024-01-05", "Leeds"), _rec("garbage", "Leeds"), _rec(None, "Leeds"), _rec("2024-01-09", None)]
    buckets = monthly_histogram(records, "Leeds", 2024)
    assert sum(buckets.values()) == 1 <= len(records)


def test_top_cities_sorted_and_capped():
    records = [_rec("2024-01-01", c) for c in ["York", "Leeds", "Leeds", "Bath", "Bath", "Bath", "", None]]
    out = top_cities(records)
    assert out == [{"city": "Bath", "count": 3}, {"city": "Leeds", "count": 2}]


def test_top_cities_ties_keep_first_encountered_order():
    records = [_rec("2024-01-01", c) for c in ["York", "Leeds", "Leeds", "York", "Bath", "Bath"]]
    assert [c["city"] for c in top_cities(records)] == ["York", "Leeds"]


def test_top_cities_empty():
    assert top_cities([]) == []


def test_peak_month_rules():
    buckets = {m: 0 for m in range(1, 13)}
    assert peak_month(buckets) is None
    buckets[8] = 4
    buckets[5] = 4
    buckets[2] = 1
    assert peak_month(buckets) == 5


def test_species_summary():
    records = [
        _rec("2023-05-02", "Leeds"),
        _rec("2024-05-20", "London"),
        _rec("2024-06-01", "Leeds"),
        _rec("bad date", "Leeds"),
        _rec("2024-09-09", ""),
    ]
    out = species_summary("Marsh tick", records)
    assert out["species"] == "Marsh tick"
    assert out["latinName"] == "Ixodes apronophorus"
    assert out["total"] == 5
    assert out["topCities"] == [{"city": "Leeds", "count": 3}, {"city": "London", "count": 1}]
    assert out["peakMonth"] == 5
    assert out["peakMonthName"] == "May"
    assert out["monthlyCounts"][5] == 2


def test_species_summary_without_dates_has_no_peak():
    out = species_summary("Deer tick", [_rec(None, "Leeds", "Deer tick")])
    assert out["peakMonth"] is None
    assert out["peakMonthName"] is None
    assert out["latinName"] is None


def test_education_species_stats_uses_species_endpoint(api_records):
    source = FakeSource(api_records)
    stats = education_species_stats(source)
    assert [s["species"] for s in stats] == list(EDUCATION_SPECIES)
    assert [c for c in source.calls] == [("species", name) for name in EDUCATION_SPECIES]
    marsh = stats[EDUCATION_SPECIES.index("Marsh tick")]
    assert marsh["topCities"] == [{"city": "Leeds", "count": 3}]
    rodent = stats[EDUCATION_SPECIES.index("Southern rodent tick")]
    assert rodent["topCities"] == []
    assert rodent["peakMonthName"] == "May"


def test_filter_options(api_records):
    opts = filter_options(api_records)
    assert opts["cities"] == ["Glasgow", "Leeds", "London", "Manchester"]
    assert opts["years"] == [2023, 2024, 2025]
    assert opts["species"] == ["Fox/badger tick", "Marsh tick", "Passerine tick", "Southern rodent tick", "Tree-hole tick"]


def test_filter_options_empty():
    assert filter_options([]) == {"cities": [], "years": [], "species": []}


def test_city_timeline_is_newest_first_and_limited():
    records = [_rec(f"2024-01-{d:02d}", "Leeds") for d in range(1, 15)] + [_rec("2024-02-01", "York"), _rec("bad", "Leeds")]
    out = city_timeline(records, "Leeds", limit=3)
    assert [r["date"] for r in out] == ["2024-01-14", "2024-01-13", "2024-01-12"]
    assert out[0] is records[13]
