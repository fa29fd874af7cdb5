"""Static reference tables shared by the store, the aggregations and the UI."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple


SPECIES_LATIN_NAMES: Dict[str, str] = {
    "Passerine tick": "Ixodes arboricola",
    "Fox/badger tick": "Ixodes canisuga",
    "Southern rodent tick": "Ixodes acuminatus",
    "Marsh tick": "Ixodes apronophorus",
    "Tree-hole tick": "Dermacentor frontalis",
}

# Order matters: education cards render in this order.
EDUCATION_SPECIES: Tuple[str, ...] = (
    "Passerine tick",
    "Fox/badger tick",
    "Southern rodent tick",
    "Marsh tick",
    "Tree-hole tick",
)

SPECIES_SEVERITY: Dict[str, str] = {
    "Marsh tick": "medium",
    "Southern rodent tick": "medium",
    "Passerine tick": "high",
    "Tree-hole tick": "low",
    "Fox/badger tick": "high",
}
DEFAULT_SEVERITY = "low"
SEVERITY_LEVELS: Tuple[str, ...] = ("high", "medium", "low")
SEVERITY_COLORS: Dict[str, str] = {
    "high": "#e74c3c",
    "medium": "#f1c40f",
    "low": "#2ecc71",
}

CITY_COORDINATES: Dict[str, Tuple[float, float]] = {
    "Nottingham": (52.9548, -1.1581),
    "Glasgow": (55.8642, -4.2518),
    "London": (51.5074, -0.1278),
    "Manchester": (53.4808, -2.2426),
    "Sheffield": (53.3811, -1.4701),
    "Liverpool": (53.4084, -2.9916),
    "Bristol": (51.4545, -2.5879),
    "Birmingham": (52.4862, -1.8904),
    "Edinburgh": (55.9533, -3.1883),
    "Cardiff": (51.4816, -3.1791),
    "Southampton": (50.9097, -1.4043),
    "Newcastle": (54.9783, -1.6178),
    "Leeds": (53.8008, -1.5491),
    "Leicester": (52.6369, -1.1398),
}
ALLOWED_CITIES: Tuple[str, ...] = tuple(CITY_COORDINATES)
UK_CENTER: Tuple[float, float] = (54.5, -3.0)

MONTH_NAMES: Dict[int, str] = {
    1: "January",
    2: "February",
    3: "March",
    4: "April",
    5: "May",
    6: "June",
    7: "July",
    8: "August",
    9: "September",
    10: "October",
    11: "November",
    12: "December",
}

DATE_RANGE_LABELS: Dict[str, str] = {
    "": "All time",
    "7_days": "Last 7 days",
    "30_days": "Last 30 days",
    "90_days": "Last 90 days",
    "6_months": "Last 6 months",
    "6_12_months": "6 to 12 months ago",
    "12m_5y": "1 to 5 years ago",
    "5_15y": "5 to 15 years ago",
}
DATE_RANGE_TOKENS: Tuple[str, ...] = tuple(k for k in DATE_RANGE_LABELS if k)

PREVENTION_TIPS: List[Dict[str, str]] = [
    {
        "title": "Cover up",
        "body": "Wear long sleeves and tuck trousers into socks when walking through long grass, bracken or woodland.",
    },
    {
        "title": "Stick to paths",
        "body": "Keep to the centre of paths and avoid brushing against vegetation where ticks wait for a host.",
    },
    {
        "title": "Use repellent",
        "body": "Apply an insect repellent containing DEET to skin and clothing before heading outdoors.",
    },
    {
        "title": "Check yourself",
        "body": "Check skin, hair and clothing after time outdoors, paying attention to armpits, groin, waist and behind the knees.",
    },
    {
        "title": "Check pets",
        "body": "Inspect dogs and cats after walks and speak to your vet about tick treatments.",
    },
    {
        "title": "Remove ticks promptly",
        "body": "Use fine-tipped tweezers or a tick removal tool, grip close to the skin and pull upwards steadily.",
    },
    {
        "title": "Watch for symptoms",
        "body": "Contact your GP if you develop a spreading circular rash or flu-like symptoms after a tick bite.",
    },
]


def latin_name_for(species: Optional[str]) -> Optional[str]:
    if not species:
        return None
    return SPECIES_LATIN_NAMES.get(species)


def severity_for(species: Optional[str]) -> str:
    return SPECIES_SEVERITY.get(species or "", DEFAULT_SEVERITY)


def severity_color(severity: Optional[str]) -> str:
    return SEVERITY_COLORS.get(severity or "", SEVERITY_COLORS[DEFAULT_SEVERITY])


def canonical_city(name: Optional[str]) -> Optional[str]:
    """Return the allow-listed spelling of ``name`` (case-insensitive), else None."""
    q = (name or "").strip().casefold()
    if not q:
        return None
    for city in ALLOWED_CITIES:
        if city.casefold() == q:
            return city
    return None
