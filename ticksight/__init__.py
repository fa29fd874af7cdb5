"""Core (UI-agnostic) TickSight logic.

This package contains:
- settings and static lookup tables
- the remote sightings client (requests) and the local SQLite store
- filter normalization and pandas-backed aggregation
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
