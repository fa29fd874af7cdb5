import altair as alt
import numpy as np
import pandas as pd
import streamlit as st
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from ticksight.aggregate import filter_options
from ticksight.charts import monthly_histogram_chart
from ticksight.data import load_sightings_data
from ticksight.filters import MapFilters, normalize_map_filters
from ticksight.lookups import (
    ALLOWED_CITIES,
    DATE_RANGE_LABELS,
    EDUCATION_SPECIES,
    SEVERITY_COLORS,
    SEVERITY_LEVELS,
    UK_CENTER,
)
from ticksight.metrics_education import compute_education, compute_prevention, resolve_education_filters
from ticksight.metrics_map import compute_map
from ticksight.report import ImageUpload, local_photo, submit_report
from ticksight.settings import configure_logging, get_settings
from ticksight.source import TickSightingSource
from ticksight.store import UserSightingStore

alt.data_transformers.disable_max_rows()

PAGES = {
    "map": "Map",
    "report": "Report a sighting",
    "education": "Education",
    "prevention": "Prevention",
}
JITTER_DEGREES = 0.08


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        .species-latin {color: #6b7280;font-style: italic;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


def inject_contrast_styles():
    # Emitted on every run while the toggle is on.
    st.markdown(
        """
        <style>
        .stApp, .stApp [data-testid="stSidebar"] {background: #000000 !important;color: #ffffff !important;}
        .stApp p, .stApp label, .stApp span, .stApp h1, .stApp h2, .stApp h3 {color: #ffffff !important;}
        .app-top-bar .page-title, .card-title {color: #ffff00 !important;}
        .app-top-bar .breadcrumb, .species-latin {color: #e5e7eb !important;}
        .chip {background: #000000;border: 2px solid #ffff00;color: #ffffff;}
        .stApp a {color: #00ffff !important;text-decoration: underline;}
        .stApp button {border: 2px solid #ffff00 !important;}
        </style>
        """,
        unsafe_allow_html=True,
    )


def go_to_page(page: str):
    st.session_state["nav_page"] = page


@contextmanager
def card(title: str):
    container = st.container(border=True)
    container.markdown(f"<div class='card-title'>{title}</div>", unsafe_allow_html=True)
    with container:
        yield container


def render_page_header(title: str, breadcrumb: str, chips: Optional[List[str]] = None, export_df: Optional[pd.DataFrame] = None, export_name: str = "export.csv"):
    inject_base_styles()
    c1, c2 = st.columns([8, 2])
    with c1:
        st.markdown(
            f"<div class='app-top-bar'><div class='breadcrumb'>{breadcrumb}</div><div class='page-title'>{title}</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        if export_df is not None and not export_df.empty:
            st.download_button(
                "Export CSV",
                data=export_df.to_csv(index=False).encode("utf-8"),
                file_name=export_name,
                mime="text/csv",
            )
    if chips:
        st.markdown("<div class='chip-row'>" + "".join(f"<span class='chip'>{c}</span>" for c in chips) + "</div>", unsafe_allow_html=True)


def format_when(raw: Optional[str]) -> str:
    ts = pd.to_datetime(raw, errors="coerce") if raw else pd.NaT
    if pd.isna(ts):
        return "Unknown date"
    return ts.strftime("%d %b %Y, %H:%M")


def jittered_markers(markers: List[Dict[str, Any]], seed: int = 7) -> pd.DataFrame:
    """Spread markers around their city centre so individual sightings stay visible."""
    if not markers:
        return pd.DataFrame(columns=["lat", "lon", "color", "city", "species", "severity"])
    df = pd.DataFrame(markers)
    rng = np.random.default_rng(seed)
    df["lat"] = df["lat"] + (rng.random(len(df)) - 0.5) * JITTER_DEGREES
    df["lon"] = df["lng"] + (rng.random(len(df)) - 0.5) * JITTER_DEGREES
    return df


# ---------- Pages ----------
def render_map_page(filters: MapFilters, ctx: Dict[str, Any], city: str = ""):
    payload = compute_map(filters, ctx, base_url=get_settings().public_url, city=city)
    chips = [
        f"Species: {filters.species or 'All'}",
        f"Dates: {payload['date_range_label']}",
        f"Severity: {filters.severity.capitalize() if filters.severity else 'All'}",
    ]
    sightings_df = pd.DataFrame(payload["sightings"])
    render_page_header("TickSight UK – Map", "Home / Map", chips, export_df=sightings_df, export_name="sightings.csv")

    counts = payload["counts"]
    cols = st.columns(4)
    cols[0].metric("API sightings", f"{counts['api']:,}")
    cols[1].metric("User reports", f"{counts['user']:,}")
    cols[2].metric("Matching filters", f"{counts['filtered']:,}")
    cols[3].metric("On the map", f"{counts['markers']:,}")

    left, right = st.columns([3, 2])
    with left:
        markers_df = jittered_markers(payload["markers"])
        if markers_df.empty:
            st.info("No sightings available for the current filters.")
            st.map(pd.DataFrame({"lat": [UK_CENTER[0]], "lon": [UK_CENTER[1]]}), zoom=4)
        else:
            st.map(markers_df, latitude="lat", longitude="lon", color="color", size=2500, zoom=5)
        st.markdown(
            " ".join(f"<span class='chip' style='border-color:{SEVERITY_COLORS[s]}'>{s.capitalize()}</span>" for s in SEVERITY_LEVELS),
            unsafe_allow_html=True,
        )
    with right:
        timelines = payload["timelines"]
        if not timelines:
            st.caption("Pick filters that match at least one sighting to see city details.")
        else:
            city_opts = list(timelines)
            city = st.selectbox("City details", options=city_opts, index=city_opts.index(payload["selected_city"]))
            with card(city):
                for s in timelines[city]:
                    latin = f" <span class='species-latin'>{s['latinName']}</span>" if s.get("latinName") else ""
                    st.markdown(f"**{format_when(s.get('date'))}** · {s.get('species') or 'Unknown species'}{latin}", unsafe_allow_html=True)
                    st.caption(f"Severity (by species): {s['severityLabel']}")
                    photo = local_photo(s.get("imagePath"), get_settings().upload_dir)
                    if photo is not None:
                        st.image(str(photo), width=220)
                links = payload["links"][city]
                a1, a2 = st.columns(2)
                a1.button("Report a sighting", on_click=go_to_page, args=("report",), use_container_width=True)
                a2.link_button("Get directions", links["directions"], use_container_width=True)
                st.caption("Share this city")
                st.code(links["share"], language=None)


def render_report_page(store: UserSightingStore):
    render_page_header("Report a Tick Sighting", "Home / Report")
    result = st.session_state.pop("_report_result", None)
    old = result.old if result is not None else {}
    errors = result.errors if result is not None else {}

    if result is not None and result.success:
        st.success("Thank you! Your sighting has been recorded.")
    if errors.get("general"):
        st.error(errors["general"])

    with st.form("report-form", clear_on_submit=False):
        c1, c2 = st.columns(2)
        date_val = c1.text_input("Date (YYYY-MM-DD)", value=old.get("date", ""))
        if errors.get("date"):
            c1.error(errors["date"])
        time_val = c2.text_input("Time (HH:MM)", value=old.get("time", ""))
        if errors.get("time"):
            c2.error(errors["time"])

        location_val = st.selectbox(
            "Location",
            options=[""] + list(ALLOWED_CITIES),
            index=([""] + list(ALLOWED_CITIES)).index(old["location"]) if old.get("location") in ALLOWED_CITIES else 0,
        )
        if errors.get("location"):
            st.error(errors["location"])
        species_options = [""] + list(EDUCATION_SPECIES)
        species_val = st.selectbox(
            "Species",
            options=species_options,
            index=species_options.index(old["species"]) if old.get("species") in species_options else 0,
        )
        if errors.get("species"):
            st.error(errors["species"])
        description_val = st.text_area("Description (optional)", value=old.get("description", ""))
        image = st.file_uploader("Photo (optional)", type=["jpg", "jpeg", "png", "gif", "webp"])
        if errors.get("image"):
            st.error(errors["image"])
        submitted = st.form_submit_button("Submit sighting")

    if submitted:
        form = {
            "date": date_val,
            "time": time_val,
            "location": location_val,
            "species": species_val,
            "description": description_val,
        }
        upload = ImageUpload(filename=image.name, content=image.getvalue()) if image is not None else None
        st.session_state["_report_result"] = submit_report(form, upload, store, get_settings())
        st.rerun()

    rows = store.list_all()
    if rows:
        with st.expander(f"Recent reports ({len(rows)})"):
            st.dataframe(pd.DataFrame(rows).drop(columns=["id"], errors="ignore"), hide_index=True, use_container_width=True)


def render_education_page(source: TickSightingSource, request_ctx: Dict[str, str]):
    ctx = {"api_sightings": source.fetch_all()}
    defaults = resolve_education_filters(request_ctx, ctx)
    payload_opts = filter_options(ctx["api_sightings"])

    with st.sidebar:
        st.markdown("### Education filters")
        cities = payload_opts["cities"]
        years = payload_opts["years"]
        city = st.selectbox("City", options=cities, index=cities.index(defaults.city) if defaults.city in cities else 0) if cities else None
        year = st.selectbox("Year", options=years, index=years.index(defaults.year) if defaults.year in years else max(len(years) - 1, 0)) if years else None
        species_opts = [""] + payload_opts["species"]
        species = st.selectbox(
            "Species",
            options=species_opts,
            index=species_opts.index(defaults.species) if defaults.species in species_opts else 0,
            format_func=lambda s: s or "All species",
        )

    filters = resolve_education_filters({"city": city, "year": year, "species": species}, ctx)
    payload = compute_education(filters, ctx, source)
    render_page_header(
        "Tick Education & Prevention",
        "Home / Education",
        [f"City: {filters.city or 'N/A'}", f"Year: {filters.year or 'N/A'}", f"Species: {filters.species or 'All'}"],
    )

    with card("Monthly sightings"):
        if payload["total"] == 0:
            st.info("No sightings recorded for this selection.")
        st.altair_chart(monthly_histogram_chart(payload["monthly_counts"]), use_container_width=True)

    st.subheader("Know your ticks")
    stats = payload["species_stats"]
    cols = st.columns(len(stats) or 1)
    for col, stat in zip(cols, stats):
        with col:
            with card(stat["species"]):
                if stat.get("latinName"):
                    st.markdown(f"<span class='species-latin'>{stat['latinName']}</span>", unsafe_allow_html=True)
                top = ", ".join(c["city"] for c in stat["topCities"]) or "No data"
                st.markdown(f"**Top cities:** {top}")
                st.markdown(f"**Peak month:** {stat['peakMonthName'] or 'No data'}")
                st.caption(f"{stat['total']:,} recorded sightings")


def render_prevention_page():
    payload = compute_prevention()
    render_page_header(payload["title"], "Home / Prevention")
    for tip in payload["tips"]:
        with card(tip["title"]):
            st.write(tip["body"])


# ---------- UI setup ----------
settings = get_settings()
configure_logging(settings)
st.set_page_config(page_title="TickSight UK", layout="wide")
inject_base_styles()
st.title("TickSight UK")
st.caption("Reported tick sightings across the UK, with tips to stay safe outdoors.")

source = TickSightingSource.from_settings(settings)
store = UserSightingStore.from_settings(settings)

# Query string is read once and passed explicitly to each page.
request_ctx = {k: st.query_params.get(k, "") for k in ("page", "species", "dateRange", "severity", "city", "year")}
page_keys = list(PAGES)
if "nav_page" not in st.session_state:
    st.session_state["nav_page"] = request_ctx["page"] if request_ctx["page"] in PAGES else "map"

with st.sidebar:
    st.markdown("### Navigate")
    current_page = st.radio("Navigate", page_keys, key="nav_page", format_func=PAGES.get)
    st.markdown("---")
    if st.toggle("High contrast", key="high_contrast"):
        inject_contrast_styles()

if current_page == "map":
    map_defaults = normalize_map_filters(request_ctx)
    with st.sidebar:
        st.markdown("---")
        st.markdown("### Map filters")
        ctx = load_sightings_data(source, store)
        species_opts = [""] + sorted({str(s["species"]) for s in ctx["combined"] if s.get("species")})
        species = st.selectbox(
            "Species",
            options=species_opts,
            index=species_opts.index(map_defaults.species) if map_defaults.species in species_opts else 0,
            format_func=lambda s: s or "All species",
        )
        range_keys = list(DATE_RANGE_LABELS)
        date_range = st.selectbox("Date range", options=range_keys, index=range_keys.index(map_defaults.date_range), format_func=DATE_RANGE_LABELS.get)
        severity_opts = [""] + list(SEVERITY_LEVELS)
        severity = st.selectbox(
            "Severity",
            options=severity_opts,
            index=severity_opts.index(map_defaults.severity),
            format_func=lambda s: s.capitalize() if s else "All",
        )
    render_map_page(normalize_map_filters({"species": species, "date_range": date_range, "severity": severity}), ctx, city=request_ctx["city"])
elif current_page == "report":
    render_report_page(store)
elif current_page == "education":
    render_education_page(source, request_ctx)
else:
    render_prevention_page()
