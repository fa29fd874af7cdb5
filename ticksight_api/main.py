from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np
import pandas as pd
from fastapi import Depends, FastAPI, File, Form, Query, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from ticksight.aggregate import filter_options
from ticksight.data import load_sightings_data
from ticksight.filters import normalize_map_filters
from ticksight.lookups import ALLOWED_CITIES, EDUCATION_SPECIES
from ticksight.metrics_education import compute_education, compute_prevention, resolve_education_filters
from ticksight.metrics_map import compute_map
from ticksight.report import ImageUpload, submit_report
from ticksight.settings import Settings, configure_logging, get_settings
from ticksight.source import TickSightingSource
from ticksight.store import UserSightingStore
from ticksight_api.schemas import HealthResponse, MetaListResponse, MetaYearsResponse, ReportFormContext, ReportResponse


settings = get_settings()
configure_logging(settings)

app = FastAPI(title="TickSight UK API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:8501"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.mount(
    "/" + settings.upload_web_prefix.strip("/"),
    StaticFiles(directory=str(settings.upload_dir), check_dir=False),
    name="uploads",
)


def get_app_settings() -> Settings:
    return get_settings()


def get_source(s: Settings = Depends(get_app_settings)) -> TickSightingSource:
    return TickSightingSource.from_settings(s)


def get_store(s: Settings = Depends(get_app_settings)) -> UserSightingStore:
    return UserSightingStore.from_settings(s)


def _json(data: object, status_code: int = 200) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                type(pd.NaT): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        ),
    )


def _error(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


def _report_form_context() -> ReportFormContext:
    return ReportFormContext(allowed_cities=list(ALLOWED_CITIES), species=list(EDUCATION_SPECIES))


@app.get("/health", response_model=HealthResponse)
def health(store: UserSightingStore = Depends(get_store), s: Settings = Depends(get_app_settings)):
    return HealthResponse(status="running", user_sightings=store.count(), api_base_url=s.api_base_url)


@app.get("/")
def index(
    page: str = Query(default="map"),
    species: str = Query(default=""),
    date_range: str = Query(default="", alias="dateRange"),
    severity: str = Query(default=""),
    city: Optional[str] = Query(default=None),
    year: Optional[str] = Query(default=None),
    source: TickSightingSource = Depends(get_source),
    store: UserSightingStore = Depends(get_store),
    s: Settings = Depends(get_app_settings),
):
    if page == "report":
        return report_form()
    if page == "education":
        return education(city=city, year=year, species=species, source=source, store=store)
    if page == "prevention":
        return prevention()
    return map_page(species=species, date_range=date_range, severity=severity, city=city or "", source=source, store=store, s=s)


@app.get("/map")
def map_page(
    species: str = Query(default=""),
    date_range: str = Query(default="", alias="dateRange"),
    severity: str = Query(default=""),
    city: str = Query(default=""),
    source: TickSightingSource = Depends(get_source),
    store: UserSightingStore = Depends(get_store),
    s: Settings = Depends(get_app_settings),
):
    try:
        ctx = load_sightings_data(source, store)
        f = normalize_map_filters({"species": species, "date_range": date_range, "severity": severity})
        return _json({"page": "map", **compute_map(f, ctx, base_url=s.public_url, city=city)})
    except Exception as exc:
        logger.exception("map_page failed")
        return _error(exc)


@app.get("/education")
def education(
    city: Optional[str] = Query(default=None),
    year: Optional[str] = Query(default=None),
    species: str = Query(default=""),
    source: TickSightingSource = Depends(get_source),
    store: UserSightingStore = Depends(get_store),
):
    try:
        ctx = {"api_sightings": source.fetch_all()}
        f = resolve_education_filters({"city": city, "year": year, "species": species}, ctx)
        return _json({"page": "education", **compute_education(f, ctx, source)})
    except Exception as exc:
        logger.exception("education failed")
        return _error(exc)


@app.get("/prevention")
def prevention():
    return _json({"page": "prevention", **compute_prevention()})


@app.get("/report", response_model=ReportFormContext)
def report_form():
    return _report_form_context()


@app.post("/report", response_model=ReportResponse)
def report_submit(
    date: str = Form(default=""),
    time: str = Form(default=""),
    location: str = Form(default=""),
    species: str = Form(default=""),
    description: str = Form(default=""),
    image: Optional[UploadFile] = File(default=None),
    store: UserSightingStore = Depends(get_store),
    s: Settings = Depends(get_app_settings),
):
    form = {"date": date, "time": time, "location": location, "species": species, "description": description}
    upload = None
    if image is not None and image.filename:
        upload = ImageUpload(filename=image.filename, content=image.file.read())

    result = submit_report(form, upload, store, s)
    body = ReportResponse(success=result.success, errors=result.errors, old=result.old).model_dump()
    if result.success:
        return _json(body, status_code=201)
    if "general" in result.errors:
        return _json(body, status_code=500)
    return _json(body, status_code=422)


def _meta_options(source: TickSightingSource) -> dict:
    return filter_options(source.fetch_all())


@app.get("/meta/cities", response_model=MetaListResponse)
def meta_cities(source: TickSightingSource = Depends(get_source)):
    return MetaListResponse(values=_meta_options(source)["cities"])


@app.get("/meta/species", response_model=MetaListResponse)
def meta_species(source: TickSightingSource = Depends(get_source)):
    return MetaListResponse(values=_meta_options(source)["species"])


@app.get("/meta/years", response_model=MetaYearsResponse)
def meta_years(source: TickSightingSource = Depends(get_source)):
    return MetaYearsResponse(years=_meta_options(source)["years"])
