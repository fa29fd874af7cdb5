from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class ReportResponse(BaseModel):
    success: bool
    errors: Dict[str, str] = Field(default_factory=dict)
    old: Dict[str, str] = Field(default_factory=dict)


class ReportFormContext(BaseModel):
    allowed_cities: List[str]
    species: List[str]
    errors: Dict[str, str] = Field(default_factory=dict)
    old: Dict[str, str] = Field(default_factory=dict)
    success: bool = False


class MetaListResponse(BaseModel):
    values: List[str]


class MetaYearsResponse(BaseModel):
    years: List[int]


class HealthResponse(BaseModel):
    status: str
    user_sightings: int
    api_base_url: Optional[str] = None
