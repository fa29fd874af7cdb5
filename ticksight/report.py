"""Validation and persistence of user-submitted sightings."""

from __future__ import annotations

import logging
import re
import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from ticksight.lookups import canonical_city
from ticksight.settings import Settings
from ticksight.store import UserSightingStore


logger = logging.getLogger(__name__)

REPORT_FIELDS = ("date", "time", "location", "species", "description")
FUTURE_ERROR = "The sighting date/time cannot be in the future."


@dataclass(frozen=True)
class ImageUpload:
    filename: str
    content: bytes


@dataclass
class ReportResult:
    success: bool
    errors: Dict[str, str] = field(default_factory=dict)
    old: Dict[str, str] = field(default_factory=dict)


def _parse_date(value: str) -> Optional[datetime]:
    try:
        parsed = datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return None
    # strptime accepts "2024-3-1"; only the canonical spelling is valid.
    return parsed if parsed.strftime("%Y-%m-%d") == value else None


def _parse_time(value: str) -> Optional[Tuple[int, int]]:
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            parsed = datetime.strptime(value, fmt)
        except ValueError:
            continue
        return parsed.hour, parsed.minute
    return None


def validate_report(form: Mapping[str, Any], now: Optional[datetime] = None) -> Tuple[Dict[str, str], Dict[str, str]]:
    """Return ``(errors, old)``; ``old`` holds the trimmed submitted values."""
    old = {k: str(form.get(k) or "").strip() for k in REPORT_FIELDS}
    errors: Dict[str, str] = {}

    if not old["date"]:
        errors["date"] = "Please select a date for the sighting."
    if not old["time"]:
        errors["time"] = "Please select a time for the sighting."
    if not old["location"]:
        errors["location"] = "Please enter a location (town/area or postcode)."
    if not old["species"]:
        errors["species"] = "Please select a tick species."

    if old["date"] and old["time"]:
        day = _parse_date(old["date"])
        hm = _parse_time(old["time"])
        if day is None:
            errors["date"] = "Please enter a valid date."
        if hm is None:
            errors["time"] = "Please enter a valid time."
        if day is not None and hm is not None:
            when = day.replace(hour=hm[0], minute=hm[1])
            if when > (now or datetime.now()):
                errors["date"] = FUTURE_ERROR
                errors["time"] = FUTURE_ERROR

    if old["location"]:
        city = canonical_city(old["location"])
        if city is None:
            errors["location"] = "Please enter a valid UK city from the supported list."

    return errors, old


def safe_extension(filename: str) -> str:
    ext = Path(filename or "").suffix.lstrip(".")
    ext = re.sub(r"[^a-zA-Z0-9]", "", ext)
    return f".{ext}" if ext else ""


def save_upload(filename: str, content: bytes, upload_dir: Path, web_prefix: str) -> str:
    """Write an uploaded photo under a randomised name and return its web path."""
    upload_dir = Path(upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    name = f"sighting_{int(time.time())}_{secrets.token_hex(4)}{safe_extension(filename)}"
    (upload_dir / name).write_bytes(content)
    return f"{web_prefix.rstrip('/')}/{name}"


def local_photo(image_path: Optional[str], upload_dir: Path | str) -> Optional[Path]:
    """On-disk file behind a stored image path, or None when it is gone."""
    if not image_path:
        return None
    path = Path(upload_dir) / Path(image_path).name
    return path if path.is_file() else None


def submit_report(
    form: Mapping[str, Any],
    image: Optional[ImageUpload],
    store: UserSightingStore,
    settings: Settings,
    *,
    now: Optional[datetime] = None,
) -> ReportResult:
    errors, old = validate_report(form, now=now)

    image_path = None
    if image is not None and image.filename:
        if not image.content:
            errors["image"] = "There was a problem with the image upload."
        elif not errors:
            try:
                image_path = save_upload(image.filename, image.content, settings.upload_dir, settings.upload_web_prefix)
            except OSError:
                logger.exception("Failed to store uploaded image %s", image.filename)
                errors["image"] = "Failed to upload image. Please try again."

    if errors:
        return ReportResult(success=False, errors=errors, old=old)

    created = store.create(
        {
            "date": old["date"],
            "time": old["time"],
            "location": canonical_city(old["location"]) or old["location"],
            "species": old["species"],
            "description": old["description"],
            "image_path": image_path,
        }
    )
    if not created:
        photo = local_photo(image_path, settings.upload_dir)
        if photo is not None:
            photo.unlink()
        return ReportResult(
            success=False,
            errors={"general": "There was a problem saving your sighting. Please try again."},
            old=old,
        )
    logger.info("Saved user sighting: %s in %s", old["species"], old["location"])
    return ReportResult(success=True)
