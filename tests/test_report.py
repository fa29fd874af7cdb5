from __future__ import annotations

import re
from datetime import datetime

import pytest

from ticksight.report import (
    FUTURE_ERROR,
    ImageUpload,
    local_photo,
    safe_extension,
    save_upload,
    submit_report,
    validate_report,
)


NOW = datetime(2025, 6, 15, 12, 0, 0)


def _form(**overrides):
    base = {"date": "2025-06-01", "time": "10:15", "location": "leeds", "species": "Marsh tick", "description": " seen on a walk "}
    base.update(overrides)
    return base


def test_valid_form_has_no_errors():
    errors, old = validate_report(_form(), now=NOW)
    assert errors == {}
    assert old["description"] == "seen on a walk"


def test_required_fields():
    errors, old = validate_report({}, now=NOW)
    assert set(errors) == {"date", "time", "location", "species"}
    assert old == {"date": "", "time": "", "location": "", "species": "", "description": ""}


@pytest.mark.parametrize("value", ["2025-6-1", "01/06/2025", "2025-02-30", "yesterday"])
def test_invalid_date(value):
    errors, _ = validate_report(_form(date=value), now=NOW)
    assert errors["date"] == "Please enter a valid date."


@pytest.mark.parametrize("value,ok", [("10:15", True), ("10:15:30", True), ("25:00", False), ("ten", False)])
def test_time_formats(value, ok):
    errors, _ = validate_report(_form(time=value), now=NOW)
    assert ("time" not in errors) is ok


def test_future_sighting_flags_date_and_time():
    errors, _ = validate_report(_form(date="2025-06-15", time="12:01"), now=NOW)
    assert errors["date"] == FUTURE_ERROR
    assert errors["time"] == FUTURE_ERROR
    errors, _ = validate_report(_form(date="2025-06-15", time="12:00"), now=NOW)
    assert errors == {}


def test_unknown_city_is_rejected():
    errors, _ = validate_report(_form(location="Atlantis"), now=NOW)
    assert errors["location"] == "Please enter a valid UK city from the supported list."


@pytest.mark.parametrize("name,ext", [("tick.JPG", ".JPG"), ("photo.p-n_g", ".png"), ("noext", ""), ("", ""), ("a.b.webp", ".webp")])
def test_safe_extension(name, ext):
    assert safe_extension(name) == ext


def test_save_upload_writes_randomised_file(tmp_path):
    web = save_upload("My Tick.jpg", b"\xff\xd8data", tmp_path / "up", "images/uploads")
    assert re.fullmatch(r"images/uploads/sighting_\d+_[0-9a-f]{8}\.jpg", web)
    name = web.rsplit("/", 1)[1]
    assert (tmp_path / "up" / name).read_bytes() == b"\xff\xd8data"


def test_submit_report_saves_canonical_city(store, settings):
    result = submit_report(_form(), None, store, settings, now=NOW)
    assert result.success is True
    assert result.errors == {}
    assert result.old == {}
    [row] = store.list_all()
    assert row["location"] == "Leeds"
    assert row["description"] == "seen on a walk"
    assert row["image_path"] is None


def test_submit_report_with_image(store, settings):
    result = submit_report(_form(), ImageUpload("tick.png", b"png-bytes"), store, settings, now=NOW)
    assert result.success
    [rec] = store.list_all_normalised()
    assert rec["imagePath"].startswith("images/uploads/sighting_")
    assert (settings.upload_dir / rec["imagePath"].rsplit("/", 1)[1]).exists()


def test_submit_report_validation_errors_keep_old_values(store, settings):
    result = submit_report(_form(location="Atlantis", species=""), ImageUpload("tick.png", b"png"), store, settings, now=NOW)
    assert result.success is False
    assert set(result.errors) == {"location", "species"}
    assert result.old["location"] == "Atlantis"
    assert store.list_all() == []
    assert not settings.upload_dir.exists()


def test_submit_report_empty_upload(store, settings):
    result = submit_report(_form(), ImageUpload("tick.png", b""), store, settings, now=NOW)
    assert result.errors == {"image": "There was a problem with the image upload."}


def test_submit_report_upload_failure(store, settings, monkeypatch):
    def boom(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr("ticksight.report.save_upload", boom)
    result = submit_report(_form(), ImageUpload("tick.png", b"png"), store, settings, now=NOW)
    assert result.errors == {"image": "Failed to upload image. Please try again."}
    assert store.list_all() == []


def test_submit_report_persistence_failure(settings, now):
    class BrokenStore:
        def create(self, fields):
            return False

    result = submit_report(_form(), None, BrokenStore(), settings, now=NOW)
    assert result.success is False
    assert result.errors == {"general": "There was a problem saving your sighting. Please try again."}
    assert result.old["species"] == "Marsh tick"


def test_submit_report_persistence_failure_removes_photo(settings):
    class BrokenStore:
        def create(self, fields):
            return False

    result = submit_report(_form(), ImageUpload("tick.jpg", b"jpeg-bytes"), BrokenStore(), settings, now=NOW)
    assert result.errors == {"general": "There was a problem saving your sighting. Please try again."}
    assert list(settings.upload_dir.iterdir()) == []


def test_local_photo_only_returns_existing_files(tmp_path):
    web_path = save_upload("tick.png", b"png", tmp_path, "images/uploads")
    assert local_photo(web_path, tmp_path) == tmp_path / web_path.rsplit("/", 1)[1]
    assert local_photo("images/uploads/sighting_0_deadbeef.png", tmp_path) is None
    assert local_photo(None, tmp_path) is None
    assert local_photo("", tmp_path) is None
