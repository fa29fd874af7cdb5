from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Mapping, Optional


BASE_DIR = Path(__file__).resolve().parents[1]

DEFAULT_API_BASE_URL = "https://dev-task.elancoapps.com/data"
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_DB_PATH = BASE_DIR / "data" / "sightings.sqlite"
DEFAULT_UPLOAD_DIR = BASE_DIR / "images" / "uploads"
UPLOAD_WEB_PREFIX = "images/uploads"
DEFAULT_PUBLIC_URL = "http://localhost:8501"


@dataclass(frozen=True)
class Settings:
    api_base_url: str = DEFAULT_API_BASE_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    db_path: Path = DEFAULT_DB_PATH
    upload_dir: Path = DEFAULT_UPLOAD_DIR
    upload_web_prefix: str = UPLOAD_WEB_PREFIX
    public_url: str = DEFAULT_PUBLIC_URL
    log_level: str = "INFO"


def _as_float(value: Optional[str], default: float) -> float:
    if value is None or not value.strip():
        return default
    try:
        out = float(value)
    except Exception:
        return default
    return out if out > 0 else default


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ
    base_url = (env.get("TICKSIGHT_API_BASE_URL") or DEFAULT_API_BASE_URL).strip().rstrip("/")
    db_path = env.get("TICKSIGHT_DB_PATH")
    upload_dir = env.get("TICKSIGHT_UPLOAD_DIR")
    return Settings(
        api_base_url=base_url,
        request_timeout=_as_float(env.get("TICKSIGHT_REQUEST_TIMEOUT"), DEFAULT_REQUEST_TIMEOUT),
        db_path=Path(db_path) if db_path else DEFAULT_DB_PATH,
        upload_dir=Path(upload_dir) if upload_dir else DEFAULT_UPLOAD_DIR,
        public_url=(env.get("TICKSIGHT_PUBLIC_URL") or DEFAULT_PUBLIC_URL).strip().rstrip("/"),
        log_level=(env.get("TICKSIGHT_LOG_LEVEL") or "INFO").strip().upper(),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


def configure_logging(settings: Optional[Settings] = None) -> None:
    settings = settings or get_settings()
    level = logging.getLevelName(settings.log_level)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
