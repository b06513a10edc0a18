"""
Runtime settings for the dashboard, read from the environment.
Loads .env from the project root so local runs pick up AVAFLOW_* overrides.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(PROJECT_ROOT / ".env")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


AVAFLOW_API_BASE = (os.environ.get("AVAFLOW_API_BASE") or "http://api.avaflow.net").rstrip("/")
AVAFLOW_TIMEOUT = _env_float("AVAFLOW_TIMEOUT", 30.0)

# Proxied responses are valid for 5 minutes
CACHE_TTL_SECONDS = _env_float("CACHE_TTL_SECONDS", 300.0)

RETRY_MAX_ATTEMPTS = _env_int("RETRY_MAX_ATTEMPTS", 3)
RETRY_BASE_DELAY = _env_float("RETRY_BASE_DELAY", 1.0)

LOG_BUFFER_SIZE = _env_int("LOG_BUFFER_SIZE", 1000)
