"""Local configuration for coursetree."""

from __future__ import annotations

import os


DEFAULT_API_BASE_URL = "http://localhost:8000/api"
DEFAULT_CACHE_TTL_SECONDS = 5 * 60
DEFAULT_READ_MAX_RETRIES = 2
DEFAULT_READ_BACKOFF_S = 0.5
DEFAULT_USER_AGENT = "coursetree/0.1"
DEFAULT_LOG_LEVEL = "INFO"


def _optional_float(name: str) -> float | None:
    value = os.getenv(name, "").strip()
    return float(value) if value else None


COURSETREE_API_BASE_URL = os.getenv("COURSETREE_API_BASE_URL", DEFAULT_API_BASE_URL).rstrip("/")
# Bearer token attached to every backend request when set.
COURSETREE_API_TOKEN = os.getenv("COURSETREE_API_TOKEN") or None
# Unset means requests never time out on the client side.
COURSETREE_REQUEST_TIMEOUT_S = _optional_float("COURSETREE_REQUEST_TIMEOUT_S")
COURSETREE_READ_MAX_RETRIES = int(os.getenv("COURSETREE_READ_MAX_RETRIES", str(DEFAULT_READ_MAX_RETRIES)))
COURSETREE_READ_BACKOFF_S = float(os.getenv("COURSETREE_READ_BACKOFF_S", str(DEFAULT_READ_BACKOFF_S)))
COURSETREE_CACHE_TTL_SECONDS = int(os.getenv("COURSETREE_CACHE_TTL_SECONDS", str(DEFAULT_CACHE_TTL_SECONDS)))
COURSETREE_USER_AGENT = os.getenv("COURSETREE_USER_AGENT", DEFAULT_USER_AGENT)
COURSETREE_LOG_LEVEL = os.getenv("COURSETREE_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
