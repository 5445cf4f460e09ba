"""Runtime configuration helpers for the loyalty card session."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

CARD_QUERY_PARAM = "card"
STAMP_SLOTS = 50
DEFAULT_STAMP_IMAGE_URL = (
    "https://upload.wikimedia.org/wikipedia/commons/thumb/5/5a/Red_stamp.svg/512px-Red_stamp.svg.png"
)

# Upper bound on waiting for identity and store readiness at startup.
DEFAULT_STARTUP_TIMEOUT_SECONDS = 4.0


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(name, default)


def get_card_backend() -> str:
    return (_get_env("LOYALTY_CARD_BACKEND") or "memory").lower()


def get_card_collection() -> str:
    return _get_env("LOYALTY_CARD_COLLECTION") or "cards"


def get_firestore_project() -> Optional[str]:
    return _get_env("GCP_PROJECT_ID") or _get_env("GCP_PROJECT")


def get_startup_timeout_seconds() -> float:
    raw = _get_env("LOYALTY_CARD_STARTUP_TIMEOUT")
    if not raw:
        return DEFAULT_STARTUP_TIMEOUT_SECONDS
    try:
        value = float(raw)
    except ValueError:
        raise RuntimeError(f"LOYALTY_CARD_STARTUP_TIMEOUT must be a number of seconds, got: {raw!r}")
    if value <= 0:
        raise RuntimeError("LOYALTY_CARD_STARTUP_TIMEOUT must be positive")
    return value


def get_state_dir() -> Path:
    raw = _get_env("LOYALTY_CARD_STATE_DIR")
    if raw:
        return Path(raw).expanduser()
    return Path.home() / ".stampcard"


def get_page_url() -> str:
    return _get_env("LOYALTY_CARD_PAGE_URL") or "http://localhost:8000/"
