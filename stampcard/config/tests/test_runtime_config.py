from pathlib import Path

import pytest

from stampcard.config import runtime_config


def test_startup_timeout_defaults(monkeypatch):
    monkeypatch.delenv("LOYALTY_CARD_STARTUP_TIMEOUT", raising=False)
    assert runtime_config.get_startup_timeout_seconds() == 4.0


def test_startup_timeout_override(monkeypatch):
    monkeypatch.setenv("LOYALTY_CARD_STARTUP_TIMEOUT", "0.5")
    assert runtime_config.get_startup_timeout_seconds() == 0.5


@pytest.mark.parametrize("raw", ["soon", "0", "-1"])
def test_startup_timeout_rejects_bad_values(monkeypatch, raw):
    monkeypatch.setenv("LOYALTY_CARD_STARTUP_TIMEOUT", raw)
    with pytest.raises(RuntimeError):
        runtime_config.get_startup_timeout_seconds()


def test_backend_and_collection(monkeypatch):
    monkeypatch.delenv("LOYALTY_CARD_BACKEND", raising=False)
    monkeypatch.delenv("LOYALTY_CARD_COLLECTION", raising=False)
    assert runtime_config.get_card_backend() == "memory"
    assert runtime_config.get_card_collection() == "cards"

    monkeypatch.setenv("LOYALTY_CARD_BACKEND", "Firestore")
    assert runtime_config.get_card_backend() == "firestore"


def test_firestore_project_prefers_project_id(monkeypatch):
    monkeypatch.setenv("GCP_PROJECT", "fallback")
    monkeypatch.setenv("GCP_PROJECT_ID", "primary")
    assert runtime_config.get_firestore_project() == "primary"
    monkeypatch.delenv("GCP_PROJECT_ID")
    assert runtime_config.get_firestore_project() == "fallback"


def test_state_dir_and_page_url(monkeypatch, tmp_path):
    monkeypatch.setenv("LOYALTY_CARD_STATE_DIR", str(tmp_path))
    monkeypatch.delenv("LOYALTY_CARD_PAGE_URL", raising=False)
    assert runtime_config.get_state_dir() == Path(tmp_path)
    assert runtime_config.get_page_url() == "http://localhost:8000/"
