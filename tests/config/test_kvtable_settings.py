from __future__ import annotations

import importlib
import sys
from pathlib import Path
from typing import Any

import pytest
from pydantic import ValidationError


def _reload_settings() -> Any:
    # Remove cached module to force re-evaluation of settings on import
    if "kvtable.config.settings" in sys.modules:
        del sys.modules["kvtable.config.settings"]
    import kvtable.config.settings as settings_module

    importlib.reload(settings_module)
    return settings_module


@pytest.fixture(autouse=True)
def _no_dotenv(monkeypatch: pytest.MonkeyPatch) -> None:
    # Prevent picking up values from a real .env during the test
    monkeypatch.setattr("dotenv.load_dotenv", lambda *a, **k: None, raising=False)
    for var in ("KVTABLE_DB_PATH", "KVTABLE_COLLECTION", "KVTABLE_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)


def test_defaults() -> None:
    settings_module = _reload_settings()
    s = settings_module.settings

    assert s.db_path == Path(settings_module.DEFAULT_DB_PATH)
    assert s.collection == "user_emails"
    assert s.log_level == "WARNING"


def test_env_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("KVTABLE_DB_PATH", str(tmp_path / "kv.db"))
    monkeypatch.setenv("KVTABLE_COLLECTION", "sessions")
    monkeypatch.setenv("KVTABLE_LOG_LEVEL", "debug")

    s = _reload_settings().settings
    assert s.db_path == tmp_path / "kv.db"
    assert s.collection == "sessions"
    assert s.log_level == "DEBUG"


def test_invalid_collection_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KVTABLE_COLLECTION", "users; DROP TABLE users")

    with pytest.raises(RuntimeError):
        _ = _reload_settings()


def test_invalid_log_level_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KVTABLE_LOG_LEVEL", "loud")

    with pytest.raises(ValidationError):
        _ = _reload_settings()


def test_settings_are_frozen() -> None:
    s = _reload_settings().settings
    with pytest.raises(ValidationError):
        s.collection = "other"
