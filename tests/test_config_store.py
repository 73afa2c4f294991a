from __future__ import annotations

from pathlib import Path

import pytest

from config import DEFAULT_BASE_URL, DEFAULT_MODEL, JsonConfigStore
from models import FacingMode


def test_config_read_write(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    path = tmp_path / "config.json"
    store = JsonConfigStore(path=path)

    assert store.get_api_key() == ""
    assert store.get_model() == DEFAULT_MODEL
    assert store.get_camera_index(FacingMode.BACK) == 0
    assert store.get_camera_index(FacingMode.FRONT) == 1

    store.set_api_key("abc")
    store.set_model("gemini-2.0-flash")
    store.set_camera_index(FacingMode.FRONT, 3)
    store.set_request_timeout_s(15)

    reloaded = JsonConfigStore(path=path)
    assert reloaded.get_api_key() == "abc"
    assert reloaded.get_model() == "gemini-2.0-flash"
    assert reloaded.get_camera_index(FacingMode.FRONT) == 3
    assert reloaded.get_request_timeout_s() == 15.0


def test_config_invalid_json_fallback(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    path = tmp_path / "config.json"
    path.write_text("{invalid", encoding="utf-8")

    store = JsonConfigStore(path=path)
    assert store.get_api_key() == ""
    assert store.get_base_url() == DEFAULT_BASE_URL
    assert store.get_log_level() == "INFO"


def test_api_key_falls_back_to_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("GEMINI_API_KEY", "from-env")
    store = JsonConfigStore(path=tmp_path / "config.json")
    assert store.get_api_key() == "from-env"

    store.set_api_key("from-file")
    assert store.get_api_key() == "from-file"


def test_zero_timeout_disables_it(tmp_path: Path) -> None:
    store = JsonConfigStore(path=tmp_path / "config.json")
    store.set_request_timeout_s(0)
    assert store.get_request_timeout_s() is None
