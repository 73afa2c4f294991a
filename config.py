"""Simple JSON-based config store."""

from __future__ import annotations

import json
import os
from pathlib import Path

from models import FacingMode

DEFAULT_MODEL = "gemini-1.5-flash"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_TIMEOUT_S = 60.0


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "arogya_mitra" / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def get_api_key(self) -> str:
        data = self._read_all()
        return str(data.get("api_key", "")) or os.getenv("GEMINI_API_KEY", "")

    def set_api_key(self, key: str) -> None:
        data = self._read_all()
        data["api_key"] = key
        self._write_all(data)

    def get_model(self) -> str:
        data = self._read_all()
        return str(data.get("model", DEFAULT_MODEL))

    def set_model(self, model: str) -> None:
        data = self._read_all()
        data["model"] = model
        self._write_all(data)

    def get_base_url(self) -> str:
        data = self._read_all()
        return str(data.get("base_url", DEFAULT_BASE_URL)).rstrip("/")

    def get_request_timeout_s(self) -> float | None:
        data = self._read_all()
        try:
            value = float(data.get("request_timeout_s", DEFAULT_TIMEOUT_S))
        except (TypeError, ValueError):
            value = DEFAULT_TIMEOUT_S
        # 0 or negative disables the timeout
        return value if value > 0 else None

    def set_request_timeout_s(self, seconds: float) -> None:
        data = self._read_all()
        data["request_timeout_s"] = seconds
        self._write_all(data)

    def get_camera_index(self, facing_mode: FacingMode) -> int:
        data = self._read_all()
        key = "front_camera_index" if facing_mode is FacingMode.FRONT else "back_camera_index"
        default = 1 if facing_mode is FacingMode.FRONT else 0
        try:
            return int(data.get(key, default))
        except (TypeError, ValueError):
            return default

    def set_camera_index(self, facing_mode: FacingMode, index: int) -> None:
        data = self._read_all()
        key = "front_camera_index" if facing_mode is FacingMode.FRONT else "back_camera_index"
        data[key] = index
        self._write_all(data)

    def get_log_level(self) -> str:
        data = self._read_all()
        return str(data.get("log_level", "INFO")).upper()

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
