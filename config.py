"""Simple JSON-based config store."""

from __future__ import annotations

import json
import os
from pathlib import Path

DEFAULT_LOCALE = "en-US"
DEFAULT_MODEL = "paraformer-realtime-v2"
DEFAULT_HOTKEY = "Key.f9"
DEFAULT_LOG_LEVEL = "INFO"


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "recognize_speech" / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def get_api_key(self) -> str:
        data = self._read_all()
        return str(data.get("api_key", "")) or os.getenv("DASHSCOPE_API_KEY", "")

    def set_api_key(self, key: str) -> None:
        self._set("api_key", key)

    def get_locale(self) -> str:
        return str(self._read_all().get("locale", DEFAULT_LOCALE)) or DEFAULT_LOCALE

    def set_locale(self, locale: str) -> None:
        self._set("locale", locale)

    def get_model(self) -> str:
        return str(self._read_all().get("model", DEFAULT_MODEL)) or DEFAULT_MODEL

    def get_hotkey(self) -> str:
        return str(self._read_all().get("hotkey", DEFAULT_HOTKEY))

    def get_log_level(self) -> str:
        return str(self._read_all().get("log_level", DEFAULT_LOG_LEVEL)).upper()

    def _set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

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
