from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional


DATA_DIR = Path("data")
SETTINGS_PATH = DATA_DIR / "settings.json"

DEFAULT_SETTINGS: Dict[str, Any] = {
    "ollama": {
        "base_url": "http://localhost:11434",
        "default_model": "llama3.2",
        "timeout": None,
    },
    "server": {
        "host": "0.0.0.0",
        "port": 3001,
    },
    "storage": {
        "upload_dir": "uploads",
        "results_dir": "results",
    },
}

# Environment variable -> (section, key, converter)
ENV_OVERRIDES = {
    "OLLAMA_URL": ("ollama", "base_url", str),
    "OLLAMA_TIMEOUT": ("ollama", "timeout", float),
    "DATA_MAPPER_MODEL": ("ollama", "default_model", str),
    "HOST": ("server", "host", str),
    "PORT": ("server", "port", int),
    "DATA_MAPPER_UPLOAD_DIR": ("storage", "upload_dir", str),
    "DATA_MAPPER_RESULTS_DIR": ("storage", "results_dir", str),
}


@dataclass(frozen=True)
class AppConfig:
    ollama_url: str
    default_model: str
    host: str
    port: int
    upload_dir: Path
    results_dir: Path
    timeout: Optional[float] = None

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> "AppConfig":
        ollama = settings["ollama"]
        server = settings["server"]
        storage = settings["storage"]
        timeout = ollama.get("timeout")
        return cls(
            ollama_url=str(ollama["base_url"]).rstrip("/"),
            default_model=str(ollama["default_model"]),
            host=str(server["host"]),
            port=int(server["port"]),
            upload_dir=Path(storage["upload_dir"]),
            results_dir=Path(storage["results_dir"]),
            timeout=float(timeout) if timeout is not None else None,
        )


class SettingsManager:
    """
    Handles loading and persisting the editable configuration file.

    The file is stored as pretty-printed JSON so operators can edit it by hand.
    Environment variables listed in ``ENV_OVERRIDES`` win over the file and are
    never written back to it.
    """

    def __init__(self, path: Path, environ: Optional[Mapping[str, str]] = None) -> None:
        self.path = path
        self.environ = os.environ if environ is None else environ
        self._settings: Dict[str, Any] | None = None
        self.path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def settings(self) -> Dict[str, Any]:
        if self._settings is None:
            self._settings = self._load_from_disk()
        return self._settings

    def config(self) -> AppConfig:
        resolved = json.loads(json.dumps(self.settings))
        _apply_env(resolved, self.environ)
        return AppConfig.from_settings(resolved)

    def _load_from_disk(self) -> Dict[str, Any]:
        if not self.path.exists():
            self._write(DEFAULT_SETTINGS)
            return json.loads(json.dumps(DEFAULT_SETTINGS))
        with self.path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        # Merge with defaults to backfill new keys without overwriting manual edits.
        merged = json.loads(json.dumps(DEFAULT_SETTINGS))
        _deep_update(merged, data)
        return merged

    def _write(self, data: Dict[str, Any]) -> None:
        with self.path.open("w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=2, sort_keys=True)
            handle.write("\n")


def load_config(path: Optional[Path] = None) -> AppConfig:
    """Resolve the runtime configuration from the settings file and environment."""
    if path is None:
        path = Path(os.environ.get("DATA_MAPPER_SETTINGS", SETTINGS_PATH))
    return SettingsManager(path).config()


def _apply_env(settings: Dict[str, Any], environ: Mapping[str, str]) -> None:
    for variable, (section, key, convert) in ENV_OVERRIDES.items():
        raw = environ.get(variable)
        if raw is None or raw == "":
            continue
        try:
            settings[section][key] = convert(raw)
        except ValueError as exc:
            raise ValueError(f"Invalid value for {variable}: {raw!r}") from exc


def _deep_update(target: Dict[str, Any], source: Dict[str, Any]) -> None:
    """
    Recursively update a mapping, preserving nested structures.
    """
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _deep_update(target[key], value)
        else:
            target[key] = value
