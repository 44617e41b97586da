import json
from pathlib import Path

import pytest

from datamapper.settings import DEFAULT_SETTINGS, AppConfig, SettingsManager, load_config


def test_defaults_written_on_first_load(tmp_path: Path) -> None:
    path = tmp_path / "conf" / "settings.json"
    manager = SettingsManager(path, environ={})
    config = manager.config()
    assert path.exists()
    assert json.loads(path.read_text(encoding="utf-8")) == json.loads(json.dumps(DEFAULT_SETTINGS))
    assert config == AppConfig(
        ollama_url="http://localhost:11434",
        default_model="llama3.2",
        host="0.0.0.0",
        port=3001,
        upload_dir=Path("uploads"),
        results_dir=Path("results"),
        timeout=None,
    )


def test_file_values_merge_with_defaults(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"server": {"port": 8080}, "ollama": {"timeout": 30}}), encoding="utf-8")
    config = SettingsManager(path, environ={}).config()
    assert config.port == 8080
    assert config.host == "0.0.0.0"
    assert config.timeout == 30.0
    assert config.ollama_url == "http://localhost:11434"


def test_environment_overrides_file(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"server": {"port": 8080}}), encoding="utf-8")
    environ = {
        "OLLAMA_URL": "http://gpu-box:11434/",
        "PORT": "4000",
        "DATA_MAPPER_UPLOAD_DIR": str(tmp_path / "in"),
        "DATA_MAPPER_RESULTS_DIR": str(tmp_path / "out"),
        "DATA_MAPPER_MODEL": "mistral",
        "OLLAMA_TIMEOUT": "",
    }
    manager = SettingsManager(path, environ=environ)
    config = manager.config()
    assert config.ollama_url == "http://gpu-box:11434"
    assert config.port == 4000
    assert config.upload_dir == tmp_path / "in"
    assert config.results_dir == tmp_path / "out"
    assert config.default_model == "mistral"
    assert config.timeout is None
    # Overrides are never persisted.
    assert json.loads(path.read_text(encoding="utf-8")) == {"server": {"port": 8080}}


def test_invalid_environment_value(tmp_path: Path) -> None:
    manager = SettingsManager(tmp_path / "settings.json", environ={"PORT": "abc"})
    with pytest.raises(ValueError, match="PORT"):
        manager.config()


def test_load_config_uses_settings_path_from_environment(tmp_path: Path, monkeypatch) -> None:
    path = tmp_path / "custom.json"
    monkeypatch.setenv("DATA_MAPPER_SETTINGS", str(path))
    monkeypatch.setenv("PORT", "5005")
    config = load_config()
    assert path.exists()
    assert config.port == 5005
