import sys
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from datamapper.llm import CONNECTED, DISCONNECTED, InferenceUnavailable  # noqa: E402
from datamapper.settings import AppConfig  # noqa: E402


class StubClient:
    """In-memory stand-in for the Ollama client that records every prompt."""

    def __init__(
        self,
        response: str = "  Name: Alice  ",
        models: Optional[List[Dict[str, Any]]] = None,
        fail: bool = False,
        error: Optional[Exception] = None,
    ) -> None:
        self.response = response
        self.models = models if models is not None else [{"name": "llama3.2"}]
        self.fail = fail
        self.error = error
        self.calls: List[Tuple[str, str]] = []
        self._lock = threading.Lock()

    def generate(self, prompt: str, model: str) -> str:
        with self._lock:
            self.calls.append((prompt, model))
        if self.error is not None:
            raise self.error
        if self.fail:
            raise InferenceUnavailable()
        return self.response

    def list_models(self) -> List[Dict[str, Any]]:
        if self.fail:
            raise InferenceUnavailable()
        return self.models

    def ping(self) -> str:
        return DISCONNECTED if self.fail else CONNECTED


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        ollama_url="http://127.0.0.1:9",
        default_model="llama3.2",
        host="127.0.0.1",
        port=3001,
        upload_dir=tmp_path / "uploads",
        results_dir=tmp_path / "results",
    )


@pytest.fixture
def stub_client() -> StubClient:
    return StubClient()


@pytest.fixture
def make_stub():
    return StubClient
