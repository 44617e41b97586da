from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import requests


logger = logging.getLogger("datamapper.llm")

GENERATION_OPTIONS: Dict[str, Any] = {
    "temperature": 0.3,
    "top_p": 0.9,
    "max_tokens": 2000,
}

PING_TIMEOUT = 3.0

CONNECTED = "connected"
DISCONNECTED = "disconnected"


class InferenceUnavailable(RuntimeError):
    """Raised when the Ollama server cannot be reached or returns an unusable response."""

    def __init__(
        self,
        message: str = "Failed to connect to Ollama. Make sure Ollama is running locally.",
    ) -> None:
        super().__init__(message)


class OllamaClient:
    """
    Minimal HTTP client for Ollama's generate and tags endpoints.

    Every call is a single request; failures are never retried.
    """

    def __init__(self, base_url: str, timeout: Optional[float] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def generate(self, prompt: str, model: str) -> str:
        payload: Dict[str, Any] = {
            "model": model,
            "prompt": prompt,
            "stream": False,
            "options": dict(GENERATION_OPTIONS),
        }
        data = self._request("POST", "/api/generate", payload)
        text = data.get("response")
        if not isinstance(text, str):
            logger.error("Ollama generate response has no text field: %r", data)
            raise InferenceUnavailable()
        return text

    def list_models(self, timeout: Optional[float] = None) -> List[Dict[str, Any]]:
        data = self._request("GET", "/api/tags", timeout=timeout)
        return data.get("models") or []

    def ping(self, timeout: float = PING_TIMEOUT) -> str:
        try:
            self.list_models(timeout=timeout)
        except InferenceUnavailable:
            return DISCONNECTED
        return CONNECTED

    def _request(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        kwargs: Dict[str, Any] = {"timeout": timeout if timeout is not None else self.timeout}
        if payload is not None:
            kwargs["headers"] = {"Content-Type": "application/json"}
            kwargs["data"] = json.dumps(payload)
        try:
            response = requests.request(method, url, **kwargs)
        except requests.RequestException as exc:
            logger.error("Ollama API error (%s %s): %s", method, url, exc)
            raise InferenceUnavailable() from exc
        if response.status_code >= 400:
            logger.error(
                "Ollama returned %s for %s %s: %s",
                response.status_code,
                method,
                url,
                response.text,
            )
            raise InferenceUnavailable()
        try:
            data = response.json()
        except ValueError as exc:
            logger.error("Failed to decode Ollama response from %s as JSON.", url)
            raise InferenceUnavailable() from exc
        if not isinstance(data, dict):
            logger.error("Unexpected Ollama payload from %s: %r", url, data)
            raise InferenceUnavailable()
        return data
