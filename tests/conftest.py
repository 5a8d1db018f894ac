"""Pytest configuration and fixtures."""
import json
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List

import httpx
import pytest

# Add project root to sys.path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from coverwise.config.settings import Settings  # noqa: E402

API_BASE = "https://gemini.test/v1beta"


def gemini_body(text: str) -> Dict[str, Any]:
    """generateContent response carrying ``text``."""
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def models_body(*names: str, method: str = "generateContent") -> Dict[str, Any]:
    return {
        "models": [
            {"name": f"models/{name}", "supportedGenerationMethods": [method]}
            for name in names
        ]
    }


class RecordingTransport:
    """httpx.MockTransport wrapper that records every request."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: List[httpx.Request] = []
        self._handler = handler
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._handler(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport)

    def paths(self) -> List[str]:
        return [request.url.path for request in self.requests]

    def json_bodies(self) -> List[Any]:
        return [json.loads(request.content) for request in self.requests if request.content]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        gemini_api_key="test-key",
        gemini_api_base=API_BASE,
        elevenlabs_api_key="",
        donation_wallet="",
    )
