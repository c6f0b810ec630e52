"""Shared test fixtures for the chat proxy tests."""

import json
from pathlib import Path
from typing import Callable, Dict, List, Optional

import httpx
import pytest

from chatproxy import app as app_module
from chatproxy import provider as provider_module
from chatproxy.config import ProxyConfig, load_config

Handler = Callable[[httpx.Request], httpx.Response]


def _make_config(tmp_path: Path, overrides: Optional[Dict] = None) -> str:
    """Write a minimal test config and return its path."""
    config = {
        "provider": {
            "base_url": "https://provider.example.com/v1beta",
            "model": "test-model",
            "api_key_env": "TEST_GEMINI_KEY",
        },
        "log_file": str(tmp_path / "test.log"),
    }
    if overrides:
        config.update(overrides)

    path = tmp_path / "test_config.json"
    path.write_text(json.dumps(config))
    return str(path)


def candidate_response(text: str) -> httpx.Response:
    """A provider reply carrying one candidate with one text part."""
    return httpx.Response(
        200,
        json={"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]},
    )


class FakeProvider:
    """Records outbound provider requests and answers them with a handler."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.handler: Handler = lambda request: candidate_response("hi there")

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def calls(self) -> int:
        return len(self.requests)

    def last_payload(self) -> Dict:
        return json.loads(self.requests[-1].content)


@pytest.fixture()
def test_config_path(tmp_path: Path) -> str:
    """Return the path to a temporary test config file."""
    return _make_config(tmp_path)


@pytest.fixture()
def test_config(test_config_path: str) -> ProxyConfig:
    """Return a loaded test ProxyConfig."""
    return load_config(test_config_path)


@pytest.fixture()
def fake_provider(monkeypatch: pytest.MonkeyPatch) -> FakeProvider:
    """Route every outbound provider call to an in-memory handler."""
    fake = FakeProvider()
    monkeypatch.setattr(
        provider_module,
        "_new_client",
        lambda: httpx.AsyncClient(transport=httpx.MockTransport(fake)),
    )
    return fake


@pytest.fixture()
def proxy_app(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, fake_provider: FakeProvider
) -> FakeProvider:
    """Reset the app's cached config and provide a credential."""
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    monkeypatch.setattr(app_module, "CONFIG_PATH", None)
    monkeypatch.setattr(
        app_module, "_config", ProxyConfig(log_file=str(tmp_path / "test.log"))
    )
    return fake_provider


@pytest.fixture()
def proxy_transport(proxy_app: FakeProvider) -> httpx.ASGITransport:
    """In-process transport to the proxy app."""
    return httpx.ASGITransport(app=app_module.app)
