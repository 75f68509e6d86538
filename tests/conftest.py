"""Pytest configuration and fixtures.

Provides environment isolation, logging configuration, a fake Ollama server
built on ``httpx.MockTransport``, and automatic API test skipping. Fixtures in
the isolation section are autouse unless noted.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import suppress
from dataclasses import dataclass, field
import json
import logging
import os
from typing import Any

import httpx
import pytest

from ollama_bridge import Config, OllamaAdapter

TEST_BASE_URL = "http://ollama.test:11434"

# =============================================================================
# Test Doubles
# =============================================================================

type Reply = httpx.Response | BaseException | Callable[[httpx.Request], httpx.Response]


@dataclass
class FakeOllama:
    """Scripted stand-in for an Ollama server.

    Replies are consumed per path in order; the last reply for a path is
    reused once the script runs out. Every request is recorded with its
    decoded JSON body for assertions.
    """

    replies: dict[str, list[Reply]] = field(default_factory=dict)
    requests: list[httpx.Request] = field(default_factory=list)

    def reply(self, path: str, *replies: Reply) -> FakeOllama:
        self.replies.setdefault(path, []).extend(replies)
        return self

    @property
    def bodies(self) -> list[dict[str, Any]]:
        return [json.loads(r.content) if r.content else {} for r in self.requests]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        script = self.replies.get(request.url.path)
        if not script:
            return httpx.Response(404, text=f"no reply scripted for {request.url.path}")
        item = script.pop(0) if len(script) > 1 else script[0]
        if isinstance(item, BaseException):
            raise item
        if callable(item) and not isinstance(item, httpx.Response):
            return item(request)
        return item


# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_ollama_env(request, monkeypatch):
    """Ensure a clean Ollama environment for each test.

    Clears OLLAMA_* env vars (host and debug toggles) to prevent test pollution.
    Opt-out: @pytest.mark.allow_env_pollution or @pytest.mark.api
    """
    if request.node.get_closest_marker("allow_env_pollution") or (
        "api" in request.node.keywords
    ):
        return

    for key in list(os.environ.keys()):
        if key.startswith("OLLAMA_"):
            monkeypatch.delenv(key, raising=False)


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Suppress noisy third-party loggers."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# =============================================================================
# Fake Server Fixtures
# =============================================================================


@pytest.fixture
def fake_ollama() -> FakeOllama:
    """Return an empty scripted server; tests add replies per path."""
    return FakeOllama()


@pytest.fixture
def adapter(fake_ollama: FakeOllama) -> OllamaAdapter:
    """Adapter wired to ``fake_ollama`` through a mock transport."""
    return OllamaAdapter(
        Config(base_url=TEST_BASE_URL), transport=fake_ollama.transport
    )


# =============================================================================
# Pytest Hooks
# =============================================================================

API_TESTS_REASON = "API tests require ENABLE_API_TESTS=1"


def _api_tests_enabled() -> bool:
    return bool(os.getenv("ENABLE_API_TESTS"))


def pytest_configure(config):
    """Register opt-out markers used by the isolation fixtures."""
    config.addinivalue_line("markers", "allow_dotenv: let python-dotenv load .env")
    config.addinivalue_line(
        "markers", "allow_env_pollution: keep OLLAMA_* environment variables"
    )


def pytest_collection_modifyitems(items):
    """Automatically skip API tests when not explicitly enabled."""
    if _api_tests_enabled():
        return
    skip_api = pytest.mark.skip(reason=API_TESTS_REASON)
    for item in items:
        if "api" in item.keywords:
            item.add_marker(skip_api)


# =============================================================================
# API Test Configuration
# =============================================================================

# Small enough to pull quickly on a laptop; override with OLLAMA_TEST_MODEL.
_OLLAMA_TEST_MODEL = "llama3.2:1b"
_OLLAMA_TEST_EMBED_MODEL = "nomic-embed-text"


@pytest.fixture
def ollama_test_model():
    """Return the chat model to use for live API tests."""
    return os.getenv("OLLAMA_TEST_MODEL", _OLLAMA_TEST_MODEL)


@pytest.fixture
def ollama_test_embed_model():
    """Return the embedding model to use for live API tests."""
    return os.getenv("OLLAMA_TEST_EMBED_MODEL", _OLLAMA_TEST_EMBED_MODEL)
