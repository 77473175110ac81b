# -*- coding: utf-8 -*-
"""
Pytest configuration and fixtures.
"""
import asyncio
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest
from fastapi.testclient import TestClient

from content_ingest.api import app
from content_ingest.fallback import Provider

SAMPLES_DIR = Path(__file__).parent / "samples"


class FakeProvider(Provider):
    """Provider returning a canned payload or raising a canned error."""

    def __init__(self, name: str, payload: Any = None, error: Exception | None = None,
                 delay: float = 0.0, timeout: float | None = None):
        self.name = name
        self.payload = payload
        self.error = error
        self.delay = delay
        self.timeout = timeout
        self.calls = 0

    async def fetch(self, target):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.payload


@pytest.fixture
def client():
    """FastAPI test client (lifespan not started)."""
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def mirror_html() -> str:
    """A mirror status page with a main post, a self-thread and replies."""
    return (SAMPLES_DIR / "mirror_status.html").read_text(encoding="utf-8")


@pytest.fixture
def syndication_payload() -> dict:
    """JSON payload as returned by the syndication endpoint."""
    return {
        "id_str": "12345",
        "text": "Hello &amp; welcome @bob #launch https://t.co/abc",
        "display_text_range": [0, 28],
        "created_at": "2024-03-03T10:15:00.000Z",
        "favorite_count": 42,
        "retweet_count": 7,
        "conversation_count": 3,
        "user": {"name": "Alice Liddell", "screen_name": "alice"},
        "mediaDetails": [
            {"media_url_https": "https://pbs.twimg.com/media/one.jpg"},
        ],
        "photos": [
            {"url": "https://pbs.twimg.com/media/one.jpg"},
            {"url": "//pbs.twimg.com/media/two.jpg"},
        ],
    }


@pytest.fixture
def mock_http() -> Callable[[Callable], httpx.AsyncClient]:
    """Build an AsyncClient whose requests are answered by ``handler``."""

    def _factory(handler: Callable) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _factory


@pytest.fixture
def fake_provider():
    """The FakeProvider class."""
    return FakeProvider
