# -*- coding: utf-8 -*-
"""
Tests for post and translation acquisition.
"""
import asyncio
import logging
from unittest.mock import patch

import httpx
import pytest

from content_ingest.acquisition import ContentAcquisitionService, parse_post_url
from content_ingest.config import settings
from content_ingest.errors import AllProvidersExhausted, InvalidTarget
from content_ingest.providers import PostTarget

MIRRORS = ["https://nitter.net", "https://nitter.poast.org", "https://nitter.1d4.us"]
TRANSLATION_MIRRORS = [
    "https://lingva.ml",
    "https://lingva.lunar.icu",
    "https://translate.plausibility.cloud",
]


class TestParsePostUrl:
    """Tests for parse_post_url()."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://twitter.com/alice/status/12345",
            "https://x.com/alice/status/12345",
            "http://www.twitter.com/alice/status/12345",
            "https://mobile.twitter.com/alice/status/12345",
            "x.com/alice/status/12345",
            "https://x.com/alice/status/12345?s=20&t=abc",
            "https://x.com/alice/status/12345/photo/1",
            "https://twitter.com/alice/statuses/12345",
            "https://nitter.net/alice/status/12345#m",
            "https://fxtwitter.com/alice/status/12345",
            "  https://x.com/alice/status/12345  ",
        ],
    )
    def test_accepts_post_urls(self, url):
        """Primary domains and known mirrors are accepted."""
        assert parse_post_url(url) == PostTarget(handle="alice", post_id="12345")

    def test_accepts_configured_mirror(self):
        """Hosts of configured mirrors are recognized too."""
        with patch.object(settings, "POST_MIRRORS", ["https://mirror.example.org"]):
            target = parse_post_url("https://mirror.example.org/bob/status/7")
        assert target == PostTarget(handle="bob", post_id="7")

    @pytest.mark.parametrize(
        "url",
        [
            "",
            "https://example.com/alice/status/12345",
            "https://x.com/alice",
            "https://x.com/alice/status/",
            "https://x.com/alice/status/not-a-number",
            "ftp://x.com/alice/status/12345",
            "https://x.com.evil.example/alice/status/12345",
            "https://x.com/a-b/status/12345",
        ],
    )
    def test_rejects_invalid_urls(self, url):
        """Anything else is an invalid target."""
        with pytest.raises(InvalidTarget):
            parse_post_url(url)


def _status_router(mirror_html, syndication=None, mirror_status=200, delay=0.0):
    """Build a transport handler serving the syndication JSON and mirror pages."""

    async def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "cdn.syndication.twimg.com":
            if syndication is None:
                return httpx.Response(503)
            return httpx.Response(200, json=syndication)
        if delay:
            await asyncio.sleep(delay)
        if mirror_status != 200:
            return httpx.Response(mirror_status)
        return httpx.Response(200, text=mirror_html)

    return handler


@pytest.mark.asyncio
class TestFetchPost:
    """Tests for ContentAcquisitionService.fetch_post()."""

    async def test_invalid_url_raises(self):
        with pytest.raises(InvalidTarget):
            await ContentAcquisitionService(mirrors=MIRRORS).fetch_post("https://example.com/x")

    async def test_syndication_first(self, mock_http, mirror_html, syndication_payload):
        """The JSON endpoint wins when it answers; the thread comes from a mirror."""
        async with mock_http(_status_router(mirror_html, syndication_payload)) as client:
            service = ContentAcquisitionService(client=client, mirrors=MIRRORS)
            result = await service.fetch_post("https://x.com/alice/status/12345")

        assert result.success is True
        assert result.source == "syndication"
        assert result.errors == ()
        post = result.payload
        assert post.provider_used == "syndication"
        assert post.text == "Hello & welcome @bob #launch"
        assert [reply.post_id for reply in post.thread] == ["12346", "12347"]
        assert all(reply.provider_used == "nitter.net" for reply in post.thread)

    async def test_falls_back_to_mirror(self, mock_http, mirror_html):
        """A failing JSON endpoint is recorded and the first mirror is used."""
        async with mock_http(_status_router(mirror_html)) as client:
            service = ContentAcquisitionService(client=client, mirrors=MIRRORS)
            result = await service.fetch_post("https://twitter.com/alice/status/12345")

        assert result.source == "nitter.net"
        assert [e.provider for e in result.errors] == ["syndication"]
        assert result.errors[0].reason == "HTTP 503 Service Unavailable"
        assert result.payload.metrics.likes == 15321
        assert len(result.payload.thread) == 2

    async def test_all_providers_fail(self, mock_http, mirror_html):
        """Every provider failing yields one error per provider, in order."""
        async with mock_http(_status_router(mirror_html, mirror_status=500)) as client:
            service = ContentAcquisitionService(client=client, mirrors=MIRRORS)
            result = await service.fetch_post("https://x.com/alice/status/12345")

        assert result.success is False
        assert [e.provider for e in result.errors] == [
            "syndication",
            "nitter.net",
            "nitter.poast.org",
            "nitter.1d4.us",
        ]
        with pytest.raises(AllProvidersExhausted):
            result.unwrap()

    async def test_thread_failure_keeps_post(
            self, mock_http, mirror_html, syndication_payload, caplog
    ):
        """Mirrors down only costs the thread, not the post, and logs no error."""
        caplog.set_level(logging.INFO, logger="content_ingest")
        router = _status_router(mirror_html, syndication_payload, mirror_status=404)
        async with mock_http(router) as client:
            service = ContentAcquisitionService(client=client, mirrors=MIRRORS)
            result = await service.fetch_post("https://x.com/alice/status/12345")

        assert result.success is True
        assert result.payload.thread == ()
        assert not [r for r in caplog.records if r.levelno >= logging.ERROR]

    async def test_thread_timeout_keeps_post(self, mock_http, mirror_html, syndication_payload):
        """A thread exceeding its overall budget is dropped."""
        router = _status_router(mirror_html, syndication_payload, delay=1.0)
        async with mock_http(router) as client:
            service = ContentAcquisitionService(client=client, mirrors=MIRRORS)
            with patch.object(settings, "THREAD_TOTAL_TIMEOUT", 50):
                result = await service.fetch_post("https://x.com/alice/status/12345")

        assert result.success is True
        assert result.source == "syndication"
        assert result.payload.thread == ()

    async def test_thread_uses_limited_mirrors(self, mock_http, mirror_html, syndication_payload):
        """Only the first THREAD_MIRROR_LIMIT mirrors are asked for the thread."""
        hosts = []
        inner = _status_router(mirror_html, syndication_payload, mirror_status=500)

        async def handler(request: httpx.Request) -> httpx.Response:
            hosts.append(request.url.host)
            return await inner(request)

        async with mock_http(handler) as client:
            service = ContentAcquisitionService(client=client, mirrors=MIRRORS)
            await service.fetch_post("https://x.com/alice/status/12345")

        assert hosts == ["cdn.syndication.twimg.com", "nitter.net", "nitter.poast.org"]


class TestProviderChains:
    """Tests for the provider lists built by the service."""

    def test_post_chain_order(self):
        service = ContentAcquisitionService(mirrors=MIRRORS)
        names = [provider.name for provider in service.post_providers()]
        assert names == ["syndication", "nitter.net", "nitter.poast.org", "nitter.1d4.us"]

    def test_thread_chain_timeout(self):
        service = ContentAcquisitionService(mirrors=MIRRORS)
        providers = service.thread_providers()
        assert len(providers) == settings.THREAD_MIRROR_LIMIT
        assert all(p.timeout == settings.THREAD_TIMEOUT / 1000 for p in providers)

    def test_defaults_from_settings(self):
        service = ContentAcquisitionService()
        assert service.mirrors == settings.POST_MIRRORS
        assert service.translation_mirrors == settings.TRANSLATION_MIRRORS


@pytest.mark.asyncio
class TestFetchTranslation:
    """Tests for ContentAcquisitionService.fetch_translation()."""

    async def test_first_mirror_wins(self, mock_http):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.host)
            return httpx.Response(200, json={"translation": "你好"})

        async with mock_http(handler) as client:
            service = ContentAcquisitionService(
                client=client, translation_mirrors=TRANSLATION_MIRRORS
            )
            result = await service.fetch_translation("hello", "en", "zh")

        assert seen == ["lingva.ml"]
        assert result.source == "lingva.ml"
        assert result.payload.text == "你好"
        assert result.payload.source_lang == "en"
        assert result.payload.target_lang == "zh"
        assert result.payload.truncated is False

    async def test_all_mirrors_fail(self, mock_http):
        """Three failing mirrors give three errors and unwrap raises."""
        async with mock_http(lambda request: httpx.Response(503)) as client:
            service = ContentAcquisitionService(
                client=client, translation_mirrors=TRANSLATION_MIRRORS
            )
            result = await service.fetch_translation("hello")

        assert result.success is False
        assert len(result.errors) == 3
        assert [e.provider for e in result.errors] == [
            "lingva.ml",
            "lingva.lunar.icu",
            "translate.plausibility.cloud",
        ]
        with pytest.raises(AllProvidersExhausted) as exc_info:
            result.unwrap()
        assert len(exc_info.value.errors) == 3

    async def test_falls_back_after_bad_payload(self, mock_http):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "lingva.ml":
                return httpx.Response(200, json={"error": "rate limited"})
            return httpx.Response(200, json={"translation": "bonjour"})

        async with mock_http(handler) as client:
            service = ContentAcquisitionService(
                client=client, translation_mirrors=TRANSLATION_MIRRORS
            )
            result = await service.fetch_translation("hello", "en", "fr")

        assert result.source == "lingva.lunar.icu"
        assert result.errors[0].reason == "missing required field: translation"
        assert result.payload.text == "bonjour"

    async def test_long_text_truncated(self, mock_http):
        paths = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            return httpx.Response(200, json={"translation": "ok"})

        async with mock_http(handler) as client:
            service = ContentAcquisitionService(
                client=client, translation_mirrors=TRANSLATION_MIRRORS
            )
            with patch.object(settings, "TRANSLATION_MAX_LENGTH", 5):
                result = await service.fetch_translation("abcdefghij")

        assert result.payload.truncated is True
        assert paths == ["/api/v1/en/zh/abcde"]

    @pytest.mark.parametrize("text", ["", "   "])
    async def test_empty_text_rejected(self, text):
        with pytest.raises(InvalidTarget):
            await ContentAcquisitionService().fetch_translation(text)
