# -*- coding: utf-8 -*-
"""
Content acquisition: social-media posts (with their thread) and translations.

Both operations run an ordered provider chain through fetch_with_fallback.
Thread reconstruction is best-effort: it runs after the post is acquired,
against a few mirrors only, and never fails the overall operation.
"""
import asyncio
import dataclasses
import logging
import re
from urllib.parse import urlparse

import httpx

from .config import settings
from .entities import AcquisitionResult, NormalizedPost, TranslationResult
from .errors import InvalidTarget
from .fallback import Provider, fetch_with_fallback
from .providers import (
    MirrorPostProvider,
    MirrorThreadProvider,
    PostTarget,
    SyndicationProvider,
    TranslationMirrorProvider,
    TranslationTarget,
)

logger = logging.getLogger(__name__)

# Primary domains plus well-known mirror/embed-fixer front-ends
KNOWN_POST_DOMAINS = [
    "twitter.com",
    "x.com",
    "nitter.net",
    "fxtwitter.com",
    "vxtwitter.com",
    "fixupx.com",
]

POST_PATH_PATTERN = re.compile(r"^/(\w{1,50})/status(?:es)?/(\d+)(?:[/?#].*)?$", re.IGNORECASE)


def _post_domains() -> set[str]:
    domains = set(KNOWN_POST_DOMAINS)
    for mirror in settings.POST_MIRRORS:
        host = urlparse(mirror).hostname
        if host:
            domains.add(host.lower())
    return domains


def parse_post_url(url: str) -> PostTarget:
    """
    Extract (handle, post_id) from a post URL.

    Accepts the primary domains and known mirrors, with an optional
    ``www.`` or ``mobile.`` subdomain and an optional scheme.

    Raises:
        InvalidTarget: The URL is not a recognized post URL
    """
    if not url or not isinstance(url, str):
        raise InvalidTarget("A post URL is required")

    candidate = url.strip()
    if "://" not in candidate:
        candidate = f"https://{candidate}"
    try:
        parsed = urlparse(candidate)
        host = (parsed.hostname or "").lower()
    except ValueError:
        raise InvalidTarget(f"Malformed URL: {url[:100]}")

    if parsed.scheme not in ("http", "https"):
        raise InvalidTarget(f"Unsupported URL scheme: {parsed.scheme}")

    for prefix in ("www.", "mobile."):
        if host.startswith(prefix):
            host = host[len(prefix):]
            break

    if host not in _post_domains():
        raise InvalidTarget(f"Unsupported post domain: {host or url[:100]}")

    match = POST_PATH_PATTERN.match(parsed.path)
    if not match:
        raise InvalidTarget(f"URL does not point to a post: {url[:100]}")

    return PostTarget(handle=match.group(1), post_id=match.group(2))


class ContentAcquisitionService:
    """Acquire posts and translations from untrusted external providers."""

    def __init__(
            self,
            client: httpx.AsyncClient | None = None,
            mirrors: list[str] | None = None,
            translation_mirrors: list[str] | None = None,
    ):
        self._client = client
        self.mirrors = list(mirrors if mirrors is not None else settings.POST_MIRRORS)
        self.translation_mirrors = list(
            translation_mirrors
            if translation_mirrors is not None
            else settings.TRANSLATION_MIRRORS
        )

    def post_providers(self) -> list[Provider]:
        """JSON endpoint first, then every HTML mirror."""
        timeout = settings.PROVIDER_TIMEOUT / 1000
        providers: list[Provider] = [SyndicationProvider(self._client, timeout=timeout)]
        providers.extend(
            MirrorPostProvider(mirror, self._client, timeout=timeout)
            for mirror in self.mirrors
        )
        return providers

    def thread_providers(self) -> list[Provider]:
        """A bounded subset of mirrors, with the shorter thread timeout."""
        timeout = settings.THREAD_TIMEOUT / 1000
        return [
            MirrorThreadProvider(mirror, self._client, timeout=timeout)
            for mirror in self.mirrors[: settings.THREAD_MIRROR_LIMIT]
        ]

    def translation_providers(self) -> list[Provider]:
        timeout = settings.PROVIDER_TIMEOUT / 1000
        return [
            TranslationMirrorProvider(mirror, self._client, timeout=timeout)
            for mirror in self.translation_mirrors
        ]

    async def fetch_post(self, url: str) -> AcquisitionResult[NormalizedPost]:
        """
        Fetch a post and, best-effort, the author's reply thread.

        Args:
            url: Post URL on a recognized domain

        Returns:
            AcquisitionResult whose payload is the NormalizedPost

        Raises:
            InvalidTarget: The URL is not a recognized post URL
        """
        target = parse_post_url(url)
        logger.info(
            "Fetching post",
            extra={"handle": target.handle, "post_id": target.post_id},
        )

        result = await fetch_with_fallback(self.post_providers(), target)
        if not result.success:
            return result

        thread = await self.fetch_thread(target)
        if not thread:
            return result
        post = dataclasses.replace(result.payload, thread=thread)
        return dataclasses.replace(result, payload=post)

    async def fetch_thread(self, target: PostTarget) -> tuple[NormalizedPost, ...]:
        """Return the author's reply chain, or an empty tuple on any failure."""
        providers = self.thread_providers()
        if not providers:
            return ()
        try:
            result = await asyncio.wait_for(
                fetch_with_fallback(providers, target, best_effort=True),
                timeout=settings.THREAD_TOTAL_TIMEOUT / 1000,
            )
        except asyncio.TimeoutError:
            logger.warning("Thread reconstruction timed out", extra={"post_id": target.post_id})
            return ()

        if not result.success:
            logger.info(
                "Thread unavailable, returning post alone",
                extra={"post_id": target.post_id, "errors": len(result.errors)},
            )
            return ()

        logger.debug(
            f"Thread has {len(result.payload)} replies",
            extra={"post_id": target.post_id, "provider": result.source},
        )
        return result.payload

    async def fetch_translation(
            self,
            text: str,
            source_lang: str = "en",
            target_lang: str = "zh",
    ) -> AcquisitionResult[TranslationResult]:
        """
        Translate text through the configured translation mirrors.

        Text longer than TRANSLATION_MAX_LENGTH is truncated first.

        Raises:
            InvalidTarget: Empty text or language codes
        """
        if not text or not text.strip():
            raise InvalidTarget("Text to translate is required")
        if not source_lang or not target_lang:
            raise InvalidTarget("Source and target languages are required")

        max_length = settings.TRANSLATION_MAX_LENGTH
        truncated = len(text) > max_length
        if truncated:
            text = text[:max_length]

        target = TranslationTarget(text=text, source_lang=source_lang, target_lang=target_lang)
        logger.info(
            "Translating text",
            extra={"length": len(text), "source_lang": source_lang, "target_lang": target_lang},
        )
        result = await fetch_with_fallback(self.translation_providers(), target)
        if not result.success:
            return result

        translation = TranslationResult(
            text=result.payload,
            source_lang=source_lang,
            target_lang=target_lang,
            truncated=truncated,
        )
        return dataclasses.replace(result, payload=translation)


# Global service instance
acquisition_service = ContentAcquisitionService()
