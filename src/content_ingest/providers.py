# -*- coding: utf-8 -*-
"""
Concrete providers for post and translation acquisition.

- SyndicationProvider: structured JSON embed endpoint (no scraping needed)
- MirrorPostProvider: HTML mirror front-end, scraped through FieldExtractor
- MirrorThreadProvider: same mirror page, scraped for the author's reply chain
- TranslationMirrorProvider: translation mirror returning a JSON payload
"""
import logging
import re
from typing import Any, NamedTuple
from urllib.parse import quote, urlparse

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .config import settings
from .entities import NormalizedPost, PostMetrics
from .errors import ExtractionIncomplete, ProviderFailure
from .extractor import FieldExtractor, FieldSpec, normalize_media_url, parse_count
from .fallback import Provider
from .sanitizer import decode_entities, sanitize

logger = logging.getLogger(__name__)

CANONICAL_POST_URL = "https://x.com/{handle}/status/{post_id}"


class PostTarget(NamedTuple):
    handle: str
    post_id: str


class TranslationTarget(NamedTuple):
    text: str
    source_lang: str
    target_lang: str


# Mirror markup (Nitter-style front-ends), one FieldSpec per field
POST_FIELDS = {
    "text": FieldSpec(r'<div class="tweet-content[^"]*"[^>]*>(.*?)</div>', multiline=True),
    "author": FieldSpec(r'<a class="fullname"[^>]*>(.*?)</a>'),
    "handle": FieldSpec(
        r'<a class="username"[^>]*>(.*?)</a>',
        postprocess=lambda value: value.lstrip("@"),
    ),
    "timestamp": FieldSpec(r'<span class="tweet-date"[^>]*>\s*<a[^>]*title="([^"]+)"'),
    "replies": FieldSpec(r'<span class="icon-comment"[^>]*>\s*</span>([^<]*)', kind="count"),
    "reshares": FieldSpec(r'<span class="icon-retweet"[^>]*>\s*</span>([^<]*)', kind="count"),
    "likes": FieldSpec(r'<span class="icon-heart"[^>]*>\s*</span>([^<]*)', kind="count"),
    "media": FieldSpec(
        r'(?:<a class="still-image"[^>]*href|<source[^>]*src|<video[^>]*data-url)="([^"]+)"',
        kind="urls",
    ),
}

THREAD_ITEM_FIELDS = {
    **POST_FIELDS,
    "post_id": FieldSpec(r'<a class="tweet-link"[^>]*href="/[^/"]+/status/(\d+)'),
}

post_extractor = FieldExtractor(POST_FIELDS)
thread_item_extractor = FieldExtractor(THREAD_ITEM_FIELDS)

MAIN_POST_MARKER = re.compile(r'<div[^>]*class="main-tweet[^"]*"', re.IGNORECASE)
AFTER_MAIN_MARKER = re.compile(
    r'<div[^>]*class="(?:after-tweet|replies)[^"]*"', re.IGNORECASE
)
THREAD_ITEM_MARKER = re.compile(r'<div[^>]*class="timeline-item[^"]*"', re.IGNORECASE)
ERROR_PANEL_MARKER = re.compile(r'class="error-panel"', re.IGNORECASE)


def split_status_page(markup: str) -> tuple[str, str]:
    """Split a mirror status page into (main post markup, rest of the page)."""
    start_match = MAIN_POST_MARKER.search(markup)
    start = start_match.start() if start_match else 0
    end_match = AFTER_MAIN_MARKER.search(markup, start)
    end = end_match.start() if end_match else len(markup)
    return markup[start:end], markup[end:]


def build_post(
        fields: dict[str, Any],
        post_id: str,
        handle: str,
        provider: str,
) -> NormalizedPost:
    """Assemble a NormalizedPost from extracted fields.

    ``text`` is required; ``author`` degrades to the handle.
    """
    text = fields.get("text")
    if not text:
        raise ExtractionIncomplete("text")
    handle = fields.get("handle") or handle
    return NormalizedPost(
        post_id=post_id,
        author=fields.get("author") or handle,
        author_handle=handle,
        text=text,
        source_url=CANONICAL_POST_URL.format(handle=handle, post_id=post_id),
        provider_used=provider,
        timestamp_raw=fields.get("timestamp"),
        media=tuple(fields.get("media") or ()),
        metrics=PostMetrics(
            likes=fields.get("likes", 0),
            reshares=fields.get("reshares", 0),
            replies=fields.get("replies", 0),
        ),
    )


class HttpProvider(Provider):
    """Provider backed by an HTTP GET.

    Uses the shared client when one is given, otherwise opens a client per
    call. Transport errors are retried up to PROVIDER_RETRY_ATTEMPTS times.
    """

    def __init__(
            self,
            name: str,
            client: httpx.AsyncClient | None = None,
            timeout: float | None = None,
    ):
        self.name = name
        self.timeout = timeout
        self._client = client

    async def _get(self, url: str, **kwargs) -> httpx.Response:
        headers = {"User-Agent": settings.USER_AGENT, **kwargs.pop("headers", {})}

        @retry(
            retry=retry_if_exception_type(httpx.TransportError),
            stop=stop_after_attempt(max(settings.PROVIDER_RETRY_ATTEMPTS, 1)),
            wait=wait_exponential(
                min=settings.RETRY_MIN_WAIT, max=settings.RETRY_MAX_WAIT
            ),
            reraise=True,
        )
        async def _inner() -> httpx.Response:
            if self._client is not None:
                response = await self._client.get(url, headers=headers, **kwargs)
            else:
                async with httpx.AsyncClient(
                        timeout=self.timeout or settings.PROVIDER_TIMEOUT / 1000,
                        follow_redirects=True,
                ) as client:
                    response = await client.get(url, headers=headers, **kwargs)
            response.raise_for_status()
            return response

        logger.debug(f"GET {url[:80]}", extra={"provider": self.name})
        return await _inner()

    async def _get_json(self, url: str, **kwargs) -> dict:
        response = await self._get(url, headers={"Accept": "application/json"}, **kwargs)
        try:
            data = response.json()
        except ValueError:
            raise ProviderFailure("Response is not valid JSON")
        if not isinstance(data, dict):
            raise ProviderFailure(f"Unexpected JSON payload: {type(data).__name__}")
        return data


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    return parse_count(str(value)) if value is not None else 0


class SyndicationProvider(HttpProvider):
    """Structured JSON embed endpoint."""

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float | None = None):
        super().__init__("syndication", client=client, timeout=timeout)

    async def fetch(self, target: PostTarget) -> NormalizedPost:
        data = await self._get_json(
            settings.SYNDICATION_URL, params={"id": target.post_id, "token": "0"}
        )
        return self.parse(data, target)

    def parse(self, data: dict, target: PostTarget) -> NormalizedPost:
        text = data.get("full_text") or data.get("text")
        if not isinstance(text, str) or not text.strip():
            raise ExtractionIncomplete("text")

        # Range offsets count characters of the unescaped text
        text = decode_entities(text)
        # Drop the trailing media/quote link the endpoint appends to the text
        display_range = data.get("display_text_range")
        if (
                isinstance(display_range, list)
                and len(display_range) == 2
                and all(isinstance(i, int) for i in display_range)
        ):
            text = text[display_range[0]:display_range[1]] or text

        user = data.get("user") if isinstance(data.get("user"), dict) else {}
        handle = sanitize(user.get("screen_name")) or target.handle

        media: list[str] = []
        for item in data.get("mediaDetails") or []:
            if isinstance(item, dict) and item.get("media_url_https"):
                media.append(normalize_media_url(item["media_url_https"]))
        for photo in data.get("photos") or []:
            if isinstance(photo, dict) and photo.get("url"):
                url = normalize_media_url(photo["url"])
                if url not in media:
                    media.append(url)

        return NormalizedPost(
            post_id=str(data.get("id_str") or target.post_id),
            author=sanitize(user.get("name")) or handle,
            author_handle=handle,
            text=sanitize(text, preserve_newlines=True),
            source_url=CANONICAL_POST_URL.format(handle=handle, post_id=target.post_id),
            provider_used=self.name,
            timestamp_raw=sanitize(data.get("created_at")) or None,
            media=tuple(media),
            metrics=PostMetrics(
                likes=_as_int(data.get("favorite_count")),
                reshares=_as_int(data.get("retweet_count")),
                replies=_as_int(data.get("reply_count", data.get("conversation_count"))),
            ),
        )


class MirrorProvider(HttpProvider):
    """Base for HTML mirror front-ends; named after the mirror host."""

    def __init__(
            self,
            base_url: str,
            client: httpx.AsyncClient | None = None,
            timeout: float | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        super().__init__(urlparse(self.base_url).netloc or self.base_url, client, timeout)

    async def _fetch_status_page(self, target: PostTarget) -> str:
        url = f"{self.base_url}/{target.handle}/status/{target.post_id}"
        response = await self._get(url)
        markup = response.text
        if ERROR_PANEL_MARKER.search(markup):
            raise ProviderFailure("Mirror returned an error page")
        return markup


class MirrorPostProvider(MirrorProvider):
    """Scrape the main post from a mirror status page."""

    async def fetch(self, target: PostTarget) -> NormalizedPost:
        markup = await self._fetch_status_page(target)
        main_markup, _ = split_status_page(markup)
        fields = post_extractor.extract(main_markup, base_url=self.base_url)
        return build_post(fields, target.post_id, target.handle, self.name)


class MirrorThreadProvider(MirrorProvider):
    """Scrape the author's own replies following the main post."""

    async def fetch(self, target: PostTarget) -> tuple[NormalizedPost, ...]:
        markup = await self._fetch_status_page(target)
        if not MAIN_POST_MARKER.search(markup):
            raise ProviderFailure("Not a status page")
        _, rest = split_status_page(markup)
        return self.parse_thread(rest, target)

    def parse_thread(self, markup: str, target: PostTarget) -> tuple[NormalizedPost, ...]:
        """Replies in markup order, same author only, first occurrence wins."""
        starts = [match.start() for match in THREAD_ITEM_MARKER.finditer(markup)]
        thread: list[NormalizedPost] = []
        seen = {target.post_id}
        for index, start in enumerate(starts):
            end = starts[index + 1] if index + 1 < len(starts) else len(markup)
            fields = thread_item_extractor.extract(markup[start:end], base_url=self.base_url)

            post_id = fields.get("post_id")
            handle = fields.get("handle")
            if not post_id or post_id in seen:
                continue
            if not handle or handle.lower() != target.handle.lower():
                continue
            try:
                post = build_post(fields, post_id, handle, self.name)
            except ExtractionIncomplete:
                logger.debug(f"Skipping thread item {post_id} without text")
                continue
            seen.add(post_id)
            thread.append(post)
        return tuple(thread)


class TranslationMirrorProvider(HttpProvider):
    """Translation mirror exposing ``/api/v1/<src>/<dst>/<text>``."""

    def __init__(
            self,
            base_url: str,
            client: httpx.AsyncClient | None = None,
            timeout: float | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        super().__init__(urlparse(self.base_url).netloc or self.base_url, client, timeout)

    def build_url(self, target: TranslationTarget) -> str:
        return (
            f"{self.base_url}/api/v1/{quote(target.source_lang, safe='')}"
            f"/{quote(target.target_lang, safe='')}/{quote(target.text, safe='')}"
        )

    async def fetch(self, target: TranslationTarget) -> str:
        data = await self._get_json(self.build_url(target))
        translation = data.get("translation")
        if not isinstance(translation, str) or not translation.strip():
            raise ExtractionIncomplete("translation")
        return sanitize(translation, preserve_newlines=True)
