# -*- coding: utf-8 -*-
"""
Immutable value objects produced by the ingestion core.
"""
import html
import re
from dataclasses import dataclass, field
from typing import Generic, NamedTuple, TypeVar

from .errors import AllProvidersExhausted

T = TypeVar("T")

# Order matters: URLs first so that "#" or "@" inside a URL is not linked twice
LINKABLE_SPANS = re.compile(
    r"(?P<url>https?://[^\s<>\"']+)"
    r"|(?<![\w@/])@(?P<mention>\w{1,15})"
    r"|(?<![\w#&/])#(?P<hashtag>\w+)"
)
PROFILE_BASE_URL = "https://x.com"
TAG_PATTERN = re.compile(r"<[^>]+>")


class ProviderError(NamedTuple):
    """One failed provider attempt."""

    provider: str
    reason: str


@dataclass(frozen=True)
class AcquisitionResult(Generic[T]):
    """Outcome of a fallback chain.

    ``errors`` lists every failed attempt in trial order, also on success.
    """

    success: bool
    source: str | None = None
    payload: T | None = None
    errors: tuple[ProviderError, ...] = ()

    def __post_init__(self):
        if self.success != (self.payload is not None):
            raise ValueError("success must be True exactly when payload is set")

    def unwrap(self) -> T:
        """Return the payload or raise AllProvidersExhausted."""
        if not self.success:
            raise AllProvidersExhausted(self.errors)
        return self.payload


@dataclass(frozen=True)
class PostMetrics:
    """Engagement counters; 0 when the provider does not expose them."""

    likes: int = 0
    reshares: int = 0
    replies: int = 0


@dataclass(frozen=True)
class NormalizedPost:
    """A social-media post in the application's content model."""

    post_id: str
    author: str
    author_handle: str
    text: str
    source_url: str
    provider_used: str
    timestamp_raw: str | None = None
    media: tuple[str, ...] = ()
    metrics: PostMetrics = field(default_factory=PostMetrics)
    thread: tuple["NormalizedPost", ...] = ()

    @property
    def formatted_text(self) -> str:
        """``text`` as HTML with mentions, hashtags and URLs turned into links."""
        return format_post_text(self.text)


@dataclass(frozen=True)
class TranslationResult:
    """A translated string."""

    text: str
    source_lang: str
    target_lang: str
    truncated: bool = False


def format_post_text(text: str) -> str:
    """Escape ``text`` for HTML and wrap linkable spans in anchors."""
    parts: list[str] = []
    position = 0
    for match in LINKABLE_SPANS.finditer(text):
        parts.append(html.escape(text[position:match.start()], quote=False))
        span = match.group(0)
        if match.group("url"):
            href = span
        elif match.group("mention"):
            href = f"{PROFILE_BASE_URL}/{match.group('mention')}"
        else:
            href = f"{PROFILE_BASE_URL}/hashtag/{match.group('hashtag')}"
        parts.append(
            f'<a href="{html.escape(href, quote=True)}">{html.escape(span, quote=False)}</a>'
        )
        position = match.end()
    parts.append(html.escape(text[position:], quote=False))
    return "".join(parts)


def strip_formatting(formatted: str) -> str:
    """Inverse of format_post_text: drop inserted tags and unescape."""
    return html.unescape(TAG_PATTERN.sub("", formatted))


@dataclass(frozen=True)
class Heading:
    level: int
    text: str

    def __post_init__(self):
        if not 1 <= self.level <= 3:
            raise ValueError(f"heading level must be 1..3, got {self.level}")


@dataclass(frozen=True)
class Paragraph:
    text: str


Block = Heading | Paragraph


@dataclass(frozen=True)
class StructuredDocument:
    """Hierarchical document built from flat extracted text."""

    title: str
    body: tuple[Block, ...] = ()
    page_count: int | None = None

    @property
    def headings(self) -> list[Heading]:
        return [block for block in self.body if isinstance(block, Heading)]

    @property
    def paragraphs(self) -> list[Paragraph]:
        return [block for block in self.body if isinstance(block, Paragraph)]

    def to_html(self) -> str:
        """Render the body as the canonical HTML content."""
        lines = []
        for block in self.body:
            text = html.escape(block.text, quote=False)
            if isinstance(block, Heading):
                lines.append(f"<h{block.level}>{text}</h{block.level}>")
            else:
                lines.append(f"<p>{text}</p>")
        return "\n".join(lines)
