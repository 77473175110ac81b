# -*- coding: utf-8 -*-
"""
Pydantic data models for the API.
"""
from typing import Literal

from pydantic import BaseModel, Field

from .entities import (
    Heading,
    NormalizedPost,
    ProviderError,
    StructuredDocument,
)


class ProviderErrorResponse(BaseModel):
    """One failed provider attempt."""

    provider: str
    reason: str


class ErrorResponse(BaseModel):
    """Error payload for rejected or exhausted requests."""

    error: str
    errors: list[ProviderErrorResponse] = []


class MetricsResponse(BaseModel):
    likes: int = 0
    reshares: int = 0
    replies: int = 0


class PostResponse(BaseModel):
    """A normalized post and its reply thread."""

    post_id: str
    author: str
    author_handle: str
    text: str
    formatted_text: str
    timestamp_raw: str | None = None
    source_url: str
    provider_used: str
    media: list[str] = []
    metrics: MetricsResponse = MetricsResponse()
    thread: list["PostResponse"] = []
    errors: list[ProviderErrorResponse] = Field(
        default=[], description="Providers that failed before this one succeeded"
    )

    @classmethod
    def from_post(
            cls, post: NormalizedPost, errors: tuple[ProviderError, ...] = ()
    ) -> "PostResponse":
        return cls(
            post_id=post.post_id,
            author=post.author,
            author_handle=post.author_handle,
            text=post.text,
            formatted_text=post.formatted_text,
            timestamp_raw=post.timestamp_raw,
            source_url=post.source_url,
            provider_used=post.provider_used,
            media=list(post.media),
            metrics=MetricsResponse(
                likes=post.metrics.likes,
                reshares=post.metrics.reshares,
                replies=post.metrics.replies,
            ),
            thread=[cls.from_post(reply) for reply in post.thread],
            errors=[ProviderErrorResponse(provider=p, reason=r) for p, r in errors],
        )


class TranslateRequest(BaseModel):
    """Translation request schema."""

    text: str = Field(..., min_length=1, max_length=10000, description="Text to translate")
    source_lang: str = Field(default="en", min_length=2, max_length=10)
    target_lang: str = Field(default="zh", min_length=2, max_length=10)


class TranslateResponse(BaseModel):
    translated_text: str
    source: str
    source_lang: str
    target_lang: str
    truncated: bool = False
    errors: list[ProviderErrorResponse] = []


class StructureRequest(BaseModel):
    """Raw decoded text to structure."""

    text: str = Field(..., description="Decoded document text")
    page_count: int | None = Field(default=None, ge=0)


class BlockResponse(BaseModel):
    type: Literal["heading", "paragraph"]
    text: str
    level: int | None = None


class DocumentResponse(BaseModel):
    """Structured document schema."""

    title: str
    blocks: list[BlockResponse] = []
    html: str = ""
    page_count: int | None = None

    @classmethod
    def from_document(cls, document: StructuredDocument) -> "DocumentResponse":
        blocks = [
            BlockResponse(type="heading", text=block.text, level=block.level)
            if isinstance(block, Heading)
            else BlockResponse(type="paragraph", text=block.text)
            for block in document.body
        ]
        return cls(
            title=document.title,
            blocks=blocks,
            html=document.to_html(),
            page_count=document.page_count,
        )


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    version: str
