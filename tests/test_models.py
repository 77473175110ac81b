# -*- coding: utf-8 -*-
"""
Tests for the Pydantic models.
"""
import pytest
from pydantic import ValidationError

from content_ingest.entities import (
    Heading,
    NormalizedPost,
    Paragraph,
    ProviderError,
    StructuredDocument,
)
from content_ingest.models import (
    DocumentResponse,
    PostResponse,
    StructureRequest,
    TranslateRequest,
)


class TestModels:
    """Tests for the Pydantic models."""

    def test_translate_request_defaults(self):
        """TranslateRequest defaults to English to Chinese."""
        req = TranslateRequest(text="hello")
        assert req.source_lang == "en"
        assert req.target_lang == "zh"

    def test_translate_request_rejects_empty(self):
        with pytest.raises(ValidationError):
            TranslateRequest(text="")

    def test_structure_request_page_count(self):
        with pytest.raises(ValidationError):
            StructureRequest(text="x", page_count=-1)

    def test_post_response_from_post(self):
        """PostResponse carries the thread recursively."""
        reply = NormalizedPost(
            post_id="2",
            author="alice",
            author_handle="alice",
            text="#two",
            source_url="https://x.com/alice/status/2",
            provider_used="nitter.net",
        )
        post = NormalizedPost(
            post_id="1",
            author="Alice",
            author_handle="alice",
            text="one",
            source_url="https://x.com/alice/status/1",
            provider_used="nitter.net",
            thread=(reply,),
        )

        resp = PostResponse.from_post(post, (ProviderError("syndication", "HTTP 404 Not Found"),))

        assert resp.thread[0].post_id == "2"
        assert resp.thread[0].formatted_text == '<a href="https://x.com/hashtag/two">#two</a>'
        assert resp.thread[0].errors == []
        assert resp.errors[0].provider == "syndication"
        assert resp.metrics.likes == 0

    def test_document_response_from_document(self):
        document = StructuredDocument(
            title="Doc",
            body=(Heading(level=1, text="Doc"), Paragraph(text="Body.")),
            page_count=3,
        )

        resp = DocumentResponse.from_document(document)

        assert resp.title == "Doc"
        assert resp.page_count == 3
        assert [block.type for block in resp.blocks] == ["heading", "paragraph"]
        assert resp.blocks[0].level == 1
        assert resp.blocks[1].level is None
        assert resp.html == "<h1>Doc</h1>\n<p>Body.</p>"
