# -*- coding: utf-8 -*-
"""
Uploaded document decoding with PyMuPDF (PDF) and python-docx (Word).

Decoded PDF text has no reliable structure and goes through the
DocumentStructurer; Word files carry paragraph styles, which map to
heading levels directly.
"""
import logging
from io import BytesIO
from pathlib import PurePath

import pymupdf
from docx import Document

from .config import settings
from .entities import Block, Heading, Paragraph, StructuredDocument
from .errors import InvalidTarget
from .sanitizer import sanitize
from .structurer import document_structurer

logger = logging.getLogger(__name__)

PDF_FALLBACK_TITLE = "PDF Document"
WORD_FALLBACK_TITLE = "Word Document"

WORD_STYLE_LEVELS = {
    "title": 1,
    "heading 1": 1,
    "subtitle": 2,
    "heading 2": 2,
    "heading 3": 3,
    "heading 4": 3,
    "heading 5": 3,
    "heading 6": 3,
}

SUPPORTED_EXTENSIONS = (".pdf", ".docx")


def extract_pdf_text(data: bytes) -> tuple[str, int]:
    """
    Decode the text layer of a PDF.

    Returns:
        Tuple (text, page_count)
    """
    doc = pymupdf.open(stream=BytesIO(data), filetype="pdf")
    try:
        pages = [doc[page_num].get_text("text") for page_num in range(len(doc))]
        return "\n".join(pages), len(doc)
    finally:
        doc.close()


def parse_pdf(data: bytes) -> StructuredDocument:
    """Structure the text of a PDF file."""
    text, page_count = extract_pdf_text(data)
    document = document_structurer.structure(text, page_count=page_count)
    if not document.title:
        document = StructuredDocument(
            title=PDF_FALLBACK_TITLE, body=document.body, page_count=page_count
        )
    logger.info(
        f"PDF structured: {page_count} pages, {len(document.body)} blocks",
        extra={"title": document.title[:60]},
    )
    return document


def parse_docx(data: bytes) -> StructuredDocument:
    """Structure a Word file from its paragraph styles."""
    word = Document(BytesIO(data))
    body: list[Block] = []
    title = ""

    for paragraph in word.paragraphs:
        text = sanitize(paragraph.text)
        if not text:
            continue
        style_name = (paragraph.style.name if paragraph.style is not None else "") or ""
        level = WORD_STYLE_LEVELS.get(style_name.strip().lower())
        if level:
            body.append(Heading(level=level, text=text))
            if not title and level == 1:
                title = text
        else:
            body.append(Paragraph(text=text))

    logger.info(f"Word document structured: {len(body)} blocks")
    return StructuredDocument(title=title or WORD_FALLBACK_TITLE, body=tuple(body))


def parse_document(filename: str, data: bytes) -> StructuredDocument:
    """
    Decode and structure an uploaded file, dispatching on its extension.

    Raises:
        InvalidTarget: Unsupported type, too large, or undecodable
    """
    extension = PurePath(filename or "").suffix.lower()
    if extension not in SUPPORTED_EXTENSIONS:
        raise InvalidTarget(
            f"Unsupported file type '{extension or filename}'. Upload a PDF or Word (.docx) document."
        )

    max_size = settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024
    if len(data) > max_size:
        raise InvalidTarget(
            f"File too large: {len(data) / 1024 / 1024:.1f}MB (max: {settings.MAX_UPLOAD_SIZE_MB}MB)"
        )
    if not data:
        raise InvalidTarget("Uploaded file is empty")

    try:
        if extension == ".pdf":
            return parse_pdf(data)
        return parse_docx(data)
    except Exception as e:
        logger.error(f"Document decoding failed for {filename[:60]}: {e}")
        raise InvalidTarget(f"Could not decode {extension} file: {e}") from e
