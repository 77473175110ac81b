# -*- coding: utf-8 -*-
"""
Heuristic structuring of flat extracted text into a hierarchical document.

Upstream text extraction (PDF/Word decoding) does not preserve layout, so
headings and paragraph breaks are inferred from line content:

1. Heading detection - short, unterminated lines carrying a section marker
2. Heading levelling - ordered rule table, first match wins
3. Paragraph accumulation - body lines are buffered and flushed on a
   heading, on a sentence-ending line, or past a length threshold
"""
import logging
import re
from dataclasses import dataclass

from .config import settings
from .entities import Block, Heading, Paragraph, StructuredDocument
from .sanitizer import sanitize

logger = logging.getLogger(__name__)

CJK_NUMERALS = "一二三四五六七八九十"

# A heading never ends like a sentence or clause
HEADING_TERMINATORS = ("。", "，", "；", ".", ",")
# A body line ending with one of these closes the current paragraph
PARAGRAPH_TERMINATORS = ("。", ".")

HEADING_MARKERS = [
    re.compile(rf"^[第{CJK_NUMERALS}\d]+[章节部分、.．]"),
    re.compile(r"^\d+[.\s]"),
    re.compile(rf"^[{CJK_NUMERALS}]+、"),
    re.compile(r"^(Abstract|Introduction|Conclusion|References|Figure|Table)\b", re.IGNORECASE),
]


@dataclass(frozen=True)
class LevelRule:
    name: str
    pattern: re.Pattern
    level: int


# Evaluated top to bottom; lines matching none default to DEFAULT_HEADING_LEVEL
LEVEL_RULES = [
    LevelRule("chapter", re.compile(rf"^第[{CJK_NUMERALS}\d]+[章部]"), 1),
    LevelRule("numbered_title", re.compile(r"^\d+\s+[A-Z]"), 1),
    LevelRule("section", re.compile(rf"^第[{CJK_NUMERALS}\d]+节"), 2),
    LevelRule("subsection", re.compile(r"^\d+\.\d+\s"), 2),
    LevelRule("cjk_enumeration", re.compile(rf"^[{CJK_NUMERALS}]+、"), 3),
    LevelRule("subsubsection", re.compile(r"^\d+\.\d+\.\d+"), 3),
    LevelRule("numbered_item", re.compile(r"^\d+[.\s]"), 3),
]
DEFAULT_HEADING_LEVEL = 2


def has_heading_marker(line: str) -> bool:
    return any(pattern.match(line) for pattern in HEADING_MARKERS)


def heading_level(line: str) -> int:
    """Level 1..3 of a heading line, by marker shape."""
    for rule in LEVEL_RULES:
        if rule.pattern.match(line):
            return rule.level
    return DEFAULT_HEADING_LEVEL


class DocumentStructurer:
    """
    Turn raw decoded text into a StructuredDocument.

    Thresholds default to the settings values and can be overridden per
    instance.
    """

    def __init__(
            self,
            heading_max_length: int | None = None,
            paragraph_max_length: int | None = None,
            title_max_length: int | None = None,
    ):
        self.heading_max_length = (
            heading_max_length if heading_max_length is not None else settings.HEADING_MAX_LENGTH
        )
        self.paragraph_max_length = (
            paragraph_max_length
            if paragraph_max_length is not None
            else settings.PARAGRAPH_MAX_LENGTH
        )
        self.title_max_length = (
            title_max_length if title_max_length is not None else settings.TITLE_MAX_LENGTH
        )

    def is_heading(self, line: str) -> bool:
        """All conditions must hold: short, unterminated, and marked."""
        return (
            len(line) < self.heading_max_length
            and not line.endswith(HEADING_TERMINATORS)
            and has_heading_marker(line)
        )

    def classify(self, line: str) -> Block:
        """Classify one trimmed, non-empty line."""
        if self.is_heading(line):
            return Heading(level=heading_level(line), text=line)
        return Paragraph(text=line)

    def structure(self, raw_text: str | None, page_count: int | None = None) -> StructuredDocument:
        """
        Build the document.

        Args:
            raw_text: Decoded text, one logical line per newline
            page_count: Optional page count reported by the decoder

        Returns:
            StructuredDocument (never raises)
        """
        text = sanitize(raw_text, preserve_newlines=True)
        lines = [line.strip() for line in text.split("\n") if line.strip()]

        body: list[Block] = []
        buffer: list[str] = []
        title = ""

        def flush():
            if buffer:
                body.append(Paragraph(text=sanitize(" ".join(buffer))))
                buffer.clear()

        for line in lines:
            block = self.classify(line)

            if isinstance(block, Heading):
                flush()
                body.append(Heading(level=block.level, text=sanitize(block.text)))
                if not title and block.level == 1:
                    title = block.text
                continue

            buffer.append(line)
            if (
                    len(" ".join(buffer)) > self.paragraph_max_length
                    or line.endswith(PARAGRAPH_TERMINATORS)
            ):
                flush()

        flush()

        if not title and lines:
            title = lines[0][: self.title_max_length]

        logger.debug(
            "Document structured",
            extra={
                "lines": len(lines),
                "blocks": len(body),
                "headings": sum(isinstance(b, Heading) for b in body),
            },
        )
        return StructuredDocument(title=sanitize(title), body=tuple(body), page_count=page_count)


# Global structurer instance
document_structurer = DocumentStructurer()
