# -*- coding: utf-8 -*-
"""
Text sanitization shared by every ingestion component.
"""
import re

# C0 controls except tab, newline and carriage return, plus DEL
CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")

HTML_ENTITIES = {
    "&nbsp;": " ",
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#39;": "'",
}
ENTITY_PATTERN = re.compile("|".join(re.escape(entity) for entity in HTML_ENTITIES))


def decode_entities(text: str) -> str:
    """Decode the standard named entities until none is left.

    Looping to a fixed point makes double-escaped input (``&amp;lt;``)
    decode fully, which keeps ``sanitize`` idempotent.
    """
    while True:
        decoded = ENTITY_PATTERN.sub(lambda m: HTML_ENTITIES[m.group(0)], text)
        if decoded == text:
            return decoded
        text = decoded


def sanitize(raw: str | None, preserve_newlines: bool = False) -> str:
    """
    Clean untrusted text.

    Args:
        raw: Text to clean (None is accepted)
        preserve_newlines: Keep line structure (layout-sensitive text);
            otherwise every whitespace run collapses to one space

    Returns:
        Sanitized text, never None
    """
    if not raw:
        return ""
    if not isinstance(raw, str):
        raw = str(raw)

    text = CONTROL_CHARS.sub("", raw)
    text = decode_entities(text)

    if not preserve_newlines:
        return re.sub(r"\s+", " ", text).strip()

    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"[^\S\n]+", " ", text)
    text = "\n".join(line.strip() for line in text.split("\n"))
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()
