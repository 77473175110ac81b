# -*- coding: utf-8 -*-
"""
Named-field extraction from semi-structured markup.

Each provider declares a table of FieldSpec entries (pattern + kind);
FieldExtractor locates every field independently so that a missing or
broken field never prevents the others from being extracted.
"""
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Literal
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from .sanitizer import sanitize

logger = logging.getLogger(__name__)

FieldKind = Literal["text", "count", "urls"]

BR_PATTERN = re.compile(r"<br\s*/?>", re.IGNORECASE)
THOUSANDS_SEPARATORS = re.compile(r"[,.'\s]")


@dataclass(frozen=True)
class FieldSpec:
    """How to locate and clean one named field.

    The first capture group of ``pattern`` is the raw fragment.
    """

    pattern: str | re.Pattern
    kind: FieldKind = "text"
    multiline: bool = False
    postprocess: Callable[[str], str] | None = None

    def compiled(self) -> re.Pattern:
        if isinstance(self.pattern, re.Pattern):
            return self.pattern
        return re.compile(self.pattern, re.IGNORECASE | re.DOTALL)


def strip_tags(fragment: str) -> str:
    """Remove markup tags, keeping the text of links and other elements."""
    if "<" not in fragment:
        return fragment
    fragment = BR_PATTERN.sub("\n", fragment)
    soup = BeautifulSoup(fragment, "lxml")
    return soup.get_text()


def parse_count(raw: str | None) -> int:
    """Parse a displayed counter such as ``1,234``; 0 when unparseable."""
    if not raw:
        return 0
    digits = THOUSANDS_SEPARATORS.sub("", strip_tags(raw))
    try:
        return int(digits)
    except ValueError:
        return 0


def normalize_media_url(url: str, base_url: str | None = None) -> str:
    """Make a media URL absolute (``//host/x`` becomes ``https://host/x``)."""
    url = sanitize(url)
    if url.startswith("//"):
        return f"https:{url}"
    if base_url and url.startswith("/"):
        return urljoin(base_url, url)
    return url


class FieldExtractor:
    """Extract a fixed table of fields from markup."""

    def __init__(self, specs: dict[str, FieldSpec]):
        self.specs = specs

    def extract(self, markup: str | None, base_url: str | None = None) -> dict[str, Any]:
        """
        Extract every declared field.

        Args:
            markup: Raw HTML (may be None or malformed)
            base_url: Used to resolve root-relative media URLs

        Returns:
            Mapping of field name to value: str or None for text fields,
            int for counts, list[str] for URL collections
        """
        markup = markup or ""
        fields: dict[str, Any] = {}
        for name, spec in self.specs.items():
            try:
                fields[name] = self._extract_field(markup, spec, base_url)
            except Exception as e:
                logger.debug(f"Field extraction failed for {name}: {e}")
                fields[name] = self._empty_value(spec)
        return fields

    def _extract_field(self, markup: str, spec: FieldSpec, base_url: str | None) -> Any:
        pattern = spec.compiled()

        if spec.kind == "urls":
            urls: list[str] = []
            for match in pattern.finditer(markup):
                url = normalize_media_url(match.group(1), base_url)
                if spec.postprocess:
                    url = spec.postprocess(url)
                if url and url not in urls:
                    urls.append(url)
            return urls

        match = pattern.search(markup)
        if not match:
            return self._empty_value(spec)

        if spec.kind == "count":
            return parse_count(match.group(1))

        value = sanitize(strip_tags(match.group(1)), preserve_newlines=spec.multiline)
        if spec.postprocess:
            value = spec.postprocess(value)
        return value or None

    @staticmethod
    def _empty_value(spec: FieldSpec) -> Any:
        if spec.kind == "count":
            return 0
        if spec.kind == "urls":
            return []
        return None
