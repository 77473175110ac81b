# -*- coding: utf-8 -*-
"""
Content Ingestion Service - fallback acquisition and document structuring.
"""
__version__ = "1.0.0"

from .acquisition import ContentAcquisitionService, parse_post_url  # noqa: E402
from .entities import (  # noqa: E402
    AcquisitionResult,
    Heading,
    NormalizedPost,
    Paragraph,
    StructuredDocument,
)
from .errors import AllProvidersExhausted, InvalidTarget  # noqa: E402
from .fallback import Provider, fetch_with_fallback  # noqa: E402
from .sanitizer import sanitize  # noqa: E402
from .structurer import DocumentStructurer  # noqa: E402

__all__ = [
    "AcquisitionResult",
    "AllProvidersExhausted",
    "ContentAcquisitionService",
    "DocumentStructurer",
    "Heading",
    "InvalidTarget",
    "NormalizedPost",
    "Paragraph",
    "Provider",
    "StructuredDocument",
    "__version__",
    "fetch_with_fallback",
    "parse_post_url",
    "sanitize",
]
