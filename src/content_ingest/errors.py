# -*- coding: utf-8 -*-
"""
Error kinds raised by the ingestion core.

Only InvalidTarget and AllProvidersExhausted leave the core; provider-level
failures are recorded by the fallback fetcher and never propagate.
"""


class IngestError(Exception):
    """Base class for ingestion errors."""


class InvalidTarget(IngestError):
    """Raised when the requested URL or input cannot be acquired at all."""


class ProviderFailure(IngestError):
    """Raised by a provider when its attempt failed (HTTP, timeout, shape)."""


class ExtractionIncomplete(ProviderFailure):
    """Raised when a required field is missing from a provider payload."""

    def __init__(self, field_name: str):
        super().__init__(f"missing required field: {field_name}")
        self.field_name = field_name


class AllProvidersExhausted(IngestError):
    """Raised when every provider of a fallback chain failed."""

    def __init__(self, errors):
        self.errors = tuple(errors)
        if self.errors:
            summary = "; ".join(f"{name}: {reason}" for name, reason in self.errors)
        else:
            summary = "no provider configured"
        super().__init__(f"All providers failed ({summary})")
