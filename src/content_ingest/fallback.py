# -*- coding: utf-8 -*-
"""
Ordered fallback over independent content providers.

Providers are tried one at a time, in priority order. The first success
wins; every failure is recorded so the caller can report why each avenue
failed instead of only the last one.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Sequence

import httpx

from .config import settings
from .entities import AcquisitionResult, ProviderError

logger = logging.getLogger(__name__)


class Provider(ABC):
    """One external source able to satisfy an acquisition request.

    ``fetch`` returns the normalized payload, or raises to signal failure
    (ProviderFailure, httpx errors, ...). ``timeout`` is in seconds; None
    means the fetcher's default applies.
    """

    name: str = ""
    timeout: float | None = None

    @abstractmethod
    async def fetch(self, target: Any) -> Any:
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


def describe_failure(error: BaseException, timeout: float) -> str:
    """Short human-readable reason for a failed provider attempt."""
    if isinstance(error, (asyncio.TimeoutError, httpx.TimeoutException)):
        return f"Timeout after {timeout:g}s"
    if isinstance(error, httpx.HTTPStatusError):
        response = error.response
        return f"HTTP {response.status_code} {response.reason_phrase}".strip()
    message = str(error) or type(error).__name__
    return message[:200]


async def fetch_with_fallback(
        providers: Sequence[Provider],
        target: Any,
        *,
        timeout: float | None = None,
        best_effort: bool = False,
) -> AcquisitionResult:
    """
    Try each provider in order until one returns a payload.

    Args:
        providers: Providers in priority order
        target: Passed unchanged to every provider
        timeout: Default per-provider timeout in seconds, used when the
            provider has none (defaults to settings.PROVIDER_TIMEOUT)
        best_effort: Log an exhausted chain as a warning, not an error

    Returns:
        AcquisitionResult with the first payload, or success=False and one
        error per provider tried
    """
    default_timeout = timeout if timeout is not None else settings.PROVIDER_TIMEOUT / 1000
    errors: list[ProviderError] = []

    for provider in providers:
        provider_timeout = provider.timeout or default_timeout
        logger.debug(
            "Trying provider",
            extra={"provider": provider.name, "timeout": provider_timeout},
        )
        try:
            payload = await asyncio.wait_for(provider.fetch(target), timeout=provider_timeout)
        except Exception as e:
            reason = describe_failure(e, provider_timeout)
            errors.append(ProviderError(provider.name, reason))
            logger.warning(
                f"Provider {provider.name} failed: {reason}",
                extra={"provider": provider.name, "error": reason},
            )
            continue

        if payload is None:
            errors.append(ProviderError(provider.name, "Empty payload"))
            logger.warning(f"Provider {provider.name} returned nothing")
            continue

        logger.info(
            "Provider succeeded",
            extra={"provider": provider.name, "failed_before": len(errors)},
        )
        return AcquisitionResult(
            success=True,
            source=provider.name,
            payload=payload,
            errors=tuple(errors),
        )

    logger.log(
        logging.WARNING if best_effort else logging.ERROR,
        "All providers failed",
        extra={"providers": [p.name for p in providers], "errors": [e.reason for e in errors]},
    )
    return AcquisitionResult(success=False, errors=tuple(errors))
