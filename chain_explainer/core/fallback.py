"""Ordered provider combinator: try each provider, fall through on failure, synthesize last."""

import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Sequence, Tuple

import structlog

from chain_explainer.core.errors import ProviderError
from chain_explainer.models.canonical import FetchResult, Live, Synthetic

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Provider:
    """A named upstream API base URL."""
    name: str
    base_url: str


async def _try_provider(provider: Provider,
                        operation: str,
                        attempt: Callable[[Provider], Awaitable[Any]]) -> Tuple[bool, Any, float]:
    """
    Run one attempt against a provider.

    Returns:
        Tuple of (success, result, response_time_ms)
    """
    start = time.time()
    try:
        result = await attempt(provider)
    except ProviderError as e:
        response_time = (time.time() - start) * 1000
        logger.warning("Provider failed",
                       provider=provider.name,
                       operation=operation,
                       error=str(e),
                       error_type=type(e).__name__,
                       response_time_ms=round(response_time, 1))
        return False, None, response_time

    response_time = (time.time() - start) * 1000
    logger.debug("Provider success",
                 provider=provider.name,
                 operation=operation,
                 response_time_ms=round(response_time, 1))
    return True, result, response_time


async def attempt_in_order(providers: Sequence[Provider],
                           operation: str,
                           attempt: Callable[[Provider], Awaitable[Any]],
                           synthesize: Callable[[], Any]) -> FetchResult:
    """
    Call ``attempt`` against each provider in order.

    The first success is returned as ``Live``. When every provider raises a
    ProviderError the ``synthesize`` callback supplies a ``Synthetic`` record.
    Any other exception propagates.
    """
    tried: List[str] = []

    for provider in providers:
        success, result, _ = await _try_provider(provider, operation, attempt)
        if success:
            return Live(record=result, source=provider.name)
        tried.append(provider.name)

    logger.error("All providers failed, using synthesized data",
                 operation=operation,
                 tried=tried)
    return Synthetic(record=synthesize(), reason=f"All providers failed: {', '.join(tried) or 'none'}")
