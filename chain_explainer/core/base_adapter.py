"""
Base chain adapter - shared contract for Bitcoin, Stacks and sidechain adapters.

Every adapter:
- Validates arguments up front and raises InvalidArgumentError for bad input
- Tries its providers in order through attempt_in_order
- Falls back to the FallbackSynthesizer when all providers fail
- Maps raw payloads to canonical records with a default for every field
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Type, TypeVar, Union

import structlog
from pydantic import BaseModel, ValidationError

from chain_explainer.core.errors import InvalidArgumentError, MalformedResponseError
from chain_explainer.core.fallback import Provider, attempt_in_order
from chain_explainer.core.http_client import ChainHttpClient
from chain_explainer.core.synthesizer import BLOCK_HASH, FallbackSynthesizer
from chain_explainer.models.canonical import (
    CanonicalAddress,
    CanonicalBlock,
    CanonicalStats,
    CanonicalTransaction,
    FetchResult,
    Live,
)
from chain_explainer.models.networks import NetworkDescriptor

logger = structlog.get_logger(__name__)

PayloadT = TypeVar("PayloadT", bound=BaseModel)
ResultT = TypeVar("ResultT")

NO_PROVIDER = "none"

# Callback through which a provider operation reports the chain tip it saw
TipCallback = Callable[[int], None]


# ==================== Argument Validation ====================

def require_int(name: str, value: Any, minimum: int = 0) -> int:
    """Reject non-integers and values below ``minimum``."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise InvalidArgumentError(f"{name} must be >= {minimum}, got {value}")
    return value


def require_identifier(name: str, value: Any) -> str:
    """Reject anything but a non-empty string; returns it stripped."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(f"{name} must be a non-empty string, got {value!r}")
    return value.strip()


def parse_block_ref(height_or_hash: Union[int, str]) -> Union[int, str]:
    """Normalize a block reference: digit strings become heights.

    Strings must be a decimal height or a 64-hex hash (``0x`` optional);
    a 64-character string of digits is taken as a hash.
    """
    if isinstance(height_or_hash, str):
        ref = require_identifier("height_or_hash", height_or_hash)
        if BLOCK_HASH.match(ref):
            return ref
        if ref.isascii() and ref.isdigit():
            return int(ref)
        raise InvalidArgumentError(f"height_or_hash must be a height or a 64-hex hash, got {ref!r}")
    return require_int("height_or_hash", height_or_hash)


def empty_result() -> FetchResult:
    """Answer for a zero-length listing; no provider is contacted."""
    return Live(record=[], source=NO_PROVIDER)


class BaseChainAdapter(ABC):
    """
    Abstract base class for chain adapters.

    Subclasses implement one coroutine per operation that talks to a single
    provider and returns a canonical record; this class supplies argument
    validation, provider ordering and synthesis.
    """

    def __init__(self,
                 descriptor: NetworkDescriptor,
                 http: ChainHttpClient,
                 synthesizer: Optional[FallbackSynthesizer] = None):
        self.descriptor = descriptor
        self.http = http
        self.synthesizer = synthesizer or FallbackSynthesizer(descriptor)
        self.providers: List[Provider] = list(self._build_providers())
        self.logger = logger.bind(component=type(self).__name__, chain=descriptor.chain)

    @property
    def chain(self) -> str:
        return self.descriptor.chain

    def _build_providers(self) -> Sequence[Provider]:
        """Providers in priority order; defaults to the descriptor's URLs."""
        return [
            Provider(name=f"{self.descriptor.key}-{i}", base_url=url)
            for i, url in enumerate(self.descriptor.provider_urls)
        ]

    def _parse(self, schema: Type[PayloadT], payload: Any, provider: Provider) -> PayloadT:
        """Validate a raw payload once at the boundary."""
        try:
            return schema.model_validate(payload)
        except ValidationError as e:
            raise MalformedResponseError(
                f"Unexpected {schema.__name__} payload: {e.error_count()} validation errors",
                provider=provider.name,
            ) from e

    async def _attempt(self,
                       operation: str,
                       attempt: Callable[[Provider], Awaitable[ResultT]],
                       synthesize: Callable[[], ResultT]) -> FetchResult:
        """
        Run ``attempt`` across the providers with synthesis as the last resort.

        A canonical record that fails validation while being built from a
        parsed payload counts as a malformed response from that provider.
        """
        async def mapped(provider: Provider) -> ResultT:
            try:
                return await attempt(provider)
            except ValidationError as e:
                raise MalformedResponseError(
                    f"Cannot map {operation} response: {e.error_count()} validation errors",
                    provider=provider.name,
                ) from e

        return await attempt_in_order(self.providers, operation, mapped, synthesize)

    async def _get_json(self, provider: Provider, path: str, **params: Any) -> Any:
        return await self.http.get_json(f"{provider.base_url}{path}", params=params or None, provider=provider.name)

    async def _get_text(self, provider: Provider, path: str) -> str:
        return await self.http.get_text(f"{provider.base_url}{path}", provider=provider.name)

    def normalize_tx_id(self, tx_id: str) -> str:
        """Put a transaction id into the form the chain's API expects."""
        return tx_id

    # ==================== Provider Operations ====================

    @abstractmethod
    async def _fetch_recent_blocks(self,
                                   provider: Provider,
                                   limit: int,
                                   offset: int,
                                   seen_tip: TipCallback) -> List[CanonicalBlock]:
        pass

    @abstractmethod
    async def _fetch_block(self, provider: Provider, ref: Union[int, str]) -> CanonicalBlock:
        pass

    @abstractmethod
    async def _fetch_transaction(self, provider: Provider, tx_id: str) -> CanonicalTransaction:
        pass

    @abstractmethod
    async def _fetch_address(self, provider: Provider, address: str) -> CanonicalAddress:
        pass

    @abstractmethod
    async def _fetch_stats(self, provider: Provider) -> CanonicalStats:
        pass

    # ==================== Public API ====================

    async def fetch_recent_blocks(self, limit: int = 10, offset: int = 0) -> FetchResult:
        """
        Recent blocks, newest first, tagged Live or Synthetic.

        A limit of 0 returns an empty list without any request. When a
        provider reported the tip before failing, synthetic blocks start
        at that tip minus ``offset`` instead of the seed height.
        """
        require_int("limit", limit)
        require_int("offset", offset)
        if limit == 0:
            return empty_result()

        tips: List[int] = []

        def synthesize() -> List[CanonicalBlock]:
            if tips:
                return self.synthesizer.recent_blocks(limit, start_height=max(tips[-1] - offset, 0))
            return self.synthesizer.recent_blocks(limit, offset=offset)

        return await self._attempt(
            "recent_blocks",
            lambda provider: self._fetch_recent_blocks(provider, limit, offset, tips.append),
            synthesize,
        )

    async def fetch_block(self, height_or_hash: Union[int, str]) -> FetchResult:
        """One block by height or hash."""
        ref = parse_block_ref(height_or_hash)

        def synthesize() -> CanonicalBlock:
            if isinstance(ref, int):
                return self.synthesizer.block(height=ref)
            return self.synthesizer.block(block_hash=ref)

        return await self._attempt(
            "block",
            lambda provider: self._fetch_block(provider, ref),
            synthesize,
        )

    async def fetch_transaction(self, tx_id: str) -> FetchResult:
        """One transaction by id."""
        normalized = self.normalize_tx_id(require_identifier("tx_id", tx_id))
        return await self._attempt(
            "transaction",
            lambda provider: self._fetch_transaction(provider, normalized),
            lambda: self.synthesizer.transaction(normalized),
        )

    async def fetch_address(self, address: str) -> FetchResult:
        """Balance summary for an address."""
        address = require_identifier("address", address)
        return await self._attempt(
            "address",
            lambda provider: self._fetch_address(provider, address),
            lambda: self.synthesizer.address(address),
        )

    async def fetch_stats(self) -> FetchResult:
        """Network statistics snapshot."""
        return await self._attempt("stats", self._fetch_stats, self.synthesizer.stats)

    async def get_recent_blocks(self, limit: int = 10, offset: int = 0) -> List[CanonicalBlock]:
        """Get recent blocks (live or synthesized)."""
        return (await self.fetch_recent_blocks(limit, offset)).record

    async def get_block(self, height_or_hash: Union[int, str]) -> CanonicalBlock:
        """Get a block by height or hash (live or synthesized)."""
        return (await self.fetch_block(height_or_hash)).record

    async def get_transaction(self, tx_id: str) -> CanonicalTransaction:
        """Get a transaction by id (live or synthesized)."""
        return (await self.fetch_transaction(tx_id)).record

    async def get_address(self, address: str) -> CanonicalAddress:
        """Get an address summary (live or synthesized)."""
        return (await self.fetch_address(address)).record

    async def get_stats(self) -> CanonicalStats:
        """Get network statistics (live or synthesized)."""
        return (await self.fetch_stats()).record
