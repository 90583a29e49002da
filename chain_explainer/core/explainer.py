"""
Chain explainer facade.

Owns the shared HTTP client and one adapter per configured network, and
turns free-text input into fetched records, sBTC classifications, fee
analyses and plain-language insights.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx
import structlog

from chain_explainer.core.base_adapter import BaseChainAdapter, require_int
from chain_explainer.core.bitcoin_adapter import BitcoinAdapter
from chain_explainer.core.errors import InvalidArgumentError
from chain_explainer.core.fee_analyzer import analyze_fee_for
from chain_explainer.core.http_client import ChainHttpClient
from chain_explainer.core.identifier import (
    IdentifierClassification,
    analyze_sidechain_address,
    classify_identifier,
)
from chain_explainer.core.insights import generate_insights
from chain_explainer.core.sbtc_classifier import SBTC_DECIMALS, SbtcClassifier
from chain_explainer.core.sidechain_adapter import SidechainAdapter
from chain_explainer.core.stacks_adapter import StacksAdapter
from chain_explainer.models.canonical import (
    CanonicalTransaction,
    FetchResult,
    GasCostAnalysis,
    SbtcOperation,
)
from chain_explainer.models.config import ExplainerSettings
from chain_explainer.models.networks import (
    BITCOIN,
    SIDECHAIN_NAMES,
    STACKS,
    NetworkRegistry,
    build_registry,
)
from chain_explainer.utils.formatting import describe_transaction_type, format_amount

logger = structlog.get_logger(__name__)


def _dump(record: Any) -> Any:
    if isinstance(record, list):
        return [_dump(item) for item in record]
    if hasattr(record, "model_dump"):
        return record.model_dump(mode="json")
    return record


@dataclass(frozen=True)
class AnalysisResult:
    """Everything learned about one piece of user input."""
    classification: IdentifierClassification
    record: Any = None
    is_synthetic: bool = False
    source: Optional[str] = None
    label: Optional[str] = None
    sbtc_operation: Optional[SbtcOperation] = None
    fee_analysis: Optional[GasCostAnalysis] = None
    insights: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.classification.kind,
            "chain": self.classification.chain,
            "subtype": self.classification.subtype,
            "input": self.classification.normalized,
            "record": _dump(self.record),
            "is_synthetic": self.is_synthetic,
            "source": self.source,
            "label": self.label,
            "sbtc_operation": self.sbtc_operation.to_dict() if self.sbtc_operation else None,
            "fee_analysis": self.fee_analysis.to_dict() if self.fee_analysis else None,
            "insights": list(self.insights),
        }


@dataclass(frozen=True)
class ChainOverview:
    """Recent blocks and stats (plus recent transactions on Stacks) for one chain."""
    chain: str
    blocks: FetchResult
    stats: FetchResult
    transactions: Optional[FetchResult] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "chain": self.chain,
            "blocks": _dump(self.blocks.record),
            "blocks_synthetic": self.blocks.is_synthetic,
            "stats": _dump(self.stats.record),
            "stats_synthetic": self.stats.is_synthetic,
        }
        if self.transactions is not None:
            data["transactions"] = _dump(self.transactions.record)
            data["transactions_synthetic"] = self.transactions.is_synthetic
        return data


@dataclass(frozen=True)
class SbtcBalance:
    """sBTC held by one Stacks address."""
    address: str
    amount: int
    is_synthetic: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "amount": self.amount,
            "amount_display": format_amount(self.amount, SBTC_DECIMALS),
            "is_synthetic": self.is_synthetic,
        }


class ChainExplainer:
    """
    Entry point tying classification, adapters and analysis together.

    Usage:
        async with ChainExplainer() as explainer:
            result = await explainer.analyze_input(tx_id)
    """

    def __init__(self,
                 registry: Optional[NetworkRegistry] = None,
                 settings: Optional[ExplainerSettings] = None,
                 http: Optional[ChainHttpClient] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize the explainer.

        Args:
            registry: Network registry; built from settings when omitted
            settings: Settings used for the registry and the HTTP client
            http: Shared HTTP client; built from settings when omitted
            transport: Custom httpx transport for the default HTTP client
        """
        self.settings = settings or ExplainerSettings()
        self.registry = registry or build_registry(self.settings)
        self.http = http or ChainHttpClient.from_settings(self.settings, transport=transport)

        self.bitcoin = BitcoinAdapter(self.registry.bitcoin, self.http)
        self.stacks = StacksAdapter(self.registry.stacks, self.http)
        self.sidechains: Dict[str, SidechainAdapter] = {
            name: SidechainAdapter(self.registry.sidechain(name), self.http)
            for name in SIDECHAIN_NAMES
            if name in self.registry
        }
        self.sbtc = SbtcClassifier(self.registry.stacks)
        self.logger = logger.bind(component="explainer")

        self.logger.info("Chain explainer initialized",
                         bitcoin=self.registry.bitcoin.key,
                         stacks=self.registry.stacks.key,
                         sidechains=list(self.sidechains))

    async def __aenter__(self) -> "ChainExplainer":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the shared HTTP client."""
        await self.http.aclose()

    def adapter_for(self, chain: str) -> BaseChainAdapter:
        """Adapter for a chain tag (bitcoin, stacks or a sidechain name)."""
        if chain == BITCOIN:
            return self.bitcoin
        if chain == STACKS:
            return self.stacks
        adapter = self.sidechains.get(chain)
        if adapter is None:
            raise InvalidArgumentError(f"Unsupported chain: {chain}")
        return adapter

    # ==================== Analysis ====================

    def _route(self, classification: IdentifierClassification, context_chain: str) -> Optional[str]:
        """Pick the chain to query; sidechain context claims ids and its own addresses."""
        if context_chain not in self.sidechains:
            return classification.chain
        if classification.kind == "tx" and classification.chain == BITCOIN:
            return context_chain
        if analyze_sidechain_address(classification.normalized) == context_chain:
            return context_chain
        return classification.chain

    async def analyze_input(self, text: str, context_chain: str = BITCOIN) -> AnalysisResult:
        """
        Classify text and, for transactions and addresses, fetch and explain them.

        Queries are returned without any network I/O.
        """
        classification = classify_identifier(text, context_chain=context_chain)
        chain = self._route(classification, context_chain)

        if classification.is_query and chain is None:
            self.logger.debug("Input classified as query", length=len(classification.normalized))
            return AnalysisResult(classification=classification)

        if chain != classification.chain:
            classification = IdentifierClassification(
                kind="address" if classification.is_query else classification.kind,
                normalized=classification.normalized,
                chain=chain,
                subtype=classification.subtype,
            )

        adapter = self.adapter_for(chain)
        if classification.kind == "tx":
            result = await adapter.fetch_transaction(classification.normalized)
            return self._explain_transaction(classification, result, adapter)

        result = await adapter.fetch_address(classification.normalized)
        return AnalysisResult(
            classification=classification,
            record=result.record,
            is_synthetic=result.is_synthetic,
            source=getattr(result, "source", None),
        )

    def _explain_transaction(self,
                             classification: IdentifierClassification,
                             result: FetchResult,
                             adapter: BaseChainAdapter) -> AnalysisResult:
        tx: CanonicalTransaction = result.record
        sbtc_operation = None
        insights: List[str] = []

        if adapter is self.stacks:
            sbtc_operation = self.sbtc.classify(tx)
            if sbtc_operation is not None:
                insights = generate_insights(sbtc_operation, adapter.descriptor.native_symbol)

        fee_analysis = None
        if sbtc_operation is not None:
            fee_analysis = sbtc_operation.gas_cost_analysis
        elif tx.fee > 0:
            fee_analysis = analyze_fee_for(tx.fee, adapter.descriptor)

        return AnalysisResult(
            classification=classification,
            record=tx,
            is_synthetic=result.is_synthetic,
            source=getattr(result, "source", None),
            label=describe_transaction_type(tx),
            sbtc_operation=sbtc_operation,
            fee_analysis=fee_analysis,
            insights=insights,
        )

    # ==================== Dashboards ====================

    async def overview(self, chain: str = BITCOIN, limit: int = 10) -> ChainOverview:
        """Fetch recent blocks and stats concurrently; each resolves live or synthetic on its own."""
        require_int("limit", limit)
        adapter = self.adapter_for(chain)

        tasks = [adapter.fetch_recent_blocks(limit), adapter.fetch_stats()]
        if adapter is self.stacks:
            tasks.append(self.stacks.fetch_recent_transactions(limit))

        results = await asyncio.gather(*tasks)
        return ChainOverview(
            chain=chain,
            blocks=results[0],
            stats=results[1],
            transactions=results[2] if len(results) > 2 else None,
        )

    async def list_sbtc_operations(self, limit: int = 20) -> List[SbtcOperation]:
        """Classify recent Stacks transactions, keeping only sBTC operations."""
        require_int("limit", limit)
        transactions = await self.stacks.get_recent_transactions(limit)
        operations = self.sbtc.classify_many(transactions)
        self.logger.info("Listed sBTC operations", scanned=len(transactions), found=len(operations))
        return operations

    async def list_address_sbtc_operations(self, address: str, limit: int = 20) -> List[SbtcOperation]:
        """Classify an address's recent Stacks transactions, keeping only sBTC operations."""
        transactions = await self.stacks.get_address_transactions(address, limit)
        operations = self.sbtc.classify_many(transactions)
        self.logger.info("Listed address sBTC operations",
                         address=address, scanned=len(transactions), found=len(operations))
        return operations

    async def sbtc_balance(self, address: str) -> SbtcBalance:
        """sBTC balance of a Stacks address."""
        result = await self.stacks.fetch_sbtc_balance(address)
        return SbtcBalance(address=address.strip(), amount=result.record, is_synthetic=result.is_synthetic)
