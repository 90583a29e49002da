"""
Stacks adapter over the Hiro extended API.

Single provider. Transaction ids use the ``0x`` form; amounts are micro-STX.

API Documentation: https://docs.hiro.so/stacks/api
"""

import json
from typing import Any, List, Sequence, Union

from chain_explainer.core.base_adapter import (
    BaseChainAdapter,
    TipCallback,
    empty_result,
    require_identifier,
    require_int,
)
from chain_explainer.core.fallback import Provider
from chain_explainer.core.errors import MalformedResponseError
from chain_explainer.models.canonical import (
    CanonicalAddress,
    CanonicalBlock,
    CanonicalStats,
    CanonicalTransaction,
    ContractCall,
    FetchResult,
    FunctionArg,
    TokenTransfer,
    TxEvent,
    TxStatus,
)
from chain_explainer.models.payloads import (
    HiroBalances,
    HiroBlock,
    HiroBlockList,
    HiroEvent,
    HiroTotal,
    HiroTransferFee,
    HiroTx,
    HiroTxList,
)
from chain_explainer.utils.bitcoin import to_minor_units
from chain_explainer.utils.time import seconds_to_ms

HIRO = "hiro"

TX_STATUS_MAP = {
    "success": TxStatus.CONFIRMED,
    "pending": TxStatus.PENDING,
}


def render_event_value(event: HiroEvent) -> str:
    """Render an event payload as text for substring scanning."""
    if isinstance(event.value, str):
        return event.value
    payload = event.model_dump(exclude_none=True, exclude={"event_type"})
    if not payload:
        return ""
    return json.dumps(payload, sort_keys=True, default=str)


def event_asset_identifier(event: HiroEvent) -> Union[str, None]:
    if event.asset_identifier:
        return event.asset_identifier
    if event.asset and isinstance(event.asset.get("asset_id"), str):
        return event.asset["asset_id"]
    if event.contract_identifier:
        return event.contract_identifier
    if event.contract_log and isinstance(event.contract_log.get("contract_id"), str):
        return event.contract_log["contract_id"]
    return None


def sbtc_token_balance(balances: HiroBalances, contracts: Sequence[str]) -> int:
    """
    Pick the sBTC entry out of a Hiro fungible token map.

    Keys have the form ``{contract}::{asset}``. Contracts are tried in
    the order given and the first one held by the address wins; an
    address holding none of them has a zero balance.
    """
    for contract in contracts:
        for key, token in balances.fungible_tokens.items():
            if key.split("::", 1)[0] == contract:
                return to_minor_units(token.get("balance"))
    return 0


class StacksAdapter(BaseChainAdapter):
    """Stacks blocks, transactions, balances and fees from Hiro."""

    def _build_providers(self) -> Sequence[Provider]:
        return [Provider(name=HIRO, base_url=self.descriptor.primary_url)]

    def normalize_tx_id(self, tx_id: str) -> str:
        """Stacks ids always carry the 0x prefix."""
        if tx_id[:2].lower() == "0x":
            return "0x" + tx_id[2:].lower()
        return "0x" + tx_id.lower()

    # ==================== Mapping ====================

    def _to_block(self, raw: HiroBlock, tip: Union[int, None]) -> CanonicalBlock:
        tx_count = raw.tx_count if raw.tx_count is not None else len(raw.txs)
        confirmations = tip - raw.height + 1 if tip is not None and tip >= raw.height else 1
        return CanonicalBlock(
            chain=self.chain,
            hash=raw.hash,
            height=raw.height,
            timestamp_ms=seconds_to_ms(raw.block_time or raw.burn_block_time),
            tx_count=max(tx_count, 0),
            prev_hash=raw.parent_block_hash,
            confirmations=confirmations,
        )

    def to_transaction(self, raw: HiroTx, tip: Union[int, None] = None) -> CanonicalTransaction:
        """Map a Hiro transaction payload to a canonical transaction."""
        status = TX_STATUS_MAP.get(raw.tx_status, TxStatus.FAILED)

        contract_call = None
        if raw.contract_call is not None:
            contract_call = ContractCall(
                contract_id=raw.contract_call.contract_id,
                function_name=raw.contract_call.function_name,
                function_args=[
                    FunctionArg(name=arg.name, repr=arg.repr, type=arg.type)
                    for arg in raw.contract_call.function_args
                ],
            )

        token_transfer = None
        recipient = ""
        value = 0
        if raw.token_transfer is not None:
            token_transfer = TokenTransfer(
                recipient=raw.token_transfer.recipient_address,
                amount=to_minor_units(raw.token_transfer.amount),
                memo=raw.token_transfer.memo,
                asset_identifier=raw.token_transfer.asset_identifier,
            )
            recipient = token_transfer.recipient
            value = token_transfer.amount
        elif contract_call is not None:
            recipient = contract_call.contract_id

        events = [
            TxEvent(
                event_type=event.event_type,
                value=render_event_value(event),
                asset_identifier=event_asset_identifier(event),
            )
            for event in raw.events
        ]

        block_height = raw.block_height if raw.block_height and raw.block_height > 0 else None
        confirmations = 0
        if status != TxStatus.PENDING and block_height is not None:
            confirmations = tip - block_height + 1 if tip is not None and tip >= block_height else 1

        return CanonicalTransaction(
            id=raw.tx_id,
            chain=self.chain,
            status=status,
            type=raw.tx_type or "unknown",
            timestamp_ms=seconds_to_ms(raw.block_time or raw.burn_block_time or raw.receipt_time),
            block_height=block_height,
            sender=raw.sender_address,
            recipient=recipient,
            value=value,
            fee=to_minor_units(raw.fee_rate),
            confirmations=confirmations,
            contract_call=contract_call,
            token_transfer=token_transfer,
            events=events,
        )

    # ==================== Provider Operations ====================

    async def _tip_height(self, provider: Provider) -> int:
        listing = self._parse(HiroBlockList, await self._get_json(provider, "/extended/v1/block", limit=1), provider)
        if not listing.results:
            raise MalformedResponseError("Empty block listing", provider=provider.name)
        return listing.results[0].height

    async def _fetch_recent_blocks(self,
                                   provider: Provider,
                                   limit: int,
                                   offset: int,
                                   seen_tip: TipCallback) -> List[CanonicalBlock]:
        payload = await self._get_json(provider, "/extended/v1/block", limit=limit, offset=offset)
        listing = self._parse(HiroBlockList, payload, provider)
        tip = listing.results[0].height + offset if listing.results else None
        if tip is not None and tip >= 0:
            seen_tip(tip)
        return [self._to_block(raw, tip) for raw in listing.results[:limit]]

    async def _fetch_block(self, provider: Provider, ref: Union[int, str]) -> CanonicalBlock:
        if isinstance(ref, int):
            path = f"/extended/v1/block/by_height/{ref}"
        else:
            path = f"/extended/v1/block/{ref}"
        raw = self._parse(HiroBlock, await self._get_json(provider, path), provider)
        return self._to_block(raw, await self._tip_height(provider))

    async def _fetch_transaction(self, provider: Provider, tx_id: str) -> CanonicalTransaction:
        raw = self._parse(HiroTx, await self._get_json(provider, f"/extended/v1/tx/{tx_id}"), provider)
        tip = await self._tip_height(provider) if raw.block_height else None
        return self.to_transaction(raw, tip)

    async def _fetch_address(self, provider: Provider, address: str) -> CanonicalAddress:
        balances = self._parse(
            HiroBalances,
            await self._get_json(provider, f"/extended/v1/address/{address}/balances"),
            provider,
        )
        history = self._parse(
            HiroTotal,
            await self._get_json(provider, f"/extended/v1/address/{address}/transactions", limit=1),
            provider,
        )
        return CanonicalAddress(
            address=address,
            chain=self.chain,
            balance=to_minor_units(balances.stx.balance),
            unconfirmed_balance=0,
            tx_count=max(history.total, 0),
        )

    async def _fetch_stats(self, provider: Provider) -> CanonicalStats:
        tip = await self._tip_height(provider)
        mempool = self._parse(HiroTotal, await self._get_json(provider, "/extended/v1/tx/mempool", limit=1), provider)
        fee = self._parse(HiroTransferFee, await self._get_json(provider, "/v2/fees/transfer"), provider)
        return CanonicalStats(
            chain=self.chain,
            block_height=tip,
            tx_count=max(mempool.total, 0),
            mempool_size=max(mempool.total, 0),
            recommended_fee_rate=float(max(fee.root, 0)),
            fee_rate_unit="uSTX/byte",
        )

    async def _fetch_recent_transactions(self, provider: Provider, limit: int) -> List[CanonicalTransaction]:
        listing = self._parse(HiroTxList, await self._get_json(provider, "/extended/v1/tx", limit=limit), provider)
        return [self.to_transaction(raw) for raw in listing.results[:limit]]

    async def _fetch_address_transactions(self,
                                          provider: Provider,
                                          address: str,
                                          limit: int) -> List[CanonicalTransaction]:
        payload = await self._get_json(provider, f"/extended/v1/address/{address}/transactions", limit=limit)
        listing = self._parse(HiroTxList, payload, provider)
        return [self.to_transaction(raw) for raw in listing.results[:limit]]

    async def _fetch_sbtc_balance(self, provider: Provider, address: str) -> int:
        balances = self._parse(
            HiroBalances,
            await self._get_json(provider, f"/extended/v1/address/{address}/balances"),
            provider,
        )
        return sbtc_token_balance(balances, self.descriptor.sbtc_contracts)

    # ==================== Extras ====================

    async def fetch_recent_transactions(self, limit: int = 10) -> FetchResult:
        """Most recent confirmed transactions, tagged Live or Synthetic."""
        require_int("limit", limit)
        if limit == 0:
            return empty_result()
        return await self._attempt(
            "recent_transactions",
            lambda provider: self._fetch_recent_transactions(provider, limit),
            lambda: self.synthesizer.transactions(limit),
        )

    async def get_recent_transactions(self, limit: int = 10) -> List[CanonicalTransaction]:
        """Get the most recent transactions (live or synthesized)."""
        return (await self.fetch_recent_transactions(limit)).record

    async def fetch_address_transactions(self, address: str, limit: int = 20) -> FetchResult:
        """Most recent transactions sent or received by ``address``."""
        address = require_identifier("address", address)
        require_int("limit", limit)
        if limit == 0:
            return empty_result()
        return await self._attempt(
            "address_transactions",
            lambda provider: self._fetch_address_transactions(provider, address, limit),
            lambda: self.synthesizer.transactions(limit, sender=address),
        )

    async def get_address_transactions(self, address: str, limit: int = 20) -> List[CanonicalTransaction]:
        return (await self.fetch_address_transactions(address, limit)).record

    async def fetch_sbtc_balance(self, address: str) -> FetchResult:
        """sBTC balance of ``address`` in minor units (8 decimals)."""
        address = require_identifier("address", address)
        return await self._attempt(
            "sbtc_balance",
            lambda provider: self._fetch_sbtc_balance(provider, address),
            self.synthesizer.token_balance,
        )

    async def get_sbtc_balance(self, address: str) -> int:
        """Get the sBTC balance of an address (live or synthesized)."""
        return (await self.fetch_sbtc_balance(address)).record

    def parse_transaction(self, payload: Any) -> CanonicalTransaction:
        """Map an already-fetched Hiro transaction payload (e.g. a fixture)."""
        return self.to_transaction(self._parse(HiroTx, payload, Provider(name=HIRO, base_url="")))
