"""
BIP300 sidechain adapter (Thunder, zSide, BitNames).

One instance per sidechain; all share the LayerTwo Labs API layout under
``{root}/{name}``. The API reports amounts in BTC, which are converted to
satoshis here so canonical records stay in minor units.
"""

from typing import List, Union

from chain_explainer.core.base_adapter import BaseChainAdapter, TipCallback
from chain_explainer.core.fallback import Provider
from chain_explainer.models.canonical import (
    CanonicalAddress,
    CanonicalBlock,
    CanonicalStats,
    CanonicalTransaction,
    TxInput,
    TxOutput,
    TxStatus,
)
from chain_explainer.models.payloads import (
    SidechainAddress,
    SidechainBlock,
    SidechainBlockList,
    SidechainMempool,
    SidechainNodeStatus,
    SidechainStats,
    SidechainTx,
)
from chain_explainer.utils.bitcoin import btc_to_satoshi
from chain_explainer.utils.time import seconds_to_ms

MAINCHAIN_PREFIX = "mainchain"
FALLBACK_MAINCHAIN_HEIGHT = 800000

TX_STATUS_MAP = {
    "confirmed": TxStatus.CONFIRMED,
    "pending": TxStatus.PENDING,
    "failed": TxStatus.FAILED,
}


def derive_transaction_type(raw: SidechainTx) -> str:
    """Explicit type, else coinbase / deposit / withdrawal from the inputs and outputs."""
    if raw.type:
        return raw.type
    if any(vin.coinbase for vin in raw.vin):
        return "coinbase"
    if any(address.startswith(MAINCHAIN_PREFIX) for vin in raw.vin for address in vin.addresses):
        return "deposit"
    if any(address.startswith(MAINCHAIN_PREFIX)
           for vout in raw.vout for address in vout.script_pub_key.addresses):
        return "withdrawal"
    return "transfer"


class SidechainAdapter(BaseChainAdapter):
    """Blocks, transactions, balances and node status for one sidechain."""

    # ==================== Mapping ====================

    def _to_block(self, raw: SidechainBlock) -> CanonicalBlock:
        bits = raw.bits
        if isinstance(bits, int):
            bits = f"{bits:08x}"
        tx_count = raw.tx_count if raw.tx_count is not None else len(raw.txs)
        return CanonicalBlock(
            chain=self.chain,
            hash=raw.hash,
            height=raw.height,
            timestamp_ms=seconds_to_ms(raw.time),
            tx_count=max(tx_count, 0),
            size_bytes=max(raw.size, 0),
            prev_hash=raw.previousblockhash,
            merkle_root=raw.merkleroot,
            nonce=max(raw.nonce, 0),
            bits=bits,
            confirmations=max(raw.confirmations, 1),
        )

    def _to_transaction(self, raw: SidechainTx) -> CanonicalTransaction:
        if raw.status in TX_STATUS_MAP:
            status = TX_STATUS_MAP[raw.status]
        else:
            status = TxStatus.CONFIRMED if raw.confirmations > 0 else TxStatus.PENDING

        if raw.time:
            timestamp_ms = seconds_to_ms(raw.time)
        else:
            timestamp_ms = raw.timestamp if raw.timestamp and raw.timestamp > 0 else seconds_to_ms(None)

        inputs = [
            TxInput(
                txid=vin.txid,
                vout=max(vin.vout, 0),
                address=vin.addresses[0] if vin.addresses else "",
                value=btc_to_satoshi(vin.value),
            )
            for vin in raw.vin
        ]
        outputs = [
            TxOutput(
                n=max(vout.n, 0),
                address=vout.script_pub_key.addresses[0] if vout.script_pub_key.addresses else "",
                value=btc_to_satoshi(vout.value),
                script_type=vout.script_pub_key.type,
            )
            for vout in raw.vout
        ]

        block_height = raw.blockheight if raw.blockheight is not None else raw.block_height
        if block_height is not None and block_height < 0:
            block_height = None

        tx_type = derive_transaction_type(raw)
        sender = "coinbase" if tx_type == "coinbase" else next((i.address for i in inputs if i.address), "")

        return CanonicalTransaction(
            id=raw.txid,
            chain=self.chain,
            status=status,
            type=tx_type,
            timestamp_ms=timestamp_ms,
            block_height=block_height,
            sender=sender,
            recipient=next((o.address for o in outputs if o.address), ""),
            value=sum(o.value for o in outputs),
            fee=btc_to_satoshi(raw.fee),
            confirmations=max(raw.confirmations, 0),
            inputs=inputs,
            outputs=outputs,
        )

    # ==================== Provider Operations ====================

    async def _fetch_recent_blocks(self,
                                   provider: Provider,
                                   limit: int,
                                   offset: int,
                                   seen_tip: TipCallback) -> List[CanonicalBlock]:
        payload = await self._get_json(provider, "/blocks", limit=limit + offset)
        listing = self._parse(SidechainBlockList, payload, provider)
        if listing.blocks and listing.blocks[0].height >= 0:
            seen_tip(listing.blocks[0].height)
        return [self._to_block(raw) for raw in listing.blocks[offset:offset + limit]]

    async def _fetch_block(self, provider: Provider, ref: Union[int, str]) -> CanonicalBlock:
        if isinstance(ref, int):
            path = f"/block/height/{ref}"
        else:
            path = f"/block/hash/{ref}"
        return self._to_block(self._parse(SidechainBlock, await self._get_json(provider, path), provider))

    async def _fetch_transaction(self, provider: Provider, tx_id: str) -> CanonicalTransaction:
        return self._to_transaction(self._parse(SidechainTx, await self._get_json(provider, f"/tx/{tx_id}"), provider))

    async def _fetch_address(self, provider: Provider, address: str) -> CanonicalAddress:
        raw = self._parse(SidechainAddress, await self._get_json(provider, f"/address/{address}"), provider)
        return CanonicalAddress(
            address=raw.address or address,
            chain=self.chain,
            balance=btc_to_satoshi(raw.balance),
            unconfirmed_balance=btc_to_satoshi(raw.unconfirmed_balance),
            tx_count=max(raw.tx_count, 0),
        )

    async def _fetch_stats(self, provider: Provider) -> CanonicalStats:
        raw = self._parse(SidechainStats, await self._get_json(provider, "/stats"), provider)
        return CanonicalStats(
            chain=self.chain,
            block_height=max(raw.block_height, 0),
            tx_count=max(raw.tx_count, 0),
            mempool_size=max(raw.mempool_size, 0),
            recommended_fee_rate=float(btc_to_satoshi(raw.avg_fee)),
            fee_rate_unit="sat",
        )

    async def _fetch_node_status(self, provider: Provider) -> SidechainNodeStatus:
        return self._parse(SidechainNodeStatus, await self._get_json(provider, "/status"), provider)

    async def _fetch_mempool(self, provider: Provider) -> SidechainMempool:
        return self._parse(SidechainMempool, await self._get_json(provider, "/mempool"), provider)

    # ==================== Extras ====================

    async def get_node_status(self) -> SidechainNodeStatus:
        """Node sync status, falling back to the seed height when unreachable."""
        result = await self._attempt(
            "node_status",
            self._fetch_node_status,
            lambda: SidechainNodeStatus(
                status="unknown",
                block_height=self.descriptor.seed_height,
                mainchain_block_height=FALLBACK_MAINCHAIN_HEIGHT,
                mainchain_sync_status=100.0,
            ),
        )
        return result.record

    async def get_mempool_info(self) -> SidechainMempool:
        """Mempool size, bytes and minimum fee."""
        result = await self._attempt(
            "mempool",
            self._fetch_mempool,
            lambda: SidechainMempool(size=self.synthesizer.stats().mempool_size),
        )
        return result.record

