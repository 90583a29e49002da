"""
Bitcoin adapter over Esplora-shaped APIs.

mempool.space is the primary provider and blockstream.info the secondary;
both expose the same block/tx/address paths, differing only in the fee
endpoint (``/v1/fees/recommended`` versus ``/fee-estimates``).

API Documentation: https://mempool.space/docs/api/rest
"""

import re
from typing import List, Optional, Sequence, Union

from chain_explainer.core.base_adapter import BaseChainAdapter, TipCallback
from chain_explainer.core.errors import MalformedResponseError, ProviderError
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
    BlockstreamFeeEstimates,
    EsploraAddress,
    EsploraBlock,
    EsploraMempool,
    EsploraTx,
    MempoolRecommendedFees,
)
from chain_explainer.utils.time import seconds_to_ms

HEX64 = re.compile(r'^[0-9a-fA-F]{64}$')

MEMPOOL_SPACE = "mempool.space"
BLOCKSTREAM = "blockstream.info"


class BitcoinAdapter(BaseChainAdapter):
    """Bitcoin blocks, transactions, addresses and fees with provider fallback."""

    def _build_providers(self) -> Sequence[Provider]:
        providers = [Provider(name=MEMPOOL_SPACE, base_url=self.descriptor.primary_url)]
        if self.descriptor.secondary_url:
            providers.append(Provider(name=BLOCKSTREAM, base_url=self.descriptor.secondary_url))
        return providers

    def normalize_tx_id(self, tx_id: str) -> str:
        """Bitcoin ids are bare lowercase hex; a 0x prefix is dropped."""
        if tx_id[:2].lower() == "0x":
            tx_id = tx_id[2:]
        return tx_id.lower()

    # ==================== Helpers ====================

    async def _tip_height(self, provider: Provider) -> int:
        text = await self._get_text(provider, "/blocks/tip/height")
        if not text.isdigit():
            raise MalformedResponseError(f"Tip height is not an integer: {text[:32]!r}", provider=provider.name)
        return int(text)

    async def _tip_height_or_none(self, provider: Provider) -> Optional[int]:
        """Tip height for confirmation counts; unavailable tip is not fatal."""
        try:
            return await self._tip_height(provider)
        except ProviderError as e:
            self.logger.debug("Tip height unavailable", provider=provider.name, error=str(e))
            return None

    @staticmethod
    def _confirmations(height: Optional[int], tip: Optional[int], confirmed: bool) -> int:
        if not confirmed or height is None:
            return 0
        if tip is None or tip < height:
            return 1
        return tip - height + 1

    def _to_block(self, raw: EsploraBlock, tip: Optional[int]) -> CanonicalBlock:
        bits = raw.bits
        if isinstance(bits, int):
            bits = f"{bits:08x}"
        return CanonicalBlock(
            chain=self.chain,
            hash=raw.id,
            height=raw.height,
            timestamp_ms=seconds_to_ms(raw.timestamp),
            tx_count=raw.tx_count or 0,
            size_bytes=max(raw.size, 0),
            prev_hash=raw.previousblockhash or "",
            merkle_root=raw.merkle_root,
            nonce=max(raw.nonce, 0),
            bits=bits,
            confirmations=self._confirmations(raw.height, tip, True),
        )

    def _to_transaction(self, raw: EsploraTx, tip: Optional[int]) -> CanonicalTransaction:
        inputs = []
        is_coinbase = False
        for vin in raw.vin:
            is_coinbase = is_coinbase or vin.is_coinbase
            prevout = vin.prevout
            inputs.append(TxInput(
                txid=vin.txid,
                vout=max(vin.vout, 0),
                address=(prevout.scriptpubkey_address or "") if prevout else "",
                value=max(prevout.value, 0) if prevout else 0,
            ))

        outputs = [
            TxOutput(
                n=n,
                address=vout.scriptpubkey_address or "",
                value=max(vout.value, 0),
                script_type=vout.scriptpubkey_type,
            )
            for n, vout in enumerate(raw.vout)
        ]

        status = raw.status
        block_height = status.block_height if status.confirmed else None
        if block_height is not None and block_height < 0:
            block_height = None
        sender = "coinbase" if is_coinbase else next((i.address for i in inputs if i.address), "")
        recipient = next((o.address for o in outputs if o.address), "")

        return CanonicalTransaction(
            id=raw.txid,
            chain=self.chain,
            status=TxStatus.CONFIRMED if status.confirmed else TxStatus.PENDING,
            type="coinbase" if is_coinbase else "transfer",
            timestamp_ms=seconds_to_ms(status.block_time),
            block_height=block_height,
            sender=sender,
            recipient=recipient,
            value=sum(o.value for o in outputs),
            fee=max(raw.fee, 0),
            confirmations=self._confirmations(block_height, tip, status.confirmed),
            inputs=inputs,
            outputs=outputs,
        )

    # ==================== Provider Operations ====================

    async def _fetch_recent_blocks(self,
                                   provider: Provider,
                                   limit: int,
                                   offset: int,
                                   seen_tip: TipCallback) -> List[CanonicalBlock]:
        tip = await self._tip_height(provider)
        seen_tip(tip)
        height = tip - offset
        blocks: List[CanonicalBlock] = []

        while len(blocks) < limit and height >= 0:
            payload = await self._get_json(provider, f"/blocks/{height}")
            if not isinstance(payload, list):
                raise MalformedResponseError("Block list is not an array", provider=provider.name)
            page = [self._parse(EsploraBlock, item, provider) for item in payload]
            if not page:
                break
            for raw in page:
                if len(blocks) < limit and raw.height <= height:
                    blocks.append(self._to_block(raw, tip))
            next_height = page[-1].height - 1
            if next_height >= height:
                break
            height = next_height

        return blocks

    async def _fetch_block(self, provider: Provider, ref: Union[int, str]) -> CanonicalBlock:
        if isinstance(ref, int):
            block_hash = await self._get_text(provider, f"/block-height/{ref}")
            if not HEX64.match(block_hash):
                raise MalformedResponseError("Block hash lookup returned non-hash", provider=provider.name)
        else:
            block_hash = ref

        raw = self._parse(EsploraBlock, await self._get_json(provider, f"/block/{block_hash}"), provider)
        tip = await self._tip_height_or_none(provider)
        return self._to_block(raw, tip)

    async def _fetch_transaction(self, provider: Provider, tx_id: str) -> CanonicalTransaction:
        raw = self._parse(EsploraTx, await self._get_json(provider, f"/tx/{tx_id}"), provider)
        tip = await self._tip_height_or_none(provider) if raw.status.confirmed else None
        return self._to_transaction(raw, tip)

    async def _fetch_address(self, provider: Provider, address: str) -> CanonicalAddress:
        raw = self._parse(EsploraAddress, await self._get_json(provider, f"/address/{address}"), provider)
        chain_stats = raw.chain_stats
        mempool_stats = raw.mempool_stats
        return CanonicalAddress(
            address=raw.address or address,
            chain=self.chain,
            balance=chain_stats.funded_txo_sum - chain_stats.spent_txo_sum,
            unconfirmed_balance=mempool_stats.funded_txo_sum - mempool_stats.spent_txo_sum,
            tx_count=max(chain_stats.tx_count + mempool_stats.tx_count, 0),
        )

    async def _fetch_fees(self, provider: Provider) -> MempoolRecommendedFees:
        if provider.name == BLOCKSTREAM:
            estimates = self._parse(BlockstreamFeeEstimates, await self._get_json(provider, "/fee-estimates"), provider)
            return estimates.to_recommended()
        return self._parse(MempoolRecommendedFees, await self._get_json(provider, "/v1/fees/recommended"), provider)

    async def _fetch_mempool(self, provider: Provider) -> EsploraMempool:
        return self._parse(EsploraMempool, await self._get_json(provider, "/mempool"), provider)

    async def _fetch_stats(self, provider: Provider) -> CanonicalStats:
        tip = await self._tip_height(provider)
        mempool = await self._fetch_mempool(provider)
        fees = await self._fetch_fees(provider)
        return CanonicalStats(
            chain=self.chain,
            block_height=tip,
            tx_count=max(mempool.count, 0),
            mempool_size=max(mempool.count, 0),
            recommended_fee_rate=max(fees.half_hour_fee, 0.0),
            fee_rate_unit="sat/vB",
        )

    # ==================== Extras ====================

    async def get_recommended_fees(self) -> MempoolRecommendedFees:
        """Recommended fee rates in sat/vB, falling back to the configured rate."""
        rate = self.descriptor.fallback_fee_rate
        result = await self._attempt(
            "recommended_fees",
            self._fetch_fees,
            lambda: MempoolRecommendedFees(
                fastestFee=rate, halfHourFee=rate, hourFee=rate, economyFee=rate, minimumFee=1.0,
            ),
        )
        return result.record

    async def get_mempool_info(self) -> EsploraMempool:
        """Mempool summary (transaction count, vsize, total fees)."""
        result = await self._attempt(
            "mempool",
            self._fetch_mempool,
            lambda: EsploraMempool(count=self.synthesizer.stats().mempool_size),
        )
        return result.record

    def is_sbtc_peg_transaction(self, tx: CanonicalTransaction) -> bool:
        """True when the transaction pays to or spends from a known sBTC peg address."""
        peg_addresses = set(self.descriptor.sbtc_peg_addresses)
        if not peg_addresses:
            return False
        return any(o.address in peg_addresses for o in tx.outputs) or \
            any(i.address in peg_addresses for i in tx.inputs)

