"""Fallback synthesis of structurally valid records when no provider responds."""

import random
import re
from typing import List, Optional

import structlog

from chain_explainer.models.canonical import (
    CanonicalAddress,
    CanonicalBlock,
    CanonicalStats,
    CanonicalTransaction,
    TxInput,
    TxOutput,
    TxStatus,
)
from chain_explainer.models.networks import STACKS, NetworkDescriptor
from chain_explainer.utils.bitcoin import BECH32_CHARS, C32_CHARS, hash160_to_p2pkh_address
from chain_explainer.utils.time import now_ms

logger = structlog.get_logger(__name__)

HEX64 = re.compile(r'^[0-9a-fA-F]{64}$')
BLOCK_HASH = re.compile(r'^(0x)?[0-9a-fA-F]{64}$')
STACKS_TX_ID = re.compile(r'^0x[0-9a-fA-F]{64}$')

SIDECHAIN_TX_TYPES = ("transfer", "deposit", "withdrawal", "contract-call", "name-register", "merge-mine")


class FallbackSynthesizer:
    """
    Produce placeholder records with the same shape as live data.

    Guarantees within one batch: heights strictly decrease and never go
    negative, each block's prev_hash is the next block's hash, hashes are
    64-char lowercase hex, addresses carry the chain's prefix and UTXO
    transactions conserve value (inputs == outputs + fee).
    """

    def __init__(self, descriptor: NetworkDescriptor, rng: Optional[random.Random] = None):
        self.descriptor = descriptor
        self.rng = rng or random.Random()
        self.logger = logger.bind(component="synthesizer", chain=descriptor.chain)

    # ==================== Primitives ====================

    def _hash(self) -> str:
        return f"{self.rng.getrandbits(256):064x}"

    def _tx_id(self) -> str:
        tx_hash = self._hash()
        return f"0x{tx_hash}" if self.descriptor.chain == STACKS else tx_hash

    def _is_tx_id(self, tx_id: str) -> bool:
        pattern = STACKS_TX_ID if self.descriptor.chain == STACKS else HEX64
        return bool(pattern.match(tx_id))

    def _random_chars(self, alphabet: str, length: int) -> str:
        return "".join(self.rng.choice(alphabet) for _ in range(length))

    def _address(self) -> str:
        style = self.descriptor.address_style
        if style in ("bitcoin", "bitcoin-testnet"):
            network = "mainnet" if style == "bitcoin" else "testnet"
            if self.rng.random() < 0.5:
                hrp = "bc1q" if network == "mainnet" else "tb1q"
                return hrp + self._random_chars(BECH32_CHARS, 38)
            pubkey_hash = bytes(self.rng.getrandbits(8) for _ in range(20))
            return hash160_to_p2pkh_address(pubkey_hash, network)
        if style == "stacks":
            return "SP" + self._random_chars(C32_CHARS, 33)
        if style == "stacks-testnet":
            return "ST" + self._random_chars(C32_CHARS, 33)
        if style == "zside":
            return "z" + self._hash()[:34]
        if style == "bitnames":
            return "bn" + self._hash()[:38]
        return "tb1" + self._hash()[:38]

    def _tip_height(self, offset: int = 0) -> int:
        return max(self.descriptor.seed_height - offset, 0)

    # ==================== Blocks ====================

    def recent_blocks(self, limit: int, start_height: Optional[int] = None, offset: int = 0) -> List[CanonicalBlock]:
        """Synthesize a descending run of linked blocks.

        The run starts at ``start_height`` (or the seed height minus
        ``offset``) and is shorter than ``limit`` only when height 0 is reached.
        """
        top = start_height if start_height is not None else self._tip_height(offset)
        count = min(limit, top + 1)
        hashes = [self._hash() for _ in range(count + 1)]
        now = now_ms()
        interval_ms = self.descriptor.block_interval_seconds * 1000

        blocks = []
        for i in range(count):
            blocks.append(self._block(
                height=top - i,
                block_hash=hashes[i],
                prev_hash=hashes[i + 1],
                timestamp_ms=max(now - i * interval_ms, 0),
                confirmations=i + 1,
            ))

        self.logger.info("Synthesized blocks", count=len(blocks), top_height=top)
        return blocks

    def block(self, height: Optional[int] = None, block_hash: Optional[str] = None) -> CanonicalBlock:
        """Synthesize one block, keeping whichever identifier was requested.

        A requested hash that is not 64 hex characters is replaced.
        """
        tip = self._tip_height()
        if height is None:
            height = self.rng.randint(0, tip)
        if block_hash is not None and not BLOCK_HASH.match(block_hash):
            self.logger.debug("Discarding malformed block hash", block_hash=block_hash[:80])
            block_hash = None
        confirmations = max(tip - height + 1, 1)
        return self._block(
            height=height,
            block_hash=block_hash or self._hash(),
            prev_hash=self._hash() if height > 0 else "0" * 64,
            timestamp_ms=max(now_ms() - (confirmations - 1) * self.descriptor.block_interval_seconds * 1000, 0),
            confirmations=confirmations,
        )

    def _block(self, height: int, block_hash: str, prev_hash: str, timestamp_ms: int, confirmations: int) -> CanonicalBlock:
        return CanonicalBlock(
            chain=self.descriptor.chain,
            hash=block_hash,
            height=height,
            timestamp_ms=timestamp_ms,
            tx_count=self.rng.randint(1, 3000),
            size_bytes=self.rng.randint(100_000, 1_000_000),
            prev_hash=prev_hash,
            merkle_root=self._hash(),
            nonce=self.rng.randint(0, 2 ** 32 - 1),
            bits="1d00ffff" if self.descriptor.chain != STACKS else "",
            confirmations=confirmations,
        )

    # ==================== Transactions ====================

    def transaction(self, tx_id: Optional[str] = None) -> CanonicalTransaction:
        """Synthesize one confirmed transaction with the given id.

        The id is kept only when it has the chain's form (``0x`` plus 64 hex
        on Stacks, bare 64 hex elsewhere); otherwise a fresh one is drawn.
        """
        if tx_id is not None and not self._is_tx_id(tx_id):
            self.logger.debug("Discarding malformed transaction id", tx_id=tx_id[:80])
            tx_id = None
        tx_id = tx_id or self._tx_id()
        tip = self._tip_height()
        block_height = max(tip - self.rng.randint(0, 100), 0)
        timestamp = max(now_ms() - (tip - block_height) * self.descriptor.block_interval_seconds * 1000, 0)

        if self.descriptor.chain == STACKS:
            return self._account_transaction(tx_id, block_height, tip, timestamp)
        return self._utxo_transaction(tx_id, block_height, tip, timestamp)

    def transactions(self, limit: int, sender: Optional[str] = None) -> List[CanonicalTransaction]:
        """Synthesize ``limit`` unrelated transactions, optionally all from ``sender``."""
        batch = [self.transaction() for _ in range(limit)]
        if sender is None:
            return batch
        return [tx.model_copy(update={"sender": sender}) for tx in batch]

    def _account_transaction(self, tx_id: str, block_height: int, tip: int, timestamp: int) -> CanonicalTransaction:
        return CanonicalTransaction(
            id=tx_id,
            chain=self.descriptor.chain,
            status=TxStatus.CONFIRMED,
            type="token_transfer",
            timestamp_ms=timestamp,
            block_height=block_height,
            sender=self._address(),
            recipient=self._address(),
            value=self.rng.randint(1, 10_000) * 1_000_000,
            fee=self.rng.randint(180, 5000),
            confirmations=tip - block_height + 1,
        )

    def _utxo_transaction(self, tx_id: str, block_height: int, tip: int, timestamp: int) -> CanonicalTransaction:
        input_values = [self.rng.randint(10_000, 500_000_000) for _ in range(self.rng.randint(1, 2))]
        total_in = sum(input_values)
        fee = self.rng.randint(0, min(total_in // 100, 100_000))
        spendable = total_in - fee

        first_output = self.rng.randint(0, spendable)
        output_values = [first_output, spendable - first_output]

        inputs = [
            TxInput(txid=self._hash(), vout=self.rng.randint(0, 3), address=self._address(), value=value)
            for value in input_values
        ]
        outputs = [
            TxOutput(n=n, address=self._address(), value=value, script_type="v0_p2wpkh")
            for n, value in enumerate(output_values)
        ]

        tx_type = "transfer"
        if self.descriptor.family == "bip300":
            tx_type = self.rng.choice(SIDECHAIN_TX_TYPES)

        return CanonicalTransaction(
            id=tx_id,
            chain=self.descriptor.chain,
            status=TxStatus.CONFIRMED,
            type=tx_type,
            timestamp_ms=timestamp,
            block_height=block_height,
            sender=inputs[0].address,
            recipient=outputs[0].address,
            value=outputs[0].value,
            fee=fee,
            confirmations=tip - block_height + 1,
            inputs=inputs,
            outputs=outputs,
        )

    # ==================== Addresses & Stats ====================

    def address(self, address: str) -> CanonicalAddress:
        """Synthesize a balance summary for the requested address."""
        unit = 10 ** self.descriptor.decimals
        return CanonicalAddress(
            address=address,
            chain=self.descriptor.chain,
            balance=self.rng.randint(0, 100 * unit),
            unconfirmed_balance=0,
            tx_count=self.rng.randint(1, 1000),
        )

    def token_balance(self) -> int:
        """Synthesize a token balance of at most one whole 8-decimal unit."""
        return self.rng.randint(0, 10 ** 8)

    def stats(self) -> CanonicalStats:
        """Synthesize a network statistics snapshot at the seed height."""
        return CanonicalStats(
            chain=self.descriptor.chain,
            block_height=self._tip_height(),
            tx_count=self.rng.randint(100_000, 10_000_000),
            mempool_size=self.rng.randint(100, 10_000),
            recommended_fee_rate=self.descriptor.fallback_fee_rate,
            fee_rate_unit=self.descriptor.fee_rate_unit,
        )
