"""Free-text identifier classification: transaction id, address or query."""

import re
from dataclasses import dataclass
from typing import Optional

from chain_explainer.core.errors import InvalidArgumentError


BITCOIN_TX_PATTERN = re.compile(r'^[0-9a-fA-F]{64}$')
STACKS_TX_PATTERN = re.compile(r'^0x[0-9a-fA-F]{64}$')

# Checked in order; the first matching subtype is recorded
BITCOIN_ADDRESS_PATTERNS = (
    ("p2pkh", re.compile(r'^1[a-km-zA-HJ-NP-Z1-9]{25,34}$')),
    ("p2sh", re.compile(r'^3[a-km-zA-HJ-NP-Z1-9]{25,34}$')),
    ("bech32", re.compile(r'^bc1[a-zA-HJ-NP-Z0-9]{25,89}$')),
    ("testnet", re.compile(r'^[mn2][a-km-zA-HJ-NP-Z1-9]{25,34}$')),
    ("testnet_bech32", re.compile(r'^tb1[a-zA-HJ-NP-Z0-9]{25,89}$')),
)

STACKS_ADDRESS_PATTERNS = (
    ("mainnet", re.compile(r'^SP[A-Z0-9]{33}$')),
    ("testnet", re.compile(r'^ST[A-Z0-9]{33}$')),
)

SIDECHAIN_ADDRESS_RULES = (
    ("thunder", "tb1", 26, 42),
    ("zside", "z", 26, 36),
    ("bitnames", "bn", 26, 42),
)


@dataclass(frozen=True)
class IdentifierClassification:
    """Outcome of classifying a user-supplied string."""
    kind: str
    normalized: str
    chain: Optional[str] = None
    subtype: Optional[str] = None

    @property
    def is_query(self) -> bool:
        return self.kind == "query"


def classify_identifier(text: str, context_chain: str = "bitcoin") -> IdentifierClassification:
    """Decide whether text is a transaction id, an address or a free-text query.

    Rules are checked in priority order and the first match wins. A bare
    64-hex string is a Bitcoin transaction unless the caller's context is
    Stacks. Malformed near-misses are queries, never errors.
    """
    if not isinstance(text, str):
        raise InvalidArgumentError(f"Identifier must be a string, got {type(text).__name__}")

    value = text.strip()
    if not value:
        return IdentifierClassification(kind="query", normalized=value)

    if BITCOIN_TX_PATTERN.match(value):
        chain = "stacks" if context_chain == "stacks" else "bitcoin"
        return IdentifierClassification(kind="tx", normalized=value, chain=chain)

    if STACKS_TX_PATTERN.match(value):
        return IdentifierClassification(kind="tx", normalized=value, chain="stacks")

    for subtype, pattern in BITCOIN_ADDRESS_PATTERNS:
        if pattern.match(value):
            return IdentifierClassification(
                kind="address", normalized=value, chain="bitcoin", subtype=subtype
            )

    for subtype, pattern in STACKS_ADDRESS_PATTERNS:
        if pattern.match(value):
            return IdentifierClassification(
                kind="address", normalized=value, chain="stacks", subtype=subtype
            )

    return IdentifierClassification(kind="query", normalized=value)


# ==================== Convenience Predicates ====================

def is_transaction_hash(value: str) -> bool:
    """Check whether a string is a Bitcoin or Stacks transaction id."""
    if not isinstance(value, str):
        return False
    return bool(BITCOIN_TX_PATTERN.match(value) or STACKS_TX_PATTERN.match(value))


def validate_bitcoin_address(address: str) -> bool:
    """Validate Bitcoin address format (mainnet or testnet)."""
    if not isinstance(address, str) or not address:
        return False
    return any(pattern.match(address) for _, pattern in BITCOIN_ADDRESS_PATTERNS)


def validate_stacks_address(address: str) -> bool:
    """Validate Stacks address format."""
    if not isinstance(address, str) or not address:
        return False
    return any(pattern.match(address) for _, pattern in STACKS_ADDRESS_PATTERNS)


def analyze_sidechain_address(address: str) -> Optional[str]:
    """Return the sidechain an address belongs to by prefix and length, if any."""
    if not isinstance(address, str) or not address:
        return None
    for sidechain, prefix, min_len, max_len in SIDECHAIN_ADDRESS_RULES:
        if address.startswith(prefix) and min_len <= len(address) <= max_len:
            return sidechain
    return None
