"""Bitcoin and Stacks address and unit helpers."""

import re
import hashlib
import base58
from decimal import Decimal, InvalidOperation
from typing import Any


# Satoshis per Bitcoin
SATOSHIS_PER_BTC = Decimal('100000000')

BECH32_CHARS = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
C32_CHARS = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"

_LEADING_NUMBER = re.compile(r'^\s*(-?\d+(?:\.\d+)?(?:[eE][-+]?\d+)?)')

# Version bytes for base58check P2PKH
P2PKH_VERSION = {"mainnet": b'\x00', "testnet": b'\x6f'}


def btc_to_satoshi(btc: Any) -> int:
    """Convert a BTC-denominated value to satoshis.

    Accepts numbers and strings such as ``"0.5"`` or ``"0.5 BTC"``.
    Anything unparsable is treated as zero.
    """
    if btc is None or isinstance(btc, bool):
        return 0
    match = _LEADING_NUMBER.match(str(btc))
    if not match:
        return 0
    try:
        value = Decimal(match.group(1))
    except InvalidOperation:
        return 0
    return max(int((value * SATOSHIS_PER_BTC).to_integral_value()), 0)


def to_minor_units(value: Any) -> int:
    """Parse an integer amount that a provider may send as a string."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(value, 0)
    match = _LEADING_NUMBER.match(str(value))
    if not match:
        return 0
    return max(int(Decimal(match.group(1))), 0)


def hash160_to_p2pkh_address(pubkey_hash: bytes, network: str = "mainnet") -> str:
    """Convert pubkey hash to P2PKH address."""
    payload = P2PKH_VERSION[network] + pubkey_hash

    # Double SHA256 for checksum
    checksum = hashlib.sha256(hashlib.sha256(payload).digest()).digest()[:4]

    return base58.b58encode(payload + checksum).decode('ascii')


def validate_base58_address(address: str) -> bool:
    """Verify the base58check checksum of a P2PKH/P2SH address."""
    try:
        decoded = base58.b58decode(address)
    except ValueError:
        return False
    if len(decoded) != 25:
        return False

    payload = decoded[:-4]
    checksum = decoded[-4:]
    hash_result = hashlib.sha256(hashlib.sha256(payload).digest()).digest()
    return hash_result[:4] == checksum
