"""Display formatting for amounts, memos, addresses and transaction labels."""

from decimal import Decimal, InvalidOperation, localcontext
from typing import Any, Optional

from chain_explainer.core.heuristics import operation_type_for
from chain_explainer.models.canonical import CanonicalTransaction, OperationType
from chain_explainer.utils.time import to_utc_timestamp


_SBTC_LABELS = {
    OperationType.DEPOSIT: "sBTC Deposit",
    OperationType.WITHDRAWAL: "sBTC Withdrawal",
    OperationType.TRANSFER: "sBTC Transfer",
    OperationType.UNKNOWN: "sBTC Operation",
}

_BITCOIN_PREFIXES = ("1", "3", "bc1", "tb1", "m", "n", "2")


def format_amount(minor_units: Any, decimals: int) -> str:
    """Render minor units as a fixed-point string with ``decimals`` digits.

    Zero and anything non-numeric render as ``"0"``.
    """
    if minor_units is None or isinstance(minor_units, bool):
        return "0"
    try:
        value = Decimal(str(minor_units).strip())
    except InvalidOperation:
        return "0"
    if not value.is_finite() or value == 0:
        return "0"

    with localcontext() as ctx:
        ctx.prec = 80
        value = value.to_integral_value()
        quantum = Decimal(1).scaleb(-decimals)
        return format(value.scaleb(-decimals).quantize(quantum), "f")


def decode_memo(memo_hex: Optional[str]) -> str:
    """Decode a hex memo to text, stripping null bytes. Failures yield ``""``."""
    if not memo_hex:
        return ""
    text = memo_hex.strip()
    if text.startswith("0x"):
        text = text[2:]
    if not text:
        return ""
    try:
        decoded = bytes.fromhex(text).decode("utf-8")
    except (ValueError, UnicodeDecodeError):
        return ""
    return decoded.replace("\x00", "").strip()


def shorten_address(address: Optional[str]) -> str:
    """Shorten an address or id for display."""
    if not address:
        return ""
    if address.startswith("0x"):
        return f"{address[:8]}...{address[-6:]}"
    if address.startswith(_BITCOIN_PREFIXES) or address.startswith(("SP", "ST")):
        return f"{address[:6]}...{address[-4:]}"
    if len(address) > 16:
        return f"{address[:6]}...{address[-4:]}"
    return address


def describe_transaction_type(tx: CanonicalTransaction) -> str:
    """Human-readable label for a transaction."""
    if tx.type == "token_transfer":
        return "STX Transfer"

    if tx.type == "contract_call":
        if tx.contract_call is None:
            return "Contract Call"
        contract_id = tx.contract_call.contract_id.lower()
        if any(marker in contract_id for marker in ("sbtc", "bridge", "bitcoin")):
            return _SBTC_LABELS[operation_type_for(tx.contract_call.function_name)]
        return f"Contract Call: {tx.contract_call.function_name}"

    if tx.type == "smart_contract":
        return "Contract Deployment"
    if tx.type == "coinbase":
        return "Coinbase"
    if not tx.type:
        return "Unknown"
    label = tx.type.replace("_", " ")
    return label[0].upper() + label[1:]


def format_timestamp(timestamp_ms: Optional[int]) -> str:
    """Format a millisecond timestamp as a UTC string."""
    if timestamp_ms is None:
        return "Unknown"
    try:
        moment = to_utc_timestamp(timestamp_ms / 1000)
    except (OverflowError, OSError, ValueError):
        return "Invalid date"
    return moment.strftime("%Y-%m-%d %H:%M:%S UTC")
