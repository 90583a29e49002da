"""Utility functions and helpers."""

from chain_explainer.utils.logging import setup_logging
from chain_explainer.utils.bitcoin import btc_to_satoshi, to_minor_units
from chain_explainer.utils.formatting import (
    decode_memo,
    describe_transaction_type,
    format_amount,
    format_timestamp,
    shorten_address,
)
from chain_explainer.utils.time import to_utc_timestamp

__all__ = [
    "setup_logging",
    "btc_to_satoshi",
    "to_minor_units",
    "decode_memo",
    "describe_transaction_type",
    "format_amount",
    "format_timestamp",
    "shorten_address",
    "to_utc_timestamp",
]
