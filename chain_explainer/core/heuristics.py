"""Ordered substring heuristics shared by the sBTC classifier and display helpers."""

from typing import Iterable, Optional, Tuple

from chain_explainer.models.canonical import OperationType


# First match wins. "unwrap" contains "wrap", so it resolves to DEPOSIT.
OPERATION_HEURISTICS: Tuple[Tuple[str, OperationType], ...] = (
    ("deposit", OperationType.DEPOSIT),
    ("mint", OperationType.DEPOSIT),
    ("wrap", OperationType.DEPOSIT),
    ("withdraw", OperationType.WITHDRAWAL),
    ("burn", OperationType.WITHDRAWAL),
    ("unwrap", OperationType.WITHDRAWAL),  # shadowed by "wrap"
    ("transfer", OperationType.TRANSFER),
)

SBTC_MARKERS: Tuple[str, ...] = ("sbtc", "wrapped-bitcoin")


def operation_type_for(function_name: Optional[str]) -> OperationType:
    """Map a contract function name to an operation type."""
    name = (function_name or "").lower()
    for needle, operation_type in OPERATION_HEURISTICS:
        if needle in name:
            return operation_type
    return OperationType.UNKNOWN


def references_sbtc(identifier: Optional[str], known_contracts: Iterable[str] = ()) -> bool:
    """Check a contract id or asset identifier against sBTC contracts and markers."""
    if not identifier:
        return False
    if any(contract in identifier for contract in known_contracts):
        return True
    lowered = identifier.lower()
    return any(marker in lowered for marker in SBTC_MARKERS)
