"""Explanatory sentences for classified sBTC operations."""

from typing import List, Optional

from chain_explainer.models.canonical import (
    CostTier,
    OperationStatus,
    OperationType,
    SbtcOperation,
)


OPERATION_EXPLANATIONS = {
    OperationType.DEPOSIT: (
        "sBTC deposits lock real BTC in the Stacks Bitcoin wallet and mint an "
        "equivalent amount of sBTC on the Stacks blockchain."
    ),
    OperationType.WITHDRAWAL: (
        "sBTC withdrawals burn sBTC on the Stacks blockchain and release real "
        "BTC from the Stacks Bitcoin wallet."
    ),
    OperationType.TRANSFER: (
        "sBTC transfers move sBTC between addresses on the Stacks blockchain "
        "without affecting the underlying BTC."
    ),
    OperationType.UNKNOWN: "This appears to be a custom interaction with the sBTC contract.",
}

TRANSFER_FINALITY = (
    "Transfers are fast and typically finalize within minutes, unlike "
    "cross-chain operations that require Bitcoin confirmations."
)
DEPOSIT_UNLINKED = (
    "The linked Bitcoin transaction was not found in the transaction events. "
    "This might be a pending operation."
)
WITHDRAWAL_PENDING = (
    "This withdrawal is still pending. It typically takes 150+ Bitcoin "
    "confirmations before BTC is released."
)


def _short_tx_id(tx_id: str) -> str:
    return f"{tx_id[:8]}...{tx_id[-4:]}"


def _detail_sentences(op: SbtcOperation) -> List[str]:
    linked: Optional[str] = op.linked_chain_tx_id
    if op.operation_type == OperationType.DEPOSIT:
        if linked:
            return [f"This operation is linked to a Bitcoin transaction ({_short_tx_id(linked)})."]
        return [DEPOSIT_UNLINKED]

    if op.operation_type == OperationType.WITHDRAWAL:
        if op.status == OperationStatus.PENDING:
            return [WITHDRAWAL_PENDING]
        if op.status == OperationStatus.COMPLETE and linked:
            return [f"The BTC was released in Bitcoin transaction {_short_tx_id(linked)}."]
        return []

    if op.operation_type == OperationType.TRANSFER:
        return [TRANSFER_FINALITY]
    return []


def _gas_sentences(op: SbtcOperation, native_symbol: str) -> List[str]:
    gas = op.gas_cost_analysis
    if gas is None:
        return []

    cost = f"({gas.cost_in_native} {native_symbol}, ${gas.cost_in_usd})"
    if gas.tier == CostTier.HIGH:
        sentences = [f"The gas cost for this transaction {cost} is relatively high."]
        if gas.optimization:
            sentences.append(gas.optimization)
        return sentences
    if gas.tier == CostTier.LOW:
        return [f"The gas cost for this transaction {cost} is very efficient."]
    return []


def generate_insights(op: SbtcOperation, native_symbol: str = "STX") -> List[str]:
    """Build the ordered list of explanatory sentences for an operation.

    Pure template expansion keyed by operation type, status and cost tier:
    identical input always yields an identical list.
    """
    operation_type = OperationType(op.operation_type)
    insights = [
        f"This is an sBTC {operation_type.value} operation involving {op.amount_display} sBTC.",
        OPERATION_EXPLANATIONS[operation_type],
    ]
    insights.extend(_detail_sentences(op))
    insights.extend(_gas_sentences(op, native_symbol))
    return insights
