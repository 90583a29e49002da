"""
sBTC operation classifier.

Recognizes Stacks contract calls and token transfers that touch the sBTC
contracts and turns them into SbtcOperation records: operation type from
the function name, recipient/amount/memo from the call arguments, the
linked Bitcoin transaction from the event log, and a fee analysis.
"""

import re
from typing import Iterable, List, Optional

import structlog

from chain_explainer.core.fee_analyzer import analyze_fee_for
from chain_explainer.core.heuristics import (
    OPERATION_HEURISTICS,
    operation_type_for,
    references_sbtc,
)
from chain_explainer.models.canonical import (
    CanonicalTransaction,
    ContractCall,
    OperationStatus,
    OperationType,
    SbtcOperation,
    TxStatus,
)
from chain_explainer.models.networks import STACKS, NetworkDescriptor
from chain_explainer.utils.formatting import decode_memo, format_amount

logger = structlog.get_logger(__name__)

__all__ = ["OPERATION_HEURISTICS", "SbtcClassifier", "find_linked_tx_id"]

SBTC_DECIMALS = 8

RECIPIENT_ARGS = ("recipient", "to")
AMOUNT_ARGS = ("amount", "value")
MEMO_ARGS = ("memo",)

_HEX64 = re.compile(r'(?<![0-9a-fA-F])[0-9a-fA-F]{64}(?![0-9a-fA-F])')
_DIGITS = re.compile(r'\d+')
_SOME = re.compile(r'^\(some\s+(.*)\)$', re.DOTALL)

STATUS_MAP = {
    TxStatus.CONFIRMED: OperationStatus.COMPLETE,
    TxStatus.PENDING: OperationStatus.PENDING,
    TxStatus.FAILED: OperationStatus.FAILED,
}


def _unwrap_repr(value: str) -> str:
    """Strip Clarity optional wrappers and quoting from an argument repr."""
    text = value.strip()
    match = _SOME.match(text)
    if match:
        text = match.group(1).strip()
    text = text.replace('"', "").replace("'", "")
    return text


def _memo_from_repr(value: str) -> str:
    """Memo text from a Clarity repr: buffers are hex-decoded, strings kept as written."""
    text = value.strip()
    match = _SOME.match(text)
    if match:
        text = match.group(1).strip()
    if text == "none":
        return ""
    if text[:2].lower() == "0x":
        return decode_memo("0x" + text[2:])
    if text.startswith('u"'):
        text = text[1:]
    return text.replace('"', "").strip()


def find_linked_tx_id(texts: Iterable[str]) -> Optional[str]:
    """First standalone 64-hex substring across the texts, lowercased."""
    for text in texts:
        if not text:
            continue
        match = _HEX64.search(text)
        if match:
            return match.group(0).lower()
    return None


class SbtcClassifier:
    """Classify Stacks transactions as sBTC operations."""

    def __init__(self, descriptor: NetworkDescriptor):
        if descriptor.chain != STACKS:
            logger.warning("sBTC classifier bound to a non-Stacks network", network=descriptor.key)
        self.descriptor = descriptor
        self.known_contracts = descriptor.sbtc_contracts
        self.logger = logger.bind(component="sbtc_classifier", network=descriptor.key)

    def _is_sbtc(self, identifier: Optional[str]) -> bool:
        return references_sbtc(identifier, self.known_contracts)

    def involves_sbtc(self, tx: CanonicalTransaction) -> bool:
        """True when the call, the transferred asset or any event asset references sBTC."""
        if tx.contract_call is not None and self._is_sbtc(tx.contract_call.contract_id):
            return True
        if tx.token_transfer is not None and self._is_sbtc(tx.token_transfer.asset_identifier):
            return True
        return any(self._is_sbtc(event.asset_identifier) for event in tx.events)

    # ==================== Classification ====================

    def classify(self, tx: CanonicalTransaction) -> Optional[SbtcOperation]:
        """
        Classify a transaction.

        Returns:
            SbtcOperation, or None when the transaction is not an sBTC
            contract call or sBTC token transfer
        """
        contract_id = None
        function_name = None
        recipient = None
        amount = 0
        memo = ""

        if tx.contract_call is not None:
            call = tx.contract_call
            if not self._is_sbtc(call.contract_id):
                return None
            contract_id = call.contract_id
            function_name = call.function_name
            operation_type = operation_type_for(function_name)
            recipient, amount, memo = self._call_arguments(call)

        elif tx.token_transfer is not None:
            transfer = tx.token_transfer
            if not self._is_sbtc(transfer.asset_identifier):
                return None
            operation_type = OperationType.TRANSFER
            recipient = transfer.recipient or None
            amount = transfer.amount
            memo = decode_memo(transfer.memo)

        else:
            return None

        gas_cost_analysis = None
        if tx.fee > 0:
            gas_cost_analysis = analyze_fee_for(tx.fee, self.descriptor)

        operation = SbtcOperation(
            tx_id=tx.id,
            operation_type=operation_type,
            sender=tx.sender,
            recipient=recipient,
            amount=amount,
            amount_display=format_amount(amount, SBTC_DECIMALS),
            status=STATUS_MAP.get(tx.status, OperationStatus.FAILED),
            linked_chain_tx_id=find_linked_tx_id(event.value for event in tx.events),
            memo=memo,
            contract_id=contract_id,
            function_name=function_name,
            gas_cost_analysis=gas_cost_analysis,
            block_height=tx.block_height,
            timestamp_ms=tx.timestamp_ms,
        )

        self.logger.debug("Classified sBTC operation",
                          tx_id=tx.id,
                          operation_type=operation.operation_type.value,
                          status=operation.status.value)
        return operation

    def classify_many(self, txs: Iterable[CanonicalTransaction]) -> List[SbtcOperation]:
        """Classify a batch, dropping transactions that are not sBTC operations."""
        operations = []
        for tx in txs:
            operation = self.classify(tx)
            if operation is not None:
                operations.append(operation)
        return operations

    @staticmethod
    def _call_arguments(call: ContractCall):
        """Extract (recipient, amount, memo) from function arguments by name."""
        recipient = None
        amount = 0
        memo = ""

        for arg in call.function_args:
            if not arg.repr:
                continue
            if arg.name in RECIPIENT_ARGS:
                recipient = _unwrap_repr(arg.repr) or None
            elif arg.name in AMOUNT_ARGS:
                match = _DIGITS.search(arg.repr)
                if match:
                    amount = int(match.group(0))
            elif arg.name in MEMO_ARGS:
                memo = _memo_from_repr(arg.repr)

        return recipient, amount, memo
