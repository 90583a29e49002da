"""Canonical chain-agnostic records produced by every chain adapter."""

from enum import Enum
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, Field


class TxStatus(str, Enum):
    """Transaction lifecycle status."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class OperationType(str, Enum):
    """sBTC bridge operation kinds."""
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    TRANSFER = "transfer"
    UNKNOWN = "unknown"


class OperationStatus(str, Enum):
    """sBTC operation status."""
    PENDING = "pending"
    COMPLETE = "complete"
    FAILED = "failed"


class CostTier(str, Enum):
    """Fee cost tier."""
    LOW = "low"
    AVERAGE = "average"
    HIGH = "high"


class CanonicalModel(BaseModel):
    """Immutable base for canonical records."""

    class Config:
        frozen = True
        extra = "forbid"


# ==================== Blocks ====================

class CanonicalBlock(CanonicalModel):
    """Block normalized across Bitcoin, Stacks and sidechains."""

    chain: str = Field(..., description="Chain tag (bitcoin, stacks, thunder, zside, bitnames)")
    hash: str = Field(default="", description="Block hash")
    height: int = Field(..., ge=0, description="Block height")
    timestamp_ms: int = Field(..., ge=0, description="Block time in milliseconds since epoch")
    tx_count: int = Field(default=0, ge=0)
    size_bytes: int = Field(default=0, ge=0)
    prev_hash: str = Field(default="")
    merkle_root: str = Field(default="")
    nonce: int = Field(default=0, ge=0)
    bits: str = Field(default="")
    confirmations: int = Field(default=0, ge=0)


# ==================== Transactions ====================

class TxInput(CanonicalModel):
    """UTXO-style transaction input."""
    txid: str = ""
    vout: int = 0
    address: str = ""
    value: int = Field(default=0, ge=0, description="Value in minor units")


class TxOutput(CanonicalModel):
    """UTXO-style transaction output."""
    n: int = 0
    address: str = ""
    value: int = Field(default=0, ge=0, description="Value in minor units")
    script_type: str = ""


class FunctionArg(CanonicalModel):
    """Typed contract-call argument as reported by the chain API."""
    name: str = ""
    repr: str = ""
    type: str = ""


class ContractCall(CanonicalModel):
    """Contract call details for account-model chains."""
    contract_id: str
    function_name: str = ""
    function_args: List[FunctionArg] = Field(default_factory=list)


class TokenTransfer(CanonicalModel):
    """Native or fungible token transfer details."""
    recipient: str = ""
    amount: int = Field(default=0, ge=0)
    memo: str = ""
    asset_identifier: Optional[str] = None


class TxEvent(CanonicalModel):
    """Transaction event with its payload rendered as text."""
    event_type: str = ""
    value: str = ""
    asset_identifier: Optional[str] = None


class CanonicalTransaction(CanonicalModel):
    """Transaction normalized across chains."""

    id: str = Field(..., description="Transaction id in the chain's native form")
    chain: str
    status: TxStatus = TxStatus.PENDING
    type: str = Field(default="transfer", description="Chain-specific transaction type")
    timestamp_ms: int = Field(..., ge=0)
    block_height: Optional[int] = Field(default=None, ge=0)
    sender: str = ""
    recipient: str = ""
    value: int = Field(default=0, ge=0, description="Transferred value in minor units")
    fee: int = Field(default=0, ge=0, description="Fee in minor units")
    confirmations: int = Field(default=0, ge=0)
    inputs: List[TxInput] = Field(default_factory=list)
    outputs: List[TxOutput] = Field(default_factory=list)
    contract_call: Optional[ContractCall] = None
    token_transfer: Optional[TokenTransfer] = None
    events: List[TxEvent] = Field(default_factory=list)


# ==================== Addresses & Stats ====================

class CanonicalAddress(CanonicalModel):
    """Address balance summary."""
    address: str
    chain: str
    balance: int = Field(default=0, description="Confirmed balance in minor units")
    unconfirmed_balance: int = Field(default=0, description="Pending balance delta in minor units")
    tx_count: int = Field(default=0, ge=0)


class CanonicalStats(CanonicalModel):
    """Network statistics snapshot."""
    chain: str
    block_height: int = Field(default=0, ge=0)
    tx_count: int = Field(default=0, ge=0, description="Total or mempool transaction count, provider-dependent")
    mempool_size: int = Field(default=0, ge=0)
    recommended_fee_rate: float = Field(default=0.0, ge=0)
    fee_rate_unit: str = ""


# ==================== sBTC Operations ====================

class GasCostAnalysis(CanonicalModel):
    """Fee cost expressed in native units and USD with a tier."""
    cost_in_native: str
    cost_in_usd: str
    tier: CostTier
    optimization: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Render as a plain dict; optimization is omitted when absent."""
        return self.model_dump(mode="json", exclude_none=True)


class SbtcOperation(CanonicalModel):
    """sBTC bridge operation derived from a Stacks transaction."""
    tx_id: str
    operation_type: OperationType
    sender: str = ""
    recipient: Optional[str] = None
    amount: int = Field(default=0, ge=0, description="Amount in minor units (8 decimals)")
    amount_display: str = "0"
    status: OperationStatus
    linked_chain_tx_id: Optional[str] = None
    memo: Optional[str] = None
    contract_id: Optional[str] = None
    function_name: Optional[str] = None
    gas_cost_analysis: Optional[GasCostAnalysis] = None
    block_height: Optional[int] = None
    timestamp_ms: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Render as a plain dict without absent optional fields."""
        return self.model_dump(mode="json", exclude_none=True)


# ==================== Fetch Results ====================

@dataclass(frozen=True)
class Live:
    """Record delivered by a live provider."""
    record: Any
    source: str

    @property
    def is_synthetic(self) -> bool:
        return False


@dataclass(frozen=True)
class Synthetic:
    """Record produced by the fallback synthesizer."""
    record: Any
    reason: str

    @property
    def is_synthetic(self) -> bool:
        return True


FetchResult = Union[Live, Synthetic]
