"""Raw provider payload schemas, validated once at the adapter boundary.

One group of models per provider family: Esplora (mempool.space and
blockstream.info), Hiro (Stacks extended API) and the BIP300 sidechain API.
Every field an adapter reads has a default so mapping to canonical records
is total; only identity fields (ids, heights) are required.
"""

from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, Field, RootModel


class PayloadModel(BaseModel):
    """Base for raw provider payloads."""

    class Config:
        extra = "ignore"
        populate_by_name = True


Amount = Union[int, float, str]


# ==================== Esplora ====================

class EsploraBlock(PayloadModel):
    id: str
    height: int = Field(..., ge=0)
    timestamp: Optional[int] = None
    tx_count: Optional[int] = None
    size: int = 0
    previousblockhash: Optional[str] = None
    merkle_root: str = ""
    nonce: int = 0
    bits: Union[int, str] = 0


class EsploraPrevout(PayloadModel):
    scriptpubkey_address: Optional[str] = None
    scriptpubkey_type: str = ""
    value: int = 0


class EsploraVin(PayloadModel):
    txid: str = ""
    vout: int = 0
    prevout: Optional[EsploraPrevout] = None
    is_coinbase: bool = False


class EsploraVout(PayloadModel):
    scriptpubkey_address: Optional[str] = None
    scriptpubkey_type: str = ""
    value: int = 0


class EsploraTxStatus(PayloadModel):
    confirmed: bool = False
    block_height: Optional[int] = None
    block_hash: Optional[str] = None
    block_time: Optional[int] = None


class EsploraTx(PayloadModel):
    txid: str
    vin: List[EsploraVin] = Field(default_factory=list)
    vout: List[EsploraVout] = Field(default_factory=list)
    size: int = 0
    fee: int = 0
    status: EsploraTxStatus = Field(default_factory=EsploraTxStatus)


class EsploraAddressStats(PayloadModel):
    funded_txo_sum: int = 0
    spent_txo_sum: int = 0
    tx_count: int = 0


class EsploraAddress(PayloadModel):
    address: str
    chain_stats: EsploraAddressStats = Field(default_factory=EsploraAddressStats)
    mempool_stats: EsploraAddressStats = Field(default_factory=EsploraAddressStats)


class EsploraMempool(PayloadModel):
    count: int = 0
    vsize: int = 0
    total_fee: int = 0


class MempoolRecommendedFees(PayloadModel):
    """mempool.space /v1/fees/recommended (sat/vB)."""
    fastest_fee: float = Field(default=0.0, alias="fastestFee")
    half_hour_fee: float = Field(default=0.0, alias="halfHourFee")
    hour_fee: float = Field(default=0.0, alias="hourFee")
    economy_fee: float = Field(default=0.0, alias="economyFee")
    minimum_fee: float = Field(default=0.0, alias="minimumFee")


class BlockstreamFeeEstimates(RootModel[Dict[str, float]]):
    """blockstream.info /fee-estimates: confirmation target -> sat/vB."""

    def to_recommended(self) -> MempoolRecommendedFees:
        """Project block-target estimates onto the mempool.space shape."""
        estimates = self.root

        def pick(*targets: str) -> float:
            for target in targets:
                if target in estimates:
                    return float(estimates[target])
            return 0.0

        return MempoolRecommendedFees(
            fastestFee=pick("1", "2"),
            halfHourFee=pick("3", "2"),
            hourFee=pick("6", "5", "4"),
            economyFee=pick("144", "504", "1008"),
            minimumFee=min(estimates.values()) if estimates else 0.0,
        )


# ==================== Hiro (Stacks) ====================

class HiroBlock(PayloadModel):
    height: int = Field(..., ge=0)
    hash: str
    parent_block_hash: str = ""
    block_time: Optional[int] = None
    burn_block_time: Optional[int] = None
    tx_count: Optional[int] = None
    txs: List[Any] = Field(default_factory=list)


class HiroBlockList(PayloadModel):
    results: List[HiroBlock]
    total: int = 0


class HiroFunctionArg(PayloadModel):
    name: str = ""
    repr: str = ""
    type: str = ""
    hex: str = ""


class HiroContractCall(PayloadModel):
    contract_id: str
    function_name: str = ""
    function_args: List[HiroFunctionArg] = Field(default_factory=list)


class HiroTokenTransfer(PayloadModel):
    recipient_address: str = ""
    amount: Amount = "0"
    memo: str = ""
    asset_identifier: Optional[str] = None


class HiroEvent(PayloadModel):
    """Event entries vary by type; unknown keys are kept for text rendering."""

    class Config:
        extra = "allow"
        populate_by_name = True

    event_type: str = ""
    value: Optional[Any] = None
    asset_identifier: Optional[str] = None
    contract_identifier: Optional[str] = None
    asset: Optional[Dict[str, Any]] = None
    contract_log: Optional[Dict[str, Any]] = None


class HiroTx(PayloadModel):
    tx_id: str
    tx_type: str = ""
    tx_status: str = "pending"
    fee_rate: Amount = "0"
    sender_address: str = ""
    block_height: Optional[int] = None
    block_time: Optional[int] = None
    burn_block_time: Optional[int] = None
    receipt_time: Optional[int] = None
    token_transfer: Optional[HiroTokenTransfer] = None
    contract_call: Optional[HiroContractCall] = None
    events: List[HiroEvent] = Field(default_factory=list)


class HiroTxList(PayloadModel):
    results: List[HiroTx]
    total: int = 0


class HiroStxBalance(PayloadModel):
    balance: Amount = "0"
    locked: Amount = "0"


class HiroBalances(PayloadModel):
    stx: HiroStxBalance = Field(default_factory=HiroStxBalance)
    fungible_tokens: Dict[str, Dict[str, Any]] = Field(default_factory=dict)


class HiroTotal(PayloadModel):
    """Any paginated Hiro listing where only the total matters."""
    total: int = 0


class HiroTransferFee(RootModel[int]):
    """/v2/fees/transfer returns a bare integer (micro-STX per byte)."""
    pass


# ==================== BIP300 Sidechain ====================

class SidechainBlock(PayloadModel):
    hash: str = ""
    height: int = Field(..., ge=0)
    time: Optional[int] = None
    tx_count: Optional[int] = None
    txs: List[Any] = Field(default_factory=list)
    size: int = 0
    previousblockhash: str = ""
    merkleroot: str = ""
    nonce: int = 0
    bits: Union[int, str] = ""
    confirmations: int = 0


class SidechainBlockList(PayloadModel):
    blocks: List[SidechainBlock]


class SidechainVin(PayloadModel):
    txid: str = ""
    vout: int = 0
    addresses: List[str] = Field(default_factory=list)
    value: Optional[Amount] = None
    coinbase: Optional[str] = None


class SidechainScriptPubKey(PayloadModel):
    type: str = ""
    addresses: List[str] = Field(default_factory=list)


class SidechainVout(PayloadModel):
    n: int = 0
    value: Amount = 0
    script_pub_key: SidechainScriptPubKey = Field(
        default_factory=SidechainScriptPubKey, alias="scriptPubKey"
    )


class SidechainTx(PayloadModel):
    txid: str
    status: Optional[str] = None
    type: Optional[str] = None
    time: Optional[int] = None
    timestamp: Optional[int] = None
    blockheight: Optional[int] = None
    block_height: Optional[int] = None
    fee: Amount = 0
    confirmations: int = 0
    vin: List[SidechainVin] = Field(default_factory=list)
    vout: List[SidechainVout] = Field(default_factory=list)


class SidechainAddress(PayloadModel):
    address: str = ""
    balance: Amount = "0"
    tx_count: int = 0
    unconfirmed_balance: Amount = "0"


class SidechainStats(PayloadModel):
    block_height: int = 0
    tx_count: int = 0
    mempool_size: int = 0
    avg_fee: Amount = 0
    fee_unit: str = "BTC"


class SidechainNodeStatus(PayloadModel):
    status: str = "connected"
    block_height: int = 0
    version: str = ""
    peers: int = 0
    uptime: int = 0
    mainchain_block_height: int = 0
    mainchain_sync_status: float = 0.0


class SidechainMempool(PayloadModel):
    size: int = 0
    bytes: int = 0
    mempoolminfee: float = 0.0
