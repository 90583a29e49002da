"""
Unit tests for the sBTC classifier.

Tests contract matching, operation-type heuristics, argument extraction,
linked Bitcoin transaction discovery and fee analysis attachment.
"""

import pytest

from chain_explainer.core.heuristics import operation_type_for
from chain_explainer.core.sbtc_classifier import (
    OPERATION_HEURISTICS,
    SbtcClassifier,
    find_linked_tx_id,
)
from chain_explainer.models.canonical import (
    CanonicalTransaction,
    CostTier,
    FunctionArg,
    OperationStatus,
    OperationType,
    TxEvent,
    TxStatus,
)
from conftest import BTC_TX_ID, SBTC_CONTRACT, STX_RECIPIENT, STX_TX_ID


@pytest.fixture
def classifier(registry):
    """Classifier bound to Stacks mainnet."""
    return SbtcClassifier(registry.stacks)


class TestContractMatching:
    """Tests for deciding whether a transaction is an sBTC operation."""

    def test_configured_contract_withdraw_is_withdrawal(self, classifier, make_contract_call):
        """Test withdraw-btc on the configured mainnet contract is a withdrawal."""
        op = classifier.classify(make_contract_call(function_name="withdraw-btc"))

        assert op is not None
        assert op.operation_type == OperationType.WITHDRAWAL
        assert op.contract_id == SBTC_CONTRACT
        assert op.function_name == "withdraw-btc"

    def test_non_sbtc_contract_returns_none(self, classifier, make_contract_call):
        """Test a contract call that does not reference sBTC is ignored."""
        tx = make_contract_call(
            contract_id="SP1Y5YSTAHZ88XYK1VPDH24GY0HPX5J4JECTMY4A1.univ2-router",
            function_name="swap-exact-tokens-for-tokens",
        )
        assert classifier.classify(tx) is None

    def test_marker_match_is_case_insensitive(self, classifier, make_contract_call):
        """Test contract ids containing sBTC in any case match."""
        tx = make_contract_call(contract_id="SP000000000000000000002Q6VF78.My-SBTC-Vault", function_name="deposit")
        op = classifier.classify(tx)
        assert op is not None
        assert op.operation_type == OperationType.DEPOSIT

    def test_matched_contract_without_heuristic_is_unknown(self, classifier, make_contract_call):
        """Test a matched contract with an unrecognized function is unknown, not None."""
        op = classifier.classify(make_contract_call(function_name="set-approved-signer"))
        assert op is not None
        assert op.operation_type == OperationType.UNKNOWN

    def test_plain_transfer_without_payload_returns_none(self, classifier):
        """Test transactions that are neither calls nor token transfers are ignored."""
        tx = CanonicalTransaction(id=STX_TX_ID, chain="stacks", type="coinbase", timestamp_ms=0)
        assert classifier.classify(tx) is None

    def test_involves_sbtc_checks_event_assets(self, classifier):
        """Test involves_sbtc also looks at event asset identifiers."""
        tx = CanonicalTransaction(
            id=STX_TX_ID,
            chain="stacks",
            type="coinbase",
            timestamp_ms=0,
            events=[TxEvent(event_type="fungible_token_asset", asset_identifier=f"{SBTC_CONTRACT}::wrapped-bitcoin")],
        )
        assert classifier.involves_sbtc(tx) is True
        assert classifier.classify(tx) is None


class TestOperationHeuristics:
    """Tests for the ordered function-name table."""

    @pytest.mark.parametrize("function_name,expected", [
        ("deposit", OperationType.DEPOSIT),
        ("mint-sbtc", OperationType.DEPOSIT),
        ("wrap", OperationType.DEPOSIT),
        ("withdraw-btc", OperationType.WITHDRAWAL),
        ("burn", OperationType.WITHDRAWAL),
        ("transfer", OperationType.TRANSFER),
        ("TRANSFER-MANY", OperationType.TRANSFER),
        ("get-balance", OperationType.UNKNOWN),
    ])
    def test_function_name_mapping(self, classifier, make_contract_call, function_name, expected):
        """Test each heuristic entry maps to its operation type."""
        op = classifier.classify(make_contract_call(function_name=function_name))
        assert op.operation_type == expected

    def test_first_match_wins(self, classifier, make_contract_call):
        """Test table order decides: unwrap contains wrap, which is listed first."""
        op = classifier.classify(make_contract_call(function_name="unwrap"))
        assert op.operation_type == OperationType.DEPOSIT

    def test_table_order(self):
        """Test the heuristic table keeps deposit markers ahead of withdrawal markers."""
        needles = [needle for needle, _ in OPERATION_HEURISTICS]
        assert needles.index("wrap") < needles.index("unwrap")
        assert needles[-1] == "transfer"

    def test_only_unwrap_is_shadowed(self):
        """Test every heuristic row resolves to its own type except unwrap."""
        shadowed = [
            needle for needle, operation_type in OPERATION_HEURISTICS
            if operation_type_for(needle) != operation_type
        ]
        assert shadowed == ["unwrap"]


class TestArgumentExtraction:
    """Tests for recipient, amount and memo extraction."""

    def test_extracts_arguments_by_name(self, classifier, make_contract_call):
        """Test recipient, amount and memo are read from named arguments."""
        tx = make_contract_call(
            function_name="deposit",
            args=[
                FunctionArg(name="recipient", repr=f"'{STX_RECIPIENT}", type="principal"),
                FunctionArg(name="amount", repr="u100000000", type="uint"),
                FunctionArg(name="memo", repr="(some 0x68656c6c6f00)", type="optional"),
            ],
        )
        op = classifier.classify(tx)

        assert op.recipient == STX_RECIPIENT
        assert op.amount == 100000000
        assert op.amount_display == "1.00000000"
        assert op.memo == "hello"

    def test_alternate_argument_names(self, classifier, make_contract_call):
        """Test 'to' and 'value' are accepted as recipient and amount."""
        tx = make_contract_call(
            function_name="transfer",
            args=[
                FunctionArg(name="to", repr=f'"{STX_RECIPIENT}"'),
                FunctionArg(name="value", repr="u2500"),
            ],
        )
        op = classifier.classify(tx)

        assert op.recipient == STX_RECIPIENT
        assert op.amount == 2500
        assert op.amount_display == "0.00002500"

    def test_undecodable_memo_is_empty(self, classifier, make_contract_call):
        """Test memo decode failure yields an empty memo rather than an error."""
        tx = make_contract_call(args=[FunctionArg(name="memo", repr="0xzz")])
        assert classifier.classify(tx).memo == ""

    @pytest.mark.parametrize("memo_repr,expected", [
        ('"invoice-42"', "invoice-42"),
        ('(some u"order 7")', "order 7"),
        ("(some 0x696e766f696365)", "invoice"),
        ("none", ""),
    ])
    def test_memo_forms(self, classifier, make_contract_call, memo_repr, expected):
        """Test string memos are kept as written and only 0x buffers are hex-decoded."""
        tx = make_contract_call(args=[FunctionArg(name="memo", repr=memo_repr)])
        assert classifier.classify(tx).memo == expected

    def test_missing_amount_is_zero(self, classifier, make_contract_call):
        """Test a call without an amount argument reports zero."""
        op = classifier.classify(make_contract_call())
        assert op.amount == 0
        assert op.amount_display == "0"

    def test_token_transfer(self, classifier, sbtc_token_transfer):
        """Test an sBTC token transfer is always a transfer."""
        op = classifier.classify(sbtc_token_transfer)

        assert op.operation_type == OperationType.TRANSFER
        assert op.recipient == STX_RECIPIENT
        assert op.amount == 250000
        assert op.memo == "payment"
        assert op.status == OperationStatus.PENDING
        assert op.contract_id is None


class TestLinkedTransaction:
    """Tests for linked Bitcoin transaction discovery in events."""

    def test_first_hex64_in_events(self, classifier, make_contract_call):
        """Test the first 64-hex substring in any event becomes the linked id."""
        tx = make_contract_call(
            function_name="deposit",
            events=[
                TxEvent(event_type="stx_transfer_event", value="no ids here"),
                TxEvent(event_type="smart_contract_log", value=f"(tuple (btc-txid 0x{BTC_TX_ID.upper()}))"),
                TxEvent(event_type="smart_contract_log", value="f" * 64),
            ],
        )
        op = classifier.classify(tx)
        assert op.linked_chain_tx_id == BTC_TX_ID

    def test_no_events_no_link(self, classifier, make_contract_call):
        """Test linked id is absent when events carry no hash."""
        op = classifier.classify(make_contract_call(function_name="deposit"))
        assert op.linked_chain_tx_id is None

    def test_longer_hex_runs_are_not_ids(self):
        """Test a 66-hex run is not mistaken for a transaction id."""
        assert find_linked_tx_id(["a" * 66]) is None
        assert find_linked_tx_id(["", None, "b" * 64]) == "b" * 64


class TestFeeAndStatus:
    """Tests for gas analysis attachment and status mapping."""

    def test_fee_attaches_gas_analysis(self, classifier, make_contract_call):
        """Test a positive fee yields a gas cost analysis in STX terms."""
        op = classifier.classify(make_contract_call(fee=50000))

        assert op.gas_cost_analysis is not None
        assert op.gas_cost_analysis.cost_in_native == "0.050000"
        assert op.gas_cost_analysis.tier == CostTier.HIGH

    def test_zero_fee_has_no_gas_analysis(self, classifier, make_contract_call):
        """Test a zero fee leaves the gas analysis absent."""
        op = classifier.classify(make_contract_call(fee=0))
        assert op.gas_cost_analysis is None
        assert "gas_cost_analysis" not in op.to_dict()

    @pytest.mark.parametrize("status,expected", [
        (TxStatus.CONFIRMED, OperationStatus.COMPLETE),
        (TxStatus.PENDING, OperationStatus.PENDING),
        (TxStatus.FAILED, OperationStatus.FAILED),
    ])
    def test_status_mapping(self, classifier, make_contract_call, status, expected):
        """Test transaction status maps to operation status."""
        assert classifier.classify(make_contract_call(status=status)).status == expected

    def test_classify_many_drops_non_sbtc(self, classifier, make_contract_call):
        """Test batch classification keeps only sBTC operations."""
        txs = [
            make_contract_call(function_name="deposit"),
            make_contract_call(contract_id="SP1Y5YSTAHZ88XYK1VPDH24GY0HPX5J4JECTMY4A1.amm", function_name="swap"),
            make_contract_call(function_name="withdraw"),
        ]
        ops = classifier.classify_many(txs)
        assert [op.operation_type for op in ops] == [OperationType.DEPOSIT, OperationType.WITHDRAWAL]
