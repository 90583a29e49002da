"""Pytest configuration and fixtures for chain explainer tests."""

import random
from typing import Any, Callable, Dict, List, Union

import httpx
import pytest
import pytest_asyncio

from chain_explainer.core.http_client import ChainHttpClient
from chain_explainer.models.canonical import (
    CanonicalTransaction,
    ContractCall,
    FunctionArg,
    TokenTransfer,
    TxEvent,
    TxStatus,
)
from chain_explainer.models.config import ExplainerSettings
from chain_explainer.models.networks import build_registry


BTC_TX_ID = "4a5e1e4baab89f3a32518a88c31bc87f618f76673e2cc77ab2127b7afdeda33b"
BTC_BLOCK_HASH = "0" * 20 + "6e1f" * 11
STX_TX_ID = "0x" + "ab" * 32
SBTC_CONTRACT = "SP2C2YFP12AJZB4MABJBAJ55XECVS7E4PMMZ89YZR.wrapped-bitcoin"
STX_SENDER = "SP3FBR2AGK5H9QBDH3EEN6DF8EK8JY7RX8QJ5SVTE"
STX_RECIPIENT = "SP2J6ZY48GV1EZ5V2V5RB9MP66SW86PYKKNRV9EJ7"

MEMPOOL_API = "https://mempool.space/api"
BLOCKSTREAM_API = "https://blockstream.info/api"
HIRO_API = "https://api.mainnet.hiro.so"
THUNDER_API = "https://api.layertwolabs.com/thunder"


# ============================================================================
# FAKE PROVIDERS
# ============================================================================

Route = Union[Any, Callable[[httpx.Request], httpx.Response]]


class FakeProviders:
    """
    Route table behind an httpx.MockTransport.

    Routes are keyed by ``scheme://host/path`` (query string ignored). A route
    value is a JSON payload, a plain string (sent as text), an
    ``httpx.Response`` or a callable taking the request. Unknown URLs get 404.
    """

    def __init__(self):
        self.routes: Dict[str, Route] = {}
        self.requests: List[httpx.Request] = []

    def add(self, url: str, response: Route) -> "FakeProviders":
        self.routes[url] = response
        return self

    def urls(self) -> List[str]:
        return [f"{r.url.scheme}://{r.url.host}{r.url.path}" for r in self.requests]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        route = self.routes.get(key)

        if route is None:
            return httpx.Response(404, json={"error": "not found"})
        if callable(route):
            return route(request)
        if isinstance(route, httpx.Response):
            return route
        if isinstance(route, str):
            return httpx.Response(200, text=route)
        return httpx.Response(200, json=route)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


# ============================================================================
# CONFIGURATION FIXTURES
# ============================================================================

@pytest.fixture
def settings():
    """Settings with defaults only (no .env file, no API keys)."""
    return ExplainerSettings(_env_file=None, log_format="text")


@pytest.fixture
def registry(settings):
    """Network registry built from default settings."""
    return build_registry(settings)


@pytest.fixture
def rng():
    """Seeded random generator for reproducible synthesis."""
    return random.Random(1234)


# ============================================================================
# HTTP FIXTURES
# ============================================================================

@pytest.fixture
def fake():
    """Empty fake provider route table."""
    return FakeProviders()


@pytest_asyncio.fixture
async def http(fake):
    """HTTP client wired to the fake providers."""
    client = ChainHttpClient(transport=fake.transport())
    yield client
    await client.aclose()


# ============================================================================
# SAMPLE DATA FIXTURES
# ============================================================================

@pytest.fixture
def make_contract_call():
    """Factory for Stacks contract-call transactions."""
    def factory(contract_id: str = SBTC_CONTRACT,
                function_name: str = "withdraw-btc",
                args: List[FunctionArg] = None,
                events: List[TxEvent] = None,
                fee: int = 3000,
                status: TxStatus = TxStatus.CONFIRMED) -> CanonicalTransaction:
        return CanonicalTransaction(
            id=STX_TX_ID,
            chain="stacks",
            status=status,
            type="contract_call",
            timestamp_ms=1_700_000_000_000,
            block_height=150000,
            sender=STX_SENDER,
            recipient=contract_id,
            fee=fee,
            confirmations=3,
            contract_call=ContractCall(
                contract_id=contract_id,
                function_name=function_name,
                function_args=args or [],
            ),
            events=events or [],
        )
    return factory


@pytest.fixture
def sbtc_token_transfer():
    """sBTC token transfer transaction."""
    return CanonicalTransaction(
        id=STX_TX_ID,
        chain="stacks",
        status=TxStatus.PENDING,
        type="token_transfer",
        timestamp_ms=1_700_000_000_000,
        sender=STX_SENDER,
        recipient=STX_RECIPIENT,
        value=250000,
        fee=0,
        token_transfer=TokenTransfer(
            recipient=STX_RECIPIENT,
            amount=250000,
            memo="0x7061796d656e7400",
            asset_identifier=f"{SBTC_CONTRACT}::wrapped-bitcoin",
        ),
    )


@pytest.fixture
def hiro_contract_call_payload():
    """Raw Hiro /extended/v1/tx payload for an sBTC withdrawal."""
    return {
        "tx_id": STX_TX_ID,
        "tx_type": "contract_call",
        "tx_status": "success",
        "fee_rate": "50000",
        "sender_address": STX_SENDER,
        "block_height": 150000,
        "burn_block_time": 1700000000,
        "contract_call": {
            "contract_id": SBTC_CONTRACT,
            "function_name": "withdraw-btc",
            "function_args": [
                {"name": "amount", "repr": "u150000000", "type": "uint", "hex": "0x01"},
                {"name": "recipient", "repr": f"'{STX_RECIPIENT}", "type": "principal", "hex": "0x05"},
                {"name": "memo", "repr": "(some 0x77697468647261770000)", "type": "optional", "hex": "0x0a"},
            ],
        },
        "events": [
            {
                "event_index": 0,
                "event_type": "smart_contract_log",
                "contract_log": {
                    "contract_id": SBTC_CONTRACT,
                    "topic": "print",
                    "value": {"repr": f"(tuple (btc-txid 0x{BTC_TX_ID}))"},
                },
            },
            {
                "event_index": 1,
                "event_type": "fungible_token_asset",
                "asset": {
                    "asset_event_type": "burn",
                    "asset_id": f"{SBTC_CONTRACT}::wrapped-bitcoin",
                    "sender": STX_SENDER,
                    "amount": "150000000",
                },
            },
        ],
    }
