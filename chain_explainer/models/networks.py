"""Static network descriptors and the read-only registry built from settings."""

from dataclasses import dataclass, field
from types import MappingProxyType
from collections.abc import Mapping
from typing import Dict, Iterator, Optional, Tuple

from chain_explainer.core.errors import InvalidArgumentError
from chain_explainer.models.config import ExplainerSettings


BITCOIN = "bitcoin"
STACKS = "stacks"
SIDECHAIN_NAMES = ("thunder", "zside", "bitnames")

OPTIMIZATION_HINT = (
    "Consider batching multiple sBTC operations together or using a lower "
    "fee rate during periods of lower network activity."
)


@dataclass(frozen=True)
class FeeTiers:
    """Fee thresholds in native display units."""
    low: float
    high: float

    def __post_init__(self):
        if self.low < 0 or self.high < self.low:
            raise InvalidArgumentError(f"Invalid fee tiers: low={self.low} high={self.high}")


DEFAULT_FEE_TIERS = FeeTiers(low=0.001, high=0.009)


@dataclass(frozen=True)
class NetworkDescriptor:
    """Immutable per-network configuration."""
    key: str
    chain: str
    family: str
    network: str
    display_name: str
    primary_url: str
    explorer_url: str
    native_symbol: str
    decimals: int
    price_usd: float
    fee_tiers: FeeTiers
    seed_height: int
    block_interval_seconds: int
    address_style: str
    secondary_url: Optional[str] = None
    description: str = ""
    color: str = "gray"
    features: Tuple[str, ...] = field(default_factory=tuple)
    sbtc_contracts: Tuple[str, ...] = field(default_factory=tuple)
    sbtc_peg_addresses: Tuple[str, ...] = field(default_factory=tuple)
    fallback_fee_rate: float = 0.0
    fee_rate_unit: str = ""

    @property
    def provider_urls(self) -> Tuple[str, ...]:
        """Base URLs in the order they should be tried."""
        if self.secondary_url:
            return (self.primary_url, self.secondary_url)
        return (self.primary_url,)


class NetworkRegistry(Mapping):
    """Read-only mapping of network key to descriptor.

    Also remembers which Bitcoin and Stacks networks are active and the
    default sidechain, so callers never need the settings object again.
    """

    def __init__(self,
                 descriptors: Dict[str, NetworkDescriptor],
                 bitcoin_key: str,
                 stacks_key: str,
                 default_sidechain: str):
        self._descriptors = MappingProxyType(dict(descriptors))
        for key in (bitcoin_key, stacks_key, default_sidechain):
            if key not in self._descriptors:
                raise InvalidArgumentError(f"Unknown network key: {key}")
        self._bitcoin_key = bitcoin_key
        self._stacks_key = stacks_key
        self._default_sidechain = default_sidechain

    def __getitem__(self, key: str) -> NetworkDescriptor:
        return self._descriptors[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    @property
    def bitcoin(self) -> NetworkDescriptor:
        """Active Bitcoin network."""
        return self._descriptors[self._bitcoin_key]

    @property
    def stacks(self) -> NetworkDescriptor:
        """Active Stacks network."""
        return self._descriptors[self._stacks_key]

    def sidechain(self, name: Optional[str] = None) -> NetworkDescriptor:
        """Get a sidechain descriptor, the default one when no name is given."""
        key = name or self._default_sidechain
        descriptor = self._descriptors.get(key)
        if descriptor is None or descriptor.family != "bip300":
            raise InvalidArgumentError(f"Sidechain {key} is not supported")
        return descriptor

    def for_chain(self, chain: str) -> NetworkDescriptor:
        """Resolve a chain tag (bitcoin, stacks or a sidechain name)."""
        if chain == BITCOIN:
            return self.bitcoin
        if chain == STACKS:
            return self.stacks
        return self.sidechain(chain)


# ==================== Static Network Data ====================

_SBTC_CONTRACTS = {
    "mainnet": (
        "SP2C2YFP12AJZB4MABJBAJ55XECVS7E4PMMZ89YZR.wrapped-bitcoin",
        "SP3DX3H4FEYZJZ586MFBS25ZW3HZDMEW92260R2PR.arkadiko-sbtc-v1-1-bridge",
        "SP2PABAF9FTAJYNFZH93XENAJ8FVY99RRM50D2JG9.sbtc-token",
    ),
    "testnet": (
        "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM.sbtc",
        "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM.bridge",
    ),
}

_SBTC_PEG_ADDRESSES = {
    "mainnet": (
        "bc1qf8psexccdkstyml7bq909889ssddp0wvdkk2j3",
        "bc1qm5m4znsf7gpzmrz5pkvzg4a5xvaztxzzaykk3gqzuyd8h6zvveus5h4j9m",
        "bc1qycrcnj7qmjy5xzczp90c8yf43v2fgd0pqnzcjn",
        "bc1q6u9kch327eza7aewns9tfs74d54y9wz75jgus8",
    ),
    "testnet": (
        "tb1qmk25azpr2j0e3mx4s02ergcav0ze4dmpy65qq0",
    ),
}

_SIDECHAINS = {
    "thunder": {
        "display_name": "Thunder",
        "description": "Highly scalable Bitcoin sidechain that can scale to 8 billion users",
        "color": "blue",
        "features": (
            "High transaction throughput",
            "Low fees",
            "Direct Bitcoin security",
            "No custodians or federations",
        ),
        "seed_height": 123456,
        "block_interval_seconds": 60,
        "address_style": "thunder",
    },
    "zside": {
        "display_name": "zSide",
        "description": "Privacy-focused sidechain with zCash-like features",
        "color": "purple",
        "features": (
            "Enhanced privacy",
            "zk-SNARKs",
            "Shielded transactions",
            "Private smart contracts",
        ),
        "seed_height": 87654,
        "block_interval_seconds": 600,
        "address_style": "zside",
    },
    "bitnames": {
        "display_name": "BitNames",
        "description": "Namecoin-like identity and name registration system",
        "color": "green",
        "features": (
            "Decentralized naming system",
            "DNS alternatives",
            "Identity registration",
            "Permanent data storage",
        ),
        "seed_height": 54321,
        "block_interval_seconds": 600,
        "address_style": "bitnames",
    },
}


def _network_path(network: str) -> str:
    return "" if network == "mainnet" else f"/{network}"


def _bitcoin_descriptor(settings: ExplainerSettings, network: str) -> NetworkDescriptor:
    path = _network_path(network)
    mempool = settings.mempool_space_url.rstrip("/")
    return NetworkDescriptor(
        key=f"bitcoin-{network}",
        chain=BITCOIN,
        family="esplora",
        network=network,
        display_name=f"Bitcoin {network.capitalize()}",
        primary_url=f"{mempool}{path}/api",
        secondary_url=f"{settings.blockstream_url.rstrip('/')}{path}/api",
        explorer_url=f"{mempool}{path}",
        native_symbol="BTC",
        decimals=8,
        price_usd=settings.btc_price_usd,
        fee_tiers=FeeTiers(low=settings.bitcoin_fee_low, high=settings.bitcoin_fee_high),
        seed_height=800000 if network == "mainnet" else 2500000,
        block_interval_seconds=600,
        address_style="bitcoin" if network == "mainnet" else "bitcoin-testnet",
        color="orange",
        sbtc_peg_addresses=_SBTC_PEG_ADDRESSES[network],
        fallback_fee_rate=20.0,
        fee_rate_unit="sat/vB",
    )


def _stacks_descriptor(settings: ExplainerSettings, network: str) -> NetworkDescriptor:
    base = settings.hiro_mainnet_url if network == "mainnet" else settings.hiro_testnet_url
    explorer_suffix = "" if network == "mainnet" else "?chain=testnet"
    return NetworkDescriptor(
        key=f"stacks-{network}",
        chain=STACKS,
        family="hiro",
        network=network,
        display_name=f"Stacks {network.capitalize()}",
        primary_url=base.rstrip("/"),
        explorer_url=f"https://explorer.hiro.so{explorer_suffix}",
        native_symbol="STX",
        decimals=6,
        price_usd=settings.stx_price_usd,
        fee_tiers=FeeTiers(low=settings.stacks_fee_low, high=settings.stacks_fee_high),
        seed_height=150000 if network == "mainnet" else 90000,
        block_interval_seconds=600,
        address_style="stacks" if network == "mainnet" else "stacks-testnet",
        color="purple",
        sbtc_contracts=_SBTC_CONTRACTS[network],
        fallback_fee_rate=0.0001,
        fee_rate_unit="STX",
    )


def _sidechain_descriptor(settings: ExplainerSettings, name: str) -> NetworkDescriptor:
    info = _SIDECHAINS[name]
    root = settings.sidechain_api_root.rstrip("/")
    return NetworkDescriptor(
        key=name,
        chain=name,
        family="bip300",
        network="mainnet",
        display_name=info["display_name"],
        description=info["description"],
        primary_url=f"{root}/{name}",
        explorer_url=f"https://explorer.layertwolabs.com/{name}",
        native_symbol="BTC",
        decimals=8,
        price_usd=settings.btc_price_usd,
        fee_tiers=FeeTiers(low=settings.sidechain_fee_low, high=settings.sidechain_fee_high),
        seed_height=info["seed_height"],
        block_interval_seconds=info["block_interval_seconds"],
        address_style=info["address_style"],
        color=info["color"],
        features=info["features"],
        fallback_fee_rate=1000.0,
        fee_rate_unit="sat",
    )


def build_registry(settings: Optional[ExplainerSettings] = None) -> NetworkRegistry:
    """Build the immutable network registry from settings."""
    settings = settings or ExplainerSettings()
    descriptors = {}
    for network in ("mainnet", "testnet"):
        btc = _bitcoin_descriptor(settings, network)
        stx = _stacks_descriptor(settings, network)
        descriptors[btc.key] = btc
        descriptors[stx.key] = stx
    for name in SIDECHAIN_NAMES:
        descriptors[name] = _sidechain_descriptor(settings, name)

    return NetworkRegistry(
        descriptors,
        bitcoin_key=f"bitcoin-{settings.bitcoin_network}",
        stacks_key=f"stacks-{settings.stacks_network}",
        default_sidechain=settings.default_sidechain,
    )
