"""Data models, settings and network descriptors."""

from chain_explainer.models.config import ExplainerSettings
from chain_explainer.models.canonical import (
    CanonicalAddress,
    CanonicalBlock,
    CanonicalStats,
    CanonicalTransaction,
    FetchResult,
    GasCostAnalysis,
    Live,
    SbtcOperation,
    Synthetic,
)
from chain_explainer.models.networks import NetworkDescriptor, NetworkRegistry, build_registry

__all__ = [
    "ExplainerSettings",
    "CanonicalAddress",
    "CanonicalBlock",
    "CanonicalStats",
    "CanonicalTransaction",
    "FetchResult",
    "GasCostAnalysis",
    "Live",
    "SbtcOperation",
    "Synthetic",
    "NetworkDescriptor",
    "NetworkRegistry",
    "build_registry",
]
