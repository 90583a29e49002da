"""
Chain Explainer

Explains Bitcoin, Stacks and BIP300 sidechain activity: classifies free-text
identifiers, fetches blocks, transactions and addresses with provider
fallback, and recognizes sBTC deposit, withdrawal and transfer operations.
"""

__version__ = "1.0.0"
__author__ = "Chain Explainer Team"
__description__ = "Multi-chain explorer core for Bitcoin, Stacks/sBTC and BIP300 sidechains"

from chain_explainer.core.explainer import AnalysisResult, ChainExplainer, ChainOverview
from chain_explainer.core.identifier import classify_identifier
from chain_explainer.core.sbtc_classifier import SbtcClassifier
from chain_explainer.models.config import ExplainerSettings
from chain_explainer.models.networks import build_registry

__all__ = [
    "AnalysisResult",
    "ChainExplainer",
    "ChainOverview",
    "ExplainerSettings",
    "SbtcClassifier",
    "build_registry",
    "classify_identifier",
]
