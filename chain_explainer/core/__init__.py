"""Core components: adapters, classifiers and analyzers.

Submodules are imported directly (``chain_explainer.core.explainer``);
only the error hierarchy is re-exported here because the model layer
depends on it.
"""

from chain_explainer.core.errors import (
    ChainExplainerError,
    InvalidArgumentError,
    MalformedResponseError,
    ProviderError,
    TransportError,
)

__all__ = [
    "ChainExplainerError",
    "InvalidArgumentError",
    "MalformedResponseError",
    "ProviderError",
    "TransportError",
]
