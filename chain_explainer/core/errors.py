"""Exception hierarchy for chain data access and classification."""

from typing import Optional


class ChainExplainerError(Exception):
    """Base error for the chain explainer."""
    pass


class ProviderError(ChainExplainerError):
    """A remote data provider could not deliver a usable response."""

    def __init__(self,
                 message: str,
                 provider: Optional[str] = None,
                 url: Optional[str] = None,
                 status_code: Optional[int] = None):
        super().__init__(message)
        self.provider = provider
        self.url = url
        self.status_code = status_code

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.provider:
            parts.append(f"provider={self.provider}")
        if self.status_code is not None:
            parts.append(f"status={self.status_code}")
        return " ".join(parts)


class TransportError(ProviderError):
    """Non-2xx status, timeout or network failure."""
    pass


class MalformedResponseError(ProviderError):
    """Response body is not JSON or does not match the expected shape."""
    pass


class InvalidArgumentError(ChainExplainerError, ValueError):
    """Caller passed an argument that can never be valid (negative height, empty id)."""
    pass
