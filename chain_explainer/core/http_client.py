"""Single outbound HTTP helper shared by every chain adapter."""

import time
from typing import Any, Dict, Optional
from urllib.parse import urlsplit

import httpx
import structlog

from chain_explainer.core.errors import MalformedResponseError, TransportError
from chain_explainer.models.config import ExplainerSettings

logger = structlog.get_logger(__name__)

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
    "User-Agent": "chain-explainer/1.0.0",
}


class ChainHttpClient:
    """
    Async JSON client over httpx.

    Features:
    - JSON Accept/Content-Type headers on every request
    - Per-host credentials (Hiro ``x-api-key``, sidechain bearer token)
    - Optional forwarding through a proxy endpoint (``{proxy}?url=<target>``)
    - Every failure surfaces as TransportError or MalformedResponseError
    """

    def __init__(self,
                 timeout: float = 10.0,
                 proxy_url: Optional[str] = None,
                 host_headers: Optional[Dict[str, Dict[str, str]]] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None,
                 client: Optional[httpx.AsyncClient] = None):
        """
        Initialize the HTTP helper.

        Args:
            timeout: Request timeout in seconds
            proxy_url: Forward requests through this endpoint when set
            host_headers: Extra headers keyed by target hostname
            transport: Custom httpx transport (tests use httpx.MockTransport)
            client: Pre-built AsyncClient; the caller keeps ownership
        """
        self.timeout = timeout
        self.proxy_url = proxy_url.rstrip("/") if proxy_url else None
        self.host_headers = dict(host_headers or {})
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            headers=DEFAULT_HEADERS,
            transport=transport,
            follow_redirects=True,
        )
        self.logger = logger.bind(component="http_client")

    @classmethod
    def from_settings(cls,
                      settings: ExplainerSettings,
                      transport: Optional[httpx.AsyncBaseTransport] = None) -> "ChainHttpClient":
        """Build a client with credentials mapped to the configured provider hosts."""
        host_headers: Dict[str, Dict[str, str]] = {}
        if settings.hiro_api_key:
            for url in (settings.hiro_mainnet_url, settings.hiro_testnet_url):
                host_headers[urlsplit(url).hostname] = {"x-api-key": settings.hiro_api_key}
        if settings.sidechain_api_key:
            host = urlsplit(settings.sidechain_api_root).hostname
            host_headers[host] = {"Authorization": f"Bearer {settings.sidechain_api_key}"}

        return cls(
            timeout=settings.request_timeout,
            proxy_url=settings.proxy_url,
            host_headers=host_headers,
            transport=transport,
        )

    async def __aenter__(self) -> "ChainHttpClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying client if this helper created it."""
        if self._owns_client:
            await self._client.aclose()

    # ==================== Requests ====================

    async def _get(self, url: str, params: Optional[Dict[str, Any]], provider: Optional[str]) -> httpx.Response:
        headers = self.host_headers.get(urlsplit(url).hostname or "", {})

        if self.proxy_url:
            target = httpx.URL(url, params=params) if params else httpx.URL(url)
            request_url = self.proxy_url
            request_params: Optional[Dict[str, Any]] = {"url": str(target)}
        else:
            request_url = url
            request_params = params

        start = time.time()
        try:
            response = await self._client.get(request_url, params=request_params, headers=headers)
        except httpx.TimeoutException as e:
            raise TransportError(f"Request timed out: {e}", provider=provider, url=url) from e
        except httpx.HTTPError as e:
            raise TransportError(f"Request failed: {e}", provider=provider, url=url) from e

        elapsed_ms = (time.time() - start) * 1000
        self.logger.debug("HTTP request completed",
                          url=url,
                          status=response.status_code,
                          response_time_ms=round(elapsed_ms, 2))

        if not response.is_success:
            raise TransportError(
                f"API request failed: {response.status_code} {response.reason_phrase}",
                provider=provider,
                url=url,
                status_code=response.status_code,
            )
        return response

    async def get_json(self,
                       url: str,
                       params: Optional[Dict[str, Any]] = None,
                       provider: Optional[str] = None) -> Any:
        """GET a URL and decode its JSON body."""
        response = await self._get(url, params, provider)
        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(
                f"Response is not valid JSON: {e}", provider=provider, url=url,
                status_code=response.status_code,
            ) from e

    async def get_text(self,
                       url: str,
                       params: Optional[Dict[str, Any]] = None,
                       provider: Optional[str] = None) -> str:
        """GET a URL and return its body as stripped text."""
        response = await self._get(url, params, provider)
        return response.text.strip()
