"""
HTTP transport used to fetch key sets from the identity provider.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import httpx

from shared.errors import JwksTransportError
from shared.logging import get_logger


@dataclass(frozen=True)
class TransportResult:
    """Outcome of one GET: either a decoded JSON object or an error."""

    response: Optional[Dict[str, Any]] = None
    error: Optional[JwksTransportError] = None

    def __post_init__(self):
        if (self.response is None) == (self.error is None):
            raise ValueError("TransportResult needs exactly one of response or error")

    @classmethod
    def success(cls, response: Dict[str, Any]) -> "TransportResult":
        return cls(response=response)

    @classmethod
    def failure(cls, error: JwksTransportError) -> "TransportResult":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None


class HttpTransport(Protocol):
    """Async GET returning a TransportResult; must not raise."""

    async def get(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> TransportResult:
        ...


class HttpxTransport:
    """HttpTransport implementation on top of httpx.AsyncClient."""

    def __init__(self, client: Optional[httpx.AsyncClient] = None, *, timeout: float = 10.0) -> None:
        self.logger = get_logger("jwks.transport")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """Close the underlying HTTP client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    async def get(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> TransportResult:
        try:
            response = await self._client.get(url, params=params, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            return TransportResult.failure(
                JwksTransportError(url, f"HTTP {status} from JWKS endpoint", status_code=status)
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            self.logger.warning("JWKS request failed", url=url, error=str(exc))
            return TransportResult.failure(
                JwksTransportError(url, str(exc) or exc.__class__.__name__)
            )

        try:
            body = response.json()
        except ValueError as exc:
            return TransportResult.failure(
                JwksTransportError(url, "JWKS endpoint returned invalid JSON", details={"error": str(exc)})
            )

        if not isinstance(body, dict):
            return TransportResult.failure(
                JwksTransportError(url, "JWKS endpoint returned a non-object body")
            )

        self.logger.debug("JWKS response received", url=url, status_code=response.status_code)
        return TransportResult.success(body)
