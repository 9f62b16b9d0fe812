"""
Async HTTP client for Fuzz Hunter built on httpx.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import httpx

from fuzz_hunter.core.config import FuzzConfig
from fuzz_hunter.core.logger import get_component_logger

logger = get_component_logger("http_client")


@dataclass
class RequestConfig:
    """Configuration for HTTP requests."""
    timeout: float = 10.0
    # Content matters more than transport authenticity for discovery
    verify_ssl: bool = False
    allow_redirects: bool = False
    max_redirects: int = 10
    max_connections: int = 100

    @classmethod
    def from_fuzz_config(cls, config: FuzzConfig) -> "RequestConfig":
        return cls(
            timeout=config.timeout,
            verify_ssl=config.verify_ssl,
            allow_redirects=config.follow_redirects,
            max_connections=config.concurrency,
        )


class AsyncHTTPClient:
    """Asynchronous HTTP client shared by all workers of a run."""

    def __init__(
            self,
            request_config: RequestConfig = None,
            transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.request_config = request_config or RequestConfig()

        self.client_config = {
            "timeout": httpx.Timeout(self.request_config.timeout),
            "verify": self.request_config.verify_ssl,
            "follow_redirects": self.request_config.allow_redirects,
            "max_redirects": self.request_config.max_redirects,
            "limits": httpx.Limits(
                max_connections=self.request_config.max_connections,
                max_keepalive_connections=self.request_config.max_connections,
            ),
        }

        if transport is not None:
            self.client_config["transport"] = transport

        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        """Async context manager entry."""
        self._client = httpx.AsyncClient(**self.client_config)
        logger.debug(
            "HTTP client opened (timeout=%ss, verify=%s, redirects=%s)",
            self.request_config.timeout,
            self.request_config.verify_ssl,
            self.request_config.allow_redirects,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("AsyncHTTPClient must be used as an async context manager")
        return self._client

    def build_request(
            self,
            method: str,
            url: str,
            headers: Optional[Sequence[Tuple[bytes, bytes]]] = None,
            content: Optional[bytes] = None
    ) -> httpx.Request:
        """Build a request without sending it."""
        return self.client.build_request(method, url, headers=headers, content=content)

    async def send(self, request: httpx.Request) -> httpx.Response:
        """
        Send a prepared request and return the streamed response.

        The caller owns the response and must close it.
        """
        return await self.client.send(request, stream=True)

    async def close(self):
        """Close the underlying connection pool."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def create_http_client(
        config: FuzzConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None
) -> AsyncHTTPClient:
    """
    Factory function to create the HTTP client for a run.

    Args:
        config: Run configuration
        transport: Optional transport override (e.g. ``httpx.MockTransport``)

    Returns:
        HTTP client instance
    """
    return AsyncHTTPClient(RequestConfig.from_fuzz_config(config), transport=transport)
