"""JSON-RPC over HTTP transport built on httpx."""

import asyncio
import itertools
import logging
from typing import Any

import httpx

from rpcguard.constants import HTTP_STATUS_KINDS, ErrorKind
from rpcguard.core.exceptions import RpcTransportError
from rpcguard.core.transport import RpcTransport

logger = logging.getLogger(__name__)


class JsonRpcHttpTransport(RpcTransport):
    """
    Sends one JSON-RPC 2.0 request per call over a shared httpx client.

    Features:
    - Client-side requests-per-second throttle
    - httpx failures mapped to structured RpcTransportError kinds
    - No retries; those belong to the RetryOrchestrator
    """

    def __init__(
        self,
        timeout: float = 30.0,
        requests_per_second: float = 10.0,
        user_agent: str = "rpcguard/1.0",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the transport.

        Args:
            timeout: Request timeout in seconds.
            requests_per_second: Throttle applied across all endpoints.
            user_agent: User-Agent header value.
            client: Pre-built client, mainly for tests.
        """
        self._timeout = timeout
        self._requests_per_second = requests_per_second
        self._user_agent = user_agent
        self._client = client
        self._request_count = 0
        self._last_request_time: float = 0
        self._lock = asyncio.Lock()
        self._ids = itertools.count(1)

    @property
    def name(self) -> str:
        """Transport name identifier."""
        return "jsonrpc_http"

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/json",
                    "User-Agent": self._user_agent,
                },
            )
        return self._client

    async def _rate_limit(self) -> None:
        """Apply rate limiting between requests."""
        async with self._lock:
            loop = asyncio.get_running_loop()
            min_interval = 1.0 / self._requests_per_second
            elapsed = loop.time() - self._last_request_time
            if elapsed < min_interval:
                wait_time = min_interval - elapsed
                logger.debug(f"[JsonRpcHttp] Rate limiting: waiting {wait_time:.3f}s")
                await asyncio.sleep(wait_time)
            self._last_request_time = loop.time()

    async def call(
        self,
        endpoint_url: str,
        method: str,
        params: list[Any] | dict[str, Any] | None = None,
    ) -> Any:
        """POST a JSON-RPC request and return its ``result``."""
        await self._rate_limit()

        payload: dict[str, Any] = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
        }
        if params is not None:
            payload["params"] = params

        client = await self._get_client()
        self._request_count += 1
        logger.debug(f"[JsonRpcHttp] {method} (request #{self._request_count})")

        try:
            response = await client.post(endpoint_url, json=payload)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise RpcTransportError(
                f"RPC timeout after {self._timeout}s calling {method}",
                ErrorKind.TIMEOUT,
                endpoint=endpoint_url,
            ) from e
        except httpx.ConnectError as e:
            raise RpcTransportError(
                f"Connection refused calling {method}",
                ErrorKind.CONNECTION_REFUSED,
                endpoint=endpoint_url,
            ) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            kind = HTTP_STATUS_KINDS.get(
                status, ErrorKind.NETWORK if status >= 500 else ErrorKind.UNKNOWN
            )
            raise RpcTransportError(
                f"HTTP {status} calling {method}: {e.response.text[:200]}",
                kind,
                status_code=status,
                endpoint=endpoint_url,
            ) from e
        except httpx.HTTPError as e:
            raise RpcTransportError(
                f"Network error calling {method}: {type(e).__name__}",
                ErrorKind.NETWORK,
                endpoint=endpoint_url,
            ) from e

        try:
            body = response.json()
        except ValueError as e:
            raise RpcTransportError(
                f"Invalid JSON-RPC response to {method}",
                endpoint=endpoint_url,
                status_code=response.status_code,
            ) from e

        error = body.get("error") if isinstance(body, dict) else None
        if error:
            message = error.get("message", "Unknown RPC error") if isinstance(error, dict) else str(error)
            code = error.get("code") if isinstance(error, dict) else None
            # Rate limit responses sometimes arrive as JSON-RPC errors with HTTP 200
            kind = ErrorKind.RATE_LIMITED if code == 429 else ErrorKind.UNKNOWN
            raise RpcTransportError(
                f"RPC error {code}: {message}",
                kind,
                rpc_code=code,
                endpoint=endpoint_url,
            )

        if not isinstance(body, dict) or "result" not in body:
            raise RpcTransportError(
                f"Malformed JSON-RPC response to {method}",
                endpoint=endpoint_url,
            )
        return body["result"]

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    def get_request_count(self) -> int:
        """Get total number of requests sent."""
        return self._request_count
