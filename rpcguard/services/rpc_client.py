"""RPC client facade combining transport, endpoint pool and retries."""

import asyncio
import logging
from typing import Any

from rpcguard.config import Settings, get_settings
from rpcguard.constants import HEALTH_CHECK_METHOD, ErrorKind
from rpcguard.core.exceptions import RpcTransportError
from rpcguard.core.transport import RpcTransport
from rpcguard.models.endpoint import Endpoint
from rpcguard.models.retry import RetryConfig, RetryState
from rpcguard.providers.jsonrpc_http import JsonRpcHttpTransport
from rpcguard.services.endpoint_manager import EndpointManager
from rpcguard.services.retry_orchestrator import RetryHooks, RetryOrchestrator

logger = logging.getLogger(__name__)


class RpcClient:
    """Resilient entry point for callers: ``await client.call(method, params)``."""

    def __init__(
        self,
        endpoint_manager: EndpointManager,
        transport: RpcTransport,
        orchestrator: RetryOrchestrator | None = None,
    ) -> None:
        self._endpoints = endpoint_manager
        self._transport = transport
        self._orchestrator = orchestrator or RetryOrchestrator(endpoint_manager)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "RpcClient":
        """Build a client from environment-driven settings."""
        settings = settings or get_settings()
        manager = EndpointManager(
            settings.endpoint_urls,
            blacklist_duration_ms=settings.blacklist_duration_ms,
            failure_threshold=settings.failure_threshold,
        )
        transport = JsonRpcHttpTransport(
            timeout=settings.request_timeout_ms / 1000,
            requests_per_second=settings.requests_per_second,
            user_agent=settings.user_agent,
        )
        orchestrator = RetryOrchestrator(
            manager,
            default_config=settings.retry_config(),
            blacklist_duration_ms=settings.blacklist_duration_ms,
        )
        return cls(manager, transport, orchestrator)

    @property
    def endpoint_manager(self) -> EndpointManager:
        return self._endpoints

    @property
    def orchestrator(self) -> RetryOrchestrator:
        return self._orchestrator

    async def call(
        self,
        method: str,
        params: list[Any] | dict[str, Any] | None = None,
        config: RetryConfig | None = None,
        state: RetryState | None = None,
        hooks: RetryHooks | None = None,
    ) -> Any:
        """
        Call an RPC method with endpoint failover and retries.

        Raises:
            ClassifiedError: When the call cannot be completed.
        """
        logger.info(f"[RpcClient] Executing RPC call: {method}")

        async def attempt(endpoint: Endpoint) -> Any:
            try:
                return await self._transport.call(endpoint.url, method, params)
            except RpcTransportError as e:
                raise self._with_context(e, method) from e

        return await self._orchestrator.execute_on_endpoint(
            attempt, config=config, state=state, operation_name=method, hooks=hooks
        )

    @staticmethod
    def _with_context(error: RpcTransportError, method: str) -> RpcTransportError:
        """Prefix auth and throttling failures with a readable RPC summary."""
        if error.kind == ErrorKind.FORBIDDEN:
            summary = f"RPC 403 Forbidden ({method})"
        elif error.kind == ErrorKind.UNAUTHORIZED:
            summary = f"RPC 401 Unauthorized - API key required ({method})"
        elif error.kind == ErrorKind.RATE_LIMITED:
            summary = f"RPC Rate Limited - Too many requests ({method})"
        else:
            return error

        return RpcTransportError(
            f"{summary}: {error.message}",
            error.kind,
            status_code=error.status_code,
            rpc_code=error.rpc_code,
            endpoint=error.endpoint,
        )

    async def health_check(self) -> dict[str, Any]:
        """Probe every endpoint once, without retries or blacklisting."""
        logger.info("[RpcClient] Performing health check for all endpoints...")

        urls = self._endpoints.urls
        results = await asyncio.gather(
            *(self._transport.call(url, HEALTH_CHECK_METHOD) for url in urls),
            return_exceptions=True,
        )

        endpoint_status: dict[str, dict[str, Any]] = {}
        for url, result in zip(urls, results):
            if isinstance(result, Exception):
                endpoint_status[url] = {"status": "error", "error": str(result)}
            else:
                endpoint_status[url] = {"status": "healthy", "result": result}

        healthy = sum(1 for s in endpoint_status.values() if s["status"] == "healthy")
        if healthy == len(urls):
            status = "healthy"
        elif healthy:
            status = "degraded"
        else:
            status = "unhealthy"

        return {
            "status": status,
            "transport": self._transport.name,
            "request_count": self._transport.get_request_count(),
            "endpoints": endpoint_status,
            "pool": self._endpoints.get_connection_status().model_dump(mode="json"),
        }

    async def close(self) -> None:
        """Close the underlying transport."""
        await self._transport.close()

    async def __aenter__(self) -> "RpcClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
