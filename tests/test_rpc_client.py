"""Tests for the RPC client facade."""

from typing import Any

import pytest

from rpcguard.config import Settings
from rpcguard.constants import ErrorKind, ErrorSeverity
from rpcguard.core.exceptions import ClassifiedError, RpcTransportError
from rpcguard.core.transport import RpcTransport
from rpcguard.models.retry import RetryConfig
from rpcguard.providers.jsonrpc_http import JsonRpcHttpTransport
from rpcguard.services.endpoint_manager import EndpointManager
from rpcguard.services.retry_orchestrator import RetryHooks, RetryOrchestrator
from rpcguard.services.rpc_client import RpcClient

from tests.conftest import ENDPOINTS, FakeClock, RecordingSleep


class FakeTransport(RpcTransport):
    """Transport whose per-endpoint failures are scripted."""

    def __init__(self, failures: dict[str, RpcTransportError] | None = None) -> None:
        self.failures = failures or {}
        self.calls: list[tuple[str, str]] = []
        self.closed = False

    @property
    def name(self) -> str:
        return "fake"

    async def call(self, endpoint_url: str, method: str, params: Any = None) -> Any:
        self.calls.append((endpoint_url, method))
        if endpoint_url in self.failures:
            raise self.failures[endpoint_url]
        return {"endpoint": endpoint_url, "method": method}

    async def close(self) -> None:
        self.closed = True

    def get_request_count(self) -> int:
        return len(self.calls)


class FlakyTransport(FakeTransport):
    """Transport that fails the first calls with a server error, then recovers."""

    def __init__(self, failing_calls: int) -> None:
        super().__init__()
        self.failing_calls = failing_calls

    async def call(self, endpoint_url: str, method: str, params: Any = None) -> Any:
        self.calls.append((endpoint_url, method))
        if len(self.calls) <= self.failing_calls:
            raise RpcTransportError(
                f"HTTP 503 calling {method}: unavailable",
                ErrorKind.NETWORK,
                status_code=503,
                endpoint=endpoint_url,
            )
        return {"endpoint": endpoint_url, "method": method}


@pytest.fixture
def make_client(orchestrator: RetryOrchestrator, endpoint_manager: EndpointManager):
    """Factory for clients sharing the test orchestrator."""

    def _make(transport: RpcTransport) -> RpcClient:
        return RpcClient(endpoint_manager, transport, orchestrator)

    return _make


class TestRpcClient:
    """Tests for RpcClient."""

    @pytest.mark.asyncio
    async def test_call_fails_over(self, make_client, endpoint_manager: EndpointManager) -> None:
        """Test a throttled endpoint is skipped on the retry."""
        transport = FakeTransport(
            {ENDPOINTS[0]: RpcTransportError("HTTP 429", ErrorKind.RATE_LIMITED, status_code=429)}
        )
        client = make_client(transport)

        result = await client.call("getSlot")

        assert result == {"endpoint": ENDPOINTS[1], "method": "getSlot"}
        assert endpoint_manager.is_blacklisted(ENDPOINTS[0])

    @pytest.mark.asyncio
    async def test_unauthorized_gets_context(self, make_client) -> None:
        """Test 401 failures are surfaced once with an RPC summary."""
        error = RpcTransportError("HTTP 401", ErrorKind.UNAUTHORIZED, status_code=401)
        transport = FakeTransport({url: error for url in ENDPOINTS})
        client = make_client(transport)

        with pytest.raises(ClassifiedError) as exc_info:
            await client.call("getBalance", ["addr"])

        assert str(exc_info.value).startswith("RPC 401 Unauthorized - API key required (getBalance)")
        assert exc_info.value.attempts == 1
        assert len(transport.calls) == 1

    @pytest.mark.asyncio
    async def test_rate_limit_exhausts(self, make_client) -> None:
        """Test persistent throttling ends in a medium severity failure."""
        error = RpcTransportError("HTTP 429", ErrorKind.RATE_LIMITED, status_code=429)
        transport = FakeTransport({url: error for url in ENDPOINTS})
        client = make_client(transport)

        with pytest.raises(ClassifiedError) as exc_info:
            await client.call("getSlot")

        assert exc_info.value.severity == ErrorSeverity.MEDIUM
        assert str(exc_info.value).startswith("RPC Rate Limited - Too many requests (getSlot)")
        assert [url for url, _ in transport.calls] == ENDPOINTS

    @pytest.mark.asyncio
    async def test_health_check_degraded(self, make_client) -> None:
        """Test one bad endpoint degrades the pool status."""
        transport = FakeTransport(
            {ENDPOINTS[2]: RpcTransportError("Connection refused", ErrorKind.CONNECTION_REFUSED)}
        )
        client = make_client(transport)

        health = await client.health_check()

        assert health["status"] == "degraded"
        assert health["endpoints"][ENDPOINTS[0]]["status"] == "healthy"
        assert health["endpoints"][ENDPOINTS[2]]["status"] == "error"
        assert health["pool"]["total"] == 3

    @pytest.mark.asyncio
    async def test_context_manager_closes_transport(self, make_client) -> None:
        """Test leaving the context closes the transport."""
        transport = FakeTransport()

        async with make_client(transport):
            pass

        assert transport.closed is True

    def test_from_settings(self) -> None:
        """Test building a client from settings."""
        settings = Settings(_env_file=None, rpc_endpoints="https://a.example.com, https://b.example.com")

        client = RpcClient.from_settings(settings)

        assert client.endpoint_manager.urls == ["https://a.example.com", "https://b.example.com"]
        assert isinstance(client._transport, JsonRpcHttpTransport)

    @pytest.mark.asyncio
    async def test_api_key_digits_do_not_stop_failover(
        self, sleeper: RecordingSleep, clock: FakeClock
    ) -> None:
        """Test an API key containing 401 does not turn a refused connection terminal."""
        keyed = "https://mainnet.helius-rpc.com/?api-key=7c1a401e"
        healthy = "https://b.example.com"
        manager = EndpointManager([keyed, healthy], clock=clock)
        orchestrator = RetryOrchestrator(manager, sleep=sleeper, clock=clock)
        transport = FakeTransport(
            {
                keyed: RpcTransportError(
                    f"Connection refused: {keyed}",
                    ErrorKind.CONNECTION_REFUSED,
                    endpoint=keyed,
                )
            }
        )
        client = RpcClient(manager, transport, orchestrator)

        result = await client.call("getSlot")

        assert result == {"endpoint": healthy, "method": "getSlot"}
        assert [url for url, _ in transport.calls] == [keyed, healthy]
        assert manager.is_blacklisted(keyed)

    @pytest.mark.asyncio
    async def test_exhausted_pool_is_reset(
        self, sleeper: RecordingSleep, clock: FakeClock
    ) -> None:
        """Test every endpoint failing triggers one pool reset and a fresh attempt."""
        manager = EndpointManager(ENDPOINTS, blacklist_duration_ms=60_000, clock=clock)
        orchestrator = RetryOrchestrator(manager, sleep=sleeper, clock=clock)
        transport = FlakyTransport(failing_calls=3)
        client = RpcClient(manager, transport, orchestrator)
        errors: list[str] = []

        result = await client.call(
            "getSlot",
            config=RetryConfig(max_retries=5, base_delay_ms=1000),
            hooks=RetryHooks(on_error=lambda e: errors.append(str(e))),
        )

        assert result == {"endpoint": ENDPOINTS[0], "method": "getSlot"}
        assert errors[3] == "All RPC endpoints failed"
        assert len(errors) == 4
        assert len(transport.calls) == 4
        assert manager.get_connection_status().blacklisted == 0
        assert sleeper.delays == pytest.approx([1.0, 2.0, 4.0, 8.0])
