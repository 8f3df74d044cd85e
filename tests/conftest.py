"""Test configuration and fixtures."""

import pytest

from rpcguard.models.retry import RetryConfig
from rpcguard.services.endpoint_manager import EndpointManager
from rpcguard.services.error_classifier import ErrorClassifierService
from rpcguard.services.retry_orchestrator import RetryOrchestrator

ENDPOINTS = [
    "https://rpc-one.example.com",
    "https://rpc-two.example.com",
    "https://rpc-three.example.com",
]


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class RecordingSleep:
    """Async sleep replacement that records delays and advances the clock."""

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        self.clock.advance(seconds * 1000)


@pytest.fixture
def clock() -> FakeClock:
    """Provide a controllable clock."""
    return FakeClock()


@pytest.fixture
def sleeper(clock: FakeClock) -> RecordingSleep:
    """Provide a sleep that never actually waits."""
    return RecordingSleep(clock)


@pytest.fixture
def endpoint_manager(clock: FakeClock) -> EndpointManager:
    """Provide a pool of three endpoints on the fake clock."""
    return EndpointManager(
        ENDPOINTS,
        blacklist_duration_ms=5000,
        failure_threshold=3,
        clock=clock,
    )


@pytest.fixture
def classifier() -> ErrorClassifierService:
    """Provide an error classifier."""
    return ErrorClassifierService()


@pytest.fixture
def orchestrator(
    endpoint_manager: EndpointManager,
    classifier: ErrorClassifierService,
    sleeper: RecordingSleep,
    clock: FakeClock,
) -> RetryOrchestrator:
    """Provide an orchestrator with default retry config and no real sleeping."""
    return RetryOrchestrator(
        endpoint_manager,
        classifier,
        default_config=RetryConfig(max_retries=3, base_delay_ms=1000),
        sleep=sleeper,
        clock=clock,
    )
