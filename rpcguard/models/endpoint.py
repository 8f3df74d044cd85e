"""Endpoint domain models."""

from pydantic import BaseModel, Field

from rpcguard.constants import HealthState


class Endpoint(BaseModel):
    """One configured remote RPC provider and its health bookkeeping.

    Timestamps are milliseconds on the endpoint manager's clock.
    """

    url: str
    priority: int = 0
    health: HealthState = HealthState.AVAILABLE
    blacklisted_until: float | None = None
    blacklisted_at: float | None = None
    failures: int = 0
    last_attempt: float | None = None

    @property
    def is_blacklisted(self) -> bool:
        """True while the endpoint is quarantined."""
        return self.health == HealthState.BLACKLISTED

    def readmit(self) -> None:
        """Return the endpoint to the available pool."""
        self.health = HealthState.AVAILABLE
        self.blacklisted_until = None
        self.failures = 0


class EndpointStatus(BaseModel):
    """Read-only snapshot of an endpoint for diagnostics."""

    url: str
    priority: int
    health: HealthState
    failures: int
    blacklisted_until: float | None = None
    last_attempt: float | None = None

    @classmethod
    def from_endpoint(cls, endpoint: Endpoint) -> "EndpointStatus":
        """Build a snapshot from a live endpoint."""
        return cls(
            url=endpoint.url,
            priority=endpoint.priority,
            health=endpoint.health,
            failures=endpoint.failures,
            blacklisted_until=endpoint.blacklisted_until,
            last_attempt=endpoint.last_attempt,
        )


class EndpointPoolStatus(BaseModel):
    """Snapshot of the whole endpoint pool."""

    total: int
    available: int
    blacklisted: int
    endpoints: list[EndpointStatus] = Field(default_factory=list)
