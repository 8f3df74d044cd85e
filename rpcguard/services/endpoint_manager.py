"""Endpoint pool management with blacklisting and round-robin selection."""

import logging
import threading
import time
from typing import Callable, Iterable

from rpcguard.constants import HealthState
from rpcguard.core.exceptions import EndpointNotFoundError, NoEndpointsConfiguredError
from rpcguard.models.endpoint import Endpoint, EndpointPoolStatus, EndpointStatus

logger = logging.getLogger(__name__)


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


class EndpointManager:
    """
    Owns the pool of RPC endpoints and hands out a usable one.

    Features:
    - Deterministic round-robin over the priority-ordered pool
    - Time-boxed blacklisting, lifted lazily once expired
    - Consecutive-failure threshold that blacklists automatically
    - Graceful degradation: when everything is blacklisted, the
      least-recently-blacklisted endpoint is returned instead of failing

    All reads and mutations hold one lock, so selection never observes a
    half-applied blacklist change even when called from several threads.
    """

    def __init__(
        self,
        urls: Iterable[str],
        blacklist_duration_ms: float = 60_000,
        failure_threshold: int = 5,
        clock: Callable[[], float] = _monotonic_ms,
    ) -> None:
        """
        Initialize the endpoint manager.

        Args:
            urls: Endpoint URLs in priority order. Duplicates are ignored.
            blacklist_duration_ms: Default quarantine used by record_failure.
            failure_threshold: Consecutive failures before auto-blacklisting.
            clock: Millisecond clock, injectable for tests.
        """
        self._endpoints: dict[str, Endpoint] = {}
        for priority, url in enumerate(urls):
            if url not in self._endpoints:
                self._endpoints[url] = Endpoint(url=url, priority=priority)

        if not self._endpoints:
            raise NoEndpointsConfiguredError()

        self._order: list[str] = list(self._endpoints)
        self._cursor = 0
        self._blacklist_duration_ms = blacklist_duration_ms
        self._failure_threshold = failure_threshold
        self._clock = clock
        self._lock = threading.Lock()

        logger.info(f"[EndpointManager] Initialized with {len(self._order)} endpoints")

    @property
    def urls(self) -> list[str]:
        """Configured endpoint URLs in priority order."""
        return list(self._order)

    @property
    def blacklist_duration_ms(self) -> float:
        return self._blacklist_duration_ms

    def _get(self, url: str) -> Endpoint:
        endpoint = self._endpoints.get(url)
        if endpoint is None:
            raise EndpointNotFoundError(url)
        return endpoint

    def _expire_blacklist(self, now: float) -> None:
        """Lift blacklists whose expiry has passed. Caller holds the lock."""
        for endpoint in self._endpoints.values():
            if (
                endpoint.is_blacklisted
                and endpoint.blacklisted_until is not None
                and endpoint.blacklisted_until <= now
            ):
                endpoint.readmit()
                logger.info(
                    f"[EndpointManager] Blacklist expired for {endpoint.url}",
                    extra={"event": "endpoint_readmitted", "endpoint": endpoint.url},
                )

    def select_endpoint(self) -> Endpoint:
        """
        Return the next usable endpoint.

        Rotates round-robin over non-blacklisted endpoints. If every endpoint
        is blacklisted, returns the one blacklisted longest ago.
        """
        with self._lock:
            now = self._clock()
            self._expire_blacklist(now)

            count = len(self._order)
            for offset in range(count):
                index = (self._cursor + offset) % count
                endpoint = self._endpoints[self._order[index]]
                if not endpoint.is_blacklisted:
                    self._cursor = (index + 1) % count
                    logger.debug(f"[EndpointManager] Selected {endpoint.url}")
                    return endpoint

            fallback = min(
                self._endpoints.values(),
                key=lambda e: (e.blacklisted_at or 0.0, e.priority),
            )
            logger.warning(
                f"[EndpointManager] All endpoints blacklisted, falling back to {fallback.url}",
                extra={"event": "endpoint_fallback", "endpoint": fallback.url},
            )
            return fallback

    def blacklist(self, endpoint: Endpoint | str, duration_ms: float) -> None:
        """Mark an endpoint unavailable until ``now + duration_ms``."""
        url = endpoint.url if isinstance(endpoint, Endpoint) else endpoint
        with self._lock:
            target = self._get(url)
            now = self._clock()
            target.health = HealthState.BLACKLISTED
            target.blacklisted_at = now
            target.blacklisted_until = now + duration_ms

        logger.warning(
            f"[EndpointManager] Blacklisted {url} for {duration_ms:.0f}ms",
            extra={
                "event": "endpoint_blacklisted",
                "endpoint": url,
                "delay_ms": duration_ms,
            },
        )

    def reset_blacklisted_connections(self) -> int:
        """
        Clear all blacklist state immediately.

        Re-admitted endpoints also get their failure counter cleared. Endpoints
        that were not blacklisted keep their failure streak.

        Returns:
            Number of endpoints re-admitted. Zero when nothing was
            blacklisted, in which case no state changes.
        """
        reset = 0
        with self._lock:
            for endpoint in self._endpoints.values():
                if endpoint.is_blacklisted:
                    endpoint.readmit()
                    reset += 1

        if reset:
            logger.info(
                f"[EndpointManager] Reset {reset} blacklisted endpoints",
                extra={"event": "blacklist_reset", "outcome": reset},
            )
        return reset

    def record_success(self, endpoint: Endpoint | str) -> None:
        """Clear the failure streak of an endpoint after a successful call."""
        url = endpoint.url if isinstance(endpoint, Endpoint) else endpoint
        with self._lock:
            target = self._get(url)
            target.failures = 0
            target.last_attempt = self._clock()

    def record_failure(self, endpoint: Endpoint | str) -> bool:
        """
        Count a failure against an endpoint.

        Returns:
            True if this failure pushed the endpoint into the blacklist.
        """
        url = endpoint.url if isinstance(endpoint, Endpoint) else endpoint
        with self._lock:
            target = self._get(url)
            target.failures += 1
            target.last_attempt = self._clock()
            failures = target.failures
            should_blacklist = (
                failures >= self._failure_threshold and not target.is_blacklisted
            )

        logger.debug(f"[EndpointManager] {url} failure #{failures}")
        if should_blacklist:
            self.blacklist(url, self._blacklist_duration_ms)
        return should_blacklist

    def is_blacklisted(self, endpoint: Endpoint | str) -> bool:
        """Check whether an endpoint is currently quarantined."""
        url = endpoint.url if isinstance(endpoint, Endpoint) else endpoint
        with self._lock:
            self._expire_blacklist(self._clock())
            return self._get(url).is_blacklisted

    def available_endpoints(self) -> list[Endpoint]:
        """Non-blacklisted endpoints in priority order."""
        with self._lock:
            self._expire_blacklist(self._clock())
            return [
                self._endpoints[url]
                for url in self._order
                if not self._endpoints[url].is_blacklisted
            ]

    def get_connection_status(self) -> EndpointPoolStatus:
        """Snapshot of every endpoint's health."""
        with self._lock:
            self._expire_blacklist(self._clock())
            statuses = [
                EndpointStatus.from_endpoint(self._endpoints[url]) for url in self._order
            ]

        blacklisted = sum(1 for s in statuses if s.health == HealthState.BLACKLISTED)
        return EndpointPoolStatus(
            total=len(statuses),
            available=len(statuses) - blacklisted,
            blacklisted=blacklisted,
            endpoints=statuses,
        )
