"""Retry orchestration with exponential backoff and endpoint failover."""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from rpcguard.constants import ErrorSeverity
from rpcguard.core.exceptions import AllEndpointsFailedError, ClassifiedError
from rpcguard.models.endpoint import Endpoint
from rpcguard.models.retry import (
    ErrorClassification,
    OperationAttempt,
    RetryConfig,
    RetryState,
)
from rpcguard.services.endpoint_manager import EndpointManager
from rpcguard.services.error_classifier import ErrorClassifierService

logger = logging.getLogger(__name__)

T = TypeVar("T")

Operation = Callable[[], Awaitable[T]]
EndpointOperation = Callable[[Endpoint], Awaitable[T]]


@dataclass
class RetryHooks:
    """Optional callbacks fired during a retry loop."""

    on_error: Callable[[BaseException], None] | None = None
    on_retry: Callable[[int], None] | None = None
    on_max_retries_reached: Callable[[BaseException], None] | None = None


def _wall_clock_ms() -> float:
    return time.time() * 1000


class RetryOrchestrator:
    """
    Runs an async operation with bounded, backed-off retries.

    Each call owns its own RetryState and backoff timer; concurrent calls
    share only the EndpointManager. Backoff is a non-blocking sleep, so other
    operations keep running while one waits.
    """

    def __init__(
        self,
        endpoint_manager: EndpointManager,
        classifier: ErrorClassifierService | None = None,
        default_config: RetryConfig | None = None,
        blacklist_duration_ms: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = _wall_clock_ms,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            endpoint_manager: Shared endpoint pool.
            classifier: Error classifier. A default one is created if omitted.
            default_config: Used when a call passes no config.
            blacklist_duration_ms: Quarantine applied to an endpoint after a
                medium or high severity failure. Defaults to the manager's.
            sleep: Awaitable sleep taking seconds.
            clock: Millisecond clock used to stamp attempts.
        """
        self._endpoints = endpoint_manager
        self._classifier = classifier or ErrorClassifierService()
        self._default_config = default_config or RetryConfig()
        self._blacklist_duration_ms = (
            blacklist_duration_ms
            if blacklist_duration_ms is not None
            else endpoint_manager.blacklist_duration_ms
        )
        self._sleep = sleep
        self._clock = clock

    @property
    def endpoint_manager(self) -> EndpointManager:
        return self._endpoints

    @property
    def classifier(self) -> ErrorClassifierService:
        return self._classifier

    async def execute_with_retry(
        self,
        op: Operation[T],
        config: RetryConfig | None = None,
        state: RetryState | None = None,
        operation_name: str | None = None,
        hooks: RetryHooks | None = None,
    ) -> T:
        """
        Execute ``op`` until it succeeds or a terminal condition is hit.

        Args:
            op: No-argument coroutine function performing the remote call.
            config: Retry ceiling and backoff. Defaults to the orchestrator's.
            state: Caller-owned state to update in place. A fresh one is used
                if omitted.
            operation_name: Label used in logs and in the terminal error.
            hooks: Optional progress callbacks.

        Returns:
            The result of the first successful attempt.

        Raises:
            ClassifiedError: On a critical or unauthorized failure, or once
                the attempt ceiling is reached.
        """
        name = operation_name or getattr(op, "__name__", "operation")
        return await self._run(lambda _endpoint: op(), False, config, state, name, hooks)

    async def execute_on_endpoint(
        self,
        op: EndpointOperation[T],
        config: RetryConfig | None = None,
        state: RetryState | None = None,
        operation_name: str | None = None,
        hooks: RetryHooks | None = None,
    ) -> T:
        """
        Like execute_with_retry, but ``op`` receives a freshly selected
        endpoint on every attempt and failures are charged to that endpoint.
        """
        name = operation_name or getattr(op, "__name__", "operation")
        return await self._run(op, True, config, state, name, hooks)

    async def _run(
        self,
        op: EndpointOperation[T],
        endpoint_bound: bool,
        config: RetryConfig | None,
        state: RetryState | None,
        name: str,
        hooks: RetryHooks | None,
    ) -> T:
        config = config or self._default_config
        state = state if state is not None else RetryState()
        hooks = hooks or RetryHooks()

        state.clear()
        state.max_retries = config.max_retries
        ceiling = config.max_retries

        while True:
            endpoint = self._endpoints.select_endpoint() if endpoint_bound else None
            # Only the fallback endpoint comes back blacklisted
            exhausted = (
                endpoint is not None
                and endpoint.is_blacklisted
                and not state.all_endpoints_recovery_used
            )
            if exhausted:
                endpoint = None
            attempt = OperationAttempt(
                index=state.attempts,
                started_at=self._clock(),
                endpoint=endpoint.url if endpoint else None,
            )
            state.history.append(attempt)
            state.attempts += 1

            logger.debug(
                f"[Retry] {name}: attempt {state.attempts}/{ceiling}"
                + (f" via {endpoint.url}" if endpoint else ""),
                extra={
                    "event": "attempt",
                    "operation": name,
                    "attempt": state.attempts,
                    "endpoint": attempt.endpoint,
                },
            )

            try:
                if exhausted:
                    raise AllEndpointsFailedError()
                result = await op(endpoint)
            except Exception as error:
                classification = self._classifier.classify(error)
                attempt.error = classification.message
                attempt.severity = classification.severity
                state.last_error = classification.message
                state.severity = classification.severity
                state.is_retrying = False

                logger.warning(
                    f"[Retry] {name}: attempt {state.attempts} failed "
                    f"({classification.severity.value}/{classification.kind.value}): "
                    f"{classification.message}",
                    extra={
                        "event": "classified",
                        "operation": name,
                        "attempt": state.attempts,
                        "severity": classification.severity.value,
                        "endpoint": attempt.endpoint,
                    },
                )

                if endpoint is not None:
                    self._charge_endpoint(endpoint, classification)
                if hooks.on_error:
                    hooks.on_error(error)

                if (
                    classification.retryable
                    and classification.all_endpoints_failed
                    and not state.all_endpoints_recovery_used
                ):
                    state.all_endpoints_recovery_used = True
                    self._endpoints.reset_blacklisted_connections()
                    ceiling = max(ceiling, state.attempts) + 1
                    logger.info(
                        f"[Retry] {name}: all endpoints failed, pool reset and one extra attempt allowed",
                        extra={"event": "pool_recovery", "operation": name},
                    )

                if not classification.retryable or state.attempts >= ceiling:
                    raise self._terminal(error, classification, state, name, hooks) from error

                delay_ms = config.backoff_delay_ms(state.attempts)
                attempt.delay_ms = delay_ms
                state.is_retrying = True
                state.can_retry = True
                if hooks.on_retry:
                    hooks.on_retry(state.attempts)

                logger.info(
                    f"[Retry] {name}: waiting {delay_ms:.0f}ms before attempt {state.attempts + 1}/{ceiling}",
                    extra={
                        "event": "backoff",
                        "operation": name,
                        "attempt": state.attempts,
                        "delay_ms": delay_ms,
                    },
                )
                await self._sleep(delay_ms / 1000)
                continue

            attempt.succeeded = True
            if endpoint is not None:
                self._endpoints.record_success(endpoint)
            logger.info(
                f"[Retry] {name}: succeeded on attempt {state.attempts}",
                extra={
                    "event": "outcome",
                    "operation": name,
                    "attempt": state.attempts,
                    "outcome": "success",
                    "endpoint": attempt.endpoint,
                },
            )
            state.clear()
            return result

    def _charge_endpoint(
        self, endpoint: Endpoint, classification: ErrorClassification
    ) -> None:
        """Attribute a failure to the endpoint that served the attempt."""
        if not classification.retryable or classification.all_endpoints_failed:
            return
        if classification.severity in (ErrorSeverity.MEDIUM, ErrorSeverity.HIGH):
            self._endpoints.blacklist(endpoint, self._blacklist_duration_ms)
        else:
            self._endpoints.record_failure(endpoint)

    def _terminal(
        self,
        error: BaseException,
        classification: ErrorClassification,
        state: RetryState,
        name: str,
        hooks: RetryHooks,
    ) -> ClassifiedError:
        state.can_retry = False
        state.is_retrying = False

        logger.error(
            f"[Retry] {name}: giving up after {state.attempts} attempt(s): {classification.message}",
            extra={
                "event": "outcome",
                "operation": name,
                "attempt": state.attempts,
                "outcome": "failed",
                "severity": classification.severity.value,
            },
        )
        if hooks.on_max_retries_reached:
            hooks.on_max_retries_reached(error)

        return ClassifiedError(
            classification.message,
            severity=classification.severity,
            kind=classification.kind,
            attempts=state.attempts,
            retryable=classification.retryable,
            operation=name,
        )
