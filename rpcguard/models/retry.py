"""Retry configuration, attempt and state models."""

from pydantic import BaseModel, Field, model_validator

from rpcguard.constants import ErrorKind, ErrorSeverity


class RetryConfig(BaseModel):
    """Retry ceiling and backoff parameters for one logical operation."""

    max_retries: int = Field(default=3, ge=1, description="Total attempt ceiling")
    base_delay_ms: float = Field(default=1000, ge=0)
    max_delay_ms: float | None = Field(default=None, ge=0)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_delay_cap(self) -> "RetryConfig":
        """Ensure the cap is not below the base delay."""
        if self.max_delay_ms is not None and self.max_delay_ms < self.base_delay_ms:
            raise ValueError("max_delay_ms must be >= base_delay_ms")
        return self

    def backoff_delay_ms(self, attempt: int) -> float:
        """Delay before the next try after ``attempt`` failures (1-based)."""
        delay = self.base_delay_ms * (2 ** (max(attempt, 1) - 1))
        if self.max_delay_ms is not None:
            delay = min(delay, self.max_delay_ms)
        return delay


class ErrorClassification(BaseModel):
    """Result of classifying one error. Derived, never stored."""

    message: str
    severity: ErrorSeverity
    kind: ErrorKind = ErrorKind.UNKNOWN
    retryable: bool = True
    unauthorized: bool = False
    all_endpoints_failed: bool = False

    model_config = {"frozen": True}


class OperationAttempt(BaseModel):
    """One execution try of a caller-supplied operation."""

    index: int
    started_at: float
    endpoint: str | None = None
    succeeded: bool = False
    error: str | None = None
    severity: ErrorSeverity | None = None
    delay_ms: float | None = None


class RetryState(BaseModel):
    """Per-operation retry bookkeeping, owned by the caller."""

    attempts: int = 0
    last_error: str | None = None
    is_retrying: bool = False
    max_retries: int = 3
    can_retry: bool = True
    severity: ErrorSeverity = ErrorSeverity.LOW
    history: list[OperationAttempt] = Field(default_factory=list)
    all_endpoints_recovery_used: bool = False

    @property
    def has_error(self) -> bool:
        """True if the last attempt failed."""
        return self.last_error is not None

    def clear(self) -> None:
        """Reset to the empty state, keeping the configured ceiling."""
        self.attempts = 0
        self.last_error = None
        self.is_retrying = False
        self.can_retry = True
        self.severity = ErrorSeverity.LOW
        self.history = []
        self.all_endpoints_recovery_used = False
