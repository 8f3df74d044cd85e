"""Domain models package."""

from rpcguard.models.endpoint import Endpoint, EndpointPoolStatus, EndpointStatus
from rpcguard.models.retry import (
    ErrorClassification,
    OperationAttempt,
    RetryConfig,
    RetryState,
)

__all__ = [
    "Endpoint",
    "EndpointPoolStatus",
    "EndpointStatus",
    "ErrorClassification",
    "OperationAttempt",
    "RetryConfig",
    "RetryState",
]
