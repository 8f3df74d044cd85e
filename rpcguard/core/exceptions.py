"""Custom exceptions for rpcguard."""

from rpcguard.constants import ALL_ENDPOINTS_FAILED_MESSAGE, ErrorKind, ErrorSeverity


class RpcGuardError(Exception):
    """Base exception for all rpcguard errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code or "RPCGUARD_ERROR"
        super().__init__(self.message)


class ClassifiedError(RpcGuardError):
    """Terminal failure returned to the caller once retrying has stopped.

    The message is the message of the last raw error, unchanged. The raw
    error itself is chained as ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        attempts: int = 1,
        retryable: bool = False,
        operation: str | None = None,
    ) -> None:
        self.severity = severity
        self.kind = kind
        self.attempts = attempts
        self.retryable = retryable
        self.operation = operation
        super().__init__(message, "CLASSIFIED_ERROR")

    def to_dict(self) -> dict[str, object]:
        """Render the failure for diagnostics or a user-facing message."""
        return {
            "message": self.message,
            "severity": self.severity.value,
            "kind": self.kind.value,
            "attempts": self.attempts,
            "retryable": self.retryable,
            "operation": self.operation,
        }


class RpcTransportError(RpcGuardError):
    """Raised by a transport when a single RPC call fails.

    Carries a structured kind and, where known, the HTTP status and the
    JSON-RPC error code so classification need not parse free text.
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        status_code: int | None = None,
        rpc_code: int | None = None,
        endpoint: str | None = None,
    ) -> None:
        self.kind = kind
        self.status_code = status_code
        self.rpc_code = rpc_code
        self.endpoint = endpoint
        super().__init__(message, "RPC_TRANSPORT_ERROR")


class AllEndpointsFailedError(RpcTransportError):
    """Raised when no endpoint in the pool could serve a request."""

    def __init__(self, message: str = ALL_ENDPOINTS_FAILED_MESSAGE) -> None:
        super().__init__(message, ErrorKind.ALL_ENDPOINTS_FAILED)
        self.code = "ALL_ENDPOINTS_FAILED"


class NoEndpointsConfiguredError(RpcGuardError):
    """Raised when an endpoint manager is built with an empty pool."""

    def __init__(self) -> None:
        super().__init__("No RPC endpoints configured", "NO_ENDPOINTS")


class EndpointNotFoundError(RpcGuardError):
    """Raised when an operation names an endpoint outside the pool."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"Unknown RPC endpoint: {url}", "ENDPOINT_NOT_FOUND")
