"""Constants, enums and default endpoint configuration."""

from enum import Enum


class ErrorSeverity(str, Enum):
    """Severity bucket assigned to a failed RPC operation."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorKind(str, Enum):
    """Actionable kind of a failure, used for diagnostics."""

    WALLET_NOT_CONNECTED = "wallet_not_connected"
    USER_REJECTED = "user_rejected"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    ALL_ENDPOINTS_FAILED = "all_endpoints_failed"
    NETWORK = "network"
    CONNECTION_REFUSED = "connection_refused"
    FORBIDDEN = "forbidden"
    RATE_LIMITED = "rate_limited"
    TIMEOUT = "timeout"
    UNAUTHORIZED = "unauthorized"
    UNKNOWN = "unknown"


class HealthState(str, Enum):
    """Health state of a configured endpoint."""

    AVAILABLE = "available"
    BLACKLISTED = "blacklisted"


ALL_ENDPOINTS_FAILED_MESSAGE = "All RPC endpoints failed"

# Substring patterns checked in order; first match wins.
SEVERITY_PATTERNS: tuple[tuple[ErrorSeverity, tuple[tuple[str, ErrorKind], ...]], ...] = (
    (
        ErrorSeverity.CRITICAL,
        (
            ("wallet not connected", ErrorKind.WALLET_NOT_CONNECTED),
            ("user rejected", ErrorKind.USER_REJECTED),
            ("insufficient funds", ErrorKind.INSUFFICIENT_FUNDS),
        ),
    ),
    (
        ErrorSeverity.HIGH,
        (
            ("all rpc endpoints failed", ErrorKind.ALL_ENDPOINTS_FAILED),
            ("network error", ErrorKind.NETWORK),
            ("connection refused", ErrorKind.CONNECTION_REFUSED),
        ),
    ),
    (
        ErrorSeverity.MEDIUM,
        (
            ("403", ErrorKind.FORBIDDEN),
            ("429", ErrorKind.RATE_LIMITED),
            ("rate limit", ErrorKind.RATE_LIMITED),
            ("timeout", ErrorKind.TIMEOUT),
        ),
    ),
)

UNAUTHORIZED_PATTERNS: tuple[str, ...] = ("401", "unauthorized")

# Severity for errors that carry a structured kind.
KIND_SEVERITY: dict[ErrorKind, ErrorSeverity] = {
    ErrorKind.WALLET_NOT_CONNECTED: ErrorSeverity.CRITICAL,
    ErrorKind.USER_REJECTED: ErrorSeverity.CRITICAL,
    ErrorKind.INSUFFICIENT_FUNDS: ErrorSeverity.CRITICAL,
    ErrorKind.ALL_ENDPOINTS_FAILED: ErrorSeverity.HIGH,
    ErrorKind.NETWORK: ErrorSeverity.HIGH,
    ErrorKind.CONNECTION_REFUSED: ErrorSeverity.HIGH,
    ErrorKind.FORBIDDEN: ErrorSeverity.MEDIUM,
    ErrorKind.RATE_LIMITED: ErrorSeverity.MEDIUM,
    ErrorKind.TIMEOUT: ErrorSeverity.MEDIUM,
    ErrorKind.UNAUTHORIZED: ErrorSeverity.LOW,
    ErrorKind.UNKNOWN: ErrorSeverity.LOW,
}

# HTTP status codes the transport maps to a structured kind.
HTTP_STATUS_KINDS: dict[int, ErrorKind] = {
    401: ErrorKind.UNAUTHORIZED,
    403: ErrorKind.FORBIDDEN,
    408: ErrorKind.TIMEOUT,
    429: ErrorKind.RATE_LIMITED,
}

# Solana mainnet endpoints: primary first, then fallbacks.
DEFAULT_RPC_ENDPOINTS: list[str] = [
    "https://solana-rpc.publicnode.com",
    "https://api.mainnet-beta.solana.com",
    "https://rpc.ankr.com/solana",
    "https://solana.blockdaemon.com",
    "https://solana-mainnet.rpc.extrnode.com",
]

HEALTH_CHECK_METHOD = "getHealth"
