"""Error classification driving retry policy."""

import logging

from rpcguard.constants import (
    ALL_ENDPOINTS_FAILED_MESSAGE,
    KIND_SEVERITY,
    SEVERITY_PATTERNS,
    UNAUTHORIZED_PATTERNS,
    ErrorKind,
    ErrorSeverity,
)
from rpcguard.core.exceptions import ClassifiedError, RpcTransportError
from rpcguard.models.retry import ErrorClassification

logger = logging.getLogger(__name__)


class ErrorClassifierService:
    """
    Maps a raw error to a severity, an actionable kind and a retry verdict.

    Critical message patterns are checked first. Otherwise errors raised by a
    transport carry a structured kind, which is used directly, and anything
    else falls back to case-insensitive substring matching on the message,
    checked high -> medium, with low as default.
    Classification is stateless: the same error text always yields the same
    result.
    """

    def classify(self, error: BaseException) -> ErrorClassification:
        """Classify a single error."""
        message = self.error_message(error)
        lowered = message.lower()
        severity, kind = self._match_patterns(lowered)

        # Caller-side problems stay critical whatever the transport reported
        if severity != ErrorSeverity.CRITICAL:
            structured = self._classify_structured(error, message)
            if structured is not None:
                return structured

        unauthorized = self.is_unauthorized(message)
        if unauthorized and kind == ErrorKind.UNKNOWN:
            kind = ErrorKind.UNAUTHORIZED

        return ErrorClassification(
            message=message,
            severity=severity,
            kind=kind,
            retryable=severity != ErrorSeverity.CRITICAL and not unauthorized,
            unauthorized=unauthorized,
            all_endpoints_failed=ALL_ENDPOINTS_FAILED_MESSAGE.lower() in lowered,
        )

    @staticmethod
    def _match_patterns(lowered: str) -> tuple[ErrorSeverity, ErrorKind]:
        """First matching severity bucket for a lowercased message."""
        for bucket, patterns in SEVERITY_PATTERNS:
            match = next((k for p, k in patterns if p in lowered), None)
            if match is not None:
                return bucket, match
        return ErrorSeverity.LOW, ErrorKind.UNKNOWN

    def _classify_structured(
        self, error: BaseException, message: str
    ) -> ErrorClassification | None:
        """Classify from a transport's structured kind, if it has one."""
        if isinstance(error, ClassifiedError):
            kind = error.kind
            severity = error.severity
        elif isinstance(error, RpcTransportError) and error.kind != ErrorKind.UNKNOWN:
            kind = error.kind
            severity = KIND_SEVERITY[kind]
        else:
            return None

        unauthorized = kind == ErrorKind.UNAUTHORIZED
        return ErrorClassification(
            message=message,
            severity=severity,
            kind=kind,
            retryable=severity != ErrorSeverity.CRITICAL and not unauthorized,
            unauthorized=unauthorized,
            all_endpoints_failed=kind == ErrorKind.ALL_ENDPOINTS_FAILED,
        )

    @staticmethod
    def error_message(error: BaseException) -> str:
        """Best-effort message text for an error."""
        message = getattr(error, "message", None)
        if isinstance(message, str) and message:
            return message
        return str(error) or type(error).__name__

    @staticmethod
    def is_unauthorized(message: str) -> bool:
        """Credential failures never resolve by retrying."""
        lowered = message.lower()
        return any(p in lowered for p in UNAUTHORIZED_PATTERNS)

    def should_retry(
        self, error: BaseException, attempts: int, max_retries: int
    ) -> bool:
        """
        Decide whether another attempt is allowed.

        Args:
            error: The error from the latest attempt.
            attempts: Attempts already made for this operation.
            max_retries: Total attempt ceiling.

        Returns:
            False for critical or unauthorized errors, or once the ceiling
            is reached. True otherwise.
        """
        classification = self.classify(error)
        if not classification.retryable:
            return False
        return attempts < max_retries
