"""Services package for endpoint management, classification and retries."""

from rpcguard.services.endpoint_manager import EndpointManager
from rpcguard.services.error_classifier import ErrorClassifierService
from rpcguard.services.retry_orchestrator import RetryHooks, RetryOrchestrator
from rpcguard.services.rpc_client import RpcClient

__all__ = [
    "EndpointManager",
    "ErrorClassifierService",
    "RetryHooks",
    "RetryOrchestrator",
    "RpcClient",
]
