"""Core module for base interfaces and abstractions."""

from rpcguard.core.exceptions import (
    AllEndpointsFailedError,
    ClassifiedError,
    EndpointNotFoundError,
    NoEndpointsConfiguredError,
    RpcGuardError,
    RpcTransportError,
)
from rpcguard.core.transport import RpcTransport

__all__ = [
    "AllEndpointsFailedError",
    "ClassifiedError",
    "EndpointNotFoundError",
    "NoEndpointsConfiguredError",
    "RpcGuardError",
    "RpcTransport",
    "RpcTransportError",
]
