"""RPC transport implementations."""

from rpcguard.providers.jsonrpc_http import JsonRpcHttpTransport

__all__ = [
    "JsonRpcHttpTransport",
]
