"""rpcguard - resilient RPC execution layer for multi-provider blockchain endpoints."""

__version__ = "1.0.0"
