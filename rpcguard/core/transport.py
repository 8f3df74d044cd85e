"""Abstract RPC transport interface."""

from abc import ABC, abstractmethod
from typing import Any


class RpcTransport(ABC):
    """Abstract base class for RPC transports."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Transport name identifier."""
        ...

    @abstractmethod
    async def call(
        self,
        endpoint_url: str,
        method: str,
        params: list[Any] | dict[str, Any] | None = None,
    ) -> Any:
        """
        Perform one RPC call against one endpoint.

        Args:
            endpoint_url: URL of the endpoint to call.
            method: RPC method name (e.g., 'getBalance').
            params: Positional or named parameters.

        Returns:
            The decoded ``result`` member of the response.

        Raises:
            RpcTransportError: If the call fails for any reason. Transports
                must not retry; retrying belongs to the orchestrator.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close the transport and release resources."""
        ...

    def get_request_count(self) -> int:
        """Number of requests sent so far."""
        return 0
