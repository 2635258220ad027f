"""RPC capability consumed by the contract-wallet validator and block resolver.

The core only depends on the RpcProvider protocol. JsonRpcProvider is a thin
JSON-RPC 2.0 client over httpx for deployments that talk to an Ethereum node
directly; timeouts and retries beyond a single request are left to the
caller.
"""

import itertools
import logging
from typing import Any, List, Optional, Protocol, Union

import httpx

from authchain.core.config import RPC_TIMEOUT_SECONDS
from .exceptions import RpcError
from .models import SavedBlock

log = logging.getLogger(__name__)

BlockIdentifier = Union[int, str]

LATEST = "latest"


class RpcProvider(Protocol):
    """Read-only chain access."""

    async def call_view(
        self,
        contract_address: str,
        function_selector: bytes,
        args: bytes,
        block_tag: BlockIdentifier = LATEST,
    ) -> bytes:
        """Execute a view function and return the raw ABI-encoded result."""
        ...

    async def get_block(self, identifier: BlockIdentifier) -> SavedBlock:
        """Fetch a block by number or the "latest" marker."""
        ...


def to_block_tag(identifier: BlockIdentifier) -> str:
    if isinstance(identifier, int):
        return hex(identifier)
    return identifier


def _quantity(value: Any) -> int:
    if isinstance(value, int):
        return value
    return int(value, 16)


class JsonRpcProvider:
    """RpcProvider backed by an Ethereum JSON-RPC endpoint."""

    def __init__(
        self,
        url: str,
        timeout: float = RPC_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize provider.

        Args:
            url: JSON-RPC endpoint URL.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self.url = url
        self.timeout = timeout
        self._transport = transport
        self._ids = itertools.count(1)

    async def request(self, method: str, params: List[Any]) -> Any:
        """Send one JSON-RPC request and return its ``result``.

        Raises:
            RpcError: Transport failure, HTTP error, or JSON-RPC error object.
        """
        body = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        log.debug(f"rpc_request: method={method} params={params}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.url, json=body)
        except httpx.TimeoutException as e:
            raise RpcError(f"RPC timeout after {self.timeout}s: {method}") from e
        except httpx.RequestError as e:
            raise RpcError(f"RPC network error: {e}") from e

        if response.status_code >= 400:
            raise RpcError(f"RPC {method} failed: HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise RpcError(f"RPC {method} returned invalid JSON") from e

        if not isinstance(payload, dict):
            raise RpcError(f"RPC {method} returned a non-object response")

        if payload.get("error"):
            error = payload["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise RpcError(f"RPC {method} error: {message}")

        return payload.get("result")

    async def call_view(
        self,
        contract_address: str,
        function_selector: bytes,
        args: bytes,
        block_tag: BlockIdentifier = LATEST,
    ) -> bytes:
        data = "0x" + (function_selector + args).hex()
        result = await self.request(
            "eth_call",
            [{"to": contract_address, "data": data}, to_block_tag(block_tag)],
        )
        if not isinstance(result, str):
            raise RpcError("eth_call returned no data")
        return bytes.fromhex(result[2:] if result.startswith("0x") else result)

    async def get_block(self, identifier: BlockIdentifier) -> SavedBlock:
        result = await self.request("eth_getBlockByNumber", [to_block_tag(identifier), False])
        if not result:
            raise RpcError(f"Block {identifier} not found")
        try:
            return SavedBlock(
                number=_quantity(result["number"]),
                timestamp=_quantity(result["timestamp"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise RpcError(f"Malformed block {identifier}: {e}") from e
