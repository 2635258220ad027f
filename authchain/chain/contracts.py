"""EIP-1271 / EIP-1654 signature validator contract binding."""

from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector

from authchain.core.config import IS_VALID_SIGNATURE_ABI
from .exceptions import CollaboratorError
from .rpc import LATEST, BlockIdentifier, RpcProvider

IS_VALID_SIGNATURE_SELECTOR: bytes = function_signature_to_4byte_selector(IS_VALID_SIGNATURE_ABI)


class SignatureValidator:
    """Calls ``isValidSignature(bytes32 hash, bytes _signature) returns (bytes4)``."""

    def __init__(self, provider: RpcProvider, address: str):
        self.provider = provider
        self.address = address

    async def is_valid_signature(
        self,
        msg_hash: bytes,
        signature: bytes,
        block: BlockIdentifier = LATEST,
    ) -> bytes:
        """Return the 4-byte magic value answered by the wallet.

        Raises:
            RpcError: Provider failure (including reverts).
            CollaboratorError: Result is not an ABI-encoded bytes4.
        """
        args = encode(["bytes32", "bytes"], [msg_hash, signature])
        raw = await self.provider.call_view(self.address, IS_VALID_SIGNATURE_SELECTOR, args, block)
        try:
            (magic_value,) = decode(["bytes4"], raw)
        except Exception as e:
            raise CollaboratorError(f"Unexpected isValidSignature result: 0x{raw.hex()}") from e
        return magic_value
