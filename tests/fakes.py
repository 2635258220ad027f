"""Static key vectors and a scripted in-memory RpcProvider for tests."""

from collections import Counter
from typing import Dict, List, Optional, Union

from eth_abi import encode

from authchain.chain.exceptions import RpcError
from authchain.chain.models import Identity, SavedBlock


REAL_ACCOUNT = Identity(
    private_key="0x800cbd114eba965fcb41c252b920e916d2be8851496f21f24f1b4dcadf51688e",
    public_key=(
        "e9f386a334fb21ce11151a88b54f4aebaf0e7ab7b8ad7b3be9c503857b278c7a"
        "7f4ccb611c5edd046e07bf1d1969c966b28fa9bfb10bf7bfa239625968bcfc4f"
    ),
    address="0x13FE90239bfda363eC33a849b716616958c04f0F",
)

EPHEMERAL_IDENTITY = Identity(
    private_key="0x8d11d14dd05b58fa150ec39ceab942dbff334af4dd4e87df4244106023d758ce",
    public_key=(
        "a1a8de183be2f189bdfacf83ca4262016840c590abee0b2048288c3b9090dae8"
        "7538eda022d7c6f82a5ed617b7138db1a63ebe92f7b1afc6de032d6568525f13"
    ),
    address="0x68560651BD91509EB22b90f6F748422A26CA3425",
)

# Plain 65-byte personal signature
PERSONAL_SIGNATURE = (
    "0x49c5d57fc804e6a06f83ee8d499aec293a84328766864d96349db599ef9ebacc"
    "072892ec1f3e2777bdc8265b53d8b84edd646bdc711dd5290c18adcc5de4a2831b"
)

# Signature returned by a contract wallet (longer than a plain 65-byte one)
CONTRACT_WALLET_SIGNATURE = (
    "0xea441043d745d130e8a2560d7c5e8a9e9d9dae8530015f3bd90eaea5040c81ca"
    "419a2a2f29c48439985a58fa7aa7b4bb06e4111a054bfa8095b65b2f3c1ecae4"
    "1ccdb959d51dda310325d0294cf6a9f0691d08abfb9978d4f2e7e504042b663e"
    "f2123712bf864ef161cf579c4b3e3faf3767865a5bb4535d9fc2b9f6664e403d241b"
)

WALLET_ADDRESS = "0x1d9aa2025b67f0f21d1603ce521bda7869098f8a"

BLOCK_BASE_TIMESTAMP = 1_600_000_000
BLOCK_INTERVALS = (2, 13, 5, 30, 1, 8)


def encode_magic(value: bytes) -> bytes:
    """ABI-encode a bytes4 return value."""
    return encode(["bytes4"], [value])


MAGIC_RESULT = encode_magic(bytes.fromhex("1626ba7e"))
REJECT_RESULT = encode_magic(bytes.fromhex("ffffffff"))


def make_timestamps(count: int, base: int = BLOCK_BASE_TIMESTAMP, intervals=BLOCK_INTERVALS) -> List[int]:
    """Strictly increasing, non-uniformly spaced block timestamps (block 1 first)."""
    timestamps = [base]
    for i in range(1, count):
        timestamps.append(timestamps[-1] + intervals[i % len(intervals)])
    return timestamps


class FakeRpcProvider:
    """In-memory RpcProvider.

    Blocks 1..len(timestamps) exist; "latest" is the last one. call_view
    answers from ``view_results`` keyed by block tag, falling back to
    ``default_view_result``. An Exception value is raised instead of
    returned.
    """

    def __init__(
        self,
        timestamps: Optional[List[int]] = None,
        view_results: Optional[Dict[Union[int, str], Union[bytes, Exception]]] = None,
        default_view_result: Union[bytes, Exception] = REJECT_RESULT,
    ):
        self.timestamps = timestamps if timestamps is not None else make_timestamps(600)
        self.view_results = view_results or {}
        self.default_view_result = default_view_result
        self.block_calls: List[Union[int, str]] = []
        self.view_calls: List[tuple] = []

    @property
    def head_number(self) -> int:
        return len(self.timestamps)

    def timestamp_of(self, number: int) -> int:
        return self.timestamps[number - 1]

    def block_call_counts(self) -> Counter:
        return Counter(self.block_calls)

    async def get_block(self, identifier):
        self.block_calls.append(identifier)
        number = self.head_number if identifier == "latest" else identifier
        if not isinstance(number, int) or number < 1 or number > self.head_number:
            raise RpcError(f"Block {identifier} not found")
        return SavedBlock(number=number, timestamp=self.timestamp_of(number))

    async def call_view(self, contract_address, function_selector, args, block_tag="latest"):
        self.view_calls.append((contract_address, function_selector, args, block_tag))
        result = self.view_results.get(block_tag, self.default_view_result)
        if isinstance(result, Exception):
            raise result
        return result


