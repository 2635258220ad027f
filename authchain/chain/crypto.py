"""secp256k1 signature primitives for Ethereum-style personal signatures.

Signatures are 65 bytes: r (32) || s (32) || v (1). v arrives either as the
legacy recovery id 0/1 or the canonical 27/28; recovery accepts both and
signing always emits 27/28.
"""

from typing import Union

from eth_account import Account
from eth_keys import keys
from eth_utils import decode_hex, encode_hex, is_hex, keccak, to_checksum_address

from authchain.core.config import ETHEREUM_MESSAGE_PREFIX, SIGNATURE_LENGTH_BYTES
from .models import Identity


BytesLike = Union[bytes, bytearray, str]


def _to_bytes(value: BytesLike) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str) and is_hex(value):
        return decode_hex(value)
    raise ValueError("Expected bytes or a hex string")


def _utf8(msg: Union[str, bytes]) -> bytes:
    return msg.encode("utf-8") if isinstance(msg, str) else bytes(msg)


def recover_public_key(signature: BytesLike, msg_hash: BytesLike) -> bytes:
    """Return the 64-byte public key that produced ``signature`` over ``msg_hash``.

    Args:
        signature: 65-byte signature; v may be 0/1 or 27/28.
        msg_hash: 32-byte digest that was signed.

    Raises:
        ValueError: Wrong length, unknown recovery id, or recovery failure.
    """
    sig = _to_bytes(signature)
    if len(sig) != SIGNATURE_LENGTH_BYTES:
        raise ValueError(f"Invalid signature length {len(sig)}")

    v = sig[64]
    if v in (27, 28):
        v -= 27
    elif v not in (0, 1):
        raise ValueError(f"Invalid recovery id {sig[64]}")

    try:
        signature_obj = keys.Signature(vrs=(
            v,
            int.from_bytes(sig[0:32], "big"),
            int.from_bytes(sig[32:64], "big"),
        ))
        public_key = signature_obj.recover_public_key_from_msg_hash(_to_bytes(msg_hash))
    except Exception as e:
        # Any recovery failure (r or s out of range, no point on curve) is fatal
        raise ValueError(f"Public key recovery failed: {e}") from e

    # eth_keys already drops the 0x04 uncompressed-point prefix
    return public_key.to_bytes()


def compute_address(public_key: BytesLike) -> str:
    """EIP-55 checksummed address of a 64-byte (or 0x04-prefixed 65-byte) key."""
    key = _to_bytes(public_key)
    if len(key) == 65 and key[0] == 0x04:
        key = key[1:]
    return to_checksum_address(keccak(key)[-20:])


def sign(private_key: BytesLike, msg_hash: BytesLike) -> str:
    """Sign a 32-byte hash; returns 0x-hex r||s||v with v in 27/28."""
    signature = keys.PrivateKey(_to_bytes(private_key)).sign_msg_hash(_to_bytes(msg_hash))
    raw = signature.to_bytes()
    return encode_hex(raw[:64] + bytes([raw[64] + 27]))


def sanitize_signature(signature: BytesLike) -> bytes:
    """Rewrite a legacy 0/1 recovery id to 27/28."""
    sig = bytearray(_to_bytes(signature))
    if len(sig) != SIGNATURE_LENGTH_BYTES:
        raise ValueError("Invalid ethereum signature")
    if sig[64] in (0, 1):
        sig[64] += 27
    return bytes(sig)


def create_ethereum_message_hash(msg: Union[str, bytes]) -> bytes:
    """keccak256 of the EIP-191 personal message envelope."""
    message = _utf8(msg)
    prefix = f"{ETHEREUM_MESSAGE_PREFIX}{len(message)}".encode("utf-8")
    return keccak(prefix + message)


def create_eip1654_message_hash(msg: Union[str, bytes]) -> bytes:
    """keccak256 of the raw message, as contract wallets expect it."""
    return keccak(_utf8(msg))


def recover_address_from_eth_signature(signature: BytesLike, msg: Union[str, bytes]) -> str:
    """Address that personal-signed ``msg``."""
    if isinstance(signature, str) and not is_hex(signature):
        raise ValueError("String signatures must be encoded in hex")
    return compute_address(
        recover_public_key(sanitize_signature(signature), create_ethereum_message_hash(msg))
    )


def eth_sign(private_key: BytesLike, msg: Union[str, bytes]) -> str:
    """Emulates eth_personalSign."""
    return sign(private_key, create_ethereum_message_hash(msg))


def create_signature(identity: Identity, message: str) -> str:
    return eth_sign(identity.private_key, message)


def create_identity() -> Identity:
    """Fresh random identity from the OS CSPRNG."""
    account = Account.create()
    private_key = keys.PrivateKey(bytes(account.key))
    return Identity(
        private_key=encode_hex(private_key.to_bytes()),
        public_key=private_key.public_key.to_bytes().hex(),
        address=account.address,
    )
