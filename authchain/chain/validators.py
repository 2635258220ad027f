"""Per-link-type validators.

Each validator receives the authority established by the previous link and
returns the authority the next link must be signed by, or raises an
AuthChainError subclass describing why the link is invalid.
"""

import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional

from eth_utils import decode_hex, encode_hex

from authchain.core.config import ERC1271_MAGIC_VALUE, HISTORICAL_BLOCK_AFTER
from .blocks import BlockResolver
from .contracts import SignatureValidator
from .crypto import (
    create_eip1654_message_hash,
    recover_address_from_eth_signature,
)
from .ephemeral import parse_ephemeral_payload
from .exceptions import (
    AuthChainError,
    CollaboratorError,
    ExpiredCredentialError,
    ProviderRequiredError,
    SignatureMismatchError,
    UnknownLinkTypeError,
)
from .models import AuthLink, AuthLinkType
from .rpc import RpcProvider

log = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class ValidationOptions:
    """Inputs shared by every validator in one validation run.

    Attributes:
        reference_time_ms: Instant expirations are checked against.
        provider: RPC capability; required for contract-wallet links.
        block_resolver: Resolver for historical contract calls. Created on
            first use when not supplied.
    """
    reference_time_ms: int
    provider: Optional[RpcProvider] = None
    block_resolver: Optional[BlockResolver] = None

    def resolver(self) -> BlockResolver:
        if self.block_resolver is None:
            self.block_resolver = BlockResolver(self.provider)
        return self.block_resolver


Validator = Callable[[str, AuthLink, ValidationOptions], Awaitable[str]]


def _check_expiration(expiration_ms: int, options: ValidationOptions) -> None:
    if not options.reference_time_ms < expiration_ms:
        raise ExpiredCredentialError(expiration_ms, options.reference_time_ms)


def _check_personal_signature(authority: str, message: str, link: AuthLink) -> None:
    try:
        signer_address = recover_address_from_eth_signature(link.signature, message)
    except ValueError as e:
        log.info(f"signature_recovery_failed: {e}")
        raise SignatureMismatchError(authority, "<unrecoverable signature>") from e

    if authority.lower() != signer_address.lower():
        raise SignatureMismatchError(authority, signer_address)


async def _check_eip1654_signature(authority: str, message: str, link: AuthLink, options: ValidationOptions) -> None:
    """Ask the wallet contract at ``authority`` whether it signed ``message``.

    The call is made at the chain head first. A wallet's signer set can
    change over time, so a head call that does not answer the magic value,
    whether it returns something else or reverts, is retried at the block
    of the reference time before failing.
    """
    if options.provider is None:
        raise ProviderRequiredError()

    msg_hash = create_eip1654_message_hash(message)
    try:
        signature = decode_hex(link.signature)
    except (TypeError, ValueError) as e:
        raise CollaboratorError(f"Invalid contract wallet signature encoding: {e}") from e

    validator = SignatureValidator(options.provider, authority)

    try:
        result = encode_hex(await validator.is_valid_signature(msg_hash, signature))
    except Exception as e:
        log.info(f"eip1654_head_call_failed: {e}", extra={"authority": authority})
        result = None
    if result == ERC1271_MAGIC_VALUE:
        return

    try:
        block = await options.resolver().get_date(options.reference_time_ms, after=HISTORICAL_BLOCK_AFTER)
        log.info("eip1654_historical_retry", extra={"authority": authority, "block": block.block})
        result = encode_hex(await validator.is_valid_signature(msg_hash, signature, block.block))
    except AuthChainError:
        raise
    except Exception as e:
        raise CollaboratorError(f"Contract wallet call failed: {e}") from e

    if result != ERC1271_MAGIC_VALUE:
        raise CollaboratorError(f"Invalid validation. Expected: {ERC1271_MAGIC_VALUE}. Actual: {result}")


async def signer_validator(authority: str, link: AuthLink, options: ValidationOptions) -> str:
    return link.payload


async def ecdsa_personal_signed_entity_validator(authority: str, link: AuthLink, options: ValidationOptions) -> str:
    _check_personal_signature(authority, link.payload, link)
    return link.payload


async def ecdsa_personal_ephemeral_validator(authority: str, link: AuthLink, options: ValidationOptions) -> str:
    payload = parse_ephemeral_payload(link.payload)
    _check_expiration(payload.expiration_ms, options)
    _check_personal_signature(authority, payload.message, link)
    return payload.ephemeral_address


async def ecdsa_eip1654_signed_entity_validator(authority: str, link: AuthLink, options: ValidationOptions) -> str:
    await _check_eip1654_signature(authority, link.payload, link, options)
    return link.payload


async def ecdsa_eip1654_ephemeral_validator(authority: str, link: AuthLink, options: ValidationOptions) -> str:
    payload = parse_ephemeral_payload(link.payload)
    _check_expiration(payload.expiration_ms, options)
    await _check_eip1654_signature(authority, payload.message, link, options)
    return payload.ephemeral_address


async def error_validator(authority: str, link: AuthLink, options: ValidationOptions) -> str:
    raise UnknownLinkTypeError(link.type)


VALIDATORS: Dict[AuthLinkType, Validator] = {
    AuthLinkType.SIGNER: signer_validator,
    AuthLinkType.ECDSA_PERSONAL_EPHEMERAL: ecdsa_personal_ephemeral_validator,
    AuthLinkType.ECDSA_PERSONAL_SIGNED_ENTITY: ecdsa_personal_signed_entity_validator,
    AuthLinkType.ECDSA_EIP_1654_EPHEMERAL: ecdsa_eip1654_ephemeral_validator,
    AuthLinkType.ECDSA_EIP_1654_SIGNED_ENTITY: ecdsa_eip1654_signed_entity_validator,
}


def get_validator(link_type: str) -> Validator:
    """Validator for a wire link type; unknown types get error_validator."""
    try:
        return VALIDATORS[AuthLinkType(link_type)]
    except ValueError:
        return error_validator
