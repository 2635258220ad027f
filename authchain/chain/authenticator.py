"""AuthChain validation.

validate_signature() folds the current authority through the chain: the
SIGNER link declares the root, every later link must be signed by the
authority produced by the link before it, and the authority left at the
end must be the one the caller expects. Links are checked strictly in
order; the first failure ends the run.
"""

import logging
from typing import Optional

from authchain.core.config import INVALID_OWNER_ADDRESS
from .blocks import BlockResolver
from .exceptions import AuthChainError, FinalAuthorityMismatchError, MalformedChainError
from .models import AuthChain, AuthLinkType, ValidationResult
from .rpc import RpcProvider
from .validators import ValidationOptions, get_validator, now_ms

log = logging.getLogger(__name__)


def is_valid_auth_chain(auth_chain: AuthChain) -> bool:
    """True iff the chain is non-empty and its only SIGNER link is the first."""
    if not auth_chain:
        return False
    if auth_chain[0].type != AuthLinkType.SIGNER.value:
        return False
    return all(link.type != AuthLinkType.SIGNER.value for link in auth_chain[1:])


def owner_address(auth_chain: AuthChain) -> str:
    """Root address declared by the chain's SIGNER link."""
    if auth_chain and auth_chain[0].type == AuthLinkType.SIGNER.value:
        return auth_chain[0].payload
    return INVALID_OWNER_ADDRESS


async def validate_signature(
    expected_final_authority: str,
    auth_chain: AuthChain,
    provider: Optional[RpcProvider] = None,
    reference_time_ms: Optional[int] = None,
    block_resolver: Optional[BlockResolver] = None,
) -> ValidationResult:
    """Validate that ``auth_chain`` authorizes ``expected_final_authority``.

    Args:
        expected_final_authority: Entity id (or address) the chain must end at.
        auth_chain: Links to validate, SIGNER first.
        provider: RPC capability; needed only for contract-wallet links.
        reference_time_ms: Instant expirations are checked against
            (default: now). Fixing it makes validation replayable.
        block_resolver: Optional resolver to share block lookups across
            validations against the same provider.

    Returns:
        ValidationResult(ok=True) on success, otherwise ok=False and a
        message naming the failing link type and cause.

    Raises:
        ProviderRequiredError: A contract-wallet link was reached without a
            provider.
    """
    if not is_valid_auth_chain(auth_chain):
        log.info("auth_chain_malformed")
        return ValidationResult(ok=False, message=f"ERROR: {MalformedChainError().message}")

    options = ValidationOptions(
        reference_time_ms=now_ms() if reference_time_ms is None else reference_time_ms,
        provider=provider,
        block_resolver=block_resolver,
    )

    current_authority = ""
    for auth_link in auth_chain:
        validator = get_validator(auth_link.type)
        try:
            current_authority = await validator(current_authority, auth_link, options)
        except AuthChainError as e:
            log.info(f"auth_link_invalid: {e.message}", extra={"link_type": auth_link.type, "code": e.code})
            return ValidationResult(
                ok=False,
                message=f"ERROR. Link type: {auth_link.type}. {e.message}.",
            )

    if current_authority != expected_final_authority:
        error = FinalAuthorityMismatchError(expected_final_authority, current_authority)
        log.info("final_authority_mismatch", extra={"code": error.code})
        return ValidationResult(ok=False, message=f"ERROR: {error.message}")

    return ValidationResult(ok=True)
