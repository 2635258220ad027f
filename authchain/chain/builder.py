"""AuthChain construction."""

from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional

from authchain.core.config import EIP1654_SIGNATURE_HEX_LENGTH_THRESHOLD
from .crypto import create_signature
from .ephemeral import from_epoch_ms, get_ephemeral_message
from .models import AuthChain, AuthIdentity, AuthLink, AuthLinkType, Identity

Signer = Callable[[str], Awaitable[str]]


def _expiration(ttl_minutes: float, expiration_ms: Optional[int]) -> datetime:
    if expiration_ms is not None:
        return from_epoch_ms(expiration_ms)
    return datetime.now(timezone.utc) + timedelta(minutes=ttl_minutes)


def get_ephemeral_signature_type(signature: str) -> AuthLinkType:
    """Link type implied by a signature returned from an external signer.

    Contract wallets return signatures longer than a plain 65-byte ECDSA
    signature; length is the only available hint.
    """
    if len(signature) > EIP1654_SIGNATURE_HEX_LENGTH_THRESHOLD:
        return AuthLinkType.ECDSA_EIP_1654_EPHEMERAL
    return AuthLinkType.ECDSA_PERSONAL_EPHEMERAL


def create_auth_chain(
    owner_identity: Identity,
    ephemeral_identity: Identity,
    ttl_minutes: float,
    entity_id: str,
    expiration_ms: Optional[int] = None,
) -> AuthChain:
    """Build a three-link chain: owner -> ephemeral key -> entity.

    A negative ``ttl_minutes`` produces an already expired credential.
    ``expiration_ms`` overrides the ttl with an absolute instant.
    """
    expiration = _expiration(ttl_minutes, expiration_ms)
    ephemeral_message = get_ephemeral_message(ephemeral_identity.address, expiration)

    return [
        AuthLink(type=AuthLinkType.SIGNER, payload=owner_identity.address, signature=""),
        AuthLink(
            type=AuthLinkType.ECDSA_PERSONAL_EPHEMERAL,
            payload=ephemeral_message,
            signature=create_signature(owner_identity, ephemeral_message),
        ),
        AuthLink(
            type=AuthLinkType.ECDSA_PERSONAL_SIGNED_ENTITY,
            payload=entity_id,
            signature=create_signature(ephemeral_identity, entity_id),
        ),
    ]


def create_simple_auth_chain(final_payload: str, owner_address: str, signature: str) -> AuthChain:
    """Two-link chain where the owner signs the entity directly."""
    return [
        AuthLink(type=AuthLinkType.SIGNER, payload=owner_address, signature=""),
        AuthLink(
            type=AuthLinkType.ECDSA_PERSONAL_SIGNED_ENTITY,
            payload=final_payload,
            signature=signature,
        ),
    ]


async def initialize_auth_chain(
    address: str,
    ephemeral_identity: Identity,
    ttl_minutes: float,
    signer: Signer,
    expiration_ms: Optional[int] = None,
    link_type: Optional[AuthLinkType] = None,
) -> AuthIdentity:
    """Delegate to ``ephemeral_identity`` using an external signer.

    Args:
        address: Owner address (EOA or contract wallet).
        ephemeral_identity: Key that will sign entities later.
        ttl_minutes: Lifetime of the delegation.
        signer: Async callable signing a message on behalf of ``address``
            (hardware or remote wallet).
        expiration_ms: Absolute expiration overriding ``ttl_minutes``.
        link_type: Ephemeral link type; inferred from the signature length
            when omitted.

    Returns:
        AuthIdentity whose chain ends at the ephemeral link.
    """
    expiration = _expiration(ttl_minutes, expiration_ms)
    ephemeral_message = get_ephemeral_message(ephemeral_identity.address, expiration)
    first_signature = await signer(ephemeral_message)

    auth_chain = [
        AuthLink(type=AuthLinkType.SIGNER, payload=address, signature=""),
        AuthLink(
            type=link_type or get_ephemeral_signature_type(first_signature),
            payload=ephemeral_message,
            signature=first_signature,
        ),
    ]

    return AuthIdentity(
        ephemeral_identity=ephemeral_identity,
        expiration=expiration,
        auth_chain=auth_chain,
    )


def sign_payload(auth_identity: AuthIdentity, entity_id: str) -> AuthChain:
    """Append an entity signed by the ephemeral key to a credential's chain."""
    return [
        *auth_identity.auth_chain,
        AuthLink(
            type=AuthLinkType.ECDSA_PERSONAL_SIGNED_ENTITY,
            payload=entity_id,
            signature=create_signature(auth_identity.ephemeral_identity, entity_id),
        ),
    ]
