"""
AuthChain data model.

Wire-facing types (AuthLink, ValidationResult, request bodies) are pydantic
models so they round-trip through JSON unchanged; internal records are
dataclasses.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# Link types
# =============================================================================

class AuthLinkType(str, Enum):
    """Link types with the wire values used by existing credentials."""
    SIGNER = "SIGNER"
    ECDSA_PERSONAL_EPHEMERAL = "ECDSA_EPHEMERAL"
    ECDSA_PERSONAL_SIGNED_ENTITY = "ECDSA_SIGNED_ENTITY"
    # https://github.com/ethereum/EIPs/issues/1654
    ECDSA_EIP_1654_EPHEMERAL = "ECDSA_EIP_1654_EPHEMERAL"
    ECDSA_EIP_1654_SIGNED_ENTITY = "ECDSA_EIP_1654_SIGNED_ENTITY"


class AuthLink(BaseModel):
    """One link of an AuthChain.

    ``type`` is kept as the plain wire string so that chains carrying link
    types this library does not know still parse; the dispatcher rejects
    them instead.
    """
    model_config = ConfigDict(frozen=True)

    type: str
    payload: str
    signature: str = ""

    @field_validator("type", mode="before")
    @classmethod
    def _plain_type(cls, v):
        if isinstance(v, AuthLinkType):
            return v.value
        return v


AuthChain = List[AuthLink]


class ValidationResult(BaseModel):
    """Outcome of validate_signature(); message is set only on failure."""
    ok: bool
    message: Optional[str] = None


# =============================================================================
# Identities
# =============================================================================

@dataclass(frozen=True)
class Identity:
    """secp256k1 key pair and the address derived from it.

    Attributes:
        private_key: 0x-prefixed hex of the 32-byte secret.
        public_key: hex (no prefix) of the 64-byte uncompressed key without
            the leading 0x04 byte.
        address: EIP-55 checksummed address.
    """
    private_key: str
    public_key: str
    address: str


@dataclass
class AuthIdentity:
    """Reusable credential: an ephemeral key plus the chain authorizing it."""
    ephemeral_identity: Identity
    expiration: datetime
    auth_chain: AuthChain


# =============================================================================
# Block resolver records
# =============================================================================

@dataclass(frozen=True)
class SavedBlock:
    number: int
    timestamp: int


@dataclass(frozen=True)
class BlockResponse:
    """Resolved block for a queried instant (timestamp in seconds)."""
    block: int
    timestamp: float


# =============================================================================
# HTTP request models
# =============================================================================

class ValidateRequest(BaseModel):
    """Request body for /validate"""
    expected_final_authority: str
    auth_chain: List[AuthLink] = Field(default_factory=list)
    reference_time_ms: Optional[int] = None


# =============================================================================
# Error codes
# =============================================================================

class ErrorCode:
    """Error code registry"""
    # Structural
    AUTH_CHAIN_MALFORMED = "AUTH_CHAIN_MALFORMED"
    PAYLOAD_PARSE_FAILED = "PAYLOAD_PARSE_FAILED"
    LINK_TYPE_UNKNOWN = "LINK_TYPE_UNKNOWN"

    # Crypto
    SIGNATURE_MISMATCH = "SIGNATURE_MISMATCH"
    CREDENTIAL_EXPIRED = "CREDENTIAL_EXPIRED"

    # Collaborator
    CONTRACT_VALIDATION_FAILED = "CONTRACT_VALIDATION_FAILED"
    RPC_FAILED = "RPC_FAILED"

    # Chain terminus
    FINAL_AUTHORITY_MISMATCH = "FINAL_AUTHORITY_MISMATCH"


# A retry may succeed only when the failure came from the RPC collaborator
ERROR_RECOVERABILITY: Dict[str, bool] = {
    ErrorCode.AUTH_CHAIN_MALFORMED: False,
    ErrorCode.PAYLOAD_PARSE_FAILED: False,
    ErrorCode.LINK_TYPE_UNKNOWN: False,
    ErrorCode.SIGNATURE_MISMATCH: False,
    ErrorCode.CREDENTIAL_EXPIRED: False,
    ErrorCode.CONTRACT_VALIDATION_FAILED: False,
    ErrorCode.RPC_FAILED: True,
    ErrorCode.FINAL_AUTHORITY_MISMATCH: False,
}
