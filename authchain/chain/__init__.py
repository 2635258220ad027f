"""AuthChain validation package.

Verifies chains of delegations from an owner address (EOA or contract
wallet) through an ephemeral key to a signed entity.

Components:
- models: AuthLink, AuthLinkType, ValidationResult, Identity
- crypto: secp256k1 sign / recover / address primitives
- ephemeral: ephemeral delegation message format
- validators: per-link-type validators
- authenticator: validate_signature and chain well-formedness
- builder: chain construction
- blocks: timestamp to block number resolver
- rpc / contracts: RPC capability and the EIP-1271 contract binding

Usage:
    from authchain.chain import (
        create_auth_chain,
        create_identity,
        validate_signature,
    )
"""

from .authenticator import is_valid_auth_chain, owner_address, validate_signature
from .blocks import BlockResolver
from .builder import (
    create_auth_chain,
    create_simple_auth_chain,
    get_ephemeral_signature_type,
    initialize_auth_chain,
    sign_payload,
)
from .crypto import (
    compute_address,
    create_eip1654_message_hash,
    create_ethereum_message_hash,
    create_identity,
    create_signature,
    eth_sign,
    recover_address_from_eth_signature,
    recover_public_key,
    sign,
)
from .ephemeral import get_ephemeral_message, parse_ephemeral_payload
from .exceptions import (
    AuthChainError,
    CollaboratorError,
    ExpiredCredentialError,
    FinalAuthorityMismatchError,
    MalformedChainError,
    PayloadParseError,
    ProviderRequiredError,
    RpcError,
    SignatureMismatchError,
    StructuralError,
    UnknownLinkTypeError,
)
from .models import (
    AuthChain,
    AuthIdentity,
    AuthLink,
    AuthLinkType,
    BlockResponse,
    Identity,
    SavedBlock,
    ValidationResult,
)
from .rpc import JsonRpcProvider, RpcProvider

__all__ = [
    # Validation
    "validate_signature",
    "is_valid_auth_chain",
    "owner_address",
    # Construction
    "create_auth_chain",
    "create_simple_auth_chain",
    "initialize_auth_chain",
    "sign_payload",
    "get_ephemeral_signature_type",
    "get_ephemeral_message",
    "parse_ephemeral_payload",
    # Crypto
    "sign",
    "recover_public_key",
    "compute_address",
    "create_ethereum_message_hash",
    "create_eip1654_message_hash",
    "recover_address_from_eth_signature",
    "eth_sign",
    "create_signature",
    "create_identity",
    # Blocks / RPC
    "BlockResolver",
    "RpcProvider",
    "JsonRpcProvider",
    # Models
    "AuthChain",
    "AuthIdentity",
    "AuthLink",
    "AuthLinkType",
    "BlockResponse",
    "Identity",
    "SavedBlock",
    "ValidationResult",
    # Exceptions
    "AuthChainError",
    "StructuralError",
    "MalformedChainError",
    "PayloadParseError",
    "UnknownLinkTypeError",
    "SignatureMismatchError",
    "ExpiredCredentialError",
    "CollaboratorError",
    "RpcError",
    "FinalAuthorityMismatchError",
    "ProviderRequiredError",
]
