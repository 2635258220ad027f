"""AuthChain exceptions mapped to error codes.

Every failure a validator can hit on bad input data is an AuthChainError;
validate_signature() turns them into a failed ValidationResult. Only
ProviderRequiredError (caller misuse) escapes validation.
"""

from .models import ErrorCode


class AuthChainError(Exception):
    """Base exception for chain validation failures.

    Carries an error code from ErrorCode.
    """

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(message)


class StructuralError(AuthChainError):
    """Chain or payload shape is wrong; raised before any crypto."""

    def __init__(self, message: str = "Malformed authChain", code: str = ErrorCode.AUTH_CHAIN_MALFORMED):
        super().__init__(code, message)


class MalformedChainError(StructuralError):
    """SIGNER link missing, duplicated or not at index 0."""

    def __init__(self, message: str = "Malformed authChain"):
        super().__init__(message)


class PayloadParseError(StructuralError):
    """Ephemeral payload does not have the three expected lines."""

    def __init__(self, message: str = "Invalid ephemeral payload"):
        super().__init__(message, ErrorCode.PAYLOAD_PARSE_FAILED)


class UnknownLinkTypeError(StructuralError):
    """No validator exists for the link type."""

    def __init__(self, link_type: str):
        self.link_type = link_type
        super().__init__(f"Unknown link type {link_type}", ErrorCode.LINK_TYPE_UNKNOWN)


class SignatureMismatchError(AuthChainError):
    """Recovered signer differs from the current authority.

    Also used when the signature cannot be decoded or recovered at all.
    """

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(
            ErrorCode.SIGNATURE_MISMATCH,
            f"Invalid signer address. Expected: {expected}. Actual: {actual}",
        )


class ExpiredCredentialError(AuthChainError):
    """Reference time is not strictly before the ephemeral expiration."""

    def __init__(self, expiration_ms: int, reference_time_ms: int):
        self.expiration_ms = expiration_ms
        self.reference_time_ms = reference_time_ms
        super().__init__(
            ErrorCode.CREDENTIAL_EXPIRED,
            f"Ephemeral key expired. Expiration: {expiration_ms}. Test: {reference_time_ms}",
        )


class CollaboratorError(AuthChainError):
    """Contract-wallet check failed: wrong magic value, revert or RPC failure."""

    def __init__(self, message: str = "Contract wallet validation failed", code: str = ErrorCode.CONTRACT_VALIDATION_FAILED):
        super().__init__(code, message)


class RpcError(CollaboratorError):
    """JSON-RPC transport or protocol failure.

    Recoverable: a retry may succeed.
    """

    def __init__(self, message: str = "RPC call failed"):
        super().__init__(message, ErrorCode.RPC_FAILED)


class FinalAuthorityMismatchError(AuthChainError):
    """Chain is internally consistent but ends somewhere else."""

    def __init__(self, expected: str, current: str):
        self.expected = expected
        self.current = current
        super().__init__(
            ErrorCode.FINAL_AUTHORITY_MISMATCH,
            f"Invalid final authority. Expected: {expected}. Current {current}.",
        )


class ProviderRequiredError(ValueError):
    """A contract-wallet link was validated without an RPC provider."""

    def __init__(self, message: str = "Missing provider"):
        super().__init__(message)
