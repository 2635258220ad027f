"""
AuthChain configuration constants.

Constants are organized into:
- PROTOCOL: Fixed by EIP-191 / EIP-1271 / EIP-1654, cannot be changed
- COMPATIBILITY: Values that must match credentials already in circulation
- OPERATIONAL: Deployment-specific settings (env vars)
"""

import os

# =============================================================================
# PROTOCOL CONSTANTS
# =============================================================================

# bytes4(keccak256("isValidSignature(bytes32,bytes)"))
# A conforming contract wallet returns this value when the signature is valid.
ERC1271_MAGIC_VALUE: str = "0x1626ba7e"

# Function signature called on contract wallets
IS_VALID_SIGNATURE_ABI: str = "isValidSignature(bytes32,bytes)"

# EIP-191 personal_sign prefix
ETHEREUM_MESSAGE_PREFIX: str = "\x19Ethereum Signed Message:\n"

# r (32) + s (32) + v (1)
SIGNATURE_LENGTH_BYTES: int = 65

# =============================================================================
# COMPATIBILITY CONSTANTS
# =============================================================================

# Signatures returned by an external signer whose 0x-hex form is longer than
# this are treated as contract-wallet (EIP-1654) signatures. A plain ECDSA
# signature is 132 characters.
EIP1654_SIGNATURE_HEX_LENGTH_THRESHOLD: int = 150

# First line of the ephemeral delegation message
EPHEMERAL_MESSAGE_TITLE: str = os.getenv("AUTHCHAIN_EPHEMERAL_TITLE", "Decentraland Login")

# Payload returned by owner_address() when the chain has no SIGNER root
INVALID_OWNER_ADDRESS: str = "Invalid-Owner-Address"

# Historical contract-wallet validation resolves the block at-or-after the
# reference time. Not caller-configurable.
HISTORICAL_BLOCK_AFTER: bool = True

# =============================================================================
# OPERATIONAL SETTINGS (deployment-specific, via environment variables)
# =============================================================================

# JSON-RPC endpoint used by the HTTP service for contract-wallet checks.
# Empty disables EIP-1654 validation in the service.
ETH_RPC_URL: str = os.getenv("AUTHCHAIN_RPC_URL", "")

# Per-request timeout for JSON-RPC calls
RPC_TIMEOUT_SECONDS: float = float(os.getenv("AUTHCHAIN_RPC_TIMEOUT", "10.0"))

# Memoize fetched blocks inside a resolver instance
SAVE_BLOCKS: bool = os.getenv("AUTHCHAIN_SAVE_BLOCKS", "true").lower() == "true"
