# sessionguard/core/hashing.py
# Version: 1.0.0
# Canonical hashing layer.
#
# =============================================================================
# SCOPE
# =============================================================================
#
# The two canonical, versioned digests this package signs and verifies:
#
#   user_operation_hash()        -- ERC-4337 (v0.6) user operation hash,
#                                   computed over the ENTIRE operation, bound
#                                   to an entry point and a chain id.
#   to_eth_signed_message_hash() -- EIP-191 "Ethereum Signed Message" wrap of a
#                                   32-byte digest, applied before recovery.
#
# IMPORT RULES:
#   The Keccak primitives live in sessionguard.utils.keccak (a leaf, so that
#   the constants module can derive selectors from it) and are re-exported here.
#
# DETERMINISM GUARANTEES:
#   DET-01  No stochastic operations.
#   DET-02  All inputs passed explicitly. No module-level mutable reads.
#   DET-03  Every digest is Keccak-256 over a canonical ABI byte sequence.
#
# =============================================================================

from __future__ import annotations

from typing import TYPE_CHECKING

from eth_abi import encode as abi_encode

from sessionguard.core.exceptions import MalformedEncodingError
from sessionguard.utils.constants import ETH_SIGNED_MESSAGE_PREFIX, WORD_WIDTH
from sessionguard.utils.keccak import function_selector, keccak256

if TYPE_CHECKING:
    from sessionguard.core.envelope.domain import ChainContext, UserOperation


# =============================================================================
# SECTION 1: CANONICAL OPERATION HASH
# =============================================================================

_PACKED_USER_OP_TYPES = (
    "address",  # sender
    "uint256",  # nonce
    "bytes32",  # keccak(initCode)
    "bytes32",  # keccak(callData)
    "uint256",  # callGasLimit
    "uint256",  # verificationGasLimit
    "uint256",  # preVerificationGas
    "uint256",  # maxFeePerGas
    "uint256",  # maxPriorityFeePerGas
    "bytes32",  # keccak(paymasterAndData)
)


def user_operation_hash(user_op: "UserOperation", context: "ChainContext") -> bytes:
    """
    Compute the canonical hash of a user operation.

    Hash construction
    -----------------
        inner = keccak(abi.encode(sender, nonce, keccak(initCode),
                                  keccak(callData), callGasLimit,
                                  verificationGasLimit, preVerificationGas,
                                  maxFeePerGas, maxPriorityFeePerGas,
                                  keccak(paymasterAndData)))
        hash  = keccak(abi.encode(inner, entryPoint, chainId))

    The signature field is excluded; every other field of the operation is
    committed, so a signature cannot be replayed onto a different envelope.
    """
    packed = abi_encode(
        list(_PACKED_USER_OP_TYPES),
        [
            user_op.sender,
            user_op.nonce,
            keccak256(user_op.init_code),
            keccak256(user_op.call_data),
            user_op.call_gas_limit,
            user_op.verification_gas_limit,
            user_op.pre_verification_gas,
            user_op.max_fee_per_gas,
            user_op.max_priority_fee_per_gas,
            keccak256(user_op.paymaster_and_data),
        ],
    )
    return keccak256(
        abi_encode(
            ["bytes32", "address", "uint256"],
            [keccak256(packed), context.entry_point, context.chain_id],
        )
    )


# =============================================================================
# SECTION 2: DOMAIN SEPARATION
# =============================================================================

def to_eth_signed_message_hash(message_hash: bytes) -> bytes:
    """
    Apply the EIP-191 domain-separation prefix to a 32-byte digest.

    Returns keccak("\\x19Ethereum Signed Message:\\n32" || message_hash).

    Raises
    ------
    MalformedEncodingError : If message_hash is not exactly 32 bytes.
    """
    if not isinstance(message_hash, (bytes, bytearray)) or len(message_hash) != WORD_WIDTH:
        raise MalformedEncodingError(
            field_name="message_hash",
            value=message_hash,
            reason="must be exactly 32 bytes",
        )
    return keccak256(ETH_SIGNED_MESSAGE_PREFIX + bytes(message_hash))


__all__ = [
    "keccak256",
    "function_selector",
    "user_operation_hash",
    "to_eth_signed_message_hash",
]
