# =============================================================================
# SESSIONGUARD v1.0.0 -- ENVELOPE LAYER
# File:   sessionguard/core/envelope/domain.py
# =============================================================================
#
# SCOPE
# -----
# Frozen domain types for the envelope layer:
#
#   OperationEnvelope -- decoded (destination, value, inner_payload) triple.
#   UserOperation     -- the full signed operation object (ERC-4337 v0.6).
#   ChainContext      -- entry point + chain id the canonical hash is bound to.
#
# Plus normalize_address(), the single place addresses are validated and
# checksummed. Every address stored on a domain object is EIP-55 checksummed,
# so equality between two stored addresses is plain string equality.
#
# VALIDATION PHILOSOPHY
# ---------------------
# Fail-fast in __post_init__. No silent coercion of integers; addresses are
# the single normalized field (lowercase and checksummed inputs are both
# accepted, mixed-case input with a bad checksum is rejected).
#
# DEPENDENCIES
# ------------
#   third-party: eth_utils (address validation / EIP-55 checksums)
#   internal:    sessionguard.core.exceptions
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from eth_utils import is_address, to_checksum_address

from sessionguard.core.exceptions import ConfigurationError
from sessionguard.utils.constants import ADDRESS_WIDTH, UINT256_MAX


# =============================================================================
# SECTION 1 -- VALIDATION HELPERS
# =============================================================================

def normalize_address(value: Any, field_name: str = "address") -> str:
    """
    Return the EIP-55 checksummed form of an address.

    Accepts a 0x-prefixed hex string (lowercase, uppercase or correctly
    checksummed) or a 20-byte bytes value.

    Raises:
        ConfigurationError if value is not a valid address.
    """
    if isinstance(value, (bytes, bytearray)):
        if len(value) != ADDRESS_WIDTH:
            raise ConfigurationError(
                field_name=field_name,
                value=value,
                constraint="must be exactly 20 bytes",
            )
        return to_checksum_address("0x" + bytes(value).hex())
    if not isinstance(value, str) or not is_address(value):
        raise ConfigurationError(
            field_name=field_name,
            value=value,
            constraint="must be a valid address",
        )
    return to_checksum_address(value)


def _check_uint256(field_name: str, value: Any) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ConfigurationError(
            field_name=field_name,
            value=value,
            constraint="must be an integer",
        )
    if not (0 <= value <= UINT256_MAX):
        raise ConfigurationError(
            field_name=field_name,
            value=value,
            constraint="must be in [0, 2**256 - 1]",
        )


def _check_bytes(field_name: str, value: Any) -> None:
    if not isinstance(value, (bytes, bytearray)):
        raise ConfigurationError(
            field_name=field_name,
            value=value,
            constraint="must be bytes",
        )


# =============================================================================
# SECTION 2 -- OPERATION ENVELOPE
# =============================================================================

@dataclass(frozen=True)
class OperationEnvelope:
    """
    Decoded outer call: "call destination with value, carrying inner_payload".

    Produced by decode_envelope(). Transient; never persisted.
    """

    destination:       str
    """Checksummed address the envelope claims to target."""

    value:             int
    """Native-asset amount attached to the call. uint256."""

    inner_payload:     bytes
    """Raw inner call: 4-byte operation tag followed by its ABI arguments."""

    dispatch_selector: bytes
    """The outer discriminator the envelope was decoded from."""


# =============================================================================
# SECTION 3 -- USER OPERATION
# =============================================================================

@dataclass(frozen=True)
class UserOperation:
    """
    The full operation object submitted by a session key.

    Every field except `signature` is committed by user_operation_hash().
    """

    sender:                   str
    nonce:                    int
    init_code:                bytes
    call_data:                bytes
    call_gas_limit:           int
    verification_gas_limit:   int
    pre_verification_gas:     int
    max_fee_per_gas:          int
    max_priority_fee_per_gas: int
    paymaster_and_data:       bytes = b""
    signature:                bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "sender", normalize_address(self.sender, "sender"))
        for fname in (
            "nonce",
            "call_gas_limit",
            "verification_gas_limit",
            "pre_verification_gas",
            "max_fee_per_gas",
            "max_priority_fee_per_gas",
        ):
            _check_uint256(fname, getattr(self, fname))
        for fname in ("init_code", "call_data", "paymaster_and_data", "signature"):
            _check_bytes(fname, getattr(self, fname))


# =============================================================================
# SECTION 4 -- CHAIN CONTEXT
# =============================================================================

@dataclass(frozen=True)
class ChainContext:
    """
    Binds canonical hashes to one entry point on one chain.

    A signature produced for one context never verifies in another.
    """

    entry_point: str
    chain_id:    int

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "entry_point", normalize_address(self.entry_point, "entry_point")
        )
        _check_uint256("chain_id", self.chain_id)
        if self.chain_id == 0:
            raise ConfigurationError(
                field_name="chain_id",
                value=self.chain_id,
                constraint="must be > 0",
            )


__all__ = [
    "normalize_address",
    "OperationEnvelope",
    "UserOperation",
    "ChainContext",
]
