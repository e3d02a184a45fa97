# =============================================================================
# SESSIONGUARD v1.0.0 -- CAPABILITY LAYER
# File:   sessionguard/core/capability/domain.py
# =============================================================================
#
# SCOPE
# -----
# Frozen domain types describing what a session key may do:
#
#   ValuePolicy          -- MUST_BE_ZERO / MUST_BE_NON_ZERO.
#   PolicyVersion        -- which rule-set generation a session targets.
#   AllowedOperation     -- (tag, value_policy) pair.
#   CapabilityDescriptor -- signer + destination + version + allowed tags.
#
# INVARIANTS ENFORCED
# -------------------
#   INV-AO-01  tag is exactly TAG_WIDTH bytes.
#   INV-AO-02  value_policy is a ValuePolicy member.
#   INV-CD-01  signer and destination are valid addresses (stored checksummed).
#   INV-CD-02  policy_version is a PolicyVersion member.
#   INV-CD-03  allowed_operations is a tuple of AllowedOperation.
#   INV-CD-04  no tag appears twice (each tag maps to exactly one policy).
#   INV-CD-05  allowed_operations is non-empty for every table-driven version
#              (all versions except DYNAMIC, which carries no table).
#
# A descriptor is read-only input for the life of a session grant. Nothing in
# this package mutates one after construction.
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from sessionguard.core.envelope.domain import normalize_address
from sessionguard.core.exceptions import ConfigurationError
from sessionguard.utils.constants import TAG_WIDTH


# =============================================================================
# SECTION 1 -- ENUMERATIONS
# =============================================================================

class ValuePolicy(str, Enum):
    """
    Constraint on the native value attached to an operation.

    MUST_BE_ZERO      -- value == 0. The default for every operation.
    MUST_BE_NON_ZERO  -- value > 0. Payable operations (deposits, oracle fee
                         forwarding) that are meaningless without value.
    """
    MUST_BE_ZERO     = "MUST_BE_ZERO"
    MUST_BE_NON_ZERO = "MUST_BE_NON_ZERO"

    def permits(self, value: int) -> bool:
        if self is ValuePolicy.MUST_BE_ZERO:
            return value == 0
        return value != 0


# Wire codes used by the CONFIGURABLE descriptor encoding (uint8[]).
VALUE_POLICY_CODES: dict = {
    0: ValuePolicy.MUST_BE_ZERO,
    1: ValuePolicy.MUST_BE_NON_ZERO,
}


class PolicyVersion(str, Enum):
    """
    Rule-set generation a session targets.

    SMV2          -- hard-coded margin account v2 table (single operation).
    SMV3          -- hard-coded engine v3 table with a fixed payable set.
    CONFIGURABLE  -- per-session tag list carried in the descriptor.
    DYNAMIC       -- the destination contract is asked at validation time.
    """
    SMV2         = "SMV2"
    SMV3         = "SMV3"
    CONFIGURABLE = "CONFIGURABLE"
    DYNAMIC      = "DYNAMIC"


# =============================================================================
# SECTION 2 -- ALLOWED OPERATION
# =============================================================================

@dataclass(frozen=True)
class AllowedOperation:
    """One permitted operation tag and the value policy bound to it."""

    tag:          bytes
    value_policy: ValuePolicy = ValuePolicy.MUST_BE_ZERO

    def __post_init__(self) -> None:
        if not isinstance(self.tag, (bytes, bytearray)) or len(self.tag) != TAG_WIDTH:
            raise ConfigurationError(
                field_name="tag",
                value=self.tag,
                constraint="must be exactly " + str(TAG_WIDTH) + " bytes",
            )
        object.__setattr__(self, "tag", bytes(self.tag))
        if not isinstance(self.value_policy, ValuePolicy):
            raise ConfigurationError(
                field_name="value_policy",
                value=self.value_policy,
                constraint="must be a ValuePolicy member",
            )


# =============================================================================
# SECTION 3 -- CAPABILITY DESCRIPTOR
# =============================================================================

@dataclass(frozen=True)
class CapabilityDescriptor:
    """
    The rule set bound to one session grant.

    Invariants (see module header INV-CD-*).
    """

    signer:             str
    """Address the session key signature must recover to."""

    destination:        str
    """The single contract this session is scoped to."""

    policy_version:     PolicyVersion
    """Rule-set generation; selects the policy strategy."""

    allowed_operations: Tuple[AllowedOperation, ...] = ()
    """Permitted tags. Empty only for PolicyVersion.DYNAMIC."""

    def __post_init__(self) -> None:
        object.__setattr__(self, "signer", normalize_address(self.signer, "signer"))
        object.__setattr__(
            self, "destination", normalize_address(self.destination, "destination")
        )
        if not isinstance(self.policy_version, PolicyVersion):
            raise ConfigurationError(
                field_name="policy_version",
                value=self.policy_version,
                constraint="must be a PolicyVersion member",
            )
        if not isinstance(self.allowed_operations, tuple) or not all(
            isinstance(op, AllowedOperation) for op in self.allowed_operations
        ):
            raise ConfigurationError(
                field_name="allowed_operations",
                value=self.allowed_operations,
                constraint="must be a tuple of AllowedOperation",
            )
        tags = [op.tag for op in self.allowed_operations]
        if len(set(tags)) != len(tags):
            raise ConfigurationError(
                field_name="allowed_operations",
                value=tuple(tags),
                constraint="each tag may appear only once",
            )
        if self.policy_version is not PolicyVersion.DYNAMIC and not tags:
            raise ConfigurationError(
                field_name="allowed_operations",
                value=self.allowed_operations,
                constraint="must be non-empty for policy " + self.policy_version.value,
            )

    def value_policy_for(self, tag: bytes) -> Optional[ValuePolicy]:
        """Return the policy bound to tag, or None if the tag is not allowed."""
        for op in self.allowed_operations:
            if op.tag == tag:
                return op.value_policy
        return None


__all__ = [
    "ValuePolicy",
    "VALUE_POLICY_CODES",
    "PolicyVersion",
    "AllowedOperation",
    "CapabilityDescriptor",
]
