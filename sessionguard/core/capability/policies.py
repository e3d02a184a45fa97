# =============================================================================
# SESSIONGUARD v1.0.0 -- CAPABILITY POLICIES
# File:   sessionguard/core/capability/policies.py
# =============================================================================
#
# SCOPE
# -----
# One policy strategy per PolicyVersion. Every strategy exposes the same
# authorize() contract and differs only in how it looks up the value policy
# of an operation tag:
#
#   FixedSelectorPolicy         SMV2 / SMV3   hard-coded table in this module
#   ConfigurableSelectorPolicy  CONFIGURABLE  descriptor.allowed_operations
#   DynamicSanitizerPolicy      DYNAMIC       OperationSanitizer collaborator
#
# RULE ORDER (shared by all strategies, each a distinct failure)
# ------------------------------------------------------------
#   R1  destination == descriptor.destination  else InvalidDestinationContractError
#   R2  leading tag of inner_payload allowed   else InvalidOperationTagError
#       (TruncatedPayloadError first if the payload cannot hold a tag)
#   R3  value satisfies the tag's ValuePolicy  else InvalidCallValueError
#
# authorize() is a pure function of its inputs: no I/O, no mutation, safe to
# call concurrently. The DYNAMIC strategy is pure only as far as its
# sanitizer is; sanitizers must be read-only queries.
# =============================================================================

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Optional, Protocol, Tuple

from sessionguard.core.envelope.decoder import read_tag
from sessionguard.core.envelope.domain import normalize_address
from sessionguard.core.exceptions import (
    ConfigurationError,
    InvalidCallValueError,
    InvalidDestinationContractError,
    InvalidOperationTagError,
    SessionGuardError,
)
from sessionguard.core.hashing import function_selector
from sessionguard.utils.constants import (
    SMV2_OPERATION_SIGNATURES,
    SMV3_OPERATION_SIGNATURES,
    SMV3_PAYABLE_SIGNATURES,
    UINT256_MAX,
)

from .domain import AllowedOperation, CapabilityDescriptor, PolicyVersion, ValuePolicy


# =============================================================================
# SECTION 1 -- FIXED TABLES
# =============================================================================

def _fixed_table(signatures: tuple, payable: frozenset) -> Tuple[AllowedOperation, ...]:
    return tuple(
        AllowedOperation(
            tag=function_selector(sig),
            value_policy=(
                ValuePolicy.MUST_BE_NON_ZERO if sig in payable else ValuePolicy.MUST_BE_ZERO
            ),
        )
        for sig in signatures
    )


SMV2_OPERATIONS: Tuple[AllowedOperation, ...] = _fixed_table(
    SMV2_OPERATION_SIGNATURES, frozenset()
)
SMV3_OPERATIONS: Tuple[AllowedOperation, ...] = _fixed_table(
    SMV3_OPERATION_SIGNATURES, SMV3_PAYABLE_SIGNATURES
)

FIXED_OPERATION_TABLES: Dict[PolicyVersion, Tuple[AllowedOperation, ...]] = {
    PolicyVersion.SMV2: SMV2_OPERATIONS,
    PolicyVersion.SMV3: SMV3_OPERATIONS,
}


# =============================================================================
# SECTION 2 -- SANITIZER COLLABORATOR
# =============================================================================

class OperationSanitizer(Protocol):
    """
    Read-only query surface of a destination contract that decides its own
    permitted operations.

    value_policy_for() returns the ValuePolicy for a permitted tag, or None
    when the destination does not allow the tag for session keys.
    """

    def value_policy_for(self, destination: str, tag: bytes) -> Optional[ValuePolicy]:
        ...


# =============================================================================
# SECTION 3 -- STRATEGIES
# =============================================================================

class OperationPolicy(ABC):
    """
    Shared authorize() contract. Subclasses implement lookup() only.
    """

    version: PolicyVersion

    @abstractmethod
    def lookup(self, descriptor: CapabilityDescriptor, tag: bytes) -> Optional[ValuePolicy]:
        """Return the ValuePolicy permitted for tag, or None if the tag is not allowed."""

    def authorize(
        self,
        destination:   str,
        value:         int,
        inner_payload: bytes,
        descriptor:    CapabilityDescriptor,
    ) -> str:
        """
        Apply R1-R3. Return the signer the session signature must recover to.
        """
        if descriptor.policy_version is not self.version:
            raise ConfigurationError(
                field_name="policy_version",
                value=descriptor.policy_version.value,
                constraint="descriptor must target policy " + self.version.value,
            )
        if not isinstance(value, int) or isinstance(value, bool) or not (0 <= value <= UINT256_MAX):
            raise ConfigurationError(
                field_name="value",
                value=value,
                constraint="must be an integer in [0, 2**256 - 1]",
            )
        if not isinstance(inner_payload, (bytes, bytearray)):
            raise ConfigurationError(
                field_name="inner_payload",
                value=inner_payload,
                constraint="must be bytes",
            )

        # R1
        target = normalize_address(destination, "destination")
        if target != descriptor.destination:
            raise InvalidDestinationContractError(
                expected=descriptor.destination,
                got=target,
            )

        # R2
        tag = read_tag(inner_payload)
        value_policy = self.lookup(descriptor, tag)
        if value_policy is None:
            raise InvalidOperationTagError(tag=tag, policy_version=self.version.value)

        # R3
        if not value_policy.permits(value):
            raise InvalidCallValueError(tag=tag, value=value, value_policy=value_policy.value)

        return descriptor.signer


class FixedSelectorPolicy(OperationPolicy):
    """Hard-coded table; the descriptor's own list is not consulted."""

    def __init__(self, version: PolicyVersion) -> None:
        if version not in FIXED_OPERATION_TABLES:
            raise ConfigurationError(
                field_name="version",
                value=version,
                constraint="must be one of " + repr(sorted(v.value for v in FIXED_OPERATION_TABLES)),
            )
        self.version = version
        self._table: Dict[bytes, ValuePolicy] = {
            op.tag: op.value_policy for op in FIXED_OPERATION_TABLES[version]
        }

    def lookup(self, descriptor: CapabilityDescriptor, tag: bytes) -> Optional[ValuePolicy]:
        return self._table.get(tag)


class ConfigurableSelectorPolicy(OperationPolicy):
    """Per-session tag list carried in the descriptor."""

    version = PolicyVersion.CONFIGURABLE

    def lookup(self, descriptor: CapabilityDescriptor, tag: bytes) -> Optional[ValuePolicy]:
        return descriptor.value_policy_for(tag)


class DynamicSanitizerPolicy(OperationPolicy):
    """Delegates the tag decision to the destination contract's sanitizer."""

    version = PolicyVersion.DYNAMIC

    def __init__(self, sanitizer: OperationSanitizer) -> None:
        if sanitizer is None:
            raise ConfigurationError(
                field_name="sanitizer",
                value=None,
                constraint="DYNAMIC policy requires an OperationSanitizer",
            )
        self._sanitizer = sanitizer

    def lookup(self, descriptor: CapabilityDescriptor, tag: bytes) -> Optional[ValuePolicy]:
        try:
            answer = self._sanitizer.value_policy_for(descriptor.destination, tag)
        except SessionGuardError:
            raise
        except Exception as exc:
            raise ConfigurationError(
                field_name="sanitizer",
                value=type(exc).__name__,
                constraint="value_policy_for must not raise",
            ) from exc
        if answer is not None and not isinstance(answer, ValuePolicy):
            raise ConfigurationError(
                field_name="sanitizer",
                value=answer,
                constraint="must return a ValuePolicy or None",
            )
        return answer


# =============================================================================
# SECTION 4 -- STRATEGY SELECTION
# =============================================================================

def policy_for(
    version: PolicyVersion,
    sanitizer: Optional[OperationSanitizer] = None,
) -> OperationPolicy:
    """Return the strategy implementing the given policy version."""
    if version in FIXED_OPERATION_TABLES:
        return FixedSelectorPolicy(version)
    if version is PolicyVersion.CONFIGURABLE:
        return ConfigurableSelectorPolicy()
    if version is PolicyVersion.DYNAMIC:
        return DynamicSanitizerPolicy(sanitizer)
    raise ConfigurationError(
        field_name="version",
        value=version,
        constraint="must be a PolicyVersion member",
    )


__all__ = [
    "SMV2_OPERATIONS",
    "SMV3_OPERATIONS",
    "FIXED_OPERATION_TABLES",
    "OperationSanitizer",
    "OperationPolicy",
    "FixedSelectorPolicy",
    "ConfigurableSelectorPolicy",
    "DynamicSanitizerPolicy",
    "policy_for",
]
