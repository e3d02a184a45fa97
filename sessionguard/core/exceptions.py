# =============================================================================
# SESSIONGUARD v1.0.0 -- EXCEPTION HIERARCHY
# File:   sessionguard/core/exceptions.py
# =============================================================================
#
# SCOPE
# -----
# Defines every failure category raised by the envelope decoder, the
# capability validator, the signature verifier, the nonce bitmap and the
# conditional order gate. All exceptions are pure value objects: no side
# effects, no logging, no I/O of any kind.
#
# EXCEPTION HIERARCHY
# -------------------
#   SessionGuardError(Exception)                  -- base; never raised directly
#     ConfigurationError                          -- bad caller-supplied parameter
#     StructuralError                             -- malformed bytes
#       InvalidSelectorError                      -- bad / missing discriminator
#       OutOfBoundsError                          -- read past the buffer end
#       TruncatedPayloadError                     -- payload shorter than a tag
#       MalformedEncodingError                    -- dirty padding, bad ABI blob
#     AuthorizationError                          -- well-formed, not permitted
#       InvalidDestinationContractError
#       InvalidOperationTagError
#       InvalidCallValueError
#       UnauthorizedError
#     ReplayError
#       InvalidNonceError                         -- nonce already consumed
#     NonceRangeError                             -- nonce / word / mask range
#     SignatureError
#       MalformedSignatureError                   -- recovery impossible
#     ConditionError
#       InvalidConditionSelectorError
#       MaxConditionSizeExceededError
#       CannotExecuteOrderError
#
# DETERMINISM GUARANTEES
# ----------------------
# DET-01  All message content is derived exclusively from constructor arguments.
# DET-02  No side effects. Exception construction is a pure value operation.
# DET-03  No module-level mutable state.
#
# MESSAGE CONTRACT
# ----------------
# Every exception message is:
#   - Deterministic: identical inputs -> identical message string.
#   - Explicit: field name and violating value always included.
#   - ASCII-safe: byte values are rendered as 0x-prefixed lowercase hex.
#   - Non-empty.
#
# No domain imports: this module must remain a leaf dependency.
# =============================================================================

from __future__ import annotations

from typing import Any


def _render(value: Any) -> str:
    """Render a value for an exception message. Bytes become 0x-hex."""
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    return repr(value)


# =============================================================================
# BASE EXCEPTION
# =============================================================================

class SessionGuardError(Exception):
    """
    Base class for all sessionguard exceptions.

    Never raised directly. Use a concrete subclass.

    Attributes:
        field_name:  Name of the offending field, or empty string if the
                     violation is not field-local.
        value:       The offending value, or None.
        message:     Human-readable description. Always non-empty.
    """

    def __init__(
        self,
        message:    str,
        field_name: str = "",
        value:      Any = None,
    ) -> None:
        if not isinstance(message, str) or not message:
            raise ValueError(
                "SessionGuardError: message must be a non-empty string"
            )
        if not isinstance(field_name, str):
            raise ValueError(
                "SessionGuardError: field_name must be a string"
            )
        super().__init__(message)
        self.field_name: str = field_name
        self.value:      Any = value
        self.message:    str = message

    def __repr__(self) -> str:
        return (
            self.__class__.__name__
            + "(field_name=" + repr(self.field_name)
            + ", value=" + _render(self.value)
            + ", message=" + repr(self.message)
            + ")"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SessionGuardError):
            return NotImplemented
        return (
            type(self) is type(other)
            and self.field_name == other.field_name
            and self.value == other.value
            and self.message == other.message
        )

    __hash__ = Exception.__hash__


class ConfigurationError(SessionGuardError):
    """
    Raised when a caller-supplied parameter violates a type, range or format
    constraint (addresses, chain ids, operation tags).

    Message format:
        "ConfigurationError: field '<field_name>' violates constraint
         '<constraint>': got <value>."
    """

    def __init__(self, field_name: str, value: Any, constraint: str) -> None:
        if not field_name:
            raise ValueError(
                "ConfigurationError: field_name must be a non-empty string"
            )
        if not isinstance(constraint, str) or not constraint:
            raise ValueError(
                "ConfigurationError: constraint must be a non-empty string"
            )
        message = (
            "ConfigurationError: field '" + field_name
            + "' violates constraint '" + constraint
            + "': got " + _render(value) + "."
        )
        super().__init__(message=message, field_name=field_name, value=value)
        self.constraint: str = constraint


# =============================================================================
# STRUCTURAL
# =============================================================================

class StructuralError(SessionGuardError):
    """Base for malformed-bytes failures. Never raised directly."""


class InvalidSelectorError(StructuralError):
    """
    Raised when the outer dispatch discriminator is missing or is not one of
    the accepted dispatch selectors.
    """

    def __init__(self, selector: bytes, reason: str) -> None:
        message = (
            "InvalidSelectorError: dispatch selector " + _render(selector)
            + " rejected: " + reason + "."
        )
        super().__init__(message=message, field_name="selector", value=bytes(selector))
        self.reason: str = reason


class OutOfBoundsError(StructuralError):
    """
    Raised by ByteCursor when a read of `width` bytes at `position` would
    pass the end of a buffer of `buffer_length` bytes.

    Nothing is read when this fires; no truncated slice is ever returned.
    """

    def __init__(
        self,
        field_name:    str,
        position:      int,
        width:         int,
        buffer_length: int,
    ) -> None:
        message = (
            "OutOfBoundsError: field '" + field_name
            + "' read of " + str(width) + " byte(s) at position " + str(position)
            + " exceeds buffer length " + str(buffer_length) + "."
        )
        super().__init__(
            message=message,
            field_name=field_name,
            value=(position, width, buffer_length),
        )
        self.position:      int = position
        self.width:         int = width
        self.buffer_length: int = buffer_length


class TruncatedPayloadError(StructuralError):
    """Raised when a payload is too short to contain a complete operation tag."""

    def __init__(self, field_name: str, length: int, required: int) -> None:
        message = (
            "TruncatedPayloadError: field '" + field_name
            + "' has " + str(length) + " byte(s); at least "
            + str(required) + " required."
        )
        super().__init__(message=message, field_name=field_name, value=length)
        self.required: int = required


class MalformedEncodingError(StructuralError):
    """Raised when bytes are in bounds but not canonically encoded."""

    def __init__(self, field_name: str, value: Any, reason: str) -> None:
        message = (
            "MalformedEncodingError: field '" + field_name
            + "' is malformed: " + reason + "."
        )
        super().__init__(message=message, field_name=field_name, value=value)
        self.reason: str = reason


# =============================================================================
# AUTHORIZATION
# =============================================================================

class AuthorizationError(SessionGuardError):
    """Base for well-formed requests that are not permitted. Never raised directly."""


class InvalidDestinationContractError(AuthorizationError):
    """Raised when the envelope targets a contract other than the session's destination."""

    def __init__(self, expected: str, got: str) -> None:
        message = (
            "InvalidDestinationContractError: session is scoped to "
            + expected + "; envelope targets " + str(got) + "."
        )
        super().__init__(message=message, field_name="destination", value=got)
        self.expected: str = expected


class InvalidOperationTagError(AuthorizationError):
    """
    Raised when the inner payload's leading tag is not permitted by the
    session's policy version.
    """

    def __init__(self, tag: bytes, policy_version: str) -> None:
        message = (
            "InvalidOperationTagError: operation tag " + _render(tag)
            + " is not permitted under policy " + policy_version + "."
        )
        super().__init__(message=message, field_name="operation_tag", value=bytes(tag))
        self.policy_version: str = policy_version


class InvalidCallValueError(AuthorizationError):
    """Raised when the attached value violates the tag's value policy."""

    def __init__(self, tag: bytes, value: int, value_policy: str) -> None:
        message = (
            "InvalidCallValueError: value " + str(value)
            + " violates " + value_policy + " for operation tag "
            + _render(tag) + "."
        )
        super().__init__(message=message, field_name="value", value=value)
        self.tag:          bytes = bytes(tag)
        self.value_policy: str = value_policy


class UnauthorizedError(AuthorizationError):
    """Raised when a caller may not act for an account."""

    def __init__(self, account: Any, caller: Any) -> None:
        message = (
            "UnauthorizedError: caller " + _render(caller)
            + " may not act for account " + _render(account) + "."
        )
        super().__init__(message=message, field_name="caller", value=caller)
        self.account: Any = account


# =============================================================================
# REPLAY / NONCE RANGE
# =============================================================================

class ReplayError(SessionGuardError):
    """Base for anti-replay failures. Never raised directly."""


class InvalidNonceError(ReplayError):
    """Raised when a nonce that is already marked used is consumed again."""

    def __init__(self, account: Any, nonce: int) -> None:
        message = (
            "InvalidNonceError: nonce " + str(nonce)
            + " already used for account " + _render(account) + "."
        )
        super().__init__(message=message, field_name="nonce", value=nonce)
        self.account: Any = account


class NonceRangeError(SessionGuardError):
    """Raised when a nonce, word position or mask is outside its range."""

    def __init__(self, field_name: str, value: Any, constraint: str) -> None:
        message = (
            "NonceRangeError: field '" + field_name
            + "' violates constraint '" + constraint
            + "': got " + _render(value) + "."
        )
        super().__init__(message=message, field_name=field_name, value=value)
        self.constraint: str = constraint


# =============================================================================
# SIGNATURE
# =============================================================================

class SignatureError(SessionGuardError):
    """Base for signature failures. Never raised directly."""


class MalformedSignatureError(SignatureError):
    """
    Raised when no signer can be recovered from a signature.

    Internal: verify() maps this to False so that callers cannot tell a
    malformed signature apart from a wrong signer.
    """

    def __init__(self, reason: str, value: Any = None) -> None:
        message = "MalformedSignatureError: " + reason + "."
        super().__init__(message=message, field_name="signature", value=value)
        self.reason: str = reason


# =============================================================================
# CONDITIONAL ORDERS
# =============================================================================

class ConditionError(SessionGuardError):
    """Base for conditional order failures. Never raised directly."""


class InvalidConditionSelectorError(ConditionError):
    """Raised when a condition calls a predicate outside the allowed set."""

    def __init__(self, tag: bytes) -> None:
        message = (
            "InvalidConditionSelectorError: condition tag " + _render(tag)
            + " is not an allowed predicate."
        )
        super().__init__(message=message, field_name="condition", value=bytes(tag))


class MaxConditionSizeExceededError(ConditionError):
    """Raised when an order carries more conditions than the limit."""

    def __init__(self, count: int, limit: int) -> None:
        message = (
            "MaxConditionSizeExceededError: " + str(count)
            + " conditions supplied; at most " + str(limit) + " permitted."
        )
        super().__init__(message=message, field_name="conditions", value=count)
        self.limit: int = limit


class CannotExecuteOrderError(ConditionError):
    """Raised by OrderGate.execute() when the pre-execution checklist fails."""

    def __init__(self, reason: str) -> None:
        message = "CannotExecuteOrderError: " + reason + "."
        super().__init__(message=message, field_name="order", value=reason)
        self.reason: str = reason


__all__ = [
    "SessionGuardError",
    "ConfigurationError",
    "StructuralError",
    "InvalidSelectorError",
    "OutOfBoundsError",
    "TruncatedPayloadError",
    "MalformedEncodingError",
    "AuthorizationError",
    "InvalidDestinationContractError",
    "InvalidOperationTagError",
    "InvalidCallValueError",
    "UnauthorizedError",
    "ReplayError",
    "InvalidNonceError",
    "NonceRangeError",
    "SignatureError",
    "MalformedSignatureError",
    "ConditionError",
    "InvalidConditionSelectorError",
    "MaxConditionSizeExceededError",
    "CannotExecuteOrderError",
]
