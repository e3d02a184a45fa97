# sessionguard/core/capability/codec.py
# Capability descriptor wire format.
#
# The session-issuance collaborator hands every session an opaque blob. Field
# order and widths are a compatibility contract: changing them breaks every
# session already issued. Layouts, all standard ABI encoding:
#
#   SMV2, SMV3, DYNAMIC   abi.encode(address signer, address destination)
#   CONFIGURABLE          abi.encode(address signer, address destination,
#                                    bytes4[] tags, uint8[] value_policies)
#
# value_policies[i] applies to tags[i]: 0 = MUST_BE_ZERO, 1 = MUST_BE_NON_ZERO.
# The policy version is NOT in the blob; it is implied by the validator the
# session was registered with and supplied by the caller.

from __future__ import annotations

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_abi.exceptions import DecodingError

from sessionguard.core.exceptions import ConfigurationError, MalformedEncodingError

from .domain import (
    VALUE_POLICY_CODES,
    AllowedOperation,
    CapabilityDescriptor,
    PolicyVersion,
)
from .policies import FIXED_OPERATION_TABLES

_BASE_TYPES = ["address", "address"]
_CONFIGURABLE_TYPES = ["address", "address", "bytes4[]", "uint8[]"]

_POLICY_CODES = {policy: code for code, policy in VALUE_POLICY_CODES.items()}


def decode_descriptor(session_key_data: bytes, version: PolicyVersion) -> CapabilityDescriptor:
    """
    Decode a session blob into a CapabilityDescriptor for the given version.

    Raises:
        ConfigurationError      version is not a PolicyVersion member.
        MalformedEncodingError  the blob does not decode under the layout of
                                `version`, or violates a descriptor invariant.
    """
    if not isinstance(version, PolicyVersion):
        raise ConfigurationError(
            field_name="version",
            value=version,
            constraint="must be a PolicyVersion member",
        )
    if not isinstance(session_key_data, (bytes, bytearray)):
        raise MalformedEncodingError(
            field_name="session_key_data",
            value=session_key_data,
            reason="must be bytes",
        )

    types = _CONFIGURABLE_TYPES if version is PolicyVersion.CONFIGURABLE else _BASE_TYPES
    try:
        decoded = abi_decode(types, bytes(session_key_data))
    except DecodingError as exc:
        raise MalformedEncodingError(
            field_name="session_key_data",
            value=bytes(session_key_data),
            reason="does not decode as " + version.value + " descriptor: " + str(exc),
        ) from exc

    signer, destination = decoded[0], decoded[1]
    if version is PolicyVersion.CONFIGURABLE:
        operations = _decode_operations(decoded[2], decoded[3])
    else:
        operations = FIXED_OPERATION_TABLES.get(version, ())

    try:
        return CapabilityDescriptor(
            signer=signer,
            destination=destination,
            policy_version=version,
            allowed_operations=operations,
        )
    except ConfigurationError as exc:
        raise MalformedEncodingError(
            field_name="session_key_data",
            value=bytes(session_key_data),
            reason=exc.message,
        ) from exc


def _decode_operations(tags: tuple, codes: tuple) -> tuple:
    if len(tags) != len(codes):
        raise MalformedEncodingError(
            field_name="value_policies",
            value=(len(tags), len(codes)),
            reason="tags and value_policies must have equal length",
        )
    operations = []
    for tag, code in zip(tags, codes):
        if code not in VALUE_POLICY_CODES:
            raise MalformedEncodingError(
                field_name="value_policies",
                value=code,
                reason="unknown value policy code",
            )
        operations.append(AllowedOperation(tag=bytes(tag), value_policy=VALUE_POLICY_CODES[code]))
    return tuple(operations)


def encode_descriptor(descriptor: CapabilityDescriptor) -> bytes:
    """Inverse of decode_descriptor() for the descriptor's own version."""
    if descriptor.policy_version is PolicyVersion.CONFIGURABLE:
        return abi_encode(
            _CONFIGURABLE_TYPES,
            [
                descriptor.signer,
                descriptor.destination,
                [op.tag for op in descriptor.allowed_operations],
                [_POLICY_CODES[op.value_policy] for op in descriptor.allowed_operations],
            ],
        )
    return abi_encode(_BASE_TYPES, [descriptor.signer, descriptor.destination])


__all__ = [
    "decode_descriptor",
    "encode_descriptor",
]
