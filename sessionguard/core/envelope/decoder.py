# =============================================================================
# SESSIONGUARD v1.0.0 -- ENVELOPE DECODER
# File:   sessionguard/core/envelope/decoder.py
# =============================================================================
#
# SCOPE
# -----
# Purely structural decoding of the outer dispatch call
#
#     execute(address dest, uint256 value, bytes func)
#     execute_ncC(address dest, uint256 value, bytes func)
#
# into an OperationEnvelope. No semantic validation happens here: whether
# the destination, tag or value are permitted is the capability validator's
# decision.
#
# CALL DATA LAYOUT (offsets are absolute positions in call_data)
# --------------------------------------------------------------
#   [0,   4)    dispatch selector
#   [4,  36)    dest   (address, right-aligned, 12 zero bytes of padding)
#   [36, 68)    value  (uint256)
#   [68, 100)   offset (uint256) of the `func` tail, relative to position 4
#   [4 + offset,      4 + offset + 32)            length word
#   [4 + offset + 32, 4 + offset + 32 + length)   func bytes
#
# Every read goes through ByteCursor, which validates position + width
# against the buffer length before slicing.
#
# DISPATCH DISCRIMINATOR
# ----------------------
# The discriminator is rejected only when it is neither accepted selector
# (sel != EXECUTE && sel != EXECUTE_OPTIMIZED). Both encodings are accepted.
# =============================================================================

from __future__ import annotations

from eth_abi import encode as abi_encode

from sessionguard.core.exceptions import InvalidSelectorError, TruncatedPayloadError
from sessionguard.utils.constants import (
    ACCEPTED_DISPATCH_SELECTORS,
    EXECUTE_SELECTOR,
    TAG_WIDTH,
    WORD_WIDTH,
)

from .cursor import ByteCursor
from .domain import OperationEnvelope, normalize_address


# =============================================================================
# SECTION 1 -- OPERATION TAG
# =============================================================================

def read_tag(payload: bytes, field_name: str = "inner_payload") -> bytes:
    """
    Return the leading 4-byte operation tag of a payload.

    The minimum width is checked before anything is compared.

    Raises:
        TruncatedPayloadError if payload is shorter than TAG_WIDTH.
    """
    if len(payload) < TAG_WIDTH:
        raise TruncatedPayloadError(
            field_name=field_name,
            length=len(payload),
            required=TAG_WIDTH,
        )
    return bytes(payload[:TAG_WIDTH])


# =============================================================================
# SECTION 2 -- DECODE
# =============================================================================

def decode_envelope(call_data: bytes) -> OperationEnvelope:
    """
    Decode an outer dispatch call into (destination, value, inner_payload).

    Raises:
        InvalidSelectorError    buffer shorter than the discriminator, or the
                                discriminator is not an accepted dispatch selector.
        OutOfBoundsError        any fixed field, the length word or the payload
                                slice would read past the end of call_data.
        MalformedEncodingError  dirty high-order bytes in the address word.
    """
    data = bytes(call_data)
    if len(data) < TAG_WIDTH:
        raise InvalidSelectorError(
            selector=data,
            reason="call data is shorter than the " + str(TAG_WIDTH) + "-byte discriminator",
        )

    selector = data[:TAG_WIDTH]
    if selector not in ACCEPTED_DISPATCH_SELECTORS:
        raise InvalidSelectorError(
            selector=selector,
            reason="not an accepted dispatch selector",
        )

    cursor = ByteCursor(data, field_name="call_data", start=TAG_WIDTH)
    destination = cursor.read_address()
    value = cursor.read_word()
    offset = cursor.read_word()

    length_position = TAG_WIDTH + offset
    length = cursor.read_word_at(length_position)
    inner_payload = cursor.slice(length_position + WORD_WIDTH, length)

    return OperationEnvelope(
        destination=destination,
        value=value,
        inner_payload=inner_payload,
        dispatch_selector=selector,
    )


# =============================================================================
# SECTION 3 -- ENCODE (tooling)
# =============================================================================

def encode_execute_call(
    destination: str,
    value: int,
    inner_payload: bytes,
    selector: bytes = EXECUTE_SELECTOR,
) -> bytes:
    """
    Build canonical outer call data for one of the dispatch selectors.

    Inverse of decode_envelope() for canonically encoded input.
    """
    if selector not in ACCEPTED_DISPATCH_SELECTORS:
        raise InvalidSelectorError(
            selector=selector,
            reason="not an accepted dispatch selector",
        )
    return bytes(selector) + abi_encode(
        ["address", "uint256", "bytes"],
        [normalize_address(destination, "destination"), value, bytes(inner_payload)],
    )


__all__ = [
    "read_tag",
    "decode_envelope",
    "encode_execute_call",
]
