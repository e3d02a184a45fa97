# =============================================================================
# SESSIONGUARD v1.0.0 -- SIGNATURE VERIFIER
# File:   sessionguard/core/signature.py
# =============================================================================
#
# SCOPE
# -----
# Recovers the signer of a canonical operation hash and compares it to the
# expected session key.
#
#   recover_signer(hash, signature) -> address  | MalformedSignatureError
#   verify(hash, signature, expected) -> bool   | never raises for bad input
#   sign_hash(hash, private_key) -> signature   | tooling and tests
#
# The hash is wrapped with the EIP-191 "Ethereum Signed Message" prefix
# before recovery (encode_defunct), matching toEthSignedMessageHash().
#
# SIGNATURE FORMAT
# ----------------
# 65 bytes: r (32) || s (32) || v (1), with
#   v in {27, 28}
#   0 < r < n
#   0 < s <= n / 2     (low-s; the high-s twin of a signature is rejected)
# These checks run before the recovery library is called. They also make the
# encoding unique: no other 65-byte string recovers to the same signer for
# the same hash, which a lenient v parser (chain-id style v values) would
# otherwise allow.
#
# ERROR SURFACE
# -------------
# MalformedSignatureError is internal. verify() maps it to False, so a
# malformed signature and a wrong signer look identical to the caller.
# =============================================================================

from __future__ import annotations

from typing import Tuple, Union

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_keys.exceptions import BadSignature
from eth_keys.exceptions import ValidationError as KeyValidationError

from sessionguard.core.envelope.domain import normalize_address
from sessionguard.core.exceptions import (
    ConfigurationError,
    MalformedEncodingError,
    MalformedSignatureError,
)
from sessionguard.utils.constants import (
    SECP256K1_HALF_N,
    SECP256K1_N,
    SIGNATURE_LENGTH,
    VALID_RECOVERY_IDS,
    WORD_WIDTH,
)


# =============================================================================
# SECTION 1 -- PARSING
# =============================================================================

def split_signature(signature: bytes) -> Tuple[int, int, int]:
    """
    Split a 65-byte signature into (v, r, s) and enforce the strict format.

    Raises:
        MalformedSignatureError on any format violation.
    """
    if not isinstance(signature, (bytes, bytearray)):
        raise MalformedSignatureError(
            reason="signature must be bytes, got " + type(signature).__name__,
        )
    if len(signature) != SIGNATURE_LENGTH:
        raise MalformedSignatureError(
            reason="signature must be " + str(SIGNATURE_LENGTH)
            + " bytes, got " + str(len(signature)),
            value=bytes(signature),
        )
    raw = bytes(signature)
    r = int.from_bytes(raw[0:32], "big")
    s = int.from_bytes(raw[32:64], "big")
    v = raw[64]
    if v not in VALID_RECOVERY_IDS:
        raise MalformedSignatureError(reason="invalid recovery id v=" + str(v), value=raw)
    if not (0 < r < SECP256K1_N):
        raise MalformedSignatureError(reason="r out of range", value=raw)
    if not (0 < s <= SECP256K1_HALF_N):
        raise MalformedSignatureError(reason="s out of range or not low-s", value=raw)
    return v, r, s


def _check_hash(message_hash: bytes) -> bytes:
    if not isinstance(message_hash, (bytes, bytearray)) or len(message_hash) != WORD_WIDTH:
        raise MalformedEncodingError(
            field_name="message_hash",
            value=message_hash,
            reason="must be exactly 32 bytes",
        )
    return bytes(message_hash)


# =============================================================================
# SECTION 2 -- RECOVERY / VERIFICATION
# =============================================================================

def recover_signer(message_hash: bytes, signature: bytes) -> str:
    """
    Recover the checksummed address that signed the EIP-191 wrap of message_hash.

    Raises:
        MalformedEncodingError   message_hash is not 32 bytes.
        MalformedSignatureError  the signature is malformed or recovery fails.
    """
    digest = _check_hash(message_hash)
    v, r, s = split_signature(signature)
    try:
        return Account.recover_message(encode_defunct(primitive=digest), vrs=(v, r, s))
    except (BadSignature, KeyValidationError, ValueError, TypeError) as exc:
        raise MalformedSignatureError(
            reason="public key recovery failed: " + type(exc).__name__,
            value=bytes(signature),
        ) from exc


def verify(message_hash: bytes, signature: bytes, expected_signer: str) -> bool:
    """
    Return True only if signature recovers to expected_signer.

    A malformed signature yields False, exactly like a valid signature from
    the wrong key. A malformed message_hash or expected_signer is a caller
    bug and still raises.
    """
    expected = normalize_address(expected_signer, "expected_signer")
    digest = _check_hash(message_hash)
    try:
        recovered = recover_signer(digest, signature)
    except MalformedSignatureError:
        return False
    return recovered == expected


# =============================================================================
# SECTION 3 -- SIGNING (tooling)
# =============================================================================

def sign_hash(message_hash: bytes, private_key: Union[str, bytes]) -> bytes:
    """Sign the EIP-191 wrap of message_hash. Returns r || s || v (65 bytes)."""
    digest = _check_hash(message_hash)
    try:
        signed = Account.sign_message(encode_defunct(primitive=digest), private_key=private_key)
    except (KeyValidationError, ValueError, TypeError) as exc:
        raise ConfigurationError(
            field_name="private_key",
            value="<redacted>",
            constraint="must be a valid secp256k1 private key",
        ) from exc
    return bytes(signed.signature)


__all__ = [
    "split_signature",
    "recover_signer",
    "verify",
    "sign_hash",
]
