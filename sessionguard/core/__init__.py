# sessionguard/core/__init__.py
# Core authorization and anti-replay primitives.
# Authoritative import source for the envelope, capability, signature and
# nonce layers.

from sessionguard.core.hashing import (
    function_selector,
    keccak256,
    to_eth_signed_message_hash,
    user_operation_hash,
)
from sessionguard.core.event_log import EventLogger, Event, EventFilter, LoggingError
from sessionguard.core.envelope import (
    ByteCursor,
    ChainContext,
    OperationEnvelope,
    UserOperation,
    decode_envelope,
    encode_execute_call,
    read_tag,
)
from sessionguard.core.signature import (
    recover_signer,
    sign_hash,
    verify,
)
from sessionguard.core.nonce_bitmap import NonceBitmap, split_nonce
from sessionguard.core.capability import (
    AllowedOperation,
    CapabilityDescriptor,
    PolicyVersion,
    SessionValidator,
    ValuePolicy,
    authorize,
    decode_descriptor,
    encode_descriptor,
    validate_session_operation,
    validate_session_params,
)

__all__ = [
    # Hashing
    "function_selector",
    "keccak256",
    "to_eth_signed_message_hash",
    "user_operation_hash",
    # Event log
    "Event",
    "EventFilter",
    "EventLogger",
    "LoggingError",
    # Envelope
    "ByteCursor",
    "ChainContext",
    "OperationEnvelope",
    "UserOperation",
    "decode_envelope",
    "encode_execute_call",
    "read_tag",
    # Signature
    "recover_signer",
    "sign_hash",
    "verify",
    # Nonce bitmap
    "NonceBitmap",
    "split_nonce",
    # Capability
    "AllowedOperation",
    "CapabilityDescriptor",
    "PolicyVersion",
    "SessionValidator",
    "ValuePolicy",
    "authorize",
    "decode_descriptor",
    "encode_descriptor",
    "validate_session_operation",
    "validate_session_params",
]
