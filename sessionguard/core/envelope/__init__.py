from .domain import (
    ChainContext,
    OperationEnvelope,
    UserOperation,
    normalize_address,
)
from .cursor import ByteCursor
from .decoder import (
    decode_envelope,
    encode_execute_call,
    read_tag,
)

__all__ = [
    # Domain
    "ChainContext",
    "OperationEnvelope",
    "UserOperation",
    "normalize_address",
    # Bounds-checked reads
    "ByteCursor",
    # Decoder
    "decode_envelope",
    "encode_execute_call",
    "read_tag",
]
