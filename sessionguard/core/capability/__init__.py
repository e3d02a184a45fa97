from .domain import (
    VALUE_POLICY_CODES,
    AllowedOperation,
    CapabilityDescriptor,
    PolicyVersion,
    ValuePolicy,
)
from .policies import (
    FIXED_OPERATION_TABLES,
    SMV2_OPERATIONS,
    SMV3_OPERATIONS,
    ConfigurableSelectorPolicy,
    DynamicSanitizerPolicy,
    FixedSelectorPolicy,
    OperationPolicy,
    OperationSanitizer,
    policy_for,
)
from .codec import decode_descriptor, encode_descriptor
from .validator import (
    SessionValidator,
    authorize,
    validate_session_operation,
    validate_session_params,
)

__all__ = [
    # Enumerations
    "ValuePolicy",
    "PolicyVersion",
    "VALUE_POLICY_CODES",
    # Domain dataclasses
    "AllowedOperation",
    "CapabilityDescriptor",
    # Policy strategies
    "OperationPolicy",
    "OperationSanitizer",
    "FixedSelectorPolicy",
    "ConfigurableSelectorPolicy",
    "DynamicSanitizerPolicy",
    "FIXED_OPERATION_TABLES",
    "SMV2_OPERATIONS",
    "SMV3_OPERATIONS",
    "policy_for",
    # Descriptor codec
    "decode_descriptor",
    "encode_descriptor",
    # Entry points
    "authorize",
    "validate_session_params",
    "validate_session_operation",
    "SessionValidator",
]
