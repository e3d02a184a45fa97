# =============================================================================
# SESSIONGUARD v1.0.0 -- SESSION VALIDATOR
# File:   sessionguard/core/capability/validator.py
# =============================================================================
#
# PURPOSE
# -------
# Entry points that funnel into the policy strategies of policies.py:
#
#   authorize()                  descriptor already decoded.
#   validate_session_params()    standalone call parameters + session blob.
#   validate_session_operation() full user operation: decode the envelope,
#                                authorize it, verify the session signature.
#   SessionValidator             binds a policy version, a chain context and
#                                (for DYNAMIC) a sanitizer.
#
# ERROR SURFACE
# -------------
# Structural and authorization failures raise their categorized exception.
# A wrong signer or a malformed signature returns False. Callers that must
# not learn WHY a session failed use SessionValidator.is_authorized(), which
# folds every failure into False and leaves no trace of the category: a
# destination, tag, value or signature failure is observably identical.
#
# No nonce is touched here: authorization is side-effect free and safe to
# run concurrently as a dry-run predicate.
# =============================================================================

from __future__ import annotations

from typing import Optional

from sessionguard.core.envelope.decoder import decode_envelope
from sessionguard.core.envelope.domain import ChainContext, UserOperation
from sessionguard.core.exceptions import ConfigurationError, SessionGuardError
from sessionguard.core.hashing import user_operation_hash
from sessionguard.core.signature import verify

from .codec import decode_descriptor
from .domain import CapabilityDescriptor, PolicyVersion
from .policies import OperationPolicy, OperationSanitizer, policy_for


# =============================================================================
# SECTION 1 -- FUNCTIONAL ENTRY POINTS
# =============================================================================

def authorize(
    destination:   str,
    value:         int,
    inner_payload: bytes,
    descriptor:    CapabilityDescriptor,
    sanitizer:     Optional[OperationSanitizer] = None,
) -> str:
    """
    Check (destination, value, inner_payload) against the descriptor.

    The strategy is selected from descriptor.policy_version.
    Returns the signer the session signature must recover to.
    """
    if not isinstance(descriptor, CapabilityDescriptor):
        raise ConfigurationError(
            field_name="descriptor",
            value=descriptor,
            constraint="must be a CapabilityDescriptor",
        )
    return policy_for(descriptor.policy_version, sanitizer).authorize(
        destination, value, inner_payload, descriptor
    )


def validate_session_params(
    destination:      str,
    value:            int,
    inner_payload:    bytes,
    session_key_data: bytes,
    version:          PolicyVersion,
    sanitizer:        Optional[OperationSanitizer] = None,
) -> str:
    """Decode the session blob, authorize the call, return the session signer."""
    descriptor = decode_descriptor(session_key_data, version)
    return authorize(destination, value, inner_payload, descriptor, sanitizer)


def validate_session_operation(
    user_op:               UserOperation,
    op_hash:               bytes,
    session_key_data:      bytes,
    session_key_signature: bytes,
    version:               PolicyVersion,
    sanitizer:             Optional[OperationSanitizer] = None,
) -> bool:
    """
    Validate a full wrapped operation.

    1. decode the session blob
    2. decode user_op.call_data as a dispatch envelope
    3. authorize the envelope
    4. verify session_key_signature over op_hash against the session signer

    Returns True when all four pass, False when only the signature fails.
    """
    descriptor = decode_descriptor(session_key_data, version)
    envelope = decode_envelope(user_op.call_data)
    signer = authorize(
        envelope.destination,
        envelope.value,
        envelope.inner_payload,
        descriptor,
        sanitizer,
    )
    return verify(op_hash, session_key_signature, signer)


# =============================================================================
# SECTION 2 -- SESSION VALIDATOR
# =============================================================================

class SessionValidator:
    """
    Validator instance for one policy version on one chain context.

    The policy strategy is built once; every call is pure with respect to the
    instance.
    """

    def __init__(
        self,
        version:      PolicyVersion,
        context:      ChainContext,
        sanitizer:    Optional[OperationSanitizer] = None,
    ) -> None:
        if not isinstance(context, ChainContext):
            raise ConfigurationError(
                field_name="context",
                value=context,
                constraint="must be a ChainContext",
            )
        self._version: PolicyVersion = version
        self._context: ChainContext = context
        self._sanitizer: Optional[OperationSanitizer] = sanitizer
        self._policy: OperationPolicy = policy_for(version, sanitizer)

    @property
    def version(self) -> PolicyVersion:
        return self._version

    def descriptor(self, session_key_data: bytes) -> CapabilityDescriptor:
        return decode_descriptor(session_key_data, self._version)

    def operation_hash(self, user_op: UserOperation) -> bytes:
        return user_operation_hash(user_op, self._context)

    def validate_params(
        self,
        destination:      str,
        value:            int,
        inner_payload:    bytes,
        session_key_data: bytes,
    ) -> str:
        return self._policy.authorize(
            destination, value, inner_payload, self.descriptor(session_key_data)
        )

    def validate_operation(
        self,
        user_op:               UserOperation,
        session_key_data:      bytes,
        session_key_signature: bytes,
    ) -> bool:
        """validate_session_operation() with the hash computed from this context."""
        descriptor = self.descriptor(session_key_data)
        envelope = decode_envelope(user_op.call_data)
        signer = self._policy.authorize(
            envelope.destination, envelope.value, envelope.inner_payload, descriptor
        )
        return verify(self.operation_hash(user_op), session_key_signature, signer)

    def is_authorized(
        self,
        user_op:               UserOperation,
        session_key_data:      bytes,
        session_key_signature: bytes,
    ) -> bool:
        """
        Opaque yes/no. Every SessionGuardError and every signature mismatch
        becomes False. Nothing about the failure is recorded or returned.

        A DYNAMIC sanitizer that raises is reported by its policy as a
        ConfigurationError, so it folds into False here as well.
        """
        try:
            return self.validate_operation(user_op, session_key_data, session_key_signature)
        except SessionGuardError:
            return False


__all__ = [
    "authorize",
    "validate_session_params",
    "validate_session_operation",
    "SessionValidator",
]
