# tests/test_session_contract.py
# Version: 1.0.0
# Contract tests for a full session-key round.
# External test layer.
#
# CONSTRAINTS:
#   No business logic.
#   Only public imports and assertions.
#   Deterministic: signatures come from a fixed private key.
#   ASCII only.
#
# Standard import pattern:
#   from sessionguard.core import SessionValidator, NonceBitmap
#   from sessionguard.core.envelope import encode_execute_call

import pytest
from eth_account import Account

from sessionguard.core import (
    AllowedOperation,
    CapabilityDescriptor,
    ChainContext,
    NonceBitmap,
    PolicyVersion,
    SessionValidator,
    UserOperation,
    ValuePolicy,
    encode_descriptor,
    encode_execute_call,
    sign_hash,
)
from sessionguard.core.exceptions import (
    InvalidCallValueError,
    InvalidDestinationContractError,
    InvalidNonceError,
    InvalidOperationTagError,
)


# ---------------------------------------------------------------------------
# SHARED FIXTURES
# ---------------------------------------------------------------------------

_KEY: str = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
_SIGNER: str = Account.from_key(_KEY).address

_D:       str = "0x1111111111111111111111111111111111111111"
_D_PRIME: str = "0x2222222222222222222222222222222222222222"
_SENDER:  str = "0x3333333333333333333333333333333333333333"

_TAG_A: bytes = bytes.fromhex("a9059cbb")
_TAG_B: bytes = bytes.fromhex("d0e30db0")
_TAG_C: bytes = bytes.fromhex("deadbeef")

_CONTEXT: ChainContext = ChainContext(
    entry_point="0x5ff137d4b0fdcd49dca30c7cf57e578a026d2789",
    chain_id=8453,
)

_BLOB: bytes = encode_descriptor(
    CapabilityDescriptor(
        signer=_SIGNER,
        destination=_D,
        policy_version=PolicyVersion.CONFIGURABLE,
        allowed_operations=(
            AllowedOperation(_TAG_A, ValuePolicy.MUST_BE_ZERO),
            AllowedOperation(_TAG_B, ValuePolicy.MUST_BE_NON_ZERO),
        ),
    )
)


def _user_op(destination: str, value: int, tag: bytes, nonce: int = 5) -> UserOperation:
    return UserOperation(
        sender=_SENDER,
        nonce=nonce,
        init_code=b"",
        call_data=encode_execute_call(destination, value, tag + b"\x00" * 64),
        call_gas_limit=100_000,
        verification_gas_limit=200_000,
        pre_verification_gas=50_000,
        max_fee_per_gas=1_000_000_000,
        max_priority_fee_per_gas=100_000_000,
    )


@pytest.fixture
def validator() -> SessionValidator:
    return SessionValidator(PolicyVersion.CONFIGURABLE, _CONTEXT)


def _submit(validator: SessionValidator, user_op: UserOperation) -> bool:
    signature = sign_hash(validator.operation_hash(user_op), _KEY)
    return validator.validate_operation(user_op, _BLOB, signature)


# ---------------------------------------------------------------------------
# CONTRACT: authorization outcomes
# ---------------------------------------------------------------------------

class TestAuthorizationOutcomes:

    def test_zero_value_tag_accepted(self, validator) -> None:
        assert _submit(validator, _user_op(_D, 0, _TAG_A)) is True

    def test_non_zero_tag_without_value(self, validator) -> None:
        with pytest.raises(InvalidCallValueError):
            _submit(validator, _user_op(_D, 0, _TAG_B))

    def test_wrong_destination(self, validator) -> None:
        with pytest.raises(InvalidDestinationContractError):
            _submit(validator, _user_op(_D_PRIME, 0, _TAG_A))

    def test_unknown_tag(self, validator) -> None:
        with pytest.raises(InvalidOperationTagError):
            _submit(validator, _user_op(_D, 0, _TAG_C))

    def test_opaque_answer_matches(self, validator) -> None:
        op = _user_op(_D, 0, _TAG_C)
        signature = sign_hash(validator.operation_hash(op), _KEY)
        assert validator.is_authorized(op, _BLOB, signature) is False


# ---------------------------------------------------------------------------
# CONTRACT: anti-replay
# ---------------------------------------------------------------------------

class TestReplay:

    def test_nonce_consumed_once(self, validator) -> None:
        bitmap = NonceBitmap()
        op = _user_op(_D, 0, _TAG_A, nonce=5)

        assert _submit(validator, op) is True
        bitmap.consume(op.sender, op.nonce)

        assert _submit(validator, op) is True
        with pytest.raises(InvalidNonceError):
            bitmap.consume(op.sender, op.nonce)
