import pytest
from eth_account import Account

from sessionguard.core.capability import (
    AllowedOperation,
    CapabilityDescriptor,
    PolicyVersion,
    ValuePolicy,
)
from sessionguard.core.envelope import ChainContext, UserOperation
from sessionguard.core.hashing import function_selector

SESSION_PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
OTHER_PRIVATE_KEY = "0x" + "11" * 32

DESTINATION = "0x1111111111111111111111111111111111111111"
OTHER_DESTINATION = "0x2222222222222222222222222222222222222222"
SENDER = "0x3333333333333333333333333333333333333333"
ENTRY_POINT = "0x5ff137d4b0fdcd49dca30c7cf57e578a026d2789"

TRANSFER_TAG = function_selector("transfer(address,uint256)")
DEPOSIT_TAG = function_selector("deposit()")
UNKNOWN_TAG = bytes.fromhex("deadbeef")


@pytest.fixture
def session_key() -> str:
    return SESSION_PRIVATE_KEY


@pytest.fixture
def session_signer() -> str:
    """Checksummed address of SESSION_PRIVATE_KEY."""
    return Account.from_key(SESSION_PRIVATE_KEY).address


@pytest.fixture
def other_signer() -> str:
    return Account.from_key(OTHER_PRIVATE_KEY).address


@pytest.fixture
def context() -> ChainContext:
    return ChainContext(entry_point=ENTRY_POINT, chain_id=10)


@pytest.fixture
def configurable_descriptor(session_signer) -> CapabilityDescriptor:
    """
    CONFIGURABLE descriptor scoped to DESTINATION.
    transfer: zero value. deposit: non-zero value.
    """
    return CapabilityDescriptor(
        signer=session_signer,
        destination=DESTINATION,
        policy_version=PolicyVersion.CONFIGURABLE,
        allowed_operations=(
            AllowedOperation(tag=TRANSFER_TAG, value_policy=ValuePolicy.MUST_BE_ZERO),
            AllowedOperation(tag=DEPOSIT_TAG, value_policy=ValuePolicy.MUST_BE_NON_ZERO),
        ),
    )


def make_user_op(call_data: bytes, nonce: int = 0, **overrides) -> UserOperation:
    fields = dict(
        sender=SENDER,
        nonce=nonce,
        init_code=b"",
        call_data=call_data,
        call_gas_limit=100_000,
        verification_gas_limit=200_000,
        pre_verification_gas=50_000,
        max_fee_per_gas=1_000_000_000,
        max_priority_fee_per_gas=100_000_000,
        paymaster_and_data=b"",
        signature=b"",
    )
    fields.update(overrides)
    return UserOperation(**fields)


@pytest.fixture
def user_op_factory():
    """make_user_op(call_data, nonce=0, **overrides) as a fixture."""
    return make_user_op


@pytest.fixture
def addresses() -> dict:
    return {
        "destination": DESTINATION,
        "other_destination": OTHER_DESTINATION,
        "sender": SENDER,
        "entry_point": ENTRY_POINT,
    }


@pytest.fixture
def tags() -> dict:
    return {
        "transfer": TRANSFER_TAG,
        "deposit": DEPOSIT_TAG,
        "unknown": UNKNOWN_TAG,
    }
