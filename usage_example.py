# usage_example.py
# Minimal usage example for sessionguard/core/capability/validator.py.
# This file is not part of the sessionguard package. For reference only.

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
    function_selector,
    sign_hash,
)
from sessionguard.core.exceptions import InvalidNonceError

# Inputs
session_key: str = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
session_signer: str = Account.from_key(session_key).address
vault: str = "0x1111111111111111111111111111111111111111"

transfer: bytes = function_selector("transfer(address,uint256)")
deposit: bytes = function_selector("deposit()")

context = ChainContext(
    entry_point="0x5ff137d4b0fdcd49dca30c7cf57e578a026d2789",
    chain_id=10,
)

# Session grant: the key may call vault.transfer with no value and
# vault.deposit with value.
session_key_data: bytes = encode_descriptor(
    CapabilityDescriptor(
        signer=session_signer,
        destination=vault,
        policy_version=PolicyVersion.CONFIGURABLE,
        allowed_operations=(
            AllowedOperation(transfer, ValuePolicy.MUST_BE_ZERO),
            AllowedOperation(deposit, ValuePolicy.MUST_BE_NON_ZERO),
        ),
    )
)

validator = SessionValidator(PolicyVersion.CONFIGURABLE, context)
nonces = NonceBitmap()


def make_op(value: int, tag: bytes, nonce: int) -> UserOperation:
    return UserOperation(
        sender="0x3333333333333333333333333333333333333333",
        nonce=nonce,
        init_code=b"",
        call_data=encode_execute_call(vault, value, tag),
        call_gas_limit=100_000,
        verification_gas_limit=200_000,
        pre_verification_gas=50_000,
        max_fee_per_gas=1_000_000_000,
        max_priority_fee_per_gas=100_000_000,
    )


# Compute
ok_op = make_op(0, transfer, nonce=5)
ok_sig = sign_hash(validator.operation_hash(ok_op), session_key)
assert validator.is_authorized(ok_op, session_key_data, ok_sig)
nonces.consume(ok_op.sender, ok_op.nonce)

bad_op = make_op(1, transfer, nonce=6)  # value on a zero-value tag
bad_sig = sign_hash(validator.operation_hash(bad_op), session_key)
assert not validator.is_authorized(bad_op, session_key_data, bad_sig)

try:
    nonces.consume(ok_op.sender, ok_op.nonce)
    raise SystemExit("replayed nonce was accepted")
except InvalidNonceError as exc:
    print(exc.message)

# Inspect
for event in nonces.events.snapshot():
    print(event.type, event.data["nonce"])

# Expected output:
# InvalidNonceError: nonce 5 already used for account '0x3333333333333333333333333333333333333333'.
# NONCE_CONSUMED 5
