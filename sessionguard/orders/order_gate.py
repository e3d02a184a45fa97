# =============================================================================
# SESSIONGUARD v1.0.0 -- CONDITIONAL ORDER GATE
# File:   sessionguard/orders/order_gate.py
# =============================================================================
#
# PURPOSE
# -------
# End-to-end checklist for ephemeral signed conditional orders. Orders are
# never stored: they are handed in at call time together with the signer's
# signature, checked, and their nonce is consumed.
#
# CHECKLIST (OrderGate.can_execute), in order
# -------------------------------------------
#   C1  condition count <= MAX_CONDITIONS        else MaxConditionSizeExceededError
#   C2  nonce unused for the account
#   C3  trusted executor matches (when set)
#   C4  executor fee <= order.max_executor_fee
#   C5  signer may act for the account           (is_account_actor collaborator)
#   C6  signature recovers to order.signer
#   C7  every condition holds (when require_verified)
#
# execute() evaluates the whole checklist first and only then consumes the
# nonce through NonceBitmap.consume(), which re-checks atomically. A failed
# checklist leaves the bitmap untouched. Two racing executions of one order
# cannot both pass: the loser gets InvalidNonceError.
#
# WHAT IS NOT IN THIS FILE
# ------------------------
#   No order routing or settlement. No fee transfer.
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from eth_abi import encode as abi_encode

from sessionguard.core.envelope.domain import ChainContext, normalize_address
from sessionguard.core.event_log import ORDER_EXECUTED
from sessionguard.core.exceptions import CannotExecuteOrderError, ConfigurationError, MaxConditionSizeExceededError
from sessionguard.core.nonce_bitmap import NonceBitmap
from sessionguard.core.signature import verify
from sessionguard.utils.constants import (
    CONDITIONAL_ORDER_TYPE,
    MAX_CONDITIONS,
    UINT128_MAX,
    UINT256_MAX,
    ZERO_ADDRESS,
)
from sessionguard.utils.keccak import keccak256

from .conditions import MarketReader, verify_conditions

_INT128_MIN: int = -(1 << 127)
_INT128_MAX: int = (1 << 127) - 1

_ORDER_TYPEHASH: bytes = keccak256(CONDITIONAL_ORDER_TYPE.encode("ascii"))

_ORDER_STRUCT_TYPES = [
    "bytes32",  # type hash
    "uint128",  # accountId
    "uint128",  # marketId
    "int128",   # sizeDelta
    "address",  # signer
    "uint256",  # nonce
    "bool",     # requireVerified
    "address",  # trustedExecutor (zero address when unset)
    "uint256",  # maxExecutorFee
    "bytes32",  # conditionsHash
]


def _check_int(field_name: str, value: object, lower: int, upper: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or not (lower <= value <= upper):
        raise ConfigurationError(
            field_name=field_name,
            value=value,
            constraint="must be an integer in [" + str(lower) + ", " + str(upper) + "]",
        )


# =============================================================================
# SECTION 1 -- CONDITIONAL ORDER
# =============================================================================

@dataclass(frozen=True)
class ConditionalOrder:
    """
    A signed, ephemeral order. Immutable after construction.

    Attributes:
        account_id:        Trading account the order acts for. uint128.
        market_id:         Downstream market. uint128.
        size_delta:        Signed size change. int128.
        signer:            Address expected to have signed the order.
        nonce:             Anti-replay token, consumed on execution.
        require_verified:  Evaluate `conditions` before execution.
        trusted_executor:  Only this address may execute, or None for anyone.
        max_executor_fee:  Upper bound on the fee an executor may take.
        conditions:        Encoded predicate calls (see conditions.py).
    """

    account_id:       int
    market_id:        int
    size_delta:       int
    signer:           str
    nonce:            int
    require_verified: bool = False
    trusted_executor: Optional[str] = None
    max_executor_fee: int = 0
    conditions:       Tuple[bytes, ...] = ()

    def __post_init__(self) -> None:
        _check_int("account_id", self.account_id, 0, UINT128_MAX)
        _check_int("market_id", self.market_id, 0, UINT128_MAX)
        _check_int("size_delta", self.size_delta, _INT128_MIN, _INT128_MAX)
        _check_int("nonce", self.nonce, 0, UINT256_MAX)
        _check_int("max_executor_fee", self.max_executor_fee, 0, UINT256_MAX)
        if not isinstance(self.require_verified, bool):
            raise ConfigurationError(
                field_name="require_verified",
                value=self.require_verified,
                constraint="must be a bool",
            )
        object.__setattr__(self, "signer", normalize_address(self.signer, "signer"))
        if self.trusted_executor is not None:
            object.__setattr__(
                self,
                "trusted_executor",
                normalize_address(self.trusted_executor, "trusted_executor"),
            )
        if not isinstance(self.conditions, tuple) or not all(
            isinstance(c, (bytes, bytearray)) for c in self.conditions
        ):
            raise ConfigurationError(
                field_name="conditions",
                value=self.conditions,
                constraint="must be a tuple of bytes",
            )


def conditional_order_hash(order: ConditionalOrder, context: ChainContext) -> bytes:
    """
    Canonical hash of a conditional order, bound to a chain context.

        conditionsHash = keccak(keccak(c_0) || ... || keccak(c_n))
        structHash     = keccak(abi.encode(TYPEHASH, accountId, ..., conditionsHash))
        hash           = keccak(abi.encode(structHash, entryPoint, chainId))
    """
    conditions_hash = keccak256(b"".join(keccak256(c) for c in order.conditions))
    struct_hash = keccak256(
        abi_encode(
            _ORDER_STRUCT_TYPES,
            [
                _ORDER_TYPEHASH,
                order.account_id,
                order.market_id,
                order.size_delta,
                order.signer,
                order.nonce,
                order.require_verified,
                order.trusted_executor or ZERO_ADDRESS,
                order.max_executor_fee,
                conditions_hash,
            ],
        )
    )
    return keccak256(
        abi_encode(
            ["bytes32", "address", "uint256"],
            [struct_hash, context.entry_point, context.chain_id],
        )
    )


# =============================================================================
# SECTION 2 -- EXECUTION RECORD
# =============================================================================

@dataclass(frozen=True)
class OrderExecution:
    """Returned by OrderGate.execute() once the nonce has been consumed."""

    account_id: int
    nonce:      int
    order_hash: bytes
    executor:   str
    fee:        int


# =============================================================================
# SECTION 3 -- ORDER GATE
# =============================================================================

class OrderGate:
    """
    Pre-execution checklist plus atomic nonce consumption.

    Args:
        bitmap:           Shared nonce store. Its event log also receives
                          ORDER_EXECUTED events.
        reader:           Read-only market view for condition predicates.
        context:          Chain context order hashes are bound to.
        is_account_actor: Callable (account_id, address) -> bool answering
                          whether address may act for the account.
    """

    def __init__(
        self,
        bitmap:           NonceBitmap,
        reader:           MarketReader,
        context:          ChainContext,
        is_account_actor: Callable[[int, str], bool],
    ) -> None:
        self._bitmap = bitmap
        self._reader = reader
        self._context = context
        self._is_account_actor = is_account_actor

    def order_hash(self, order: ConditionalOrder) -> bytes:
        return conditional_order_hash(order, self._context)

    def _rejection(
        self,
        order:     ConditionalOrder,
        signature: bytes,
        fee:       int,
        executor:  str,
    ) -> Optional[str]:
        """Run C1-C7. Return the first failing reason, or None."""
        if len(order.conditions) > MAX_CONDITIONS:
            raise MaxConditionSizeExceededError(count=len(order.conditions), limit=MAX_CONDITIONS)
        _check_int("fee", fee, 0, UINT256_MAX)
        caller = normalize_address(executor, "executor")

        if self._bitmap.is_used(order.account_id, order.nonce):
            return "nonce already used"
        if order.trusted_executor is not None and caller != order.trusted_executor:
            return "executor is not the trusted executor"
        if fee > order.max_executor_fee:
            return "fee exceeds max executor fee"
        if not self._is_account_actor(order.account_id, order.signer):
            return "signer may not act for account"
        if not verify(self.order_hash(order), signature, order.signer):
            return "invalid signature"
        if order.require_verified and not verify_conditions(order.conditions, self._reader):
            return "conditions not met"
        return None

    def can_execute(
        self,
        order:     ConditionalOrder,
        signature: bytes,
        fee:       int,
        executor:  str,
    ) -> bool:
        return self._rejection(order, signature, fee, executor) is None

    def execute(
        self,
        order:     ConditionalOrder,
        signature: bytes,
        fee:       int,
        executor:  str,
    ) -> OrderExecution:
        """
        Run the checklist, then consume the nonce.

        Raises:
            CannotExecuteOrderError  a checklist item failed; nothing changed.
            InvalidNonceError        the nonce was consumed concurrently.
        """
        reason = self._rejection(order, signature, fee, executor)
        if reason is not None:
            raise CannotExecuteOrderError(reason=reason)

        self._bitmap.consume(order.account_id, order.nonce)
        execution = OrderExecution(
            account_id=order.account_id,
            nonce=order.nonce,
            order_hash=self.order_hash(order),
            executor=normalize_address(executor, "executor"),
            fee=fee,
        )
        self._bitmap.events.log_event(
            ORDER_EXECUTED,
            {
                "account": order.account_id,
                "nonce": order.nonce,
                "order_hash": execution.order_hash,
                "executor": execution.executor,
                "fee": fee,
            },
        )
        return execution


__all__ = [
    "ConditionalOrder",
    "conditional_order_hash",
    "OrderExecution",
    "OrderGate",
]
