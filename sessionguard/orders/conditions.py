# =============================================================================
# SESSIONGUARD v1.0.0 -- CONDITION PREDICATES
# File:   sessionguard/orders/conditions.py
# =============================================================================
#
# PURPOSE
# -------
# A conditional order carries up to MAX_CONDITIONS encoded predicate calls
# (4-byte tag + ABI arguments). Each one is decoded, checked against the
# fixed predicate set, and answered from a read-only MarketReader.
#
#   isTimestampAfter(uint256 t)                      now > t
#   isTimestampBefore(uint256 t)                     now < t
#   isPriceAbove(bytes32 asset, uint256 p, uint256 c)  price > p and conf < c
#   isPriceBelow(bytes32 asset, uint256 p, uint256 c)  price < p and conf < c
#   isMarketOpen(uint128 market)                     market accepts orders
#   isPositionSizeAbove(uint128 acct, uint128 market, int128 s)  size > s
#   isPositionSizeBelow(uint128 acct, uint128 market, int128 s)  size < s
#   isOrderFeeBelow(uint128 market, int128 delta, uint256 fee)   fee' < fee
#
# WHAT IS NOT IN THIS FILE
# ------------------------
#   No market state. The reader is an external collaborator; every call on
#   it must be a pure read.
#   No signature or nonce logic (order_gate.py).
# =============================================================================

from __future__ import annotations

from typing import Callable, Dict, Protocol, Sequence, Tuple

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_abi.exceptions import DecodingError, EncodingError

from sessionguard.core.envelope.decoder import read_tag
from sessionguard.core.exceptions import (
    ConfigurationError,
    InvalidConditionSelectorError,
    MalformedEncodingError,
    MaxConditionSizeExceededError,
)
from sessionguard.utils.constants import CONDITION_SIGNATURES, MAX_CONDITIONS, TAG_WIDTH
from sessionguard.utils.keccak import function_selector


# =============================================================================
# SECTION 1 -- MARKET READER (external collaborator)
# =============================================================================

class MarketReader(Protocol):
    """Read-only view of the downstream protocol used by condition predicates."""

    def current_timestamp(self) -> int:
        ...

    def price(self, asset_id: bytes) -> Tuple[int, int]:
        """Return (price, confidence_interval) for an oracle asset id."""
        ...

    def is_market_open(self, market_id: int) -> bool:
        ...

    def position_size(self, account_id: int, market_id: int) -> int:
        ...

    def order_fee(self, market_id: int, size_delta: int) -> int:
        ...


# =============================================================================
# SECTION 2 -- PREDICATES
# =============================================================================

def _timestamp_after(reader: MarketReader, args: tuple) -> bool:
    return reader.current_timestamp() > args[0]


def _timestamp_before(reader: MarketReader, args: tuple) -> bool:
    return reader.current_timestamp() < args[0]


def _price_above(reader: MarketReader, args: tuple) -> bool:
    asset_id, limit, confidence_limit = args
    price, confidence = reader.price(asset_id)
    return price > limit and confidence < confidence_limit


def _price_below(reader: MarketReader, args: tuple) -> bool:
    asset_id, limit, confidence_limit = args
    price, confidence = reader.price(asset_id)
    return price < limit and confidence < confidence_limit


def _market_open(reader: MarketReader, args: tuple) -> bool:
    return bool(reader.is_market_open(args[0]))


def _position_size_above(reader: MarketReader, args: tuple) -> bool:
    account_id, market_id, size = args
    return reader.position_size(account_id, market_id) > size


def _position_size_below(reader: MarketReader, args: tuple) -> bool:
    account_id, market_id, size = args
    return reader.position_size(account_id, market_id) < size


def _order_fee_below(reader: MarketReader, args: tuple) -> bool:
    market_id, size_delta, fee = args
    return reader.order_fee(market_id, size_delta) < fee


_EVALUATORS: Dict[str, Callable[[MarketReader, tuple], bool]] = {
    "isTimestampAfter(uint256)":                   _timestamp_after,
    "isTimestampBefore(uint256)":                  _timestamp_before,
    "isPriceAbove(bytes32,uint256,uint256)":       _price_above,
    "isPriceBelow(bytes32,uint256,uint256)":       _price_below,
    "isMarketOpen(uint128)":                       _market_open,
    "isPositionSizeAbove(uint128,uint128,int128)": _position_size_above,
    "isPositionSizeBelow(uint128,uint128,int128)": _position_size_below,
    "isOrderFeeBelow(uint128,int128,uint256)":     _order_fee_below,
}


def _argument_types(signature: str) -> Tuple[str, ...]:
    inner = signature[signature.index("(") + 1:-1]
    return tuple(inner.split(",")) if inner else ()


# tag -> (signature, argument types, evaluator)
PREDICATES: Dict[bytes, Tuple[str, Tuple[str, ...], Callable[[MarketReader, tuple], bool]]] = {
    function_selector(sig): (sig, _argument_types(sig), _EVALUATORS[sig])
    for sig in CONDITION_SIGNATURES
}


# =============================================================================
# SECTION 3 -- ENCODE / EVALUATE
# =============================================================================

def encode_condition(signature: str, *args: object) -> bytes:
    """Encode one predicate call: tag || abi.encode(args)."""
    if signature not in _EVALUATORS:
        raise ConfigurationError(
            field_name="signature",
            value=signature,
            constraint="must be one of CONDITION_SIGNATURES",
        )
    try:
        return function_selector(signature) + abi_encode(list(_argument_types(signature)), list(args))
    except EncodingError as exc:
        raise ConfigurationError(
            field_name="args",
            value=args,
            constraint="must match " + signature,
        ) from exc


def evaluate_condition(condition: bytes, reader: MarketReader) -> bool:
    """
    Decode and evaluate one predicate call.

    Raises:
        TruncatedPayloadError          condition shorter than a tag.
        InvalidConditionSelectorError  tag outside the predicate set.
        MalformedEncodingError         arguments do not decode.
    """
    tag = read_tag(condition, field_name="condition")
    entry = PREDICATES.get(tag)
    if entry is None:
        raise InvalidConditionSelectorError(tag=tag)
    signature, types, evaluator = entry
    try:
        args = abi_decode(list(types), bytes(condition[TAG_WIDTH:]))
    except DecodingError as exc:
        raise MalformedEncodingError(
            field_name="condition",
            value=bytes(condition),
            reason="arguments do not decode as " + signature,
        ) from exc
    return evaluator(reader, args)


def verify_conditions(conditions: Sequence[bytes], reader: MarketReader) -> bool:
    """
    Return True only if every condition holds. Stops at the first False.

    Raises:
        MaxConditionSizeExceededError  more than MAX_CONDITIONS conditions.
    """
    if len(conditions) > MAX_CONDITIONS:
        raise MaxConditionSizeExceededError(count=len(conditions), limit=MAX_CONDITIONS)
    for condition in conditions:
        if not evaluate_condition(condition, reader):
            return False
    return True


__all__ = [
    "MarketReader",
    "PREDICATES",
    "encode_condition",
    "evaluate_condition",
    "verify_conditions",
]
