from .conditions import (
    PREDICATES,
    MarketReader,
    encode_condition,
    evaluate_condition,
    verify_conditions,
)
from .order_gate import (
    ConditionalOrder,
    OrderExecution,
    OrderGate,
    conditional_order_hash,
)

__all__ = [
    # Condition predicates
    "MarketReader",
    "PREDICATES",
    "encode_condition",
    "evaluate_condition",
    "verify_conditions",
    # Order gate
    "ConditionalOrder",
    "OrderExecution",
    "OrderGate",
    "conditional_order_hash",
]
