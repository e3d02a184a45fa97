# sessionguard/utils/constants.py
# Version: 1.0.0
# COMPATIBILITY-PROTECTED -- NEVER CHANGE A VALUE IN PLACE.
# Widths, selectors and limits below are part of the wire contract of every
# session grant already issued. A change requires a new PolicyVersion.
#
# Standard import pattern:
#   from sessionguard.utils.constants import (
#       TAG_WIDTH,
#       WORD_WIDTH,
#       EXECUTE_SELECTOR,
#       EXECUTE_OPTIMIZED_SELECTOR,
#       ACCEPTED_DISPATCH_SELECTORS,
#       MAX_WORD_POSITION,
#       MAX_CONDITIONS,
#   )

from sessionguard.utils.keccak import function_selector


# ---------------------------------------------------------------------------
# ABI WIDTHS
# ---------------------------------------------------------------------------

TAG_WIDTH:     int = 4     # leading operation tag (function selector)
WORD_WIDTH:    int = 32    # one ABI word
ADDRESS_WIDTH: int = 20    # right-aligned inside a word

UINT256_MAX: int = (1 << 256) - 1
UINT128_MAX: int = (1 << 128) - 1


# ---------------------------------------------------------------------------
# DISPATCH ENTRY POINTS (outer envelope discriminators)
# ---------------------------------------------------------------------------
# Both encodings of "execute" are live on deployed smart accounts and must
# both be accepted.

EXECUTE_SIGNATURE:           str = "execute(address,uint256,bytes)"
EXECUTE_OPTIMIZED_SIGNATURE: str = "execute_ncC(address,uint256,bytes)"

EXECUTE_SELECTOR:           bytes = function_selector(EXECUTE_SIGNATURE)
EXECUTE_OPTIMIZED_SELECTOR: bytes = function_selector(EXECUTE_OPTIMIZED_SIGNATURE)

ACCEPTED_DISPATCH_SELECTORS: frozenset = frozenset({
    EXECUTE_SELECTOR,
    EXECUTE_OPTIMIZED_SELECTOR,
})


# ---------------------------------------------------------------------------
# FIXED OPERATION TABLES
# ---------------------------------------------------------------------------
# SMV2: margin account v2. A single batched entry point, never payable.
# SMV3: trading engine v3. Everything is zero-value except the payable
#       exemption set, which instead requires a non-zero value.

SMV2_OPERATION_SIGNATURES: tuple = (
    "execute(uint8[],bytes[])",
)

SMV3_OPERATION_SIGNATURES: tuple = (
    "modifyCollateral(uint128,uint128,int256)",
    "commitOrder(uint128,uint128,int128,uint256,bytes32,address,uint128)",
    "invalidateUnorderedNonces(uint128,uint256,uint256)",
    "withdrawEth(uint128,uint256)",
    "depositEth(uint128)",
    "fulfillOracleQuery(bytes)",
)

SMV3_PAYABLE_SIGNATURES: frozenset = frozenset({
    "depositEth(uint128)",
    "fulfillOracleQuery(bytes)",
})


# ---------------------------------------------------------------------------
# SIGNATURES
# ---------------------------------------------------------------------------

ETH_SIGNED_MESSAGE_PREFIX: bytes = b"\x19Ethereum Signed Message:\n32"
SIGNATURE_LENGTH:          int = 65

SECP256K1_N: int = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
SECP256K1_HALF_N: int = SECP256K1_N // 2

VALID_RECOVERY_IDS: frozenset = frozenset({27, 28})


# ---------------------------------------------------------------------------
# NONCE BITMAP
# ---------------------------------------------------------------------------

WORD_BITS:         int = 256
BIT_INDEX_MASK:    int = 0xFF
MAX_WORD_POSITION: int = (1 << 248) - 1


# ---------------------------------------------------------------------------
# CONDITIONAL ORDERS
# ---------------------------------------------------------------------------

MAX_CONDITIONS: int = 8

CONDITION_SIGNATURES: tuple = (
    "isTimestampAfter(uint256)",
    "isTimestampBefore(uint256)",
    "isPriceAbove(bytes32,uint256,uint256)",
    "isPriceBelow(bytes32,uint256,uint256)",
    "isMarketOpen(uint128)",
    "isPositionSizeAbove(uint128,uint128,int128)",
    "isPositionSizeBelow(uint128,uint128,int128)",
    "isOrderFeeBelow(uint128,int128,uint256)",
)

CONDITIONAL_ORDER_TYPE: str = (
    "ConditionalOrder(uint128 accountId,uint128 marketId,int128 sizeDelta,"
    "address signer,uint256 nonce,bool requireVerified,address trustedExecutor,"
    "uint256 maxExecutorFee,bytes32 conditionsHash)"
)

ZERO_ADDRESS: str = "0x0000000000000000000000000000000000000000"
