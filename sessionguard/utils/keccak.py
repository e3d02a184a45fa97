# sessionguard/utils/keccak.py
# Keccak-256 primitives. Leaf module: imported by constants at module level,
# so it may depend on nothing inside sessionguard.

from Crypto.Hash import keccak


def keccak256(data: bytes) -> bytes:
    """Return the 32-byte Keccak-256 digest of data (pre-NIST padding)."""
    digest = keccak.new(digest_bits=256)
    digest.update(bytes(data))
    return digest.digest()


def function_selector(signature: str) -> bytes:
    """
    Return the 4-byte operation tag for a canonical function signature.

    The signature must already be canonical ("transfer(address,uint256)"):
    no spaces, no parameter names, full type names.
    """
    return keccak256(signature.encode("ascii"))[:4]
