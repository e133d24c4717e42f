"""
Confidential Swap Scalar Field

Arithmetic modulo the group order L. Every result is normalized into [0, L).
Scalars travel as 32-byte little-endian strings, matching libsodium.
"""

from Crypto.Util.number import inverse

from cswap.constants import CURVE_ORDER, SCALAR_SIZE
from cswap.errors import EncodingError, ErrorCode


def reduce(a: int) -> int:
    return a % CURVE_ORDER


def add(a: int, b: int) -> int:
    return (a + b) % CURVE_ORDER


def sub(a: int, b: int) -> int:
    return (a - b) % CURVE_ORDER


def mul(a: int, b: int) -> int:
    return (a * b) % CURVE_ORDER


def neg(a: int) -> int:
    return (-a) % CURVE_ORDER


def inv(a: int) -> int:
    """Multiplicative inverse mod L."""
    a = a % CURVE_ORDER
    if a == 0:
        raise EncodingError("Zero has no inverse", code=ErrorCode.NOT_INVERTIBLE)
    return inverse(a, CURVE_ORDER)


def is_canonical(a: int) -> bool:
    return 0 <= a < CURVE_ORDER


def to_bytes(a: int) -> bytes:
    """Encode a scalar as 32 bytes little-endian."""
    return (a % CURVE_ORDER).to_bytes(SCALAR_SIZE, 'little')


def from_bytes(data: bytes) -> int:
    """
    Decode a 32-byte little-endian scalar.

    Raises:
        EncodingError: If the length is wrong or the value is not reduced
    """
    if len(data) != SCALAR_SIZE:
        raise EncodingError(
            f"Scalar must be {SCALAR_SIZE} bytes, got {len(data)}",
            code=ErrorCode.MALFORMED_ENCODING,
        )
    value = int.from_bytes(data, 'little')
    if value >= CURVE_ORDER:
        raise EncodingError("Scalar is not reduced")
    return value


def to_hex(a: int) -> str:
    return to_bytes(a).hex()


def from_hex(hex_string: str) -> int:
    try:
        data = bytes.fromhex(hex_string)
    except ValueError:
        raise EncodingError(
            "Scalar is not valid hex", code=ErrorCode.MALFORMED_ENCODING
        )
    return from_bytes(data)
