"""
Confidential Swap Curve Groups

CurveGroup is the capability every construction and verification path is
written against. Ed25519Group is the production group (libsodium via PyNaCl).
ModularPlaceholderGroup is plain arithmetic mod L with a known discrete log
between G and H: it exists so that test harnesses can run the protocol
quickly, and every production verifier rejects bundles built on it.

Group elements travel as 32-byte encodings in both groups.
"""

from __future__ import annotations
import hashlib
import logging
import struct
from abc import ABC, abstractmethod
from typing import Dict, Iterable, Optional, Tuple

import nacl.bindings
import nacl.exceptions

from cswap.constants import (
    CURVE_ORDER,
    COFACTOR,
    POINT_SIZE,
    H_GENERATOR_SEED,
    DOMAIN_HASH_TO_POINT,
    GROUP_ED25519,
    GROUP_PLACEHOLDER,
)
from cswap.crypto import field
from cswap.errors import (
    ConfigurationError,
    EncodingError,
    ErrorCode,
    ProofConstructionFailure,
)

logger = logging.getLogger(__name__)


class CurveGroup(ABC):
    """Prime-order group of order L with fixed generators G and H."""

    name: str = ""
    production: bool = False
    order: int = CURVE_ORDER

    def __init__(self):
        self._G: Optional[bytes] = None
        self._H: Optional[bytes] = None

    # ------------------------------------------------------------------
    # Generators
    # ------------------------------------------------------------------

    @property
    def G(self) -> bytes:
        if self._G is None:
            self._G = self.mul_base(1)
        return self._G

    @property
    def H(self) -> bytes:
        """Blinding generator, hash-derived and independent of G."""
        if self._H is None:
            h = self.hash_to_point(H_GENERATOR_SEED)
            if h == self.identity or h == self.G or not self.is_valid(h):
                raise ProofConstructionFailure(
                    "Blinding generator H is malformed",
                    code=ErrorCode.MALFORMED_GENERATOR,
                )
            self._H = h
        return self._H

    @property
    @abstractmethod
    def identity(self) -> bytes:
        ...

    # ------------------------------------------------------------------
    # Group law
    # ------------------------------------------------------------------

    @abstractmethod
    def add(self, p: bytes, q: bytes) -> bytes:
        ...

    @abstractmethod
    def neg(self, p: bytes) -> bytes:
        ...

    def sub(self, p: bytes, q: bytes) -> bytes:
        return self.add(p, self.neg(q))

    @abstractmethod
    def mul(self, k: int, p: bytes) -> bytes:
        """Scalar multiplication k * P."""

    @abstractmethod
    def mul_base(self, k: int) -> bytes:
        """Scalar multiplication with the base point: k * G."""

    def lincomb(self, terms: Iterable[Tuple[int, bytes]]) -> bytes:
        """Sum of k_i * P_i."""
        acc = self.identity
        for k, p in terms:
            acc = self.add(acc, self.mul(k, p))
        return acc

    def commit(self, value: int, blinding: int, base: Optional[bytes] = None) -> bytes:
        """value * G + blinding * base (base defaults to H)."""
        if base is None:
            base = self.H
        return self.add(self.mul_base(value), self.mul(blinding, base))

    @abstractmethod
    def is_valid(self, p: bytes) -> bool:
        """Check that bytes encode an element of the prime-order group."""

    @abstractmethod
    def hash_to_point(self, data: bytes) -> bytes:
        ...

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------

    def decode_point(self, hex_string: str) -> bytes:
        """
        Decode and validate a hex-encoded group element.

        Raises:
            EncodingError: If the string is not a valid element
        """
        try:
            p = bytes.fromhex(hex_string)
        except (ValueError, TypeError):
            raise EncodingError(
                "Point is not valid hex", code=ErrorCode.MALFORMED_ENCODING
            )
        if not self.is_valid(p):
            raise EncodingError(
                "Point is not a valid group element",
                {"group": self.name},
                code=ErrorCode.MALFORMED_ENCODING,
            )
        return p

    def __repr__(self) -> str:
        return f"{type(self).__name__}(production={self.production})"


# ============================================================================
# ED25519 (PRODUCTION)
# ============================================================================

class Ed25519Group(CurveGroup):
    """
    Ed25519 prime-order subgroup using libsodium.

    libsodium refuses to output the neutral element from scalar
    multiplication, so zero scalars and identity inputs are handled here.
    """

    name = GROUP_ED25519
    production = True

    # Compressed (x=0, y=1)
    IDENTITY = bytes([1]) + bytes(POINT_SIZE - 1)

    @property
    def identity(self) -> bytes:
        return self.IDENTITY

    def add(self, p: bytes, q: bytes) -> bytes:
        if p == self.IDENTITY:
            return q
        if q == self.IDENTITY:
            return p
        try:
            return nacl.bindings.crypto_core_ed25519_add(p, q)
        except nacl.exceptions.CryptoError as e:
            raise ProofConstructionFailure(f"Point addition failed: {e}")

    def sub(self, p: bytes, q: bytes) -> bytes:
        if q == self.IDENTITY:
            return p
        if p == self.IDENTITY:
            return self.neg(q)
        try:
            return nacl.bindings.crypto_core_ed25519_sub(p, q)
        except nacl.exceptions.CryptoError as e:
            raise ProofConstructionFailure(f"Point subtraction failed: {e}")

    def neg(self, p: bytes) -> bytes:
        if p == self.IDENTITY:
            return p
        # Negation flips the x-coordinate sign bit
        p_list = bytearray(p)
        p_list[31] ^= 0x80
        return bytes(p_list)

    def mul(self, k: int, p: bytes) -> bytes:
        k = field.reduce(k)
        if k == 0 or p == self.IDENTITY:
            return self.IDENTITY
        try:
            return nacl.bindings.crypto_scalarmult_ed25519_noclamp(
                field.to_bytes(k), p
            )
        except nacl.exceptions.CryptoError as e:
            raise ProofConstructionFailure(f"Scalar multiplication failed: {e}")

    def mul_base(self, k: int) -> bytes:
        k = field.reduce(k)
        if k == 0:
            return self.IDENTITY
        try:
            return nacl.bindings.crypto_scalarmult_ed25519_base_noclamp(
                field.to_bytes(k)
            )
        except nacl.exceptions.CryptoError as e:
            raise ProofConstructionFailure(f"Base point multiplication failed: {e}")

    def is_valid(self, p: bytes) -> bool:
        if not isinstance(p, bytes) or len(p) != POINT_SIZE:
            return False
        if p == self.IDENTITY:
            return True
        return bool(nacl.bindings.crypto_core_ed25519_is_valid_point(p))

    def hash_to_point(self, data: bytes) -> bytes:
        """
        Hash data to a point of the prime-order subgroup.

        Uses try-and-increment with domain separation, then clears the
        cofactor.
        """
        for counter in range(256):
            hash_input = DOMAIN_HASH_TO_POINT + data + struct.pack('<B', counter)
            candidate = bytearray(hashlib.sha256(hash_input).digest())

            # Sign bit from an extra hash bit
            extra = hashlib.sha256(hash_input + b'\xff').digest()[0]
            candidate[31] = (candidate[31] & 0x7F) | ((extra & 1) << 7)
            candidate = bytes(candidate)

            if self.is_valid(candidate) and candidate != self.IDENTITY:
                result = self.mul(COFACTOR, candidate)
                if result != self.IDENTITY:
                    return result

        raise ProofConstructionFailure(
            "Hash to point failed after 256 attempts",
            code=ErrorCode.MALFORMED_GENERATOR,
        )


# ============================================================================
# MODULAR PLACEHOLDER (NON-PRODUCTION)
# ============================================================================

class ModularPlaceholderGroup(CurveGroup):
    """
    Additive group Z_L standing in for the curve.

    NOT SECURE: the discrete log of every element is the element itself.
    Only for non-production test harnesses.
    """

    name = GROUP_PLACEHOLDER
    production = False

    @staticmethod
    def _enc(a: int) -> bytes:
        return field.to_bytes(a)

    @staticmethod
    def _dec(p: bytes) -> int:
        return int.from_bytes(p, 'little')

    @property
    def identity(self) -> bytes:
        return bytes(POINT_SIZE)

    def add(self, p: bytes, q: bytes) -> bytes:
        return self._enc(self._dec(p) + self._dec(q))

    def neg(self, p: bytes) -> bytes:
        return self._enc(-self._dec(p))

    def mul(self, k: int, p: bytes) -> bytes:
        return self._enc(k * self._dec(p))

    def mul_base(self, k: int) -> bytes:
        return self._enc(k)

    def is_valid(self, p: bytes) -> bool:
        if not isinstance(p, bytes) or len(p) != POINT_SIZE:
            return False
        return self._dec(p) < CURVE_ORDER

    def hash_to_point(self, data: bytes) -> bytes:
        digest = hashlib.sha512(DOMAIN_HASH_TO_POINT + data).digest()
        return self._enc(int.from_bytes(digest, 'little'))


# ============================================================================
# REGISTRY
# ============================================================================

_GROUP_TYPES = {
    GROUP_ED25519: Ed25519Group,
    GROUP_PLACEHOLDER: ModularPlaceholderGroup,
}

_instances: Dict[str, CurveGroup] = {}


def get_group(name: str) -> CurveGroup:
    """
    Get the shared instance of a group by name.

    Raises:
        ConfigurationError: If the name is not registered
    """
    if name not in _GROUP_TYPES:
        raise ConfigurationError(
            f"Unknown group: {name}", code=ErrorCode.UNKNOWN_GROUP
        )
    if name not in _instances:
        _instances[name] = _GROUP_TYPES[name]()
        logger.debug(f"Initialized group {name}")
    return _instances[name]
