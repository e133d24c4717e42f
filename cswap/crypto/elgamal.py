"""
Confidential Swap ElGamal Encryption

Exponential ElGamal over a CurveGroup:

    c1 = r * G
    c2 = v * G + r * PK

Ciphertexts add componentwise, giving an encryption of the sum of the
plaintexts. That is what lets partial fills be tracked without decryption.
Decryption recovers v * G and then v by baby-step giant-step, so it only
works for bounded plaintexts; it is never used on the verification path.
"""

from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from cswap.constants import DEFAULT_DECRYPT_BOUND
from cswap.crypto import field
from cswap.crypto.group import CurveGroup
from cswap.crypto.randomness import RandomnessSource, SystemRandomness
from cswap.errors import DecryptionError, ProofConstructionFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Ciphertext:
    """
    ElGamal ciphertext.

    SIZE: 64 bytes (two group elements)
    SERIALIZATION: c1 || c2
    """
    c1: bytes
    c2: bytes

    def serialize(self) -> bytes:
        return self.c1 + self.c2

    @classmethod
    def deserialize(cls, data: bytes) -> "Ciphertext":
        if len(data) != 64:
            raise ValueError(f"Ciphertext must be 64 bytes, got {len(data)}")
        return cls(c1=data[:32], c2=data[32:])

    def to_dict(self) -> dict:
        return {"c1": self.c1.hex(), "c2": self.c2.hex()}

    @classmethod
    def from_dict(cls, data: dict, group: CurveGroup) -> "Ciphertext":
        return cls(
            c1=group.decode_point(data["c1"]),
            c2=group.decode_point(data["c2"]),
        )

    def __repr__(self) -> str:
        return f"Ciphertext({self.c1.hex()[:8]}..., {self.c2.hex()[:8]}...)"


@dataclass(frozen=True)
class KeyPair:
    secret: int
    public: bytes

    def __repr__(self) -> str:
        return f"KeyPair(public={self.public.hex()[:16]}...)"


class EncryptionEngine:
    """ElGamal operations bound to one group and one randomness source."""

    def __init__(
        self,
        group: CurveGroup,
        rng: Optional[RandomnessSource] = None,
    ):
        self.group = group
        self.rng = rng or SystemRandomness()
        self._baby_steps: Dict[int, Tuple[int, Dict[bytes, int]]] = {}

    def generate_keypair(self) -> KeyPair:
        secret = self.rng.scalar()
        return KeyPair(secret=secret, public=self.group.mul_base(secret))

    def encrypt(
        self,
        value: int,
        public_key: bytes,
        randomness: Optional[int] = None,
    ) -> Ciphertext:
        """
        Encrypt a scalar under a public key.

        Any scalar is accepted; the plaintext range is proved separately by
        a range proof. Randomness is drawn from the engine's source unless
        given explicitly.
        """
        if randomness is None:
            randomness = self.rng.scalar()
        if field.reduce(randomness) == 0:
            raise ProofConstructionFailure("Encryption randomness must be nonzero")
        if not self.group.is_valid(public_key) or public_key == self.group.identity:
            raise ProofConstructionFailure("Invalid encryption public key")

        g = self.group
        return Ciphertext(
            c1=g.mul_base(randomness),
            c2=g.add(g.mul_base(value), g.mul(randomness, public_key)),
        )

    def encrypt_zero(self, public_key: bytes, randomness: Optional[int] = None) -> Ciphertext:
        return self.encrypt(0, public_key, randomness)

    def combine(self, a: Ciphertext, b: Ciphertext) -> Ciphertext:
        """Homomorphic addition: Enc(x) + Enc(y) = Enc(x + y)."""
        return Ciphertext(
            c1=self.group.add(a.c1, b.c1),
            c2=self.group.add(a.c2, b.c2),
        )

    def subtract(self, a: Ciphertext, b: Ciphertext) -> Ciphertext:
        """Homomorphic subtraction: Enc(x) - Enc(y) = Enc(x - y)."""
        return Ciphertext(
            c1=self.group.sub(a.c1, b.c1),
            c2=self.group.sub(a.c2, b.c2),
        )

    def scale(self, c: Ciphertext, k: int) -> Ciphertext:
        """Homomorphic scaling: k * Enc(x) = Enc(k * x)."""
        return Ciphertext(
            c1=self.group.mul(k, c.c1),
            c2=self.group.mul(k, c.c2),
        )

    def decrypt_point(self, c: Ciphertext, private_key: int) -> bytes:
        """Recover v * G."""
        return self.group.sub(c.c2, self.group.mul(private_key, c.c1))

    def decrypt(
        self,
        c: Ciphertext,
        private_key: int,
        max_value: int = DEFAULT_DECRYPT_BOUND,
    ) -> int:
        """
        Decrypt a ciphertext whose plaintext lies in [0, max_value).

        Raises:
            DecryptionError: If no plaintext below max_value matches
        """
        target = self.decrypt_point(c, private_key)
        m, table = self._baby_step_table(max_value)

        giant = self.group.neg(self.group.mul_base(m))
        current = target
        for i in range(m + 1):
            j = table.get(current)
            if j is not None:
                value = i * m + j
                if value < max_value:
                    return value
                break
            current = self.group.add(current, giant)

        raise DecryptionError(max_value)

    def _baby_step_table(self, max_value: int) -> Tuple[int, Dict[bytes, int]]:
        m = math.isqrt(max(max_value - 1, 0)) + 1
        cached = self._baby_steps.get(m)
        if cached is not None:
            return cached

        table: Dict[bytes, int] = {}
        point = self.group.identity
        for j in range(m):
            table[point] = j
            point = self.group.add(point, self.group.G)

        self._baby_steps[m] = (m, table)
        logger.debug(f"Built baby-step table with {m} entries")
        return m, table
