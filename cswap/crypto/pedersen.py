"""
Confidential Swap Pedersen Commitments

commit(v, b) = v * G + b * H

Used for the exchange rate only. Traded amounts are ElGamal-encrypted so
that fills can be applied to them homomorphically.
"""

from __future__ import annotations
import logging
from typing import Optional

from cswap.constants import RATE_SCALE, CURVE_ORDER
from cswap.crypto import field
from cswap.crypto.group import CurveGroup
from cswap.crypto.randomness import RandomnessSource, SystemRandomness
from cswap.errors import EncodingError, ErrorCode

logger = logging.getLogger(__name__)


def encode_rate(give_amount: int, want_amount: int, scale: int = RATE_SCALE) -> int:
    """
    Fixed-point rate want * scale / give.

    Raises:
        EncodingError: If give is not positive or the division is inexact
    """
    if give_amount <= 0 or want_amount <= 0:
        raise EncodingError(
            "Rate operands must be positive",
            {"scale": scale},
        )
    rate, remainder = divmod(want_amount * scale, give_amount)
    if remainder != 0:
        raise EncodingError(
            "Rate is not exactly representable at this scale",
            {"scale": scale},
            code=ErrorCode.INEXACT_RATE,
        )
    if rate >= CURVE_ORDER:
        raise EncodingError("Rate exceeds the scalar field")
    return rate


class CommitmentEngine:
    """Pedersen commitments in one group."""

    def __init__(
        self,
        group: CurveGroup,
        rng: Optional[RandomnessSource] = None,
    ):
        self.group = group
        self.rng = rng or SystemRandomness()

    def commit(self, value: int, blinding: int) -> bytes:
        """
        Commit to a value with the given blinding factor.

        Raises:
            EncodingError: If value is outside [0, L)
        """
        if not field.is_canonical(value):
            raise EncodingError("Committed value outside the scalar field")
        return self.group.commit(value, blinding)

    def commit_fresh(self, value: int):
        """Commit with a freshly drawn blinding factor; returns (commitment, blinding)."""
        blinding = self.rng.scalar()
        return self.commit(value, blinding), blinding

    def add(self, a: bytes, b: bytes) -> bytes:
        return self.group.add(a, b)

    def verify_opening(self, commitment: bytes, value: int, blinding: int) -> bool:
        if not field.is_canonical(value):
            return False
        return self.group.commit(value, blinding) == commitment
