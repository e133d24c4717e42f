"""
Confidential Swap Randomness Sources

Every encryption, commitment and proof nonce draws a fresh nonzero scalar
from an injected RandomnessSource. A source is owned by one construction
at a time; no locking is involved.
"""

from __future__ import annotations
import logging
import secrets
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Set

from cswap.constants import CURVE_ORDER
from cswap.errors import RandomnessReuseError

logger = logging.getLogger(__name__)


class RandomnessSource(ABC):
    @abstractmethod
    def scalar(self) -> int:
        """Return a scalar in [1, L)."""

    def scalars(self, n: int) -> List[int]:
        return [self.scalar() for _ in range(n)]


class SystemRandomness(RandomnessSource):
    """Operating system CSPRNG."""

    def scalar(self) -> int:
        return secrets.randbelow(CURVE_ORDER - 1) + 1


class AuditedRandomness(RandomnessSource):
    """
    Wraps another source and refuses to hand out any value twice.

    Used in tests to audit that no construction path reuses randomness.
    """

    def __init__(self, inner: Optional[RandomnessSource] = None):
        self.inner = inner or SystemRandomness()
        self._issued: Set[int] = set()

    @property
    def issued_count(self) -> int:
        return len(self._issued)

    def scalar(self) -> int:
        value = self.inner.scalar()
        if value in self._issued:
            logger.warning("Randomness reuse detected")
            raise RandomnessReuseError()
        self._issued.add(value)
        return value


class DeterministicRandomness(RandomnessSource):
    """
    Replays a fixed sequence of scalars. Test harnesses only.

    Once the sequence is exhausted it continues counting up from the last
    value, so long constructions still get distinct scalars.
    """

    def __init__(self, values: Iterable[int] = (), start: int = 1):
        self._values = [v % CURVE_ORDER for v in values]
        self._next = start

    def scalar(self) -> int:
        if self._values:
            return self._values.pop(0)
        value = self._next
        self._next = value % (CURVE_ORDER - 1) + 1
        return value
