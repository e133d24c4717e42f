"""
Confidential Swap Fiat-Shamir Transcript

Challenges are TupleHash256 over a domain-separated list of labeled items,
so item boundaries are unambiguous, reduced modulo L.
"""

from __future__ import annotations
from typing import List, Tuple

from Crypto.Hash import TupleHash256

from cswap.crypto import field


class Transcript:
    """Ordered public data a challenge is bound to."""

    def __init__(self, domain: bytes):
        self.domain = domain
        self._items: List[Tuple[bytes, bytes]] = []

    def append_bytes(self, label: bytes, data: bytes) -> "Transcript":
        self._items.append((label, bytes(data)))
        return self

    def append_point(self, label: bytes, point: bytes) -> "Transcript":
        return self.append_bytes(label, point)

    def append_points(self, label: bytes, points) -> "Transcript":
        for i, point in enumerate(points):
            self.append_bytes(label + b"/" + str(i).encode(), point)
        return self

    def append_scalar(self, label: bytes, scalar: int) -> "Transcript":
        return self.append_bytes(label, field.to_bytes(scalar))

    def append_int(self, label: bytes, value: int) -> "Transcript":
        length = max(1, (value.bit_length() + 8) // 8)
        return self.append_bytes(label, value.to_bytes(length, 'big', signed=True))

    def append_str(self, label: bytes, value: str) -> "Transcript":
        return self.append_bytes(label, value.encode("utf-8"))

    def digest(self, size: int = 32) -> bytes:
        h = TupleHash256.new(digest_bytes=size, custom=self.domain)
        for label, data in self._items:
            h.update(label)
            h.update(data)
        return h.digest()

    def challenge(self) -> int:
        """Challenge scalar: 64-byte digest reduced mod L."""
        return field.reduce(int.from_bytes(self.digest(64), 'little'))
