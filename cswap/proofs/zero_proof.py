"""
Confidential Swap Zero-Plaintext Proofs

Chaum-Pedersen proof that a ciphertext (c1, c2) encrypts zero, i.e. that
log_G(c1) = log_PK(c2).
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional

from cswap.constants import DOMAIN_ZERO_PROOF
from cswap.crypto import field
from cswap.crypto.elgamal import Ciphertext
from cswap.crypto.group import CurveGroup
from cswap.crypto.randomness import RandomnessSource, SystemRandomness
from cswap.crypto.transcript import Transcript

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ZeroProof:
    commitment_g: bytes
    commitment_pk: bytes
    challenge: int
    response: int

    def to_dict(self) -> dict:
        return {
            "commitment_g": self.commitment_g.hex(),
            "commitment_pk": self.commitment_pk.hex(),
            "challenge": field.to_hex(self.challenge),
            "response": field.to_hex(self.response),
        }

    @classmethod
    def from_dict(cls, data: dict, group: CurveGroup) -> "ZeroProof":
        return cls(
            commitment_g=group.decode_point(data["commitment_g"]),
            commitment_pk=group.decode_point(data["commitment_pk"]),
            challenge=field.from_hex(data["challenge"]),
            response=field.from_hex(data["response"]),
        )


def _zero_transcript(
    group: CurveGroup,
    public_key: bytes,
    ciphertext: Ciphertext,
    commitment_g: bytes,
    commitment_pk: bytes,
    context: bytes,
) -> int:
    t = Transcript(DOMAIN_ZERO_PROOF)
    t.append_str(b"group", group.name)
    t.append_bytes(b"context", context)
    t.append_point(b"pk", public_key)
    t.append_bytes(b"ciphertext", ciphertext.serialize())
    t.append_point(b"A_g", commitment_g)
    t.append_point(b"A_pk", commitment_pk)
    return t.challenge()


def build_zero_proof(
    group: CurveGroup,
    ciphertext: Ciphertext,
    randomness: int,
    public_key: bytes,
    context: bytes = b"",
    rng: Optional[RandomnessSource] = None,
) -> ZeroProof:
    """Prove ciphertext = (randomness * G, randomness * PK)."""
    rng = rng or SystemRandomness()
    k = rng.scalar()
    A_g = group.mul_base(k)
    A_pk = group.mul(k, public_key)
    e = _zero_transcript(group, public_key, ciphertext, A_g, A_pk, context)
    return ZeroProof(
        commitment_g=A_g,
        commitment_pk=A_pk,
        challenge=e,
        response=field.add(k, field.mul(e, randomness)),
    )


def verify_zero_proof(
    group: CurveGroup,
    proof: ZeroProof,
    ciphertext: Ciphertext,
    public_key: bytes,
    context: bytes = b"",
) -> bool:
    g = group
    points = [proof.commitment_g, proof.commitment_pk, ciphertext.c1, ciphertext.c2, public_key]
    if not all(g.is_valid(p) for p in points):
        return False
    if not field.is_canonical(proof.challenge) or not field.is_canonical(proof.response):
        return False

    e = _zero_transcript(
        g, public_key, ciphertext, proof.commitment_g, proof.commitment_pk, context
    )
    if e != proof.challenge:
        return False

    z = proof.response
    if g.mul_base(z) != g.add(proof.commitment_g, g.mul(e, ciphertext.c1)):
        return False
    if g.mul(z, public_key) != g.add(proof.commitment_pk, g.mul(e, ciphertext.c2)):
        return False

    return True
