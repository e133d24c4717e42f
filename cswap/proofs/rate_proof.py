"""
Confidential Swap Rate-Consistency Proofs

Given a give-leg ciphertext (c1_b, c2_b) of amount b, a want-leg ciphertext
(c1_q, c2_q) of amount q, and a rate commitment R = rate * G + s * H, proves
q * S = b * rate (S the fixed-point scale) without revealing b, q or rate.

Witnesses: b, r_b (give randomness), a = S * r_q, t = b * s.

    c1_b     = r_b * G
    c2_b     = b * G + r_b * PK
    S * c1_q = a * G
    S * c2_q = b * R + a * PK - t * H

The last equation expands to q*S*G = b*rate*G + (b*s - t)*H, which forces
q*S = b*rate while G and H are independent.

"Give" and "want" are in the order's orientation: for a taker the give leg
is the taker's want ciphertext.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional

from cswap.constants import DOMAIN_RATE_PROOF, RATE_SCALE
from cswap.crypto import field
from cswap.crypto.elgamal import Ciphertext
from cswap.crypto.group import CurveGroup
from cswap.crypto.randomness import RandomnessSource, SystemRandomness
from cswap.crypto.transcript import Transcript
from cswap.errors import ProofConstructionFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateProof:
    rate_commitment: bytes
    challenge: int
    response_give: int
    response_rate: int
    response_blinding: int
    response_want: int

    def to_dict(self) -> dict:
        return {
            "rate_commitment": self.rate_commitment.hex(),
            "challenge": field.to_hex(self.challenge),
            "response_give": field.to_hex(self.response_give),
            "response_rate": field.to_hex(self.response_rate),
            "response_blinding": field.to_hex(self.response_blinding),
            "response_want": field.to_hex(self.response_want),
        }

    @classmethod
    def from_dict(cls, data: dict, group: CurveGroup) -> "RateProof":
        return cls(
            rate_commitment=group.decode_point(data["rate_commitment"]),
            challenge=field.from_hex(data["challenge"]),
            response_give=field.from_hex(data["response_give"]),
            response_rate=field.from_hex(data["response_rate"]),
            response_blinding=field.from_hex(data["response_blinding"]),
            response_want=field.from_hex(data["response_want"]),
        )


def _rate_transcript(
    group: CurveGroup,
    public_key: bytes,
    rate_commitment: bytes,
    encrypted_give: Ciphertext,
    encrypted_want: Ciphertext,
    scale: int,
    context: bytes,
) -> Transcript:
    t = Transcript(DOMAIN_RATE_PROOF)
    t.append_str(b"group", group.name)
    t.append_bytes(b"context", context)
    t.append_point(b"pk", public_key)
    t.append_point(b"R", rate_commitment)
    t.append_bytes(b"give", encrypted_give.serialize())
    t.append_bytes(b"want", encrypted_want.serialize())
    t.append_int(b"scale", scale)
    return t


def build_rate_proof(
    group: CurveGroup,
    give_amount: int,
    rate: int,
    blinding: int,
    *,
    want_amount: int,
    give_randomness: int,
    want_randomness: int,
    encrypted_give: Ciphertext,
    encrypted_want: Ciphertext,
    rate_commitment: bytes,
    public_key: bytes,
    scale: int = RATE_SCALE,
    context: bytes = b"",
    rng: Optional[RandomnessSource] = None,
) -> RateProof:
    """
    Prove that the want leg equals the give leg times the committed rate.

    Raises:
        ProofConstructionFailure: If want * scale != give * rate
    """
    if want_amount * scale != give_amount * rate:
        raise ProofConstructionFailure(
            "Amounts are not consistent with the rate",
            {"scale": scale},
        )

    rng = rng or SystemRandomness()
    g = group
    R = rate_commitment
    PK = public_key

    b = field.reduce(give_amount)
    r_b = give_randomness
    a = field.mul(scale, want_randomness)
    t_w = field.mul(give_amount, blinding)

    k_b, k_rb, k_a, k_t = rng.scalars(4)
    T1 = g.mul_base(k_rb)
    T2 = g.add(g.mul_base(k_b), g.mul(k_rb, PK))
    T3 = g.mul_base(k_a)
    T4 = g.sub(g.add(g.mul(k_b, R), g.mul(k_a, PK)), g.mul(k_t, g.H))

    t = _rate_transcript(g, PK, R, encrypted_give, encrypted_want, scale, context)
    t.append_points(b"T", [T1, T2, T3, T4])
    e = t.challenge()

    logger.debug("Built rate proof")

    return RateProof(
        rate_commitment=R,
        challenge=e,
        response_give=field.add(k_b, field.mul(e, b)),
        response_rate=field.add(k_t, field.mul(e, t_w)),
        response_blinding=field.add(k_rb, field.mul(e, r_b)),
        response_want=field.add(k_a, field.mul(e, a)),
    )


def verify_rate_proof(
    group: CurveGroup,
    proof: RateProof,
    *,
    encrypted_give: Ciphertext,
    encrypted_want: Ciphertext,
    rate_commitment: bytes,
    public_key: bytes,
    scale: int = RATE_SCALE,
    context: bytes = b"",
) -> bool:
    """Verify a rate proof against the advertised rate commitment."""
    g = group

    if proof.rate_commitment != rate_commitment:
        logger.debug("Rate proof is for a different rate commitment")
        return False

    points = [
        rate_commitment,
        public_key,
        encrypted_give.c1,
        encrypted_give.c2,
        encrypted_want.c1,
        encrypted_want.c2,
    ]
    if not all(g.is_valid(p) for p in points):
        return False

    scalars = [
        proof.challenge,
        proof.response_give,
        proof.response_rate,
        proof.response_blinding,
        proof.response_want,
    ]
    if not all(field.is_canonical(s) for s in scalars):
        return False

    e = proof.challenge
    z_b = proof.response_give
    z_rb = proof.response_blinding
    z_a = proof.response_want
    z_t = proof.response_rate
    R = rate_commitment
    PK = public_key

    T1 = g.sub(g.mul_base(z_rb), g.mul(e, encrypted_give.c1))
    T2 = g.sub(
        g.add(g.mul_base(z_b), g.mul(z_rb, PK)),
        g.mul(e, encrypted_give.c2),
    )
    T3 = g.sub(g.mul_base(z_a), g.mul(field.mul(e, scale), encrypted_want.c1))
    T4 = g.sub(
        g.sub(g.add(g.mul(z_b, R), g.mul(z_a, PK)), g.mul(z_t, g.H)),
        g.mul(field.mul(e, scale), encrypted_want.c2),
    )

    t = _rate_transcript(g, PK, R, encrypted_give, encrypted_want, scale, context)
    t.append_points(b"T", [T1, T2, T3, T4])
    if t.challenge() != e:
        logger.debug("Rate proof challenge mismatch")
        return False

    return True
