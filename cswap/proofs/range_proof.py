"""
Confidential Swap Range Proofs

Proves that a commitment

    T = v * G + r * B

opens to 0 <= v < 2^n without revealing v. The value is split into bits,
each bit is committed as C_i = b_i * G + r_i * B with sum(2^i * r_i) = r,
and every bit carries a Fiat-Shamir OR proof that C_i or C_i - G is a
multiple of B. All bit proofs share one challenge e; per bit the proof
stores (e0, z0, z1) and the verifier derives e1 = e - e0.

B is H for plain commitments and the encryption key PK when the target is
the c2 half of a ciphertext.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from cswap.constants import DOMAIN_RANGE_PROOF
from cswap.crypto import field
from cswap.crypto.group import CurveGroup
from cswap.crypto.randomness import RandomnessSource, SystemRandomness
from cswap.crypto.transcript import Transcript
from cswap.errors import ErrorCode, ProofConstructionFailure

logger = logging.getLogger(__name__)

MAX_RANGE_BITS = 128


@dataclass(frozen=True)
class RangeProof:
    """
    Bit-decomposition range proof.

    Components:
    - bit_commitments: C_i, one per bit
    - challenge: shared Fiat-Shamir challenge e
    - responses: 3 scalars per bit (e0_i, z0_i, z1_i)
    - num_bits: declared bit width n
    """
    bit_commitments: Tuple[bytes, ...]
    challenge: int
    responses: Tuple[int, ...]
    num_bits: int

    def to_dict(self) -> dict:
        return {
            "bit_commitments": [c.hex() for c in self.bit_commitments],
            "challenge": field.to_hex(self.challenge),
            "responses": [field.to_hex(s) for s in self.responses],
            "num_bits": self.num_bits,
        }

    @classmethod
    def from_dict(cls, data: dict, group: CurveGroup) -> "RangeProof":
        return cls(
            bit_commitments=tuple(group.decode_point(c) for c in data["bit_commitments"]),
            challenge=field.from_hex(data["challenge"]),
            responses=tuple(field.from_hex(s) for s in data["responses"]),
            num_bits=int(data["num_bits"]),
        )


def _range_transcript(
    group: CurveGroup,
    base: bytes,
    target: bytes,
    num_bits: int,
    context: bytes,
    bit_commitments,
) -> Transcript:
    t = Transcript(DOMAIN_RANGE_PROOF)
    t.append_str(b"group", group.name)
    t.append_bytes(b"context", context)
    t.append_int(b"num_bits", num_bits)
    t.append_point(b"base", base)
    t.append_point(b"target", target)
    t.append_points(b"C", bit_commitments)
    return t


def build_range_proof(
    group: CurveGroup,
    value: int,
    blinding: int,
    num_bits: int,
    base: Optional[bytes] = None,
    context: bytes = b"",
    rng: Optional[RandomnessSource] = None,
) -> RangeProof:
    """
    Build a range proof for value * G + blinding * base.

    Args:
        group: Curve group
        value: Secret value, must satisfy 0 <= value < 2^num_bits
        blinding: Blinding scalar of the target
        num_bits: Bit width n
        base: Blinding base B (defaults to H)
        context: Public data the proof is bound to
        rng: Randomness source for bit blindings and nonces

    Returns:
        RangeProof

    Raises:
        ProofConstructionFailure: If the value does not fit in num_bits
    """
    if num_bits < 1 or num_bits > MAX_RANGE_BITS:
        raise ProofConstructionFailure(
            f"Unsupported range width: {num_bits}",
            code=ErrorCode.VALUE_EXCEEDS_BIT_WIDTH,
        )
    if value < 0 or value >= (1 << num_bits):
        raise ProofConstructionFailure(
            f"Value does not fit in {num_bits} bits",
            {"num_bits": num_bits},
            code=ErrorCode.VALUE_EXCEEDS_BIT_WIDTH,
        )

    rng = rng or SystemRandomness()
    g = group
    B = base if base is not None else g.H
    target = g.commit(value, blinding, B)

    bits = [(value >> i) & 1 for i in range(num_bits)]

    # Bit blindings; the last one closes sum(2^i * r_i) = blinding
    blindings = rng.scalars(num_bits - 1)
    partial = 0
    for i, r in enumerate(blindings):
        partial = field.add(partial, field.mul(1 << i, r))
    last = field.mul(
        field.sub(blinding, partial),
        field.inv(1 << (num_bits - 1)),
    )
    blindings.append(last)

    commitments = [g.commit(b, r, B) for b, r in zip(bits, blindings)]

    # OR proof first moves: real branch gets a nonce, other branch is simulated
    nonces: List[int] = []
    simulated: List[Tuple[int, int]] = []
    first_moves: List[bytes] = []
    for b, C in zip(bits, commitments):
        k, e_sim, z_sim = rng.scalars(3)
        nonces.append(k)
        simulated.append((e_sim, z_sim))
        real_t = g.mul(k, B)
        if b == 0:
            X1 = g.sub(C, g.G)
            sim_t = g.sub(g.mul(z_sim, B), g.mul(e_sim, X1))
            first_moves.extend([real_t, sim_t])
        else:
            sim_t = g.sub(g.mul(z_sim, B), g.mul(e_sim, C))
            first_moves.extend([sim_t, real_t])

    t = _range_transcript(g, B, target, num_bits, context, commitments)
    t.append_points(b"T", first_moves)
    e = t.challenge()

    responses: List[int] = []
    for b, r, k, (e_sim, z_sim) in zip(bits, blindings, nonces, simulated):
        e_real = field.sub(e, e_sim)
        z_real = field.add(k, field.mul(e_real, r))
        if b == 0:
            responses.extend([e_real, z_real, z_sim])
        else:
            responses.extend([e_sim, z_sim, z_real])

    logger.debug(f"Built {num_bits}-bit range proof")

    return RangeProof(
        bit_commitments=tuple(commitments),
        challenge=e,
        responses=tuple(responses),
        num_bits=num_bits,
    )


def verify_range_proof(
    group: CurveGroup,
    proof: RangeProof,
    target: bytes,
    base: Optional[bytes] = None,
    context: bytes = b"",
    num_bits: Optional[int] = None,
) -> bool:
    """
    Verify a range proof against its target point.

    Args:
        num_bits: Required bit width; when given, a proof of any other
            width is rejected
    """
    g = group
    B = base if base is not None else g.H
    n = proof.num_bits

    if num_bits is not None and n != num_bits:
        logger.debug(f"Range proof width {n} != required {num_bits}")
        return False
    if n < 1 or n > MAX_RANGE_BITS:
        return False
    if len(proof.bit_commitments) != n or len(proof.responses) != 3 * n:
        return False
    if not all(g.is_valid(c) for c in proof.bit_commitments):
        return False
    if not g.is_valid(target) or not field.is_canonical(proof.challenge):
        return False
    if not all(field.is_canonical(s) for s in proof.responses):
        return False

    e = proof.challenge
    first_moves: List[bytes] = []
    for i, C in enumerate(proof.bit_commitments):
        e0, z0, z1 = proof.responses[3 * i:3 * i + 3]
        e1 = field.sub(e, e0)
        T0 = g.sub(g.mul(z0, B), g.mul(e0, C))
        T1 = g.sub(g.mul(z1, B), g.mul(e1, g.sub(C, g.G)))
        first_moves.extend([T0, T1])

    t = _range_transcript(g, B, target, n, context, proof.bit_commitments)
    t.append_points(b"T", first_moves)
    if t.challenge() != e:
        logger.debug("Range proof challenge mismatch")
        return False

    # Weighted bit commitments must reconstruct the target
    total = g.lincomb((1 << i, C) for i, C in enumerate(proof.bit_commitments))
    if total != target:
        logger.debug("Range proof bit commitments do not sum to target")
        return False

    return True
