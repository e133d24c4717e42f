"""
Confidential Swap Balance-Sufficiency Proofs

The prover encrypts its available balance under the protocol key,

    balance_nonce      = beta * G
    balance_commitment = balance * G + beta * PK

and shows that (balance - give) is a non-negative n-bit amount: a range
proof on balance_commitment - c2_give with blinding delta = beta - r_give,
plus a Schnorr proof that balance_nonce - c1_give = delta * G, which ties
the range proof to the same delta.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional

from cswap.constants import DOMAIN_BALANCE_PROOF
from cswap.crypto import field
from cswap.crypto.elgamal import Ciphertext
from cswap.crypto.group import CurveGroup
from cswap.crypto.randomness import RandomnessSource, SystemRandomness
from cswap.crypto.transcript import Transcript
from cswap.errors import EncodingError, InsufficientBalanceProof
from cswap.proofs.range_proof import RangeProof, build_range_proof, verify_range_proof

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BalanceProof:
    balance_commitment: bytes
    balance_nonce: bytes
    challenge: int
    response: int
    surplus_proof: RangeProof

    def to_dict(self) -> dict:
        return {
            "balance_commitment": self.balance_commitment.hex(),
            "balance_nonce": self.balance_nonce.hex(),
            "challenge": field.to_hex(self.challenge),
            "response": field.to_hex(self.response),
            "surplus_proof": self.surplus_proof.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict, group: CurveGroup) -> "BalanceProof":
        return cls(
            balance_commitment=group.decode_point(data["balance_commitment"]),
            balance_nonce=group.decode_point(data["balance_nonce"]),
            challenge=field.from_hex(data["challenge"]),
            response=field.from_hex(data["response"]),
            surplus_proof=RangeProof.from_dict(data["surplus_proof"], group),
        )


def _balance_transcript(
    group: CurveGroup,
    public_key: bytes,
    encrypted_give: Ciphertext,
    balance_commitment: bytes,
    balance_nonce: bytes,
    surplus_challenge: int,
    context: bytes,
) -> Transcript:
    t = Transcript(DOMAIN_BALANCE_PROOF)
    t.append_str(b"group", group.name)
    t.append_bytes(b"context", context)
    t.append_point(b"pk", public_key)
    t.append_bytes(b"give", encrypted_give.serialize())
    t.append_point(b"balance_commitment", balance_commitment)
    t.append_point(b"balance_nonce", balance_nonce)
    t.append_scalar(b"surplus", surplus_challenge)
    return t


def build_balance_proof(
    group: CurveGroup,
    give_amount: int,
    available_balance: int,
    *,
    give_randomness: int,
    encrypted_give: Ciphertext,
    public_key: bytes,
    num_bits: int,
    context: bytes = b"",
    rng: Optional[RandomnessSource] = None,
    balance_randomness: Optional[int] = None,
) -> BalanceProof:
    """
    Prove available_balance >= give_amount.

    Without a balance record the committed balance is capped at
    give_amount + 2^num_bits - 1, which still proves sufficiency for any
    larger real balance.

    Args:
        balance_randomness: Randomness of an existing encrypted balance
            record; a fresh value is drawn when omitted

    Raises:
        InsufficientBalanceProof: If available_balance < give_amount. Raised
            before any cryptographic work.
        EncodingError: If a referenced balance record exceeds give_amount
            by 2^num_bits or more
    """
    if give_amount > available_balance:
        logger.warning("Balance proof refused: insufficient balance")
        raise InsufficientBalanceProof()

    # The surplus range proof covers at most 2^num_bits - 1 above give
    ceiling = give_amount + (1 << num_bits) - 1
    if balance_randomness is None:
        available_balance = min(available_balance, ceiling)
    elif available_balance > ceiling:
        raise EncodingError(
            f"Balance record exceeds give_amount by {num_bits} bits or more",
            {"num_bits": num_bits},
        )

    rng = rng or SystemRandomness()
    g = group
    PK = public_key

    beta = balance_randomness if balance_randomness is not None else rng.scalar()
    balance_nonce = g.mul_base(beta)
    balance_commitment = g.add(g.mul_base(available_balance), g.mul(beta, PK))

    delta = field.sub(beta, give_randomness)
    surplus_proof = build_range_proof(
        g,
        available_balance - give_amount,
        delta,
        num_bits,
        base=PK,
        context=context,
        rng=rng,
    )

    k = rng.scalar()
    T = g.mul_base(k)
    t = _balance_transcript(
        g, PK, encrypted_give, balance_commitment, balance_nonce,
        surplus_proof.challenge, context,
    )
    t.append_point(b"T", T)
    e = t.challenge()

    logger.debug("Built balance proof")

    return BalanceProof(
        balance_commitment=balance_commitment,
        balance_nonce=balance_nonce,
        challenge=e,
        response=field.add(k, field.mul(e, delta)),
        surplus_proof=surplus_proof,
    )


def verify_balance_proof(
    group: CurveGroup,
    proof: BalanceProof,
    *,
    encrypted_give: Ciphertext,
    public_key: bytes,
    num_bits: int,
    context: bytes = b"",
) -> bool:
    g = group
    PK = public_key

    points = [
        proof.balance_commitment,
        proof.balance_nonce,
        encrypted_give.c1,
        encrypted_give.c2,
        PK,
    ]
    if not all(g.is_valid(p) for p in points):
        return False
    if not field.is_canonical(proof.challenge) or not field.is_canonical(proof.response):
        return False

    surplus_target = g.sub(proof.balance_commitment, encrypted_give.c2)
    if not verify_range_proof(
        g,
        proof.surplus_proof,
        surplus_target,
        base=PK,
        context=context,
        num_bits=num_bits,
    ):
        logger.debug("Balance surplus range proof failed")
        return False

    e = proof.challenge
    delta_point = g.sub(proof.balance_nonce, encrypted_give.c1)
    T = g.sub(g.mul_base(proof.response), g.mul(e, delta_point))

    t = _balance_transcript(
        g, PK, encrypted_give, proof.balance_commitment, proof.balance_nonce,
        proof.surplus_proof.challenge, context,
    )
    t.append_point(b"T", T)
    if t.challenge() != e:
        logger.debug("Balance proof challenge mismatch")
        return False

    return True
