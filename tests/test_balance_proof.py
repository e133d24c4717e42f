"""
Confidential Swap Balance Proof Tests
"""

import dataclasses

import pytest

from cswap.errors import EncodingError, ErrorCode, InsufficientBalanceProof
from cswap.proofs.balance_proof import (
    BalanceProof,
    build_balance_proof,
    verify_balance_proof,
)

BITS = 16


def _give(engine, rng, public_key, amount):
    r = rng.scalar()
    return engine.encrypt(amount, public_key, r), r


class TestBalanceProof:
    """Tests for balance-sufficiency proofs."""

    @pytest.mark.parametrize("balance", [100, 500, 2**BITS - 1])
    def test_valid(self, group, engine, rng, public_key, balance):
        enc_give, r_give = _give(engine, rng, public_key, 100)
        proof = build_balance_proof(
            group, 100, balance,
            give_randomness=r_give,
            encrypted_give=enc_give,
            public_key=public_key,
            num_bits=BITS,
            context=b"ctx",
            rng=rng,
        )
        assert verify_balance_proof(
            group, proof,
            encrypted_give=enc_give,
            public_key=public_key,
            num_bits=BITS,
            context=b"ctx",
        )

    def test_insufficient_balance_before_any_work(self, group, engine, rng, public_key):
        enc_give, r_give = _give(engine, rng, public_key, 100)
        issued = rng.issued_count
        with pytest.raises(InsufficientBalanceProof) as exc:
            build_balance_proof(
                group, 100, 99,
                give_randomness=r_give,
                encrypted_give=enc_give,
                public_key=public_key,
                num_bits=BITS,
                rng=rng,
            )
        assert exc.value.code == ErrorCode.INSUFFICIENT_BALANCE
        assert rng.issued_count == issued

    @pytest.mark.parametrize("balance", [2**BITS, 2**BITS + 100, 10**30])
    def test_balance_wider_than_amounts(self, group, engine, rng, public_key, balance):
        """Large real balances are capped, not refused."""
        enc_give, r_give = _give(engine, rng, public_key, 100)
        proof = build_balance_proof(
            group, 100, balance,
            give_randomness=r_give,
            encrypted_give=enc_give,
            public_key=public_key,
            num_bits=BITS,
            rng=rng,
        )
        assert verify_balance_proof(
            group, proof, encrypted_give=enc_give, public_key=public_key, num_bits=BITS
        )

    def test_balance_record_too_wide(self, group, engine, rng, public_key):
        enc_give, r_give = _give(engine, rng, public_key, 100)
        issued = rng.issued_count
        with pytest.raises(EncodingError):
            build_balance_proof(
                group, 100, 100 + 2**BITS,
                give_randomness=r_give,
                encrypted_give=enc_give,
                public_key=public_key,
                num_bits=BITS,
                rng=rng,
                balance_randomness=12345,
            )
        assert rng.issued_count == issued

    def test_balance_record_at_ceiling(self, group, engine, rng, public_key):
        enc_give, r_give = _give(engine, rng, public_key, 100)
        beta = rng.scalar()
        record = engine.encrypt(99 + 2**BITS, public_key, beta)
        proof = build_balance_proof(
            group, 100, 99 + 2**BITS,
            give_randomness=r_give,
            encrypted_give=enc_give,
            public_key=public_key,
            num_bits=BITS,
            rng=rng,
            balance_randomness=beta,
        )
        assert proof.balance_commitment == record.c2
        assert verify_balance_proof(
            group, proof, encrypted_give=enc_give, public_key=public_key, num_bits=BITS
        )

    def test_existing_balance_record(self, group, engine, rng, public_key):
        """A caller-held balance ciphertext is reused as the commitment."""
        enc_give, r_give = _give(engine, rng, public_key, 100)
        beta = rng.scalar()
        record = engine.encrypt(300, public_key, beta)
        proof = build_balance_proof(
            group, 100, 300,
            give_randomness=r_give,
            encrypted_give=enc_give,
            public_key=public_key,
            num_bits=BITS,
            rng=rng,
            balance_randomness=beta,
        )
        assert proof.balance_nonce == record.c1
        assert proof.balance_commitment == record.c2

    def test_other_give_ciphertext(self, group, engine, rng, public_key):
        enc_give, r_give = _give(engine, rng, public_key, 100)
        other, _ = _give(engine, rng, public_key, 100)
        proof = build_balance_proof(
            group, 100, 500,
            give_randomness=r_give,
            encrypted_give=enc_give,
            public_key=public_key,
            num_bits=BITS,
            rng=rng,
        )
        assert not verify_balance_proof(
            group, proof, encrypted_give=other, public_key=public_key, num_bits=BITS
        )

    def test_inflated_balance_commitment(self, group, engine, rng, public_key):
        enc_give, r_give = _give(engine, rng, public_key, 100)
        proof = build_balance_proof(
            group, 100, 500,
            give_randomness=r_give,
            encrypted_give=enc_give,
            public_key=public_key,
            num_bits=BITS,
            rng=rng,
        )
        forged = dataclasses.replace(
            proof,
            balance_commitment=group.add(proof.balance_commitment, group.G),
        )
        assert not verify_balance_proof(
            group, forged, encrypted_give=enc_give, public_key=public_key, num_bits=BITS
        )

    def test_width_binding(self, group, engine, rng, public_key):
        enc_give, r_give = _give(engine, rng, public_key, 100)
        proof = build_balance_proof(
            group, 100, 500,
            give_randomness=r_give,
            encrypted_give=enc_give,
            public_key=public_key,
            num_bits=BITS,
            rng=rng,
        )
        assert not verify_balance_proof(
            group, proof, encrypted_give=enc_give, public_key=public_key, num_bits=BITS + 1
        )

    def test_dict_encoding(self, group, engine, rng, public_key):
        enc_give, r_give = _give(engine, rng, public_key, 10)
        proof = build_balance_proof(
            group, 10, 20,
            give_randomness=r_give,
            encrypted_give=enc_give,
            public_key=public_key,
            num_bits=BITS,
            rng=rng,
        )
        assert BalanceProof.from_dict(proof.to_dict(), group) == proof
