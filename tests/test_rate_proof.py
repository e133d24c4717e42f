"""
Confidential Swap Rate Proof Tests
"""

import pytest

from cswap.constants import RATE_SCALE
from cswap.crypto.pedersen import CommitmentEngine, encode_rate
from cswap.errors import ProofConstructionFailure
from cswap.proofs.rate_proof import RateProof, build_rate_proof, verify_rate_proof


@pytest.fixture
def rate_setup(group, engine, rng, public_key):
    """Order legs: give 100, want 1000, rate 10."""
    give, want = 100, 1000
    rate = encode_rate(give, want)
    r_give, r_want = rng.scalar(), rng.scalar()
    commitments = CommitmentEngine(group, rng)
    R, blinding = commitments.commit_fresh(rate)
    return {
        "give": give,
        "want": want,
        "rate": rate,
        "blinding": blinding,
        "r_give": r_give,
        "r_want": r_want,
        "enc_give": engine.encrypt(give, public_key, r_give),
        "enc_want": engine.encrypt(want, public_key, r_want),
        "R": R,
        "commitments": commitments,
    }


def _build(group, rng, public_key, s, **overrides):
    kwargs = dict(
        want_amount=s["want"],
        give_randomness=s["r_give"],
        want_randomness=s["r_want"],
        encrypted_give=s["enc_give"],
        encrypted_want=s["enc_want"],
        rate_commitment=s["R"],
        public_key=public_key,
        context=b"ctx",
        rng=rng,
    )
    kwargs.update(overrides)
    return build_rate_proof(group, s["give"], s["rate"], s["blinding"], **kwargs)


def _verify(group, proof, public_key, s, **overrides):
    kwargs = dict(
        encrypted_give=s["enc_give"],
        encrypted_want=s["enc_want"],
        rate_commitment=s["R"],
        public_key=public_key,
        context=b"ctx",
    )
    kwargs.update(overrides)
    return verify_rate_proof(group, proof, **kwargs)


class TestRateProof:
    """Tests for rate-consistency proofs."""

    def test_valid(self, group, rng, public_key, rate_setup):
        proof = _build(group, rng, public_key, rate_setup)
        assert _verify(group, proof, public_key, rate_setup)

    def test_inconsistent_amounts_refused(self, group, rng, public_key, rate_setup):
        with pytest.raises(ProofConstructionFailure):
            _build(group, rng, public_key, rate_setup, want_amount=999)

    def test_other_rate_commitment(self, group, rng, public_key, rate_setup):
        """A proof for one commitment never verifies against another."""
        proof = _build(group, rng, public_key, rate_setup)
        other, _ = rate_setup["commitments"].commit_fresh(11 * RATE_SCALE)
        assert not _verify(group, proof, public_key, rate_setup, rate_commitment=other)

    def test_same_rate_fresh_blinding(self, group, rng, public_key, rate_setup):
        proof = _build(group, rng, public_key, rate_setup)
        other, _ = rate_setup["commitments"].commit_fresh(rate_setup["rate"])
        assert not _verify(group, proof, public_key, rate_setup, rate_commitment=other)

    def test_want_ciphertext_off_rate(self, group, engine, rng, public_key, rate_setup):
        """Encrypting a want amount off the committed rate cannot be proved."""
        wrong_want = engine.encrypt(1001, public_key, rate_setup["r_want"])
        proof = _build(group, rng, public_key, rate_setup, encrypted_want=wrong_want)
        assert not _verify(
            group, proof, public_key, rate_setup, encrypted_want=wrong_want
        )

    def test_swapped_ciphertexts(self, group, rng, public_key, rate_setup):
        proof = _build(group, rng, public_key, rate_setup)
        assert not _verify(
            group, proof, public_key, rate_setup,
            encrypted_give=rate_setup["enc_want"],
            encrypted_want=rate_setup["enc_give"],
        )

    def test_context_binding(self, group, rng, public_key, rate_setup):
        proof = _build(group, rng, public_key, rate_setup)
        assert not _verify(group, proof, public_key, rate_setup, context=b"other")

    def test_scale_binding(self, group, rng, public_key, rate_setup):
        proof = _build(group, rng, public_key, rate_setup)
        assert not _verify(group, proof, public_key, rate_setup, scale=RATE_SCALE * 10)

    def test_dict_encoding(self, group, rng, public_key, rate_setup):
        proof = _build(group, rng, public_key, rate_setup)
        decoded = RateProof.from_dict(proof.to_dict(), group)
        assert decoded == proof
        assert _verify(group, decoded, public_key, rate_setup)
