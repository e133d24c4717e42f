"""
Confidential Swap ElGamal Tests
"""

import pytest

from cswap.crypto.elgamal import Ciphertext, EncryptionEngine
from cswap.crypto.group import get_group
from cswap.crypto.randomness import DeterministicRandomness
from cswap.errors import DecryptionError, EncodingError, ProofConstructionFailure

DECRYPT_BOUND = 10_000


class TestEncryption:
    """Tests for ElGamal encryption."""

    def test_decrypt_recovers_value(self, engine, protocol_keypair):
        c = engine.encrypt(1234, protocol_keypair.public)
        assert engine.decrypt(c, protocol_keypair.secret, DECRYPT_BOUND) == 1234

    def test_decrypt_zero(self, engine, protocol_keypair):
        c = engine.encrypt_zero(protocol_keypair.public)
        assert engine.decrypt(c, protocol_keypair.secret, DECRYPT_BOUND) == 0

    def test_same_plaintext_distinct_ciphertexts(self, engine, public_key):
        """Fresh randomness hides equality of plaintexts."""
        a = engine.encrypt(500, public_key)
        b = engine.encrypt(500, public_key)
        assert a != b
        assert a.c1 != b.c1

    def test_explicit_randomness(self, engine, group, public_key):
        c = engine.encrypt(7, public_key, randomness=99)
        assert c.c1 == group.mul_base(99)
        assert c.c2 == group.add(group.mul_base(7), group.mul(99, public_key))

    def test_zero_randomness_rejected(self, engine, public_key):
        with pytest.raises(ProofConstructionFailure):
            engine.encrypt(7, public_key, randomness=0)

    def test_invalid_public_key_rejected(self, engine, group):
        with pytest.raises(ProofConstructionFailure):
            engine.encrypt(7, group.identity)
        with pytest.raises(ProofConstructionFailure):
            engine.encrypt(7, b"\xff" * 32)

    def test_decrypt_out_of_bound(self, engine, protocol_keypair):
        c = engine.encrypt(5000, protocol_keypair.public)
        with pytest.raises(DecryptionError):
            engine.decrypt(c, protocol_keypair.secret, 1000)

    def test_wrong_key_does_not_decrypt(self, engine, protocol_keypair):
        other = engine.generate_keypair()
        c = engine.encrypt(42, protocol_keypair.public)
        assert engine.decrypt_point(c, other.secret) != engine.group.mul_base(42)


class TestHomomorphism:
    """Ciphertext arithmetic tracks plaintext arithmetic."""

    def test_combine(self, engine, protocol_keypair):
        pk, sk = protocol_keypair.public, protocol_keypair.secret
        total = engine.combine(engine.encrypt(300, pk), engine.encrypt(450, pk))
        assert engine.decrypt(total, sk, DECRYPT_BOUND) == 750

    @pytest.mark.parametrize("value", [0, 1, 2**64 - 1])
    def test_combine_with_zero_is_identity(self, engine, group, protocol_keypair, value):
        pk, sk = protocol_keypair.public, protocol_keypair.secret
        total = engine.combine(engine.encrypt(value, pk), engine.encrypt_zero(pk))
        assert engine.decrypt_point(total, sk) == group.mul_base(value)

    def test_subtract(self, engine, protocol_keypair):
        pk, sk = protocol_keypair.public, protocol_keypair.secret
        diff = engine.subtract(engine.encrypt(1000, pk), engine.encrypt(400, pk))
        assert engine.decrypt(diff, sk, DECRYPT_BOUND) == 600

    def test_scale(self, engine, protocol_keypair):
        pk, sk = protocol_keypair.public, protocol_keypair.secret
        scaled = engine.scale(engine.encrypt(25, pk), 100)
        assert engine.decrypt(scaled, sk, DECRYPT_BOUND) == 2500

    def test_large_values_via_decrypt_point(self, engine, group, protocol_keypair):
        pk, sk = protocol_keypair.public, protocol_keypair.secret
        x, y = 2**60 + 17, 2**61 + 5
        total = engine.combine(engine.encrypt(x, pk), engine.encrypt(y, pk))
        assert engine.decrypt_point(total, sk) == group.mul_base(x + y)

    def test_randomness_adds(self, group):
        eng = EncryptionEngine(group, DeterministicRandomness([5, 11, 13]))
        kp = eng.generate_keypair()
        total = eng.combine(eng.encrypt(1, kp.public), eng.encrypt(2, kp.public))
        assert total == eng.encrypt(3, kp.public, randomness=24)


class TestSerialization:
    """Tests for ciphertext encoding."""

    def test_bytes(self, engine, public_key):
        c = engine.encrypt(9, public_key)
        data = c.serialize()
        assert len(data) == 64
        assert Ciphertext.deserialize(data) == c

    def test_bytes_wrong_length(self):
        with pytest.raises(ValueError):
            Ciphertext.deserialize(bytes(63))

    def test_dict_validates_points(self, engine, group, public_key):
        c = engine.encrypt(9, public_key)
        assert Ciphertext.from_dict(c.to_dict(), group) == c
        with pytest.raises(EncodingError):
            Ciphertext.from_dict({"c1": "ff" * 32, "c2": c.c2.hex()}, get_group("ed25519"))
