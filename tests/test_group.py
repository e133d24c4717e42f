"""
Confidential Swap Curve Group Tests
"""

import pytest

from cswap.constants import CURVE_ORDER
from cswap.crypto.group import (
    Ed25519Group,
    ModularPlaceholderGroup,
    get_group,
)
from cswap.errors import ConfigurationError, EncodingError, ErrorCode


@pytest.fixture(params=["ed25519", "modular-placeholder"])
def any_group(request):
    return get_group(request.param)


class TestGroupLaw:
    """Group law holds in both groups."""

    def test_generators_valid_and_distinct(self, any_group):
        g = any_group
        assert g.is_valid(g.G)
        assert g.is_valid(g.H)
        assert g.G != g.H
        assert g.H != g.identity

    def test_identity(self, any_group):
        g = any_group
        P = g.mul_base(7)
        assert g.add(P, g.identity) == P
        assert g.add(g.identity, P) == P
        assert g.mul(0, P) == g.identity
        assert g.mul_base(0) == g.identity
        assert g.mul(5, g.identity) == g.identity

    def test_negation(self, any_group):
        g = any_group
        P = g.mul_base(11)
        assert g.add(P, g.neg(P)) == g.identity
        assert g.sub(P, P) == g.identity
        assert g.sub(g.identity, P) == g.neg(P)
        assert g.neg(g.identity) == g.identity

    def test_scalar_multiplication_is_linear(self, any_group):
        g = any_group
        a, b = 123456789, 987654321
        assert g.mul_base(a + b) == g.add(g.mul_base(a), g.mul_base(b))
        assert g.mul(a, g.mul_base(b)) == g.mul_base(a * b)
        assert g.mul(a, g.H) == g.mul(a + CURVE_ORDER, g.H)

    def test_order(self, any_group):
        g = any_group
        assert g.mul(CURVE_ORDER, g.H) == g.identity
        assert g.mul_base(CURVE_ORDER - 1) == g.neg(g.G)

    def test_lincomb(self, any_group):
        g = any_group
        total = g.lincomb([(2, g.G), (3, g.H)])
        assert total == g.commit(2, 3)

    def test_hash_to_point(self, any_group):
        g = any_group
        p1 = g.hash_to_point(b"seed")
        assert p1 == g.hash_to_point(b"seed")
        assert p1 != g.hash_to_point(b"other seed")
        assert g.is_valid(p1)


class TestEd25519:
    """Tests specific to the production group."""

    def test_production_flag(self):
        assert get_group("ed25519").production
        assert isinstance(get_group("ed25519"), Ed25519Group)

    def test_invalid_encodings(self):
        g = get_group("ed25519")
        assert not g.is_valid(b"\xff" * 32)
        assert not g.is_valid(bytes(31))
        assert not g.is_valid("not bytes")
        # (x, 0) has order 4
        assert not g.is_valid(bytes(32))

    def test_identity_encoding(self):
        g = get_group("ed25519")
        assert g.identity == bytes([1]) + bytes(31)
        assert g.is_valid(g.identity)

    def test_decode_point(self):
        g = get_group("ed25519")
        assert g.decode_point(g.H.hex()) == g.H
        with pytest.raises(EncodingError):
            g.decode_point("ff" * 32)
        with pytest.raises(EncodingError) as exc:
            g.decode_point("not hex")
        assert exc.value.code == ErrorCode.MALFORMED_ENCODING


class TestPlaceholder:
    """The placeholder group is never production."""

    def test_not_production(self):
        g = get_group("modular-placeholder")
        assert isinstance(g, ModularPlaceholderGroup)
        assert not g.production


class TestRegistry:
    def test_shared_instances(self):
        assert get_group("ed25519") is get_group("ed25519")

    def test_unknown_group(self):
        with pytest.raises(ConfigurationError) as exc:
            get_group("secp256k1")
        assert exc.value.code == ErrorCode.UNKNOWN_GROUP
