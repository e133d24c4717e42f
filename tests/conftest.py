"""
Confidential Swap Test Fixtures
"""

import pytest

from cswap.config import ProtocolConfig, init_config, reset_config
from cswap.crypto.elgamal import EncryptionEngine, KeyPair
from cswap.crypto.group import get_group
from cswap.crypto.randomness import AuditedRandomness
from cswap.protocol.ledger import OrderLedger
from cswap.protocol.match import MatchEngine
from cswap.protocol.order import OrderBuilder
from cswap.protocol.verifier import SigmaVerifier

# Asset ids from the default asset table
SAGE = 0
USDC = 1
STRK = 2

TEST_AMOUNT_BITS = 16


class FakeClock:
    """Controllable time source."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def config() -> ProtocolConfig:
    """Production Ed25519 configuration with narrow amounts for speed."""
    return ProtocolConfig(amount_bits=TEST_AMOUNT_BITS)


@pytest.fixture
def placeholder_config() -> ProtocolConfig:
    """Non-production configuration on the placeholder group."""
    return ProtocolConfig(
        group="modular-placeholder",
        production=False,
        amount_bits=TEST_AMOUNT_BITS,
    )


@pytest.fixture(autouse=True)
def installed_config(config):
    """Install the test configuration process-wide."""
    reset_config()
    init_config(config)
    yield config
    reset_config()


@pytest.fixture
def group(config):
    return get_group(config.group)


@pytest.fixture
def rng() -> AuditedRandomness:
    """Randomness source that fails on any reuse."""
    return AuditedRandomness()


@pytest.fixture
def engine(group, rng) -> EncryptionEngine:
    return EncryptionEngine(group, rng)


@pytest.fixture
def protocol_keypair(engine) -> KeyPair:
    return engine.generate_keypair()


@pytest.fixture
def public_key(protocol_keypair) -> bytes:
    return protocol_keypair.public


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def builder(public_key, group, rng, config, clock) -> OrderBuilder:
    return OrderBuilder(public_key, group=group, rng=rng, config=config, clock=clock)


@pytest.fixture
def matcher(group, rng, config, clock) -> MatchEngine:
    return MatchEngine(group=group, rng=rng, config=config, clock=clock)


@pytest.fixture
def verifier(public_key, group, config) -> SigmaVerifier:
    return SigmaVerifier(public_key, group=group, config=config)


@pytest.fixture
def ledger(verifier, public_key, group, config, clock) -> OrderLedger:
    return OrderLedger(verifier, public_key, group=group, config=config, clock=clock)


@pytest.fixture
def open_order(builder, ledger):
    """
    Submitted order: 100 SAGE for 1000 USDC (rate 10), 25% minimum fill.

    Returns (published order, maker secrets).
    """
    order, secrets = builder.build_order(
        SAGE, USDC, 100, 1000,
        min_fill_pct=25,
        available_balance=500,
        maker="alice",
    )
    order_id = ledger.submit(order)
    return ledger.get_order(order_id), secrets
