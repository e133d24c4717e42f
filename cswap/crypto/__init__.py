"""
Confidential Swap Cryptographic Primitives
"""

from cswap.crypto.group import (
    CurveGroup,
    Ed25519Group,
    ModularPlaceholderGroup,
    get_group,
)
from cswap.crypto.randomness import (
    RandomnessSource,
    SystemRandomness,
    AuditedRandomness,
    DeterministicRandomness,
)
from cswap.crypto.elgamal import Ciphertext, KeyPair, EncryptionEngine
from cswap.crypto.pedersen import CommitmentEngine, encode_rate
from cswap.crypto.transcript import Transcript

__all__ = [
    # Groups
    "CurveGroup",
    "Ed25519Group",
    "ModularPlaceholderGroup",
    "get_group",
    # Randomness
    "RandomnessSource",
    "SystemRandomness",
    "AuditedRandomness",
    "DeterministicRandomness",
    # Encryption
    "Ciphertext",
    "KeyPair",
    "EncryptionEngine",
    # Commitments
    "CommitmentEngine",
    "encode_rate",
    # Fiat-Shamir
    "Transcript",
]
