"""
Confidential Swap

Confidential order and swap protocol: ElGamal-encrypted amounts, Pedersen
rate commitments and Fiat-Shamir range, rate and balance proofs on Ed25519.
"""

__version__ = "1.0.0"
__author__ = "Confidential Swap Team"

from cswap.constants import PROTOCOL_VERSION, CURVE_ORDER, RATE_SCALE

__all__ = [
    "PROTOCOL_VERSION",
    "CURVE_ORDER",
    "RATE_SCALE",
    "__version__",
]
