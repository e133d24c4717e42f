"""
Confidential Swap Zero-Knowledge Proofs
"""

from cswap.proofs.range_proof import RangeProof, build_range_proof, verify_range_proof
from cswap.proofs.rate_proof import RateProof, build_rate_proof, verify_rate_proof
from cswap.proofs.balance_proof import (
    BalanceProof,
    build_balance_proof,
    verify_balance_proof,
)
from cswap.proofs.zero_proof import ZeroProof, build_zero_proof, verify_zero_proof
from cswap.proofs.bundle import ProofArtifact, ProofBundle, TakeProofBundle, io_commitment

__all__ = [
    "RangeProof",
    "build_range_proof",
    "verify_range_proof",
    "RateProof",
    "build_rate_proof",
    "verify_rate_proof",
    "BalanceProof",
    "build_balance_proof",
    "verify_balance_proof",
    "ZeroProof",
    "build_zero_proof",
    "verify_zero_proof",
    "ProofArtifact",
    "ProofBundle",
    "TakeProofBundle",
    "io_commitment",
]
