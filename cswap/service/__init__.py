"""
Confidential Swap External Services
"""

from cswap.service.prover import (
    ProofProvider,
    LiveProofProvider,
    MockProofProvider,
    create_proof_provider,
    attach_succinct_proof,
    prove_order,
    prove_take,
)
from cswap.service.submission import submit_with_retry

__all__ = [
    "ProofProvider",
    "LiveProofProvider",
    "MockProofProvider",
    "create_proof_provider",
    "attach_succinct_proof",
    "prove_order",
    "prove_take",
    "submit_with_retry",
]
