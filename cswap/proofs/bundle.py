"""
Confidential Swap Proof Bundles

A ProofBundle accompanies every maker order; a TakeProofBundle adds the
fill and min-fill proofs a taker must supply. Bundles record the group
they were built on so that production verifiers can refuse placeholder
arithmetic, and may carry an optional succinct-proof artifact.
"""

from __future__ import annotations
import json
from dataclasses import dataclass, replace
from typing import Optional, Union

from Crypto.Hash import TupleHash256

from cswap.constants import DOMAIN_BUNDLE_DIGEST, DOMAIN_IO_COMMITMENT
from cswap.crypto.group import CurveGroup
from cswap.errors import EncodingError, ErrorCode
from cswap.proofs.balance_proof import BalanceProof
from cswap.proofs.range_proof import RangeProof
from cswap.proofs.rate_proof import RateProof
from cswap.proofs.zero_proof import ZeroProof


@dataclass(frozen=True)
class ProofArtifact:
    """
    Opaque succinct proof returned by a ProofProvider.

    mock=True marks placeholder artifacts; they must never reach a
    production verifier.
    """
    provider: str
    io_commitment: bytes
    payload: bytes
    mock: bool = False

    def to_dict(self) -> dict:
        return {
            "provider": self.provider,
            "io_commitment": self.io_commitment.hex(),
            "payload": self.payload.hex(),
            "mock": self.mock,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProofArtifact":
        return cls(
            provider=data["provider"],
            io_commitment=bytes.fromhex(data["io_commitment"]),
            payload=bytes.fromhex(data["payload"]),
            mock=bool(data.get("mock", False)),
        )


@dataclass(frozen=True)
class ProofBundle:
    range_proof_give: RangeProof
    range_proof_want: RangeProof
    rate_proof: RateProof
    balance_proof: BalanceProof
    group: str
    succinct_proof: Optional[ProofArtifact] = None

    def sigma_dict(self) -> dict:
        """Sigma-protocol part of the bundle, without the succinct artifact."""
        return {
            "group": self.group,
            "range_proof_give": self.range_proof_give.to_dict(),
            "range_proof_want": self.range_proof_want.to_dict(),
            "rate_proof": self.rate_proof.to_dict(),
            "balance_proof": self.balance_proof.to_dict(),
        }

    def to_dict(self) -> dict:
        data = self.sigma_dict()
        if self.succinct_proof is not None:
            data["succinct_proof"] = self.succinct_proof.to_dict()
        return data

    def digest(self) -> bytes:
        """Stable 32-byte identifier of the sigma proofs."""
        h = TupleHash256.new(digest_bytes=32, custom=DOMAIN_BUNDLE_DIGEST)
        h.update(json.dumps(self.sigma_dict(), sort_keys=True).encode())
        return h.digest()

    def with_succinct_proof(self, artifact: ProofArtifact) -> "ProofBundle":
        return replace(self, succinct_proof=artifact)

    @staticmethod
    def _common_from_dict(data: dict, group: CurveGroup) -> dict:
        if data.get("group") != group.name:
            raise EncodingError(
                f"Bundle group {data.get('group')} does not match {group.name}",
                code=ErrorCode.MALFORMED_ENCODING,
            )
        succinct = data.get("succinct_proof")
        return {
            "range_proof_give": RangeProof.from_dict(data["range_proof_give"], group),
            "range_proof_want": RangeProof.from_dict(data["range_proof_want"], group),
            "rate_proof": RateProof.from_dict(data["rate_proof"], group),
            "balance_proof": BalanceProof.from_dict(data["balance_proof"], group),
            "group": group.name,
            "succinct_proof": ProofArtifact.from_dict(succinct) if succinct else None,
        }

    @classmethod
    def from_dict(cls, data: dict, group: CurveGroup) -> "ProofBundle":
        return cls(**cls._common_from_dict(data, group))


@dataclass(frozen=True)
class TakeProofBundle(ProofBundle):
    """
    Taker bundle.

    fill_proof is a ZeroProof when the take consumes the whole remaining
    amount and a RangeProof (remaining - fill - 1 >= 0) otherwise.
    min_fill_proof is required for partial fills only.
    """
    fill_proof: Union[ZeroProof, RangeProof, None] = None
    min_fill_proof: Optional[RangeProof] = None

    @property
    def is_full_fill(self) -> bool:
        return isinstance(self.fill_proof, ZeroProof)

    def sigma_dict(self) -> dict:
        data = super().sigma_dict()
        if self.fill_proof is not None:
            data["fill_proof"] = {
                "kind": "zero" if self.is_full_fill else "range",
                "proof": self.fill_proof.to_dict(),
            }
        if self.min_fill_proof is not None:
            data["min_fill_proof"] = self.min_fill_proof.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict, group: CurveGroup) -> "TakeProofBundle":
        kwargs = cls._common_from_dict(data, group)
        fill = data.get("fill_proof")
        if fill is not None:
            if fill["kind"] == "zero":
                kwargs["fill_proof"] = ZeroProof.from_dict(fill["proof"], group)
            else:
                kwargs["fill_proof"] = RangeProof.from_dict(fill["proof"], group)
        if data.get("min_fill_proof") is not None:
            kwargs["min_fill_proof"] = RangeProof.from_dict(data["min_fill_proof"], group)
        return cls(**kwargs)


def io_commitment(context: bytes, bundle: ProofBundle) -> bytes:
    """Public input/output commitment handed to the succinct-proof service."""
    h = TupleHash256.new(digest_bytes=32, custom=DOMAIN_IO_COMMITMENT)
    h.update(context)
    h.update(bundle.digest())
    return h.digest()
