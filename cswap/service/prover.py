"""
Confidential Swap Succinct-Proof Providers

The succinct-proof backend is an external service reached over HTTP.
Only public data crosses the wire: the io commitment of a bundle and the
public proof parameters.

MockProofProvider returns random artifacts flagged mock=True, for running
without the service. It is never a silent fallback: a LiveProofProvider
that cannot reach its service raises ProofServiceError.
"""

from __future__ import annotations
import logging
import secrets
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Optional

import httpx

from cswap.config import ProofServiceConfig
from cswap.crypto.group import CurveGroup
from cswap.errors import ErrorCode, ProofServiceError
from cswap.proofs.bundle import ProofArtifact, ProofBundle, io_commitment
from cswap.protocol.match import TakeRequest, take_context
from cswap.protocol.order import Order, context_for_order
from cswap.protocol.verifier import proof_parameters

logger = logging.getLogger(__name__)


class ProofProvider(ABC):
    """Request/response access to a succinct-proof backend."""

    kind: str = ""
    mock: bool = False

    @abstractmethod
    def request_proof(self, io_commitment: bytes, parameters: dict) -> ProofArtifact:
        ...

    @abstractmethod
    def verify_proof(self, artifact: ProofArtifact, parameters: dict) -> bool:
        ...

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class LiveProofProvider(ProofProvider):
    """HTTP client for the proof service."""

    kind = "live"
    mock = False

    def __init__(
        self,
        config: ProofServiceConfig,
        client: Optional[httpx.Client] = None,
    ):
        self.config = config
        self._owns_client = client is None
        self.client = client or httpx.Client(
            base_url=config.url,
            timeout=config.timeout_sec,
        )

    def _post(self, endpoint: str, body: dict) -> dict:
        try:
            resp = self.client.post(endpoint, json=body)
        except httpx.HTTPError as e:
            logger.warning(f"Proof service unreachable: {e}")
            raise ProofServiceError(f"Proof service unreachable: {e}")

        if resp.status_code != 200:
            raise ProofServiceError(
                f"Proof service error: {resp.status_code}",
                {"status": resp.status_code, "endpoint": endpoint},
                code=ErrorCode.PROOF_SERVICE_BAD_RESPONSE,
            )

        try:
            return resp.json()
        except ValueError:
            raise ProofServiceError(
                "Proof service returned invalid JSON",
                {"endpoint": endpoint},
                code=ErrorCode.PROOF_SERVICE_BAD_RESPONSE,
            )

    def request_proof(self, io_commitment: bytes, parameters: dict) -> ProofArtifact:
        data = self._post(
            self.config.generate_endpoint,
            {"io_commitment": io_commitment.hex(), "parameters": parameters},
        )
        try:
            payload = bytes.fromhex(data["proof"])
        except (KeyError, TypeError, ValueError):
            raise ProofServiceError(
                "Proof service response has no valid proof",
                code=ErrorCode.PROOF_SERVICE_BAD_RESPONSE,
            )

        logger.debug(f"Received succinct proof ({len(payload)} bytes)")
        return ProofArtifact(
            provider=self.kind,
            io_commitment=io_commitment,
            payload=payload,
            mock=False,
        )

    def verify_proof(self, artifact: ProofArtifact, parameters: dict) -> bool:
        if artifact.mock:
            return False
        data = self._post(
            self.config.verify_endpoint,
            {
                "io_commitment": artifact.io_commitment.hex(),
                "proof": artifact.payload.hex(),
                "parameters": parameters,
            },
        )
        return data.get("valid") is True

    def close(self) -> None:
        if self._owns_client:
            self.client.close()


class MockProofProvider(ProofProvider):
    """
    Placeholder artifacts for running without the proof service.

    NOT FOR PRODUCTION: artifacts are random bytes flagged mock=True and
    any production verifier rejects them.
    """

    kind = "mock"
    mock = True

    def request_proof(self, io_commitment: bytes, parameters: dict) -> ProofArtifact:
        logger.warning("Using mock succinct proof")
        return ProofArtifact(
            provider=self.kind,
            io_commitment=io_commitment,
            payload=secrets.token_bytes(64),
            mock=True,
        )

    def verify_proof(self, artifact: ProofArtifact, parameters: dict) -> bool:
        return artifact.mock and artifact.provider == self.kind


def create_proof_provider(config: ProofServiceConfig) -> Optional[ProofProvider]:
    """
    Provider for the configured mode; None when the service is disabled.

    Raises:
        ProofServiceError: On an unknown mode
    """
    if config.mode == "live":
        return LiveProofProvider(config)
    if config.mode == "mock":
        return MockProofProvider()
    if config.mode == "disabled":
        return None
    raise ProofServiceError(f"Unknown proof service mode: {config.mode}")


def attach_succinct_proof(
    provider: ProofProvider,
    context: bytes,
    bundle: ProofBundle,
    parameters: dict,
) -> ProofBundle:
    """Request a succinct proof over a built bundle and attach it."""
    artifact = provider.request_proof(io_commitment(context, bundle), parameters)
    return bundle.with_succinct_proof(artifact)


def prove_order(
    provider: ProofProvider,
    group: CurveGroup,
    order: Order,
    amount_bits: int,
) -> Order:
    """Order with a succinct proof attached to its bundle."""
    context = context_for_order(group, order)
    params = proof_parameters(group.name, amount_bits, "order")
    bundle = attach_succinct_proof(provider, context, order.proof_bundle, params)
    return replace(order, proof_bundle=bundle)


def prove_take(
    provider: ProofProvider,
    group: CurveGroup,
    order: Order,
    request: TakeRequest,
    amount_bits: int,
) -> TakeRequest:
    """Take-request with a succinct proof attached to its bundle."""
    context = take_context(
        group, order, request.taker,
        request.taker_encrypted_give, request.taker_encrypted_want,
    )
    params = proof_parameters(group.name, amount_bits, "take")
    bundle = attach_succinct_proof(provider, context, request.taker_proof_bundle, params)
    return replace(request, taker_proof_bundle=bundle)
