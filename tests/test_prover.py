"""
Confidential Swap Proof Service Client Tests
"""

import json

import httpx
import pytest

from cswap.config import ProofServiceConfig
from cswap.constants import PROOF_GENERATE_ENDPOINT, PROOF_VERIFY_ENDPOINT
from cswap.errors import ErrorCode, ProofServiceError
from cswap.proofs.bundle import ProofArtifact
from cswap.service.prover import (
    LiveProofProvider,
    MockProofProvider,
    attach_succinct_proof,
    create_proof_provider,
)

PARAMS = {"protocol_version": 1, "group": "ed25519", "amount_bits": 16, "kind": "order"}


def _provider(handler) -> LiveProofProvider:
    config = ProofServiceConfig(mode="live")
    client = httpx.Client(base_url=config.url, transport=httpx.MockTransport(handler))
    return LiveProofProvider(config, client=client)


class TestLiveProofProvider:
    """Tests for the HTTP proof service client."""

    def test_request_proof(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"proof": "ab" * 32})

        artifact = _provider(handler).request_proof(b"\x01" * 32, PARAMS)

        assert seen["path"] == PROOF_GENERATE_ENDPOINT
        assert seen["body"] == {"io_commitment": "01" * 32, "parameters": PARAMS}
        assert artifact.payload == b"\xab" * 32
        assert artifact.io_commitment == b"\x01" * 32
        assert not artifact.mock

    def test_only_public_data_sent(self):
        """Request bodies carry the io commitment and parameters, nothing else."""
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"proof": "00"})

        _provider(handler).request_proof(b"\x02" * 32, PARAMS)
        assert set(bodies[0]) == {"io_commitment", "parameters"}

    def test_verify_proof(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == PROOF_VERIFY_ENDPOINT
            body = json.loads(request.content)
            return httpx.Response(200, json={"valid": body["proof"] == "cd" * 8})

        provider = _provider(handler)
        good = ProofArtifact("live", b"\x00" * 32, b"\xcd" * 8)
        bad = ProofArtifact("live", b"\x00" * 32, b"\xce" * 8)
        assert provider.verify_proof(good, PARAMS)
        assert not provider.verify_proof(bad, PARAMS)

    def test_mock_artifact_never_sent(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        artifact = ProofArtifact("mock", b"\x00" * 32, b"\x00" * 64, mock=True)
        assert not _provider(handler).verify_proof(artifact, PARAMS)

    def test_unreachable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ProofServiceError) as exc:
            _provider(handler).request_proof(b"\x00" * 32, PARAMS)
        assert exc.value.code == ErrorCode.PROOF_SERVICE_UNAVAILABLE

    def test_http_error_status(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="busy")

        with pytest.raises(ProofServiceError) as exc:
            _provider(handler).request_proof(b"\x00" * 32, PARAMS)
        assert exc.value.code == ErrorCode.PROOF_SERVICE_BAD_RESPONSE
        assert exc.value.details["status"] == 503

    @pytest.mark.parametrize("response", [
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"result": "ok"}),
        httpx.Response(200, json={"proof": "zz"}),
    ])
    def test_bad_response(self, response):
        with pytest.raises(ProofServiceError) as exc:
            _provider(lambda request: response).request_proof(b"\x00" * 32, PARAMS)
        assert exc.value.code == ErrorCode.PROOF_SERVICE_BAD_RESPONSE

    def test_context_manager_keeps_injected_client(self):
        provider = _provider(lambda request: httpx.Response(200, json={"proof": "00"}))
        with provider:
            pass
        assert not provider.client.is_closed


class TestMockProofProvider:
    def test_flags_artifacts(self):
        provider = MockProofProvider()
        artifact = provider.request_proof(b"\x00" * 32, PARAMS)
        assert artifact.mock
        assert len(artifact.payload) == 64
        assert provider.verify_proof(artifact, PARAMS)

    def test_rejects_live_artifacts(self):
        artifact = ProofArtifact("live", b"\x00" * 32, b"\x00" * 64)
        assert not MockProofProvider().verify_proof(artifact, PARAMS)


class TestProviderFactory:
    def test_modes(self):
        assert create_proof_provider(ProofServiceConfig(mode="disabled")) is None
        assert isinstance(create_proof_provider(ProofServiceConfig(mode="mock")),
                          MockProofProvider)
        live = create_proof_provider(ProofServiceConfig(mode="live"))
        assert isinstance(live, LiveProofProvider)
        live.close()

    def test_unknown_mode(self):
        with pytest.raises(ProofServiceError):
            create_proof_provider(ProofServiceConfig(mode="remote"))


class TestAttachSuccinctProof:
    def test_attach_keeps_sigma_digest(self, open_order):
        order, _ = open_order
        bundle = attach_succinct_proof(MockProofProvider(), b"ctx", order.proof_bundle, PARAMS)
        assert bundle.succinct_proof is not None
        assert bundle.digest() == order.proof_bundle.digest()
        assert "succinct_proof" in bundle.to_dict()
