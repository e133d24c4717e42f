"""
Confidential Swap Error Tests
"""

from cswap.errors import (
    ConfidentialSwapError,
    DecryptionError,
    EncodingError,
    ErrorCode,
    InsufficientBalanceProof,
    InvalidTransitionError,
    OrderStateError,
    ProofConstructionFailure,
    RandomnessReuseError,
    SubmissionError,
    VerificationRejected,
)


class TestErrors:
    """Tests for error codes and API serialization."""

    def test_message_includes_code(self):
        e = VerificationRejected("Rate proof failed")
        assert str(e) == "[3001] Rate proof failed"

    def test_to_dict(self):
        e = EncodingError("Scalar is not reduced", {"field": "challenge"})
        assert e.to_dict() == {
            "code": 1001,
            "name": "SCALAR_OUT_OF_RANGE",
            "message": "Scalar is not reduced",
            "details": {"field": "challenge"},
        }

    def test_to_dict_without_details(self):
        assert "details" not in InsufficientBalanceProof().to_dict()

    def test_hierarchy(self):
        assert issubclass(RandomnessReuseError, ProofConstructionFailure)
        assert issubclass(InvalidTransitionError, OrderStateError)
        for cls in (EncodingError, VerificationRejected, SubmissionError, DecryptionError):
            assert issubclass(cls, ConfidentialSwapError)

    def test_default_codes(self):
        assert ProofConstructionFailure("x").code == ErrorCode.INVALID_WITNESS
        assert InsufficientBalanceProof().code == ErrorCode.INSUFFICIENT_BALANCE
        assert SubmissionError("x").code == ErrorCode.SUBMISSION_FAILED
        assert DecryptionError(10).details == {"bound": 10}

    def test_codes_are_grouped(self):
        assert all(1000 <= code < 10000 for code in ErrorCode)
        assert len({code.value for code in ErrorCode}) == len(ErrorCode)
