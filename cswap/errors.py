"""
Confidential Swap Error Handling

All error codes and exception classes.
"""

from enum import IntEnum
from typing import Optional, Any


class ErrorCode(IntEnum):
    """Protocol error codes."""

    # 1xxx - Encoding errors
    SCALAR_OUT_OF_RANGE = 1001
    INEXACT_RATE = 1002
    MALFORMED_ENCODING = 1003
    NOT_INVERTIBLE = 1004

    # 2xxx - Proof construction errors
    VALUE_EXCEEDS_BIT_WIDTH = 2001
    MALFORMED_GENERATOR = 2002
    INVALID_WITNESS = 2003
    RANDOMNESS_REUSED = 2004
    INVALID_ORDER_PARAMETERS = 2005

    # 3xxx - Verification errors
    PROOF_REJECTED = 3001
    STALE_PROOF = 3002
    NON_PRODUCTION_PROOF = 3003
    MIN_FILL_NOT_MET = 3004

    # 4xxx - Balance errors
    INSUFFICIENT_BALANCE = 4001

    # 5xxx - Submission errors
    SUBMISSION_FAILED = 5001

    # 6xxx - Order state errors
    ORDER_NOT_FOUND = 6001
    INVALID_TRANSITION = 6002
    NOT_ORDER_MAKER = 6003

    # 7xxx - Proof service errors
    PROOF_SERVICE_UNAVAILABLE = 7001
    PROOF_SERVICE_BAD_RESPONSE = 7002

    # 8xxx - Configuration errors
    INVALID_CONFIG = 8001
    CONFIG_NOT_INITIALIZED = 8002
    UNKNOWN_GROUP = 8003

    # 9xxx - Decryption errors
    DISCRETE_LOG_NOT_FOUND = 9001


class ConfidentialSwapError(Exception):
    """Base exception for all confidential swap errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[Any] = None
    ):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict for API responses."""
        result = {
            "code": self.code.value,
            "name": self.code.name,
            "message": self.message,
        }
        if self.details is not None:
            result["details"] = self.details
        return result


# ==============================================================================
# Encoding Errors (1xxx)
# ==============================================================================

class EncodingError(ConfidentialSwapError):
    """A value is outside its representable range before any proof is attempted."""

    def __init__(
        self,
        message: str,
        details: Any = None,
        code: ErrorCode = ErrorCode.SCALAR_OUT_OF_RANGE
    ):
        super().__init__(code, message, details)


# ==============================================================================
# Proof Construction Errors (2xxx)
# ==============================================================================

class ProofConstructionFailure(ConfidentialSwapError):
    """An internal invariant was violated while building a proof."""

    def __init__(
        self,
        message: str,
        details: Any = None,
        code: ErrorCode = ErrorCode.INVALID_WITNESS
    ):
        super().__init__(code, message, details)


class RandomnessReuseError(ProofConstructionFailure):
    def __init__(self, message: str = "Randomness value issued twice"):
        super().__init__(message, code=ErrorCode.RANDOMNESS_REUSED)


# ==============================================================================
# Verification Errors (3xxx)
# ==============================================================================

class VerificationRejected(ConfidentialSwapError):
    """
    A recomputed check failed on the verifier side.

    Signals an invalid proof or a stale commitment, not necessarily a bug
    in the constructing party.
    """

    def __init__(
        self,
        message: str,
        details: Any = None,
        code: ErrorCode = ErrorCode.PROOF_REJECTED
    ):
        super().__init__(code, message, details)


# ==============================================================================
# Balance Errors (4xxx)
# ==============================================================================

class InsufficientBalanceProof(ConfidentialSwapError):
    def __init__(self, message: str = "Available balance is below the give amount"):
        super().__init__(ErrorCode.INSUFFICIENT_BALANCE, message)


# ==============================================================================
# Submission Errors (5xxx)
# ==============================================================================

class SubmissionError(ConfidentialSwapError):
    """Transient external failure. Retry with the same built payload."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(ErrorCode.SUBMISSION_FAILED, message, details)


# ==============================================================================
# Order State Errors (6xxx)
# ==============================================================================

class OrderStateError(ConfidentialSwapError):
    def __init__(
        self,
        message: str,
        details: Any = None,
        code: ErrorCode = ErrorCode.ORDER_NOT_FOUND
    ):
        super().__init__(code, message, details)


class InvalidTransitionError(OrderStateError):
    def __init__(self, status: str, event: str):
        super().__init__(
            f"Transition {event} not allowed from {status}",
            {"status": status, "event": event},
            code=ErrorCode.INVALID_TRANSITION,
        )


# ==============================================================================
# Proof Service Errors (7xxx)
# ==============================================================================

class ProofServiceError(ConfidentialSwapError):
    def __init__(
        self,
        message: str,
        details: Any = None,
        code: ErrorCode = ErrorCode.PROOF_SERVICE_UNAVAILABLE
    ):
        super().__init__(code, message, details)


# ==============================================================================
# Configuration Errors (8xxx)
# ==============================================================================

class ConfigurationError(ConfidentialSwapError):
    def __init__(
        self,
        message: str,
        details: Any = None,
        code: ErrorCode = ErrorCode.INVALID_CONFIG
    ):
        super().__init__(code, message, details)


# ==============================================================================
# Decryption Errors (9xxx)
# ==============================================================================

class DecryptionError(ConfidentialSwapError):
    def __init__(self, bound: int):
        super().__init__(
            ErrorCode.DISCRETE_LOG_NOT_FOUND,
            f"Plaintext not found below {bound}",
            {"bound": bound},
        )
