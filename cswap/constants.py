"""
Confidential Swap Constants

All protocol constants defined here for single source of truth.
"""

from typing import Final, Dict, Tuple

PROTOCOL_VERSION: Final[int] = 1

# ==============================================================================
# GROUP PARAMETERS
# ==============================================================================

# Ed25519 prime subgroup order (L)
CURVE_ORDER: Final[int] = 2**252 + 27742317777372353535851937790883648493

SCALAR_SIZE: Final[int] = 32
POINT_SIZE: Final[int] = 32

# Ed25519 cofactor
COFACTOR: Final[int] = 8

# Nothing-up-my-sleeve seed for the blinding generator H
H_GENERATOR_SEED: Final[bytes] = b"Confidential Swap Pedersen H Generator v1"

GROUP_ED25519: Final[str] = "ed25519"
GROUP_PLACEHOLDER: Final[str] = "modular-placeholder"

# ==============================================================================
# DOMAIN SEPARATION TAGS
# ==============================================================================

DOMAIN_HASH_TO_POINT: Final[bytes] = b"CSWAP_HashToPoint_v1"
DOMAIN_ORDER_CONTEXT: Final[bytes] = b"CSWAP_OrderContext_v1"
DOMAIN_TAKE_CONTEXT: Final[bytes] = b"CSWAP_TakeContext_v1"
DOMAIN_RANGE_PROOF: Final[bytes] = b"CSWAP_RangeProof_v1"
DOMAIN_RATE_PROOF: Final[bytes] = b"CSWAP_RateProof_v1"
DOMAIN_BALANCE_PROOF: Final[bytes] = b"CSWAP_BalanceProof_v1"
DOMAIN_ZERO_PROOF: Final[bytes] = b"CSWAP_ZeroProof_v1"
DOMAIN_BUNDLE_DIGEST: Final[bytes] = b"CSWAP_BundleDigest_v1"
DOMAIN_IO_COMMITMENT: Final[bytes] = b"CSWAP_IOCommitment_v1"

# ==============================================================================
# AMOUNTS AND RATES
# ==============================================================================

AMOUNT_BITS: Final[int] = 64                    # Range proof width for amounts
MAX_AMOUNT: Final[int] = 2**AMOUNT_BITS - 1

# Rate is want * RATE_SCALE / give, fixed point with 18 decimals
RATE_SCALE: Final[int] = 10**18

# min_fill_pct is a whole percentage
MIN_FILL_PCT_MAX: Final[int] = 100

# Extra range width for 100 * amount in the min-fill proof
MIN_FILL_EXTRA_BITS: Final[int] = 7

# Default bound for baby-step giant-step decryption
DEFAULT_DECRYPT_BOUND: Final[int] = 2**32

# ==============================================================================
# ORDERS
# ==============================================================================

DEFAULT_EXPIRY_SEC: Final[int] = 604800         # 7 days
MAX_EXPIRY_SEC: Final[int] = 365 * 86400

# Asset identifiers: name -> (asset id, decimals)
DEFAULT_ASSETS: Final[Dict[str, Tuple[int, int]]] = {
    "SAGE": (0, 18),
    "USDC": (1, 6),
    "STRK": (2, 18),
    "ETH": (3, 18),
    "BTC": (4, 8),
}

# ==============================================================================
# PROOF SERVICE
# ==============================================================================

DEFAULT_PROOF_SERVICE_URL: Final[str] = "http://localhost:8080"
PROOF_GENERATE_ENDPOINT: Final[str] = "/api/v1/privacy/generate-swap-proof"
PROOF_VERIFY_ENDPOINT: Final[str] = "/api/v1/privacy/verify-swap-proof"
PROOF_SERVICE_TIMEOUT_SEC: Final[float] = 30.0

SUBMISSION_RETRY_COUNT: Final[int] = 3
SUBMISSION_BASE_DELAY_SEC: Final[float] = 0.1
