"""
Confidential Swap Submission Retry

Submission failures are transient. A retry resubmits the same, already
built payload; proofs are never rebuilt with new randomness on retry.
"""

from __future__ import annotations
import logging
import time
from typing import Any, Callable, TypeVar

from cswap.constants import SUBMISSION_RETRY_COUNT, SUBMISSION_BASE_DELAY_SEC
from cswap.errors import SubmissionError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def submit_with_retry(
    submit: Callable[..., T],
    *args: Any,
    retries: int = SUBMISSION_RETRY_COUNT,
    base_delay: float = SUBMISSION_BASE_DELAY_SEC,
    sleep: Callable[[float], None] = time.sleep,
    **kwargs: Any,
) -> T:
    """
    Call submit(*args, **kwargs), retrying on SubmissionError with
    exponential backoff.

    Any other exception (verification, state, construction) propagates
    immediately.

    Args:
        submit: Ledger call, e.g. OrderLedger.submit or OrderLedger.take
        retries: Number of attempts
        base_delay: Delay before the second attempt, doubled each time

    Returns:
        Whatever submit returns

    Raises:
        SubmissionError: If every attempt failed
    """
    last_error = None
    for attempt in range(retries):
        try:
            return submit(*args, **kwargs)
        except SubmissionError as e:
            last_error = e
            logger.warning(f"Submission attempt {attempt + 1}/{retries} failed: {e}")

        if attempt < retries - 1:
            # Exponential backoff: 100ms, 200ms, 400ms...
            sleep(base_delay * (2 ** attempt))

    raise SubmissionError(
        f"Submission failed after {retries} attempts",
        {"last_error": last_error.to_dict() if last_error else None},
    )
