"""
Confidential Swap Matching (taker flow)

The taker gives y of the order's want asset and receives x of its give
asset. Its bundle proves, without revealing x or y:

- x and y are n-bit amounts (range proofs),
- y * S = x * rate against the maker's own rate commitment (rate proof),
- the taker holds at least y (balance proof),
- remaining - x is zero (full fill, ZeroProof) or at least 1 (partial
  fill, range proof on remaining - x - 1),
- for partial fills, 100 * x >= min_fill_pct * give (min-fill proof).

Every proof is bound to the order's current remaining ciphertext and fill
count, so a take built before another fill no longer verifies after it.
"""

from __future__ import annotations
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from cswap.config import ProtocolConfig, get_config
from cswap.constants import DOMAIN_TAKE_CONTEXT, MIN_FILL_EXTRA_BITS, MIN_FILL_PCT_MAX
from cswap.crypto import field
from cswap.crypto.elgamal import Ciphertext, EncryptionEngine
from cswap.crypto.group import CurveGroup, get_group
from cswap.crypto.randomness import RandomnessSource, SystemRandomness
from cswap.crypto.transcript import Transcript
from cswap.errors import (
    ErrorCode,
    InsufficientBalanceProof,
    OrderStateError,
    ProofConstructionFailure,
)
from cswap.proofs.balance_proof import build_balance_proof
from cswap.proofs.bundle import TakeProofBundle
from cswap.proofs.range_proof import build_range_proof
from cswap.proofs.rate_proof import build_rate_proof
from cswap.proofs.zero_proof import build_zero_proof
from cswap.protocol.order import Order, TakerQuote, check_amount

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TakeRequest:
    """Public take-request submitted to the ledger."""
    order_id: int
    taker: str
    taker_encrypted_give: Ciphertext
    taker_encrypted_want: Ciphertext
    taker_proof_bundle: TakeProofBundle

    def to_dict(self) -> dict:
        return {
            "order_id": self.order_id,
            "taker": self.taker,
            "taker_encrypted_give": self.taker_encrypted_give.to_dict(),
            "taker_encrypted_want": self.taker_encrypted_want.to_dict(),
            "taker_proof_bundle": self.taker_proof_bundle.to_dict(),
        }


@dataclass(frozen=True)
class FillReceipt:
    """
    Taker-to-maker private message describing a take.

    Lets the maker keep its OrderSecrets in step with the ledger's
    remaining ciphertext. Never persisted on the ledger.
    """
    order_id: int
    fill_amount: int
    fill_randomness: int
    remaining_amount: int
    remaining_randomness: int
    fill_count: int

    @property
    def is_full(self) -> bool:
        return self.remaining_amount == 0

    def __repr__(self) -> str:
        return f"FillReceipt(order_id={self.order_id}, fill_count={self.fill_count})"


def take_context(
    group: CurveGroup,
    order: Order,
    taker: str,
    taker_encrypted_give: Ciphertext,
    taker_encrypted_want: Ciphertext,
) -> bytes:
    """Digest of the order's current public state plus the taker's ciphertexts."""
    t = Transcript(DOMAIN_TAKE_CONTEXT)
    t.append_str(b"group", group.name)
    t.append_point(b"pk", order.public_key)
    t.append_int(b"order_id", order.order_id if order.order_id is not None else -1)
    t.append_str(b"maker", order.maker)
    t.append_int(b"give_asset", order.give_asset)
    t.append_int(b"want_asset", order.want_asset)
    t.append_bytes(b"encrypted_give", order.encrypted_give.serialize())
    t.append_bytes(b"encrypted_want", order.encrypted_want.serialize())
    t.append_point(b"rate_commitment", order.rate_commitment)
    t.append_int(b"min_fill_pct", order.min_fill_pct)
    t.append_int(b"expires_at", order.expires_at)
    t.append_bytes(b"remaining_give", order.current_remaining.serialize())
    t.append_int(b"fill_count", order.fill_count)
    t.append_str(b"taker", taker)
    t.append_bytes(b"taker_give", taker_encrypted_give.serialize())
    t.append_bytes(b"taker_want", taker_encrypted_want.serialize())
    return t.digest()


def min_fill_target(group: CurveGroup, order: Order, taker_encrypted_want: Ciphertext) -> bytes:
    """c2 half of 100 * Enc(x) - pct * Enc(give)."""
    return group.sub(
        group.mul(MIN_FILL_PCT_MAX, taker_encrypted_want.c2),
        group.mul(order.min_fill_pct, order.encrypted_give.c2),
    )


class MatchEngine:
    """Builds taker take-requests against published orders."""

    def __init__(
        self,
        group: Optional[CurveGroup] = None,
        rng: Optional[RandomnessSource] = None,
        config: Optional[ProtocolConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config or get_config()
        self.group = group or get_group(self.config.group)
        self.rng = rng or SystemRandomness()
        self.clock = clock
        self.encryption = EncryptionEngine(self.group, self.rng)

    def _check_quote(self, order: Order, quote: TakerQuote) -> None:
        """Confirm the quote opens the order's public commitments."""
        g = self.group
        PK = order.public_key

        if quote.order_id != order.order_id:
            raise ProofConstructionFailure("Quote is for a different order")
        if quote.fill_count != order.fill_count:
            raise ProofConstructionFailure(
                "Quote is stale",
                {"quote_fill_count": quote.fill_count, "order_fill_count": order.fill_count},
            )
        if g.commit(quote.rate, quote.rate_blinding) != order.rate_commitment:
            raise ProofConstructionFailure("Quote does not open the rate commitment")
        expected_give = self.encryption.encrypt(quote.give_amount, PK, quote.give_randomness)
        if expected_give != order.encrypted_give:
            raise ProofConstructionFailure("Quote does not open the give ciphertext")
        expected_remaining = self.encryption.encrypt(
            quote.remaining_amount, PK, quote.remaining_randomness
        )
        if expected_remaining != order.current_remaining:
            raise ProofConstructionFailure("Quote does not open the remaining ciphertext")

    def build_take(
        self,
        order: Order,
        quote: TakerQuote,
        taker_give_amount: int,
        taker_want_amount: int,
        *,
        available_balance: int,
        taker: str = "",
        balance_randomness: Optional[int] = None,
    ) -> Tuple[TakeRequest, FillReceipt]:
        """
        Build a take-request.

        Args:
            order: Published order (order_id assigned)
            quote: Maker's openings for the order's current state
            taker_give_amount: y, paid in the order's want asset
            taker_want_amount: x, received in the order's give asset
            available_balance: Taker's real balance of the order's want asset
            taker: Taker identity

        Returns:
            (TakeRequest, FillReceipt for the maker)

        Raises:
            OrderStateError: If the order is closed or expired
            EncodingError: If an amount is not representable
            InsufficientBalanceProof: If available_balance < taker_give_amount
            ProofConstructionFailure: If the take is inconsistent with the order
        """
        if order.order_id is None:
            raise OrderStateError("Order has not been submitted")
        if order.status.is_terminal:
            raise OrderStateError(
                f"Order {order.order_id} is {order.status.name}",
                code=ErrorCode.INVALID_TRANSITION,
            )
        if order.is_expired(self.clock()):
            raise OrderStateError(
                f"Order {order.order_id} has expired",
                code=ErrorCode.INVALID_TRANSITION,
            )

        bits = self.config.amount_bits
        scale = self.config.rate_scale
        x = taker_want_amount
        y = taker_give_amount
        check_amount(y, bits, "taker_give_amount")
        check_amount(x, bits, "taker_want_amount")

        self._check_quote(order, quote)

        if y * scale != x * quote.rate:
            raise ProofConstructionFailure("Take amounts do not match the order rate")
        if x > quote.remaining_amount:
            raise ProofConstructionFailure("Take exceeds the remaining amount")

        full = x == quote.remaining_amount
        if not full and MIN_FILL_PCT_MAX * x < order.min_fill_pct * quote.give_amount:
            raise ProofConstructionFailure(
                "Take is below the order's minimum fill",
                {"min_fill_pct": order.min_fill_pct},
                code=ErrorCode.INVALID_ORDER_PARAMETERS,
            )

        if y > available_balance:
            logger.warning(f"Take on order {order.order_id} refused: insufficient balance")
            raise InsufficientBalanceProof()

        g = self.group
        PK = order.public_key

        give_randomness = self.rng.scalar()
        want_randomness = self.rng.scalar()
        encrypted_give = self.encryption.encrypt(y, PK, give_randomness)
        encrypted_want = self.encryption.encrypt(x, PK, want_randomness)

        context = take_context(g, order, taker, encrypted_give, encrypted_want)

        remaining_randomness = field.sub(quote.remaining_randomness, want_randomness)
        remaining_after = self.encryption.subtract(order.current_remaining, encrypted_want)

        if full:
            fill_proof = build_zero_proof(
                g, remaining_after, remaining_randomness, PK,
                context=context, rng=self.rng,
            )
            min_fill_proof = None
        else:
            fill_proof = build_range_proof(
                g, quote.remaining_amount - x - 1, remaining_randomness, bits,
                base=PK, context=context, rng=self.rng,
            )
            min_fill_proof = build_range_proof(
                g,
                MIN_FILL_PCT_MAX * x - order.min_fill_pct * quote.give_amount,
                field.sub(
                    field.mul(MIN_FILL_PCT_MAX, want_randomness),
                    field.mul(order.min_fill_pct, quote.give_randomness),
                ),
                bits + MIN_FILL_EXTRA_BITS,
                base=PK,
                context=context,
                rng=self.rng,
            )

        bundle = TakeProofBundle(
            range_proof_give=build_range_proof(
                g, y, give_randomness, bits,
                base=PK, context=context, rng=self.rng,
            ),
            range_proof_want=build_range_proof(
                g, x, want_randomness, bits,
                base=PK, context=context, rng=self.rng,
            ),
            # Order orientation: x is the give-asset leg, y the want-asset leg
            rate_proof=build_rate_proof(
                g, x, quote.rate, quote.rate_blinding,
                want_amount=y,
                give_randomness=want_randomness,
                want_randomness=give_randomness,
                encrypted_give=encrypted_want,
                encrypted_want=encrypted_give,
                rate_commitment=order.rate_commitment,
                public_key=PK,
                scale=scale,
                context=context,
                rng=self.rng,
            ),
            balance_proof=build_balance_proof(
                g, y, available_balance,
                give_randomness=give_randomness,
                encrypted_give=encrypted_give,
                public_key=PK,
                num_bits=bits,
                context=context,
                rng=self.rng,
                balance_randomness=balance_randomness,
            ),
            group=g.name,
            fill_proof=fill_proof,
            min_fill_proof=min_fill_proof,
        )

        request = TakeRequest(
            order_id=order.order_id,
            taker=taker,
            taker_encrypted_give=encrypted_give,
            taker_encrypted_want=encrypted_want,
            taker_proof_bundle=bundle,
        )
        receipt = FillReceipt(
            order_id=order.order_id,
            fill_amount=x,
            fill_randomness=want_randomness,
            remaining_amount=quote.remaining_amount - x,
            remaining_randomness=remaining_randomness,
            fill_count=order.fill_count + 1,
        )

        logger.info(
            f"Built {'full' if full else 'partial'} take on order {order.order_id} "
            f"(fill #{order.fill_count + 1})"
        )
        return request, receipt
