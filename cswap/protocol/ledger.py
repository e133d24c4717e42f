"""
Confidential Swap Reference Ledger

In-memory settlement boundary: stores orders keyed by order_id and applies
lifecycle transitions once the configured verifier accepts. It moves no
balances and routes no fees.

Every mutation verifies first and writes last, so a rejected submission or
take leaves no trace.
"""

from __future__ import annotations
import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional

from cswap.config import ProtocolConfig, get_config
from cswap.constants import MAX_EXPIRY_SEC, MIN_FILL_PCT_MAX
from cswap.crypto.elgamal import Ciphertext, EncryptionEngine
from cswap.crypto.group import CurveGroup, get_group
from cswap.errors import (
    ErrorCode,
    InvalidTransitionError,
    OrderStateError,
    VerificationRejected,
)
from cswap.proofs.bundle import ProofBundle, TakeProofBundle
from cswap.protocol.lifecycle import OrderEvent, OrderStatus, transition
from cswap.protocol.match import TakeRequest
from cswap.protocol.order import Order
from cswap.protocol.verifier import Verifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FillOutcome:
    order_id: int
    status: OrderStatus
    full: bool
    fill_count: int
    remaining_give: Ciphertext

    def to_dict(self) -> dict:
        return {
            "order_id": self.order_id,
            "status": self.status.name,
            "full": self.full,
            "fill_count": self.fill_count,
            "remaining_give": self.remaining_give.to_dict(),
        }


@dataclass(frozen=True)
class LedgerStats:
    total_orders: int
    total_matches: int
    active_orders: int


class OrderLedger:
    """
    Reference implementation of the settlement boundary.

    Thread-safe: concurrent takers racing for the same order are
    serialized, and the loser's proofs no longer match the mutated order.
    """

    def __init__(
        self,
        verifier: Verifier,
        public_key: bytes,
        group: Optional[CurveGroup] = None,
        config: Optional[ProtocolConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config or get_config()
        self.group = group or get_group(self.config.group)
        self.verifier = verifier
        self.public_key = public_key
        self.clock = clock
        self._encryption = EncryptionEngine(self.group)

        self._orders: Dict[int, Order] = {}
        self._by_digest: Dict[bytes, int] = {}
        self._next_id = 1
        self._total_matches = 0
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: int) -> Order:
        with self._lock:
            order = self._orders.get(order_id)
        if order is None:
            raise OrderStateError(f"Order {order_id} not found", {"order_id": order_id})
        return order

    def orders(self, status: Optional[OrderStatus] = None) -> List[Order]:
        with self._lock:
            return [
                o for o in self._orders.values()
                if status is None or o.status == status
            ]

    def get_stats(self) -> LedgerStats:
        with self._lock:
            active = sum(1 for o in self._orders.values() if o.status.is_active)
            return LedgerStats(
                total_orders=len(self._orders),
                total_matches=self._total_matches,
                active_orders=active,
            )

    # ------------------------------------------------------------------
    # Maker operations
    # ------------------------------------------------------------------

    def submit_order(
        self,
        give_asset: int,
        want_asset: int,
        encrypted_give: Ciphertext,
        encrypted_want: Ciphertext,
        rate_commitment: bytes,
        min_fill_pct: int,
        expires_in: int,
        proof_bundle: ProofBundle,
        maker: str = "",
    ) -> int:
        """
        Verify and record a new order.

        Resubmitting the same proof bundle returns the original order_id.

        Returns:
            order_id

        Raises:
            VerificationRejected: If parameters or proofs are invalid
        """
        if not 0 <= min_fill_pct <= MIN_FILL_PCT_MAX:
            raise VerificationRejected("Invalid min_fill_pct", {"min_fill_pct": min_fill_pct})
        if expires_in <= 0 or expires_in > MAX_EXPIRY_SEC:
            raise VerificationRejected("Invalid expiry", {"expires_in": expires_in})
        if give_asset == want_asset:
            raise VerificationRejected("Cannot swap an asset for itself")
        for asset in (give_asset, want_asset):
            if self.config.asset_by_id(asset) is None:
                raise VerificationRejected(f"Unknown asset: {asset}", {"asset": asset})
        if proof_bundle is None:
            raise VerificationRejected("Missing proof bundle")

        with self._lock:
            digest = proof_bundle.digest()
            existing = self._by_digest.get(digest)
            if existing is not None:
                logger.info(f"Duplicate submission of order {existing}")
                return existing

            now = int(self.clock())
            order = Order(
                order_id=self._next_id,
                maker=maker,
                give_asset=give_asset,
                want_asset=want_asset,
                encrypted_give=encrypted_give,
                encrypted_want=encrypted_want,
                rate_commitment=rate_commitment,
                min_fill_pct=min_fill_pct,
                expires_in=expires_in,
                created_at=now,
                expires_at=now + expires_in,
                public_key=self.public_key,
                remaining_give=encrypted_give,
                proof_bundle=proof_bundle,
            )

            self.verifier.verify_order(order)

            self._orders[order.order_id] = order
            self._by_digest[digest] = order.order_id
            self._next_id += 1

        logger.info(
            f"Order {order.order_id} open: {give_asset}->{want_asset}, "
            f"maker={maker}, expires_at={order.expires_at}"
        )
        return order.order_id

    def submit(self, order: Order) -> int:
        """Submit an order built by OrderBuilder."""
        return self.submit_order(
            order.give_asset,
            order.want_asset,
            order.encrypted_give,
            order.encrypted_want,
            order.rate_commitment,
            order.min_fill_pct,
            order.expires_in,
            order.proof_bundle,
            maker=order.maker,
        )

    def cancel_order(self, order_id: int, caller: str) -> Order:
        """
        Raises:
            OrderStateError: If the order is unknown or caller is not the maker
            InvalidTransitionError: If the order is already final
        """
        with self._lock:
            order = self.get_order(order_id)
            if caller != order.maker:
                raise OrderStateError(
                    f"Only the maker may cancel order {order_id}",
                    {"order_id": order_id},
                    code=ErrorCode.NOT_ORDER_MAKER,
                )
            updated = replace(order, status=transition(order.status, OrderEvent.CANCEL))
            self._orders[order_id] = updated

        logger.info(f"Order {order_id} cancelled")
        return updated

    def expire_orders(self, now: Optional[float] = None) -> List[int]:
        """Move every active order past its expiry to Expired."""
        if now is None:
            now = self.clock()
        expired = []
        with self._lock:
            for order_id, order in list(self._orders.items()):
                if order.status.is_active and order.is_expired(now):
                    self._orders[order_id] = replace(
                        order, status=transition(order.status, OrderEvent.EXPIRE)
                    )
                    expired.append(order_id)

        if expired:
            logger.info(f"Expired {len(expired)} orders")
        return expired

    # ------------------------------------------------------------------
    # Taker operations
    # ------------------------------------------------------------------

    def take_order(
        self,
        order_id: int,
        taker_encrypted_give: Ciphertext,
        taker_encrypted_want: Ciphertext,
        taker_proof_bundle: TakeProofBundle,
        taker: str = "",
    ) -> FillOutcome:
        """
        Verify a take-request and apply it.

        Raises:
            OrderStateError: If the order is unknown
            InvalidTransitionError: If the order is final or expired
            VerificationRejected: If any proof fails
        """
        request = TakeRequest(
            order_id=order_id,
            taker=taker,
            taker_encrypted_give=taker_encrypted_give,
            taker_encrypted_want=taker_encrypted_want,
            taker_proof_bundle=taker_proof_bundle,
        )

        with self._lock:
            order = self.get_order(order_id)

            if order.status.is_active and order.is_expired(self.clock()):
                order = replace(order, status=transition(order.status, OrderEvent.EXPIRE))
                self._orders[order_id] = order
                logger.info(f"Order {order_id} expired")

            if order.status.is_terminal:
                raise InvalidTransitionError(order.status.name, "take")

            self.verifier.verify_take(order, request)

            event = (
                OrderEvent.FULL_TAKE if taker_proof_bundle.is_full_fill
                else OrderEvent.PARTIAL_TAKE
            )
            new_status = transition(order.status, event)
            remaining = self._encryption.subtract(order.current_remaining, taker_encrypted_want)

            updated = replace(
                order,
                status=new_status,
                remaining_give=remaining,
                fill_count=order.fill_count + 1,
            )
            self._orders[order_id] = updated
            self._total_matches += 1

        logger.info(
            f"Order {order_id} {event.value} by {taker}: "
            f"{order.status.name} -> {new_status.name}"
        )
        return FillOutcome(
            order_id=order_id,
            status=new_status,
            full=event == OrderEvent.FULL_TAKE,
            fill_count=updated.fill_count,
            remaining_give=remaining,
        )

    def take(self, request: TakeRequest) -> FillOutcome:
        """Submit a take-request built by MatchEngine."""
        return self.take_order(
            request.order_id,
            request.taker_encrypted_give,
            request.taker_encrypted_want,
            request.taker_proof_bundle,
            taker=request.taker,
        )
