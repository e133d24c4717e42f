"""
Confidential Swap Orders (maker flow)

An Order carries only public data: ciphertexts, the rate commitment and
proofs. The maker's amounts and randomness stay in OrderSecrets, which the
maker keeps and partially discloses to a chosen taker as a TakerQuote.
"""

from __future__ import annotations
import logging
import time
from dataclasses import dataclass, field as dc_field
from typing import Callable, Optional, Tuple

from cswap.config import ProtocolConfig, get_config
from cswap.constants import DOMAIN_ORDER_CONTEXT, MIN_FILL_PCT_MAX, MAX_EXPIRY_SEC
from cswap.crypto.elgamal import Ciphertext, EncryptionEngine
from cswap.crypto.group import CurveGroup, get_group
from cswap.crypto.pedersen import CommitmentEngine, encode_rate
from cswap.crypto.randomness import RandomnessSource, SystemRandomness
from cswap.crypto.transcript import Transcript
from cswap.errors import (
    EncodingError,
    ErrorCode,
    InsufficientBalanceProof,
    ProofConstructionFailure,
)
from cswap.proofs.balance_proof import build_balance_proof
from cswap.proofs.bundle import ProofBundle
from cswap.proofs.range_proof import build_range_proof
from cswap.proofs.rate_proof import build_rate_proof
from cswap.protocol.lifecycle import OrderStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Order:
    """
    Confidential order.

    order_id is assigned by the ledger on submission. remaining_give
    starts equal to encrypted_give and is reduced homomorphically by
    each verified take.
    """
    order_id: Optional[int]
    maker: str
    give_asset: int
    want_asset: int
    encrypted_give: Ciphertext
    encrypted_want: Ciphertext
    rate_commitment: bytes
    min_fill_pct: int
    expires_in: int
    created_at: int
    expires_at: int
    public_key: bytes
    status: OrderStatus = OrderStatus.OPEN
    remaining_give: Optional[Ciphertext] = None
    fill_count: int = 0
    proof_bundle: Optional[ProofBundle] = dc_field(default=None, compare=False)

    @property
    def current_remaining(self) -> Ciphertext:
        return self.remaining_give if self.remaining_give is not None else self.encrypted_give

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    def to_dict(self) -> dict:
        """Public fields only."""
        data = {
            "order_id": self.order_id,
            "maker": self.maker,
            "give_asset": self.give_asset,
            "want_asset": self.want_asset,
            "encrypted_give": self.encrypted_give.to_dict(),
            "encrypted_want": self.encrypted_want.to_dict(),
            "rate_commitment": self.rate_commitment.hex(),
            "min_fill_pct": self.min_fill_pct,
            "expires_in": self.expires_in,
            "created_at": self.created_at,
            "expires_at": self.expires_at,
            "public_key": self.public_key.hex(),
            "status": self.status.name,
            "remaining_give": self.current_remaining.to_dict(),
            "fill_count": self.fill_count,
        }
        if self.proof_bundle is not None:
            data["proof_bundle"] = self.proof_bundle.to_dict()
        return data


@dataclass(frozen=True)
class TakerQuote:
    """
    Openings the maker discloses out-of-band to a chosen taker.

    Never persisted on the ledger.
    """
    order_id: int
    rate: int
    rate_blinding: int
    give_amount: int
    give_randomness: int
    remaining_amount: int
    remaining_randomness: int
    fill_count: int

    def __repr__(self) -> str:
        return f"TakerQuote(order_id={self.order_id}, fill_count={self.fill_count})"


@dataclass
class OrderSecrets:
    """Maker-private openings of an order."""
    give_amount: int
    want_amount: int
    rate: int
    rate_blinding: int
    give_randomness: int
    want_randomness: int
    remaining_amount: int
    remaining_randomness: int
    fill_count: int = 0

    def quote(self, order_id: int) -> TakerQuote:
        return TakerQuote(
            order_id=order_id,
            rate=self.rate,
            rate_blinding=self.rate_blinding,
            give_amount=self.give_amount,
            give_randomness=self.give_randomness,
            remaining_amount=self.remaining_amount,
            remaining_randomness=self.remaining_randomness,
            fill_count=self.fill_count,
        )

    def apply_fill(self, receipt) -> None:
        """Track the remaining amount after a settled take (a FillReceipt)."""
        if receipt.fill_count != self.fill_count + 1:
            raise ProofConstructionFailure(
                "Fill receipt is out of sequence",
                {"expected": self.fill_count + 1, "got": receipt.fill_count},
            )
        self.remaining_amount = receipt.remaining_amount
        self.remaining_randomness = receipt.remaining_randomness
        self.fill_count = receipt.fill_count

    def __repr__(self) -> str:
        return f"OrderSecrets(fill_count={self.fill_count})"


def order_context(
    group: CurveGroup,
    public_key: bytes,
    maker: str,
    give_asset: int,
    want_asset: int,
    encrypted_give: Ciphertext,
    encrypted_want: Ciphertext,
    rate_commitment: bytes,
    min_fill_pct: int,
    expires_in: int,
) -> bytes:
    """Digest of the public order fields every maker proof is bound to."""
    t = Transcript(DOMAIN_ORDER_CONTEXT)
    t.append_str(b"group", group.name)
    t.append_point(b"pk", public_key)
    t.append_str(b"maker", maker)
    t.append_int(b"give_asset", give_asset)
    t.append_int(b"want_asset", want_asset)
    t.append_bytes(b"encrypted_give", encrypted_give.serialize())
    t.append_bytes(b"encrypted_want", encrypted_want.serialize())
    t.append_point(b"rate_commitment", rate_commitment)
    t.append_int(b"min_fill_pct", min_fill_pct)
    t.append_int(b"expires_in", expires_in)
    return t.digest()


def context_for_order(group: CurveGroup, order: Order) -> bytes:
    return order_context(
        group,
        order.public_key,
        order.maker,
        order.give_asset,
        order.want_asset,
        order.encrypted_give,
        order.encrypted_want,
        order.rate_commitment,
        order.min_fill_pct,
        order.expires_in,
    )


def check_amount(amount: int, num_bits: int, name: str) -> None:
    """
    Raises:
        EncodingError: If amount is not in (0, 2^num_bits)
    """
    if not isinstance(amount, int) or amount <= 0 or amount >= (1 << num_bits):
        raise EncodingError(
            f"{name} must be in (0, 2^{num_bits})",
            {"field": name, "num_bits": num_bits},
        )


class OrderBuilder:
    """
    Builds maker orders.

    Construction is pure apart from drawing randomness; nothing here
    performs I/O.
    """

    def __init__(
        self,
        public_key: bytes,
        group: Optional[CurveGroup] = None,
        rng: Optional[RandomnessSource] = None,
        config: Optional[ProtocolConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config or get_config()
        self.group = group or get_group(self.config.group)
        self.rng = rng or SystemRandomness()
        self.public_key = public_key
        self.clock = clock
        self.encryption = EncryptionEngine(self.group, self.rng)
        self.commitments = CommitmentEngine(self.group, self.rng)

        if not self.group.is_valid(public_key) or public_key == self.group.identity:
            raise ProofConstructionFailure("Invalid protocol public key")

    def _validate(
        self,
        give_asset: int,
        want_asset: int,
        give_amount: int,
        want_amount: int,
        min_fill_pct: int,
        expires_in: int,
    ) -> None:
        for asset in (give_asset, want_asset):
            if self.config.asset_by_id(asset) is None:
                raise ProofConstructionFailure(
                    f"Unknown asset: {asset}",
                    code=ErrorCode.INVALID_ORDER_PARAMETERS,
                )
        if give_asset == want_asset:
            raise ProofConstructionFailure(
                "Cannot swap an asset for itself",
                code=ErrorCode.INVALID_ORDER_PARAMETERS,
            )
        if not 0 <= min_fill_pct <= MIN_FILL_PCT_MAX:
            raise ProofConstructionFailure(
                f"min_fill_pct must be in [0, {MIN_FILL_PCT_MAX}]",
                code=ErrorCode.INVALID_ORDER_PARAMETERS,
            )
        if expires_in <= 0 or expires_in > MAX_EXPIRY_SEC:
            raise ProofConstructionFailure(
                f"Invalid expiry: {expires_in}",
                code=ErrorCode.INVALID_ORDER_PARAMETERS,
            )
        check_amount(give_amount, self.config.amount_bits, "give_amount")
        check_amount(want_amount, self.config.amount_bits, "want_amount")

    def build_order(
        self,
        give_asset: int,
        want_asset: int,
        give_amount: int,
        want_amount: int,
        min_fill_pct: int = 0,
        expires_in: Optional[int] = None,
        *,
        available_balance: int,
        maker: str = "",
        balance_randomness: Optional[int] = None,
    ) -> Tuple[Order, OrderSecrets]:
        """
        Build a confidential order.

        Args:
            give_asset: Asset id the maker gives
            want_asset: Asset id the maker wants
            give_amount: Amount given, in base units
            want_amount: Amount wanted, in base units
            min_fill_pct: Minimum share of give_amount a partial take must fill
            expires_in: Lifetime in seconds (config default when None)
            available_balance: Maker's real balance of give_asset
            maker: Maker identity recorded on the order
            balance_randomness: Randomness of an existing encrypted balance

        Returns:
            (Order in status Open, OrderSecrets)

        Raises:
            EncodingError: If an amount or the rate is not representable
            InsufficientBalanceProof: If available_balance < give_amount
            ProofConstructionFailure: If parameters are invalid
        """
        if expires_in is None:
            expires_in = self.config.default_expiry_sec

        self._validate(give_asset, want_asset, give_amount, want_amount,
                       min_fill_pct, expires_in)

        # Fail before any ciphertext exists
        if give_amount > available_balance:
            logger.warning(f"Order {give_asset}->{want_asset} refused: insufficient balance")
            raise InsufficientBalanceProof()

        rate = encode_rate(give_amount, want_amount, self.config.rate_scale)

        g = self.group
        PK = self.public_key
        bits = self.config.amount_bits

        give_randomness = self.rng.scalar()
        want_randomness = self.rng.scalar()
        encrypted_give = self.encryption.encrypt(give_amount, PK, give_randomness)
        encrypted_want = self.encryption.encrypt(want_amount, PK, want_randomness)
        rate_commitment, rate_blinding = self.commitments.commit_fresh(rate)

        context = order_context(
            g, PK, maker, give_asset, want_asset, encrypted_give, encrypted_want,
            rate_commitment, min_fill_pct, expires_in,
        )

        bundle = ProofBundle(
            range_proof_give=build_range_proof(
                g, give_amount, give_randomness, bits,
                base=PK, context=context, rng=self.rng,
            ),
            range_proof_want=build_range_proof(
                g, want_amount, want_randomness, bits,
                base=PK, context=context, rng=self.rng,
            ),
            rate_proof=build_rate_proof(
                g, give_amount, rate, rate_blinding,
                want_amount=want_amount,
                give_randomness=give_randomness,
                want_randomness=want_randomness,
                encrypted_give=encrypted_give,
                encrypted_want=encrypted_want,
                rate_commitment=rate_commitment,
                public_key=PK,
                scale=self.config.rate_scale,
                context=context,
                rng=self.rng,
            ),
            balance_proof=build_balance_proof(
                g, give_amount, available_balance,
                give_randomness=give_randomness,
                encrypted_give=encrypted_give,
                public_key=PK,
                num_bits=bits,
                context=context,
                rng=self.rng,
                balance_randomness=balance_randomness,
            ),
            group=g.name,
        )

        now = int(self.clock())
        order = Order(
            order_id=None,
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
            public_key=PK,
            remaining_give=encrypted_give,
            proof_bundle=bundle,
        )

        secrets = OrderSecrets(
            give_amount=give_amount,
            want_amount=want_amount,
            rate=rate,
            rate_blinding=rate_blinding,
            give_randomness=give_randomness,
            want_randomness=want_randomness,
            remaining_amount=give_amount,
            remaining_randomness=give_randomness,
        )

        logger.info(
            f"Built order {give_asset}->{want_asset} "
            f"(min_fill={min_fill_pct}%, expires_in={expires_in}s, group={g.name})"
        )
        return order, secrets
