"""
Confidential Swap Verifiers

Two independent capabilities:

- SigmaVerifier re-checks every sigma-protocol proof in a bundle.
- SuccinctVerifier checks the succinct-proof artifact attached to a bundle
  through a ProofProvider.

CompositeVerifier requires all of its members. The settlement layer picks
which of them (or both) to require.

A verifier configured for production rejects bundles built on a
non-production group and any mock proof artifact, whatever else it checks.
"""

from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from typing import Callable, Iterable, List, Optional

from cswap.config import ProtocolConfig, get_config
from cswap.constants import MIN_FILL_EXTRA_BITS, PROTOCOL_VERSION
from cswap.crypto.elgamal import Ciphertext
from cswap.crypto.group import CurveGroup, get_group
from cswap.errors import ConfigurationError, ErrorCode, VerificationRejected
from cswap.proofs.balance_proof import verify_balance_proof
from cswap.proofs.bundle import ProofBundle, TakeProofBundle, io_commitment
from cswap.proofs.range_proof import RangeProof, verify_range_proof
from cswap.proofs.rate_proof import verify_rate_proof
from cswap.proofs.zero_proof import ZeroProof, verify_zero_proof
from cswap.protocol.match import TakeRequest, min_fill_target, take_context
from cswap.protocol.order import Order, context_for_order

logger = logging.getLogger(__name__)


def _reject(message: str, order: Order, proof: Optional[str] = None,
            code: ErrorCode = ErrorCode.PROOF_REJECTED) -> VerificationRejected:
    details = {"order_id": order.order_id}
    if proof is not None:
        details["proof"] = proof
    logger.warning(f"Rejected order {order.order_id}: {message}")
    return VerificationRejected(message, details, code=code)


def check_production_bundle(bundle: ProofBundle, order: Order) -> None:
    """
    Refuse bundles that must never reach a production verifier.

    Raises:
        VerificationRejected: On a non-production group or a mock artifact
    """
    try:
        group = get_group(bundle.group)
    except ConfigurationError:
        raise _reject(f"Unknown group {bundle.group}", order,
                      code=ErrorCode.NON_PRODUCTION_PROOF)
    if not group.production:
        raise _reject(f"Bundle built on non-production group {bundle.group}", order,
                      code=ErrorCode.NON_PRODUCTION_PROOF)
    if bundle.succinct_proof is not None and bundle.succinct_proof.mock:
        raise _reject("Bundle carries a mock proof artifact", order,
                      code=ErrorCode.NON_PRODUCTION_PROOF)


def proof_parameters(group_name: str, amount_bits: int, kind: str) -> dict:
    """Public parameters sent along with an io commitment."""
    return {
        "protocol_version": PROTOCOL_VERSION,
        "group": group_name,
        "amount_bits": amount_bits,
        "kind": kind,
    }


class Verifier(ABC):
    """Checks order and take bundles; raises VerificationRejected on failure."""

    name: str = ""
    production: bool = True

    @abstractmethod
    def verify_order(self, order: Order) -> None:
        ...

    @abstractmethod
    def verify_take(self, order: Order, request: TakeRequest) -> None:
        ...


BalanceLookup = Callable[[str, int], Optional[Ciphertext]]


class SigmaVerifier(Verifier):
    """
    Recomputes every sigma-protocol check.

    With a balance_lookup, a party that has an encrypted balance record for
    the asset it gives must prove against exactly that record. Parties
    without a record are checked on the proof alone.
    """

    name = "sigma"

    def __init__(
        self,
        public_key: Optional[bytes] = None,
        group: Optional[CurveGroup] = None,
        config: Optional[ProtocolConfig] = None,
        balance_lookup: Optional[BalanceLookup] = None,
    ):
        self.config = config or get_config()
        self.group = group or get_group(self.config.group)
        self.production = self.config.production
        self.balance_lookup = balance_lookup

        if public_key is None and self.config.protocol_public_key is not None:
            public_key = bytes.fromhex(self.config.protocol_public_key)
        if public_key is None:
            raise ConfigurationError("SigmaVerifier needs the protocol public key")
        self.public_key = public_key

    def _check_common(self, order: Order, bundle: Optional[ProofBundle]) -> None:
        if bundle is None:
            raise _reject("Missing proof bundle", order)
        if self.production:
            check_production_bundle(bundle, order)
        if bundle.group != self.group.name:
            raise _reject(f"Bundle group {bundle.group} != {self.group.name}", order)
        if order.public_key != self.public_key:
            raise _reject("Order is not encrypted under the protocol key", order)

    def _check_balance_record(self, order: Order, bundle: ProofBundle,
                              party: str, asset: int) -> None:
        if self.balance_lookup is None:
            return
        record = self.balance_lookup(party, asset)
        if record is None:
            return
        proof = bundle.balance_proof
        if proof.balance_nonce != record.c1 or proof.balance_commitment != record.c2:
            raise _reject(f"Balance proof does not use the balance record of {party}",
                          order, "balance_proof")

    def _check_legs(self, order: Order, bundle: ProofBundle, context: bytes,
                    encrypted_give, encrypted_want, rate_give, rate_want,
                    party: str, asset: int) -> None:
        g = self.group
        PK = self.public_key
        bits = self.config.amount_bits

        for ct in (encrypted_give, encrypted_want):
            if not (g.is_valid(ct.c1) and g.is_valid(ct.c2)):
                raise _reject("Malformed ciphertext", order)

        if not verify_range_proof(g, bundle.range_proof_give, encrypted_give.c2,
                                  base=PK, context=context, num_bits=bits):
            raise _reject("Give range proof failed", order, "range_proof_give")

        if not verify_range_proof(g, bundle.range_proof_want, encrypted_want.c2,
                                  base=PK, context=context, num_bits=bits):
            raise _reject("Want range proof failed", order, "range_proof_want")

        if not verify_rate_proof(
            g,
            bundle.rate_proof,
            encrypted_give=rate_give,
            encrypted_want=rate_want,
            rate_commitment=order.rate_commitment,
            public_key=PK,
            scale=self.config.rate_scale,
            context=context,
        ):
            raise _reject("Rate proof failed", order, "rate_proof")

        self._check_balance_record(order, bundle, party, asset)
        if not verify_balance_proof(
            g,
            bundle.balance_proof,
            encrypted_give=encrypted_give,
            public_key=PK,
            num_bits=bits,
            context=context,
        ):
            raise _reject("Balance proof failed", order, "balance_proof")

    def verify_order(self, order: Order) -> None:
        bundle = order.proof_bundle
        self._check_common(order, bundle)

        context = context_for_order(self.group, order)
        self._check_legs(
            order, bundle, context,
            order.encrypted_give, order.encrypted_want,
            order.encrypted_give, order.encrypted_want,
            order.maker, order.give_asset,
        )
        logger.debug(f"Order bundle verified (maker={order.maker})")

    def verify_take(self, order: Order, request: TakeRequest) -> None:
        """
        Check a take-request against the order's current state.

        Beyond the four leg proofs this enforces the matching invariant:
        the taker's rate proof is against the maker's rate commitment, the
        fill proof covers remaining - fill, and partial fills meet the
        min-fill floor.
        """
        bundle = request.taker_proof_bundle
        self._check_common(order, bundle)
        if not isinstance(bundle, TakeProofBundle):
            raise _reject("Take requires a take bundle", order)
        if request.order_id != order.order_id:
            raise _reject("Take is for a different order", order)

        g = self.group
        PK = self.public_key
        bits = self.config.amount_bits
        taker_give = request.taker_encrypted_give
        taker_want = request.taker_encrypted_want

        context = take_context(g, order, request.taker, taker_give, taker_want)

        # Taker's want is the order's give-asset leg
        self._check_legs(order, bundle, context, taker_give, taker_want,
                         taker_want, taker_give, request.taker, order.want_asset)

        remaining_c1 = g.sub(order.current_remaining.c1, taker_want.c1)
        remaining_c2 = g.sub(order.current_remaining.c2, taker_want.c2)

        if isinstance(bundle.fill_proof, ZeroProof):
            if not verify_zero_proof(g, bundle.fill_proof,
                                     Ciphertext(remaining_c1, remaining_c2),
                                     PK, context=context):
                raise _reject("Full-fill proof failed", order, "fill_proof",
                              code=ErrorCode.STALE_PROOF)
        elif isinstance(bundle.fill_proof, RangeProof):
            if not verify_range_proof(g, bundle.fill_proof, g.sub(remaining_c2, g.G),
                                      base=PK, context=context, num_bits=bits):
                raise _reject("Partial-fill proof failed", order, "fill_proof",
                              code=ErrorCode.STALE_PROOF)

            if bundle.min_fill_proof is None:
                raise _reject("Missing min-fill proof", order, "min_fill_proof",
                              code=ErrorCode.MIN_FILL_NOT_MET)
            if not verify_range_proof(
                g,
                bundle.min_fill_proof,
                min_fill_target(g, order, taker_want),
                base=PK,
                context=context,
                num_bits=bits + MIN_FILL_EXTRA_BITS,
            ):
                raise _reject("Take is below the minimum fill", order, "min_fill_proof",
                              code=ErrorCode.MIN_FILL_NOT_MET)
        else:
            raise _reject("Missing fill proof", order, "fill_proof")

        logger.debug(f"Take bundle verified (order={order.order_id}, taker={request.taker})")


class SuccinctVerifier(Verifier):
    """
    Checks the succinct-proof artifact of a bundle through a ProofProvider.

    The artifact must commit to the same public inputs as the sigma proofs.
    """

    name = "succinct"

    def __init__(
        self,
        provider,
        group: Optional[CurveGroup] = None,
        config: Optional[ProtocolConfig] = None,
        production: Optional[bool] = None,
    ):
        self.config = config or get_config()
        self.group = group or get_group(self.config.group)
        self.provider = provider
        self.production = self.config.production if production is None else production

    def _check(self, order: Order, bundle: Optional[ProofBundle], context: bytes,
               kind: str) -> None:
        if bundle is None:
            raise _reject("Missing proof bundle", order)
        if self.production:
            check_production_bundle(bundle, order)

        artifact = bundle.succinct_proof
        if artifact is None:
            raise _reject("Missing succinct proof", order, "succinct_proof")

        if artifact.io_commitment != io_commitment(context, bundle):
            raise _reject("Succinct proof commits to different inputs", order,
                          "succinct_proof", code=ErrorCode.STALE_PROOF)

        params = proof_parameters(bundle.group, self.config.amount_bits, kind)
        if not self.provider.verify_proof(artifact, params):
            raise _reject("Succinct proof rejected by provider", order, "succinct_proof")

    def verify_order(self, order: Order) -> None:
        context = context_for_order(self.group, order)
        self._check(order, order.proof_bundle, context, "order")

    def verify_take(self, order: Order, request: TakeRequest) -> None:
        context = take_context(
            self.group, order, request.taker,
            request.taker_encrypted_give, request.taker_encrypted_want,
        )
        self._check(order, request.taker_proof_bundle, context, "take")


class CompositeVerifier(Verifier):
    """All member verifiers must accept."""

    name = "composite"

    def __init__(self, verifiers: Iterable[Verifier]):
        self.verifiers: List[Verifier] = list(verifiers)
        if not self.verifiers:
            raise ConfigurationError("CompositeVerifier needs at least one verifier")
        self.production = any(v.production for v in self.verifiers)

    def verify_order(self, order: Order) -> None:
        for verifier in self.verifiers:
            verifier.verify_order(order)

    def verify_take(self, order: Order, request: TakeRequest) -> None:
        for verifier in self.verifiers:
            verifier.verify_take(order, request)
