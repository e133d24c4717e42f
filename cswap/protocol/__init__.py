"""
Confidential Swap Order Protocol
"""

from cswap.protocol.lifecycle import OrderStatus, OrderEvent, transition
from cswap.protocol.order import Order, OrderSecrets, TakerQuote, OrderBuilder
from cswap.protocol.match import TakeRequest, FillReceipt, MatchEngine
from cswap.protocol.verifier import (
    Verifier,
    SigmaVerifier,
    SuccinctVerifier,
    CompositeVerifier,
)
from cswap.protocol.ledger import OrderLedger, FillOutcome, LedgerStats

__all__ = [
    # Lifecycle
    "OrderStatus",
    "OrderEvent",
    "transition",
    # Maker
    "Order",
    "OrderSecrets",
    "TakerQuote",
    "OrderBuilder",
    # Taker
    "TakeRequest",
    "FillReceipt",
    "MatchEngine",
    # Verification
    "Verifier",
    "SigmaVerifier",
    "SuccinctVerifier",
    "CompositeVerifier",
    # Settlement
    "OrderLedger",
    "FillOutcome",
    "LedgerStats",
]
