"""Mini README: Card ledger core for the fuel card tracker.

This package owns the rules for a card's money: exact two-decimal amounts,
immutable transaction records, the per-card ledger that validates and applies
top-ups, spends and manual balance sets, and the pager that slices history
for display. Settlement and storage live in sibling packages and are plugged
into ``CardLedger`` at construction time.
"""

from .errors import (
    ArithmeticOverflow,
    InsufficientBalance,
    InvalidAmount,
    LedgerError,
    NetworkError,
    PersistenceError,
    ServerRejected,
    UnsupportedOperation,
)
from .money import Money, parse_amount
from .outcome import Outcome
from .records import SpendSettlement, TransactionKind, TransactionRecord
from .card_ledger import CardLedger, LedgerState
from .pager import HistoryPage, HistoryPager

__all__ = [
    "ArithmeticOverflow",
    "CardLedger",
    "HistoryPage",
    "HistoryPager",
    "InsufficientBalance",
    "InvalidAmount",
    "LedgerError",
    "LedgerState",
    "Money",
    "NetworkError",
    "Outcome",
    "PersistenceError",
    "ServerRejected",
    "SpendSettlement",
    "TransactionKind",
    "TransactionRecord",
    "UnsupportedOperation",
    "parse_amount",
]
