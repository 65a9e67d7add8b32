"""Mini README: On-device settlement with exact money arithmetic.

Structure:
    * LocalStrategy - adds and subtracts balances locally.

The ledger has already validated that a spend fits the balance, so the
strategy only computes the new value. It also allows manual balance sets and
clearing history because the device owns the whole ledger.
"""

from __future__ import annotations

from typing import Optional

from ..base import SettlementStrategy
from ..registry import REGISTRY
from ...ledger.money import Money
from ...ledger.records import SpendSettlement


class LocalStrategy(SettlementStrategy):
    """Settle operations without any external service."""

    mode_name = "local"
    supports_manual_set = True
    supports_clear_history = True

    def apply_top_up(self, card_id: str, balance: Money, amount: Money) -> Money:
        return balance + amount

    def apply_spend(
        self,
        card_id: str,
        balance: Money,
        amount: Money,
        unit_price: Optional[Money],
    ) -> SpendSettlement:
        return SpendSettlement(new_balance=balance - amount)


REGISTRY.register(LocalStrategy)
