"""Mini README: Abstract settlement strategy consumed by the card ledger.

Structure:
    * SettlementStrategy - interface computing the effect of top-ups, spends
      and manual balance sets.

A strategy decides the authoritative new balance. The local strategy does the
arithmetic itself; the remote strategy asks the card service. Capability flags
let the ledger refuse operations a strategy cannot honour without knowing
which concrete strategy is active.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Optional

from ..ledger.errors import UnsupportedOperation
from ..ledger.money import Money
from ..ledger.records import SpendSettlement
from ..logging_utils import get_logger

LOGGER = get_logger(__name__)


class SettlementStrategy(ABC):
    """Base interface for settlement implementations."""

    mode_name: str = "generic"
    supports_manual_set: bool = False
    supports_clear_history: bool = False

    def __init__(self) -> None:
        LOGGER.debug("Initialising %s settlement strategy", self.mode_name)

    @abstractmethod
    def apply_top_up(self, card_id: str, balance: Money, amount: Money) -> Money:
        """Return the balance after adding ``amount``."""

    @abstractmethod
    def apply_spend(
        self,
        card_id: str,
        balance: Money,
        amount: Money,
        unit_price: Optional[Money],
    ) -> SpendSettlement:
        """Return the balance after spending ``amount`` and any known quantity."""

    def apply_manual_set(self, card_id: str, balance: Money, new_balance: Money) -> Money:
        """Accept a directly entered balance when the strategy allows it."""

        if not self.supports_manual_set:
            raise UnsupportedOperation(
                f"Setting the balance directly is not available in {self.mode_name} mode."
            )
        return new_balance

    def check_clear_history(self) -> None:
        """Raise when history is owned elsewhere and cannot be cleared."""

        if not self.supports_clear_history:
            raise UnsupportedOperation(
                f"Clearing history is not available in {self.mode_name} mode."
            )

    def metadata(self) -> Dict[str, object]:
        """Return capability information for interface displays."""

        return {
            "mode": self.mode_name,
            "supports_manual_set": self.supports_manual_set,
            "supports_clear_history": self.supports_clear_history,
        }
