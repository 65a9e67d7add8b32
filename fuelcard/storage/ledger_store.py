"""Mini README: Lazily loaded map of card identifiers to ledgers.

Structure:
    * LedgerStore - owns every ``CardLedger`` for the process lifetime.

A card is loaded from the backend on first access and kept until the process
exits; the number of cards is small, so no eviction is needed. Each ledger is
wired to save through the backend, which makes persistence part of every
successful mutation.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from ..ledger.card_ledger import CardLedger, Clock
from ..ledger.errors import LedgerError
from ..ledger.money import Money
from ..ledger.outcome import Outcome
from ..logging_utils import get_logger
from ..settlement.base import SettlementStrategy
from .backends import CardSummary, LedgerBackend

LOGGER = get_logger(__name__)


class LedgerStore:
    """Registry of card ledgers backed by a ``LedgerBackend``."""

    def __init__(
        self,
        backend: LedgerBackend,
        strategy: SettlementStrategy,
        *,
        clock: Optional[Clock] = None,
    ) -> None:
        self.backend = backend
        self.strategy = strategy
        self._clock = clock
        self._ledgers: Dict[str, CardLedger] = {}

    def card_ids(self) -> List[str]:
        return self.backend.card_ids()

    def get(self, card_id: str) -> CardLedger:
        """Return the ledger for ``card_id``, loading it on first access.

        Raises ``KeyError`` for unknown cards and ``LedgerError`` when the
        backend cannot be read.
        """

        card_id = str(card_id)
        ledger = self._ledgers.get(card_id)
        if ledger is None:
            snapshot = self.backend.load(card_id)
            ledger = CardLedger(
                card_id=snapshot.card_id,
                display_name=snapshot.display_name,
                strategy=self.strategy,
                balance=snapshot.balance,
                history=snapshot.history,
                unit_price=snapshot.unit_price,
                persist=self.backend.save,
                clock=self._clock,
            )
            self._ledgers[card_id] = ledger
            LOGGER.info("Loaded card %s (%s)", card_id, snapshot.display_name)
        return ledger

    def is_loaded(self, card_id: str) -> bool:
        return str(card_id) in self._ledgers

    def persist(self, card_id: str) -> None:
        """Write the current state of a loaded card back to the backend."""

        ledger = self._ledgers.get(str(card_id))
        if ledger is None:
            raise KeyError(f"Card {card_id} has not been loaded")
        self.backend.save(ledger.card_id, ledger.state)

    def reload(self, card_id: str) -> CardLedger:
        """Drop the cached ledger and load it again (pull-to-refresh)."""

        self._ledgers.pop(str(card_id), None)
        return self.get(card_id)

    def list_cards(self) -> List[CardSummary]:
        summaries = []
        for card_id in self.card_ids():
            ledger = self.get(card_id)
            summaries.append(
                CardSummary(
                    card_id=ledger.card_id,
                    display_name=ledger.display_name,
                    balance=ledger.current_balance(),
                )
            )
        return summaries

    def add_card(self, name: str, balance: Money) -> Outcome[CardSummary]:
        """Create a card with an initial balance (not recorded as a transaction)."""

        try:
            summary = self.backend.create_card(name, balance)
        except LedgerError as error:
            LOGGER.warning("Adding card '%s' failed: %s", name, error)
            return Outcome.failure(error)
        LOGGER.info("Added card %s (%s)", summary.card_id, summary.display_name)
        return Outcome.success(summary)
