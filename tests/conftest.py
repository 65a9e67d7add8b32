"""Mini README: Shared fixtures for the fuel card test-suite.

Structure:
    * FakeCardApi - in-memory stand-in for ``CardApiClient`` with the same methods.
    * step_clock - deterministic clock advancing one minute per call.
    * fake_api / clock - pytest fixtures wrapping the helpers above.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Dict, List, Optional

import pytest

from fuelcard.ledger.errors import LedgerError, ServerRejected


class FakeCardApi:
    """Mimics the card service: settles spends and top-ups in memory."""

    def __init__(self) -> None:
        self.cards: Dict[str, Dict[str, Any]] = {
            "1": {"card_name": "E100", "balance": 100.0},
            "2": {"card_name": "Amic", "balance": 0},
        }
        self.fuel_prices: Dict[str, Optional[float]] = {"1": 6.25, "2": None}
        self.transactions_by_card: Dict[str, List[Dict[str, Any]]] = {"1": [], "2": []}
        self.calls: List[tuple] = []
        self.spend_error: Optional[LedgerError] = None
        self.top_up_error: Optional[LedgerError] = None
        self.spend_liters: Optional[float] = None
        self._next_id = 100

    def _card(self, card_id: str) -> Dict[str, Any]:
        if card_id not in self.cards:
            raise ServerRejected("Card not found", status_code=404)
        return self.cards[card_id]

    def card_info(self, card_id: str) -> Dict[str, Any]:
        self.calls.append(("info", card_id))
        return dict(self._card(card_id))

    def latest_fuel_price(self, card_id: str) -> Dict[str, Any]:
        self.calls.append(("price", card_id))
        return {"latest_fuel_price": self.fuel_prices.get(card_id)}

    def transactions(self, card_id: str) -> List[Dict[str, Any]]:
        self.calls.append(("transactions", card_id))
        self._card(card_id)
        return list(self.transactions_by_card.get(card_id, []))

    def spend(self, card_id: str, amount: str, fuel_price: Optional[str]) -> Dict[str, Any]:
        self.calls.append(("spend", card_id, amount, fuel_price))
        if self.spend_error is not None:
            raise self.spend_error
        card = self._card(card_id)
        remaining = Decimal(str(card["balance"])) - Decimal(amount)
        card["balance"] = float(remaining)
        liters = self.spend_liters
        if liters is None and fuel_price is not None:
            liters = float(
                (Decimal(amount) / Decimal(fuel_price)).quantize(
                    Decimal("0.01"), rounding=ROUND_HALF_UP
                )
            )
        return {"remaining_balance": float(remaining), "liters": liters}

    def top_up(self, card_id: str, amount: str) -> Dict[str, Any]:
        self.calls.append(("topup", card_id, amount))
        if self.top_up_error is not None:
            raise self.top_up_error
        card = self._card(card_id)
        card["balance"] = float(Decimal(str(card["balance"])) + Decimal(amount))
        return {"balance": card["balance"]}

    def add_card(self, name: str, balance: str) -> Dict[str, Any]:
        self.calls.append(("add", name, balance))
        self._next_id += 1
        card_id = str(self._next_id)
        self.cards[card_id] = {"card_name": name, "balance": float(balance)}
        self.transactions_by_card[card_id] = []
        return {"card_id": self._next_id, "card_name": name, "balance": float(balance)}


def step_clock(start: Optional[datetime] = None) -> Callable[[], datetime]:
    """Return a clock that moves forward one minute on every call."""

    current = [start or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)]

    def tick() -> datetime:
        moment = current[0]
        current[0] = moment + timedelta(minutes=1)
        return moment

    return tick


@pytest.fixture
def fake_api() -> FakeCardApi:
    return FakeCardApi()


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return step_clock()
