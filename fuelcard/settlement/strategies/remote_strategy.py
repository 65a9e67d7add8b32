"""Mini README: Server-settled strategy backed by the card service.

Structure:
    * RemoteStrategy - forwards top-ups and spends to ``CardApiClient`` and
      reports the balance (and litres) the server computed.

The server is authoritative: its balance replaces the local one and the
quantity it reports is kept as-is even when it was rounded differently from a
local division. History is owned by the server, so manual balance sets and
clearing history are not offered.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from ..base import SettlementStrategy
from ..registry import REGISTRY
from ...ledger.errors import ArithmeticOverflow, InvalidAmount, NetworkError
from ...ledger.money import Money
from ...ledger.records import SpendSettlement
from ...logging_utils import get_logger
from ...remote.api_client import CardApiClient

LOGGER = get_logger(__name__)


def _money_field(payload: Dict[str, Any], key: str) -> Money:
    if key not in payload or payload[key] is None:
        raise NetworkError(f"Card service response is missing '{key}'.")
    try:
        return Money.coerce(payload[key])
    except (InvalidAmount, ArithmeticOverflow) as error:
        raise NetworkError(f"Card service returned an invalid '{key}'.") from error


def _quantity_field(payload: Dict[str, Any], key: str) -> Optional[Decimal]:
    value = payload.get(key)
    if value is None:
        return None
    try:
        quantity = Decimal(str(value))
    except InvalidOperation:
        LOGGER.warning("Ignoring unreadable quantity %r from card service", value)
        return None
    return quantity if quantity.is_finite() else None


class RemoteStrategy(SettlementStrategy):
    """Delegate settlement to the remote card service."""

    mode_name = "remote"

    def __init__(self, client: CardApiClient) -> None:
        super().__init__()
        self.client = client

    def apply_top_up(self, card_id: str, balance: Money, amount: Money) -> Money:
        payload = self.client.top_up(card_id, amount.format())
        return _money_field(payload, "balance")

    def apply_spend(
        self,
        card_id: str,
        balance: Money,
        amount: Money,
        unit_price: Optional[Money],
    ) -> SpendSettlement:
        payload = self.client.spend(
            card_id,
            amount.format(),
            unit_price.format() if unit_price is not None else None,
        )
        return SpendSettlement(
            new_balance=_money_field(payload, "remaining_balance"),
            quantity=_quantity_field(payload, "liters"),
        )


REGISTRY.register(RemoteStrategy)
