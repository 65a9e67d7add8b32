"""Mini README: Where card ledgers are loaded from and saved to.

Structure:
    * CardSummary - card identifier, display name and balance for listings.
    * CardSnapshot - everything needed to rebuild a ``CardLedger``.
    * LedgerBackend - abstract load/save/create interface.
    * LocalBackend - per-card balance and history keys in a ``KeyValueStore``.
    * RemoteBackend - read-through view of the card service; saving is a no-op
      because the server already recorded each settled transaction.

Local key layout (values are strings):
    * ``@fuelcard_balance_<card>`` - balance as a two-decimal string.
    * ``@fuelcard_history_<card>`` - JSON list of records, newest first.
    * ``@fuelcard_cards`` - JSON object of cards added at runtime.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ..ledger.card_ledger import LedgerState
from ..ledger.errors import (
    ArithmeticOverflow,
    InvalidAmount,
    LedgerError,
    NetworkError,
    PersistenceError,
    ServerRejected,
)
from ..ledger.money import Money
from ..ledger.records import TransactionKind, TransactionRecord, parse_timestamp
from ..logging_utils import get_logger
from ..remote.api_client import CardApiClient
from .key_value import KeyValueStore

LOGGER = get_logger(__name__)

BALANCE_KEY = "@fuelcard_balance_{card_id}"
HISTORY_KEY = "@fuelcard_history_{card_id}"
CATALOG_KEY = "@fuelcard_cards"


@dataclass(frozen=True, slots=True)
class CardSummary:
    card_id: str
    display_name: str
    balance: Money


@dataclass(frozen=True, slots=True)
class CardSnapshot:
    """Loaded state of one card."""

    card_id: str
    display_name: str
    balance: Money
    history: Tuple[TransactionRecord, ...]
    unit_price: Optional[Money] = None


def _validate_new_card(name: str, balance: Money) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidAmount("Please enter a valid card name.")
    if not balance.is_non_negative():
        raise InvalidAmount("Initial balance can not be negative.")
    return cleaned


def _newest_first(records: Sequence[TransactionRecord]) -> Tuple[TransactionRecord, ...]:
    def sort_key(record: TransactionRecord) -> Tuple[Any, int]:
        numeric_id = int(record.record_id) if record.record_id.isdigit() else -1
        return (record.timestamp, numeric_id)

    return tuple(sorted(records, key=sort_key, reverse=True))


class LedgerBackend(ABC):
    """Persistence contract used by ``LedgerStore``."""

    @abstractmethod
    def card_ids(self) -> List[str]:
        """Return identifiers of every known card."""

    @abstractmethod
    def load(self, card_id: str) -> CardSnapshot:
        """Load one card; raise ``KeyError`` for unknown cards."""

    @abstractmethod
    def save(self, card_id: str, state: LedgerState) -> None:
        """Durably store the ledger state."""

    @abstractmethod
    def create_card(self, name: str, balance: Money) -> CardSummary:
        """Register a new card with an initial balance."""


class LocalBackend(LedgerBackend):
    """Ledger state kept entirely in a key-value store."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        default_cards: Optional[Mapping[str, str]] = None,
        default_unit_price: Optional[Money] = None,
    ) -> None:
        self.store = store
        self.default_cards = dict(default_cards or {})
        self.default_unit_price = default_unit_price

    def _catalog(self) -> Dict[str, str]:
        catalog = dict(self.default_cards)
        raw = self.store.get(CATALOG_KEY)
        if raw:
            try:
                added = json.loads(raw)
            except json.JSONDecodeError as error:
                raise PersistenceError("Saved card list is corrupted.") from error
            catalog.update({str(key): str(value) for key, value in added.items()})
        return catalog

    def card_ids(self) -> List[str]:
        return list(self._catalog().keys())

    def load(self, card_id: str) -> CardSnapshot:
        catalog = self._catalog()
        if card_id not in catalog:
            raise KeyError(f"Card {card_id} is not registered")
        balance = self._load_balance(card_id)
        history = self._load_history(card_id)
        LOGGER.debug("Loaded local card %s with %s records", card_id, len(history))
        return CardSnapshot(
            card_id=card_id,
            display_name=catalog[card_id],
            balance=balance,
            history=history,
            unit_price=self.default_unit_price,
        )

    def _load_balance(self, card_id: str) -> Money:
        raw = self.store.get(BALANCE_KEY.format(card_id=card_id))
        if raw is None:
            return Money.zero()
        try:
            return Money.coerce(raw)
        except (InvalidAmount, ArithmeticOverflow) as error:
            raise PersistenceError(f"Saved balance for card {card_id} is corrupted.") from error

    def _load_history(self, card_id: str) -> Tuple[TransactionRecord, ...]:
        raw = self.store.get(HISTORY_KEY.format(card_id=card_id))
        if not raw:
            return ()
        try:
            entries = json.loads(raw)
            return tuple(TransactionRecord.from_dict(entry) for entry in entries)
        except (json.JSONDecodeError, TypeError, ValueError) as error:
            raise PersistenceError(f"Saved history for card {card_id} is corrupted.") from error

    def save(self, card_id: str, state: LedgerState) -> None:
        self.store.set_many(
            {
                BALANCE_KEY.format(card_id=card_id): state.balance.format(),
                HISTORY_KEY.format(card_id=card_id): json.dumps(
                    [record.as_dict() for record in state.history], ensure_ascii=False
                ),
            }
        )
        LOGGER.debug("Saved card %s with %s records", card_id, len(state.history))

    def create_card(self, name: str, balance: Money) -> CardSummary:
        display_name = _validate_new_card(name, balance)
        catalog = self._catalog()
        numeric_ids = [int(card_id) for card_id in catalog if card_id.isdigit()]
        card_id = str(max(numeric_ids, default=0) + 1)
        added = {key: value for key, value in catalog.items() if key not in self.default_cards}
        added[card_id] = display_name
        self.store.set_many(
            {
                CATALOG_KEY: json.dumps(added, ensure_ascii=False),
                BALANCE_KEY.format(card_id=card_id): balance.format(),
                HISTORY_KEY.format(card_id=card_id): "[]",
            }
        )
        LOGGER.info("Created local card %s (%s)", card_id, display_name)
        return CardSummary(card_id=card_id, display_name=display_name, balance=balance)


def _record_from_transaction(payload: Dict[str, Any]) -> TransactionRecord:
    """Map a service transaction onto a record, signing the amount by type."""

    transaction_type = str(payload.get("transaction_type", "")).lower()
    if transaction_type == "spend":
        kind = TransactionKind.SPEND
    elif transaction_type == "topup":
        kind = TransactionKind.TOP_UP
    else:
        kind = TransactionKind.MANUAL_SET
    amount = Money.coerce(payload["amount"])
    if kind is TransactionKind.SPEND:
        delta = Money(-abs(amount.cents))
    elif kind is TransactionKind.TOP_UP:
        delta = Money(abs(amount.cents))
    else:
        delta = amount
    liters = payload.get("liters")
    return TransactionRecord.from_dict(
        {
            "id": payload["transaction_id"],
            "type": kind.value,
            "amount": delta.format(),
            "new_balance": payload["new_balance"],
            "date": payload["transaction_date"],
            "liters": liters if kind is TransactionKind.SPEND else None,
        }
    )


class RemoteBackend(LedgerBackend):
    """Card state fetched from the card service."""

    def __init__(
        self,
        client: CardApiClient,
        *,
        card_ids: Sequence[str] = (),
        default_unit_price: Optional[Money] = None,
    ) -> None:
        self.client = client
        self._card_ids: List[str] = [str(card_id) for card_id in card_ids]
        self.default_unit_price = default_unit_price

    def card_ids(self) -> List[str]:
        return list(self._card_ids)

    def load(self, card_id: str) -> CardSnapshot:
        try:
            info = self.client.card_info(card_id)
        except ServerRejected as error:
            if error.status_code == 404:
                raise KeyError(f"Card {card_id} is not registered") from error
            raise
        try:
            balance = Money.coerce(info["balance"])
            records = [_record_from_transaction(item) for item in self.client.transactions(card_id)]
        except (KeyError, TypeError, ValueError, ArithmeticOverflow) as error:
            raise NetworkError(f"Card service returned malformed data for card {card_id}.") from error
        LOGGER.debug("Loaded remote card %s with %s transactions", card_id, len(records))
        return CardSnapshot(
            card_id=card_id,
            display_name=str(info.get("card_name") or card_id),
            balance=balance,
            history=_newest_first(records),
            unit_price=self._latest_price(card_id),
        )

    def _latest_price(self, card_id: str) -> Optional[Money]:
        try:
            payload = self.client.latest_fuel_price(card_id)
            value = payload.get("latest_fuel_price")
            if value is not None:
                return Money.coerce(value)
        except (LedgerError, AttributeError) as error:
            LOGGER.warning("Using default fuel price for card %s: %s", card_id, error)
        return self.default_unit_price

    def save(self, card_id: str, state: LedgerState) -> None:
        LOGGER.debug("Card %s is settled remotely; nothing to save locally", card_id)

    def create_card(self, name: str, balance: Money) -> CardSummary:
        display_name = _validate_new_card(name, balance)
        payload = self.client.add_card(display_name, balance.format())
        card = payload.get("card", payload) if isinstance(payload, dict) else {}
        card_id = card.get("card_id", card.get("id"))
        if card_id is None:
            raise NetworkError("Card service did not return the new card identifier.")
        card_id = str(card_id)
        if card_id not in self._card_ids:
            self._card_ids.append(card_id)
        LOGGER.info("Created remote card %s (%s)", card_id, display_name)
        return CardSummary(
            card_id=card_id,
            display_name=str(card.get("card_name") or card.get("name") or display_name),
            balance=Money.coerce(card["balance"]) if card.get("balance") is not None else balance,
        )
