"""Mini README: Balance and append-only history for a single fuel card.

Structure:
    * LedgerState - immutable balance/history pair handed to persistence.
    * CardLedger - validates mutations, delegates settlement, appends records.

Every mutation follows the same path: validate against the locally known
state, ask the settlement strategy for the authoritative result, build the
next ``LedgerState``, persist it, and only then swap it in. A failure at any
step leaves the previous state in place and is returned as a failed
``Outcome`` rather than raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Callable, Optional, Sequence, Tuple, TypeVar

from ..logging_utils import get_logger
from .errors import InsufficientBalance, InvalidAmount, LedgerError
from .money import Money
from .outcome import Outcome
from .records import TransactionKind, TransactionRecord

if TYPE_CHECKING:
    from ..settlement.base import SettlementStrategy

LOGGER = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class LedgerState:
    """Snapshot of a card's balance and newest-first history."""

    balance: Money
    history: Tuple[TransactionRecord, ...] = ()


PersistCallback = Callable[[str, LedgerState], None]
Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CardLedger:
    """Own one card's balance and history."""

    def __init__(
        self,
        card_id: str,
        display_name: str,
        strategy: "SettlementStrategy",
        *,
        balance: Optional[Money] = None,
        history: Sequence[TransactionRecord] = (),
        unit_price: Optional[Money] = None,
        persist: Optional[PersistCallback] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.card_id = card_id
        self.display_name = display_name
        self.strategy = strategy
        self.unit_price = unit_price
        self._persist = persist
        self._clock = clock or _utc_now
        history = tuple(history)
        if balance is None:
            balance = history[0].resulting_balance if history else Money.zero()
        elif history and history[0].resulting_balance != balance:
            LOGGER.warning(
                "Card %s balance %s differs from newest record balance %s",
                card_id,
                balance,
                history[0].resulting_balance,
            )
        self._state = LedgerState(balance=balance, history=history)
        LOGGER.debug(
            "Ledger for card %s loaded with balance %s and %s records",
            card_id,
            balance,
            len(history),
        )

    @property
    def state(self) -> LedgerState:
        return self._state

    def current_balance(self) -> Money:
        return self._state.balance

    def history_snapshot(self) -> Tuple[TransactionRecord, ...]:
        """Return the history, newest first. Tuples keep callers read-only."""

        return self._state.history

    def recent(self, count: int) -> Tuple[TransactionRecord, ...]:
        return self._state.history[: max(0, count)]

    def top_up(self, amount: Money) -> Outcome[TransactionRecord]:
        """Add ``amount`` to the balance."""

        return self._run("top-up", lambda: self._top_up(amount))

    def spend(
        self, amount: Money, unit_price: Optional[Money] = None
    ) -> Outcome[TransactionRecord]:
        """Spend ``amount``; ``unit_price`` defaults to the card's latest price."""

        return self._run("spend", lambda: self._spend(amount, unit_price))

    def set_balance_directly(self, new_balance: Money) -> Outcome[TransactionRecord]:
        """Overwrite the balance, recording the difference as a manual set."""

        return self._run("manual set", lambda: self._set_balance(new_balance))

    def clear_history(self) -> Outcome[int]:
        """Drop every record, keeping the balance. Returns how many were removed."""

        return self._run("clear history", self._clear_history)

    def _top_up(self, amount: Money) -> TransactionRecord:
        if not amount.is_positive():
            raise InvalidAmount("Please enter a positive amount.")
        balance = self._state.balance
        new_balance = self.strategy.apply_top_up(self.card_id, balance, amount)
        self._warn_on_divergence(balance + amount, new_balance)
        record = self._build_record(TransactionKind.TOP_UP, amount, new_balance)
        self._commit(record)
        return record

    def _spend(self, amount: Money, unit_price: Optional[Money]) -> TransactionRecord:
        if not amount.is_positive():
            raise InvalidAmount("Please enter a positive amount.")
        price = unit_price if unit_price is not None else self.unit_price
        if price is not None and not price.is_positive():
            raise InvalidAmount("Fuel price must be greater than zero.")
        balance = self._state.balance
        if amount > balance:
            raise InsufficientBalance("You can not spend more than you have.")
        settlement = self.strategy.apply_spend(self.card_id, balance, amount, price)
        quantity = settlement.quantity
        if quantity is None and price is not None:
            quantity = amount.per_unit(price)
        self._warn_on_divergence(balance - amount, settlement.new_balance)
        record = self._build_record(
            TransactionKind.SPEND, -amount, settlement.new_balance, quantity=quantity
        )
        self._commit(record)
        return record

    def _set_balance(self, new_balance: Money) -> TransactionRecord:
        if not new_balance.is_non_negative():
            raise InvalidAmount("Please enter zero or a positive amount.")
        balance = self._state.balance
        settled = self.strategy.apply_manual_set(self.card_id, balance, new_balance)
        record = self._build_record(TransactionKind.MANUAL_SET, settled - balance, settled)
        self._commit(record)
        return record

    def _clear_history(self) -> int:
        self.strategy.check_clear_history()
        removed = len(self._state.history)
        self._store(LedgerState(balance=self._state.balance, history=()))
        return removed

    def _build_record(
        self,
        kind: TransactionKind,
        delta: Money,
        resulting_balance: Money,
        *,
        quantity: Optional[Decimal] = None,
    ) -> TransactionRecord:
        moment = self._clock()
        return TransactionRecord(
            record_id=self._next_record_id(moment),
            kind=kind,
            amount_delta=delta,
            resulting_balance=resulting_balance,
            timestamp=moment,
            quantity=quantity,
        )

    def _next_record_id(self, moment: datetime) -> str:
        """Millisecond timestamp, bumped past the newest numeric id."""

        candidate = int(moment.timestamp() * 1000)
        if self._state.history:
            newest = self._state.history[0].record_id
            if newest.isdigit():
                candidate = max(candidate, int(newest) + 1)
        return str(candidate)

    def _commit(self, record: TransactionRecord) -> None:
        self._store(
            LedgerState(
                balance=record.resulting_balance,
                history=(record,) + self._state.history,
            )
        )

    def _store(self, state: LedgerState) -> None:
        if self._persist is not None:
            self._persist(self.card_id, state)
        self._state = state

    def _warn_on_divergence(self, expected: Money, settled: Money) -> None:
        if expected != settled:
            LOGGER.warning(
                "Card %s settled at %s but %s was expected locally",
                self.card_id,
                settled,
                expected,
            )

    def _run(self, label: str, operation: Callable[[], T]) -> Outcome[T]:
        try:
            result = operation()
        except LedgerError as error:
            LOGGER.warning("Card %s %s failed: %s", self.card_id, label, error)
            return Outcome.failure(error)
        LOGGER.info(
            "Card %s %s succeeded; balance now %s", self.card_id, label, self._state.balance
        )
        return Outcome.success(result)
