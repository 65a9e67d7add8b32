"""Mini README: Immutable transaction records for a card's history.

Structure:
    * TransactionKind - enum of top-ups, spends and manual balance sets.
    * TransactionRecord - frozen dataclass storing one balance-affecting event.
    * SpendSettlement - balance and optional quantity produced by a spend.
    * parse_timestamp - reads ISO instants and the legacy ``dd/mm/YYYY HH:MM`` form.

Records serialise to plain dictionaries (``as_dict``/``from_dict``) so the
key-value store can keep a card's history as JSON, newest first.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional

from .errors import ArithmeticOverflow, InvalidAmount
from .money import Money

LEGACY_DATE_FORMAT = "%d/%m/%Y %H:%M"

_KIND_ALIASES = {
    "added": "topup",
    "top_up": "topup",
    "purchased": "spend",
    "setted": "manual_set",
    "set": "manual_set",
}


class TransactionKind(str, Enum):
    """Enumerate the supported record kinds."""

    TOP_UP = "topup"
    SPEND = "spend"
    MANUAL_SET = "manual_set"

    @classmethod
    def from_str(cls, value: str) -> "TransactionKind":
        """Coerce arbitrary casing and legacy labels into a record kind."""

        try:
            normalised = value.strip().lower()
            return cls(_KIND_ALIASES.get(normalised, normalised))
        except (ValueError, AttributeError) as error:
            raise ValueError(f"Unsupported transaction kind: {value}") from error


def parse_timestamp(value: Any) -> datetime:
    """Parse stored timestamps into timezone-aware datetimes."""

    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, str):
        text = value.strip()
        try:
            moment = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            try:
                moment = datetime.strptime(text, LEGACY_DATE_FORMAT)
            except ValueError as error:
                raise ValueError(f"Unrecognised timestamp: {value}") from error
    else:
        raise ValueError("Timestamps must be ISO strings or datetime instances.")
    if moment.tzinfo is None:
        moment = moment.astimezone()
    return moment.astimezone(timezone.utc)


def _parse_quantity(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        quantity = Decimal(str(value))
    except InvalidOperation as error:
        raise ValueError(f"Unrecognised quantity: {value}") from error
    return quantity if quantity.is_finite() else None


@dataclass(frozen=True, slots=True)
class TransactionRecord:
    """One balance-affecting event; ``amount_delta`` is signed."""

    record_id: str
    kind: TransactionKind
    amount_delta: Money
    resulting_balance: Money
    timestamp: datetime
    quantity: Optional[Decimal] = None

    def __post_init__(self) -> None:
        if self.quantity is not None and self.kind is not TransactionKind.SPEND:
            raise ValueError("Only spend records carry a quantity.")

    @property
    def balance_before(self) -> Money:
        return self.resulting_balance - self.amount_delta

    def as_dict(self) -> Dict[str, Any]:
        """Export the record with JSON-serialisable values."""

        return {
            "id": self.record_id,
            "type": self.kind.value,
            "amount": self.amount_delta.format(),
            "new_balance": self.resulting_balance.format(),
            "date": self.timestamp.isoformat(),
            "liters": str(self.quantity) if self.quantity is not None else None,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "TransactionRecord":
        """Rebuild a record from ``as_dict`` output or legacy stored entries."""

        try:
            kind = TransactionKind.from_str(str(payload["type"]))
            quantity = _parse_quantity(payload.get("liters"))
            new_balance = payload.get("new_balance", payload.get("newBalance"))
            return cls(
                record_id=str(payload["id"]),
                kind=kind,
                amount_delta=Money.coerce(payload["amount"]),
                resulting_balance=Money.coerce(new_balance),
                timestamp=parse_timestamp(payload["date"]),
                quantity=quantity if kind is TransactionKind.SPEND else None,
            )
        except KeyError as error:
            raise ValueError(f"Stored record is missing field {error}") from error
        except (InvalidAmount, ArithmeticOverflow) as error:
            raise ValueError(f"Stored record has a bad amount: {error}") from error


@dataclass(frozen=True, slots=True)
class SpendSettlement:
    """Result of settling a spend: new balance and, when known, the quantity."""

    new_balance: Money
    quantity: Optional[Decimal] = None
