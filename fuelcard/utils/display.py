"""Mini README: Display helpers shared by the web and CLI interfaces.

Structure:
    * format_money / format_timestamp / format_quantity - scalar formatting.
    * describe_record - one-line sentence for a history entry.
    * record_view - JSON-friendly dictionary for a record.
    * confirmation_prompt - question shown before a mutation runs.

Keeping the wording here means both interfaces phrase records and prompts
identically and neither needs to import the other.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional

from ..ledger.money import Money
from ..ledger.records import TransactionKind, TransactionRecord

DISPLAY_DATE_FORMAT = "%d/%m/%Y %H:%M"


def format_money(amount: Money, currency: str) -> str:
    return f"{amount.format()} {currency}".rstrip()


def format_timestamp(moment: datetime) -> str:
    """Render an instant in local time as ``dd/mm/YYYY HH:MM``."""

    return moment.astimezone().strftime(DISPLAY_DATE_FORMAT)


def format_quantity(quantity: Optional[Decimal]) -> str:
    if quantity is None:
        return ""
    return f"{quantity:.2f} L"


def describe_record(record: TransactionRecord, currency: str) -> str:
    balance = format_money(record.resulting_balance, currency)
    if record.kind is TransactionKind.TOP_UP:
        return f"+{format_money(record.amount_delta, currency)} added → Balance: {balance}"
    if record.kind is TransactionKind.SPEND:
        spent = format_money(-record.amount_delta, currency)
        return f"{spent} spent → Balance: {balance}"
    return f"Balance manually set to {balance}"


def record_view(record: TransactionRecord, currency: str) -> Dict[str, object]:
    return {
        "id": record.record_id,
        "kind": record.kind.value,
        "amount": record.amount_delta.format(),
        "new_balance": record.resulting_balance.format(),
        "timestamp": record.timestamp.isoformat(),
        "date": format_timestamp(record.timestamp),
        "liters": str(record.quantity) if record.quantity is not None else None,
        "text": describe_record(record, currency),
    }


def confirmation_prompt(kind: TransactionKind, amount: Money, currency: str) -> str:
    if kind is TransactionKind.TOP_UP:
        return f"{format_money(amount, currency)} will be added. Are you sure?"
    if kind is TransactionKind.SPEND:
        return f"{format_money(amount, currency)} will be spent. Are you sure?"
    return f"Balance will be set to {format_money(amount, currency)}. Are you sure?"
