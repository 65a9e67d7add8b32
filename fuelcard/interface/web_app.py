"""Mini README: FastAPI service exposing the card ledgers.

Structure:
    * create_application - application factory wiring routes to ledger services.
    * error_status - maps typed ledger failures onto HTTP status codes.

Mutating routes follow the confirm-then-apply flow of the mobile screens: a
request without ``confirmed=true`` only parses the amount and returns the
question to ask the user; the ledger operation runs once the client repeats
the request with confirmation. Failures come back as ``{"detail": ...}`` with
a status chosen by ``error_status``.
"""

from __future__ import annotations

from typing import Dict, Optional, Type

from fastapi import FastAPI, Form, HTTPException, Query
from fastapi.responses import JSONResponse

from ..bootstrap import FuelCardServices, build_services
from ..ledger import (
    ArithmeticOverflow,
    CardLedger,
    InsufficientBalance,
    InvalidAmount,
    LedgerError,
    Money,
    NetworkError,
    PersistenceError,
    ServerRejected,
    TransactionKind,
    UnsupportedOperation,
)
from ..ledger.outcome import Outcome
from ..logging_utils import configure_root_logger, get_logger
from ..settlement import REGISTRY
from ..utils.display import confirmation_prompt, format_money, format_quantity, record_view

LOGGER = get_logger(__name__)

_ERROR_STATUS: Dict[Type[LedgerError], int] = {
    InvalidAmount: 400,
    ArithmeticOverflow: 400,
    InsufficientBalance: 409,
    UnsupportedOperation: 405,
    ServerRejected: 502,
    NetworkError: 503,
    PersistenceError: 500,
}


def error_status(error: LedgerError) -> int:
    for error_type, status in _ERROR_STATUS.items():
        if isinstance(error, error_type):
            return status
    return 500


def _as_http_error(error: LedgerError) -> HTTPException:
    return HTTPException(status_code=error_status(error), detail=str(error))


def create_application(services: Optional[FuelCardServices] = None) -> FastAPI:
    """Create the FastAPI application with routes bound to ``services``."""

    app = FastAPI(title="Fuel Card Tracker", version="1.0.0")
    services = services or build_services()
    configure_root_logger(services.settings.effective_log_level)
    store = services.store
    selection = services.selection
    pager = services.pager
    currency = services.settings.currency_symbol

    def load_ledger(card_id: str) -> CardLedger:
        try:
            return store.get(card_id)
        except KeyError as error:
            raise HTTPException(status_code=404, detail=f"Card {card_id} is not registered") from error
        except LedgerError as error:
            raise _as_http_error(error) from error

    def parse(text: str) -> Money:
        try:
            return Money.parse(text)
        except (InvalidAmount, ArithmeticOverflow) as error:
            raise _as_http_error(error) from error

    def card_payload(ledger: CardLedger) -> Dict[str, object]:
        return {
            "card_id": ledger.card_id,
            "name": ledger.display_name,
            "balance": ledger.current_balance().format(),
            "balance_text": format_money(ledger.current_balance(), currency),
            "fuel_price": ledger.unit_price.format() if ledger.unit_price is not None else None,
            "transaction_count": len(ledger.history_snapshot()),
            "capabilities": store.strategy.metadata(),
            "recent": [
                record_view(record, currency)
                for record in ledger.recent(services.settings.recent_transactions)
            ],
        }

    def mutation_response(ledger: CardLedger, outcome: Outcome) -> JSONResponse:
        if not outcome.ok:
            raise _as_http_error(outcome.error)
        record = outcome.value
        payload = card_payload(ledger)
        payload["record"] = record_view(record, currency)
        if record.quantity is not None:
            payload["quantity_text"] = format_quantity(record.quantity)
        return JSONResponse(payload)

    def confirmation_required(kind: TransactionKind, amount: Money) -> JSONResponse:
        return JSONResponse(
            {
                "confirmation_required": True,
                "prompt": confirmation_prompt(kind, amount, currency),
            }
        )

    @app.get("/")
    async def overview() -> JSONResponse:
        """Summarise the mode, the selected card and the available cards."""

        selected = selection.selected()
        return JSONResponse(
            {
                "mode": store.strategy.metadata(),
                "available_modes": REGISTRY.capabilities(),
                "selected_card": selected,
                "card_ids": store.card_ids(),
            }
        )

    @app.get("/cards")
    async def list_cards() -> JSONResponse:
        try:
            summaries = store.list_cards()
        except LedgerError as error:
            raise _as_http_error(error) from error
        return JSONResponse(
            {
                "cards": [
                    {
                        "card_id": summary.card_id,
                        "name": summary.display_name,
                        "balance": summary.balance.format(),
                    }
                    for summary in summaries
                ]
            }
        )

    @app.post("/cards/add")
    async def add_card(name: str = Form(...), balance: str = Form(...)) -> JSONResponse:
        outcome = store.add_card(name, parse(balance))
        if not outcome.ok:
            raise _as_http_error(outcome.error)
        summary = outcome.value
        return JSONResponse(
            {
                "card_id": summary.card_id,
                "name": summary.display_name,
                "balance": summary.balance.format(),
            },
            status_code=201,
        )

    @app.get("/selection")
    async def get_selection() -> JSONResponse:
        return JSONResponse({"selected_card": selection.selected()})

    @app.post("/selection")
    async def select_card(card_id: str = Form(...)) -> JSONResponse:
        try:
            selected = selection.select(card_id, store.card_ids())
        except KeyError as error:
            raise HTTPException(status_code=404, detail=f"Card {card_id} is not registered") from error
        return JSONResponse({"selected_card": selected})

    @app.delete("/selection")
    async def clear_selection() -> JSONResponse:
        selection.clear()
        return JSONResponse({"selected_card": None})

    @app.get("/cards/{card_id}")
    async def card_details(card_id: str) -> JSONResponse:
        return JSONResponse(card_payload(load_ledger(card_id)))

    @app.post("/cards/{card_id}/refresh")
    async def refresh_card(card_id: str) -> JSONResponse:
        load_ledger(card_id)
        try:
            ledger = store.reload(card_id)
        except LedgerError as error:
            raise _as_http_error(error) from error
        return JSONResponse(card_payload(ledger))

    # Mutating handlers stay synchronous inside ``async def``: remote calls block the
    # event loop, so mutations on a card never interleave. Moving them to a thread
    # pool needs a per-card lock first.
    @app.post("/cards/{card_id}/topup")
    async def top_up(
        card_id: str,
        amount: str = Form(...),
        confirmed: bool = Form(False),
    ) -> JSONResponse:
        ledger = load_ledger(card_id)
        value = parse(amount)
        if not confirmed:
            return confirmation_required(TransactionKind.TOP_UP, value)
        return mutation_response(ledger, ledger.top_up(value))

    @app.post("/cards/{card_id}/spend")
    async def spend(
        card_id: str,
        amount: str = Form(...),
        unit_price: Optional[str] = Form(None),
        confirmed: bool = Form(False),
    ) -> JSONResponse:
        ledger = load_ledger(card_id)
        value = parse(amount)
        price = parse(unit_price) if unit_price else None
        if not confirmed:
            return confirmation_required(TransactionKind.SPEND, value)
        return mutation_response(ledger, ledger.spend(value, price))

    @app.post("/cards/{card_id}/set-balance")
    async def set_balance(
        card_id: str,
        amount: str = Form(...),
        confirmed: bool = Form(False),
    ) -> JSONResponse:
        ledger = load_ledger(card_id)
        value = parse(amount)
        if not confirmed:
            return confirmation_required(TransactionKind.MANUAL_SET, value)
        return mutation_response(ledger, ledger.set_balance_directly(value))

    @app.post("/cards/{card_id}/clear-history")
    async def clear_history(card_id: str, confirmed: bool = Form(False)) -> JSONResponse:
        ledger = load_ledger(card_id)
        if not confirmed:
            return JSONResponse(
                {
                    "confirmation_required": True,
                    "prompt": "History will be deleted completely. Are you sure?",
                }
            )
        outcome = ledger.clear_history()
        if not outcome.ok:
            raise _as_http_error(outcome.error)
        LOGGER.info("Cleared %s records from card %s", outcome.value, card_id)
        return JSONResponse({"card_id": card_id, "removed": outcome.value})

    @app.get("/cards/{card_id}/history")
    async def history(card_id: str, page: int = Query(1)) -> JSONResponse:
        """Return one page of history; out-of-range page numbers are clamped."""

        ledger = load_ledger(card_id)
        records = ledger.history_snapshot()
        current = pager.page(records, page)
        LOGGER.debug(
            "History page %s/%s for card %s", current.number, current.total_pages, card_id
        )
        return JSONResponse(
            {
                "card_id": card_id,
                "balance": ledger.current_balance().format(),
                "page": current.number,
                "total_pages": current.total_pages,
                "total_records": current.total_records,
                "has_previous": current.has_previous,
                "has_next": current.has_next,
                "previous_page": pager.previous_page(records, current.number),
                "next_page": pager.next_page(records, current.number),
                "records": [record_view(record, currency) for record in current.records],
            }
        )

    return app
