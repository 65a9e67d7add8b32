"""Mini README: Wiring settings into ready-to-use ledger services.

Structure:
    * FuelCardServices - bundle of store, selection pointer, pager and settings.
    * build_services - picks the settlement strategy and backend from settings.

Interfaces call ``build_services`` once. Tests pass explicit key-value stores
or API clients to avoid touching disk or network.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .configuration import FuelCardSettings, get_settings
from .ledger.card_ledger import Clock
from .ledger.money import Money
from .ledger.pager import HistoryPager
from .logging_utils import get_logger
from .remote.api_client import CardApiClient
from .settlement import REGISTRY
from .storage.backends import LedgerBackend, LocalBackend, RemoteBackend
from .storage.key_value import JsonFileKeyValueStore, KeyValueStore
from .storage.ledger_store import LedgerStore
from .storage.selection import CardSelection

LOGGER = get_logger(__name__)


@dataclass(slots=True)
class FuelCardServices:
    settings: FuelCardSettings
    store: LedgerStore
    selection: CardSelection
    pager: HistoryPager


def build_services(
    settings: Optional[FuelCardSettings] = None,
    *,
    key_value: Optional[KeyValueStore] = None,
    api_client: Optional[CardApiClient] = None,
    clock: Optional[Clock] = None,
) -> FuelCardServices:
    """Create the ledger store for the configured settlement mode."""

    settings = settings or get_settings()
    key_value = key_value or JsonFileKeyValueStore(settings.state_file)
    default_price = Money.parse(settings.default_fuel_price)

    backend: LedgerBackend
    if settings.settlement_mode == "remote":
        if api_client is None:
            if not settings.api_url:
                raise ValueError("FUELCARD_API_URL must be set for the remote settlement mode")
            api_client = CardApiClient(
                settings.api_url,
                timeout=settings.request_timeout,
                max_retries=settings.request_retries,
            )
        strategy = REGISTRY.create("remote", client=api_client)
        backend = RemoteBackend(
            api_client,
            card_ids=list(settings.cards.keys()),
            default_unit_price=default_price,
        )
    else:
        strategy = REGISTRY.create("local")
        backend = LocalBackend(
            key_value,
            default_cards=settings.cards,
            default_unit_price=default_price,
        )

    LOGGER.info("Ledger services ready in %s mode", settings.settlement_mode)
    return FuelCardServices(
        settings=settings,
        store=LedgerStore(backend, strategy, clock=clock),
        selection=CardSelection(key_value),
        pager=HistoryPager(settings.page_size),
    )
