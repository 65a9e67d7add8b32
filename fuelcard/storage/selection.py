"""Mini README: Persisted pointer to the active card.

Structure:
    * CardSelection - reads, sets and clears the selected card identifier.

The pointer is a single small key in the local key-value store, kept even in
the remote mode so the chosen card survives restarts.
"""

from __future__ import annotations

from typing import Iterable, Optional

from ..logging_utils import get_logger
from .key_value import KeyValueStore

LOGGER = get_logger(__name__)

SELECTED_CARD_KEY = "@fuelcard_selected_card"


class CardSelection:
    """Remember which card the user is working with."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def selected(self) -> Optional[str]:
        value = self.store.get(SELECTED_CARD_KEY)
        return value or None

    def select(self, card_id: str, known_cards: Iterable[str]) -> str:
        card_id = str(card_id).strip()
        if card_id not in set(known_cards):
            raise KeyError(f"Card {card_id} is not registered")
        self.store.set(SELECTED_CARD_KEY, card_id)
        LOGGER.info("Selected card %s", card_id)
        return card_id

    def clear(self) -> None:
        self.store.remove(SELECTED_CARD_KEY)
        LOGGER.info("Cleared card selection")
