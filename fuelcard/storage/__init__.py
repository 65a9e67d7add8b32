"""Mini README: Persistence for card ledgers.

Groups the key-value stores used on the device, the local and remote ledger
backends, the ``LedgerStore`` that hands out one ``CardLedger`` per card, and
the selected-card pointer.
"""

from .backends import CardSnapshot, CardSummary, LedgerBackend, LocalBackend, RemoteBackend
from .key_value import InMemoryKeyValueStore, JsonFileKeyValueStore, KeyValueStore
from .ledger_store import LedgerStore
from .selection import CardSelection

__all__ = [
    "CardSelection",
    "CardSnapshot",
    "CardSummary",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "LedgerBackend",
    "LedgerStore",
    "LocalBackend",
    "RemoteBackend",
]
