"""Mini README: Settlement subsystem package initialiser.

Re-exports the strategy interface, the mode registry, and the built-in
strategies. ``base`` holds the abstract contract, ``registry`` maps mode
names to classes, and ``strategies`` contains the local and remote variants.
"""

from .base import SettlementStrategy
from .registry import REGISTRY, SettlementRegistry
from . import strategies  # noqa: F401  # ensure built-in strategies register on import
from .strategies import LocalStrategy, RemoteStrategy

__all__ = [
    "LocalStrategy",
    "REGISTRY",
    "RemoteStrategy",
    "SettlementRegistry",
    "SettlementStrategy",
]
