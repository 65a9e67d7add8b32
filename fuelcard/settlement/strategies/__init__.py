"""Mini README: Concrete settlement strategies.

Each module subclasses ``SettlementStrategy`` and calls ``REGISTRY.register``
on import, so importing this package makes every built-in mode available.
"""

from .local_strategy import LocalStrategy
from .remote_strategy import RemoteStrategy

__all__ = ["LocalStrategy", "RemoteStrategy"]
