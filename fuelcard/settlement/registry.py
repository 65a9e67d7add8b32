"""Mini README: Registry mapping settlement mode names to strategy classes.

Structure:
    * SettlementRegistry - registration, capability listing and checked
      instantiation of ``SettlementStrategy`` implementations.

Strategies register themselves on import, so configuration only needs the
mode name (``local`` or ``remote``) to build the right one. ``create`` checks
the supplied options against the strategy constructor, so a remote strategy
built without its ``client`` fails with a message naming the mode.
"""

from __future__ import annotations

import inspect
from typing import Any, Dict, Iterable, List, Type

from .base import SettlementStrategy
from ..logging_utils import get_logger

LOGGER = get_logger(__name__)


def _constructor_options(strategy: Type[SettlementStrategy]) -> Dict[str, bool]:
    """Return keyword options of the strategy constructor mapped to "required"."""

    options: Dict[str, bool] = {}
    for name, parameter in inspect.signature(strategy.__init__).parameters.items():
        if name == "self" or parameter.kind in (
            inspect.Parameter.VAR_POSITIONAL,
            inspect.Parameter.VAR_KEYWORD,
        ):
            continue
        options[name] = parameter.default is inspect.Parameter.empty
    return options


class SettlementRegistry:
    """Map settlement mode names to strategy classes."""

    def __init__(self) -> None:
        self._strategies: Dict[str, Type[SettlementStrategy]] = {}

    def register(self, strategy: Type[SettlementStrategy]) -> None:
        identifier = strategy.mode_name.lower()
        if identifier in self._strategies and self._strategies[identifier] is not strategy:
            raise ValueError(f"Settlement mode '{identifier}' is already registered")
        LOGGER.debug("Registering settlement strategy '%s'", identifier)
        self._strategies[identifier] = strategy

    def available_strategies(self) -> Iterable[str]:
        """Return mode identifiers sorted for display."""

        return sorted(self._strategies.keys())

    def capabilities(self) -> Dict[str, Dict[str, bool]]:
        """Describe which local-only operations each registered mode offers."""

        return {
            identifier: {
                "supports_manual_set": self._strategies[identifier].supports_manual_set,
                "supports_clear_history": self._strategies[identifier].supports_clear_history,
            }
            for identifier in self.available_strategies()
        }

    def create(self, identifier: str, **options: Any) -> SettlementStrategy:
        """Instantiate the strategy for ``identifier`` after checking ``options``.

        Raises ``KeyError`` for unknown modes and ``TypeError`` when options
        are missing or not accepted by the strategy.
        """

        strategy_cls = self._strategies.get(identifier.lower())
        if not strategy_cls:
            raise KeyError(f"Unknown settlement mode '{identifier}'")
        accepted = _constructor_options(strategy_cls)
        unexpected: List[str] = sorted(set(options) - set(accepted))
        missing: List[str] = sorted(
            name for name, required in accepted.items() if required and name not in options
        )
        if unexpected or missing:
            problems = []
            if missing:
                problems.append(f"missing {', '.join(missing)}")
            if unexpected:
                problems.append(f"unexpected {', '.join(unexpected)}")
            raise TypeError(f"Settlement mode '{identifier}': {'; '.join(problems)}")
        LOGGER.info("Creating settlement strategy '%s'", identifier)
        return strategy_cls(**options)


REGISTRY = SettlementRegistry()
