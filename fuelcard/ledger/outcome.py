"""Mini README: Success-or-failure result returned by ledger operations.

``Outcome`` lets interfaces branch on ``ok`` instead of wrapping every call in
``try``/``except``. Callers that prefer exceptions use ``unwrap``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from .errors import LedgerError

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Outcome(Generic[T]):
    """Either a value or a typed ``LedgerError``."""

    value: Optional[T] = None
    error: Optional[LedgerError] = None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: LedgerError) -> "Outcome[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value or raise the captured error."""

        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
