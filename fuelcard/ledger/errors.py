"""Mini README: Typed failures raised by the card ledger and its collaborators.

Structure:
    * LedgerError - base class; every failure a ledger operation can report.
    * InvalidAmount, InsufficientBalance - validation failures, no state change.
    * NetworkError, ServerRejected - remote settlement failures.
    * UnsupportedOperation - capability not offered by the active strategy.
    * ArithmeticOverflow - money value outside the representable range.
    * PersistenceError - local storage could not be read or written.

Interfaces render ``str(error)`` to users, so messages are written for
humans rather than for logs.
"""

from __future__ import annotations

from typing import Optional


class LedgerError(Exception):
    """Base class for ledger failures."""


class InvalidAmount(LedgerError, ValueError):
    """Amount is non-numeric, empty, too precise or outside the allowed sign."""


class InsufficientBalance(LedgerError):
    """Spend exceeds the balance known locally or reported by the server."""


class NetworkError(LedgerError):
    """The card service could not be reached or returned an unreadable response."""


class ServerRejected(LedgerError):
    """The card service returned a structured error."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class UnsupportedOperation(LedgerError):
    """Operation is not available under the active settlement strategy."""


class ArithmeticOverflow(LedgerError, ArithmeticError):
    """Money arithmetic left the supported range."""


class PersistenceError(LedgerError):
    """Local storage failed; the in-memory ledger was left untouched."""
