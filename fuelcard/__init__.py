"""Mini README: Core package initializer for the fuel card tracker.

The package tracks balances of prepaid fuel cards. ``ledger`` holds the
balance rules, ``settlement`` decides whether arithmetic happens locally or on
the card service, ``storage`` loads and saves ledgers, and ``interface``
exposes them over HTTP. Only the logging helper is re-exported here so
importing the package stays cheap.
"""

from .logging_utils import get_logger

__all__ = ["get_logger"]
