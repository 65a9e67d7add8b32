"""Mini README: User-facing interfaces for the fuel card tracker.

Exports the FastAPI application factory. The terminal interface lives in the
top-level ``fuelcard_cli`` script and shares the same ledger services.
"""

from .web_app import create_application

__all__ = ["create_application"]
