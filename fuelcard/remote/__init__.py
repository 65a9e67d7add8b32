"""Mini README: Clients for the remote card service.

Exports ``CardApiClient``; settlement and storage code depend on it rather
than on ``requests`` directly.
"""

from .api_client import CardApiClient

__all__ = ["CardApiClient"]
