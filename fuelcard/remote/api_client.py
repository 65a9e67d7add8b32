"""Mini README: HTTP client for the remote card service.

Structure:
    * CardApiClient - thin wrapper over ``requests.Session`` exposing one method
      per endpoint and normalising failures into ledger errors.

Only GET requests are retried at the transport level. Spends and top-ups are
sent once; repeating them is a user decision taken in the interface.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..ledger.errors import InsufficientBalance, NetworkError, ServerRejected
from ..logging_utils import get_logger

LOGGER = get_logger(__name__)

_INSUFFICIENT_MARKERS = ("insufficient", "not enough")


class CardApiClient:
    """Client for the ``/cards`` JSON API."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        max_retries: int = 2,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or self._create_session(max_retries)

    @staticmethod
    def _create_session(max_retries: int) -> requests.Session:
        session = requests.Session()
        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=0.5,
            status_forcelist=[502, 503, 504],
            allowed_methods=["GET"],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        return session

    def card_info(self, card_id: str) -> Dict[str, Any]:
        """``GET /cards/{id}/info`` -> ``{card_name, balance}``."""

        return self._request("GET", f"/cards/{card_id}/info")

    def latest_fuel_price(self, card_id: str) -> Dict[str, Any]:
        """``GET /cards/{id}/latest-fuel-price`` -> ``{latest_fuel_price}``."""

        return self._request("GET", f"/cards/{card_id}/latest-fuel-price")

    def transactions(self, card_id: str) -> List[Dict[str, Any]]:
        """``GET /cards/{id}/transactions`` -> list of transaction payloads."""

        payload = self._request("GET", f"/cards/{card_id}/transactions")
        transactions = payload.get("transactions") if isinstance(payload, dict) else None
        if not isinstance(transactions, list):
            raise NetworkError("Card service returned a malformed transaction list.")
        return transactions

    def spend(self, card_id: str, amount: str, fuel_price: Optional[str]) -> Dict[str, Any]:
        """``POST /cards/{id}/spend`` -> ``{remaining_balance, liters}``."""

        body: Dict[str, Any] = {"amount": float(amount)}
        if fuel_price is not None:
            body["fuel_price"] = float(fuel_price)
        return self._request("POST", f"/cards/{card_id}/spend", body)

    def top_up(self, card_id: str, amount: str) -> Dict[str, Any]:
        """``POST /cards/{id}/topup`` -> ``{balance}``."""

        return self._request("POST", f"/cards/{card_id}/topup", {"amount": float(amount)})

    def add_card(self, name: str, balance: str) -> Dict[str, Any]:
        """``POST /cards/add`` -> created card."""

        return self._request("POST", "/cards/add", {"name": name, "balance": float(balance)})

    def _request(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        LOGGER.debug("%s %s body=%s", method, url, body)
        try:
            response = self.session.request(method, url, json=body, timeout=self.timeout)
        except requests.RequestException as error:
            LOGGER.error("Card service unreachable for %s %s: %s", method, url, error)
            raise NetworkError("Can not connect to the server.") from error

        try:
            data = response.json()
        except (ValueError, json.JSONDecodeError):
            data = None

        if not response.ok:
            self._raise_for_error(response.status_code, data)
        if data is None:
            LOGGER.error("Card service returned non-JSON body for %s %s", method, url)
            raise NetworkError("Card service returned an unreadable response.")
        return data

    @staticmethod
    def _raise_for_error(status_code: int, data: Any) -> None:
        message = data.get("error") if isinstance(data, dict) else None
        if not message:
            LOGGER.warning("Card service transport failure: HTTP %s", status_code)
            raise NetworkError(f"Card service request failed with HTTP {status_code}.")
        LOGGER.warning("Card service rejected request: HTTP %s %s", status_code, message)
        if any(marker in str(message).lower() for marker in _INSUFFICIENT_MARKERS):
            raise InsufficientBalance(str(message))
        raise ServerRejected(str(message), status_code=status_code)
