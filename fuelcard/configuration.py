"""Mini README: Centralised configuration for the fuel card tracker.

Structure:
    * FuelCardSettings - Pydantic model describing runtime configuration.
    * get_settings - cached accessor for environment-aware settings.

Usage:
    Import ``get_settings`` to read ``FUELCARD_*`` environment variables (or a
    local ``.env`` file). The settings choose between the local-only ledger and
    the server-reconciled ledger via ``settlement_mode`` and carry the paging
    and display defaults used by the interfaces.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional, Union

from pydantic import Field, validator
from pydantic_settings import BaseSettings

from .ledger.errors import LedgerError
from .ledger.money import Money
from .logging_utils import level_for_environment

SETTLEMENT_MODES = ("local", "remote")


class FuelCardSettings(BaseSettings):
    """Runtime configuration for the fuel card tracker."""

    environment: str = Field(
        "development",
        description="Environment label controlling debug toggles and logging levels.",
    )
    log_level: Optional[str] = Field(
        None,
        description="Logging level name; defaults to a level derived from the environment.",
    )
    data_directory: Path = Field(
        Path("data"),
        description="Directory holding the local key-value state file.",
    )
    state_file_name: str = Field(
        "fuelcard_state.json",
        description="File name of the JSON key-value store inside the data directory.",
    )
    interface_host: str = Field(
        "0.0.0.0",
        description="Network interface for the HTTP service to bind to.",
    )
    interface_port: int = Field(
        8000,
        description="Port the HTTP service exposes.",
        ge=1,
        le=65535,
    )
    settlement_mode: str = Field(
        "local",
        description="Either 'local' (on-device arithmetic) or 'remote' (server-settled).",
    )
    api_url: Optional[str] = Field(
        None,
        description="Base URL of the card service; required for the remote mode.",
    )
    request_timeout: float = Field(10.0, description="HTTP timeout in seconds.", gt=0)
    request_retries: int = Field(
        2,
        description="Transport retries applied to idempotent GET requests only.",
        ge=0,
    )
    page_size: int = Field(20, description="Records per history page.", ge=1)
    recent_transactions: int = Field(
        10, description="Records shown in the recent transactions view.", ge=1
    )
    default_fuel_price: str = Field(
        "2.40",
        description="Unit price per litre used when no latest price is known.",
    )
    currency_symbol: str = Field("zł", description="Suffix used when displaying money.")
    cards: Dict[str, str] = Field(
        default_factory=lambda: {"1": "E100", "2": "Amic"},
        description="Built-in cards for the local mode, keyed by card identifier.",
    )

    class Config:
        env_prefix = "FUELCARD_"
        env_file = ".env"
        case_sensitive = False

    @validator("data_directory", pre=True)
    def _expand_path(cls, value: Optional[str | Path]) -> Path:
        """Ensure configured paths expand user directories and exist."""

        path = Path(value).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    @validator("settlement_mode", pre=True)
    def _normalise_mode(cls, value: str) -> str:
        normalised = str(value).strip().lower()
        if normalised not in SETTLEMENT_MODES:
            raise ValueError(
                f"settlement_mode must be one of {', '.join(SETTLEMENT_MODES)}, got '{value}'"
            )
        return normalised

    @validator("default_fuel_price")
    def _check_fuel_price(cls, value: str) -> str:
        """Accept only prices ``Money.parse`` can read: positive, two decimals at most."""

        try:
            price = Money.parse(value)
        except LedgerError as error:
            raise ValueError(f"default_fuel_price '{value}' is invalid: {error}") from error
        if not price.is_positive():
            raise ValueError("default_fuel_price must be a positive number")
        return value.strip()

    @property
    def effective_log_level(self) -> Union[int, str]:
        return self.log_level or level_for_environment(self.environment)

    @property
    def state_file(self) -> Path:
        """Location of the JSON key-value store."""

        return self.data_directory / self.state_file_name


@lru_cache()
def get_settings() -> FuelCardSettings:
    """Return cached settings, ensuring consistent configuration across modules."""

    return FuelCardSettings()
