"""Immutable configuration for the deal analyzer.

Defaults describe the Central Texas markets the job was built for. A JSON file
can replace any section, and a handful of environment variables override the
values most often tweaked in CI.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .utils.logging import get_logger

LOGGER = get_logger("config")

API_KEY_ENV = "RENTCAST_API_KEY"


class MissingCredentialError(RuntimeError):
    """Raised when the RentCast API key is not available."""


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class ApiConfig(_Frozen):
    base_url: str = "https://api.rentcast.io/v1"
    # milliseconds between requests, to respect rate limits
    request_delay_ms: int = Field(250, ge=0)
    timeout_seconds: float = Field(30.0, gt=0)

    @property
    def request_delay(self) -> float:
        return self.request_delay_ms / 1000.0


class CityConfig(_Frozen):
    city: str
    state: str


class MarketConfig(_Frozen):
    id: str
    name: str
    cities: List[CityConfig]
    # reference only; the listings endpoint is queried by city
    zip_codes: List[str] = Field(default_factory=list)


class FilterConfig(_Frozen):
    min_price: int = 100_000
    max_price: int = 450_000
    property_types: List[str] = Field(default_factory=lambda: ["Single Family", "Multi-Family"])
    status: str = "Active"
    min_bedrooms: int = 2
    limit_per_city: int = 500


class AnalysisConfig(_Frozen):
    min_yield_threshold: float = 6.0
    heuristic_rent_per_sqft: float = 1.00
    max_properties_to_analyze: int = Field(50, ge=0)
    top_deals_count: int = Field(10, ge=0)
    property_tax_rate: float = 0.024
    vacancy_rate: float = 0.08
    management_fee: float = 0.10


class OutputConfig(_Frozen):
    directory: Path = Path("./data")
    files: Dict[str, str] = Field(
        default_factory=lambda: {
            "temple-belton": "temple-belton-deals.json",
            "harker-heights": "harker-heights-deals.json",
            "killeen": "killeen-deals.json",
        }
    )

    def filename_for(self, market_id: str) -> str:
        return self.files.get(market_id) or f"{market_id}-deals.json"

    def path_for(self, market_id: str) -> Path:
        return Path(self.directory) / self.filename_for(market_id)


DEFAULT_MARKETS: List[MarketConfig] = [
    MarketConfig(
        id="temple-belton",
        name="Temple / Belton",
        cities=[CityConfig(city="Temple", state="TX"), CityConfig(city="Belton", state="TX")],
        zip_codes=["76501", "76502", "76503", "76504", "76513"],
    ),
    MarketConfig(
        id="harker-heights",
        name="Harker Heights",
        cities=[CityConfig(city="Harker Heights", state="TX")],
        zip_codes=["76548"],
    ),
    MarketConfig(
        id="killeen",
        name="Killeen",
        cities=[CityConfig(city="Killeen", state="TX")],
        zip_codes=["76540", "76541", "76542", "76543", "76549"],
    ),
]


class AppConfig(_Frozen):
    api: ApiConfig = Field(default_factory=ApiConfig)
    markets: List[MarketConfig] = Field(default_factory=lambda: list(DEFAULT_MARKETS))
    filters: FilterConfig = Field(default_factory=FilterConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    def market(self, market_id: str) -> MarketConfig:
        for market in self.markets:
            if market.id == market_id:
                return market
        raise KeyError(f"Unknown market: {market_id}")


def load_config(path: Optional[Union[str, Path]] = None) -> AppConfig:
    """Build the run configuration from defaults, an optional JSON file and env overrides."""

    data: Dict = {}
    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        LOGGER.debug("loading_config path=%s", config_path)
        data = json.loads(config_path.read_text(encoding="utf-8"))

    config = AppConfig.model_validate(data)
    return _apply_env_overrides(config)


def _apply_env_overrides(config: AppConfig) -> AppConfig:
    api_updates: Dict = {}
    base_url = os.getenv("RENTCAST_BASE_URL")
    if base_url:
        api_updates["base_url"] = base_url
    delay = os.getenv("RENTCAST_REQUEST_DELAY_MS")
    if delay:
        api_updates["request_delay_ms"] = int(delay)

    updates: Dict = {}
    if api_updates:
        updates["api"] = ApiConfig.model_validate({**config.api.model_dump(), **api_updates})
    output_dir = os.getenv("DEAL_OUTPUT_DIR")
    if output_dir:
        updates["output"] = config.output.model_copy(update={"directory": Path(output_dir)})
    if not updates:
        return config
    return config.model_copy(update=updates)


def get_api_key() -> str:
    api_key = (os.getenv(API_KEY_ENV) or "").strip()
    if not api_key:
        raise MissingCredentialError(f"{API_KEY_ENV} environment variable is not set")
    return api_key


__all__ = [
    "API_KEY_ENV",
    "AnalysisConfig",
    "ApiConfig",
    "AppConfig",
    "CityConfig",
    "DEFAULT_MARKETS",
    "FilterConfig",
    "MarketConfig",
    "MissingCredentialError",
    "OutputConfig",
    "get_api_key",
    "load_config",
]
