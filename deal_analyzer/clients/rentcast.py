"""RentCast API client for sale listings and AVM rent estimates.

Calls are strictly sequential. Every request is counted on the run's
``CallCounter`` and followed by the configured pause, whether it succeeded
or not. Failures are logged and turned into empty results; nothing is retried.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

import requests

from ..config import ApiConfig, FilterConfig, MarketConfig
from ..models.deal import RentEstimate
from ..utils.coerce import first_present, to_number, to_positive
from ..utils.logging import get_logger

LOGGER = get_logger("clients.rentcast")

DEFAULT_BEDROOMS = 3
DEFAULT_BATHROOMS = 2
DEFAULT_SQUARE_FOOTAGE = 1500
AVM_PROPERTY_TYPE = "Single Family"

ProgressCallback = Callable[[int, int], None]


@dataclass
class CallCounter:
    """Number of API requests issued during one run."""

    count: int = 0

    def increment(self) -> int:
        self.count += 1
        return self.count

    def reset(self) -> None:
        self.count = 0


class RentCastClient:
    def __init__(
        self,
        api_key: str,
        api: ApiConfig,
        filters: FilterConfig,
        counter: Optional[CallCounter] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.api = api
        self.filters = filters
        self.counter = counter if counter is not None else CallCounter()
        self.base_url = api.base_url.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json", "X-Api-Key": api_key})
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Raw endpoints
    def get_listings(self, city: str, state: str) -> List[Dict]:
        """Active sale listings for one city, or ``[]`` on any failure."""

        params = {
            "city": city,
            "state": state,
            "status": self.filters.status,
            "propertyType": "|".join(self.filters.property_types),
            "price": f"{self.filters.min_price}:{self.filters.max_price}",
            "bedrooms": f"{self.filters.min_bedrooms}:*",
            "limit": self.filters.limit_per_city,
        }
        LOGGER.info("fetching_listings city=%s state=%s", city, state)
        try:
            payload = self._get("/listings/sale", params)
        except requests.HTTPError as exc:
            response = exc.response
            LOGGER.error(
                "listings_error city=%s status=%s body=%s",
                city,
                getattr(response, "status_code", None),
                getattr(response, "text", ""),
            )
            return []
        except (requests.RequestException, ValueError) as exc:
            LOGGER.error("listings_error city=%s error=%s", city, exc)
            return []

        if not isinstance(payload, list):
            LOGGER.error("listings_error city=%s error=unexpected payload type %s", city, type(payload).__name__)
            return []
        LOGGER.info("fetched_listings city=%s count=%d", city, len(payload))
        return payload

    def get_rent_estimate(
        self,
        address: str,
        bedrooms=None,
        bathrooms=None,
        square_footage=None,
    ) -> Optional[RentEstimate]:
        """AVM rent for one address; ``None`` when unavailable or the rent is not numeric."""

        params = {
            "address": address,
            "propertyType": AVM_PROPERTY_TYPE,
            "bedrooms": bedrooms or DEFAULT_BEDROOMS,
            "bathrooms": bathrooms or DEFAULT_BATHROOMS,
            "squareFootage": square_footage or DEFAULT_SQUARE_FOOTAGE,
        }
        try:
            payload = self._get("/avm/rent", params)
        except requests.HTTPError as exc:
            status = getattr(exc.response, "status_code", None)
            # plenty of addresses have no AVM data; a 404 is expected noise
            if status == 404:
                LOGGER.debug("rent_estimate_missing address=%s", address)
            else:
                LOGGER.warning("rent_estimate_error address=%s status=%s error=%s", address, status, exc)
            return None
        except (requests.RequestException, ValueError) as exc:
            LOGGER.warning("rent_estimate_error address=%s error=%s", address, exc)
            return None

        if not isinstance(payload, dict):
            return None
        raw_rent = payload.get("rent")
        rent = to_positive(raw_rent)
        if rent is None or isinstance(raw_rent, str):
            return None
        return RentEstimate(
            rent=rent,
            rent_range_low=to_number(payload.get("rentRangeLow")),
            rent_range_high=to_number(payload.get("rentRangeHigh")),
        )

    # ------------------------------------------------------------------
    # Market-level helpers
    def get_listings_for_market(self, market: MarketConfig) -> List[Dict]:
        LOGGER.info("fetching_market market=%s cities=%d", market.id, len(market.cities))
        all_listings: List[Dict] = []
        for location in market.cities:
            for listing in self.get_listings(location.city, location.state):
                all_listings.append({**listing, "marketId": market.id, "marketName": market.name})
        LOGGER.info("market_listings market=%s total=%d", market.id, len(all_listings))
        return all_listings

    def enrich_with_rent_estimates(
        self,
        properties: Sequence[Dict],
        progress_callback: Optional[ProgressCallback] = None,
    ) -> List[Dict]:
        """Attach AVM rent to each property; properties without an estimate are dropped."""

        total = len(properties)
        LOGGER.info("fetching_rent_estimates count=%d", total)
        enriched: List[Dict] = []
        for index, prop in enumerate(properties, start=1):
            estimate = self.get_rent_estimate(
                full_address(prop),
                prop.get("bedrooms"),
                prop.get("bathrooms"),
                prop.get("squareFootage"),
            )
            if estimate is not None:
                enriched.append(
                    {
                        **prop,
                        "rentEstimate": estimate.rent,
                        "rentRangeLow": estimate.rent_range_low,
                        "rentRangeHigh": estimate.rent_range_high,
                    }
                )

            if progress_callback:
                progress_callback(index, total)
            elif index % 10 == 0:
                LOGGER.info("rent_estimates_progress done=%d total=%d", index, total)

        LOGGER.info("rent_estimates_complete enriched=%d requested=%d", len(enriched), total)
        return enriched

    # ------------------------------------------------------------------
    def _get(self, path: str, params: Dict) -> object:
        self.counter.increment()
        try:
            response = self.session.get(f"{self.base_url}{path}", params=params, timeout=self.api.timeout_seconds)
            response.raise_for_status()
            return response.json()
        finally:
            self._sleep(self.api.request_delay)


def full_address(prop: Dict) -> str:
    parts = [
        first_present(prop.get("formattedAddress"), prop.get("addressLine1")),
        prop.get("city"),
        prop.get("state"),
        prop.get("zipCode"),
    ]
    return ", ".join(str(part) for part in parts if part)


__all__ = ["CallCounter", "RentCastClient", "full_address"]
