"""Assemble ranked listings into the published per-market artifact."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional, Sequence

from ..config import MarketConfig
from ..models.deal import Deal, MarketDescriptor, MarketOutput, MarketSummary
from ..utils.coerce import first_present
from .metrics import round_half_up


def format_deal(listing: Dict[str, object], rank: int) -> Deal:
    photos = listing.get("photos") or []
    return Deal(
        rank=rank,
        id=first_present(listing.get("id"), listing.get("listingId"))
        or f"{listing.get('addressLine1')}-{listing.get('zipCode')}",
        address=first_present(listing.get("formattedAddress"), listing.get("addressLine1")),
        city=listing.get("city"),
        state=listing.get("state"),
        zip_code=listing.get("zipCode"),
        price=listing["price"],
        bedrooms=listing.get("bedrooms"),
        bathrooms=listing.get("bathrooms"),
        square_footage=listing.get("squareFootage"),
        year_built=listing.get("yearBuilt"),
        property_type=listing.get("propertyType"),
        est_monthly_rent=listing["rentEstimate"],
        est_annual_rent=listing["annualRent"],
        gross_yield=listing["grossYield"],
        est_monthly_cash_flow=listing["monthlyCashFlow"],
        grm=listing.get("grm"),
        meets_one_percent_rule=listing["meetsOnePercentRule"],
        rent_range_low=listing.get("rentRangeLow"),
        rent_range_high=listing.get("rentRangeHigh"),
        days_on_market=listing.get("daysOnMarket"),
        listing_date=listing.get("listingDate"),
        primary_photo=first_present(listing.get("primaryPhoto"), photos[0] if photos else None),
        listing_url=listing.get("listingUrl") or None,
        market_id=listing.get("marketId"),
        market_name=listing.get("marketName"),
    )


def build_market_output(
    deals: Sequence[Dict[str, object]],
    market: MarketConfig,
    now: Optional[datetime] = None,
) -> MarketOutput:
    """Wrap ranked deals with summary statistics.

    ``deals`` must already be sorted and truncated; ranks follow sequence order.
    An empty sequence produces an all-zero summary rather than an error.
    """

    formatted = [format_deal(deal, index + 1) for index, deal in enumerate(deals)]

    summary = MarketSummary()
    if formatted:
        summary = MarketSummary(
            total_deals=len(formatted),
            avg_gross_yield=round_half_up(_mean(deal.gross_yield for deal in formatted), 1),
            avg_price=int(round_half_up(_mean(deal.price for deal in formatted))),
            avg_monthly_rent=int(round_half_up(_mean(deal.est_monthly_rent for deal in formatted))),
            top_yield=formatted[0].gross_yield,
            lowest_price=min(deal.price for deal in formatted),
        )

    return MarketOutput(
        market=MarketDescriptor(id=market.id, name=market.name),
        last_updated=iso_timestamp(now),
        summary=summary,
        deals=formatted,
    )


def _mean(values: Iterable[float]) -> float:
    # correctly rounded sum so averages land on the right side of .x5
    items = list(values)
    return math.fsum(items) / len(items)


def iso_timestamp(now: Optional[datetime] = None) -> str:
    """UTC ISO-8601 with millisecond precision and a trailing ``Z``."""

    moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_currency(value) -> str:
    try:
        return f"${float(value):,.0f}"
    except (TypeError, ValueError):
        return str(value)


__all__ = ["build_market_output", "format_currency", "format_deal", "iso_timestamp"]
