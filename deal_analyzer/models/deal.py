"""Pydantic schemas for the published deal artifacts."""

from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Number = Union[int, float]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, coerce_numbers_to_str=True)


class RentEstimate(CamelModel):
    rent: Number
    rent_range_low: Optional[Number] = None
    rent_range_high: Optional[Number] = None


class Deal(CamelModel):
    rank: int
    id: str
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    price: Number
    bedrooms: Optional[Number] = None
    bathrooms: Optional[Number] = None
    square_footage: Optional[Number] = None
    year_built: Optional[int] = None
    property_type: Optional[str] = None

    # investment metrics
    est_monthly_rent: Number
    est_annual_rent: Number
    gross_yield: float
    est_monthly_cash_flow: int
    grm: Optional[float] = None
    meets_one_percent_rule: bool

    rent_range_low: Optional[Number] = None
    rent_range_high: Optional[Number] = None

    days_on_market: Optional[int] = None
    listing_date: Optional[str] = None
    primary_photo: Optional[str] = None
    listing_url: Optional[str] = None

    market_id: Optional[str] = None
    market_name: Optional[str] = None


class MarketDescriptor(CamelModel):
    id: str
    name: str


class MarketSummary(CamelModel):
    total_deals: int = 0
    avg_gross_yield: Number = 0
    avg_price: int = 0
    avg_monthly_rent: int = 0
    top_yield: Number = 0
    lowest_price: Number = 0


class MarketOutput(CamelModel):
    market: MarketDescriptor
    last_updated: str
    summary: MarketSummary = Field(default_factory=MarketSummary)
    deals: List[Deal] = Field(default_factory=list)

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
