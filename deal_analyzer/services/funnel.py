"""Funnel strategy for narrowing raw listings down to the top deals.

1. Heuristic filter - a $/sqft rent guess removes obvious non-deals.
2. Candidate selection - cap how many listings get the expensive AVM lookup.
3. Metrics - real yield, cash flow and GRM once rent estimates are attached.
4. Ranking - sort by yield and keep the top deals.

Every stage takes the complete output of the previous one and returns new
shallow-copied records; inputs are never mutated.
"""

from __future__ import annotations

from typing import Dict, List, Sequence

import pandas as pd

from ..config import AnalysisConfig
from ..utils.coerce import to_number, to_positive
from ..utils.logging import get_logger
from .metrics import (
    gross_rent_multiplier,
    gross_yield,
    heuristic_yield,
    meets_one_percent_rule,
    monthly_cash_flow,
    round_half_up,
)
from .output import format_currency

LOGGER = get_logger("services.funnel")

Listing = Dict[str, object]


def _numeric_column(listings: Sequence[Listing], key: str) -> pd.Series:
    values = pd.Series([listing.get(key) for listing in listings], dtype=object)
    return pd.to_numeric(values, errors="coerce").astype(float)


def apply_heuristic_filter(listings: Sequence[Listing], analysis: AnalysisConfig) -> List[Listing]:
    """Stage 1: keep listings whose $/sqft yield clears ``min_yield_threshold``."""

    LOGGER.info("stage=heuristic_filter listings=%d", len(listings))
    if not listings:
        return []

    price = _numeric_column(listings, "price")
    sqft = _numeric_column(listings, "squareFootage")
    usable = (price > 0) & (sqft > 0)

    est_annual_rent = sqft * analysis.heuristic_rent_per_sqft * 12
    est_yield = (est_annual_rent / price.where(usable)) * 100
    keep = usable & (est_yield >= analysis.min_yield_threshold)

    filtered = [dict(listings[i]) for i in keep[keep].index]
    LOGGER.info(
        "stage=heuristic_filter passed=%d eliminated=%d missing_data=%d",
        len(filtered),
        len(listings) - len(filtered),
        int((~usable).sum()),
    )
    return filtered


def select_top_candidates(listings: Sequence[Listing], analysis: AnalysisConfig) -> List[Listing]:
    """Stage 2: attach ``heuristicYield``, sort descending and cap the candidate count."""

    cap = analysis.max_properties_to_analyze
    LOGGER.info("stage=select_candidates cap=%d", cap)

    with_yield = [
        {
            **listing,
            "heuristicYield": heuristic_yield(
                to_number(listing.get("squareFootage")) or 0,
                to_number(listing.get("price")),
                analysis,
            ),
        }
        for listing in listings
    ]
    # sorted() is stable, so equal yields keep their fetch order
    ranked = sorted(with_yield, key=lambda item: item["heuristicYield"], reverse=True)
    candidates = ranked[:cap]

    LOGGER.info("stage=select_candidates selected=%d", len(candidates))
    if candidates:
        LOGGER.info(
            "heuristic_yield_range low=%.1f%% high=%.1f%%",
            candidates[-1]["heuristicYield"],
            candidates[0]["heuristicYield"],
        )
    return candidates


def calculate_investment_metrics(listings: Sequence[Listing], analysis: AnalysisConfig) -> List[Listing]:
    """Stage 3: compute yield, cash flow, GRM and the 1% rule from the AVM rent."""

    LOGGER.info("stage=investment_metrics listings=%d", len(listings))
    results: List[Listing] = []
    for listing in listings:
        monthly_rent = to_positive(listing.get("rentEstimate"))
        price = to_positive(listing.get("price"))
        if monthly_rent is None or price is None:
            LOGGER.debug("skipping_unenriched_listing id=%s", listing.get("id"))
            continue

        annual_rent = monthly_rent * 12
        grm = gross_rent_multiplier(price, annual_rent)
        results.append(
            {
                **listing,
                "price": price,
                "rentEstimate": monthly_rent,
                "grossYield": round_half_up(gross_yield(annual_rent, price), 1),
                "monthlyCashFlow": int(round_half_up(monthly_cash_flow(monthly_rent, price, analysis))),
                "annualRent": annual_rent,
                "grm": round_half_up(grm, 1) if grm is not None else None,
                "meetsOnePercentRule": meets_one_percent_rule(monthly_rent, price),
            }
        )
    return results


def rank_and_select_top_deals(listings: Sequence[Listing], analysis: AnalysisConfig) -> List[Listing]:
    """Stage 4: order by gross yield (ties keep input order) and keep ``top_deals_count``."""

    count = analysis.top_deals_count
    LOGGER.info("stage=rank_deals top=%d", count)

    ranked = sorted(listings, key=lambda item: item["grossYield"], reverse=True)
    top_deals = [dict(listing) for listing in ranked[:count]]

    if top_deals:
        best, last = top_deals[0], top_deals[-1]
        LOGGER.info("top_deal yield=%s%% price=%s", best["grossYield"], format_currency(best["price"]))
        LOGGER.info("deal_%d yield=%s%% price=%s", len(top_deals), last["grossYield"], format_currency(last["price"]))
    return top_deals


__all__ = [
    "apply_heuristic_filter",
    "calculate_investment_metrics",
    "rank_and_select_top_deals",
    "select_top_candidates",
]
