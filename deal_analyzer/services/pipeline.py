"""Drive the funnel for each configured market and persist the results."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

import pandas as pd

from ..clients.rentcast import RentCastClient
from ..config import AppConfig, MarketConfig
from ..models.deal import MarketOutput
from ..utils.io import persist_market_output
from ..utils.logging import get_logger
from .funnel import (
    apply_heuristic_filter,
    calculate_investment_metrics,
    rank_and_select_top_deals,
    select_top_candidates,
)
from .output import build_market_output

LOGGER = get_logger("services.pipeline")


@dataclass
class MarketResult:
    market_id: str
    market_name: str
    deals: int
    top_yield: float
    path: Path
    kept_existing: bool = False


@dataclass
class RunReport:
    markets: List[MarketResult] = field(default_factory=list)
    duration_seconds: float = 0.0
    api_calls: int = 0

    def summary_frame(self) -> pd.DataFrame:
        rows = [
            {
                "market": result.market_name,
                "deals": result.deals,
                "top_yield": result.top_yield,
                "kept_existing": result.kept_existing,
                "file": str(result.path),
            }
            for result in self.markets
        ]
        return pd.DataFrame(rows, columns=["market", "deals", "top_yield", "kept_existing", "file"])


def process_market(
    client: RentCastClient,
    market: MarketConfig,
    config: AppConfig,
    now: Optional[datetime] = None,
) -> MarketOutput:
    """Run the full funnel for one market.

    Any exception is contained here so one broken market yields an empty
    output instead of aborting the whole run.
    """

    LOGGER.info("processing_market market=%s name=%s", market.id, market.name)
    analysis = config.analysis
    try:
        raw_listings = client.get_listings_for_market(market)
        if not raw_listings:
            LOGGER.warning("no_listings market=%s", market.id)
            return build_market_output([], market, now)

        filtered = apply_heuristic_filter(raw_listings, analysis)
        if not filtered:
            LOGGER.warning("no_listings_passed_filter market=%s", market.id)
            return build_market_output([], market, now)

        candidates = select_top_candidates(filtered, analysis)
        with_rent = client.enrich_with_rent_estimates(candidates)
        if not with_rent:
            LOGGER.warning("no_rent_estimates market=%s", market.id)
            return build_market_output([], market, now)

        with_metrics = calculate_investment_metrics(with_rent, analysis)
        top_deals = rank_and_select_top_deals(with_metrics, analysis)
        return build_market_output(top_deals, market, now)
    except Exception:
        LOGGER.exception("market_failed market=%s", market.id)
        return build_market_output([], market, now)


def run(
    config: AppConfig,
    client: RentCastClient,
    markets: Optional[Sequence[MarketConfig]] = None,
    now: Optional[datetime] = None,
) -> RunReport:
    """Process markets one after another and write one artifact per market."""

    selected = list(markets) if markets is not None else list(config.markets)
    LOGGER.info("run_start markets=%s", ",".join(market.name for market in selected))

    started = time.monotonic()
    client.counter.reset()
    report = RunReport()

    for market in selected:
        output = process_market(client, market, config, now)
        path = config.output.path_for(market.id)
        written = persist_market_output(output, path)
        report.markets.append(
            MarketResult(
                market_id=market.id,
                market_name=market.name,
                deals=len(output.deals),
                top_yield=output.summary.top_yield,
                path=path,
                kept_existing=written is None,
            )
        )

    report.duration_seconds = round(time.monotonic() - started, 1)
    report.api_calls = client.counter.count
    LOGGER.info("run_complete duration=%.1fs api_calls=%d", report.duration_seconds, report.api_calls)
    return report


__all__ = ["MarketResult", "RunReport", "process_market", "run"]
