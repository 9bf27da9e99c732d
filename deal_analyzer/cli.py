"""Command-line entry point for the scheduled deal analysis run.

Usage:
    RENTCAST_API_KEY=... python -m deal_analyzer
    python -m deal_analyzer --market killeen --output-dir ./public/data
"""

from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import List, Optional, Sequence

from dotenv import find_dotenv, load_dotenv

from .clients.rentcast import CallCounter, RentCastClient
from .config import API_KEY_ENV, AppConfig, MissingCredentialError, get_api_key, load_config
from .services.pipeline import RunReport, run
from .utils.logging import configure_logging, get_logger

LOGGER = get_logger("cli")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Rank rental investment deals per market from RentCast listings.")
    parser.add_argument("--config", help="JSON file replacing any section of the default configuration.")
    parser.add_argument(
        "--market",
        action="append",
        dest="markets",
        metavar="ID",
        help="Only process this market id (repeatable). Defaults to every configured market.",
    )
    parser.add_argument("--output-dir", help="Directory for the per-market JSON files.")
    parser.add_argument("--log-level", help="Logging level (default: $LOG_LEVEL or INFO).")
    return parser.parse_args(argv)


def _select_config(args: argparse.Namespace) -> AppConfig:
    config = load_config(args.config)
    if args.output_dir:
        config = config.model_copy(
            update={"output": config.output.model_copy(update={"directory": Path(args.output_dir)})}
        )
    return config


def _log_report(report: RunReport) -> None:
    frame = report.summary_frame()
    if not frame.empty:
        LOGGER.info("run_summary\n%s", frame.to_string(index=False))
    LOGGER.info("duration=%.1fs api_calls=%d", report.duration_seconds, report.api_calls)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    load_dotenv(find_dotenv(usecwd=True), override=False)
    configure_logging(args.log_level or os.getenv("LOG_LEVEL"))

    try:
        api_key = get_api_key()
    except MissingCredentialError as exc:
        LOGGER.error("%s; run with %s=your_key python -m deal_analyzer", exc, API_KEY_ENV)
        return 1

    try:
        config = _select_config(args)
        markets: List = [config.market(market_id) for market_id in args.markets] if args.markets else list(config.markets)
        client = RentCastClient(api_key, config.api, config.filters, counter=CallCounter())
        report = run(config, client, markets)
        _log_report(report)
    except Exception:
        LOGGER.exception("fatal_error")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
