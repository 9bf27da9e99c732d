"""Read and write the per-market JSON artifacts."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from ..models.deal import MarketOutput
from .logging import get_logger

LOGGER = get_logger("utils.io")


def existing_deal_count(path: Path) -> int:
    """Number of deals in a previously written artifact, 0 if absent or unreadable."""

    if not path.exists():
        return 0
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        LOGGER.warning("unreadable_artifact path=%s error=%s", path, exc)
        return 0
    deals = data.get("deals") if isinstance(data, dict) else None
    return len(deals) if isinstance(deals, list) else 0


def should_keep_existing(output: MarketOutput, path: Path) -> bool:
    """True when a fresh empty result would replace an artifact that still has deals."""

    if output.deals:
        return False
    previous = existing_deal_count(path)
    if previous > 0:
        LOGGER.warning(
            "keeping_existing_artifact path=%s existing_deals=%d reason=new result is empty",
            path,
            previous,
        )
        return True
    return False


def write_market_output(output: MarketOutput, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(output.to_json_dict(), indent=2), encoding="utf-8")
    LOGGER.info("wrote_artifact path=%s deals=%d", path, len(output.deals))
    return path


def persist_market_output(output: MarketOutput, path: Path) -> Optional[Path]:
    """Write ``output`` unless the stale-data safeguard applies; returns the written path."""

    if should_keep_existing(output, path):
        return None
    return write_market_output(output, path)


__all__ = ["existing_deal_count", "persist_market_output", "should_keep_existing", "write_market_output"]
