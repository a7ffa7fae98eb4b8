"""Harvest period discovery and selection."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from wilayah_harvest.common.errors import PeriodSelectionError
from wilayah_harvest.common.logging import log_event
from wilayah_harvest.common.models import Period
from wilayah_harvest.harvest.fetcher import RetryingFetcher


def select_period(periods: Iterable[Period], year: int) -> Period:
    candidates = list(periods)
    if not candidates:
        raise PeriodSelectionError("Remote API returned no harvest periods")

    year_text = str(year)
    for period in candidates:
        if period.code.startswith(year_text) or year_text in period.label:
            return period
    return candidates[0]


def parse_periods(payload: list[dict[str, Any]]) -> list[Period]:
    return [Period.from_wire(item) for item in payload]


async def discover_period(fetcher: RetryingFetcher, year: int, logger: logging.Logger) -> Period:
    periods = parse_periods(await fetcher.fetch_periods())
    period = select_period(periods, year)
    log_event(
        logger,
        f"selected period {period.code} ({period.label}) out of {len(periods)}",
        event="PERIOD_SELECTED",
        status="ok",
        rows_in=len(periods),
    )
    return period
