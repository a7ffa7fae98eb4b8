"""Harvest orchestration: reset, period selection, traversal, finalize."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path

from wilayah_harvest.common.config_loader import HarvestConfig
from wilayah_harvest.common.fs import reset_output
from wilayah_harvest.common.http import HttpClient
from wilayah_harvest.common.logging import log_event
from wilayah_harvest.common.models import HarvestStats, Period
from wilayah_harvest.common.time_utils import current_year
from wilayah_harvest.harvest.fetcher import RetryingFetcher
from wilayah_harvest.harvest.gateway import RemoteGateway
from wilayah_harvest.harvest.periods import discover_period
from wilayah_harvest.harvest.traverser import Traverser
from wilayah_harvest.pipeline.finalize import finalize_tables


async def harvest_async(
    cfg: HarvestConfig,
    workdir: Path,
    client: HttpClient,
    logger: logging.Logger,
    *,
    period_code: str | None = None,
    year: int | None = None,
) -> dict:
    json_dir = workdir / cfg.json_dir
    data_dir = workdir / cfg.data_dir
    stats = HarvestStats()

    gateway = RemoteGateway(client, cfg.base_url, timeout=cfg.timeout)
    fetcher = RetryingFetcher(gateway, retry=cfg.retry, logger=logger, stats=stats)

    if period_code:
        period = Period(code=period_code, label=period_code)
    else:
        period = await discover_period(fetcher, year or current_year(), logger)

    reset_output(json_dir, data_dir, [level.name for level in cfg.levels()])

    traverser = Traverser(
        fetcher,
        cfg.root_level,
        json_dir=json_dir,
        data_dir=data_dir,
        fanout_limit=cfg.fanout_limit,
        pacing_seconds=cfg.pacing_seconds,
        logger=logger,
        stats=stats,
    )
    started = time.monotonic()
    await traverser.run(period.code)
    duration_ms = int((time.monotonic() - started) * 1000)

    tables = finalize_tables(data_dir, logger=logger)
    log_event(
        logger,
        f"harvested period {period.code}",
        event="HARVEST_DONE",
        status="ok",
        duration_ms=duration_ms,
        rows_out=sum(stats.records_by_level.values()),
    )
    return {
        "period": {"code": period.code, "label": period.label},
        "stats": stats.to_dict(),
        "tables": tables,
        "duration_ms": duration_ms,
    }


def run_harvest(
    cfg: HarvestConfig,
    workdir: Path,
    logger: logging.Logger,
    *,
    period_code: str | None = None,
    year: int | None = None,
    http_client: HttpClient | None = None,
) -> dict:
    owns_client = http_client is None
    client = http_client or HttpClient(timeout=cfg.timeout)
    try:
        return asyncio.run(
            harvest_async(cfg, workdir, client, logger, period_code=period_code, year=year)
        )
    finally:
        if owns_client:
            client.close()
