"""Recursive level walk with bounded fan-out at one tier."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from wilayah_harvest.common.constants import ROOT_PARENT_CODE
from wilayah_harvest.common.errors import ContractError, PipelineError
from wilayah_harvest.common.logging import log_event
from wilayah_harvest.common.models import HarvestStats, LevelNode, RegionRecord
from wilayah_harvest.harvest.duplicates import DuplicateGuard
from wilayah_harvest.harvest.fetcher import RetryingFetcher
from wilayah_harvest.harvest.postal import aggregate
from wilayah_harvest.pipeline.writer import (
    append_table,
    format_row,
    sanitize_text,
    table_header,
    table_path,
    write_artifact,
)

LOGGER = logging.getLogger(__name__)


def _first_error(group: BaseExceptionGroup) -> BaseException:
    leaves: list[BaseException] = []
    pending: list[BaseException] = [group]
    while pending:
        current = pending.pop(0)
        if isinstance(current, BaseExceptionGroup):
            pending[:0] = list(current.exceptions)
        else:
            leaves.append(current)
    for leaf in leaves:
        if isinstance(leaf, PipelineError):
            return leaf
    return leaves[0]


class Traverser:
    """Walks ``(level, parent)`` pairs from the root level down to the leaves.

    Siblings are handled in the order the API returns them. Below a level
    flagged ``fan_out`` each child subtree runs as its own task, with at most
    ``fanout_limit`` of them in flight. All other recursion is awaited in
    place, so every branch is sequential under the fan-out tier.

    Fan-out tasks live in one task group for the whole run: the first
    failure cancels the remaining branches and is re-raised from ``run``.
    """

    def __init__(
        self,
        fetcher: RetryingFetcher,
        root_level: LevelNode,
        *,
        json_dir: Path,
        data_dir: Path,
        fanout_limit: int = 7,
        pacing_seconds: float = 0.1,
        logger: logging.Logger | None = None,
        stats: HarvestStats | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.root_level = root_level
        self.json_dir = json_dir
        self.data_dir = data_dir
        self.fanout_limit = fanout_limit
        self.pacing_seconds = pacing_seconds
        self.logger = logger or LOGGER
        self.stats = stats if stats is not None else fetcher.stats
        self._slots: asyncio.Semaphore | None = None
        self._group: asyncio.TaskGroup | None = None

    async def run(self, period_code: str) -> HarvestStats:
        self._slots = asyncio.Semaphore(self.fanout_limit)
        try:
            async with asyncio.TaskGroup() as group:
                self._group = group
                await self.visit(self.root_level, ROOT_PARENT_CODE, None, period_code)
        except ExceptionGroup as group:
            raise _first_error(group) from None
        finally:
            self._group = None
        return self.stats

    async def _spawn(self, level: LevelNode, parent_code: str, parent_dagri: str, period_code: str) -> None:
        slots, group = self._slots, self._group
        if slots is None or group is None:
            raise ContractError("fan-out requested outside Traverser.run")
        await slots.acquire()
        task = group.create_task(self.visit(level, parent_code, parent_dagri, period_code))
        task.add_done_callback(lambda _task: slots.release())

    async def visit(
        self,
        level: LevelNode,
        parent_code: str,
        parent_dagri: str | None,
        period_code: str,
    ) -> int:
        is_root = level is self.root_level
        children = await self.fetcher.fetch_children(level, parent_code, period_code)

        postal_by_code: dict[str, str] = {}
        if level.enrich_postal:
            postal_by_code = aggregate(await self.fetcher.fetch_postal(level, parent_code, period_code))

        guard = DuplicateGuard(level.name, parent_code, logger=self.logger, stats=self.stats)
        rows: list[str] = []
        for item in children:
            record = RegionRecord.from_wire(
                item,
                parent_kode_bps=None if is_root else parent_code,
                parent_kode_dagri=None if is_root else parent_dagri,
            )
            kode_pos = postal_by_code.get(record.kode_bps.strip())
            if kode_pos:
                record = record.with_changes(kode_pos=kode_pos)

            if level.child is not None:
                if level.fan_out:
                    await self._spawn(level.child, record.kode_bps, record.kode_dagri, period_code)
                else:
                    await self.visit(level.child, record.kode_bps, record.kode_dagri, period_code)

            record = record.with_changes(
                nama_bps=sanitize_text(record.nama_bps),
                nama_dagri=sanitize_text(record.nama_dagri),
            )
            record = guard.check(record)

            await asyncio.to_thread(write_artifact, self.json_dir, level.name, record)
            rows.append(format_row(record, include_parent=not is_root, include_postal=level.enrich_postal))
            self.stats.records_by_level[level.name] += 1
            if self.pacing_seconds:
                await asyncio.sleep(self.pacing_seconds)

        header = table_header(include_parent=not is_root, include_postal=level.enrich_postal)
        written = await asyncio.to_thread(append_table, table_path(self.data_dir, level.name), header, rows)
        log_event(
            self.logger,
            f"appended {written} {level.name} rows for parent {parent_code}",
            severity=logging.DEBUG,
            event="TABLE_APPEND",
            status="ok",
            region_level=level.name,
            parent=parent_code,
            rows_in=len(children),
            rows_out=written,
        )
        return written
