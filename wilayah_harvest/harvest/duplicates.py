"""Primary-code collision guard for one sibling batch."""

from __future__ import annotations

import logging

from wilayah_harvest.common.constants import DUPLICATE_SENTINEL
from wilayah_harvest.common.logging import log_event
from wilayah_harvest.common.models import HarvestStats, RegionRecord

LOGGER = logging.getLogger(__name__)


class DuplicateGuard:
    """Tracks primary codes already written under one (level, parent) scope.

    The first record to claim a code keeps it. Later records with the same
    code are kept but their code is replaced by the sentinel.
    """

    def __init__(
        self,
        level_name: str,
        parent_code: str,
        *,
        logger: logging.Logger | None = None,
        stats: HarvestStats | None = None,
    ) -> None:
        self.level_name = level_name
        self.parent_code = parent_code
        self.logger = logger or LOGGER
        self.stats = stats
        self.seen: dict[str, RegionRecord] = {}
        self.collisions = 0

    def check(self, record: RegionRecord) -> RegionRecord:
        holder = self.seen.get(record.kode_bps)
        if holder is None:
            self.seen[record.kode_bps] = record
            return record

        self.collisions += 1
        if self.stats is not None:
            self.stats.duplicates += 1
        log_event(
            self.logger,
            f"duplicate kode_bps {record.kode_bps} ({record.nama_bps}) collides with "
            f"{holder.kode_bps},{holder.nama_bps},{holder.kode_dagri},{holder.nama_dagri}",
            severity=logging.WARNING,
            event="DUPLICATE_CODE",
            status="repaired",
            region_level=self.level_name,
            parent=self.parent_code,
        )
        return record.with_changes(kode_bps=DUPLICATE_SENTINEL)
