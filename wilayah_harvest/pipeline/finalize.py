"""Post-crawl numeric sort of per-level tables."""

from __future__ import annotations

import logging
from pathlib import Path

from wilayah_harvest.common.fs import replace_text
from wilayah_harvest.common.logging import log_event

LOGGER = logging.getLogger(__name__)


def _leading_code(row: str) -> int | None:
    # parent_id on child tables, kode_bps on the root table: always column 0.
    leading = row.split(",", 1)[0].strip()
    try:
        return int(leading)
    except ValueError:
        return None


def sort_table(path: Path, *, logger: logging.Logger | None = None) -> int:
    """Stable numeric sort on column 0; unparsable keys trail in input order."""
    logger = logger or LOGGER
    lines = path.read_text(encoding="utf-8").splitlines()
    if not lines:
        return 0
    header, rows = lines[0], [line for line in lines[1:] if line.strip()]

    keyed: list[tuple[int, str]] = []
    unkeyed: list[str] = []
    for row in rows:
        code = _leading_code(row)
        if code is None:
            unkeyed.append(row)
        else:
            keyed.append((code, row))
    if unkeyed:
        log_event(
            logger,
            f"{len(unkeyed)} rows in {path.name} have a blank or non-numeric leading code",
            severity=logging.WARNING,
            event="TABLE_SORT_KEY",
            status="degraded",
            region_level=path.stem,
            rows_in=len(unkeyed),
        )

    # sorted() is stable, so rows sharing a parent keep their crawl order.
    ordered = [row for _, row in sorted(keyed, key=lambda pair: pair[0])] + unkeyed
    replace_text(path, "\n".join([header, *ordered]) + "\n")
    return len(ordered)


def finalize_tables(data_dir: Path, *, logger: logging.Logger | None = None) -> dict[str, int]:
    logger = logger or LOGGER
    counts: dict[str, int] = {}
    for path in sorted(data_dir.glob("*.csv")):
        counts[path.stem] = sort_table(path, logger=logger)
        log_event(
            logger,
            f"sorted {path.name}",
            event="TABLE_SORTED",
            status="ok",
            region_level=path.stem,
            rows_out=counts[path.stem],
        )
    return counts
