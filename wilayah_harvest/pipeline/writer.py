"""Per-record JSON artifacts and lock-protected per-level CSV tables."""

from __future__ import annotations

import fcntl
import os
from pathlib import Path
from typing import Sequence

from wilayah_harvest.common.fs import ensure_dir, write_json
from wilayah_harvest.common.models import RegionRecord

BASE_COLUMNS = ["kode_bps", "nama_bps", "kode_dagri", "nama_dagri"]


def sanitize_code(value: str | None) -> str:
    if value is None or not value.strip():
        return "0"
    return value.strip()


def sanitize_text(value: str) -> str:
    return value.replace("\r\n", " ").replace("\n", " ").replace("\r", " ").replace('"', "'")


def artifact_path(json_dir: Path, level_name: str, kode_bps: str, kode_dagri: str) -> Path:
    return json_dir / level_name / f"{sanitize_code(kode_bps)}-{sanitize_code(kode_dagri)}.json"


def write_artifact(json_dir: Path, level_name: str, record: RegionRecord) -> Path:
    path = artifact_path(json_dir, level_name, record.kode_bps, record.kode_dagri)
    write_json(path, record.to_dict())
    return path


def table_path(data_dir: Path, level_name: str) -> Path:
    return data_dir / f"{level_name}.csv"


def table_header(*, include_parent: bool, include_postal: bool) -> str:
    columns = list(BASE_COLUMNS)
    if include_parent:
        columns.insert(0, "parent_id")
    if include_postal:
        columns.append("kode_pos")
    return ",".join(columns)


def format_row(record: RegionRecord, *, include_parent: bool, include_postal: bool) -> str:
    cells = [
        record.kode_bps,
        f'"{record.nama_bps}"',
        record.kode_dagri,
        f'"{record.nama_dagri}"',
    ]
    if include_parent:
        cells.insert(0, record.parent_kode_bps or "")
    if include_postal:
        cells.append(f'"{record.kode_pos}"' if record.kode_pos else "")
    return ",".join(cells)


def append_table(path: Path, header: str, rows: Sequence[str]) -> int:
    """Append ``rows`` to ``path`` under an exclusive ``flock``.

    The size check that decides between header and separator happens while
    the lock is held. Closing the descriptor releases the lock.
    """
    if not rows:
        return 0
    ensure_dir(path.parent)
    with path.open("a", encoding="utf-8", newline="") as f:
        fcntl.flock(f.fileno(), fcntl.LOCK_EX)
        lead = header if os.fstat(f.fileno()).st_size == 0 else ""
        f.write("\n".join([lead, *rows]))
        f.flush()
    return len(rows)
