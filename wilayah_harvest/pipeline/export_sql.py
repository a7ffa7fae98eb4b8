"""Per-level CSV table -> SQL insert script."""

from __future__ import annotations

import csv
from pathlib import Path

from wilayah_harvest.common.errors import ContractError
from wilayah_harvest.common.models import LevelNode
from wilayah_harvest.pipeline.writer import table_path


def _as_int(value: str, column: str, path: Path) -> int:
    try:
        return int(value.strip())
    except ValueError as exc:
        raise ContractError(f"{path.name}: {column} {value!r} is not an integer") from exc


def build_values(rows: list[list[str]], path: Path, *, has_parent: bool) -> list[str]:
    values = []
    for row in rows:
        if has_parent:
            parent_id = _as_int(row[0], "parent_id", path)
            region_id = _as_int(row[1], "kode_bps", path)
            values.append(f'({region_id}, {parent_id}, "{row[2]}")')
        else:
            region_id = _as_int(row[0], "kode_bps", path)
            values.append(f'({region_id}, "{row[1]}")')
    return values


def export_level(level: LevelNode, data_dir: Path) -> Path | None:
    source = table_path(data_dir, level.name)
    if level.sql_table is None or not source.exists():
        return None

    with source.open("r", encoding="utf-8", newline="") as f:
        records = [row for row in csv.reader(f) if row]
    if len(records) < 2:
        return None

    has_parent = records[0][0] == "parent_id"
    values = build_values(records[1:], source, has_parent=has_parent)

    columns = ["id", "name"]
    if has_parent:
        columns.insert(1, level.sql_parent_column or "parent_id")

    out_path = source.with_suffix(".sql")
    statement = f"INSERT INTO {level.sql_table} ({', '.join(columns)}) VALUES\n"
    out_path.write_text(statement + ",\n".join(values) + ";\n", encoding="utf-8")
    return out_path


def export_sql(levels: list[LevelNode], data_dir: Path) -> list[Path]:
    written = []
    for level in levels:
        out_path = export_level(level, data_dir)
        if out_path is not None:
            written.append(out_path)
    return written
