"""Data models used across the pipeline."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Any


@dataclass(frozen=True)
class Period:
    code: str
    label: str

    @classmethod
    def from_wire(cls, item: dict[str, Any]) -> "Period":
        return cls(code=str(item.get("kode", "")).strip(), label=str(item.get("nama", "")).strip())


@dataclass(frozen=True)
class LevelNode:
    name: str
    postal_name: str
    enrich_postal: bool = False
    fan_out: bool = False
    sql_table: str | None = None
    sql_parent_column: str | None = None
    child: "LevelNode | None" = None

    def iter_chain(self):
        node: LevelNode | None = self
        while node is not None:
            yield node
            node = node.child


@dataclass(frozen=True)
class PostalEntry:
    code: str
    postal_code: str


@dataclass(frozen=True)
class RegionRecord:
    kode_bps: str
    nama_bps: str
    kode_dagri: str
    nama_dagri: str
    kode_pos: str | None = None
    parent_kode_bps: str | None = None
    parent_kode_dagri: str | None = None

    @classmethod
    def from_wire(
        cls,
        item: dict[str, Any],
        *,
        parent_kode_bps: str | None = None,
        parent_kode_dagri: str | None = None,
    ) -> "RegionRecord":
        return cls(
            kode_bps=_text(item.get("kode_bps")),
            nama_bps=_text(item.get("nama_bps")),
            kode_dagri=_text(item.get("kode_dagri")),
            nama_dagri=_text(item.get("nama_dagri")),
            parent_kode_bps=parent_kode_bps,
            parent_kode_dagri=parent_kode_dagri,
        )

    def with_changes(self, **changes: Any) -> "RegionRecord":
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "kode_bps": self.kode_bps,
            "nama_bps": self.nama_bps,
            "kode_dagri": self.kode_dagri,
            "nama_dagri": self.nama_dagri,
        }
        if self.parent_kode_bps is not None:
            out["parent_kode_bps"] = self.parent_kode_bps
        if self.parent_kode_dagri is not None:
            out["parent_kode_dagri"] = self.parent_kode_dagri
        if self.kode_pos:
            out["kode_pos"] = self.kode_pos
        return out


@dataclass
class HarvestStats:
    records_by_level: Counter = field(default_factory=Counter)
    duplicates: int = 0
    postal_skips: int = 0
    fetches: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "records_by_level": dict(self.records_by_level),
            "duplicates": self.duplicates,
            "postal_skips": self.postal_skips,
            "fetches": self.fetches,
        }


def _text(value: object) -> str:
    if value is None:
        return ""
    return str(value)
