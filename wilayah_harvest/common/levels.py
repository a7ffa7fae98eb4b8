"""Ordered level table -> immutable level chain."""

from __future__ import annotations

from wilayah_harvest.common.errors import ConfigError
from wilayah_harvest.common.models import LevelNode

DEFAULT_LEVELS: tuple[dict, ...] = (
    {
        "name": "provinsi",
        "postal_name": "provinsi",
        "enrich_postal": True,
        "fan_out": False,
        "sql_table": "provinces",
        "sql_parent_column": None,
    },
    {
        "name": "kabupaten-kota",
        "postal_name": "kabupaten",
        "enrich_postal": True,
        "fan_out": True,
        "sql_table": "cities",
        "sql_parent_column": "province_id",
    },
    {
        "name": "kecamatan",
        "postal_name": "kecamatan",
        "enrich_postal": True,
        "fan_out": False,
        "sql_table": "districts",
        "sql_parent_column": "city_id",
    },
    {
        "name": "kelurahan-desa",
        "postal_name": "desa",
        "enrich_postal": False,
        "fan_out": False,
        "sql_table": "villages",
        "sql_parent_column": "district_id",
    },
)


def _level_node(level: dict, child: LevelNode | None) -> LevelNode:
    return LevelNode(
        name=str(level["name"]),
        postal_name=str(level.get("postal_name") or level["name"]),
        enrich_postal=bool(level.get("enrich_postal", False)),
        fan_out=bool(level.get("fan_out", False)),
        sql_table=level.get("sql_table"),
        sql_parent_column=level.get("sql_parent_column"),
        child=child,
    )


def build_level_chain(levels: list[dict] | tuple[dict, ...] = DEFAULT_LEVELS) -> LevelNode:
    if not levels:
        raise ConfigError("levels must be a non-empty list")

    names = [str(level["name"]) for level in levels]
    dupes = {name for name in names if names.count(name) > 1}
    if dupes:
        raise ConfigError(f"Duplicate level names: {', '.join(sorted(dupes))}")

    # Built leaf first so every node can be frozen with its child.
    *upper, leaf = levels
    chain = _level_node(leaf, None)
    for level in reversed(upper):
        chain = _level_node(level, chain)
    return chain
