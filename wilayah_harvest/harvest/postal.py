"""Postal code aggregation."""

from __future__ import annotations

from typing import Any, Iterable

from wilayah_harvest.common.constants import POSTAL_SEPARATOR
from wilayah_harvest.common.models import PostalEntry

CODE_FIELDS = ("kode_bps", "code")
POSTAL_FIELDS = ("kode_pos", "postal_code", "postalCode")


def _lookup_first(item: dict[str, Any], candidates: Iterable[str]) -> object | None:
    for key in candidates:
        if key in item and item[key] not in (None, ""):
            return item[key]
    return None


def parse_postal_entries(payload: list[dict[str, Any]]) -> list[PostalEntry]:
    entries = []
    for item in payload:
        code = _lookup_first(item, CODE_FIELDS)
        postal = _lookup_first(item, POSTAL_FIELDS)
        entries.append(
            PostalEntry(
                code="" if code is None else str(code),
                postal_code="" if postal is None else str(postal),
            )
        )
    return entries


def aggregate(entries: Iterable[PostalEntry]) -> dict[str, str]:
    """Fold postal entries into ``{code: "p1;p2"}`` keeping first-seen order."""
    grouped: dict[str, dict[str, None]] = {}
    for entry in entries:
        code = entry.code.strip()
        postal = entry.postal_code.strip()
        if not code or not postal:
            continue
        grouped.setdefault(code, {})[postal] = None
    return {code: POSTAL_SEPARATOR.join(values) for code, values in grouped.items()}
