"""Anomaly scan over the harvested JSON artifacts."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from wilayah_harvest.common.fs import ensure_dir, read_json
from wilayah_harvest.common.time_utils import utc_timestamp_iso

REQUIRED_KEYS = ("kode_bps", "nama_bps", "kode_dagri", "nama_dagri")
OPTIONAL_KEYS = ("kode_pos", "parent_kode_bps", "parent_kode_dagri")
CLEAN_REPORT = "No anomalies detected in JSON outputs."


@dataclass(frozen=True)
class Anomaly:
    file: Path
    issues: list[str]
    snapshot: dict[str, Any] = field(default_factory=dict)


def inspect_record(record: dict[str, Any]) -> list[str]:
    issues: list[str] = []
    for key in (*REQUIRED_KEYS, *OPTIONAL_KEYS):
        raw = record.get(key)
        if raw is None:
            if key in REQUIRED_KEYS:
                issues.append(f"{key} missing")
            continue
        value = str(raw).strip()
        if not value:
            issues.append(f"{key} empty")
        elif value == "0":
            issues.append(f"{key} equals 0")
    return issues


def scan_artifacts(json_dir: Path) -> list[Anomaly]:
    if not json_dir.exists():
        return []
    anomalies: list[Anomaly] = []
    for path in sorted(json_dir.rglob("*.json")):
        try:
            record = read_json(path)
        except (ValueError, UnicodeDecodeError):
            anomalies.append(Anomaly(file=path, issues=["invalid JSON"]))
            continue
        if not isinstance(record, dict):
            anomalies.append(Anomaly(file=path, issues=["invalid JSON"]))
            continue
        issues = inspect_record(record)
        if issues:
            anomalies.append(Anomaly(file=path, issues=issues, snapshot=record))
    return anomalies


def render_report(anomalies: list[Anomaly], root: Path) -> str:
    if not anomalies:
        return CLEAN_REPORT

    lines = ["| File | Issues | Sample |", "| --- | --- | --- |"]
    for anomaly in anomalies:
        try:
            relative = anomaly.file.relative_to(root)
        except ValueError:
            relative = anomaly.file
        snapshot = json.dumps(anomaly.snapshot, ensure_ascii=False)
        snapshot = snapshot.replace("|", "\\|").replace("\n", " ").replace("\r", " ")
        lines.append(f"| {relative.as_posix()} | {', '.join(anomaly.issues)} | {snapshot} |")
    return "\n".join(lines)


def write_anomaly_report(path: Path, report: str) -> Path:
    ensure_dir(path.parent)
    content = f"# Broken Data Report\n\n_Last updated: {utc_timestamp_iso()}_\n\n{report}\n"
    path.write_text(content, encoding="utf-8")
    return path
