"""Run report aggregation."""

from __future__ import annotations

from pathlib import Path

from wilayah_harvest.common.fs import write_json


def run_status(harvest: dict | None, anomaly_count: int | None, failures: list[str]) -> str:
    if failures:
        return "error"
    if harvest and harvest["stats"]["postal_skips"]:
        return "partial"
    if anomaly_count:
        return "partial"
    return "success"


def write_run_summary(
    reports_dir: Path,
    *,
    run_id: str,
    harvest: dict | None = None,
    anomaly_count: int | None = None,
    sql_files: list[str] | None = None,
    failures: list[str] | None = None,
) -> Path:
    failures = failures or []
    summary_path = reports_dir / "run_summary.json"
    payload = {
        "run_id": run_id,
        "status": run_status(harvest, anomaly_count, failures),
        "period": harvest["period"] if harvest else None,
        "totals": harvest["stats"] if harvest else None,
        "tables": harvest["tables"] if harvest else None,
        "anomaly_count": anomaly_count,
        "sql_files": sql_files or [],
        "failed_stages": failures,
    }
    write_json(summary_path, payload)
    return summary_path
