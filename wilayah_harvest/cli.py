"""CLI entrypoint for the Indonesian administrative region harvester."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from wilayah_harvest.common.config_loader import HarvestConfig, load_harvest_config
from wilayah_harvest.common.constants import EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS, STAGES
from wilayah_harvest.common.errors import PipelineError
from wilayah_harvest.common.ids import generate_run_id
from wilayah_harvest.common.logging import build_logger, log_event
from wilayah_harvest.harvest.runner import run_harvest
from wilayah_harvest.pipeline.check import render_report, scan_artifacts, write_anomaly_report
from wilayah_harvest.pipeline.export_sql import export_sql
from wilayah_harvest.pipeline.finalize import finalize_tables
from wilayah_harvest.pipeline.reports import run_status, write_run_summary

HARD_FAIL_CODES = {"CONTRACT_ERROR", "FATAL_FETCH", "PERIOD_SELECTION", "MALFORMED_PAYLOAD", "CONFIG_ERROR"}


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("command", choices=[*STAGES, "finalize", "all"])
    parser.add_argument("--config-dir", default="./config")
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--workdir", default=".")
    parser.add_argument("--period", default=None, help="Period code; skips period discovery")
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARN", "ERROR"])
    parser.add_argument("--strict", action="store_true")
    return parser.parse_args(argv)


def execute_stage(
    stage: str,
    cfg: HarvestConfig,
    workdir: Path,
    args: argparse.Namespace,
    logger: logging.Logger,
    results: dict,
) -> None:
    data_dir = workdir / cfg.data_dir
    if stage == "harvest":
        results["harvest"] = run_harvest(cfg, workdir, logger, period_code=args.period)
    elif stage == "finalize":
        results["tables"] = finalize_tables(data_dir, logger=logger)
    elif stage == "check":
        anomalies = scan_artifacts(workdir / cfg.json_dir)
        report = render_report(anomalies, workdir)
        write_anomaly_report(workdir / cfg.reports_dir / "broken_data.md", report)
        results["anomaly_count"] = len(anomalies)
    elif stage == "export-sql":
        written = export_sql(cfg.levels(), data_dir)
        results["sql_files"] = [path.name for path in written]
    else:
        raise ValueError(f"Unknown stage: {stage}")


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    workdir = Path(args.workdir)
    config_dir = Path(args.config_dir)
    overlay_config_dir = Path(args.overlay_config_dir) if args.overlay_config_dir else None

    cfg = load_harvest_config(config_dir, overlay_config_dir=overlay_config_dir)
    logger = build_logger(run_id, logs_dir=workdir / cfg.logs_dir, level=args.log_level)
    stages = STAGES if args.command == "all" else (args.command,)

    results: dict = {}
    failures: list[str] = []

    for stage in stages:
        log_event(logger, "stage start", run_id=run_id, stage=stage, event="STAGE_START", status="ok")
        try:
            execute_stage(stage, cfg, workdir, args, logger, results)
        except PipelineError as exc:
            failures.append(stage)
            log_event(
                logger,
                f"stage {stage} failed: {exc}",
                severity=logging.ERROR,
                run_id=run_id,
                stage=stage,
                event="STAGE_FAIL",
                status="error",
                error_code=exc.error_code,
            )
            if exc.error_code in HARD_FAIL_CODES or args.strict:
                write_run_summary(workdir / cfg.reports_dir, run_id=run_id, failures=failures, **_summary_fields(results))
                return EXIT_HARD_FAIL
            continue
        log_event(logger, "stage end", run_id=run_id, stage=stage, event="STAGE_END", status="ok")

    write_run_summary(workdir / cfg.reports_dir, run_id=run_id, failures=failures, **_summary_fields(results))
    status = run_status(results.get("harvest"), results.get("anomaly_count"), failures)
    if status == "success":
        return EXIT_SUCCESS
    return EXIT_PARTIAL


def _summary_fields(results: dict) -> dict:
    return {key: results[key] for key in ("harvest", "anomaly_count", "sql_files") if key in results}


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv or sys.argv[1:])
    try:
        return run_command(args)
    except PipelineError:
        return EXIT_HARD_FAIL
    except Exception:
        logging.getLogger(__name__).exception("unexpected failure")
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
