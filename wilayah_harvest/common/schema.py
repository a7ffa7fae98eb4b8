"""Minimal strict schema for the harvest YAML config."""

from __future__ import annotations

from wilayah_harvest.common.errors import ConfigError


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_positive(value: object, ctx: str, *, allow_zero: bool = False) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{ctx} must be a number")
    if value < 0 or (value == 0 and not allow_zero):
        raise ConfigError(f"{ctx} must be {'non-negative' if allow_zero else 'positive'}")


def validate_harvest_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    top_required = {"api", "retry", "traversal", "output", "levels"}
    _assert_required_keys(cfg, top_required, "harvest config")
    _assert_no_unknown_keys(cfg, top_required, "harvest config", allow_unknown)

    _assert_required_keys(cfg["api"], {"base_url", "timeout"}, "api")
    _assert_required_keys(cfg["api"]["timeout"], {"connect", "read"}, "api.timeout")
    _assert_required_keys(cfg["retry"], {"max_attempts", "delay_seconds"}, "retry")
    _assert_positive(cfg["retry"]["max_attempts"], "retry.max_attempts")
    _assert_positive(cfg["retry"]["delay_seconds"], "retry.delay_seconds", allow_zero=True)
    _assert_required_keys(cfg["traversal"], {"fanout_limit", "pacing_seconds"}, "traversal")
    _assert_positive(cfg["traversal"]["fanout_limit"], "traversal.fanout_limit")
    _assert_positive(cfg["traversal"]["pacing_seconds"], "traversal.pacing_seconds", allow_zero=True)
    _assert_required_keys(cfg["output"], {"json_dir", "data_dir", "reports_dir", "logs_dir"}, "output")

    levels = cfg["levels"]
    if not isinstance(levels, list) or not levels:
        raise ConfigError("levels must be a non-empty list")
    level_known = {"name", "postal_name", "enrich_postal", "fan_out", "sql_table", "sql_parent_column"}
    for idx, level in enumerate(levels):
        _assert_required_keys(level, {"name", "postal_name"}, f"levels[{idx}]")
        _assert_no_unknown_keys(level, level_known, f"levels[{idx}]", allow_unknown)

    fan_out_levels = [level["name"] for level in levels if level.get("fan_out")]
    if len(fan_out_levels) > 1:
        raise ConfigError(f"At most one fan-out level is allowed, got: {', '.join(fan_out_levels)}")

    return cfg
