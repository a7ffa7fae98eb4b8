"""Configuration loading and validation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from wilayah_harvest.common.errors import ConfigError
from wilayah_harvest.common.fs import read_yaml
from wilayah_harvest.common.http import RetryConfig, TimeoutConfig
from wilayah_harvest.common.levels import build_level_chain
from wilayah_harvest.common.models import LevelNode
from wilayah_harvest.common.schema import validate_harvest_config

CONFIG_FILENAME = "harvest.yml"


@dataclass(frozen=True)
class HarvestConfig:
    base_url: str
    timeout: TimeoutConfig
    retry: RetryConfig
    fanout_limit: int
    pacing_seconds: float
    json_dir: str
    data_dir: str
    reports_dir: str
    logs_dir: str
    root_level: LevelNode

    def levels(self) -> list[LevelNode]:
        return list(self.root_level.iter_chain())


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> dict:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    base = read_yaml(path)
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path)
    if overlay is None:
        return base
    if not isinstance(overlay, dict):
        raise ConfigError(f"Overlay config must be a mapping: {overlay_path}")
    return _deep_merge(base, overlay)


def build_harvest_config(cfg: dict) -> HarvestConfig:
    return HarvestConfig(
        base_url=str(cfg["api"]["base_url"]).rstrip("/"),
        timeout=TimeoutConfig(
            connect=float(cfg["api"]["timeout"]["connect"]),
            read=float(cfg["api"]["timeout"]["read"]),
        ),
        retry=RetryConfig(
            max_attempts=int(cfg["retry"]["max_attempts"]),
            delay_seconds=float(cfg["retry"]["delay_seconds"]),
        ),
        fanout_limit=int(cfg["traversal"]["fanout_limit"]),
        pacing_seconds=float(cfg["traversal"]["pacing_seconds"]),
        json_dir=str(cfg["output"]["json_dir"]),
        data_dir=str(cfg["output"]["data_dir"]),
        reports_dir=str(cfg["output"]["reports_dir"]),
        logs_dir=str(cfg["output"]["logs_dir"]),
        root_level=build_level_chain(cfg["levels"]),
    )


def load_harvest_config(
    config_dir: Path,
    *,
    allow_unknown: bool = False,
    overlay_config_dir: Path | None = None,
) -> HarvestConfig:
    overlay_path = None
    if overlay_config_dir is not None:
        overlay_path = overlay_config_dir / CONFIG_FILENAME
    raw = _load_yaml_with_overlay(config_dir / CONFIG_FILENAME, overlay_path)
    return build_harvest_config(validate_harvest_config(raw, allow_unknown=allow_unknown))
