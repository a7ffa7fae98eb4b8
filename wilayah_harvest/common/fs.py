"""Filesystem helpers."""

from __future__ import annotations

import json
import os
import shutil
from pathlib import Path
from typing import Iterable


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def read_yaml(path: Path):
    import yaml

    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def write_json(path: Path, payload) -> None:
    ensure_dir(path.parent)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2, sort_keys=True)
        f.write("\n")


def read_json(path: Path):
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def replace_text(path: Path, content: str) -> None:
    """Write ``content`` next to ``path`` and swap it in with one rename."""
    ensure_dir(path.parent)
    tmp_path = path.with_name(f".{path.name}.tmp")
    with tmp_path.open("w", encoding="utf-8", newline="") as f:
        f.write(content)
    os.replace(tmp_path, path)


def reset_output(json_dir: Path, data_dir: Path, level_names: Iterable[str]) -> None:
    for name in level_names:
        level_dir = json_dir / name
        if level_dir.exists():
            shutil.rmtree(level_dir)
    if data_dir.exists():
        for pattern in ("*.csv", "*.sql"):
            for stale in data_dir.glob(pattern):
                stale.unlink()
    ensure_dir(json_dir)
    ensure_dir(data_dir)
