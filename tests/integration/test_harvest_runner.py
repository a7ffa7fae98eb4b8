from __future__ import annotations

import logging
from pathlib import Path

import pytest

from wilayah_harvest.common.config_loader import load_harvest_config
from wilayah_harvest.common.errors import PeriodSelectionError
from wilayah_harvest.harvest.runner import run_harvest

REPO_CONFIG_DIR = Path(__file__).resolve().parents[2] / "config"
LOGGER = logging.getLogger("tests.harvest")


@pytest.fixture
def fast_config(tmp_path: Path):
    overlay = tmp_path / "overlay"
    overlay.mkdir()
    (overlay / "harvest.yml").write_text(
        "traversal:\n  pacing_seconds: 0\nretry:\n  max_attempts: 2\n  delay_seconds: 0\n",
        encoding="utf-8",
    )
    return load_harvest_config(REPO_CONFIG_DIR, overlay_config_dir=overlay)


@pytest.mark.integration
def test_run_harvest_selects_period_and_finalizes_tables(tmp_path: Path, fast_config, two_province_api):
    two_province_api.periods = [
        {"kode": "2025_1.2025", "nama": "2025"},
        {"kode": "2026_1.2025", "nama": "2026"},
    ]
    workdir = tmp_path / "work"

    result = run_harvest(fast_config, workdir, LOGGER, year=2026, http_client=two_province_api)

    assert result["period"]["code"] == "2026_1.2025"
    assert result["tables"] == {"kabupaten-kota": 2, "provinsi": 2}
    assert all(params["periode_merge"] == "2026_1.2025" for params in two_province_api.calls_to("/getwilayah"))

    kabupaten = (workdir / "data" / "kabupaten-kota.csv").read_text(encoding="utf-8").splitlines()
    assert [row.split(",")[0] for row in kabupaten[1:]] == ["11", "12"]
    assert not two_province_api.closed


@pytest.mark.integration
def test_run_harvest_with_empty_period_list_fails_before_fetching_regions(tmp_path: Path, fast_config, fake_api_factory):
    api = fake_api_factory(periods=[])
    workdir = tmp_path / "work"
    (workdir / "data").mkdir(parents=True)
    (workdir / "data" / "provinsi.csv").write_text("previous run", encoding="utf-8")

    with pytest.raises(PeriodSelectionError):
        run_harvest(fast_config, workdir, LOGGER, http_client=api)

    assert api.calls_to("/getwilayah") == []
    assert (workdir / "data" / "provinsi.csv").read_text(encoding="utf-8") == "previous run"


@pytest.mark.integration
def test_run_harvest_with_explicit_period_skips_discovery(tmp_path: Path, fast_config, two_province_api):
    result = run_harvest(fast_config, tmp_path, LOGGER, period_code="2024_1.2024", http_client=two_province_api)

    assert result["period"]["code"] == "2024_1.2024"
    assert two_province_api.calls_to("/getperiode") == []


@pytest.mark.integration
def test_run_harvest_clears_previous_outputs(tmp_path: Path, fast_config, two_province_api):
    stale_artifact = tmp_path / "json" / "provinsi" / "99-99.json"
    stale_artifact.parent.mkdir(parents=True)
    stale_artifact.write_text("{}", encoding="utf-8")
    (tmp_path / "data").mkdir()
    (tmp_path / "data" / "kecamatan.sql").write_text("stale", encoding="utf-8")

    run_harvest(fast_config, tmp_path, LOGGER, period_code="p", http_client=two_province_api)

    assert not stale_artifact.exists()
    assert not (tmp_path / "data" / "kecamatan.sql").exists()
    assert len((tmp_path / "data" / "provinsi.csv").read_text(encoding="utf-8").splitlines()) == 3


@pytest.mark.integration
def test_run_harvest_finalizes_tables_with_a_blank_primary_code(tmp_path: Path, fast_config, fake_api_factory):
    api = fake_api_factory(
        children={
            ("provinsi", "0"): [
                {"kode_bps": "", "nama_bps": "TANPA KODE", "kode_dagri": "99", "nama_dagri": "TANPA KODE"},
                {"kode_bps": "11", "nama_bps": "ACEH", "kode_dagri": "11", "nama_dagri": "ACEH"},
            ]
        }
    )

    result = run_harvest(fast_config, tmp_path, LOGGER, period_code="p", http_client=api)

    assert result["tables"] == {"provinsi": 2}
    provinsi = (tmp_path / "data" / "provinsi.csv").read_text(encoding="utf-8").splitlines()
    assert [row.split(",")[0] for row in provinsi[1:]] == ["11", ""]
    assert (tmp_path / "json" / "provinsi" / "0-99.json").exists()
