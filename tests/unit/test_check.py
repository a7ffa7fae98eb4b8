import json
from pathlib import Path

from wilayah_harvest.pipeline.check import (
    CLEAN_REPORT,
    inspect_record,
    render_report,
    scan_artifacts,
    write_anomaly_report,
)


def _write(path: Path, payload) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(payload if isinstance(payload, str) else json.dumps(payload), encoding="utf-8")


def test_inspect_record_flags_missing_empty_and_zero():
    record = {"kode_bps": "0", "nama_bps": " ", "kode_dagri": "32.01", "kode_pos": ""}

    assert inspect_record(record) == ["kode_bps equals 0", "nama_bps empty", "nama_dagri missing", "kode_pos empty"]


def test_inspect_record_accepts_root_record_without_optional_keys():
    assert inspect_record({"kode_bps": "11", "nama_bps": "ACEH", "kode_dagri": "11", "nama_dagri": "ACEH"}) == []


def test_scan_artifacts_reports_invalid_json_and_anomalies(tmp_path: Path):
    json_dir = tmp_path / "json"
    _write(json_dir / "provinsi" / "11-11.json", {"kode_bps": "11", "nama_bps": "ACEH", "kode_dagri": "11", "nama_dagri": "ACEH"})
    _write(json_dir / "kecamatan" / "0-32.01.010.json", {"kode_bps": "0", "nama_bps": "A|B", "kode_dagri": "32.01.010", "nama_dagri": "A"})
    _write(json_dir / "kecamatan" / "broken.json", "{not json")

    anomalies = scan_artifacts(json_dir)

    assert [(a.file.name, a.issues) for a in anomalies] == [
        ("0-32.01.010.json", ["kode_bps equals 0"]),
        ("broken.json", ["invalid JSON"]),
    ]

    report = render_report(anomalies, tmp_path)
    assert report.splitlines()[0] == "| File | Issues | Sample |"
    assert "json/kecamatan/0-32.01.010.json" in report
    assert "A\\|B" in report


def test_scan_artifacts_missing_dir_is_clean(tmp_path: Path):
    assert scan_artifacts(tmp_path / "nope") == []
    assert render_report([], tmp_path) == CLEAN_REPORT


def test_write_anomaly_report(tmp_path: Path):
    path = write_anomaly_report(tmp_path / "reports" / "broken_data.md", CLEAN_REPORT)

    content = path.read_text(encoding="utf-8")
    assert content.startswith("# Broken Data Report")
    assert CLEAN_REPORT in content
