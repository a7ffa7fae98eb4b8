from __future__ import annotations

import threading
import time

import pytest

from wilayah_harvest.common.http import RetryableHttpError


class FakeRegionApi:
    """Stands in for HttpClient; answers the three BPS endpoints from dicts."""

    def __init__(
        self,
        *,
        periods=None,
        children=None,
        postal=None,
        failing=None,
        latency: float = 0.0,
    ):
        self.periods = periods if periods is not None else [{"kode": "2026_1.2026", "nama": "2026 Semester 1"}]
        self.children = children or {}
        self.postal = postal or {}
        self.failing = failing or set()
        self.latency = latency
        self.calls: list[tuple[str, dict]] = []
        self.closed = False
        self._lock = threading.Lock()

    def get_json(self, url: str, *, params=None, **_kwargs):
        params = dict(params or {})
        with self._lock:
            self.calls.append((url, params))
        if self.latency:
            time.sleep(self.latency)

        if url.endswith("/rest-drop-down/getperiode"):
            return self.periods

        key = (params.get("level"), params.get("parent"))
        if url.endswith("/rest-bridging/getwilayah"):
            if ("children", *key) in self.failing:
                raise RetryableHttpError("Retryable HTTP status: 503")
            return self.children.get(key, [])
        if url.endswith("/rest-bridging-pos/getwilayah"):
            if ("postal", *key) in self.failing:
                raise RetryableHttpError("Retryable HTTP status: 503")
            return self.postal.get(key, [])
        raise AssertionError(f"unexpected url {url}")

    def calls_to(self, suffix: str) -> list[dict]:
        return [params for url, params in self.calls if url.endswith(suffix)]

    def close(self):
        self.closed = True


def region(kode_bps: str, nama_bps: str, kode_dagri: str | None = None, nama_dagri: str | None = None) -> dict:
    return {
        "kode_bps": kode_bps,
        "nama_bps": nama_bps,
        "kode_dagri": kode_dagri if kode_dagri is not None else kode_bps,
        "nama_dagri": nama_dagri if nama_dagri is not None else nama_bps,
    }


@pytest.fixture
def fake_api_factory():
    return FakeRegionApi


@pytest.fixture
def two_province_api():
    return FakeRegionApi(
        children={
            ("provinsi", "0"): [region("11", "ACEH", "11", "ACEH"), region("12", "SUMATERA UTARA", "12", "SUMATERA UTARA")],
            ("kabupaten-kota", "11"): [region("1101", "SIMEULUE", "11.01", "KAB. SIMEULUE")],
            ("kabupaten-kota", "12"): [region("1201", "NIAS", "12.01", "KAB. NIAS")],
        },
        postal={
            ("provinsi", "0"): [
                {"kode_bps": "11", "kode_pos": "23111"},
                {"kode_bps": "11", "kode_pos": "23999"},
                {"kode_bps": "11", "kode_pos": "23111"},
            ],
            ("kabupaten", "11"): [{"kode_bps": "1101", "kode_pos": "23891"}],
        },
    )
