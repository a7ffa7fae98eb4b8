from __future__ import annotations

import pytest
import requests

from wilayah_harvest.common.errors import MalformedPayloadError
from wilayah_harvest.common.http import HttpClient, HttpRequestError, RetryableHttpError


class FakeResponse:
    def __init__(self, status_code: int, payload=None, raises_json: bool = False):
        self.status_code = status_code
        self._payload = payload
        self._raises_json = raises_json

    def json(self):
        if self._raises_json:
            raise ValueError("bad json")
        return self._payload


def test_http_get_json_success(monkeypatch):
    client = HttpClient()

    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(200, [{"kode": "1"}]))
    payload = client.get_json("https://example.com", params={"level": "provinsi"})

    assert payload == [{"kode": "1"}]


def test_http_retryable_status_raises_retryable_error(monkeypatch):
    client = HttpClient()
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(503, {"x": 1}))

    with pytest.raises(RetryableHttpError):
        client.get_json("https://example.com")


def test_http_client_error_status_raises_http_error(monkeypatch):
    client = HttpClient()
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(404))

    with pytest.raises(HttpRequestError) as excinfo:
        client.get_json("https://example.com")
    assert not isinstance(excinfo.value, RetryableHttpError)


def test_http_transport_failure_is_retryable(monkeypatch):
    client = HttpClient()

    def _boom(**_kwargs):
        raise requests.ConnectionError("connection reset")

    monkeypatch.setattr(client.session, "request", _boom)

    with pytest.raises(RetryableHttpError):
        client.get_json("https://example.com")


def test_http_invalid_json_raises_malformed_payload(monkeypatch):
    client = HttpClient()
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(200, raises_json=True))

    with pytest.raises(MalformedPayloadError):
        client.get_json("https://example.com")
