from __future__ import annotations

from typing import Any

import pytest
import requests

from vatcheck import ErrorCode, VatValidator, __version__
from vatcheck.transport import RemoteRequest, RequestsTransport, normalise_timeout


class _DummyResponse:
    def __init__(self, status_code: int, text: str, reason: str = "OK") -> None:
        self.status_code = status_code
        self.text = text
        self.reason = reason


@pytest.fixture
def captured(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    calls: list[dict[str, Any]] = []

    def fake_request(method: str, url: str, **kwargs: Any) -> _DummyResponse:
        calls.append({"method": method, "url": url, **kwargs})
        return _DummyResponse(200, "<valid>true</valid>")

    monkeypatch.setattr("vatcheck.transport.requests.request", fake_request)
    return calls


def test_send_passes_headers_timeout_and_body(captured: list[dict[str, Any]]) -> None:
    transport = RequestsTransport(timeout=(2, 10))
    response = transport.send(
        RemoteRequest(
            method="POST",
            url="https://vies.test/",
            headers={"Content-Type": "text/xml; charset=utf-8"},
            body="<x>é</x>",
        )
    )

    assert response.status_code == 200
    assert response.body == "<valid>true</valid>"
    call = captured[0]
    assert call["method"] == "POST"
    assert call["headers"]["User-Agent"] == f"vatcheck/{__version__}"
    assert call["headers"]["Content-Type"] == "text/xml; charset=utf-8"
    assert call["timeout"] == (2.0, 10.0)
    assert call["data"] == "<x>é</x>".encode()
    assert call["proxies"] is None


def test_explicit_proxy(captured: list[dict[str, Any]]) -> None:
    transport = RequestsTransport(proxy=("https", "http://proxy.local:8001/"))
    transport.send(RemoteRequest(method="GET", url="https://hmrc.test/lookup/1"))
    assert captured[0]["proxies"] == {"https": "http://proxy.local:8001/"}
    assert captured[0]["data"] is None


def test_connection_error_becomes_synthetic_response(monkeypatch: pytest.MonkeyPatch) -> None:
    def failing_request(method: str, url: str, **kwargs: Any) -> _DummyResponse:
        raise requests.ConnectionError("Name or service not known")

    monkeypatch.setattr("vatcheck.transport.requests.request", failing_request)

    response = RequestsTransport().send(RemoteRequest(method="POST", url="https://vies.test/x"))
    assert response.status_code == 500
    assert response.body.startswith("Can't connect to vies.test")
    assert response.status_line == "500 Can't connect to vies.test"


def test_connection_error_maps_to_code_20_for_vies(monkeypatch: pytest.MonkeyPatch) -> None:
    def failing_request(method: str, url: str, **kwargs: Any) -> _DummyResponse:
        raise requests.Timeout("read timed out")

    monkeypatch.setattr("vatcheck.transport.requests.request", failing_request)

    validator = VatValidator()
    assert validator.check("DE123456789") is False
    assert validator.get_last_error_code() == ErrorCode.CONNECTION_FAILED

    assert validator.check("GB123456789") is False
    assert validator.get_last_error_code() == ErrorCode.SERVER_ERROR
    assert validator.get_last_error().startswith("Could not contact HMRC: 500 Can't connect to")


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, (5.0, 30.0)),
        (3, (3.0, 30.0)),
        ([4], (4.0, 30.0)),
        ((1, 2), (1.0, 2.0)),
        ([], (5.0, 30.0)),
    ],
)
def test_normalise_timeout(value: Any, expected: tuple[float, float]) -> None:
    assert normalise_timeout(value) == expected
