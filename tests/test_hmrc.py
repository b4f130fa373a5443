from __future__ import annotations

import json

import pytest

from vatcheck.backends.hmrc import ACCEPT_HEADER, HmrcBackend, interpret_response
from vatcheck.errors import ErrorCode, MalformedRemoteResponse
from vatcheck.models import NormalizedVatNumber
from vatcheck.transport import RemoteResponse


def _ok(payload: object) -> RemoteResponse:
    return RemoteResponse(status_code=200, body=json.dumps(payload), reason="OK")


def test_build_request_appends_number() -> None:
    backend = HmrcBackend("https://test-api.service.hmrc.gov.uk/lookup")
    request = backend.build_request(NormalizedVatNumber("GB", "517356542"))
    assert request.method == "GET"
    assert request.url == "https://test-api.service.hmrc.gov.uk/lookup/517356542"
    assert request.headers == {"Accept": ACCEPT_HEADER}
    assert request.body is None


def test_default_base_url_keeps_single_slash() -> None:
    request = HmrcBackend().build_request(NormalizedVatNumber("GB", "517356542"))
    assert request.url.endswith("/lookup/517356542")
    assert "//517356542" not in request.url


def test_success_extracts_name_and_address() -> None:
    outcome = interpret_response(
        "553557881",
        _ok(
            {
                "target": {
                    "name": "Credite Sberger Donal Inc.",
                    "vatNumber": "553557881",
                    "address": {
                        "line1": "131B Barton Hamlet",
                        "line2": "Greater London",
                        "postcode": "SW97 5CK",
                        "countryCode": "GB",
                    },
                },
                "processingDate": "2026-10-18T10:00:00+01:00",
            }
        ),
    )
    assert outcome.is_valid
    assert outcome.error_code == ErrorCode.VALID
    assert outcome.info["name"] == "Credite Sberger Donal Inc."
    assert outcome.info["address"] == "131B Barton Hamlet\nGreater London\nSW97 5CK\nGB"


def test_address_lines_stop_at_first_gap() -> None:
    outcome = interpret_response(
        "553557881",
        _ok({"target": {"name": "X", "address": {"line1": "a", "line3": "c", "postcode": "P"}}}),
    )
    assert outcome.info["address"] == "a\nP"


def test_success_without_target() -> None:
    outcome = interpret_response("553557881", _ok({}))
    assert outcome.is_valid
    assert outcome.info == {}


def test_not_found() -> None:
    outcome = interpret_response("123456789", RemoteResponse(404, "{}", "Not Found"))
    assert not outcome.is_valid
    assert outcome.error_code == ErrorCode.NOT_FOUND
    assert outcome.error_message == "Invalid VAT Number (123456789)"


def test_bad_request() -> None:
    outcome = interpret_response("GD123", RemoteResponse(400, "{}", "Bad Request"))
    assert outcome.error_code == ErrorCode.MALFORMED
    assert "badly formed" in outcome.error_message


@pytest.mark.parametrize("status", [429, 500, 503])
def test_other_status_is_server_error(status: int) -> None:
    outcome = interpret_response("123456789", RemoteResponse(status, "", "Service Unavailable"))
    assert outcome.error_code == ErrorCode.SERVER_ERROR
    assert outcome.error_message == f"Could not contact HMRC: {status} Service Unavailable"


@pytest.mark.parametrize("body", ["<html>oops</html>", "[1, 2]"])
def test_malformed_success_body_raises(body: str) -> None:
    with pytest.raises(MalformedRemoteResponse) as excinfo:
        interpret_response("123456789", RemoteResponse(200, body, "OK"))
    assert excinfo.value.code == ErrorCode.UNRECOGNIZED_RESPONSE
