from __future__ import annotations

from collections.abc import Iterable

import pytest

from vatcheck.transport import RemoteRequest, RemoteResponse


class FakeTransport:
    """Transport replaying canned responses and recording every request."""

    def __init__(self, responses: Iterable[RemoteResponse] = ()) -> None:
        self.responses = list(responses)
        self.requests: list[RemoteRequest] = []

    def queue(self, status_code: int, body: str, reason: str = "") -> None:
        self.responses.append(RemoteResponse(status_code=status_code, body=body, reason=reason))

    def send(self, request: RemoteRequest) -> RemoteResponse:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        return self.responses.pop(0)


VIES_VALID = """<env:Envelope xmlns:env="http://schemas.xmlsoap.org/soap/envelope/">
<env:Header/>
<env:Body>
<ns2:checkVatResponse xmlns:ns2="urn:ec.europa.eu:taxud:vies:services:checkVat:types">
<ns2:countryCode>BE</ns2:countryCode>
<ns2:vatNumber>0123456789</ns2:vatNumber>
<ns2:requestDate>2026-10-18+02:00</ns2:requestDate>
<ns2:valid>true</ns2:valid>
<ns2:name>ACME SA</ns2:name>
<ns2:address>RUE DE LA LOI 16
1000 BRUXELLES</ns2:address>
</ns2:checkVatResponse>
</env:Body>
</env:Envelope>
"""

VIES_INVALID = """<env:Envelope xmlns:env="http://schemas.xmlsoap.org/soap/envelope/">
<env:Body>
<ns2:checkVatResponse xmlns:ns2="urn:ec.europa.eu:taxud:vies:services:checkVat:types">
<ns2:countryCode>XI</ns2:countryCode>
<ns2:vatNumber>517356542</ns2:vatNumber>
<ns2:valid>false</ns2:valid>
<ns2:name>---</ns2:name>
<ns2:address>---</ns2:address>
</ns2:checkVatResponse>
</env:Body>
</env:Envelope>
"""


def vies_fault(faultcode: str, faultstring: str) -> str:
    return (
        '<env:Envelope xmlns:env="http://schemas.xmlsoap.org/soap/envelope/">'
        "<env:Body><env:Fault>"
        f"<faultcode>{faultcode}</faultcode>\n<faultstring>{faultstring}</faultstring>"
        "</env:Fault></env:Body></env:Envelope>"
    )


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()
