"""VIES (EU) SOAP backend.

The VIES service is not a stable, versioned schema: namespace prefixes
have changed several times. Responses are therefore scanned by local
element name with lenient regular expressions instead of being parsed
against the WSDL.
"""

from __future__ import annotations

import re
from xml.sax.saxutils import escape

from ..errors import ErrorCode
from ..models import NormalizedVatNumber, RegistrantInfo, ValidationOutcome
from ..transport import RemoteRequest, RemoteResponse
from ..utils.logging_setup import get_logger
from .base import RemoteBackend

LOGGER = get_logger("vies")

DEFAULT_BASE_URL = "https://ec.europa.eu/taxation_customs/vies/services/checkVatService"

_ENVELOPE = """<s11:Envelope xmlns:s11='http://schemas.xmlsoap.org/soap/envelope/'>
  <s11:Body>
    <tns1:checkVat xmlns:tns1='urn:ec.europa.eu:taxud:vies:services:checkVat:types'>
      <tns1:countryCode>{country_code}</tns1:countryCode>
      <tns1:vatNumber>{vat_number}</tns1:vatNumber>
    </tns1:checkVat>
  </s11:Body>
</s11:Envelope>
"""

_LINE_BREAKS = re.compile(r"[\r\n]")
_CONNECT_FAILURE = re.compile(r"^\s*Can't connect to")
_STREAM_FAILURE = re.compile(r"^Couldn't parse stream")


def _element_re(local_name: str) -> re.Pattern[str]:
    # <valid>, <ns2:valid>, <ns2:valid xmlns:ns2="..."> ... </any:valid>
    return re.compile(
        r"<(?:[\w.-]+:)?" + local_name + r"(?:\s[^>]*)?>\s*(.*?)\s*</(?:[\w.-]+:)?" + local_name + r"\s*>",
        re.DOTALL,
    )


_VALID = _element_re("valid")
_NAME = _element_re("name")
_ADDRESS = _element_re("address")
_FAULT_CODE = _element_re("faultcode")
_FAULT_STRING = _element_re("faultstring")


def build_envelope(country_code: str, vat_number: str) -> str:
    """Return the SOAP 1.1 envelope invoking ``checkVat``."""

    return _ENVELOPE.format(
        country_code=escape(country_code),
        vat_number=escape(vat_number),
    )


def _find(pattern: re.Pattern[str], text: str) -> str | None:
    match = pattern.search(text)
    if match is None:
        return None
    return match.group(1)


def interpret_response(status_code: int, body: str) -> ValidationOutcome:
    """Classify a VIES response into a ``ValidationOutcome``."""

    text = _LINE_BREAKS.sub(" ", body or "")

    if status_code == 200:
        return _interpret_success(text)
    return _interpret_failure(status_code, text)


def _interpret_success(text: str) -> ValidationOutcome:
    flag = _find(_VALID, text)
    if flag is None:
        LOGGER.error("Unbekanntes VIES-Antwortformat: %s", text)
        return ValidationOutcome.failure(
            ErrorCode.UNRECOGNIZED_RESPONSE,
            "Invalid response, please contact the maintainer of this library. " + text,
            raw_response=text,
        )

    if flag in ("true", "1"):
        info = RegistrantInfo()
        name = _find(_NAME, text)
        if name is not None:
            info["name"] = name
        address = _find(_ADDRESS, text)
        if address is not None:
            info["address"] = address
        return ValidationOutcome.success(info=info, raw_response=text)

    return ValidationOutcome.failure(
        ErrorCode.NOT_FOUND,
        f"Invalid VAT Number ({flag})",
        raw_response=text,
    )


def _is_server_fault(fault_code: str) -> bool:
    # soap:Server, env:Server, S:Server
    return fault_code.rpartition(":")[2] == "Server"


def _interpret_failure(status_code: int, text: str) -> ValidationOutcome:
    fault_code = _find(_FAULT_CODE, text)
    fault_string = _find(_FAULT_STRING, text)

    if fault_code is not None and fault_string is not None:
        if _is_server_fault(fault_code) and fault_string == "TIMEOUT":
            LOGGER.warning("VIES Timeout (HTTP %s)", status_code)
            return ValidationOutcome.failure(
                ErrorCode.TIMEOUT,
                "The VIES server timed out. Please re-submit your request later.",
                raw_response=text,
            )
        if _is_server_fault(fault_code) and fault_string == "MS_UNAVAILABLE":
            LOGGER.warning("VIES: Mitgliedstaat nicht erreichbar (HTTP %s)", status_code)
            return ValidationOutcome.failure(
                ErrorCode.MS_UNAVAILABLE,
                "Member State service unavailable. Please re-submit your request later.",
                raw_response=text,
            )
        if _STREAM_FAILURE.match(fault_string):
            LOGGER.warning("VIES konnte den Stream nicht verarbeiten (HTTP %s)", status_code)
            return ValidationOutcome.failure(
                ErrorCode.STREAM_PARSE_FAILED,
                "The VIES database failed to parse a stream. Please re-submit your request later.",
                raw_response=text,
            )
        LOGGER.warning("VIES Fault %s: %s %s", status_code, fault_code, fault_string)
        return ValidationOutcome.failure(
            status_code,
            f"{fault_code} {fault_string}",
            raw_response=text,
        )

    if _CONNECT_FAILURE.match(text):
        return ValidationOutcome.failure(
            ErrorCode.CONNECTION_FAILED,
            "Connection to the VIES database failed. " + text.strip(),
            raw_response=text,
        )

    LOGGER.error("Unbekannte VIES-Antwort (HTTP %s): %s", status_code, text)
    return ValidationOutcome.failure(
        ErrorCode.UNRECOGNIZED_RESPONSE,
        f"Invalid response [{status_code}], please contact the maintainer of this library. {text}",
        raw_response=text,
    )


class ViesBackend(RemoteBackend):
    """Backend querying the EU VIES ``checkVat`` SOAP operation."""

    name = "vies"

    def __init__(self, base_url: str | None = None) -> None:
        self.base_url = base_url or DEFAULT_BASE_URL

    def build_request(self, vat: NormalizedVatNumber) -> RemoteRequest:
        return RemoteRequest(
            method="POST",
            url=self.base_url,
            headers={"Content-Type": "text/xml; charset=utf-8"},
            body=build_envelope(vat.country_code, vat.number),
        )

    def interpret(self, vat: NormalizedVatNumber, response: RemoteResponse) -> ValidationOutcome:
        outcome = interpret_response(response.status_code, response.body)
        LOGGER.info(
            "VIES %s: code=%s valid=%s",
            vat.identifier,
            outcome.error_code,
            outcome.is_valid,
        )
        return outcome


__all__ = [
    "DEFAULT_BASE_URL",
    "ViesBackend",
    "build_envelope",
    "interpret_response",
]
