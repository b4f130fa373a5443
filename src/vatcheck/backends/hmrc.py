"""HMRC (UK) REST backend."""

from __future__ import annotations

import json
from typing import Any, cast

from ..errors import ErrorCode, MalformedRemoteResponse
from ..models import NormalizedVatNumber, RegistrantInfo, ValidationOutcome
from ..transport import RemoteRequest, RemoteResponse
from ..utils.logging_setup import get_logger
from .base import RemoteBackend

LOGGER = get_logger("hmrc")

DEFAULT_BASE_URL = "https://api.service.hmrc.gov.uk/organisations/vat/check-vat-number/lookup/"
ACCEPT_HEADER = "application/vnd.hmrc.1.0+json"


def _format_address(address: dict[str, Any]) -> str:
    parts: list[str] = []
    line = 1
    while address.get(f"line{line}") is not None:
        parts.append(str(address[f"line{line}"]))
        line += 1
    for key in ("postcode", "countryCode"):
        value = address.get(key)
        if value is not None:
            parts.append(str(value))
    return "\n".join(parts)


def _extract_info(payload: dict[str, Any]) -> RegistrantInfo:
    info = RegistrantInfo()
    target = payload.get("target")
    if not isinstance(target, dict):
        return info

    name = target.get("name")
    if name is not None:
        info["name"] = str(name)

    address = target.get("address")
    if isinstance(address, dict):
        info["address"] = _format_address(address)
    return info


def interpret_response(vat_number: str, response: RemoteResponse) -> ValidationOutcome:
    """Classify an HMRC lookup response into a ``ValidationOutcome``.

    Raises ``MalformedRemoteResponse`` when a ``200`` carries a body that is
    not a JSON object.
    """

    if response.status_code == 200:
        try:
            payload = json.loads(response.body)
        except json.JSONDecodeError as exc:
            raise MalformedRemoteResponse(
                f"HMRC returned undecodable JSON for {vat_number}: {exc}"
            ) from exc
        if not isinstance(payload, dict):
            raise MalformedRemoteResponse(
                f"HMRC returned unexpected JSON for {vat_number}: {type(payload).__name__}"
            )
        return ValidationOutcome.success(info=_extract_info(cast(dict[str, Any], payload)))

    if response.status_code == 404:
        return ValidationOutcome.failure(ErrorCode.NOT_FOUND, f"Invalid VAT Number ({vat_number})")

    if response.status_code == 400:
        return ValidationOutcome.failure(
            ErrorCode.MALFORMED, f"VAT number badly formed ({vat_number})"
        )

    LOGGER.warning("HMRC Fehler %s: %s", response.status_code, response.body)
    return ValidationOutcome.failure(
        ErrorCode.SERVER_ERROR, f"Could not contact HMRC: {response.status_line}"
    )


class HmrcBackend(RemoteBackend):
    """Backend querying the HMRC ``check-vat-number`` lookup API."""

    name = "hmrc"

    def __init__(self, base_url: str | None = None) -> None:
        self.base_url = base_url or DEFAULT_BASE_URL

    def build_request(self, vat: NormalizedVatNumber) -> RemoteRequest:
        return RemoteRequest(
            method="GET",
            url=f"{self.base_url.rstrip('/')}/{vat.number}",
            headers={"Accept": ACCEPT_HEADER},
        )

    def interpret(self, vat: NormalizedVatNumber, response: RemoteResponse) -> ValidationOutcome:
        outcome = interpret_response(vat.number, response)
        LOGGER.info(
            "HMRC %s: code=%s valid=%s",
            vat.identifier,
            outcome.error_code,
            outcome.is_valid,
        )
        return outcome


__all__ = ["ACCEPT_HEADER", "DEFAULT_BASE_URL", "HmrcBackend", "interpret_response"]
