"""Validation facade combining the local and the remote checks."""

from __future__ import annotations

from collections.abc import Sequence
from typing import overload

from . import registry
from .backends import HmrcBackend, RemoteBackend, ViesBackend
from .config import ValidatorConfig
from .errors import LocalCheckError, MalformedRemoteResponse
from .models import RegistrantInfo, ValidationOutcome
from .normalizer import normalize
from .routing import Backend, route
from .transport import RequestsTransport, Transport
from .utils.logging_setup import get_logger

LOGGER = get_logger("validator")


class VatValidator:
    """Check EU and UK VAT numbers against VIES or HMRC.

    Each call to :meth:`check` or :meth:`local_check` replaces the stored
    outcome, which is then available through :meth:`get_last_error`,
    :meth:`get_last_error_code`, :meth:`get_last_response` and
    :meth:`information`. Instances are not meant to be shared between
    threads; use one validator per concurrent check.
    """

    def __init__(
        self,
        baseurl: str | None = None,
        hmrc_baseurl: str | None = None,
        *,
        proxy: tuple[str, str] | None = None,
        timeout: Sequence[float] | float | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._backends: dict[Backend, RemoteBackend] = {
            Backend.VIES: ViesBackend(baseurl),
            Backend.HMRC: HmrcBackend(hmrc_baseurl),
        }
        self._transport: Transport = transport or RequestsTransport(proxy=proxy, timeout=timeout)
        self._outcome = ValidationOutcome()

    @classmethod
    def from_config(
        cls,
        config: ValidatorConfig,
        *,
        transport: Transport | None = None,
    ) -> VatValidator:
        return cls(
            config.baseurl,
            config.hmrc_baseurl,
            proxy=config.proxy,
            timeout=config.timeout,
            transport=transport,
        )

    @property
    def baseurl(self) -> str:
        return self._backends[Backend.VIES].base_url

    @property
    def hmrc_baseurl(self) -> str:
        return self._backends[Backend.HMRC].base_url

    @property
    def last_outcome(self) -> ValidationOutcome:
        return self._outcome

    def member_states(self) -> list[str]:
        return registry.member_states()

    def regular_expressions(self) -> dict[str, str]:
        return registry.regular_expressions()

    def check(self, vat_number: str | None, country_code: str | None = None) -> str | bool:
        """Check a VAT number remotely.

        Returns the canonical ``"<CC>-<number>"`` identifier if the
        authority confirms the number, ``False`` otherwise.
        """

        self._outcome = ValidationOutcome()
        try:
            vat = normalize(vat_number, country_code)
        except LocalCheckError as exc:
            LOGGER.debug("Lokale Prüfung fehlgeschlagen für %r: %s", vat_number, exc.message)
            self._outcome = ValidationOutcome.failure(exc.code, exc.message)
            return False

        backend = self._backends[route(vat.country_code)]
        LOGGER.debug("Prüfe %s über %s", vat.identifier, backend.name)
        response = self._transport.send(backend.build_request(vat))
        try:
            outcome = backend.interpret(vat, response)
        except MalformedRemoteResponse as exc:
            LOGGER.error("Ungültige Antwort von %s: %s", backend.name, exc.message)
            self._outcome = ValidationOutcome.failure(exc.code, exc.message)
            raise

        self._outcome = outcome
        if outcome.is_valid:
            return vat.identifier
        return False

    def local_check(self, vat_number: str | None, country_code: str | None = None) -> bool:
        """Check only the syntax of a VAT number, without network access."""

        self._outcome = ValidationOutcome()
        try:
            normalize(vat_number, country_code)
        except LocalCheckError as exc:
            self._outcome = ValidationOutcome.failure(exc.code, exc.message)
            return False
        self._outcome = ValidationOutcome.success("Valid VAT number format")
        return True

    @overload
    def information(self) -> RegistrantInfo:
        ...

    @overload
    def information(self, key: str) -> str | None:
        ...

    def information(self, key: str | None = None) -> RegistrantInfo | str | None:
        """Return registrant details from the last check, or one key of them."""

        if key:
            return self._outcome.info.get(key)  # type: ignore[return-value]
        return RegistrantInfo(**self._outcome.info)

    def get_last_error(self) -> str:
        return self._outcome.error_message

    def get_last_error_code(self) -> int:
        return self._outcome.error_code

    def get_last_response(self) -> str:
        return self._outcome.raw_response


__all__ = ["VatValidator"]
