"""HTTP transport used by the remote backends.

The backends only need "send a request, get status and body". Network
failures are not raised: they come back as a synthetic ``500`` response
whose body starts with ``Can't connect to``, which the interpreters
classify like any other upstream failure.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol
from urllib.parse import urlparse

import requests

from . import __version__
from .utils.logging_setup import get_logger

LOGGER = get_logger("transport")

DEFAULT_TIMEOUT: tuple[float, float] = (5.0, 30.0)


@dataclass(frozen=True)
class RemoteRequest:
    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: str | None = None


@dataclass(frozen=True)
class RemoteResponse:
    status_code: int
    body: str
    reason: str = ""

    @property
    def status_line(self) -> str:
        return f"{self.status_code} {self.reason}".strip()


class Transport(Protocol):
    """Protocol for anything able to perform a single HTTP round trip."""

    def send(self, request: RemoteRequest) -> RemoteResponse:
        ...


def normalise_timeout(timeout: Sequence[float] | float | None) -> tuple[float, float]:
    """Return a ``(connect, read)`` tuple, filling gaps from the defaults."""

    if timeout is None:
        return DEFAULT_TIMEOUT
    if isinstance(timeout, int | float):
        return (float(timeout), DEFAULT_TIMEOUT[1])
    if len(timeout) == 0:
        return DEFAULT_TIMEOUT
    if len(timeout) == 1:
        return (float(timeout[0]), DEFAULT_TIMEOUT[1])
    return (float(timeout[0]), float(timeout[1]))


class RequestsTransport:
    """Transport backed by :mod:`requests`.

    ``proxy`` is an optional ``(scheme, url)`` pair. Without it, ``requests``
    picks up ``HTTP_PROXY``/``HTTPS_PROXY`` from the environment.
    """

    def __init__(
        self,
        *,
        proxy: tuple[str, str] | None = None,
        timeout: Sequence[float] | float | None = None,
    ) -> None:
        self._proxies = {proxy[0]: proxy[1]} if proxy else None
        self._timeout = normalise_timeout(timeout)
        self._user_agent = f"vatcheck/{__version__}"

    @property
    def timeout(self) -> tuple[float, float]:
        return self._timeout

    @property
    def proxies(self) -> dict[str, str] | None:
        return dict(self._proxies) if self._proxies else None

    def send(self, request: RemoteRequest) -> RemoteResponse:
        headers = {"User-Agent": self._user_agent, **request.headers}
        LOGGER.debug("%s %s", request.method, request.url)
        try:
            response = requests.request(
                request.method,
                request.url,
                headers=headers,
                data=request.body.encode("utf-8") if request.body is not None else None,
                timeout=self._timeout,
                proxies=self._proxies,
            )
        except requests.RequestException as exc:
            host = urlparse(request.url).netloc or request.url
            LOGGER.warning("Verbindung zu %s fehlgeschlagen: %s", host, exc)
            return RemoteResponse(
                status_code=500,
                body=f"Can't connect to {host} ({exc.__class__.__name__}: {exc})",
                reason=f"Can't connect to {host}",
            )

        LOGGER.debug("Antwort %s von %s", response.status_code, request.url)
        return RemoteResponse(
            status_code=response.status_code,
            body=response.text,
            reason=response.reason or "",
        )


__all__ = [
    "DEFAULT_TIMEOUT",
    "RemoteRequest",
    "RemoteResponse",
    "RequestsTransport",
    "Transport",
    "normalise_timeout",
]
