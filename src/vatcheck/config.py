"""Construction-time settings for ``VatValidator``.

Settings come from keyword arguments, from ``VATCHECK_*`` environment
variables (optionally loaded from a ``.env`` file by the CLI) or from a
YAML file. Later sources override earlier ones.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml

from .backends.hmrc import DEFAULT_BASE_URL as DEFAULT_HMRC_BASEURL
from .backends.vies import DEFAULT_BASE_URL as DEFAULT_VIES_BASEURL
from .transport import DEFAULT_TIMEOUT, normalise_timeout

ENV_VIES_BASEURL = "VATCHECK_VIES_BASEURL"
ENV_HMRC_BASEURL = "VATCHECK_HMRC_BASEURL"
ENV_PROXY = "VATCHECK_PROXY"
ENV_TIMEOUT = "VATCHECK_TIMEOUT"

_YAML_KEYS = {"baseurl", "hmrc_baseurl", "proxy", "timeout"}


@dataclass(frozen=True)
class ValidatorConfig:
    baseurl: str = DEFAULT_VIES_BASEURL
    hmrc_baseurl: str = DEFAULT_HMRC_BASEURL
    proxy: tuple[str, str] | None = None
    timeout: tuple[float, float] = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ValidatorConfig:
        env = os.environ if environ is None else environ
        proxy_raw = env.get(ENV_PROXY)
        timeout_raw = env.get(ENV_TIMEOUT)
        return cls(
            baseurl=env.get(ENV_VIES_BASEURL) or DEFAULT_VIES_BASEURL,
            hmrc_baseurl=env.get(ENV_HMRC_BASEURL) or DEFAULT_HMRC_BASEURL,
            proxy=parse_proxy(proxy_raw) if proxy_raw else None,
            timeout=parse_timeout(timeout_raw) if timeout_raw else DEFAULT_TIMEOUT,
        )


def parse_proxy(value: str) -> tuple[str, str]:
    """Parse ``"scheme=url"`` or a bare proxy URL (applied to ``https``)."""

    value = value.strip()
    if not value:
        raise ValueError("Proxy-Angabe darf nicht leer sein")
    scheme, sep, url = value.partition("=")
    if sep and "://" not in scheme:
        scheme, url = scheme.strip(), url.strip()
        if not scheme or not url:
            raise ValueError(f"Ungültige Proxy-Angabe: {value}")
        return (scheme, url)
    return ("https", value)


def parse_timeout(value: str) -> tuple[float, float]:
    """Parse ``"5"`` or ``"5,30"`` into a ``(connect, read)`` tuple."""

    try:
        parts = [float(part) for part in value.split(",") if part.strip()]
    except ValueError as exc:
        raise ValueError(f"Ungültiger Timeout-Wert: {value}") from exc
    return normalise_timeout(parts)


def _proxy_from_yaml(value: Any) -> tuple[str, str] | None:
    if value is None:
        return None
    if isinstance(value, str):
        return parse_proxy(value)
    if isinstance(value, Mapping):
        scheme = value.get("scheme")
        url = value.get("url")
        if scheme and url:
            return (str(scheme), str(url))
    elif isinstance(value, list | tuple) and len(value) == 2:
        return (str(value[0]), str(value[1]))
    raise ValueError(f"Ungültige Proxy-Angabe in YAML: {value!r}")


def _timeout_from_yaml(value: Any) -> tuple[float, float]:
    if isinstance(value, int | float):
        return normalise_timeout(float(value))
    if isinstance(value, list | tuple):
        try:
            return normalise_timeout([float(part) for part in value])
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Ungültiger Timeout-Wert in YAML: {value!r}") from exc
    raise ValueError(f"Ungültiger Timeout-Wert in YAML: {value!r}")


def load_config(
    path: str | Path,
    *,
    environ: Mapping[str, str] | None = None,
) -> ValidatorConfig:
    """Read a YAML config file on top of the environment settings."""

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Konfigurationsdatei nicht gefunden: {config_path}")

    config = ValidatorConfig.from_env(environ)
    data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if data is None:
        return config
    if not isinstance(data, Mapping):
        raise ValueError("Konfigurations-YAML muss ein Dictionary enthalten")

    unknown = set(map(str, data)) - _YAML_KEYS
    if unknown:
        raise ValueError(f"Unbekannte Konfigurationsschlüssel: {', '.join(sorted(unknown))}")

    changes: dict[str, Any] = {}
    if data.get("baseurl"):
        changes["baseurl"] = str(data["baseurl"])
    if data.get("hmrc_baseurl"):
        changes["hmrc_baseurl"] = str(data["hmrc_baseurl"])
    if "proxy" in data:
        changes["proxy"] = _proxy_from_yaml(data["proxy"])
    if data.get("timeout") is not None:
        changes["timeout"] = _timeout_from_yaml(data["timeout"])

    return replace(config, **changes)


__all__ = [
    "ENV_HMRC_BASEURL",
    "ENV_PROXY",
    "ENV_TIMEOUT",
    "ENV_VIES_BASEURL",
    "ValidatorConfig",
    "load_config",
    "parse_proxy",
    "parse_timeout",
]
