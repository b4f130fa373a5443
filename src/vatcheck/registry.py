"""Per-country syntax rules for VAT numbers.

The patterns follow the formats listed in the VIES FAQ. They are plain
strings so that they can be reused outside Python (for instance in a
client-side form check); compiled, fully anchored versions are kept
alongside for local matching.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

_UK_PATTERN = r"([0-9]{3} ?[0-9]{4} ?[0-9]{2}|[0-9]{3} ?[0-9]{4} ?[0-9]{2} ?[0-9]{3}|GD[0-9]{3}|HA[0-9]{3})"

_PATTERNS: dict[str, str] = {
    "AT": r"U[0-9]{8}",
    "BE": r"[01][0-9]{9}",
    "BG": r"[0-9]{9,10}",
    "CY": r"[0-9]{8}[A-Za-z]",
    "CZ": r"[0-9]{8,10}",
    "DE": r"[0-9]{9}",
    "DK": r"[0-9]{2} ?[0-9]{2} ?[0-9]{2} ?[0-9]{2}",
    "EE": r"[0-9]{9}",
    "EL": r"[0-9]{9}",
    "ES": r"([A-Za-z0-9][0-9]{7}[A-Za-z0-9])",
    "FI": r"[0-9]{8}",
    "FR": r"[A-Za-z0-9]{2} ?[0-9]{9}",
    "GB": _UK_PATTERN,
    "HR": r"[0-9]{11}",
    "HU": r"[0-9]{8}",
    "IE": r"[0-9][A-Za-z0-9\+\*][0-9]{5}[A-Za-z]{1,2}",
    "IT": r"[0-9]{11}",
    "LT": r"([0-9]{9}|[0-9]{12})",
    "LU": r"[0-9]{8}",
    "LV": r"[0-9]{11}",
    "MT": r"[0-9]{8}",
    "NL": r"[0-9]{9}B[0-9]{2}",
    "PL": r"[0-9]{10}",
    "PT": r"[0-9]{9}",
    "RO": r"[0-9]{2,10}",
    "SE": r"[0-9]{12}",
    "SI": r"[0-9]{8}",
    "SK": r"[0-9]{10}",
    "XI": _UK_PATTERN,
}


@dataclass(frozen=True)
class CountryRule:
    country_code: str
    pattern: str

    @property
    def regex(self) -> re.Pattern[str]:
        return _COMPILED[self.country_code]

    def matches(self, number: str) -> bool:
        return self.regex.fullmatch(number) is not None


_COMPILED: Mapping[str, re.Pattern[str]] = MappingProxyType(
    {code: re.compile(pattern) for code, pattern in _PATTERNS.items()}
)

RULES: Mapping[str, CountryRule] = MappingProxyType(
    {code: CountryRule(code, pattern) for code, pattern in _PATTERNS.items()}
)

_PREFIX_RE = re.compile(
    r"^(" + "|".join(sorted(RULES)) + r") ?",
    re.IGNORECASE,
)


def pattern_for(country_code: str) -> CountryRule | None:
    """Return the rule for *country_code* or ``None`` if it is not supported."""

    return RULES.get(country_code)


def member_states() -> list[str]:
    """Return all supported country codes (``EL`` for Greece, ``XI`` for NI)."""

    return sorted(RULES)


def regular_expressions() -> dict[str, str]:
    """Return a copy of the pattern strings keyed by country code."""

    return {code: rule.pattern for code, rule in RULES.items()}


def split_prefix(text: str) -> tuple[str, str] | None:
    """Split a leading country code (and one optional space) off *text*."""

    match = _PREFIX_RE.match(text)
    if match is None:
        return None
    return match.group(1).upper(), text[match.end():]


__all__ = [
    "CountryRule",
    "RULES",
    "member_states",
    "pattern_for",
    "regular_expressions",
    "split_prefix",
]
