"""Selects the remote authority responsible for a country code."""

from __future__ import annotations

from enum import Enum


class Backend(str, Enum):
    VIES = "vies"
    HMRC = "hmrc"


# XI shares the GB number format, but HMRC cannot confirm a Northern Irish
# registration; those numbers are checked against VIES.
_HMRC_CODES = frozenset({"GB"})


def route(country_code: str) -> Backend:
    """Return the authority that confirms numbers of *country_code*.

    Only GB goes to HMRC. XI is checked by VIES, so a check of an XI number
    succeeds exactly when VIES confirms the registration.
    """

    if country_code in _HMRC_CODES:
        return Backend.HMRC
    return Backend.VIES


__all__ = ["Backend", "route"]
