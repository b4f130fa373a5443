"""Turns free-form VAT input into a ``(country code, number)`` pair.

Normalization is purely local. ``check`` runs it before any network call
so that input which can never be valid is rejected cheaply.
"""

from __future__ import annotations

import re

from .errors import InvalidFormat, MissingInput, UnknownMemberState
from .models import NormalizedVatNumber
from .registry import pattern_for, split_prefix

_SEPARATORS = re.compile(r"[-.\s]+")


def clean(raw_text: str) -> str:
    """Replace hyphens, periods and whitespace runs by single spaces."""

    return _SEPARATORS.sub(" ", raw_text).strip()


def normalize(raw_text: str | None, country_code: str | None = None) -> NormalizedVatNumber:
    """Return the normalized VAT number or raise a ``LocalCheckError``.

    Without *country_code* the code is taken from the start of the text
    (``"BE 0123.456.789"``, ``"be-0123456789"``). With a code given the
    whole text is treated as the number.
    """

    if not raw_text:
        raise MissingInput()

    text = clean(str(raw_text))
    code = (country_code or "").strip().upper()

    if not code:
        split = split_prefix(text)
        if split is not None:
            code, text = split

    rule = pattern_for(code)
    if rule is None:
        raise UnknownMemberState()

    # Spaces are optional in every pattern, the canonical form has none.
    number = text.replace(" ", "")
    if not rule.matches(number):
        raise InvalidFormat()

    return NormalizedVatNumber(country_code=code, number=number)


__all__ = ["clean", "normalize"]
