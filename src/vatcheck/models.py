"""Value types passed between the normalizer, the backends and the facade."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TypedDict

from .errors import ErrorCode


class RegistrantInfo(TypedDict, total=False):
    name: str
    address: str


@dataclass(frozen=True)
class NormalizedVatNumber:
    country_code: str
    number: str

    @property
    def identifier(self) -> str:
        """Canonical ``"<CC>-<number>"`` form returned by a successful check."""

        return f"{self.country_code}-{self.number}"


@dataclass
class ValidationOutcome:
    """Result of the most recent check performed by a validator."""

    is_valid: bool = False
    error_code: int = ErrorCode.UNKNOWN_MEMBER_STATE
    error_message: str = ""
    info: RegistrantInfo = field(default_factory=RegistrantInfo)
    raw_response: str = ""

    @classmethod
    def success(
        cls,
        message: str = "Valid VAT Number",
        *,
        info: RegistrantInfo | None = None,
        raw_response: str = "",
    ) -> ValidationOutcome:
        return cls(
            is_valid=True,
            error_code=ErrorCode.VALID,
            error_message=message,
            info=info if info is not None else RegistrantInfo(),
            raw_response=raw_response,
        )

    @classmethod
    def failure(cls, code: int, message: str, *, raw_response: str = "") -> ValidationOutcome:
        return cls(
            is_valid=False,
            error_code=int(code),
            error_message=message,
            raw_response=raw_response,
        )
