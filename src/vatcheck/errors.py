"""Error taxonomy shared by the local checks and both remote backends."""

from __future__ import annotations

from enum import IntEnum


class ErrorCode(IntEnum):
    """Stable error codes recorded after every check.

    Codes above 16 describe transient conditions: the number should be
    accepted provisionally and checked again later.
    """

    VALID = -1
    UNKNOWN_MEMBER_STATE = 0
    INVALID_FORMAT = 1
    NOT_FOUND = 2
    MALFORMED = 3
    TIMEOUT = 17
    MS_UNAVAILABLE = 18
    SERVICE_BUSY = 19  # no longer produced by VIES
    CONNECTION_FAILED = 20
    STREAM_PARSE_FAILED = 21
    UNRECOGNIZED_RESPONSE = 257
    SERVER_ERROR = 500


def is_transient(code: int) -> bool:
    """Return ``True`` if a later retry of the same number may succeed."""

    return code > 16


def needs_attention(code: int) -> bool:
    """Return ``True`` if the response did not match any known shape."""

    return code == ErrorCode.UNRECOGNIZED_RESPONSE


class VatCheckError(Exception):
    """Base class for all errors raised by ``vatcheck``."""

    code: int = ErrorCode.UNRECOGNIZED_RESPONSE
    default_message = "VAT check failed"

    def __init__(self, message: str | None = None, *, code: int | None = None) -> None:
        self.message = message or self.default_message
        if code is not None:
            self.code = code
        super().__init__(self.message)


class LocalCheckError(VatCheckError):
    """Input rejected before any remote authority was contacted."""

    code = ErrorCode.INVALID_FORMAT


class MissingInput(LocalCheckError):
    default_message = "You must provide a VAT number"


class UnknownMemberState(LocalCheckError):
    code = ErrorCode.UNKNOWN_MEMBER_STATE
    default_message = "Unknown MS code"


class InvalidFormat(LocalCheckError):
    default_message = "Invalid VAT number format"


class MalformedRemoteResponse(VatCheckError):
    """A success status arrived with a body that cannot be decoded."""

    default_message = "Malformed response from remote authority"


__all__ = [
    "ErrorCode",
    "InvalidFormat",
    "LocalCheckError",
    "MalformedRemoteResponse",
    "MissingInput",
    "UnknownMemberState",
    "VatCheckError",
    "is_transient",
    "needs_attention",
]
