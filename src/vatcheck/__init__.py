"""Zentrale Exporte für das ``vatcheck``-Paket.

Validate EU and UK VAT numbers: locally against per-country patterns and
remotely against VIES (EU) or HMRC (UK).
"""

__version__ = "1.0.0"

from .config import ValidatorConfig, load_config
from .errors import (
    ErrorCode,
    InvalidFormat,
    LocalCheckError,
    MalformedRemoteResponse,
    MissingInput,
    UnknownMemberState,
    VatCheckError,
    is_transient,
    needs_attention,
)
from .models import NormalizedVatNumber, RegistrantInfo, ValidationOutcome
from .normalizer import normalize
from .registry import member_states, pattern_for, regular_expressions
from .routing import Backend, route
from .utils.logging_setup import setup_logger
from .validator import VatValidator

__all__ = [
    "__version__",
    "Backend",
    "ErrorCode",
    "InvalidFormat",
    "LocalCheckError",
    "MalformedRemoteResponse",
    "MissingInput",
    "NormalizedVatNumber",
    "RegistrantInfo",
    "UnknownMemberState",
    "ValidationOutcome",
    "ValidatorConfig",
    "VatCheckError",
    "VatValidator",
    "is_transient",
    "load_config",
    "member_states",
    "needs_attention",
    "normalize",
    "pattern_for",
    "regular_expressions",
    "route",
    "setup_logger",
]
