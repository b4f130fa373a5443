"""Remote authorities queried by ``vatcheck``."""

from .base import RemoteBackend
from .hmrc import HmrcBackend
from .vies import ViesBackend

__all__ = ["RemoteBackend", "HmrcBackend", "ViesBackend"]
