"""Hilfsmodule für ``vatcheck``."""

from .logging_setup import get_logger, setup_logger

__all__ = ["get_logger", "setup_logger"]
