"""Utility modules for towerproxy."""

from .logging import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
