"""Utilities package for the Kitchen Ledger costing engine."""

from .config import Config, get_config, reset_config

__all__ = [
    "Config",
    "get_config",
    "reset_config",
]
