"""Configuration package."""

from confidential_accumulator.config.settings import (
    AccumulatorSettings,
    KeySettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AccumulatorSettings",
    "KeySettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
