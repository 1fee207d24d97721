"""Utility functions and helpers."""

from backoffice.utils.datetime_utils import LOCAL_TIMEZONE, local_today

__all__ = [
    "LOCAL_TIMEZONE",
    "local_today",
]
