"""Datetime utility functions."""

from datetime import date, datetime
from zoneinfo import ZoneInfo

from backoffice.config import settings

# Business timezone (from config)
LOCAL_TIMEZONE = ZoneInfo(settings.timezone)


def local_today() -> date:
    """Today's calendar date in the business timezone."""
    return datetime.now(LOCAL_TIMEZONE).date()
