"""Shared FastAPI dependencies."""

from datetime import date


def get_today() -> date:
    """Clock used to split actual from projected months; overridden in tests."""

    return date.today()
