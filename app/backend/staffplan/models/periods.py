"""Date windows and calendar-month arithmetic."""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, timedelta

from staffplan.core.errors import InvalidWindowError

_MONTH_KEY_RE = re.compile(r"^(\d{4})-(\d{2})$")


def month_start(value: date) -> date:
    return date(value.year, value.month, 1)


def month_end(value: date) -> date:
    return add_months(month_start(value), 1) - timedelta(days=1)


def add_months(value: date, months: int) -> date:
    """Shift a month start by a whole number of months."""

    index = value.year * 12 + (value.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def month_key(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def parse_month_key(value: str) -> date:
    match = _MONTH_KEY_RE.match(value.strip())
    if match is None:
        raise InvalidWindowError(f"Month {value!r} must use the YYYY-MM format.")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise InvalidWindowError(f"Month {value!r} is out of range.")
    return date(year, month, 1)


def month_sequence(start_month: date, end_month: date) -> list[date]:
    current = month_start(start_month)
    end = month_start(end_month)
    months: list[date] = []
    while current <= end:
        months.append(current)
        current = add_months(current, 1)
    return months


@dataclass(frozen=True, slots=True)
class DateWindow:
    """Inclusive date interval ``[start, end]``."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise InvalidWindowError(
                f"Window start {self.start.isoformat()} is after end {self.end.isoformat()}."
            )

    @classmethod
    def for_month(cls, value: date | str) -> DateWindow:
        first = parse_month_key(value) if isinstance(value, str) else month_start(value)
        return cls(first, month_end(first))

    @property
    def month_key(self) -> str:
        return month_key(self.start)

    def intersect(self, start: date | None = None, end: date | None = None) -> DateWindow | None:
        """Clip to optional bounds; ``None`` when nothing is left."""

        clipped_start = self.start if start is None else max(self.start, start)
        clipped_end = self.end if end is None else min(self.end, end)
        if clipped_start > clipped_end:
            return None
        return DateWindow(clipped_start, clipped_end)

    def month_keys(self) -> list[str]:
        return [month_key(first) for first in month_sequence(self.start, self.end)]

    def days(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)
