"""Working-day classification against company and local holiday calendars."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, timedelta

from staffplan.models.entities import CalendarEvent, CalendarEventType
from staffplan.models.periods import DateWindow

GLOBAL_EVENT_TYPES = {CalendarEventType.NATIONAL_HOLIDAY, CalendarEventType.COMPANY_CLOSURE}


class CalendarService:
    """Answers "is this a working day here" from a read-only event list."""

    def __init__(self, events: Iterable[CalendarEvent] = ()) -> None:
        self.events = tuple(events)
        self._closed_everywhere: set[date] = set()
        self._closed_locally: dict[date, set[str]] = {}
        for event in self.events:
            if event.type in GLOBAL_EVENT_TYPES:
                self._closed_everywhere.add(event.date)
            elif event.type is CalendarEventType.LOCAL_HOLIDAY and event.location is not None:
                self._closed_locally.setdefault(event.date, set()).add(event.location)

    def is_holiday(self, day: date, location: str | None) -> bool:
        if day in self._closed_everywhere:
            return True
        if location is None:
            return False
        return location in self._closed_locally.get(day, ())

    def is_working_day(self, day: date, location: str | None) -> bool:
        if day.weekday() >= 5:
            return False
        return not self.is_holiday(day, location)

    def working_days_between(self, start: date, end: date, location: str | None) -> int:
        """Count working days in ``[start, end]``; zero when ``start > end``."""

        count = 0
        current = start
        while current <= end:
            if self.is_working_day(current, location):
                count += 1
            current += timedelta(days=1)
        return count

    def working_days_in(self, window: DateWindow | None, location: str | None) -> int:
        if window is None:
            return 0
        return self.working_days_between(window.start, window.end, location)


def as_calendar(calendar: CalendarService | Iterable[CalendarEvent] | None) -> CalendarService:
    if isinstance(calendar, CalendarService):
        return calendar
    return CalendarService(calendar or ())


def is_working_day(
    day: date,
    location: str | None,
    calendar: CalendarService | Iterable[CalendarEvent] | None,
) -> bool:
    return as_calendar(calendar).is_working_day(day, location)


def working_days_between(
    start: date,
    end: date,
    calendar: CalendarService | Iterable[CalendarEvent] | None,
    location: str | None,
) -> int:
    return as_calendar(calendar).working_days_between(start, end, location)
