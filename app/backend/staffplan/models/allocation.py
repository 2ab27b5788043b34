"""Sparse per-assignment allocation container."""

from __future__ import annotations

import re
from bisect import bisect_left, bisect_right
from collections.abc import Iterator, Mapping
from datetime import date, datetime
from decimal import Decimal

from staffplan.core.errors import MalformedAllocationKeyError
from staffplan.core.numbers import to_decimal
from staffplan.models.periods import month_key

_ISO_DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_allocation_day(key: object, *, assignment_id: str | None = None) -> date:
    """Normalize one allocation key to a ``date``.

    Only ``date`` objects and canonical ``YYYY-MM-DD`` strings are accepted.
    """

    if isinstance(key, datetime):
        return key.date()
    if isinstance(key, date):
        return key
    if isinstance(key, str) and _ISO_DAY_RE.match(key):
        try:
            return date.fromisoformat(key)
        except ValueError as exc:
            raise MalformedAllocationKeyError(key, assignment_id=assignment_id) from exc
    raise MalformedAllocationKeyError(key, assignment_id=assignment_id)


class AllocationMap(Mapping[date, Decimal]):
    """Immutable date -> percentage mapping kept in ascending date order.

    Absent days mean "no allocation", which is different from an explicit 0.
    Percentages are stored as given: negative or >100 values are not clamped.
    """

    __slots__ = ("_days", "_values")

    def __init__(
        self,
        entries: Mapping[object, object] | None = None,
        *,
        assignment_id: str | None = None,
    ) -> None:
        parsed: dict[date, Decimal] = {}
        for key, value in (entries or {}).items():
            day = parse_allocation_day(key, assignment_id=assignment_id)
            if day in parsed:
                raise MalformedAllocationKeyError(
                    key,
                    assignment_id=assignment_id,
                    reason=f"repeats {day.isoformat()} under another spelling",
                )
            parsed[day] = to_decimal(value)
        ordered = sorted(parsed.items())
        self._days: tuple[date, ...] = tuple(day for day, _ in ordered)
        self._values: tuple[Decimal, ...] = tuple(value for _, value in ordered)

    @classmethod
    def from_raw(
        cls,
        raw: Mapping[object, object] | None,
        *,
        assignment_id: str | None = None,
    ) -> AllocationMap:
        """Build from a storage mapping keyed by ISO strings or dates.

        Any malformed or repeated key rejects the whole map.
        """

        return cls(raw, assignment_id=assignment_id)

    def __getitem__(self, day: date) -> Decimal:
        index = bisect_left(self._days, day)
        if index < len(self._days) and self._days[index] == day:
            return self._values[index]
        raise KeyError(day)

    def __iter__(self) -> Iterator[date]:
        return iter(self._days)

    def __len__(self) -> int:
        return len(self._days)

    def __repr__(self) -> str:
        return f"AllocationMap({self.to_iso_dict()!r})"

    @property
    def first_day(self) -> date | None:
        return self._days[0] if self._days else None

    @property
    def last_day(self) -> date | None:
        return self._days[-1] if self._days else None

    def _bounds(self, start: date, end: date) -> tuple[int, int]:
        return bisect_left(self._days, start), bisect_right(self._days, end)

    def between(self, start: date, end: date) -> Iterator[tuple[date, Decimal]]:
        """Entries with ``start <= day <= end``, in date order."""

        lower, upper = self._bounds(start, end)
        for index in range(lower, upper):
            yield self._days[index], self._values[index]

    def has_entries_between(self, start: date, end: date) -> bool:
        lower, upper = self._bounds(start, end)
        return upper > lower

    def month_keys(self) -> list[str]:
        keys: list[str] = []
        for day in self._days:
            key = month_key(day)
            if not keys or keys[-1] != key:
                keys.append(key)
        return keys

    def to_iso_dict(self) -> dict[str, Decimal]:
        return {day.isoformat(): value for day, value in zip(self._days, self._values)}
