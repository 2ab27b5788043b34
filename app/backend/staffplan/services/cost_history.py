"""Point-in-time role cost resolution over SCD2 cost history."""

from __future__ import annotations

import logging
from bisect import bisect_right
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from staffplan.core.errors import StaffingEngineError
from staffplan.core.numbers import HUNDRED, ZERO, to_decimal
from staffplan.models.entities import RoleCostRecord

logger = logging.getLogger(__name__)


def _history_order(record: RoleCostRecord) -> tuple[date, date]:
    return record.start_date, record.end_date or date.max


class CostHistoryResolver:
    """Resolves the daily cost of a role as of a given date.

    Records are assumed non-overlapping with at most one open record per role.
    When that does not hold, the covering record with the latest start date
    wins. A date no record covers costs zero.
    """

    def __init__(self, records: Iterable[RoleCostRecord] = ()) -> None:
        history: dict[str, list[RoleCostRecord]] = {}
        for record in records:
            history.setdefault(record.role_id, []).append(record)
        self._history = {role_id: sorted(rows, key=_history_order) for role_id, rows in history.items()}
        self._starts = {
            role_id: [row.start_date for row in rows] for role_id, rows in self._history.items()
        }
        logger.debug("Indexed cost history for %d roles", len(self._history))

    def record_for(self, role_id: str | None, on: date) -> RoleCostRecord | None:
        if role_id is None:
            return None
        rows = self._history.get(role_id)
        if not rows:
            return None
        index = bisect_right(self._starts[role_id], on)
        for row in reversed(rows[:index]):
            if row.covers(on):
                return row
        return None

    def daily_cost(self, role_id: str | None, on: date) -> Decimal:
        record = self.record_for(role_id, on)
        if record is None:
            return ZERO
        return to_decimal(record.daily_cost)

    def segment_cost(
        self,
        role_id: str | None,
        start: date,
        end: date,
        percentage: Decimal | int,
        is_working_day: Callable[[date], bool],
    ) -> Decimal:
        """Cost of a constant-percentage segment, priced day by day."""

        share = to_decimal(percentage) / HUNDRED
        total = ZERO
        current = start
        while current <= end:
            if is_working_day(current):
                total += share * self.daily_cost(role_id, current)
            current += timedelta(days=1)
        return total


def daily_cost(role_id: str | None, on: date, history: CostHistoryResolver | Iterable[RoleCostRecord]) -> Decimal:
    resolver = history if isinstance(history, CostHistoryResolver) else CostHistoryResolver(history)
    return resolver.daily_cost(role_id, on)


# ---------- SCD2 maintenance helpers ----------
@dataclass(frozen=True, slots=True)
class HistoryViolation:
    role_id: str
    kind: str
    records: tuple[RoleCostRecord, ...]


def revise_role_cost(
    records: Iterable[RoleCostRecord],
    *,
    role_id: str,
    new_cost: Decimal,
    effective_from: date,
) -> tuple[RoleCostRecord, ...]:
    """Return a new history with ``new_cost`` opened at ``effective_from``.

    The role's open record is closed the day before; a same-day revision
    replaces the open record instead. Closed records are never touched.
    """

    revised: list[RoleCostRecord] = []
    for record in records:
        if record.role_id != role_id or not record.is_open:
            revised.append(record)
            continue
        if record.start_date > effective_from:
            raise StaffingEngineError(
                f"Cannot open a cost for role {role_id} on {effective_from.isoformat()} "
                f"before the open record starting {record.start_date.isoformat()}."
            )
        if record.start_date < effective_from:
            revised.append(
                RoleCostRecord(
                    role_id=record.role_id,
                    daily_cost=record.daily_cost,
                    start_date=record.start_date,
                    end_date=effective_from - timedelta(days=1),
                )
            )
    revised.append(RoleCostRecord(role_id=role_id, daily_cost=to_decimal(new_cost), start_date=effective_from))
    return tuple(revised)


def find_history_violations(records: Iterable[RoleCostRecord]) -> list[HistoryViolation]:
    """Report SCD2 invariant breaches: inverted ranges, overlaps, several open rows."""

    by_role: dict[str, list[RoleCostRecord]] = {}
    for record in records:
        by_role.setdefault(record.role_id, []).append(record)

    violations: list[HistoryViolation] = []
    for role_id in sorted(by_role):
        rows = sorted(by_role[role_id], key=_history_order)
        for row in rows:
            if row.end_date is not None and row.end_date < row.start_date:
                violations.append(HistoryViolation(role_id, "inverted_range", (row,)))
        open_rows = tuple(row for row in rows if row.is_open)
        if len(open_rows) > 1:
            violations.append(HistoryViolation(role_id, "multiple_open", open_rows))
        for previous, current in zip(rows, rows[1:]):
            previous_end = previous.end_date or date.max
            if current.start_date <= previous_end:
                violations.append(HistoryViolation(role_id, "overlap", (previous, current)))
    return violations
