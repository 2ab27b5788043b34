"""Domain model package."""

from staffplan.models.allocation import AllocationMap
from staffplan.models.entities import (
    AllocationTotals,
    Assignment,
    CalendarEvent,
    CalendarEventType,
    Client,
    Contract,
    Project,
    Resource,
    Role,
    RoleCostRecord,
)
from staffplan.models.periods import DateWindow

__all__ = [
    "AllocationMap",
    "AllocationTotals",
    "Assignment",
    "CalendarEvent",
    "CalendarEventType",
    "Client",
    "Contract",
    "DateWindow",
    "Project",
    "Resource",
    "Role",
    "RoleCostRecord",
]
