"""Engine error types."""

from __future__ import annotations


class StaffingEngineError(ValueError):
    """Base class for errors caused by invalid engine input."""


class InvalidWindowError(StaffingEngineError):
    """Raised for a date window or month reference that cannot be evaluated."""


class UnknownEntityError(StaffingEngineError):
    """Raised when a caller asks for an id that is not in the snapshot."""

    def __init__(self, kind: str, entity_id: str) -> None:
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind.capitalize()} {entity_id!r} not found.")


class MalformedAllocationKeyError(StaffingEngineError):
    """Raised when an allocation map key is not an ISO date or names a day twice."""

    def __init__(
        self,
        key: object,
        *,
        assignment_id: str | None = None,
        reason: str = "is not an ISO date (YYYY-MM-DD)",
    ) -> None:
        self.key = key
        self.assignment_id = assignment_id
        scope = f" in assignment {assignment_id}" if assignment_id else ""
        super().__init__(f"Allocation key {key!r}{scope} {reason}.")
