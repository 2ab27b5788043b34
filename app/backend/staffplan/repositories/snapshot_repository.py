"""Indexed read access over an immutable staffing snapshot."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from staffplan.models.entities import (
    Assignment,
    CalendarEvent,
    Client,
    Contract,
    Project,
    Resource,
    Role,
    RoleCostRecord,
)


@dataclass(frozen=True, slots=True)
class StaffingSnapshot:
    """Everything one engine call reads, supplied by the surrounding application."""

    resources: tuple[Resource, ...] = ()
    projects: tuple[Project, ...] = ()
    assignments: tuple[Assignment, ...] = ()
    roles: tuple[Role, ...] = ()
    cost_history: tuple[RoleCostRecord, ...] = ()
    clients: tuple[Client, ...] = ()
    contracts: tuple[Contract, ...] = ()
    calendar_events: tuple[CalendarEvent, ...] = ()


class SnapshotRepository:
    """Lookup operations used by the aggregation, rollup and forecast services."""

    def __init__(self, snapshot: StaffingSnapshot) -> None:
        self.snapshot = snapshot
        self._resources = {row.id: row for row in snapshot.resources}
        self._projects = {row.id: row for row in snapshot.projects}
        self._clients = {row.id: row for row in snapshot.clients}
        self._contracts = {row.id: row for row in snapshot.contracts}
        self._assignments = {row.id: row for row in snapshot.assignments}

        self._assignments_by_resource: dict[str, list[Assignment]] = {}
        self._assignments_by_project: dict[str, list[Assignment]] = {}
        for assignment in snapshot.assignments:
            self._assignments_by_resource.setdefault(assignment.resource_id, []).append(assignment)
            self._assignments_by_project.setdefault(assignment.project_id, []).append(assignment)

    # ---------- Entities ----------
    def get_resource(self, resource_id: str) -> Resource | None:
        return self._resources.get(resource_id)

    def get_project(self, project_id: str) -> Project | None:
        return self._projects.get(project_id)

    def get_client(self, client_id: str | None) -> Client | None:
        if client_id is None:
            return None
        return self._clients.get(client_id)

    def get_contract(self, contract_id: str | None) -> Contract | None:
        if contract_id is None:
            return None
        return self._contracts.get(contract_id)

    def list_resources(self) -> Sequence[Resource]:
        return self.snapshot.resources

    def list_projects(self, *, client_id: str | None = None) -> list[Project]:
        if client_id is None:
            return list(self.snapshot.projects)
        return [project for project in self.snapshot.projects if project.client_id == client_id]

    # ---------- Assignments ----------
    def get_assignment(self, assignment_id: str) -> Assignment | None:
        return self._assignments.get(assignment_id)

    def list_assignments(self) -> Sequence[Assignment]:
        return self.snapshot.assignments

    def list_assignments_for_resource(self, resource_id: str) -> list[Assignment]:
        return list(self._assignments_by_resource.get(resource_id, ()))

    def list_assignments_for_project(self, project_id: str) -> list[Assignment]:
        return list(self._assignments_by_project.get(project_id, ()))
