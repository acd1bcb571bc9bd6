"""Read-only roster of employees."""

from __future__ import annotations

from typing import Dict, Iterable, List, Set

from ..errors import UnknownEmployee
from ..models import Employee, EmployeeRole


class Roster:
    """Lookup table of employees keyed by employee id."""

    def __init__(self, employees: Iterable[Employee] = ()) -> None:
        self._employees: Dict[str, Employee] = {}
        for employee in employees:
            if employee.id in self._employees:
                raise ValueError(f"Duplicate employee id {employee.id!r}")
            self._employees[employee.id] = employee

    def __contains__(self, employee_id: object) -> bool:
        return employee_id in self._employees

    def __len__(self) -> int:
        return len(self._employees)

    def get(self, employee_id: str) -> Employee:
        try:
            return self._employees[employee_id]
        except KeyError as exc:
            raise UnknownEmployee(f"Employee {employee_id!r} is not on the roster") from exc

    def list(self) -> List[Employee]:
        return sorted(self._employees.values(), key=lambda emp: emp.id)

    def by_role(self, role: EmployeeRole | str) -> List[Employee]:
        role = EmployeeRole(role)
        return [emp for emp in self.list() if emp.role is role]

    def known_ids(self, employee_ids: Iterable[str]) -> Set[str]:
        """Return the subset of ``employee_ids`` present on the roster."""
        return {emp_id for emp_id in employee_ids if emp_id in self._employees}

    def is_eligible(self, employee_id: str, workflow_id: str) -> bool:
        """Return ``True`` when ``employee_id`` may work on ``workflow_id``.

        Workflow default employees are only a suggestion, so roster
        membership is the single requirement.
        """
        return employee_id in self._employees


__all__ = ["Roster"]
