"""
Dashboard Snapshot

The appointment and patient lists a data source hands to the dashboard.
Snapshots are read-only; the dashboard never mutates them.
"""

from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from clinicdesk.errors import ValidationError
from clinicdesk.models.core import Patient
from clinicdesk.models.scheduling import Appointment


class DashboardSnapshot(BaseModel):
    """
    Appointments and patients as supplied by the data source.

    Every appointment must reference a patient in the snapshot.
    """

    model_config = ConfigDict(frozen=True)

    appointments: tuple[Appointment, ...] = ()
    patients: tuple[Patient, ...] = ()

    def __init__(self, **data: Any):
        try:
            super().__init__(**data)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(type(self).__name__, e) from e
        self._check_patient_references()

    def _check_patient_references(self) -> None:
        known = {p.id for p in self.patients}
        dangling = sorted({a.patient_id for a in self.appointments} - known)
        if dangling:
            raise ValidationError(
                "Appointments reference unknown patients",
                [{"field": "patient_id", "message": f"unknown patient {pid}"} for pid in dangling],
            )

    @classmethod
    def from_records(
        cls,
        appointments: Iterable[dict[str, Any]] = (),
        patients: Iterable[dict[str, Any]] = (),
    ) -> "DashboardSnapshot":
        """
        Build a snapshot from backend records.

        Raises:
            ValidationError: a record is malformed or an appointment
                references a patient that is not in the list
        """
        return cls(
            appointments=tuple(Appointment.from_record(a) for a in appointments),
            patients=tuple(Patient.from_record(p) for p in patients),
        )

    def patient(self, patient_id: int) -> Patient | None:
        return next((p for p in self.patients if p.id == patient_id), None)

    def __len__(self) -> int:
        return len(self.appointments)
