"""
Scheduling Domain Models

Pydantic models for appointments as listed on the doctor dashboard.
"""

import datetime as dt
from enum import Enum

from pydantic import Field, field_validator, model_validator

from clinicdesk.models.core import BaseEntity, Patient, coerce_datetime


class AppointmentStatusLabel(str, Enum):
    """Appointment status labels used by the clinic backend."""
    WAITING = "Waiting"
    UPCOMING = "Upcoming"
    COMPLETED = "Completed"
    CONFIRMED = "Confirmed"


class AppointmentType(BaseEntity):
    id: int
    type: str = Field(..., description="Appointment type name (e.g. Consultation)")


class AppointmentAction(BaseEntity):
    """The action an appointment was booked for."""
    appointment_type: AppointmentType


class AppointmentStatus(BaseEntity):
    """
    Appointment status.

    The label is kept as the backend sends it, but must name one of
    `AppointmentStatusLabel` regardless of case; filtering compares it
    upper-cased.
    """
    id: int
    status: str = Field(..., min_length=1)

    @field_validator("status")
    @classmethod
    def _known_label(cls, value: str) -> str:
        known = {label.value.upper() for label in AppointmentStatusLabel}
        if value.upper() not in known:
            raise ValueError(f"unknown appointment status {value!r}")
        return value

    @property
    def normalized(self) -> str:
        return self.status.upper()

    @property
    def label(self) -> AppointmentStatusLabel:
        return next(c for c in AppointmentStatusLabel if c.value.upper() == self.normalized)


class Appointment(BaseEntity):
    """
    Appointment entity.

    `date` is a timestamp; a date-only value means local midnight of that
    day. `time` is the booked time-of-day, parsed independently.
    """

    id: int = Field(..., description="Appointment ID")
    patient_id: int = Field(..., description="Patient ID")
    date: dt.datetime = Field(..., description="Appointment day (or timestamp)")
    time: dt.time = Field(..., description="Booked time of day")
    action: AppointmentAction
    status: AppointmentStatus
    patient: Patient | None = Field(default=None, description="Embedded patient")

    @field_validator("date", mode="before")
    @classmethod
    def _date_only_is_midnight(cls, value):
        return coerce_datetime(value)

    @model_validator(mode="after")
    def _patient_matches(self) -> "Appointment":
        if self.patient is not None and self.patient.id != self.patient_id:
            raise ValueError(
                f"patient_id {self.patient_id} does not match embedded patient {self.patient.id}"
            )
        return self

    @property
    def appointment_type(self) -> str:
        return self.action.appointment_type.type

    @property
    def scheduled_at(self) -> dt.datetime:
        """Calendar day of `date` combined with the booked time."""
        return dt.datetime.combine(self.date.date(), self.time, tzinfo=self.date.tzinfo)
