"""
Financial Domain Models

Pydantic models for Action, Status, Payment, AuditTrailEntry and cash flow.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum

from pydantic import ConfigDict, Field, field_validator, model_validator

from clinicdesk.models.core import BaseEntity, BillingPatient, Doctor, coerce_datetime


class PaymentStatus(str, Enum):
    """Payment status."""
    PAID = "PAID"
    PENDING = "PENDING"
    CANCELLED = "CANCELLED"


class Status(BaseEntity):
    """A payment status record."""
    id: int
    status: PaymentStatus


class Action(BaseEntity):
    """
    Action entity.

    A billable clinical action linked to a patient and an appointment type,
    tracked for completion and payment total.
    """

    id: int = Field(..., description="Action ID")
    appointment_type_id: int = Field(..., description="Appointment type ID")
    patient_id: int = Field(..., description="Patient ID")
    description: str = ""

    # Amount
    total_payment: Decimal = Field(..., ge=0, description="Total to be paid for the action")

    # Dates
    start_date: dt.datetime = Field(..., description="Action start")
    end_date: dt.datetime | None = Field(default=None, description="Action end; None is open-ended")

    # Completion
    is_completed: bool = False
    completed_at: dt.datetime | None = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _date_only_is_midnight(cls, value):
        return coerce_datetime(value)

    @model_validator(mode="after")
    def _check_completion(self) -> "Action":
        if self.is_completed and self.completed_at is None:
            raise ValueError("completed action requires completed_at")
        if self.end_date is not None:
            if (self.start_date.tzinfo is None) != (self.end_date.tzinfo is None):
                raise ValueError("start_date and end_date must both carry a timezone or neither")
            if self.end_date < self.start_date:
                raise ValueError("end_date precedes start_date")
        return self

    @property
    def is_open_ended(self) -> bool:
        return self.end_date is None


class Payment(BaseEntity):
    """
    Payment entity.

    Represents a payment recorded by staff against a patient's action.
    """

    id: int = Field(..., description="Payment ID")

    # Relationships
    patient_id: int
    doctor_id: int
    status_id: int
    action_id: int

    # Amount
    amount: Decimal = Field(..., ge=0, description="Payment amount")

    # When
    date: dt.date
    time: dt.time
    description: str = ""

    # Nested
    status: Status
    doctor: Doctor | None = None
    patient: BillingPatient | None = None
    action: Action | None = None

    @model_validator(mode="after")
    def _check_references(self) -> "Payment":
        if self.status.id != self.status_id:
            raise ValueError(f"status_id {self.status_id} does not match status {self.status.id}")
        if self.action is not None and self.action.id != self.action_id:
            raise ValueError(f"action_id {self.action_id} does not match action {self.action.id}")
        if self.patient is not None and self.patient.user_id != self.patient_id:
            raise ValueError(f"patient_id {self.patient_id} does not match patient {self.patient.user_id}")
        if self.doctor is not None and self.doctor.user.id != self.doctor_id:
            raise ValueError(f"doctor_id {self.doctor_id} does not match doctor {self.doctor.user.id}")
        return self

    @property
    def is_paid(self) -> bool:
        return self.status.status == PaymentStatus.PAID

    @property
    def is_cancelled(self) -> bool:
        return self.status.status == PaymentStatus.CANCELLED


class AuditTrailEntry(BaseEntity):
    """
    Audit trail entry.

    Immutable record of a billing-affecting event.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    action: str = Field(..., description="What happened (e.g. Payment recorded)")
    amount: Decimal
    user: str = Field(..., description="Acting user")
    timestamp: dt.datetime
    details: str = ""


class CashFlowDataPoint(BaseEntity):
    """One bucket of the billing cash flow chart."""

    name: str
    income: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")

    @property
    def net(self) -> Decimal:
        return self.income - self.expenses
