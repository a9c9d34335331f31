"""
ClinicDesk Data Models

Pydantic models for the dashboard's scheduling and billing entities.
"""

from clinicdesk.models.core import User, Doctor, Sex, UserProfile, Patient, BillingPatient
from clinicdesk.models.scheduling import (
    Appointment,
    AppointmentAction,
    AppointmentStatus,
    AppointmentStatusLabel,
    AppointmentType,
)
from clinicdesk.models.financial import (
    Action,
    AuditTrailEntry,
    CashFlowDataPoint,
    Payment,
    PaymentStatus,
    Status,
)

__all__ = [
    # Core
    "User",
    "Doctor",
    "Sex",
    "UserProfile",
    "Patient",
    "BillingPatient",
    # Scheduling
    "Appointment",
    "AppointmentAction",
    "AppointmentStatus",
    "AppointmentStatusLabel",
    "AppointmentType",
    # Financial
    "Action",
    "AuditTrailEntry",
    "CashFlowDataPoint",
    "Payment",
    "PaymentStatus",
    "Status",
]
