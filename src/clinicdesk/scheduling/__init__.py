"""
ClinicDesk Scheduling

Appointment filtering, dashboard snapshots and creation drafts.
"""

from clinicdesk.scheduling.filters import (
    DateFilter,
    FilterSelection,
    StatusFilter,
    appointments_for_patient,
    date_matches,
    filter_appointments,
    first_appointment_for_patient,
    status_matches,
    week_bounds,
)
from clinicdesk.scheduling.drafts import AppointmentDraft, NewAppointment, NewPayment, PaymentDraft
from clinicdesk.scheduling.snapshot import DashboardSnapshot

__all__ = [
    "DateFilter",
    "FilterSelection",
    "StatusFilter",
    "appointments_for_patient",
    "date_matches",
    "filter_appointments",
    "first_appointment_for_patient",
    "status_matches",
    "week_bounds",
    "AppointmentDraft",
    "NewAppointment",
    "NewPayment",
    "PaymentDraft",
    "DashboardSnapshot",
]
