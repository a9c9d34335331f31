"""
Dashboard State

One state object for the doctor's appointments screen: the snapshot being
shown, the selected filters, which patient dialog is open, and the drafts
for new appointments and payments.

Modes and transitions:

    IDLE ──view_appointments──▶ VIEWING_APPOINTMENTS ──start_new_appointment──▶ CREATING_APPOINTMENT
    IDLE ──view_payments──────▶ VIEWING_PAYMENTS ─────start_new_payment──────▶ CREATING_PAYMENT

    CREATING_* ──cancel / successful submit──▶ VIEWING_*
    VIEWING_*  ──close──▶ IDLE

A failed submission leaves the mode and the draft untouched.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable

import structlog

from clinicdesk.billing.audit import AuditTrail
from clinicdesk.config import local_now
from clinicdesk.errors import CreationServiceError, InvalidTransitionError, ValidationError
from clinicdesk.models.financial import Payment
from clinicdesk.models.scheduling import Appointment
from clinicdesk.scheduling.drafts import AppointmentDraft, PaymentDraft
from clinicdesk.scheduling.filters import (
    DateFilter,
    FilterSelection,
    StatusFilter,
    appointments_for_patient,
    first_appointment_for_patient,
)
from clinicdesk.scheduling.snapshot import DashboardSnapshot
from clinicdesk.services.creation import CreationService
from clinicdesk.services.source import AppointmentSource

logger = structlog.get_logger(__name__)


class DashboardMode(str, Enum):
    """What the dashboard is currently showing."""
    IDLE = "idle"
    VIEWING_APPOINTMENTS = "viewing_appointments"
    VIEWING_PAYMENTS = "viewing_payments"
    CREATING_APPOINTMENT = "creating_appointment"
    CREATING_PAYMENT = "creating_payment"


class SubmissionStatus(str, Enum):
    """State of the last creation request."""
    IDLE = "idle"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


_TRANSITIONS: dict[tuple[str, DashboardMode], DashboardMode] = {
    ("view_appointments", DashboardMode.IDLE): DashboardMode.VIEWING_APPOINTMENTS,
    ("view_payments", DashboardMode.IDLE): DashboardMode.VIEWING_PAYMENTS,
    ("start_new_appointment", DashboardMode.VIEWING_APPOINTMENTS): DashboardMode.CREATING_APPOINTMENT,
    ("start_new_payment", DashboardMode.VIEWING_PAYMENTS): DashboardMode.CREATING_PAYMENT,
    ("cancel", DashboardMode.CREATING_APPOINTMENT): DashboardMode.VIEWING_APPOINTMENTS,
    ("cancel", DashboardMode.CREATING_PAYMENT): DashboardMode.VIEWING_PAYMENTS,
    ("submit_appointment", DashboardMode.CREATING_APPOINTMENT): DashboardMode.VIEWING_APPOINTMENTS,
    ("submit_payment", DashboardMode.CREATING_PAYMENT): DashboardMode.VIEWING_PAYMENTS,
    ("close", DashboardMode.VIEWING_APPOINTMENTS): DashboardMode.IDLE,
    ("close", DashboardMode.VIEWING_PAYMENTS): DashboardMode.IDLE,
}


@dataclass
class SubmissionResult:
    """Outcome of a draft submission."""
    success: bool
    record: Appointment | Payment | None = None
    error: str | None = None


class DashboardState:
    """
    State machine for the doctor's appointments dashboard.

    Args:
        snapshot: appointments and patients currently shown
        creation_service: where new appointments and payments go
        doctor_id: the doctor whose dashboard this is; recorded on payments
        audit_trail: receives an entry for every recorded payment
        user: acting user name written to the audit trail
        clock: source of "now" for date filtering
    """

    def __init__(
        self,
        snapshot: DashboardSnapshot,
        creation_service: CreationService,
        doctor_id: int,
        audit_trail: AuditTrail | None = None,
        user: str = "system",
        clock: Callable[[], datetime] | None = None,
    ):
        self.snapshot = snapshot
        self.creation_service = creation_service
        self.doctor_id = doctor_id
        self.audit_trail = audit_trail if audit_trail is not None else AuditTrail()
        self.user = user
        self._clock = clock or local_now

        self.filters = FilterSelection()
        self._mode = DashboardMode.IDLE

        self.selected_patient_id: int | None = None
        self.selected_appointment: Appointment | None = None

        self.appointment_draft = AppointmentDraft()
        self.payment_draft = PaymentDraft()

        self.submission_status = SubmissionStatus.IDLE
        self.last_error: str | None = None

    @property
    def mode(self) -> DashboardMode:
        return self._mode

    def _next_mode(self, operation: str) -> DashboardMode:
        target = _TRANSITIONS.get((operation, self._mode))
        if target is None:
            raise InvalidTransitionError(operation, self._mode.value)
        return target

    def _move(self, operation: str) -> None:
        target = self._next_mode(operation)
        logger.debug("Dashboard transition", operation=operation, source=self._mode.value, target=target.value)
        self._mode = target

    # =========================================================================
    # Listing
    # =========================================================================

    def set_status_filter(self, status: str | StatusFilter) -> FilterSelection:
        self.filters = self.filters.with_status(status)
        return self.filters

    def set_date_filter(self, date_range: str | DateFilter) -> FilterSelection:
        self.filters = self.filters.with_date_range(date_range)
        return self.filters

    def visible_appointments(self, now: datetime | None = None) -> list[Appointment]:
        """Appointments passing the selected filters, in snapshot order."""
        return self.filters.apply(self.snapshot.appointments, now or self._clock())

    async def reload(self, source: AppointmentSource) -> DashboardSnapshot:
        """
        Replace the snapshot with a fresh one from the data source.

        If the selected patient is no longer in the snapshot, the patient
        dialog and any open draft are closed and the dashboard returns to
        IDLE.
        """
        self.snapshot = await source.load_snapshot()
        if self.selected_patient_id is not None and self.snapshot.patient(self.selected_patient_id) is None:
            logger.warning("Selected patient missing after reload", patient_id=self.selected_patient_id)
            self._mode = DashboardMode.IDLE
            self.selected_patient_id = None
            self.selected_appointment = None
            self.appointment_draft = self.appointment_draft.reset()
            self.payment_draft = self.payment_draft.reset()
            self._reset_submission()
        elif self.selected_patient_id is not None:
            self.selected_appointment = first_appointment_for_patient(
                self.snapshot.appointments, self.selected_patient_id
            )
        return self.snapshot

    # =========================================================================
    # Patient dialogs
    # =========================================================================

    def _select_patient(self, patient_id: int) -> None:
        if self.snapshot.patient(patient_id) is None:
            raise ValidationError(
                f"Unknown patient {patient_id}",
                [{"field": "patient_id", "message": f"unknown patient {patient_id}"}],
            )
        self.selected_patient_id = patient_id
        self.selected_appointment = first_appointment_for_patient(self.snapshot.appointments, patient_id)

    def view_appointments(self, patient_id: int) -> None:
        target = self._next_mode("view_appointments")
        self._select_patient(patient_id)
        self._mode = target

    def view_payments(self, patient_id: int) -> None:
        target = self._next_mode("view_payments")
        self._select_patient(patient_id)
        self._mode = target

    @property
    def patient_appointments(self) -> list[Appointment]:
        """All appointments of the selected patient."""
        if self.selected_patient_id is None:
            return []
        return appointments_for_patient(self.snapshot.appointments, self.selected_patient_id)

    def close(self) -> None:
        self._move("close")
        self.selected_patient_id = None
        self.selected_appointment = None

    # =========================================================================
    # Drafts
    # =========================================================================

    def start_new_appointment(self) -> AppointmentDraft:
        self._move("start_new_appointment")
        self.appointment_draft = self.appointment_draft.reset()
        self._reset_submission()
        return self.appointment_draft

    def start_new_payment(self) -> PaymentDraft:
        self._move("start_new_payment")
        self.payment_draft = self.payment_draft.reset()
        self._reset_submission()
        return self.payment_draft

    def update_appointment_draft(self, **fields: Any) -> AppointmentDraft:
        if self._mode != DashboardMode.CREATING_APPOINTMENT:
            raise InvalidTransitionError("edit appointment draft", self._mode.value)
        self.appointment_draft = AppointmentDraft(**{**self.appointment_draft.model_dump(), **fields})
        return self.appointment_draft

    def update_payment_draft(self, **fields: Any) -> PaymentDraft:
        if self._mode != DashboardMode.CREATING_PAYMENT:
            raise InvalidTransitionError("edit payment draft", self._mode.value)
        self.payment_draft = PaymentDraft(**{**self.payment_draft.model_dump(), **fields})
        return self.payment_draft

    def cancel(self) -> None:
        """Discard the open draft and go back to the patient dialog."""
        self._move("cancel")
        self.appointment_draft = self.appointment_draft.reset()
        self.payment_draft = self.payment_draft.reset()
        self._reset_submission()

    def _reset_submission(self) -> None:
        self.submission_status = SubmissionStatus.IDLE
        self.last_error = None

    # =========================================================================
    # Submission
    # =========================================================================

    async def submit_appointment(self) -> SubmissionResult:
        """
        Validate the appointment draft and send it to the creation service.

        Raises:
            InvalidTransitionError: no appointment draft is open
            ValidationError: the draft is incomplete; nothing is sent
        """
        target = self._next_mode("submit_appointment")
        request = self.appointment_draft.validate(self.selected_patient_id)

        self.submission_status = SubmissionStatus.PENDING
        try:
            appointment = await self.creation_service.create_appointment(request)
        except CreationServiceError as e:
            return self._submission_failed("appointment", e)
        except Exception as e:
            self._submission_failed("appointment", e)
            raise

        self.appointment_draft = self.appointment_draft.reset()
        self._submission_succeeded(target)

        logger.info("Appointment submitted", appointment_id=appointment.id, patient_id=appointment.patient_id)
        return SubmissionResult(success=True, record=appointment)

    async def submit_payment(self, action_id: int | None = None) -> SubmissionResult:
        """
        Validate the payment draft, record it, and append an audit entry.

        The payment stands once the creation service has stored it: a
        failing audit trail is logged and reported in the result's `error`
        and in `last_error`, but the draft is still reset and the dialog
        returns to the payment view.

        Raises:
            InvalidTransitionError: no payment draft is open
            ValidationError: the draft is incomplete; nothing is sent
        """
        target = self._next_mode("submit_payment")
        request = self.payment_draft.validate(
            self.selected_patient_id,
            doctor_id=self.doctor_id,
            action_id=action_id,
        )

        self.submission_status = SubmissionStatus.PENDING
        try:
            payment = await self.creation_service.create_payment(request)
        except CreationServiceError as e:
            return self._submission_failed("payment", e)
        except Exception as e:
            self._submission_failed("payment", e)
            raise

        self.payment_draft = self.payment_draft.reset()
        self._submission_succeeded(target)
        logger.info("Payment submitted", payment_id=payment.id, patient_id=payment.patient_id)

        try:
            self.audit_trail.record_payment(payment, user=self.user)
        except Exception as e:
            self.last_error = f"Payment #{payment.id} recorded but not audited: {e}"
            logger.error("Audit trail write failed", payment_id=payment.id, error=str(e))
            return SubmissionResult(success=True, record=payment, error=self.last_error)

        return SubmissionResult(success=True, record=payment)

    def _submission_succeeded(self, target: DashboardMode) -> None:
        self.submission_status = SubmissionStatus.SUCCEEDED
        self.last_error = None
        self._mode = target

    def _submission_failed(self, kind: str, error: Exception) -> SubmissionResult:
        self.submission_status = SubmissionStatus.FAILED
        self.last_error = str(error)
        logger.warning(
            "Submission failed",
            kind=kind,
            patient_id=self.selected_patient_id,
            error=str(error),
        )
        return SubmissionResult(success=False, error=str(error))
