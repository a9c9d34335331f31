from decimal import Decimal

import pytest

from clinicdesk.billing.audit import AuditTrail
from clinicdesk.dashboard.state import DashboardMode, DashboardState, SubmissionStatus
from clinicdesk.errors import CreationServiceError, InvalidTransitionError, ValidationError
from clinicdesk.scheduling.snapshot import DashboardSnapshot
from clinicdesk.services.creation import CreationService, InMemoryCreationService
from clinicdesk.services.source import InMemoryAppointmentSource
from tests.conftest import NOW


class UnavailableCreationService(CreationService):
    """Creation service whose backend is down."""

    def __init__(self):
        self.calls = 0

    async def create_appointment(self, request):
        self.calls += 1
        raise CreationServiceError("backend unavailable", status_code=503)

    async def create_payment(self, request):
        self.calls += 1
        raise CreationServiceError("backend unavailable", status_code=503)


@pytest.fixture
def service(snapshot):
    return InMemoryCreationService(snapshot=snapshot)


@pytest.fixture
def dashboard(snapshot, service):
    return DashboardState(
        snapshot=snapshot,
        creation_service=service,
        doctor_id=3,
        user="dr.saleh",
        clock=lambda: NOW,
    )


def test_starts_idle_with_all_filters(dashboard):
    assert dashboard.mode == DashboardMode.IDLE
    assert [a.id for a in dashboard.visible_appointments()] == [1, 2, 3, 4]


def test_filters_apply_in_any_mode(dashboard):
    dashboard.set_status_filter("UPCOMING")
    assert [a.id for a in dashboard.visible_appointments()] == [2, 4]

    dashboard.view_appointments(2)
    dashboard.set_date_filter("THIS_WEEK")
    assert [a.id for a in dashboard.visible_appointments()] == [2]


def test_view_appointments_selects_first_appointment(dashboard):
    dashboard.view_appointments(1)

    assert dashboard.mode == DashboardMode.VIEWING_APPOINTMENTS
    assert dashboard.selected_patient_id == 1
    assert dashboard.selected_appointment.id == 1
    assert [a.id for a in dashboard.patient_appointments] == [1, 3]


def test_view_unknown_patient_is_rejected(dashboard):
    with pytest.raises(ValidationError):
        dashboard.view_payments(42)
    assert dashboard.mode == DashboardMode.IDLE


def test_close_returns_to_idle(dashboard):
    dashboard.view_payments(2)
    assert dashboard.mode == DashboardMode.VIEWING_PAYMENTS

    dashboard.close()

    assert dashboard.mode == DashboardMode.IDLE
    assert dashboard.selected_patient_id is None
    assert dashboard.selected_appointment is None


def test_illegal_transitions_raise(dashboard):
    with pytest.raises(InvalidTransitionError):
        dashboard.close()
    with pytest.raises(InvalidTransitionError):
        dashboard.start_new_appointment()

    dashboard.view_appointments(1)
    with pytest.raises(InvalidTransitionError):
        dashboard.start_new_payment()
    with pytest.raises(InvalidTransitionError):
        dashboard.view_payments(1)
    with pytest.raises(InvalidTransitionError):
        dashboard.update_appointment_draft(date="2026-10-20")


def test_cancel_discards_draft(dashboard):
    dashboard.view_appointments(1)
    dashboard.start_new_appointment()
    dashboard.update_appointment_draft(date="2026-10-20", notes="Bring X-rays")

    dashboard.cancel()

    assert dashboard.mode == DashboardMode.VIEWING_APPOINTMENTS
    assert dashboard.appointment_draft.is_empty


@pytest.mark.asyncio
async def test_submit_appointment_success(dashboard, service):
    dashboard.view_appointments(1)
    dashboard.start_new_appointment()
    dashboard.update_appointment_draft(date="2026-10-20", time="14:00", notes="Follow-up")

    result = await dashboard.submit_appointment()

    assert result.success is True
    assert result.record.patient_id == 1
    assert result.record.status.status == "Upcoming"
    assert service.appointments == [result.record]
    assert dashboard.mode == DashboardMode.VIEWING_APPOINTMENTS
    assert dashboard.submission_status == SubmissionStatus.SUCCEEDED
    assert dashboard.appointment_draft.is_empty


@pytest.mark.asyncio
async def test_submit_incomplete_appointment_sends_nothing(dashboard, service):
    dashboard.view_appointments(1)
    dashboard.start_new_appointment()
    dashboard.update_appointment_draft(time="14:00")

    with pytest.raises(ValidationError) as exc:
        await dashboard.submit_appointment()

    assert exc.value.fields == ["date"]
    assert service.appointments == []
    assert dashboard.mode == DashboardMode.CREATING_APPOINTMENT
    assert dashboard.appointment_draft.time == "14:00"


@pytest.mark.asyncio
async def test_failed_submission_keeps_draft(snapshot):
    unavailable = UnavailableCreationService()
    dashboard = DashboardState(snapshot, unavailable, doctor_id=3, clock=lambda: NOW)
    dashboard.view_appointments(1)
    dashboard.start_new_appointment()
    dashboard.update_appointment_draft(date="2026-10-20", time="14:00")

    result = await dashboard.submit_appointment()

    assert result.success is False
    assert result.error == "backend unavailable"
    assert unavailable.calls == 1
    assert dashboard.mode == DashboardMode.CREATING_APPOINTMENT
    assert dashboard.submission_status == SubmissionStatus.FAILED
    assert dashboard.last_error == "backend unavailable"
    assert dashboard.appointment_draft.date == "2026-10-20"
    assert dashboard.appointment_draft.time == "14:00"


@pytest.mark.asyncio
async def test_submit_payment_records_audit_entry(dashboard, service):
    dashboard.view_payments(2)
    dashboard.start_new_payment()
    dashboard.update_payment_draft(amount="80", date="2026-10-14", time="10:00", description="Checkup")

    result = await dashboard.submit_payment()

    assert result.success is True
    payment = result.record
    assert payment.patient_id == 2
    assert payment.doctor_id == 3
    assert payment.amount == Decimal("80")
    assert payment.action.total_payment == Decimal("80")
    assert dashboard.mode == DashboardMode.VIEWING_PAYMENTS
    assert dashboard.payment_draft.is_empty

    entries = dashboard.audit_trail.entries
    assert len(entries) == 1
    assert entries[0].user == "dr.saleh"
    assert entries[0].amount == Decimal("80")
    assert entries[0].action == "Payment recorded"


@pytest.mark.asyncio
async def test_failed_payment_is_not_audited(snapshot):
    audit = AuditTrail()
    dashboard = DashboardState(
        snapshot, UnavailableCreationService(), doctor_id=3, audit_trail=audit, clock=lambda: NOW
    )
    dashboard.view_payments(1)
    dashboard.start_new_payment()
    dashboard.update_payment_draft(amount="80", date="2026-10-14", time="10:00")

    result = await dashboard.submit_payment()

    assert result.success is False
    assert len(audit) == 0
    assert dashboard.payment_draft.amount == "80"
    assert dashboard.mode == DashboardMode.CREATING_PAYMENT


@pytest.mark.asyncio
async def test_retry_after_failure_clears_error(snapshot):
    dashboard = DashboardState(snapshot, UnavailableCreationService(), doctor_id=3, clock=lambda: NOW)
    dashboard.view_appointments(1)
    dashboard.start_new_appointment()
    dashboard.update_appointment_draft(date="2026-10-20", time="14:00")
    await dashboard.submit_appointment()

    dashboard.creation_service = InMemoryCreationService(snapshot=snapshot)
    result = await dashboard.submit_appointment()

    assert result.success is True
    assert dashboard.last_error is None
    assert dashboard.mode == DashboardMode.VIEWING_APPOINTMENTS


@pytest.mark.asyncio
async def test_reload_replaces_snapshot(dashboard, snapshot):
    dashboard.view_appointments(1)
    fresh = DashboardSnapshot(appointments=snapshot.appointments[2:], patients=snapshot.patients)

    await dashboard.reload(InMemoryAppointmentSource(fresh))

    assert dashboard.snapshot is fresh
    assert dashboard.selected_appointment.id == 3


@pytest.mark.asyncio
async def test_reload_without_selected_patient_closes_dialog(dashboard, snapshot):
    dashboard.view_payments(2)
    dashboard.start_new_payment()
    dashboard.update_payment_draft(amount="80")
    only_first = DashboardSnapshot(
        appointments=[a for a in snapshot.appointments if a.patient_id == 1],
        patients=snapshot.patients[:1],
    )

    await dashboard.reload(InMemoryAppointmentSource(only_first))

    assert dashboard.mode == DashboardMode.IDLE
    assert dashboard.selected_patient_id is None
    assert dashboard.selected_appointment is None
    assert dashboard.payment_draft.is_empty
    dashboard.view_appointments(1)


class FailingAuditStorage:
    def store(self, entry):
        raise OSError("audit disk full")


@pytest.mark.asyncio
async def test_audit_failure_does_not_strand_recorded_payment(snapshot, service):
    dashboard = DashboardState(
        snapshot,
        service,
        doctor_id=3,
        audit_trail=AuditTrail(storage_backend=FailingAuditStorage()),
        clock=lambda: NOW,
    )
    dashboard.view_payments(1)
    dashboard.start_new_payment()
    dashboard.update_payment_draft(amount="80", date="2026-10-14", time="10:00")

    result = await dashboard.submit_payment()

    assert result.success is True
    assert "audit disk full" in result.error
    assert len(service.payments) == 1
    assert dashboard.submission_status == SubmissionStatus.SUCCEEDED
    assert dashboard.mode == DashboardMode.VIEWING_PAYMENTS
    assert dashboard.payment_draft.is_empty
    assert dashboard.last_error == result.error

    with pytest.raises(InvalidTransitionError):
        await dashboard.submit_payment()
    assert len(service.payments) == 1


class CrashingCreationService(CreationService):
    async def create_appointment(self, request):
        raise RuntimeError("connection reset")

    async def create_payment(self, request):
        raise RuntimeError("connection reset")


@pytest.mark.asyncio
async def test_unexpected_collaborator_error_marks_submission_failed(snapshot):
    dashboard = DashboardState(snapshot, CrashingCreationService(), doctor_id=3, clock=lambda: NOW)
    dashboard.view_appointments(1)
    dashboard.start_new_appointment()
    dashboard.update_appointment_draft(date="2026-10-20", time="14:00")

    with pytest.raises(RuntimeError):
        await dashboard.submit_appointment()

    assert dashboard.submission_status == SubmissionStatus.FAILED
    assert dashboard.last_error == "connection reset"
    assert dashboard.mode == DashboardMode.CREATING_APPOINTMENT
    assert dashboard.appointment_draft.date == "2026-10-20"
