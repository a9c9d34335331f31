import json
from datetime import date, time
from decimal import Decimal

import httpx
import pytest

from clinicdesk.errors import CreationServiceError, DataSourceError, ValidationError
from clinicdesk.scheduling.drafts import NewAppointment, NewPayment
from clinicdesk.scheduling.snapshot import DashboardSnapshot
from clinicdesk.services.creation import HttpCreationService, InMemoryCreationService
from clinicdesk.services.http import BackendClient
from clinicdesk.services.source import HttpAppointmentSource, InMemoryAppointmentSource
from tests.conftest import appointment_record, patient_record

BASE_URL = "http://backend.test/api"


def backend(handler) -> BackendClient:
    return BackendClient(BASE_URL, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_in_memory_assigns_ids_after_snapshot(snapshot):
    service = InMemoryCreationService(snapshot=snapshot)

    first = await service.create_appointment(
        NewAppointment(patient_id=1, date=date(2026, 10, 20), time=time(9, 0))
    )
    second = await service.create_appointment(
        NewAppointment(patient_id=2, date=date(2026, 10, 21), time=time(9, 0))
    )

    assert (first.id, second.id) == (5, 6)
    assert first.patient.full_name == "Amira Haddad"


@pytest.mark.asyncio
async def test_in_memory_rejects_unknown_patient(snapshot):
    service = InMemoryCreationService(snapshot=snapshot)

    with pytest.raises(CreationServiceError) as exc:
        await service.create_appointment(
            NewAppointment(patient_id=9, date=date(2026, 10, 20), time=time(9, 0))
        )
    assert exc.value.status_code == 404


@pytest.mark.asyncio
async def test_in_memory_payment_against_existing_action(snapshot):
    service = InMemoryCreationService(snapshot=snapshot)
    request = NewPayment(patient_id=1, doctor_id=3, amount=Decimal("100"), date=date(2026, 10, 14), time=time(10, 0))

    opening = await service.create_payment(request)
    follow_up = await service.create_payment(request.model_copy(update={"action_id": opening.action_id}))

    assert follow_up.action_id == opening.action_id
    assert len(service.actions) == 1
    assert [p.id for p in service.payments] == [1, 2]

    with pytest.raises(CreationServiceError):
        await service.create_payment(request.model_copy(update={"action_id": 99}))


@pytest.mark.asyncio
async def test_in_memory_rejects_another_patients_action(snapshot):
    service = InMemoryCreationService(snapshot=snapshot)
    opening = await service.create_payment(
        NewPayment(patient_id=1, doctor_id=3, amount=Decimal("100"), date=date(2026, 10, 14), time=time(10, 0))
    )

    with pytest.raises(CreationServiceError) as exc:
        await service.create_payment(
            NewPayment(
                patient_id=2,
                doctor_id=3,
                action_id=opening.action_id,
                amount=Decimal("40"),
                date=date(2026, 10, 14),
                time=time(11, 0),
            )
        )
    assert exc.value.status_code == 409
    assert len(service.payments) == 1


@pytest.mark.asyncio
async def test_in_memory_without_snapshot_knows_no_patients():
    service = InMemoryCreationService()

    with pytest.raises(CreationServiceError) as exc:
        await service.create_appointment(
            NewAppointment(patient_id=999, date=date(2026, 10, 20), time=time(9, 0))
        )
    assert exc.value.status_code == 404


@pytest.mark.asyncio
async def test_in_memory_source_lists_created_appointments(snapshot):
    service = InMemoryCreationService(snapshot=snapshot)
    source = InMemoryAppointmentSource(creation_service=service)

    created = await service.create_appointment(
        NewAppointment(patient_id=2, date=date(2026, 10, 20), time=time(9, 0))
    )
    loaded = await source.load_snapshot()

    assert [a.id for a in loaded.appointments] == [1, 2, 3, 4, created.id]
    assert loaded.patients == snapshot.patients
    assert len(snapshot) == 4


@pytest.mark.asyncio
async def test_in_memory_source_keeps_patients_of_empty_schedule(patients):
    schedule = DashboardSnapshot(patients=patients)
    source = InMemoryAppointmentSource(schedule)
    service = InMemoryCreationService(snapshot=schedule)

    assert (await source.load_snapshot()).patients == tuple(patients)
    appointment = await service.create_appointment(
        NewAppointment(patient_id=1, date=date(2026, 10, 20), time=time(9, 0))
    )
    assert appointment.id == 1


@pytest.mark.asyncio
async def test_http_create_appointment_posts_camel_case():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(201, json=appointment_record(10, patient_id=1, date="2026-10-20", status="Upcoming"))

    service = HttpCreationService(backend(handler))
    appointment = await service.create_appointment(
        NewAppointment(patient_id=1, date=date(2026, 10, 20), time=time(9, 30), notes="New patient")
    )
    await service.aclose()

    assert seen["path"] == "/api/appointments"
    assert seen["body"] == {"patientId": 1, "date": "2026-10-20", "time": "09:30:00", "notes": "New patient"}
    assert appointment.id == 10
    assert appointment.status.status == "Upcoming"


@pytest.mark.asyncio
async def test_http_error_status_becomes_creation_error():
    service = HttpCreationService(backend(lambda request: httpx.Response(500, json={"error": "boom"})))

    with pytest.raises(CreationServiceError) as exc:
        await service.create_payment(
            NewPayment(patient_id=1, doctor_id=3, amount=Decimal("10"), date=date(2026, 10, 14), time=time(10, 0))
        )
    assert exc.value.status_code == 500


@pytest.mark.asyncio
async def test_http_transport_failure_becomes_creation_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    service = HttpCreationService(backend(handler))

    with pytest.raises(CreationServiceError):
        await service.create_appointment(
            NewAppointment(patient_id=1, date=date(2026, 10, 20), time=time(9, 30))
        )


@pytest.mark.asyncio
async def test_http_malformed_response_becomes_creation_error():
    service = HttpCreationService(backend(lambda request: httpx.Response(201, json={"id": "x"})))

    with pytest.raises(CreationServiceError) as exc:
        await service.create_appointment(
            NewAppointment(patient_id=1, date=date(2026, 10, 20), time=time(9, 30))
        )
    assert "Malformed Appointment" in str(exc.value)


@pytest.mark.asyncio
async def test_http_source_loads_snapshot():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/appointments":
            return httpx.Response(200, json=[appointment_record(1, patient_id=1)])
        return httpx.Response(200, json=[patient_record(1)])

    source = HttpAppointmentSource(backend(handler))
    snapshot = await source.load_snapshot()
    await source.aclose()

    assert [a.id for a in snapshot.appointments] == [1]
    assert snapshot.patient(1).full_name == "Amira Haddad"


@pytest.mark.asyncio
async def test_http_source_failures():
    source = HttpAppointmentSource(backend(lambda request: httpx.Response(503)))
    with pytest.raises(DataSourceError):
        await source.load_snapshot()

    bad_dates = HttpAppointmentSource(backend(
        lambda request: httpx.Response(
            200,
            json=[appointment_record(1, date="soon")] if request.url.path.endswith("appointments") else [patient_record(1)],
        )
    ))
    with pytest.raises(ValidationError):
        await bad_dates.load_snapshot()
