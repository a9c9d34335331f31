from datetime import datetime

import pytest

from clinicdesk.models import Appointment, Patient
from clinicdesk.scheduling.snapshot import DashboardSnapshot

# Wednesday; the week runs Sunday 2026-10-11 to Saturday 2026-10-17
NOW = datetime(2026, 10, 14, 10, 30)


def patient_record(patient_id=1, first_name="Amira", last_name="Haddad"):
    return {
        "id": patient_id,
        "user": {
            "firstName": first_name,
            "lastName": last_name,
            "dateOfBirth": "1988-04-12",
            "email": f"{first_name.lower()}@example.com",
            "phone": "+1 555 010 0101",
            "sex": {"gender": "Female"},
        },
        "medicalHistory": "Asthma",
    }


def appointment_record(appointment_id, patient_id=1, date="2026-10-14", time="09:30", status="Waiting"):
    return {
        "id": appointment_id,
        "patientId": patient_id,
        "date": date,
        "time": time,
        "action": {"appointmentType": {"id": 1, "type": "Consultation"}},
        "status": {"id": 1, "status": status},
    }


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_appointment():
    def _make(appointment_id=1, **kwargs) -> Appointment:
        return Appointment.from_record(appointment_record(appointment_id, **kwargs))
    return _make


@pytest.fixture
def patients():
    return [
        Patient.from_record(patient_record(1, "Amira", "Haddad")),
        Patient.from_record(patient_record(2, "Jonas", "Berg")),
    ]


@pytest.fixture
def snapshot(patients):
    appointments = [
        Appointment.from_record(appointment_record(1, patient_id=1, date="2026-10-14", status="Waiting")),
        Appointment.from_record(appointment_record(2, patient_id=2, date="2026-10-12", status="Upcoming")),
        Appointment.from_record(appointment_record(3, patient_id=1, date="2026-10-02", status="Completed")),
        Appointment.from_record(appointment_record(4, patient_id=2, date="2026-11-03", status="Upcoming")),
    ]
    return DashboardSnapshot(appointments=appointments, patients=patients)
