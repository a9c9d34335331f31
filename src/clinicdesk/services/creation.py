"""
Creation Service

The collaborator that persists new appointments and payments. The
dashboard only ever talks to the abstract interface; which backend sits
behind it is decided at wiring time.
"""

from abc import ABC, abstractmethod
from itertools import count
from typing import Any

import httpx
import structlog

from clinicdesk.config import Settings, get_settings
from clinicdesk.errors import CreationServiceError, ValidationError
from clinicdesk.models.core import BillingPatient, Patient
from clinicdesk.models.financial import Action, Payment, PaymentStatus, Status
from clinicdesk.models.scheduling import (
    Appointment,
    AppointmentAction,
    AppointmentStatus,
    AppointmentStatusLabel,
    AppointmentType,
)
from clinicdesk.scheduling.drafts import NewAppointment, NewPayment
from clinicdesk.scheduling.snapshot import DashboardSnapshot
from clinicdesk.services.http import BackendClient

logger = structlog.get_logger(__name__)


class CreationService(ABC):
    """
    Creates appointments and payments.

    Implementations raise CreationServiceError on failure; they never
    return partial records.
    """

    @abstractmethod
    async def create_appointment(self, request: NewAppointment) -> Appointment:
        """Create an appointment, return the stored record."""
        pass

    @abstractmethod
    async def create_payment(self, request: NewPayment) -> Payment:
        """Record a payment, return the stored record."""
        pass

    async def aclose(self):
        """Release any held resources."""
        pass


class InMemoryCreationService(CreationService):
    """
    In-memory creation service.

    Assigns sequential IDs and keeps created records in lists. Created
    appointments are added to `snapshot`, so an in-memory source reading
    from this service lists them. Used in development
    (`CLINIC_BACKEND_USE_MOCK=true`) and in tests.
    """

    def __init__(
        self,
        snapshot: DashboardSnapshot | None = None,
        appointment_type: AppointmentType | None = None,
        appointment_status: AppointmentStatus | None = None,
        payment_status: Status | None = None,
    ):
        self.snapshot = snapshot if snapshot is not None else DashboardSnapshot()
        self.appointment_type = appointment_type or AppointmentType(id=1, type="Consultation")
        self.appointment_status = appointment_status or AppointmentStatus(
            id=2, status=AppointmentStatusLabel.UPCOMING.value
        )
        self.payment_status = payment_status or Status(id=2, status=PaymentStatus.PENDING)

        self.appointments: list[Appointment] = []
        self.payments: list[Payment] = []
        self.actions: list[Action] = []

        self._appointment_ids = count(max((a.id for a in self.snapshot.appointments), default=0) + 1)
        self._payment_ids = count(1)
        self._action_ids = count(1)

    def _patient(self, patient_id: int) -> Patient:
        patient = self.snapshot.patient(patient_id)
        if patient is None:
            raise CreationServiceError(f"Unknown patient {patient_id}", status_code=404)
        return patient

    def _action(self, action_id: int, patient_id: int) -> Action:
        action = next((a for a in self.actions if a.id == action_id), None)
        if action is None:
            raise CreationServiceError(f"Unknown action {action_id}", status_code=404)
        if action.patient_id != patient_id:
            raise CreationServiceError(
                f"Action {action_id} belongs to patient {action.patient_id}, not {patient_id}",
                status_code=409,
            )
        return action

    async def create_appointment(self, request: NewAppointment) -> Appointment:
        patient = self._patient(request.patient_id)
        appointment = Appointment(
            id=next(self._appointment_ids),
            patient_id=request.patient_id,
            date=request.date,
            time=request.time,
            action=AppointmentAction(appointment_type=self.appointment_type),
            status=self.appointment_status,
            patient=patient,
        )
        self.appointments.append(appointment)
        self.snapshot = DashboardSnapshot(
            appointments=(*self.snapshot.appointments, appointment),
            patients=self.snapshot.patients,
        )

        logger.info(
            "Appointment created",
            appointment_id=appointment.id,
            patient_id=appointment.patient_id,
        )
        return appointment

    async def create_payment(self, request: NewPayment) -> Payment:
        patient = self._patient(request.patient_id)

        if request.action_id is not None:
            action = self._action(request.action_id, request.patient_id)
        else:
            # A payment without an existing action opens one for its amount
            action = Action(
                id=next(self._action_ids),
                appointment_type_id=self.appointment_type.id,
                patient_id=request.patient_id,
                description=request.description,
                total_payment=request.amount,
                start_date=request.date,
            )
            self.actions.append(action)

        payment = Payment(
            id=next(self._payment_ids),
            patient_id=request.patient_id,
            doctor_id=request.doctor_id,
            status_id=self.payment_status.id,
            action_id=action.id,
            amount=request.amount,
            date=request.date,
            time=request.time,
            description=request.description,
            status=self.payment_status,
            patient=BillingPatient(
                user_id=request.patient_id,
                medical_history=patient.medical_history or "",
            ),
            action=action,
        )
        self.payments.append(payment)

        logger.info(
            "Payment created",
            payment_id=payment.id,
            patient_id=payment.patient_id,
            amount=str(payment.amount),
        )
        return payment


class HttpCreationService(CreationService):
    """
    Creation service backed by the clinic backend's REST API.

    POST {base_url}/appointments and POST {base_url}/payments with a
    camelCase JSON body; the response body is the stored record.
    """

    def __init__(self, client: BackendClient):
        self._client = client

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "HttpCreationService":
        settings = settings or get_settings()
        return cls(BackendClient.from_settings(settings.backend, transport=transport))

    async def create_appointment(self, request: NewAppointment) -> Appointment:
        data = await self._client.request_json(
            "POST", "/appointments", CreationServiceError, json=request.to_record()
        )
        appointment = self._parse(Appointment, data)
        logger.info("Appointment created", appointment_id=appointment.id, patient_id=appointment.patient_id)
        return appointment

    async def create_payment(self, request: NewPayment) -> Payment:
        data = await self._client.request_json(
            "POST", "/payments", CreationServiceError, json=request.to_record()
        )
        payment = self._parse(Payment, data)
        logger.info("Payment created", payment_id=payment.id, patient_id=payment.patient_id)
        return payment

    @staticmethod
    def _parse(model, data: Any):
        try:
            return model.from_record(data)
        except ValidationError as e:
            logger.error("Backend returned malformed record", model=model.__name__, errors=e.errors)
            raise CreationServiceError(f"Malformed {model.__name__} in response: {e.message}") from e

    async def aclose(self):
        await self._client.aclose()


def build_creation_service(
    settings: Settings | None = None,
    snapshot: DashboardSnapshot | None = None,
) -> CreationService:
    """Creation service selected by `CLINIC_BACKEND_USE_MOCK`."""
    settings = settings or get_settings()
    if settings.backend.use_mock:
        return InMemoryCreationService(snapshot=snapshot)
    return HttpCreationService.from_settings(settings)
