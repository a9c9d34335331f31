"""
Appointment Routes

Filtered appointment listing and appointment creation.
"""

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel

from clinicdesk.scheduling.drafts import AppointmentDraft
from clinicdesk.scheduling.filters import filter_appointments
from clinicdesk.services.creation import CreationService
from clinicdesk.services.source import AppointmentSource

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def get_source(request: Request) -> AppointmentSource:
    return request.app.state.source


def get_creation_service(request: Request) -> CreationService:
    return request.app.state.creation_service


# =============================================================================
# Request / Response Models
# =============================================================================

class AppointmentCreateRequest(BaseModel):
    """New appointment form as submitted by the dashboard."""
    patient_id: int
    date: str = ""
    time: str = ""
    notes: str = ""


class AppointmentListResponse(BaseModel):
    appointments: list[dict]
    total: int
    status: str
    date_range: str


# =============================================================================
# Endpoints
# =============================================================================

@router.get("", response_model=AppointmentListResponse)
async def list_appointments(
    request: Request,
    status_filter: str = Query(default="ALL", alias="status", description="ALL, WAITING, UPCOMING, COMPLETED"),
    date_range: str = Query(default="ALL", description="ALL, TODAY, THIS_WEEK, THIS_MONTH"),
    source: AppointmentSource = Depends(get_source),
):
    """
    List appointments matching the status and date filters.

    An empty list is a normal result.
    """
    snapshot = await source.load_snapshot()
    visible = filter_appointments(
        snapshot.appointments,
        status_filter,
        date_range,
        now=request.app.state.clock(),
    )
    return AppointmentListResponse(
        appointments=[a.to_record() for a in visible],
        total=len(visible),
        status=status_filter,
        date_range=date_range,
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_appointment(
    body: AppointmentCreateRequest,
    service: CreationService = Depends(get_creation_service),
):
    """Validate a new appointment draft and create it."""
    draft = AppointmentDraft(date=body.date, time=body.time, notes=body.notes)
    appointment = await service.create_appointment(draft.validate(body.patient_id))
    return appointment.to_record()
