"""
Payment Routes

Payment recording and the billing audit trail.
"""

from fastapi import APIRouter, Depends, Header, Query, Request, status
from pydantic import BaseModel

from clinicdesk.billing.audit import AuditTrail
from clinicdesk.config import get_settings
from clinicdesk.scheduling.drafts import PaymentDraft
from clinicdesk.services.creation import CreationService
from clinicdesk.api.routes.appointments import get_creation_service

router = APIRouter(tags=["Payments"])


def get_audit_trail(request: Request) -> AuditTrail:
    return request.app.state.audit_trail


class PaymentCreateRequest(BaseModel):
    """New payment form as submitted by the dashboard."""
    patient_id: int
    doctor_id: int
    action_id: int | None = None
    amount: str | float = ""
    date: str = ""
    time: str = ""
    description: str = ""


@router.post("/payments", status_code=status.HTTP_201_CREATED)
async def create_payment(
    body: PaymentCreateRequest,
    service: CreationService = Depends(get_creation_service),
    audit_trail: AuditTrail = Depends(get_audit_trail),
    x_user: str | None = Header(default=None),
):
    """Validate a new payment draft, record it and audit it."""
    draft = PaymentDraft(
        amount=str(body.amount),
        date=body.date,
        time=body.time,
        description=body.description,
    )
    request = draft.validate(body.patient_id, doctor_id=body.doctor_id, action_id=body.action_id)
    payment = await service.create_payment(request)
    audit_trail.record_payment(payment, user=x_user or get_settings().audit.default_user)
    return payment.to_record()


@router.get("/audit")
async def list_audit_entries(
    user: str | None = Query(default=None, description="Only entries by this user"),
    limit: int = Query(default=100, ge=1, le=1000),
    audit_trail: AuditTrail = Depends(get_audit_trail),
):
    """Most recent billing audit entries, oldest first."""
    entries = audit_trail.query(user=user, limit=limit)
    return {
        "entries": [e.to_record() for e in entries],
        "total": len(entries),
    }
