"""
Creation Drafts

Unsaved form input for a new appointment or a new payment, and the typed
requests they validate into. Drafts hold raw strings exactly as typed;
nothing is sent to the creation service until `validate` succeeds.
"""

import datetime as dt
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from clinicdesk.errors import ValidationError
from clinicdesk.models.core import BaseEntity


def _missing(draft: BaseModel, fields: tuple[str, ...]) -> list[dict[str, Any]]:
    return [
        {"field": name, "message": "is required"}
        for name in fields
        if not str(getattr(draft, name)).strip()
    ]


# =============================================================================
# Requests
# =============================================================================

class NewAppointment(BaseEntity):
    """A validated request to create an appointment."""

    patient_id: int
    date: dt.date
    time: dt.time
    notes: str = ""


class NewPayment(BaseEntity):
    """A validated request to record a payment."""

    patient_id: int
    doctor_id: int
    action_id: int | None = None
    amount: Decimal = Field(..., ge=0)
    date: dt.date
    time: dt.time
    description: str = ""


def _validate(
    model: type[BaseEntity],
    label: str,
    draft: BaseModel,
    required: tuple[str, ...],
    record: dict[str, Any],
):
    """
    Validate `record` into `model`, reporting every offending draft field.

    Blank required fields are reported as missing; whatever else is filled
    in is still parsed so unparseable values are listed in the same error.
    """
    errors = _missing(draft, required)
    blank = {e["field"] for e in errors}
    try:
        request = model.from_record({k: v for k, v in record.items() if k not in blank})
    except ValidationError as e:
        errors += [err for err in e.errors if err["field"] not in blank]
    if errors:
        order = list(type(draft).model_fields)
        errors.sort(key=lambda err: order.index(err["field"]) if err["field"] in order else len(order))
        message = f"{label} draft is incomplete" if blank else f"{label} draft is invalid"
        raise ValidationError(message, errors)
    return request


# =============================================================================
# Drafts
# =============================================================================

class AppointmentDraft(BaseModel):
    """New appointment form buffer."""

    date: str = ""
    time: str = ""
    notes: str = ""

    @property
    def is_empty(self) -> bool:
        return not (self.date or self.time or self.notes)

    def reset(self) -> "AppointmentDraft":
        return AppointmentDraft()

    def validate(self, patient_id: int) -> NewAppointment:
        """
        Validate the draft into a creation request.

        Raises:
            ValidationError: date or time is empty or unparseable
        """
        return _validate(NewAppointment, "Appointment", self, ("date", "time"), {
            "patient_id": patient_id,
            "date": self.date.strip(),
            "time": self.time.strip(),
            "notes": self.notes,
        })


class PaymentDraft(BaseModel):
    """New payment form buffer."""

    amount: str = ""
    date: str = ""
    time: str = ""
    description: str = ""

    @property
    def is_empty(self) -> bool:
        return not (self.amount or self.date or self.time or self.description)

    def reset(self) -> "PaymentDraft":
        return PaymentDraft()

    def validate(
        self,
        patient_id: int,
        doctor_id: int,
        action_id: int | None = None,
    ) -> NewPayment:
        """
        Validate the draft into a payment request.

        Raises:
            ValidationError: amount, date or time is empty, unparseable,
                or the amount is negative
        """
        return _validate(NewPayment, "Payment", self, ("amount", "date", "time"), {
            "patient_id": patient_id,
            "doctor_id": doctor_id,
            "action_id": action_id,
            "amount": self.amount.strip(),
            "date": self.date.strip(),
            "time": self.time.strip(),
            "description": self.description,
        })
