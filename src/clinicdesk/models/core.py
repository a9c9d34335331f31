"""
Core Domain Models

Pydantic models for User, Doctor and Patient.
"""

from datetime import date, datetime, time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from clinicdesk.errors import ValidationError


def coerce_datetime(value: Any) -> Any:
    """Treat a plain calendar date as local midnight of that day."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, time())
    if isinstance(value, str) and not value.strip():
        raise ValueError("must not be empty")
    return value


class BaseEntity(BaseModel):
    """
    Base class for all dashboard entities.

    Records arrive from the clinic backend in camelCase (`patientId`,
    `medicalHistory`) and can also be built by field name.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    @classmethod
    def from_record(cls, data: Any):
        """Build an entity from a backend record, raising ClinicDesk's ValidationError."""
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(cls.__name__, e) from e

    def to_record(self) -> dict[str, Any]:
        """Serialize back to the camelCase wire shape."""
        return self.model_dump(mode="json", by_alias=True)


class User(BaseEntity):
    """A staff or doctor account."""

    id: int = Field(..., description="User ID")
    first_name: str = Field(..., description="First/given name")
    last_name: str = Field(..., description="Last/family name")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Doctor(BaseEntity):
    """Doctor entity, as referenced by payments."""

    user: User

    @property
    def display_name(self) -> str:
        """Get display name with title."""
        return f"Dr. {self.user.full_name}"


class Sex(BaseEntity):
    gender: str


class UserProfile(BaseEntity):
    """The user profile embedded in a dashboard patient."""

    first_name: str = Field(..., description="First/given name")
    last_name: str = Field(..., description="Last/family name")
    date_of_birth: date = Field(..., description="Date of birth")
    email: str = Field(..., description="Email address")
    phone: str = Field(..., description="Primary phone")
    sex: Sex


class Patient(BaseEntity):
    """
    Patient entity.

    Represents a person receiving care at the clinic, with the profile
    fields the appointments table and the patient dialogs display.
    """

    id: int = Field(..., description="Patient ID")
    user: UserProfile
    medical_history: str | None = Field(default=None, description="Free-text medical history")

    @property
    def full_name(self) -> str:
        """Get full name."""
        return f"{self.user.first_name} {self.user.last_name}"

    def age_on(self, day: date) -> int:
        """Age in whole years on the given day."""
        born = self.user.date_of_birth
        return day.year - born.year - ((day.month, day.day) < (born.month, born.day))


class BillingPatient(BaseEntity):
    """The patient reference carried by a payment."""

    user_id: int = Field(..., description="Patient's user ID")
    medical_history: str = ""
