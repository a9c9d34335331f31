"""
Appointment Filters

Status and relative date-range filtering of the dashboard appointment list.

Every function here is pure: "now" is always passed in by the caller.
Day comparisons use local calendar days. Naive timestamps are taken as
local wall-clock time; aware timestamps are converted into the zone of
`now` (or the system zone when `now` is naive) before truncation.
"""

from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterable, Sequence

from pydantic import BaseModel, ConfigDict

from clinicdesk.errors import ValidationError
from clinicdesk.models.scheduling import Appointment


class StatusFilter(str, Enum):
    """Status filter options."""
    ALL = "ALL"
    WAITING = "WAITING"
    UPCOMING = "UPCOMING"
    COMPLETED = "COMPLETED"


class DateFilter(str, Enum):
    """Relative date-range filter options."""
    ALL = "ALL"
    TODAY = "TODAY"
    THIS_WEEK = "THIS_WEEK"
    THIS_MONTH = "THIS_MONTH"


def parse_status_filter(value: str | StatusFilter) -> StatusFilter:
    if isinstance(value, StatusFilter):
        return value
    try:
        return StatusFilter(value)
    except ValueError:
        raise ValidationError(
            f"Unknown status filter: {value!r}",
            [{"field": "status", "message": f"must be one of {[s.value for s in StatusFilter]}"}],
        ) from None


def parse_date_filter(value: str | DateFilter) -> DateFilter:
    if isinstance(value, DateFilter):
        return value
    try:
        return DateFilter(value)
    except ValueError:
        raise ValidationError(
            f"Unknown date filter: {value!r}",
            [{"field": "date_range", "message": f"must be one of {[d.value for d in DateFilter]}"}],
        ) from None


# =============================================================================
# Day arithmetic
# =============================================================================

def local_day(value: date | datetime, now: datetime) -> date:
    """Truncate a timestamp to its local calendar day."""
    if not isinstance(value, datetime):
        return value
    if value.tzinfo is not None:
        value = value.astimezone(now.tzinfo) if now.tzinfo is not None else value.astimezone()
    return value.date()


def week_bounds(today: date) -> tuple[date, date]:
    """Sunday-to-Saturday week containing `today`, inclusive."""
    days_since_sunday = (today.weekday() + 1) % 7
    start = today - timedelta(days=days_since_sunday)
    return start, start + timedelta(days=6)


# =============================================================================
# Predicates
# =============================================================================

def status_matches(appointment: Appointment, status: str | StatusFilter) -> bool:
    """Check the appointment's status label against a status filter."""
    status = parse_status_filter(status)
    if status == StatusFilter.ALL:
        return True
    return appointment.status.normalized == status.value


def date_matches(
    appointment_date: date | datetime,
    date_range: str | DateFilter,
    now: datetime,
) -> bool:
    """Check an appointment date against a relative date range."""
    date_range = parse_date_filter(date_range)
    if date_range == DateFilter.ALL:
        return True

    day = local_day(appointment_date, now)
    today = now.date()

    if date_range == DateFilter.TODAY:
        return day == today
    if date_range == DateFilter.THIS_WEEK:
        start, end = week_bounds(today)
        return start <= day <= end
    # THIS_MONTH
    return (day.year, day.month) == (today.year, today.month)


def filter_appointments(
    appointments: Iterable[Appointment],
    status: str | StatusFilter = StatusFilter.ALL,
    date_range: str | DateFilter = DateFilter.ALL,
    *,
    now: datetime,
) -> list[Appointment]:
    """
    Appointments matching both the status and the date filter.

    Input order is preserved. An empty result is a valid outcome.
    """
    status = parse_status_filter(status)
    date_range = parse_date_filter(date_range)
    return [
        appointment
        for appointment in appointments
        if status_matches(appointment, status)
        and date_matches(appointment.date, date_range, now)
    ]


# =============================================================================
# Patient lookups
# =============================================================================

def appointments_for_patient(
    appointments: Iterable[Appointment],
    patient_id: int,
) -> list[Appointment]:
    return [a for a in appointments if a.patient_id == patient_id]


def first_appointment_for_patient(
    appointments: Sequence[Appointment],
    patient_id: int,
) -> Appointment | None:
    """First appointment of a patient in list order, if any."""
    return next((a for a in appointments if a.patient_id == patient_id), None)


# =============================================================================
# Selection
# =============================================================================

class FilterSelection(BaseModel):
    """The filters currently selected on the dashboard."""

    model_config = ConfigDict(frozen=True)

    status: StatusFilter = StatusFilter.ALL
    date_range: DateFilter = DateFilter.ALL

    @classmethod
    def parse(cls, status: str = "ALL", date_range: str = "ALL") -> "FilterSelection":
        return cls(status=parse_status_filter(status), date_range=parse_date_filter(date_range))

    def with_status(self, status: str | StatusFilter) -> "FilterSelection":
        return self.model_copy(update={"status": parse_status_filter(status)})

    def with_date_range(self, date_range: str | DateFilter) -> "FilterSelection":
        return self.model_copy(update={"date_range": parse_date_filter(date_range)})

    def apply(self, appointments: Iterable[Appointment], now: datetime) -> list[Appointment]:
        return filter_appointments(appointments, self.status, self.date_range, now=now)
