"""ClinicDesk Dashboard"""

from clinicdesk.dashboard.state import (
    DashboardMode,
    DashboardState,
    SubmissionResult,
    SubmissionStatus,
)

__all__ = [
    "DashboardMode",
    "DashboardState",
    "SubmissionResult",
    "SubmissionStatus",
]
