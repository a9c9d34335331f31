"""
ClinicDesk Services

Injected collaborators: where snapshots come from and where new
appointments and payments go.
"""

from clinicdesk.services.creation import (
    CreationService,
    HttpCreationService,
    InMemoryCreationService,
    build_creation_service,
)
from clinicdesk.services.http import BackendClient
from clinicdesk.services.source import (
    AppointmentSource,
    HttpAppointmentSource,
    InMemoryAppointmentSource,
)

__all__ = [
    "CreationService",
    "HttpCreationService",
    "InMemoryCreationService",
    "build_creation_service",
    "BackendClient",
    "AppointmentSource",
    "HttpAppointmentSource",
    "InMemoryAppointmentSource",
]
