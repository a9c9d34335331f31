"""Appointment Source - where dashboard snapshots come from"""
from abc import ABC, abstractmethod

import httpx
import structlog

from clinicdesk.config import Settings, get_settings
from clinicdesk.errors import DataSourceError
from clinicdesk.scheduling.snapshot import DashboardSnapshot
from clinicdesk.services.creation import InMemoryCreationService
from clinicdesk.services.http import BackendClient

logger = structlog.get_logger(__name__)


class AppointmentSource(ABC):
    """
    Supplies appointment and patient snapshots.

    The dashboard only reads what a source returns.
    """

    @abstractmethod
    async def load_snapshot(self) -> DashboardSnapshot:
        """Load the current appointments and patients."""
        pass

    async def aclose(self):
        pass


class InMemoryAppointmentSource(AppointmentSource):
    """
    Serves a fixed snapshot, or the live snapshot of an in-memory
    creation service so that created appointments are listed.
    """

    def __init__(
        self,
        snapshot: DashboardSnapshot | None = None,
        creation_service: InMemoryCreationService | None = None,
    ):
        self.snapshot = snapshot if snapshot is not None else DashboardSnapshot()
        self.creation_service = creation_service

    async def load_snapshot(self) -> DashboardSnapshot:
        if self.creation_service is not None:
            return self.creation_service.snapshot
        return self.snapshot


class HttpAppointmentSource(AppointmentSource):
    """
    Loads snapshots from the clinic backend.

    GET {base_url}/appointments and GET {base_url}/patients, each returning
    a JSON list of camelCase records. Malformed records raise
    ValidationError; transport and status failures raise DataSourceError.
    """

    def __init__(self, client: BackendClient):
        self._client = client

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "HttpAppointmentSource":
        settings = settings or get_settings()
        return cls(BackendClient.from_settings(settings.backend, transport=transport))

    async def load_snapshot(self) -> DashboardSnapshot:
        appointments = await self._client.request_json("GET", "/appointments", DataSourceError)
        patients = await self._client.request_json("GET", "/patients", DataSourceError)

        if not isinstance(appointments, list) or not isinstance(patients, list):
            raise DataSourceError("Backend did not return record lists")

        snapshot = DashboardSnapshot.from_records(appointments=appointments, patients=patients)
        logger.info(
            "Snapshot loaded",
            appointments=len(snapshot.appointments),
            patients=len(snapshot.patients),
        )
        return snapshot

    async def aclose(self):
        await self._client.aclose()
