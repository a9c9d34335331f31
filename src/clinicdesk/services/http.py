"""
Backend HTTP Client

Thin wrapper over httpx.AsyncClient shared by the HTTP data source and the
HTTP creation service.
"""

from typing import Any

import httpx
import structlog

from clinicdesk.config import BackendSettings
from clinicdesk.errors import ClinicDeskError

logger = structlog.get_logger(__name__)


class BackendClient:
    """
    JSON client for the clinic backend.

    Failures are raised as the ClinicDesk error class chosen by the caller,
    so each collaborator reports errors in its own terms.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers=headers or {},
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: BackendSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "BackendClient":
        return cls(
            base_url=settings.base_url,
            timeout=settings.timeout_seconds,
            headers=settings.auth_headers,
            transport=transport,
        )

    async def request_json(
        self,
        method: str,
        path: str,
        error_cls: type[ClinicDeskError],
        json: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request and decode the JSON body."""
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.HTTPError as e:
            logger.error("Backend request failed", method=method, path=path, error=str(e))
            raise error_cls(f"{method} {path} failed: {e}") from e

        if not response.is_success:
            logger.error(
                "Backend returned error status",
                method=method,
                path=path,
                status_code=response.status_code,
            )
            error = error_cls(f"{method} {path} returned {response.status_code}")
            error.status_code = response.status_code
            raise error

        try:
            return response.json()
        except ValueError as e:
            logger.error("Backend returned invalid JSON", method=method, path=path)
            raise error_cls(f"{method} {path} returned invalid JSON") from e

    async def aclose(self):
        await self._client.aclose()
