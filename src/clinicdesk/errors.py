"""ClinicDesk exceptions."""

from typing import Any


class ClinicDeskError(Exception):
    """Base error for ClinicDesk."""
    pass


class ValidationError(ClinicDeskError, ValueError):
    """
    A record, draft or filter value failed validation.

    `errors` lists every offending field as {"field": ..., "message": ...}.
    """

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []

    @property
    def fields(self) -> list[str]:
        return [e["field"] for e in self.errors]

    @classmethod
    def from_pydantic(cls, model_name: str, exc: Exception) -> "ValidationError":
        """Convert a pydantic validation error into a ClinicDesk one."""
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ())) or "__root__",
                "message": err.get("msg", ""),
            }
            for err in exc.errors()
        ]
        return cls(f"Invalid {model_name} record", errors)


class CreationServiceError(ClinicDeskError):
    """The creation service failed to create a record."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class DataSourceError(ClinicDeskError):
    """The data source failed to supply a snapshot."""
    pass


class InvalidTransitionError(ClinicDeskError):
    """A dashboard operation is not allowed in the current mode."""

    def __init__(self, operation: str, mode: str):
        super().__init__(f"Cannot {operation} while dashboard is {mode}")
        self.operation = operation
        self.mode = mode
