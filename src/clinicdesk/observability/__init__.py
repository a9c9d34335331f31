"""
ClinicDesk Observability Module

structlog configuration with contact detail redaction.
"""

from clinicdesk.observability.logging import (
    configure_logging,
    contact_redaction_processor,
    redact_contact_details,
)

__all__ = [
    "configure_logging",
    "contact_redaction_processor",
    "redact_contact_details",
]
