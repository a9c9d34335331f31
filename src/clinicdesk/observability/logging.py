"""
Structured Logging

structlog configuration shared by the API and library users:
- log level filtering
- ISO timestamps
- contact detail redaction (patient emails and phone numbers)
- JSON or console rendering
"""

import logging
import re
import sys

import structlog

EMAIL_PATTERN = re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]+")
# Grouped numbers such as "+1 555 010 0101" or "(555) 010-0101"; calendar
# dates and plain amounts are left alone.
PHONE_PATTERN = re.compile(
    r"(?<![\w.+-])"
    r"(?!\d{4}-\d{2}-\d{2}(?!\d))"
    r"(?!\d{1,2}[./-]\d{1,2}[./-]\d{2,4}(?!\d))"
    r"(?:\+\d{1,3}[\s.-]?)?"
    r"(?:\(\d{2,4}\)|\d{2,4})"
    r"(?:[\s.-]\d{2,4}){2,3}"
    r"(?!\d)"
)

_SKIP_KEYS = {"level", "logger", "timestamp"}


def redact_contact_details(text: str) -> str:
    """Mask email addresses and phone numbers."""
    text = EMAIL_PATTERN.sub("[EMAIL]", text)
    return PHONE_PATTERN.sub("[PHONE]", text)


def contact_redaction_processor(logger, method_name, event_dict):
    """Redact contact details from the event and all string values."""
    for key, value in event_dict.items():
        if isinstance(value, str) and key not in _SKIP_KEYS:
            event_dict[key] = redact_contact_details(value)
    return event_dict


def configure_logging(level: str = "INFO", json_output: bool = True) -> None:
    """Configure structlog on top of the stdlib logging module."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            contact_redaction_processor,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
