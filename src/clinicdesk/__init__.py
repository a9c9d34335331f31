"""
ClinicDesk: appointment and billing core for the clinic staff dashboard

Filters the appointment list a doctor sees, validates new appointment and
payment drafts, and hands them to an injected creation service.
"""

__version__ = "0.1.0"
__author__ = "ClinicDesk Team"
