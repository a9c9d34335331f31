"""ClinicDesk Billing"""

from clinicdesk.billing.audit import AuditStorage, AuditTrail

__all__ = ["AuditStorage", "AuditTrail"]
