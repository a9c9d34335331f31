"""Billing Audit Trail - append-only record of billing-affecting events"""
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterator, Protocol
import uuid
import structlog

from clinicdesk.models.financial import AuditTrailEntry, Payment

logger = structlog.get_logger(__name__)


class AuditStorage(Protocol):
    def store(self, entry: AuditTrailEntry) -> None: ...


class AuditTrail:
    """
    Append-only billing audit trail.

    Entries are immutable and can only be appended; there is no update or
    delete. An optional storage backend receives every entry as it is
    recorded.
    """

    def __init__(self, storage_backend: AuditStorage | None = None,
                 clock: Callable[[], datetime] = datetime.now):
        self._entries: list[AuditTrailEntry] = []
        self._storage = storage_backend
        self._clock = clock

    def record(self, action: str, amount: Decimal, user: str,
               details: str = "", timestamp: datetime | None = None) -> AuditTrailEntry:
        """Append an audit entry."""
        entry = AuditTrailEntry(
            id=f"AUD-{uuid.uuid4().hex[:16].upper()}",
            action=action,
            amount=amount,
            user=user,
            timestamp=timestamp or self._clock(),
            details=details,
        )

        self._entries.append(entry)
        if self._storage:
            self._storage.store(entry)

        logger.info("Audit entry recorded", entry_id=entry.id, action=action, user=user)
        return entry

    def record_payment(self, payment: Payment, user: str) -> AuditTrailEntry:
        """Convenience method for a newly recorded payment."""
        details = f"Payment #{payment.id} for patient #{payment.patient_id} ({payment.status.status.value})"
        if payment.description:
            details += f": {payment.description}"
        return self.record(
            action="Payment recorded",
            amount=payment.amount,
            user=user,
            details=details,
        )

    @property
    def entries(self) -> tuple[AuditTrailEntry, ...]:
        return tuple(self._entries)

    def query(self, user: str | None = None, start_time: datetime | None = None,
              end_time: datetime | None = None, limit: int = 100) -> list[AuditTrailEntry]:
        """Most recent entries matching the filters, oldest first."""
        results = self._entries
        if user:
            results = [e for e in results if e.user == user]
        if start_time:
            results = [e for e in results if e.timestamp >= start_time]
        if end_time:
            results = [e for e in results if e.timestamp <= end_time]
        return results[-limit:] if limit else []

    def total_amount(self, user: str | None = None) -> Decimal:
        return sum((e.amount for e in self._entries if user is None or e.user == user), Decimal("0"))

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[AuditTrailEntry]:
        return iter(tuple(self._entries))
