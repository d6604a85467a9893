"""
Activity Event Models for JournalMe

Every money-moving or day-changing action produces an event that is
written to the structured log.

DESIGN DECISION: Events go to the log only. There is no persisted
history; the database keeps just the current day's snapshot.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class ActivityEventType(str, Enum):
    """Types of events we log."""
    # Cash
    BALANCE_UPDATED = "balance_updated"
    SPEND_LOGGED = "spend_logged"
    SPEND_REVERSED = "spend_reversed"

    # Income pipeline
    INCOME_ADDED = "income_added"
    INCOME_CLEARED = "income_cleared"

    # Obligations and debts
    OBLIGATION_ADDED = "obligation_added"
    OBLIGATION_REMOVED = "obligation_removed"
    DEBT_PAYMENT_LOGGED = "debt_payment_logged"

    # Day boundary
    SPEND_LOG_RESET = "spend_log_reset"
    TASKS_JUDGED = "tasks_judged"

    # Backup
    BACKUP_EXPORTED = "backup_exported"
    BACKUP_IMPORTED = "backup_imported"

    # Advisor
    ADVISOR_FALLBACK_USED = "advisor_fallback_used"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class ActivitySeverity(str, Enum):
    """Severity level for activity events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ActivityEvent(BaseModel):
    """A single logged action."""

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(default_factory=datetime.now)

    event_type: ActivityEventType
    severity: ActivitySeverity = ActivitySeverity.INFO

    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'spend', 'income', 'debt')"
    )
    entity_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class ActivityEventBuilder:
    """
    Helper class to build activity events with common patterns.

    Usage:
        event = ActivityEventBuilder.spend_logged(item_id, "Tea", amount, balance)
    """

    @staticmethod
    def balance_updated(old_total: Decimal, new_total: Decimal) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.BALANCE_UPDATED,
            entity_type="balance",
            description=f"Balance set to {new_total}",
            details={"old_total": str(old_total), "new_total": str(new_total)},
        )

    @staticmethod
    def spend_logged(
        item_id: UUID,
        label: str,
        amount: Decimal,
        balance_after: Decimal,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SPEND_LOGGED,
            entity_type="spend",
            entity_id=item_id,
            description=f"Spent {amount} on {label}",
            details={
                "label": label,
                "amount": str(amount),
                "balance_after": str(balance_after),
            },
        )

    @staticmethod
    def spend_reversed(
        item_id: UUID,
        label: str,
        amount: Decimal,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SPEND_REVERSED,
            entity_type="spend",
            entity_id=item_id,
            description=f"Reversed spend of {amount} on {label}",
            details={"label": label, "amount": str(amount)},
        )

    @staticmethod
    def income_added(
        income_id: UUID,
        label: str,
        amount: Decimal,
        expected_date: Optional[date],
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.INCOME_ADDED,
            entity_type="income",
            entity_id=income_id,
            description=f"Expecting {amount} from {label}",
            details={
                "amount": str(amount),
                "expected_date": expected_date.isoformat() if expected_date else None,
            },
        )

    @staticmethod
    def income_cleared(
        income_id: UUID,
        label: str,
        amount: Decimal,
        balance_after: Decimal,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.INCOME_CLEARED,
            entity_type="income",
            entity_id=income_id,
            description=f"Received {amount} from {label}",
            details={"amount": str(amount), "balance_after": str(balance_after)},
        )

    @staticmethod
    def obligation_added(
        obligation_id: UUID,
        label: str,
        amount: Decimal,
        day_of_month: int,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.OBLIGATION_ADDED,
            entity_type="obligation",
            entity_id=obligation_id,
            description=f"Tracking {label}: {amount} due on day {day_of_month}",
            details={"amount": str(amount), "day_of_month": day_of_month},
        )

    @staticmethod
    def obligation_removed(obligation_id: UUID, label: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.OBLIGATION_REMOVED,
            entity_type="obligation",
            entity_id=obligation_id,
            description=f"Stopped tracking {label}",
        )

    @staticmethod
    def debt_payment_logged(
        debt_id: UUID,
        label: str,
        payment: Decimal,
        remaining: Decimal,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.DEBT_PAYMENT_LOGGED,
            entity_type="debt",
            entity_id=debt_id,
            description=f"Paid {payment} toward {label}",
            details={"payment": str(payment), "remaining": str(remaining)},
        )

    @staticmethod
    def spend_log_reset(day: date, cleared_items: int) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SPEND_LOG_RESET,
            entity_type="spend",
            description=f"Spend log reset for {day.isoformat()}",
            details={"day": day.isoformat(), "cleared_items": cleared_items},
        )

    @staticmethod
    def tasks_judged(day: date, archived: int, missed: int, penalty: int) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.TASKS_JUDGED,
            severity=ActivitySeverity.WARNING if missed else ActivitySeverity.INFO,
            entity_type="task",
            description=f"Archived {archived} tasks, {missed} missed",
            details={
                "day": day.isoformat(),
                "archived": archived,
                "missed": missed,
                "penalty": penalty,
            },
        )

    @staticmethod
    def backup_exported(filename: str, size_bytes: int) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.BACKUP_EXPORTED,
            entity_type="backup",
            description=f"Backup exported: {filename}",
            details={"filename": filename, "size_bytes": size_bytes},
        )

    @staticmethod
    def backup_imported(backup_date: datetime) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.BACKUP_IMPORTED,
            entity_type="backup",
            description="Backup restored",
            details={"backup_date": backup_date.isoformat()},
        )

    @staticmethod
    def advisor_fallback_used(reason: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.ADVISOR_FALLBACK_USED,
            severity=ActivitySeverity.WARNING,
            entity_type="advisor",
            description="Advisor fell back to the static task list",
            details={"reason": reason},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SYSTEM_ERROR,
            severity=ActivitySeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )

    @staticmethod
    def external_service_error(service: str, error_message: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.EXTERNAL_SERVICE_ERROR,
            severity=ActivitySeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={"service": service},
        )
