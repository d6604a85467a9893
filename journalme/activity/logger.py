"""
Activity Logger

DESIGN DECISION: Every money-moving or day-changing action is logged.
This provides:
1. Traceability of how today's balance came to be
2. Debugging capability for day-boundary jobs
3. Visibility into advisor fallbacks

The activity logger:
- Writes structured JSON lines through structlog
- Never persists events (the database only keeps today's snapshot)
- Never raises; a logging failure must not break a spend or a reset
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

import structlog

from journalme.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivitySeverity,
)


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog for local JSON logging."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper()))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class ActivityLogger:
    """
    Central activity logging service.

    Keeps the last few events in memory so the UI can show a short
    "what just happened" strip without reading the log file.
    """

    def __init__(self, recent_limit: int = 20):
        self._logger = structlog.get_logger("journalme.activity")
        self._recent: list[ActivityEvent] = []
        self._recent_limit = recent_limit

    @property
    def recent_events(self) -> list[ActivityEvent]:
        """Most recent events, newest first."""
        return list(reversed(self._recent))

    def log(self, event: ActivityEvent) -> None:
        """Log an activity event."""
        self._recent.append(event)
        del self._recent[:-self._recent_limit]

        log_dict = event.to_log_dict()
        try:
            if event.severity == ActivitySeverity.ERROR:
                self._logger.error("activity_event", **log_dict)
            elif event.severity == ActivitySeverity.WARNING:
                self._logger.warning("activity_event", **log_dict)
            elif event.severity == ActivitySeverity.DEBUG:
                self._logger.debug("activity_event", **log_dict)
            else:
                self._logger.info("activity_event", **log_dict)
        except Exception as e:
            # Log failure but don't raise
            logging.getLogger(__name__).error("activity logging failed: %s", e)

    def log_balance_updated(self, old_total: Decimal, new_total: Decimal) -> None:
        self.log(ActivityEventBuilder.balance_updated(old_total, new_total))

    def log_spend_logged(
        self,
        item_id: UUID,
        label: str,
        amount: Decimal,
        balance_after: Decimal,
    ) -> None:
        self.log(ActivityEventBuilder.spend_logged(item_id, label, amount, balance_after))

    def log_spend_reversed(self, item_id: UUID, label: str, amount: Decimal) -> None:
        self.log(ActivityEventBuilder.spend_reversed(item_id, label, amount))

    def log_income_added(
        self,
        income_id: UUID,
        label: str,
        amount: Decimal,
        expected_date: Optional[date],
    ) -> None:
        self.log(ActivityEventBuilder.income_added(income_id, label, amount, expected_date))

    def log_income_cleared(
        self,
        income_id: UUID,
        label: str,
        amount: Decimal,
        balance_after: Decimal,
    ) -> None:
        self.log(ActivityEventBuilder.income_cleared(income_id, label, amount, balance_after))

    def log_obligation_added(
        self,
        obligation_id: UUID,
        label: str,
        amount: Decimal,
        day_of_month: int,
    ) -> None:
        self.log(
            ActivityEventBuilder.obligation_added(obligation_id, label, amount, day_of_month)
        )

    def log_obligation_removed(self, obligation_id: UUID, label: str) -> None:
        self.log(ActivityEventBuilder.obligation_removed(obligation_id, label))

    def log_debt_payment(
        self,
        debt_id: UUID,
        label: str,
        payment: Decimal,
        remaining: Decimal,
    ) -> None:
        self.log(ActivityEventBuilder.debt_payment_logged(debt_id, label, payment, remaining))

    def log_spend_log_reset(self, day: date, cleared_items: int) -> None:
        self.log(ActivityEventBuilder.spend_log_reset(day, cleared_items))

    def log_tasks_judged(self, day: date, archived: int, missed: int, penalty: int) -> None:
        self.log(ActivityEventBuilder.tasks_judged(day, archived, missed, penalty))

    def log_backup_exported(self, filename: str, size_bytes: int) -> None:
        self.log(ActivityEventBuilder.backup_exported(filename, size_bytes))

    def log_backup_imported(self, backup_date: datetime) -> None:
        self.log(ActivityEventBuilder.backup_imported(backup_date))

    def log_advisor_fallback(self, reason: str) -> None:
        self.log(ActivityEventBuilder.advisor_fallback_used(reason))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log an error."""
        self.log(ActivityEventBuilder.system_error(error_type, error_message, details))

    def log_external_service_error(self, service: str, error_message: str) -> None:
        """Log external service error."""
        self.log(ActivityEventBuilder.external_service_error(service, error_message))
