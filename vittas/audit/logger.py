"""
Audit Logger

Every significant action in the system is logged as a structured event.
Backend functions additionally log each step of a request under their
function label (e.g. ``MANAGE-SUBSCRIPTION``), so one request can be
followed from "Function started" to its response or error.

The audit logger:
- Is async so it can be awaited inline in service code
- Never raises; a logging failure must not fail the request
- Supports correlation IDs to trace related events
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

import structlog

from vittas.models.audit import AuditEvent, AuditEventBuilder, AuditEventType


# Configure structlog for local logging
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


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output through stdlib logging at the given level."""
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
    )


def log_step(function: str, step: str, **details) -> None:
    """
    Log one step of a backend function.

    Args:
        function: Function label, e.g. "RAZORPAY-CHECKOUT"
        step: What just happened, e.g. "Plan type received"
        details: Extra structured fields. ``event`` is structlog's message
            key, so a detail with that name is logged as ``event_detail``.
    """
    if "event" in details:
        details["event_detail"] = details.pop("event")
    logger = structlog.get_logger("vittas.functions")
    if step.startswith("ERROR"):
        logger.error(step, function=function, **details)
    else:
        logger.info(step, function=function, **details)


class AuditLogger:
    """
    Central audit logging service.

    Events are written to the structured local log. There is no
    persistent audit store.
    """

    def __init__(self):
        self._logger = structlog.get_logger("vittas.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns True if the event was written.
        """
        try:
            log_dict = event.to_log_dict()
            severity = event.severity.value
            if severity in ("error", "critical"):
                self._logger.error("audit_event", **log_dict)
            elif severity == "warning":
                self._logger.warning("audit_event", **log_dict)
            elif severity == "debug":
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
            return True
        except Exception as e:
            # Logging must never take the request down with it
            logging.getLogger(__name__).warning("audit log failed: %s", e)
            return False

    async def log_dashboard_loaded(
        self,
        user_id: UUID,
        period: str,
        transaction_count: int,
        budget_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.dashboard_loaded(
            user_id=user_id,
            period=period,
            transaction_count=transaction_count,
            budget_count=budget_count,
            correlation_id=correlation_id,
        ))

    async def log_dashboard_failed(
        self,
        user_id: UUID,
        period: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.dashboard_load_failed(
            user_id=user_id,
            period=period,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_transaction_saved(
        self,
        user_id: UUID,
        transaction_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_changed(
            AuditEventType.TRANSACTION_SAVED, user_id, transaction_id, correlation_id,
        ))

    async def log_transaction_updated(
        self,
        user_id: UUID,
        transaction_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_changed(
            AuditEventType.TRANSACTION_UPDATED, user_id, transaction_id, correlation_id,
        ))

    async def log_transaction_deleted(
        self,
        user_id: UUID,
        transaction_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_changed(
            AuditEventType.TRANSACTION_DELETED, user_id, transaction_id, correlation_id,
        ))

    async def log_budget_saved(
        self,
        user_id: UUID,
        budget_id: UUID,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.budget_saved(
            user_id=user_id,
            budget_id=budget_id,
            name=name,
            correlation_id=correlation_id,
        ))

    async def log_subscription_cancelled(
        self,
        user_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.subscription_cancelled(
            user_id=user_id,
            correlation_id=correlation_id,
        ))

    async def log_subscription_activated(
        self,
        user_id: UUID,
        plan_type: str,
        subscription_end: datetime,
        source: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.subscription_activated(
            user_id=user_id,
            plan_type=plan_type,
            subscription_end=subscription_end,
            source=source,
            correlation_id=correlation_id,
        ))

    async def log_order_created(
        self,
        user_id: UUID,
        order_id: str,
        plan_type: str,
        amount: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.order_created(
            user_id=user_id,
            order_id=order_id,
            plan_type=plan_type,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_shared_expense_saved(
        self,
        expense_id: UUID,
        group_id: UUID,
        created_by: UUID,
        participant_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.shared_expense_saved(
            expense_id=expense_id,
            group_id=group_id,
            created_by=created_by,
            participant_count=participant_count,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        await self.log(AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a request and pass it through
    all subsequent operations.
    """
    return uuid4()
