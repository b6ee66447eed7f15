"""
Audit Models for Vittas

Every state change and every failure in the system produces an audit
event. Events carry a correlation id so all steps of one request can be
pulled out of the log together.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Dashboard
    DASHBOARD_LOADED = "dashboard_loaded"
    DASHBOARD_LOAD_FAILED = "dashboard_load_failed"

    # Transactions and budgets
    TRANSACTION_SAVED = "transaction_saved"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    BUDGET_SAVED = "budget_saved"

    # Subscriptions
    SUBSCRIPTION_CANCELLED = "subscription_cancelled"
    SUBSCRIPTION_ACTIVATED = "subscription_activated"

    # Checkout
    ORDER_CREATED = "order_created"

    # Sharing
    SHARED_EXPENSE_SAVED = "shared_expense_saved"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'subscription', 'order')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity (UUIDs and processor ids alike)"
    )
    user_id: Optional[UUID] = None

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = False

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
            "entity_id": self.entity_id,
            "user_id": str(self.user_id) if self.user_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.subscription_cancelled(user_id, correlation_id)
        event = AuditEventBuilder.order_created(user_id, order_id, "Premium", 74900)
    """

    @staticmethod
    def dashboard_loaded(
        user_id: UUID,
        period: str,
        transaction_count: int,
        budget_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DASHBOARD_LOADED,
            severity=AuditSeverity.DEBUG,
            entity_type="dashboard",
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Dashboard loaded for period '{period}'",
            details={
                "period": period,
                "transaction_count": transaction_count,
                "budget_count": budget_count,
            },
        )

    @staticmethod
    def dashboard_load_failed(
        user_id: UUID,
        period: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DASHBOARD_LOAD_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="dashboard",
            user_id=user_id,
            correlation_id=correlation_id,
            description="Error fetching dashboard data",
            details={"period": period},
            error_message=error_message,
        )

    @staticmethod
    def transaction_changed(
        event_type: AuditEventType,
        user_id: UUID,
        transaction_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        verb = event_type.value.split("_", 1)[1]
        return AuditEvent(
            event_type=event_type,
            entity_type="transaction",
            entity_id=str(transaction_id),
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Transaction {verb}",
            is_user_action=True,
        )

    @staticmethod
    def budget_saved(
        user_id: UUID,
        budget_id: UUID,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_SAVED,
            entity_type="budget",
            entity_id=str(budget_id),
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Budget saved: {name}",
            is_user_action=True,
        )

    @staticmethod
    def subscription_cancelled(
        user_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBSCRIPTION_CANCELLED,
            entity_type="subscription",
            entity_id=str(user_id),
            user_id=user_id,
            correlation_id=correlation_id,
            description="Subscription cancelled",
            is_user_action=True,
        )

    @staticmethod
    def subscription_activated(
        user_id: UUID,
        plan_type: str,
        subscription_end: datetime,
        source: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBSCRIPTION_ACTIVATED,
            entity_type="subscription",
            entity_id=str(user_id),
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Subscription activated: {plan_type}",
            details={
                "plan_type": plan_type,
                "subscription_end": subscription_end.isoformat(),
                "source": source,
            },
        )

    @staticmethod
    def order_created(
        user_id: UUID,
        order_id: str,
        plan_type: str,
        amount: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ORDER_CREATED,
            entity_type="order",
            entity_id=order_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Razorpay order created for {plan_type}",
            details={
                "plan_type": plan_type,
                "amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def shared_expense_saved(
        expense_id: UUID,
        group_id: UUID,
        created_by: UUID,
        participant_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SHARED_EXPENSE_SAVED,
            entity_type="shared_expense",
            entity_id=str(expense_id),
            user_id=created_by,
            correlation_id=correlation_id,
            description=f"Shared expense saved with {participant_count} participants",
            details={"group_id": str(group_id)},
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
