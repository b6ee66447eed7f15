"""Audit logging package."""

from vittas.audit.logger import (
    AuditLogger,
    configure_logging,
    create_correlation_id,
    log_step,
)

__all__ = ["AuditLogger", "configure_logging", "create_correlation_id", "log_step"]
