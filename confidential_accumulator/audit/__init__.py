"""Audit logging package."""

from confidential_accumulator.audit.logger import AuditLogger, create_correlation_id

__all__ = ["AuditLogger", "create_correlation_id"]
