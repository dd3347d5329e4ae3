"""Infrastructure services shared across tutorboard modules."""

from tutorboard.core.infra.audit_logger import AuditLogger, AuditMetrics

__all__ = ["AuditLogger", "AuditMetrics"]
