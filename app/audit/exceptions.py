"""
Audit trail exceptions.

Exception Hierarchy:
    ConflictError (core)
    └── AuditLogImmutableError - Attempt to update or delete an entry
"""

from core.exceptions import ConflictError


class AuditLogImmutableError(ConflictError):
    """Raised when code tries to modify or delete an audit entry."""

    default_error_code = "AUDIT_LOG_IMMUTABLE"


__all__ = ["AuditLogImmutableError"]
