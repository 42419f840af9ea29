"""
Role checks for mutation operations.

Enforced inside the services, not only in the API layer: every admin-only
operation calls ensure_admin with the acting user before touching state.
"""
from drugstock.core.audit import AuditLog
from drugstock.core.exceptions import PermissionDeniedError
from drugstock.models.user import User, UserRole


def is_admin(user: User) -> bool:
    return user is not None and user.role == UserRole.ADMIN


def ensure_admin(user: User, action: str, resource_type: str, resource_id=None) -> None:
    """Raise PermissionDeniedError unless the acting user is an admin."""
    if is_admin(user):
        return
    AuditLog.log_access_denied(
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        user=user,
        reason="Admin role required",
    )
    raise PermissionDeniedError(f"Only administrators can {action} {resource_type}")
