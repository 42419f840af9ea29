"""
Audit logging for security-relevant and stock-changing operations.

Complements the stock ledger: the ledger records quantity history for users,
this log records who did what for operators. Entries are JSON lines on the
"audit" logger so they can be shipped to centralized logging.

Passwords and tokens are never logged.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

audit_logger = logging.getLogger("audit")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class AuditLog:
    """Central audit logging for security-critical events."""

    @staticmethod
    def log_authentication(
        action: str,  # "login", "logout", "failed_login"
        username: str,
        ip_address: str,
        success: bool,
        reason: str = "",
    ):
        """
        Usage:
            AuditLog.log_authentication("login", "admin", "192.168.1.1", True)
            AuditLog.log_authentication("failed_login", "admin", "192.168.1.1", False, reason="Invalid password")
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": f"auth.{action}",
            "username": username,
            "ip_address": ip_address,
            "success": success,
        }
        if reason and not success:
            log_entry["reason"] = reason

        audit_logger.info(json.dumps(log_entry, ensure_ascii=False))

    @staticmethod
    def log_action(
        action: str,  # "create", "update", "adjust", "delete", "approve", "reject", "import"
        resource_type: str,  # "drug", "disbursement", "user"
        resource_id: Any,
        user,
        changes: Optional[Dict[str, Any]] = None,
    ):
        """
        Log a state-changing action with who, what and when.

        Usage:
            AuditLog.log_action("approve", "disbursement", 12, current_user)
            AuditLog.log_action("delete", "drug", 4, current_user, changes={"quantity": 30})
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": f"{resource_type}.{action}",
            "user_id": getattr(user, "id", None),
            "username": getattr(user, "username", None),
            "resource_id": resource_id,
        }
        if changes:
            log_entry["changes"] = changes

        audit_logger.info(json.dumps(log_entry, ensure_ascii=False, default=str))

    @staticmethod
    def log_access_denied(
        action: str,
        resource_type: str,
        resource_id: Any,
        user,
        reason: str,
    ):
        """Log a denied attempt, e.g. a regular user trying to approve a request."""
        log_entry = {
            "timestamp": _now(),
            "event_severity": "WARNING",
            "event_type": "access_denied",
            "action": action,
            "resource_type": resource_type,
            "resource_id": resource_id,
            "user_id": getattr(user, "id", None),
            "username": getattr(user, "username", None),
            "reason": reason,
        }
        audit_logger.warning(json.dumps(log_entry, ensure_ascii=False, default=str))

    @staticmethod
    def log_integration_failure(service: str, operation: str, error: Exception):
        log_entry = {
            "timestamp": _now(),
            "event_type": f"integration.{service}.failed",
            "operation": operation,
            "error": type(error).__name__,
        }
        audit_logger.warning(json.dumps(log_entry))
