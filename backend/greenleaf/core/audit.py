"""
Audit logging for admin changes, order lifecycle and API traffic.

Entries are single-line JSON on the "audit" logger so they can be shipped to
centralized logging. Customer emails are never written here.
"""
import logging
import json
from datetime import datetime, timezone
from typing import Any, Optional, Dict

audit_logger = logging.getLogger("audit")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class AuditLog:
    """Central audit logging for security-critical events."""

    @staticmethod
    def log_action(
        action: str,  # "create", "update", "delete", "bulk_update", "status_change"
        resource_type: str,  # "strain", "inventory", "order"
        resource_id: Any,
        user_id: str,
        changes: Optional[Dict[str, Any]] = None,
    ):
        """
        Log admin back-office changes.

        Usage:
            AuditLog.log_action("update", "inventory", 12, "user_2abc", changes={"quantity": 40})
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": f"{resource_type}.{action}",
            "user_id": user_id,
            "resource_id": resource_id,
        }

        if changes:
            log_entry["changes"] = changes

        audit_logger.info(json.dumps(log_entry, default=str))

    @staticmethod
    def log_access_denied(
        action: str,
        resource_type: str,
        user_id: Optional[str],
        reason: str,
    ):
        """
        Log denied access attempts: non-admins on admin routes, callers
        touching someone else's cart item or order.
        """
        log_entry = {
            "timestamp": _now(),
            "event_severity": "WARNING",
            "event_type": "access_denied",
            "action": action,
            "resource_type": resource_type,
            "user_id": user_id,
            "reason": reason,
        }

        audit_logger.warning(json.dumps(log_entry))

    @staticmethod
    def log_order_event(
        event: str,  # "created", "paid", "cancelled", "payment_failed", "fulfilled"
        order_id: Optional[int],
        stripe_session_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        log_entry = {
            "timestamp": _now(),
            "event_type": f"order.{event}",
            "order_id": order_id,
            "stripe_session_id": stripe_session_id,
        }
        if details:
            log_entry["details"] = details

        audit_logger.info(json.dumps(log_entry, default=str))

    @staticmethod
    def log_api_call(
        endpoint: str,
        method: str,
        status_code: int = 200,
        duration_ms: float = 0,
        ip_address: str = "",
    ):
        """
        Log API calls for performance and security monitoring. Level follows
        the status code: error for 5xx, warning for 4xx.
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": "api.call",
            "endpoint": endpoint,
            "method": method,
            "ip_address": ip_address,
            "status_code": status_code,
            "duration_ms": round(duration_ms, 1),
        }

        if status_code >= 500:
            audit_logger.error(json.dumps(log_entry))
        elif status_code >= 400:
            audit_logger.warning(json.dumps(log_entry))
        else:
            audit_logger.info(json.dumps(log_entry))
