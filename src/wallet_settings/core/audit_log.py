# Wallet Settings - Audit Logging
#
# Append-only audit trail for credential and server registry events.
# Every password change, server mutation, bootstrap and failed transaction
# is written as one structured JSON line to a daily log file.
#
# Never log secret material: no passwords, salts or verifiers, only the
# fact that they changed.

import logging
import os
import socket
import sys
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import uuid4

import structlog


class EventType(str, Enum):
    """Types of events written to the audit log."""
    # Credential Events
    PASSWORD_SET = "credential.password.set"
    PASSWORD_VERIFIED = "credential.password.verified"
    PASSWORD_REJECTED = "credential.password.rejected"
    SALT_GENERATED = "credential.salt.generated"
    CREDENTIAL_ERROR = "credential.error"

    # Server Registry Events
    SERVER_CREATED = "server.created"
    SERVER_UPDATED = "server.updated"
    SERVER_DELETED = "server.deleted"
    DEFAULT_SERVERS_CREATED = "server.defaults.created"
    ACTIVE_SERVER_CHANGED = "server.active.changed"
    TRANSACTION_FAILED = "server.transaction.failed"

    # Settings Events
    SETUP_COMPLETED = "settings.setup.completed"


class EventSeverity(str, Enum):
    """
    Severity levels for audit events.

    - INFO: Normal activity (logged only)
    - WARNING: Recoverable failure surfaced to the caller
    - CRITICAL: Operation aborted, state may need attention
    """
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class AuditLogger:
    """
    Append-only audit logger for credential and registry events.

    Features:
    - Structured JSON logging (structlog)
    - Automatic timestamp and event ID
    - Host and OS user context capture
    """

    def __init__(self, log_dir: Optional[Path] = None):
        """
        Initialize audit logger.

        Args:
            log_dir: Directory for audit logs (default: ./data/audit_logs)
        """
        self.log_dir = Path(log_dir) if log_dir else Path("./data/audit_logs")
        self.log_dir.mkdir(parents=True, exist_ok=True)

        structlog.configure(
            processors=[
                structlog.stdlib.add_log_level,
                structlog.stdlib.add_logger_name,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer()
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

        self._setup_file_handler()
        self.logger = structlog.get_logger("wallet_settings.audit")

    def _setup_file_handler(self):
        """Attach a daily log file handler to the audit logger."""
        today = datetime.now().strftime("%Y-%m-%d")
        self.log_file = self.log_dir / f"audit_{today}.log"

        file_handler = logging.FileHandler(self.log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter('%(message)s'))  # structlog handles formatting

        audit_logger = logging.getLogger("wallet_settings.audit")
        for handler in list(audit_logger.handlers):
            audit_logger.removeHandler(handler)
            handler.close()
        audit_logger.addHandler(file_handler)
        audit_logger.setLevel(logging.INFO)

    def log_event(
        self,
        event_type: EventType,
        severity: EventSeverity,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Log an audit event (append-only).

        Args:
            event_type: Type of event (from EventType enum)
            severity: Severity level (from EventSeverity enum)
            message: Human-readable event description
            details: Additional event details (never secret values!)

        Returns:
            str: Event ID (UUID) for reference
        """
        event_id = str(uuid4())

        event_data = {
            "event_id": event_id,
            "event_type": event_type.value,
            "severity": severity.value,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "details": details or {},
            "user_context": self._get_default_user_context(),
        }

        self.logger.info("settings_event", **event_data)
        return event_id

    def log_server_event(
        self,
        event_type: EventType,
        address: str,
        severity: EventSeverity = EventSeverity.INFO,
        details: Optional[Dict[str, Any]] = None
    ) -> str:
        """Log a server registry event for the given address."""
        event_details = dict(details or {})
        event_details["address"] = address

        return self.log_event(
            event_type=event_type,
            severity=severity,
            message=f"Server: {event_type.value} - {address}",
            details=event_details
        )

    def _get_default_user_context(self) -> Dict[str, Any]:
        """Get default user context (OS user, hostname, platform)."""
        return {
            "os_user": os.getenv("USERNAME") or os.getenv("USER"),
            "hostname": socket.gethostname(),
            "platform": sys.platform,
        }


# Global logger instance
_audit_logger: Optional[AuditLogger] = None


def get_audit_logger() -> AuditLogger:
    """Get global audit logger (singleton pattern)."""
    global _audit_logger
    if _audit_logger is None:
        _audit_logger = AuditLogger()
    return _audit_logger


def set_audit_logger(instance: Optional[AuditLogger]) -> None:
    """Replace the global audit logger (configuration and testing)."""
    global _audit_logger
    _audit_logger = instance
