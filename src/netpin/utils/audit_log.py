"""Audit logging for persisted changes.

Every durable change netpin makes to the host (a link file written, a
queued config applied or rejected, a pin snapshot consumed) is recorded
as one JSON line so operators can reconstruct what happened at boot.
"""
import json
import logging
import os
from datetime import datetime, timezone
from dataclasses import dataclass, asdict, field
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

# Dedicated audit logger, never mixed with the console output
audit_logger = logging.getLogger("netpin.audit")
audit_logger.propagate = False

DEFAULT_AUDIT_DIR = "/var/log/netpin"


def setup_audit_logging(log_dir: Optional[str] = None) -> Path:
    """Configure audit logging to file.

    Args:
        log_dir: Directory for audit logs. Defaults to NETPIN_AUDIT_DIR
            or /var/log/netpin

    Returns:
        Path of the audit log file
    """
    if log_dir is None:
        log_dir = os.environ.get("NETPIN_AUDIT_DIR", DEFAULT_AUDIT_DIR)

    Path(log_dir).mkdir(parents=True, exist_ok=True)
    audit_file = Path(log_dir) / "audit.log"

    audit_logger.setLevel(logging.INFO)
    audit_logger.handlers.clear()

    handler = RotatingFileHandler(
        audit_file,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=10,
    )
    # JSON lines, one record per line
    handler.setFormatter(logging.Formatter("%(message)s"))
    audit_logger.addHandler(handler)

    return audit_file


@dataclass
class ChangeRecord:
    """Record of a persisted change."""
    timestamp: str
    operation: str  # link_created, config_applied, config_failed, pin_state_consumed
    target: str
    success: bool
    dry_run: bool = False
    details: dict = field(default_factory=dict)
    error: Optional[str] = None

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(asdict(self), indent=None)

    @classmethod
    def from_json(cls, json_str: str) -> "ChangeRecord":
        """Parse from JSON string."""
        data = json.loads(json_str)
        return cls(**data)


def log_change(
    operation: str,
    target: str,
    success: bool,
    details: Optional[dict] = None,
    error: Optional[str] = None,
    dry_run: bool = False,
) -> ChangeRecord:
    """Write a change record to the audit log and return it."""
    record = ChangeRecord(
        timestamp=datetime.now(timezone.utc).isoformat(),
        operation=operation,
        target=target,
        success=success,
        dry_run=dry_run,
        details=details or {},
        error=error,
    )
    audit_logger.info(record.to_json())
    return record


def get_recent_changes(
    log_file: Optional[str] = None,
    operation: Optional[str] = None,
    limit: int = 100,
) -> list[ChangeRecord]:
    """Read recent changes from the audit log.

    Args:
        log_file: Path to audit log. Defaults to <audit dir>/audit.log
        operation: Filter by operation type
        limit: Maximum number of records to return

    Returns:
        List of ChangeRecords, most recent first
    """
    if log_file is None:
        log_dir = os.environ.get("NETPIN_AUDIT_DIR", DEFAULT_AUDIT_DIR)
        log_file = os.path.join(log_dir, "audit.log")

    if not os.path.exists(log_file):
        return []

    records = []
    with open(log_file, "r") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                record = ChangeRecord.from_json(line)
            except (json.JSONDecodeError, TypeError):
                continue  # Skip malformed lines

            if operation and record.operation != operation:
                continue
            records.append(record)

    return list(reversed(records[-limit:]))
