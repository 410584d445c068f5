"""Structured JSON audit trail for tool dispatch outcomes."""

import json
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from .config import Config
from .hooks.dispatcher import HookListener
from .hooks.events import HookPayload

MAX_CONTENT_LENGTH = 1000  # Truncate large content to prevent log bloat


class AuditEvent(str, Enum):
    """Audit event types."""

    TOOL_EXECUTED = "tool_executed"
    TOOL_REJECTED = "tool_rejected"


class AuditLogger:
    """
    Append-only JSON Lines audit log of AfterToolUse events.

    Features:
    - JSON Lines format (one JSON object per line)
    - ISO 8601 UTC timestamps
    - Automatic content truncation
    - Size-based rotation with timestamped backups
    - Retention cleanup based on AUDIT_RETENTION_DAYS
    """

    def __init__(
        self,
        log_path: Optional[str] = None,
        retention_days: Optional[int] = None,
        rotation_bytes: Optional[int] = None,
    ):
        """
        Initialize audit logger.

        Args:
            log_path: Path to audit log file (defaults to Config.AUDIT_LOG_PATH)
            retention_days: Days to keep rotated files (<= 0 disables cleanup)
            rotation_bytes: Size at which the active file is rotated
        """
        self.log_path = Path(log_path or Config.AUDIT_LOG_PATH)
        self.retention_days = (
            Config.AUDIT_RETENTION_DAYS if retention_days is None else retention_days
        )
        self.rotation_bytes = (
            Config.AUDIT_ROTATION_BYTES if rotation_bytes is None else rotation_bytes
        )
        self._last_cleanup: Optional[datetime] = None
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self._cleanup_old_logs()

    def _rotate_if_needed(self) -> None:
        """Rotate the audit log if it exceeds the configured size."""
        if not self.log_path.exists():
            return
        if self.log_path.stat().st_size < self.rotation_bytes:
            return

        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
        rotated_path = self.log_path.with_name(f"{self.log_path.name}.{timestamp}")
        counter = 1
        while rotated_path.exists():
            rotated_path = self.log_path.with_name(
                f"{self.log_path.name}.{timestamp}.{counter}"
            )
            counter += 1
        self.log_path.replace(rotated_path)

    def _cleanup_old_logs(self) -> None:
        """Remove rotated audit files older than the retention window."""
        if self.retention_days <= 0:
            return
        cutoff = datetime.now(timezone.utc) - timedelta(days=self.retention_days)
        for path in self.log_path.parent.glob(f"{self.log_path.name}.*"):
            if not path.is_file():
                continue
            modified = datetime.fromtimestamp(path.stat().st_mtime, timezone.utc)
            if modified < cutoff:
                path.unlink()
        self._last_cleanup = datetime.now(timezone.utc)

    def _maybe_cleanup(self) -> None:
        """Run cleanup once per day to enforce retention."""
        if self.retention_days <= 0:
            return
        now = datetime.now(timezone.utc)
        if self._last_cleanup is None or now - self._last_cleanup >= timedelta(days=1):
            self._cleanup_old_logs()

    @staticmethod
    def _truncate_content(value: Any, max_length: int = MAX_CONTENT_LENGTH) -> Any:
        if isinstance(value, str) and len(value) > max_length:
            return value[:max_length] + f"... [truncated, {len(value)} total chars]"
        elif isinstance(value, dict):
            return {k: AuditLogger._truncate_content(v, max_length) for k, v in value.items()}
        elif isinstance(value, list):
            return [AuditLogger._truncate_content(item, max_length) for item in value]
        return value

    def log(self, event: AuditEvent, session_id: Optional[str] = None, **kwargs) -> None:
        """
        Write one audit record.

        Args:
            event: Audit event type
            session_id: Session identifier for correlation
            **kwargs: Additional fields to include in the record
        """
        audit_record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event": event.value,
            "session_id": session_id,
            **self._truncate_content(kwargs),
        }
        json_line = json.dumps(audit_record, ensure_ascii=False, default=str)

        self._maybe_cleanup()
        self._rotate_if_needed()

        with open(self.log_path, "a", encoding="utf-8") as f:
            f.write(json_line + "\n")

    def log_after_tool_use(self, payload: HookPayload) -> None:
        """Record one AfterToolUse event (executed or rejected before execution)."""
        event = payload.hook_event
        self.log(
            AuditEvent.TOOL_EXECUTED if event.executed else AuditEvent.TOOL_REJECTED,
            session_id=payload.session_id,
            cwd=str(payload.cwd),
            triggered_at=payload.triggered_at.isoformat(),
            **event.to_dict(),
        )


def audit_sink(audit_logger: AuditLogger) -> HookListener:
    """Adapt an AuditLogger into a HookDispatcher listener."""

    def _listener(payload: HookPayload) -> None:
        audit_logger.log_after_tool_use(payload)

    return _listener
