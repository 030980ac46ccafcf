"""
=============================================================================
SESSION ACCESS LOG
=============================================================================

One structured record per finished session, written to the
"lineserver.access" logger when the connection is released.

    TEXT FORMAT (default):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ 127.0.0.1:52114 [a1b2c3d4] requests=3 format_errors=1              │
    │     domain_errors=0 reason="client requested exit" 812.40ms        │
    └─────────────────────────────────────────────────────────────────────┘

    JSON FORMAT (for log aggregators):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ {"session_id": "a1b2c3d4", "client": "127.0.0.1:52114",            │
    │  "requests": 3, "format_errors": 1, "domain_errors": 0,            │
    │  "close_reason": "client requested exit", "duration_ms": 812.4,    │
    │  "timestamp": "2024-06-10T10:55:36+00:00"}                         │
    └─────────────────────────────────────────────────────────────────────┘

Route it separately from the operational logs if you like:

    logging.getLogger("lineserver.access").addHandler(file_handler)

=============================================================================
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from .core.session import Session


logger = logging.getLogger("lineserver.access")


@dataclass
class SessionLog:
    """Structured log entry for one finished session."""

    session_id: str
    client: str
    requests: int
    format_errors: int
    domain_errors: int
    close_reason: str
    duration_ms: float
    timestamp: str

    @classmethod
    def from_session(cls, session: Session) -> "SessionLog":
        reason = session.close_reason.value if session.close_reason else "unknown"
        return cls(
            session_id=session.id,
            client=session.connection.peer,
            requests=session.requests_handled,
            format_errors=session.format_errors,
            domain_errors=session.domain_errors,
            close_reason=reason,
            duration_ms=session.duration * 1000,
            timestamp=datetime.now(timezone.utc).isoformat(timespec="seconds"),
        )

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "client": self.client,
            "requests": self.requests,
            "format_errors": self.format_errors,
            "domain_errors": self.domain_errors,
            "close_reason": self.close_reason,
            "duration_ms": round(self.duration_ms, 2),
            "timestamp": self.timestamp,
        }

    def to_text(self) -> str:
        return (
            f"{self.client} [{self.session_id}] requests={self.requests} "
            f"format_errors={self.format_errors} domain_errors={self.domain_errors} "
            f'reason="{self.close_reason}" {self.duration_ms:.2f}ms'
        )


class AccessLogger:
    """
    Session close callback that writes one access record per session.

    Pass an instance as Session(on_close=...). It is shared by all
    sessions but holds no mutable state; the logging module serializes
    the writes.
    """

    def __init__(self, log_format: str = "text", level: int = logging.INFO):
        self.log_format = log_format
        self.level = level

    def format(self, entry: SessionLog) -> str:
        if self.log_format == "json":
            return json.dumps(entry.to_dict())
        return entry.to_text()

    def __call__(self, session: Session):
        if not logger.isEnabledFor(self.level):
            return
        logger.log(self.level, self.format(SessionLog.from_session(session)))
