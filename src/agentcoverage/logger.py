"""
Structured logging for audit events.

Outputs JSON-formatted lines for log aggregation. Only run-level events are
logged here; per-file detail stays in the ``CoverageResult``.

Logged events:
- audit.started
- contract.skipped (unreadable contract, run continues)
- contract.duplicate (second contract with an existing name)
- audit.completed
- threshold.failed

Usage:
    from agentcoverage.logger import AuditLogger

    audit_log = AuditLogger(run_id="nightly")
    audit_log.log_contract_skipped(path="agents/a.md", reason="Permission denied")
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Structured audit logger
_audit_logger = logging.getLogger("agentcoverage.audit")
_audit_logger.setLevel(logging.INFO)

# Default handler outputs JSON to stderr so stdout stays free for reports
if not _audit_logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    _audit_logger.addHandler(handler)
    _audit_logger.propagate = False

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "info", log_format: str = "json") -> None:
    """
    Configure the package loggers.

    Args:
        level: debug, info, warning or error
        log_format: json (one JSON object per audit event) or text
    """
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format=TEXT_FORMAT)
    logging.getLogger("agentcoverage").setLevel(numeric)

    fmt = "%(message)s" if log_format == "json" else TEXT_FORMAT
    for h in _audit_logger.handlers:
        h.setFormatter(logging.Formatter(fmt))


class AuditLogger:
    """
    Structured logger for audit run events.

    Each entry carries the event name, a timestamp, the service name and
    the run identifier, plus event-specific fields.
    """

    def __init__(
        self,
        run_id: str = "default",
        service_name: str = "agentcoverage",
        extra_labels: Optional[Dict[str, str]] = None,
    ):
        self.run_id = run_id
        self.service_name = service_name
        self.extra_labels = extra_labels or {}
        self._logger = _audit_logger

    def _emit(self, event: str, level: str = "info", **extra_fields: Any) -> None:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "event": event,
            "service": self.service_name,
            "run_id": self.run_id,
        }
        entry.update({k: v for k, v in extra_fields.items() if v is not None})
        if self.extra_labels:
            entry["labels"] = self.extra_labels

        log_line = json.dumps(entry, default=str)

        if level == "error":
            self._logger.error(log_line)
        elif level == "warn":
            self._logger.warning(log_line)
        else:
            self._logger.info(log_line)

    def log_audit_started(self, agents_dir: Optional[str], root: Optional[str]) -> None:
        self._emit(event="audit.started", agents_dir=agents_dir, root=root)

    def log_contract_skipped(self, path: str, reason: str) -> None:
        """Log a contract that could not be read. The run continues."""
        self._emit(event="contract.skipped", level="warn", path=path, reason=reason)

    def log_contract_duplicate(self, name: str, path: str, kept: Optional[str] = None) -> None:
        self._emit(
            event="contract.duplicate",
            level="warn",
            agent=name,
            path=path,
            kept=kept,
        )

    def log_audit_completed(
        self,
        contracts: int,
        total_files: int,
        covered_files: int,
        coverage_percent: int,
        recommendations: int,
    ) -> None:
        self._emit(
            event="audit.completed",
            contracts=contracts,
            total_files=total_files,
            covered_files=covered_files,
            coverage_percent=coverage_percent,
            recommendations=recommendations,
        )

    def log_threshold_failed(self, coverage_percent: int, minimum: float) -> None:
        self._emit(
            event="threshold.failed",
            level="error",
            coverage_percent=coverage_percent,
            minimum=minimum,
        )
