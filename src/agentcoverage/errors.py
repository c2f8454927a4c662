"""Exceptions shared across the audit pipeline."""

from __future__ import annotations


class AgentCoverageError(Exception):
    """Base class for agentcoverage errors."""


class EmptyContractSetError(AgentCoverageError):
    """Raised when no contracts are available; there is nothing to audit."""

    def __init__(self, skipped: int = 0):
        self.skipped = skipped
        detail = f" ({skipped} unreadable)" if skipped else ""
        super().__init__(f"No agent contracts to analyze{detail}")
