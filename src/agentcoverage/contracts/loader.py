"""
Load every agent contract from a directory.

A contract that cannot be read is logged and skipped; the remaining
contracts are still returned. Callers decide what an empty result means
(the audit runner treats it as fatal).

Usage::

    from agentcoverage.contracts.loader import load_contracts

    report = load_contracts(Path(".claude/agents"))
    for skipped in report.skipped:
        print(skipped.path, skipped.reason)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from agentcoverage.contracts.md_parser import ContractParser
from agentcoverage.contracts.models import AgentContract
from agentcoverage.errors import AgentCoverageError
from agentcoverage.logger import AuditLogger

logger = logging.getLogger(__name__)


class ContractReadError(AgentCoverageError):
    """Raised when a single contract document cannot be read."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read contract {path}: {reason}")


@dataclass
class SkippedContract:
    path: str
    reason: str


@dataclass
class ContractLoadReport:
    """Contracts that parsed plus the documents that were skipped."""

    contracts: List[AgentContract] = field(default_factory=list)
    skipped: List[SkippedContract] = field(default_factory=list)

    @property
    def names(self) -> list[str]:
        return [c.name for c in self.contracts]


def read_contract(path: Path, parser: ContractParser) -> AgentContract:
    """Parse one contract file, wrapping I/O failures in ``ContractReadError``."""
    try:
        return parser.parse_file(path)
    except (OSError, UnicodeDecodeError) as e:
        raise ContractReadError(path, str(e)) from e


def load_contracts(
    agents_dir: Path,
    parser: Optional[ContractParser] = None,
    audit_log: Optional[AuditLogger] = None,
) -> ContractLoadReport:
    """
    Parse every ``*.md`` document in ``agents_dir`` (sorted by filename).

    Duplicate agent names keep the first contract and skip the rest.
    """
    parser = parser or ContractParser()
    audit_log = audit_log or AuditLogger()
    report = ContractLoadReport()

    agents_dir = Path(agents_dir)
    if not agents_dir.is_dir():
        logger.warning("Agents directory %s does not exist", agents_dir)
        return report

    seen: dict[str, str] = {}
    for path in sorted(agents_dir.glob("*.md")):
        try:
            contract = read_contract(path, parser)
        except ContractReadError as e:
            audit_log.log_contract_skipped(path=str(e.path), reason=e.reason)
            report.skipped.append(SkippedContract(path=str(e.path), reason=e.reason))
            continue

        if contract.name in seen:
            audit_log.log_contract_duplicate(
                name=contract.name, path=str(path), kept=seen[contract.name]
            )
            report.skipped.append(
                SkippedContract(path=str(path), reason=f"duplicate agent name {contract.name}")
            )
            continue

        seen[contract.name] = str(path)
        report.contracts.append(contract)
        logger.debug(
            "Parsed contract %s: role=%s knowledge=%d",
            contract.name,
            contract.role.value,
            len(contract.knowledge),
        )

    return report
