"""
Result models for the coverage index and its analysis.

Every model is frozen and holds only plain data (strings, numbers, lists,
dicts) so a ``CoverageResult`` serializes to JSON without cycles. Agent-name
collections are sorted lists, which keeps the output byte-stable for
byte-identical inputs.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from agentcoverage.contracts.models import AgentRole


def percent(count: int, total: int) -> int:
    """``count / total * 100`` rounded half up, defined as 0 when ``total`` is 0."""
    if total <= 0:
        return 0
    ratio = Decimal(count * 100) / Decimal(total)
    return int(ratio.quantize(Decimal(1), rounding=ROUND_HALF_UP))


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


# ---------------------------------------------------------------------------
# Index models
# ---------------------------------------------------------------------------


class FileCoverage(_Frozen):
    """Which agents know, may write and may read one file."""

    path: str
    known_by: List[str] = Field(default_factory=list)
    explicitly_known_by: List[str] = Field(default_factory=list)
    glob_known_by: List[str] = Field(default_factory=list)
    writable_by: List[str] = Field(default_factory=list)
    readable_by: List[str] = Field(default_factory=list)

    @property
    def is_covered(self) -> bool:
        return bool(self.known_by)

    @property
    def is_glob_only(self) -> bool:
        return bool(self.known_by) and not self.explicitly_known_by


class CoverageStats(_Frozen):
    """Aggregate counts over all files in the catalogue."""

    total_files: int = 0
    covered_files: int = 0
    explicitly_covered_files: int = 0
    glob_only_files: int = 0
    uncovered_files: int = 0
    coverage_percent: int = 0
    explicit_coverage_percent: int = 0
    glob_only_percent: int = 0


class RoleCompleteness(_Frozen):
    total: int = 0
    with_reference: int = 0
    percent: int = 0


class AgentMissingReference(_Frozen):
    """An agent whose Primary explicit knowledge lacks its reference document."""

    name: str
    role: AgentRole
    expected_path: str
    primary_explicit_knowledge: List[str] = Field(default_factory=list)


class SpecialistCompleteness(_Frozen):
    builders: RoleCompleteness = Field(default_factory=RoleCompleteness)
    reviewers: RoleCompleteness = Field(default_factory=RoleCompleteness)
    combined: RoleCompleteness = Field(default_factory=RoleCompleteness)
    agents_missing_specs: List[AgentMissingReference] = Field(default_factory=list)


class AgentSummary(_Frozen):
    """Per-agent facts the analyzer and renderers need after parsing."""

    name: str
    role: AgentRole
    domain: Optional[str] = None
    family: str
    knowledge_count: int = 0
    explicit_knowledge_count: int = 0
    output_scope: List[str] = Field(default_factory=list)
    read_scope: List[str] = Field(default_factory=list)


class CoverageIndex(_Frozen):
    """Per-file ownership plus the statistics derived from it."""

    files: Dict[str, FileCoverage] = Field(default_factory=dict)
    agents: List[AgentSummary] = Field(default_factory=list)
    stats: CoverageStats = Field(default_factory=CoverageStats)
    completeness: SpecialistCompleteness = Field(default_factory=SpecialistCompleteness)
    uncovered: List[str] = Field(default_factory=list)

    def role_of(self, agent: str) -> Optional[AgentRole]:
        for summary in self.agents:
            if summary.name == agent:
                return summary.role
        return None

    def roles(self) -> dict[str, AgentRole]:
        return {a.name: a.role for a in self.agents}


# ---------------------------------------------------------------------------
# Analysis models
# ---------------------------------------------------------------------------


class PairingStatus(str, Enum):
    COMPLETE = "complete"
    MISSING_REVIEWER = "missing-reviewer"
    MISSING_BUILDER = "missing-builder"
    MISSING_BOTH = "missing-both"


class PairingEntry(_Frozen):
    """Builder/reviewer pairing for one reference document."""

    path: str
    builders: List[str] = Field(default_factory=list)
    reviewers: List[str] = Field(default_factory=list)
    status: PairingStatus


class ConflictRisk(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class WriteConflict(_Frozen):
    """A folder more than one builder may write to."""

    folder: str
    builders: List[str]
    risk: ConflictRisk


class OrphanedFolder(_Frozen):
    """A folder with files and no writer anywhere in its ancestry."""

    folder: str
    file_count: int


class LayerCoverage(_Frozen):
    layer: str
    total_files: int
    covered_files: int
    coverage_percent: int
    agents: List[str] = Field(default_factory=list)


class Priority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Recommendation(_Frozen):
    priority: Priority
    title: str
    description: str
    action: str


class CoverageAnalysis(_Frozen):
    """Secondary findings derived from a ``CoverageIndex``."""

    pairing: List[PairingEntry] = Field(default_factory=list)
    conflicts: List[WriteConflict] = Field(default_factory=list)
    orphaned_folders: List[OrphanedFolder] = Field(default_factory=list)
    layers: List[LayerCoverage] = Field(default_factory=list)
    coordinator_only_files: List[str] = Field(default_factory=list)
    recommendations: List[Recommendation] = Field(default_factory=list)

    @property
    def high_risk_conflicts(self) -> list[WriteConflict]:
        return [c for c in self.conflicts if c.risk == ConflictRisk.HIGH]


class CoverageResult(_Frozen):
    """
    The complete output of one audit run.

    This is the only object handed to renderers and machine-readable export.
    """

    generated_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    contract_count: int = 0
    index: CoverageIndex
    analysis: CoverageAnalysis

    @property
    def stats(self) -> CoverageStats:
        return self.index.stats

    def summary(self) -> str:
        """Plain-text summary for terminal output."""
        s = self.index.stats
        c = self.index.completeness
        lines = [
            f"Agent coverage: {s.covered_files}/{s.total_files} files "
            f"({s.coverage_percent}%) across {self.contract_count} contracts",
            f"  explicit: {s.explicitly_covered_files} ({s.explicit_coverage_percent}%)",
            f"  glob-only: {s.glob_only_files} ({s.glob_only_percent}%)",
            f"  uncovered: {s.uncovered_files}",
            f"Specialist completeness: {c.combined.percent}% "
            f"(builders {c.builders.percent}%, reviewers {c.reviewers.percent}%)",
        ]
        if self.analysis.layers:
            lines.append("Layers:")
            for layer in self.analysis.layers:
                lines.append(
                    f"  {layer.layer}: {layer.covered_files}/{layer.total_files} "
                    f"({layer.coverage_percent}%)"
                )
        if self.analysis.conflicts:
            lines.append("Write conflicts:")
            for conflict in self.analysis.conflicts:
                lines.append(
                    f"  [{conflict.risk.value}] {conflict.folder}: "
                    + ", ".join(conflict.builders)
                )
        if self.analysis.orphaned_folders:
            lines.append("Orphaned folders:")
            for orphan in self.analysis.orphaned_folders:
                lines.append(f"  {orphan.folder} ({orphan.file_count} files)")
        if self.analysis.recommendations:
            lines.append("Recommendations:")
            for rec in self.analysis.recommendations:
                lines.append(f"  [{rec.priority.value.upper()}] {rec.title}")
                lines.append(f"    {rec.action}")
        return "\n".join(lines)
