"""
Coverage index and analysis.

Public API::

    from agentcoverage.coverage import (
        # Index
        CoverageIndexBuilder,
        # Analysis
        CoverageAnalyzer,
        LayerClassifier,
        # Result models
        CoverageResult,
        CoverageIndex,
        FileCoverage,
        # OTel helpers
        emit_coverage_result,
    )
"""

from agentcoverage.coverage.analyzer import CoverageAnalyzer
from agentcoverage.coverage.index import CoverageIndexBuilder, has_required_reference
from agentcoverage.coverage.layers import (
    DEFAULT_LAYER_RULES,
    OTHER_LAYER,
    LayerClassifier,
    LayerRule,
    LayerRuleFileError,
    load_layer_rules,
)
from agentcoverage.coverage.models import (
    AgentMissingReference,
    AgentSummary,
    ConflictRisk,
    CoverageAnalysis,
    CoverageIndex,
    CoverageResult,
    CoverageStats,
    FileCoverage,
    LayerCoverage,
    OrphanedFolder,
    PairingEntry,
    PairingStatus,
    Priority,
    Recommendation,
    RoleCompleteness,
    SpecialistCompleteness,
    WriteConflict,
)
from agentcoverage.coverage.otel import emit_coverage_result, emit_recommendation

__all__ = [
    # Index
    "CoverageIndexBuilder",
    "has_required_reference",
    # Analysis
    "CoverageAnalyzer",
    "LayerClassifier",
    "LayerRule",
    "LayerRuleFileError",
    "DEFAULT_LAYER_RULES",
    "OTHER_LAYER",
    "load_layer_rules",
    # Result models
    "AgentMissingReference",
    "AgentSummary",
    "ConflictRisk",
    "CoverageAnalysis",
    "CoverageIndex",
    "CoverageResult",
    "CoverageStats",
    "FileCoverage",
    "LayerCoverage",
    "OrphanedFolder",
    "PairingEntry",
    "PairingStatus",
    "Priority",
    "Recommendation",
    "RoleCompleteness",
    "SpecialistCompleteness",
    "WriteConflict",
    # OTel
    "emit_coverage_result",
    "emit_recommendation",
]
