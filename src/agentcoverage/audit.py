"""
Audit runner: contracts + file list -> ``CoverageResult``.

All inputs are read before the pipeline starts. ``run_audit`` itself does
no I/O; ``audit_directory`` is the convenience wrapper that loads contracts
and lists files first.

Usage::

    from agentcoverage.audit import audit_directory

    result = audit_directory(agents_dir=Path(".claude/agents"), root=Path("."))
    print(result.summary())
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Optional, Sequence

from opentelemetry import trace

from agentcoverage.catalogue import list_files
from agentcoverage.config import AgentCoverageConfig
from agentcoverage.contracts.loader import load_contracts
from agentcoverage.contracts.md_parser import ContractParser
from agentcoverage.contracts.models import DEFAULT_REFERENCE_SUFFIX, AgentContract
from agentcoverage.coverage.analyzer import CoverageAnalyzer
from agentcoverage.coverage.index import CoverageIndexBuilder
from agentcoverage.coverage.layers import DEFAULT_LAYER_RULES, LayerRule, load_layer_rules
from agentcoverage.coverage.models import CoverageResult, FileCoverage
from agentcoverage.coverage.otel import emit_coverage_result, emit_recommendation
from agentcoverage.errors import EmptyContractSetError
from agentcoverage.logger import AuditLogger
from agentcoverage.paths import PathMatcher, normalize_path

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


def run_audit(
    contracts: Sequence[AgentContract],
    files: Sequence[str],
    *,
    root_aliases: Optional[Mapping[str, str]] = None,
    reference_suffix: str = DEFAULT_REFERENCE_SUFFIX,
    layer_rules: Sequence[LayerRule] = DEFAULT_LAYER_RULES,
) -> CoverageResult:
    """
    Build the coverage index and analysis for one snapshot.

    Raises:
        EmptyContractSetError: if ``contracts`` is empty
    """
    if not contracts:
        raise EmptyContractSetError()

    matcher = PathMatcher(root_aliases=root_aliases)
    with tracer.start_as_current_span("coverage.audit") as span:
        span.set_attribute("coverage.contracts", len(contracts))
        span.set_attribute("coverage.files", len(files))

        index = CoverageIndexBuilder(matcher).build(contracts, files)
        analysis = CoverageAnalyzer(
            matcher=matcher,
            layer_rules=layer_rules,
            reference_suffix=reference_suffix,
        ).analyze(index)

        result = CoverageResult(
            contract_count=len(contracts),
            index=index,
            analysis=analysis,
        )
        emit_coverage_result(result)
        for rec in analysis.recommendations:
            emit_recommendation(rec)
    return result


def audit_directory(
    agents_dir: Path,
    root: Path,
    config: Optional[AgentCoverageConfig] = None,
    audit_log: Optional[AuditLogger] = None,
) -> CoverageResult:
    """Load contracts and list files, then run the audit."""
    config = config or AgentCoverageConfig()
    audit_log = audit_log or AuditLogger()
    audit_log.log_audit_started(agents_dir=str(agents_dir), root=str(root))

    parser = ContractParser(
        reference_root=config.reference_root,
        reference_suffix=config.reference_suffix,
    )
    report = load_contracts(Path(agents_dir), parser=parser, audit_log=audit_log)
    if not report.contracts:
        raise EmptyContractSetError(skipped=len(report.skipped))

    files = list_files(
        Path(root),
        include_extensions=config.include_extensions,
        exclude_dirs=config.exclude_dirs,
    )
    layer_rules = (
        load_layer_rules(Path(config.layer_rules_file))
        if config.layer_rules_file
        else DEFAULT_LAYER_RULES
    )

    result = run_audit(
        report.contracts,
        files,
        root_aliases=config.root_aliases,
        reference_suffix=config.reference_suffix,
        layer_rules=layer_rules,
    )
    stats = result.index.stats
    audit_log.log_audit_completed(
        contracts=result.contract_count,
        total_files=stats.total_files,
        covered_files=stats.covered_files,
        coverage_percent=stats.coverage_percent,
        recommendations=len(result.analysis.recommendations),
    )
    return result


def check_threshold(result: CoverageResult, minimum: Optional[float]) -> bool:
    """True when coverage meets ``minimum`` (always true when unset)."""
    if minimum is None:
        return True
    return result.index.stats.coverage_percent >= minimum


def explain_file(result: CoverageResult, path: str) -> Optional[FileCoverage]:
    """Look up one file's coverage record, or None if it is not catalogued."""
    return result.index.files.get(normalize_path(path))
