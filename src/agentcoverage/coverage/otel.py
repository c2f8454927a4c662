"""
OTel span event emission for coverage audits.

Events are added to the current span only when it is recording, so calling
these helpers outside an active trace is a no-op.

Usage::

    from agentcoverage.coverage.otel import emit_coverage_result

    emit_coverage_result(result)
"""

from __future__ import annotations

import logging

from opentelemetry import trace as otel_trace

from agentcoverage.coverage.models import CoverageResult, Priority, Recommendation

logger = logging.getLogger(__name__)


def _add_span_event(name: str, attributes: dict[str, str | int | float | bool]) -> None:
    """Add an event to the current OTel span if it is recording."""
    span = otel_trace.get_current_span()
    if span and span.is_recording():
        span.add_event(name=name, attributes=attributes)


def emit_coverage_result(result: CoverageResult) -> None:
    """Emit a span event summarising the audit.

    Event name: ``coverage.audit.result``
    """
    stats = result.index.stats
    completeness = result.index.completeness
    analysis = result.analysis

    attrs: dict[str, str | int | float | bool] = {
        "coverage.contracts": result.contract_count,
        "coverage.total_files": stats.total_files,
        "coverage.covered_files": stats.covered_files,
        "coverage.explicit_files": stats.explicitly_covered_files,
        "coverage.glob_only_files": stats.glob_only_files,
        "coverage.percent": stats.coverage_percent,
        "coverage.completeness_percent": completeness.combined.percent,
        "coverage.conflicts": len(analysis.conflicts),
        "coverage.orphaned_folders": len(analysis.orphaned_folders),
        "coverage.recommendations": len(analysis.recommendations),
    }

    logger.debug(
        "Coverage audit: %d/%d files (%d%%), %d recommendations",
        stats.covered_files,
        stats.total_files,
        stats.coverage_percent,
        len(analysis.recommendations),
    )
    _add_span_event("coverage.audit.result", attrs)


def emit_recommendation(recommendation: Recommendation) -> None:
    """Emit a span event for a single recommendation.

    Event name: ``coverage.audit.recommendation``
    """
    attrs: dict[str, str | int | float | bool] = {
        "recommendation.priority": recommendation.priority.value,
        "recommendation.title": recommendation.title,
        "recommendation.description": recommendation.description,
    }

    log_fn = (
        logger.warning
        if recommendation.priority == Priority.CRITICAL
        else logger.info
    )
    log_fn(
        "Recommendation: [%s] %s",
        recommendation.priority.value,
        recommendation.title,
    )
    _add_span_event("coverage.audit.recommendation", attrs)
