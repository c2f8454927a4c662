"""
Rule engine over a finished ``CoverageIndex``.

Derives secondary findings without touching the index:

1. **Pairing**: every reference document should be known by at least one
   builder and one reviewer.
2. **Write conflicts**: folders that more than one builder may write to.
3. **Orphaned folders**: folders with files that no builder can write.
4. **Layer coverage**: per-layer rollups using ordered glob rules.
5. **Recommendations**: a fixed, ordered rule list over all of the above.

All functions are deterministic and return sorted output.

Usage::

    from agentcoverage.coverage.analyzer import CoverageAnalyzer

    analysis = CoverageAnalyzer().analyze(index)
    for rec in analysis.recommendations:
        print(rec.priority.value, rec.title)
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Callable, Optional, Sequence

from agentcoverage.contracts.models import DEFAULT_REFERENCE_SUFFIX, AgentRole
from agentcoverage.coverage.layers import DEFAULT_LAYER_RULES, LayerClassifier, LayerRule
from agentcoverage.coverage.models import (
    ConflictRisk,
    CoverageAnalysis,
    CoverageIndex,
    LayerCoverage,
    OrphanedFolder,
    PairingEntry,
    PairingStatus,
    Priority,
    Recommendation,
    WriteConflict,
    percent,
)
from agentcoverage.paths import ROOT, PathMatcher, is_explicit, static_base

logger = logging.getLogger(__name__)

ROOT_FOLDER = ROOT
COORDINATOR_ONLY_THRESHOLD = 5
LAYER_COVERAGE_THRESHOLD = 80
COMPLETENESS_THRESHOLD = 50
EXPLICIT_COVERAGE_FLOOR = 30
BROAD_COVERAGE_CEILING = 80
MAX_LISTED = 5


def _parent(path: str) -> str:
    return path.rsplit("/", 1)[0] if "/" in path else ROOT_FOLDER


def _covers(base: str, folder: str) -> bool:
    """Whether a scope rooted at ``base`` includes ``folder``."""
    if base in ("", ROOT_FOLDER):
        return True
    return folder == base or folder.startswith(base + "/")


def _preview(items: Sequence[str]) -> str:
    shown = ", ".join(items[:MAX_LISTED])
    if len(items) > MAX_LISTED:
        shown += f" (+{len(items) - MAX_LISTED} more)"
    return shown


class CoverageAnalyzer:
    """Derives findings and recommendations from a coverage index."""

    def __init__(
        self,
        matcher: Optional[PathMatcher] = None,
        layer_rules: Sequence[LayerRule] = DEFAULT_LAYER_RULES,
        reference_suffix: str = DEFAULT_REFERENCE_SUFFIX,
    ):
        self.matcher = matcher or PathMatcher()
        self.layers = LayerClassifier(layer_rules)
        self.reference_suffix = reference_suffix

    def analyze(self, index: CoverageIndex) -> CoverageAnalysis:
        pairing = self.analyze_pairing(index)
        conflicts = self.detect_write_conflicts(index)
        orphans = self.detect_orphaned_folders(index)
        layers = self.compute_layer_coverage(index)
        coordinator_only = self.coordinator_only_files(index)

        partial = CoverageAnalysis(
            pairing=pairing,
            conflicts=conflicts,
            orphaned_folders=orphans,
            layers=layers,
            coordinator_only_files=coordinator_only,
        )
        recommendations = self.build_recommendations(index, partial)
        logger.debug(
            "Analysis: conflicts=%d orphans=%d recommendations=%d",
            len(conflicts),
            len(orphans),
            len(recommendations),
        )
        return partial.model_copy(update={"recommendations": recommendations})

    # ------------------------------------------------------------------
    # Pairing
    # ------------------------------------------------------------------

    def analyze_pairing(self, index: CoverageIndex) -> list[PairingEntry]:
        roles = index.roles()
        entries = []
        for path in sorted(index.files):
            if not path.lower().endswith(self.reference_suffix.lower()):
                continue
            known_by = index.files[path].known_by
            builders = [a for a in known_by if roles.get(a) == AgentRole.BUILDER]
            reviewers = [a for a in known_by if roles.get(a) == AgentRole.REVIEWER]
            if builders and reviewers:
                status = PairingStatus.COMPLETE
            elif builders:
                status = PairingStatus.MISSING_REVIEWER
            elif reviewers:
                status = PairingStatus.MISSING_BUILDER
            else:
                status = PairingStatus.MISSING_BOTH
            entries.append(
                PairingEntry(path=path, builders=builders, reviewers=reviewers, status=status)
            )
        return entries

    # ------------------------------------------------------------------
    # Write conflicts
    # ------------------------------------------------------------------

    def _output_bases(self, index: CoverageIndex) -> dict[str, set[str]]:
        """Target folder -> builders whose output scope targets it.

        An explicit file scope targets the folder that contains the file.
        """
        by_folder: dict[str, set[str]] = defaultdict(set)
        for agent in index.agents:
            if agent.role != AgentRole.BUILDER:
                continue
            for decl in agent.output_scope:
                normalized = self.matcher.normalize(decl)
                if not normalized:
                    continue
                if is_explicit(normalized):
                    base = _parent(normalized)
                else:
                    base = static_base(normalized) or ROOT_FOLDER
                by_folder[base].add(agent.name)
        return by_folder

    def detect_write_conflicts(self, index: CoverageIndex) -> list[WriteConflict]:
        families = {a.name: a.family for a in index.agents}
        conflicts = []
        for folder, builders in sorted(self._output_bases(index).items()):
            if len(builders) < 2:
                continue
            if len({families[b] for b in builders}) == 1:
                risk = ConflictRisk.LOW
            elif len(builders) > 2:
                risk = ConflictRisk.HIGH
            else:
                risk = ConflictRisk.MEDIUM
            conflicts.append(WriteConflict(folder=folder, builders=sorted(builders), risk=risk))
        return conflicts

    # ------------------------------------------------------------------
    # Orphaned folders
    # ------------------------------------------------------------------

    def detect_orphaned_folders(self, index: CoverageIndex) -> list[OrphanedFolder]:
        bases = list(self._output_bases(index))
        files_by_folder: dict[str, list[str]] = defaultdict(list)
        for path in index.files:
            files_by_folder[_parent(path)].append(path)

        orphans = []
        for folder, files in sorted(files_by_folder.items()):
            if any(_covers(base, folder) for base in bases):
                continue
            if any(index.files[f].writable_by for f in files):
                continue
            orphans.append(OrphanedFolder(folder=folder, file_count=len(files)))
        return orphans

    # ------------------------------------------------------------------
    # Layers
    # ------------------------------------------------------------------

    def classify_layer(self, path: str) -> str:
        return self.layers.classify(path)

    def compute_layer_coverage(self, index: CoverageIndex) -> list[LayerCoverage]:
        totals: dict[str, int] = defaultdict(int)
        covered: dict[str, int] = defaultdict(int)
        agents: dict[str, set[str]] = defaultdict(set)

        for path, fc in index.files.items():
            layer = self.classify_layer(path)
            totals[layer] += 1
            if fc.known_by:
                covered[layer] += 1
                agents[layer].update(fc.known_by)

        return [
            LayerCoverage(
                layer=layer,
                total_files=totals[layer],
                covered_files=covered[layer],
                coverage_percent=percent(covered[layer], totals[layer]),
                agents=sorted(agents[layer]),
            )
            for layer in sorted(totals, key=LayerClassifier.sort_key)
        ]

    # ------------------------------------------------------------------
    # Coordinator-only files
    # ------------------------------------------------------------------

    def coordinator_only_files(self, index: CoverageIndex) -> list[str]:
        roles = index.roles()
        return [
            path
            for path, fc in sorted(index.files.items())
            if fc.known_by
            and all(roles.get(a) == AgentRole.COORDINATOR for a in fc.known_by)
        ]

    # ------------------------------------------------------------------
    # Recommendations
    # ------------------------------------------------------------------

    def build_recommendations(
        self, index: CoverageIndex, analysis: CoverageAnalysis
    ) -> list[Recommendation]:
        rules: list[Callable[[CoverageIndex, CoverageAnalysis], Optional[Recommendation]]] = [
            _rule_uncovered_files,
            _rule_low_completeness,
            _rule_missing_references,
            _rule_glob_heavy_coverage,
            _rule_missing_reviewer,
            _rule_missing_builder,
            _rule_high_risk_conflicts,
            _rule_orphaned_folders,
            _rule_coordinator_only,
            _rule_weak_layers,
        ]
        recommendations = []
        for rule in rules:
            rec = rule(index, analysis)
            if rec is not None:
                recommendations.append(rec)
        return recommendations


def _rule_uncovered_files(index: CoverageIndex, _: CoverageAnalysis) -> Optional[Recommendation]:
    if not index.uncovered:
        return None
    return Recommendation(
        priority=Priority.CRITICAL,
        title="Uncovered files",
        description=f"{len(index.uncovered)} files are not known by any agent: "
        + _preview(index.uncovered),
        action="Add knowledge declarations that cover these files to the owning agents.",
    )


def _rule_low_completeness(index: CoverageIndex, _: CoverageAnalysis) -> Optional[Recommendation]:
    combined = index.completeness.combined
    if combined.total == 0 or combined.percent >= COMPLETENESS_THRESHOLD:
        return None
    return Recommendation(
        priority=Priority.CRITICAL,
        title="Specialists lack their reference documents",
        description=f"Only {combined.with_reference}/{combined.total} builders and reviewers "
        f"({combined.percent}%) list their domain reference as Primary knowledge.",
        action="Add each agent's reference document to its Primary knowledge table.",
    )


def _rule_missing_references(index: CoverageIndex, _: CoverageAnalysis) -> Optional[Recommendation]:
    completeness = index.completeness
    missing = completeness.agents_missing_specs
    if not missing or completeness.combined.percent < COMPLETENESS_THRESHOLD:
        return None
    return Recommendation(
        priority=Priority.HIGH,
        title="Agents missing required references",
        description=f"{len(missing)} agents do not list their reference document: "
        + _preview([m.name for m in missing]),
        action="Add the expected reference path to each agent's Primary knowledge.",
    )


def _rule_glob_heavy_coverage(index: CoverageIndex, _: CoverageAnalysis) -> Optional[Recommendation]:
    stats = index.stats
    if not (
        stats.explicit_coverage_percent < EXPLICIT_COVERAGE_FLOOR
        and stats.coverage_percent > BROAD_COVERAGE_CEILING
    ):
        return None
    return Recommendation(
        priority=Priority.HIGH,
        title="Coverage relies on broad patterns",
        description=f"{stats.coverage_percent}% of files are covered but only "
        f"{stats.explicit_coverage_percent}% explicitly.",
        action="Replace broad folder and wildcard declarations with explicit file references.",
    )


def _missing_pairing(analysis: CoverageAnalysis, statuses: set[PairingStatus]) -> list[str]:
    return [p.path for p in analysis.pairing if p.status in statuses]


def _rule_missing_reviewer(_: CoverageIndex, analysis: CoverageAnalysis) -> Optional[Recommendation]:
    paths = _missing_pairing(
        analysis, {PairingStatus.MISSING_REVIEWER, PairingStatus.MISSING_BOTH}
    )
    if not paths:
        return None
    return Recommendation(
        priority=Priority.HIGH,
        title="Reference documents without a reviewer",
        description=f"{len(paths)} reference documents are not known by any reviewer: "
        + _preview(paths),
        action="Add these documents to the knowledge of the matching reviewer agents.",
    )


def _rule_missing_builder(_: CoverageIndex, analysis: CoverageAnalysis) -> Optional[Recommendation]:
    paths = _missing_pairing(
        analysis, {PairingStatus.MISSING_BUILDER, PairingStatus.MISSING_BOTH}
    )
    if not paths:
        return None
    return Recommendation(
        priority=Priority.HIGH,
        title="Reference documents without a builder",
        description=f"{len(paths)} reference documents are not known by any builder: "
        + _preview(paths),
        action="Add these documents to the knowledge of the matching builder agents.",
    )


def _rule_high_risk_conflicts(_: CoverageIndex, analysis: CoverageAnalysis) -> Optional[Recommendation]:
    conflicts = analysis.high_risk_conflicts
    if not conflicts:
        return None
    return Recommendation(
        priority=Priority.MEDIUM,
        title="High-risk write conflicts",
        description=f"{len(conflicts)} folders can be written by more than two unrelated builders: "
        + _preview([c.folder for c in conflicts]),
        action="Narrow the Can Touch scopes so each folder has a single owning builder family.",
    )


def _rule_orphaned_folders(_: CoverageIndex, analysis: CoverageAnalysis) -> Optional[Recommendation]:
    orphans = analysis.orphaned_folders
    if not orphans:
        return None
    return Recommendation(
        priority=Priority.MEDIUM,
        title="Orphaned folders",
        description=f"{len(orphans)} folders have no builder that may write to them: "
        + _preview([o.folder for o in orphans]),
        action="Assign each folder to a builder's Can Touch scope or remove it.",
    )


def _rule_coordinator_only(_: CoverageIndex, analysis: CoverageAnalysis) -> Optional[Recommendation]:
    files = analysis.coordinator_only_files
    if len(files) <= COORDINATOR_ONLY_THRESHOLD:
        return None
    return Recommendation(
        priority=Priority.LOW,
        title="Files known only by coordinators",
        description=f"{len(files)} files are known only by coordinator agents: "
        + _preview(files),
        action="Give a builder or reviewer explicit knowledge of these files.",
    )


def _rule_weak_layers(_: CoverageIndex, analysis: CoverageAnalysis) -> Optional[Recommendation]:
    weak = [l for l in analysis.layers if l.coverage_percent < LAYER_COVERAGE_THRESHOLD]
    if not weak:
        return None
    return Recommendation(
        priority=Priority.LOW,
        title="Layers below coverage target",
        description=f"{len(weak)} layers are below {LAYER_COVERAGE_THRESHOLD}% coverage: "
        + _preview([f"{l.layer} ({l.coverage_percent}%)" for l in weak]),
        action="Extend agent knowledge into the weakest layers first.",
    )
