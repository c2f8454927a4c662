"""
Coverage index builder.

Resolves every contract declaration against the file catalogue and records,
per file, which agents know it (explicitly or via a folder/pattern), may
write it and may read it.

Only files in the catalogue are considered. A declaration that would match
a file outside the catalogue contributes nothing.

Usage::

    from agentcoverage.coverage.index import CoverageIndexBuilder
    from agentcoverage.paths import PathMatcher

    builder = CoverageIndexBuilder(PathMatcher(root_aliases={"cs/": "engine/"}))
    index = builder.build(contracts, files)
    print(index.stats.coverage_percent)
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable, Optional, Sequence

from agentcoverage.contracts.models import AgentContract, AgentRole
from agentcoverage.coverage.models import (
    AgentMissingReference,
    AgentSummary,
    CoverageIndex,
    CoverageStats,
    FileCoverage,
    RoleCompleteness,
    SpecialistCompleteness,
    percent,
)
from agentcoverage.paths import PathMatcher, normalize_path

logger = logging.getLogger(__name__)

_BUCKETS = ("known_by", "explicitly_known_by", "glob_known_by", "writable_by", "readable_by")


class _Accumulator:
    """Mutable per-file agent sets, frozen into ``FileCoverage`` at the end."""

    def __init__(self, files: Iterable[str]):
        self.sets: dict[str, dict[str, set[str]]] = {
            f: {bucket: set() for bucket in _BUCKETS} for f in files
        }

    def add(self, path: str, bucket: str, agent: str) -> None:
        self.sets[path][bucket].add(agent)

    def freeze(self) -> dict[str, FileCoverage]:
        return {
            path: FileCoverage(
                path=path,
                **{bucket: sorted(agents) for bucket, agents in buckets.items()},
            )
            for path, buckets in self.sets.items()
        }


def _last_segment(path: str) -> str:
    return path.rstrip("/").rsplit("/", 1)[-1]


def has_required_reference(contract: AgentContract, matcher: Optional[PathMatcher] = None) -> bool:
    """
    Whether a contract's Primary explicit knowledge includes its reference.

    Paths are compared case-insensitively after normalization, either in
    full or by final path segment.
    """
    expected = contract.expected_reference_path
    if not expected:
        return False
    normalize = matcher.normalize if matcher else normalize_path
    expected_norm = normalize(expected).lower()
    expected_name = _last_segment(expected_norm)

    for path in contract.primary_explicit_paths:
        candidate = normalize(path).lower()
        if candidate == expected_norm or _last_segment(candidate) == expected_name:
            return True
    return False


class CoverageIndexBuilder:
    """Builds a ``CoverageIndex`` from parsed contracts and a file list."""

    def __init__(self, matcher: Optional[PathMatcher] = None):
        self.matcher = matcher or PathMatcher()

    def build(self, contracts: Sequence[AgentContract], files: Sequence[str]) -> CoverageIndex:
        catalogue = sorted({normalize_path(f) for f in files if f and f.strip()})
        acc = _Accumulator(catalogue)

        for contract in contracts:
            self._apply_contract(contract, catalogue, acc)

        coverage = acc.freeze()
        stats = self.compute_stats(coverage)
        completeness = self.compute_completeness(contracts)
        uncovered = [path for path, fc in coverage.items() if not fc.known_by]

        logger.debug(
            "Built coverage index: files=%d contracts=%d covered=%d",
            stats.total_files,
            len(contracts),
            stats.covered_files,
        )

        return CoverageIndex(
            files=coverage,
            agents=sorted(
                (self._summarize(c) for c in contracts), key=lambda a: a.name
            ),
            stats=stats,
            completeness=completeness,
            uncovered=uncovered,
        )

    def _apply_contract(
        self,
        contract: AgentContract,
        catalogue: list[str],
        acc: _Accumulator,
    ) -> None:
        for decl in contract.knowledge:
            bucket = "explicitly_known_by" if decl.is_explicit else "glob_known_by"
            for path in self.matcher.match_files(decl.path, catalogue):
                acc.add(path, "known_by", contract.name)
                acc.add(path, bucket, contract.name)

        if contract.role == AgentRole.BUILDER:
            for decl in contract.output_scope:
                for path in self.matcher.match_files(decl, catalogue):
                    acc.add(path, "writable_by", contract.name)
        elif contract.role == AgentRole.REVIEWER:
            for decl in contract.read_scope:
                for path in self.matcher.match_files(decl, catalogue):
                    acc.add(path, "readable_by", contract.name)

    @staticmethod
    def compute_stats(coverage: dict[str, FileCoverage]) -> CoverageStats:
        total = len(coverage)
        covered = sum(1 for fc in coverage.values() if fc.known_by)
        explicit = sum(1 for fc in coverage.values() if fc.explicitly_known_by)
        glob_only = sum(1 for fc in coverage.values() if fc.is_glob_only)
        return CoverageStats(
            total_files=total,
            covered_files=covered,
            explicitly_covered_files=explicit,
            glob_only_files=glob_only,
            uncovered_files=total - covered,
            coverage_percent=percent(covered, total),
            explicit_coverage_percent=percent(explicit, total),
            glob_only_percent=percent(glob_only, total),
        )

    def compute_completeness(self, contracts: Sequence[AgentContract]) -> SpecialistCompleteness:
        counts: dict[AgentRole, list[int]] = defaultdict(lambda: [0, 0])
        missing: list[AgentMissingReference] = []

        for contract in contracts:
            if contract.role == AgentRole.COORDINATOR or not contract.expected_reference_path:
                continue
            tally = counts[contract.role]
            tally[0] += 1
            if has_required_reference(contract, self.matcher):
                tally[1] += 1
            else:
                missing.append(
                    AgentMissingReference(
                        name=contract.name,
                        role=contract.role,
                        expected_path=contract.expected_reference_path,
                        primary_explicit_knowledge=contract.primary_explicit_paths,
                    )
                )

        def role_completeness(total: int, found: int) -> RoleCompleteness:
            return RoleCompleteness(total=total, with_reference=found, percent=percent(found, total))

        b_total, b_found = counts[AgentRole.BUILDER]
        r_total, r_found = counts[AgentRole.REVIEWER]
        return SpecialistCompleteness(
            builders=role_completeness(b_total, b_found),
            reviewers=role_completeness(r_total, r_found),
            combined=role_completeness(b_total + r_total, b_found + r_found),
            agents_missing_specs=sorted(missing, key=lambda m: m.name),
        )

    @staticmethod
    def _summarize(contract: AgentContract) -> AgentSummary:
        return AgentSummary(
            name=contract.name,
            role=contract.role,
            domain=contract.domain,
            family=contract.family,
            knowledge_count=len(contract.knowledge),
            explicit_knowledge_count=sum(1 for k in contract.knowledge if k.is_explicit),
            output_scope=list(contract.output_scope),
            read_scope=list(contract.read_scope),
        )
