"""
Tests for the coverage analyzer.

Tests cover:
- Builder/reviewer pairing per reference document
- Write conflicts and their risk levels
- Orphaned folders
- Layer rollups and coordinator-only files
- Recommendation rules and their order
"""

import pytest

from agentcoverage.contracts import load_contracts
from agentcoverage.coverage.analyzer import CoverageAnalyzer
from agentcoverage.coverage.index import CoverageIndexBuilder
from agentcoverage.coverage.layers import LayerRule
from agentcoverage.coverage.models import ConflictRisk, PairingStatus, Priority


@pytest.fixture
def analyzer():
    return CoverageAnalyzer()


def _index(contracts, files):
    return CoverageIndexBuilder().build(contracts, files)


class TestPairing:
    def test_statuses(self, analyzer, contract_factory):
        contracts = [
            contract_factory("widget-builder", primary=["specs/widget.spec.md", "specs/solo.spec.md"]),
            contract_factory("widget-reviewer", primary=["specs/widget.spec.md", "specs/review.spec.md"]),
            contract_factory("lead", primary=["specs/lead.spec.md"]),
        ]
        files = [
            "specs/widget.spec.md",
            "specs/solo.spec.md",
            "specs/review.spec.md",
            "specs/lead.spec.md",
            "specs/readme.md",
        ]
        pairing = analyzer.analyze_pairing(_index(contracts, files))

        statuses = {p.path: p.status for p in pairing}
        assert statuses == {
            "specs/lead.spec.md": PairingStatus.MISSING_BOTH,
            "specs/review.spec.md": PairingStatus.MISSING_BUILDER,
            "specs/solo.spec.md": PairingStatus.MISSING_REVIEWER,
            "specs/widget.spec.md": PairingStatus.COMPLETE,
        }
        complete = next(p for p in pairing if p.status == PairingStatus.COMPLETE)
        assert complete.builders == ["widget-builder"]
        assert complete.reviewers == ["widget-reviewer"]

    def test_custom_suffix(self, contract_factory):
        analyzer = CoverageAnalyzer(reference_suffix=".ref.md")
        index = _index([contract_factory("a-builder", primary=["a.ref.md"])], ["a.ref.md", "b.spec.md"])
        assert [p.path for p in analyzer.analyze_pairing(index)] == ["a.ref.md"]


class TestWriteConflicts:
    def test_unrelated_pair_is_medium(self, analyzer, contract_factory):
        contracts = [
            contract_factory("north-builder", can_touch=["shared/"]),
            contract_factory("south-builder", can_touch=["shared/"]),
        ]
        conflicts = analyzer.detect_write_conflicts(_index(contracts, ["shared/a.ts"]))
        assert len(conflicts) == 1
        assert conflicts[0].folder == "shared"
        assert conflicts[0].builders == ["north-builder", "south-builder"]
        assert conflicts[0].risk == ConflictRisk.MEDIUM

    def test_same_family_is_low(self, analyzer, contract_factory):
        contracts = [
            contract_factory("widget-builder", can_touch=["content/widgets/"]),
            contract_factory("widget-composite-builder", can_touch=["content/widgets"]),
            contract_factory("widget-layout-builder", can_touch=["content/widgets/**/*.tsx"]),
        ]
        conflicts = analyzer.detect_write_conflicts(_index(contracts, []))
        assert [(c.folder, c.risk) for c in conflicts] == [("content/widgets", ConflictRisk.LOW)]

    def test_more_than_two_unrelated_is_high(self, analyzer, contract_factory):
        contracts = [
            contract_factory(f"{name}-builder", can_touch=["shared/"])
            for name in ("north", "south", "east")
        ]
        analysis = analyzer.analyze(_index(contracts, ["shared/a.ts"]))
        assert analysis.conflicts[0].risk == ConflictRisk.HIGH
        assert analysis.high_risk_conflicts == analysis.conflicts

    def test_reviewers_and_single_builders_never_conflict(self, analyzer, contract_factory):
        contracts = [
            contract_factory("north-builder", can_touch=["a/"]),
            contract_factory("south-builder", can_touch=["b/"]),
            contract_factory("north-reviewer", can_read=["a/"]),
        ]
        assert analyzer.detect_write_conflicts(_index(contracts, [])) == []

    def test_tree_children_do_not_conflict_across_folders(self, analyzer, agents_dir, write_contract):
        write_contract("widget-builder", can_touch=["engine/content/widgets/", "├── index.ts"])
        write_contract("section-builder", can_touch=["engine/content/sections/", "└── index.ts"])
        contracts = load_contracts(agents_dir).contracts
        files = ["engine/content/widgets/index.ts", "engine/content/sections/index.ts", "index.ts"]
        index = _index(contracts, files)

        assert index.files["engine/content/widgets/index.ts"].writable_by == ["widget-builder"]
        assert index.files["engine/content/sections/index.ts"].writable_by == ["section-builder"]
        assert index.files["index.ts"].writable_by == []
        assert analyzer.detect_write_conflicts(index) == []

    def test_explicit_files_group_by_parent_folder(self, analyzer, contract_factory):
        contracts = [
            contract_factory("north-builder", can_touch=["shared/a.ts"]),
            contract_factory("south-builder", can_touch=["shared/b.ts"]),
        ]
        conflicts = analyzer.detect_write_conflicts(_index(contracts, []))
        assert [(c.folder, c.risk) for c in conflicts] == [("shared", ConflictRisk.MEDIUM)]

    def test_root_scope_uses_dot(self, analyzer, contract_factory):
        contracts = [
            contract_factory("north-builder", can_touch=["**/*.ts"]),
            contract_factory("south-builder", can_touch=["*.md"]),
        ]
        conflicts = analyzer.detect_write_conflicts(_index(contracts, []))
        assert conflicts[0].folder == "."


class TestOrphanedFolders:
    def test_folder_without_writer(self, analyzer, contract_factory):
        contracts = [contract_factory("widget-builder", can_touch=["content/"])]
        files = ["content/a.ts", "content/deep/b.ts", "legacy/old.ts", "legacy/older.ts"]
        orphans = analyzer.detect_orphaned_folders(_index(contracts, files))
        assert [(o.folder, o.file_count) for o in orphans] == [("legacy", 2)]

    def test_root_files_use_dot(self, analyzer, contract_factory):
        contracts = [contract_factory("widget-builder", can_touch=["content/"])]
        orphans = analyzer.detect_orphaned_folders(_index(contracts, ["README.md", "content/a.ts"]))
        assert [o.folder for o in orphans] == ["."]

    def test_root_scope_covers_everything(self, analyzer, contract_factory):
        contracts = [contract_factory("site-builder", can_touch=["**/*.ts"])]
        assert analyzer.detect_orphaned_folders(_index(contracts, ["a/b.md", "c.md"])) == []

    @pytest.mark.parametrize("scope", [".", "./"])
    def test_dot_scope_writes_and_covers_everything(self, analyzer, contract_factory, scope):
        contracts = [contract_factory("site-builder", can_touch=[scope])]
        index = _index(contracts, ["a/b.md", "c.md"])
        assert index.files["a/b.md"].writable_by == ["site-builder"]
        assert index.files["c.md"].writable_by == ["site-builder"]
        assert analyzer.detect_orphaned_folders(index) == []

    def test_empty_scope_covers_nothing(self, analyzer, contract_factory):
        contracts = [contract_factory("site-builder", can_touch=[""])]
        index = _index(contracts, ["c.md"])
        assert index.files["c.md"].writable_by == []
        assert [o.folder for o in analyzer.detect_orphaned_folders(index)] == ["."]

    def test_explicit_writer_of_a_direct_file_counts(self, analyzer, contract_factory):
        contracts = [contract_factory("widget-builder", can_touch=["misc/notes.md"])]
        orphans = analyzer.detect_orphaned_folders(
            _index(contracts, ["misc/notes.md", "misc/other.md"])
        )
        assert orphans == []


class TestLayers:
    def test_rollup_sorted_with_other_last(self, analyzer, contract_factory):
        contracts = [contract_factory("widget-builder", additional=["engine/content/widgets/"])]
        files = [
            "engine/content/widgets/Button.tsx",
            "engine/content/widgets/Link.tsx",
            "engine/schema/site.ts",
            "scripts/build.ts",
            "docs/widget.spec.md",
        ]
        layers = analyzer.compute_layer_coverage(_index(contracts, files))

        assert [l.layer for l in layers] == ["Content: Widgets", "Reference Specs", "Schema", "Other"]
        widgets = layers[0]
        assert (widgets.total_files, widgets.covered_files, widgets.coverage_percent) == (2, 2, 100)
        assert widgets.agents == ["widget-builder"]
        assert layers[-1].coverage_percent == 0

    def test_first_matching_rule_wins(self, contract_factory):
        rules = [
            LayerRule(pattern="src/special/**", layer="Special"),
            LayerRule(pattern="src/**", layer="Source"),
        ]
        analyzer = CoverageAnalyzer(layer_rules=rules)
        assert analyzer.classify_layer("src/special/a.ts") == "Special"
        assert analyzer.classify_layer("src/a.ts") == "Source"
        assert analyzer.classify_layer("lib/a.ts") == "Other"


class TestCoordinatorOnly:
    def test_files_known_only_by_coordinators(self, analyzer, contract_factory):
        contracts = [
            contract_factory("lead", additional=["docs/"]),
            contract_factory("docs-builder", primary=["docs/shared.md"]),
        ]
        index = _index(contracts, ["docs/a.md", "docs/shared.md", "src/x.ts"])
        assert analyzer.coordinator_only_files(index) == ["docs/a.md"]


class TestRecommendations:
    def test_healthy_setup_has_none(self, analyzer, contract_factory):
        contracts = [
            contract_factory(
                "widget-builder",
                primary=["content/widget.spec.md"],
                additional=["content/"],
                can_touch=["content/"],
            ),
            contract_factory("widget-reviewer", primary=["content/widget.spec.md", "content/a.ts"]),
        ]
        files = ["content/widget.spec.md", "content/a.ts"]
        analysis = analyzer.analyze(_index(contracts, files))
        assert analysis.recommendations == []

    def test_uncovered_is_first_and_critical(self, analyzer, contract_factory):
        contracts = [contract_factory("lead", primary=["a.md"])]
        analysis = analyzer.analyze(_index(contracts, ["a.md", "b.md"]))
        first = analysis.recommendations[0]
        assert first.priority == Priority.CRITICAL
        assert first.title == "Uncovered files"
        assert "b.md" in first.description

    def test_low_completeness_is_critical(self, analyzer, contract_factory):
        contracts = [
            contract_factory("widget-builder"),
            contract_factory("driver-builder"),
        ]
        titles = [r.title for r in analyzer.analyze(_index(contracts, [])).recommendations]
        assert titles == ["Specialists lack their reference documents"]

    def test_missing_references_when_mostly_complete(self, analyzer, contract_factory):
        contracts = [
            contract_factory("widget-builder", primary=["content/widget.spec.md"]),
            contract_factory("widget-reviewer", primary=["content/widget.spec.md"]),
            contract_factory("driver-builder"),
        ]
        recs = analyzer.analyze(_index(contracts, [])).recommendations
        assert [(r.priority, r.title) for r in recs] == [
            (Priority.HIGH, "Agents missing required references")
        ]
        assert "driver-builder" in recs[0].description

    def test_glob_heavy_coverage(self, analyzer, contract_factory):
        contracts = [contract_factory("lead", additional=["src/"])]
        files = [f"src/f{i}.ts" for i in range(10)]
        titles = [r.title for r in analyzer.analyze(_index(contracts, files)).recommendations]
        assert "Coverage relies on broad patterns" in titles

    def test_order_follows_rule_list(self, analyzer, contract_factory):
        contracts = [
            contract_factory("lead", additional=[f"c{i}/" for i in range(6)]),
            contract_factory("north-builder", can_touch=["shared/"]),
            contract_factory("south-builder", can_touch=["shared/"]),
            contract_factory("east-builder", can_touch=["shared/"]),
        ]
        files = [f"c{i}/x.spec.md" for i in range(6)] + ["shared/a.ts", "loose/b.ts"]
        recs = analyzer.analyze(_index(contracts, files)).recommendations

        titles = [r.title for r in recs]
        assert titles == [
            "Uncovered files",
            "Reference documents without a reviewer",
            "Reference documents without a builder",
            "High-risk write conflicts",
            "Orphaned folders",
            "Files known only by coordinators",
            "Layers below coverage target",
        ]
        priorities = [r.priority for r in recs]
        order = [Priority.CRITICAL, Priority.HIGH, Priority.MEDIUM, Priority.LOW]
        assert priorities == sorted(priorities, key=order.index)

    def test_long_lists_are_truncated(self, analyzer, contract_factory):
        contracts = [contract_factory("lead")]
        files = [f"f{i}.md" for i in range(8)]
        first = analyzer.analyze(_index(contracts, files)).recommendations[0]
        assert "(+3 more)" in first.description
