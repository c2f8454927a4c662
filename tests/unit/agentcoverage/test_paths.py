"""
Tests for declaration classification and path matching.

Tests cover:
- Explicit / folder / pattern classification
- Normalization and root aliases
- Brace expansion (including unsupported nesting)
- Glob semantics for *, ** and ?
"""

import pytest

from agentcoverage.paths import (
    DeclarationKind,
    PathMatcher,
    classify,
    expand_braces,
    glob_to_regex,
    is_explicit,
    normalize_path,
    static_base,
)


@pytest.fixture
def matcher():
    return PathMatcher()


class TestClassification:
    """Classification is a pure function of the declaration text."""

    @pytest.mark.parametrize(
        "declaration",
        ["content/widget.spec.md", "a/b/index.tsx", "README.md", "app/[[...slug]]/page.tsx"],
    )
    def test_explicit(self, declaration):
        assert classify(declaration) == DeclarationKind.EXPLICIT
        assert is_explicit(declaration)

    @pytest.mark.parametrize("declaration", ["content/", "content", "engine/content/widgets/"])
    def test_folder(self, declaration):
        assert classify(declaration) == DeclarationKind.FOLDER
        assert not is_explicit(declaration)

    @pytest.mark.parametrize(
        "declaration",
        ["content/*.md", "content/**", "a/{b,c}/x.md", "file?.ts"],
    )
    def test_pattern(self, declaration):
        assert classify(declaration) == DeclarationKind.PATTERN
        assert not is_explicit(declaration)

    def test_dotfile_is_not_explicit(self):
        """A leading dot does not count as an extension."""
        assert classify("config/.env") == DeclarationKind.FOLDER
        assert classify(".claude/agents") == DeclarationKind.FOLDER

    def test_trailing_separator_wins_over_extension(self):
        assert classify("docs/v1.2/") == DeclarationKind.FOLDER


class TestNormalization:
    def test_backslashes_and_leading_dot_slash(self):
        assert normalize_path(".\\content\\widget.ts") == "content/widget.ts"
        assert normalize_path("./././a/b") == "a/b"

    def test_root_itself_becomes_dot(self):
        assert normalize_path("./") == "."
        assert normalize_path(".") == "."
        assert normalize_path("") == ""

    def test_duplicate_separators_collapse(self):
        assert normalize_path("a//b///c.ts") == "a/b/c.ts"

    def test_root_alias_rewrite(self):
        aliases = {"creativeshire/": "engine/"}
        assert normalize_path("creativeshire/content/a.ts", aliases) == "engine/content/a.ts"
        assert normalize_path("engine/content/a.ts", aliases) == "engine/content/a.ts"

    def test_longest_alias_wins_and_applies_once(self):
        aliases = {"cs/": "engine/", "cs/content/": "engine/content/", "engine/": "cs/"}
        assert normalize_path("cs/content/a.ts", aliases) == "engine/content/a.ts"
        assert normalize_path("cs/x.ts", aliases) == "engine/x.ts"


class TestBraceExpansion:
    def test_single_group(self):
        assert expand_braces("a/{b,c}/x.md") == ["a/b/x.md", "a/c/x.md"]

    def test_cross_product_of_groups(self):
        assert expand_braces("{a,b}/{x,y}.ts") == ["a/x.ts", "a/y.ts", "b/x.ts", "b/y.ts"]

    def test_duplicates_removed(self):
        assert expand_braces("{a,a,b}.ts") == ["a.ts", "b.ts"]

    def test_no_braces(self):
        assert expand_braces("content/**/*.ts") == ["content/**/*.ts"]

    def test_nested_group_left_literal(self):
        assert expand_braces("a/{x,{b,c}}/y.md") == ["a/{x,{b,c}}/y.md"]

    def test_unbalanced_left_literal(self):
        assert expand_braces("a/{b,c/x.md") == ["a/{b,c/x.md"]


class TestGlobTranslation:
    def test_single_star_stays_in_segment(self):
        assert glob_to_regex("dir/*.md") == r"^dir/[^/]*\.md$"

    def test_double_star_segment(self):
        assert glob_to_regex("dir/**/*.md") == r"^dir/(?:[^/]+/)*[^/]*\.md$"

    def test_trailing_double_star(self):
        assert glob_to_regex("dir/**") == "^dir/.*$"


class TestMatching:
    def test_exact(self, matcher):
        assert matcher.matches("content/widget.ts", "content/widget.ts")
        assert not matcher.matches("content/widget.ts", "content/widget.tsx")

    def test_folder_with_trailing_separator(self, matcher):
        assert matcher.matches("content/", "content/widget.ts")
        assert matcher.matches("content/", "content/deep/nested/file.ts")
        assert not matcher.matches("content/", "contents/widget.ts")

    def test_folder_without_trailing_separator(self, matcher):
        assert matcher.matches("content", "content/widget.ts")
        assert not matcher.matches("content", "content-extra/widget.ts")

    def test_single_star_does_not_cross_folders(self, matcher):
        assert matcher.matches("dir/*.md", "dir/a.md")
        assert not matcher.matches("dir/*.md", "dir/sub/a.md")

    def test_double_star_matches_any_depth(self, matcher):
        assert matcher.matches("dir/**/*.md", "dir/a.md")
        assert matcher.matches("dir/**/*.md", "dir/sub/a.md")
        assert matcher.matches("dir/**/*.md", "dir/sub/deeper/a.md")
        assert not matcher.matches("dir/**/*.md", "other/a.md")

    def test_leading_double_star(self, matcher):
        assert matcher.matches("**/*.spec.md", "widget.spec.md")
        assert matcher.matches("**/*.spec.md", "a/b/widget.spec.md")

    def test_brace_pattern_matches_exactly_alternatives(self, matcher):
        pattern = "a/{b,c}/x.md"
        assert matcher.matches(pattern, "a/b/x.md")
        assert matcher.matches(pattern, "a/c/x.md")
        for other in ("a/d/x.md", "a/b/y.md", "a/b/c/x.md", "a/bc/x.md", "a/x.md"):
            assert not matcher.matches(pattern, other)

    def test_question_mark(self, matcher):
        assert matcher.matches("src/file?.ts", "src/file1.ts")
        assert not matcher.matches("src/file?.ts", "src/file12.ts")

    def test_no_partial_matches(self, matcher):
        assert not matcher.matches("*.ts", "dir/a.ts")
        assert not matcher.matches("dir/a", "dir/ab.ts")

    def test_nested_braces_match_literal_text_only(self, matcher):
        pattern = "a/{x,{b,c}}/y.md"
        assert not matcher.matches(pattern, "a/x/y.md")
        assert not matcher.matches(pattern, "a/b/y.md")
        assert matcher.matches(pattern, "a/{x,{b,c}}/y.md")

    def test_alias_applies_to_declarations(self):
        matcher = PathMatcher(root_aliases={"creativeshire/": "engine/"})
        assert matcher.matches("creativeshire/content/**/*.ts", "engine/content/widgets/a.ts")
        assert matcher.matches("creativeshire/content/", "engine/content/a.ts")
        assert not matcher.matches("creativeshire/content/", "creativeshire/content/a.ts")

    def test_empty_declaration_matches_nothing(self, matcher):
        assert not matcher.matches("", "a.ts")
        assert not matcher.matches("   ", "a.ts")

    @pytest.mark.parametrize("declaration", [".", "./", ".\\", "././"])
    def test_root_declaration_matches_everything(self, matcher, declaration):
        assert matcher.matches(declaration, "a.ts")
        assert matcher.matches(declaration, "deep/nested/b.md")
        assert not matcher.matches(declaration, "")

    def test_match_files(self, matcher):
        files = ["a/x.ts", "a/y.md", "b/z.ts"]
        assert matcher.match_files("**/*.ts", files) == ["a/x.ts", "b/z.ts"]


class TestStaticBase:
    @pytest.mark.parametrize(
        "declaration, base",
        [
            ("shared/", "shared"),
            ("shared", "shared"),
            ("content/**/*.ts", "content"),
            ("content/{a,b}/x.ts", "content"),
            ("**/*.ts", ""),
            ("a/b/c.ts", "a/b/c.ts"),
        ],
    )
    def test_static_base(self, declaration, base):
        assert static_base(declaration) == base
