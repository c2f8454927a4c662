"""
Path classification and matching for contract declarations.

A declaration is one of:

- **explicit**: a concrete filename with an extension (``content/a.spec.md``)
- **folder**: a directory prefix (``content/`` or ``content/widgets``)
- **pattern**: a glob using ``*``, ``**``, ``?`` or ``{a,b}`` alternation

Matching is tried in the order exact, folder, pattern. A declaration either
covers a file or it does not; there are no partial matches. The root
declaration ``.`` (or ``./``) covers every file.

Brace groups are expanded one level at a time. Nested groups such as
``{a,{b,c}}`` are not supported and are kept as literal text, so such a
pattern matches fewer files than intended instead of raising.

Usage::

    from agentcoverage.paths import PathMatcher

    matcher = PathMatcher(root_aliases={"creativeshire/": "engine/"})
    matcher.matches("creativeshire/content/**/*.ts", "engine/content/a/b.ts")  # True
"""

from __future__ import annotations

import re
from enum import Enum
from functools import lru_cache
from typing import Mapping, Optional, Pattern

SEPARATOR = "/"
ROOT = "."
PATTERN_CHARS = frozenset("*?{")


class DeclarationKind(str, Enum):
    EXPLICIT = "explicit"
    FOLDER = "folder"
    PATTERN = "pattern"


def is_pattern(declaration: str) -> bool:
    return any(ch in PATTERN_CHARS for ch in declaration)


def classify(declaration: str) -> DeclarationKind:
    """Classify a declaration from its text alone (no filesystem lookup)."""
    if is_pattern(declaration):
        return DeclarationKind.PATTERN
    normalized = declaration.replace("\\", SEPARATOR)
    if normalized.endswith(SEPARATOR):
        return DeclarationKind.FOLDER
    last = normalized.rsplit(SEPARATOR, 1)[-1]
    if last.find(".", 1) > 0:
        return DeclarationKind.EXPLICIT
    return DeclarationKind.FOLDER


def is_explicit(declaration: str) -> bool:
    return classify(declaration) == DeclarationKind.EXPLICIT


def normalize_path(path: str, root_aliases: Optional[Mapping[str, str]] = None) -> str:
    """
    Canonicalize a path string.

    Converts separators to ``/``, collapses repeated separators, strips
    leading ``./`` and applies at most one root-alias rewrite (longest alias
    prefix wins). A path naming the root itself (``./``) becomes ``.``.
    """
    raw = path.strip()
    result = re.sub(r"/{2,}", SEPARATOR, raw.replace("\\", SEPARATOR))
    while result.startswith("./"):
        result = result[2:]
    if raw and not result:
        result = ROOT

    if root_aliases:
        for alias in sorted(root_aliases, key=len, reverse=True):
            if alias and result.startswith(alias):
                result = root_aliases[alias] + result[len(alias):]
                break
    return result


def _find_brace_group(pattern: str) -> Optional[tuple[int, int]]:
    """Locate the first single-level ``{...}`` group, or None.

    Returns None when the first group is nested or unbalanced; the rest of
    the pattern is then treated as literal text.
    """
    start = pattern.find("{")
    if start < 0:
        return None
    end = pattern.find("}", start + 1)
    if end < 0:
        return None
    if "{" in pattern[start + 1:end]:
        return None
    return start, end


def expand_braces(pattern: str) -> list[str]:
    """
    Expand brace alternation into the cross product of plain patterns.

    ``a/{b,c}/{x,y}.md`` expands to four patterns. Results are deduplicated,
    keeping first-seen order.
    """
    group = _find_brace_group(pattern)
    if group is None:
        return [pattern]

    start, end = group
    prefix, body, suffix = pattern[:start], pattern[start + 1:end], pattern[end + 1:]

    expanded: list[str] = []
    seen: set[str] = set()
    for option in body.split(","):
        for tail in expand_braces(suffix):
            candidate = f"{prefix}{option}{tail}"
            if candidate not in seen:
                seen.add(candidate)
                expanded.append(candidate)
    return expanded


def _translate_segment(segment: str) -> str:
    out = []
    i = 0
    while i < len(segment):
        ch = segment[i]
        if ch == "*":
            # Runs of stars inside a segment never cross a separator
            while i + 1 < len(segment) and segment[i + 1] == "*":
                i += 1
            out.append("[^/]*")
        elif ch == "?":
            out.append("[^/]")
        else:
            out.append(re.escape(ch))
        i += 1
    return "".join(out)


def glob_to_regex(pattern: str) -> str:
    """
    Translate one brace-free glob into an anchored regular expression.

    A ``**`` segment matches zero or more whole path segments; ``*`` matches
    any run of characters except ``/``.
    """
    segments = pattern.split(SEPARATOR)
    parts: list[str] = []
    last = len(segments) - 1

    for i, segment in enumerate(segments):
        if segment == "**":
            if i == last:
                parts.append(".*")
            else:
                parts.append("(?:[^/]+/)*")
            continue
        parts.append(_translate_segment(segment))
        if i != last:
            parts.append("/")

    return "^" + "".join(parts) + "$"


@lru_cache(maxsize=4096)
def compile_pattern(pattern: str) -> tuple[Pattern[str], ...]:
    """Expand braces and compile every resulting glob (cached)."""
    return tuple(re.compile(glob_to_regex(p)) for p in expand_braces(pattern))


def static_base(declaration: str) -> str:
    """
    The folder a declaration targets, without a trailing separator.

    For patterns this is the prefix before the first segment containing a
    pattern character (``content/**/*.ts`` -> ``content``).
    """
    if not is_pattern(declaration):
        return declaration.rstrip(SEPARATOR)
    base: list[str] = []
    for segment in declaration.split(SEPARATOR):
        if is_pattern(segment):
            break
        base.append(segment)
    return SEPARATOR.join(base).rstrip(SEPARATOR)


class PathMatcher:
    """
    Decides whether a concrete file path is covered by a declaration.

    The root-alias table is supplied by the caller and is applied to
    declarations during normalization.
    """

    def __init__(self, root_aliases: Optional[Mapping[str, str]] = None):
        self.root_aliases = dict(root_aliases or {})

    def normalize(self, declaration: str) -> str:
        return normalize_path(declaration, self.root_aliases)

    def matches(self, declaration: str, file_path: str) -> bool:
        decl = self.normalize(declaration)
        target = normalize_path(file_path)
        if not decl:
            return False
        if decl == ROOT:
            return bool(target)

        # 1. Exact
        if decl == target:
            return True

        # 2. Folder prefix
        if not is_pattern(decl):
            folder = decl.rstrip(SEPARATOR)
            return bool(folder) and target.startswith(folder + SEPARATOR)

        # 3. Pattern
        return any(regex.match(target) for regex in compile_pattern(decl))

    def match_files(self, declaration: str, files: list[str]) -> list[str]:
        """Return the subset of ``files`` covered by ``declaration``."""
        return [f for f in files if self.matches(declaration, f)]
