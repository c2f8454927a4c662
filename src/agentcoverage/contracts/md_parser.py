"""
Markdown-to-Contract Parser.

Parses agent contract documents into structured ``AgentContract`` models.
The parser is a small grammar built from three independent pieces:

- a section scanner that builds the heading tree (H1 -> H6), ignoring
  headings inside fenced code blocks
- a table-row extractor that pulls backtick-quoted paths from the first
  column of pipe tables
- a fenced-path extractor that pulls path tokens out of code blocks,
  ignoring tree-drawing decoration

Expected document shape::

    ---
    name: widget-builder
    description: Builds widgets
    ---

    ## Knowledge
    ### Primary
    | Document | Why |
    |----------|-----|
    | `content/widget.spec.md` | Widget rules |
    ### Additional
    | `content/**/*.md` | Background |

    ## Scope
    ### Can Touch
    ```
    content/
    ├── widgets/      # all widgets
    ```

A document without these headings parses to a contract that declares
nothing. Absence of a section is never an error.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field

from agentcoverage.contracts.models import (
    DEFAULT_REFERENCE_ROOT,
    DEFAULT_REFERENCE_SUFFIX,
    AgentContract,
    AgentRole,
    KnowledgeDeclaration,
    expected_reference_for,
    infer_domain,
    infer_role,
)
from agentcoverage.paths import DeclarationKind, classify, is_explicit

logger = logging.getLogger(__name__)

HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.+?)\s*#*\s*$")
FENCE_PATTERN = re.compile(r"^\s*(```|~~~)")
TABLE_PATH_PATTERN = re.compile(r"^`([^`]+)`")
SEPARATOR_ROW_PATTERN = re.compile(r"^:?-{3,}:?$")

# Characters used to draw directory trees in scope blocks
TREE_CHARS = "│├└─┬┼┐┘┌┤┴|`+\\- \t"
INDENT_CHARS = TREE_CHARS.replace("`", "")
ANNOTATION_PATTERN = re.compile(r"\s+(?:#|←|<-|<--|\(|—|--\s).*$")
TRAILING_MARKS = "✓✗✔✘←→"
BARE_NAME_PATTERN = re.compile(r"^[\w@\[\]-]+$")


class Section(BaseModel):
    """Parsed markdown section."""
    heading: str = Field(..., description="Section heading text")
    level: int = Field(..., ge=1, le=6, description="Heading level (1-6)")
    start_line: int = Field(..., ge=0, description="Index of the heading line")
    end_line: int = Field(..., ge=0, description="Index one past the last line")
    lines: List[str] = Field(default_factory=list, description="Body lines, heading excluded")
    subsections: List["Section"] = Field(default_factory=list, description="Child sections")

    @property
    def content(self) -> str:
        return "\n".join(self.lines)

    def find(self, keyword: str) -> Optional["Section"]:
        """Depth-first search of descendants for a heading containing ``keyword``."""
        return find_section(self.subsections, keyword)


def _heading_key(text: str) -> str:
    """Lowercase heading text with emoji, markup and punctuation removed."""
    text = re.sub(r"[`*_]", "", text.lower())
    return re.sub(r"[^\w\s-]", " ", text).strip()


def scan_sections(lines: list[str]) -> list[Section]:
    """
    Build the heading tree of a document.

    Returns the top-level sections; each section's ``lines`` holds the body
    up to the next heading of the same or higher level.
    """
    headings: list[tuple[int, int, str]] = []
    in_fence = False
    for i, line in enumerate(lines):
        if FENCE_PATTERN.match(line):
            in_fence = not in_fence
            continue
        if in_fence:
            continue
        match = HEADING_PATTERN.match(line)
        if match:
            headings.append((i, len(match.group(1)), match.group(2).strip()))

    roots: list[Section] = []
    stack: list[Section] = []
    for idx, (line_no, level, text) in enumerate(headings):
        end = len(lines)
        for next_line, next_level, _ in headings[idx + 1:]:
            if next_level <= level:
                end = next_line
                break
        section = Section(
            heading=text,
            level=level,
            start_line=line_no,
            end_line=end,
            lines=lines[line_no + 1:end],
        )
        while stack and stack[-1].level >= level:
            stack.pop()
        if stack:
            stack[-1].subsections.append(section)
        else:
            roots.append(section)
        stack.append(section)
    return roots


def find_section(sections: list[Section], keyword: str) -> Optional[Section]:
    """Find the first section (depth-first) whose heading contains ``keyword``."""
    key = keyword.lower()
    for section in sections:
        if key in _heading_key(section.heading):
            return section
        found = find_section(section.subsections, keyword)
        if found is not None:
            return found
    return None


def extract_table_paths(lines: list[str]) -> list[str]:
    """
    Extract backtick-quoted paths from the first column of pipe tables.

    Header rows and separator rows have no backtick-quoted first cell and
    are skipped.
    """
    paths: list[str] = []
    for line in lines:
        stripped = line.strip()
        if not stripped.startswith("|"):
            continue
        cells = [c.strip() for c in stripped.strip("|").split("|")]
        if not cells or SEPARATOR_ROW_PATTERN.match(cells[0].replace(" ", "")):
            continue
        match = TABLE_PATH_PATTERN.match(cells[0])
        if match:
            path = match.group(1).strip()
            if path:
                paths.append(path)
    return paths


def clean_scope_line(line: str) -> Optional[str]:
    """
    Reduce one line of a scope block to a path token.

    Returns None for pure tree-drawing lines and for prose. A line holding
    a single bare word (``legacy``) is taken as a folder name.
    """
    text = line.lstrip(TREE_CHARS)
    if not text.strip():
        return None
    text = ANNOTATION_PATTERN.sub("", text).strip()
    if not text:
        return None
    words = text.split()
    token = words[0].strip("`").rstrip(TRAILING_MARKS)
    if not token or all(ch in TREE_CHARS for ch in token):
        return None
    if not any(ch in token for ch in "/.*{"):
        if len(words) > 1 or not BARE_NAME_PATTERN.match(token):
            logger.debug("Ignoring scope line without a path: %r", line)
            return None
    return token


def _tree_depth(line: str) -> int:
    """Width of the indentation and connector prefix of a scope line."""
    return len(line) - len(line.lstrip(INDENT_CHARS))


def extract_fenced_paths(lines: list[str]) -> list[str]:
    """
    Extract path tokens from every fenced code block in ``lines``.

    Indented entries of a drawn tree are resolved against the closest
    less-indented folder above them, so ``├── index.ts`` under
    ``engine/content/widgets/`` yields ``engine/content/widgets/index.ts``.
    """
    paths: list[str] = []
    in_fence = False
    parents: list[tuple[int, str]] = []
    for line in lines:
        if FENCE_PATTERN.match(line):
            in_fence = not in_fence
            parents = []
            continue
        if not in_fence:
            continue
        token = clean_scope_line(line)
        if token is None:
            continue

        depth = _tree_depth(line)
        while parents and parents[-1][0] >= depth:
            parents.pop()
        if parents and not token.startswith(parents[-1][1]):
            token = parents[-1][1] + token.lstrip("/")
        paths.append(token)

        if classify(token) == DeclarationKind.FOLDER:
            parents.append((depth, token.rstrip("/") + "/"))
    return paths


def split_frontmatter(content: str) -> tuple[dict, list[str]]:
    """Split YAML front matter from the document body."""
    lines = content.splitlines()
    if not lines or lines[0].strip() != "---":
        return {}, lines

    for i, line in enumerate(lines[1:], start=1):
        if line.strip() == "---":
            try:
                data = yaml.safe_load("\n".join(lines[1:i])) or {}
            except yaml.YAMLError:
                logger.debug("Ignoring invalid front matter")
                data = {}
            if not isinstance(data, dict):
                data = {}
            return data, lines[i + 1:]
    return {}, lines


class ContractParser:
    """
    Parse agent contract documents into ``AgentContract`` models.

    Example:
        parser = ContractParser()
        contract = parser.parse(text, default_name="widget-builder")
    """

    def __init__(
        self,
        reference_root: str = DEFAULT_REFERENCE_ROOT,
        reference_suffix: str = DEFAULT_REFERENCE_SUFFIX,
    ):
        self.reference_root = reference_root
        self.reference_suffix = reference_suffix

    def parse(
        self,
        content: str,
        default_name: str,
        source_path: Optional[str] = None,
    ) -> AgentContract:
        """
        Parse one contract document.

        Args:
            content: Raw markdown text
            default_name: Agent name used when front matter has no ``name``
            source_path: Where the document was read from (informational)
        """
        frontmatter, body = split_frontmatter(content)
        name = str(frontmatter.get("name") or default_name).strip()
        role = infer_role(name)
        domain = infer_domain(name)

        sections = scan_sections(body)
        knowledge = self._extract_knowledge(sections)

        output_scope: list[str] = []
        read_scope: list[str] = []
        if role == AgentRole.BUILDER:
            output_scope = self._extract_scope(sections, "can touch")
        elif role == AgentRole.REVIEWER:
            read_scope = self._extract_scope(sections, "can read")

        return AgentContract(
            name=name,
            role=role,
            domain=domain,
            expected_reference_path=expected_reference_for(
                domain, self.reference_root, self.reference_suffix
            ),
            description=str(frontmatter.get("description") or ""),
            knowledge=knowledge,
            output_scope=output_scope,
            read_scope=read_scope,
            source_path=source_path,
        )

    def parse_file(self, path: Path) -> AgentContract:
        """Read and parse a contract file. I/O errors propagate."""
        path = Path(path)
        return self.parse(
            path.read_text(encoding="utf-8"),
            default_name=path.stem,
            source_path=str(path),
        )

    def _extract_knowledge(self, sections: list[Section]) -> list[KnowledgeDeclaration]:
        knowledge_section = find_section(sections, "knowledge")
        if knowledge_section is None:
            return []

        declarations: list[KnowledgeDeclaration] = []
        for keyword, primary in (("primary", True), ("additional", False)):
            sub = knowledge_section.find(keyword)
            if sub is None:
                continue
            for path in extract_table_paths(sub.lines):
                declarations.append(
                    KnowledgeDeclaration(
                        path=path,
                        is_primary=primary,
                        is_explicit=is_explicit(path),
                    )
                )
        return declarations

    def _extract_scope(self, sections: list[Section], keyword: str) -> list[str]:
        scope_section = find_section(sections, "scope")
        if scope_section is None:
            return []
        sub = scope_section.find(keyword)
        if sub is None:
            return []
        return extract_fenced_paths(sub.lines)
