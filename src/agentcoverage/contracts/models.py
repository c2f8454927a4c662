"""
Pydantic models for parsed agent contracts.

An agent contract is a markdown document that declares what one contributor
may know about (Knowledge), modify (Can Touch) or inspect (Can Read).
Contracts are parsed once per run and never mutated afterwards.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AgentRole(str, Enum):
    """Role inferred from the contract name suffix."""
    BUILDER = "builder"          # name ends with -builder, owns an output scope
    REVIEWER = "reviewer"        # name ends with -reviewer, owns a read scope
    COORDINATOR = "coordinator"  # everything else


ROLE_SUFFIXES: dict[AgentRole, str] = {
    AgentRole.BUILDER: "-builder",
    AgentRole.REVIEWER: "-reviewer",
}

# Domain -> reference category folder. Domains not listed have no
# expected reference document.
DOMAIN_CATEGORY_MAP: dict[str, str] = {
    # Content layer
    "widget": "content",
    "section": "content",
    "chrome": "content",
    "feature": "content",
    "layout": "content",
    "pattern": "content",
    "decorator": "content",
    "action": "content",
    # Experience layer
    "behaviour": "experience",
    "driver": "experience",
    "effect": "experience",
    "trigger": "experience",
    "transition": "experience",
    "experience": "experience",
    "timeline": "experience",
    "navigation": "experience",
    "composition": "experience",
    "intro": "experience",
    # Core
    "renderer": "renderer",
    "schema": "schema",
    "interface": "interface",
    # Site
    "preset": "site",
    "theme": "site",
}

DEFAULT_REFERENCE_ROOT = ".claude/architecture/specs/reference"
DEFAULT_REFERENCE_SUFFIX = ".spec.md"


def infer_role(name: str) -> AgentRole:
    """Infer an agent's role from its name suffix."""
    for role, suffix in ROLE_SUFFIXES.items():
        if name.endswith(suffix):
            return role
    return AgentRole.COORDINATOR


def infer_domain(name: str) -> Optional[str]:
    """Strip the role suffix from a name. Coordinators have no domain."""
    role = infer_role(name)
    if role == AgentRole.COORDINATOR:
        return None
    domain = name[: -len(ROLE_SUFFIXES[role])]
    return domain or None


def expected_reference_for(
    domain: Optional[str],
    reference_root: str = DEFAULT_REFERENCE_ROOT,
    suffix: str = DEFAULT_REFERENCE_SUFFIX,
) -> Optional[str]:
    """Build the reference document path a domain's agents must know."""
    if not domain:
        return None
    category = DOMAIN_CATEGORY_MAP.get(domain)
    if category is None:
        return None
    root = reference_root.strip("/")
    filename = f"{domain}{suffix}"
    return f"{root}/{category}/{filename}" if root else f"{category}/{filename}"


class KnowledgeDeclaration(BaseModel):
    """One path entry from a contract's Primary or Additional knowledge table."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str = Field(..., description="Path exactly as written in the contract")
    is_primary: bool = Field(..., description="Declared under 'Primary' rather than 'Additional'")
    is_explicit: bool = Field(
        ...,
        description="Concrete filename with an extension (not a folder or pattern)",
    )


class AgentContract(BaseModel):
    """
    One parsed agent contract.

    Example:
        contract = AgentContract(
            name="widget-builder",
            role=AgentRole.BUILDER,
            domain="widget",
            expected_reference_path=".claude/architecture/specs/reference/content/widget.spec.md",
            knowledge=[
                KnowledgeDeclaration(path="content/widget.spec.md", is_primary=True, is_explicit=True),
            ],
            output_scope=["content/"],
        )
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1, description="Unique agent identifier")
    role: AgentRole
    domain: Optional[str] = None
    expected_reference_path: Optional[str] = None
    description: str = ""
    knowledge: List[KnowledgeDeclaration] = Field(default_factory=list)
    output_scope: List[str] = Field(
        default_factory=list, description="Can Touch paths (builders only)"
    )
    read_scope: List[str] = Field(
        default_factory=list, description="Can Read paths (reviewers only)"
    )
    source_path: Optional[str] = None

    @property
    def primary_explicit_paths(self) -> list[str]:
        """Paths declared as Primary knowledge that name concrete files."""
        return [k.path for k in self.knowledge if k.is_primary and k.is_explicit]

    @property
    def family(self) -> str:
        """Leading token of the domain, used to group related builders."""
        base = self.domain or self.name
        return base.split("-", 1)[0]
