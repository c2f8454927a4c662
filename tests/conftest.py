"""
Pytest configuration and fixtures for agentcoverage tests.
"""

from __future__ import annotations

import os
import textwrap
from pathlib import Path
from typing import Callable, Dict, Generator, Iterable, Optional

import pytest

from agentcoverage.config import reset_config
from agentcoverage.contracts.models import (
    AgentContract,
    KnowledgeDeclaration,
    expected_reference_for,
    infer_domain,
    infer_role,
)
from agentcoverage.paths import is_explicit


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def clean_env() -> Generator[None, None, None]:
    """Isolate each test from AGENTCOVERAGE_* variables and the config singleton."""
    original: Dict[str, str] = {
        k: v for k, v in os.environ.items() if k.startswith("AGENTCOVERAGE_")
    }
    for key in original:
        os.environ.pop(key)
    reset_config()

    yield

    reset_config()
    for key in [k for k in os.environ if k.startswith("AGENTCOVERAGE_")]:
        os.environ.pop(key)
    os.environ.update(original)


# ============================================================================
# Contract Fixtures
# ============================================================================


def make_contract(
    name: str,
    primary: Iterable[str] = (),
    additional: Iterable[str] = (),
    can_touch: Iterable[str] = (),
    can_read: Iterable[str] = (),
    reference_root: str = "",
) -> AgentContract:
    """Build an ``AgentContract`` directly, the way the parser would."""
    role = infer_role(name)
    domain = infer_domain(name)
    knowledge = [
        KnowledgeDeclaration(path=p, is_primary=True, is_explicit=is_explicit(p))
        for p in primary
    ] + [
        KnowledgeDeclaration(path=p, is_primary=False, is_explicit=is_explicit(p))
        for p in additional
    ]
    return AgentContract(
        name=name,
        role=role,
        domain=domain,
        expected_reference_path=expected_reference_for(domain, reference_root),
        knowledge=knowledge,
        output_scope=list(can_touch) if role.value == "builder" else [],
        read_scope=list(can_read) if role.value == "reviewer" else [],
    )


@pytest.fixture
def contract_factory() -> Callable[..., AgentContract]:
    return make_contract


def render_contract(
    name: str,
    primary: Iterable[str] = (),
    additional: Iterable[str] = (),
    can_touch: Iterable[str] = (),
    can_read: Iterable[str] = (),
) -> str:
    """Render a contract document in the markdown shape agents use."""

    def table(paths: Iterable[str]) -> str:
        rows = "\n".join(f"| `{p}` | reference |" for p in paths)
        return f"| Document | Why |\n|----------|-----|\n{rows}"

    def block(paths: Iterable[str]) -> str:
        return "```\n" + "\n".join(paths) + "\n```"

    return textwrap.dedent(
        """\
        ---
        name: {name}
        description: Test agent {name}
        ---

        # {name}

        ## Knowledge

        ### Primary

        {primary}

        ### Additional

        {additional}

        ## Scope

        ### Can Touch

        {touch}

        ### Can Read

        {read}
        """
    ).format(
        name=name,
        primary=table(primary),
        additional=table(additional),
        touch=block(can_touch),
        read=block(can_read),
    )


@pytest.fixture
def agents_dir(tmp_path: Path) -> Path:
    path = tmp_path / "agents"
    path.mkdir()
    return path


@pytest.fixture
def write_contract(agents_dir: Path) -> Callable[..., Path]:
    """Write a rendered contract into the agents directory."""

    def _write(name: str, filename: Optional[str] = None, **kwargs) -> Path:
        path = agents_dir / (filename or f"{name}.md")
        path.write_text(render_contract(name, **kwargs), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def site_root(tmp_path: Path) -> Callable[[Iterable[str]], Path]:
    """Create an empty file for every relative path under a fresh root."""

    def _make(paths: Iterable[str]) -> Path:
        root = tmp_path / "site"
        for rel in paths:
            target = root / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text("", encoding="utf-8")
        root.mkdir(exist_ok=True)
        return root

    return _make
