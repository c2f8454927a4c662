"""
Centralized configuration for agentcoverage.

Uses Pydantic BaseSettings for environment variable integration
and validation.

Configuration sources (in order of precedence):
1. Explicit constructor arguments (CLI options)
2. Environment variables (AGENTCOVERAGE_*)
3. .env file
4. Default values

Example:
    from agentcoverage.config import get_config

    config = get_config()
    print(config.reference_root)

    # Override at runtime
    config = get_config(root="/srv/site", min_coverage=90)

Root aliases are given as JSON in the environment:
    export AGENTCOVERAGE_ROOT_ALIASES='{"creativeshire/": "engine/"}'
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from agentcoverage.contracts.models import DEFAULT_REFERENCE_ROOT, DEFAULT_REFERENCE_SUFFIX


class AgentCoverageConfig(BaseSettings):
    """
    Central configuration for agentcoverage.

    All settings can be overridden via environment variables
    prefixed with AGENTCOVERAGE_.
    """

    model_config = SettingsConfigDict(
        env_prefix="AGENTCOVERAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Inputs
    agents_dir: str = Field(
        default=".claude/agents",
        description="Directory containing agent contract documents",
    )
    root: str = Field(
        default=".",
        description="Root of the file tree being audited",
    )

    # Reference documents
    reference_root: str = Field(
        default=DEFAULT_REFERENCE_ROOT,
        description="Folder holding per-category reference documents",
    )
    reference_suffix: str = Field(
        default=DEFAULT_REFERENCE_SUFFIX,
        description="Filename suffix that marks a reference document",
    )

    # Path resolution
    root_aliases: Dict[str, str] = Field(
        default_factory=dict,
        description="Alias prefix -> canonical prefix rewrites for declarations",
    )

    # File catalogue
    include_extensions: List[str] = Field(
        default_factory=lambda: [".ts", ".tsx", ".css", ".md"],
        description="File extensions included in the catalogue (empty = all)",
    )
    exclude_dirs: List[str] = Field(
        default_factory=lambda: [
            ".git", "node_modules", ".next", "dist", "build", "coverage", "__pycache__",
        ],
        description="Directory names skipped while listing files",
    )

    # Analysis
    layer_rules_file: Optional[str] = Field(
        default=None,
        description="YAML file with ordered layer rules (defaults built in)",
    )
    min_coverage: Optional[float] = Field(
        default=None,
        ge=0,
        le=100,
        description="Fail the run when coverage is below this percentage",
    )

    # Logging
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="warning",
        description="Logging level for agentcoverage",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        description="Audit event format (json for aggregation, text for console)",
    )

    @field_validator("agents_dir", "root")
    @classmethod
    def expand_path(cls, v: str) -> str:
        """Expand ~ and environment variables in paths."""
        return os.path.expanduser(os.path.expandvars(v))

    @field_validator("include_extensions")
    @classmethod
    def dotted_extensions(cls, v: List[str]) -> List[str]:
        return [ext if ext.startswith(".") else f".{ext}" for ext in v if ext]

    def get_agents_path(self) -> Path:
        return Path(self.agents_dir)

    def get_root_path(self) -> Path:
        return Path(self.root)


# Global singleton
_config: Optional[AgentCoverageConfig] = None


def get_config(**overrides) -> AgentCoverageConfig:
    """
    Get the global configuration instance.

    Creates a singleton on first call. Subsequent calls return
    the same instance unless overrides are provided.
    """
    global _config

    if overrides or _config is None:
        _config = AgentCoverageConfig(**overrides)

    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None
