"""
Layer classification for coverage rollups.

Files are assigned to a layer by an ordered list of glob rules; the first
matching rule wins and unmatched files fall into ``Other``. Rules can be
overridden with a YAML file::

    layers:
      - pattern: "engine/content/widgets/**"
        layer: "Content: Widgets"
      - pattern: "engine/**"
        layer: "Engine"
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Sequence

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from agentcoverage.errors import AgentCoverageError
from agentcoverage.paths import PathMatcher

logger = logging.getLogger(__name__)

OTHER_LAYER = "Other"


class LayerRule(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    pattern: str = Field(..., min_length=1)
    layer: str = Field(..., min_length=1)


class LayerRuleFile(BaseModel):
    model_config = ConfigDict(extra="forbid")

    layers: List[LayerRule] = Field(default_factory=list)


DEFAULT_LAYER_RULES: tuple[LayerRule, ...] = tuple(
    LayerRule(pattern=pattern, layer=layer)
    for pattern, layer in (
        ("**/*.spec.md", "Reference Specs"),
        ("engine/content/widgets/**", "Content: Widgets"),
        ("engine/content/sections/**", "Content: Sections"),
        ("engine/content/chrome/**", "Content: Chrome"),
        ("engine/content/**", "Content"),
        ("engine/experience/behaviours/**", "Experience: Behaviours"),
        ("engine/experience/effects/**", "Experience: Effects"),
        ("engine/experience/drivers/**", "Experience: Drivers"),
        ("engine/experience/**", "Experience"),
        ("engine/intro/**", "Intro"),
        ("engine/renderer/**", "Renderer"),
        ("engine/schema/**", "Schema"),
        ("engine/interface/**", "Interface"),
        ("engine/presets/**", "Presets"),
        ("engine/themes/**", "Themes"),
        ("engine/**", "Engine"),
        ("app/**", "App"),
        ("site/**", "Site"),
    )
)


class LayerRuleFileError(AgentCoverageError):
    """Raised when a layer rule file exists but cannot be used."""


def load_layer_rules(path: Path) -> tuple[LayerRule, ...]:
    """Load ordered layer rules from a YAML file."""
    path = Path(path)
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise LayerRuleFileError(f"Cannot read layer rules {path}: {e}") from e
    if isinstance(data, list):
        data = {"layers": data}
    try:
        parsed = LayerRuleFile.model_validate(data)
    except ValidationError as e:
        raise LayerRuleFileError(f"Invalid layer rules {path}: {e}") from e
    logger.debug("Loaded %d layer rules from %s", len(parsed.layers), path)
    return tuple(parsed.layers)


class LayerClassifier:
    """Assigns each file path to the first layer whose rule matches it."""

    def __init__(
        self,
        rules: Sequence[LayerRule] = DEFAULT_LAYER_RULES,
        matcher: PathMatcher | None = None,
    ):
        self.rules = tuple(rules)
        self.matcher = matcher or PathMatcher()

    def classify(self, path: str) -> str:
        for rule in self.rules:
            if self.matcher.matches(rule.pattern, path):
                return rule.layer
        return OTHER_LAYER

    @staticmethod
    def sort_key(layer: str) -> tuple[bool, str]:
        """Alphabetical, with ``Other`` last."""
        return (layer == OTHER_LAYER, layer)
