"""
CLI commands for coverage audits.

Usage::

    agentcoverage audit --agents-dir .claude/agents --root .
    agentcoverage audit --format json --output coverage.json --min-coverage 90
    agentcoverage audit --alias creativeshire/=engine/ --layers layers.yaml
    agentcoverage explain engine/content/widgets/Button/index.tsx

Exit codes:
    0  audit completed (and met --min-coverage when given)
    1  coverage below --min-coverage
    2  no agent contracts could be parsed
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import click

from agentcoverage.audit import audit_directory, check_threshold, explain_file
from agentcoverage.config import AgentCoverageConfig, get_config
from agentcoverage.coverage.layers import LayerRuleFileError
from agentcoverage.coverage.models import CoverageResult
from agentcoverage.errors import EmptyContractSetError
from agentcoverage.logger import AuditLogger, configure_logging

logger = logging.getLogger(__name__)


def _parse_aliases(values: tuple[str, ...]) -> dict[str, str]:
    aliases: dict[str, str] = {}
    for value in values:
        alias, sep, canonical = value.partition("=")
        if not sep or not alias:
            raise click.BadParameter(
                f"expected ALIAS=CANONICAL, got {value!r}", param_hint="--alias"
            )
        aliases[alias] = canonical
    return aliases


def _common_options(fn):
    options = [
        click.option(
            "--agents-dir",
            type=click.Path(file_okay=False, path_type=Path),
            default=None,
            help="Directory of agent contracts (default: AGENTCOVERAGE_AGENTS_DIR or .claude/agents)",
        ),
        click.option(
            "--root",
            type=click.Path(file_okay=False, path_type=Path),
            default=None,
            help="Root of the audited file tree (default: AGENTCOVERAGE_ROOT or .)",
        ),
        click.option(
            "--alias",
            "aliases",
            multiple=True,
            help="Root alias rewrite ALIAS=CANONICAL (can specify multiple)",
        ),
        click.option(
            "--layers",
            "layers_file",
            type=click.Path(dir_okay=False, exists=True),
            default=None,
            help="YAML file with ordered layer rules",
        ),
        click.option("--verbose", "-v", is_flag=True, help="Debug logging"),
    ]
    for option in reversed(options):
        fn = option(fn)
    return fn


def _run(
    agents_dir: Optional[Path],
    root: Optional[Path],
    aliases: tuple[str, ...],
    layers_file: Optional[str],
    verbose: bool,
    **extra,
) -> tuple[CoverageResult, AuditLogger, AgentCoverageConfig]:
    overrides = {k: v for k, v in extra.items() if v is not None}
    if agents_dir is not None:
        overrides["agents_dir"] = str(agents_dir)
    if root is not None:
        overrides["root"] = str(root)
    if layers_file:
        overrides["layer_rules_file"] = layers_file
    if verbose:
        overrides["log_level"] = "debug"

    config = get_config(**overrides)
    if aliases:
        config = config.model_copy(
            update={"root_aliases": {**config.root_aliases, **_parse_aliases(aliases)}}
        )
    configure_logging(config.log_level, config.log_format)

    audit_log = AuditLogger()
    try:
        result = audit_directory(
            agents_dir=config.get_agents_path(),
            root=config.get_root_path(),
            config=config,
            audit_log=audit_log,
        )
    except EmptyContractSetError as e:
        click.echo(f"Error: {e} in {config.agents_dir}", err=True)
        raise SystemExit(2)
    except LayerRuleFileError as e:
        raise click.ClickException(str(e))
    return result, audit_log, config


@click.command()
@_common_options
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the report to a file instead of stdout",
)
@click.option(
    "--min-coverage",
    type=click.FloatRange(0, 100),
    default=None,
    help="Exit 1 when coverage is below this percentage",
)
def audit(
    agents_dir: Optional[Path],
    root: Optional[Path],
    aliases: tuple[str, ...],
    layers_file: Optional[str],
    verbose: bool,
    output_format: str,
    output: Optional[Path],
    min_coverage: Optional[float],
):
    """Audit agent contracts against the file tree."""
    result, audit_log, config = _run(
        agents_dir, root, aliases, layers_file, verbose, min_coverage=min_coverage
    )

    if output_format == "json":
        rendered = result.model_dump_json(indent=2)
    else:
        rendered = result.summary()

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(rendered + "\n", encoding="utf-8")
        click.echo(f"Report written to {output}")
    else:
        click.echo(rendered)

    minimum = config.min_coverage
    if not check_threshold(result, minimum):
        audit_log.log_threshold_failed(result.index.stats.coverage_percent, minimum)
        click.echo(
            f"Coverage {result.index.stats.coverage_percent}% is below the "
            f"minimum of {minimum:g}%",
            err=True,
        )
        raise SystemExit(1)


@click.command()
@_common_options
@click.argument("paths", nargs=-1, required=True)
def explain(
    agents_dir: Optional[Path],
    root: Optional[Path],
    aliases: tuple[str, ...],
    layers_file: Optional[str],
    verbose: bool,
    paths: tuple[str, ...],
):
    """Show which agents know, write and read each PATH."""
    result, _, _ = _run(agents_dir, root, aliases, layers_file, verbose)

    missing = False
    for path in paths:
        coverage = explain_file(result, path)
        if coverage is None:
            click.echo(f"{path}: not in the file catalogue")
            missing = True
            continue
        click.echo(path)
        click.echo(f"  known by:    {', '.join(coverage.known_by) or '-'}")
        click.echo(f"    explicit:  {', '.join(coverage.explicitly_known_by) or '-'}")
        click.echo(f"    pattern:   {', '.join(coverage.glob_known_by) or '-'}")
        click.echo(f"  writable by: {', '.join(coverage.writable_by) or '-'}")
        click.echo(f"  readable by: {', '.join(coverage.readable_by) or '-'}")

    if missing:
        raise SystemExit(1)
