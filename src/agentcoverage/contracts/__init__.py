"""
Agent contract parsing.

Public API::

    from agentcoverage.contracts import (
        # Models
        AgentContract,
        AgentRole,
        KnowledgeDeclaration,
        # Parser
        ContractParser,
        # Loader
        load_contracts,
        ContractReadError,
    )
"""

from agentcoverage.contracts.loader import (
    ContractLoadReport,
    ContractReadError,
    SkippedContract,
    load_contracts,
)
from agentcoverage.contracts.md_parser import (
    ContractParser,
    Section,
    extract_fenced_paths,
    extract_table_paths,
    find_section,
    scan_sections,
)
from agentcoverage.contracts.models import (
    DOMAIN_CATEGORY_MAP,
    AgentContract,
    AgentRole,
    KnowledgeDeclaration,
    expected_reference_for,
    infer_domain,
    infer_role,
)

__all__ = [
    # Models
    "AgentContract",
    "AgentRole",
    "KnowledgeDeclaration",
    "DOMAIN_CATEGORY_MAP",
    "expected_reference_for",
    "infer_domain",
    "infer_role",
    # Parser
    "ContractParser",
    "Section",
    "scan_sections",
    "find_section",
    "extract_table_paths",
    "extract_fenced_paths",
    # Loader
    "load_contracts",
    "ContractLoadReport",
    "ContractReadError",
    "SkippedContract",
]
