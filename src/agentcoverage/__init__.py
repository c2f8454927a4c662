"""
agentcoverage - audit agent contracts against a file tree.

Given a set of agent contracts (markdown documents declaring Knowledge,
Can Touch and Can Read paths) and a file catalogue, reports which files no
agent knows, which folders several builders may write, which folders have
no writer at all and which agents miss their reference documents.

Example usage:
    from agentcoverage import ContractParser, run_audit

    contract = ContractParser().parse(text, default_name="widget-builder")
    result = run_audit([contract], files)
    print(result.summary())
"""

from agentcoverage.audit import audit_directory, check_threshold, explain_file, run_audit
from agentcoverage.contracts import AgentContract, AgentRole, ContractParser, KnowledgeDeclaration
from agentcoverage.coverage import (
    CoverageAnalyzer,
    CoverageIndexBuilder,
    CoverageResult,
)
from agentcoverage.errors import AgentCoverageError, EmptyContractSetError
from agentcoverage.paths import PathMatcher

__version__ = "0.1.0"

__all__ = [
    "AgentContract",
    "AgentCoverageError",
    "AgentRole",
    "ContractParser",
    "CoverageAnalyzer",
    "CoverageIndexBuilder",
    "CoverageResult",
    "EmptyContractSetError",
    "KnowledgeDeclaration",
    "PathMatcher",
    "audit_directory",
    "check_threshold",
    "explain_file",
    "run_audit",
]
