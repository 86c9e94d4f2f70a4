"""
Core functionality exports for reqcheck.

This module provides convenient access to the analysis engine:

    from reqcheck.core import ConsistencyDriver, AnalysisContext

The engine is made of small collaborators (parser, matcher, inventory,
index, resolver, fixes) wired together by :class:`ConsistencyDriver`.
"""

from __future__ import annotations

from reqcheck.core.analysis import AnalysisContext
from reqcheck.core.driver import ConsistencyDriver
from reqcheck.core.fixes import (
    AddRequirementFix,
    Fix,
    InstallRequirementsFix,
    TargetArtifact,
)
from reqcheck.core.index import NameIndex, QualifiedName, Resolution, ResolutionKind, covers
from reqcheck.core.inventory import EnvironmentInventory, PipInstaller
from reqcheck.core.matcher import find_unsatisfied, matches
from reqcheck.core.parser import RequirementsParser, parse_requirement, parse_requirements
from reqcheck.core.resolver import ImportResolver, root_of

__all__ = [
    "AnalysisContext",
    "ConsistencyDriver",
    "AddRequirementFix",
    "Fix",
    "InstallRequirementsFix",
    "TargetArtifact",
    "NameIndex",
    "QualifiedName",
    "Resolution",
    "ResolutionKind",
    "covers",
    "EnvironmentInventory",
    "PipInstaller",
    "find_unsatisfied",
    "matches",
    "RequirementsParser",
    "parse_requirement",
    "parse_requirements",
    "ImportResolver",
    "root_of",
]
