"""
Unified data model exports for reqcheck.

This module re-exports all core data models to provide a stable and
convenient public API. Users can import models directly from
``reqcheck.models`` instead of individual submodules.

Example:
    >>> from reqcheck.models import Requirement, InstalledPackage, Diagnostic
"""

from __future__ import annotations

from reqcheck.models.requirement import Requirement
from reqcheck.models.package import InstalledPackage
from reqcheck.models.diagnostic import Diagnostic, DiagnosticCode, Severity
from reqcheck.models.project import (
    ImportReference,
    ProjectUnit,
    RequirementsArtifacts,
    SourceFile,
    SourceLocation,
)

__all__ = [
    "Requirement",
    "InstalledPackage",
    "Diagnostic",
    "DiagnosticCode",
    "Severity",
    "ImportReference",
    "ProjectUnit",
    "RequirementsArtifacts",
    "SourceFile",
    "SourceLocation",
]
