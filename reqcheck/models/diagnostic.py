"""
Diagnostic data model for reqcheck.

A :class:`Diagnostic` is the only user-visible output of an analysis
pass: a location, a message, a fixed warning severity and an optional fix
descriptor for the surrounding tool to execute.
"""

from __future__ import annotations

from enum import Enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from reqcheck.core.fixes import Fix


class Severity(str, Enum):
    WARNING = "warning"


class DiagnosticCode(str, Enum):
    """Kind of finding."""

    UNSATISFIED_REQUIREMENTS = "unsatisfied-requirements"
    UNDECLARED_PACKAGE = "undeclared-package"


@dataclass(frozen=True)
class Diagnostic:
    """
    One finding of an analysis pass.

    Attributes:
        location: Opaque handle supplied by the caller (a source location
            for imports, the project root for unit-level findings).
        message: Human-readable description.
        code: Kind of finding.
        fix: Optional fix descriptor.
        severity: Always :attr:`Severity.WARNING`.
    """

    location: Any
    message: str
    code: DiagnosticCode
    fix: Optional["Fix"] = None
    severity: Severity = Severity.WARNING

    def to_json(self) -> Dict[str, Any]:
        entry: Dict[str, Any] = {
            "location": str(self.location),
            "severity": self.severity.value,
            "code": self.code.value,
            "message": self.message,
        }
        if self.fix is not None:
            entry["fix"] = self.fix.to_json()
        return entry

    def __str__(self) -> str:
        return f"{self.location}: {self.severity.value}: {self.message}"
