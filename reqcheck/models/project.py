"""
Project-side data model for reqcheck.

These types describe what the surrounding tool hands to the engine: the
project unit being analyzed, the requirement artifacts it owns, and the
import references found in its sources.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from reqcheck.models.requirement import Requirement


@dataclass(frozen=True)
class SourceLocation:
    """Position of a finding inside a source file (1-based line)."""

    path: Path
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        if self.line:
            return f"{self.path}:{self.line}:{self.column + 1}"
        return str(self.path)


@dataclass(frozen=True)
class ImportReference:
    """
    One imported name as it appears in an import statement.

    ``chain`` holds the qualifier components root first, so
    ``import foo.bar as b`` and ``from foo.bar import baz`` both give
    ``("foo", "bar")``. Relative imports have an empty chain.
    """

    chain: Tuple[str, ...]
    location: Any = None

    @property
    def qualified_name(self) -> str:
        return ".".join(self.chain)


@dataclass(frozen=True)
class SourceFile:
    """The import references collected from one source file."""

    path: Path
    imports: Tuple[ImportReference, ...] = ()


@dataclass(frozen=True)
class RequirementsArtifacts:
    """
    Which requirement declarations exist for a project.

    Attributes:
        requirements_file: Path of ``requirements.txt``, if present.
        setup_file: Path of ``setup.py``, if present.
        has_setup_call: Whether ``setup_file`` contains a ``setup(...)`` call.
        has_install_requires: Whether that call passes an
            ``install_requires=[...]`` list literal.
    """

    requirements_file: Optional[Path] = None
    setup_file: Optional[Path] = None
    has_setup_call: bool = False
    has_install_requires: bool = False

    @property
    def exists(self) -> bool:
        return self.requirements_file is not None or self.has_setup_call


@dataclass
class ProjectUnit:
    """
    The unit of analysis: one project directory.

    Attributes:
        root: Project directory; also the unit's identity.
        environment: Interpreter of the target environment, or ``None``
            when the project has no environment to check against.
        requirements: Declared requirements, or ``None`` when the project
            has no requirements artifact at all.
        artifacts: Requirement artifacts found in the project.
        local_packages: Top-level packages and modules of the project itself.
    """

    root: Path
    environment: Optional[str] = None
    requirements: Optional[List[Requirement]] = None
    artifacts: RequirementsArtifacts = field(default_factory=RequirementsArtifacts)
    local_packages: FrozenSet[str] = frozenset()

    @property
    def key(self) -> str:
        """Identity used to key per-unit state."""
        return str(self.root.resolve())

    @property
    def name(self) -> str:
        return self.root.resolve().name or str(self.root)

    def to_json(self) -> Dict[str, Any]:
        return {
            "root": str(self.root),
            "environment": self.environment,
            "requirements": (
                [str(req) for req in self.requirements]
                if self.requirements is not None
                else None
            ),
        }
