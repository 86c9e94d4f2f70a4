"""Fix descriptors attached to diagnostics.

Fixes are inert descriptions until the surrounding tool executes them.
There are exactly two kinds:

- :class:`InstallRequirementsFix` installs the unsatisfied requirements
  of a unit through an installer (e.g.
  :class:`~reqcheck.core.inventory.PipInstaller`), suppressing
  diagnostics for the unit while it runs.
- :class:`AddRequirementFix` adds an undeclared package to the project's
  requirements artifact through an editor (e.g.
  :class:`~reqcheck.project.editor.ProjectEditor`).
"""

from __future__ import annotations

import asyncio
from enum import Enum
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, Sequence, Tuple, Union

from reqcheck.constants import REQUIREMENTS_FILE_NAME, SETUP_FILE_NAME
from reqcheck.core.analysis import AnalysisContext
from reqcheck.models.project import ProjectUnit, RequirementsArtifacts
from reqcheck.models.requirement import Requirement
from reqcheck.utils.logger import get_logger

logger = get_logger("fixes")


class Installer(Protocol):
    def install(self, requirements: Sequence[Requirement]) -> None: ...


class RequirementsEditor(Protocol):
    def prepend_line(self, path: Path, line: str) -> None: ...

    def append_install_requires(self, path: Path, package_name: str) -> None: ...

    def add_install_requires(self, path: Path, package_name: str) -> None: ...


# ---------------------------------------------------------------------------
# Install requirements
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InstallRequirementsFix:
    """Install the unsatisfied requirements of *unit*."""

    unit: ProjectUnit = field(compare=False)
    requirements: Tuple[Requirement, ...]

    @property
    def name(self) -> str:
        return "Install requirements"

    def execute(self, context: AnalysisContext, installer: Installer) -> None:
        """Run the installer with the unit's diagnostics suppressed.

        Suppression is lifted whether the installer succeeds or raises;
        installer errors propagate to the caller.
        """
        logger.debug("Installing %d requirement(s) for %s", len(self.requirements), self.unit.key)
        with context.suppressed(self.unit):
            installer.install(list(self.requirements))

    async def execute_async(self, context: AnalysisContext, installer: Installer) -> None:
        """Run :meth:`execute` on a worker thread."""
        await asyncio.to_thread(self.execute, context, installer)

    def to_json(self) -> Dict[str, Any]:
        return {
            "kind": "install-requirements",
            "name": self.name,
            "requirements": [str(req) for req in self.requirements],
        }


# ---------------------------------------------------------------------------
# Add requirement
# ---------------------------------------------------------------------------


class TargetArtifact(str, Enum):
    """Where an :class:`AddRequirementFix` writes, in priority order."""

    REQUIREMENTS_FILE = "requirements-file"
    SETUP_INSTALL_REQUIRES = "setup-install-requires"
    SETUP_CALL = "setup-call"
    NONE = "none"


def choose_target(artifacts: RequirementsArtifacts) -> TargetArtifact:
    """Pick the artifact an added requirement goes to."""
    if artifacts.requirements_file is not None:
        return TargetArtifact.REQUIREMENTS_FILE
    if artifacts.setup_file is not None and artifacts.has_install_requires:
        return TargetArtifact.SETUP_INSTALL_REQUIRES
    if artifacts.setup_file is not None and artifacts.has_setup_call:
        return TargetArtifact.SETUP_CALL
    return TargetArtifact.NONE


@dataclass(frozen=True)
class AddRequirementFix:
    """Declare *package_name* in the project's requirements artifact."""

    package_name: str
    target: TargetArtifact
    artifacts: RequirementsArtifacts = field(compare=False)

    @classmethod
    def for_artifacts(
        cls, package_name: str, artifacts: RequirementsArtifacts
    ) -> "AddRequirementFix":
        return cls(package_name, choose_target(artifacts), artifacts)

    @property
    def target_label(self) -> str:
        if self.target is TargetArtifact.REQUIREMENTS_FILE:
            return REQUIREMENTS_FILE_NAME
        if self.target in (TargetArtifact.SETUP_INSTALL_REQUIRES, TargetArtifact.SETUP_CALL):
            return SETUP_FILE_NAME
        return "project requirements"

    @property
    def target_path(self) -> Optional[Path]:
        if self.target is TargetArtifact.REQUIREMENTS_FILE:
            return self.artifacts.requirements_file
        if self.target is TargetArtifact.NONE:
            return None
        return self.artifacts.setup_file

    @property
    def name(self) -> str:
        return f"Add requirement '{self.package_name}' to {self.target_label}"

    def execute(self, editor: RequirementsEditor) -> bool:
        """Apply the edit.

        Returns:
            ``True`` if a file was changed, ``False`` for an inert fix.
        """
        path = self.target_path
        if path is None:
            logger.debug("No requirements artifact; '%s' not added", self.package_name)
            return False

        if self.target is TargetArtifact.REQUIREMENTS_FILE:
            editor.prepend_line(path, self.package_name)
        elif self.target is TargetArtifact.SETUP_INSTALL_REQUIRES:
            editor.append_install_requires(path, self.package_name)
        else:
            editor.add_install_requires(path, self.package_name)

        logger.info("Added '%s' to %s", self.package_name, path)
        return True

    def to_json(self) -> Dict[str, Any]:
        return {
            "kind": "add-requirement",
            "name": self.name,
            "package": self.package_name,
            "target": self.target.value,
        }


Fix = Union[InstallRequirementsFix, AddRequirementFix]
