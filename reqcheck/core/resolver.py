"""Import resolver: is an imported package covered by the requirements?"""

from __future__ import annotations

from typing import FrozenSet, Iterable, Optional, Sequence

from reqcheck.core.fixes import AddRequirementFix
from reqcheck.core.index import NameIndex, ResolutionKind, requirement_covers
from reqcheck.models.diagnostic import Diagnostic, DiagnosticCode
from reqcheck.models.project import ImportReference, RequirementsArtifacts
from reqcheck.models.requirement import Requirement
from reqcheck.utils.logger import get_logger

logger = get_logger("resolver")


def root_of(chain: Sequence[str]) -> Optional[str]:
    """Return the root component of a qualifier chain.

    The chain is ordered root first; an empty chain (or an empty root, as
    produced for relative imports) has no root.

    Example::

        >>> root_of(("foo", "bar", "baz"))
        'foo'
        >>> root_of(()) is None
        True
    """
    if not chain:
        return None
    return chain[0] or None


class ImportResolver:
    """Checks import references against an index and the declared requirements.

    Args:
        index: Name index for the current inspection.
        requirements: Declared requirements of the unit.
        artifacts: The unit's requirement artifacts, used to target fixes.
        ignored: Import names that are never reported.
    """

    def __init__(
        self,
        index: NameIndex,
        requirements: Iterable[Requirement],
        artifacts: RequirementsArtifacts,
        ignored: Iterable[str] = (),
    ) -> None:
        self.index = index
        self.requirements = tuple(requirements)
        self.artifacts = artifacts
        self.ignored: FrozenSet[str] = frozenset(name.lower() for name in ignored)

    def is_covered(self, package_name: str) -> bool:
        """Return True if importing *package_name* needs no new requirement."""
        resolution = self.index.resolve(package_name)

        if resolution.kind in (ResolutionKind.STDLIB, ResolutionKind.LOCAL):
            return True

        if resolution.kind is ResolutionKind.PROVIDED:
            return any(
                requirement_covers(requirement, distribution)
                for distribution in resolution.distributions
                for requirement in self.requirements
            )

        return False

    def check(self, reference: ImportReference) -> Optional[Diagnostic]:
        """Return an "undeclared package" diagnostic for *reference*, if any."""
        package_name = root_of(reference.chain)
        if package_name is None:
            return None

        if package_name.lower() in self.ignored:
            logger.debug("Ignoring import of '%s'", package_name)
            return None

        if self.is_covered(package_name):
            return None

        return Diagnostic(
            location=reference.location,
            message=f"Package '{package_name}' is not listed in project requirements",
            code=DiagnosticCode.UNDECLARED_PACKAGE,
            fix=AddRequirementFix.for_artifacts(package_name, self.artifacts),
        )
