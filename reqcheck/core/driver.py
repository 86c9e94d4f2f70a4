"""Consistency driver: one analysis pass over a project unit.

An inspection runs two independent checks:

1. **Unsatisfied requirements** (once per unit): declared requirements
   that the target environment does not satisfy are reported in a single
   diagnostic on the unit, with an :class:`InstallRequirementsFix`.
2. **Undeclared packages** (per import reference): imports not covered by
   the standard library, the project itself or a declared requirement are
   reported with an :class:`AddRequirementFix`.

Nothing here raises into the caller's pass. A failing package manager makes
the first check indeterminate (no diagnostic) and leaves the second one
running on declared requirements alone. While an install fix runs for a
unit, inspections of that unit return no diagnostics at all.

Typical usage::

    context = AnalysisContext()
    driver = ConsistencyDriver(context)
    diagnostics = driver.inspect(unit, sources)
"""

from __future__ import annotations

from typing import Callable, Dict, FrozenSet, Iterable, List, Optional

from reqcheck.constants import (
    DEFAULT_CHECK_IMPORTS,
    DEFAULT_CHECK_INSTALLED,
    DEFAULT_TIMEOUT,
    STDLIB_MODULE_NAMES,
)
from reqcheck.core.analysis import AnalysisContext
from reqcheck.core.fixes import InstallRequirementsFix
from reqcheck.core.index import NameIndex
from reqcheck.core.inventory import EnvironmentInventory
from reqcheck.core.matcher import find_unsatisfied
from reqcheck.core.resolver import ImportResolver
from reqcheck.exceptions import PackageManagerError
from reqcheck.models.diagnostic import Diagnostic, DiagnosticCode
from reqcheck.models.package import InstalledPackage
from reqcheck.models.project import ProjectUnit, SourceFile
from reqcheck.models.requirement import Requirement
from reqcheck.utils.logger import get_logger

logger = get_logger("driver")

InventoryFactory = Callable[[str], EnvironmentInventory]


def unsatisfied_message(requirements: List[Requirement]) -> str:
    """Build the unit-level message, pluralized for several requirements.

    Example::

        >>> unsatisfied_message([Requirement("flask", ((">=", "1.0"),))])
        "Package requirement 'flask>=1.0' is not satisfied"
    """
    plural = len(requirements) > 1
    listed = ", ".join(f"'{req}'" for req in requirements)
    return "Package requirement{} {} {} not satisfied".format(
        "s" if plural else "",
        listed,
        "are" if plural else "is",
    )


class ConsistencyDriver:
    """Runs inspections of project units.

    Args:
        context: Shared per-unit suppression state.
        inventory_factory: Builds an inventory for an environment handle;
            defaults to :class:`EnvironmentInventory`.
        stdlib_names: Standard-library top-level names.
        ignore_packages: Import names never reported as undeclared.
        check_installed: Run the unsatisfied-requirements check.
        check_imports: Run the undeclared-package check.
        timeout: Package-manager timeout for the default inventory.
    """

    def __init__(
        self,
        context: AnalysisContext,
        *,
        inventory_factory: Optional[InventoryFactory] = None,
        stdlib_names: Iterable[str] = STDLIB_MODULE_NAMES,
        ignore_packages: Iterable[str] = (),
        check_installed: bool = DEFAULT_CHECK_INSTALLED,
        check_imports: bool = DEFAULT_CHECK_IMPORTS,
        timeout: int = DEFAULT_TIMEOUT,
    ) -> None:
        self.context = context
        self.inventory_factory: InventoryFactory = inventory_factory or (
            lambda interpreter: EnvironmentInventory(interpreter, timeout=timeout)
        )
        self.stdlib_names: FrozenSet[str] = frozenset(stdlib_names)
        self.ignore_packages: FrozenSet[str] = frozenset(ignore_packages)
        self.check_installed = check_installed
        self.check_imports = check_imports

    def inspect(
        self,
        unit: ProjectUnit,
        sources: Iterable[SourceFile] = (),
    ) -> List[Diagnostic]:
        """Inspect *unit* and the import references of *sources*.

        Returns:
            Diagnostics in order: the unit-level one first (if any), then
            one per undeclared import in source order.
        """
        if self.context.is_suppressed(unit):
            logger.debug("Skipping %s: packaging task in progress", unit.key)
            return []

        diagnostics: List[Diagnostic] = []

        installed: Optional[List[InstalledPackage]] = None
        top_level_names: Dict[str, FrozenSet[str]] = {}
        if unit.environment is not None:
            inventory = self.inventory_factory(unit.environment)
            installed = self._query_inventory(inventory)
            if installed is not None and self.check_imports:
                top_level_names = inventory.top_level_names()

        if self.check_installed:
            diagnostic = self._check_unsatisfied(unit, installed)
            if diagnostic is not None:
                diagnostics.append(diagnostic)

        if self.check_imports and unit.requirements is not None:
            diagnostics.extend(
                self._check_imports(unit, sources, installed, top_level_names)
            )

        logger.info("%s: %d diagnostic(s)", unit.name, len(diagnostics))
        return diagnostics

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def _query_inventory(
        self, inventory: EnvironmentInventory
    ) -> Optional[List[InstalledPackage]]:
        try:
            return inventory.get_packages()
        except PackageManagerError as exc:
            logger.warning("Installed packages unavailable, skipping check: %s", exc)
            return None

    def _check_unsatisfied(
        self,
        unit: ProjectUnit,
        installed: Optional[List[InstalledPackage]],
    ) -> Optional[Diagnostic]:
        if unit.requirements is None or installed is None:
            # No artifact, no environment, or an indeterminate inventory
            return None

        unsatisfied = find_unsatisfied(unit.requirements, installed)
        if not unsatisfied:
            return None

        return Diagnostic(
            location=unit.root,
            message=unsatisfied_message(unsatisfied),
            code=DiagnosticCode.UNSATISFIED_REQUIREMENTS,
            fix=InstallRequirementsFix(unit, tuple(unsatisfied)),
        )

    def _check_imports(
        self,
        unit: ProjectUnit,
        sources: Iterable[SourceFile],
        installed: Optional[List[InstalledPackage]],
        top_level_names: Dict[str, FrozenSet[str]],
    ) -> List[Diagnostic]:
        requirements = unit.requirements or []
        index = NameIndex.build(
            stdlib_names=self.stdlib_names,
            requirements=requirements,
            installed=installed,
            top_level_names=top_level_names,
            local_packages=unit.local_packages,
        )
        resolver = ImportResolver(
            index,
            requirements,
            unit.artifacts,
            ignored=self.ignore_packages,
        )

        diagnostics: List[Diagnostic] = []
        for source in sources:
            for reference in source.imports:
                diagnostic = resolver.check(reference)
                if diagnostic is not None:
                    diagnostics.append(diagnostic)
        return diagnostics
