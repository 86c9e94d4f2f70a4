"""Unit tests for reqcheck.core.driver.

The inventory is replaced by a fake so every test controls exactly what is
"installed" in the target environment.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Sequence

import pytest

from reqcheck.core.analysis import AnalysisContext
from reqcheck.core.driver import ConsistencyDriver, unsatisfied_message
from reqcheck.core.fixes import AddRequirementFix, InstallRequirementsFix, TargetArtifact
from reqcheck.exceptions import PackageManagerError
from reqcheck.models.diagnostic import DiagnosticCode
from reqcheck.models.package import InstalledPackage
from reqcheck.models.project import (
    ImportReference,
    ProjectUnit,
    RequirementsArtifacts,
    SourceFile,
    SourceLocation,
)
from reqcheck.models.requirement import Requirement


class FakeInventory:
    """Inventory double returning canned data."""

    def __init__(
        self,
        packages: Sequence[InstalledPackage] = (),
        top_levels: Optional[Dict[str, FrozenSet[str]]] = None,
        error: Optional[PackageManagerError] = None,
    ) -> None:
        self.packages = list(packages)
        self.top_levels = top_levels or {}
        self.error = error
        self.queries = 0

    def get_packages(self) -> List[InstalledPackage]:
        self.queries += 1
        if self.error is not None:
            raise self.error
        return list(self.packages)

    def top_level_names(self) -> Dict[str, FrozenSet[str]]:
        return dict(self.top_levels)


def _driver(
    inventory: FakeInventory,
    context: Optional[AnalysisContext] = None,
    **kwargs,
) -> ConsistencyDriver:
    return ConsistencyDriver(
        context or AnalysisContext(),
        inventory_factory=lambda interpreter: inventory,
        stdlib_names={"os", "sys"},
        **kwargs,
    )


def _source(path: Path, *dotted: str) -> SourceFile:
    return SourceFile(
        path,
        tuple(
            ImportReference(tuple(name.split(".")), SourceLocation(path, line, 0))
            for line, name in enumerate(dotted, start=1)
        ),
    )


@pytest.fixture
def artifacts(tmp_path: Path) -> RequirementsArtifacts:
    requirements_file = tmp_path / "requirements.txt"
    requirements_file.write_text("", encoding="utf-8")
    return RequirementsArtifacts(requirements_file=requirements_file)


def _unit(
    root: Path,
    requirements: Optional[List[Requirement]],
    artifacts: RequirementsArtifacts,
    environment: Optional[str] = "python3",
) -> ProjectUnit:
    return ProjectUnit(
        root=root,
        environment=environment,
        requirements=requirements,
        artifacts=artifacts,
    )


@pytest.mark.unit
class TestUnsatisfiedMessage:
    def test_singular(self) -> None:
        message = unsatisfied_message([Requirement("flask", ((">=", "1.0"),))])

        assert message == "Package requirement 'flask>=1.0' is not satisfied"

    def test_plural(self) -> None:
        message = unsatisfied_message([Requirement("a"), Requirement("b", ((">=", "1"),))])

        assert message == "Package requirements 'a', 'b>=1' are not satisfied"


@pytest.mark.unit
class TestConsistencyDriver:
    """Tests for ConsistencyDriver.inspect."""

    def test_unsatisfied_requirement_is_reported_once(
        self, tmp_path: Path, artifacts: RequirementsArtifacts
    ) -> None:
        """Declared flask>=1.0, nothing installed, `import flask`: one unit
        diagnostic with an install fix and nothing for the import."""
        flask = Requirement("flask", ((">=", "1.0"),))
        unit = _unit(tmp_path, [flask], artifacts)
        sources = [_source(tmp_path / "app.py", "flask"), _source(tmp_path / "b.py", "flask")]

        diagnostics = _driver(FakeInventory()).inspect(unit, sources)

        assert len(diagnostics) == 1
        diagnostic = diagnostics[0]
        assert diagnostic.message == "Package requirement 'flask>=1.0' is not satisfied"
        assert diagnostic.code is DiagnosticCode.UNSATISFIED_REQUIREMENTS
        assert diagnostic.location == tmp_path
        assert isinstance(diagnostic.fix, InstallRequirementsFix)
        assert diagnostic.fix.requirements == (flask,)
        assert diagnostic.fix.unit is unit

    def test_undeclared_import_is_reported(
        self, tmp_path: Path, artifacts: RequirementsArtifacts
    ) -> None:
        """No requirements, stdlib {os}: `import os` passes, `import
        requests` gets an add-requirement fix for requirements.txt."""
        unit = _unit(tmp_path, [], artifacts)
        source = _source(tmp_path / "app.py", "os", "requests")

        diagnostics = _driver(FakeInventory()).inspect(unit, [source])

        assert [d.message for d in diagnostics] == [
            "Package 'requests' is not listed in project requirements"
        ]
        fix = diagnostics[0].fix
        assert isinstance(fix, AddRequirementFix)
        assert fix.target is TargetArtifact.REQUIREMENTS_FILE
        assert str(diagnostics[0].location) == f"{tmp_path / 'app.py'}:2:1"

    def test_undeclared_import_targets_setup_call(self, tmp_path: Path) -> None:
        """Without requirements.txt the fix goes to the setup call."""
        artifacts = RequirementsArtifacts(
            setup_file=tmp_path / "setup.py",
            has_setup_call=True,
            has_install_requires=True,
        )
        unit = _unit(tmp_path, [], artifacts)

        diagnostics = _driver(FakeInventory()).inspect(
            unit, [_source(tmp_path / "app.py", "requests")]
        )

        assert diagnostics[0].fix.target is TargetArtifact.SETUP_INSTALL_REQUIRES
        assert diagnostics[0].fix.name == "Add requirement 'requests' to setup.py"

    def test_inventory_failure_is_indeterminate(
        self, tmp_path: Path, artifacts: RequirementsArtifacts
    ) -> None:
        """A failing package manager yields no unsatisfied diagnostic."""
        unit = _unit(tmp_path, [Requirement("flask", ((">=", "1.0"),))], artifacts)
        inventory = FakeInventory(error=PackageManagerError("Package manager failed"))

        diagnostics = _driver(inventory).inspect(unit, [_source(tmp_path / "a.py", "flask")])

        assert diagnostics == []
        assert inventory.queries == 1

    def test_inventory_failure_keeps_import_check(
        self, tmp_path: Path, artifacts: RequirementsArtifacts
    ) -> None:
        unit = _unit(tmp_path, [Requirement("flask")], artifacts)
        inventory = FakeInventory(error=PackageManagerError("Package manager failed"))

        diagnostics = _driver(inventory).inspect(
            unit, [_source(tmp_path / "a.py", "flask", "numpy")]
        )

        assert [d.code for d in diagnostics] == [DiagnosticCode.UNDECLARED_PACKAGE]
        assert "'numpy'" in diagnostics[0].message

    def test_satisfied_and_declared(
        self, tmp_path: Path, artifacts: RequirementsArtifacts
    ) -> None:
        """Test a consistent project produces no diagnostics."""
        unit = _unit(tmp_path, [Requirement("PyYAML", ((">=", "6"),))], artifacts)
        inventory = FakeInventory(
            [InstalledPackage("PyYAML", "6.0.1")],
            {"pyyaml": frozenset({"yaml", "_yaml"})},
        )

        assert _driver(inventory).inspect(unit, [_source(tmp_path / "a.py", "yaml", "os")]) == []

    def test_installed_but_undeclared(
        self, tmp_path: Path, artifacts: RequirementsArtifacts
    ) -> None:
        unit = _unit(tmp_path, [], artifacts)
        inventory = FakeInventory(
            [InstalledPackage("PyYAML", "6.0.1")],
            {"pyyaml": frozenset({"yaml"})},
        )

        diagnostics = _driver(inventory).inspect(unit, [_source(tmp_path / "a.py", "yaml")])

        assert [d.message for d in diagnostics] == [
            "Package 'yaml' is not listed in project requirements"
        ]

    def test_suppressed_unit_reports_nothing(
        self, tmp_path: Path, artifacts: RequirementsArtifacts
    ) -> None:
        """Test inspections during an install return no diagnostics."""
        context = AnalysisContext()
        unit = _unit(tmp_path, [Requirement("flask")], artifacts)
        inventory = FakeInventory()
        driver = _driver(inventory, context)

        with context.suppressed(unit):
            assert driver.inspect(unit, [_source(tmp_path / "a.py", "numpy")]) == []

        assert inventory.queries == 0
        assert len(driver.inspect(unit, [_source(tmp_path / "a.py", "numpy")])) == 2

    def test_no_environment_skips_unsatisfied_check(
        self, tmp_path: Path, artifacts: RequirementsArtifacts
    ) -> None:
        unit = _unit(tmp_path, [Requirement("flask")], artifacts, environment=None)
        inventory = FakeInventory()

        diagnostics = _driver(inventory).inspect(unit, [_source(tmp_path / "a.py", "flask")])

        assert diagnostics == []
        assert inventory.queries == 0

    def test_no_requirements_artifact_skips_both_checks(self, tmp_path: Path) -> None:
        """Test a project that declares nothing at all is not inspected."""
        unit = _unit(tmp_path, None, RequirementsArtifacts())

        diagnostics = _driver(FakeInventory()).inspect(
            unit, [_source(tmp_path / "a.py", "requests")]
        )

        assert diagnostics == []

    def test_local_packages_are_not_reported(
        self, tmp_path: Path, artifacts: RequirementsArtifacts
    ) -> None:
        unit = _unit(tmp_path, [], artifacts)
        unit.local_packages = frozenset({"myapp"})

        diagnostics = _driver(FakeInventory()).inspect(
            unit, [_source(tmp_path / "a.py", "myapp.models")]
        )

        assert diagnostics == []

    def test_relative_imports_are_skipped(
        self, tmp_path: Path, artifacts: RequirementsArtifacts
    ) -> None:
        unit = _unit(tmp_path, [], artifacts)
        source = SourceFile(tmp_path / "a.py", (ImportReference(()),))

        assert _driver(FakeInventory()).inspect(unit, [source]) == []

    def test_check_switches_and_ignore_list(
        self, tmp_path: Path, artifacts: RequirementsArtifacts
    ) -> None:
        """Test configuration switches disable each check."""
        unit = _unit(tmp_path, [Requirement("flask")], artifacts)
        sources = [_source(tmp_path / "a.py", "numpy", "yaml")]

        assert _driver(FakeInventory(), check_installed=False, check_imports=False).inspect(
            unit, sources
        ) == []

        only_installed = _driver(FakeInventory(), check_imports=False).inspect(unit, sources)
        assert [d.code for d in only_installed] == [DiagnosticCode.UNSATISFIED_REQUIREMENTS]

        ignoring = _driver(
            FakeInventory(), check_installed=False, ignore_packages=["numpy"]
        ).inspect(unit, sources)
        assert [d.message for d in ignoring] == [
            "Package 'yaml' is not listed in project requirements"
        ]

    def test_diagnostics_per_import_occurrence(
        self, tmp_path: Path, artifacts: RequirementsArtifacts
    ) -> None:
        """Test every import of an undeclared package is reported."""
        unit = _unit(tmp_path, [], artifacts)
        sources = [
            _source(tmp_path / "a.py", "requests", "requests.adapters"),
            _source(tmp_path / "b.py", "requests"),
        ]

        diagnostics = _driver(FakeInventory()).inspect(unit, sources)

        assert len(diagnostics) == 3
        assert {d.fix.package_name for d in diagnostics} == {"requests"}
