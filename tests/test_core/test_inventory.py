from __future__ import annotations

import json
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from reqcheck.core.inventory import EnvironmentInventory, PipInstaller
from reqcheck.exceptions import PackageManagerError
from reqcheck.models.package import InstalledPackage
from reqcheck.models.requirement import Requirement


def _completed(stdout: str = "", returncode: int = 0, stderr: str = "") -> MagicMock:
    return MagicMock(stdout=stdout, stderr=stderr, returncode=returncode)


@pytest.mark.unit
class TestEnvironmentInventory:
    """Tests for EnvironmentInventory with subprocess mocked."""

    def test_get_packages(self) -> None:
        """Test pip's JSON listing becomes InstalledPackage objects."""
        listing = json.dumps(
            [{"name": "Flask", "version": "2.3.3"}, {"name": "rich", "version": "13.7.0"}]
        )

        with patch("subprocess.run", return_value=_completed(listing)) as mock_run:
            packages = EnvironmentInventory("/venv/bin/python", timeout=5).get_packages()

        assert packages == [
            InstalledPackage("Flask", "2.3.3"),
            InstalledPackage("rich", "13.7.0"),
        ]
        command = mock_run.call_args.args[0]
        assert command[:4] == ["/venv/bin/python", "-m", "pip", "list"]
        assert "--format=json" in command
        assert mock_run.call_args.kwargs["timeout"] == 5

    def test_fresh_list_per_call(self) -> None:
        with patch("subprocess.run", return_value=_completed("[]")):
            inventory = EnvironmentInventory("python3")
            first = inventory.get_packages()
            second = inventory.get_packages()

        assert first == second == []
        assert first is not second

    def test_nonzero_exit(self) -> None:
        """Test a failing pip surfaces as PackageManagerError."""
        with patch("subprocess.run", return_value=_completed(returncode=1, stderr="No module named pip")):
            with pytest.raises(PackageManagerError) as exc_info:
                EnvironmentInventory("python3").get_packages()

        assert exc_info.value.returncode == 1
        assert "No module named pip" in exc_info.value.output

    def test_missing_interpreter(self) -> None:
        with patch("subprocess.run", side_effect=FileNotFoundError):
            with pytest.raises(PackageManagerError, match="Interpreter not found"):
                EnvironmentInventory("/nope/python").get_packages()

    def test_timeout(self) -> None:
        with patch("subprocess.run", side_effect=subprocess.TimeoutExpired("pip", 1)):
            with pytest.raises(PackageManagerError, match="timed out"):
                EnvironmentInventory("python3", timeout=1).get_packages()

    @pytest.mark.parametrize("output", ["not json", '{"name": "x"}', '[{"name": "x"}]'])
    def test_unparseable_output(self, output: str) -> None:
        with patch("subprocess.run", return_value=_completed(output)):
            with pytest.raises(PackageManagerError, match="Unexpected output"):
                EnvironmentInventory("python3").get_packages()

    def test_top_level_names(self) -> None:
        """Test distribution names are normalized and merged."""
        output = json.dumps({"PyYAML": ["_yaml", "yaml"], "zope.interface": ["zope"]})

        with patch("subprocess.run", return_value=_completed(output)):
            names = EnvironmentInventory("python3").top_level_names()

        assert names == {
            "pyyaml": frozenset({"_yaml", "yaml"}),
            "zope-interface": frozenset({"zope"}),
        }

    def test_top_level_names_failure_is_empty(self) -> None:
        """Test unavailable metadata yields an empty mapping, not an error."""
        with patch("subprocess.run", return_value=_completed(returncode=1)):
            assert EnvironmentInventory("python3").top_level_names() == {}

        with patch("subprocess.run", return_value=_completed("garbage")):
            assert EnvironmentInventory("python3").top_level_names() == {}


@pytest.mark.unit
class TestPipInstaller:
    """Tests for PipInstaller."""

    def test_install(self) -> None:
        with patch("subprocess.run", return_value=_completed()) as mock_run:
            PipInstaller("/venv/bin/python").install(
                [Requirement("flask", ((">=", "2"),), markers="os_name == 'posix'")]
            )

        command = mock_run.call_args.args[0]
        assert command[:4] == ["/venv/bin/python", "-m", "pip", "install"]
        assert command[-1] == "flask>=2 ; os_name == 'posix'"

    def test_nothing_to_install(self) -> None:
        with patch("subprocess.run") as mock_run:
            PipInstaller("python3").install([])

        mock_run.assert_not_called()

    def test_failure(self) -> None:
        with patch("subprocess.run", return_value=_completed(returncode=1, stderr="error")):
            with pytest.raises(PackageManagerError):
                PipInstaller("python3").install([Requirement("flask")])
