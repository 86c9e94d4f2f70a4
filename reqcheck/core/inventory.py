"""Installed-package inventory and installer for a target environment.

Both classes drive the environment's own interpreter in a subprocess, so
the environment being checked does not have to be the one reqcheck runs
in:

- :class:`EnvironmentInventory` lists installed distributions with
  ``pip list --format=json`` and maps them to their importable top-level
  names using the environment's distribution metadata.
- :class:`PipInstaller` installs requirements with ``pip install``.

Every call is blocking and may be slow. Failures surface as
:class:`~reqcheck.exceptions.PackageManagerError`; no retries are made.

Typical usage::

    inventory = EnvironmentInventory(sys.executable)
    try:
        packages = inventory.get_packages()
    except PackageManagerError:
        packages = None  # indeterminate
"""

from __future__ import annotations

import sys
import json
import subprocess
from typing import Any, Dict, FrozenSet, List, Optional, Sequence

from packaging.utils import canonicalize_name

from reqcheck.constants import DEFAULT_TIMEOUT
from reqcheck.exceptions import PackageManagerError
from reqcheck.models.package import InstalledPackage
from reqcheck.models.requirement import Requirement
from reqcheck.utils.logger import get_logger

logger = get_logger("inventory")

# Runs inside the target interpreter; prints {distribution: [top-level names]}
_TOP_LEVEL_SCRIPT = """\
import json
from collections import defaultdict
from importlib import metadata

names = defaultdict(set)
for top_level, distributions in metadata.packages_distributions().items():
    for distribution in distributions:
        names[distribution].add(top_level)
print(json.dumps({dist: sorted(tops) for dist, tops in names.items()}))
"""


def _run(command: Sequence[str], timeout: int) -> str:
    """Run *command* and return its stdout, raising on any failure."""
    logger.debug("Running %s", " ".join(command))
    try:
        completed = subprocess.run(
            list(command),
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError as exc:
        raise PackageManagerError(
            f"Interpreter not found: {command[0]}",
            command=command,
        ) from exc
    except subprocess.TimeoutExpired as exc:
        raise PackageManagerError(
            f"Package manager timed out after {timeout}s",
            command=command,
        ) from exc
    except OSError as exc:
        raise PackageManagerError(
            f"Cannot run package manager: {exc}",
            command=command,
        ) from exc

    if completed.returncode != 0:
        raise PackageManagerError(
            "Package manager failed",
            command=command,
            returncode=completed.returncode,
            output=completed.stderr or completed.stdout,
        )

    return completed.stdout


class EnvironmentInventory:
    """Lists what is installed in the environment of *interpreter*.

    Args:
        interpreter: Python executable of the target environment.
            Defaults to the running interpreter.
        timeout: Seconds allowed per package-manager call.
    """

    def __init__(
        self,
        interpreter: Optional[str] = None,
        timeout: int = DEFAULT_TIMEOUT,
    ) -> None:
        self.interpreter: str = interpreter or sys.executable
        self.timeout: int = timeout

    def get_packages(self) -> List[InstalledPackage]:
        """Return the installed distributions, freshly queried.

        Raises:
            PackageManagerError: pip is unavailable, failed, or printed
                something that is not its JSON listing.
        """
        command = [
            self.interpreter,
            "-m",
            "pip",
            "list",
            "--format=json",
            "--disable-pip-version-check",
        ]
        output = _run(command, self.timeout)

        try:
            entries: List[Dict[str, Any]] = json.loads(output)
            packages = [InstalledPackage.from_json(entry) for entry in entries]
        except (ValueError, TypeError, KeyError) as exc:
            raise PackageManagerError(
                f"Unexpected output from pip list: {exc}",
                command=command,
                output=output,
            ) from exc

        logger.debug("%d package(s) installed in %s", len(packages), self.interpreter)
        return packages

    def top_level_names(self) -> Dict[str, FrozenSet[str]]:
        """Map each installed distribution (normalized) to its top-level
        importable names.

        The data is optional: if the metadata cannot be read, a warning is
        logged and an empty mapping is returned.
        """
        command = [self.interpreter, "-c", _TOP_LEVEL_SCRIPT]
        try:
            raw: Dict[str, List[str]] = json.loads(_run(command, self.timeout))
        except PackageManagerError as exc:
            logger.warning("Cannot read top-level names from %s: %s", self.interpreter, exc)
            return {}
        except ValueError as exc:
            logger.warning("Unexpected top-level name listing: %s", exc)
            return {}

        names: Dict[str, FrozenSet[str]] = {}
        for distribution, top_levels in raw.items():
            key = canonicalize_name(distribution)
            names[key] = names.get(key, frozenset()) | frozenset(top_levels)
        return names


class PipInstaller:
    """Installs requirements into the environment of *interpreter*."""

    def __init__(
        self,
        interpreter: Optional[str] = None,
        timeout: int = DEFAULT_TIMEOUT,
    ) -> None:
        self.interpreter: str = interpreter or sys.executable
        self.timeout: int = timeout

    def install(self, requirements: Sequence[Requirement]) -> None:
        """Run ``pip install`` for *requirements*.

        Raises:
            PackageManagerError: The installation failed.
        """
        if not requirements:
            return

        command = [
            self.interpreter,
            "-m",
            "pip",
            "install",
            "--disable-pip-version-check",
            *(req.to_string() for req in requirements),
        ]
        logger.info("Installing %s", ", ".join(str(req) for req in requirements))
        _run(command, self.timeout)
