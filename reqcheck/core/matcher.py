"""Requirement matching against installed packages.

A requirement is satisfied when a package with the same normalized name is
installed and its version passes every constraint clause. Clauses are
evaluated with :class:`packaging.specifiers.Specifier`. Installed versions
that are not valid PEP 440 (vendor builds such as ``2023.x``) cannot be
handed to ``packaging`` and are compared segment by segment instead.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from packaging.specifiers import InvalidSpecifier, Specifier
from packaging.version import Version

from reqcheck.constants import VERSION_OPERATORS
from reqcheck.models.package import InstalledPackage
from reqcheck.models.requirement import Requirement
from reqcheck.utils.logger import get_logger
from reqcheck.utils.version_utils import (
    compare_segments,
    parse_version,
    release_prefix,
    split_segments,
)

logger = get_logger("matcher")


def _same_prefix(installed: str, prefix: List[str]) -> bool:
    leading = split_segments(installed)[: len(prefix)]
    return compare_segments(".".join(leading), ".".join(prefix)) == 0


def _legacy_contains(installed: str, specifier: Specifier) -> bool:
    """Evaluate *specifier* for a version string ``packaging`` rejects."""
    operator, version = specifier.operator, specifier.version

    if version.endswith(".*"):
        matched = _same_prefix(installed, split_segments(version[:-2]))
        return matched if operator == "==" else not matched

    result = compare_segments(installed, version)
    if operator == "~=":
        return result >= 0 and _same_prefix(installed, release_prefix(version))
    if operator == "==":
        return result == 0
    if operator == "!=":
        return result != 0
    if operator == ">=":
        return result >= 0
    if operator == "<=":
        return result <= 0
    if operator == ">":
        return result > 0
    return result < 0


def _clause_holds(
    installed_version: str,
    parsed: Optional[Version],
    operator: str,
    version: str,
) -> bool:
    if operator not in VERSION_OPERATORS:
        logger.debug("Unknown operator %r treated as unsatisfied", operator)
        return False

    try:
        specifier = Specifier(f"{operator}{version}")
    except InvalidSpecifier:
        logger.debug("Invalid clause %s%s treated as unsatisfied", operator, version)
        return False

    if parsed is not None:
        return specifier.contains(parsed, prereleases=True)
    return _legacy_contains(installed_version, specifier)


def satisfies(installed_version: str, operator: str, version: str) -> bool:
    """Evaluate one constraint clause against an installed version.

    Example::

        >>> satisfies("1.5", ">=", "1.0")
        True
        >>> satisfies("2.0.0", "<", "2.0")
        False
        >>> satisfies("1.4.7", "~=", "1.4.2")
        True
    """
    return _clause_holds(
        installed_version, parse_version(installed_version), operator, version
    )


def find_installed(
    requirement: Requirement,
    installed_packages: Iterable[InstalledPackage],
) -> Optional[InstalledPackage]:
    """Return the installed package named by *requirement*, if any."""
    key = requirement.key
    for package in installed_packages:
        if package.key == key:
            return package
    return None


def matches(
    requirement: Requirement,
    installed_packages: Iterable[InstalledPackage],
) -> bool:
    """Return True if *requirement* is satisfied by *installed_packages*.

    A requirement without constraints is satisfied by presence alone.
    """
    package = find_installed(requirement, installed_packages)
    if package is None:
        return False

    parsed = package.parsed_version
    return all(
        _clause_holds(package.version, parsed, operator, version)
        for operator, version in requirement.specs
    )


def find_unsatisfied(
    requirements: Iterable[Requirement],
    installed_packages: Iterable[InstalledPackage],
) -> List[Requirement]:
    """Return the requirements not satisfied by *installed_packages*,
    in declaration order."""
    installed = list(installed_packages)
    unsatisfied = [req for req in requirements if not matches(req, installed)]

    if unsatisfied:
        logger.debug(
            "Unsatisfied requirement(s): %s", ", ".join(str(req) for req in unsatisfied)
        )
    return unsatisfied
