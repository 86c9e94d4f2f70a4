"""
Installed package data model for reqcheck.

An :class:`InstalledPackage` is one ``(name, version)`` pair reported by
the environment's package manager. Instances are produced fresh on every
inventory query and never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from packaging.utils import canonicalize_name
from packaging.version import Version

from reqcheck.utils.version_utils import parse_version


@dataclass(frozen=True)
class InstalledPackage:
    """
    A distribution installed in the target environment.

    Attributes:
        name: Distribution name as reported by the package manager.
        version: Installed version string.
    """

    name: str
    version: str

    @property
    def key(self) -> str:
        """PEP 503 normalized distribution name."""
        return canonicalize_name(self.name)

    @property
    def parsed_version(self) -> Optional[Version]:
        """PEP 440 version, or ``None`` for non-standard version strings."""
        return parse_version(self.version)

    @classmethod
    def from_json(cls, entry: Dict[str, Any]) -> "InstalledPackage":
        """Build from one element of ``pip list --format=json`` output."""
        return cls(name=str(entry["name"]), version=str(entry["version"]))

    def __str__(self) -> str:
        return f"{self.name} {self.version}"
