"""
Requirement data model for reqcheck.

This module defines a structured, immutable representation of a single
declared requirement, whether it came from a ``requirements.txt`` line or
from the ``install_requires`` list of a ``setup()`` call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional, Tuple

from packaging.utils import canonicalize_name

Spec = Tuple[str, str]


@dataclass(frozen=True)
class Requirement:
    """
    A named dependency with optional version constraints.

    Attributes:
        name: Package name as written in the declaration.
        specs: Ordered ``(operator, version)`` clauses; empty means any version.
        extras: Extras requested in ``name[extra]`` form.
        markers: Environment marker expression, kept verbatim.
        line_number: Line of the declaration in its file (``0`` if unknown).
    """

    name: str
    specs: Tuple[Spec, ...] = ()
    extras: FrozenSet[str] = frozenset()
    markers: Optional[str] = None
    line_number: int = field(default=0, compare=False)

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("Requirement name must not be empty")
        # Accept lists from callers; store tuples so the instance stays hashable
        object.__setattr__(self, "specs", tuple(tuple(spec) for spec in self.specs))
        object.__setattr__(self, "extras", frozenset(self.extras))

    @property
    def key(self) -> str:
        """PEP 503 normalized name used for indexing and comparison."""
        return canonicalize_name(self.name)

    def specifier_string(self) -> str:
        """Render the constraint clauses, e.g. ``>=1.0,<2.0``."""
        return ",".join(f"{operator}{version}" for operator, version in self.specs)

    def to_string(self, *, include_markers: bool = True) -> str:
        """
        Render the canonical requirement line.

        Args:
            include_markers: Whether to append ``; <markers>``.

        Returns:
            Requirement string such as ``requests[socks]>=2.0,<3``.
        """
        parts: List[str] = [self.name]

        if self.extras:
            parts.append(f"[{','.join(sorted(self.extras))}]")

        parts.append(self.specifier_string())

        result = "".join(parts)
        if include_markers and self.markers:
            result += f" ; {self.markers}"
        return result

    def same_constraints(self, other: "Requirement") -> bool:
        """Return True when both requirements name the same package and
        carry the same constraint clauses, in any order."""
        return self.key == other.key and set(self.specs) == set(other.specs)

    def __str__(self) -> str:
        return self.to_string()
