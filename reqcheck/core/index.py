"""Standard-library and distribution index for import resolution.

The :class:`NameIndex` answers one question: where does an imported name
come from? It is built fresh for every inspection from

1. the standard-library module names,
2. the project's own top-level packages and modules,
3. the declared requirement names, and
4. the installed distributions with their importable top-level names,

and resolves names in that order.

Names are compared as :class:`QualifiedName` values, component by
component, never as substrings: ``foo.bar`` covers ``foo.bar.baz`` but
``foobar`` never covers ``foo``.
"""

from __future__ import annotations

from enum import Enum
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Mapping, Optional, Tuple

from packaging.utils import canonicalize_name

from reqcheck.models.package import InstalledPackage
from reqcheck.models.requirement import Requirement
from reqcheck.utils.logger import get_logger

logger = get_logger("index")


@dataclass(frozen=True)
class QualifiedName:
    """A dotted name split into components.

    Components are compared lowercased with ``-`` folded to ``_``, so the
    requirement ``zope.interface`` and the import ``zope.interface`` agree,
    as do ``my-lib`` and ``my_lib``.
    """

    components: Tuple[str, ...]

    @classmethod
    def from_dotted(cls, name: str) -> "QualifiedName":
        return cls(tuple(part for part in name.strip().split(".") if part))

    @classmethod
    def from_components(cls, *components: str) -> "QualifiedName":
        return cls(tuple(components))

    @property
    def normalized(self) -> Tuple[str, ...]:
        return tuple(part.lower().replace("-", "_") for part in self.components)

    @property
    def root(self) -> Optional[str]:
        return self.components[0] if self.components else None

    def matches_prefix(self, prefix: "QualifiedName") -> bool:
        """Return True if *prefix* equals the leading components of this name."""
        mine, theirs = self.normalized, prefix.normalized
        return bool(theirs) and mine[: len(theirs)] == theirs

    def __str__(self) -> str:
        return ".".join(self.components)


def covers(provided: str, imported: str) -> bool:
    """Return True if the *provided* name accounts for the *imported* one.

    Either name may be the prefix of the other: a namespace distribution
    ``foo.bar`` covers ``import foo.bar.baz`` and ``import foo``. Names are
    never matched as substrings.

    Example::

        >>> covers("foo.bar", "foo.bar.baz")
        True
        >>> covers("foobar", "foo")
        False
    """
    provided_name = QualifiedName.from_dotted(provided)
    imported_name = QualifiedName.from_dotted(imported)
    return imported_name.matches_prefix(provided_name) or provided_name.matches_prefix(
        imported_name
    )


class ResolutionKind(str, Enum):
    STDLIB = "stdlib"
    LOCAL = "local"
    PROVIDED = "provided"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Resolution:
    """Outcome of :meth:`NameIndex.resolve`.

    Attributes:
        kind: Where the name comes from.
        distributions: Names of the providing distributions
            (``PROVIDED`` only). A namespace package may have several.
    """

    kind: ResolutionKind
    distributions: FrozenSet[str] = frozenset()

    @classmethod
    def stdlib(cls) -> "Resolution":
        return cls(ResolutionKind.STDLIB)

    @classmethod
    def local(cls) -> "Resolution":
        return cls(ResolutionKind.LOCAL)

    @classmethod
    def unknown(cls) -> "Resolution":
        return cls(ResolutionKind.UNKNOWN)

    @classmethod
    def provided_by(cls, *distributions: str) -> "Resolution":
        return cls(ResolutionKind.PROVIDED, frozenset(distributions))


class NameIndex:
    """Maps top-level import names to their origin.

    Use :meth:`build` to assemble an index for one inspection; the index
    holds plain immutable data and is discarded afterwards.

    Example::

        >>> index = NameIndex.build(
        ...     stdlib_names={"os"},
        ...     requirements=[Requirement("flask")],
        ... )
        >>> index.resolve("os").kind
        <ResolutionKind.STDLIB: 'stdlib'>
        >>> index.resolve("flask.views").distributions
        frozenset({'flask'})
    """

    def __init__(
        self,
        stdlib_names: Iterable[str],
        local_names: Iterable[str],
        providers: Iterable[Tuple[str, str]],
    ) -> None:
        self._stdlib: FrozenSet[str] = frozenset(stdlib_names)
        self._local: Tuple[str, ...] = tuple(sorted(set(local_names)))
        # (importable name, distribution name) pairs, requirements first
        self._providers: Tuple[Tuple[str, str], ...] = tuple(providers)

    @classmethod
    def build(
        cls,
        *,
        stdlib_names: Iterable[str],
        requirements: Optional[Iterable[Requirement]] = None,
        installed: Optional[Iterable[InstalledPackage]] = None,
        top_level_names: Optional[Mapping[str, Iterable[str]]] = None,
        local_packages: Iterable[str] = (),
    ) -> "NameIndex":
        """Assemble an index.

        Args:
            stdlib_names: Top-level names of the standard library.
            requirements: Declared requirements; each name is taken as an
                importable name of the distribution it declares.
            installed: Installed distributions, or ``None`` when the
                inventory is unavailable.
            top_level_names: Normalized distribution name → importable
                top-level names, when the environment exposes them.
            local_packages: The project's own top-level names.
        """
        providers: List[Tuple[str, str]] = []

        for requirement in requirements or ():
            providers.append((requirement.name, requirement.name))

        top_levels = top_level_names or {}
        for package in installed or ():
            providers.append((package.name, package.name))
            for top_level in top_levels.get(package.key, ()):
                providers.append((top_level, package.name))

        index = cls(stdlib_names, local_packages, providers)
        logger.debug(
            "Index built: %d stdlib, %d local, %d provided name(s)",
            len(index._stdlib),
            len(index._local),
            len(providers),
        )
        return index

    def resolve(self, qualified_name: str) -> Resolution:
        """Classify an imported (possibly dotted) name."""
        name = QualifiedName.from_dotted(qualified_name)
        root = name.root
        if root is None:
            return Resolution.unknown()

        if root in self._stdlib:
            return Resolution.stdlib()

        if any(covers(local, qualified_name) for local in self._local):
            return Resolution.local()

        distributions = {
            distribution
            for provided, distribution in self._providers
            if covers(provided, qualified_name)
        }
        if distributions:
            return Resolution.provided_by(*distributions)

        return Resolution.unknown()


def requirement_covers(requirement: Requirement, distribution: str) -> bool:
    """Return True if *requirement* declares *distribution*.

    Matches on the normalized distribution name, or by the prefix rule on
    dotted names (``zope`` declared, ``zope.interface`` provided).
    """
    if requirement.key == canonicalize_name(distribution):
        return True
    return covers(requirement.name, distribution)
