"""
Project discovery: requirement artifacts, sources and import references.

Everything here reads the project directory and produces the plain data the
engine consumes (:class:`~reqcheck.models.project.ProjectUnit` and
:class:`~reqcheck.models.project.SourceFile`). Python sources and
``setup.py`` are inspected with :mod:`ast`; nothing is ever executed.

Typical usage::

    from reqcheck.project.sources import load_project

    unit, sources = load_project(Path("."), interpreter=sys.executable)
"""

from __future__ import annotations

import ast
from dataclasses import dataclass
from pathlib import Path
from typing import FrozenSet, Iterable, List, Optional, Set, Tuple

from reqcheck.constants import (
    EXCLUDED_SOURCE_DIRS,
    INSTALL_REQUIRES_KEYWORD,
    PACKAGES_KEYWORD,
    REQUIREMENTS_FILE_NAME,
    SETUP_CALL_NAME,
    SETUP_FILE_NAME,
)
from reqcheck.core.parser import RequirementsParser, parse_requirements
from reqcheck.exceptions import FileOperationError, ParseError
from reqcheck.models.project import (
    ImportReference,
    ProjectUnit,
    RequirementsArtifacts,
    SourceFile,
    SourceLocation,
)
from reqcheck.models.requirement import Requirement
from reqcheck.utils.filesystem import iter_python_files, safe_read_file
from reqcheck.utils.logger import get_logger

logger = get_logger("sources")

#: Modules whose ``setup`` attribute counts as the setup call.
_SETUP_MODULES = frozenset({"setuptools", "distutils", "core"})


# ---------------------------------------------------------------------------
# Requirement artifacts
# ---------------------------------------------------------------------------


def find_requirements_file(root: Path) -> Optional[Path]:
    path = root / REQUIREMENTS_FILE_NAME
    return path if path.is_file() else None


def find_setup_file(root: Path) -> Optional[Path]:
    path = root / SETUP_FILE_NAME
    return path if path.is_file() else None


@dataclass(frozen=True)
class SetupCall:
    """
    What a ``setup.py`` declares through its ``setup(...)`` call.

    Attributes:
        path: The setup script.
        found: Whether a setup call exists in the script.
        install_requires: String elements of the ``install_requires=[...]``
            list literal, or ``None`` when the call has no such list.
        packages: String elements of the ``packages=[...]`` literal.
    """

    path: Path
    found: bool = False
    install_requires: Optional[Tuple[str, ...]] = None
    packages: Tuple[str, ...] = ()


def _is_setup_callee(func: ast.expr) -> bool:
    if isinstance(func, ast.Name):
        return func.id == SETUP_CALL_NAME
    if isinstance(func, ast.Attribute) and func.attr == SETUP_CALL_NAME:
        value = func.value
        if isinstance(value, ast.Name):
            return value.id in _SETUP_MODULES
        if isinstance(value, ast.Attribute):
            return value.attr in _SETUP_MODULES
    return False


def find_setup_call(tree: ast.AST) -> Optional[ast.Call]:
    """Return the first ``setup(...)`` call in *tree*, in source order."""
    calls = [
        node
        for node in ast.walk(tree)
        if isinstance(node, ast.Call) and _is_setup_callee(node.func)
    ]
    if not calls:
        return None
    return min(calls, key=lambda node: (node.lineno, node.col_offset))


def find_keyword(call: ast.Call, name: str) -> Optional[ast.keyword]:
    for keyword in call.keywords:
        if keyword.arg == name:
            return keyword
    return None


def _string_elements(node: ast.expr) -> Tuple[str, ...]:
    return tuple(
        element.value
        for element in getattr(node, "elts", ())
        if isinstance(element, ast.Constant) and isinstance(element.value, str)
    )


def read_setup_call(path: Path) -> SetupCall:
    """Inspect the setup script at *path*.

    A script that cannot be read or parsed is reported as having no setup
    call; the problem is logged.
    """
    try:
        tree = ast.parse(safe_read_file(path), filename=str(path))
    except (FileOperationError, SyntaxError, ValueError) as exc:
        logger.warning("Cannot inspect %s: %s", path, exc)
        return SetupCall(path)

    call = find_setup_call(tree)
    if call is None:
        logger.debug("No setup call in %s", path)
        return SetupCall(path)

    install_requires: Optional[Tuple[str, ...]] = None
    keyword = find_keyword(call, INSTALL_REQUIRES_KEYWORD)
    if keyword is not None and isinstance(keyword.value, ast.List):
        install_requires = _string_elements(keyword.value)

    packages: Tuple[str, ...] = ()
    keyword = find_keyword(call, PACKAGES_KEYWORD)
    if keyword is not None and isinstance(keyword.value, (ast.List, ast.Tuple)):
        packages = _string_elements(keyword.value)

    return SetupCall(path, True, install_requires, packages)


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------


def collect_imports(source: str, path: Path) -> List[ImportReference]:
    """Collect the import references of one Python source.

    ``import a.b, c`` yields ``("a", "b")`` and ``("c",)``;
    ``from a.b import c`` yields ``("a", "b")``; relative imports yield an
    empty chain.

    Raises:
        SyntaxError: The source does not parse.
    """
    tree = ast.parse(source, filename=str(path))
    references: List[ImportReference] = []

    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                location = SourceLocation(
                    path,
                    getattr(alias, "lineno", node.lineno),
                    getattr(alias, "col_offset", node.col_offset),
                )
                references.append(
                    ImportReference(tuple(alias.name.split(".")), location)
                )
        elif isinstance(node, ast.ImportFrom):
            location = SourceLocation(path, node.lineno, node.col_offset)
            if node.level or not node.module:
                references.append(ImportReference((), location))
            else:
                references.append(
                    ImportReference(tuple(node.module.split(".")), location)
                )

    references.sort(
        key=lambda ref: (ref.location.line, ref.location.column) if ref.location else (0, 0)
    )
    return references


def discover_sources(root: Path) -> List[SourceFile]:
    """Read every Python source below *root*.

    Files that cannot be read or parsed are logged and skipped.
    """
    sources: List[SourceFile] = []
    for path in iter_python_files(root):
        try:
            imports = collect_imports(safe_read_file(path), path)
        except (FileOperationError, SyntaxError, ValueError) as exc:
            logger.warning("Skipping %s: %s", path, exc)
            continue
        sources.append(SourceFile(path, tuple(imports)))

    logger.debug("Discovered %d source file(s) in %s", len(sources), root)
    return sources


def _top_level_names(directory: Path) -> Set[str]:
    names: Set[str] = set()
    if not directory.is_dir():
        return names

    for child in directory.iterdir():
        if child.name.startswith(".") or child.name in EXCLUDED_SOURCE_DIRS:
            continue
        if child.is_dir() and (child / "__init__.py").is_file():
            names.add(child.name)
        elif child.is_file() and child.suffix == ".py":
            names.add(child.stem)
    return names


def discover_local_packages(
    root: Path, setup_call: Optional[SetupCall] = None
) -> FrozenSet[str]:
    """Top-level packages and modules that belong to the project itself.

    Covers packages and modules in the project root, the ``src/`` layout,
    and the ``packages=[...]`` of the setup call.
    """
    names = _top_level_names(root) | _top_level_names(root / "src")
    if setup_call is not None:
        names.update(package.split(".")[0] for package in setup_call.packages if package)
    names.discard(Path(SETUP_FILE_NAME).stem)
    return frozenset(names)


# ---------------------------------------------------------------------------
# Project unit
# ---------------------------------------------------------------------------


def _declared_requirements(
    requirements_file: Optional[Path], setup_call: Optional[SetupCall]
) -> Optional[List[Requirement]]:
    if requirements_file is not None:
        try:
            return RequirementsParser(strict=False).parse_file(requirements_file)
        except (FileOperationError, ParseError) as exc:
            logger.warning("Cannot read %s, skipping its checks: %s", requirements_file, exc)
            return None
    if setup_call is not None and setup_call.found:
        return parse_requirements(setup_call.install_requires or ())
    return None


def load_project(
    root: Path,
    interpreter: Optional[str] = None,
    *,
    sources: Optional[Iterable[SourceFile]] = None,
) -> Tuple[ProjectUnit, List[SourceFile]]:
    """Build the project unit rooted at *root* and collect its sources.

    Requirements come from ``requirements.txt`` when present, otherwise
    from the setup call; they are ``None`` when the project has neither.
    A missing or circular ``-r`` include is logged and skipped; a
    requirements file that cannot be read at all leaves the requirements
    ``None``.

    Args:
        root: Project directory.
        interpreter: Target environment, or ``None`` for no environment.
        sources: Pre-collected sources; discovered when omitted.

    Raises:
        FileOperationError: *root* is not a directory.
    """
    if not root.is_dir():
        raise FileOperationError(
            f"Not a directory: {root}",
            file_path=str(root),
            operation="read",
        )

    requirements_file = find_requirements_file(root)
    setup_file = find_setup_file(root)
    setup_call = read_setup_call(setup_file) if setup_file is not None else None

    artifacts = RequirementsArtifacts(
        requirements_file=requirements_file,
        setup_file=setup_file,
        has_setup_call=bool(setup_call and setup_call.found),
        has_install_requires=bool(setup_call and setup_call.install_requires is not None),
    )

    unit = ProjectUnit(
        root=root,
        environment=interpreter,
        requirements=_declared_requirements(requirements_file, setup_call),
        artifacts=artifacts,
        local_packages=discover_local_packages(root, setup_call),
    )
    source_files = list(sources) if sources is not None else discover_sources(root)

    logger.info(
        "Loaded %s: %s requirement(s), %d source file(s)",
        unit.name,
        "no" if unit.requirements is None else len(unit.requirements),
        len(source_files),
    )
    return unit, source_files
