"""Requirement parser for requirement declarations.

Two entry points:

- :func:`parse_requirement` turns one declaration string such as
  ``"flask[async]>=1.0,<2.0"`` into a :class:`Requirement`.
- :class:`RequirementsParser` reads pip-style ``requirements.txt`` files,
  following ``-r`` includes.

Parsing is lenient. Each constraint clause is validated on its own with
:class:`packaging.specifiers.Specifier`; an invalid clause is dropped and
the remaining clauses are kept. Only an unreadable package name makes the
whole declaration fail, and even then the result is ``None`` rather than
an exception, so callers skip the entry.

Typical usage::

    from reqcheck.core.parser import RequirementsParser, parse_requirement

    req = parse_requirement("requests>=2.25,<3")
    req.specs
    # (('>=', '2.25'), ('<', '3'))

    parser = RequirementsParser()
    requirements = parser.parse_file("requirements.txt")
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from packaging.specifiers import InvalidSpecifier, Specifier

from reqcheck.models.requirement import Requirement, Spec
from reqcheck.utils.logger import get_logger
from reqcheck.utils.filesystem import safe_read_file
from reqcheck.exceptions import ParseError, FileOperationError
from reqcheck.constants import (
    EGG_FRAGMENT,
    EDITABLE_DIRECTIVE,
    EDITABLE_DIRECTIVE_LONG,
    INCLUDE_DIRECTIVE,
    INCLUDE_DIRECTIVE_LONG,
    VERSION_OPERATORS,
)

logger = get_logger("parser")

_NAME_PATTERN = re.compile(
    r"""
    ^\s*
    (?P<name>[A-Za-z0-9](?:[A-Za-z0-9._-]*[A-Za-z0-9])?)
    \s*
    (?:\[(?P<extras>[^\]]*)\])?
    \s*
    (?P<rest>.*)$
    """,
    re.VERBOSE,
)

_COMMENT_PATTERN = re.compile(r"(^|\s)#.*$")

# Per-requirement options such as "--hash=sha256:..." trail the declaration
_OPTIONS_PATTERN = re.compile(r"\s--[A-Za-z].*$")

_URL_PREFIXES = ("http://", "https://", "file://", "git+", "hg+", "svn+", "bzr+")


# ---------------------------------------------------------------------------
# Single declarations
# ---------------------------------------------------------------------------


def parse_requirement(text: str, line_number: int = 0) -> Optional[Requirement]:
    """Parse one requirement declaration.

    Args:
        text: Declaration such as ``"flask>=1.0,<2.0"`` or
            ``"requests[socks] ; python_version < '3.12'"``. Trailing
            per-requirement options (``--hash=...``) are ignored.
        line_number: Source line, recorded on the result.

    Returns:
        The parsed :class:`Requirement`, or ``None`` when no package name
        can be read.

    Example::

        >>> parse_requirement("flask>=1.0,<2.0").specs
        (('>=', '1.0'), ('<', '2.0'))
        >>> parse_requirement("flask>=1.0,^2").specs
        (('>=', '1.0'),)
        >>> parse_requirement(">=1.0") is None
        True
    """
    declaration = _COMMENT_PATTERN.sub("", text).strip()
    declaration = _OPTIONS_PATTERN.sub("", declaration)
    declaration, _, marker_text = declaration.partition(";")
    markers = marker_text.strip() or None

    match = _NAME_PATTERN.match(declaration)
    if match is None:
        logger.debug("Skipping requirement without a package name: %r", text)
        return None

    extras = frozenset(
        extra.strip() for extra in (match.group("extras") or "").split(",") if extra.strip()
    )
    rest = match.group("rest").strip()

    specs: Tuple[Spec, ...] = ()
    if rest.startswith("@"):
        # Direct reference ("name @ url"): no version constraints
        pass
    elif rest:
        specs = tuple(_parse_specifier_clauses(rest, source=text))

    return Requirement(
        name=match.group("name"),
        specs=specs,
        extras=extras,
        markers=markers,
        line_number=line_number,
    )


def parse_requirements(declarations: Iterable[str]) -> List[Requirement]:
    """Parse a sequence of declaration strings, skipping unparseable ones.

    Used for the list-of-strings argument of a ``setup()`` call.
    """
    parsed: List[Requirement] = []
    for declaration in declarations:
        requirement = parse_requirement(declaration)
        if requirement is not None:
            parsed.append(requirement)
    return parsed


def _parse_specifier_clauses(text: str, *, source: str) -> List[Spec]:
    """Split ``>=1.0,<2.0`` into clauses, dropping malformed ones."""
    if text.startswith("(") and text.endswith(")"):
        text = text[1:-1]

    clauses: List[Spec] = []
    for raw_clause in text.split(","):
        clause = raw_clause.strip()
        if not clause:
            continue

        parsed = _parse_clause(clause)
        if parsed is None:
            logger.debug("Dropping malformed clause %r in %r", clause, source)
            continue
        clauses.append(parsed)

    return clauses


def _parse_clause(clause: str) -> Optional[Spec]:
    try:
        specifier = Specifier(clause)
    except InvalidSpecifier:
        return None

    # Arbitrary equality ("===") is not a supported constraint
    if specifier.operator not in VERSION_OPERATORS:
        return None
    return specifier.operator, specifier.version


# ---------------------------------------------------------------------------
# Requirement files
# ---------------------------------------------------------------------------


class RequirementsParser:
    """Parser for pip-style requirements files.

    Keeps a stack of the files being read so that circular ``-r``
    includes are reported instead of recursing forever. Option lines
    (``-c``, ``--index-url``, ``--hash`` and friends) carry no requirement
    and are skipped.

    Args:
        strict: Raise :class:`ParseError` for a missing or circular include.
            When ``False`` the include is logged and skipped, and the rest
            of the file is still read.

    Example::

        >>> parser = RequirementsParser()
        >>> [req.name for req in parser.parse_string("flask>=2\\n# tools\\nrich")]
        ['flask', 'rich']
    """

    def __init__(self, *, strict: bool = True) -> None:
        self.strict = strict
        self._included_files_stack: List[Path] = []

    def parse_file(
        self,
        file_path: Union[str, Path],
        _parent_file: Optional[Path] = None,
    ) -> List[Requirement]:
        """Parse a requirements file from disk.

        Args:
            file_path: Path to the file. Relative include paths are
                resolved against the directory of the including file.

        Returns:
            Requirements in file order, includes flattened in place.

        Raises:
            FileOperationError: The file does not exist or cannot be read.
            ParseError: A circular include was detected.
        """
        path = Path(file_path)
        if _parent_file is not None and not path.is_absolute():
            path = _parent_file.parent / path
        resolved_path = path.resolve()

        if resolved_path in self._included_files_stack:
            cycle = " -> ".join(
                str(p) for p in self._included_files_stack + [resolved_path]
            )
            raise ParseError(
                f"Circular include detected: {cycle}",
                file_path=str(resolved_path),
            )

        content = safe_read_file(resolved_path)

        self._included_files_stack.append(resolved_path)
        try:
            requirements = self.parse_string(content, _current_file=resolved_path)
        finally:
            self._included_files_stack.pop()

        logger.debug(
            "Parsed %d requirement(s) from %s", len(requirements), resolved_path.name
        )
        return requirements

    def parse_string(
        self,
        content: str,
        _current_file: Optional[Path] = None,
    ) -> List[Requirement]:
        """Parse requirements from the text of a requirements file."""
        requirements: List[Requirement] = []

        for line_number, line_text in _logical_lines(content):
            result = self.parse_line(line_text, line_number, _current_file=_current_file)
            if result is None:
                continue
            if isinstance(result, list):
                requirements.extend(result)
            else:
                requirements.append(result)

        return requirements

    def parse_line(
        self,
        line_text: str,
        line_number: int,
        _current_file: Optional[Path] = None,
    ) -> Optional[Union[Requirement, List[Requirement]]]:
        """Parse a single logical line.

        Returns:
            - ``None`` for blank lines, comments, options and lines whose
              package name cannot be determined.
            - ``List[Requirement]`` for a ``-r`` include.
            - ``Requirement`` otherwise.
        """
        stripped = line_text.strip()
        if not stripped or stripped.startswith("#"):
            return None

        if stripped.startswith((INCLUDE_DIRECTIVE_LONG, INCLUDE_DIRECTIVE)):
            return self._handle_include(stripped, line_number, _current_file)

        if stripped.startswith((EDITABLE_DIRECTIVE_LONG, EDITABLE_DIRECTIVE)):
            target = stripped.split(None, 1)[1] if " " in stripped else ""
            return _egg_requirement(target, line_number)

        if stripped.startswith("-"):
            logger.debug("Line %d: skipping option %r", line_number, stripped)
            return None

        if stripped.startswith(_URL_PREFIXES) or stripped.startswith((".", "/")):
            return _egg_requirement(stripped, line_number)

        return parse_requirement(stripped, line_number)

    def _handle_include(
        self,
        directive_line: str,
        line_number: int,
        current_file: Optional[Path],
    ) -> Optional[List[Requirement]]:
        if directive_line.startswith(INCLUDE_DIRECTIVE_LONG + "="):
            included = directive_line.split("=", 1)[1].strip()
        else:
            parts = directive_line.split(maxsplit=1)
            included = parts[1].strip() if len(parts) == 2 else ""

        if not included:
            logger.warning("Line %d: include directive missing file path", line_number)
            return None

        if current_file is None:
            logger.warning(
                "Line %d: cannot resolve include %r without a base file",
                line_number,
                included,
            )
            return None

        try:
            return self.parse_file(included, _parent_file=current_file)
        except (FileOperationError, ParseError) as exc:
            if not self.strict:
                logger.warning(
                    "%s:%d: skipping include %r: %s",
                    current_file.name,
                    line_number,
                    included,
                    exc.message,
                )
                return None
            raise ParseError(
                f"Failed to process include directive: {exc.message}",
                line_number=line_number,
                line_content=directive_line,
                file_path=str(current_file),
            ) from exc


# ---------------------------------------------------------------------------
# Module-level helpers
# ---------------------------------------------------------------------------


def _logical_lines(content: str) -> List[Tuple[int, str]]:
    """Join backslash continuations, keeping the first line's number."""
    lines: List[Tuple[int, str]] = []
    pending: List[str] = []
    start = 0

    for line_number, line in enumerate(content.splitlines(), start=1):
        if not pending:
            start = line_number
        if line.endswith("\\"):
            pending.append(line[:-1])
            continue
        pending.append(line)
        lines.append((start, " ".join(part.strip() for part in pending)))
        pending = []

    if pending:
        lines.append((start, " ".join(part.strip() for part in pending)))
    return lines


def _egg_requirement(target: str, line_number: int) -> Optional[Requirement]:
    """Name-only requirement for a URL or path carrying ``#egg=<name>``."""
    if EGG_FRAGMENT not in target:
        logger.debug("Line %d: no '#egg=' name in %r, skipping", line_number, target)
        return None

    egg = target.split(EGG_FRAGMENT, 1)[1].split("&")[0].split()[0]
    return parse_requirement(egg, line_number)
