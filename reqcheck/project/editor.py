"""
File edits performed by add-requirement fixes.

:class:`ProjectEditor` changes the text of a requirements artifact in place,
keeping everything it does not touch byte for byte. Positions inside
``setup.py`` come from :mod:`ast` end positions; writes are atomic and,
by default, leave a timestamped backup next to the file.
"""

from __future__ import annotations

import ast
import re
from pathlib import Path
from typing import List, Optional

from reqcheck.constants import INSTALL_REQUIRES_KEYWORD
from reqcheck.exceptions import FileOperationError
from reqcheck.project.sources import find_keyword, find_setup_call
from reqcheck.utils.filesystem import safe_read_file, safe_write_file
from reqcheck.utils.logger import get_logger

logger = get_logger("editor")

# Line ends as the tokenizer counts them; form feeds and other Unicode
# separators stay inside their line.
_LINE_BREAKS = re.compile(r"(?<=\n)|(?<=\r)(?!\n)")


def _source_lines(content: str) -> List[str]:
    return [line for line in _LINE_BREAKS.split(content) if line]


def _offset(lines: List[str], lineno: int, col_offset: int) -> int:
    """Convert an ast position (1-based line, UTF-8 byte column) to a
    string index into the joined *lines*."""
    before = sum(len(line) for line in lines[: lineno - 1])
    line = lines[lineno - 1]
    column = len(line.encode("utf-8")[:col_offset].decode("utf-8", errors="ignore"))
    return before + column


class ProjectEditor:
    """Applies requirement additions to ``requirements.txt`` and ``setup.py``.

    Args:
        backup: Keep a backup copy of every file before changing it.
    """

    def __init__(self, *, backup: bool = True) -> None:
        self.backup = backup

    def prepend_line(self, path: Path, line: str) -> None:
        """Insert *line* as the first line of the file at *path*."""
        content = safe_read_file(path)
        self._write(path, f"{line}\n{content}")

    def append_install_requires(self, path: Path, package_name: str) -> None:
        """Append ``"<package_name>"`` to the ``install_requires`` list."""
        content = safe_read_file(path)
        call = self._setup_call(path, content)
        keyword = find_keyword(call, INSTALL_REQUIRES_KEYWORD)
        if keyword is None or not isinstance(keyword.value, ast.List):
            raise FileOperationError(
                f"No {INSTALL_REQUIRES_KEYWORD} list in setup call",
                file_path=str(path),
                operation="edit",
            )

        lines = _source_lines(content)
        node = keyword.value
        if node.elts:
            last = node.elts[-1]
            at = _offset(lines, last.end_lineno, last.end_col_offset)
            insertion = f', "{package_name}"'
        else:
            # Just before the closing bracket
            at = _offset(lines, node.end_lineno, node.end_col_offset) - 1
            insertion = f'"{package_name}"'

        self._write(path, content[:at] + insertion + content[at:])

    def add_install_requires(self, path: Path, package_name: str) -> None:
        """Add an ``install_requires=["<package_name>"]`` keyword to the
        setup call."""
        content = safe_read_file(path)
        call = self._setup_call(path, content)

        lines = _source_lines(content)
        argument = f'{INSTALL_REQUIRES_KEYWORD}=["{package_name}"]'
        arguments: List[ast.AST] = [*call.args, *call.keywords]
        if arguments:
            last = max(arguments, key=lambda node: (node.end_lineno, node.end_col_offset))
            at = _offset(lines, last.end_lineno, last.end_col_offset)
            insertion = f", {argument}"
        else:
            at = _offset(lines, call.end_lineno, call.end_col_offset) - 1
            insertion = argument

        self._write(path, content[:at] + insertion + content[at:])

    def _setup_call(self, path: Path, content: str) -> ast.Call:
        try:
            tree = ast.parse(content, filename=str(path))
        except SyntaxError as exc:
            raise FileOperationError(
                f"Cannot parse {path.name}: {exc.msg}",
                file_path=str(path),
                operation="edit",
                original_error=exc,
            ) from exc

        call: Optional[ast.Call] = find_setup_call(tree)
        if call is None:
            raise FileOperationError(
                "No setup call found",
                file_path=str(path),
                operation="edit",
            )
        return call

    def _write(self, path: Path, content: str) -> None:
        backup_path = safe_write_file(path, content, backup=self.backup)
        if backup_path is not None:
            logger.debug("Backup of %s saved to %s", path.name, backup_path)
