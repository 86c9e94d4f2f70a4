"""
Centralized constants for reqcheck.

This module defines immutable configuration values used across reqcheck,
including file names, requirement syntax, package-manager settings, and
logging formats. All values are intended to be treated as read-only.
"""

import sys
from typing import Final, FrozenSet, Sequence

# ---------------------------------------------------------------------------
# Requirement artifacts
# ---------------------------------------------------------------------------

#: Plain requirement list looked up in the project root.
REQUIREMENTS_FILE_NAME: Final[str] = "requirements.txt"

#: Script holding the call-based requirement declaration.
SETUP_FILE_NAME: Final[str] = "setup.py"

#: Name of the call that declares requirements.
SETUP_CALL_NAME: Final[str] = "setup"

#: Keyword argument of the setup call that lists requirements.
INSTALL_REQUIRES_KEYWORD: Final[str] = "install_requires"

#: Keyword argument of the setup call that lists the project's packages.
PACKAGES_KEYWORD: Final[str] = "packages"

# ---------------------------------------------------------------------------
# Requirement syntax
# ---------------------------------------------------------------------------

#: Version constraint operators accepted in requirement declarations.
VERSION_OPERATORS: Final[Sequence[str]] = ("~=", "==", "!=", "<=", ">=", "<", ">")

#: Short include directive for requirement files.
INCLUDE_DIRECTIVE: Final[str] = "-r"

#: Long include directive for requirement files.
INCLUDE_DIRECTIVE_LONG: Final[str] = "--requirement"

#: Short editable-install directive.
EDITABLE_DIRECTIVE: Final[str] = "-e"

#: Long editable-install directive.
EDITABLE_DIRECTIVE_LONG: Final[str] = "--editable"

#: URL fragment naming the package of a direct reference.
EGG_FRAGMENT: Final[str] = "#egg="

# ---------------------------------------------------------------------------
# Import classification
# ---------------------------------------------------------------------------

#: Top-level names of the standard library of the running interpreter.
STDLIB_MODULE_NAMES: Final[FrozenSet[str]] = frozenset(sys.stdlib_module_names) | {
    "__future__",
}

#: Directory names never scanned for project sources.
EXCLUDED_SOURCE_DIRS: Final[FrozenSet[str]] = frozenset(
    {
        "__pycache__",
        "build",
        "dist",
        "node_modules",
        "site-packages",
        "venv",
        "env",
    }
)

# ---------------------------------------------------------------------------
# Package manager
# ---------------------------------------------------------------------------

#: Default timeout in seconds for package-manager calls.
DEFAULT_TIMEOUT: Final[int] = 60

DEFAULT_CHECK_INSTALLED: Final[bool] = True
DEFAULT_CHECK_IMPORTS: Final[bool] = True

# ---------------------------------------------------------------------------
# Security constraints
# ---------------------------------------------------------------------------

#: Maximum allowed file size (in bytes) when reading project files.
MAX_FILE_SIZE: Final[int] = 10 * 1024 * 1024  # 10 MB

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

#: Timestamp format for verbose logging.
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

#: Default log format (non-verbose).
LOG_DEFAULT_FORMAT: Final[str] = "%(levelname)s: %(message)s"

#: Verbose log format including timestamp and logger name.
LOG_VERBOSE_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
