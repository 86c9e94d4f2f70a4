"""Configuration file loader for reqcheck.

Handles discovery, loading, parsing, and validation of configuration files.
Supports two formats:

- ``reqcheck.toml``: settings under the ``[reqcheck]`` table
- ``pyproject.toml``: settings under the ``[tool.reqcheck]`` table

Discovery order:

1. Explicit path from ``--config`` or ``REQCHECK_CONFIG``
2. ``reqcheck.toml`` in current directory
3. ``pyproject.toml`` with ``[tool.reqcheck]`` section

Configuration precedence: defaults < config file < CLI args.

Typical usage::

    config = load_config()  # Auto-discover
    config = load_config(Path("custom.toml"))  # Explicit path

Example (``reqcheck.toml``)::

    [reqcheck]
    python = ".venv/bin/python"
    ignore_packages = ["pkg_resources"]
    check_installed = true
    check_imports = true
    timeout = 60
"""

from __future__ import annotations


import tomli as tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field

from reqcheck.exceptions import ConfigError
from reqcheck.utils.logger import get_logger
from reqcheck.constants import (
    DEFAULT_CHECK_IMPORTS,
    DEFAULT_CHECK_INSTALLED,
    DEFAULT_TIMEOUT,
)

logger = get_logger("config")

CONFIG_FILE_NAME = "reqcheck.toml"
PYPROJECT_FILE_NAME = "pyproject.toml"
SECTION_NAME = "reqcheck"


@dataclass
class ReqCheckConfig:
    """Parsed and validated reqcheck configuration.

    Contains settings from ``reqcheck.toml`` or ``pyproject.toml``.
    All fields have defaults, so empty config files are valid.

    Attributes:
        python: Interpreter of the environment to check against. ``None``
            means the interpreter running reqcheck.
        ignore_packages: Import names never reported as undeclared.
        check_installed: Report declared requirements that the environment
            does not satisfy.
        check_imports: Report imports not covered by a declared requirement.
        timeout: Seconds allowed for each package-manager call.
        source_path: Path to loaded config file, or ``None`` if using defaults.
    """

    python: Optional[str] = None
    ignore_packages: List[str] = field(default_factory=list)
    check_installed: bool = DEFAULT_CHECK_INSTALLED
    check_imports: bool = DEFAULT_CHECK_IMPORTS
    timeout: int = DEFAULT_TIMEOUT

    # Metadata (not a user-facing option)
    source_path: Optional[Path] = field(default=None, repr=False)

    def to_log_dict(self) -> Dict[str, Any]:
        """Return configuration as dictionary for debug logging.

        Excludes ``source_path`` metadata.
        """
        return {
            "python": self.python,
            "ignore_packages": list(self.ignore_packages),
            "check_installed": self.check_installed,
            "check_imports": self.check_imports,
            "timeout": self.timeout,
        }


def discover_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Find the configuration file to load.

    Search order:

    1. ``explicit_path`` (from ``--config`` or ``REQCHECK_CONFIG``)
    2. ``reqcheck.toml`` in current directory
    3. ``pyproject.toml`` with ``[tool.reqcheck]`` section in current directory

    Args:
        explicit_path: Explicit config path. If provided, must exist.

    Returns:
        Resolved path to config file, or ``None`` if not found.

    Raises:
        ConfigError: Explicit path provided but does not exist.
    """
    # 1. Explicit path takes priority
    if explicit_path is not None:
        resolved = explicit_path.resolve()
        if not resolved.is_file():
            raise ConfigError(
                f"Configuration file not found: {explicit_path}",
                config_path=str(explicit_path),
            )
        logger.debug("Using explicit config: %s", resolved)
        return resolved

    cwd = Path.cwd()

    # 2. reqcheck.toml in current directory
    reqcheck_toml = cwd / CONFIG_FILE_NAME
    if reqcheck_toml.is_file():
        logger.debug("Found %s: %s", CONFIG_FILE_NAME, reqcheck_toml)
        return reqcheck_toml

    # 3. pyproject.toml with [tool.reqcheck] section
    pyproject_toml = cwd / PYPROJECT_FILE_NAME
    if pyproject_toml.is_file() and _pyproject_has_reqcheck_section(pyproject_toml):
        logger.debug("Found [tool.reqcheck] in pyproject.toml: %s", pyproject_toml)
        return pyproject_toml

    logger.debug("No configuration file found")
    return None


def _pyproject_has_reqcheck_section(path: Path) -> bool:
    """Check if pyproject.toml contains a [tool.reqcheck] section.

    A pyproject.toml that cannot be parsed is treated as having no section;
    reqcheck then falls back to defaults.
    """
    try:
        raw = _read_toml(path)
    except ConfigError as exc:
        logger.debug("Ignoring unreadable %s: %s", path, exc)
        return False
    return SECTION_NAME in raw.get("tool", {})


def load_config(config_path: Optional[Path] = None) -> ReqCheckConfig:
    """Load and validate reqcheck configuration.

    Args:
        config_path: Explicit path to config file. If ``None``, uses
            auto-discovery (see :func:`discover_config_file`).

    Returns:
        Validated :class:`ReqCheckConfig` with values from file or defaults.

    Raises:
        ConfigError: File cannot be parsed, has unknown keys, or invalid values.
    """
    resolved = discover_config_file(config_path)

    if resolved is None:
        logger.debug("No config file found, using defaults")
        return ReqCheckConfig()

    logger.info("Loading configuration from %s", resolved)
    raw = _read_toml(resolved)

    if resolved.name == PYPROJECT_FILE_NAME:
        section = raw.get("tool", {}).get(SECTION_NAME, {})
    else:
        section = raw.get(SECTION_NAME, {})

    if not section:
        logger.debug("Config file found but no reqcheck section, using defaults")
        return ReqCheckConfig(source_path=resolved)

    config = _parse_section(section, config_path=str(resolved))
    config.source_path = resolved

    logger.debug("Loaded configuration: %s", config.to_log_dict())
    return config


def _read_toml(path: Path) -> Dict[str, Any]:
    """Read and parse a TOML file.

    Raises:
        ConfigError: File cannot be read or is not valid TOML.
    """
    try:
        with open(path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(
            f"Invalid TOML in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc


def _check_bool(section: Dict[str, Any], key: str, config_path: str) -> bool:
    val = section[key]
    if not isinstance(val, bool):
        raise ConfigError(
            f"{key} must be a boolean, got {type(val).__name__}",
            config_path=config_path,
            option=key,
        )
    return val


def _parse_section(
    section: Dict[str, Any],
    *,
    config_path: str,
) -> ReqCheckConfig:
    """Parse and validate the ``[reqcheck]`` or ``[tool.reqcheck]`` table.

    Rejects unknown keys and type mismatches.

    Raises:
        ConfigError: Unknown keys or incorrect types (e.g., string for boolean).
    """
    config = ReqCheckConfig()

    known_top = {
        "python",
        "ignore_packages",
        "check_installed",
        "check_imports",
        "timeout",
    }

    unknown_top = set(section.keys()) - known_top
    if unknown_top:
        raise ConfigError(
            f"Unknown configuration keys: {', '.join(sorted(unknown_top))}",
            config_path=config_path,
        )

    if "python" in section:
        val = section["python"]
        if not isinstance(val, str) or not val.strip():
            raise ConfigError(
                "python must be a non-empty string",
                config_path=config_path,
                option="python",
            )
        config.python = val

    if "ignore_packages" in section:
        val = section["ignore_packages"]
        if not isinstance(val, list) or not all(isinstance(item, str) for item in val):
            raise ConfigError(
                "ignore_packages must be a list of strings",
                config_path=config_path,
                option="ignore_packages",
            )
        config.ignore_packages = list(val)

    if "check_installed" in section:
        config.check_installed = _check_bool(section, "check_installed", config_path)

    if "check_imports" in section:
        config.check_imports = _check_bool(section, "check_imports", config_path)

    if "timeout" in section:
        val = section["timeout"]
        # bool is an int subclass
        if isinstance(val, bool) or not isinstance(val, int) or val <= 0:
            raise ConfigError(
                f"timeout must be a positive integer, got {val!r}",
                config_path=config_path,
                option="timeout",
            )
        config.timeout = val

    return config
