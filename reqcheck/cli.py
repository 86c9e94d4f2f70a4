"""
Command-line entry point for reqcheck.

The ``reqcheck`` group owns the options shared by every command: the
configuration file, log verbosity and terminal colors. It builds the
:class:`ReqCheckContext` that commands receive through ``pass_context``.
"""

from __future__ import annotations

import os
import sys
import logging
from pathlib import Path
from typing import Optional

import click

from reqcheck.config import load_config
from reqcheck.__version__ import __version__
from reqcheck.context import ReqCheckContext
from reqcheck.exceptions import ConfigError, ReqCheckError
from reqcheck.utils.logger import get_logger, setup_logging
from reqcheck.utils.console import print_error, print_warning, reconfigure_console

logger = get_logger("cli")

#: Log level per ``-v`` count; counts past the end use the last entry.
_VERBOSITY_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)


def _log_level(verbose: int) -> int:
    return _VERBOSITY_LEVELS[min(max(verbose, 0), len(_VERBOSITY_LEVELS) - 1)]


def _use_color(color: bool) -> None:
    """Export the color choice as ``NO_COLOR`` and rebuild the console."""
    if color:
        os.environ.pop("NO_COLOR", None)
    else:
        os.environ["NO_COLOR"] = "1"
    reconfigure_console()


def _build_context(
    config_path: Optional[Path], verbose: int, color: bool
) -> ReqCheckContext:
    """Load the configuration and assemble the shared command context.

    Raises:
        ConfigError: The configuration file is unreadable or invalid.
    """
    config = load_config(config_path)

    context = ReqCheckContext()
    context.config = config
    context.config_path = config_path or config.source_path
    context.verbose = verbose
    context.color = color

    if config.source_path:
        logger.debug("Configuration from %s: %s", config.source_path, config.to_log_dict())
    else:
        logger.debug("No configuration file found, using defaults")
    return context


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    envvar="REQCHECK_CONFIG",
    help="Configuration file (default: reqcheck.toml, or [tool.reqcheck] "
    "in pyproject.toml, in the current directory).",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Log progress; repeat (-vv) for debug output.",
)
@click.option(
    "--color/--no-color",
    default=True,
    envvar="REQCHECK_COLOR",
    help="Colorize terminal output.",
)
@click.version_option(
    version=__version__,
    prog_name="reqcheck",
    message="%(prog)s %(version)s",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: int,
    color: bool,
) -> None:
    """Find requirements that are declared but not installed, and imports
    that are not declared.

    \b
    Examples:
      reqcheck check
      reqcheck check api/ worker/ --python .venv/bin/python
      reqcheck -v check --fix --yes

    Run ``reqcheck COMMAND --help`` for the options of a command.
    """
    setup_logging(level=_log_level(verbose))
    _use_color(color)
    logger.debug("reqcheck %s on Python %s", __version__, sys.version.split()[0])

    try:
        ctx.obj = _build_context(config, verbose, color)
    except ConfigError as exc:
        print_error(str(exc))
        ctx.exit(1)


from reqcheck.commands.check import check  # noqa: E402

cli.add_command(check)


def main() -> int:
    """Run the CLI outside Click's standalone mode and map failures to
    exit codes: 1 for reqcheck and unexpected errors, the Click code for
    usage errors, 130 when interrupted."""
    try:
        result = cli(standalone_mode=False)
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except ReqCheckError as exc:
        print_error(str(exc))
        logger.debug("Error details: %s", exc.details or "<none>", exc_info=True)
        return 1
    except (KeyboardInterrupt, click.Abort):
        print_warning("\nOperation cancelled by user")
        return 130
    except Exception as exc:
        print_error(f"Unexpected error: {exc}")
        logger.exception("Unhandled exception in CLI")
        return 1

    # Click returns the code given to ctx.exit() instead of raising
    return result if isinstance(result, int) else 0


if __name__ == "__main__":
    sys.exit(main())
