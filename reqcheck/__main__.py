"""
Executable module for reqcheck.

Running:
    python -m reqcheck

is equivalent to:
    reqcheck

This module simply forwards execution to the CLI entrypoint defined in
`reqcheck.cli`.
"""

from __future__ import annotations

import sys


def _print_startup_error(exc: ImportError) -> None:
    """Report a CLI that cannot be imported (usually a missing dependency)."""
    sys.stderr.write("reqcheck could not start.\n")
    sys.stderr.write(f"Python version : {sys.version}\n")
    try:
        from reqcheck.__version__ import __version__

        sys.stderr.write(f"reqcheck version: {__version__}\n")
    except ImportError:
        sys.stderr.write("reqcheck version: <unknown>\n")
    sys.stderr.write(f"ImportError: {exc}\n")


def main() -> int:
    """
    Main entrypoint when executing `python -m reqcheck`.

    Returns:
        Exit code returned by the CLI.
    """
    try:
        # Import lazily so dependencies are only loaded during CLI use
        from reqcheck.cli import main as cli_main
    except ImportError as exc:
        _print_startup_error(exc)
        return 1

    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
