"""Check command implementation for reqcheck.

Inspects one or more project directories and reports two kinds of
requirement problems:

- declared requirements the target environment does not satisfy, and
- imported packages that no declared requirement covers.

The command wires the project collaborators to the engine:

1. **load_project** builds a :class:`ProjectUnit` (requirements from
   ``requirements.txt`` or ``setup.py``) and collects import references
   from the project's sources.
2. **ConsistencyDriver** inspects every unit; projects are inspected
   concurrently on worker threads and share one :class:`AnalysisContext`.
3. With ``--fix``, the fixes attached to the diagnostics are executed:
   the install fix through :class:`PipInstaller`, add-requirement fixes
   through :class:`ProjectEditor`.

Typical usage::

    # Inspect the current directory against the running interpreter
    $ reqcheck check

    # Inspect two projects against a virtualenv, machine-readable output
    $ reqcheck check api/ worker/ --python .venv/bin/python --format json

    # Apply fixes without prompting
    $ reqcheck check --fix --yes
"""

from __future__ import annotations

import sys
import json
import click
import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from reqcheck.exceptions import PackageManagerError, ReqCheckError
from reqcheck.context import pass_context, ReqCheckContext
from reqcheck.core import (
    AddRequirementFix,
    AnalysisContext,
    ConsistencyDriver,
    InstallRequirementsFix,
    PipInstaller,
)
from reqcheck.models import Diagnostic, ProjectUnit
from reqcheck.project import ProjectEditor, load_project
from reqcheck.utils import (
    confirm,
    get_logger,
    get_raw_console,
    print_error,
    print_success,
    print_table,
    print_warning,
)

logger = get_logger("commands.check")

ProjectResult = Tuple[ProjectUnit, List[Diagnostic]]


@click.command()
@click.argument(
    "projects",
    nargs=-1,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option(
    "--format",
    "-f",
    type=click.Choice(["table", "simple", "json"], case_sensitive=False),
    default="table",
    help="Output format.",
)
@click.option(
    "--python",
    "python",
    metavar="PATH",
    help="Interpreter of the environment to check against.",
)
@click.option(
    "--fix",
    is_flag=True,
    help="Apply the fixes attached to the reported problems.",
)
@click.option(
    "--yes",
    "-y",
    is_flag=True,
    help="Skip confirmation prompt.",
)
@pass_context
def check(
    ctx: ReqCheckContext,
    projects: Tuple[Path, ...],
    format: str,
    python: Optional[str],
    fix: bool,
    yes: bool,
) -> None:
    """Check projects for unsatisfied and undeclared requirements.

    PROJECTS are project directories (default: the current directory).
    Declared requirements are read from ``requirements.txt`` or, failing
    that, from the ``install_requires`` of the ``setup()`` call in
    ``setup.py``.

    Exits:
        0 if no problems were found, 1 if problems were reported or an
        error occurred.
    """
    try:
        has_problems = asyncio.run(
            _check_async(
                ctx,
                list(projects) or [Path.cwd()],
                format.lower(),
                python or ctx.config.python or sys.executable,
                fix,
                yes,
            )
        )
        sys.exit(1 if has_problems else 0)

    except ReqCheckError as e:
        print_error(f"{e}")
        sys.exit(1)
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        logger.exception("Error in check command")
        sys.exit(1)


# ---------------------------------------------------------------------------
# Async orchestration
# ---------------------------------------------------------------------------


def _inspect_project(
    driver: ConsistencyDriver, root: Path, interpreter: str
) -> ProjectResult:
    unit, sources = load_project(root, interpreter)
    return unit, driver.inspect(unit, sources)


async def _check_async(
    ctx: ReqCheckContext,
    roots: List[Path],
    format: str,
    interpreter: str,
    fix: bool,
    yes: bool,
) -> bool:
    """Inspect *roots* concurrently, display the results, apply fixes.

    Returns:
        ``True`` if any diagnostic was reported.
    """
    config = ctx.config
    show_progress: bool = format != "json"

    context = AnalysisContext()
    driver = ConsistencyDriver(
        context,
        ignore_packages=config.ignore_packages,
        check_installed=config.check_installed,
        check_imports=config.check_imports,
        timeout=config.timeout,
    )

    logger.info("Inspecting %d project(s) with %s", len(roots), interpreter)
    results: List[ProjectResult] = list(
        await asyncio.gather(
            *(asyncio.to_thread(_inspect_project, driver, root, interpreter) for root in roots)
        )
    )

    total = sum(len(diagnostics) for _, diagnostics in results)

    if format == "table":
        _display_table(results)
    elif format == "simple":
        _display_simple(results)
    else:  # json
        _display_json(results)

    if show_progress:
        if total:
            print_warning(f"\n{total} problem(s) found")
        else:
            print_success("\nNo requirement problems found")

    if fix and total:
        await _apply_fixes(context, results, interpreter, config.timeout, yes)

    return total > 0


# ---------------------------------------------------------------------------
# Fixes
# ---------------------------------------------------------------------------


def _collect_fixes(
    diagnostics: List[Diagnostic],
) -> Tuple[Optional[InstallRequirementsFix], List[AddRequirementFix]]:
    """Split the fixes of one unit: at most one install fix, and one
    add-requirement fix per package."""
    install_fix: Optional[InstallRequirementsFix] = None
    add_fixes: Dict[str, AddRequirementFix] = {}

    for diagnostic in diagnostics:
        if isinstance(diagnostic.fix, InstallRequirementsFix):
            install_fix = diagnostic.fix
        elif isinstance(diagnostic.fix, AddRequirementFix):
            add_fixes.setdefault(diagnostic.fix.package_name.lower(), diagnostic.fix)

    return install_fix, list(add_fixes.values())


async def _apply_fixes(
    context: AnalysisContext,
    results: List[ProjectResult],
    interpreter: str,
    timeout: int,
    skip_confirm: bool,
) -> None:
    plan = [(unit, *_collect_fixes(diagnostics)) for unit, diagnostics in results]
    names = [
        fix.name
        for _, install_fix, add_fixes in plan
        for fix in ([install_fix] if install_fix else []) + add_fixes
    ]
    if not names:
        return

    console = get_raw_console()
    console.print("\n[bold]Fixes:[/bold]")
    for name in names:
        console.print(f"  - {name}", markup=False)

    if not skip_confirm and not confirm(f"Apply {len(names)} fix(es)?", default=True):
        print_warning("No fixes applied")
        return

    installer = PipInstaller(interpreter, timeout=timeout)
    editor = ProjectEditor()
    applied = 0

    for unit, install_fix, add_fixes in plan:
        if install_fix is not None:
            try:
                await install_fix.execute_async(context, installer)
                applied += 1
            except PackageManagerError as exc:
                print_error(f"{unit.name}: {install_fix.name} failed: {exc}")
                logger.debug("Install fix failed for %s", unit.key, exc_info=True)
        for add_fix in add_fixes:
            if add_fix.execute(editor):
                applied += 1
            else:
                print_warning(
                    f"{unit.name}: no requirements file to add '{add_fix.package_name}' to"
                )

    print_success(f"Applied {applied} fix(es)")


# ---------------------------------------------------------------------------
# Display renderers
# ---------------------------------------------------------------------------


def _display_table(results: List[ProjectResult]) -> None:
    """Render one Rich table per project with problems.

    Example::

        ┏━━━━━━━━━━━━━━━━━━┳━━━━━━━━━━━━━━━━━━━━┳━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━┓
        ┃ Location         ┃ Problem            ┃ Message                              ┃
        ┡━━━━━━━━━━━━━━━━━━╇━━━━━━━━━━━━━━━━━━━━╇━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━┩
        │ app/main.py:3:1  │ undeclared-package │ Package 'yaml' is not listed in ...  │
        └──────────────────┴────────────────────┴──────────────────────────────────────┘
    """
    column_styles: Dict[str, Dict[str, Any]] = {
        "Location": {"style": "location", "no_wrap": True},
        "Problem": {"style": "warning", "no_wrap": True},
        "Message": {"justify": "left"},
        "Fix": {"style": "dim"},
    }

    for unit, diagnostics in results:
        if not diagnostics:
            continue
        rows = [
            {
                "Location": str(diagnostic.location),
                "Problem": diagnostic.code.value,
                "Message": diagnostic.message,
                "Fix": diagnostic.fix.name if diagnostic.fix else "-",
            }
            for diagnostic in diagnostics
        ]
        print_table(rows, title=str(unit.root), column_styles=column_styles)


def _display_simple(results: List[ProjectResult]) -> None:
    """Render one line per diagnostic, compiler style.

    Example::

        app/main.py:3:1: warning: Package 'yaml' is not listed in project requirements
    """
    console = get_raw_console()
    for _, diagnostics in results:
        for diagnostic in diagnostics:
            console.print(str(diagnostic), markup=False, soft_wrap=True)


def _display_json(results: List[ProjectResult]) -> None:
    """Render all projects and their diagnostics as JSON.

    Example::

        [
          {
            "project": {"root": ".", "environment": "...", "requirements": [...]},
            "diagnostics": [{"location": "...", "code": "...", ...}]
          }
        ]
    """
    data = [
        {
            "project": unit.to_json(),
            "diagnostics": [diagnostic.to_json() for diagnostic in diagnostics],
        }
        for unit, diagnostics in results
    ]
    print(json.dumps(data, indent=2))
