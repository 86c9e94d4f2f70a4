"""
reqcheck: requirement consistency checks for Python projects

reqcheck compares what a project declares with what its environment and
its sources actually need:

    • Declared requirements that the target environment does not satisfy
    • Imported packages that no declared requirement covers
    • Fix descriptions for both (install, add to requirements)

Requirements are read from ``requirements.txt`` or from the
``install_requires`` keyword of a ``setup()`` call.
"""

from __future__ import annotations

from reqcheck.__version__ import __version__

# ---------------------------------------------------------------------------
# Package Metadata
# ---------------------------------------------------------------------------

__author__ = "reqcheck Contributors"
__license__ = "Apache-2.0"
__description__ = "Check that a Python project's requirements and imports agree."

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    "__version__",
]
