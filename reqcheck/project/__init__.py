"""
Project-side collaborators for reqcheck.

Discovery of requirement artifacts, project sources and import references
(:mod:`reqcheck.project.sources`), and the file edits performed by
add-requirement fixes (:mod:`reqcheck.project.editor`).
"""

from __future__ import annotations

from reqcheck.project.editor import ProjectEditor
from reqcheck.project.sources import (
    SetupCall,
    collect_imports,
    discover_local_packages,
    discover_sources,
    find_requirements_file,
    find_setup_file,
    load_project,
    read_setup_call,
)

__all__ = [
    "ProjectEditor",
    "SetupCall",
    "collect_imports",
    "discover_local_packages",
    "discover_sources",
    "find_requirements_file",
    "find_setup_file",
    "load_project",
    "read_setup_call",
]
