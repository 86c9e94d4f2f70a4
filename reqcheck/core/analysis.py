"""Per-unit analysis state shared between inspections and fixes.

The only mutable state of the engine is a "suppress diagnostics" flag per
project unit. An install fix raises it while the installer runs so that
inspections triggered meanwhile do not report the very requirements being
installed. Inspections of different units may run on different threads;
the flags are guarded by a lock.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator, Set, Union

from reqcheck.models.project import ProjectUnit
from reqcheck.utils.logger import get_logger

logger = get_logger("analysis")

UnitLike = Union[ProjectUnit, str]


def _unit_key(unit: UnitLike) -> str:
    return unit if isinstance(unit, str) else unit.key


class AnalysisContext:
    """Suppression flags keyed by unit identity.

    Example::

        >>> context = AnalysisContext()
        >>> with context.suppressed(unit):
        ...     context.is_suppressed(unit)
        True
        >>> context.is_suppressed(unit)
        False
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._suppressed: Set[str] = set()

    def is_suppressed(self, unit: UnitLike) -> bool:
        with self._lock:
            return _unit_key(unit) in self._suppressed

    def set_suppressed(self, unit: UnitLike, value: bool) -> None:
        key = _unit_key(unit)
        with self._lock:
            if value:
                self._suppressed.add(key)
            else:
                self._suppressed.discard(key)
        logger.debug("Diagnostics for %s %s", key, "suppressed" if value else "resumed")

    @contextmanager
    def suppressed(self, unit: UnitLike) -> Iterator[None]:
        """Suppress diagnostics for *unit* for the duration of the block,
        restoring them however the block exits."""
        self.set_suppressed(unit, True)
        try:
            yield
        finally:
            self.set_suppressed(unit, False)
