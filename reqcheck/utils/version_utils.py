"""
Version comparison utilities for reqcheck.

PEP 440 parsing, plus the segment-wise comparison used for installed
versions that are not valid PEP 440 (legacy or vendor-specific strings):
numeric segments compare as integers, other segments as strings, and
missing trailing segments count as ``0``.
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple, Union

from packaging.version import InvalidVersion, Version, parse

_SEGMENT_SEPARATORS = re.compile(r"[.\-_+]")

SegmentKey = Tuple[int, Union[int, str]]


def parse_version(value: str) -> Optional[Version]:
    """Parse *value* as a PEP 440 version, returning ``None`` when invalid."""
    try:
        parsed = parse(value.strip())
    except InvalidVersion:
        return None
    return parsed if isinstance(parsed, Version) else None


def split_segments(value: str) -> List[str]:
    """Split a version string into its non-empty segments.

    Examples:
        >>> split_segments("1.2-rc1")
        ['1', '2', 'rc1']
    """
    return [segment for segment in _SEGMENT_SEPARATORS.split(value.strip()) if segment]


def _segment_key(segment: str) -> SegmentKey:
    # Numbers sort after strings at the same position, so "1.0.rc1" < "1.0.0"
    if segment.isdigit():
        return (1, int(segment))
    return (0, segment.lower())


def compare_segments(left: str, right: str) -> int:
    """Compare two version strings segment by segment.

    Returns:
        ``-1``, ``0`` or ``1`` like a classic ``cmp``.
    """
    left_segments = split_segments(left)
    right_segments = split_segments(right)
    width = max(len(left_segments), len(right_segments))

    for index in range(width):
        a = _segment_key(left_segments[index]) if index < len(left_segments) else (1, 0)
        b = _segment_key(right_segments[index]) if index < len(right_segments) else (1, 0)
        if a != b:
            return -1 if a < b else 1

    return 0


def release_prefix(value: str) -> List[str]:
    """Return the release segments of *value* without its last segment.

    Used for the compatible-release operator: ``~=1.4.5`` requires the
    ``1.4`` prefix.
    """
    parsed = parse_version(value)
    if parsed is not None:
        release = [str(part) for part in parsed.release]
    else:
        release = [segment for segment in split_segments(value) if segment.isdigit()]
    return release[:-1]
