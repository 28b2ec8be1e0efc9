"""
Path glob matching with ``**`` support.

``fnmatch`` alone lets ``*`` run across directory separators, which makes
``/logs/*/app.log`` match files at any depth. Patterns here are matched one
path segment at a time: ``*``, ``?`` and ``[...]`` stay inside a segment and a
segment that is exactly ``**`` consumes zero or more whole segments.
"""

import fnmatch
from functools import lru_cache
from typing import Iterable, Sequence, Tuple


@lru_cache(maxsize=512)
def _split_pattern(pattern: str) -> Tuple[str, ...]:
    segments = []
    for segment in pattern.replace("\\", "/").split("/"):
        # Consecutive ** segments behave like a single one
        if segment == "**" and segments and segments[-1] == "**":
            continue
        segments.append(segment)
    return tuple(segments)


def _match_segments(patterns: Sequence[str], parts: Sequence[str]) -> bool:
    if not patterns:
        return not parts

    head = patterns[0]
    if head == "**":
        rest = patterns[1:]
        return any(_match_segments(rest, parts[i:]) for i in range(len(parts) + 1))

    if not parts:
        return False
    return fnmatch.fnmatchcase(parts[0], head) and _match_segments(patterns[1:], parts[1:])


def path_match(pattern: str, path: str) -> bool:
    """Return True if the slash separated ``path`` matches ``pattern``."""
    if not pattern:
        return False
    parts = path.replace("\\", "/").split("/")
    return _match_segments(_split_pattern(pattern), parts)


def matches_any(path: str, patterns: Iterable[str]) -> bool:
    """
    Return True if ``path`` matches at least one pattern.

    An empty pattern list matches everything, so an unset include list lets
    every file through.
    """
    patterns = list(patterns or [])
    if not patterns:
        return True
    return any(path_match(pattern, path) for pattern in patterns)
