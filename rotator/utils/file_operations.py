import logging
import os
import re
from pathlib import Path
from typing import List, Optional, Union

from rotator.core.exceptions import RotationSuffixExhaustedError

MAX_ROTATION_SUFFIX = 1000

# <anything>.<digits> optionally followed by .gz
_ROTATED_ARTIFACT = re.compile(r"^.+\.\d+(\.gz)?$")

PathLike = Union[str, Path]


def to_slash(path: PathLike) -> str:
    return str(path).replace(os.sep, "/")


def relative_parts(path: PathLike, root: PathLike) -> Optional[List[str]]:
    """Split ``path`` relative to ``root`` into segments, None if outside root."""
    try:
        rel = os.path.relpath(path, root)
    except ValueError:
        # Different drive on Windows
        return None

    rel = to_slash(rel)
    if rel == ".":
        return []
    if rel == ".." or rel.startswith("../"):
        return None
    return rel.split("/")


def is_within_root(path: PathLike, root: PathLike) -> bool:
    return relative_parts(path, root) is not None


def depth_exceeds(path: PathLike, root: PathLike, max_depth: int) -> bool:
    """True if ``path`` lies more than ``max_depth`` segments below ``root``."""
    if max_depth <= 0:
        return False
    parts = relative_parts(path, root)
    if not parts:
        return False
    return len(parts) > max_depth


def rotation_path(path: PathLike, suffix: int) -> Path:
    path = Path(path)
    return path.with_name(f"{path.name}.{suffix}")


def next_rotation_path(path: PathLike, max_suffix: int = MAX_ROTATION_SUFFIX) -> Path:
    """
    Find the first free ``<path>.<N>`` for N in 1..max_suffix.

    Raises RotationSuffixExhaustedError when every suffix is taken.
    """
    for suffix in range(1, max_suffix + 1):
        candidate = rotation_path(path, suffix)
        if not os.path.lexists(candidate):
            return candidate

    raise RotationSuffixExhaustedError(str(path), max_suffix)


def is_rotated_sibling(candidate_name: str, base_name: str) -> bool:
    """
    True if ``candidate_name`` is ``<base_name>.<digits>`` or
    ``<base_name>.<digits>.gz``.
    """
    prefix = base_name + "."
    if not candidate_name.startswith(prefix):
        return False

    rest = candidate_name[len(prefix):]
    if rest.endswith(".gz"):
        rest = rest[: -len(".gz")]
    return rest.isdigit() and rest.isascii()


def looks_rotated(file_name: str) -> bool:
    """True for any ``<name>.<digits>`` or ``<name>.<digits>.gz`` file name."""
    return _ROTATED_ARTIFACT.match(file_name) is not None


def remove_quietly(path: PathLike) -> bool:
    """
    Delete a file, treating a missing file as already done.

    Returns True if this call removed the file. Other OS errors are logged and
    swallowed because pruning is best effort.
    """
    try:
        os.remove(path)
        return True
    except FileNotFoundError:
        return False
    except OSError as e:
        logging.debug(f"Could not remove {path}: {e}")
        return False
