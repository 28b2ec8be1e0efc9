import logging
import os
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional

from rotator.utils.file_operations import is_rotated_sibling, remove_quietly


@dataclass
class RotatedSibling:
    path: Path
    modified_at: float


def list_rotated_siblings(path: Path) -> List[RotatedSibling]:
    """Return ``<name>.<N>`` and ``<name>.<N>.gz`` files next to ``path``."""
    path = Path(path)
    siblings: List[RotatedSibling] = []

    try:
        entries = list(os.scandir(path.parent))
    except OSError as e:
        logging.debug(f"Cannot list {path.parent} for retention: {e}")
        return siblings

    for entry in entries:
        if not is_rotated_sibling(entry.name, path.name):
            continue
        try:
            if entry.is_dir(follow_symlinks=False):
                continue
            modified_at = entry.stat(follow_symlinks=False).st_mtime
        except OSError:
            continue
        siblings.append(RotatedSibling(path=Path(entry.path), modified_at=modified_at))

    return siblings


def enforce_retention(
    path: Path, keep_files: int, keep_days: int, now: Optional[datetime] = None
) -> int:
    """
    Prune rotated copies of ``path`` by age, then by count.

    Age pass (keep_days > 0): remove siblings last modified before now - keep_days.
    Count pass (keep_files > 0): re-list, remove oldest until keep_files remain.
    Returns the number of files removed.
    """
    now = now or datetime.now()
    removed = 0

    if keep_days > 0:
        cutoff = (now - timedelta(days=keep_days)).timestamp()
        for sibling in list_rotated_siblings(path):
            if sibling.modified_at < cutoff and remove_quietly(sibling.path):
                removed += 1

    if keep_files > 0:
        siblings = sorted(list_rotated_siblings(path), key=lambda s: s.modified_at)
        excess = len(siblings) - keep_files
        for sibling in siblings[: max(excess, 0)]:
            if remove_quietly(sibling.path):
                removed += 1

    if removed:
        logging.info(f"Retention removed {removed} rotated files for {path}")
    return removed
