import asyncio
import logging
import os
import stat
from dataclasses import dataclass, field
from typing import List, Optional, Set

from rotator.services.task_pool import BackgroundTaskPool
from rotator.utils.file_operations import looks_rotated, relative_parts, remove_quietly
from rotator.utils.units import format_bytes_human_readable


@dataclass
class EvictionCandidate:
    path: str
    size_bytes: int
    modified_at: float


@dataclass
class EvictionReport:
    namespace: str
    bytes_before: int = 0
    bytes_after: int = 0
    removed_files: List[str] = field(default_factory=list)

    @property
    def bytes_freed(self) -> int:
        return self.bytes_before - self.bytes_after


class EvictionSweeper:
    """
    Deletes the oldest rotated archives of a namespace until its archived
    bytes are at or below the limit.

    Only files named ``<name>.<N>`` or ``<name>.<N>.gz`` under
    ``<root>/<namespace>/<pod>/`` are candidates, live logs are never evicted.
    At most one sweep per namespace runs at a time.
    """

    def __init__(self, root: str, limit_bytes: int, task_pool: Optional[BackgroundTaskPool] = None):
        self.root = os.path.abspath(root)
        self.limit_bytes = limit_bytes
        self._task_pool = task_pool or BackgroundTaskPool()
        self._in_progress: Set[str] = set()

    def is_sweeping(self, namespace: str) -> bool:
        return namespace in self._in_progress

    def request_sweep(self, namespace: str) -> bool:
        """
        Start a background sweep unless one is already running for the namespace.

        Returns True if a new sweep was scheduled.
        """
        if namespace in self._in_progress:
            logging.debug(f"Eviction sweep already running for {namespace}, skipping request")
            return False

        self._in_progress.add(namespace)
        task = self._task_pool.spawn(self._run_sweep(namespace), name=f"evict:{namespace}")
        if task is None:
            self._in_progress.discard(namespace)
            return False
        return True

    async def _run_sweep(self, namespace: str) -> EvictionReport:
        try:
            return await asyncio.to_thread(self.sweep, namespace)
        finally:
            self._in_progress.discard(namespace)

    def collect_candidates(self, namespace: str) -> List[EvictionCandidate]:
        candidates: List[EvictionCandidate] = []

        for dirpath, dirnames, filenames in os.walk(self.root, followlinks=False):
            # Only descend into the namespace's own subtree
            if os.path.normpath(dirpath) == self.root:
                dirnames[:] = [name for name in dirnames if name == namespace]

            for name in filenames:
                if not looks_rotated(name):
                    continue

                full_path = os.path.join(dirpath, name)
                parts = relative_parts(full_path, self.root)
                if parts is None or len(parts) < 3 or parts[0] != namespace:
                    continue

                try:
                    stat_result = os.lstat(full_path)
                except OSError:
                    continue
                if not stat.S_ISREG(stat_result.st_mode):
                    continue
                candidates.append(
                    EvictionCandidate(
                        path=full_path,
                        size_bytes=stat_result.st_size,
                        modified_at=stat_result.st_mtime,
                    )
                )

        return candidates

    def sweep(self, namespace: str) -> EvictionReport:
        candidates = sorted(self.collect_candidates(namespace), key=lambda c: c.modified_at)
        total = sum(c.size_bytes for c in candidates)
        report = EvictionReport(namespace=namespace, bytes_before=total)

        for candidate in candidates:
            if total <= self.limit_bytes:
                break
            # Deletion errors are ignored, the bytes count as gone either way
            remove_quietly(candidate.path)
            report.removed_files.append(candidate.path)
            total -= candidate.size_bytes

        report.bytes_after = total

        if report.removed_files:
            logging.info(
                f"Eviction for {namespace}: removed {len(report.removed_files)} archives, "
                f"freed {format_bytes_human_readable(report.bytes_freed)}"
            )
        else:
            logging.debug(f"Eviction for {namespace}: nothing to remove ({total} bytes archived)")

        return report
