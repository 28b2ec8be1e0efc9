import asyncio
import logging
import os
import stat
from typing import List, Optional

import aiofiles.os

from rotator.models import DiscoveryConfig, Overrides
from rotator.services.metrics import MetricsSink, NullMetrics
from rotator.utils.file_operations import depth_exceeds, relative_parts, to_slash
from rotator.utils.glob_match import matches_any, path_match
from .domain_objects import DiscoveredFile


def _allowed_by(discovery: Optional[DiscoveryConfig], path: str) -> bool:
    if discovery is None:
        return True
    if discovery.include and not matches_any(path, discovery.include):
        return False
    if discovery.exclude and matches_any(path, discovery.exclude):
        return False
    return True


class FileDiscoveryService:
    """
    Finds log files under <root>/<namespace>/<pod>/.

    Filtering happens in three layers that all have to agree:
    the global include/exclude lists, the namespace override's discovery
    lists, then the discovery lists of the first path override whose pattern
    matches. Patterns are matched against the full slash separated path.
    """

    def __init__(
        self,
        config: DiscoveryConfig,
        overrides: Optional[Overrides] = None,
        metrics: Optional[MetricsSink] = None,
    ):
        self.config = config
        self.overrides = overrides or Overrides()
        self._metrics = metrics or NullMetrics()
        self.root = os.path.abspath(config.path)

    async def discover_all_files(self) -> List[DiscoveredFile]:
        try:
            if not await aiofiles.os.path.exists(self.root):
                logging.debug(f"Log root does not exist: {self.root}")
                return []

            if not await aiofiles.os.path.isdir(self.root):
                logging.debug(f"Log root is not a directory: {self.root}")
                return []

            discovered = await asyncio.to_thread(self.scan)
            logging.debug(f"Discovered {len(discovered)} log files under {self.root}")
            return discovered

        except Exception as e:
            self._metrics.count_error("discovery")
            logging.error(f"Error discovering files: {e}")
            return []

    def scan(self) -> List[DiscoveredFile]:
        """Walk the root once and return every file that passes the filters."""
        discovered: List[DiscoveredFile] = []

        for dirpath, dirnames, filenames in os.walk(
            self.root, onerror=self._on_walk_error, followlinks=False
        ):
            # Prune in place so os.walk never descends past max depth
            dirnames[:] = [
                name
                for name in dirnames
                if not depth_exceeds(os.path.join(dirpath, name), self.root, self.config.max_depth)
            ]

            for name in filenames:
                discovered_file = self._inspect_file(os.path.join(dirpath, name))
                if discovered_file is not None:
                    discovered.append(discovered_file)

        return discovered

    def _inspect_file(self, full_path: str) -> Optional[DiscoveredFile]:
        try:
            stat_result = os.lstat(full_path)
        except OSError as e:
            logging.debug(f"Skipping {full_path}: {e}")
            return None

        if stat.S_ISLNK(stat_result.st_mode) or not stat.S_ISREG(stat_result.st_mode):
            return None

        parts = relative_parts(full_path, self.root)
        if parts is None:
            logging.warning(f"Skipping path outside log root: {full_path}")
            return None

        path = to_slash(full_path)
        if not matches_any(path, self.config.include) or (
            self.config.exclude and matches_any(path, self.config.exclude)
        ):
            return None

        # <namespace>/<pod>/<file...>
        if len(parts) < 3:
            return None
        namespace, pod = parts[0], parts[1]

        if not self._allowed_by_overrides(namespace, path):
            return None

        return DiscoveredFile(
            path=full_path,
            namespace=namespace,
            pod=pod,
            size_bytes=stat_result.st_size,
            modified_at_millis=int(stat_result.st_mtime * 1000),
        )

    def _allowed_by_overrides(self, namespace: str, path: str) -> bool:
        namespace_override = self.overrides.namespaces.get(namespace)
        if namespace_override is not None and not _allowed_by(namespace_override.discovery, path):
            return False

        for path_override in self.overrides.paths:
            if path_override.discovery is None:
                continue
            if path_match(path_override.match, path):
                return _allowed_by(path_override.discovery, path)

        return True

    def _on_walk_error(self, error: OSError) -> None:
        self._metrics.count_error("discovery")
        logging.debug(f"Skipping unreadable entry during scan: {error}")
