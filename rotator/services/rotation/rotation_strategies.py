import asyncio
import logging
import os
import stat
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict

import aiofiles
import aiofiles.os

from rotator.core.exceptions import RotationError
from rotator.models import RotationTechnique
from rotator.utils.file_operations import MAX_ROTATION_SUFFIX, next_rotation_path


@dataclass
class RotationResult:
    source_path: Path
    target_path: Path
    bytes_rotated: int
    technique: RotationTechnique
    started_at: datetime
    elapsed_seconds: float

    def get_summary(self) -> str:
        return (
            f"{self.technique.value}: {self.source_path.name} -> {self.target_path.name} "
            f"({self.bytes_rotated} bytes in {self.elapsed_seconds:.3f}s)"
        )


def _create_empty_file(path: Path, mode: int) -> None:
    # No O_TRUNC: a writer that already reopened the path keeps its bytes
    fd = os.open(path, os.O_CREAT | os.O_WRONLY, mode)
    os.close(fd)
    # os.open applies the umask, put the exact original bits back
    os.chmod(path, mode)


class RotationStrategy(ABC):
    technique: RotationTechnique

    def __init__(self, max_suffix: int = MAX_ROTATION_SUFFIX):
        self.max_suffix = max_suffix

    async def rotate(self, path: Path) -> RotationResult:
        """
        Rotate ``path`` to the first free ``<path>.<N>``.

        Raises RotationSuffixExhaustedError before touching anything when all
        suffixes are taken, RotationError for any I/O failure.
        """
        started_at = datetime.now()
        target = next_rotation_path(path, self.max_suffix)

        try:
            bytes_rotated = await self._rotate_to(path, target)
        except OSError as e:
            raise RotationError(str(path), str(e)) from e

        return RotationResult(
            source_path=path,
            target_path=target,
            bytes_rotated=bytes_rotated,
            technique=self.technique,
            started_at=started_at,
            elapsed_seconds=(datetime.now() - started_at).total_seconds(),
        )

    @abstractmethod
    async def _rotate_to(self, path: Path, target: Path) -> int:
        pass


class RenameRotationStrategy(RotationStrategy):
    """
    Rename the live file away and recreate it empty with the same mode.

    Readers holding the old descriptor keep reading the renamed file. Writers
    must reopen by path, a writer holding the old descriptor keeps writing to
    the archive.
    """

    technique = RotationTechnique.RENAME

    async def _rotate_to(self, path: Path, target: Path) -> int:
        stat_result = await aiofiles.os.stat(path)
        mode = stat.S_IMODE(stat_result.st_mode)

        await aiofiles.os.rename(path, target)
        await asyncio.to_thread(_create_empty_file, path, mode)

        logging.debug(f"Renamed {path} -> {target} and recreated with mode {oct(mode)}")
        return stat_result.st_size


class CopyTruncateRotationStrategy(RotationStrategy):
    """
    Copy the content to the archive, then truncate the live file in place.

    The inode is preserved so writers continue without reopening. Anything
    appended between the end of the copy and the truncate is lost.
    """

    technique = RotationTechnique.COPY_TRUNCATE

    def __init__(self, chunk_size: int = 1024 * 1024, max_suffix: int = MAX_ROTATION_SUFFIX):
        super().__init__(max_suffix)
        self.chunk_size = chunk_size

    async def _rotate_to(self, path: Path, target: Path) -> int:
        bytes_copied = 0

        try:
            async with aiofiles.open(path, "rb") as src:
                mode = stat.S_IMODE(os.fstat(src.fileno()).st_mode)
                async with aiofiles.open(target, "wb") as dst:
                    while True:
                        chunk = await src.read(self.chunk_size)
                        if not chunk:
                            break
                        await dst.write(chunk)
                        bytes_copied += len(chunk)
            await asyncio.to_thread(os.chmod, target, mode)
        except OSError:
            # Copy did not complete, leave the original alone
            if os.path.exists(target):
                try:
                    os.remove(target)
                    logging.debug(f"Cleaned up partial copy after error: {target}")
                except OSError:
                    pass
            raise

        await asyncio.to_thread(os.truncate, path, 0)

        logging.debug(f"Copied {bytes_copied} bytes {path} -> {target} and truncated source")
        return bytes_copied


class RotationStrategyFactory:
    def __init__(self, chunk_size: int = 1024 * 1024, max_suffix: int = MAX_ROTATION_SUFFIX):
        self._strategies: Dict[RotationTechnique, RotationStrategy] = {
            RotationTechnique.RENAME: RenameRotationStrategy(max_suffix),
            RotationTechnique.COPY_TRUNCATE: CopyTruncateRotationStrategy(chunk_size, max_suffix),
        }

    def get_strategy(self, technique: RotationTechnique) -> RotationStrategy:
        return self._strategies[technique]
