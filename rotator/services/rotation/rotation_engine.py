import asyncio
import logging
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Optional

from rotator.core.exceptions import CompressionError
from rotator.models import PolicyConfig
from rotator.services.budget.budget_tracker import BudgetTracker
from rotator.services.budget.eviction_sweeper import EvictionSweeper
from rotator.services.discovery.domain_objects import DiscoveredFile
from rotator.services.journal import ACTION_COMPRESSED, ACTION_ROTATED, Journal
from rotator.services.metrics import MetricsSink, NullMetrics
from rotator.services.task_pool import BackgroundTaskPool
from .compression import compress_gzip
from .retention import enforce_retention
from .rotation_strategies import RotationResult, RotationStrategyFactory


class RotationTrigger(str, Enum):
    SIZE = "size"
    AGE = "age"
    INACTIVITY = "inactivity"


def evaluate_rotation(
    file: DiscoveredFile, policy: PolicyConfig, now: datetime
) -> Optional[RotationTrigger]:
    """
    Decide whether ``file`` is due for rotation. Checks run in a fixed order
    and the first one that holds is returned: size, age, inactivity.
    """
    if policy.size_threshold > 0 and file.size_bytes >= policy.size_threshold:
        return RotationTrigger.SIZE

    age = timedelta(seconds=file.age_seconds(now))
    if policy.age_threshold > timedelta(0) and age >= policy.age_threshold:
        return RotationTrigger.AGE

    if policy.inactivity_threshold > timedelta(0) and age >= policy.inactivity_threshold:
        return RotationTrigger.INACTIVITY

    return None


class RotationEngine:
    def __init__(
        self,
        strategy_factory: RotationStrategyFactory,
        journal: Journal,
        budget_tracker: BudgetTracker,
        eviction_sweeper: EvictionSweeper,
        task_pool: BackgroundTaskPool,
        metrics: Optional[MetricsSink] = None,
    ):
        self._strategy_factory = strategy_factory
        self._journal = journal
        self._budget_tracker = budget_tracker
        self._eviction_sweeper = eviction_sweeper
        self._task_pool = task_pool
        self._metrics = metrics or NullMetrics()

        logging.info("RotationEngine initialized")

    async def process_file(
        self, file: DiscoveredFile, policy: PolicyConfig, now: Optional[datetime] = None
    ) -> Optional[RotationResult]:
        """
        Rotate ``file`` if its policy says so.

        Returns None when the file is not due. Rotation errors propagate to the
        caller after retention has run for the file's directory.
        """
        now = now or datetime.now()
        trigger = evaluate_rotation(file, policy, now)
        if trigger is None:
            return None

        path = Path(file.path)
        strategy = self._strategy_factory.get_strategy(policy.technique)
        logging.debug(f"Rotating {path} ({trigger.value} trigger) using {strategy.technique.value}")

        try:
            result = await strategy.rotate(path)
            await self._record_rotation(file, result)
            self._schedule_compression(result.target_path, policy.compress_after)
        finally:
            await asyncio.to_thread(enforce_retention, path, policy.keep_files, policy.keep_days)

        logging.info(f"ROTATED [{file.namespace}/{file.pod}] {result.get_summary()}")
        return result

    async def _record_rotation(self, file: DiscoveredFile, result: RotationResult) -> None:
        await asyncio.to_thread(self._journal.record, file.path, ACTION_ROTATED)

        self._metrics.record_rotation(file.namespace, result.technique.value, result.bytes_rotated)
        usage = self._budget_tracker.add(file.namespace, result.bytes_rotated)
        self._metrics.set_namespace_usage(file.namespace, usage)

        if self._budget_tracker.over_limit(file.namespace):
            logging.warning(
                f"Namespace {file.namespace} over budget "
                f"({usage} > {self._budget_tracker.limit_bytes} bytes), requesting eviction"
            )
            self._eviction_sweeper.request_sweep(file.namespace)

    def _schedule_compression(self, target: Path, delay: timedelta) -> None:
        if delay <= timedelta(0):
            return
        self._task_pool.spawn(self._compress_later(target, delay), name=f"compress:{target.name}")

    async def _compress_later(self, target: Path, delay: timedelta) -> Optional[Path]:
        await asyncio.sleep(delay.total_seconds())

        try:
            compressed = await asyncio.to_thread(compress_gzip, target)
        except CompressionError as e:
            self._metrics.count_error("compression")
            logging.warning(f"{e}, keeping uncompressed file")
            return None

        await asyncio.to_thread(self._journal.record, str(target), ACTION_COMPRESSED)
        return compressed
