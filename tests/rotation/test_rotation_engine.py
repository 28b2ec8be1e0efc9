"""
Tests for RotationEngine: rotation decision, bookkeeping, compression and retention.
"""

import os
from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest

from rotator.core.exceptions import RotationSuffixExhaustedError
from rotator.models import PolicyConfig, RotationTechnique
from rotator.services.budget.budget_tracker import BudgetTracker
from rotator.services.budget.eviction_sweeper import EvictionSweeper
from rotator.services.discovery.domain_objects import DiscoveredFile
from rotator.services.journal import ACTION_COMPRESSED, ACTION_ROTATED, Journal
from rotator.services.metrics import PrometheusMetrics
from rotator.services.rotation.rotation_engine import (
    RotationEngine,
    RotationTrigger,
    evaluate_rotation,
)
from rotator.services.rotation.rotation_strategies import RotationStrategyFactory
from rotator.services.task_pool import BackgroundTaskPool

NOW = datetime(2024, 6, 1, 12, 0, 0)


def _file_aged(size_bytes: int, age: timedelta) -> DiscoveredFile:
    modified = NOW - age
    return DiscoveredFile(
        path="/logs/payments/pod1/app.log",
        namespace="payments",
        pod="pod1",
        size_bytes=size_bytes,
        modified_at_millis=int(modified.timestamp() * 1000),
    )


def _discovered(path) -> DiscoveredFile:
    stat_result = os.stat(path)
    return DiscoveredFile(
        path=str(path),
        namespace=path.parent.parent.name,
        pod=path.parent.name,
        size_bytes=stat_result.st_size,
        modified_at_millis=int(stat_result.st_mtime * 1000),
    )


class TestEvaluateRotation:
    """Each trigger is checked on its own, in order size, age, inactivity."""

    def test_size_trigger(self):
        policy = PolicyConfig(size_threshold=100)
        assert evaluate_rotation(_file_aged(100, timedelta(0)), policy, NOW) == RotationTrigger.SIZE

    def test_below_size_threshold(self):
        policy = PolicyConfig(size_threshold=100)
        assert evaluate_rotation(_file_aged(99, timedelta(0)), policy, NOW) is None

    def test_age_trigger_without_size(self):
        policy = PolicyConfig(size_threshold=1000, age_threshold=timedelta(hours=24))
        file = _file_aged(1, timedelta(hours=25))

        assert evaluate_rotation(file, policy, NOW) == RotationTrigger.AGE

    def test_inactivity_trigger(self):
        policy = PolicyConfig(
            size_threshold=1000,
            age_threshold=timedelta(hours=24),
            inactivity_threshold=timedelta(hours=6),
        )
        file = _file_aged(1, timedelta(hours=7))

        assert evaluate_rotation(file, policy, NOW) == RotationTrigger.INACTIVITY

    def test_size_checked_first(self):
        policy = PolicyConfig(size_threshold=10, age_threshold=timedelta(hours=1))
        file = _file_aged(50, timedelta(hours=5))

        assert evaluate_rotation(file, policy, NOW) == RotationTrigger.SIZE

    def test_zero_thresholds_never_trigger(self):
        file = _file_aged(10**12, timedelta(days=365))
        assert evaluate_rotation(file, PolicyConfig(), NOW) is None


@pytest.fixture
def metrics():
    return PrometheusMetrics()


@pytest.fixture
def journal(tmp_path):
    return Journal(str(tmp_path / "state" / "state.json"))


def _engine(journal, metrics, log_root, limit=10**9, sweeper=None, pool=None, max_suffix=1000):
    pool = pool or BackgroundTaskPool()
    return RotationEngine(
        strategy_factory=RotationStrategyFactory(max_suffix=max_suffix),
        journal=journal,
        budget_tracker=BudgetTracker(limit),
        eviction_sweeper=sweeper or EvictionSweeper(str(log_root), limit, pool),
        task_pool=pool,
        metrics=metrics,
    )


class TestProcessFile:
    @pytest.mark.asyncio
    async def test_file_not_due_is_left_alone(self, log_root, make_file, journal, metrics):
        log = make_file(log_root / "payments" / "pod1" / "app.log", b"small")
        engine = _engine(journal, metrics, log_root)

        result = await engine.process_file(_discovered(log), PolicyConfig(size_threshold=1000))

        assert result is None
        assert log.read_bytes() == b"small"
        assert journal.snapshot() == {}

    @pytest.mark.asyncio
    async def test_size_rotation_bookkeeping(self, log_root, make_file, journal, metrics):
        log = make_file(log_root / "payments" / "pod1" / "app.log", b"x" * 2048)
        engine = _engine(journal, metrics, log_root)

        result = await engine.process_file(_discovered(log), PolicyConfig(size_threshold=1024))

        assert result.bytes_rotated == 2048
        assert (log_root / "payments" / "pod1" / "app.log.1").stat().st_size == 2048
        assert journal.get(str(log)) == ACTION_ROTATED
        assert metrics.get_value(
            "rotator_rotations_total", {"namespace": "payments", "technique": "rename"}
        ) == 1
        assert metrics.get_value("rotator_bytes_rotated_total", {"namespace": "payments"}) == 2048
        assert metrics.get_value("rotator_ns_usage_bytes", {"namespace": "payments"}) == 2048

    @pytest.mark.asyncio
    async def test_technique_from_policy(self, log_root, make_file, journal, metrics):
        log = make_file(log_root / "payments" / "pod1" / "app.log", b"x" * 64)
        inode = log.stat().st_ino
        engine = _engine(journal, metrics, log_root)
        policy = PolicyConfig(size_threshold=10, rotation_technique=RotationTechnique.COPY_TRUNCATE)

        result = await engine.process_file(_discovered(log), policy)

        assert result.technique == RotationTechnique.COPY_TRUNCATE
        assert log.stat().st_ino == inode
        assert metrics.get_value(
            "rotator_rotations_total", {"namespace": "payments", "technique": "copytruncate"}
        ) == 1

    @pytest.mark.asyncio
    async def test_usage_accumulates(self, log_root, make_file, journal, metrics):
        engine = _engine(journal, metrics, log_root)
        policy = PolicyConfig(size_threshold=10)

        for pod in ("pod1", "pod2"):
            log = make_file(log_root / "payments" / pod / "app.log", b"x" * 100)
            await engine.process_file(_discovered(log), policy)

        assert metrics.get_value("rotator_ns_usage_bytes", {"namespace": "payments"}) == 200

    @pytest.mark.asyncio
    async def test_over_budget_requests_eviction(self, log_root, make_file, journal, metrics):
        log = make_file(log_root / "payments" / "pod1" / "app.log", b"x" * 100)
        sweeper = MagicMock(spec=EvictionSweeper)
        engine = _engine(journal, metrics, log_root, limit=50, sweeper=sweeper)

        await engine.process_file(_discovered(log), PolicyConfig(size_threshold=10))

        sweeper.request_sweep.assert_called_once_with("payments")

    @pytest.mark.asyncio
    async def test_at_budget_does_not_evict(self, log_root, make_file, journal, metrics):
        log = make_file(log_root / "payments" / "pod1" / "app.log", b"x" * 100)
        sweeper = MagicMock(spec=EvictionSweeper)
        engine = _engine(journal, metrics, log_root, limit=100, sweeper=sweeper)

        await engine.process_file(_discovered(log), PolicyConfig(size_threshold=10))

        sweeper.request_sweep.assert_not_called()


class TestCompressionScheduling:
    @pytest.mark.asyncio
    async def test_rotated_file_compressed_after_delay(self, log_root, make_file, journal, metrics):
        log = make_file(log_root / "payments" / "pod1" / "app.log", b"x" * 100)
        pool = BackgroundTaskPool()
        engine = _engine(journal, metrics, log_root, pool=pool)
        policy = PolicyConfig(size_threshold=10, compress_after=timedelta(milliseconds=10))

        result = await engine.process_file(_discovered(log), policy)
        await pool.drain()

        archive = log_root / "payments" / "pod1" / "app.log.1.gz"
        assert archive.exists()
        assert not result.target_path.exists()
        assert journal.get(str(result.target_path)) == ACTION_COMPRESSED

    @pytest.mark.asyncio
    async def test_zero_delay_disables_compression(self, log_root, make_file, journal, metrics):
        log = make_file(log_root / "payments" / "pod1" / "app.log", b"x" * 100)
        pool = BackgroundTaskPool()
        engine = _engine(journal, metrics, log_root, pool=pool)

        result = await engine.process_file(_discovered(log), PolicyConfig(size_threshold=10))

        assert pool.pending_count == 0
        assert result.target_path.exists()

    @pytest.mark.asyncio
    async def test_compression_failure_counted(self, log_root, make_file, journal, metrics):
        log = make_file(log_root / "payments" / "pod1" / "app.log", b"x" * 100)
        pool = BackgroundTaskPool()
        engine = _engine(journal, metrics, log_root, pool=pool)
        policy = PolicyConfig(size_threshold=10, compress_after=timedelta(milliseconds=10))

        result = await engine.process_file(_discovered(log), policy)
        # Archive disappears before the delayed compression runs
        os.remove(result.target_path)
        await pool.drain()

        assert metrics.get_value("rotator_errors_total", {"type": "compression"}) == 1


class TestRetentionAfterRotation:
    @pytest.mark.asyncio
    async def test_retention_applied_after_rotation(self, log_root, make_file, journal, metrics):
        pod_dir = log_root / "payments" / "pod1"
        log = make_file(pod_dir / "app.log", b"x" * 100)
        make_file(pod_dir / "app.log.1", age_seconds=300)
        make_file(pod_dir / "app.log.2", age_seconds=200)
        engine = _engine(journal, metrics, log_root)

        await engine.process_file(_discovered(log), PolicyConfig(size_threshold=10, keep_files=2))

        assert sorted(p.name for p in pod_dir.iterdir()) == ["app.log", "app.log.2", "app.log.3"]

    @pytest.mark.asyncio
    async def test_retention_runs_when_rotation_fails(self, log_root, make_file, journal, metrics):
        pod_dir = log_root / "payments" / "pod1"
        log = make_file(pod_dir / "app.log", b"x" * 100)
        make_file(pod_dir / "app.log.1", age_seconds=300)
        make_file(pod_dir / "app.log.2", age_seconds=200)
        engine = _engine(journal, metrics, log_root, max_suffix=2)

        with pytest.raises(RotationSuffixExhaustedError):
            await engine.process_file(
                _discovered(log), PolicyConfig(size_threshold=10, keep_files=1)
            )

        assert sorted(p.name for p in pod_dir.iterdir()) == ["app.log", "app.log.2"]
        assert log.stat().st_size == 100
        assert journal.snapshot() == {}
