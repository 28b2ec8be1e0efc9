"""
Tests for BackgroundTaskPool supervision and shutdown.
"""

import asyncio
import logging

import pytest

from rotator.services.task_pool import BackgroundTaskPool


class TestSpawn:
    @pytest.mark.asyncio
    async def test_task_tracked_until_done(self):
        pool = BackgroundTaskPool()
        event = asyncio.Event()

        async def worker():
            await event.wait()
            return "done"

        task = pool.spawn(worker(), name="worker")
        assert pool.pending_count == 1

        event.set()
        await pool.drain()

        assert task.result() == "done"
        assert pool.pending_count == 0

    @pytest.mark.asyncio
    async def test_failure_is_logged(self, caplog):
        pool = BackgroundTaskPool()

        async def broken():
            raise RuntimeError("boom")

        with caplog.at_level(logging.ERROR):
            pool.spawn(broken(), name="broken")
            await pool.drain()

        assert "broken" in caplog.text
        assert "boom" in caplog.text
        assert pool.pending_count == 0

    @pytest.mark.asyncio
    async def test_drain_waits_for_nested_spawns(self):
        pool = BackgroundTaskPool()
        results = []

        async def child():
            results.append("child")

        async def parent():
            pool.spawn(child(), name="child")
            results.append("parent")

        pool.spawn(parent(), name="parent")
        await pool.drain()

        assert results == ["parent", "child"]


class TestShutdown:
    @pytest.mark.asyncio
    async def test_pending_tasks_cancelled(self):
        pool = BackgroundTaskPool()

        async def sleeper():
            await asyncio.sleep(3600)

        task = pool.spawn(sleeper(), name="sleeper")
        await asyncio.sleep(0)

        cancelled = await pool.shutdown(timeout=1.0)

        assert cancelled == 1
        assert task.cancelled()

    @pytest.mark.asyncio
    async def test_spawn_after_shutdown_is_dropped(self):
        pool = BackgroundTaskPool()
        await pool.shutdown()
        ran = []

        async def worker():
            ran.append(True)

        assert pool.spawn(worker(), name="late") is None
        await asyncio.sleep(0)

        assert ran == []
        assert pool.pending_count == 0

    @pytest.mark.asyncio
    async def test_shutdown_with_nothing_pending(self):
        assert await BackgroundTaskPool().shutdown() == 0
