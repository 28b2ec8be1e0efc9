import asyncio
import logging
from typing import Awaitable, Optional, Set


class BackgroundTaskPool:
    """
    Owns the background work spawned by the engine (compression, eviction).

    Every task is tracked until it finishes, failures are logged instead of
    disappearing with the task, and shutdown() cancels whatever is still
    pending so nothing outlives the process lifespan.
    """

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()
        self._closed = False

    @property
    def pending_count(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Awaitable, name: Optional[str] = None) -> Optional[asyncio.Task]:
        if self._closed:
            logging.warning(f"Task pool is shut down, dropping background task {name}")
            coro.close()
            return None

        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logging.debug(f"Background task {task.get_name()} cancelled")
            return

        error = task.exception()
        if error is not None:
            logging.error(f"Background task {task.get_name()} failed: {error}")

    async def drain(self) -> None:
        """Wait until every task spawned so far (and any they spawn) is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self, timeout: float = 5.0) -> int:
        """Cancel all pending tasks and wait for them. Returns how many were cancelled."""
        self._closed = True
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()

        if pending:
            done, still_running = await asyncio.wait(pending, timeout=timeout)
            if still_running:
                logging.warning(
                    f"{len(still_running)} background tasks did not stop within {timeout}s"
                )

        logging.info(f"Background task pool stopped, {len(pending)} tasks cancelled")
        return len(pending)
