"""
Job Queue Service
Fixed-size pool of asyncio workers that run detached job executions.
Submitting never waits for execution; a full backlog is reported to the
caller instead of blocking it.
"""

import asyncio
from typing import Awaitable, Callable, Dict, List, Optional

from ..utils.logger import get_logger

logger = get_logger()

JobProcessor = Callable[[str], Awaitable[None]]

_QUEUED = "queued"
_ACTIVE = "active"


class JobQueue:
    """Runs ``processor(job_id)`` on up to ``worker_count`` concurrent workers"""

    def __init__(
        self,
        processor: JobProcessor,
        worker_count: int = 1,
        max_pending: int = 10,
        drain_timeout: Optional[float] = None,
    ):
        self._processor = processor
        self._worker_count = max(1, worker_count)
        self._max_pending = max(1, max_pending)
        self._drain_timeout = drain_timeout
        self._backlog: asyncio.Queue = asyncio.Queue(maxsize=self._max_pending)
        self._workers: List[asyncio.Task] = []
        self._tracked: Dict[str, str] = {}
        self._running = False

    async def start(self):
        if self._running:
            return

        self._running = True
        for worker_id in range(1, self._worker_count + 1):
            self._workers.append(asyncio.create_task(self._work(worker_id)))
        logger.info(f"Job queue started with {self._worker_count} workers, backlog limit {self._max_pending}")

    async def stop(self):
        """
        Let the backlog drain, then stop the workers.

        With a ``drain_timeout`` the workers are cancelled if draining takes
        longer than that.
        """
        if not self._running:
            return

        self._running = False
        for _ in self._workers:
            await self._backlog.put(None)

        done, pending = await asyncio.wait(self._workers, timeout=self._drain_timeout)
        for task in pending:
            task.cancel()
        if pending:
            logger.warning(f"Cancelled {len(pending)} workers that did not drain in time")
            await asyncio.gather(*pending, return_exceptions=True)

        self._workers = []
        self._tracked.clear()
        logger.info("Job queue stopped")

    def enqueue(self, job_id: str) -> bool:
        """
        Schedule ``job_id`` for execution without waiting.

        Returns False when the backlog is full. Ids that are already queued or
        running are accepted without being scheduled twice.
        """
        if not self._running:
            raise RuntimeError("Job queue is not running")
        if job_id in self._tracked:
            return True

        try:
            self._backlog.put_nowait(job_id)
        except asyncio.QueueFull:
            logger.warning(f"Job queue full, rejected {job_id}")
            return False

        self._tracked[job_id] = _QUEUED
        return True

    def can_accept(self) -> bool:
        return not self._backlog.full()

    async def join(self):
        """Block until every scheduled job has finished executing"""
        await self._backlog.join()

    def stats(self) -> dict:
        states = list(self._tracked.values())
        return {
            "pending": states.count(_QUEUED),
            "active": states.count(_ACTIVE),
            "max_pending": self._max_pending,
            "workers": self._worker_count,
            "running": self._running,
        }

    async def _work(self, worker_id: int):
        while True:
            job_id = await self._backlog.get()
            try:
                if job_id is None:
                    return
                self._tracked[job_id] = _ACTIVE
                await self._processor(job_id)
            except Exception as exc:
                logger.exception(f"Worker {worker_id} crashed on job {job_id}: {exc}")
            finally:
                self._tracked.pop(job_id, None)
                self._backlog.task_done()
