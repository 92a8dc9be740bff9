"""
Job Store Service
Repository for job records, with in-memory and SQLite-backed implementations.
"""

import asyncio
import json
from pathlib import Path
from typing import Dict, List, Optional

import aiosqlite

from ..config import get_settings
from ..models.job import Job, JobState
from ..utils.logger import get_logger

logger = get_logger()


class JobRepository:
    """Storage interface for job records. One writer per job id."""

    async def initialize(self):
        """Prepare the backing store."""

    async def get(self, job_id: str) -> Optional[Job]:
        raise NotImplementedError

    async def put(self, job: Job):
        """Insert or replace a job record."""
        raise NotImplementedError

    async def compare_and_set(self, job: Job, expected_state: JobState) -> bool:
        """Replace the record only if its stored state is ``expected_state``."""
        raise NotImplementedError

    async def delete(self, job_id: str):
        raise NotImplementedError

    async def list(self, owner: Optional[str] = None) -> List[Job]:
        raise NotImplementedError


class InMemoryJobRepository(JobRepository):
    """Process-local repository, used for tests and ephemeral deployments."""

    def __init__(self):
        self._jobs: Dict[str, Job] = {}
        self._lock = asyncio.Lock()

    async def get(self, job_id: str) -> Optional[Job]:
        job = self._jobs.get(job_id)
        return job.model_copy(deep=True) if job else None

    async def put(self, job: Job):
        async with self._lock:
            self._jobs[job.id] = job.model_copy(deep=True)

    async def compare_and_set(self, job: Job, expected_state: JobState) -> bool:
        async with self._lock:
            current = self._jobs.get(job.id)
            if current is None or current.state != expected_state:
                return False
            self._jobs[job.id] = job.model_copy(deep=True)
            return True

    async def delete(self, job_id: str):
        async with self._lock:
            self._jobs.pop(job_id, None)

    async def list(self, owner: Optional[str] = None) -> List[Job]:
        jobs = [
            job.model_copy(deep=True) for job in self._jobs.values()
            if owner is None or job.owner == owner
        ]
        return sorted(jobs, key=lambda item: item.created_at, reverse=True)


class SqliteJobRepository(JobRepository):
    """Persistent storage for jobs."""

    def __init__(self, db_path: str):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialized = False
        self._init_lock = asyncio.Lock()
        self._write_lock = asyncio.Lock()

    async def initialize(self):
        """Initialize database schema."""
        if self._initialized:
            return

        async with self._init_lock:
            if self._initialized:
                return

            async with aiosqlite.connect(self.db_path) as conn:
                await conn.execute("PRAGMA journal_mode=WAL")
                await conn.execute("PRAGMA synchronous=NORMAL")
                await conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS jobs (
                        id TEXT PRIMARY KEY,
                        owner TEXT NOT NULL,
                        state TEXT NOT NULL,
                        payload TEXT NOT NULL,
                        created_at TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    )
                    """
                )
                await conn.execute(
                    "CREATE INDEX IF NOT EXISTS idx_jobs_owner ON jobs(owner)"
                )
                await conn.commit()

            self._initialized = True
            logger.info(f"Job store initialized at {self.db_path}")

    @staticmethod
    def _to_json(job: Job) -> str:
        return json.dumps(job.model_dump(mode="json"), ensure_ascii=False)

    @staticmethod
    def _from_json(payload: str) -> Job:
        return Job.model_validate(json.loads(payload))

    async def get(self, job_id: str) -> Optional[Job]:
        await self.initialize()
        async with aiosqlite.connect(self.db_path) as conn:
            cursor = await conn.execute("SELECT payload FROM jobs WHERE id = ?", (job_id,))
            row = await cursor.fetchone()
            await cursor.close()

        if row is None:
            return None
        return self._from_json(row[0])

    async def put(self, job: Job):
        """Insert or update a job record."""
        await self.initialize()
        payload = self._to_json(job)

        async with self._write_lock:
            async with aiosqlite.connect(self.db_path) as conn:
                await conn.execute(
                    """
                    INSERT INTO jobs (id, owner, state, payload, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        state = excluded.state,
                        payload = excluded.payload,
                        updated_at = excluded.updated_at
                    """,
                    (
                        job.id,
                        job.owner,
                        job.state.value,
                        payload,
                        job.created_at.isoformat(),
                        job.updated_at.isoformat(),
                    ),
                )
                await conn.commit()

    async def compare_and_set(self, job: Job, expected_state: JobState) -> bool:
        await self.initialize()
        payload = self._to_json(job)

        async with self._write_lock:
            async with aiosqlite.connect(self.db_path) as conn:
                cursor = await conn.execute(
                    """
                    UPDATE jobs SET state = ?, payload = ?, updated_at = ?
                    WHERE id = ? AND state = ?
                    """,
                    (
                        job.state.value,
                        payload,
                        job.updated_at.isoformat(),
                        job.id,
                        expected_state.value,
                    ),
                )
                await conn.commit()
                updated = cursor.rowcount == 1
                await cursor.close()
        return updated

    async def delete(self, job_id: str):
        """Delete a job record."""
        await self.initialize()
        async with self._write_lock:
            async with aiosqlite.connect(self.db_path) as conn:
                await conn.execute("DELETE FROM jobs WHERE id = ?", (job_id,))
                await conn.commit()

    async def list(self, owner: Optional[str] = None) -> List[Job]:
        """Return stored jobs, newest first, optionally for one owner."""
        await self.initialize()
        query = "SELECT payload FROM jobs"
        params: tuple = ()

        if owner:
            query += " WHERE owner = ?"
            params = (owner,)

        query += " ORDER BY created_at DESC"

        async with aiosqlite.connect(self.db_path) as conn:
            cursor = await conn.execute(query, params)
            rows = await cursor.fetchall()
            await cursor.close()

        jobs: List[Job] = []
        for (payload,) in rows:
            try:
                jobs.append(self._from_json(payload))
            except Exception as exc:
                logger.warning(f"Skipping invalid stored job payload: {exc}")
        return jobs


_job_repository: Optional[JobRepository] = None


def get_job_repository() -> JobRepository:
    """Return singleton job repository for the configured backend."""
    global _job_repository
    if _job_repository is None:
        settings = get_settings()
        if settings.job_store_backend == "memory":
            _job_repository = InMemoryJobRepository()
        else:
            db_path = Path(settings.data_dir) / "reelcut.db"
            _job_repository = SqliteJobRepository(str(db_path))
    return _job_repository
