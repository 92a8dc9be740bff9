import asyncio

import pytest

from reelcut.models.job import Job, JobState
from reelcut.services.job_store import InMemoryJobRepository, SqliteJobRepository


@pytest.fixture(params=["memory", "sqlite"])
def repository(request, tmp_path):
    if request.param == "memory":
        return InMemoryJobRepository()
    return SqliteJobRepository(str(tmp_path / "jobs.db"))


def test_put_and_get_round_trip(repository):
    job = Job(owner="alice", source="uploads/a.mp4", constraints={"target_clip_count": 3})

    async def scenario():
        await repository.initialize()
        await repository.put(job)
        return await repository.get(job.id)

    stored = asyncio.run(scenario())

    assert stored == job
    assert stored.constraints.target_clip_count == 3


def test_get_missing_returns_none(repository):
    async def scenario():
        await repository.initialize()
        return await repository.get("does-not-exist")

    assert asyncio.run(scenario()) is None


def test_compare_and_set_only_applies_on_expected_state(repository):
    job = Job(owner="alice", source="uploads/a.mp4")
    processing = job.model_copy(update={"state": JobState.PROCESSING, "progress": 5})
    cancelled = job.model_copy(update={"state": JobState.CANCELLED})

    async def scenario():
        await repository.initialize()
        await repository.put(job)
        first = await repository.compare_and_set(processing, JobState.QUEUED)
        second = await repository.compare_and_set(cancelled, JobState.QUEUED)
        return first, second, await repository.get(job.id)

    first, second, stored = asyncio.run(scenario())

    assert first is True
    assert second is False
    assert stored.state == JobState.PROCESSING
    assert stored.progress == 5


def test_compare_and_set_on_missing_job_fails(repository):
    job = Job(owner="alice", source="uploads/a.mp4")

    async def scenario():
        await repository.initialize()
        return await repository.compare_and_set(job, JobState.QUEUED)

    assert asyncio.run(scenario()) is False


def test_list_filters_by_owner_and_delete(repository):
    jobs = [
        Job(owner="alice", source="uploads/a.mp4"),
        Job(owner="bob", source="uploads/b.mp4"),
        Job(owner="alice", source="uploads/c.mp4"),
    ]

    async def scenario():
        await repository.initialize()
        for job in jobs:
            await repository.put(job)
        alice = await repository.list("alice")
        await repository.delete(jobs[0].id)
        return alice, await repository.list()

    alice, remaining = asyncio.run(scenario())

    assert {job.source for job in alice} == {"uploads/a.mp4", "uploads/c.mp4"}
    assert {job.id for job in remaining} == {jobs[1].id, jobs[2].id}


def test_sqlite_records_survive_a_new_repository(tmp_path):
    db_path = str(tmp_path / "jobs.db")
    job = Job(owner="alice", source="uploads/a.mp4")

    async def write():
        await SqliteJobRepository(db_path).put(job)

    async def read():
        return await SqliteJobRepository(db_path).get(job.id)

    asyncio.run(write())

    assert asyncio.run(read()) == job
