"""
Job Orchestrator
Owns the job lifecycle: submission, detached execution of the repurposing
pipeline, progress checkpoints, cancellation and status reads.

    queued -> processing -> completed | failed
    queued | processing -> cancelled   (caller-triggered)
"""

import time
from datetime import datetime
from typing import Callable, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from ..config import get_settings
from ..models.clip import Clip
from ..models.job import Constraints, Job, JobResult, JobState, JobStatistics
from ..models.segment import ScoringResult
from ..utils.exceptions import (
    InvalidState,
    JobCancelledError,
    NotFound,
    QueueFullError,
    ValidationError,
)
from ..utils.logger import get_logger
from .clip_enricher import ClipEnricher
from .clip_synthesizer import synthesize_clips
from .gemini_oracle import GeminiOracle
from .job_queue import JobQueue
from .job_store import JobRepository, get_job_repository
from .object_store import get_object_store
from .segment_scorer import SegmentScorer
from .segment_selector import select_segments
from .video_ingest import IngestedVideo, VideoIngestor

logger = get_logger()

# Progress checkpoints, written as each stage completes
PROGRESS_STARTED = 5
PROGRESS_INGESTED = 15
PROGRESS_ORACLE_READY = 25
PROGRESS_SCORED = 50
PROGRESS_SELECTED = 70
PROGRESS_ENRICHED = 85
PROGRESS_COMPLETED = 100

INTERRUPTED_REASON = "Job interrupted by server restart"


def _transition(job: Job, **changes) -> Job:
    """Copy ``job`` with ``changes`` applied, re-checking the record invariants"""
    data = job.model_dump()
    data.update(changes)
    data["updated_at"] = datetime.utcnow()
    return Job.model_validate(data)


def _format_validation_error(exc: PydanticValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    if location:
        return f"{location}: {first['msg']}"
    return first["msg"]


class JobOrchestrator:
    """Runs repurposing jobs and exposes the submit/poll/cancel protocol"""

    def __init__(
        self,
        repository: JobRepository,
        ingestor: VideoIngestor,
        scorer: SegmentScorer,
        enricher: ClipEnricher,
        worker_count: int = 1,
        max_pending: int = 10,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.repository = repository
        self.ingestor = ingestor
        self.scorer = scorer
        self.enricher = enricher
        self.queue = JobQueue(self.execute, worker_count=worker_count, max_pending=max_pending)
        self._clock = clock

    async def start(self):
        """Prepare storage, recover interrupted jobs and start workers"""
        await self.repository.initialize()
        await self.recover_interrupted()
        await self.queue.start()

    async def stop(self):
        await self.queue.stop()

    # ------------------------------------------------------------------
    # Request side
    # ------------------------------------------------------------------

    async def submit(
        self,
        owner: Optional[str],
        source: Optional[str],
        constraints: Union[Constraints, dict, None] = None,
    ) -> Job:
        """
        Persist a queued job and schedule its execution.

        Returns as soon as the job is queued. Nothing is written when the
        request is invalid.
        """
        if not isinstance(owner, str) or not owner.strip():
            raise ValidationError("owner is required", field="owner")
        if not isinstance(source, str) or not source.strip():
            raise ValidationError("source is required", field="source")

        if isinstance(constraints, Constraints):
            parsed = constraints
        else:
            try:
                parsed = Constraints.model_validate(constraints or {})
            except PydanticValidationError as e:
                raise ValidationError(
                    f"Invalid constraints: {_format_validation_error(e)}",
                    field="constraints",
                ) from e

        if not self.queue.can_accept():
            raise QueueFullError(self.queue.stats()["max_pending"])

        job = Job(owner=owner.strip(), source=source.strip(), constraints=parsed)
        await self.repository.put(job)

        try:
            enqueued = self.queue.enqueue(job.id)
        except RuntimeError:
            await self.repository.delete(job.id)
            raise

        if not enqueued:
            await self.repository.delete(job.id)
            raise QueueFullError(self.queue.stats()["max_pending"])

        logger.info(f"Job created and queued: {job.id}")
        return job

    async def get_status(self, job_id: str) -> Job:
        """Read the persisted job record"""
        job = await self.repository.get(job_id)
        if job is None:
            raise NotFound(job_id)
        return job

    async def list_jobs(self, owner: Optional[str] = None) -> List[Job]:
        return await self.repository.list(owner)

    async def cancel(self, job_id: str) -> Job:
        """
        Mark a non-terminal job as cancelled.

        Advisory only: work already in flight finishes in the background and
        its output is discarded.
        """
        while True:
            job = await self.get_status(job_id)
            if job.state.is_terminal:
                raise InvalidState(job_id, job.state.value)

            cancelled = _transition(job, state=JobState.CANCELLED)
            if await self.repository.compare_and_set(cancelled, job.state):
                logger.info(f"Job cancelled: {job_id}")
                return cancelled

    async def recover_interrupted(self) -> int:
        """Fail jobs a previous process left queued or processing"""
        recovered = 0
        for job in await self.repository.list():
            if job.state not in (JobState.QUEUED, JobState.PROCESSING):
                continue
            failed = _transition(job, state=JobState.FAILED, failure_reason=INTERRUPTED_REASON)
            if await self.repository.compare_and_set(failed, job.state):
                recovered += 1

        if recovered:
            logger.warning(f"Marked {recovered} interrupted jobs as failed")
        return recovered

    # ------------------------------------------------------------------
    # Execution side
    # ------------------------------------------------------------------

    async def _checkpoint(self, job: Job, progress: int) -> Job:
        """Persist a progress milestone; stops the run if the job was cancelled"""
        updated = _transition(job, progress=max(job.progress, progress))
        if not await self.repository.compare_and_set(updated, JobState.PROCESSING):
            raise JobCancelledError(job.id)
        logger.info(f"Job {job.id} progress: {updated.progress}%")
        return updated

    async def execute(self, job_id: str):
        """Main job processing pipeline. Never raises for pipeline errors."""
        job = await self.repository.get(job_id)
        if job is None:
            logger.warning(f"Job {job_id} disappeared before execution")
            return

        started = self._clock()
        processing = _transition(job, state=JobState.PROCESSING, progress=PROGRESS_STARTED)
        if not await self.repository.compare_and_set(processing, JobState.QUEUED):
            logger.info(f"Job {job_id} is {job.state.value}, skipping execution")
            return
        job = processing
        video: Optional[IngestedVideo] = None

        try:
            # =================================================================
            # Step 1: Ingest
            # =================================================================
            video = await self.ingestor.fetch(job.id, job.owner, job.source)
            job = await self._checkpoint(job, PROGRESS_INGESTED)

            media = await self.scorer.ingest(video.path, video.mime_type)
            job = await self._checkpoint(job, PROGRESS_ORACLE_READY)

            # =================================================================
            # Step 2: Score
            # =================================================================
            scoring = await self.scorer.score(media, job.constraints)
            job = await self._checkpoint(job, PROGRESS_SCORED)

            # =================================================================
            # Step 3: Select & Synthesize
            # =================================================================
            selected = select_segments(scoring.segments, job.constraints)
            clips = synthesize_clips(selected, job.constraints, job.source)
            logger.info(
                f"Job {job.id}: selected {len(clips)} of {len(scoring.segments)} candidate segments"
            )
            job = await self._checkpoint(job, PROGRESS_SELECTED)

            # =================================================================
            # Step 4: Enrich
            # =================================================================
            clips = await self.enricher.enrich_all(clips, job.constraints)
            job = await self._checkpoint(job, PROGRESS_ENRICHED)

            # =================================================================
            # Step 5: Persist
            # =================================================================
            result = self._build_result(clips, scoring, self._clock() - started)
            completed = _transition(
                job,
                state=JobState.COMPLETED,
                progress=PROGRESS_COMPLETED,
                result=result,
            )
            if not await self.repository.compare_and_set(completed, JobState.PROCESSING):
                raise JobCancelledError(job.id)

            logger.info(
                f"Job {job.id} completed with {len(clips)} clips "
                f"in {result.statistics.processing_time_seconds}s"
            )

        except JobCancelledError:
            logger.info(f"Job {job_id} was cancelled, discarding its results")

        except Exception as exc:
            logger.exception(f"Job {job_id} failed: {exc}")
            failed = _transition(
                job,
                state=JobState.FAILED,
                failure_reason=str(exc) or exc.__class__.__name__,
            )
            if not await self.repository.compare_and_set(failed, JobState.PROCESSING):
                logger.info(f"Job {job_id} is no longer processing, failure not recorded")

        finally:
            if video is not None:
                video.cleanup()

    @staticmethod
    def _build_result(clips: List[Clip], scoring: ScoringResult, elapsed: float) -> JobResult:
        average = sum(clip.virality_score for clip in clips) / len(clips) if clips else 0.0
        top_score = max((segment.score for segment in scoring.segments), default=None)

        return JobResult(
            clips=clips,
            statistics=JobStatistics(
                total_clips=len(clips),
                average_virality_score=round(average, 1),
                processing_time_seconds=round(elapsed, 1),
                segments_analyzed=len(scoring.segments),
                top_score=top_score,
            ),
            transcript=scoring.transcript,
        )


_orchestrator: Optional[JobOrchestrator] = None


def get_orchestrator() -> JobOrchestrator:
    """Return singleton orchestrator wired from settings."""
    global _orchestrator
    if _orchestrator is None:
        settings = get_settings()
        oracle = GeminiOracle()
        _orchestrator = JobOrchestrator(
            repository=get_job_repository(),
            ingestor=VideoIngestor(get_object_store(), settings.temp_dir),
            scorer=SegmentScorer(oracle),
            enricher=ClipEnricher(oracle),
            worker_count=settings.job_worker_concurrency,
            max_pending=settings.max_pending_jobs,
        )
    return _orchestrator
