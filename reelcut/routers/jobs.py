"""
Jobs Router
REST access to repurposing jobs: create, poll, list and cancel.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, status

from ..models.job import Job, JobCreate
from ..services.orchestrator import JobOrchestrator, get_orchestrator

router = APIRouter(prefix="/api/jobs", tags=["jobs"])


@router.post("/", response_model=Job, status_code=status.HTTP_202_ACCEPTED)
async def create_job(
    request: JobCreate,
    orchestrator: JobOrchestrator = Depends(get_orchestrator),
):
    """Create a new repurposing job. Execution happens in the background."""
    return await orchestrator.submit(request.owner, request.source, request.constraints)


@router.get("/", response_model=List[Job])
async def list_jobs(
    owner: Optional[str] = None,
    orchestrator: JobOrchestrator = Depends(get_orchestrator),
):
    """List jobs, newest first."""
    return await orchestrator.list_jobs(owner)


@router.get("/{job_id}", response_model=Job)
async def get_job(job_id: str, orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    """Get a job's current record, including its result once completed."""
    return await orchestrator.get_status(job_id)


@router.post("/{job_id}/cancel", response_model=Job)
async def cancel_job(job_id: str, orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    """Cancel a queued or processing job."""
    return await orchestrator.cancel(job_id)
