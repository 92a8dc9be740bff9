"""
Repurpose Router
Single action-dispatching endpoint used by polling clients.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..services.orchestrator import JobOrchestrator, get_orchestrator
from ..utils.exceptions import ValidationError
from ..utils.logger import get_logger

router = APIRouter(prefix="/api/repurpose", tags=["repurpose"])
logger = get_logger()


class RepurposeRequest(BaseModel):
    """Action envelope; which fields are required depends on ``action``"""
    action: str
    owner: Optional[str] = None
    source: Optional[str] = None
    constraints: Optional[dict] = None
    job_id: Optional[str] = Field(None, description="Required for get_status and cancel_job")


@router.post("")
async def repurpose(
    request: RepurposeRequest,
    orchestrator: JobOrchestrator = Depends(get_orchestrator),
):
    """Dispatch on ``action``: create_job, get_status or cancel_job."""
    logger.info(f"Received request: action={request.action}")

    if request.action == "create_job":
        job = await orchestrator.submit(request.owner, request.source, request.constraints)
        return {"job_id": job.id, "state": job.state.value}

    if request.action not in ("get_status", "cancel_job"):
        raise ValidationError(f"Invalid action: {request.action}", field="action")

    if not request.job_id:
        raise ValidationError("job_id is required", field="job_id")

    if request.action == "get_status":
        job = await orchestrator.get_status(request.job_id)
        return job.model_dump(mode="json")

    await orchestrator.cancel(request.job_id)
    return {"success": True}
