"""
Custom Exceptions for ReelCut
Structured error handling with recovery hints
"""

from typing import Optional, Dict, Any


class ReelCutError(Exception):
    """Base exception for all ReelCut errors"""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        status_code: int = 500,
        recoverable: bool = False,
        recovery_hint: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.recoverable = recoverable
        self.recovery_hint = recovery_hint
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to JSON-serializable dict"""
        return {
            "error": self.code,
            "message": self.message,
            "recoverable": self.recoverable,
            "recovery_hint": self.recovery_hint,
            "details": self.details
        }


# ============================================================================
# Request Errors
# ============================================================================

class ValidationError(ReelCutError):
    """Missing or malformed request fields"""

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=400,
            recoverable=True,
            recovery_hint="Check your input parameters and try again.",
            details={"field": field, **kwargs}
        )


class NotFound(ReelCutError):
    """Job not found"""

    def __init__(self, job_id: str):
        super().__init__(
            message=f"Job not found: {job_id}",
            code="JOB_NOT_FOUND",
            status_code=404,
            recoverable=False,
            details={"job_id": job_id}
        )


class InvalidState(ReelCutError):
    """Operation not allowed in the job's current state"""

    def __init__(self, job_id: str, state: str, operation: str = "cancel"):
        super().__init__(
            message=f"Cannot {operation} job {job_id} in state '{state}'",
            code="INVALID_STATE",
            status_code=409,
            recoverable=False,
            details={"job_id": job_id, "state": state, "operation": operation}
        )


class QueueFullError(ReelCutError):
    """Job executor has no free capacity"""

    def __init__(self, max_pending: int):
        super().__init__(
            message="Job queue is full. Try again later.",
            code="QUEUE_FULL",
            status_code=429,
            recoverable=True,
            recovery_hint="Wait for running jobs to finish and submit again.",
            details={"max_pending": max_pending}
        )


# ============================================================================
# Pipeline Errors
# ============================================================================

class IngestionError(ReelCutError):
    """Error while fetching the source video"""

    def __init__(self, message: str, source: Optional[str] = None, **kwargs):
        super().__init__(
            message=message,
            code="INGESTION_ERROR",
            status_code=502,
            recoverable=True,
            recovery_hint="Check that the video exists in storage or that the URL is reachable.",
            details={"source": source, **kwargs}
        )


class ScoringFailed(ReelCutError):
    """Segment scoring oracle unreachable or returned unusable output"""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            code="SCORING_FAILED",
            status_code=502,
            recoverable=True,
            recovery_hint="Check your Gemini API key configuration. The AI service may be temporarily unavailable.",
            details=kwargs
        )


class EnrichmentFailed(ReelCutError):
    """Per-clip enrichment failure"""

    def __init__(self, clip_id: str, reason: str):
        super().__init__(
            message=f"Enrichment failed for clip {clip_id}: {reason}",
            code="ENRICHMENT_FAILED",
            status_code=502,
            recoverable=True,
            details={"clip_id": clip_id, "reason": reason}
        )


class APIKeyError(ReelCutError):
    """Missing or invalid API key"""

    def __init__(self, service: str):
        super().__init__(
            message=f"API key for {service} is missing or invalid",
            code="API_KEY_ERROR",
            status_code=500,
            recoverable=True,
            recovery_hint=f"Configure the {service} API key in the environment or the .env file.",
            details={"service": service}
        )


class OracleUnavailableError(ReelCutError):
    """Transient failure talking to the AI oracle"""

    def __init__(self, service: str, reason: str):
        super().__init__(
            message=f"{service} unavailable: {reason}",
            code="ORACLE_UNAVAILABLE",
            status_code=503,
            recoverable=True,
            recovery_hint="The AI service may be temporarily unavailable. Try again shortly.",
            details={"service": service, "reason": reason}
        )


class RateLimitError(ReelCutError):
    """API rate limit exceeded"""

    def __init__(self, service: str, retry_after: Optional[int] = None):
        hint = "Wait and try again."
        if retry_after:
            hint = f"Wait {retry_after} seconds before retrying."

        super().__init__(
            message=f"Rate limit exceeded for {service}",
            code="RATE_LIMIT_ERROR",
            status_code=429,
            recoverable=True,
            recovery_hint=hint,
            details={"service": service, "retry_after": retry_after}
        )


class JobCancelledError(ReelCutError):
    """Job was cancelled while executing"""

    def __init__(self, job_id: str):
        super().__init__(
            message=f"Job was cancelled: {job_id}",
            code="JOB_CANCELLED",
            status_code=409,
            recoverable=False,
            details={"job_id": job_id}
        )
