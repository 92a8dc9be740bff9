"""
Job Data Models
Represents a video repurposing job and the constraints that drive it
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List, Literal
from enum import Enum
from datetime import datetime
import uuid

from .clip import Clip


MAX_TARGET_CLIP_COUNT = 50

Platform = Literal["youtube_shorts", "tiktok", "instagram_reels", "twitter", "generic"]


class JobState(str, Enum):
    """Job lifecycle state"""
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.COMPLETED, JobState.FAILED, JobState.CANCELLED)


class Constraints(BaseModel):
    """Caller-supplied selection constraints"""
    target_clip_count: int = Field(default=10, ge=1, description="Clips to produce (capped at 50)")
    min_duration_seconds: float = Field(default=15, ge=0)
    max_duration_seconds: float = Field(default=60, gt=0)
    virality_threshold: float = Field(default=70, ge=0, le=100, description="Minimum virality on the 0-100 scale")
    overlap_prevention: bool = True
    platforms: List[Platform] = Field(
        default_factory=lambda: ["youtube_shorts", "tiktok", "instagram_reels"],
        description="Target platforms (affects formatting only)"
    )

    @field_validator("target_clip_count")
    @classmethod
    def cap_target_clip_count(cls, value: int) -> int:
        return min(value, MAX_TARGET_CLIP_COUNT)

    @model_validator(mode="after")
    def check_duration_bounds(self):
        if self.min_duration_seconds > self.max_duration_seconds:
            raise ValueError("min_duration_seconds cannot be greater than max_duration_seconds")
        return self


class JobStatistics(BaseModel):
    """Aggregate statistics of a completed job"""
    total_clips: int = 0
    average_virality_score: float = 0.0
    processing_time_seconds: float = 0.0
    segments_analyzed: int = 0
    top_score: Optional[float] = None


class JobResult(BaseModel):
    """Output of a completed job"""
    clips: List[Clip] = Field(default_factory=list)
    statistics: JobStatistics = Field(default_factory=JobStatistics)
    transcript: Optional[str] = None


class JobCreate(BaseModel):
    """Request model for creating a new job"""
    owner: Optional[str] = Field(None, description="Requesting principal")
    source: Optional[str] = Field(None, description="Object store path or external video URL")
    constraints: Optional[dict] = Field(None, description="Selection constraints, all optional")


class Job(BaseModel):
    """Persisted job record"""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    owner: str
    source: str
    constraints: Constraints = Field(default_factory=Constraints)
    state: JobState = JobState.QUEUED
    progress: int = Field(default=0, ge=0, le=100)
    result: Optional[JobResult] = None
    failure_reason: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @model_validator(mode="after")
    def check_state_invariants(self):
        completed = self.state == JobState.COMPLETED
        if (self.result is not None) != completed:
            raise ValueError("result must be set if and only if the job is completed")
        if (self.failure_reason is not None) != (self.state == JobState.FAILED):
            raise ValueError("failure_reason must be set if and only if the job failed")
        if completed and self.progress != 100:
            raise ValueError("a completed job must report progress 100")
        return self
