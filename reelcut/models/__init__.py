"""Models package initialization"""
from .clip import Clip, Caption
from .job import Job, JobState, JobCreate, JobResult, JobStatistics, Constraints
from .segment import (
    CandidateSegment,
    ScoringResult,
    SegmentAnalysis,
    ClipEnrichment,
    SEGMENT_ANALYSIS_SCHEMA,
    CLIP_ENRICHMENT_SCHEMA,
)

__all__ = [
    "Clip",
    "Caption",
    "Job",
    "JobState",
    "JobCreate",
    "JobResult",
    "JobStatistics",
    "Constraints",
    "CandidateSegment",
    "ScoringResult",
    "SegmentAnalysis",
    "ClipEnrichment",
    "SEGMENT_ANALYSIS_SCHEMA",
    "CLIP_ENRICHMENT_SCHEMA",
]
