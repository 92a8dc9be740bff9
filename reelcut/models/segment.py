"""
Segment Models
Candidate segments proposed by the scoring oracle, and the fixed JSON
schemas the oracle is asked to answer with
"""

from dataclasses import dataclass, field
from typing import List, Optional

from pydantic import BaseModel, Field


@dataclass
class CandidateSegment:
    """A proposed time range with its oracle score (0-10)"""
    start_time: float
    end_time: float
    score: float
    type: str = "viral"
    rationale: str = ""
    hooks: List[str] = field(default_factory=list)
    sentiment: str = "neutral"

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    @property
    def clip_duration(self) -> int:
        """Whole-second duration reported on the clip cut from this segment"""
        return round(self.duration)


@dataclass
class ScoringResult:
    """Scorer output for one video"""
    segments: List[CandidateSegment]
    transcript: Optional[str] = None


# ============================================================================
# Oracle response schemas
# ============================================================================

class SegmentSuggestion(BaseModel):
    start_time: float = Field(ge=0)
    end_time: float = Field(ge=0)
    score: float = Field(ge=0, le=10)
    type: str = "viral"
    rationale: str = ""
    hooks: List[str] = Field(default_factory=list)
    sentiment: str = "neutral"


class SegmentAnalysis(BaseModel):
    """Schema for the viral-moment analysis response"""
    transcript: Optional[str] = None
    segments: List[SegmentSuggestion] = Field(default_factory=list)
    average_score: Optional[float] = None


class CaptionCue(BaseModel):
    offset_seconds: float = Field(ge=0)
    text: str


class ClipEnrichment(BaseModel):
    """Schema for the per-clip metadata response"""
    title: Optional[str] = None
    description: Optional[str] = None
    captions: List[CaptionCue] = Field(default_factory=list)
    hashtags: List[str] = Field(default_factory=list)
    hook_text: Optional[str] = None


# Gemini rejects pydantic defaults in response schemas, so the request side
# uses plain OpenAPI-style dicts mirroring the models above.
SEGMENT_ANALYSIS_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "transcript": {"type": "STRING"},
        "segments": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "start_time": {"type": "NUMBER"},
                    "end_time": {"type": "NUMBER"},
                    "score": {"type": "NUMBER"},
                    "type": {"type": "STRING"},
                    "rationale": {"type": "STRING"},
                    "hooks": {"type": "ARRAY", "items": {"type": "STRING"}},
                    "sentiment": {"type": "STRING"},
                },
                "required": ["start_time", "end_time", "score", "type", "rationale"],
            },
        },
        "average_score": {"type": "NUMBER"},
    },
    "required": ["segments"],
}

CLIP_ENRICHMENT_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "title": {"type": "STRING"},
        "description": {"type": "STRING"},
        "captions": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "offset_seconds": {"type": "NUMBER"},
                    "text": {"type": "STRING"},
                },
                "required": ["offset_seconds", "text"],
            },
        },
        "hashtags": {"type": "ARRAY", "items": {"type": "STRING"}},
        "hook_text": {"type": "STRING"},
    },
    "required": ["title", "description", "captions", "hashtags", "hook_text"],
}
