"""
Clip Data Models
Represents a selected, platform-ready short clip
"""

from pydantic import BaseModel, Field
from typing import List
import uuid


class Caption(BaseModel):
    """Single caption cue, relative to the clip start"""
    offset_seconds: float = Field(ge=0)
    text: str


class Clip(BaseModel):
    """Complete clip model"""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str
    description: str
    duration: int = Field(ge=0, description="Whole seconds")
    virality_score: int = Field(ge=0, le=100)
    start_time: float
    end_time: float
    segment_type: str = "viral"
    hooks: List[str] = Field(default_factory=list)
    sentiment: str = "neutral"
    captions: List[Caption] = Field(default_factory=list)
    hashtags: List[str] = Field(default_factory=list)
    hook_text: str = ""
    media_reference: str
    platform: str = "youtube_shorts"
    aspect_ratio: str = "9:16"
    transcript_snippet: str = ""
