"""
Clip Synthesizer
Turns selected segments into clip records with derived fields and
placeholder metadata
"""

import uuid
from typing import List

from ..models.clip import Clip
from ..models.job import Constraints
from ..models.segment import CandidateSegment

DEFAULT_PLATFORM = "youtube_shorts"

PLATFORM_ASPECT_RATIOS = {
    "youtube_shorts": "9:16",
    "tiktok": "9:16",
    "instagram_reels": "9:16",
    "twitter": "16:9",
}


def aspect_ratio_for(platform: str) -> str:
    """Aspect ratio clips are framed for on a platform"""
    return PLATFORM_ASPECT_RATIOS.get(platform, "16:9")


def virality_from_score(score: float) -> int:
    """Convert the oracle's 0-10 score to the 0-100 virality scale"""
    return max(0, min(100, round(score * 10)))


def synthesize_clips(
    segments: List[CandidateSegment],
    constraints: Constraints,
    media_reference: str,
) -> List[Clip]:
    """Build one unenriched clip per segment, preserving order"""
    platform = constraints.platforms[0] if constraints.platforms else DEFAULT_PLATFORM
    clips = []

    for index, segment in enumerate(segments):
        description = segment.rationale or f"High-engagement segment (Score: {segment.score:.1f})"
        clips.append(Clip(
            id=str(uuid.uuid4()),
            title=f"Viral Clip {index + 1}",
            description=description,
            duration=segment.clip_duration,
            virality_score=virality_from_score(segment.score),
            start_time=segment.start_time,
            end_time=segment.end_time,
            segment_type=segment.type or "viral",
            hooks=list(segment.hooks),
            sentiment=segment.sentiment or "neutral",
            media_reference=media_reference,
            platform=platform,
            aspect_ratio=aspect_ratio_for(platform),
        ))

    return clips
