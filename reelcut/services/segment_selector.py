"""
Segment Selector
Filters, ranks and de-overlaps candidate segments against job constraints
"""

from typing import List

from ..models.job import Constraints
from ..models.segment import CandidateSegment


def select_segments(
    candidates: List[CandidateSegment],
    constraints: Constraints,
) -> List[CandidateSegment]:
    """
    Pick the segments that become clips.

    Candidates below the virality threshold or outside the duration bounds
    are dropped, the rest are ranked by score and truncated to the target
    count. With overlap prevention, overlapping survivors are then resolved
    greedily by start time. The result is ordered by score descending and
    may be empty.
    """
    min_score = constraints.virality_threshold / 10

    eligible = [
        segment for segment in candidates
        if segment.score >= min_score and _within_duration_bounds(segment, constraints)
    ]
    ranked = sorted(eligible, key=lambda segment: segment.score, reverse=True)
    ranked = ranked[:constraints.target_clip_count]

    if constraints.overlap_prevention:
        ranked = resolve_overlaps(ranked)

    return ranked


def _within_duration_bounds(segment: CandidateSegment, constraints: Constraints) -> bool:
    # Both the exact span and the whole seconds stored on the clip must fit.
    low, high = constraints.min_duration_seconds, constraints.max_duration_seconds
    return low <= segment.duration <= high and low <= segment.clip_duration <= high


def resolve_overlaps(segments: List[CandidateSegment]) -> List[CandidateSegment]:
    """
    Greedy interval scheduling by start time.

    A segment is kept only if its [start, end) interval misses every segment
    kept so far. This is not guaranteed to maximise total score.
    """
    kept: List[CandidateSegment] = []

    for segment in sorted(segments, key=lambda s: s.start_time):
        overlaps = any(
            segment.start_time < existing.end_time and segment.end_time > existing.start_time
            for existing in kept
        )
        if not overlaps:
            kept.append(segment)

    return sorted(kept, key=lambda s: s.score, reverse=True)
