"""
Segment Scorer
Uses Gemini multimodal analysis to propose and score viral-worthy segments
of a long-form video
"""

import asyncio
import json
import re
import time
from typing import Awaitable, Callable, Optional

from pydantic import ValidationError as SchemaError

from ..config import get_settings
from ..models.job import Constraints
from ..models.segment import (
    CandidateSegment,
    ScoringResult,
    SegmentAnalysis,
    SEGMENT_ANALYSIS_SCHEMA,
)
from ..utils.exceptions import OracleUnavailableError, RateLimitError, ScoringFailed
from ..utils.logger import get_logger
from ..utils.retry import retry_async, wait_until
from .gemini_oracle import GeminiOracle, OracleFile

logger = get_logger()


class SegmentScorer:
    """Detects candidate viral segments in a video using the AI oracle"""

    def __init__(
        self,
        oracle: Optional[GeminiOracle] = None,
        poll_interval: Optional[float] = None,
        ready_timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_base_delay: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.settings = get_settings()
        self.oracle = oracle or GeminiOracle()
        self.poll_interval = poll_interval if poll_interval is not None else self.settings.oracle_ready_poll_interval
        self.ready_timeout = ready_timeout if ready_timeout is not None else self.settings.oracle_ready_timeout
        self.max_retries = max_retries if max_retries is not None else self.settings.scoring_max_retries
        self.retry_base_delay = (
            retry_base_delay if retry_base_delay is not None else self.settings.oracle_retry_base_delay
        )
        self._clock = clock
        self._sleep = sleep

    async def ingest(self, path: str, mime_type: str) -> OracleFile:
        """
        Upload the video to the oracle and wait for it to become queryable.

        The wait is bounded; on timeout the upload is used anyway.
        """
        try:
            media = await self.oracle.upload_media(path, mime_type)
        except Exception as e:
            raise ScoringFailed(f"Gemini file upload failed: {e}") from e

        async def is_active() -> bool:
            try:
                state = await self.oracle.get_media_state(media.name)
            except (RateLimitError, OracleUnavailableError) as e:
                logger.warning(f"Gemini file state check failed, will retry: {e.message}")
                return False
            if state == "FAILED":
                raise ScoringFailed(f"Gemini could not process the uploaded video ({media.name})")
            media.state = state
            return state == "ACTIVE"

        ready = await wait_until(
            is_active,
            poll_interval=self.poll_interval,
            max_wait=self.ready_timeout,
            clock=self._clock,
            sleep=self._sleep,
        )
        if ready:
            logger.info("Gemini file processing complete")
        else:
            logger.warning(
                f"Gemini file {media.name} not ready after {self.ready_timeout:.0f}s, proceeding anyway"
            )
        return media

    async def score(self, media: OracleFile, constraints: Constraints) -> ScoringResult:
        """
        Ask the oracle for scored candidate segments

        Args:
            media: Uploaded video reference
            constraints: Selection constraints, used to steer the oracle

        Returns:
            ScoringResult with unfiltered candidate segments

        Raises:
            ScoringFailed: oracle unreachable or the response is unusable
        """
        logger.info(f"Analyzing video for up to {constraints.target_clip_count} viral moments...")
        prompt = self._build_analysis_prompt(constraints)

        @retry_async(
            max_retries=self.max_retries,
            base_delay=self.retry_base_delay,
            retryable_exceptions=(RateLimitError, OracleUnavailableError),
        )
        async def generate() -> str:
            return await self.oracle.generate_json(
                prompt,
                media=media,
                schema=SEGMENT_ANALYSIS_SCHEMA,
                temperature=self.settings.scoring_temperature,
                max_output_tokens=self.settings.scoring_max_output_tokens,
            )

        try:
            response_text = await generate()
        except Exception as e:
            raise ScoringFailed(f"Gemini analysis failed: {e}") from e

        if not response_text:
            raise ScoringFailed("No response from Gemini API")

        result = self._parse_response(response_text)
        logger.info(f"Gemini proposed {len(result.segments)} segments")
        return result

    def _build_analysis_prompt(self, constraints: Constraints) -> str:
        """Build the prompt for Gemini analysis"""
        platforms = ", ".join(constraints.platforms) or "short-form platforms"
        overlap_rule = (
            "- Segments must not overlap in time\n" if constraints.overlap_prevention else ""
        )
        min_score = constraints.virality_threshold / 10

        return f"""Analyze this video for viral short potential. You are an expert at identifying content that performs well on {platforms}.

TASK:
1. Transcribe the audio with timestamps
2. Score segments (0-10) on these engagement factors:
   - Hook potential (opening 3 seconds that grab attention)
   - Humor/surprise moments (audio peaks, unexpected turns)
   - Emotional hooks (sentiment shifts, relatable moments)
   - Questions/calls-to-action (direct engagement prompts)
   - Visual energy (face reactions, cuts, motion)
   - Information density (valuable insights per second)
   - Retention potential (would viewers watch to the end?)
3. Identify the top {constraints.target_clip_count} segments with start/end time in seconds,
   score, segment type, rationale, key hooks and sentiment (positive, negative, neutral, mixed)

REQUIREMENTS:
- Segments must be {constraints.min_duration_seconds:g}-{constraints.max_duration_seconds:g} seconds long
- Only include segments with score >= {min_score:g}
- Prioritize segments with strong hooks in the first 3 seconds
- Avoid filler words, long pauses (>3s), or low-energy moments
{overlap_rule}- Return at most {constraints.target_clip_count} segments

RESPOND IN VALID JSON FORMAT ONLY:
{{
  "transcript": "Full transcript with timestamps",
  "segments": [
    {{
      "start_time": 120.5,
      "end_time": 150.3,
      "score": 9.2,
      "type": "hook + insight",
      "rationale": "Strong opening question followed by valuable insight",
      "hooks": ["Wait until you hear this"],
      "sentiment": "positive"
    }}
  ],
  "average_score": 8.5
}}"""

    def _parse_response(self, response_text: str) -> ScoringResult:
        """Parse the Gemini response into candidate segments"""
        json_match = re.search(r'\{[\s\S]*\}', response_text)
        if not json_match:
            raise ScoringFailed("No JSON found in Gemini response")

        try:
            analysis = SegmentAnalysis.model_validate(json.loads(json_match.group()))
        except json.JSONDecodeError as e:
            raise ScoringFailed(f"Failed to parse Gemini response: {e}") from e
        except SchemaError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first["loc"])
            raise ScoringFailed(
                f"Gemini response does not match the segment schema ({location}: {first['msg']})"
            ) from e

        segments = []
        for suggestion in analysis.segments:
            if suggestion.end_time <= suggestion.start_time:
                logger.warning(
                    f"Discarding empty segment {suggestion.start_time}-{suggestion.end_time}"
                )
                continue
            segments.append(CandidateSegment(
                start_time=suggestion.start_time,
                end_time=suggestion.end_time,
                score=suggestion.score,
                type=suggestion.type or "viral",
                rationale=suggestion.rationale,
                hooks=list(suggestion.hooks),
                sentiment=suggestion.sentiment or "neutral",
            ))

        return ScoringResult(segments=segments, transcript=analysis.transcript)
