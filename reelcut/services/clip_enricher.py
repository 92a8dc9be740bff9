"""
Clip Enricher
Best-effort, concurrent generation of titles, captions, hooks and hashtags
for each clip
"""

import asyncio
import json
import re
from dataclasses import dataclass
from typing import List, Optional

from ..config import get_settings
from ..models.clip import Caption, Clip
from ..models.job import Constraints
from ..models.segment import ClipEnrichment, CLIP_ENRICHMENT_SCHEMA
from ..utils.exceptions import EnrichmentFailed
from ..utils.logger import get_logger
from .gemini_oracle import GeminiOracle

logger = get_logger()

MAX_TITLE_LENGTH = 60


@dataclass
class EnrichmentResult:
    """Outcome of enriching one clip: either ``clip`` or ``error`` is set"""
    clip_id: str
    clip: Optional[Clip] = None
    error: Optional[EnrichmentFailed] = None

    @property
    def ok(self) -> bool:
        return self.clip is not None


def merge_enrichment(clips: List[Clip], results: List[EnrichmentResult]) -> List[Clip]:
    """Take enriched clips where enrichment succeeded, originals elsewhere; keeps order"""
    by_id = {result.clip_id: result for result in results}
    merged = []
    for clip in clips:
        result = by_id.get(clip.id)
        merged.append(result.clip if result is not None and result.ok else clip)
    return merged


class ClipEnricher:
    """Adds platform-ready metadata to clips via the AI oracle"""

    def __init__(self, oracle: Optional[GeminiOracle] = None):
        self.settings = get_settings()
        self.oracle = oracle or GeminiOracle()

    async def enrich_all(self, clips: List[Clip], constraints: Constraints) -> List[Clip]:
        """
        Enrich every clip concurrently.

        Failures are logged and the affected clip keeps its synthesized
        defaults; this never raises for a single clip.
        """
        if not clips:
            return []

        results = await asyncio.gather(*(self.enrich_one(clip, constraints) for clip in clips))

        failed = [result for result in results if not result.ok]
        for result in failed:
            logger.warning(f"{result.error.message}, using defaults")
        logger.info(f"Clips enhanced: {len(clips) - len(failed)}/{len(clips)}")

        return merge_enrichment(clips, list(results))

    async def enrich_one(self, clip: Clip, constraints: Constraints) -> EnrichmentResult:
        """Enrich a single clip, capturing any failure in the result"""
        try:
            response_text = await self.oracle.generate_json(
                self._build_prompt(clip, constraints),
                schema=CLIP_ENRICHMENT_SCHEMA,
                temperature=self.settings.enrichment_temperature,
                max_output_tokens=self.settings.enrichment_max_output_tokens,
            )
            enrichment = self._parse_response(response_text)
        except Exception as e:
            return EnrichmentResult(clip_id=clip.id, error=EnrichmentFailed(clip.id, str(e)))

        return EnrichmentResult(clip_id=clip.id, clip=apply_enrichment(clip, enrichment))

    def _build_prompt(self, clip: Clip, constraints: Constraints) -> str:
        hooks = ", ".join(clip.hooks) or "N/A"
        platforms = ", ".join(constraints.platforms) or clip.platform

        return f"""Create viral short clip metadata for {platforms} - fast, engaging, hook-driven.

Segment: {clip.duration}s, Type: {clip.segment_type}, Sentiment: {clip.sentiment}, Hooks: {hooks}
Context: {clip.description}

Generate (be concise):
1. Hook title ({MAX_TITLE_LENGTH} chars max) - must grab attention instantly
2. Description (120 chars) with 3-5 trending hashtags
3. Dynamic captions (key phrases only), each with its offset in seconds from the clip start
4. Hook text for the first 3 seconds (maximum impact)

OUTPUT (JSON):
{{
  "title": "Hook title",
  "description": "Description #hashtag1 #hashtag2",
  "captions": [{{"offset_seconds": 0, "text": "HOOK"}}, {{"offset_seconds": 2, "text": "Key phrase"}}],
  "hashtags": ["#trending1", "#trending2"],
  "hook_text": "First 3s hook"
}}"""

    def _parse_response(self, response_text: str) -> ClipEnrichment:
        if not response_text:
            raise ValueError("empty response from Gemini")

        json_match = re.search(r'\{[\s\S]*\}', response_text)
        if not json_match:
            raise ValueError("no JSON found in Gemini response")

        return ClipEnrichment.model_validate(json.loads(json_match.group()))


def apply_enrichment(clip: Clip, enrichment: ClipEnrichment) -> Clip:
    """Return a copy of ``clip`` with the oracle's metadata applied"""
    captions = [
        Caption(offset_seconds=cue.offset_seconds, text=cue.text.strip())
        for cue in enrichment.captions
        if cue.text and cue.text.strip()
    ]
    title = (enrichment.title or "").strip()[:MAX_TITLE_LENGTH] or clip.title

    return clip.model_copy(update={
        "title": title,
        "description": (enrichment.description or "").strip() or clip.description,
        "captions": captions,
        "hashtags": [_normalize_hashtag(tag) for tag in enrichment.hashtags if tag.strip("# ")],
        "hook_text": (enrichment.hook_text or "").strip(),
        "transcript_snippet": " ".join(caption.text for caption in captions),
    })


def _normalize_hashtag(tag: str) -> str:
    return "#" + tag.strip().lstrip("#").replace(" ", "")
