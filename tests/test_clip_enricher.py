import asyncio
import json

from conftest import DEFAULT_ENRICHMENT, FakeOracle

from reelcut.models.clip import Clip
from reelcut.models.job import Constraints
from reelcut.models.segment import ClipEnrichment
from reelcut.services.clip_enricher import ClipEnricher, apply_enrichment


def make_clip(n: int, description: str = "context") -> Clip:
    return Clip(
        title=f"Viral Clip {n}",
        description=description,
        duration=30,
        virality_score=90 - n,
        start_time=n * 100,
        end_time=n * 100 + 30,
        media_reference="uploads/talk.mp4",
    )


def test_enrichment_applies_metadata():
    oracle = FakeOracle()
    clip = make_clip(1)

    [enriched] = asyncio.run(ClipEnricher(oracle).enrich_all([clip], Constraints()))

    assert enriched.id == clip.id
    assert enriched.title == "You won't believe this"
    assert enriched.description == "The best moment #viral #shorts"
    assert [c.text for c in enriched.captions] == ["WAIT", "for it"]
    assert enriched.captions[1].offset_seconds == 2.5
    assert enriched.hashtags == ["#viral", "#shorts"]
    assert enriched.hook_text == "Watch till the end"
    assert enriched.transcript_snippet == "WAIT for it"
    assert enriched.virality_score == clip.virality_score


def test_one_failed_clip_keeps_defaults_and_others_are_enriched():
    def enrich(prompt):
        if "broken segment" in prompt:
            raise RuntimeError("model overloaded")
        return json.dumps(DEFAULT_ENRICHMENT)

    oracle = FakeOracle(enrich=enrich)
    clips = [make_clip(1), make_clip(2, "broken segment"), make_clip(3)]

    result = asyncio.run(ClipEnricher(oracle).enrich_all(clips, Constraints()))

    assert [c.id for c in result] == [c.id for c in clips]
    assert result[0].title == "You won't believe this"
    assert result[1] == clips[1]
    assert result[2].title == "You won't believe this"
    assert len(oracle.enrichment_prompts) == 3


def test_unparseable_response_is_captured_per_clip():
    oracle = FakeOracle(enrich=lambda prompt: "sorry, I cannot help")
    clip = make_clip(1)

    outcome = asyncio.run(ClipEnricher(oracle).enrich_one(clip, Constraints()))

    assert not outcome.ok
    assert outcome.clip_id == clip.id
    assert outcome.error.code == "ENRICHMENT_FAILED"


def test_enrich_all_with_no_clips():
    oracle = FakeOracle()

    assert asyncio.run(ClipEnricher(oracle).enrich_all([], Constraints())) == []
    assert oracle.enrichment_prompts == []


def test_apply_enrichment_truncates_title_and_keeps_fallbacks():
    clip = make_clip(1)
    enrichment = ClipEnrichment(
        title="x" * 80,
        description="  ",
        captions=[{"offset_seconds": 0, "text": "  "}, {"offset_seconds": 1, "text": " Go "}],
        hashtags=["#", "big news"],
    )

    enriched = apply_enrichment(clip, enrichment)

    assert enriched.title == "x" * 60
    assert enriched.description == clip.description
    assert [c.text for c in enriched.captions] == ["Go"]
    assert enriched.hashtags == ["#bignews"]
    assert enriched.hook_text == ""
