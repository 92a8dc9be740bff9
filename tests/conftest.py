import asyncio
import json
from typing import Callable, List, Optional

import pytest

from reelcut.models.segment import SEGMENT_ANALYSIS_SCHEMA
from reelcut.services.clip_enricher import ClipEnricher
from reelcut.services.gemini_oracle import OracleFile
from reelcut.services.job_store import InMemoryJobRepository
from reelcut.services.orchestrator import JobOrchestrator
from reelcut.services.segment_scorer import SegmentScorer
from reelcut.services.video_ingest import IngestedVideo


DEFAULT_ENRICHMENT = {
    "title": "You won't believe this",
    "description": "The best moment #viral #shorts",
    "captions": [{"offset_seconds": 0, "text": "WAIT"}, {"offset_seconds": 2.5, "text": "for it"}],
    "hashtags": ["#viral", "shorts"],
    "hook_text": "Watch till the end",
}


def analysis_json(segments: List[dict], transcript: Optional[str] = "hello world") -> str:
    return json.dumps({"transcript": transcript, "segments": segments, "average_score": 8.0})


class FakeOracle:
    """Scripted stand-in for GeminiOracle"""

    def __init__(
        self,
        segments: Optional[List[dict]] = None,
        scoring_response: Optional[str] = None,
        states: Optional[List] = None,
        enrich: Optional[Callable[[str], str]] = None,
    ):
        self.scoring_response = scoring_response if scoring_response is not None else analysis_json(segments or [])
        self.states = list(states or ["ACTIVE"])
        self.enrich = enrich or (lambda prompt: json.dumps(DEFAULT_ENRICHMENT))
        self.scoring_gate: Optional[asyncio.Event] = None
        self.scoring_started: Optional[asyncio.Event] = None
        self.scoring_calls = 0
        self.state_checks = 0
        self.enrichment_prompts: List[str] = []

    async def upload_media(self, path, mime_type):
        return OracleFile(name="files/abc123", uri="https://oracle.test/files/abc123", mime_type=mime_type)

    async def get_media_state(self, name):
        self.state_checks += 1
        state = self.states.pop(0) if len(self.states) > 1 else self.states[0]
        if isinstance(state, Exception):
            raise state
        return state

    async def generate_json(self, prompt, media=None, schema=None, temperature=0.8, max_output_tokens=1024):
        if schema is SEGMENT_ANALYSIS_SCHEMA:
            self.scoring_calls += 1
            if self.scoring_started is not None:
                self.scoring_started.set()
            if self.scoring_gate is not None:
                await self.scoring_gate.wait()
            if isinstance(self.scoring_response, Exception):
                raise self.scoring_response
            return self.scoring_response

        self.enrichment_prompts.append(prompt)
        return self.enrich(prompt)


class FakeIngestor:
    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.fetched: List[str] = []

    async def fetch(self, job_id, owner, source):
        if self.error is not None:
            raise self.error
        self.fetched.append(source)
        return IngestedVideo(
            path=f"/nonexistent/{job_id}.mp4",
            mime_type="video/mp4",
            title="talk",
            size_bytes=1024,
        )


class FakeClock:
    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float):
        self.sleeps.append(seconds)
        self.now += seconds


def build_orchestrator(oracle: FakeOracle, repository=None, ingestor=None, max_pending: int = 10):
    clock = FakeClock()
    return JobOrchestrator(
        repository=repository or InMemoryJobRepository(),
        ingestor=ingestor or FakeIngestor(),
        scorer=SegmentScorer(
            oracle,
            poll_interval=1.0,
            ready_timeout=5.0,
            max_retries=0,
            retry_base_delay=0,
            clock=clock,
            sleep=clock.sleep,
        ),
        enricher=ClipEnricher(oracle),
        worker_count=1,
        max_pending=max_pending,
    )


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
