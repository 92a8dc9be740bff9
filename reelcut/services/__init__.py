"""Services package initialization"""
from .gemini_oracle import GeminiOracle, OracleFile
from .segment_scorer import SegmentScorer
from .segment_selector import select_segments, resolve_overlaps
from .clip_synthesizer import synthesize_clips
from .clip_enricher import ClipEnricher, EnrichmentResult
from .object_store import ObjectStore, LocalObjectStore, S3ObjectStore, get_object_store
from .video_ingest import VideoIngestor, IngestedVideo
from .job_store import JobRepository, InMemoryJobRepository, SqliteJobRepository, get_job_repository
from .job_queue import JobQueue
from .orchestrator import JobOrchestrator, get_orchestrator

__all__ = [
    "GeminiOracle",
    "OracleFile",
    "SegmentScorer",
    "select_segments",
    "resolve_overlaps",
    "synthesize_clips",
    "ClipEnricher",
    "EnrichmentResult",
    "ObjectStore",
    "LocalObjectStore",
    "S3ObjectStore",
    "get_object_store",
    "VideoIngestor",
    "IngestedVideo",
    "JobRepository",
    "InMemoryJobRepository",
    "SqliteJobRepository",
    "get_job_repository",
    "JobQueue",
    "JobOrchestrator",
    "get_orchestrator"
]
