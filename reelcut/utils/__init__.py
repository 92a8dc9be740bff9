"""Utils package initialization"""
from .logger import setup_logger, get_logger
from .exceptions import (
    ReelCutError,
    ValidationError,
    NotFound,
    InvalidState,
    QueueFullError,
    IngestionError,
    ScoringFailed,
    EnrichmentFailed,
    APIKeyError,
    OracleUnavailableError,
    RateLimitError,
    JobCancelledError
)
from .retry import retry_async, wait_until

__all__ = [
    "setup_logger",
    "get_logger",
    "ReelCutError",
    "ValidationError",
    "NotFound",
    "InvalidState",
    "QueueFullError",
    "IngestionError",
    "ScoringFailed",
    "EnrichmentFailed",
    "APIKeyError",
    "OracleUnavailableError",
    "RateLimitError",
    "JobCancelledError",
    "retry_async",
    "wait_until"
]
