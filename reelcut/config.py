"""
ReelCut Configuration
Centralized settings management using Pydantic Settings
"""

from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import List, Literal
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # ==========================================================================
    # Application
    # ==========================================================================
    app_name: str = "ReelCut"
    debug: bool = False
    app_version: str = "1.0.0"

    # ==========================================================================
    # Google Gemini
    # ==========================================================================
    gemini_api_key: str = Field(default="", description="Google Gemini API Key")
    gemini_model: str = Field(default="gemini-2.0-flash", description="Gemini model used for scoring and enrichment")
    scoring_temperature: float = Field(default=0.8, ge=0, le=2)
    scoring_max_output_tokens: int = Field(default=4096, ge=256, le=32768)
    enrichment_temperature: float = Field(default=0.9, ge=0, le=2)
    enrichment_max_output_tokens: int = Field(default=1024, ge=128, le=8192)
    scoring_max_retries: int = Field(default=2, ge=0, le=10, description="Retries for transient scoring failures")
    oracle_retry_base_delay: float = Field(default=1.0, ge=0, le=60)

    # ==========================================================================
    # Oracle media readiness
    # ==========================================================================
    oracle_ready_poll_interval: float = Field(default=2.0, gt=0, le=60, description="Seconds between readiness checks")
    oracle_ready_timeout: float = Field(default=30.0, ge=0, le=600, description="Max seconds to wait before proceeding anyway")

    # ==========================================================================
    # Object Storage
    # ==========================================================================
    storage_backend: Literal["local", "s3"] = Field(default="local", description="Where uploaded videos live")
    storage_dir: str = Field(default="data/media", description="Root directory for the local object store")
    aws_access_key_id: str = Field(default="", description="AWS Access Key ID")
    aws_secret_access_key: str = Field(default="", description="AWS Secret Key")
    aws_region: str = Field(default="us-east-1", description="AWS Region")
    s3_bucket_name: str = Field(default="", description="S3 Bucket Name")

    # ==========================================================================
    # Jobs
    # ==========================================================================
    job_store_backend: Literal["sqlite", "memory"] = Field(default="sqlite")
    job_worker_concurrency: int = Field(default=4, ge=1, le=16, description="Concurrent processing workers")
    max_pending_jobs: int = Field(default=100, ge=1, le=1000, description="Max queued pending jobs")
    max_upload_size_mb: int = Field(default=1024, ge=1, le=10240, description="Max upload file size in MB")

    # ==========================================================================
    # Security
    # ==========================================================================
    api_key: str = Field(default="", description="Optional API key for /api routes")
    cors_allowed_origins: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:8000",
            "http://127.0.0.1:8000"
        ],
        description="Allowed CORS origins"
    )

    # ==========================================================================
    # Paths
    # ==========================================================================
    temp_dir: str = Field(default="temp", description="Temporary processing directory")
    data_dir: str = Field(default="data", description="Persistent application data directory")

    @field_validator("cors_allowed_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, value):
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
