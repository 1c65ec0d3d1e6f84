from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..errors import ErrorKind


class EngineSettings(BaseSettings):
    """Tunables for the deletion engine, loaded from PURGE_* env vars.

    Build one explicitly (e.g. with zero delays) to inject into an engine.
    """

    model_config = SettingsConfigDict(env_prefix="PURGE_", env_file=".env", extra="ignore")

    # Batching and pacing
    batch_size: int = Field(20, ge=1, le=100)
    per_request_delay_ms: int = Field(350, ge=0)
    dry_run_delay_ms: int = Field(100, ge=0)

    # Retry
    max_retries: int = Field(3, ge=0)
    initial_retry_delay_ms: int = Field(1000, ge=0)
    max_retry_delay_ms: int = Field(32000, ge=0)
    rate_limit_wait_ms: int = Field(60000, ge=0)
    retry_jitter: bool = False
    unknown_error_kind: ErrorKind = ErrorKind.SERVER_ERROR

    # Circuit breaker
    circuit_failure_threshold: int = Field(5, ge=1)
    circuit_success_threshold: int = Field(2, ge=1)
    circuit_open_timeout_sec: float = Field(60.0, ge=0)
