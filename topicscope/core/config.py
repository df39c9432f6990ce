# topicscope/core/config.py
import json
from functools import lru_cache
from typing import Annotated, List

from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic import Field, field_validator


def _split_list(v) -> list[str] | None:
    """Accept JSON array or comma-separated string."""
    if v is None:
        return None
    if isinstance(v, str):
        try:
            parsed = json.loads(v)
            if isinstance(parsed, list):
                return [str(s).strip() for s in parsed if str(s).strip()]
        except ValueError:
            pass
        return [s.strip() for s in v.split(",") if s.strip()]
    return [str(s).strip() for s in v if str(s).strip()]


class Settings(BaseSettings):
    """
    Central application settings loaded from environment variables (and .env).

    Notes
    -----
    - Every variable is prefixed with ``TOPICSCOPE_``, e.g. ``TOPICSCOPE_KAFKA_BOOTSTRAP``.
    - `cors_allow_origins` and `default_topic_actions` accept a JSON array or a
      comma-separated string.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TOPICSCOPE_",
        extra="ignore",
    )

    # ---------- Kafka client/admin ----------
    kafka_bootstrap: str = Field("localhost:9092")
    kafka_client_id: str = "topicscope"
    kafka_api_version: str | None = None

    # Client timeouts (ms)
    request_timeout_ms: int = 20_000
    metadata_max_age_ms: int = 30_000
    api_version_auto_timeout_ms: int = 10_000

    # Admin connection retry
    admin_connect_max_tries: int = Field(default=8, ge=1)
    admin_connect_backoff_sec: float = 1.5

    # Blocking admin calls run on this many executor threads
    admin_max_workers: int = Field(default=4, ge=1, le=64)

    # ---------- Security (set when using SASL/SSL) ----------
    security_protocol: str = "PLAINTEXT"   # e.g. "SASL_SSL", "SSL"
    sasl_mechanism: str | None = None
    sasl_plain_username: str | None = None
    sasl_plain_password: str | None = None
    ssl_cafile: str | None = None

    # ---------- Topic overview ----------
    overview_concurrent_fetch: bool = Field(
        default=True,
        description="Issue the log-dir and config queries concurrently.",
    )
    default_topic_actions: Annotated[List[str], NoDecode] = Field(default_factory=lambda: ["all"])

    # ---------- Auth ----------
    auth_enabled: bool = False
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"

    # ---------- HTTP ----------
    cors_allow_origins: Annotated[list[str] | None, NoDecode] = None
    metrics_enabled: bool = True
    log_level: str = "INFO"

    @field_validator("cors_allow_origins", mode="before")
    def _parse_cors_origins(cls, v):
        return _split_list(v)

    @field_validator("default_topic_actions", mode="before")
    def _parse_default_actions(cls, v):
        return _split_list(v) or []

    @field_validator("log_level")
    def _upper_log_level(cls, v: str) -> str:
        return v.upper()


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()
