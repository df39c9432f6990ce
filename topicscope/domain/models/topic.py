"""Topic overview model returned by REST routes."""
from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Sentinels for detail the cluster did not (or would not) give us
UNKNOWN_CLEANUP_POLICY = "N/A"
UNKNOWN_LOG_DIR_SIZE = -1


class TopicOverview(BaseModel):
    """Immutable per-topic row of the topics list."""

    model_config = ConfigDict(frozen=True)

    topicName: str = Field(..., min_length=1, examples=["orders"])
    isInternal: bool = False
    partitionCount: int = Field(..., ge=0)
    # Replica-set size of the lowest-id partition
    replicationFactor: int = Field(..., ge=0)
    minReplicationFactor: int = Field(..., ge=0)
    maxReplicationFactor: int = Field(..., ge=0)
    cleanupPolicy: str = UNKNOWN_CLEANUP_POLICY
    logDirSize: int = Field(default=UNKNOWN_LOG_DIR_SIZE, description="Bytes on disk, -1 if unknown")
    allowedActions: List[str] = Field(default_factory=list)

    @field_validator("logDirSize")
    @classmethod
    def _size_or_sentinel(cls, v: int) -> int:
        if v < 0 and v != UNKNOWN_LOG_DIR_SIZE:
            raise ValueError(f"logDirSize must be >= 0 or {UNKNOWN_LOG_DIR_SIZE}")
        return v


class TopicsResponse(BaseModel):
    topics: List[TopicOverview]
