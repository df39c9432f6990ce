"""Error types raised by the cluster-facing services, plus the RFC 7807 body."""
from __future__ import annotations

from typing import Optional
from uuid import uuid4

from kafka.errors import KafkaError
from pydantic import BaseModel, ConfigDict, Field


class ProblemDetail(BaseModel):
    """Data model that serialises to RFC 7807 JSON.

    Attributes
    ----------
    type : str
        A URI reference that identifies the problem type.
    title : str
        A short human-readable summary of the problem type.
    status : int
        The HTTP status code.
    detail : str | None
        A human-readable explanation specific to this occurrence.
    instance : str
        A URI reference that identifies the specific occurrence.
    """

    model_config = ConfigDict(json_schema_extra={"required": ["type", "title", "status"]})

    type: str = Field(default="about:blank", examples=["/cluster-request-failed"])
    title: str
    status: int = Field(..., ge=400, le=599)
    detail: Optional[str] = None
    instance: str = Field(default_factory=lambda: f"urn:uuid:{uuid4()}")


class ClusterRequestError(Exception):
    """A request against the Kafka cluster failed as a whole."""

    status_code = 502
    title = "Kafka request failed"
    type_ = "/cluster-request-failed"

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause

    def to_problem(self) -> ProblemDetail:
        return ProblemDetail(
            type=self.type_,
            title=self.title,
            status=self.status_code,
            detail=str(self),
        )


class TopicMetadataError(ClusterRequestError):
    """The cluster reported an error code for one topic's metadata."""

    title = "Topic metadata error"
    type_ = "/topic-metadata-error"

    def __init__(self, topic: str, error: KafkaError) -> None:
        super().__init__(f"failed to get metadata for topic '{topic}': {error}", cause=error)
        self.topic = topic
        self.error = error
