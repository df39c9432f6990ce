"""Topic/partition metadata with fail-fast validation of per-topic errors."""
from __future__ import annotations

import logging
from typing import List, Optional

import kafka.errors as Errors

from topicscope.core.exceptions import ClusterRequestError, TopicMetadataError
from topicscope.domain.models.cluster import MetadataSnapshot
from topicscope.domain.ports import ClusterTransport

logger = logging.getLogger(__name__)


class MetadataFetcher:
    """Fetch cluster metadata and reject snapshots carrying topic errors."""

    def __init__(self, transport: ClusterTransport, log: logging.Logger | None = None) -> None:
        self._transport = transport
        self._log = log or logger

    async def fetch(self, topics: Optional[List[str]] = None) -> MetadataSnapshot:
        """Return metadata for *topics* (all topics when ``None``).

        Raises
        ------
        TopicMetadataError
            If any topic in the response carries a non-zero error code.
        ClusterRequestError
            If the metadata request itself failed.
        """
        try:
            snapshot = await self._transport.fetch_metadata(topics)
        except Errors.KafkaError as exc:
            raise ClusterRequestError(f"failed to fetch cluster metadata: {exc}", cause=exc) from exc

        for topic in snapshot.topics:
            error_type = Errors.for_code(topic.error_code)
            if error_type is Errors.NoError:
                continue
            error = error_type()
            self._log.error(
                "failed to get topic metadata while listing topics: topic=%s error=%s",
                topic.name,
                error,
            )
            raise TopicMetadataError(topic.name, error)
        return snapshot
