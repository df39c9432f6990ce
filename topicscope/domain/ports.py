"""Interfaces the domain services depend on."""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Protocol

from topicscope.domain.models.cluster import ConfigEntrySet, LogDirReport, MetadataSnapshot


class ClusterTransport(Protocol):
    """Admin queries against one Kafka cluster.

    Implementations own timeouts and retries; callers never retry.
    """

    async def fetch_metadata(self, topics: Optional[List[str]] = None) -> MetadataSnapshot:
        ...

    async def fetch_log_dirs(self, topics: Optional[List[str]] = None) -> LogDirReport:
        ...

    async def fetch_topic_configs(
        self, topic_names: List[str], keys: Iterable[str]
    ) -> Dict[str, ConfigEntrySet]:
        ...


class TopicAuthorizer(Protocol):
    """Tells which actions the requesting principal may run on a topic."""

    def allowed_topic_actions(self, topic_name: str) -> List[str]:
        ...
