"""Use-case coordination for the topics overview."""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional

import kafka.errors as Errors

from topicscope.core.exceptions import ClusterRequestError, TopicMetadataError
from topicscope.core.metrics import OVERVIEW_DEGRADED, OVERVIEW_REQUESTS
from topicscope.domain.models.cluster import ConfigEntrySet, TopicMetadata
from topicscope.domain.models.topic import (
    UNKNOWN_CLEANUP_POLICY,
    UNKNOWN_LOG_DIR_SIZE,
    TopicOverview,
)
from topicscope.domain.ports import ClusterTransport, TopicAuthorizer
from topicscope.domain.services.authorization import StaticTopicAuthorizer
from topicscope.domain.services.config_service import CLEANUP_POLICY, TopicConfigFetcher
from topicscope.domain.services.log_dir_service import LogDirAggregator, TopicLogDirSizes
from topicscope.domain.services.metadata_service import MetadataFetcher

logger = logging.getLogger(__name__)


class TopicService:
    """Joins metadata, log-dir sizes and configs into one row per topic.

    Only the metadata stage is fatal. Log-dir and config failures are logged
    and replaced by the ``-1`` / ``"N/A"`` placeholders, so a caller gets
    either a complete list or a single error.
    """

    def __init__(
        self,
        transport: ClusterTransport,
        authorizer: TopicAuthorizer | None = None,
        log: logging.Logger | None = None,
        concurrent: bool = True,
    ) -> None:
        self._log = log or logger
        self._authorizer = authorizer or StaticTopicAuthorizer()
        self._concurrent = concurrent
        self._metadata = MetadataFetcher(transport, self._log)
        self._log_dirs = LogDirAggregator(transport, self._log)
        self._configs = TopicConfigFetcher(transport, self._log)

    # ------------------------------------------------------------------ #
    # Queries                                                             #
    # ------------------------------------------------------------------ #
    async def get_topics_overview(
        self,
        topics: Optional[List[str]] = None,
        *,
        authorizer: TopicAuthorizer | None = None,
    ) -> List[TopicOverview]:
        """Return one overview per topic, sorted by topic name."""
        try:
            result = await self._overview(topics, authorizer or self._authorizer)
        except ClusterRequestError:
            OVERVIEW_REQUESTS.labels(outcome="error").inc()
            raise
        OVERVIEW_REQUESTS.labels(outcome="ok").inc()
        return result

    async def get_topic_overview(
        self, name: str, *, authorizer: TopicAuthorizer | None = None
    ) -> TopicOverview:
        """Return the overview of *name* or raise KeyError."""
        try:
            rows = await self.get_topics_overview([name], authorizer=authorizer)
        except TopicMetadataError as exc:
            if isinstance(exc.error, Errors.UnknownTopicOrPartitionError):
                raise KeyError(name) from exc
            raise
        for row in rows:
            if row.topicName == name:
                return row
        raise KeyError(name)

    # ------------------------------------------------------------------ #
    # Internals                                                           #
    # ------------------------------------------------------------------ #
    async def _overview(
        self, topics: Optional[List[str]], authorizer: TopicAuthorizer
    ) -> List[TopicOverview]:
        # 1. Metadata must succeed; it supplies the topic list
        metadata = await self._metadata.fetch(topics)
        names = metadata.topic_names()

        # 2. Log dir sizes and cleanup policies, neither may abort the merge
        if self._concurrent:
            sizes, configs = await asyncio.gather(
                self._sizes_or_none(names), self._configs_or_none(names)
            )
        else:
            sizes = await self._sizes_or_none(names)
            configs = await self._configs_or_none(names)

        # 3. Merge and sort by name
        rows = [self._merge(t, sizes, configs, authorizer) for t in metadata.topics]
        rows.sort(key=lambda r: r.topicName)
        return rows

    async def _sizes_or_none(self, names: List[str]) -> Optional[TopicLogDirSizes]:
        # CancelledError is a BaseException and still propagates
        try:
            return await self._log_dirs.sizes_by_topic(names)
        except Exception as exc:
            self._log.warning("failed to fetch log dir sizes, reporting sizes as unknown: %s", exc)
            OVERVIEW_DEGRADED.labels(stage="log_dirs").inc()
            return None

    async def _configs_or_none(self, names: List[str]) -> Optional[Dict[str, ConfigEntrySet]]:
        try:
            configs = await self._configs.fetch(names, [CLEANUP_POLICY])
        except Exception as exc:
            self._log.warning("failed to fetch topic configs to return cleanup.policy: %s", exc)
            OVERVIEW_DEGRADED.labels(stage="configs").inc()
            return None
        if configs is None:
            OVERVIEW_DEGRADED.labels(stage="configs").inc()
        return configs

    @staticmethod
    def _merge(
        topic: TopicMetadata,
        sizes: Optional[TopicLogDirSizes],
        configs: Optional[Dict[str, ConfigEntrySet]],
        authorizer: TopicAuthorizer,
    ) -> TopicOverview:
        size = UNKNOWN_LOG_DIR_SIZE
        if sizes is not None:
            known = sizes.size_of(topic.name, topic.replica_brokers())
            if known is not None:
                size = known

        policy = UNKNOWN_CLEANUP_POLICY
        # configs is None when we lack the ACLs to describe them
        if configs is not None and topic.name in configs:
            policy = configs[topic.name].lookup(CLEANUP_POLICY).value_or(UNKNOWN_CLEANUP_POLICY)

        # Partitions are assumed equally replicated; min/max expose reassignments
        partitions = sorted(topic.partitions, key=lambda p: p.partition_id)
        replica_counts = [len(p.replicas) for p in partitions]
        return TopicOverview(
            topicName=topic.name,
            isInternal=topic.is_internal,
            partitionCount=len(partitions),
            replicationFactor=replica_counts[0] if replica_counts else 0,
            minReplicationFactor=min(replica_counts, default=0),
            maxReplicationFactor=max(replica_counts, default=0),
            cleanupPolicy=policy,
            logDirSize=size,
            allowedActions=authorizer.allowed_topic_actions(topic.name),
        )
