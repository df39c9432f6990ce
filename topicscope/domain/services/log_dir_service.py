"""Per-topic on-disk size, summed over every replica on every broker."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

import kafka.errors as Errors

from topicscope.core.exceptions import ClusterRequestError
from topicscope.domain.models.cluster import LogDirReport
from topicscope.domain.ports import ClusterTransport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TopicLogDirSizes:
    """Summed log-dir sizes plus the brokers that answered with a complete report."""

    by_topic: Dict[str, int] = field(default_factory=dict)
    complete_brokers: Set[int] = field(default_factory=set)

    def size_of(self, topic: str, replica_brokers: Set[int]) -> Optional[int]:
        """Return the total for *topic*, or ``None`` if it cannot be trusted.

        Every broker holding a replica must have reported completely, otherwise
        the total would be a partial sum.
        """
        if not replica_brokers <= self.complete_brokers:
            return None
        return self.by_topic.get(topic)


def sum_log_dirs(report: LogDirReport, topics: Optional[List[str]] = None) -> TopicLogDirSizes:
    wanted = set(topics) if topics is not None else None
    totals: Dict[str, int] = {}
    complete: Set[int] = set()
    for broker in report.brokers:
        if broker.complete:
            complete.add(broker.broker_id)
        if broker.error is not None:
            continue
        for log_dir in broker.log_dirs:
            if log_dir.error_code != 0:
                continue
            for p in log_dir.partitions:
                if wanted is not None and p.topic not in wanted:
                    continue
                totals[p.topic] = totals.get(p.topic, 0) + p.size_bytes
    return TopicLogDirSizes(by_topic=totals, complete_brokers=complete)


class LogDirAggregator:
    """Query every broker's log dirs and aggregate them by topic."""

    def __init__(self, transport: ClusterTransport, log: logging.Logger | None = None) -> None:
        self._transport = transport
        self._log = log or logger

    async def sizes_by_topic(self, topics: Optional[List[str]] = None) -> TopicLogDirSizes:
        """Raise ClusterRequestError when the log-dir query failed entirely."""
        try:
            report = await self._transport.fetch_log_dirs(topics)
        except Errors.KafkaError as exc:
            raise ClusterRequestError(f"failed to describe log dirs: {exc}", cause=exc) from exc
        sizes = sum_log_dirs(report, topics)
        incomplete = sorted({b.broker_id for b in report.brokers} - sizes.complete_brokers)
        if incomplete:
            self._log.debug("log dir reports incomplete for brokers %s", incomplete)
        return sizes
