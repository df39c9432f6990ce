from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

import pytest
from jose import jwt

from topicscope.core.config import Settings
from topicscope.domain.models.cluster import (
    BrokerLogDirs,
    ConfigEntry,
    ConfigEntrySet,
    LogDirEntry,
    LogDirPartition,
    LogDirReport,
    MetadataSnapshot,
    PartitionMetadata,
    TopicMetadata,
)


def make_topic(name: str, partitions: int, replicas: int, *, internal: bool = False, error_code: int = 0):
    return TopicMetadata(
        name=name,
        is_internal=internal,
        error_code=error_code,
        partitions=[
            PartitionMetadata(partition_id=i, replicas=list(range(1, replicas + 1)))
            for i in range(partitions)
        ],
    )


def issue_token(claims: dict, settings: Settings, *, expires_in: timedelta = timedelta(minutes=30)) -> str:
    """Sign *claims* the way the identity provider would."""
    payload = dict(claims, exp=datetime.now(timezone.utc) + expires_in)
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def make_configs(**policies: str | None) -> Dict[str, ConfigEntrySet]:
    return {
        name: ConfigEntrySet(
            topic=name,
            entries={"cleanup.policy": ConfigEntry(name="cleanup.policy", value=value, is_sensitive=value is None)},
        )
        for name, value in policies.items()
    }


def log_dir_report(sizes: Dict[str, List[int]], brokers: Iterable[int] = (1, 2, 3)) -> LogDirReport:
    """``sizes`` maps topic -> per-partition bytes, all reported by the first broker.

    The remaining brokers answer with an empty log dir.
    """
    first, *rest = brokers
    parts = [
        LogDirPartition(topic=topic, partition_id=i, size_bytes=size)
        for topic, per_partition in sizes.items()
        for i, size in enumerate(per_partition)
    ]
    return LogDirReport(
        brokers=[BrokerLogDirs(broker_id=first, log_dirs=[LogDirEntry(path="/var/lib/kafka", partitions=parts)])]
        + [BrokerLogDirs(broker_id=b, log_dirs=[LogDirEntry(path="/var/lib/kafka")]) for b in rest]
    )


class FakeTransport:
    """In-memory cluster transport; set an ``*_error`` to make a call raise."""

    def __init__(
        self,
        topics: Iterable[TopicMetadata] = (),
        log_dirs: LogDirReport | None = None,
        configs: Dict[str, ConfigEntrySet] | None = None,
    ) -> None:
        self.topics = list(topics)
        self.log_dirs = log_dirs or LogDirReport()
        self.configs = configs or {}
        self.metadata_error: BaseException | None = None
        self.log_dirs_error: BaseException | None = None
        self.configs_error: BaseException | None = None
        self.delay = 0.0
        self.calls: list[tuple] = []

    async def fetch_metadata(self, topics: Optional[List[str]] = None) -> MetadataSnapshot:
        self.calls.append(("metadata", topics))
        if self.metadata_error:
            raise self.metadata_error
        selected = [t for t in self.topics if topics is None or t.name in topics]
        return MetadataSnapshot(topics=selected)

    async def fetch_log_dirs(self, topics: Optional[List[str]] = None) -> LogDirReport:
        self.calls.append(("log_dirs", topics))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.log_dirs_error:
            raise self.log_dirs_error
        return self.log_dirs

    async def fetch_topic_configs(self, topic_names: List[str], keys: Iterable[str]) -> Dict[str, ConfigEntrySet]:
        self.calls.append(("configs", list(topic_names), list(keys)))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.configs_error:
            raise self.configs_error
        return {k: v for k, v in self.configs.items() if k in topic_names}


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport(
        topics=[make_topic("payments", 1, 1), make_topic("orders", 3, 2)],
        log_dirs=log_dir_report({"orders": [1024, 1024, 2048], "payments": [10]}),
        configs=make_configs(orders="delete", payments="compact"),
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, kafka_bootstrap="broker:9092", log_level="debug")
