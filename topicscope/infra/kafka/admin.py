"""Kafka Admin façade built on kafka-python."""
from __future__ import annotations

import asyncio
import functools
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, List, Optional

import kafka.errors as Errors
from kafka import KafkaAdminClient  # kafka-python
from kafka.admin import ConfigResource, ConfigResourceType
from kafka.errors import KafkaTimeoutError, NoBrokersAvailable, NodeNotReadyError
from kafka.protocol.admin import DescribeLogDirsRequest

from topicscope.core.config import Settings, get_settings
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
from topicscope.domain.services.config_service import AUTHORIZATION_ERRORS

logger = logging.getLogger(__name__)

_RETRYABLE = (KafkaTimeoutError, NoBrokersAvailable, NodeNotReadyError)

# DescribeConfigs v1+ reports a config_source instead of is_default
_DEFAULT_CONFIG_SOURCE = 5


class KafkaAdminFacade:
    """
    Lazy, retrying adapter around the kafka-python admin client.

    Every query runs on a small thread pool so the event loop never blocks;
    awaiting callers can be cancelled, which abandons the outstanding call.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        admin: KafkaAdminClient | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._admin = admin
        self._executor = ThreadPoolExecutor(
            max_workers=self._settings.admin_max_workers,
            thread_name_prefix="kafka-admin",
        )

    # ---------- bootstrap common kwargs ----------
    def _common_kwargs(self) -> dict:
        s = self._settings
        kw = dict(
            bootstrap_servers=s.kafka_bootstrap,
            client_id=s.kafka_client_id,
            request_timeout_ms=s.request_timeout_ms,
            metadata_max_age_ms=s.metadata_max_age_ms,
            api_version_auto_timeout_ms=s.api_version_auto_timeout_ms,
            security_protocol=s.security_protocol,
        )
        if s.kafka_api_version:
            kw["api_version"] = tuple(int(x) for x in s.kafka_api_version.split("."))
        if s.security_protocol.startswith("SASL"):
            kw.update(
                sasl_mechanism=s.sasl_mechanism,
                sasl_plain_username=s.sasl_plain_username,
                sasl_plain_password=s.sasl_plain_password,
            )
        if s.security_protocol.endswith("SSL"):
            kw.update(ssl_cafile=s.ssl_cafile)
        return kw

    def _ensure_admin(self) -> KafkaAdminClient:
        if self._admin is not None:
            return self._admin

        last_exc: Exception | None = None
        for attempt in range(1, self._settings.admin_connect_max_tries + 1):
            try:
                self._admin = KafkaAdminClient(**self._common_kwargs())
                return self._admin
            except _RETRYABLE as exc:
                last_exc = exc
                logger.warning("kafka admin connect attempt %d failed: %s", attempt, exc)
                time.sleep(self._settings.admin_connect_backoff_sec * attempt)
        # give up
        raise last_exc or NoBrokersAvailable()

    async def _run(self, fn, *args, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, functools.partial(fn, *args, **kwargs))

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)
        if self._admin is not None:
            self._admin.close()
            self._admin = None

    # ---------- Metadata ----------
    async def fetch_metadata(self, topics: Optional[List[str]] = None) -> MetadataSnapshot:
        return await self._run(self.describe_metadata, topics)

    def describe_metadata(self, topics: Optional[List[str]] = None) -> MetadataSnapshot:
        admin = self._ensure_admin()
        return MetadataSnapshot(topics=[_parse_topic(t) for t in admin.describe_topics(topics)])

    # ---------- Log dirs ----------
    async def fetch_log_dirs(self, topics: Optional[List[str]] = None) -> LogDirReport:
        return await self._run(self.describe_log_dirs, topics)

    def describe_log_dirs(self, topics: Optional[List[str]] = None) -> LogDirReport:
        """Ask every broker for its log dirs.

        The request always covers all topics; filtering happens in the
        aggregator. A broker that fails to answer is reported with ``error``
        set instead of failing the whole call.
        """
        admin = self._ensure_admin()
        brokers = admin.describe_cluster().get("brokers", [])
        if not brokers:
            raise NoBrokersAvailable()
        out: list[BrokerLogDirs] = []
        for b in brokers:
            broker_id = b["node_id"]
            try:
                future = admin._send_request_to_node(broker_id, DescribeLogDirsRequest[0]())
                admin._wait_for_futures([future])
            except Errors.KafkaError as exc:
                logger.debug("broker %s did not return log dirs: %s", broker_id, exc)
                out.append(BrokerLogDirs(broker_id=broker_id, error=str(exc) or type(exc).__name__))
                continue
            out.append(_parse_log_dirs(broker_id, future.value))
        return LogDirReport(brokers=out)

    # ---------- Configs ----------
    async def fetch_topic_configs(
        self, topic_names: List[str], keys: Iterable[str]
    ) -> Dict[str, ConfigEntrySet]:
        return await self._run(self.describe_topic_configs, topic_names, list(keys))

    def describe_topic_configs(self, topic_names: List[str], keys: List[str]) -> Dict[str, ConfigEntrySet]:
        admin = self._ensure_admin()
        wanted = {k: None for k in keys} or None
        resources = [ConfigResource(ConfigResourceType.TOPIC, name, configs=wanted) for name in topic_names]
        responses = admin.describe_configs(config_resources=resources)
        return _parse_config_responses(responses)


# --------------------------------------------------------------------------- #
# Response parsing                                                            #
# --------------------------------------------------------------------------- #
def _field(d: Dict[str, Any], *names: str, default=None):
    # Field names differ between kafka-python protocol versions
    for n in names:
        if n in d:
            return d[n]
    return default


def _parse_topic(t: Dict[str, Any]) -> TopicMetadata:
    partitions = [
        PartitionMetadata(
            partition_id=_field(p, "partition", "partition_index"),
            replicas=list(_field(p, "replicas", "replica_nodes", default=[]) or []),
        )
        for p in (t.get("partitions") or [])
    ]
    return TopicMetadata(
        name=_field(t, "topic", "name"),
        is_internal=bool(t.get("is_internal", False)),
        error_code=t.get("error_code", 0),
        partitions=partitions,
    )


def _parse_log_dirs(broker_id: int, response) -> BrokerLogDirs:
    """Convert a DescribeLogDirs response.

    log_dirs = [(error_code, log_dir, [(topic, [(partition, size, offset_lag, is_future), ...]), ...]), ...]
    """
    dirs: list[LogDirEntry] = []
    for error_code, path, topics in response.log_dirs:
        partitions = [
            LogDirPartition(topic=topic, partition_id=p[0], size_bytes=p[1], is_future=bool(p[3]))
            for topic, parts in topics
            for p in parts
        ]
        dirs.append(LogDirEntry(path=path, error_code=error_code, partitions=partitions))
    return BrokerLogDirs(broker_id=broker_id, log_dirs=dirs)


def _parse_config_responses(responses) -> Dict[str, ConfigEntrySet]:
    """Convert DescribeConfigs responses into entry sets keyed by topic.

    resources = [(error_code, error_message, resource_type, resource_name, config_entries), ...]

    A topic whose resource failed is left out. If every resource was denied,
    the authorization error is raised so callers can tell "no access" apart
    from "no topics".
    """
    out: Dict[str, ConfigEntrySet] = {}
    denied: Errors.KafkaError | None = None
    for response in responses:
        for error_code, error_message, _type, name, entries in response.resources:
            error_type = Errors.for_code(error_code)
            if error_type is not Errors.NoError:
                if issubclass(error_type, AUTHORIZATION_ERRORS):
                    denied = error_type(error_message or name)
                logger.debug("describe configs for topic %s failed: %s", name, error_type.__name__)
                continue
            out[name] = ConfigEntrySet(
                topic=name,
                entries={e[0]: _parse_config_entry(e) for e in entries},
            )
    if denied is not None and not out:
        raise denied
    return out


def _parse_config_entry(e) -> ConfigEntry:
    # v0: (name, value, read_only, is_default, is_sensitive)
    # v1+: (name, value, read_only, config_source, is_sensitive, synonyms)
    default_or_source = e[3]
    if isinstance(default_or_source, bool):
        is_default = default_or_source
    else:
        is_default = default_or_source == _DEFAULT_CONFIG_SOURCE
    return ConfigEntry(
        name=e[0],
        value=e[1],
        read_only=bool(e[2]),
        is_default=is_default,
        is_sensitive=bool(e[4]),
    )
