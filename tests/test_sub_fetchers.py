from __future__ import annotations

import kafka.errors as Errors
import pytest

from topicscope.core.exceptions import ClusterRequestError, TopicMetadataError
from topicscope.domain.models.cluster import (
    BrokerLogDirs,
    ConfigEntry,
    ConfigEntrySet,
    LogDirEntry,
    LogDirPartition,
    LogDirReport,
    LookupState,
)
from topicscope.domain.services.config_service import TopicConfigFetcher
from topicscope.domain.services.log_dir_service import LogDirAggregator, sum_log_dirs
from topicscope.domain.services.metadata_service import MetadataFetcher

from conftest import FakeTransport, make_configs, make_topic


# ---------- metadata ----------

async def test_metadata_returns_snapshot(transport):
    snapshot = await MetadataFetcher(transport).fetch()
    assert snapshot.topic_names() == ["payments", "orders"]


async def test_metadata_passes_topic_filter(transport):
    snapshot = await MetadataFetcher(transport).fetch(["orders"])
    assert snapshot.topic_names() == ["orders"]
    assert transport.calls == [("metadata", ["orders"])]


async def test_metadata_error_code_names_topic(caplog):
    transport = FakeTransport(
        topics=[make_topic("ok", 1, 1), make_topic("bad", 1, 1, error_code=Errors.TopicAuthorizationFailedError.errno)]
    )

    with pytest.raises(TopicMetadataError, match="bad"):
        await MetadataFetcher(transport).fetch()

    assert any(r.levelname == "ERROR" and "bad" in r.getMessage() for r in caplog.records)


async def test_metadata_kafka_error_is_wrapped(transport):
    transport.metadata_error = Errors.KafkaTimeoutError()

    with pytest.raises(ClusterRequestError) as excinfo:
        await MetadataFetcher(transport).fetch()

    assert isinstance(excinfo.value.cause, Errors.KafkaTimeoutError)


# ---------- log dirs ----------

def _broker(broker_id, *parts, error_code=0, path="/data"):
    return BrokerLogDirs(
        broker_id=broker_id,
        log_dirs=[
            LogDirEntry(
                path=path,
                error_code=error_code,
                partitions=[LogDirPartition(topic=t, partition_id=p, size_bytes=s) for t, p, s in parts],
            )
        ],
    )


def test_sum_log_dirs_adds_every_replica():
    report = LogDirReport(
        brokers=[
            _broker(1, ("orders", 0, 100), ("orders", 1, 50)),
            _broker(2, ("orders", 0, 100), ("payments", 0, 7)),
        ]
    )

    sizes = sum_log_dirs(report)

    assert sizes.by_topic == {"orders": 250, "payments": 7}
    assert sizes.complete_brokers == {1, 2}
    assert sizes.size_of("orders", {1, 2}) == 250


def test_sum_log_dirs_filters_topics():
    report = LogDirReport(brokers=[_broker(1, ("orders", 0, 100), ("other", 0, 9))])

    assert sum_log_dirs(report, ["orders"]).by_topic == {"orders": 100}


def test_offline_log_dir_marks_broker_incomplete():
    report = LogDirReport(
        brokers=[
            _broker(1, ("orders", 0, 100)),
            _broker(2, ("orders", 0, 100), error_code=Errors.KafkaStorageError.errno),
        ]
    )

    sizes = sum_log_dirs(report)

    assert sizes.complete_brokers == {1}
    assert sizes.by_topic == {"orders": 100}
    assert sizes.size_of("orders", {1, 2}) is None
    assert sizes.size_of("orders", {1}) == 100


async def test_log_dir_kafka_error_is_wrapped(transport):
    transport.log_dirs_error = Errors.NoBrokersAvailable()

    with pytest.raises(ClusterRequestError):
        await LogDirAggregator(transport).sizes_by_topic(["orders"])


# ---------- configs ----------

async def test_configs_returned_per_topic(transport):
    configs = await TopicConfigFetcher(transport).fetch(["orders"])

    assert list(configs) == ["orders"]
    assert configs["orders"].lookup("cleanup.policy").value == "delete"


@pytest.mark.parametrize(
    "error", [Errors.TopicAuthorizationFailedError(), Errors.ClusterAuthorizationFailedError()]
)
async def test_configs_denied_returns_none(transport, error, caplog):
    transport.configs_error = error

    assert await TopicConfigFetcher(transport).fetch(["orders", "payments"]) is None
    assert any(r.levelname == "WARNING" for r in caplog.records)


async def test_configs_other_errors_raise(transport):
    transport.configs_error = Errors.RequestTimedOutError()

    with pytest.raises(ClusterRequestError):
        await TopicConfigFetcher(transport).fetch(["orders"])


async def test_configs_no_topics_skips_request(transport):
    assert await TopicConfigFetcher(transport).fetch([]) == {}
    assert transport.calls == []


def test_config_lookup_states():
    entries = make_configs(orders="compact,delete")["orders"]
    withheld = ConfigEntrySet(
        topic="secret",
        entries={"cleanup.policy": ConfigEntry(name="cleanup.policy", value=None, is_sensitive=True)},
    )

    assert entries.lookup("cleanup.policy").state is LookupState.PRESENT
    assert entries.lookup("cleanup.policy").value_or("N/A") == "compact,delete"
    assert entries.lookup("retention.ms").state is LookupState.MISSING
    assert entries.lookup("retention.ms").value_or("N/A") == "N/A"
    assert withheld.lookup("cleanup.policy").state is LookupState.WITHHELD
    assert not withheld.lookup("cleanup.policy").present
    assert withheld.lookup("cleanup.policy").value_or("N/A") == "N/A"
