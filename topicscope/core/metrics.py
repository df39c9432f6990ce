"""Prometheus counters for the topic overview."""
from prometheus_client import CollectorRegistry, Counter

REGISTRY = CollectorRegistry()

OVERVIEW_REQUESTS = Counter(
    "topicscope_overview_requests",
    "Topic overview requests by outcome",
    ["outcome"],
    registry=REGISTRY,
)

OVERVIEW_DEGRADED = Counter(
    "topicscope_overview_degraded",
    "Sub-fetches that failed and were replaced by placeholder values",
    ["stage"],
    registry=REGISTRY,
)
