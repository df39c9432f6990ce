"""Topic configuration lookups that tolerate missing ACLs."""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

import kafka.errors as Errors

from topicscope.core.exceptions import ClusterRequestError
from topicscope.domain.models.cluster import ConfigEntrySet
from topicscope.domain.ports import ClusterTransport

logger = logging.getLogger(__name__)

CLEANUP_POLICY = "cleanup.policy"

AUTHORIZATION_ERRORS = (
    Errors.TopicAuthorizationFailedError,
    Errors.ClusterAuthorizationFailedError,
)


class TopicConfigFetcher:
    """Describe topic configs; a denied request yields ``None`` instead of an error."""

    def __init__(self, transport: ClusterTransport, log: logging.Logger | None = None) -> None:
        self._transport = transport
        self._log = log or logger

    async def fetch(
        self, topic_names: List[str], keys: Iterable[str] = (CLEANUP_POLICY,)
    ) -> Optional[Dict[str, ConfigEntrySet]]:
        """Return config entry sets keyed by topic name.

        ``None`` means no configs are visible to us (authorization denied);
        callers treat it as every topic's config being unknown. Other failures
        raise ClusterRequestError.
        """
        if not topic_names:
            return {}
        try:
            return await self._transport.fetch_topic_configs(topic_names, list(keys))
        except AUTHORIZATION_ERRORS as exc:
            self._log.warning("not authorized to describe topic configs: %s", exc)
            return None
        except Errors.KafkaError as exc:
            raise ClusterRequestError(f"failed to describe topic configs: {exc}", cause=exc) from exc
