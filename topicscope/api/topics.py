# topicscope/api/topics.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from topicscope.api.dependencies import get_authorizer, get_topic_service
from topicscope.domain.models.topic import TopicOverview, TopicsResponse
from topicscope.domain.ports import TopicAuthorizer
from topicscope.domain.services.topic_service import TopicService

router = APIRouter(prefix="/topics", tags=["topics"])


def _clean_q(q: Optional[str]) -> Optional[str]:
    """None, empty string, or "[object Object]" -> None."""
    if not q:
        return None
    q = q.strip()
    if q == "" or q == "[object Object]":
        return None
    return q


@router.get("", response_model=TopicsResponse)
async def list_topics(
    q: Optional[str] = Query(None, description="Optional filter substring (case-insensitive)"),
    svc: TopicService = Depends(get_topic_service),
    authorizer: TopicAuthorizer = Depends(get_authorizer),
) -> TopicsResponse:
    """
    Returns every topic with partition count, replication factor, cleanup
    policy and log dir size, sorted by name. Unknown detail is reported as
    "N/A" / -1 rather than omitting the row.
    """
    items = await svc.get_topics_overview(authorizer=authorizer)
    qq = _clean_q(q)
    if qq:
        qq_l = qq.lower()
        items = [t for t in items if qq_l in t.topicName.lower()]
    return TopicsResponse(topics=items)


@router.get("/{topic}", response_model=TopicOverview)
async def topic_overview(
    topic: str,
    svc: TopicService = Depends(get_topic_service),
    authorizer: TopicAuthorizer = Depends(get_authorizer),
) -> TopicOverview:
    # KeyError -> 404 via the installed exception handlers
    return await svc.get_topic_overview(topic, authorizer=authorizer)
