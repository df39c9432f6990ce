"""Global reusable FastAPI dependencies (JWT, service, authorizer)."""
from fastapi import Depends, Header, HTTPException, Request, status

from topicscope.core.config import Settings, get_settings
from topicscope.core.security import decode_jwt
from topicscope.domain.ports import TopicAuthorizer
from topicscope.domain.services.authorization import authorizer_for_claims
from topicscope.domain.services.topic_service import TopicService


async def require_jwt(
    authorization: str | None = Header(default=None, alias="Authorization"),
    settings: Settings = Depends(get_settings),
) -> dict | None:
    """Validate a Bearer JWT and return the decoded claims (``None`` when auth is off)."""
    if not settings.auth_enabled:
        return None
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, detail="Missing token")
    token = authorization.removeprefix("Bearer ").strip()
    return decode_jwt(token, settings=settings)


async def get_authorizer(
    claims: dict | None = Depends(require_jwt),
    settings: Settings = Depends(get_settings),
) -> TopicAuthorizer:
    return authorizer_for_claims(claims, settings.default_topic_actions)


def get_topic_service(request: Request) -> TopicService:
    return request.app.state.topic_service
