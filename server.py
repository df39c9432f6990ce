# server.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from topicscope.api import metrics as metrics_router
from topicscope.api import topics as topics_router
from topicscope.core.config import Settings, get_settings
from topicscope.core.errors import install_exception_handlers
from topicscope.domain.ports import ClusterTransport
from topicscope.domain.services.authorization import StaticTopicAuthorizer
from topicscope.domain.services.topic_service import TopicService
from topicscope.infra.kafka.admin import KafkaAdminFacade

logger = logging.getLogger("topicscope")


def create_app(settings: Settings | None = None, transport: ClusterTransport | None = None) -> FastAPI:
    """Build the API. *transport* defaults to a kafka-python admin facade."""
    settings = settings or get_settings()

    # Lifespan handler owns the cluster connection and the topic service
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logging.basicConfig(level=settings.log_level)
        facade = None
        cluster = transport
        if cluster is None:
            facade = KafkaAdminFacade(settings)
            cluster = facade
        app.state.topic_service = TopicService(
            cluster,
            authorizer=StaticTopicAuthorizer(settings.default_topic_actions),
            concurrent=settings.overview_concurrent_fetch,
        )
        logger.info("topic overview API ready (bootstrap=%s)", settings.kafka_bootstrap)
        try:
            yield
        finally:
            if facade is not None:
                facade.close()

    app = FastAPI(
        title="Topic Overview API",
        version="1.0.0",
        lifespan=lifespan,
        openapi_url="/api/v1/openapi.json",
        docs_url="/api/v1/docs",
        redoc_url="/api/v1/redoc",
    )
    app.dependency_overrides[get_settings] = lambda: settings

    # --- CORS: allow web-ui during development (configurable via settings.cors_allow_origins) ---
    allow_origins = settings.cors_allow_origins or [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_exception_handlers(app)

    app.include_router(topics_router.router, prefix="/api/v1")
    if settings.metrics_enabled:
        # metrics lives at /metrics (Prometheus convention)
        app.include_router(metrics_router.router, prefix="")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("server:app", host="0.0.0.0", port=8000, reload=True)
