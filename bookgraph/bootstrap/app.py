"""Application factory"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from strawberry.fastapi import GraphQLRouter
from strawberry.subscriptions import GRAPHQL_TRANSPORT_WS_PROTOCOL, GRAPHQL_WS_PROTOCOL

from bookgraph import __version__
from bookgraph.api.graphql import AuthContextBuilder, EventBus, get_context, schema
from bookgraph.bootstrap.config import AppConfig, get_config
from bookgraph.common_logging.setup import get_logger, setup_logging
from bookgraph.core.auth import TokenService
from bookgraph.database import DocumentStore, SqlAlchemyStore

logger = get_logger(__name__)


def create_app(
    config: Optional[AppConfig] = None,
    store: Optional[DocumentStore] = None,
    event_bus: Optional[EventBus] = None,
) -> FastAPI:
    """Application factory, creating a new FastAPI application."""

    if config is None:
        config = get_config()

    setup_logging(
        version=__version__,
        level=config.service.log_level,
        format_type=config.service.log_format,
    )

    # Missing JWT_SECRET fails here, before anything is served
    tokens = TokenService.from_config(config.auth)
    if store is None:
        store = SqlAlchemyStore.from_config(config.database)
    if event_bus is None:
        event_bus = EventBus()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await store.init_schema()
        logger.info(f"bookgraph {__version__} ready ({config.service.environment})")
        try:
            yield
        finally:
            await store.close()
            logger.info("bookgraph stopped")

    app = FastAPI(
        title="bookgraph",
        version=__version__,
        debug=config.service.debug,
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.store = store
    app.state.event_bus = event_bus
    app.state.context_builder = AuthContextBuilder(
        store,
        event_bus,
        tokens,
        loader_batch_size=config.graphql.loader_batch_size,
        slow_batch_seconds=config.graphql.slow_batch_seconds,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    graphql_app = GraphQLRouter(
        schema,
        context_getter=get_context,
        graphql_ide="graphiql" if config.graphql.graphiql and not config.service.is_production else None,
        subscription_protocols=[GRAPHQL_TRANSPORT_WS_PROTOCOL, GRAPHQL_WS_PROTOCOL],
    )
    app.include_router(graphql_app, prefix="/graphql")

    @app.get("/health")
    async def health_check():
        """Store connectivity plus live subscription count"""
        store_ok = await store.ping()
        health_status = {
            "status": "healthy" if store_ok else "unhealthy",
            "service": "bookgraph",
            "version": __version__,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "components": {
                "store": {"status": "healthy" if store_ok else "unhealthy"},
                "subscriptions": {"active": event_bus.listener_count()},
            },
        }
        return JSONResponse(status_code=200 if store_ok else 503, content=health_status)

    return app
