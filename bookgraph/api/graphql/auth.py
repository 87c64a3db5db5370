"""
GraphQL Authentication Module
Builds the per-operation ExecutionContext from the Authorization header

Authentication here is lenient: anything wrong with the credential (missing
header, wrong scheme, malformed or badly signed token, expired token, unknown
subject, store failure during the lookup) yields an anonymous context. Only
the resolvers that need a user reject anonymous callers, with
Unauthenticated, at the point of use.
"""
from typing import Optional

from fastapi.requests import HTTPConnection

from bookgraph.common_logging.setup import get_logger
from bookgraph.core.auth import TokenError, TokenService
from bookgraph.database import Collection, DocumentStore, StoreError, UserRecord

from .context import ExecutionContext
from .dataloaders import DataLoaderRegistry
from .event_bus import EventBus

logger = get_logger(__name__)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Token part of a ``Bearer <token>`` header value, or None"""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        return None
    return token


class AuthContextBuilder:
    """Creates a fresh ExecutionContext for every operation or connection"""

    def __init__(
        self,
        store: DocumentStore,
        event_bus: EventBus,
        tokens: TokenService,
        loader_batch_size: Optional[int] = None,
        slow_batch_seconds: float = 0.1,
    ):
        self.store = store
        self.event_bus = event_bus
        self.tokens = tokens
        self.loader_batch_size = loader_batch_size
        self.slow_batch_seconds = slow_batch_seconds

    async def resolve_user(self, authorization: Optional[str]) -> Optional[UserRecord]:
        """
        Get current user from the Authorization header (optional authentication)
        Returns None if no valid credential is provided
        """
        token = extract_bearer_token(authorization)
        if not token:
            return None

        try:
            claims = self.tokens.verify(token)
        except TokenError as e:
            logger.debug(f"Optional auth failed: {e}")
            return None

        try:
            user = await self.store.find_one(Collection.USERS, {"id": claims.user_id})
        except StoreError as e:
            logger.warning(f"Could not load user {claims.user_id}, continuing anonymously: {e}")
            return None

        if user is None:
            logger.debug(f"Token subject {claims.user_id} does not exist")
        return user

    async def build(self, authorization: Optional[str] = None) -> ExecutionContext:
        current_user = await self.resolve_user(authorization)
        return ExecutionContext(
            store=self.store,
            event_bus=self.event_bus,
            tokens=self.tokens,
            loaders=DataLoaderRegistry(
                self.store,
                batch_size=self.loader_batch_size,
                slow_batch_seconds=self.slow_batch_seconds,
            ),
            current_user=current_user,
        )


async def get_context(connection: HTTPConnection) -> ExecutionContext:
    """
    Strawberry context getter for both HTTP requests and WebSocket connections
    """
    builder: AuthContextBuilder = connection.app.state.context_builder
    return await builder.build(connection.headers.get("authorization"))
