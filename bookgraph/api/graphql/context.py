"""
GraphQL execution context

One ExecutionContext is created per HTTP operation and per WebSocket
connection. It is the only place resolvers find the acting user and the
request-scoped loaders; nothing of it is kept at module level.
"""
from typing import Optional

from strawberry.fastapi import BaseContext

from bookgraph.core.auth import TokenService
from bookgraph.database import DocumentStore, UserRecord

from .dataloaders import DataLoaderRegistry
from .event_bus import EventBus


class ExecutionContext(BaseContext):
    """Acting user plus everything a resolver may touch"""

    def __init__(
        self,
        store: DocumentStore,
        event_bus: EventBus,
        tokens: TokenService,
        loaders: DataLoaderRegistry,
        current_user: Optional[UserRecord] = None,
    ):
        super().__init__()
        self.store = store
        self.event_bus = event_bus
        self.tokens = tokens
        self.loaders = loaders
        self.current_user = current_user

    @property
    def is_authenticated(self) -> bool:
        return self.current_user is not None
