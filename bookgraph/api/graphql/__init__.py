"""
GraphQL API layer
"""
from .auth import AuthContextBuilder, get_context
from .context import ExecutionContext
from .event_bus import Event, EventBus, Topic
from .resolvers import schema

__all__ = [
    "AuthContextBuilder",
    "Event",
    "EventBus",
    "ExecutionContext",
    "Topic",
    "get_context",
    "schema",
]
