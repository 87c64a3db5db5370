"""
GraphQL Subscription Resolvers - Real-time book events
"""
from typing import AsyncGenerator

import strawberry
from strawberry.types import Info

from bookgraph.common_logging.setup import get_logger

from .event_bus import Topic
from .schema import Book

logger = get_logger(__name__)


@strawberry.type
class Subscription:

    @strawberry.subscription
    async def book_added(self, info: Info) -> AsyncGenerator[Book, None]:
        """
        Every book added after the subscription started, in publish order.
        Anonymous clients may subscribe.
        """
        context = info.context
        async with context.event_bus.subscribe(Topic.BOOK_ADDED) as stream:
            logger.info(f"Starting bookAdded subscription {stream.subscription_id}")
            try:
                async for event in stream:
                    # the connection's loaders outlive one operation
                    context.loaders.book_count.clear(event.payload.author_id)
                    yield Book.from_record(event.payload)
            finally:
                logger.info(f"bookAdded subscription {stream.subscription_id} ended")
