"""
GraphQL Query and Mutation resolvers
"""
from typing import Dict, List, Optional

import strawberry
from strawberry.types import Info

from bookgraph.common_logging.setup import get_logger
from bookgraph.core.auth import dummy_verify, hash_password, verify_password
from bookgraph.core.errors import BadCredentials, InvalidInput, NotFound, Unauthenticated
from bookgraph.database import Collection, StoreValidationError, UserRecord

from .context import ExecutionContext
from .errors import BookgraphSchema, ErrorClassifierExtension
from .event_bus import Event, Topic
from .monitoring import OperationLoggingExtension
from .schema import Author, Book, Token, User
from .subscriptions import Subscription

logger = get_logger(__name__)

# Store field names that differ from the argument the client sent
_ARGUMENT_NAMES: Dict[str, str] = {
    "password_hash": "password",
    "favorite_genre": "favoriteGenre",
}


def require_user(info: Info) -> UserRecord:
    context: ExecutionContext = info.context
    if not context.is_authenticated:
        raise Unauthenticated()
    return context.current_user


def invalid_input(action: str, error: StoreValidationError) -> InvalidInput:
    """One InvalidInput listing every failed field, not just the first"""
    messages: List[str] = []
    fields: List[str] = []
    for field, message in error.field_errors.items():
        name = _ARGUMENT_NAMES.get(field, field)
        fields.append(name)
        messages.append(f"{name}: {message}")
    return InvalidInput(f"{action} failed: {'; '.join(messages)}", invalid_args=fields)


@strawberry.type
class Query:

    @strawberry.field
    async def book_count(self, info: Info) -> int:
        return await info.context.store.count_documents(Collection.BOOKS)

    @strawberry.field
    async def author_count(self, info: Info) -> int:
        return await info.context.store.count_documents(Collection.AUTHORS)

    @strawberry.field
    async def all_books(
        self,
        info: Info,
        author: Optional[str] = None,
        genre: Optional[str] = None,
    ) -> List[Book]:
        """
        Books filtered by author name and/or genre (AND-ed).

        An unknown author name still runs the query, against a null author
        reference, so the result is empty rather than unfiltered.
        """
        store = info.context.store
        filter = {}
        if author is not None:
            found = await store.find_one(Collection.AUTHORS, {"name": author})
            filter["author"] = found.id if found else None
        if genre is not None:
            filter["genres"] = genre

        records = await store.find(Collection.BOOKS, filter)
        return [Book.from_record(record) for record in records]

    @strawberry.field
    async def all_authors(self, info: Info) -> List[Author]:
        records = await info.context.store.find(Collection.AUTHORS)
        return [Author.from_record(record) for record in records]

    @strawberry.field
    def me(self, info: Info) -> Optional[User]:
        current_user = info.context.current_user
        return User.from_record(current_user) if current_user else None


@strawberry.type
class Mutation:

    @strawberry.mutation
    async def add_book(
        self,
        info: Info,
        title: str,
        author: str,
        genres: List[str],
        published: Optional[int] = None,
    ) -> Book:
        user = require_user(info)
        context: ExecutionContext = info.context

        author_record = await context.store.find_one(Collection.AUTHORS, {"name": author})
        if author_record is None:
            raise NotFound(f"Author {author} not found", invalid_args=["author"])

        try:
            record = await context.store.create(
                Collection.BOOKS,
                {
                    "title": title,
                    "published": published,
                    "author": author_record.id,
                    "genres": genres,
                },
            )
        except StoreValidationError as e:
            raise invalid_input("Saving book", e) from e

        context.loaders.book_count.clear(author_record.id)
        context.event_bus.publish(Topic.BOOK_ADDED, Event(topic=Topic.BOOK_ADDED, payload=record))
        logger.info(f"add_book - title={record.title!r} author={author_record.name!r} user={user.username}")
        return Book.from_record(record)

    @strawberry.mutation
    async def edit_author(
        self,
        info: Info,
        name: Optional[str] = None,
        set_born_to: Optional[int] = None,
    ) -> Author:
        user = require_user(info)
        if name is None:
            raise NotFound("Author name is required", invalid_args=["name"])

        try:
            record = await info.context.store.update_one(
                Collection.AUTHORS, {"name": name}, {"born": set_born_to}
            )
        except StoreValidationError as e:
            raise invalid_input("Editing author", e) from e

        if record is None:
            raise NotFound(f"Author {name} not found", invalid_args=["name"])

        logger.info(f"edit_author - name={name!r} born={set_born_to} user={user.username}")
        return Author.from_record(record)

    @strawberry.mutation
    async def create_user(
        self,
        info: Info,
        username: str,
        password: str,
        favorite_genre: Optional[str] = None,
    ) -> User:
        # An empty password yields an empty hash, which the store rejects
        # together with any other bad field
        password_hash = hash_password(password) if password else ""
        try:
            record = await info.context.store.create(
                Collection.USERS,
                {
                    "username": username,
                    "password_hash": password_hash,
                    "favorite_genre": favorite_genre,
                },
            )
        except StoreValidationError as e:
            raise invalid_input("Creating user", e) from e

        logger.info(f"create_user - username={record.username!r}")
        return User.from_record(record)

    @strawberry.mutation
    async def login(self, info: Info, username: str, password: str) -> Token:
        context: ExecutionContext = info.context
        user = await context.store.find_one(Collection.USERS, {"username": username})
        if user is None:
            dummy_verify()
            raise BadCredentials()
        if not verify_password(password, user.password_hash):
            raise BadCredentials()

        logger.info(f"login - username={user.username!r}")
        return Token(value=context.tokens.issue(user.id, user.username))


schema = BookgraphSchema(
    query=Query,
    mutation=Mutation,
    subscription=Subscription,
    extensions=[ErrorClassifierExtension, OperationLoggingExtension],
)
