"""
GraphQL Schema Types
"""
from typing import List, Optional

import strawberry
from strawberry.types import Info

from bookgraph.database import AuthorRecord, BookRecord, UserRecord


@strawberry.type
class Author:
    name: str
    id: strawberry.ID
    born: Optional[int] = None

    @strawberry.field
    async def book_count(self, info: Info) -> int:
        """Always batched through the request's loader"""
        return await info.context.loaders.book_count.load(str(self.id))

    @classmethod
    def from_record(cls, record: AuthorRecord) -> "Author":
        return cls(name=record.name, id=strawberry.ID(record.id), born=record.born)


@strawberry.type
class Book:
    title: str
    published: Optional[int]
    author: Author
    id: strawberry.ID
    genres: List[str]

    @classmethod
    def from_record(cls, record: BookRecord) -> "Book":
        return cls(
            title=record.title,
            published=record.published,
            author=Author.from_record(record.author),
            id=strawberry.ID(record.id),
            genres=list(record.genres),
        )


@strawberry.type
class User:
    username: str
    favorite_genre: Optional[str]
    id: strawberry.ID

    @classmethod
    def from_record(cls, record: UserRecord) -> "User":
        return cls(
            username=record.username,
            favorite_genre=record.favorite_genre,
            id=strawberry.ID(record.id),
        )


@strawberry.type
class Token:
    value: str
