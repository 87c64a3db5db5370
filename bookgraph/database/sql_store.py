"""
SQLAlchemy implementation of the document store

Books keep their genre sequence in a child table (ordered by position,
duplicates allowed) so that "genres contains X" stays an indexed EXISTS
query instead of a scan over serialized arrays.
"""
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import Column, ForeignKey, Integer, String, delete, func, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base, relationship

from bookgraph.common_logging.setup import get_logger

from .documents import (
    UNIQUE_FIELDS,
    AuthorRecord,
    BookRecord,
    Collection,
    UserRecord,
    new_id,
    validate_document,
)
from .errors import StoreError, StoreValidationError
from .store import DocumentStore, Filter, Record

logger = get_logger(__name__)

Base = declarative_base()


class AuthorRow(Base):
    __tablename__ = "authors"

    pk = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), unique=True, nullable=False, default=new_id)
    name = Column(String(255), unique=True, nullable=False, index=True)
    born = Column(Integer, nullable=True)


class BookRow(Base):
    __tablename__ = "books"

    pk = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), unique=True, nullable=False, default=new_id)
    title = Column(String(512), nullable=False)
    published = Column(Integer, nullable=True)
    author_id = Column(String(36), ForeignKey("authors.id"), nullable=False, index=True)

    author = relationship(AuthorRow, lazy="joined")
    genres = relationship(
        "BookGenreRow",
        order_by="BookGenreRow.position",
        lazy="selectin",
        cascade="all, delete-orphan",
    )


class BookGenreRow(Base):
    __tablename__ = "book_genres"

    book_pk = Column(Integer, ForeignKey("books.pk", ondelete="CASCADE"), primary_key=True)
    position = Column(Integer, primary_key=True)
    genre = Column(String(255), nullable=False, index=True)


class UserRow(Base):
    __tablename__ = "users"

    pk = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), unique=True, nullable=False, default=new_id)
    username = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    favorite_genre = Column(String(255), nullable=True)


_ROWS = {
    Collection.AUTHORS: AuthorRow,
    Collection.BOOKS: BookRow,
    Collection.USERS: UserRow,
}

# Document field name -> column
_COLUMNS = {
    Collection.AUTHORS: {
        "id": AuthorRow.id,
        "name": AuthorRow.name,
        "born": AuthorRow.born,
    },
    Collection.BOOKS: {
        "id": BookRow.id,
        "title": BookRow.title,
        "published": BookRow.published,
        "author": BookRow.author_id,
    },
    Collection.USERS: {
        "id": UserRow.id,
        "username": UserRow.username,
        "password_hash": UserRow.password_hash,
        "favorite_genre": UserRow.favorite_genre,
    },
}


def _author_record(row: AuthorRow) -> AuthorRecord:
    return AuthorRecord(id=row.id, name=row.name, born=row.born)


def _book_record(row: BookRow) -> BookRecord:
    return BookRecord(
        id=row.id,
        title=row.title,
        published=row.published,
        author_id=row.author_id,
        genres=tuple(g.genre for g in row.genres),
        author=_author_record(row.author) if row.author is not None else None,
    )


def _user_record(row: UserRow) -> UserRecord:
    return UserRecord(
        id=row.id,
        username=row.username,
        password_hash=row.password_hash,
        favorite_genre=row.favorite_genre,
    )


_TO_RECORD = {
    Collection.AUTHORS: _author_record,
    Collection.BOOKS: _book_record,
    Collection.USERS: _user_record,
}


class SqlAlchemyStore(DocumentStore):
    """Document store backed by any SQLAlchemy async engine"""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.engine = create_async_engine(url, echo=echo)
        self._sessionmaker = async_sessionmaker(self.engine, expire_on_commit=False)

    @classmethod
    def from_config(cls, config) -> "SqlAlchemyStore":
        return cls(config.url, echo=config.echo)

    async def init_schema(self) -> None:
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to create schema: {e}") from e
        logger.info(f"Store schema ready ({self.engine.url.render_as_string(hide_password=True)})")

    async def close(self) -> None:
        await self.engine.dispose()

    @asynccontextmanager
    async def _transaction(self, collection: Collection):
        """Session in a transaction; driver errors surface as StoreError"""
        try:
            async with self._sessionmaker.begin() as session:
                yield session
        except IntegrityError as e:
            fields = UNIQUE_FIELDS[collection]
            if fields:
                raise StoreValidationError(
                    collection.value, {f: f"{f} must be unique" for f in fields}
                ) from e
            raise StoreError(f"Integrity error on {collection.value}: {e.orig}") from e
        except SQLAlchemyError as e:
            logger.error(f"Store error on {collection.value}: {e}")
            raise StoreError(str(e)) from e

    def _column(self, collection: Collection, field: str):
        try:
            return _COLUMNS[collection][field]
        except KeyError:
            raise StoreError(f"Unknown field '{field}' for {collection.value}") from None

    def _conditions(self, collection: Collection, filter: Optional[Filter]) -> list:
        conditions = []
        for field, value in (filter or {}).items():
            if collection is Collection.BOOKS and field == "genres":
                conditions.append(BookRow.genres.any(BookGenreRow.genre == value))
                continue
            column = self._column(collection, field)
            conditions.append(column.is_(None) if value is None else column == value)
        return conditions

    async def _check_unique(self, session, collection: Collection, document, exclude_id: Optional[str] = None):
        row_cls = _ROWS[collection]
        field_errors = {}
        for field in UNIQUE_FIELDS[collection]:
            stmt = select(row_cls.pk).where(self._column(collection, field) == getattr(document, field))
            if exclude_id is not None:
                stmt = stmt.where(row_cls.id != exclude_id)
            if (await session.execute(stmt.limit(1))).first() is not None:
                field_errors[field] = f"{field} must be unique"
        if field_errors:
            raise StoreValidationError(collection.value, field_errors)

    @staticmethod
    def _apply(row, collection: Collection, document) -> None:
        if collection is Collection.BOOKS:
            row.title = document.title
            row.published = document.published
            row.author_id = document.author
            row.genres = [
                BookGenreRow(position=i, genre=genre)
                for i, genre in enumerate(document.genres)
            ]
        else:
            for field, value in document.model_dump().items():
                setattr(row, field, value)

    @staticmethod
    def _document_of(collection: Collection, row) -> Dict[str, Any]:
        if collection is Collection.BOOKS:
            return {
                "title": row.title,
                "published": row.published,
                "author": row.author_id,
                "genres": [g.genre for g in row.genres],
            }
        fields = [f for f in _COLUMNS[collection] if f != "id"]
        return {f: getattr(row, f) for f in fields}

    async def find_one(self, collection: Collection, filter: Filter) -> Optional[Record]:
        row_cls = _ROWS[collection]
        stmt = select(row_cls).where(*self._conditions(collection, filter)).order_by(row_cls.pk).limit(1)
        async with self._transaction(collection) as session:
            row = (await session.execute(stmt)).scalars().unique().first()
            return _TO_RECORD[collection](row) if row is not None else None

    async def find(self, collection: Collection, filter: Optional[Filter] = None) -> List[Record]:
        row_cls = _ROWS[collection]
        stmt = select(row_cls).where(*self._conditions(collection, filter)).order_by(row_cls.pk)
        async with self._transaction(collection) as session:
            rows = (await session.execute(stmt)).scalars().unique().all()
            return [_TO_RECORD[collection](row) for row in rows]

    async def create(self, collection: Collection, doc: Dict[str, Any]) -> Record:
        document = validate_document(collection, doc)
        async with self._transaction(collection) as session:
            await self._check_unique(session, collection, document)
            row = _ROWS[collection](id=new_id())
            self._apply(row, collection, document)
            session.add(row)
            await session.flush()
            record_id = row.id

        logger.debug(f"Created {collection.value} document {record_id}")
        return await self.find_one(collection, {"id": record_id})

    async def update_one(self, collection: Collection, filter: Filter, patch: Dict[str, Any]) -> Optional[Record]:
        row_cls = _ROWS[collection]
        stmt = select(row_cls).where(*self._conditions(collection, filter)).order_by(row_cls.pk).limit(1)
        async with self._transaction(collection) as session:
            row = (await session.execute(stmt)).scalars().unique().first()
            if row is None:
                return None

            merged = self._document_of(collection, row)
            merged.update(patch)
            document = validate_document(collection, merged)
            await self._check_unique(session, collection, document, exclude_id=row.id)
            self._apply(row, collection, document)
            record_id = row.id

        return await self.find_one(collection, {"id": record_id})

    async def count_documents(self, collection: Collection, filter: Optional[Filter] = None) -> int:
        stmt = select(func.count()).select_from(_ROWS[collection]).where(*self._conditions(collection, filter))
        async with self._transaction(collection) as session:
            return (await session.execute(stmt)).scalar_one()

    async def aggregate_count_by_key(
        self,
        collection: Collection,
        group_field: str,
        keys: Sequence[Any],
    ) -> Dict[Any, int]:
        counts = {key: 0 for key in keys}
        if not counts:
            return counts

        column = self._column(collection, group_field)
        stmt = (
            select(column, func.count())
            .select_from(_ROWS[collection])
            .where(column.in_(list(counts)))
            .group_by(column)
        )
        async with self._transaction(collection) as session:
            for key, count in (await session.execute(stmt)).all():
                counts[key] = count

        logger.debug(f"Aggregated {collection.value} counts by {group_field} for {len(counts)} keys")
        return counts

    async def delete_many(self, collection: Collection, filter: Optional[Filter] = None) -> int:
        row_cls = _ROWS[collection]
        conditions = self._conditions(collection, filter)
        async with self._transaction(collection) as session:
            pks = (await session.execute(select(row_cls.pk).where(*conditions))).scalars().all()
            if not pks:
                return 0
            if collection is Collection.BOOKS:
                await session.execute(delete(BookGenreRow).where(BookGenreRow.book_pk.in_(pks)))
            await session.execute(delete(row_cls).where(row_cls.pk.in_(pks)))
            return len(pks)

    async def ping(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Store ping failed: {e}")
            return False
