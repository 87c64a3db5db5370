"""
Database seeding utility

Usage:
    bookgraph-seed [--database-url URL]

Wipes the books and authors collections and inserts the sample catalogue.
Users are left untouched.
"""
import argparse
import asyncio
from typing import Any, Dict, List

from bookgraph.bootstrap.config import get_config
from bookgraph.common_logging.setup import get_logger, setup_logging

from .documents import Collection
from .sql_store import SqlAlchemyStore
from .store import DocumentStore

logger = get_logger(__name__)

SAMPLE_AUTHORS: List[Dict[str, Any]] = [
    {"name": "Robert Martin", "born": 1952},
    {"name": "Martin Fowler", "born": 1963},
    {"name": "Fyodor Dostoevsky", "born": 1821},
    {"name": "Joshua Kerievsky"},  # birthyear not known
    {"name": "Sandi Metz"},  # birthyear not known
]

SAMPLE_BOOKS: List[Dict[str, Any]] = [
    {
        "title": "Clean Code",
        "published": 2008,
        "author": "Robert Martin",
        "genres": ["refactoring"],
    },
    {
        "title": "Agile software development",
        "published": 2002,
        "author": "Robert Martin",
        "genres": ["agile", "patterns", "design"],
    },
    {
        "title": "Refactoring, edition 2",
        "published": 2018,
        "author": "Martin Fowler",
        "genres": ["refactoring"],
    },
    {
        "title": "Refactoring to patterns",
        "published": 2008,
        "author": "Joshua Kerievsky",
        "genres": ["refactoring", "patterns"],
    },
    {
        "title": "Practical Object-Oriented Design, An Agile Primer Using Ruby",
        "published": 2012,
        "author": "Sandi Metz",
        "genres": ["refactoring", "design"],
    },
    {
        "title": "Crime and punishment",
        "published": 1866,
        "author": "Fyodor Dostoevsky",
        "genres": ["classic", "crime"],
    },
    {
        "title": "The Demon ",
        "published": 1872,
        "author": "Fyodor Dostoevsky",
        "genres": ["classic", "revolution"],
    },
]


async def populate(
    store: DocumentStore,
    authors: List[Dict[str, Any]] = SAMPLE_AUTHORS,
    books: List[Dict[str, Any]] = SAMPLE_BOOKS,
) -> Dict[str, int]:
    """Replace all authors and books with the given samples"""
    await store.delete_many(Collection.BOOKS)
    await store.delete_many(Collection.AUTHORS)

    for author in authors:
        await store.create(Collection.AUTHORS, dict(author))

    created_books = 0
    for book in books:
        author = await store.find_one(Collection.AUTHORS, {"name": book["author"]})
        if author is None:
            logger.error(f"Author {book['author']} not found, skipping '{book['title']}'")
            continue
        await store.create(Collection.BOOKS, {**book, "author": author.id})
        created_books += 1

    logger.info(f"Database populated: {len(authors)} authors, {created_books} books")
    return {"authors": len(authors), "books": created_books}


async def _run(database_url: str) -> None:
    store = SqlAlchemyStore(database_url)
    try:
        await store.init_schema()
        await populate(store)
    finally:
        await store.close()


def main(argv=None) -> None:
    config = get_config()
    parser = argparse.ArgumentParser(description="Populate the bookgraph database with sample data")
    parser.add_argument(
        "--database-url",
        default=config.database.url,
        help="SQLAlchemy async database URL (default: DATABASE_URL)",
    )
    args = parser.parse_args(argv)

    setup_logging(level=config.service.log_level, format_type=config.service.log_format)
    asyncio.run(_run(args.database_url))


if __name__ == "__main__":
    main()
