"""
Tests for the SQLAlchemy document store
"""
import pytest

from bookgraph.database import Collection, SqlAlchemyStore, StoreError, StoreValidationError
from bookgraph.database.seed import SAMPLE_AUTHORS, SAMPLE_BOOKS, populate


class TestFind:

    @pytest.mark.asyncio
    async def test_find_all_in_insertion_order(self, store):
        authors = await store.find(Collection.AUTHORS)

        assert [a.name for a in authors] == [a["name"] for a in SAMPLE_AUTHORS]

    @pytest.mark.asyncio
    async def test_find_one_missing(self, store):
        assert await store.find_one(Collection.AUTHORS, {"name": "Nobody"}) is None

    @pytest.mark.asyncio
    async def test_genre_filter_means_contains(self, store):
        books = await store.find(Collection.BOOKS, {"genres": "patterns"})

        assert [b.title for b in books] == ["Agile software development", "Refactoring to patterns"]

    @pytest.mark.asyncio
    async def test_none_filter_means_is_null(self, store):
        unknown_birth = await store.find(Collection.AUTHORS, {"born": None})
        no_author = await store.find(Collection.BOOKS, {"author": None})

        assert [a.name for a in unknown_birth] == ["Joshua Kerievsky", "Sandi Metz"]
        assert no_author == []

    @pytest.mark.asyncio
    async def test_books_carry_author_projection(self, store):
        book = await store.find_one(Collection.BOOKS, {"title": "Clean Code"})

        assert book.author.name == "Robert Martin"
        assert book.author_id == book.author.id
        assert book.genres == ("refactoring",)

    @pytest.mark.asyncio
    async def test_unknown_filter_field(self, store):
        with pytest.raises(StoreError):
            await store.find(Collection.AUTHORS, {"nationality": "Finnish"})


class TestWrites:

    @pytest.mark.asyncio
    async def test_create_keeps_genre_order_and_duplicates(self, store):
        author = await store.find_one(Collection.AUTHORS, {"name": "Martin Fowler"})

        book = await store.create(
            Collection.BOOKS,
            {"title": "UML Distilled", "author": author.id, "genres": ["uml", "design", "uml"]},
        )

        assert book.genres == ("uml", "design", "uml")
        assert book.published is None
        assert book.author.name == "Martin Fowler"

    @pytest.mark.asyncio
    async def test_create_reports_every_invalid_field(self, store):
        with pytest.raises(StoreValidationError) as exc_info:
            await store.create(Collection.USERS, {"username": "", "password_hash": ""})

        assert exc_info.value.fields == ["username", "password_hash"]
        assert await store.count_documents(Collection.USERS) == 0

    @pytest.mark.asyncio
    async def test_unique_author_name(self, store):
        with pytest.raises(StoreValidationError) as exc_info:
            await store.create(Collection.AUTHORS, {"name": "Sandi Metz"})

        assert exc_info.value.fields == ["name"]
        assert await store.count_documents(Collection.AUTHORS) == len(SAMPLE_AUTHORS)

    @pytest.mark.asyncio
    async def test_unknown_document_field_rejected(self, store):
        with pytest.raises(StoreValidationError) as exc_info:
            await store.create(Collection.AUTHORS, {"name": "Kent Beck", "nationality": "US"})

        assert exc_info.value.fields == ["nationality"]

    @pytest.mark.asyncio
    async def test_update_one(self, store):
        updated = await store.update_one(Collection.AUTHORS, {"name": "Sandi Metz"}, {"born": 1952})

        assert updated.born == 1952
        assert (await store.find_one(Collection.AUTHORS, {"name": "Sandi Metz"})).born == 1952

    @pytest.mark.asyncio
    async def test_update_one_no_match(self, store):
        assert await store.update_one(Collection.AUTHORS, {"name": "Nobody"}, {"born": 1}) is None

    @pytest.mark.asyncio
    async def test_update_one_revalidates(self, store):
        with pytest.raises(StoreValidationError):
            await store.update_one(Collection.AUTHORS, {"name": "Sandi Metz"}, {"name": "Robert Martin"})

        assert await store.find_one(Collection.AUTHORS, {"name": "Sandi Metz"}) is not None

    @pytest.mark.asyncio
    async def test_delete_many(self, store):
        deleted = await store.delete_many(Collection.BOOKS, {"genres": "classic"})

        assert deleted == 2
        assert await store.count_documents(Collection.BOOKS) == len(SAMPLE_BOOKS) - 2
        assert await store.find(Collection.BOOKS, {"genres": "classic"}) == []


class TestAggregates:

    @pytest.mark.asyncio
    async def test_count_documents(self, store):
        assert await store.count_documents(Collection.BOOKS) == 7
        assert await store.count_documents(Collection.BOOKS, {"genres": "refactoring"}) == 4

    @pytest.mark.asyncio
    async def test_count_by_key_keeps_input_order_and_zero_defaults(self, store):
        martin = await store.find_one(Collection.AUTHORS, {"name": "Robert Martin"})
        metz = await store.find_one(Collection.AUTHORS, {"name": "Sandi Metz"})

        counts = await store.aggregate_count_by_key(
            Collection.BOOKS, "author", [metz.id, "missing", martin.id]
        )

        assert list(counts.items()) == [(metz.id, 1), ("missing", 0), (martin.id, 2)]

    @pytest.mark.asyncio
    async def test_count_by_key_without_keys(self, store):
        assert await store.aggregate_count_by_key(Collection.BOOKS, "author", []) == {}


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_ping(self, store):
        assert await store.ping() is True

    @pytest.mark.asyncio
    async def test_populate_replaces_catalogue(self, store):
        result = await populate(store)

        assert result == {"authors": 5, "books": 7}
        assert await store.count_documents(Collection.AUTHORS) == 5
        assert await store.count_documents(Collection.BOOKS) == 7

    @pytest.mark.asyncio
    async def test_populate_skips_books_without_author(self, database_url, caplog):
        store = SqlAlchemyStore(database_url)
        await store.init_schema()
        try:
            result = await populate(
                store,
                authors=[{"name": "Sandi Metz"}],
                books=[
                    {"title": "99 Bottles of OOP", "author": "Sandi Metz", "genres": ["design"]},
                    {"title": "Orphan", "author": "Nobody", "genres": []},
                ],
            )
        finally:
            await store.close()

        assert result == {"authors": 1, "books": 1}
        assert "Author Nobody not found" in caplog.text
