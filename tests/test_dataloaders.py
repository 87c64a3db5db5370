"""
Tests for the book count DataLoader
Verifies batching, caching, and failure propagation
"""
import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from bookgraph.api.graphql.dataloaders import (
    BookCountLoader,
    DataLoaderRegistry,
    LoaderConfig,
    MetricsCollector,
)
from bookgraph.database import Collection, StoreError


class TestMetricsCollector:
    """Test the metrics collection functionality"""

    def test_record_batch(self):
        """Test recording batch operations"""
        collector = MetricsCollector()

        collector.record_batch(10, 0.05)
        collector.record_batch(20, 0.10)
        collector.record_batch(15, 0.07)

        assert collector.batches == 3
        assert collector.total_loads == 45
        assert collector.avg_batch_size == 15.0
        assert collector.avg_load_time == pytest.approx(0.073, rel=0.01)

    def test_empty_metrics(self):
        collector = MetricsCollector()

        assert collector.avg_batch_size == 0.0
        assert collector.avg_load_time == 0.0


class TestBookCountLoader:

    @pytest.mark.asyncio
    async def test_loads_in_one_tick_are_one_aggregate_call(self, store):
        """N authors resolved together cost exactly one aggregate query"""
        authors = await store.find(Collection.AUTHORS)
        ids = [author.id for author in authors]
        loader = BookCountLoader(store)

        with patch.object(store, "aggregate_count_by_key", wraps=store.aggregate_count_by_key) as spy:
            counts = await asyncio.gather(*(loader.load(author_id) for author_id in ids))

        spy.assert_awaited_once()
        collection, field, keys = spy.await_args.args
        assert collection is Collection.BOOKS
        assert field == "author"
        assert list(keys) == ids

        by_name = {author.name: count for author, count in zip(authors, counts)}
        assert by_name["Robert Martin"] == 2
        assert by_name["Fyodor Dostoevsky"] == 2
        assert by_name["Sandi Metz"] == 1

    @pytest.mark.asyncio
    async def test_duplicate_keys_are_deduplicated(self):
        store = AsyncMock()
        store.aggregate_count_by_key.return_value = {"a1": 3, "a2": 0}
        loader = BookCountLoader(store)

        results = await asyncio.gather(loader.load("a1"), loader.load("a2"), loader.load("a1"))

        assert results == [3, 0, 3]
        store.aggregate_count_by_key.assert_awaited_once()
        assert list(store.aggregate_count_by_key.await_args.args[2]) == ["a1", "a2"]

    @pytest.mark.asyncio
    async def test_unknown_key_counts_zero(self):
        store = AsyncMock()
        store.aggregate_count_by_key.return_value = {}
        loader = BookCountLoader(store)

        assert await loader.load("nobody") == 0

    @pytest.mark.asyncio
    async def test_cached_for_loader_lifetime(self):
        """A second load of the same key never reaches the store"""
        store = AsyncMock()
        store.aggregate_count_by_key.return_value = {"a1": 2}
        loader = BookCountLoader(store)

        assert await loader.load("a1") == 2
        store.aggregate_count_by_key.return_value = {"a1": 5}
        assert await loader.load("a1") == 2

        assert store.aggregate_count_by_key.await_count == 1

    @pytest.mark.asyncio
    async def test_clear_forces_reload(self):
        store = AsyncMock()
        store.aggregate_count_by_key.side_effect = [{"a1": 2}, {"a1": 3}]
        loader = BookCountLoader(store)

        assert await loader.load("a1") == 2
        loader.clear("a1")
        assert await loader.load("a1") == 3

    @pytest.mark.asyncio
    async def test_batch_failure_rejects_every_load_with_same_error(self):
        store = AsyncMock()
        failure = StoreError("connection lost")
        store.aggregate_count_by_key.side_effect = failure
        loader = BookCountLoader(store)

        results = await asyncio.gather(
            loader.load("a1"), loader.load("a2"), return_exceptions=True
        )

        assert results[0] is failure
        assert results[1] is failure
        store.aggregate_count_by_key.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_max_batch_size_splits_batches(self):
        store = AsyncMock()
        store.aggregate_count_by_key.side_effect = lambda c, f, keys: {k: 1 for k in keys}
        loader = BookCountLoader(store, LoaderConfig(name="book_count", batch_size=2))

        results = await asyncio.gather(*(loader.load(f"a{i}") for i in range(5)))

        assert results == [1] * 5
        assert store.aggregate_count_by_key.await_count == 3
        assert loader.metrics.batch_counts == [2, 2, 1]

    @pytest.mark.asyncio
    async def test_slow_batch_is_logged(self, caplog):
        async def slow(collection, field, keys):
            await asyncio.sleep(0.02)
            return {}

        store = AsyncMock()
        store.aggregate_count_by_key.side_effect = slow
        loader = BookCountLoader(store, LoaderConfig(name="book_count", slow_batch_seconds=0.0))

        with caplog.at_level("WARNING", logger="bookgraph.api.graphql.dataloaders"):
            await loader.load("a1")

        assert "Slow batch load in book_count" in caplog.text


class TestDataLoaderRegistry:

    def test_unknown_loader(self):
        registry = DataLoaderRegistry(AsyncMock())

        with pytest.raises(KeyError):
            registry.get_loader("nope")

    @pytest.mark.asyncio
    async def test_loader_reused_within_registry(self):
        registry = DataLoaderRegistry(AsyncMock(), batch_size=10)

        assert registry.book_count is registry.get_loader("book_count")
        assert registry.book_count.config.batch_size == 10

    @pytest.mark.asyncio
    async def test_registries_do_not_share_cache(self):
        store = AsyncMock()
        store.aggregate_count_by_key.side_effect = [{"a1": 1}, {"a1": 4}]

        first = DataLoaderRegistry(store)
        second = DataLoaderRegistry(store)

        assert await first.book_count.load("a1") == 1
        assert await second.book_count.load("a1") == 4

    @pytest.mark.asyncio
    async def test_metrics(self):
        store = AsyncMock()
        store.aggregate_count_by_key.return_value = {"a1": 1, "a2": 2}
        registry = DataLoaderRegistry(store)

        await asyncio.gather(registry.book_count.load("a1"), registry.book_count.load("a2"))

        metrics = registry.get_metrics()
        assert metrics["book_count"]["batches"] == 1
        assert metrics["book_count"]["total_loads"] == 2
        assert metrics["book_count"]["avg_batch_size"] == 2.0
