"""
Request-scoped DataLoaders for GraphQL
Prevents N+1 queries by batching loads issued in the same event-loop tick
"""
import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from aiodataloader import DataLoader

from bookgraph.common_logging.setup import get_logger
from bookgraph.database import Collection, DocumentStore

logger = get_logger(__name__)


@dataclass
class LoaderConfig:
    """Configuration for DataLoader behavior"""
    batch_size: Optional[int] = None  # unbounded: one aggregate call per tick
    slow_batch_seconds: float = 0.1
    name: str = ""


class MetricsCollector:
    """Collects performance metrics for DataLoader operations"""

    def __init__(self):
        self.batch_counts: List[int] = []
        self.load_times: List[float] = []
        self.total_loads: int = 0

    def record_batch(self, size: int, duration: float):
        """Record a batch operation"""
        self.batch_counts.append(size)
        self.load_times.append(duration)
        self.total_loads += size

    @property
    def batches(self) -> int:
        return len(self.batch_counts)

    @property
    def avg_batch_size(self) -> float:
        return sum(self.batch_counts) / len(self.batch_counts) if self.batch_counts else 0.0

    @property
    def avg_load_time(self) -> float:
        return sum(self.load_times) / len(self.load_times) if self.load_times else 0.0


class BookCountLoader(DataLoader):
    """
    Number of books per author id.

    All ``load`` calls made before the loop yields are flushed as a single
    ``aggregate_count_by_key`` call over the distinct ids, in first-seen
    order. Resolved counts stay cached for the loader's lifetime, which is
    one ExecutionContext. If the aggregate call raises, every load waiting on
    that batch fails with the same exception and nothing is retried.
    """

    def __init__(self, store: DocumentStore, config: Optional[LoaderConfig] = None):
        self.config = config or LoaderConfig(name="book_count")
        super().__init__(max_batch_size=self.config.batch_size)
        self.store = store
        self.metrics = MetricsCollector()

    async def batch_load_fn(self, author_ids: List[str]) -> List[int]:
        start_time = asyncio.get_running_loop().time()

        counts = await self.store.aggregate_count_by_key(Collection.BOOKS, "author", author_ids)

        duration = asyncio.get_running_loop().time() - start_time
        self.metrics.record_batch(len(author_ids), duration)

        if duration > self.config.slow_batch_seconds:
            logger.warning(
                f"Slow batch load in {self.config.name}: "
                f"{len(author_ids)} keys in {duration:.3f}s"
            )

        return [counts.get(author_id, 0) for author_id in author_ids]


class DataLoaderRegistry:
    """
    Holds the DataLoaders of one ExecutionContext.

    A registry is created per request (or per subscription connection) and
    dropped with it, so cached values never outlive the operation.
    """

    def __init__(self, store: DocumentStore, batch_size: Optional[int] = None, slow_batch_seconds: float = 0.1):
        self.store = store
        self._loaders: Dict[str, DataLoader] = {}
        self._configs: Dict[str, LoaderConfig] = {
            "book_count": LoaderConfig(
                name="book_count",
                batch_size=batch_size,
                slow_batch_seconds=slow_batch_seconds,
            ),
        }
        self._factories: Dict[str, Callable[[DocumentStore, LoaderConfig], DataLoader]] = {
            "book_count": BookCountLoader,
        }

    def get_loader(self, name: str) -> DataLoader:
        """Get or create a DataLoader"""
        if name not in self._loaders:
            try:
                factory = self._factories[name]
            except KeyError:
                raise KeyError(f"Unknown DataLoader '{name}'") from None
            self._loaders[name] = factory(self.store, self._configs[name])
        return self._loaders[name]

    @property
    def book_count(self) -> BookCountLoader:
        return self.get_loader("book_count")

    def get_metrics(self) -> Dict[str, Dict[str, Any]]:
        """Get metrics for all loaders"""
        metrics = {}
        for name, loader in self._loaders.items():
            m = loader.metrics
            metrics[name] = {
                "batches": m.batches,
                "total_loads": m.total_loads,
                "avg_batch_size": m.avg_batch_size,
                "avg_load_time": m.avg_load_time,
            }
        return metrics
