"""
Document store interface

The resolvers only ever talk to this interface. Filters are equality maps on
document field names; ``None`` matches a missing/null value, and a scalar
matched against the ``genres`` sequence means "contains".
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from .documents import AuthorRecord, BookRecord, Collection, UserRecord

Record = Union[AuthorRecord, BookRecord, UserRecord]
Filter = Mapping[str, Any]


class DocumentStore(ABC):
    """Typed access to the books, authors and users collections"""

    @abstractmethod
    async def init_schema(self) -> None:
        """Create the backing structures if they don't exist yet"""

    @abstractmethod
    async def close(self) -> None:
        """Release connections"""

    @abstractmethod
    async def find_one(self, collection: Collection, filter: Filter) -> Optional[Record]:
        ...

    @abstractmethod
    async def find(self, collection: Collection, filter: Optional[Filter] = None) -> List[Record]:
        """Books come back with their author populated"""

    @abstractmethod
    async def create(self, collection: Collection, doc: Dict[str, Any]) -> Record:
        """Validate and insert; raises StoreValidationError on bad fields"""

    @abstractmethod
    async def update_one(
        self,
        collection: Collection,
        filter: Filter,
        patch: Dict[str, Any],
    ) -> Optional[Record]:
        """
        Apply ``patch`` to the first matching document and revalidate it.

        Returns the updated record, or None when nothing matched.
        """

    @abstractmethod
    async def count_documents(self, collection: Collection, filter: Optional[Filter] = None) -> int:
        ...

    @abstractmethod
    async def aggregate_count_by_key(
        self,
        collection: Collection,
        group_field: str,
        keys: Sequence[Any],
    ) -> Dict[Any, int]:
        """
        Count documents grouped by ``group_field`` restricted to ``keys``.

        Every requested key is present in the result; keys without matching
        documents map to 0.
        """

    @abstractmethod
    async def delete_many(self, collection: Collection, filter: Optional[Filter] = None) -> int:
        ...

    @abstractmethod
    async def ping(self) -> bool:
        ...
