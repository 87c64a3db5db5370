from .documents import AuthorRecord, BookRecord, Collection, UserRecord
from .errors import StoreError, StoreValidationError
from .sql_store import SqlAlchemyStore
from .store import DocumentStore

__all__ = [
    "AuthorRecord",
    "BookRecord",
    "Collection",
    "DocumentStore",
    "SqlAlchemyStore",
    "StoreError",
    "StoreValidationError",
    "UserRecord",
]
