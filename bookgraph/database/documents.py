"""
Collection documents and records

Documents are what gets validated and written; records are what the store
hands back. Records are frozen so a populated projection (the author embedded
in a book) can't be mutated behind the store's back.
"""
import uuid
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import StoreValidationError


class Collection(str, Enum):
    BOOKS = "books"
    AUTHORS = "authors"
    USERS = "users"


def new_id() -> str:
    return str(uuid.uuid4())


# Documents (write side)

class AuthorDocument(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    born: Optional[int] = None


class BookDocument(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1)
    published: Optional[int] = None
    author: str = Field(min_length=1, description="Id of the referenced author")
    genres: List[str] = Field(default_factory=list)


class UserDocument(BaseModel):
    model_config = ConfigDict(extra="forbid")

    username: str = Field(min_length=1)
    password_hash: str = Field(min_length=1)
    favorite_genre: Optional[str] = None


# Records (read side)

class AuthorRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    born: Optional[int] = None


class BookRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    published: Optional[int] = None
    author_id: str
    genres: Tuple[str, ...] = ()
    author: Optional[AuthorRecord] = None


class UserRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    username: str
    password_hash: str
    favorite_genre: Optional[str] = None


DOCUMENT_MODELS: Dict[Collection, Type[BaseModel]] = {
    Collection.AUTHORS: AuthorDocument,
    Collection.BOOKS: BookDocument,
    Collection.USERS: UserDocument,
}

UNIQUE_FIELDS: Dict[Collection, Tuple[str, ...]] = {
    Collection.AUTHORS: ("name",),
    Collection.BOOKS: (),
    Collection.USERS: ("username",),
}


def validate_document(collection: Collection, doc: Dict[str, Any]) -> BaseModel:
    """
    Validate a document against its collection model.

    All field failures are collected into a single StoreValidationError
    instead of stopping at the first one.
    """
    model = DOCUMENT_MODELS[collection]
    try:
        return model.model_validate(doc)
    except ValidationError as e:
        field_errors: Dict[str, str] = {}
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"]) or "__root__"
            field_errors.setdefault(field, error["msg"])
        raise StoreValidationError(collection.value, field_errors) from e
