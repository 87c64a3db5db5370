"""
Domain error taxonomy

Every error a resolver raises on purpose is one of the classes below. Each
instance carries an ``extensions`` dict which graphql-core copies onto the
GraphQLError it wraps the exception in, so the kind reaches the client as
``extensions.code``.
"""
from enum import Enum
from typing import Iterable, Optional


class ErrorKind(str, Enum):
    UNAUTHENTICATED = "UNAUTHENTICATED"
    NOT_FOUND = "NOT_FOUND"
    INVALID_INPUT = "INVALID_INPUT"
    BAD_CREDENTIALS = "BAD_CREDENTIALS"
    INTERNAL = "INTERNAL_SERVER_ERROR"


class BookgraphError(Exception):
    """Base class for errors surfaced to API clients"""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, invalid_args: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.message = message
        self.invalid_args = list(invalid_args or [])
        self.extensions = {"code": self.kind.value}
        if self.invalid_args:
            self.extensions["invalidArgs"] = self.invalid_args


class Unauthenticated(BookgraphError):
    kind = ErrorKind.UNAUTHENTICATED

    def __init__(self, message: str = "not authenticated"):
        super().__init__(message)


class NotFound(BookgraphError):
    kind = ErrorKind.NOT_FOUND


class InvalidInput(BookgraphError):
    kind = ErrorKind.INVALID_INPUT


class BadCredentials(BookgraphError):
    """Login failure; the message never tells which credential was wrong"""

    kind = ErrorKind.BAD_CREDENTIALS

    def __init__(self):
        super().__init__("wrong credentials")


class InternalError(BookgraphError):
    kind = ErrorKind.INTERNAL

    def __init__(self, message: str = "internal server error"):
        super().__init__(message)
