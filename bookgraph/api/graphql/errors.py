"""
GraphQL error boundary

Every error leaving the schema carries one of the ErrorKind codes in
``extensions.code``. Domain errors already do; GraphQL document errors are
tagged INVALID_INPUT; anything else is masked as INTERNAL_SERVER_ERROR.
This holds for single results and for every result a subscription pushes.
"""
from typing import Any, AsyncIterator, List, Optional

import strawberry
from graphql import GraphQLError
from strawberry.extensions import SchemaExtension
from strawberry.types import ExecutionContext

from bookgraph.common_logging.setup import get_logger
from bookgraph.core.errors import BookgraphError, InternalError, InvalidInput

logger = get_logger(__name__)


def classify_error(error: GraphQLError) -> GraphQLError:
    """
    Tag ``error`` with its taxonomy code, in place.

    The same GraphQLError object may be referenced from more than one list
    (execution context, result) depending on where execution stopped, so it
    is updated rather than replaced.
    """
    original = error.original_error
    if isinstance(original, BookgraphError):
        return error

    extensions = dict(error.extensions or {})
    if original is None:
        extensions["code"] = InvalidInput.kind.value
    else:
        masked = InternalError()
        extensions.update(masked.extensions)
        error.message = masked.message
    error.extensions = extensions
    return error


def classify_result(result: Any) -> Any:
    for error in getattr(result, "errors", None) or ():
        classify_error(error)
    return result


async def classify_stream(results: AsyncIterator[Any]) -> AsyncIterator[Any]:
    """Subscription results, each one classified before it is sent"""
    try:
        async for result in results:
            yield classify_result(result)
    finally:
        aclose = getattr(results, "aclose", None)
        if aclose is not None:
            await aclose()


class ErrorClassifierExtension(SchemaExtension):
    """Rewrites operation errors into the closed error taxonomy"""

    def on_operation(self):
        yield
        context = self.execution_context
        classify_result(context.result)
        for errors in (
            getattr(context, "errors", None),
            getattr(context, "pre_execution_errors", None),
        ):
            for error in errors or ():
                classify_error(error)


class BookgraphSchema(strawberry.Schema):
    """Schema that logs expected domain errors quietly and classifies subscription results"""

    async def subscribe(self, *args, **kwargs):
        result = await super().subscribe(*args, **kwargs)
        if hasattr(result, "__aiter__"):
            return classify_stream(result)
        return classify_result(result)

    def process_errors(
        self,
        errors: List[GraphQLError],
        execution_context: Optional[ExecutionContext] = None,
    ) -> None:
        for error in errors:
            original = error.original_error
            if isinstance(original, BookgraphError):
                logger.info(f"{original.kind.value} at {error.path}: {original.message}")
            elif original is None:
                logger.info(f"Rejected GraphQL document: {error.message}")
            else:
                logger.error(
                    f"Unhandled error at {error.path}: {original}",
                    exc_info=(type(original), original, original.__traceback__),
                )
