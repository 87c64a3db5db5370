"""
Tests for the domain error taxonomy and the GraphQL error boundary
"""
from graphql import GraphQLError

from bookgraph.api.graphql.errors import classify_error
from bookgraph.core.errors import BadCredentials, InvalidInput, NotFound, Unauthenticated
from bookgraph.database import StoreValidationError


class TestDomainErrors:

    def test_codes(self):
        assert Unauthenticated().extensions == {"code": "UNAUTHENTICATED"}
        assert BadCredentials().extensions == {"code": "BAD_CREDENTIALS"}
        assert NotFound("gone").extensions == {"code": "NOT_FOUND"}

    def test_invalid_args(self):
        error = InvalidInput("bad", invalid_args=["title", "genres"])

        assert error.message == "bad"
        assert error.extensions == {"code": "INVALID_INPUT", "invalidArgs": ["title", "genres"]}

    def test_bad_credentials_message_is_fixed(self):
        assert str(BadCredentials()) == "wrong credentials"

    def test_graphql_error_picks_up_extensions(self):
        error = GraphQLError("x", original_error=NotFound("Author X not found", invalid_args=["author"]))

        assert error.extensions == {"code": "NOT_FOUND", "invalidArgs": ["author"]}


class TestStoreValidationError:

    def test_fields_and_messages(self):
        error = StoreValidationError("users", {"username": "too short", "password_hash": "missing"})

        assert error.fields == ["username", "password_hash"]
        assert error.messages == ["username: too short", "password_hash: missing"]
        assert "users validation failed" in str(error)


class TestClassifyError:

    def test_domain_error_passes_through(self):
        error = GraphQLError("nope", original_error=Unauthenticated())

        assert classify_error(error) is error

    def test_document_error_is_invalid_input(self):
        error = GraphQLError("Cannot query field 'isbn' on type 'Book'.")

        classified = classify_error(error)

        assert classified is error
        assert classified.extensions["code"] == "INVALID_INPUT"

    def test_unexpected_error_is_masked(self):
        original = KeyError("secret internals")
        error = GraphQLError(str(original), original_error=original, path=["bookCount"])

        classified = classify_error(error)

        assert classified.message == "internal server error"
        assert classified.extensions["code"] == "INTERNAL_SERVER_ERROR"
        assert classified.path == ["bookCount"]
        assert classified.original_error is original
