"""Exception classes for pytest-httpchain-pact."""

from typing import Any

from pytest_httpchain_pact.constants import KEY_PATH_SEPARATOR, MismatchKind


class PactError(Exception):
    """Base exception for all pytest-httpchain-pact errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MatchError(PactError):
    """A located mismatch between an actual value and its recorded counterpart."""

    def __init__(
        self,
        message: str,
        kind: MismatchKind,
        *,
        actual: Any = None,
        expected: Any = None,
        key: str | None = None,
        parents: list[str] | None = None,
        schema: Any = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.actual = actual
        self.expected = expected
        self.key = key
        self.parents = list(parents or [])
        self.schema = schema

    @property
    def key_path(self) -> str:
        return KEY_PATH_SEPARATOR.join(self.parents)


class SchemaValidationError(PactError):
    """A value does not conform to the schema it was checked against."""


class RegexReplaceError(PactError):
    """A malformed /pattern/replacement/flags expression."""


class ReferenceResolverError(PactError):
    """An error resolving $ref statements."""
