"""Field matchers that replace equality for a single property."""

import re
from datetime import datetime
from typing import Any, Protocol

from pytest_httpchain_pact.models import MatchOptions
from pytest_httpchain_pact.utils import is_number

ISO_DATE_PATTERN = re.compile(
    r"^((\d\d[2468][048]|\d\d[13579][26]|\d\d0[48]|[02468][048]00|[13579][26]00)-02-29"
    r"|\d{4}-((0[13578]|1[02])-(0[1-9]|[12]\d|3[01])|(0[469]|11)-(0[1-9]|[12]\d|30)|(02)-(0[1-9]|1\d|2[0-8])))"
    r"T([01]\d|2[0-3]):[0-5]\d:[0-5]\d\.\d{3}([+-]([01]\d|2[0-3]):[0-5]\d|Z)$"
)
IDENTIFIER_PATTERN = re.compile(r"^\d+$")


class PactMatcher(Protocol):
    def match(self, actual: Any, expected: Any, options: MatchOptions | None = None) -> bool: ...


class IgnoreMatcher:
    """Accepts any pair of values."""

    def match(self, actual: Any, expected: Any, options: MatchOptions | None = None) -> bool:
        return True


class IdentifierMatcher:
    """Both values must be strings of digits."""

    def match(self, actual: Any, expected: Any, options: MatchOptions | None = None) -> bool:
        for value in (actual, expected):
            if not isinstance(value, str) or not IDENTIFIER_PATTERN.match(value):
                raise ValueError(f'Value "{value}" is not a valid identifier.')
        return True


class NumberMatcher:
    def match(self, actual: Any, expected: Any, options: MatchOptions | None = None) -> bool:
        for value in (actual, expected):
            if not is_number(value):
                raise ValueError(f'Value "{value}" is not a number.')
        return True


class StringMatcher:
    def match(self, actual: Any, expected: Any, options: MatchOptions | None = None) -> bool:
        for value in (actual, expected):
            if not isinstance(value, str):
                raise ValueError(f'Value "{value}" is not a string.')
        return True


class SameTypeMatcher:
    """Both values must have the same JSON type; ints and floats are both numbers."""

    def match(self, actual: Any, expected: Any, options: MatchOptions | None = None) -> bool:
        if _json_type(actual) != _json_type(expected):
            raise ValueError(f"Values are not of same type. Expected {_json_type(expected)} but got {_json_type(actual)}")
        return True


class ISODateStringMatcher:
    """Both values must be ISO 8601 timestamps with milliseconds and an explicit offset."""

    def match(self, actual: Any, expected: Any, options: MatchOptions | None = None) -> bool:
        for value in (actual, expected):
            if not isinstance(value, str):
                raise ValueError(f'Value "{value}" is not a string.')
            if not ISO_DATE_PATTERN.match(value):
                raise ValueError(f'Value "{value}" is not a valid ISO date string.')
            try:
                datetime.fromisoformat(value)
            except ValueError as e:
                raise ValueError(f'Value "{value}" is not a valid ISO date string.') from e
        return True


def _json_type(value: Any) -> str:
    match value:
        case None:
            return "null"
        case bool():
            return "boolean"
        case int() | float():
            return "number"
        case str():
            return "string"
        case list():
            return "array"
        case _:
            return "object"
