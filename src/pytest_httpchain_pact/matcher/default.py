"""Recursive structural matching of recorded against live values."""

import json
import logging
import re
from typing import Any, NoReturn

from pytest_httpchain_pact.constants import JSON_SCHEMA_KEYWORDS, KEY_PATH_SEPARATOR, SCHEMA_MARKER, MismatchKind
from pytest_httpchain_pact.exceptions import MatchError
from pytest_httpchain_pact.matcher.base import IgnoreMatcher, ISODateStringMatcher, NumberMatcher, PactMatcher, SameTypeMatcher
from pytest_httpchain_pact.matcher.registry import PropertyMatcherRegistry
from pytest_httpchain_pact.models import MatchOptions
from pytest_httpchain_pact.paths import find_key
from pytest_httpchain_pact.settings import PactSettings
from pytest_httpchain_pact.utils import is_primitive, literally_equal, merge_options

logger = logging.getLogger(__name__)

AUTH_SCHEME_PATTERN = re.compile(r"^(Bearer|Basic)\s+", re.IGNORECASE)


def is_schema_key(key: Any) -> bool:
    """Check if a key holds a schema for its sibling field rather than a value."""
    return isinstance(key, str) and key.startswith(SCHEMA_MARKER) and key not in JSON_SCHEMA_KEYWORDS


class DefaultPactMatcher:
    """Matches an actual value against an expected (recorded) one.

    Objects are compared property by property. A property with a registered
    property matcher is delegated to it, arrays are compared by length and
    item, and everything else by equality. Failures raise ``MatchError``.

    Without strict matching only the properties of the expected value are
    checked and the actual value may carry more. With strict matching every
    property of the actual value must also be recorded.
    """

    def __init__(
        self,
        property_matchers: PropertyMatcherRegistry | None = None,
        options: MatchOptions | dict[str, Any] | None = None,
        settings: PactSettings | None = None,
    ):
        self.property_matchers = property_matchers if property_matchers is not None else default_property_matchers()
        self.options = options
        self.settings = settings or PactSettings()

    def match(self, actual: Any, expected: Any, options: MatchOptions | dict[str, Any] | None = None) -> bool:
        """Match two values.

        Args:
            actual: Value observed now, e.g. a live response
            expected: Recorded value to match against
            options: Options overriding the matcher's own options and the settings

        Returns:
            True if the values match

        Raises:
            MatchError: If the values do not match
        """
        if actual is expected:
            return True

        resolved = merge_options(MatchOptions, self.settings.match_options(), self.options, options)
        return self._match(actual, expected, resolved)

    def _match(self, actual: Any, expected: Any, options: MatchOptions) -> bool:
        if literally_equal(actual, expected):
            return True

        location = _key_path(options.parents) or "root"

        if isinstance(actual, str) and isinstance(expected, str):
            self._fail(f'"{_key_path(options.parents)}" text did not match.', MismatchKind.TEXT_MISMATCH, actual, expected, options)

        if not isinstance(actual, dict | list) or not isinstance(expected, dict | list):
            self._fail(
                f'Expected 2 objects as input for matching, but got "{type(actual).__name__}" and "{type(expected).__name__}".',
                MismatchKind.TYPE_MISMATCH,
                actual,
                expected,
                options,
            )

        if isinstance(actual, list) != isinstance(expected, list):
            self._fail(
                f'Type mismatch at "{location}". Expected {_kind_name(expected)} but got {_kind_name(actual)}.',
                MismatchKind.TYPE_MISMATCH,
                actual,
                expected,
                options,
            )

        if isinstance(actual, list):
            if len(actual) != len(expected):
                self._fail(f'Arrays at "{location}" have different lengths.', MismatchKind.ARRAY_LENGTH_MISMATCH, actual, expected, options)
            self._match_arrays(actual, expected, options)
            return True

        self._match_objects(actual, expected, options)
        return True

    def _match_objects(self, actual: dict[str, Any], expected: dict[str, Any], options: MatchOptions) -> None:
        ignore_case = options.ignore_case
        actual_keys = [key for key in actual if not is_schema_key(key)]
        schema_keys = {key for key in expected if is_schema_key(key)}
        if options.match_schema_and_object:
            # the literal key drives both checks, its $key would validate twice
            expected_keys = [key for key in expected if not (is_schema_key(key) and key[1:] in expected)]
        else:
            expected_keys = [key for key in expected if f"{SCHEMA_MARKER}{key}" not in schema_keys]

        for key in actual_keys if options.strict_matching else expected_keys:
            field = key[1:] if is_schema_key(key) else key

            if is_schema_key(key) or f"{SCHEMA_MARKER}{key}" in schema_keys:
                actual_value = _lookup(actual, field, ignore_case)
                self._match_schema(actual_value, expected[f"{SCHEMA_MARKER}{field}"], field, options)
                if not options.match_schema_and_object or find_key(expected, field, ignore_case) is None:
                    continue
                expected_value = _lookup(expected, field, ignore_case)
            else:
                other, side = (expected, "pact") if options.strict_matching else (actual, "response")
                if find_key(other, key, ignore_case) is None:
                    self._fail(
                        f'"{_key_path([*options.parents, key])}" not found in {side} object.',
                        MismatchKind.MISSING_FIELD,
                        actual,
                        expected,
                        options,
                        key=key,
                    )
                actual_value = _lookup(actual, key, ignore_case)
                expected_value = _lookup(expected, key, ignore_case)

            self._match_property(field, actual_value, expected_value, options)

    def _match_property(self, key: str, actual: Any, expected: Any, options: MatchOptions) -> None:
        parents = [*options.parents, key]
        child_options = options.model_copy(update={"parents": parents})

        property_matcher = self.property_matchers.get(key, options.ignore_case)
        if property_matcher is not None:
            if not options.strict_matching and _is_empty(expected):
                return
            try:
                result = property_matcher.match(actual, expected, child_options)
            except MatchError:
                raise
            except Exception as e:
                self._fail(f'Values for "{_key_path(parents)}" do not match. {e}', MismatchKind.VALUE_MISMATCH, actual, expected, options, key=key, cause=e)
            if not result:
                self._fail(f'Values for "{_key_path(parents)}" do not match.', MismatchKind.VALUE_MISMATCH, actual, expected, options, key=key)
            return

        if _is_primitive_array(actual) and _is_primitive_array(expected):
            self._match_primitive_arrays(actual, expected, child_options)
        elif isinstance(actual, list) and isinstance(expected, list):
            if len(actual) != len(expected):
                self._fail(f'Arrays with key "{_key_path(parents)}" have different lengths.', MismatchKind.ARRAY_LENGTH_MISMATCH, actual, expected, options, key=key)
            self._match_arrays(actual, expected, child_options)
        elif isinstance(actual, dict | list) and isinstance(expected, dict | list):
            self._match(actual, expected, child_options)
        elif actual is not None and expected is not None and not _values_equal(key, actual, expected, options.ignore_case):
            self._fail(f'Values for "{_key_path(parents)}" do not match.', MismatchKind.VALUE_MISMATCH, actual, expected, options, key=key)

    def _match_arrays(self, actual: list[Any], expected: list[Any], options: MatchOptions) -> None:
        if _is_primitive_array(actual) and _is_primitive_array(expected):
            self._match_primitive_arrays(actual, expected, options)
            return

        for index, (actual_item, expected_item) in enumerate(zip(actual, expected, strict=True)):
            item_options = options.model_copy(update={"parents": [*options.parents, str(index)]})
            if _is_primitive_array(actual_item) and _is_primitive_array(expected_item):
                self._match_primitive_arrays(actual_item, expected_item, item_options)
            else:
                self._match(actual_item, expected_item, item_options)

    def _match_primitive_arrays(self, actual: list[Any], expected: list[Any], options: MatchOptions) -> None:
        location = _key_path(options.parents) or "root"
        if len(actual) != len(expected):
            self._fail(f'Arrays with key "{location}" have different lengths.', MismatchKind.ARRAY_LENGTH_MISMATCH, actual, expected, options)

        if options.ignore_primitive_array_order:
            actual = sorted(actual, key=_sort_key)
            expected = sorted(expected, key=_sort_key)

        mismatches = [str(index) for index, (a, b) in enumerate(zip(actual, expected, strict=True)) if not literally_equal(a, b)]
        if mismatches:
            self._fail(
                f'Arrays with key "{location}" have mismatches at indices "{",".join(mismatches)}".',
                MismatchKind.ARRAY_ELEMENT_MISMATCH,
                actual,
                expected,
                options,
            )

    def _match_schema(self, value: Any, schema: Any, field: str, options: MatchOptions) -> None:
        path = _key_path([*options.parents, field])
        validator = options.schema_validator
        if validator is None:
            self._fail(f'No schema matcher registered to validate "{path}".', MismatchKind.SCHEMA_MISMATCH, value, schema, options, key=field, schema=schema)

        try:
            valid = validator.match(value, schema, options.strict_matching)
        except Exception as e:
            self._fail(f'Schema for "{path}" does not match ({e}).', MismatchKind.SCHEMA_MISMATCH, value, schema, options, key=field, schema=schema, cause=e)
        if not valid:
            self._fail(f'Schema for "{path}" does not match.', MismatchKind.SCHEMA_MISMATCH, value, schema, options, key=field, schema=schema)

    def _fail(
        self,
        message: str,
        kind: MismatchKind,
        actual: Any,
        expected: Any,
        options: MatchOptions,
        *,
        key: str | None = None,
        schema: Any = None,
        cause: Exception | None = None,
    ) -> NoReturn:
        message = f"Pact validation failed! {message}"
        parents = [*options.parents, key] if key is not None else list(options.parents)
        if options.diagnostics is not None:
            options.diagnostics.record(message, key, parents, actual, expected)
        logger.debug(message)
        raise MatchError(message, kind, actual=actual, expected=expected, key=key, parents=parents, schema=schema) from cause


def default_property_matchers() -> PropertyMatcherRegistry:
    """Property matchers for recorded requests and responses."""
    ignore = IgnoreMatcher()
    return PropertyMatcherRegistry(
        {
            "body": DefaultPactMatcher(body_property_matchers()),
            "requestBody": DefaultPactMatcher(body_property_matchers()),
            "duration": NumberMatcher(),
            "date": ignore,
            "Authorization": ignore,
            "auth": ignore,
            "options": ignore,
            "createdObject": ignore,
            "location": ignore,
            "url": ignore,
            "X-XSRF-TOKEN": ignore,
            "lastMessage": ISODateStringMatcher(),
        }
    )


def body_property_matchers(base: PropertyMatcherRegistry | None = None) -> PropertyMatcherRegistry:
    """Property matchers for volatile fields of response bodies, added on top of ``base``."""
    registry = base.copy() if base is not None else PropertyMatcherRegistry()
    ignore = IgnoreMatcher()
    matchers: dict[str, PactMatcher] = {
        "id": SameTypeMatcher(),
        "statistics": ignore,
        "lastUpdated": ISODateStringMatcher(),
        "creationTime": ISODateStringMatcher(),
        "next": ignore,
        "self": ignore,
        "password": ignore,
        "owner": SameTypeMatcher(),
        "tenantId": ignore,
        "lastPasswordChange": ISODateStringMatcher(),
    }
    for name, matcher in matchers.items():
        registry.add(name, matcher)
    return registry


def _key_path(parents: list[str]) -> str:
    return KEY_PATH_SEPARATOR.join(parents)


def _kind_name(value: Any) -> str:
    return "array" if isinstance(value, list) else "object"


def _lookup(container: dict[str, Any], key: str, ignore_case: bool) -> Any:
    actual_key = find_key(container, key, ignore_case)
    return None if actual_key is None else container[actual_key]


def _is_empty(value: Any) -> bool:
    return value is None or (is_primitive(value) and not value)


def _is_primitive_array(value: Any) -> bool:
    return isinstance(value, list) and all(is_primitive(item) for item in value)


def _sort_key(value: Any) -> str:
    return json.dumps(value, sort_keys=True)


def _values_equal(key: str, actual: Any, expected: Any, ignore_case: bool = False) -> bool:
    if isinstance(actual, bool) or isinstance(expected, bool):
        return type(actual) is type(expected) and actual == expected
    if actual == expected:
        return True
    is_authorization = key.lower() == "authorization" if ignore_case else key == "Authorization"
    if is_authorization and isinstance(actual, str) and isinstance(expected, str):
        return AUTH_SCHEME_PATTERN.sub("", actual) == AUTH_SCHEME_PATTERN.sub("", expected)
    return False
