"""JSON Schema validation of schema-marker fields."""

import copy
import logging
import re
from typing import Any, Protocol

import jsonschema
import semver
from jsonschema.protocols import Validator

from pytest_httpchain_pact.exceptions import SchemaValidationError

logger = logging.getLogger(__name__)

# Default to Draft 7 for unknown versions
_DRAFT_MARKERS: list[tuple[tuple[str, ...], type[Validator]]] = [
    (("draft-03", "draft-3"), jsonschema.Draft3Validator),
    (("draft-04", "draft-4"), jsonschema.Draft4Validator),
    (("draft-06", "draft-6"), jsonschema.Draft6Validator),
    (("draft-07", "draft-7"), jsonschema.Draft7Validator),
    (("2019-09",), jsonschema.Draft201909Validator),
    (("2020-12",), jsonschema.Draft202012Validator),
]

# one comparator of an npm style range, e.g. ">=1.2.0", "^1.x", "~2"
SEMVER_COMPARATOR = re.compile(r"^(?:\^|~>?|[<>]=?|=)?v?(?P<version>.+)$")
PARTIAL_VERSION = re.compile(r"^(?:[xX*]|\d+)(?:\.(?:[xX*]|\d+)){0,2}$")


class SchemaValidator(Protocol):
    def match(self, value: Any, schema: Any, strict_matching: bool | None = None) -> bool: ...


def validator_class_for(schema: dict[str, Any]) -> type[Validator]:
    schema_uri = schema.get("$schema", "http://json-schema.org/draft-07/schema#")
    for markers, validator_class in _DRAFT_MARKERS:
        if any(marker in schema_uri for marker in markers):
            return validator_class
    return jsonschema.Draft7Validator


def set_additional_properties(schema: Any, allowed: bool) -> None:
    """Force ``additionalProperties`` on every object schema, recursively."""
    match schema:
        case dict():
            if "additionalProperties" in schema or schema.get("type") == "object":
                schema["additionalProperties"] = allowed
            for key, value in schema.items():
                if key != "additionalProperties":
                    set_additional_properties(value, allowed)
        case list():
            for item in schema:
                set_additional_properties(item, allowed)


def is_semver_version(value: str) -> bool:
    return semver.Version.is_valid(value.removeprefix("v"))


def is_semver_range(value: str) -> bool:
    """Check an npm style version range: ``||`` alternatives of comparators or hyphen ranges."""
    for alternative in value.split("||"):
        alternative = re.sub(r"([<>=~^])\s+", r"\1", alternative.strip())
        bounds = alternative.split(" - ")
        comparators = bounds if len(bounds) == 2 else alternative.split()
        for comparator in comparators:
            match = SEMVER_COMPARATOR.match(comparator.strip())
            if not match:
                return False
            version = match.group("version")
            if not (semver.Version.is_valid(version) or PARTIAL_VERSION.match(version)):
                return False
    return True


def pact_format_checker() -> jsonschema.FormatChecker:
    """Format checker with the formats recorded fixtures use on top of the jsonschema ones.

    Each format only constrains values of its own type, anything else passes.
    """
    checker = jsonschema.FormatChecker()

    @checker.checks("integer")
    def _integer(instance: Any) -> bool:
        if isinstance(instance, float):
            return instance.is_integer()
        return True

    @checker.checks("boolean")
    def _boolean(instance: Any) -> bool:
        if not isinstance(instance, str):
            return True
        return instance.lower() in ("true", "false")

    @checker.checks("semver-version")
    def _semver_version(instance: Any) -> bool:
        return not isinstance(instance, str) or is_semver_version(instance)

    @checker.checks("semver-range")
    def _semver_range(instance: Any) -> bool:
        return not isinstance(instance, str) or is_semver_range(instance)

    return checker


class JsonSchemaValidator:
    """Validates values against JSON Schema using the draft named by ``$schema``.

    With ``strict_matching`` set, object schemas are rewritten to forbid
    (strict) or allow (non-strict) properties they do not declare.
    """

    def __init__(self, format_checker: jsonschema.FormatChecker | None = None):
        self.format_checker = format_checker or pact_format_checker()

    def match(self, value: Any, schema: Any, strict_matching: bool | None = None) -> bool:
        if not isinstance(schema, dict):
            raise SchemaValidationError(f"Invalid JSON Schema: expected an object, got {type(schema).__name__}")

        schema = copy.deepcopy(schema)
        if strict_matching is not None:
            set_additional_properties(schema, not strict_matching)

        validator_class = validator_class_for(schema)
        try:
            validator_class.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise SchemaValidationError(f"Invalid JSON Schema: {e.message}") from e

        validator = validator_class(schema, format_checker=self.format_checker)
        errors = sorted(validator.iter_errors(value), key=lambda error: error.json_path)
        if errors:
            message = ", ".join(f"{error.json_path} {error.message}" for error in errors)
            logger.debug(f"Schema validation failed: {message}")
            raise SchemaValidationError(message)
        return True
