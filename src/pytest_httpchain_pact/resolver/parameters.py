"""Query parameters appended to ``$ref`` values and their ``{{name}}`` placeholders.

A reference such as ``#/definitions/greeting?name=World&count=Int(3)`` is
resolved like ``#/definitions/greeting``; afterwards every ``{{name}}`` and
``{{count}}`` inside the expanded value is replaced by the parameter.
"""

import logging
import re
from typing import Any, NamedTuple
from urllib.parse import parse_qsl

from pytest_httpchain_pact.constants import REF_KEY, SCHEMA_MARKER

logger = logging.getLogger(__name__)

INT_PARAMETER = re.compile(r"^Int\(([-+]?\d+)\)$")
FLOAT_PARAMETER = re.compile(r"^Float\(([-+]?\d*\.?\d+)\)$")
BOOL_PARAMETER = re.compile(r"^Bool\((true|false)\)$", re.IGNORECASE)

PLACEHOLDER_PATTERN = r"(?P<open>\{\{)(?P<name>[^{}]+?)(?P<close>\}\})"
PLACEHOLDER_REGEX = re.compile(PLACEHOLDER_PATTERN)

# keys holding JSON Schema, their $refs are left to the schema validator
SCHEMA_CONTAINER_KEYS = frozenset({"jsonSchema"})


def is_schema_container(key: Any) -> bool:
    return isinstance(key, str) and key != REF_KEY and (key.startswith(SCHEMA_MARKER) or key in SCHEMA_CONTAINER_KEYS)


class ParameterizedRef(NamedTuple):
    path: tuple[str | int, ...]
    params: dict[str, Any]
    original_ref: str


def parse_parameter(value: str) -> Any:
    """Decode ``Int(n)``, ``Float(n)`` and ``Bool(b)`` wrappers, anything else stays a string."""
    if match := INT_PARAMETER.match(value):
        return int(match.group(1))
    if match := FLOAT_PARAMETER.match(value):
        return float(match.group(1))
    if match := BOOL_PARAMETER.match(value):
        return match.group(1).lower() == "true"
    return value


def parse_ref_query(query: str) -> dict[str, Any]:
    """Parse a ``$ref`` query string; a repeated name keeps its last value."""
    return {name: parse_parameter(value) for name, value in parse_qsl(query, keep_blank_values=True)}


def split_parameterized_ref(ref: str) -> tuple[str, dict[str, Any]] | None:
    """Split ``base?query`` into the base reference and its parameters, None without a query."""
    if "?" not in ref:
        return None
    base, _, query = ref.partition("?")
    return base or "#", parse_ref_query(query)


def extract_parameterized_refs(data: Any) -> list[ParameterizedRef]:
    """Strip the query from every parameterized ``$ref`` in place.

    Returns:
        Location and parameters of each rewritten reference, outermost first
    """
    found: list[ParameterizedRef] = []

    def _walk(value: Any, path: tuple[str | int, ...]) -> None:
        match value:
            case dict():
                ref = value.get(REF_KEY)
                if isinstance(ref, str) and (split := split_parameterized_ref(ref)) is not None:
                    base, params = split
                    value[REF_KEY] = base
                    found.append(ParameterizedRef(path, params, ref))
                    logger.debug(f"Parameterized reference {ref} rewritten to {base}")
                for key, item in value.items():
                    if not is_schema_container(key):
                        _walk(item, (*path, key))
            case list():
                for index, item in enumerate(value):
                    _walk(item, (*path, index))

    _walk(data, ())
    return found


def parameter_text(value: Any) -> str:
    """Text of a parameter inside a longer string, booleans as in JSON."""
    match value:
        case bool():
            return "true" if value else "false"
        case float() if value.is_integer():
            return str(int(value))
        case _:
            return str(value)


def substitute_placeholders(value: Any, params: dict[str, Any]) -> Any:
    """Copy ``value`` replacing ``{{name}}`` placeholders by parameters.

    A string that is exactly one placeholder becomes the parameter itself,
    keeping numbers and booleans typed. Placeholders without a parameter are
    kept as they are.
    """
    match value:
        case str():
            return _substitute_string(value, params)
        case dict():
            return {key: substitute_placeholders(item, params) for key, item in value.items()}
        case list():
            return [substitute_placeholders(item, params) for item in value]
        case _:
            return value


def _substitute_string(value: str, params: dict[str, Any]) -> Any:
    single = PLACEHOLDER_REGEX.fullmatch(value)
    if single and single.group("name") in params:
        return params[single.group("name")]

    def _repl(match: re.Match[str]) -> str:
        name = match.group("name")
        return parameter_text(params[name]) if name in params else match.group(0)

    return PLACEHOLDER_REGEX.sub(_repl, value)
