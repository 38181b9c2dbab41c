from enum import StrEnum


class MismatchKind(StrEnum):
    """Kinds of located failures raised by the matcher."""

    TEXT_MISMATCH = "text-mismatch"
    TYPE_MISMATCH = "type-mismatch"
    MISSING_FIELD = "missing-field"
    ARRAY_LENGTH_MISMATCH = "array-length-mismatch"
    ARRAY_ELEMENT_MISMATCH = "array-element-mismatch"
    SCHEMA_MISMATCH = "schema-mismatch"
    VALUE_MISMATCH = "value-mismatch"


class AuthType(StrEnum):
    """Authentication schemes a recorded request can carry."""

    BASIC = "BasicAuth"
    BEARER = "BearerAuth"
    COOKIE = "CookieAuth"


class ConfigOptions(StrEnum):
    """Environment-backed settings names (without the env prefix)."""

    STRICT_MATCHING = "strict_matching"
    MATCH_SCHEMA_AND_OBJECT = "match_schema_and_object"
    IGNORE_PRIMITIVE_ARRAY_ORDER = "ignore_primitive_array_order"
    MATCHER_IGNORE_CASE = "matcher_ignore_case"
    OBFUSCATION_PATTERN = "obfuscation_pattern"
    PREPROCESSOR_IGNORE_CASE = "preprocessor_ignore_case"
    PREPROCESSOR_IGNORE = "preprocessor_ignore"
    PREPROCESSOR_OBFUSCATE = "preprocessor_obfuscate"
    REF_PARENT_TRAVERSAL_DEPTH = "ref_parent_traversal_depth"


ENV_PREFIX = "HTTPCHAIN_PACT_"

# envelope fields of a fixture document
PACT_OBJECT_KEYS = ("id", "info", "records")

# never redacted or deleted by the preprocessor
RESERVED_KEYS = frozenset({"id", "pact", "info", "records"})

KEY_PATH_SEPARATOR = " > "
SCHEMA_MARKER = "$"
REF_KEY = "$ref"

# $-prefixed keys that belong to JSON Schema itself, never schema markers
JSON_SCHEMA_KEYWORDS = frozenset(
    {
        "$schema",
        "$id",
        "$ref",
        "$comment",
        "$defs",
        "$vocabulary",
        "$anchor",
        "$dynamicRef",
        "$dynamicAnchor",
        "$recursiveRef",
        "$recursiveAnchor",
    }
)

DEFAULT_OBFUSCATION_PATTERN = "****"

DEFAULT_IGNORE = [
    "request.headers.accept-encoding",
    "response.headers.cache-control",
    "response.headers.content-length",
    "response.headers.content-encoding",
    "response.headers.transfer-encoding",
    "response.headers.keep-alive",
]

DEFAULT_OBFUSCATE = [
    "request.headers.cookie.authorization",
    "request.headers.cookie.XSRF-TOKEN",
    "request.headers.authorization",
    "request.headers.X-XSRF-TOKEN",
    "response.headers.set-cookie.authorization",
    "response.headers.set-cookie.XSRF-TOKEN",
    "response.body.password",
    "response.body.users.password",
]
