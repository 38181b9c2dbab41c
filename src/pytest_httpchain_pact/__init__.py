from .constants import AuthType, MismatchKind
from .exceptions import MatchError, PactError, ReferenceResolverError, RegexReplaceError, SchemaValidationError
from .matcher import DefaultPactMatcher, JsonSchemaValidator, PropertyMatcherRegistry, body_property_matchers, default_property_matchers
from .models import MatchDiagnostics, MatchOptions, PactDocument, PactInfo, PactRecord, PactRequest, PactResponse, PreprocessOptions
from .preprocessor import DefaultPactPreprocessor
from .resolver import load_pact, resolve_pact, resolve_refs
from .settings import PactSettings

__all__ = [
    "AuthType",
    "DefaultPactMatcher",
    "DefaultPactPreprocessor",
    "JsonSchemaValidator",
    "MatchDiagnostics",
    "MatchError",
    "MatchOptions",
    "MismatchKind",
    "PactDocument",
    "PactError",
    "PactInfo",
    "PactRecord",
    "PactRequest",
    "PactResponse",
    "PactSettings",
    "PreprocessOptions",
    "PropertyMatcherRegistry",
    "ReferenceResolverError",
    "RegexReplaceError",
    "SchemaValidationError",
    "body_property_matchers",
    "default_property_matchers",
    "load_pact",
    "resolve_pact",
    "resolve_refs",
]
