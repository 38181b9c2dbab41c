from .base import IdentifierMatcher, IgnoreMatcher, ISODateStringMatcher, NumberMatcher, PactMatcher, SameTypeMatcher, StringMatcher
from .default import DefaultPactMatcher, body_property_matchers, default_property_matchers, is_schema_key
from .registry import PropertyMatcherRegistry
from .schema import JsonSchemaValidator, SchemaValidator

__all__ = [
    "DefaultPactMatcher",
    "IdentifierMatcher",
    "IgnoreMatcher",
    "ISODateStringMatcher",
    "JsonSchemaValidator",
    "NumberMatcher",
    "PactMatcher",
    "PropertyMatcherRegistry",
    "SameTypeMatcher",
    "SchemaValidator",
    "StringMatcher",
    "body_property_matchers",
    "default_property_matchers",
    "is_schema_key",
]
