from .loader import load_pact, resolve_pact, resolve_refs
from .parameters import ParameterizedRef, parse_parameter, parse_ref_query, substitute_placeholders
from .reference import ReferenceResolver

__all__ = [
    "ParameterizedRef",
    "ReferenceResolver",
    "load_pact",
    "parse_parameter",
    "parse_ref_query",
    "resolve_pact",
    "resolve_refs",
    "substitute_placeholders",
]
