from .cookies import SetCookie, parse_cookie_header, serialize_cookie_header
from .default import DefaultPactPreprocessor
from .regex import RegexReplace, parse_regex_replace, perform_regex_replace

__all__ = [
    "DefaultPactPreprocessor",
    "RegexReplace",
    "SetCookie",
    "parse_cookie_header",
    "parse_regex_replace",
    "perform_regex_replace",
    "serialize_cookie_header",
]
