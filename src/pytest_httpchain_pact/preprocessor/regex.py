"""``/pattern/replacement/flags`` rewrite expressions."""

import logging
import re
from collections.abc import Callable
from typing import Any, NamedTuple

from pytest_httpchain_pact.exceptions import RegexReplaceError

logger = logging.getLogger(__name__)

REGEX_REPLACE_PATTERN = re.compile(r"^/(.+?)(?<!\\)/(.*?)(?<!\\)/([gimsuy]*)$", re.DOTALL)

# $$, $&, $1..$99 and $<name> in the replacement
_REPLACEMENT_TOKEN = re.compile(r"\$(\$|&|\d{1,2}|<[^>]*>)")

# JS named groups (?<name>...) in Python syntax
_NAMED_GROUP = re.compile(r"\(\?<([A-Za-z_]\w*)>")

_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
}


class RegexReplace(NamedTuple):
    pattern: re.Pattern[str]
    replacement: str
    replace_all: bool

    def apply(self, value: str) -> str:
        return self.pattern.sub(lambda m: _expand(m, self.replacement), value, count=0 if self.replace_all else 1)


def parse_regex_replace(expression: str) -> RegexReplace:
    """Parse a ``/pattern/replacement/flags`` expression.

    Args:
        expression: Rewrite expression, flags out of ``gimsuy``

    Returns:
        The compiled rewrite

    Raises:
        RegexReplaceError: If the expression or its pattern is malformed
    """
    match = REGEX_REPLACE_PATTERN.match(expression)
    if not match:
        raise RegexReplaceError(f"Invalid regex replace expression: {expression}")

    pattern, replacement, flags = match.groups()
    compile_flags = 0
    for flag in flags:
        compile_flags |= _FLAGS.get(flag, 0)

    try:
        compiled = re.compile(_NAMED_GROUP.sub(r"(?P<\1>", pattern.replace("\\/", "/")), compile_flags)
    except re.error as e:
        raise RegexReplaceError(f"Invalid regular expression in {expression}: {e}") from e

    return RegexReplace(compiled, replacement.replace("\\/", "/"), "g" in flags)


def perform_regex_replace(value: Any, expressions: str | list[str]) -> Any:
    """Apply rewrite expressions in order to a string or to every string inside a dict or list.

    Malformed expressions are skipped.
    """
    if isinstance(expressions, str):
        expressions = [expressions]

    rewrites = []
    for expression in expressions:
        try:
            rewrites.append(parse_regex_replace(expression))
        except RegexReplaceError as e:
            logger.warning(f"Skipping regex replace: {e.message}")

    def _rewrite(text: str) -> str:
        for rewrite in rewrites:
            text = rewrite.apply(text)
        return text

    return _walk_strings(value, _rewrite)


def _walk_strings(value: Any, rewrite: Callable[[str], str]) -> Any:
    match value:
        case str():
            return rewrite(value)
        case dict():
            return {key: _walk_strings(item, rewrite) for key, item in value.items()}
        case list():
            return [_walk_strings(item, rewrite) for item in value]
        case _:
            return value


def _expand(match: re.Match[str], replacement: str) -> str:
    def _token(token: re.Match[str]) -> str:
        ref = token.group(1)
        if ref == "$":
            return "$"
        if ref == "&":
            return match.group(0)
        if ref.startswith("<"):
            name = ref[1:-1]
            return (match.groupdict().get(name) or "") if name in match.re.groupindex else token.group(0)
        index = int(ref)
        if 0 < index <= match.re.groups:
            return match.group(index) or ""
        return token.group(0)

    return _REPLACEMENT_TOKEN.sub(_token, replacement)
