from collections.abc import Iterator, Mapping

from pytest_httpchain_pact.matcher.base import PactMatcher
from pytest_httpchain_pact.paths import find_key


class PropertyMatcherRegistry:
    """Maps property names to the matcher that replaces equality for them."""

    def __init__(self, matchers: Mapping[str, PactMatcher] | None = None):
        self._matchers: dict[str, PactMatcher] = dict(matchers or {})

    def get(self, name: str, ignore_case: bool = False) -> PactMatcher | None:
        key = find_key(self._matchers, name, ignore_case)
        return None if key is None else self._matchers[key]

    def add(self, name: str, matcher: PactMatcher) -> None:
        self._matchers[name] = matcher

    def remove(self, name: str) -> None:
        self._matchers.pop(name, None)

    def copy(self) -> "PropertyMatcherRegistry":
        return PropertyMatcherRegistry(self._matchers)

    def __contains__(self, name: object) -> bool:
        return name in self._matchers

    def __iter__(self) -> Iterator[str]:
        return iter(self._matchers)

    def __len__(self) -> int:
        return len(self._matchers)
