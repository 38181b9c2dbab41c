"""Key-path resolution over trees of dicts and lists.

Key paths are dot separated, e.g. ``response.body.items.0.name``. A list index
may also be bracketed (``items[0].name``). When a segment lands on a list and
the next segment is not an index, the remaining path is applied to every item
of the list. ``prefix..leaf`` (or ``..leaf``) matches ``leaf`` at any depth
below ``prefix`` (or below the root).
"""

import re
from collections.abc import Callable, Iterator, Sequence
from typing import Any

RECURSIVE_DESCENT = ".."

_SEGMENT_SEPARATORS = re.compile(r"[.\[\]]")

KeyPath = str | Sequence[str | int]
Container = dict[str, Any] | list[Any]


def split_key_path(path: KeyPath) -> list[str]:
    """Split a key path into its segments.

    Args:
        path: Dotted/bracketed key path or an already split sequence of segments

    Returns:
        List of segments, list indices as strings
    """
    if not isinstance(path, str):
        return [str(segment) for segment in path]
    return [segment for segment in _SEGMENT_SEPARATORS.split(path) if segment]


def find_key(container: Any, segment: str | int, ignore_case: bool = False) -> str | int | None:
    """Find the actual key or index a segment addresses in a container.

    Args:
        container: Dict or list to look into
        segment: Key name or list index
        ignore_case: Match dict keys regardless of letter case

    Returns:
        The key as found in the container, or None when there is no match
    """
    match container:
        case dict():
            if segment in container:
                return segment
            if ignore_case and isinstance(segment, str):
                lowered = segment.lower()
                return next((key for key in container if isinstance(key, str) and key.lower() == lowered), None)
            return None
        case list():
            index = str(segment)
            if index.isdigit() and int(index) < len(container):
                return int(index)
            return None
        case _:
            return None


def resolve_key_path(data: Any, path: KeyPath, ignore_case: bool = False) -> list[str | int] | None:
    """Translate a key path into the keys actually present in the data.

    Returns:
        Segments using the casing found in the data, or None when the path does not resolve
    """
    resolved: list[str | int] = []
    current = data
    for segment in split_key_path(path):
        key = find_key(current, segment, ignore_case)
        if key is None:
            return None
        resolved.append(key)
        current = current[key]
    return resolved


def get_value(data: Any, path: KeyPath, ignore_case: bool = False, default: Any = None) -> Any:
    resolved = resolve_key_path(data, path, ignore_case)
    if resolved is None:
        return default
    current = data
    for key in resolved:
        current = current[key]
    return current


def set_value(data: Container, path: Sequence[str | int], value: Any) -> None:
    """Replace the value at an exact, already resolved path."""
    *parents, last = path
    current = data
    for key in parents:
        current = current[key]
    current[last] = value


def iter_key_path(data: Any, path: KeyPath, ignore_case: bool = False) -> Iterator[tuple[Container, str | int]]:
    """Yield ``(container, key)`` for every location a key path addresses.

    Locations that do not exist are never yielded, so callers can read, replace
    or delete ``container[key]`` without further checks.
    """
    if isinstance(path, str) and RECURSIVE_DESCENT in path:
        prefix, _, leaf = path.partition(RECURSIVE_DESCENT)
        if not leaf:
            return
        root = get_value(data, prefix, ignore_case) if prefix else data
        yield from _descend(root, leaf, ignore_case)
        return

    segments = split_key_path(path)
    if segments:
        yield from _walk(data, segments, ignore_case)


def traverse_key_path(data: Any, path: KeyPath, callback: Callable[[Container, str | int], None], ignore_case: bool = False) -> None:
    """Call ``callback(container, key)`` for every location a key path addresses.

    Locations are collected before the first callback runs, so the callback may
    mutate the data.
    """
    for container, key in list(iter_key_path(data, path, ignore_case)):
        callback(container, key)


def _walk(current: Any, segments: list[str], ignore_case: bool) -> Iterator[tuple[Container, str | int]]:
    head, *rest = segments
    key = find_key(current, head, ignore_case)
    if key is None:
        return
    if not rest:
        yield current, key
        return

    target = current[key]
    if isinstance(target, list) and not rest[0].isdigit():
        for item in target:
            yield from _walk(item, rest, ignore_case)
    else:
        yield from _walk(target, rest, ignore_case)


def _descend(current: Any, leaf: str, ignore_case: bool) -> Iterator[tuple[Container, str | int]]:
    match current:
        case list():
            for item in current:
                yield from _descend(item, leaf, ignore_case)
        case dict():
            key = find_key(current, leaf, ignore_case)
            if key is not None:
                yield current, key
            for value in current.values():
                yield from _descend(value, leaf, ignore_case)
