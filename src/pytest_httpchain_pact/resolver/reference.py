"""Reference resolution for fixture documents."""

import json
import logging
import re
from functools import reduce
from pathlib import Path
from typing import Any

from deepmerge import always_merger

from pytest_httpchain_pact.constants import REF_KEY
from pytest_httpchain_pact.exceptions import ReferenceResolverError
from pytest_httpchain_pact.resolver.circular import CircularDependencyTracker
from pytest_httpchain_pact.resolver.parameters import is_schema_container, substitute_placeholders
from pytest_httpchain_pact.resolver.path import FILE_SCHEME, PathValidator

logger = logging.getLogger(__name__)

# Regex pattern for parsing $ref values
REF_PATTERN = re.compile(r"^(?P<file>[^#]+)?(?:#(?P<pointer>/.*)?)?$")
URI_SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]+://")

# location of a value inside the document being resolved, None once resolution left it
SourcePath = tuple[str | int, ...] | None


class ReferenceResolver:
    """Resolves JSON references ($ref) in documents.

    Internal references (``#/definitions/x``), relative or absolute file
    references (``other.json#/x``) and ``file://`` URIs are expanded.
    A reference that would re-enter itself is left in place as ``{"$ref": ...}``.

    ``parameters`` maps the location of a ``$ref`` in the document to the
    placeholder values of that reference. They are substituted into every
    expansion of that location, including copies pulled in through other
    internal references.
    """

    def __init__(self, max_parent_traversal_depth: int = 3, root_path: Path | None = None, parameters: dict[tuple[str | int, ...], dict[str, Any]] | None = None):
        self.max_parent_traversal_depth = max_parent_traversal_depth
        self.path_validator = PathValidator()
        self.tracker = CircularDependencyTracker()
        self.base_path: Path | None = None
        self.root_path = root_path
        self.parameters = parameters or {}

    def resolve_document(self, data: Any, base_path: Path) -> Any:
        """Resolve all references in a document.

        Args:
            data: The document data to resolve references in
            base_path: The base path for resolving relative references

        Returns:
            The document with all references resolved

        Raises:
            ReferenceResolverError: If resolution fails
        """
        self.base_path = base_path
        return self._resolve_refs(data, base_path, root_data=data, source_path=())

    def _resolve_refs(self, data: Any, current_path: Path, root_data: Any, source_path: SourcePath = None) -> Any:
        match data:
            case dict() if isinstance(data.get(REF_KEY), str):
                resolved = self._resolve_single_ref(data, current_path, root_data, source_path)
                params = self.parameters.get(source_path) if source_path is not None else None
                return substitute_placeholders(resolved, params) if params else resolved
            case dict():
                return {
                    key: value if is_schema_container(key) else self._resolve_refs(value, current_path, root_data, _child_path(source_path, key))
                    for key, value in data.items()
                }
            case list():
                return [self._resolve_refs(item, current_path, root_data, _child_path(source_path, index)) for index, item in enumerate(data)]
            case _:
                return data

    def _resolve_single_ref(self, data: dict[str, Any], current_path: Path, root_data: Any, source_path: SourcePath = None) -> Any:
        ref_value = data[REF_KEY]

        if ref_value.startswith(FILE_SCHEME):
            file_path, pointer = self.path_validator.parse_file_uri(ref_value)
            referenced_data = self._resolve_external_ref(str(file_path), pointer, ref_value, current_path)
            return self._merge_with_siblings(data, referenced_data, current_path, root_data, source_path)

        if URI_SCHEME_PATTERN.match(ref_value):
            raise ReferenceResolverError(f"Unsupported $ref scheme: {ref_value}")

        match = REF_PATTERN.match(ref_value)
        if not match:
            raise ReferenceResolverError(f"Invalid $ref format: {ref_value}")

        file_path = match.group("file")
        pointer = match.group("pointer") or ""

        if file_path:
            referenced_data = self._resolve_external_ref(file_path, pointer, ref_value, current_path)
        else:
            referenced_data = self._resolve_internal_ref(pointer, ref_value, root_data, tracked=source_path is not None)

        return self._merge_with_siblings(data, referenced_data, current_path, root_data, source_path)

    def _resolve_external_ref(self, file_path: str, pointer: str, ref_value: str, current_path: Path) -> Any:
        resolved_path = self.path_validator.validate_ref_path(file_path, current_path, self.root_path, self.max_parent_traversal_depth)

        if not self.tracker.enter_external_ref(resolved_path, pointer):
            logger.debug(f"Circular reference {ref_value} left unresolved")
            return {REF_KEY: ref_value}

        try:
            with open(resolved_path, encoding="utf-8") as f:
                full_external_data = json.load(f)

            external_data = self._navigate_pointer(full_external_data, pointer)

            child_resolver = ReferenceResolver(self.max_parent_traversal_depth, self.root_path)
            child_resolver.tracker = self.tracker.create_child_tracker()
            child_resolver.base_path = resolved_path.parent

            # For internal references in the external file, use the full file content as root
            return child_resolver._resolve_refs(external_data, resolved_path.parent, root_data=full_external_data)

        except (OSError, json.JSONDecodeError) as e:
            raise ReferenceResolverError(f"Failed to load external reference {file_path}: {e}") from e
        finally:
            self.tracker.leave_external_ref(resolved_path, pointer)

    def _resolve_internal_ref(self, pointer: str, ref_value: str, root_data: Any, tracked: bool = False) -> Any:
        if not self.tracker.enter_internal_ref(pointer):
            logger.debug(f"Circular reference {ref_value} left unresolved")
            return {REF_KEY: ref_value}

        try:
            referenced_data = self._navigate_pointer(root_data, pointer)
            source_path = self._pointer_path(root_data, pointer) if tracked else None
            return self._resolve_refs(referenced_data, self.base_path or Path.cwd(), root_data, source_path)
        finally:
            self.tracker.leave_internal_ref(pointer)

    def _navigate_pointer(self, data: Any, pointer: str) -> Any:
        if not pointer:
            return data

        parts = self.path_validator.parse_json_pointer(pointer)

        try:
            return reduce(lambda obj, key: obj[int(key)] if isinstance(obj, list) else obj[key], parts, data)
        except (KeyError, IndexError, ValueError, TypeError) as e:
            raise ReferenceResolverError(f"Invalid JSON pointer {pointer}: {e}") from e

    def _pointer_path(self, data: Any, pointer: str) -> tuple[str | int, ...]:
        """Pointer as a key path, list indices as ints; the pointer must resolve."""
        path: list[str | int] = []
        for part in self.path_validator.parse_json_pointer(pointer):
            key = int(part) if isinstance(data, list) else part
            path.append(key)
            data = data[key]
        return tuple(path)

    def _merge_with_siblings(self, ref_dict: dict[str, Any], referenced_data: Any, current_path: Path, root_data: Any, source_path: SourcePath = None) -> Any:
        siblings = {k: v for k, v in ref_dict.items() if k != REF_KEY}

        if not siblings:
            return referenced_data

        if not isinstance(referenced_data, dict):
            raise ReferenceResolverError("Cannot merge non-dict reference with sibling properties")

        resolved_siblings = self._resolve_refs(siblings, current_path, root_data, source_path)

        self._detect_merge_conflicts(referenced_data, resolved_siblings)

        return always_merger.merge(referenced_data, resolved_siblings)

    def _detect_merge_conflicts(self, base: Any, overlay: Any, path: str = "") -> None:
        """Detect conflicts during merge.

        Raises:
            ReferenceResolverError: If a merge conflict is detected
        """
        if base is None or overlay is None:
            return

        if isinstance(base, dict) and isinstance(overlay, dict):
            for key, value in overlay.items():
                if key in base:
                    new_path = f"{path}.{key}" if path else key
                    self._detect_merge_conflicts(base[key], value, new_path)
            return

        if isinstance(base, list) and isinstance(overlay, list):
            return

        if base == overlay:
            return

        raise ReferenceResolverError(f"Merge conflict at {path if path else 'root'}")


def _child_path(source_path: SourcePath, key: str | int) -> SourcePath:
    return None if source_path is None else (*source_path, key)
