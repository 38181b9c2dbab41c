import copy
import json
import logging
from pathlib import Path
from typing import Any

from pytest_httpchain_pact.constants import PACT_OBJECT_KEYS
from pytest_httpchain_pact.exceptions import ReferenceResolverError
from pytest_httpchain_pact.resolver.parameters import extract_parameterized_refs
from pytest_httpchain_pact.resolver.reference import ReferenceResolver
from pytest_httpchain_pact.settings import PactSettings

logger = logging.getLogger(__name__)


def resolve_refs(data: Any, base_path: Path | None = None, settings: PactSettings | None = None, root_path: Path | None = None) -> Any:
    """Resolve ``$ref`` statements, including parameterized ones, in a copy of ``data``.

    Args:
        data: JSON data, left untouched
        base_path: Folder relative file references are resolved against, defaults to the working directory
        settings: Settings providing the parent traversal limit
        root_path: Folder file references must not escape, no restriction if None

    Returns:
        The resolved copy; anything but a dict or list is returned unchanged

    Raises:
        ReferenceResolverError: If a reference cannot be resolved
    """
    if not isinstance(data, dict | list):
        return data

    settings = settings or PactSettings()
    working_copy = copy.deepcopy(data)
    parameterized_refs = extract_parameterized_refs(working_copy)

    parameters = {ref.path: ref.params for ref in parameterized_refs}
    logger.debug(f"Resolving references with {len(parameters)} parameterized $ref(s)")

    resolver = ReferenceResolver(settings.ref_parent_traversal_depth, root_path, parameters)
    return resolver.resolve_document(working_copy, base_path or Path.cwd())


def resolve_pact(document: Any, base_path: Path | None = None, settings: PactSettings | None = None) -> Any:
    """Resolve a fixture document and keep only its ``id``, ``info`` and ``records``.

    Raises:
        ReferenceResolverError: If a reference cannot be resolved
    """
    if not isinstance(document, dict):
        return document

    resolved = resolve_refs(document, base_path, settings)
    return {key: resolved[key] for key in PACT_OBJECT_KEYS if key in resolved}


def load_pact(path: Path | str, settings: PactSettings | None = None) -> Any:
    """Load a fixture file and resolve it relative to its folder.

    Raises:
        ReferenceResolverError: If the file cannot be loaded or a reference cannot be resolved
    """
    path = Path(path)
    logger.info(f"Loading pact from {path}")
    try:
        with open(path, encoding="utf-8") as f:
            document = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ReferenceResolverError(f"Failed to load JSON from {path}: {e}") from e

    return resolve_pact(document, path.parent, settings)
