"""Path validation utilities for reference resolution."""

from pathlib import Path
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname

from pytest_httpchain_pact.exceptions import ReferenceResolverError

FILE_SCHEME = "file://"


class PathValidator:
    """Validates paths for security and correctness."""

    @staticmethod
    def validate_ref_path(ref_path: str, base_path: Path, root_path: Path | None, max_parent_traversal_depth: int) -> Path:
        """Validate and resolve a reference path.

        Args:
            ref_path: The reference path to validate
            base_path: The base path to resolve relative references from
            root_path: The root path that references should not escape, None for no restriction
            max_parent_traversal_depth: Maximum allowed parent directory traversals

        Returns:
            The resolved absolute path

        Raises:
            ReferenceResolverError: If the path is invalid or violates security constraints
        """
        resolved_path = (base_path / ref_path).resolve()

        if root_path is not None:
            try:
                resolved_path.relative_to(root_path.resolve())
            except ValueError:
                raise ReferenceResolverError(f"Reference path '{ref_path}' points outside allowed directory tree") from None

        parent_traversals = 0
        for part in Path(ref_path).parts:
            if part == "..":
                parent_traversals += 1
            else:
                break

        if parent_traversals > max_parent_traversal_depth:
            raise ReferenceResolverError(f"Reference path '{ref_path}' exceeds maximum parent traversal depth of {max_parent_traversal_depth}")

        return resolved_path

    @staticmethod
    def parse_file_uri(uri: str) -> tuple[Path, str]:
        """Split a ``file://`` URI into a local path and a JSON pointer.

        Raises:
            ReferenceResolverError: If the URI names a remote host
        """
        parsed = urlparse(uri)
        if parsed.netloc not in ("", "localhost"):
            raise ReferenceResolverError(f"Unsupported remote file reference: {uri}")
        return Path(url2pathname(parsed.path)), unquote(parsed.fragment)

    @staticmethod
    def parse_json_pointer(pointer: str) -> list[str]:
        """Parse a JSON pointer into path components.

        Args:
            pointer: JSON pointer string (e.g., "/path/to/node")

        Returns:
            List of path components

        Raises:
            ReferenceResolverError: If the pointer is invalid
        """
        if not pointer:
            return []

        if not pointer.startswith("/"):
            raise ReferenceResolverError(f"Invalid JSON pointer: {pointer} (must start with '/')")

        return [part.replace("~1", "/").replace("~0", "~") for part in pointer[1:].split("/")]
