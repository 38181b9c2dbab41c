"""Tracking of references currently being resolved."""

from pathlib import Path


class CircularDependencyTracker:
    """Keeps the stack of active references so cycles can be detected.

    ``enter_*`` returns False when the reference is already being resolved
    further up, i.e. following it again would never terminate.
    """

    def __init__(self, external_refs: set[tuple[Path, str]] | None = None):
        self.external_refs = external_refs if external_refs is not None else set()
        self.internal_refs: set[str] = set()

    def enter_external_ref(self, path: Path, pointer: str) -> bool:
        key = (path, pointer)
        if key in self.external_refs:
            return False
        self.external_refs.add(key)
        return True

    def leave_external_ref(self, path: Path, pointer: str) -> None:
        self.external_refs.discard((path, pointer))

    def enter_internal_ref(self, pointer: str) -> bool:
        if pointer in self.internal_refs:
            return False
        self.internal_refs.add(pointer)
        return True

    def leave_internal_ref(self, pointer: str) -> None:
        self.internal_refs.discard(pointer)

    def create_child_tracker(self) -> "CircularDependencyTracker":
        """Tracker for another file: shares the external stack, starts a fresh internal one."""
        return CircularDependencyTracker(self.external_refs)
