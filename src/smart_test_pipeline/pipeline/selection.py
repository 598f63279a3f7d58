"""Order-preserving set of selected files keyed by path."""

from typing import Dict, Iterator, Tuple

from smart_test_pipeline.models.data_models import FileEntry


class SelectionSet:
    """Files chosen for test generation.

    Membership is decided by path only; two entries with the same path but
    different sizes are the same selection. Insertion order is kept for display.
    """

    def __init__(self):
        # dicts keep insertion order and deleting a key does not reorder the rest
        self._entries: Dict[str, FileEntry] = {}

    def toggle(self, entry: FileEntry) -> bool:
        """Remove the entry if its path is selected, otherwise append it.

        Returns:
            True when the entry is selected after the call.
        """
        if entry.path in self._entries:
            del self._entries[entry.path]
            return False
        self._entries[entry.path] = entry
        return True

    def contains(self, path: str) -> bool:
        return path in self._entries

    def clear(self) -> None:
        self._entries.clear()

    @property
    def entries(self) -> Tuple[FileEntry, ...]:
        return tuple(self._entries.values())

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __iter__(self) -> Iterator[FileEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __repr__(self) -> str:
        return f"SelectionSet({list(self._entries)})"
