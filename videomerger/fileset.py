"""File set management

Responsibilities:
  - Discover segment files in a source folder.
  - Keep them in concatenation order (capture time first, then user edits).
  - Track the predicted merged size.
  - Seed default output location/name without overriding user choices.
"""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from .config import DEFAULT_OUTPUT_NAME, MEDIA_EXTENSION
from .exceptions import DiscoveryError, FileSetLockedError
from .media import MediaItem

logger = logging.getLogger(__name__)

class FieldSource(Enum):
    """Where the current value of an output field came from."""
    UNSET = "unset"
    AUTO = "auto"
    USER = "user"

class OutputField:
    """A value that follows automatic defaults until the user sets it."""

    def __init__(self, default=None):
        self.value = default
        self.source = FieldSource.UNSET

    def auto(self, value) -> bool:
        """Apply an automatic default. Returns False if the user value wins."""
        if self.source is FieldSource.USER:
            return False
        self.value = value
        self.source = FieldSource.AUTO
        return True

    def set(self, value) -> None:
        """Apply a user choice; automatic defaults are ignored from now on."""
        self.value = value
        self.source = FieldSource.USER

    def reset(self, default=None) -> None:
        self.value = default
        self.source = FieldSource.UNSET

    def __repr__(self) -> str:
        return f"OutputField({self.value!r}, {self.source.value})"

class OutputTarget:
    """Output directory and file name of the next merge."""

    def __init__(self, default_name: str = DEFAULT_OUTPUT_NAME):
        self.directory = OutputField()
        self.name = OutputField(default_name)

    def resolve(self) -> Path:
        """Absolute output path; an unset directory means the working directory."""
        directory = Path(self.directory.value) if self.directory.value else Path.cwd()
        return (directory / self.name.value).absolute()

class FileSetManager:
    """Ordered collection of media items for one source folder.

    Attributes:
        folder: Current source folder, None when nothing is loaded
        items: Items in concatenation order
        predicted_size: Sum of known item sizes, None after a failed load
        merged_size: Size of the last merged output, reset on load
        output: Output target seeded from the loaded folder
    """

    def __init__(self, extension: str = MEDIA_EXTENSION,
                 is_locked: Optional[Callable[[], bool]] = None):
        self.extension = extension.lstrip(".").lower()
        self.folder: Optional[Path] = None
        self.items: List[MediaItem] = []
        self.predicted_size: Optional[int] = None
        self.merged_size: Optional[int] = None
        self.output = OutputTarget(f"output.{self.extension}")
        self._is_locked = is_locked or (lambda: False)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    def _check_unlocked(self) -> None:
        if self._is_locked():
            raise FileSetLockedError("Cannot change files while a merge is running", module="fileset")

    def _recompute_size(self) -> None:
        self.predicted_size = sum(item.size for item in self.items if item.size is not None)

    def accepts(self, path: Path) -> bool:
        """Check whether a path has the accepted media extension."""
        return Path(path).suffix.lower() == f".{self.extension}"

    def load(self, folder: Path) -> List[MediaItem]:
        """
        Replace the set with the media files found directly in a folder.

        Args:
            folder: Source folder to scan (not recursive)

        Returns:
            The loaded items in capture-time order

        Raises:
            DiscoveryError: If the folder cannot be listed; the set is left empty
        """
        self._check_unlocked()
        folder = Path(folder).absolute()
        self.folder = folder
        self.merged_size = None
        try:
            with os.scandir(folder) as entries:
                candidates = [Path(entry.path) for entry in entries
                              if self.accepts(Path(entry.name)) and _is_file(entry)]
        except OSError as e:
            self.items = []
            self.predicted_size = None
            logger.error("Cannot read folder %s: %s", folder, e)
            raise DiscoveryError(f"Cannot read folder {folder}: {e}", module="fileset") from e

        items = [MediaItem.from_path(path) for path in candidates]
        # Stable sort keeps listing order for equal timestamps
        items.sort(key=lambda item: item.captured_at)
        self.items = items
        self._recompute_size()

        self.output.directory.auto(folder)
        if items:
            self.output.name.auto(items[0].name)

        logger.info("Loaded %d %s files from %s", len(items), self.extension, folder)
        return list(items)

    def clear(self) -> None:
        """Forget the folder and all items."""
        self._check_unlocked()
        self.folder = None
        self.items = []
        self.predicted_size = None
        self.merged_size = None

    def contains(self, path: Path) -> bool:
        path = Path(path).absolute()
        return any(item.path == path for item in self.items)

    def insert(self, item: MediaItem) -> bool:
        """Append an item unless its path is already present.

        Returns:
            True if the item was added
        """
        self._check_unlocked()
        if self.contains(item.path):
            logger.debug("Ignoring duplicate %s", item.path)
            return False
        self.items.append(item)
        self._recompute_size()
        return True

    def add_path(self, path: Path) -> bool:
        """Add a manually picked or dropped file.

        Returns:
            True if the file was added, False if it has the wrong extension or is already present
        """
        path = Path(path)
        if not self.accepts(path):
            logger.warning("Ignoring %s: not a .%s file", path, self.extension)
            return False
        return self.insert(MediaItem.from_path(path))

    def add_paths(self, paths: Iterable[Path]) -> int:
        """Add several files; returns how many were added."""
        return sum(1 for path in paths if self.add_path(path))

    def remove(self, index: int) -> MediaItem:
        """Remove the item at a position.

        Raises:
            IndexError: If index is out of range
        """
        self._check_unlocked()
        item = self.items.pop(index)
        self._recompute_size()
        return item

    def remove_path(self, path: Path) -> bool:
        path = Path(path).absolute()
        for index, item in enumerate(self.items):
            if item.path == path:
                self.remove(index)
                return True
        return False

    def reorder(self, source: int, destination: int) -> None:
        """Move one item from source to destination position.

        Raises:
            IndexError: If either position is out of range
        """
        self._check_unlocked()
        count = len(self.items)
        if not (0 <= source < count and 0 <= destination < count):
            raise IndexError(f"Position out of range for {count} items")
        item = self.items.pop(source)
        self.items.insert(destination, item)

    def move(self, indices: Iterable[int], destination: int) -> None:
        """Move several items in front of the item at destination.

        This follows list-view drag semantics: destination is an offset in
        the original list and may equal len(items) to move to the end.
        """
        self._check_unlocked()
        selected = sorted(set(indices))
        count = len(self.items)
        if any(not 0 <= i < count for i in selected) or not 0 <= destination <= count:
            raise IndexError(f"Position out of range for {count} items")
        moving = [self.items[i] for i in selected]
        before = [item for i, item in enumerate(self.items[:destination]) if i not in selected]
        after = [item for i, item in enumerate(self.items[destination:], destination) if i not in selected]
        self.items = before + moving + after

    def paths(self) -> List[Path]:
        """Ordered snapshot of item paths."""
        return [item.path for item in self.items]

def _is_file(entry: os.DirEntry) -> bool:
    try:
        return entry.is_file()
    except OSError:
        return False
