"""Retention folder management

Merged sources are moved into a retention folder instead of being deleted.
The folder is cleared as a whole once its size passes a configured
threshold; the check runs at orderly shutdown.
"""

import atexit
import logging
import os
import shutil
import time
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple

from .config import DEFAULT_RETENTION_ROOT
from .exceptions import EvictionError, RetentionMoveError
from .preferences import Preferences

logger = logging.getLogger(__name__)

class RetentionStore:
    """Holding area for source files removed after a merge."""

    def __init__(self, root: Path):
        self.root = Path(root).expanduser()

    def __repr__(self) -> str:
        return f"RetentionStore({str(self.root)!r})"

    def _destination_for(self, source: Path) -> Path:
        destination = self.root / source.name
        if not destination.exists():
            return destination
        stamp = int(time.time())
        candidate = self.root / f"{source.stem}_{stamp}{source.suffix}"
        counter = 1
        while candidate.exists():
            candidate = self.root / f"{source.stem}_{stamp}_{counter}{source.suffix}"
            counter += 1
        return candidate

    def admit(self, source: Path) -> Path:
        """
        Move a file into the store, renaming it if the name is taken.

        Args:
            source: File to move

        Returns:
            Path of the file inside the store

        Raises:
            RetentionMoveError: If the store cannot be created or the move fails
        """
        source = Path(source)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RetentionMoveError(
                f"Cannot create retention folder {self.root}: {e}",
                source=source, module="retention"
            ) from e

        destination = self._destination_for(source)
        try:
            shutil.move(str(source), str(destination))
        except (OSError, shutil.Error) as e:
            raise RetentionMoveError(
                f"Cannot move {source} to {destination}: {e}",
                source=source, module="retention"
            ) from e
        logger.debug("Moved %s to %s", source, destination)
        return destination

    def admit_all(self, sources: Iterable[Path]) -> Tuple[List[Path], List[RetentionMoveError]]:
        """Move every source; one failure does not stop the others.

        Returns:
            (destinations of moved files, errors for files that were not moved)
        """
        moved: List[Path] = []
        failed: List[RetentionMoveError] = []
        for source in sources:
            try:
                moved.append(self.admit(source))
            except RetentionMoveError as e:
                logger.error("%s", e.message)
                failed.append(e)
        logger.info("Moved %d file(s) to %s", len(moved), self.root)
        return moved, failed

    def occupied_bytes(self) -> int:
        """Sum of the sizes of the visible top-level entries (not recursive)."""
        total = 0
        try:
            with os.scandir(self.root) as entries:
                for entry in entries:
                    if entry.name.startswith("."):
                        continue
                    try:
                        if entry.is_file():
                            total += entry.stat().st_size
                    except OSError as e:
                        logger.debug("Skipping unreadable entry %s: %s", entry.path, e)
        except FileNotFoundError:
            return 0
        except OSError as e:
            logger.error("Cannot read retention folder %s: %s", self.root, e)
        return total

    def clear(self) -> List[EvictionError]:
        """Delete every top-level entry, keeping the root itself.

        Returns:
            Errors for entries that could not be deleted
        """
        errors: List[EvictionError] = []
        try:
            entries = list(self.root.iterdir())
        except FileNotFoundError:
            return errors
        except OSError as e:
            error = EvictionError(f"Cannot read retention folder {self.root}: {e}",
                                  entry=self.root, module="retention")
            logger.error("%s", error.message)
            return [error]

        for entry in entries:
            try:
                if entry.is_dir() and not entry.is_symlink():
                    shutil.rmtree(entry)
                else:
                    entry.unlink()
            except OSError as e:
                error = EvictionError(f"Cannot delete {entry}: {e}", entry=entry, module="retention")
                logger.error("%s", error.message)
                errors.append(error)
        logger.info("Cleared retention folder %s", self.root)
        return errors

class RetentionReaper:
    """Clears a retention store once it exceeds a size threshold."""

    def enforce(self, store: Optional[RetentionStore], threshold_bytes: int) -> bool:
        """
        Clear the store if it holds more than threshold_bytes.

        Returns:
            True if the store was cleared
        """
        if store is None or threshold_bytes <= 0:
            logger.debug("Retention policy not configured, skipping")
            return False
        occupied = store.occupied_bytes()
        if occupied <= threshold_bytes:
            logger.debug("Retention folder %s holds %d bytes, under %d", store.root, occupied, threshold_bytes)
            return False
        logger.info("Retention folder %s holds %d bytes, over %d; clearing",
                    store.root, occupied, threshold_bytes)
        store.clear()
        return True

    def enforce_preferences(self, preferences: Preferences) -> bool:
        """Apply the policy described by the user's preferences."""
        if preferences.retention_root is None:
            logger.debug("No retention folder chosen, skipping")
            return False
        return self.enforce(RetentionStore(preferences.retention_root),
                            preferences.retention_threshold_bytes)

def store_for(preferences: Preferences) -> RetentionStore:
    """Store that receives merged sources, falling back to the default folder."""
    return RetentionStore(preferences.retention_root or DEFAULT_RETENTION_ROOT)

def register_shutdown_hook(load_preferences: Callable[[], Preferences],
                           reaper: Optional[RetentionReaper] = None) -> Callable[[], bool]:
    """Run the retention policy once when the interpreter exits.

    Preferences are loaded at exit time so changes made during the run apply.
    """
    reaper = reaper or RetentionReaper()

    def _reap() -> bool:
        try:
            return reaper.enforce_preferences(load_preferences())
        except Exception as e:
            logger.error("Retention cleanup failed: %s", e)
            return False

    atexit.register(_reap)
    return _reap
