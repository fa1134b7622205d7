"""User preferences for videomerger.

Preferences are read once per operation as an immutable snapshot, so the
merge controller never touches the persistence backend itself.
"""

import json
import logging
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Optional

from .config import (
    PREFERENCES_FILE,
    RETENTION_THRESHOLD_DEFAULT_GB,
    RETENTION_THRESHOLD_MAX_GB,
    RETENTION_THRESHOLD_MIN_GB,
)
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

GIB = 1024 ** 3

def clamp_threshold_gb(value: int) -> int:
    """Clamp a retention threshold into the supported range."""
    return max(RETENTION_THRESHOLD_MIN_GB, min(int(value), RETENTION_THRESHOLD_MAX_GB))

@dataclass(frozen=True)
class Preferences:
    """Snapshot of the persisted user preferences.
    
    Attributes:
        delete_sources_after_merge: Move sources to the retention folder after a successful merge
        retention_root: Retention folder, None when the user has not chosen one
        retention_threshold_gb: Clear the retention folder once it exceeds this size
    """
    delete_sources_after_merge: bool = False
    retention_root: Optional[Path] = None
    retention_threshold_gb: int = RETENTION_THRESHOLD_DEFAULT_GB

    def __post_init__(self) -> None:
        if self.retention_root is not None and not isinstance(self.retention_root, Path):
            object.__setattr__(self, "retention_root", Path(self.retention_root))
        if not isinstance(self.retention_threshold_gb, int) or isinstance(self.retention_threshold_gb, bool):
            raise ConfigurationError(
                f"Retention threshold must be an integer: {self.retention_threshold_gb!r}",
                module="preferences"
            )
        object.__setattr__(self, "retention_threshold_gb", clamp_threshold_gb(self.retention_threshold_gb))

    @property
    def retention_threshold_bytes(self) -> int:
        return self.retention_threshold_gb * GIB

    def to_dict(self) -> dict:
        data = asdict(self)
        data["retention_root"] = str(self.retention_root) if self.retention_root else ""
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Preferences":
        """Build preferences from stored key/value pairs.

        Raises:
            ConfigurationError: If a value has the wrong type
        """
        delete = data.get("delete_sources_after_merge", False)
        if not isinstance(delete, bool):
            raise ConfigurationError(
                f"delete_sources_after_merge must be a boolean: {delete!r}",
                module="preferences"
            )
        root = data.get("retention_root") or None
        if root is not None and not isinstance(root, str):
            raise ConfigurationError(f"retention_root must be a string: {root!r}", module="preferences")
        return cls(
            delete_sources_after_merge=delete,
            retention_root=Path(root).expanduser() if root else None,
            retention_threshold_gb=data.get("retention_threshold_gb", RETENTION_THRESHOLD_DEFAULT_GB),
        )

class PreferenceStore:
    """JSON file backed preference storage."""

    def __init__(self, path: Path = PREFERENCES_FILE):
        self.path = Path(path)

    def load(self) -> Preferences:
        """Read preferences; a missing or unreadable file yields the defaults."""
        if not self.path.exists():
            return Preferences()
        try:
            data = json.loads(self.path.read_text())
            if not isinstance(data, dict):
                raise ConfigurationError("Preference file must hold an object", module="preferences")
            return Preferences.from_dict(data)
        except (OSError, ValueError, ConfigurationError) as e:
            logger.warning("Ignoring preferences in %s: %s", self.path, e)
            return Preferences()

    def save(self, preferences: Preferences) -> None:
        """Write preferences.

        Raises:
            ConfigurationError: If the file cannot be written
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(preferences.to_dict(), indent=2))
        except OSError as e:
            raise ConfigurationError(f"Cannot save preferences to {self.path}: {e}", module="preferences") from e
        logger.debug("Saved preferences to %s", self.path)

    def update(self, **changes) -> Preferences:
        """Apply changes to the stored preferences and save them."""
        preferences = replace(self.load(), **changes)
        self.save(preferences)
        return preferences

    def toggle_delete_sources(self) -> Preferences:
        """Flip the delete-after-merge flag and persist it."""
        current = self.load()
        return self.update(delete_sources_after_merge=not current.delete_sources_after_merge)

    def set_retention_parent(self, folder: Path) -> Preferences:
        """Use a ".trash" folder inside the chosen folder as the retention root.

        Raises:
            ConfigurationError: If the folder cannot be created
        """
        root = Path(folder).expanduser().absolute() / ".trash"
        try:
            root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(f"Cannot create retention folder {root}: {e}", module="preferences") from e
        return self.update(retention_root=root)
