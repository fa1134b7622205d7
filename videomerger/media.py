"""Media item model

Each segment in a merge is described by a MediaItem built from its path.
The capture time comes from a "YYYYMMDD-HHMMSS" stamp in the file name,
as written by common stream recorders.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from .utils import format_size, get_file_size

logger = logging.getLogger(__name__)

TIMESTAMP_PATTERN = re.compile(r"(\d{8}-\d{6})")
TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"

# Sort key for files without a usable stamp: they go first
UNKNOWN_CAPTURE_TIME = datetime.min

def parse_capture_time(file_name: str) -> Optional[datetime]:
    """Extract the first YYYYMMDD-HHMMSS stamp from a file name.

    Returns:
        The parsed datetime, or None if there is no stamp or it is not a valid date
    """
    match = TIMESTAMP_PATTERN.search(file_name)
    if not match:
        return None
    try:
        return datetime.strptime(match.group(1), TIMESTAMP_FORMAT)
    except ValueError:
        logger.debug("Ignoring invalid timestamp in %s", file_name)
        return None

@dataclass(frozen=True)
class MediaItem:
    """One input segment.
    
    Attributes:
        path: Absolute path of the file, unique within a file set
        name: Display name (file name)
        size: Size in bytes, None when unreadable
        captured_at: Capture time parsed from the name, UNKNOWN_CAPTURE_TIME if absent
    """
    path: Path
    name: str
    size: Optional[int]
    captured_at: datetime = UNKNOWN_CAPTURE_TIME

    @classmethod
    def from_path(cls, path: Path) -> "MediaItem":
        """Build an item from a path; attribute read failures only blank the size."""
        path = Path(path).absolute()
        captured_at = parse_capture_time(path.name)
        return cls(
            path=path,
            name=path.name,
            size=get_file_size(path),
            captured_at=captured_at or UNKNOWN_CAPTURE_TIME,
        )

    @property
    def has_capture_time(self) -> bool:
        return self.captured_at != UNKNOWN_CAPTURE_TIME

    @property
    def size_label(self) -> str:
        return format_size(self.size)
